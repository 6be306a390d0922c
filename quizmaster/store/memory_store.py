import copy
from typing import Any
from uuid import uuid4

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.store.document_store import (
    DocumentSnapshot,
    DocumentStore,
    QuerySnapshot,
    QuerySpec,
    join_path,
    parent_path,
)


class InMemoryDocumentStore(DocumentStore):
    """Process-local store; documents keep their insertion order."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[str, dict[str, Any]] = {}

    def paths(self) -> list[str]:
        return list(self._documents)

    async def get(self, path: str) -> DocumentSnapshot:
        data = self._documents.get(path)
        return DocumentSnapshot(path, copy.deepcopy(data) if data is not None else None)

    async def set(self, path: str, data: dict[str, Any]) -> None:
        self._documents[path] = copy.deepcopy(data)
        await self._notify(path)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        if path not in self._documents:
            raise QuizDomainError(
                code=DomainErrorCode.DOCUMENT_NOT_FOUND,
                message=f"No document to update at {path}",
                details={"path": path},
            )
        self._documents[path].update(copy.deepcopy(data))
        await self._notify(path)

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        doomed = [path] if path in self._documents else []
        if recursive:
            prefix = f"{path}/"
            doomed.extend(p for p in self._documents if p.startswith(prefix))
        if not doomed:
            return
        for doomed_path in doomed:
            del self._documents[doomed_path]
        await self._notify(path, recursive=recursive)

    async def add(self, collection_path: str, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex[:20]
        await self.set(join_path(collection_path, doc_id), data)
        return doc_id

    async def query(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> QuerySnapshot:
        spec = QuerySpec(collection_path, order_by=order_by, limit=limit)
        documents = [
            DocumentSnapshot(path, copy.deepcopy(data))
            for path, data in self._documents.items()
            if parent_path(path) == collection_path
        ]
        return QuerySnapshot(spec, spec.apply(documents))
