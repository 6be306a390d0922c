from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.stored_document import StoredDocument
from quizmaster.store.document_store import (
    DocumentSnapshot,
    DocumentStore,
    QuerySnapshot,
    QuerySpec,
    join_path,
    parent_path,
)


class SqlDocumentStore(DocumentStore):
    """Documents as JSON rows; live snapshots are fanned out in-process."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                raise QuizDomainError(
                    code=DomainErrorCode.STORE_ERROR,
                    message="Document store operation failed",
                    details={"error": str(exc)},
                ) from exc

    @staticmethod
    async def _find(session: AsyncSession, path: str) -> StoredDocument | None:
        result = await session.execute(
            select(StoredDocument).where(StoredDocument.path == path)
        )
        return result.scalar_one_or_none()

    async def get(self, path: str) -> DocumentSnapshot:
        async with self._session() as session:
            document = await self._find(session, path)
            if document is None:
                return DocumentSnapshot(path)
            return DocumentSnapshot(path, dict(document.data))

    async def set(self, path: str, data: dict[str, Any]) -> None:
        async with self._session() as session:
            document = await self._find(session, path)
            if document is None:
                document = StoredDocument(
                    path=path,
                    collection=parent_path(path),
                    data=dict(data),
                )
            else:
                document.data = dict(data)
                document.updated_at = datetime.now(UTC)
            session.add(document)
            await session.commit()
        await self._notify(path)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        async with self._session() as session:
            document = await self._find(session, path)
            if document is None:
                raise QuizDomainError(
                    code=DomainErrorCode.DOCUMENT_NOT_FOUND,
                    message=f"No document to update at {path}",
                    details={"path": path},
                )
            document.data = {**document.data, **data}
            document.updated_at = datetime.now(UTC)
            session.add(document)
            await session.commit()
        await self._notify(path)

    async def delete(self, path: str, *, recursive: bool = False) -> None:
        condition = StoredDocument.path == path
        if recursive:
            condition = or_(condition, StoredDocument.path.startswith(f"{path}/"))
        async with self._session() as session:
            result = await session.execute(delete(StoredDocument).where(condition))
            await session.commit()
        if result.rowcount:
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
        async with self._session() as session:
            result = await session.execute(
                select(StoredDocument)
                .where(StoredDocument.collection == collection_path)
                .order_by(StoredDocument.id)
            )
            documents = [
                DocumentSnapshot(row.path, dict(row.data))
                for row in result.scalars().all()
            ]
        return QuerySnapshot(spec, spec.apply(documents))
