from abc import ABC
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.document_model import DocumentModel
from quizmaster.store.document_store import (
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    QuerySnapshot,
    Subscription,
)

T = TypeVar("T", bound=DocumentModel)


class BaseRepository(Generic[T], ABC):
    def __init__(
        self,
        store: DocumentStore,
        model_class: type[T],
        not_found_error_code: DomainErrorCode,
    ):
        self.store = store
        self.model_class = model_class
        self.not_found_error_code = not_found_error_code

    def _to_document_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        document: dict[str, Any] = {}
        for name, value in fields.items():
            field_info = self.model_class.model_fields.get(name)
            key = field_info.alias if field_info and field_info.alias else name
            document[key] = value.value if isinstance(value, Enum) else value
        return document

    def _to_model(self, snapshot: DocumentSnapshot) -> T | None:
        if not snapshot.exists:
            return None
        return self.model_class.from_snapshot(snapshot)

    async def _get(self, path: str) -> T | None:
        return self._to_model(await self.store.get(path))

    async def _get_or_raise(self, path: str, **details: Any) -> T:
        result = await self._get(path)
        if result is None:
            raise QuizDomainError(
                code=self.not_found_error_code,
                message=f"{self.model_class.__name__} not found",
                details={
                    "model": self.model_class.__name__,
                    "conditions": {key: str(value) for key, value in details.items()},
                },
            )
        return result

    async def _set(self, path: str, entity: T) -> T:
        await self.store.set(path, entity.to_document())
        return entity

    async def _update(self, path: str, fields: dict[str, Any]) -> None:
        await self.store.update(path, self._to_document_fields(fields))

    async def _filter(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[T]:
        snapshot = await self.store.query(
            collection_path,
            order_by=self._order_key(order_by),
            limit=limit,
        )
        return self._to_models(snapshot)

    def _to_models(self, snapshot: QuerySnapshot) -> list[T]:
        return [self.model_class.from_snapshot(document) for document in snapshot]

    def _order_key(self, order_by: str | None) -> str | None:
        if order_by is None:
            return None
        return next(iter(self._to_document_fields({order_by: None})))

    async def _subscribe_one(
        self,
        path: str,
        callback: Callable[[T | None], Awaitable[None]],
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        async def deliver(snapshot: DocumentSnapshot) -> None:
            await callback(self._to_model(snapshot))

        return await self.store.subscribe_document(path, deliver, on_error=on_error)

    async def _subscribe_many(
        self,
        collection_path: str,
        callback: Callable[[list[T]], Awaitable[None]],
        *,
        order_by: str | None = None,
        limit: int | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        async def deliver(snapshot: QuerySnapshot) -> None:
            await callback(self._to_models(snapshot))

        return await self.store.subscribe_query(
            collection_path,
            deliver,
            order_by=self._order_key(order_by),
            limit=limit,
            on_error=on_error,
        )
