from collections.abc import Awaitable, Callable

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode
from quizmaster.models.chat_message import ChatMessage
from quizmaster.repositories.base_repository import BaseRepository
from quizmaster.store.document_store import (
    DocumentStore,
    ErrorCallback,
    Subscription,
    join_path,
)

CHAT_SUBCOLLECTION = "chat"


class ChatRepository(BaseRepository[ChatMessage]):
    def __init__(self, store: DocumentStore, rooms_collection: str | None = None):
        super().__init__(store, ChatMessage, DomainErrorCode.DOCUMENT_NOT_FOUND)
        self.rooms_collection = rooms_collection or settings.ROOMS_COLLECTION

    def collection(self, room_code: str) -> str:
        return join_path(self.rooms_collection, room_code, CHAT_SUBCOLLECTION)

    async def add(self, room_code: str, message: ChatMessage) -> str:
        return await self.store.add(self.collection(room_code), message.to_document())

    async def filter(self, room_code: str, limit: int | None = None) -> list[ChatMessage]:
        return await self._filter(
            self.collection(room_code),
            order_by="timestamp",
            limit=limit,
        )

    async def subscribe(
        self,
        room_code: str,
        callback: Callable[[list[ChatMessage]], Awaitable[None]],
        *,
        limit: int | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        return await self._subscribe_many(
            self.collection(room_code),
            callback,
            order_by="timestamp",
            limit=limit,
            on_error=on_error,
        )
