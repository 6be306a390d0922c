import random
import string
from collections.abc import Awaitable, Callable
from typing import Any

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode
from quizmaster.models.room import Room
from quizmaster.repositories.base_repository import BaseRepository
from quizmaster.store.document_store import (
    DocumentStore,
    ErrorCallback,
    Subscription,
    join_path,
)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6


class RoomRepository(BaseRepository[Room]):
    def __init__(self, store: DocumentStore, collection: str | None = None):
        super().__init__(store, Room, DomainErrorCode.ROOM_NOT_FOUND)
        self.collection = collection or settings.ROOMS_COLLECTION

    def path(self, room_code: str) -> str:
        return join_path(self.collection, room_code)

    @staticmethod
    def generate_room_code(rng: random.Random | None = None) -> str:
        chooser = rng or random
        return "".join(chooser.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))

    async def get(self, room_code: str) -> Room | None:
        return await self._get(self.path(room_code))

    async def get_or_raise(self, room_code: str) -> Room:
        return await self._get_or_raise(self.path(room_code), room_code=room_code)

    async def create(self, room: Room) -> Room:
        return await self._set(self.path(room.room_id), room)

    async def update(self, room_code: str, **fields: Any) -> None:
        await self._update(self.path(room_code), fields)

    async def delete(self, room_code: str) -> None:
        await self.store.delete(self.path(room_code), recursive=True)

    async def subscribe(
        self,
        room_code: str,
        callback: Callable[[Room | None], Awaitable[None]],
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        return await self._subscribe_one(self.path(room_code), callback, on_error)
