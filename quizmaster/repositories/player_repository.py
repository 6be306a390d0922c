import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode
from quizmaster.models.player import Player
from quizmaster.repositories.base_repository import BaseRepository
from quizmaster.store.document_store import (
    DocumentStore,
    ErrorCallback,
    Subscription,
    join_path,
)

PLAYERS_SUBCOLLECTION = "players"

logger = logging.getLogger(__name__)


class PlayerRepository(BaseRepository[Player]):
    def __init__(self, store: DocumentStore, rooms_collection: str | None = None):
        super().__init__(store, Player, DomainErrorCode.PLAYER_NOT_FOUND)
        self.rooms_collection = rooms_collection or settings.ROOMS_COLLECTION

    def collection(self, room_code: str) -> str:
        return join_path(self.rooms_collection, room_code, PLAYERS_SUBCOLLECTION)

    def path(self, room_code: str, player_id: str) -> str:
        return join_path(self.collection(room_code), player_id)

    async def get(self, room_code: str, player_id: str) -> Player | None:
        return await self._get(self.path(room_code, player_id))

    async def get_or_raise(self, room_code: str, player_id: str) -> Player:
        return await self._get_or_raise(
            self.path(room_code, player_id),
            room_code=room_code,
            player_id=player_id,
        )

    async def create(self, room_code: str, player: Player) -> Player:
        return await self._set(self.path(room_code, player.id), player)

    async def update(self, room_code: str, player_id: str, **fields: Any) -> None:
        await self._update(self.path(room_code, player_id), fields)

    async def delete(self, room_code: str, player_id: str) -> None:
        await self.store.delete(self.path(room_code, player_id))

    async def reset_ready_flags(
        self, room_code: str, players: list[Player]
    ) -> list[str]:
        """Clear ``readyForNext`` for each player, returning ids that failed.

        Each write is independent; a failed one leaves a stale flag that the
        next reset clears.
        """
        results = await asyncio.gather(
            *(
                self.update(room_code, player.id, ready_for_next=False)
                for player in players
            ),
            return_exceptions=True,
        )
        failed = []
        for player, result in zip(players, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Could not reset readiness for %s in room %s: %s",
                    player.id,
                    room_code,
                    result,
                )
                failed.append(player.id)
        return failed

    async def filter(self, room_code: str) -> list[Player]:
        return await self._filter(self.collection(room_code), order_by="joined_at")

    async def subscribe(
        self,
        room_code: str,
        callback: Callable[[list[Player]], Awaitable[None]],
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        return await self._subscribe_many(
            self.collection(room_code),
            callback,
            order_by="joined_at",
            on_error=on_error,
        )
