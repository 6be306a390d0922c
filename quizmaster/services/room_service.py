import logging
import random
from typing import Any

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.player import Player
from quizmaster.models.room import Room, RoomState
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.store.document_store import DocumentStore
from quizmaster.util.clock import Clock, now_ms
from quizmaster.util.quiz import parse_quiz, shuffle_quiz
from quizmaster.util.validators import normalize_room_code, validate_player_name

logger = logging.getLogger(__name__)


def require_identity(participant_id: str | None) -> str:
    if not participant_id:
        raise QuizDomainError(
            code=DomainErrorCode.AUTH_PENDING,
            message="Authentication pending. Try again.",
        )
    return participant_id


class RoomService:
    def __init__(
        self,
        store: DocumentStore,
        room_repository: RoomRepository | None = None,
        player_repository: PlayerRepository | None = None,
        clock: Clock = now_ms,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.room_repository = room_repository or RoomRepository(store)
        self.player_repository = player_repository or PlayerRepository(store)
        self.clock = clock
        self.rng = rng or random.Random()

    async def create_room(
        self,
        host_id: str | None,
        host_name: str,
        quiz_file: str | bytes | dict[str, Any],
    ) -> Room:
        host_id = require_identity(host_id)
        name = validate_player_name(host_name)
        quiz = shuffle_quiz(parse_quiz(quiz_file), self.rng)

        room = Room(
            room_id=self.room_repository.generate_room_code(self.rng),
            host_id=host_id,
            host_name=name,
            quiz=quiz,
            state=RoomState.LOBBY,
            current_question_index=0,
            question_start_time=None,
            created_at=self.clock(),
        )
        await self.room_repository.create(room)
        await self._add_player(room.room_id, host_id, name, is_host=True)

        logger.info(
            "Room %s created by %s with %d questions",
            room.room_id,
            host_id,
            room.question_count,
        )
        return room

    async def join_room(
        self, room_code: str, player_id: str | None, player_name: str
    ) -> tuple[Room, Player]:
        player_id = require_identity(player_id)
        name = validate_player_name(player_name)
        room_code = normalize_room_code(room_code)

        room = await self.room_repository.get(room_code)
        if room is None:
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_NOT_FOUND,
                message=f'Room code "{room_code}" not found.',
                details={"room_id": room_code},
            )

        existing = await self.player_repository.get(room_code, player_id)
        if existing is not None:
            logger.info("Player %s already in room %s", player_id, room_code)
            return room, existing

        if room.state != RoomState.LOBBY:
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_NOT_IN_LOBBY,
                message="Game already started or finished.",
                details={"room_id": room_code, "state": room.state.value},
            )

        player = await self._add_player(room_code, player_id, name, is_host=False)
        logger.info("Player %s joined room %s", player_id, room_code)
        return room, player

    async def _add_player(
        self, room_code: str, player_id: str, name: str, *, is_host: bool
    ) -> Player:
        player = Player(
            id=player_id,
            name=name,
            score=0,
            is_host=is_host,
            ready_for_next=False,
            joined_at=self.clock(),
        )
        return await self.player_repository.create(room_code, player)

    async def leave_room(self, room_code: str, player_id: str | None) -> bool:
        """Remove the player; a leaving host takes the whole room down.

        Returns True when the room was deleted.
        """
        player_id = require_identity(player_id)
        room_code = normalize_room_code(room_code)

        room = await self.room_repository.get(room_code)
        await self.player_repository.delete(room_code, player_id)

        if room is None or room.host_id != player_id:
            logger.info("Player %s left room %s", player_id, room_code)
            return False

        await self.room_repository.delete(room_code)
        logger.info("Host %s left, room %s closed", player_id, room_code)
        return True

    async def start_game(self, room_code: str, player_id: str | None) -> Room:
        player_id = require_identity(player_id)
        room = await self.get_room(room_code)

        if room.host_id != player_id:
            raise QuizDomainError(
                code=DomainErrorCode.NOT_HOST,
                message="Only the host can start the game",
                details={"room_id": room.room_id, "player_id": player_id},
            )

        if room.state != RoomState.LOBBY:
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_ALREADY_PLAYING,
                message=f"Room {room.room_id} has already started",
                details={"room_id": room.room_id, "state": room.state.value},
            )

        players = await self.player_repository.filter(room.room_id)
        await self.player_repository.reset_ready_flags(room.room_id, players)

        started_at = self.clock()
        await self.room_repository.update(
            room.room_id,
            state=RoomState.PLAYING,
            current_question_index=0,
            question_start_time=started_at,
        )
        logger.info("Room %s started with %d players", room.room_id, len(players))
        return room.model_copy(
            update={
                "state": RoomState.PLAYING,
                "current_question_index": 0,
                "question_start_time": started_at,
            }
        )

    async def get_room(self, room_code: str) -> Room:
        return await self.room_repository.get_or_raise(normalize_room_code(room_code))

    async def get_players(self, room_code: str) -> list[Player]:
        return await self.player_repository.filter(normalize_room_code(room_code))
