import logging
import math

from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.room import Question, RoomState
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.schemas.game import AdvanceOutcome, AnswerResult
from quizmaster.store.document_store import DocumentStore
from quizmaster.util.clock import Clock, now_ms

logger = logging.getLogger(__name__)

BASE_POINTS = 10
SPEED_BONUS_MAX = 5
SPEED_BONUS_WINDOW_MS = 15000


def compute_speed_bonus(elapsed_ms: int) -> int:
    """Linear decay from ``SPEED_BONUS_MAX`` at 0ms to 0 at the window end.

    Rounds half up. Negative elapsed time counts as an instant answer.
    """
    elapsed_ms = max(0, elapsed_ms)
    raw = SPEED_BONUS_MAX * (1 - elapsed_ms / SPEED_BONUS_WINDOW_MS)
    return max(0, math.floor(raw + 0.5))


def compute_award(is_correct: bool, elapsed_ms: int) -> int:
    if not is_correct:
        return 0
    return BASE_POINTS + compute_speed_bonus(elapsed_ms)


class ScoringService:
    def __init__(
        self,
        store: DocumentStore,
        room_repository: RoomRepository | None = None,
        player_repository: PlayerRepository | None = None,
        clock: Clock = now_ms,
    ):
        self.store = store
        self.room_repository = room_repository or RoomRepository(store)
        self.player_repository = player_repository or PlayerRepository(store)
        self.clock = clock

    async def _speed_bonus(self, room_code: str) -> int:
        try:
            room = await self.room_repository.get(room_code)
        except QuizDomainError as e:
            logger.warning("Speed bonus lookup failed for %s: %s", room_code, e)
            return 0
        if room is None or room.question_start_time is None:
            return 0
        return compute_speed_bonus(self.clock() - room.question_start_time)

    async def submit_answer(
        self,
        room_code: str,
        player_id: str,
        question_index: int,
        question: Question,
        selected_index: int,
    ) -> AnswerResult:
        if not 0 <= selected_index < len(question.options):
            raise QuizDomainError(
                code=DomainErrorCode.INVALID_ANSWER,
                message=f"Option {selected_index} does not exist",
                details={
                    "selected_index": selected_index,
                    "option_count": len(question.options),
                },
            )

        is_correct = selected_index == question.correct
        result = AnswerResult(
            question_index=question_index,
            selected_index=selected_index,
            is_correct=is_correct,
            correct_index=question.correct,
            correct_option=question.correct_option,
            explanation=question.explanation,
        )
        if not is_correct:
            return result

        speed_bonus = await self._speed_bonus(room_code)
        points = BASE_POINTS + speed_bonus

        try:
            player = await self.player_repository.get_or_raise(room_code, player_id)
            if player.last_answered_index == question_index:
                logger.info(
                    "Ignoring repeat award for %s on question %d in room %s",
                    player_id,
                    question_index,
                    room_code,
                )
                return result.model_copy(
                    update={"speed_bonus": speed_bonus, "duplicate": True}
                )
            await self.player_repository.update(
                room_code,
                player_id,
                score=player.score + points,
                last_answered_index=question_index,
            )
        except QuizDomainError as e:
            logger.error(
                "Score update failed for %s in room %s: %s", player_id, room_code, e
            )
            return result.model_copy(
                update={"speed_bonus": speed_bonus, "error": e.message}
            )

        return result.model_copy(
            update={"speed_bonus": speed_bonus, "points_awarded": points}
        )

    async def mark_ready(self, room_code: str, player_id: str) -> None:
        await self.player_repository.update(room_code, player_id, ready_for_next=True)

    async def advance_question(
        self,
        room_code: str,
        *,
        expected_index: int | None = None,
        require_all_ready: bool = False,
    ) -> AdvanceOutcome:
        """Move the room past its current question.

        Reads the room and players fresh so a stale trigger (wrong index,
        room no longer playing, someone not ready) does nothing.
        """
        room = await self.room_repository.get(room_code)
        if room is None or room.state != RoomState.PLAYING:
            return AdvanceOutcome.SKIPPED
        if expected_index is not None and room.current_question_index != expected_index:
            return AdvanceOutcome.SKIPPED

        players = await self.player_repository.filter(room_code)
        if require_all_ready and not (
            players and all(player.ready_for_next for player in players)
        ):
            return AdvanceOutcome.SKIPPED

        await self.player_repository.reset_ready_flags(room_code, players)

        if room.is_last_question:
            await self.room_repository.update(room_code, state=RoomState.FINISHED)
            logger.info("Room %s finished", room_code)
            return AdvanceOutcome.FINISHED

        next_index = room.current_question_index + 1
        await self.room_repository.update(
            room_code,
            current_question_index=next_index,
            question_start_time=self.clock(),
        )
        logger.info("Room %s advanced to question %d", room_code, next_index)
        return AdvanceOutcome.ADVANCED
