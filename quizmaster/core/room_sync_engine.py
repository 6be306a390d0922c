import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.chat_message import ChatMessage
from quizmaster.models.player import Player
from quizmaster.models.room import Room, RoomState
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.schemas.game import AdvanceOutcome, AnswerResult
from quizmaster.schemas.room import RoomSessionInfo
from quizmaster.schemas.view import (
    ChatMessageView,
    PlayerView,
    QuestionView,
    RoomPhase,
    RoomView,
    SyncEvent,
)
from quizmaster.services.chat_service import ChatService
from quizmaster.services.room_service import RoomService
from quizmaster.services.scoring_service import ScoringService
from quizmaster.store.document_store import DocumentStore, Subscription

logger = logging.getLogger(__name__)

ViewListener = Callable[[SyncEvent, RoomView], Awaitable[None]]


class RoomSyncEngine:
    """One participant's live, read-only projection of a room.

    The room document, the players subcollection and the chat subcollection
    are three independent snapshot streams. Every handler rebuilds its part
    of ``view`` from the snapshot it receives and never assumes the other
    streams are in step with it. When the participant is the host, every
    room or players snapshot re-evaluates whether all players are ready and,
    if so, advances the room once per question index.
    """

    def __init__(
        self,
        session: RoomSessionInfo,
        store: DocumentStore,
        *,
        room_repository: RoomRepository | None = None,
        player_repository: PlayerRepository | None = None,
        room_service: RoomService | None = None,
        scoring_service: ScoringService | None = None,
        chat_service: ChatService | None = None,
        advance_delay_ms: int | None = None,
    ):
        self.session = session
        self.store = store
        self.room_repository = room_repository or RoomRepository(store)
        self.player_repository = player_repository or PlayerRepository(store)
        self.room_service = room_service or RoomService(
            store, self.room_repository, self.player_repository
        )
        self.scoring_service = scoring_service or ScoringService(
            store, self.room_repository, self.player_repository
        )
        self.chat_service = chat_service or ChatService(store)
        if advance_delay_ms is None:
            advance_delay_ms = settings.AUTO_ADVANCE_DELAY_MS
        self.advance_delay = advance_delay_ms / 1000

        self.view = RoomView(room_id=session.room_id, is_host=session.is_host)
        self.room: Room | None = None
        self.players: list[Player] = []

        self._listeners: list[ViewListener] = []
        self._subscriptions: list[Subscription] = []
        self._rendered_index: int | None = None
        self._advance_task: asyncio.Task | None = None
        self._advance_target: int | None = None
        self._advance_in_flight = False
        self._last_advanced_index: int | None = None
        self._started = False
        self._stopped = False

    @property
    def room_code(self) -> str:
        return self.session.room_id

    @property
    def participant_id(self) -> str:
        return self.session.participant_id

    @property
    def is_closed(self) -> bool:
        return self.view.phase == RoomPhase.CLOSED

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ViewListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True

        self._subscriptions.append(
            await self.chat_service.subscribe(
                self.room_code, self._on_chat, self._on_subscription_error
            )
        )
        self._subscriptions.append(
            await self.room_repository.subscribe(
                self.room_code, self._on_room, self._on_subscription_error
            )
        )
        self._subscriptions.append(
            await self.player_repository.subscribe(
                self.room_code, self._on_players, self._on_subscription_error
            )
        )
        if self.is_closed or self._stopped:
            self._unsubscribe_all()
        logger.debug("Engine for %s attached to %s", self.participant_id, self.room_code)

    async def stop(self) -> None:
        self._stopped = True
        self._cancel_pending_advance()
        self._unsubscribe_all()

    async def wait_idle(self) -> None:
        """Wait until queued snapshots and any pending auto-advance are done."""
        while True:
            await self.store.drain()
            task = self._advance_task
            if task is None or task.done():
                return
            with suppress(asyncio.CancelledError):
                await task

    def _unsubscribe_all(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()

    def _cancel_pending_advance(self) -> None:
        # Only a debounce still sleeping is cancelled; started writes run out.
        if self._advance_in_flight:
            return
        if self._advance_task is not None and not self._advance_task.done():
            self._advance_task.cancel()
        self._advance_task = None
        self._advance_target = None

    async def _emit(self, event: SyncEvent) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, self.view)
            except Exception:
                logger.exception("View listener failed on %s", event.value)

    def _record_error(self, error: QuizDomainError) -> None:
        self.view.last_error = error.message

    def _ensure_open(self) -> None:
        if self.is_closed or self._stopped:
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_CLOSED,
                message="This room is no longer available",
                details={"room_id": self.room_code},
            )

    def _require_host(self) -> None:
        if not self.session.is_host:
            raise QuizDomainError(
                code=DomainErrorCode.NOT_HOST,
                message="Only the host can do that",
                details={"room_id": self.room_code, "player_id": self.participant_id},
            )

    async def _on_subscription_error(self, error: QuizDomainError) -> None:
        logger.error("Live updates for room %s failed: %s", self.room_code, error)
        self._record_error(error)
        await self._emit(SyncEvent.ERROR)

    async def _on_room(self, room: Room | None) -> None:
        if self.is_closed or self._stopped:
            return
        if room is None:
            await self._close()
            return

        self.room = room
        event = SyncEvent.ROOM_UPDATED

        if room.state == RoomState.PLAYING:
            self.view.phase = RoomPhase.PLAYING
            if (
                self._rendered_index != room.current_question_index
                and room.current_question is not None
            ):
                self._render_question(room)
                event = SyncEvent.QUESTION_STARTED
        elif room.state == RoomState.FINISHED:
            if self.view.phase != RoomPhase.FINISHED:
                event = SyncEvent.GAME_FINISHED
            self.view.phase = RoomPhase.FINISHED
            self.view.question = None
            self.view.ready_enabled = False
            self._cancel_pending_advance()
        else:
            self.view.phase = RoomPhase.LOBBY

        await self._emit(event)
        if self.session.is_host:
            self._evaluate_auto_advance()

    def _render_question(self, room: Room) -> None:
        index = room.current_question_index
        question = room.quiz.questions[index]
        self._rendered_index = index
        self.view.question = QuestionView(
            index=index,
            total=room.question_count,
            text=question.text,
            options=list(question.options),
        )
        self.view.answered = False
        self.view.feedback = None
        self.view.ready_enabled = False
        self.view.ready = False

    async def _close(self) -> None:
        logger.info("Room %s closed for %s", self.room_code, self.participant_id)
        self.view.phase = RoomPhase.CLOSED
        self.view.question = None
        self.view.ready_enabled = False
        self._cancel_pending_advance()
        self._unsubscribe_all()
        await self._emit(SyncEvent.ROOM_CLOSED)

    def _player_view(self, player: Player) -> PlayerView:
        return PlayerView(
            id=player.id,
            name=player.name,
            score=player.score,
            is_host=player.is_host,
            ready_for_next=player.ready_for_next,
            is_you=player.id == self.participant_id,
        )

    async def _on_players(self, players: list[Player]) -> None:
        if self.is_closed or self._stopped:
            return
        self.players = players

        views = [self._player_view(player) for player in players]
        self.view.roster = sorted(views, key=lambda p: not p.is_host)
        self.view.scoreboard = sorted(views, key=lambda p: -p.score)

        await self._emit(SyncEvent.PLAYERS_UPDATED)
        if self.session.is_host:
            self._evaluate_auto_advance()

    async def _on_chat(self, messages: list[ChatMessage]) -> None:
        if self.is_closed or self._stopped:
            return
        self.view.chat = [
            ChatMessageView(
                sender_id=message.sender_id,
                sender_name=message.sender_name,
                text=message.text,
                timestamp=message.timestamp,
                is_mine=message.sender_id == self.participant_id,
            )
            for message in messages
        ]
        await self._emit(SyncEvent.CHAT_UPDATED)

    def _evaluate_auto_advance(self) -> None:
        room = self.room
        if room is None or room.state != RoomState.PLAYING:
            return
        if not self.players or not all(p.ready_for_next for p in self.players):
            return

        target = room.current_question_index
        if self._advance_in_flight or target == self._last_advanced_index:
            return
        pending = self._advance_task
        if pending is not None and not pending.done() and self._advance_target == target:
            return

        self._advance_target = target
        self._advance_task = asyncio.create_task(self._auto_advance(target))

    async def _auto_advance(self, target: int) -> None:
        if self.advance_delay > 0:
            await asyncio.sleep(self.advance_delay)
        try:
            await self.advance_question(expected_index=target, require_all_ready=True)
        except QuizDomainError as e:
            logger.warning("Auto-advance in room %s skipped: %s", self.room_code, e)
        except Exception:
            logger.exception("Auto-advance in room %s crashed", self.room_code)

    async def advance_question(
        self,
        *,
        expected_index: int | None = None,
        require_all_ready: bool = False,
    ) -> AdvanceOutcome:
        self._ensure_open()
        self._require_host()

        room = self.room
        if room is None or room.state != RoomState.PLAYING:
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_NOT_PLAYING,
                message="The game is not in progress",
                details={"room_id": self.room_code},
            )

        target = room.current_question_index if expected_index is None else expected_index
        if self._advance_in_flight or target == self._last_advanced_index:
            return AdvanceOutcome.SKIPPED

        self._advance_in_flight = True
        try:
            outcome = await self.scoring_service.advance_question(
                self.room_code,
                expected_index=target,
                require_all_ready=require_all_ready,
            )
        except QuizDomainError as e:
            logger.error("Advancing room %s failed: %s", self.room_code, e)
            self._record_error(e)
            await self._emit(SyncEvent.ERROR)
            return AdvanceOutcome.SKIPPED
        finally:
            self._advance_in_flight = False

        if outcome != AdvanceOutcome.SKIPPED:
            self._last_advanced_index = target
        return outcome

    async def start_game(self) -> Room:
        self._ensure_open()
        self._require_host()
        return await self.room_service.start_game(self.room_code, self.participant_id)

    async def submit_answer(self, option_index: int) -> AnswerResult | None:
        """Score this participant's answer to the rendered question.

        Only the first call per question does anything; later calls return
        None. Store failures come back on the result instead of raising.
        """
        self._ensure_open()
        room = self.room
        question_index = self._rendered_index
        if (
            room is None
            or room.state != RoomState.PLAYING
            or question_index is None
            or self.view.question is None
        ):
            raise QuizDomainError(
                code=DomainErrorCode.ROOM_NOT_PLAYING,
                message="There is no question to answer",
                details={"room_id": self.room_code},
            )
        if self.view.answered:
            return None

        question = room.quiz.questions[question_index]
        if not 0 <= option_index < len(question.options):
            raise QuizDomainError(
                code=DomainErrorCode.INVALID_ANSWER,
                message=f"Option {option_index} does not exist",
                details={"option_index": option_index},
            )

        self.view.answered = True
        result = await self.scoring_service.submit_answer(
            self.room_code,
            self.participant_id,
            question_index,
            question,
            option_index,
        )
        if self._rendered_index != question_index or self.is_closed:
            return result

        self.view.feedback = result
        self.view.ready_enabled = True
        if result.error:
            self.view.last_error = result.error
        await self._emit(SyncEvent.ANSWER_RECORDED)
        return result

    async def mark_ready(self) -> None:
        self._ensure_open()
        if self.view.ready:
            return
        if not self.view.ready_enabled:
            raise QuizDomainError(
                code=DomainErrorCode.ANSWER_REQUIRED,
                message="Answer the question before marking ready",
                details={"room_id": self.room_code},
            )

        try:
            await self.scoring_service.mark_ready(self.room_code, self.participant_id)
        except QuizDomainError as e:
            logger.error("Mark ready failed in room %s: %s", self.room_code, e)
            self._record_error(e)
            await self._emit(SyncEvent.ERROR)
            return

        self.view.ready = True
        self.view.ready_enabled = False
        await self._emit(SyncEvent.READY_MARKED)

    async def send_chat(self, text: str) -> ChatMessage | None:
        self._ensure_open()
        return await self.chat_service.send_message(
            self.room_code,
            self.participant_id,
            self.session.player_name,
            text,
        )

    async def leave(self) -> bool:
        """Detach and remove this participant; the host's leave closes the room."""
        await self.stop()
        try:
            return await self.room_service.leave_room(
                self.room_code, self.participant_id
            )
        except QuizDomainError as e:
            logger.error("Leave room %s failed: %s", self.room_code, e)
            return False
