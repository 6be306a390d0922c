import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocketState
from pydantic import ValidationError

from quizmaster.core.config import settings
from quizmaster.core.error import QuizDomainError
from quizmaster.core.jwt import get_session_from_token
from quizmaster.core.room_connection_manager import room_manager
from quizmaster.core.room_sync_engine import RoomSyncEngine
from quizmaster.dependencies.services import (
    get_chat_service,
    get_room_service,
    get_scoring_service,
)
from quizmaster.schemas.room import RoomSessionInfo
from quizmaster.schemas.view import RoomView, SyncEvent
from quizmaster.schemas.ws import (
    AnswerData,
    ChatData,
    ViewData,
    WebSocketMessage,
    WebSocketResponse,
    WSActionType,
)
from quizmaster.services.chat_service import ChatService
from quizmaster.services.room_service import RoomService
from quizmaster.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

router = APIRouter()

_background_leaves: set[asyncio.Task] = set()


class RoomWebSocketHandler:
    def __init__(
        self,
        websocket: WebSocket,
        room_service: RoomService,
        scoring_service: ScoringService,
        chat_service: ChatService,
    ):
        self.websocket = websocket
        self.room_service = room_service
        self.scoring_service = scoring_service
        self.chat_service = chat_service
        self.session: RoomSessionInfo | None = None
        self.engine: RoomSyncEngine | None = None
        self.left = False

    async def handle_connection(self) -> bool:
        result = True
        try:
            token = self.websocket.query_params.get("session")
            session = get_session_from_token(token) if token else None
            if session is None:
                await self.websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return False

            player = await self.room_service.player_repository.get(
                session.room_id, session.participant_id
            )
            if player is None:
                await self.websocket.close(
                    code=status.WS_1008_POLICY_VIOLATION,
                    reason="Not a member of this room",
                )
                return False

            self.session = session
            self.engine = RoomSyncEngine(
                session,
                self.room_service.store,
                room_repository=self.room_service.room_repository,
                player_repository=self.room_service.player_repository,
                room_service=self.room_service,
                scoring_service=self.scoring_service,
                chat_service=self.chat_service,
            )
            self.engine.add_listener(self.push_view)

            await room_manager.connect(self.websocket, self.engine)
            await self.engine.start()
            await self.handle_messages()
        except WebSocketDisconnect:
            await self.handle_disconnection()
            result = False
        except Exception as e:
            logger.exception("Room socket failed")
            await self.handle_error(e)
            result = False

        return result

    async def handle_messages(self) -> None:
        message_handlers = {
            WSActionType.PING: self.handle_ping,
            WSActionType.START_GAME: self.handle_start_game,
            WSActionType.ANSWER: self.handle_answer,
            WSActionType.READY: self.handle_ready,
            WSActionType.ADVANCE: self.handle_advance,
            WSActionType.CHAT: self.handle_chat,
            WSActionType.LEAVE: self.handle_leave,
        }

        while not self.left:
            try:
                data = await self.websocket.receive_json()
            except ValueError as e:
                await self.send_error(f"Invalid JSON: {e!s}")
                continue

            try:
                message = WebSocketMessage(
                    action=data.get("action", ""), data=data.get("data")
                )
            except (AttributeError, ValidationError) as e:
                await self.send_error(f"Invalid message format: {e!s}")
                continue

            handler = message_handlers.get(message.action)
            if handler is None:
                await self.send_error(f"Unknown action: {message.action}")
                continue

            try:
                await handler(message)
            except QuizDomainError as e:
                await self.send_error(e.message, code=e.code.value)
            except ValidationError as e:
                await self.send_error(f"Invalid {message.action} data: {e!s}")

    async def send(self, response: WebSocketResponse) -> None:
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.send_json(jsonable_encoder(response))

    async def send_error(self, error: str, code: str | None = None) -> None:
        await self.send(
            WebSocketResponse(
                status="error",
                action=WSActionType.ERROR,
                data={"code": code} if code else None,
                error=error,
            )
        )

    async def push_view(self, event: SyncEvent, view: RoomView) -> None:
        if event == SyncEvent.ROOM_CLOSED:
            await self.send(
                WebSocketResponse(
                    status="success",
                    action=WSActionType.ROOM_CLOSED,
                    data={"room_id": view.room_id, "message": "Room closed by host."},
                )
            )
            return

        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.VIEW,
                data=ViewData(
                    event=event.value, view=view.model_dump(mode="json")
                ).model_dump(),
            )
        )

    async def handle_ping(self, _: WebSocketMessage) -> None:
        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.PONG,
                data={"message": "pong"},
            )
        )

    async def handle_start_game(self, _: WebSocketMessage) -> None:
        await self.engine.start_game()

    async def handle_answer(self, message: WebSocketMessage) -> None:
        answer = AnswerData.model_validate(message.data or {})
        await self.engine.submit_answer(answer.option_index)

    async def handle_ready(self, _: WebSocketMessage) -> None:
        await self.engine.mark_ready()

    async def handle_advance(self, _: WebSocketMessage) -> None:
        await self.engine.advance_question()

    async def handle_chat(self, message: WebSocketMessage) -> None:
        chat = ChatData.model_validate(message.data or {})
        await self.engine.send_chat(chat.text)

    async def handle_leave(self, _: WebSocketMessage) -> None:
        self.left = True
        await room_manager.disconnect(
            self.session.room_id, self.session.participant_id, self.websocket
        )
        await self.engine.leave()
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.close(code=status.WS_1000_NORMAL_CLOSURE)

    async def handle_disconnection(self) -> None:
        if self.session is None or self.left:
            return
        engine = await room_manager.disconnect(
            self.session.room_id, self.session.participant_id, self.websocket
        )
        if engine is None:
            return
        if not settings.LEAVE_ON_DISCONNECT:
            await engine.stop()
            return

        # Fired like a page-unload cleanup: nobody waits for it to finish.
        task = asyncio.create_task(engine.leave())
        _background_leaves.add(task)
        task.add_done_callback(_background_leaves.discard)

    async def handle_error(self, e: Exception) -> None:
        if self.session is not None:
            await self.handle_disconnection()
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.close(
                code=status.WS_1011_INTERNAL_ERROR, reason=str(e)[:120]
            )


@router.websocket("")
async def room_websocket(
    websocket: WebSocket,
    room_service: RoomService = Depends(get_room_service),
    scoring_service: ScoringService = Depends(get_scoring_service),
    chat_service: ChatService = Depends(get_chat_service),
):
    handler = RoomWebSocketHandler(
        websocket, room_service, scoring_service, chat_service
    )
    await handler.handle_connection()
