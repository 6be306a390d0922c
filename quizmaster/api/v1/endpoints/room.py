from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.core.jwt import create_session_token
from quizmaster.dependencies.auth import get_current_participant
from quizmaster.dependencies.services import get_chat_service, get_room_service
from quizmaster.schemas.common import BaseResponse
from quizmaster.schemas.room import (
    ChatMessageResponse,
    JoinRoomRequest,
    PlayerResponse,
    RoomDetailResponse,
    RoomSessionInfo,
    RoomSessionResponse,
)
from quizmaster.services.chat_service import ChatService
from quizmaster.services.room_service import RoomService

router = APIRouter()

JSON_CONTENT_TYPES = {"application/json", "text/json"}


def _join_url(room_id: str) -> str:
    return f"{settings.JOIN_BASE_URL}?{urlencode({'room': room_id})}"


def _session_response(session: RoomSessionInfo) -> RoomSessionResponse:
    return RoomSessionResponse(
        room_id=session.room_id,
        player_name=session.player_name,
        is_host=session.is_host,
        session_token=create_session_token(session),
        join_url=_join_url(session.room_id),
    )


@router.post(
    "",
    response_model=RoomSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    host_name: str = Form(...),
    quiz_file: UploadFile = File(...),
    participant_id: str = Depends(get_current_participant),
    room_service: RoomService = Depends(get_room_service),
):
    filename = quiz_file.filename or ""
    if quiz_file.content_type not in JSON_CONTENT_TYPES and not filename.endswith(
        ".json"
    ):
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_QUIZ,
            message="Please upload a valid JSON file.",
            details={"content_type": quiz_file.content_type, "filename": filename},
        )

    room = await room_service.create_room(
        participant_id, host_name, await quiz_file.read()
    )
    return _session_response(
        RoomSessionInfo(
            participant_id=participant_id,
            room_id=room.room_id,
            player_name=room.host_name,
            is_host=True,
        )
    )


@router.post(
    "/{room_code}/join",
    response_model=RoomSessionResponse,
    status_code=status.HTTP_200_OK,
)
async def join_room(
    room_code: str,
    request: JoinRoomRequest,
    participant_id: str = Depends(get_current_participant),
    room_service: RoomService = Depends(get_room_service),
):
    room, player = await room_service.join_room(
        room_code, participant_id, request.player_name
    )
    return _session_response(
        RoomSessionInfo(
            participant_id=participant_id,
            room_id=room.room_id,
            player_name=player.name,
            is_host=player.is_host,
        )
    )


@router.post(
    "/{room_code}/leave",
    response_model=BaseResponse,
    status_code=status.HTTP_200_OK,
)
async def leave_room(
    room_code: str,
    participant_id: str = Depends(get_current_participant),
    room_service: RoomService = Depends(get_room_service),
):
    closed = await room_service.leave_room(room_code, participant_id)
    if closed:
        return BaseResponse(message="Room closed", data={"room_closed": True})
    return BaseResponse(message="Left room successfully", data={"room_closed": False})


@router.get(
    "/{room_code}",
    response_model=RoomDetailResponse,
    status_code=status.HTTP_200_OK,
)
async def read_room(
    room_code: str,
    room_service: RoomService = Depends(get_room_service),
) -> RoomDetailResponse:
    room = await room_service.get_room(room_code)
    players = await room_service.get_players(room.room_id)
    return RoomDetailResponse(
        room_id=room.room_id,
        host_name=room.host_name,
        state=room.state,
        current_question_index=room.current_question_index,
        question_count=room.question_count,
        players=[
            PlayerResponse(
                id=player.id,
                name=player.name,
                score=player.score,
                is_host=player.is_host,
                ready_for_next=player.ready_for_next,
            )
            for player in sorted(players, key=lambda p: not p.is_host)
        ],
    )


@router.get(
    "/{room_code}/chat",
    response_model=list[ChatMessageResponse],
    status_code=status.HTTP_200_OK,
)
async def read_chat(
    room_code: str,
    room_service: RoomService = Depends(get_room_service),
    chat_service: ChatService = Depends(get_chat_service),
):
    room = await room_service.get_room(room_code)
    messages = await chat_service.recent_messages(room.room_id)
    return [
        ChatMessageResponse(
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            text=message.text,
            timestamp=message.timestamp,
        )
        for message in messages
    ]
