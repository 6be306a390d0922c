from pydantic import BaseModel

from quizmaster.models.room import RoomState


class RoomSessionInfo(BaseModel):
    """What a client keeps between page loads to reattach to its room."""

    participant_id: str
    room_id: str
    player_name: str
    is_host: bool


class JoinRoomRequest(BaseModel):
    player_name: str


class RoomSessionResponse(BaseModel):
    room_id: str
    player_name: str
    is_host: bool
    session_token: str
    join_url: str | None = None


class PlayerResponse(BaseModel):
    id: str
    name: str
    score: int
    is_host: bool
    ready_for_next: bool


class RoomDetailResponse(BaseModel):
    room_id: str
    host_name: str
    state: RoomState
    current_question_index: int
    question_count: int
    players: list[PlayerResponse]


class ChatMessageResponse(BaseModel):
    sender_id: str
    sender_name: str
    text: str
    timestamp: int
