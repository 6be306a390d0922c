from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class WSActionType(str, Enum):
    PING = "ping"
    START_GAME = "start_game"
    ANSWER = "answer"
    READY = "ready"
    ADVANCE = "advance"
    CHAT = "chat"
    LEAVE = "leave"

    PONG = "pong"
    VIEW = "view"
    ROOM_CLOSED = "room_closed"
    ERROR = "error"


class WebSocketMessage(BaseModel):
    action: str
    data: dict[str, Any] | None = None


class WebSocketResponse(BaseModel):
    status: Literal["success", "error"]
    action: str
    data: dict[str, Any] | None = None
    error: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class AnswerData(BaseModel):
    option_index: int


class ChatData(BaseModel):
    text: str


class ViewData(BaseModel):
    event: str
    view: dict[str, Any]
