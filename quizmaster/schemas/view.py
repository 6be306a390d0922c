from enum import Enum

from pydantic import BaseModel, Field

from quizmaster.schemas.game import AnswerResult


class RoomPhase(str, Enum):
    CONNECTING = "connecting"
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"
    CLOSED = "closed"


class SyncEvent(str, Enum):
    ROOM_UPDATED = "room_updated"
    QUESTION_STARTED = "question_started"
    GAME_FINISHED = "game_finished"
    PLAYERS_UPDATED = "players_updated"
    CHAT_UPDATED = "chat_updated"
    ANSWER_RECORDED = "answer_recorded"
    READY_MARKED = "ready_marked"
    ROOM_CLOSED = "room_closed"
    ERROR = "error"


class QuestionView(BaseModel):
    index: int
    total: int
    text: str
    options: list[str]


class PlayerView(BaseModel):
    id: str
    name: str
    score: int
    is_host: bool
    ready_for_next: bool
    is_you: bool = False


class ChatMessageView(BaseModel):
    sender_id: str
    sender_name: str
    text: str
    timestamp: int
    is_mine: bool = False


class RoomView(BaseModel):
    room_id: str
    is_host: bool
    phase: RoomPhase = RoomPhase.CONNECTING
    question: QuestionView | None = None
    answered: bool = False
    ready_enabled: bool = False
    ready: bool = False
    feedback: AnswerResult | None = None
    roster: list[PlayerView] = Field(default_factory=list)
    scoreboard: list[PlayerView] = Field(default_factory=list)
    chat: list[ChatMessageView] = Field(default_factory=list)
    last_error: str | None = None
