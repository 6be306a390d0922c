from enum import Enum
from typing import Any


class DomainErrorCode(str, Enum):
    INVALID_QUIZ = "INVALID_QUIZ"
    INVALID_PLAYER_NAME = "INVALID_PLAYER_NAME"
    INVALID_ROOM_CODE = "INVALID_ROOM_CODE"
    INVALID_ANSWER = "INVALID_ANSWER"
    INVALID_CHAT_MESSAGE = "INVALID_CHAT_MESSAGE"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ROOM_NOT_IN_LOBBY = "ROOM_NOT_IN_LOBBY"
    ROOM_ALREADY_PLAYING = "ROOM_ALREADY_PLAYING"
    ROOM_NOT_PLAYING = "ROOM_NOT_PLAYING"
    ROOM_CLOSED = "ROOM_CLOSED"
    ANSWER_REQUIRED = "ANSWER_REQUIRED"
    NOT_HOST = "NOT_HOST"
    AUTH_PENDING = "AUTH_PENDING"
    INVALID_TOKEN = "INVALID_TOKEN"
    STORE_ERROR = "STORE_ERROR"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    GENERATION_UNAVAILABLE = "GENERATION_UNAVAILABLE"
    GENERATION_FAILED = "GENERATION_FAILED"


class QuizDomainError(Exception):
    def __init__(
        self,
        code: DomainErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message or code.name
        self.details = details or {}
        super().__init__(self.message)
