import re

from quizmaster.core.error import DomainErrorCode, QuizDomainError

ROOM_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")
PLAYER_NAME_MIN_LENGTH = 2
PLAYER_NAME_MAX_LENGTH = 20
CHAT_MESSAGE_MAX_LENGTH = 500


def normalize_room_code(room_code: str) -> str:
    normalized = (room_code or "").strip().upper()
    if not ROOM_CODE_PATTERN.match(normalized):
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_ROOM_CODE,
            message="Room code must be 6 letters or digits",
            details={
                "room_code": room_code,
            },
        )
    return normalized


def validate_player_name(name: str) -> str:
    stripped = (name or "").strip()

    if len(stripped) < PLAYER_NAME_MIN_LENGTH:
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_PLAYER_NAME,
            message=f"Name must be at least {PLAYER_NAME_MIN_LENGTH} characters",
            details={
                "name": name,
                "length": len(stripped),
            },
        )

    if len(stripped) > PLAYER_NAME_MAX_LENGTH:
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_PLAYER_NAME,
            message=f"Name must be {PLAYER_NAME_MAX_LENGTH} characters or less",
            details={
                "name": name,
                "length": len(stripped),
            },
        )

    return stripped


def validate_chat_text(text: str) -> str:
    stripped = (text or "").strip()
    if len(stripped) > CHAT_MESSAGE_MAX_LENGTH:
        raise QuizDomainError(
            code=DomainErrorCode.INVALID_CHAT_MESSAGE,
            message=f"Message must be {CHAT_MESSAGE_MAX_LENGTH} characters or less",
            details={
                "length": len(stripped),
            },
        )
    return stripped
