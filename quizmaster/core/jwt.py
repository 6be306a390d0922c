from datetime import UTC, datetime, timedelta
from uuid import uuid4

from jose import jwt
from jose.exceptions import JWTError

from quizmaster.core.config import settings
from quizmaster.schemas.jwt_token_payload import JwtTokenPayload
from quizmaster.schemas.room import RoomSessionInfo


def new_participant_id() -> str:
    return uuid4().hex


def _encode(payload: JwtTokenPayload) -> str:
    encoded_token = jwt.encode(
        payload.model_dump(exclude_none=True),
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    return str(encoded_token)


def create_access_token(participant_id: str) -> str:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = JwtTokenPayload(
        sub=participant_id,
        typ="access",
        exp=int((datetime.now(UTC) + expires_delta).timestamp()),
    )
    return _encode(payload)


def create_session_token(session: RoomSessionInfo) -> str:
    expires_delta = timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES)

    payload = JwtTokenPayload(
        sub=session.participant_id,
        typ="session",
        exp=int((datetime.now(UTC) + expires_delta).timestamp()),
        room_id=session.room_id,
        player_name=session.player_name,
        is_host=session.is_host,
    )
    return _encode(payload)


def decode_token(token: str) -> JwtTokenPayload | None:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
    else:
        jwt_token_payload: JwtTokenPayload = JwtTokenPayload.model_validate(payload)
        return jwt_token_payload


def get_participant_id_from_token(token: str) -> str | None:
    payload = decode_token(token)
    if payload and payload.typ == "access":
        return payload.sub
    return None


def get_session_from_token(token: str) -> RoomSessionInfo | None:
    payload = decode_token(token)
    if not payload or payload.typ != "session" or payload.room_id is None:
        return None
    return RoomSessionInfo(
        participant_id=payload.sub,
        room_id=payload.room_id,
        player_name=payload.player_name or "",
        is_host=bool(payload.is_host),
    )
