from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class JwtTokenPayload(BaseModel):
    sub: str
    typ: Literal["access", "session"]
    exp: int
    iat: int = Field(default_factory=lambda: int(datetime.now(UTC).timestamp()))
    room_id: str | None = None
    player_name: str | None = None
    is_host: bool | None = None
