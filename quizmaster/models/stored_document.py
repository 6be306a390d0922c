from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StoredDocument(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "stored_document"

    id: int | None = Field(default=None, primary_key=True)
    path: str = Field(index=True, unique=True, max_length=512)
    collection: str = Field(index=True, max_length=512)
    data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
