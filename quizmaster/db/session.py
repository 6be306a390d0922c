from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from quizmaster.core.config import Settings, settings
from quizmaster.models.stored_document import StoredDocument  # noqa: F401


def create_engine_for(config: Settings) -> AsyncEngine:
    uri = config.database_uri
    kwargs: dict[str, Any] = {"echo": config.DATABASE_ECHO, "future": True}
    if uri.startswith("sqlite") and (uri.endswith("://") or ":memory:" in uri):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_async_engine(uri, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings)
async_session_factory = create_session_factory(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
