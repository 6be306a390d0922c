from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROJECT_NAME: str = "QuizMaster"
    API_V1_STR: str = "/api/v1"
    CORS_ORIGINS: list[str] = ["*"]

    STORE_BACKEND: Literal["sql", "memory"] = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./quizmaster.db"
    DATABASE_ECHO: bool = False
    ROOMS_COLLECTION: str = "quizRooms"

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    SESSION_TOKEN_EXPIRE_MINUTES: int = 60 * 6

    AUTO_ADVANCE_DELAY_MS: int = 500
    CHAT_HISTORY_LIMIT: int = 100
    LEAVE_ON_DISCONNECT: bool = True
    JOIN_BASE_URL: str = "http://localhost:8000/multiplayer/index.html"

    GEMINI_API_KEY: str | None = None
    GEMINI_URL: str = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.0-flash:generateContent"
    )
    GENERATION_TIMEOUT: float = 60.0

    @property
    def database_uri(self) -> str:
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        return self.DATABASE_URL


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_test_settings() -> Settings:
    return Settings(
        _env_file=".env.test",
        STORE_BACKEND="memory",
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY="test-secret",
        AUTO_ADVANCE_DELAY_MS=0,
        GEMINI_API_KEY="test-api-key",
    )


settings = get_settings()
