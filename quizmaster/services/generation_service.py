import logging
from dataclasses import dataclass
from typing import Any

import httpx

from quizmaster.core.config import settings
from quizmaster.core.error import DomainErrorCode, QuizDomainError
from quizmaster.models.room import Quiz
from quizmaster.schemas.generation import GenerationConfig, GenerationRequest
from quizmaster.util.quiz import extract_quiz

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str | None:
        candidates = self.body.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if part.get("text")]
        return "".join(texts) if texts else None


class GenerationService:
    """Forwards prompts to the text generation API, keeping the key server-side."""

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.url = url or settings.GEMINI_URL
        self.timeout = timeout or settings.GENERATION_TIMEOUT
        self.transport = transport

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def build_payload(request: GenerationRequest) -> dict[str, Any]:
        config = request.generation_config or GenerationConfig()
        return {
            "contents": [
                content.model_dump(by_alias=True, exclude_none=True)
                for content in request.contents
            ],
            "generationConfig": config.model_dump(by_alias=True),
        }

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        if not self.available:
            raise QuizDomainError(
                code=DomainErrorCode.GENERATION_UNAVAILABLE,
                message="Generation API key is not configured",
            )

        logger.info("Proxying generation request with %d parts", len(request.contents))
        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.post(
                    self.url,
                    params={"key": self.api_key},
                    json=self.build_payload(request),
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                logger.error("Generation request failed: %s", e)
                raise QuizDomainError(
                    code=DomainErrorCode.GENERATION_FAILED,
                    message="Internal server error",
                    details={"error": str(e)},
                ) from e

        try:
            body = response.json()
        except ValueError:
            body = {"error": {"message": response.text}}

        if response.is_error:
            logger.error("Generation API returned %d", response.status_code)
        return GenerationResult(status_code=response.status_code, body=body)

    @staticmethod
    def parse_quiz(text: str) -> Quiz:
        return extract_quiz(text)
