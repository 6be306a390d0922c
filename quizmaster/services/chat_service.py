import logging
from collections.abc import Awaitable, Callable

from quizmaster.core.config import settings
from quizmaster.core.error import QuizDomainError
from quizmaster.models.chat_message import ChatMessage
from quizmaster.repositories.chat_repository import ChatRepository
from quizmaster.store.document_store import DocumentStore, ErrorCallback, Subscription
from quizmaster.util.clock import Clock, now_ms
from quizmaster.util.validators import normalize_room_code, validate_chat_text

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        store: DocumentStore,
        chat_repository: ChatRepository | None = None,
        clock: Clock = now_ms,
        history_limit: int | None = None,
    ):
        self.store = store
        self.chat_repository = chat_repository or ChatRepository(store)
        self.clock = clock
        self.history_limit = history_limit or settings.CHAT_HISTORY_LIMIT

    async def send_message(
        self, room_code: str, sender_id: str, sender_name: str, text: str
    ) -> ChatMessage | None:
        body = validate_chat_text(text)
        if not body:
            return None

        message = ChatMessage(
            sender_id=sender_id,
            sender_name=sender_name,
            text=body,
            timestamp=self.clock(),
        )
        try:
            await self.chat_repository.add(room_code, message)
        except QuizDomainError as e:
            logger.error("Chat send failed in room %s: %s", room_code, e)
            return None
        return message

    async def recent_messages(self, room_code: str) -> list[ChatMessage]:
        return await self.chat_repository.filter(
            normalize_room_code(room_code), limit=self.history_limit
        )

    async def subscribe(
        self,
        room_code: str,
        callback: Callable[[list[ChatMessage]], Awaitable[None]],
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        return await self.chat_repository.subscribe(
            room_code,
            callback,
            limit=self.history_limit,
            on_error=on_error,
        )
