from fastapi import Depends

from quizmaster.dependencies.repositories import (
    get_chat_repository,
    get_player_repository,
    get_room_repository,
)
from quizmaster.dependencies.store import get_document_store
from quizmaster.repositories.chat_repository import ChatRepository
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.services.chat_service import ChatService
from quizmaster.services.generation_service import GenerationService
from quizmaster.services.room_service import RoomService
from quizmaster.services.scoring_service import ScoringService
from quizmaster.store.document_store import DocumentStore


def get_room_service(
    store: DocumentStore = Depends(get_document_store),
    room_repository: RoomRepository = Depends(get_room_repository),
    player_repository: PlayerRepository = Depends(get_player_repository),
) -> RoomService:
    return RoomService(
        store=store,
        room_repository=room_repository,
        player_repository=player_repository,
    )


def get_scoring_service(
    store: DocumentStore = Depends(get_document_store),
    room_repository: RoomRepository = Depends(get_room_repository),
    player_repository: PlayerRepository = Depends(get_player_repository),
) -> ScoringService:
    return ScoringService(
        store=store,
        room_repository=room_repository,
        player_repository=player_repository,
    )


def get_chat_service(
    store: DocumentStore = Depends(get_document_store),
    chat_repository: ChatRepository = Depends(get_chat_repository),
) -> ChatService:
    return ChatService(store=store, chat_repository=chat_repository)


def get_generation_service() -> GenerationService:
    return GenerationService()
