from fastapi import Depends

from quizmaster.dependencies.store import get_document_store
from quizmaster.repositories.chat_repository import ChatRepository
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.store.document_store import DocumentStore


def get_room_repository(
    store: DocumentStore = Depends(get_document_store),
) -> RoomRepository:
    return RoomRepository(store)


def get_player_repository(
    store: DocumentStore = Depends(get_document_store),
) -> PlayerRepository:
    return PlayerRepository(store)


def get_chat_repository(
    store: DocumentStore = Depends(get_document_store),
) -> ChatRepository:
    return ChatRepository(store)
