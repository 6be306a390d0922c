import random

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from quizmaster.repositories.chat_repository import ChatRepository
from quizmaster.repositories.player_repository import PlayerRepository
from quizmaster.repositories.room_repository import RoomRepository
from quizmaster.services.chat_service import ChatService
from quizmaster.services.room_service import RoomService
from quizmaster.services.scoring_service import ScoringService
from quizmaster.store.memory_store import InMemoryDocumentStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    load_dotenv(".env.test", override=True)
    yield

    load_dotenv(".env", override=True)


class FakeClock:
    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def quiz_data():
    return {
        "title": "Capitals",
        "questions": [
            {
                "question": "Capital of France?",
                "options": ["Paris", "Rome", "Madrid", "Berlin"],
                "correct": 0,
                "explanation": "Paris has been the capital since 987.",
            },
            {
                "question": "Capital of Japan?",
                "options": ["Osaka", "Tokyo", "Kyoto", "Nagoya"],
                "correct": 1,
            },
        ],
    }


@pytest_asyncio.fixture
async def store():
    document_store = InMemoryDocumentStore()
    yield document_store
    await document_store.close()


@pytest.fixture
def room_repository(store):
    return RoomRepository(store)


@pytest.fixture
def player_repository(store):
    return PlayerRepository(store)


@pytest.fixture
def chat_repository(store):
    return ChatRepository(store)


@pytest.fixture
def room_service(store, room_repository, player_repository, clock, rng):
    return RoomService(
        store,
        room_repository=room_repository,
        player_repository=player_repository,
        clock=clock,
        rng=rng,
    )


@pytest.fixture
def scoring_service(store, room_repository, player_repository, clock):
    return ScoringService(
        store,
        room_repository=room_repository,
        player_repository=player_repository,
        clock=clock,
    )


@pytest.fixture
def chat_service(store, chat_repository, clock):
    return ChatService(store, chat_repository=chat_repository, clock=clock)
