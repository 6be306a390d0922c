import pytest

from quizmaster.models.player import Player
from quizmaster.models.room import Quiz, Room, RoomState


@pytest.fixture
def room(quiz_data):
    return Room(
        room_id="ABC123",
        host_id="host-1",
        host_name="Alice",
        quiz=Quiz.model_validate(quiz_data),
        state=RoomState.LOBBY,
        created_at=1_000,
    )


@pytest.fixture
def players():
    return [
        Player(id="host-1", name="Alice", is_host=True, joined_at=1_000),
        Player(id="p-2", name="Bob", joined_at=2_000),
        Player(id="p-3", name="Cleo", joined_at=3_000),
    ]
