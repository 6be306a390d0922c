import json

import pytest_asyncio


@pytest_asyncio.fixture
async def lobby(room_service, quiz_data):
    """A room with its host and one joined player."""
    room = await room_service.create_room("host-1", "Alice", json.dumps(quiz_data))
    await room_service.join_room(room.room_id, "p-2", "Bob")
    return room
