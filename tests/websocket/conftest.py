import json

import pytest
import pytest_asyncio
from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from quizmaster.api.v1.endpoints.ws_room import RoomWebSocketHandler
from quizmaster.core.jwt import create_session_token
from quizmaster.schemas.room import RoomSessionInfo


@pytest_asyncio.fixture
async def room(room_service, quiz_data):
    room = await room_service.create_room("host-1", "Alice", json.dumps(quiz_data))
    await room_service.join_room(room.room_id, "p-2", "Bob")
    return room


@pytest.fixture
def player_session(room):
    return RoomSessionInfo(
        participant_id="p-2",
        room_id=room.room_id,
        player_name="Bob",
        is_host=False,
    )


@pytest.fixture
def room_ws_client(mocker, player_session):
    """A mocked socket whose query string carries the player's session."""
    mock_websocket = mocker.AsyncMock(spec=WebSocket)
    mock_websocket.client_state = WebSocketState.CONNECTED
    mock_websocket.query_params = {"session": create_session_token(player_session)}
    return mock_websocket


@pytest.fixture
def handler(room_ws_client, room_service, scoring_service, chat_service):
    return RoomWebSocketHandler(
        room_ws_client, room_service, scoring_service, chat_service
    )


@pytest.fixture
def attached_handler(handler, player_session, mocker):
    """Handler with a mocked engine, as if the socket had connected."""
    handler.session = player_session
    handler.engine = mocker.AsyncMock()
    return handler
