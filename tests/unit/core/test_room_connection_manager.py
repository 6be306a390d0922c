import pytest
from fastapi import WebSocket, status
from fastapi.websockets import WebSocketState

from quizmaster.core.room_connection_manager import RoomConnectionManager


@pytest.fixture
def connection_manager():
    manager = RoomConnectionManager()

    yield manager
    manager.active_connections.clear()
    manager.engines.clear()


def _websocket(mocker):
    websocket = mocker.AsyncMock(spec=WebSocket)
    websocket.client_state = WebSocketState.CONNECTED
    return websocket


def _engine(mocker, room_code="ABC123", participant_id="p-1"):
    engine = mocker.MagicMock()
    engine.room_code = room_code
    engine.participant_id = participant_id
    engine.stop = mocker.AsyncMock()
    return engine


@pytest.mark.asyncio
async def test_connect(connection_manager, mocker):
    websocket = _websocket(mocker)
    engine = _engine(mocker)

    await connection_manager.connect(websocket, engine)

    websocket.accept.assert_awaited_once()
    assert connection_manager.is_connected("ABC123", "p-1")
    assert connection_manager.get_room_participants("ABC123") == {"p-1"}
    assert connection_manager.engines["ABC123"]["p-1"] is engine


@pytest.mark.asyncio
async def test_reconnect_replaces_previous_socket(connection_manager, mocker):
    old_socket, new_socket = _websocket(mocker), _websocket(mocker)
    old_engine, new_engine = _engine(mocker), _engine(mocker)

    await connection_manager.connect(old_socket, old_engine)
    await connection_manager.connect(new_socket, new_engine)

    old_engine.stop.assert_awaited_once()
    old_socket.close.assert_awaited_once_with(code=status.WS_1008_POLICY_VIOLATION)
    assert connection_manager.active_connections["ABC123"]["p-1"] is new_socket

    assert await connection_manager.disconnect("ABC123", "p-1", old_socket) is None
    assert connection_manager.is_connected("ABC123", "p-1")


@pytest.mark.asyncio
async def test_disconnect(connection_manager, mocker):
    websocket = _websocket(mocker)
    engine = _engine(mocker)
    await connection_manager.connect(websocket, engine)

    assert await connection_manager.disconnect("ABC123", "p-1", websocket) is engine
    assert connection_manager.get_room_participants("ABC123") == set()
    assert connection_manager.engines == {}
    assert await connection_manager.disconnect("ABC123", "p-1") is None


@pytest.mark.asyncio
async def test_send_personal_message(connection_manager, mocker):
    websocket = _websocket(mocker)
    await connection_manager.connect(websocket, _engine(mocker))

    await connection_manager.send_personal_message({"action": "pong"}, "ABC123", "p-1")
    await connection_manager.send_personal_message({"action": "pong"}, "ABC123", "x")

    websocket.send_json.assert_awaited_once_with({"action": "pong"})


@pytest.mark.asyncio
async def test_shutdown(connection_manager, mocker):
    first, second = _websocket(mocker), _websocket(mocker)
    first_engine = _engine(mocker, participant_id="p-1")
    second_engine = _engine(mocker, room_code="XYZ789", participant_id="p-2")
    await connection_manager.connect(first, first_engine)
    await connection_manager.connect(second, second_engine)

    await connection_manager.shutdown()

    first_engine.stop.assert_awaited_once()
    second_engine.stop.assert_awaited_once()
    first.close.assert_awaited_once_with(code=status.WS_1001_GOING_AWAY)
    assert connection_manager.active_connections == {}
