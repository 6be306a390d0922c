from fastapi import WebSocket, status
from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocketState

from quizmaster.core.room_sync_engine import RoomSyncEngine


class RoomConnectionManager:
    """Tracks which participant is attached to which room over which socket.

    One socket per participant; a reconnect replaces the older socket and
    its engine.
    """

    def __init__(self) -> None:
        self.active_connections: dict[str, dict[str, WebSocket]] = {}
        self.engines: dict[str, dict[str, RoomSyncEngine]] = {}

    async def connect(self, websocket: WebSocket, engine: RoomSyncEngine) -> None:
        await websocket.accept()

        room_id = engine.room_code
        participant_id = engine.participant_id

        previous_socket = self.active_connections.get(room_id, {}).get(participant_id)
        previous_engine = self.engines.get(room_id, {}).get(participant_id)

        self.active_connections.setdefault(room_id, {})[participant_id] = websocket
        self.engines.setdefault(room_id, {})[participant_id] = engine

        if previous_engine is not None and previous_engine is not engine:
            await previous_engine.stop()
        if previous_socket is not None and previous_socket is not websocket:
            await self._close(previous_socket, status.WS_1008_POLICY_VIOLATION)

    async def disconnect(
        self,
        room_id: str,
        participant_id: str,
        websocket: WebSocket | None = None,
    ) -> RoomSyncEngine | None:
        """Forget a connection and return its engine.

        Returns None when ``websocket`` is no longer the registered socket,
        i.e. a newer connection has taken over.
        """
        connections = self.active_connections.get(room_id, {})
        registered = connections.get(participant_id)
        if registered is None or (websocket is not None and registered is not websocket):
            return None

        del connections[participant_id]
        if not connections:
            self.active_connections.pop(room_id, None)

        engines = self.engines.get(room_id, {})
        engine = engines.pop(participant_id, None)
        if not engines:
            self.engines.pop(room_id, None)
        return engine

    async def send_personal_message(
        self, message: dict, room_id: str, participant_id: str
    ) -> None:
        connection = self.active_connections.get(room_id, {}).get(participant_id)
        if connection is not None and connection.client_state == WebSocketState.CONNECTED:
            await connection.send_json(jsonable_encoder(message))

    def get_room_participants(self, room_id: str) -> set[str]:
        if room_id in self.active_connections:
            return set(self.active_connections[room_id].keys())
        return set()

    def is_connected(self, room_id: str, participant_id: str) -> bool:
        return (
            room_id in self.active_connections
            and participant_id in self.active_connections[room_id]
        )

    async def shutdown(self) -> None:
        for engines in list(self.engines.values()):
            for engine in list(engines.values()):
                await engine.stop()
        for connections in list(self.active_connections.values()):
            for connection in list(connections.values()):
                await self._close(connection, status.WS_1001_GOING_AWAY)
        self.engines.clear()
        self.active_connections.clear()

    @staticmethod
    async def _close(websocket: WebSocket, code: int) -> None:
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=code)


room_manager = RoomConnectionManager()
