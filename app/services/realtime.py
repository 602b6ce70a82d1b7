import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Set, Tuple

from fastapi import WebSocket

from app.logging_config import get_logger

logger = get_logger("realtime")

ADMIN_ROOM = "admin_room"

# server -> admin events
NEW_CUSTOMER_MESSAGE = "new_customer_message"
NEW_SUBSCRIBER = "new_subscriber"
USER_UNSUBSCRIBED = "user_unsubscribed"
NEW_ADMIN_MESSAGE = "new_admin_message"
SYSTEM_METRICS = "system_metrics"
ADMIN_MESSAGE_ERROR = "admin_message_error"

# admin -> server commands
JOIN_ADMIN = "join_admin"
ADMIN_SEND_MESSAGE = "admin_send_message"


class Broadcaster(ABC):
    """Room-scoped fan-out of named events to realtime observers."""

    @abstractmethod
    async def publish(self, room: str, event: str, payload: Any) -> None:
        pass


def make_frame(event: str, payload: Any) -> dict:
    return {"event": event, "data": payload}


class ConnectionManager(Broadcaster):
    """Tracks admin websocket connections and the rooms they joined."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
            total = len(self.active_connections)
        logger.info("Realtime client connected", extra={"context": {"connections": total}})

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self.active_connections.discard(websocket)
            for room in list(self.rooms):
                self.rooms[room].discard(websocket)
                if not self.rooms[room]:
                    del self.rooms[room]
            total = len(self.active_connections)
        logger.info("Realtime client disconnected", extra={"context": {"connections": total}})

    async def join(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            self.rooms.setdefault(room, set()).add(websocket)
            members = len(self.rooms[room])
        logger.info("Realtime client joined room", extra={"context": {"room": room, "members": members}})

    def room_size(self, room: str) -> int:
        return len(self.rooms.get(room, ()))

    async def send_to(self, websocket: WebSocket, event: str, payload: Any) -> bool:
        try:
            await websocket.send_json(make_frame(event, payload))
            return True
        except Exception as e:
            logger.warning(f"Realtime send failed: {e}", extra={"context": {"event": event}})
            return False

    async def publish(self, room: str, event: str, payload: Any) -> None:
        async with self._lock:
            members = list(self.rooms.get(room, ()))

        dead = [ws for ws in members if not await self.send_to(ws, event, payload)]
        for websocket in dead:
            await self.disconnect(websocket)


class InMemoryBroadcaster(Broadcaster):
    """Records published events instead of delivering them."""

    def __init__(self):
        self.events: List[Tuple[str, str, Any]] = []

    async def publish(self, room: str, event: str, payload: Any) -> None:
        self.events.append((room, event, payload))

    def named(self, event: str) -> List[Any]:
        return [payload for _, name, payload in self.events if name == event]


connection_manager = ConnectionManager()


def get_broadcaster() -> Broadcaster:
    return connection_manager
