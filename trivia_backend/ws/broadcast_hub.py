import logging
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Set

from .schemas import ServerEvent

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can push a text frame; FastAPI's WebSocket qualifies."""

    async def send_text(self, data: str) -> None: ...


@dataclass(eq=False)
class Connection:
    transport: Transport
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    room_code: Optional[str] = None
    player_id: Optional[str] = None
    open: bool = True

    @property
    def is_tagged(self) -> bool:
        return self.room_code is not None and self.player_id is not None


DisconnectListener = Callable[[str, str], Awaitable[None]]


class BroadcastHub:
    """Live connections and the rooms they are subscribed to.

    Each room code maps to its own subscriber set, so a broadcast only ever
    touches connections tagged with that code.
    """

    def __init__(self) -> None:
        self.connections: Dict[str, Connection] = {}
        self.rooms: Dict[str, Set[Connection]] = {}
        self._disconnect_listener: Optional[DisconnectListener] = None

    def set_disconnect_listener(self, listener: Optional[DisconnectListener]) -> None:
        self._disconnect_listener = listener

    # --- connection lifecycle ---

    def on_connect(self, transport: Transport) -> Connection:
        conn = Connection(transport=transport)
        self.connections[conn.id] = conn
        logger.debug("[hub-connect] conn=%s total=%d", conn.id[:8], len(self.connections))
        return conn

    def on_tag(self, conn: Connection, room_code: str, player_id: str) -> None:
        conn.room_code = room_code
        conn.player_id = player_id
        self.rooms.setdefault(room_code, set()).add(conn)
        logger.info(
            "[hub-tag] conn=%s room=%s player=%s subscribers=%d",
            conn.id[:8], room_code, player_id[:8], len(self.rooms[room_code]),
        )

    async def on_disconnect(self, conn: Connection) -> None:
        conn.open = False
        self.connections.pop(conn.id, None)
        if conn.room_code is not None:
            self._unsubscribe(conn.room_code, conn)
        logger.info("[hub-disconnect] conn=%s room=%s", conn.id[:8], conn.room_code)
        if conn.is_tagged and self._disconnect_listener is not None:
            await self._disconnect_listener(conn.room_code, conn.player_id)

    def close_room(self, room_code: str) -> None:
        """Drop every subscription of a finished room; connection tags are kept."""
        dropped = self.rooms.pop(room_code, None)
        if dropped is not None:
            logger.info("[hub-close-room] room=%s subscribers=%d", room_code, len(dropped))

    def subscribers(self, room_code: str) -> List[Connection]:
        return list(self.rooms.get(room_code, ()))

    def _unsubscribe(self, room_code: str, conn: Connection) -> None:
        subs = self.rooms.get(room_code)
        if subs is None:
            return
        subs.discard(conn)
        if not subs:
            del self.rooms[room_code]

    # --- delivery ---

    async def _send(self, conn: Connection, data: str) -> bool:
        if not conn.open:
            return False
        try:
            await conn.transport.send_text(data)
            return True
        except Exception as e:
            logger.warning("[hub-send-failed] conn=%s error=%s", conn.id[:8], e)
            conn.open = False
            return False

    async def broadcast(self, room_code: str, event: ServerEvent) -> int:
        """Send one event to every open connection of the room; returns delivered count."""
        subs = self.subscribers(room_code)
        if not subs:
            logger.debug("[hub-broadcast] room=%s has no subscribers", room_code)
            return 0

        data = event.model_dump_json()
        sent = 0
        for conn in subs:
            if await self._send(conn, data):
                sent += 1
            else:
                self._unsubscribe(room_code, conn)

        logger.debug(
            "[hub-broadcast] room=%s type=%s sent=%d/%d",
            room_code, getattr(event, "type", "unknown"), sent, len(subs),
        )
        return sent

    async def send_direct(self, conn: Connection, event: ServerEvent) -> bool:
        return await self._send(conn, event.model_dump_json())
