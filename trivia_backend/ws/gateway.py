import logging

from pydantic import ValidationError

from ..domain.errors import (
    AlreadyJoinedError,
    NotJoinedError,
    ProtocolError,
    RoomNotFoundError,
    TriviaError,
)
from ..repositories.room_store import RoomStore
from .broadcast_hub import BroadcastHub, Connection
from .engine_registry import EngineRegistry
from .schemas import AnswerSubmitted, InboundMessage, JoinRoom, error_event, inbound_adapter

logger = logging.getLogger(__name__)


def parse_message(raw: str) -> InboundMessage:
    try:
        return inbound_adapter.validate_json(raw)
    except ValidationError as e:
        kinds = {err["type"] for err in e.errors()}
        if "union_tag_invalid" in kinds:
            raise ProtocolError("Unknown message type") from e
        raise ProtocolError("Invalid message format") from e


def normalize_room_code(code: str) -> str:
    return code.strip().upper()


class ConnectionGateway:
    """Parses inbound frames and dispatches them; errors go back to the sender only."""

    def __init__(self, *, store: RoomStore, hub: BroadcastHub, registry: EngineRegistry) -> None:
        self.store = store
        self.hub = hub
        self.registry = registry

    async def handle_text(self, conn: Connection, raw: str) -> None:
        try:
            msg = parse_message(raw)
            if isinstance(msg, JoinRoom):
                await self._join_room(conn, msg)
            elif isinstance(msg, AnswerSubmitted):
                await self._answer_submitted(conn, msg)
        except TriviaError as e:
            logger.info("[gateway-error] conn=%s error=%s", conn.id[:8], e.message)
            await self.hub.send_direct(conn, error_event(e.message))

    async def _join_room(self, conn: Connection, msg: JoinRoom) -> None:
        if conn.is_tagged:
            raise AlreadyJoinedError()
        name = msg.payload.playerName.strip()
        if not name:
            raise ProtocolError("playerName must not be blank")
        room_code = normalize_room_code(msg.payload.roomCode)
        room = await self.store.get_room(room_code)
        if room is None:
            raise RoomNotFoundError()
        engine = self.registry.engine_for(room_code)
        await engine.join(conn, name)

    async def _answer_submitted(self, conn: Connection, msg: AnswerSubmitted) -> None:
        if not conn.is_tagged:
            raise NotJoinedError()
        engine = self.registry.get(conn.room_code)
        if engine is None:
            raise RoomNotFoundError()
        await engine.submit_answer(conn, msg.payload.answerIndex, msg.payload.timeRemaining)
