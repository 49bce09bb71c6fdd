import logging
from typing import Dict, Optional

from ..repositories.question_repository import QuestionProvider
from ..repositories.room_store import RoomStore
from .broadcast_hub import BroadcastHub
from .round_engine import EngineTimings, RoundEngine

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Owns one RoundEngine per live room, looked up by room code.

    An engine is created on the first join of its room and removes itself
    from the registry when its game ends or aborts.
    """

    def __init__(
        self,
        *,
        store: RoomStore,
        questions: QuestionProvider,
        hub: BroadcastHub,
        timings: Optional[EngineTimings] = None,
    ) -> None:
        self.store = store
        self.questions = questions
        self.hub = hub
        self.timings = timings or EngineTimings()
        self.engines: Dict[str, RoundEngine] = {}
        hub.set_disconnect_listener(self.on_player_disconnected)

    def __len__(self) -> int:
        return len(self.engines)

    def get(self, room_code: str) -> Optional[RoundEngine]:
        return self.engines.get(room_code)

    def engine_for(self, room_code: str) -> RoundEngine:
        engine = self.engines.get(room_code)
        if engine is None:
            engine = RoundEngine(
                room_code,
                store=self.store,
                questions=self.questions,
                hub=self.hub,
                timings=self.timings,
                on_release=self._released,
            )
            self.engines[room_code] = engine
            logger.info("[registry-create] room=%s engines=%d", room_code, len(self.engines))
        return engine

    def _released(self, engine: RoundEngine) -> None:
        if self.engines.get(engine.room_code) is engine:
            del self.engines[engine.room_code]
            logger.info("[registry-drop] room=%s engines=%d", engine.room_code, len(self.engines))

    async def on_player_disconnected(self, room_code: str, player_id: str) -> None:
        engine = self.engines.get(room_code)
        if engine is None:
            logger.debug("[registry] disconnect for room=%s without engine", room_code)
            return
        await engine.player_disconnected(player_id)

    async def shutdown(self) -> None:
        for engine in list(self.engines.values()):
            await engine.shutdown()
        self.engines.clear()
