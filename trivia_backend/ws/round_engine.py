"""Per-room game state machine.

WAITING_FOR_PLAYERS -> STARTING -> QUESTION_ACTIVE -> ROUND_SCORING
    -> NEXT_QUESTION -> QUESTION_ACTIVE ...
    -> GAME_ENDED

One engine owns one room. Every transition, timer callback and inbound event
runs under the engine's lock, so events of a room go out strictly ordered:
question_presented, timer_update*, round_ended, then the next
question_presented or game_ended. Rooms share nothing but the store.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Set

from ..core.config import Settings
from ..domain.errors import (
    AnswerRejectedError,
    PlayerNotFoundError,
    RoomFullError,
    RoomNotFoundError,
)
from ..domain.model import Player, Room, SubmittedAnswer
from ..domain.scoring import award_points, pick_winner, score_snapshot
from ..repositories.question_repository import QuestionProvider
from ..repositories.room_store import RoomStore
from .broadcast_hub import BroadcastHub, Connection
from .countdown import Countdown
from .schemas import (
    AnswerResult,
    AnswerResultPayload,
    GameEnded,
    GameEndedPayload,
    GameStarted,
    GameStartedPayload,
    PlayerJoined,
    PlayerJoinedPayload,
    PlayerOut,
    QuestionOut,
    QuestionPresented,
    QuestionPresentedPayload,
    RoundEnded,
    RoundEndedPayload,
    TimerUpdate,
    TimerUpdatePayload,
)
from .session_state import SessionState

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    WAITING_FOR_PLAYERS = "waiting_for_players"
    STARTING = "starting"
    QUESTION_ACTIVE = "question_active"
    ROUND_SCORING = "round_scoring"
    NEXT_QUESTION = "next_question"
    GAME_ENDED = "game_ended"


@dataclass(frozen=True)
class EngineTimings:
    min_players: int = 2
    time_limit: int = 30
    start_grace: float = 1.0
    answer_observation: float = 2.0
    round_pacing: float = 3.0
    game_end_delay: float = 3.0
    tick_interval: float = 1.0

    @classmethod
    def from_settings(cls, s: Settings) -> "EngineTimings":
        return cls(
            min_players=s.MIN_PLAYERS,
            time_limit=s.QUESTION_TIME_LIMIT_SEC,
            start_grace=s.START_GRACE_SEC,
            answer_observation=s.ANSWER_OBSERVATION_SEC,
            round_pacing=s.ROUND_PACING_SEC,
            game_end_delay=s.GAME_END_DELAY_SEC,
            tick_interval=s.TICK_SEC,
        )


Step = Callable[[], Awaitable[None]]


class RoundEngine:
    def __init__(
        self,
        room_code: str,
        *,
        store: RoomStore,
        questions: QuestionProvider,
        hub: BroadcastHub,
        timings: Optional[EngineTimings] = None,
        on_release: Optional[Callable[["RoundEngine"], None]] = None,
    ) -> None:
        self.room_code = room_code
        self.store = store
        self.questions = questions
        self.hub = hub
        self.timings = timings or EngineTimings()
        self.phase = Phase.WAITING_FOR_PLAYERS
        self.session = SessionState(time_limit=self.timings.time_limit)
        self._on_release = on_release
        self._lock = asyncio.Lock()
        self._countdown: Optional[Countdown] = None
        self._tasks: Set[asyncio.Task] = set()
        self._round_seq = 0
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    # --- inbound events ---

    async def join(self, conn: Connection, player_name: str) -> Player:
        """Register a player, tag the connection and maybe start the game."""
        async with self._lock:
            if self._released:
                raise RoomNotFoundError()
            room = await self.store.get_room(self.room_code)
            if room is None:
                await self._release()
                raise RoomNotFoundError()

            active = await self._active_players(room)
            if len(active) >= room.max_players:
                raise RoomFullError()

            player = await self.store.add_player(room.id, uuid.uuid4().hex, player_name)
            self.hub.on_tag(conn, self.room_code, player.player_id)
            await self.hub.broadcast(
                self.room_code,
                PlayerJoined(payload=PlayerJoinedPayload(player=PlayerOut.from_domain(player))),
            )
            logger.info(
                "[join] room=%s player=%s name=%s active=%d",
                self.room_code, player.player_id[:8], player.player_name, len(active) + 1,
            )
            await self._check_player_count(room, len(active) + 1)
            return player

    async def submit_answer(self, conn: Connection, answer_index: int, time_remaining: float) -> SubmittedAnswer:
        """Score one answer; duplicates and out-of-phase answers raise AnswerRejectedError."""
        async with self._lock:
            if self._released:
                raise RoomNotFoundError()
            if self.phase is not Phase.QUESTION_ACTIVE or self.session.current_question is None:
                raise AnswerRejectedError("Not accepting answers right now")

            room = await self.store.get_room(self.room_code)
            if room is None:
                logger.info("[engine-abort] room=%s vanished while answering", self.room_code)
                await self._release()
                raise RoomNotFoundError()

            question = self.session.current_question
            correct = question.is_correct(answer_index)
            points = award_points(correct, time_remaining)
            answer = self.session.record_answer(
                SubmittedAnswer(
                    player_id=conn.player_id,
                    answer_index=answer_index,
                    time_remaining=time_remaining,
                    correct=correct,
                    points=points,
                )
            )

            player = await self.store.update_score(conn.player_id, room.id, points)
            if player is None:
                raise PlayerNotFoundError()
            logger.info(
                "[answer] room=%s player=%s correct=%s points=%d score=%d",
                self.room_code, conn.player_id[:8], correct, points, player.score,
            )
            await self.hub.send_direct(
                conn,
                AnswerResult(
                    payload=AnswerResultPayload(
                        playerId=player.player_id,
                        correct=correct,
                        correctAnswer=question.correct_answer,
                        points=points,
                        score=player.score,
                    )
                ),
            )
            self._check_all_answered(await self._active_players(room))
            return answer

    async def player_disconnected(self, player_id: str) -> None:
        async with self._lock:
            if self._released:
                return
            await self._guarded(lambda: self._handle_disconnect(player_id), "disconnect")

    async def shutdown(self) -> None:
        await self._release()

    # --- transitions ---

    async def _check_player_count(self, room: Room, active_count: int) -> None:
        if self.phase is not Phase.WAITING_FOR_PLAYERS or active_count < self.timings.min_players:
            return
        self.phase = Phase.STARTING
        logger.info("[engine-start] room=%s players=%d", self.room_code, active_count)
        await self.hub.broadcast(self.room_code, GameStarted(payload=GameStartedPayload(roomId=room.id)))
        self._schedule(self.timings.start_grace, self._present_question)

    async def _present_question(self) -> None:
        if self.phase not in (Phase.STARTING, Phase.NEXT_QUESTION):
            return
        room = await self._require_room()
        if room.current_round > room.total_rounds:
            await self._end_game()
            return

        question = await self.questions.random_question(self.session.used_question_ids)
        if question is None:
            logger.info("[bank-exhausted] room=%s used=%d", self.room_code, len(self.session.used_question_ids))
            await self._end_game()
            return

        self._round_seq += 1
        seq = self._round_seq
        self.session.present(question)
        self.phase = Phase.QUESTION_ACTIVE
        await self.hub.broadcast(
            self.room_code,
            QuestionPresented(
                payload=QuestionPresentedPayload(
                    question=QuestionOut.from_domain(question),
                    timeLimit=self.session.time_limit,
                )
            ),
        )
        logger.info(
            "[question] room=%s round=%d/%d question=%s",
            self.room_code, room.current_round, room.total_rounds, question.id,
        )
        self._countdown = Countdown(
            self.session.time_limit,
            on_tick=lambda remaining: self._tick(seq, remaining),
            on_expire=lambda: self._time_up(seq),
            tick_interval=self.timings.tick_interval,
            name=f"room:{self.room_code}:round:{room.current_round}",
        )
        self._countdown.start()

    async def _tick(self, seq: int, remaining: int) -> None:
        async with self._lock:
            if self._released or seq != self._round_seq or self.phase is not Phase.QUESTION_ACTIVE:
                return
            await self.hub.broadcast(self.room_code, TimerUpdate(payload=TimerUpdatePayload(timeRemaining=remaining)))

    async def _time_up(self, seq: int) -> None:
        async with self._lock:
            if self._released or seq != self._round_seq or self.phase is not Phase.QUESTION_ACTIVE:
                return
            logger.info("[time-up] room=%s answers=%d", self.room_code, len(self.session.answers))
            self.phase = Phase.ROUND_SCORING
            await self._guarded(self._finish_round, "time-up")

    def _check_all_answered(self, active: List[Player]) -> None:
        if self.phase is not Phase.QUESTION_ACTIVE or not active:
            return
        active_ids = {p.player_id for p in active}
        if self.session.answered_by(active_ids) < len(active_ids):
            return
        if self._countdown is not None:
            self._countdown.cancel()
        self.phase = Phase.ROUND_SCORING
        logger.info("[early-complete] room=%s answered=%d", self.room_code, len(active_ids))
        self._schedule(self.timings.answer_observation, self._finish_round)

    async def _finish_round(self) -> None:
        if self.phase is not Phase.ROUND_SCORING:
            return
        room = await self._require_room()
        players = await self._active_players(room)
        next_round = room.has_next_round
        await self.hub.broadcast(
            self.room_code,
            RoundEnded(payload=RoundEndedPayload(scores=score_snapshot(players), nextRound=next_round)),
        )
        logger.info("[round-end] room=%s round=%d/%d", self.room_code, room.current_round, room.total_rounds)

        if next_round:
            updated = await self.store.update_room(self.room_code, current_round=room.current_round + 1)
            if updated is None:
                raise RoomNotFoundError()
            self.phase = Phase.NEXT_QUESTION
            self._schedule(self.timings.round_pacing, self._present_question)
        else:
            self._schedule(self.timings.game_end_delay, self._end_game)

    async def _end_game(self) -> None:
        if self._released or self.phase is Phase.GAME_ENDED:
            return
        self.phase = Phase.GAME_ENDED
        self._stop_timers()

        room = await self.store.get_room(self.room_code)
        if room is None:
            logger.info("[engine-abort] room=%s vanished before game end", self.room_code)
            await self._release()
            return

        players = await self._active_players(room)
        winner = pick_winner(players)
        await self.hub.broadcast(
            self.room_code,
            GameEnded(
                payload=GameEndedPayload(
                    finalScores=score_snapshot(players),
                    winner=winner.player_name if winner else None,
                )
            ),
        )
        logger.info("[game-end] room=%s winner=%s", self.room_code, winner.player_name if winner else None)
        await self.store.delete_room(self.room_code)
        await self._release()

    async def _handle_disconnect(self, player_id: str) -> None:
        room = await self._require_room()
        await self.store.set_player_active(player_id, room.id, False)
        active = await self._active_players(room)
        logger.info(
            "[player-left] room=%s player=%s phase=%s active=%d",
            self.room_code, player_id[:8], self.phase.value, len(active),
        )
        if active:
            self._check_all_answered(active)
        elif self.phase is Phase.WAITING_FOR_PLAYERS:
            await self._release()
        else:
            await self._end_game()

    # --- helpers ---

    async def _require_room(self) -> Room:
        room = await self.store.get_room(self.room_code)
        if room is None:
            raise RoomNotFoundError()
        return room

    async def _active_players(self, room: Room) -> List[Player]:
        return [p for p in await self.store.list_players(room.id) if p.is_active]

    async def _guarded(self, step: Step, label: str) -> None:
        """Run one step; a failure releases this room only."""
        try:
            await step()
        except RoomNotFoundError:
            logger.info("[engine-abort] room=%s vanished during %s", self.room_code, label)
            await self._release()
        except Exception:
            logger.exception("[engine-error] room=%s step=%s", self.room_code, label)
            await self._release()

    def _schedule(self, delay: float, step: Step) -> None:
        seq = self._round_seq

        async def runner() -> None:
            if delay > 0:
                await asyncio.sleep(delay)
            async with self._lock:
                if self._released or seq != self._round_seq:
                    return
                await self._guarded(step, step.__name__)

        task = asyncio.create_task(runner(), name=f"room:{self.room_code}:{step.__name__}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _stop_timers(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        self.phase = Phase.GAME_ENDED
        self._stop_timers()
        self.session.clear()
        self.hub.close_room(self.room_code)
        logger.info("[engine-release] room=%s", self.room_code)
        if self._on_release is not None:
            self._on_release(self)
