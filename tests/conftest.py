import asyncio
import json

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from trivia_backend.domain.model import GameMode, Question, QuestionMode, RoomConfig
from trivia_backend.repositories.question_repository import InMemoryQuestionProvider
from trivia_backend.repositories.room_store import RedisRoomStore
from trivia_backend.ws.broadcast_hub import BroadcastHub
from trivia_backend.ws.engine_registry import EngineRegistry
from trivia_backend.ws.round_engine import EngineTimings


class FakeTransport:
    """Collects the frames a connection would have received."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(json.loads(data))

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]

    def events(self, event_type: str) -> list[dict]:
        return [m for m in self.sent if m["type"] == event_type]

    async def wait_for(self, event_type: str, count: int = 1, timeout: float = 3.0) -> dict:
        deadline = asyncio.get_running_loop().time() + timeout
        while len(self.events(event_type)) < count:
            if asyncio.get_running_loop().time() > deadline:
                raise AssertionError(f"no {event_type} #{count} within {timeout}s, got {self.types()}")
            await asyncio.sleep(0.005)
        return self.events(event_type)[count - 1]


async def wait_until(predicate, timeout: float = 3.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def make_questions(n: int) -> list[Question]:
    return [
        Question(
            id=i,
            text=f"Question {i}?",
            answers=["right", "wrong", "nope", "never"],
            correct_answer=0,
            category="Test",
        )
        for i in range(1, n + 1)
    ]


@pytest_asyncio.fixture
async def redis():
    client = FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture
def store(redis):
    return RedisRoomStore(redis, ttl_sec=60)


@pytest.fixture
def hub():
    return BroadcastHub()


@pytest.fixture
def timings():
    return EngineTimings(
        min_players=2,
        time_limit=30,
        start_grace=0,
        answer_observation=0.01,
        round_pacing=0.01,
        game_end_delay=0.01,
        tick_interval=0.01,
    )


@pytest.fixture
def questions():
    return InMemoryQuestionProvider(make_questions(5))


@pytest_asyncio.fixture
async def registry(store, questions, hub, timings):
    reg = EngineRegistry(store=store, questions=questions, hub=hub, timings=timings)
    try:
        yield reg
    finally:
        await reg.shutdown()


@pytest.fixture
def make_room(store):
    async def _make(code: str = "ABC123", max_players: int = 4, total_rounds: int = 2):
        return await store.create_room(
            RoomConfig(
                room_code=code,
                game_mode=GameMode.INDIVIDUAL,
                question_mode=QuestionMode.SINGLE,
                max_players=max_players,
                total_rounds=total_rounds,
            )
        )

    return _make
