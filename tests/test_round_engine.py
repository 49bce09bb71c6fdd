import asyncio
from dataclasses import replace

import pytest

from trivia_backend.domain.errors import AnswerRejectedError, RoomFullError, RoomNotFoundError
from trivia_backend.repositories.question_repository import InMemoryQuestionProvider
from trivia_backend.ws.engine_registry import EngineRegistry
from trivia_backend.ws.round_engine import Phase

from conftest import FakeTransport, make_questions, wait_until


async def join_two(registry, hub, code="ABC123"):
    ta, tb = FakeTransport(), FakeTransport()
    ca, cb = hub.on_connect(ta), hub.on_connect(tb)
    engine = registry.engine_for(code)
    await engine.join(ca, "Alice")
    await engine.join(cb, "Bob")
    return engine, (ta, ca), (tb, cb)


@pytest.mark.asyncio
async def test_game_starts_when_second_player_joins(registry, hub, make_room):
    await make_room()
    ta = FakeTransport()
    ca = hub.on_connect(ta)
    engine = registry.engine_for("ABC123")

    await engine.join(ca, "Alice")
    assert engine.phase is Phase.WAITING_FOR_PLAYERS
    assert ta.types() == ["player_joined"]

    tb = FakeTransport()
    await engine.join(hub.on_connect(tb), "Bob")
    await ta.wait_for("question_presented")

    assert ta.types()[:4] == ["player_joined", "player_joined", "game_started", "question_presented"]
    assert tb.types()[:3] == ["player_joined", "game_started", "question_presented"]
    assert engine.phase is Phase.QUESTION_ACTIVE


@pytest.mark.asyncio
async def test_join_full_room_rejected(registry, hub, make_room):
    await make_room(max_players=2)
    engine, _, _ = await join_two(registry, hub)

    with pytest.raises(RoomFullError):
        await engine.join(hub.on_connect(FakeTransport()), "Carol")


@pytest.mark.asyncio
async def test_join_missing_room_releases_engine(registry, hub):
    engine = registry.engine_for("GHOST1")
    with pytest.raises(RoomNotFoundError):
        await engine.join(hub.on_connect(FakeTransport()), "Alice")
    assert engine.released
    assert registry.get("GHOST1") is None


@pytest.mark.asyncio
async def test_answer_before_question_rejected(registry, hub, make_room):
    await make_room()
    ta = FakeTransport()
    ca = hub.on_connect(ta)
    engine = registry.engine_for("ABC123")
    await engine.join(ca, "Alice")

    with pytest.raises(AnswerRejectedError):
        await engine.submit_answer(ca, 0, 20)


@pytest.mark.asyncio
async def test_early_completion_scores_round(registry, hub, store, make_room):
    room = await make_room(total_rounds=2)
    engine, (ta, ca), (tb, cb) = await join_two(registry, hub)
    question = (await ta.wait_for("question_presented"))["payload"]["question"]
    right = question["correctAnswer"]

    await engine.submit_answer(ca, right, 18)
    await engine.submit_answer(cb, (right + 1) % 4, 25)

    result_a = ta.events("answer_result")[0]["payload"]
    assert result_a == {
        "playerId": ca.player_id,
        "correct": True,
        "correctAnswer": right,
        "points": 6,
        "score": 6,
    }
    assert tb.events("answer_result")[0]["payload"]["points"] == 0
    # answer results are private
    assert len(ta.events("answer_result")) == 1

    ended = (await ta.wait_for("round_ended"))["payload"]
    assert ended == {"scores": {ca.player_id: 6, cb.player_id: 0}, "nextRound": True}

    await ta.wait_for("question_presented", count=2)
    assert (await store.get_room(room.room_code)).current_round == 2


@pytest.mark.asyncio
async def test_duplicate_answer_does_not_change_score(registry, hub, store, make_room):
    room = await make_room()
    engine, (ta, ca), _ = await join_two(registry, hub)
    right = (await ta.wait_for("question_presented"))["payload"]["question"]["correctAnswer"]

    await engine.submit_answer(ca, right, 30)
    with pytest.raises(AnswerRejectedError):
        await engine.submit_answer(ca, right, 30)

    players = {p.player_id: p.score for p in await store.list_players(room.id)}
    assert players[ca.player_id] == 10


@pytest.mark.asyncio
async def test_time_up_ends_round_with_ticks(store, questions, hub, timings, make_room):
    await make_room(total_rounds=1)
    registry = EngineRegistry(
        store=store, questions=questions, hub=hub,
        timings=replace(timings, time_limit=3),
    )
    try:
        _, (ta, _), _ = await join_two(registry, hub)
        await ta.wait_for("round_ended")

        ticks = [e["payload"]["timeRemaining"] for e in ta.events("timer_update")]
        assert ticks == [2, 1, 0]
        types = ta.types()
        assert types.index("question_presented") < types.index("timer_update") < types.index("round_ended")
        assert ta.events("round_ended")[0]["payload"]["nextRound"] is False
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_single_round_game_ends_and_cleans_up(registry, hub, store, make_room):
    await make_room(total_rounds=1)
    engine, (ta, ca), (tb, cb) = await join_two(registry, hub)
    right = (await ta.wait_for("question_presented"))["payload"]["question"]["correctAnswer"]

    await engine.submit_answer(cb, right, 9)
    await engine.submit_answer(ca, (right + 1) % 4, 9)

    ended = (await ta.wait_for("game_ended"))["payload"]
    assert ended["winner"] == "Bob"
    assert ended["finalScores"] == {ca.player_id: 0, cb.player_id: 3}
    assert ta.types()[-2:] == ["round_ended", "game_ended"]

    await wait_until(lambda: engine.released)
    assert await store.get_room("ABC123") is None
    assert registry.get("ABC123") is None


@pytest.mark.asyncio
async def test_empty_bank_ends_game_without_question(store, hub, timings, make_room):
    await make_room()
    registry = EngineRegistry(store=store, questions=InMemoryQuestionProvider([]), hub=hub, timings=timings)
    try:
        _, (ta, _), _ = await join_two(registry, hub)
        ended = (await ta.wait_for("game_ended"))["payload"]

        assert "question_presented" not in ta.types()
        # all tied at zero: earliest joiner wins
        assert ended["winner"] == "Alice"
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_questions_are_not_repeated_within_a_game(store, hub, timings, make_room):
    await make_room(total_rounds=3)
    registry = EngineRegistry(
        store=store,
        questions=InMemoryQuestionProvider(make_questions(3)),
        hub=hub,
        timings=replace(timings, time_limit=1),
    )
    try:
        _, (ta, _), _ = await join_two(registry, hub)
        await ta.wait_for("game_ended", timeout=5)

        ids = [e["payload"]["question"]["id"] for e in ta.events("question_presented")]
        assert len(ids) == 3
        assert sorted(ids) == [1, 2, 3]
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_room_deleted_mid_game_aborts_quietly(store, questions, hub, timings, make_room):
    await make_room()
    registry = EngineRegistry(
        store=store, questions=questions, hub=hub,
        timings=replace(timings, time_limit=2),
    )
    try:
        engine, (ta, _), _ = await join_two(registry, hub)
        await ta.wait_for("question_presented")
        await store.delete_room("ABC123")

        await wait_until(lambda: engine.released)
        assert "round_ended" not in ta.types()
        assert "game_ended" not in ta.types()
        assert len(registry) == 0
    finally:
        await registry.shutdown()


@pytest.mark.asyncio
async def test_rooms_run_independently(registry, hub, make_room):
    await make_room("ROOMAA")
    await make_room("ROOMBB")
    _, (ta, _), _ = await join_two(registry, hub, "ROOMAA")
    tc = FakeTransport()
    await registry.engine_for("ROOMBB").join(hub.on_connect(tc), "Carol")

    await ta.wait_for("question_presented")
    await asyncio.sleep(0.05)
    assert tc.types() == ["player_joined"]


@pytest.mark.asyncio
async def test_disconnected_player_does_not_block_round(registry, hub, store, make_room):
    room = await make_room()
    engine, (ta, ca), (tb, cb) = await join_two(registry, hub)
    right = (await ta.wait_for("question_presented"))["payload"]["question"]["correctAnswer"]

    await hub.on_disconnect(cb)
    players = {p.player_id: p for p in await store.list_players(room.id)}
    assert players[cb.player_id].is_active is False

    await engine.submit_answer(ca, right, 30)
    ended = (await ta.wait_for("round_ended"))["payload"]
    assert ended["scores"] == {ca.player_id: 10}


@pytest.mark.asyncio
async def test_everyone_leaving_started_game_ends_it(registry, hub, store, make_room):
    await make_room()
    engine, (_, ca), (_, cb) = await join_two(registry, hub)

    await hub.on_disconnect(ca)
    await hub.on_disconnect(cb)

    await wait_until(lambda: engine.released)
    assert await store.get_room("ABC123") is None


@pytest.mark.asyncio
async def test_last_player_leaving_waiting_room_releases_engine(registry, hub, store, make_room):
    await make_room()
    conn = hub.on_connect(FakeTransport())
    engine = registry.engine_for("ABC123")
    await engine.join(conn, "Alice")

    await hub.on_disconnect(conn)

    assert engine.released
    assert registry.get("ABC123") is None
    # the room itself stays joinable
    assert await store.get_room("ABC123") is not None
