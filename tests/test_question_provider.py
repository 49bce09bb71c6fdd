import random

import pytest

from trivia_backend.domain.question_bank import SEED_QUESTIONS
from trivia_backend.repositories.question_repository import (
    InMemoryQuestionProvider,
    SupabaseQuestionProvider,
    row_to_question,
)

from conftest import make_questions


def test_seed_bank_is_well_formed():
    ids = [q.id for q in SEED_QUESTIONS]
    assert len(ids) == len(set(ids))
    for q in SEED_QUESTIONS:
        assert len(q.answers) == 4
        assert 0 <= q.correct_answer < 4


@pytest.mark.asyncio
async def test_random_question_skips_excluded_ids():
    provider = InMemoryQuestionProvider(make_questions(3), rng=random.Random(7))
    for _ in range(10):
        q = await provider.random_question([1, 2])
        assert q.id == 3


@pytest.mark.asyncio
async def test_random_question_none_when_exhausted():
    provider = InMemoryQuestionProvider(make_questions(2))
    assert await provider.random_question([1, 2]) is None
    assert await InMemoryQuestionProvider([]).random_question([]) is None


@pytest.mark.asyncio
async def test_list_and_add_questions():
    provider = InMemoryQuestionProvider(make_questions(3))
    added = await provider.add_question(
        {
            "text": "Extra?",
            "answers": ["a", "b", "c", "d"],
            "correct_answer": 2,
            "category": "Other",
            "difficulty": "hard",
        }
    )

    assert added.id == 4
    assert [q.id for q in await provider.list_questions(category="Other")] == [4]
    assert len(await provider.list_questions(limit=2)) == 2


# --- Supabase provider against a recorded query builder ---


class _Result:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, rows, calls):
        self.rows = rows
        self.calls = calls

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    @property
    def not_(self):
        self.calls.append(("not_", (), {}))
        return self

    def execute(self):
        return _Result(self.rows)


class FakeSupabase:
    def __init__(self, rows):
        self.rows = rows
        self.calls = []

    def table(self, name):
        self.calls.append(("table", (name,), {}))
        return FakeQuery(self.rows, self.calls)


ROW = {
    "id": 42,
    "text": "Who won the 2010 World Cup?",
    "answers": ["Spain", "Netherlands", "Germany", "Uruguay"],
    "correct_answer": 0,
    "category": "World Cup",
    "difficulty": None,
}


def test_row_to_question_defaults_difficulty():
    assert row_to_question(ROW).difficulty == "medium"


@pytest.mark.asyncio
async def test_supabase_random_question_excludes_used_ids():
    client = FakeSupabase([ROW])
    provider = SupabaseQuestionProvider(client)

    q = await provider.random_question([3, 1])

    assert q.id == 42
    assert ("in_", ("id", [1, 3]), {}) in client.calls


@pytest.mark.asyncio
async def test_supabase_random_question_none_on_empty():
    provider = SupabaseQuestionProvider(FakeSupabase([]))
    assert await provider.random_question([]) is None


@pytest.mark.asyncio
async def test_supabase_list_filters_category():
    client = FakeSupabase([ROW])
    items = await SupabaseQuestionProvider(client).list_questions("World Cup", 5)

    assert [q.id for q in items] == [42]
    assert ("eq", ("category", "World Cup"), {}) in client.calls
    assert ("limit", (5,), {}) in client.calls


@pytest.mark.asyncio
async def test_supabase_insert_without_id_fails():
    provider = SupabaseQuestionProvider(FakeSupabase([{}]))
    with pytest.raises(RuntimeError):
        await provider.add_question({"text": "x"})
