import asyncio
import random
from typing import Iterable, List, Optional, Protocol

from supabase import Client

from ..domain.model import Question
from ..domain.question_bank import SEED_QUESTIONS


class QuestionProvider(Protocol):
    async def random_question(self, exclude_ids: Iterable[int]) -> Optional[Question]: ...

    async def list_questions(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[Question]: ...

    async def add_question(self, data: dict) -> Question: ...


def row_to_question(row: dict) -> Question:
    return Question(
        id=int(row["id"]),
        text=row["text"],
        answers=list(row["answers"]),
        correct_answer=int(row["correct_answer"]),
        category=row["category"],
        difficulty=row.get("difficulty") or "medium",
    )


class InMemoryQuestionProvider:
    """Question bank held in process memory, seeded from the bundled football set."""

    def __init__(self, questions: Optional[Iterable[Question]] = None, rng: Optional[random.Random] = None) -> None:
        self._questions: List[Question] = list(SEED_QUESTIONS if questions is None else questions)
        self._rng = rng or random.Random()

    async def random_question(self, exclude_ids: Iterable[int]) -> Optional[Question]:
        excluded = set(exclude_ids)
        eligible = [q for q in self._questions if q.id not in excluded]
        if not eligible:
            return None
        return self._rng.choice(eligible)

    async def list_questions(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[Question]:
        items = [q for q in self._questions if category is None or q.category == category]
        return items[:limit] if limit is not None else items

    async def add_question(self, data: dict) -> Question:
        next_id = max((q.id for q in self._questions), default=0) + 1
        question = row_to_question({**data, "id": next_id})
        self._questions.append(question)
        return question


class SupabaseQuestionProvider:
    """Questions stored in the Supabase ``questions`` table.

    supabase-py is synchronous, so every call runs in a worker thread to keep
    the event loop (and every room's countdown) responsive.
    """

    def __init__(self, client: Client, rng: Optional[random.Random] = None) -> None:
        self.client = client
        self._rng = rng or random.Random()

    def _fetch_eligible(self, exclude_ids: List[int]) -> List[dict]:
        query = self.client.table("questions").select("*")
        if exclude_ids:
            query = query.not_.in_("id", exclude_ids)
        res = query.execute()
        return res.data or []

    async def random_question(self, exclude_ids: Iterable[int]) -> Optional[Question]:
        rows = await asyncio.to_thread(self._fetch_eligible, sorted(set(exclude_ids)))
        if not rows:
            return None
        return row_to_question(self._rng.choice(rows))

    def _fetch_list(self, category: Optional[str], limit: Optional[int]) -> List[dict]:
        query = self.client.table("questions").select("*")
        if category is not None:
            query = query.eq("category", category)
        query = query.order("id", desc=False)
        if limit is not None:
            query = query.limit(limit)
        res = query.execute()
        return res.data or []

    async def list_questions(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[Question]:
        rows = await asyncio.to_thread(self._fetch_list, category, limit)
        return [row_to_question(r) for r in rows]

    def _insert(self, data: dict) -> dict:
        # no .select()/.single() after insert: supabase-py v2 returns the representation
        ins = self.client.table("questions").insert(data).execute()
        if not ins.data or not isinstance(ins.data, list) or "id" not in ins.data[0]:
            raise RuntimeError("Insert questions failed: no returned id")
        return ins.data[0]

    async def add_question(self, data: dict) -> Question:
        row = await asyncio.to_thread(self._insert, data)
        return row_to_question(row)
