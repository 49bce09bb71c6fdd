"""Per-room round state held in memory by the round engine."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..domain.errors import AnswerRejectedError
from ..domain.model import Question, SubmittedAnswer


@dataclass
class SessionState:
    time_limit: int = 30
    current_question: Optional[Question] = None
    presented_at: Optional[float] = None
    answers: Dict[str, SubmittedAnswer] = field(default_factory=dict)
    used_question_ids: List[int] = field(default_factory=list)

    def present(self, question: Question, now: Optional[float] = None) -> None:
        self.current_question = question
        self.presented_at = time.time() if now is None else now
        self.answers = {}
        self.used_question_ids.append(question.id)

    def record_answer(self, answer: SubmittedAnswer) -> SubmittedAnswer:
        """Store a player's answer for the current round; a second one is rejected."""
        if self.current_question is None:
            raise AnswerRejectedError("No question is active")
        if answer.player_id in self.answers:
            raise AnswerRejectedError("Answer already submitted for this round")
        self.answers[answer.player_id] = answer
        return answer

    def answered_by(self, player_ids: set[str]) -> int:
        return len(player_ids.intersection(self.answers))

    def clear(self) -> None:
        self.current_question = None
        self.presented_at = None
        self.answers = {}
        self.used_question_ids = []
