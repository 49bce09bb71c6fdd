from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List


class GameMode(str, Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"


class QuestionMode(str, Enum):
    SINGLE = "single"
    RAPID_FIRE = "rapidfire"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    answers: List[str]
    correct_answer: int
    category: str
    difficulty: str = "medium"

    def is_correct(self, answer_index: int) -> bool:
        return answer_index == self.correct_answer


@dataclass(frozen=True)
class RoomConfig:
    """What a create-room request carries; the store assigns id and timestamps."""
    room_code: str
    game_mode: GameMode = GameMode.INDIVIDUAL
    question_mode: QuestionMode = QuestionMode.SINGLE
    max_players: int = 4
    total_rounds: int = 10


@dataclass(frozen=True)
class Room:
    id: int
    room_code: str
    game_mode: GameMode
    question_mode: QuestionMode
    max_players: int
    total_rounds: int
    current_round: int = 1
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)

    @property
    def has_next_round(self) -> bool:
        return self.current_round < self.total_rounds


@dataclass(frozen=True)
class Player:
    player_id: str
    room_id: int
    player_name: str
    score: int = 0
    is_active: bool = True
    joined_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SubmittedAnswer:
    player_id: str
    answer_index: int
    time_remaining: float
    correct: bool = False
    points: int = 0
