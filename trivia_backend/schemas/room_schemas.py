from typing import Annotated, Literal
from pydantic import BaseModel, Field

from ..core.config import settings


class RoomCreateIn(BaseModel):
    gameMode: Literal["individual", "team"] = "individual"
    questionMode: Literal["single", "rapidfire"] = "single"
    maxPlayers: int = Field(settings.DEFAULT_MAX_PLAYERS, ge=1, le=64)
    totalRounds: int = Field(settings.DEFAULT_TOTAL_ROUNDS, ge=1, le=100)


class RoomOut(BaseModel):
    id: int
    roomCode: str
    gameMode: str
    questionMode: str
    maxPlayers: int
    currentRound: int
    totalRounds: int
    isActive: bool
    createdAt: str


class PlayerListItem(BaseModel):
    playerId: str
    playerName: str
    score: int
    isActive: bool
    joinedAt: str


class QuestionIn(BaseModel):
    text: str = Field(..., min_length=1)
    answers: Annotated[list[str], Field(min_length=4, max_length=4)]  # exactly 4
    correctAnswer: int = Field(..., ge=0, le=3)
    category: str = Field(..., min_length=1)
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class QuestionItem(BaseModel):
    id: int
    text: str
    answers: list[str]
    correctAnswer: int
    category: str
    difficulty: str

