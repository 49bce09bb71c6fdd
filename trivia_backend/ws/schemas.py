from datetime import datetime
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..domain.model import Player, Question


# --- client -> server ---


class JoinRoomPayload(BaseModel):
    roomCode: str = Field(..., min_length=1, max_length=16)
    playerName: str = Field(..., min_length=1, max_length=32)


class JoinRoom(BaseModel):
    type: Literal["join_room"] = "join_room"
    payload: JoinRoomPayload


class AnswerSubmittedPayload(BaseModel):
    # a client-sent playerId is ignored: identity comes from the connection tag
    answerIndex: int = Field(..., ge=0)
    timeRemaining: float = Field(..., ge=0)


class AnswerSubmitted(BaseModel):
    type: Literal["answer_submitted"] = "answer_submitted"
    payload: AnswerSubmittedPayload


InboundMessage = Annotated[Union[JoinRoom, AnswerSubmitted], Field(discriminator="type")]
inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# --- shared DTOs ---


class PlayerOut(BaseModel):
    playerId: str
    roomId: int
    playerName: str
    score: int
    isActive: bool
    joinedAt: datetime

    @classmethod
    def from_domain(cls, p: Player) -> "PlayerOut":
        return cls(
            playerId=p.player_id,
            roomId=p.room_id,
            playerName=p.player_name,
            score=p.score,
            isActive=p.is_active,
            joinedAt=p.joined_at,
        )


class QuestionOut(BaseModel):
    id: int
    text: str
    answers: list[str]
    correctAnswer: int
    category: str
    difficulty: str

    @classmethod
    def from_domain(cls, q: Question) -> "QuestionOut":
        return cls(
            id=q.id,
            text=q.text,
            answers=list(q.answers),
            correctAnswer=q.correct_answer,
            category=q.category,
            difficulty=q.difficulty,
        )


# --- server -> client ---


class PlayerJoinedPayload(BaseModel):
    player: PlayerOut


class PlayerJoined(BaseModel):
    type: Literal["player_joined"] = "player_joined"
    payload: PlayerJoinedPayload


class GameStartedPayload(BaseModel):
    roomId: int


class GameStarted(BaseModel):
    type: Literal["game_started"] = "game_started"
    payload: GameStartedPayload


class QuestionPresentedPayload(BaseModel):
    # correctAnswer travels with the question: there is no anti-cheat layer
    question: QuestionOut
    timeLimit: int


class QuestionPresented(BaseModel):
    type: Literal["question_presented"] = "question_presented"
    payload: QuestionPresentedPayload


class TimerUpdatePayload(BaseModel):
    timeRemaining: int


class TimerUpdate(BaseModel):
    type: Literal["timer_update"] = "timer_update"
    payload: TimerUpdatePayload


class AnswerResultPayload(BaseModel):
    playerId: str
    correct: bool
    correctAnswer: int
    points: int
    score: int


class AnswerResult(BaseModel):
    type: Literal["answer_result"] = "answer_result"
    payload: AnswerResultPayload


class RoundEndedPayload(BaseModel):
    scores: Dict[str, int]
    nextRound: bool


class RoundEnded(BaseModel):
    type: Literal["round_ended"] = "round_ended"
    payload: RoundEndedPayload


class GameEndedPayload(BaseModel):
    finalScores: Dict[str, int]
    winner: Optional[str] = None


class GameEnded(BaseModel):
    type: Literal["game_ended"] = "game_ended"
    payload: GameEndedPayload


class ErrorPayload(BaseModel):
    message: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    payload: ErrorPayload


ServerEvent = (
    PlayerJoined
    | GameStarted
    | QuestionPresented
    | TimerUpdate
    | AnswerResult
    | RoundEnded
    | GameEnded
    | ErrorEvent
)


def error_event(message: str) -> ErrorEvent:
    return ErrorEvent(payload=ErrorPayload(message=message))
