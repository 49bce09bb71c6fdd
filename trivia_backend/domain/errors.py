"""Error taxonomy shared by the REST routers, the WebSocket gateway and the round engine.

Every error carries a client-facing ``message``. None of them is fatal to the
process: the gateway turns them into direct ``error`` events, the REST routers
into HTTP responses, and the round engine into a soft abort of one room.
"""

from __future__ import annotations


class TriviaError(Exception):
    message = "Trivia error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class ProtocolError(TriviaError):
    """Inbound message could not be parsed or has an unknown type."""
    message = "Invalid message format"


class RoomNotFoundError(TriviaError):
    message = "Room not found"


class PlayerNotFoundError(TriviaError):
    message = "Player not found"


class RoomFullError(TriviaError):
    message = "Room is full"


class AlreadyJoinedError(TriviaError):
    message = "Connection already joined a room"


class NotJoinedError(TriviaError):
    message = "Join a room before answering"


class AnswerRejectedError(TriviaError):
    """Duplicate, late or out-of-phase answer; never scored."""
    message = "Answer rejected"


class RoomCodeTakenError(TriviaError):
    message = "Room code already in use"


class RoomCodeExhaustedError(TriviaError):
    message = "Could not allocate a free room code"
