import random
import string
from typing import List, Optional

from .typing import to_iso
from ..domain.errors import RoomCodeExhaustedError, RoomCodeTakenError
from ..domain.model import GameMode, Player, QuestionMode, Room, RoomConfig
from ..repositories.room_store import RoomStore

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length: int = 6, rng: Optional[random.Random] = None) -> str:
    return "".join((rng or random).choices(ROOM_CODE_ALPHABET, k=length))


def room_to_dict(room: Room) -> dict:
    return {
        "id": room.id,
        "roomCode": room.room_code,
        "gameMode": room.game_mode.value,
        "questionMode": room.question_mode.value,
        "maxPlayers": room.max_players,
        "currentRound": room.current_round,
        "totalRounds": room.total_rounds,
        "isActive": room.is_active,
        "createdAt": to_iso(room.created_at),
    }


def player_to_dict(player: Player) -> dict:
    return {
        "playerId": player.player_id,
        "playerName": player.player_name,
        "score": player.score,
        "isActive": player.is_active,
        "joinedAt": to_iso(player.joined_at),
    }


class RoomService:
    def __init__(
        self,
        store: RoomStore,
        *,
        code_length: int = 6,
        max_attempts: int = 10,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.rng = rng

    async def create_room(
        self,
        game_mode: str = "individual",
        question_mode: str = "single",
        max_players: int = 4,
        total_rounds: int = 10,
    ) -> dict:
        # The store claims codes atomically; on a collision just draw again
        for _ in range(self.max_attempts):
            config = RoomConfig(
                room_code=generate_room_code(self.code_length, self.rng),
                game_mode=GameMode(game_mode),
                question_mode=QuestionMode(question_mode),
                max_players=max_players,
                total_rounds=total_rounds,
            )
            try:
                room = await self.store.create_room(config)
            except RoomCodeTakenError:
                continue
            return room_to_dict(room)
        raise RoomCodeExhaustedError()

    async def get_room(self, room_code: str) -> Optional[dict]:
        room = await self.store.get_room(room_code)
        return room_to_dict(room) if room else None

    async def list_players(self, room_code: str) -> Optional[List[dict]]:
        room = await self.store.get_room(room_code)
        if room is None:
            return None
        return [player_to_dict(p) for p in await self.store.list_players(room.id)]
