import dataclasses
import json
import logging
from datetime import datetime
from typing import List, Optional, Protocol

from redis.asyncio import Redis

from ..domain.errors import RoomCodeTakenError
from ..domain.model import GameMode, Player, QuestionMode, Room, RoomConfig

REDIS_PREFIX = "trivia:"

logger = logging.getLogger(__name__)


class RoomStore(Protocol):
    async def create_room(self, config: RoomConfig) -> Room: ...

    async def get_room(self, room_code: str) -> Optional[Room]: ...

    async def update_room(self, room_code: str, **fields: object) -> Optional[Room]: ...

    async def delete_room(self, room_code: str) -> None: ...

    async def add_player(self, room_id: int, player_id: str, player_name: str) -> Player: ...

    async def list_players(self, room_id: int) -> List[Player]: ...

    async def update_score(self, player_id: str, room_id: int, increment: int) -> Optional[Player]: ...

    async def remove_player(self, player_id: str, room_id: int) -> None: ...

    async def set_player_active(self, player_id: str, room_id: int, active: bool) -> Optional[Player]: ...


def _room_to_json(room: Room) -> str:
    return json.dumps(
        {
            "id": room.id,
            "roomCode": room.room_code,
            "gameMode": room.game_mode.value,
            "questionMode": room.question_mode.value,
            "maxPlayers": room.max_players,
            "currentRound": room.current_round,
            "totalRounds": room.total_rounds,
            "isActive": room.is_active,
            "createdAt": room.created_at.isoformat(),
        }
    )


def _room_from_json(raw: str) -> Room:
    d = json.loads(raw)
    return Room(
        id=int(d["id"]),
        room_code=d["roomCode"],
        game_mode=GameMode(d["gameMode"]),
        question_mode=QuestionMode(d["questionMode"]),
        max_players=int(d["maxPlayers"]),
        current_round=int(d["currentRound"]),
        total_rounds=int(d["totalRounds"]),
        is_active=bool(d["isActive"]),
        created_at=datetime.fromisoformat(d["createdAt"]),
    )


def _player_to_json(player: Player) -> str:
    # score lives in the sorted set so increments stay atomic
    return json.dumps(
        {
            "playerName": player.player_name,
            "isActive": player.is_active,
            "joinedAt": player.joined_at.isoformat(),
        }
    )


def _player_from_json(player_id: str, room_id: int, raw: str, score: float | None) -> Player:
    d = json.loads(raw)
    return Player(
        player_id=player_id,
        room_id=room_id,
        player_name=d["playerName"],
        score=int(score or 0),
        is_active=bool(d["isActive"]),
        joined_at=datetime.fromisoformat(d["joinedAt"]),
    )


class RedisRoomStore:
    """Rooms and players in Redis.

    A room is one JSON document keyed by its code, claimed with ``SET NX`` so
    two creators can never share a code. Players of a room live in a hash
    (profile), a list (join order) and a sorted set (scores, ``ZINCRBY``).
    Every key expires after ``ttl_sec``.
    """

    def __init__(self, r: Redis, ttl_sec: int = 6 * 60 * 60) -> None:
        self.r = r
        self.ttl_sec = ttl_sec

    # --- Redis keys ---

    def k_room(self, room_code: str) -> str:
        return f"{REDIS_PREFIX}room:{room_code}"

    def k_room_seq(self) -> str:
        return f"{REDIS_PREFIX}room:seq"

    def k_players(self, room_id: int) -> str:
        return f"{REDIS_PREFIX}players:{room_id}"

    def k_order(self, room_id: int) -> str:
        return f"{REDIS_PREFIX}order:{room_id}"

    def k_score(self, room_id: int) -> str:
        return f"{REDIS_PREFIX}score:{room_id}"

    # --- rooms ---

    async def create_room(self, config: RoomConfig) -> Room:
        room_id = await self.r.incr(self.k_room_seq())
        room = Room(
            id=int(room_id),
            room_code=config.room_code,
            game_mode=config.game_mode,
            question_mode=config.question_mode,
            max_players=config.max_players,
            total_rounds=config.total_rounds,
        )
        claimed = await self.r.set(self.k_room(room.room_code), _room_to_json(room), nx=True, ex=self.ttl_sec)
        if not claimed:
            raise RoomCodeTakenError()
        logger.info("[room-create] room=%s id=%s rounds=%s", room.room_code, room.id, room.total_rounds)
        return room

    async def get_room(self, room_code: str) -> Optional[Room]:
        raw = await self.r.get(self.k_room(room_code))
        return _room_from_json(raw) if raw else None

    async def update_room(self, room_code: str, **fields: object) -> Optional[Room]:
        room = await self.get_room(room_code)
        if room is None:
            return None
        updated = dataclasses.replace(room, **fields)
        # xx: never resurrect a room deleted while we were reading it
        ok = await self.r.set(self.k_room(room_code), _room_to_json(updated), xx=True, ex=self.ttl_sec)
        return updated if ok else None

    async def delete_room(self, room_code: str) -> None:
        room = await self.get_room(room_code)
        await self.r.delete(self.k_room(room_code))
        if room is not None:
            await self.r.delete(self.k_players(room.id), self.k_order(room.id), self.k_score(room.id))
        logger.info("[room-delete] room=%s", room_code)

    # --- players ---

    async def _touch(self, room_id: int) -> None:
        for key in (self.k_players(room_id), self.k_order(room_id), self.k_score(room_id)):
            await self.r.expire(key, self.ttl_sec)

    async def add_player(self, room_id: int, player_id: str, player_name: str) -> Player:
        player = Player(player_id=player_id, room_id=room_id, player_name=player_name)
        await self.r.hset(self.k_players(room_id), mapping={player_id: _player_to_json(player)})
        await self.r.rpush(self.k_order(room_id), player_id)
        await self.r.zadd(self.k_score(room_id), {player_id: 0})
        await self._touch(room_id)
        return player

    async def _get_player(self, player_id: str, room_id: int) -> Optional[Player]:
        raw = await self.r.hget(self.k_players(room_id), player_id)
        if raw is None:
            return None
        score = await self.r.zscore(self.k_score(room_id), player_id)
        return _player_from_json(player_id, room_id, raw, score)

    async def list_players(self, room_id: int) -> List[Player]:
        order = await self.r.lrange(self.k_order(room_id), 0, -1)
        profiles = await self.r.hgetall(self.k_players(room_id))
        scores = dict(await self.r.zrange(self.k_score(room_id), 0, -1, withscores=True))
        return [
            _player_from_json(pid, room_id, profiles[pid], scores.get(pid))
            for pid in order
            if pid in profiles
        ]

    async def update_score(self, player_id: str, room_id: int, increment: int) -> Optional[Player]:
        if not await self.r.hexists(self.k_players(room_id), player_id):
            return None
        await self.r.zincrby(self.k_score(room_id), increment, player_id)
        return await self._get_player(player_id, room_id)

    async def remove_player(self, player_id: str, room_id: int) -> None:
        await self.r.hdel(self.k_players(room_id), player_id)
        await self.r.lrem(self.k_order(room_id), 0, player_id)
        await self.r.zrem(self.k_score(room_id), player_id)

    async def set_player_active(self, player_id: str, room_id: int, active: bool) -> Optional[Player]:
        player = await self._get_player(player_id, room_id)
        if player is None:
            return None
        player = dataclasses.replace(player, is_active=active)
        await self.r.hset(self.k_players(room_id), mapping={player_id: _player_to_json(player)})
        return player
