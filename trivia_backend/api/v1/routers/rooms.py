from fastapi import APIRouter, HTTPException, Depends, Request, status
from typing import Annotated
from ....core.config import settings
from ....domain.errors import RoomCodeExhaustedError
from ....schemas.room_schemas import RoomCreateIn, RoomOut, PlayerListItem
from ....services.room_service import RoomService
from ....ws.gateway import normalize_room_code

router = APIRouter(prefix="/rooms", tags=["rooms"])

# Dependency factory for the service

def get_service(request: Request) -> RoomService:
    return RoomService(
        request.app.state.store,
        code_length=settings.ROOM_CODE_LENGTH,
        max_attempts=settings.ROOM_CODE_ATTEMPTS,
    )

ServiceDep = Annotated[RoomService, Depends(get_service)]

async def _create(svc: RoomService, payload: RoomCreateIn) -> dict:
    try:
        return await svc.create_room(
            payload.gameMode,
            payload.questionMode,
            payload.maxPlayers,
            payload.totalRounds,
        )
    except RoomCodeExhaustedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

@router.post("", response_model=RoomOut)
async def create_room(payload: RoomCreateIn, svc: ServiceDep):
    return await _create(svc, payload)

@router.post("/create", response_model=RoomOut)
async def create_room_with_defaults(svc: ServiceDep):
    # Quick-start room: every field at its default
    return await _create(svc, RoomCreateIn())

@router.get("/{room_code}", response_model=RoomOut)
async def get_room(room_code: str, svc: ServiceDep):
    data = await svc.get_room(normalize_room_code(room_code))
    if not data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return data

@router.get("/{room_code}/players", response_model=list[PlayerListItem])
async def list_players(room_code: str, svc: ServiceDep):
    players = await svc.list_players(normalize_room_code(room_code))
    if players is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return players
