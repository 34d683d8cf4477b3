from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing import List

from boardroom.app.core.errors import RoomNotFound
from boardroom.app.schemas.game_schema import LeaderboardEntry, RoomSnapshot, RoomSummary
from boardroom.app.services.gateway import Gateway, normalize_room_id

router = APIRouter()

def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway

# --- Endpoints ---

@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(limit: int = Query(10, ge=1, le=100), gateway: Gateway = Depends(get_gateway)):
    """Players sorted by wins, then win rate."""
    return gateway.leaderboard.top(limit)

@router.get("/lobby", response_model=List[RoomSummary])
async def get_lobby(gateway: Gateway = Depends(get_gateway)):
    """Same listing lobby subscribers receive: waiting, playing, finished; newest first."""
    return gateway.registry.lobby_summaries()

@router.get("/rooms/{room_id}", response_model=RoomSnapshot)
async def get_room(room_id: str, gateway: Gateway = Depends(get_gateway)):
    try:
        room = gateway.registry.get(normalize_room_id(room_id))
    except RoomNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return room.snapshot()
