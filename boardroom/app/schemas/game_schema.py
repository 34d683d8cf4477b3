from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Any

class RoomSummary(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str
    gameType: str
    hostName: Optional[str] = None
    opponentName: Optional[str] = None
    status: str
    playerCount: int
    spectatorCount: int
    createdAt: int

class LeaderboardEntry(BaseModel):
    name: str
    wins: int
    losses: int
    games: int
    winRate: float # 0.0 to 100.0

class PlayerInfo(BaseModel):
    number: int
    name: str
    isCpu: bool = False

class ChatEntry(BaseModel):
    playerNumber: int
    playerName: str
    message: str
    timestamp: int

class RoomSnapshot(BaseModel):
    gameId: str
    gameType: str
    # Connect Four: 6x7 ints, Checkers: 8x8 of piece dicts or null
    board: List[List[Any]]
    players: List[PlayerInfo]
    currentPlayer: int
    status: str
    winner: Optional[int] = None
    chat: List[ChatEntry]
    spectatorCount: int
