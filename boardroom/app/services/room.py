"""
Room - one authoritative game session.

A room owns the board (through the matching rules engine), the two seats,
the chat log, rematch votes and the spectators. Every operation is
synchronous and runs to completion; results are pushed to connections
through `connection.send(event, payload)`.

States:
  WAITING   -> fewer than two seats taken
  ACTIVE    -> both seats taken, game in progress
  FINISHED  -> win or draw, rematch possible
  ABANDONED -> a player left while the other stayed, moves rejected
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from boardroom.app.core.errors import (
    InvalidMove, MessageTooLong, NotYourTurn, RoomFull,
)
from boardroom.app.core.events import RoomEvents
from boardroom.app.engine.checkers import Checkers
from boardroom.app.engine.connect_four import ConnectFour
from boardroom.app.models.enums import Color, Difficulty, GameType, LobbyStatus, RoomStatus

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 50
MAX_MESSAGE_LENGTH = 200
SLOTS = (1, 2)

PLAYER_COLORS = {
    GameType.CONNECT4: {1: Color.RED, 2: Color.YELLOW},
    GameType.CHECKERS: {1: Color.RED, 2: Color.BLACK},
}


class Connection(Protocol):
    def send(self, event: str, payload: dict) -> None: ...


@dataclass
class Player:
    connection: Optional[Connection]
    slot: int
    name: str
    is_cpu: bool = False

    def to_dict(self) -> dict:
        return {"number": self.slot, "name": self.name, "isCpu": self.is_cpu}


def now_ms() -> int:
    return int(time.time() * 1000)


class Room:
    def __init__(self, room_id: str, game_type: GameType = GameType.CONNECT4,
                 events: Optional[RoomEvents] = None, created_at: Optional[int] = None):
        self.room_id = room_id
        self.game_type = GameType(game_type)
        self.events = events or RoomEvents()
        self.created_at = created_at if created_at is not None else now_ms()

        self.engine = ConnectFour() if self.game_type == GameType.CONNECT4 else Checkers()
        self.players: List[Player] = []
        self.spectators: set = set()
        self.chat: deque = deque(maxlen=CHAT_HISTORY_LIMIT)
        self.rematch_votes: set = set()

        self.status = RoomStatus.WAITING
        self.current_turn = 1
        self.winner: Optional[int] = None
        self.cpu_difficulty: Optional[Difficulty] = None

    # --- roster ---

    def player_by_slot(self, slot: int) -> Optional[Player]:
        return next((p for p in self.players if p.slot == slot), None)

    def player_by_connection(self, connection) -> Optional[Player]:
        if connection is None:
            return None
        return next((p for p in self.players if p.connection is connection), None)

    @property
    def human_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_cpu]

    @property
    def cpu_player(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_cpu), None)

    @property
    def is_active(self) -> bool:
        return self.status == RoomStatus.ACTIVE

    def color_of(self, slot: int) -> Color:
        return PLAYER_COLORS[self.game_type][slot]

    def _free_slot(self) -> int:
        if len(self.players) >= len(SLOTS):
            raise RoomFull()
        taken = {p.slot for p in self.players}
        return next(s for s in SLOTS if s not in taken)

    def add_player(self, connection: Connection, name: str) -> int:
        slot = self._free_slot()
        # A spectator taking a seat stops watching
        self.spectators.discard(connection)
        self.players.append(Player(connection=connection, slot=slot, name=name))
        self.players.sort(key=lambda p: p.slot)
        logger.info("Player %s (%s) joined room %s", slot, name, self.room_id)

        connection.send("gameJoined", {
            "gameId": self.room_id,
            "playerNumber": slot,
            "playerName": name,
        })
        self._after_seat_taken()
        return slot

    def add_cpu(self, difficulty: Difficulty = Difficulty.HARD) -> int:
        slot = self._free_slot()
        self.cpu_difficulty = Difficulty(difficulty)
        name = f"CPU ({self.cpu_difficulty})"
        self.players.append(Player(connection=None, slot=slot, name=name, is_cpu=True))
        self.players.sort(key=lambda p: p.slot)
        logger.info("CPU seated in slot %s of room %s", slot, self.room_id)

        self._after_seat_taken()
        return slot

    def _after_seat_taken(self):
        self.broadcast("playersUpdated", {"players": [p.to_dict() for p in self.players]})
        if len(self.players) == len(SLOTS):
            self.start_game()

    def start_game(self):
        self._reset_board()
        self.status = RoomStatus.ACTIVE
        logger.info("Room %s started (%s)", self.room_id, self.game_type)

        for player in self.human_players:
            player.connection.send("gameStart", {
                "gameId": self.room_id,
                "playerNumber": player.slot,
                "gameType": str(self.game_type),
            })
        for spectator in list(self.spectators):
            spectator.send("gameStart", {
                "gameId": self.room_id,
                "playerNumber": None,
                "gameType": str(self.game_type),
            })

    def _reset_board(self):
        self.engine.reset()
        self.current_turn = 1
        self.winner = None
        self.rematch_votes.clear()

    def remove_player(self, connection: Connection) -> int:
        """Drops the seat owned by `connection`. Returns the number of human players left."""
        player = self.player_by_connection(connection)
        if player is None:
            return len(self.human_players)

        self.players.remove(player)
        self.rematch_votes.discard(player.slot)
        logger.info("Player %s (%s) left room %s", player.slot, player.name, self.room_id)

        if not self.human_players:
            # Nobody left to play against the CPU
            self.players.clear()
            return 0

        if self.status in (RoomStatus.ACTIVE, RoomStatus.FINISHED):
            self.status = RoomStatus.ABANDONED
        self.broadcast("playerDisconnected", {})
        self.broadcast("playersUpdated", {"players": [p.to_dict() for p in self.players]})
        return len(self.human_players)

    # --- spectators ---

    def add_spectator(self, connection: Connection):
        self.spectators.add(connection)
        logger.info("Spectator joined room %s (%d watching)", self.room_id, len(self.spectators))
        connection.send("spectatorJoined", self.snapshot())

    def remove_spectator(self, connection: Connection):
        self.spectators.discard(connection)

    def close(self) -> List[Connection]:
        """Ends the room for its spectators. Returns the detached connections."""
        detached = list(self.spectators)
        for spectator in detached:
            spectator.send("spectateEnded", {})
        self.spectators.clear()
        return detached

    # --- broadcast ---

    def broadcast(self, event: str, payload: dict, exclude: Optional[Connection] = None):
        """Sends to every human player and every spectator."""
        for player in self.human_players:
            if player.connection is not exclude:
                player.connection.send(event, payload)
        for spectator in list(self.spectators):
            if spectator is not exclude:
                spectator.send(event, payload)

    def _broadcast_turn(self):
        self.broadcast("turnUpdate", {
            "currentPlayer": self.current_turn,
            "playerColor": str(self.color_of(self.current_turn)),
        })

    # --- moves ---

    def _check_can_move(self, slot: int):
        if not self.is_active:
            raise InvalidMove("Game is not active")
        if slot != self.current_turn:
            raise NotYourTurn()

    def make_move(self, slot: int, col: int) -> int:
        """Connect Four drop. Returns the row the piece landed on."""
        if self.game_type != GameType.CONNECT4:
            raise InvalidMove("This room is not playing Connect Four")
        self._check_can_move(slot)

        row = self.engine.drop(col, slot)
        self.broadcast("moveMade", {"col": col, "player": slot, "row": row})

        if self.engine.check_win(row, col, slot):
            cells = self.engine.winning_cells(row, col, slot)
            self._finish(slot, [{"row": r, "col": c} for r, c in cells])
        elif self.engine.is_full():
            self._finish(None)
        else:
            self.current_turn = 2 if slot == 1 else 1
            self._broadcast_turn()
        return row

    def make_checkers_move(self, slot: int, from_square: Sequence[int], to_square: Sequence[int],
                           connection: Optional[Connection] = None) -> dict:
        if self.game_type != GameType.CHECKERS:
            raise InvalidMove("This room is not playing Checkers")
        self._check_can_move(slot)

        (from_row, from_col), (to_row, to_col) = from_square, to_square
        result = self.engine.apply_move(from_row, from_col, to_row, to_col, self.color_of(slot))

        if result.turn_over:
            self.current_turn = 2 if slot == 1 else 1

        relay = {
            "from": [from_row, from_col],
            "to": [to_row, to_col],
            "piece": result.piece.to_dict(),
            "captured": result.captured,
            "capturedSquare": list(result.captured_square) if result.captured_square else None,
            "king": result.promoted,
            "player": slot,
        }
        self.broadcast("checkersMoveMade", relay, exclude=connection)
        if connection is not None:
            connection.send("moveConfirmed", {"nextPlayer": self.current_turn})

        if result.turn_over and self.engine.loser(self.color_of(self.current_turn)) is not None:
            self._finish(slot, [])
        else:
            self._broadcast_turn()
        return relay

    def _finish(self, winner: Optional[int], winning_cells: Optional[List[Dict[str, int]]] = None):
        self.status = RoomStatus.FINISHED
        self.winner = winner
        self.rematch_votes.clear()

        if winner is None:
            logger.info("Room %s ended in a draw", self.room_id)
            self.broadcast("gameDraw", {})
        else:
            winner_player = self.player_by_slot(winner)
            logger.info("Room %s won by player %s (%s)", self.room_id, winner, winner_player.name)
            self.broadcast("gameWon", {
                "winner": winner,
                "winnerName": winner_player.name,
                "winningCells": winning_cells or [],
            })

        self.events.notify_complete(self, winner)

    # --- rematch ---

    def request_rematch(self, slot: int) -> bool:
        """Records a vote. Returns True when the vote restarted the game."""
        if self.status != RoomStatus.FINISHED or self.player_by_slot(slot) is None:
            return False

        self.rematch_votes.add(slot)
        cpu = self.cpu_player
        if cpu is not None:
            self.rematch_votes.add(cpu.slot)

        needed = len(SLOTS)
        self.broadcast("rematchVote", {"votes": len(self.rematch_votes), "needed": needed})

        if len(self.rematch_votes) < needed:
            return False

        self._reset_board()
        self.status = RoomStatus.ACTIVE
        logger.info("Rematch started in room %s", self.room_id)
        self.broadcast("rematchStarted", {})
        self._broadcast_turn()
        return True

    # --- chat ---

    def add_chat_message(self, slot: int, text: str) -> Optional[dict]:
        player = self.player_by_slot(slot)
        if player is None or player.is_cpu:
            return None
        text = text.strip()
        if not text:
            return None
        if len(text) > MAX_MESSAGE_LENGTH:
            raise MessageTooLong()

        entry = {
            "playerNumber": slot,
            "playerName": player.name,
            "message": text,
            "timestamp": now_ms(),
        }
        self.chat.append(entry)
        self.broadcast("chatMessage", entry)
        return entry

    def set_typing(self, slot: int, is_typing: bool):
        player = self.player_by_slot(slot)
        if player is None:
            return
        for other in self.human_players:
            if other.slot != slot:
                other.connection.send("typing", {
                    "playerNumber": slot,
                    "isTyping": is_typing,
                    "playerName": player.name,
                })

    # --- views ---

    def board_view(self) -> List[List[Any]]:
        if self.game_type == GameType.CONNECT4:
            return [row[:] for row in self.engine.board]
        return self.engine.to_matrix()

    def snapshot(self) -> dict:
        return {
            "gameId": self.room_id,
            "gameType": str(self.game_type),
            "board": self.board_view(),
            "players": [p.to_dict() for p in self.players],
            "currentPlayer": self.current_turn,
            "status": str(self.status),
            "winner": self.winner,
            "chat": list(self.chat),
            "spectatorCount": len(self.spectators),
        }

    def lobby_status(self) -> LobbyStatus:
        if len(self.players) < len(SLOTS):
            return LobbyStatus.WAITING
        if self.is_active:
            return LobbyStatus.PLAYING
        return LobbyStatus.FINISHED

    def summary(self) -> dict:
        host = self.player_by_slot(1) or (self.players[0] if self.players else None)
        opponent = next((p for p in self.players if p is not host), None)
        return {
            "id": self.room_id,
            "gameType": str(self.game_type),
            "hostName": host.name if host else None,
            "opponentName": opponent.name if opponent else None,
            "status": str(self.lobby_status()),
            "playerCount": len(self.players),
            "spectatorCount": len(self.spectators),
            "createdAt": self.created_at,
        }
