"""
Checkers rules engine.

8x8 board, only dark squares ((row + col) odd) are playable.
BLACK starts on rows 0-2 and moves down the board (increasing row),
RED starts on rows 5-7 and moves up (decreasing row). A piece reaching
the far row is crowned and stays a king.

Captures are not compulsory, except while a chained capture is pending:
a piece that captured and can capture again must keep capturing, and the
turn does not pass until it can't. A man crowned by a capture stops there.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from boardroom.app.core.errors import InvalidMove
from boardroom.app.models.enums import Color

logger = logging.getLogger(__name__)

SIZE = 8
START_ROWS = {Color.BLACK: (0, 1, 2), Color.RED: (5, 6, 7)}
FORWARD = {Color.RED: -1, Color.BLACK: 1}
PROMOTION_ROW = {Color.RED: 0, Color.BLACK: SIZE - 1}

Square = Tuple[int, int]


def opponent_of(color: Color) -> Color:
    return Color.BLACK if color == Color.RED else Color.RED


@dataclass
class Piece:
    color: Color
    king: bool = False

    def to_dict(self) -> dict:
        return {"color": str(self.color), "king": self.king}


@dataclass(frozen=True)
class CheckersMove:
    from_square: Square
    to_square: Square
    is_capture: bool


@dataclass
class MoveResult:
    piece: Piece
    captured: bool
    promoted: bool
    captured_square: Optional[Square]
    turn_over: bool


class Checkers:
    def __init__(self):
        self.board: List[List[Optional[Piece]]] = []
        # Square of the piece that must continue a capture chain, if any
        self.chain_square: Optional[Square] = None
        self.reset()

    def reset(self):
        self.board = [[None for _ in range(SIZE)] for _ in range(SIZE)]
        self.chain_square = None
        for color, rows in START_ROWS.items():
            for r in rows:
                for c in range(SIZE):
                    if self.is_playable(r, c):
                        self.board[r][c] = Piece(color)

    @staticmethod
    def is_playable(row: int, col: int) -> bool:
        return 0 <= row < SIZE and 0 <= col < SIZE and (row + col) % 2 == 1

    def piece_at(self, row: int, col: int) -> Optional[Piece]:
        if not (0 <= row < SIZE and 0 <= col < SIZE):
            return None
        return self.board[row][col]

    def piece_count(self, color: Color) -> int:
        return sum(1 for row in self.board for p in row if p is not None and p.color == color)

    def _directions(self, piece: Piece) -> List[Tuple[int, int]]:
        if piece.king:
            return [(-1, -1), (-1, 1), (1, -1), (1, 1)]
        dr = FORWARD[piece.color]
        return [(dr, -1), (dr, 1)]

    def _candidates(self, row: int, col: int) -> List[CheckersMove]:
        """Every simple move and capture of the piece, ignoring the chain lock."""
        piece = self.piece_at(row, col)
        if piece is None:
            return []

        moves = []
        for dr, dc in self._directions(piece):
            step = (row + dr, col + dc)
            jump = (row + 2 * dr, col + 2 * dc)
            if self.is_playable(*step) and self.piece_at(*step) is None:
                moves.append(CheckersMove((row, col), step, False))
            elif self.is_playable(*jump) and self.piece_at(*jump) is None:
                jumped = self.piece_at(*step)
                if jumped is not None and jumped.color != piece.color:
                    moves.append(CheckersMove((row, col), jump, True))
        return moves

    def moves_for_piece(self, row: int, col: int) -> List[CheckersMove]:
        """Destinations for one piece, restricted to captures of the chaining piece mid-chain."""
        if self.chain_square is not None:
            if (row, col) != self.chain_square:
                return []
            return [m for m in self._candidates(row, col) if m.is_capture]
        return self._candidates(row, col)

    def moves_for_color(self, color: Color) -> List[CheckersMove]:
        moves = []
        for r in range(SIZE):
            for c in range(SIZE):
                piece = self.board[r][c]
                if piece is not None and piece.color == color:
                    moves.extend(self.moves_for_piece(r, c))
        return moves

    def is_legal_move(self, from_row: int, from_col: int, to_row: int, to_col: int, mover: Color) -> bool:
        piece = self.piece_at(from_row, from_col)
        if piece is None or piece.color != mover:
            return False
        if not self.is_playable(to_row, to_col) or self.piece_at(to_row, to_col) is not None:
            return False
        return any(m.to_square == (to_row, to_col) for m in self.moves_for_piece(from_row, from_col))

    def apply_move(self, from_row: int, from_col: int, to_row: int, to_col: int, mover: Color) -> MoveResult:
        if not self.is_legal_move(from_row, from_col, to_row, to_col, mover):
            raise InvalidMove(
                f"Illegal move {(from_row, from_col)} -> {(to_row, to_col)} for {mover}"
            )

        piece = self.board[from_row][from_col]
        self.board[from_row][from_col] = None
        self.board[to_row][to_col] = piece

        captured_square = None
        if abs(to_row - from_row) == 2:
            captured_square = ((from_row + to_row) // 2, (from_col + to_col) // 2)
            self.board[captured_square[0]][captured_square[1]] = None

        promoted = False
        if not piece.king and to_row == PROMOTION_ROW[piece.color]:
            piece.king = True
            promoted = True

        # A capture that can be followed by another keeps the turn; crowning ends it
        self.chain_square = None
        turn_over = True
        if captured_square is not None and not promoted:
            if any(m.is_capture for m in self._candidates(to_row, to_col)):
                self.chain_square = (to_row, to_col)
                turn_over = False

        return MoveResult(
            piece=piece,
            captured=captured_square is not None,
            promoted=promoted,
            captured_square=captured_square,
            turn_over=turn_over,
        )

    def loser(self, to_move: Color) -> Optional[Color]:
        """The side to move loses when it has no pieces or no legal move."""
        if self.piece_count(to_move) == 0 or not self.moves_for_color(to_move):
            return to_move
        return None

    def to_matrix(self) -> List[List[Optional[dict]]]:
        return [[p.to_dict() if p else None for p in row] for row in self.board]
