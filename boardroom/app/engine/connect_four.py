import logging
from typing import List, Optional, Tuple

from boardroom.app.core.errors import ColumnFull, InvalidMove

# Logger setup
logger = logging.getLogger(__name__)

ROWS = 6
COLS = 7
EMPTY = 0

# Directions: Horizontal, Vertical, Diagonal \, Diagonal /
DIRECTIONS = [(0, 1), (1, 0), (1, 1), (1, -1)]

class ConnectFour:
    def __init__(self):
        """
        Board uses (row, col) indexing.
        Row 0 is the TOP of the board.
        Row 5 is the BOTTOM of the board.
        Values: 0=Empty, 1=Player1, 2=Player2
        """
        self.board = [[EMPTY for _ in range(COLS)] for _ in range(ROWS)]

    def reset(self):
        self.board = [[EMPTY for _ in range(COLS)] for _ in range(ROWS)]

    def copy(self) -> "ConnectFour":
        clone = ConnectFour()
        clone.board = [row[:] for row in self.board]
        return clone

    def get_valid_moves(self) -> List[int]:
        """Returns a list of column indices (0-6) that are not full."""
        return [c for c in range(COLS) if self.board[0][c] == EMPTY]

    def is_valid_move(self, col: int) -> bool:
        if col < 0 or col >= COLS:
            return False
        return self.board[0][col] == EMPTY

    def lowest_empty_row(self, col: int) -> Optional[int]:
        """Scans the column bottom-up. None means the column is full."""
        for r in range(ROWS - 1, -1, -1):
            if self.board[r][col] == EMPTY:
                return r
        return None

    def drop(self, col: int, player: int) -> int:
        """
        Drops a piece for `player` into the column and returns the row it landed on.
        Turn order is the caller's business.
        """
        if col < 0 or col >= COLS:
            raise InvalidMove(f"Invalid column: {col}")

        # Gravity: Find the lowest empty row
        row = self.lowest_empty_row(col)
        if row is None:
            raise ColumnFull(f"Column {col} is full")

        self.board[row][col] = player
        return row

    def undo(self, col: int):
        """Removes the top piece of a column (search simulation only)."""
        for r in range(ROWS):
            if self.board[r][col] != EMPTY:
                self.board[r][col] = EMPTY
                return

    def _run(self, r: int, c: int, player: int, dr: int, dc: int) -> List[Tuple[int, int]]:
        """Contiguous same-player cells along one axis: origin, positive side, negative side."""
        cells = [(r, c)]
        # Check positive direction
        nr, nc = r + dr, c + dc
        while 0 <= nr < ROWS and 0 <= nc < COLS and self.board[nr][nc] == player:
            cells.append((nr, nc))
            nr, nc = nr + dr, nc + dc
        # Check negative direction
        nr, nc = r - dr, c - dc
        while 0 <= nr < ROWS and 0 <= nc < COLS and self.board[nr][nc] == player:
            cells.append((nr, nc))
            nr, nc = nr - dr, nc - dc
        return cells

    def check_win(self, r: int, c: int, player: int) -> bool:
        """Checks for 4-in-a-row through the placed piece."""
        return any(len(self._run(r, c, player, dr, dc)) >= 4 for dr, dc in DIRECTIONS)

    def winning_cells(self, r: int, c: int, player: int) -> List[Tuple[int, int]]:
        """
        Returns the run that produced the win, first matching axis in order
        horizontal, vertical, diagonal \\, diagonal /. Empty if there is no win.
        """
        for dr, dc in DIRECTIONS:
            cells = self._run(r, c, player, dr, dc)
            if len(cells) >= 4:
                return cells
        return []

    def is_full(self) -> bool:
        """Top row full means board full (gravity)."""
        return all(self.board[0][c] != EMPTY for c in range(COLS))

    # --- Formatting for debug logs ---

    def get_visual_board(self) -> str:
        """Generates an ASCII grid representation."""
        symbols = {0: ".", 1: "X", 2: "O"}
        header = " " + " ".join([str(i) for i in range(COLS)])
        rows_str = []
        for r in range(ROWS):
            row_cells = [symbols[self.board[r][c]] for c in range(COLS)]
            rows_str.append("|" + "|".join(row_cells) + "|")
        return header + "\n" + "\n".join(rows_str)
