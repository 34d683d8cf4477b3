"""
CPU opponents.

Connect Four strategies are picked by difficulty:
  easy   -> random valid column
  medium -> win now, else block, else a centre column, else random
  hard   -> depth-6 minimax with alpha-beta pruning

Checkers uses a single light strategy: any capture, else a random move.
The engines are used as simulation oracles; nothing here does I/O.
"""

import logging
import math
import random
from typing import List, Optional, Tuple

from boardroom.app.engine.checkers import Checkers, CheckersMove
from boardroom.app.engine.connect_four import COLS, EMPTY, ROWS, ConnectFour
from boardroom.app.models.enums import Color, Difficulty

logger = logging.getLogger(__name__)

SEARCH_DEPTH = 6
WIN_SCORE = 1000
CENTER_COLUMN = COLS // 2
CENTER_COLUMNS = [2, 3, 4]

# Search centre columns first to maximize Alpha-Beta pruning efficiency
COLUMN_ORDER = [3, 2, 4, 1, 5, 0, 6]


def _build_windows() -> List[List[Tuple[int, int]]]:
    """Every 4-cell line on the board: horizontal, vertical, both diagonals."""
    windows = []
    for r in range(ROWS):
        for c in range(COLS - 3):
            windows.append([(r, c + i) for i in range(4)])
    for r in range(ROWS - 3):
        for c in range(COLS):
            windows.append([(r + i, c) for i in range(4)])
    for r in range(ROWS - 3):
        for c in range(COLS - 3):
            windows.append([(r + i, c + i) for i in range(4)])
    for r in range(3, ROWS):
        for c in range(COLS - 3):
            windows.append([(r - i, c + i) for i in range(4)])
    return windows


WINDOWS = _build_windows()


class ConnectFourCPU:
    def __init__(self, player_id: int, difficulty: Difficulty = Difficulty.HARD,
                 rng: Optional[random.Random] = None, depth: int = SEARCH_DEPTH):
        self.player_id = player_id
        self.opponent_id = 2 if player_id == 1 else 1
        self.difficulty = Difficulty(difficulty)
        self.depth = depth
        self.rng = rng or random.Random()

    def choose(self, game: ConnectFour) -> int:
        valid_moves = game.get_valid_moves()
        if not valid_moves:
            raise ValueError("No valid moves available")

        if self.difficulty == Difficulty.EASY:
            col = self.rng.choice(valid_moves)
        elif self.difficulty == Difficulty.MEDIUM:
            col = self._heuristic_move(game, valid_moves)
        else:
            col = self._best_minimax_move(game)

        logger.debug("CPU %s (%s) plays column %d on\n%s",
                     self.player_id, self.difficulty, col, game.get_visual_board())
        return col

    # --- medium ---

    def _winning_column(self, game: ConnectFour, valid_moves: List[int], player: int) -> Optional[int]:
        for col in valid_moves:
            row = game.drop(col, player)
            won = game.check_win(row, col, player)
            game.undo(col)
            if won:
                return col
        return None

    def _heuristic_move(self, game: ConnectFour, valid_moves: List[int]) -> int:
        # 1. Win
        col = self._winning_column(game, valid_moves, self.player_id)
        if col is not None:
            return col
        # 2. Block
        col = self._winning_column(game, valid_moves, self.opponent_id)
        if col is not None:
            return col
        # 3. Centre
        centre = [c for c in CENTER_COLUMNS if c in valid_moves]
        if centre:
            return self.rng.choice(centre)
        # 4. Anything
        return self.rng.choice(valid_moves)

    # --- hard ---

    def _best_minimax_move(self, game: ConnectFour) -> int:
        board = game.copy()
        alpha, beta = -math.inf, math.inf
        best_score = -math.inf
        best_col = None

        for col in COLUMN_ORDER:
            if not board.is_valid_move(col):
                continue
            row = board.drop(col, self.player_id)
            score = self._minimax(board, self.depth - 1, alpha, beta, False, (row, col, self.player_id))
            board.undo(col)

            if score > best_score:
                best_score = score
                best_col = col
            alpha = max(alpha, best_score)

        return best_col

    def _minimax(self, board: ConnectFour, depth: int, alpha: float, beta: float,
                 maximizing: bool, last: Tuple[int, int, int]) -> float:
        row, col, player = last
        if board.check_win(row, col, player):
            # Faster wins and slower losses score higher
            if player == self.player_id:
                return WIN_SCORE + depth
            return -WIN_SCORE - depth

        if depth == 0 or board.is_full():
            return self.evaluate(board)

        mover = self.player_id if maximizing else self.opponent_id
        if maximizing:
            value = -math.inf
            for c in COLUMN_ORDER:
                if not board.is_valid_move(c):
                    continue
                r = board.drop(c, mover)
                value = max(value, self._minimax(board, depth - 1, alpha, beta, False, (r, c, mover)))
                board.undo(c)
                alpha = max(alpha, value)
                if beta <= alpha:
                    break
            return value

        value = math.inf
        for c in COLUMN_ORDER:
            if not board.is_valid_move(c):
                continue
            r = board.drop(c, mover)
            value = min(value, self._minimax(board, depth - 1, alpha, beta, True, (r, c, mover)))
            board.undo(c)
            beta = min(beta, value)
            if beta <= alpha:
                break
        return value

    def evaluate(self, board: ConnectFour) -> int:
        """Positional score of a board from the CPU's point of view."""
        grid = board.board
        score = 0

        for window in WINDOWS:
            cells = [grid[r][c] for r, c in window]
            own = cells.count(self.player_id)
            opp = cells.count(self.opponent_id)
            empty = cells.count(EMPTY)

            if own == 4:
                score += 100
            elif opp == 4:
                score -= 100
            elif own == 3 and empty == 1:
                score += 10
            elif opp == 3 and empty == 1:
                # Blocking outweighs building
                score -= 80
            elif own == 2 and empty == 2:
                score += 2
            elif opp == 2 and empty == 2:
                score -= 2

        for r in range(ROWS):
            if grid[r][CENTER_COLUMN] == self.player_id:
                score += 3
            elif grid[r][CENTER_COLUMN] == self.opponent_id:
                score -= 3

        return score


def choose_checkers_move(game: Checkers, color: Color, rng: Optional[random.Random] = None) -> Optional[CheckersMove]:
    """Any capture first, otherwise a uniformly random legal move. None when stuck."""
    rng = rng or random.Random()
    moves = game.moves_for_color(color)
    if not moves:
        return None
    captures = [m for m in moves if m.is_capture]
    return rng.choice(captures or moves)
