"""
evaluation.py - Win detection, static evaluation and greedy move choice

The Evaluator is the leaf of the engine: every other component asks it whether
a player has connected four, how good a position is, and which columns are
playable. All scans work on boolean masks of the numpy grid, so a check costs a
handful of array operations rather than a Python loop per cell.

Static evaluation (from `player`'s point of view):

    quadrants      the grid is split at the middle row and column; each piece
                   is worth +10 (own) / -10 (opponent), +-5 more in the center
                   column; quadrant totals are weighted 1, 2, 2, 3
                   (top-left, top-right, bottom-left, bottom-right)
    connectivity   +50 per 3-in-a-row and +10 per 2-in-a-row of `player`,
                   each pattern counted once per (start cell, direction)
"""

from typing import List, Protocol, Sequence

import numpy as np

from connect4engine.debug import debug
from connect4engine.game.board import Board
from connect4engine.utils import (CONNECT_N, NO_MOVE, Player, InvalidRangeError,
                                  DIRECTION_VECTORS)

# Quadrant weights: top-left, top-right, bottom-left, bottom-right
QUADRANT_WEIGHTS = (1, 2, 2, 3)
PIECE_SCORE = 10
CENTER_BONUS = 5
THREE_BONUS = 50
TWO_BONUS = 10
GREEDY_WIN_SCORE = 100_000


class WinChecker(Protocol):
    """Anything that can tell whether a player has connected four."""

    def check_win(self, player: Player) -> bool:
        ...


def line_starts(mask: np.ndarray, length: int, dr: int, dc: int) -> np.ndarray:
    """
    Boolean array marking the start cells of `length` consecutive True cells
    in direction (dr, dc).

    The result is indexed relative to the first valid start row/column, so only
    its count and any() are meaningful to callers.
    """
    rows, cols = mask.shape
    span = length - 1
    if dr < 0:
        r0, r1 = span, rows
    else:
        r0, r1 = 0, rows - span * dr
    c1 = cols - span * dc
    if r1 <= r0 or c1 <= 0:
        return np.zeros((0, 0), dtype=bool)

    run = mask[r0:r1, :c1].copy()
    for i in range(1, length):
        run &= mask[r0 + i * dr:r1 + i * dr, i * dc:c1 + i * dc]
    return run


class Evaluator:
    """Win detection, static position scoring and the greedy move combinator."""

    def __init__(self, board: Board):
        self.board = board

    # ------------------------------------------------------------------
    # Win detection
    # ------------------------------------------------------------------

    def check_win(self, player: Player) -> bool:
        """
        True if `player` has four in a row anywhere on the board.

        Directions are scanned horizontal, vertical, diagonal-down, diagonal-up,
        stopping at the first hit.
        """
        mask = self.board.grid == player.value
        for dr, dc in DIRECTION_VECTORS.values():
            if line_starts(mask, CONNECT_N, dr, dc).any():
                return True
        return False

    def is_winning_move(self, player: Player, col: int) -> bool:
        """Would dropping a piece in `col` win for `player`? False for NO_MOVE or full columns."""
        if col == NO_MOVE or not self.board.is_playable(col):
            return False
        with self.board.simulate(col, player):
            return self.check_win(player)

    # ------------------------------------------------------------------
    # Static evaluation
    # ------------------------------------------------------------------

    def count_connected(self, player: Player, length: int) -> int:
        """
        Number of distinct `length`-in-a-row patterns of `player`, one per
        (start cell, direction) across the four directions.
        """
        mask = self.board.grid == player.value
        return sum(int(np.count_nonzero(line_starts(mask, length, dr, dc)))
                   for dr, dc in DIRECTION_VECTORS.values())

    def quadrant_scores(self, player: Player) -> List[int]:
        """Raw (unweighted) scores of the four quadrants."""
        grid = self.board.grid
        rows, cols = grid.shape
        mid_r, mid_c = rows // 2, cols // 2

        sign = (grid == player.value).astype(int) - (grid == player.other().value).astype(int)
        cell_scores = sign * PIECE_SCORE
        cell_scores[:, cols // 2] += sign[:, cols // 2] * CENTER_BONUS

        return [
            int(cell_scores[:mid_r, :mid_c].sum()),
            int(cell_scores[:mid_r, mid_c:].sum()),
            int(cell_scores[mid_r:, :mid_c].sum()),
            int(cell_scores[mid_r:, mid_c:].sum()),
        ]

    def evaluate_position(self, player: Player) -> int:
        """
        Heuristic score of the current position for `player`.

        Weighted quadrant material plus the connectivity bonus for `player`'s
        own 3- and 2-in-a-row patterns.
        """
        quadrants = self.quadrant_scores(player)
        score = sum(w * q for w, q in zip(QUADRANT_WEIGHTS, quadrants))
        score += THREE_BONUS * self.count_connected(player, 3)
        score += TWO_BONUS * self.count_connected(player, 2)
        return score

    # ------------------------------------------------------------------
    # Move enumeration
    # ------------------------------------------------------------------

    def find_valid_moves(self, start: int = 0, end: int = None) -> List[int]:
        """
        Playable columns in the inclusive range [start, end], center first.

        The range is split into left, center and right thirds; each third is
        resolved the same way and the results are merged center, left, right.
        On a 7-column board this yields 3, 2, 4, 0, 1, 5, 6.

        Raises:
            InvalidRangeError: if the range is out of bounds or inverted
        """
        cols = self.board.cols
        if end is None:
            end = cols - 1
        if start < 0 or end >= cols or start > end:
            raise InvalidRangeError(f"Invalid range [{start},{end}] for board with {cols} columns")
        return self._valid_moves_center_first(start, end)

    def _valid_moves_center_first(self, start: int, end: int) -> List[int]:
        if start > end:
            return []
        if end - start + 1 <= 2:
            return [c for c in range(start, end + 1) if self.board.is_playable(c)]

        third = (end - start + 1) // 3
        left_end = start + third - 1
        right_start = end - third + 1

        left = self._valid_moves_center_first(start, left_end)
        center = self._valid_moves_center_first(left_end + 1, right_start - 1)
        right = self._valid_moves_center_first(right_start, end)
        return center + left + right

    # ------------------------------------------------------------------
    # Greedy move choice
    # ------------------------------------------------------------------

    def score_move(self, player: Player, col: int) -> int:
        """Score of the position after `player` drops into `col`; a win scores GREEDY_WIN_SCORE."""
        with self.board.simulate(col, player):
            if self.check_win(player):
                return GREEDY_WIN_SCORE
            return self.evaluate_position(player)

    def find_best_move_greedy(self, player: Player, columns: Sequence[int]) -> int:
        """
        Pick a column from `columns` by recursive halving.

        Each half nominates its best column. A nominee that wins outright is
        returned immediately (the right half is never looked at if the left one
        wins); otherwise the nominee with the higher score_move() is kept, the
        left one on ties.

        Returns:
            The chosen column, or NO_MOVE if no candidate is playable
        """
        if not columns:
            return NO_MOVE
        best = self._greedy(player, list(columns), 0, len(columns) - 1)
        debug.debug(f"Greedy choice for {player.name} among {list(columns)}: {best}", "eval")
        return best

    def _greedy(self, player: Player, columns: List[int], start: int, end: int) -> int:
        if start > end:
            return NO_MOVE
        if start == end:
            return columns[start] if self.board.is_playable(columns[start]) else NO_MOVE

        mid = start + (end - start) // 2
        left_best = self._greedy(player, columns, start, mid)
        if self.is_winning_move(player, left_best):
            return left_best

        right_best = self._greedy(player, columns, mid + 1, end)
        if self.is_winning_move(player, right_best):
            return right_best

        return self._choose_better(player, left_best, right_best)

    def _choose_better(self, player: Player, first: int, second: int) -> int:
        if first == NO_MOVE:
            return second
        if second == NO_MOVE:
            return first
        return first if self.score_move(player, first) >= self.score_move(player, second) else second
