"""
move_ordering.py - Killer and history heuristics for alpha-beta move ordering

Good ordering decides how much alpha-beta can prune. Moves are sorted by a
composite key, each level only breaking ties in the one before it:

    1. threat score    (descending) what the move builds for the mover
    2. block score     (descending) what the move takes away from the opponent
    3. killer priority (descending) moves that recently refuted siblings
    4. history score   (descending) moves that did well anywhere in the tree
    5. center distance (ascending)

Threat and block scores are supplied by the caller; the moderate and hard
tiers score them differently.
"""

from typing import Callable, List, Sequence

import numpy as np

from connect4engine.utils import NO_MOVE, Player, center_distance

KILLER_BASE = 1000


class MoveOrdering:
    """Killer-move table (one slot per ply) and history table (column x player)."""

    def __init__(self, cols: int, max_ply: int = 32, history_cap: int = 10):
        """
        Args:
            cols: Board width
            max_ply: Number of plies tracked by the killer table
            history_cap: History increments are capped at 1 << history_cap
        """
        self.cols = cols
        self.max_ply = max_ply
        self.history_cap = history_cap
        self.killer_moves = [NO_MOVE] * max_ply
        self.history = np.zeros((cols, 2), dtype=np.int64)

    def reset(self):
        """Forget all killers and history (before a fresh search)."""
        self.killer_moves = [NO_MOVE] * self.max_ply
        self.history.fill(0)

    def record_killer(self, col: int, ply: int):
        if 0 <= ply < self.max_ply:
            self.killer_moves[ply] = col

    def record_history(self, col: int, player: Player, depth: int):
        if 0 <= col < self.cols and player != Player.EMPTY:
            self.history[col, player.value - 1] += 1 << min(max(depth, 0), self.history_cap)

    def killer_priority(self, col: int) -> int:
        """KILLER_BASE minus the shallowest ply holding `col` as its killer, 0 if none."""
        for ply, killer in enumerate(self.killer_moves):
            if killer == col:
                return KILLER_BASE - ply
        return 0

    def history_score(self, col: int) -> int:
        if 0 <= col < self.cols:
            return int(self.history[col].sum())
        return 0

    def order_moves(self, moves: Sequence[int],
                    threat_score: Callable[[int], int],
                    block_score: Callable[[int], int]) -> List[int]:
        """Return `moves` sorted best first by the composite key."""
        def sort_key(col: int):
            return (-threat_score(col), -block_score(col), -self.killer_priority(col),
                    -self.history_score(col), center_distance(col, self.cols))

        return sorted(moves, key=sort_key)
