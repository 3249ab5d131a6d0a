"""
zobrist.py - Zobrist fingerprints for Connect Four grids

A fingerprint is the XOR of one random 64-bit key per occupied cell, chosen by
(row, col, occupant). Keys come from a seeded numpy generator, so equal grids
always hash to the same value, in this process and the next.

The fingerprint is always recomputed from the grid rather than updated move by
move: the search mutates the board through many nested simulations and a value
derived from the grid alone cannot drift out of sync with it.
"""

import numpy as np

from connect4engine.utils import ROWS, COLS, Player


class ZobristHasher:
    """Computes 64-bit fingerprints of a grid."""

    def __init__(self, rows: int = ROWS, cols: int = COLS, seed: int = 42):
        """
        Args:
            rows: Number of rows of the grids to hash
            cols: Number of columns of the grids to hash
            seed: Seed for the key generator
        """
        self.rows = rows
        self.cols = cols
        rng = np.random.default_rng(seed)

        # keys[row, col, occupant]; occupant 0 (empty) keeps a zero key so
        # empty cells never change the fingerprint
        self.keys = rng.integers(1, 2 ** 64, size=(rows, cols, 3), dtype=np.uint64, endpoint=False)
        self.keys[:, :, Player.EMPTY.value] = 0

        self._row_index, self._col_index = np.indices((rows, cols))

    def hash_grid(self, grid: np.ndarray) -> int:
        """
        Fingerprint of a grid whose cells hold Player values (0, 1, 2).

        Raises:
            ValueError: if the grid shape does not match the hasher
        """
        if grid.shape != (self.rows, self.cols):
            raise ValueError(f"Expected a {self.rows}x{self.cols} grid, got {grid.shape}")
        selected = self.keys[self._row_index, self._col_index, grid]
        return int(np.bitwise_xor.reduce(selected.ravel()))
