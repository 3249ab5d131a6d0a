"""
utils.py - Constants, enumerations and helpers shared by the Connect Four engine

This module provides the board constants, player/result/direction enumerations,
the error types raised on illegal board operations and a few small helpers
(ASCII rendering, center distance, brute-force win checks) used throughout the
engine.
"""

from enum import Enum, auto
from typing import List, Tuple

import numpy as np

# Game constants
ROWS = 6
COLS = 7
CONNECT_N = 4  # Number of pieces in a row to win

# Returned by every move-selection entry point when no legal move exists
NO_MOVE = -1


class InvalidMoveError(ValueError):
    """Raised when a piece is inserted into or removed from an illegal column."""


class InvalidRangeError(ValueError):
    """Raised when a column range is out of bounds or inverted."""


class Player(Enum):
    """Enumeration representing players and cell states."""
    EMPTY = 0
    ONE = 1    # First player
    TWO = 2    # Second player

    def other(self) -> 'Player':
        """Get the other player."""
        if self == Player.ONE:
            return Player.TWO
        elif self == Player.TWO:
            return Player.ONE
        return Player.EMPTY

    def __str__(self):
        if self == Player.EMPTY:
            return " "
        elif self == Player.ONE:
            return "X"
        else:
            return "O"


class GameResult(Enum):
    """Enumeration representing the game outcome."""
    IN_PROGRESS = auto()
    PLAYER_ONE_WIN = auto()
    PLAYER_TWO_WIN = auto()
    DRAW = auto()

    def is_game_over(self) -> bool:
        """Check if the game is over."""
        return self != GameResult.IN_PROGRESS

    @staticmethod
    def win_for(player: Player) -> 'GameResult':
        """The result recorded when `player` connects four."""
        return GameResult.PLAYER_ONE_WIN if player == Player.ONE else GameResult.PLAYER_TWO_WIN


class Direction(Enum):
    """Enumeration representing directions for win checking."""
    HORIZONTAL = auto()
    VERTICAL = auto()
    DIAGONAL_DOWN = auto()  # Diagonal from top-left to bottom-right
    DIAGONAL_UP = auto()  # Diagonal from bottom-left to top-right


# Direction vectors (row, col) for each direction, in win-scan order
DIRECTION_VECTORS = {
    Direction.HORIZONTAL: (0, 1),
    Direction.VERTICAL: (1, 0),
    Direction.DIAGONAL_DOWN: (1, 1),
    Direction.DIAGONAL_UP: (-1, 1),
}


def center_column(cols: int = COLS) -> int:
    """Index of the center column (the left-center one for even widths)."""
    return cols // 2


def center_distance(col: int, cols: int = COLS) -> int:
    """Distance of a column from the center column (0 = center)."""
    return abs(col - center_column(cols))


def center_first(columns: List[int], cols: int = COLS) -> List[int]:
    """Sort columns by distance from center, keeping left-to-right order on ties."""
    return sorted(columns, key=lambda c: center_distance(c, cols))


def is_valid_position(grid: np.ndarray, row: int, col: int) -> bool:
    """
    Check if a position is within the grid boundaries.

    Args:
        grid: The game grid
        row: Row index
        col: Column index

    Returns:
        True if position is valid, False otherwise
    """
    rows, cols = grid.shape
    return 0 <= row < rows and 0 <= col < cols


def check_win_at_position(grid: np.ndarray, row: int, col: int) -> bool:
    """
    Check if the piece at the given position is part of a connect-four.

    Args:
        grid: The game grid
        row: Row index of the piece
        col: Column index of the piece

    Returns:
        True if the piece completes a line of CONNECT_N, False otherwise
    """
    player_value = grid[row, col]
    if player_value == Player.EMPTY.value:
        return False

    for dr, dc in DIRECTION_VECTORS.values():
        count = 1  # The piece itself

        r, c = row + dr, col + dc
        while is_valid_position(grid, r, c) and grid[r, c] == player_value:
            count += 1
            r += dr
            c += dc

        r, c = row - dr, col - dc
        while is_valid_position(grid, r, c) and grid[r, c] == player_value:
            count += 1
            r -= dr
            c -= dc

        if count >= CONNECT_N:
            return True

    return False


def render_board_ascii(grid: np.ndarray) -> str:
    """
    Render the grid as ASCII art.

    Args:
        grid: The game grid

    Returns:
        ASCII representation of the board
    """
    rows, cols = grid.shape
    border = "|" + "-" * (cols * 2 - 1) + "|"
    symbols = {Player.EMPTY.value: " ", Player.ONE.value: "X", Player.TWO.value: "O"}

    result = [border]
    for row in range(rows):
        result.append("|" + " ".join(symbols[int(cell)] for cell in grid[row]) + "|")
    result.append(border)
    result.append("|" + " ".join(str(i % 10) for i in range(cols)) + "|")

    return "\n".join(result)


def parse_position(text: str, rows: int = ROWS, cols: int = COLS) -> np.ndarray:
    """
    Parse a comma-separated list of rows*cols cell values (row-major, top row first).

    Raises:
        ValueError: if the string has the wrong length or unknown cell values
    """
    values = [int(v) for v in text.split(',')]
    if len(values) != rows * cols:
        raise ValueError(f"Position string must have {rows * cols} values, got {len(values)}")
    if any(v not in (0, 1, 2) for v in values):
        raise ValueError("Cell values must be 0 (empty), 1 or 2")
    return np.array(values, dtype=int).reshape(rows, cols)


def parse_move_list(text: str) -> List[int]:
    """Parse a move sequence such as "3,3,4,2" or "3342" into column indices."""
    text = text.strip()
    if not text:
        return []
    if ',' in text:
        return [int(v) for v in text.split(',')]
    return [int(ch) for ch in text]


def count_pieces(grid: np.ndarray) -> Tuple[int, int]:
    """Number of pieces of Player.ONE and Player.TWO on the grid."""
    return (int(np.count_nonzero(grid == Player.ONE.value)),
            int(np.count_nonzero(grid == Player.TWO.value)))
