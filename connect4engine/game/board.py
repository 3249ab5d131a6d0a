"""
board.py - Board representation and column-drop mechanics for Connect Four

This module implements the Board class. It plays two roles:

1. The low-level board contract the search engine relies on: dimensions(),
   cell_at(), is_playable(), insert(), remove(), is_full() and the simulate()
   trial move that pairs an insert with its undo.
2. Game bookkeeping for interactive play: make_move()/undo_move() keep track
   of the player to move, the move list and the game result.

The engine never copies the grid. Every trial move inserts a piece, descends and
removes it again, so insert() followed by remove() on the same column must
restore the grid exactly.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

import numpy as np

from connect4engine.debug import debug
from connect4engine.utils import (ROWS, COLS, CONNECT_N, Player, GameResult,
                                  DIRECTION_VECTORS, InvalidMoveError,
                                  check_win_at_position, is_valid_position,
                                  render_board_ascii)


class Board:
    """
    Represents a Connect Four game board.

    Row 0 is the top of the grid; pieces drop towards row `rows - 1`.
    """

    def __init__(self, rows: int = ROWS, cols: int = COLS):
        """Initialize an empty board."""
        if rows < CONNECT_N or cols < CONNECT_N:
            raise ValueError(f"Board must be at least {CONNECT_N}x{CONNECT_N}, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self.reset()

    def reset(self):
        """Reset the board to an empty state."""
        debug.debug("Resetting board", "board")
        self.grid = np.zeros((self.rows, self.cols), dtype=int)
        self.moves_made: List[int] = []
        self.current_player = Player.ONE
        self.game_result = GameResult.IN_PROGRESS
        self.last_move: Optional[Tuple[int, int]] = None

    @classmethod
    def from_grid(cls, grid: np.ndarray, current_player: Optional[Player] = None) -> 'Board':
        """
        Build a board from an existing grid of cell values.

        The player to move defaults to whoever has fewer pieces (Player.ONE on ties).
        The grid is copied; move history is not reconstructed.
        """
        grid = np.asarray(grid, dtype=int)
        board = cls(*grid.shape)
        board.grid = grid.copy()
        if current_player is None:
            ones = np.count_nonzero(grid == Player.ONE.value)
            twos = np.count_nonzero(grid == Player.TWO.value)
            current_player = Player.ONE if ones <= twos else Player.TWO
        board.current_player = current_player
        return board

    def copy(self) -> 'Board':
        """
        Create a deep copy of the current board.

        Returns:
            A new Board instance with the same state
        """
        debug.trace("Creating board copy", "board")
        new_board = Board(self.rows, self.cols)
        new_board.grid = self.grid.copy()
        new_board.moves_made = self.moves_made.copy()
        new_board.current_player = self.current_player
        new_board.game_result = self.game_result
        new_board.last_move = self.last_move
        return new_board

    # ------------------------------------------------------------------
    # Engine-facing board contract
    # ------------------------------------------------------------------

    def dimensions(self) -> Tuple[int, int]:
        return self.rows, self.cols

    def cell_at(self, row: int, col: int) -> Player:
        return Player(int(self.grid[row, col]))

    def is_playable(self, col: int) -> bool:
        """True if `col` is on the board and its top cell is empty."""
        return 0 <= col < self.cols and self.grid[0, col] == Player.EMPTY.value

    def is_full(self) -> bool:
        return not np.any(self.grid[0] == Player.EMPTY.value)

    def drop_row(self, col: int) -> int:
        """Row a piece dropped into `col` would land on, or -1 if the column is full."""
        empty = np.flatnonzero(self.grid[:, col] == Player.EMPTY.value)
        return int(empty[-1]) if empty.size else -1

    def insert(self, col: int, player: Player) -> int:
        """
        Drop a piece for `player` into `col`.

        Returns:
            The row the piece landed on

        Raises:
            InvalidMoveError: if the column is out of range or full
        """
        if not 0 <= col < self.cols:
            raise InvalidMoveError(f"Column {col} out of bounds (0-{self.cols - 1})")
        row = self.drop_row(col)
        if row < 0:
            raise InvalidMoveError(f"Column {col} is full")
        self.grid[row, col] = player.value
        return row

    def remove(self, col: int) -> int:
        """
        Clear the topmost piece in `col`. Only valid as the undo of the most
        recent insert() into that column.

        Returns:
            The row that was cleared

        Raises:
            InvalidMoveError: if the column is out of range or empty
        """
        if not 0 <= col < self.cols:
            raise InvalidMoveError(f"Column {col} out of bounds (0-{self.cols - 1})")
        occupied = np.flatnonzero(self.grid[:, col] != Player.EMPTY.value)
        if not occupied.size:
            raise InvalidMoveError(f"Column {col} is empty, nothing to remove")
        row = int(occupied[0])
        self.grid[row, col] = Player.EMPTY.value
        return row

    @contextmanager
    def simulate(self, col: int, player: Player) -> Iterator[int]:
        """
        Temporarily drop a piece; the piece is removed when the block exits,
        whether it exits normally or by an exception.

            with board.simulate(3, Player.ONE) as row:
                ...
        """
        row = self.insert(col, player)
        try:
            yield row
        finally:
            self.remove(col)

    # ------------------------------------------------------------------
    # Game bookkeeping
    # ------------------------------------------------------------------

    def is_valid_move(self, column: int) -> bool:
        """
        Check if a move is valid for the game in progress.

        Args:
            column: The column to place a piece (0-indexed)

        Returns:
            True if the move is valid, False otherwise
        """
        if self.game_result.is_game_over():
            debug.debug(f"Invalid move: game is over (result: {self.game_result})", "board")
            return False

        if not self.is_playable(column):
            debug.debug(f"Invalid move: column {column} is out of bounds or full", "board")
            return False

        return True

    def get_valid_moves(self) -> List[int]:
        """
        Get a list of valid columns where a piece can be placed.

        Returns:
            List of valid column indices, left to right
        """
        if self.game_result.is_game_over():
            return []

        return [col for col in range(self.cols) if self.is_playable(col)]

    def make_move(self, column: int) -> bool:
        """
        Place a piece for the current player in the specified column.

        Args:
            column: The column to place a piece (0-indexed)

        Returns:
            True if the move was successful, False otherwise
        """
        debug.debug(f"Attempting move in column {column} for player {self.current_player}", "board")

        if not self.is_valid_move(column):
            return False

        row = self.insert(column, self.current_player)
        self.last_move = (row, column)
        self.moves_made.append(column)
        debug.trace(f"Placed piece at position ({row}, {column})", "board")

        if check_win_at_position(self.grid, row, column):
            self.game_result = GameResult.win_for(self.current_player)
            debug.info(f"Player {self.current_player.name} wins after move at {self.last_move}", "board")
        elif self.is_full():
            self.game_result = GameResult.DRAW
            debug.info("Game ends in a draw", "board")
        else:
            self.current_player = self.current_player.other()

        return True

    def undo_move(self) -> bool:
        """
        Undo the last move made with make_move().

        Returns:
            True if a move was undone, False if no moves to undo
        """
        if not self.moves_made:
            debug.debug("No moves to undo", "board")
            return False

        last_column = self.moves_made.pop()
        row = self.remove(last_column)
        debug.debug(f"Undoing move at ({row}, {last_column})", "board")

        # The mover of the undone piece is to move again. make_move() leaves
        # current_player on the winner when the game ends, so only switch back
        # when the undone move did not end the game.
        if not self.game_result.is_game_over():
            self.current_player = self.current_player.other()
        self.game_result = GameResult.IN_PROGRESS

        if self.moves_made:
            col = self.moves_made[-1]
            self.last_move = (self.rows - self.column_height(col), col)
        else:
            self.last_move = None

        return True

    def column_height(self, col: int) -> int:
        """Number of pieces in a column."""
        return int(np.count_nonzero(self.grid[:, col] != Player.EMPTY.value))

    def get_winning_line(self) -> List[Tuple[int, int]]:
        """
        Get the positions of the winning line if the game is won.

        Returns:
            List of (row, col) positions forming the winning line, or empty list if no win
        """
        if self.game_result in (GameResult.IN_PROGRESS, GameResult.DRAW) or self.last_move is None:
            return []

        row, col = self.last_move
        player_value = self.grid[row, col]

        for dr, dc in DIRECTION_VECTORS.values():
            positions = [(row, col)]

            r, c = row + dr, col + dc
            while is_valid_position(self.grid, r, c) and self.grid[r, c] == player_value:
                positions.append((r, c))
                r += dr
                c += dc

            r, c = row - dr, col - dc
            while is_valid_position(self.grid, r, c) and self.grid[r, c] == player_value:
                positions.append((r, c))
                r -= dr
                c -= dc

            if len(positions) >= CONNECT_N:
                return sorted(positions)

        return []

    def get_state(self) -> np.ndarray:
        """
        Get the current board state as a numpy array.

        Returns:
            Copy of the 2D grid
        """
        return self.grid.copy()

    def render(self) -> str:
        """Render the board as a string."""
        return render_board_ascii(self.grid)

    def __str__(self) -> str:
        return self.render()
