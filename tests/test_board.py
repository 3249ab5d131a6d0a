import numpy as np
import pytest

from connect4engine.game.board import Board
from connect4engine.utils import ROWS, COLS, GameResult, InvalidMoveError, Player


def play(*columns: int) -> Board:
    """Board after playing `columns` alternately from the empty position."""
    board = Board()
    for col in columns:
        assert board.make_move(col), f"illegal move {col}"
    return board


class TestConstruction:
    def test_empty_board(self):
        board = Board()
        assert board.dimensions() == (ROWS, COLS)
        assert not board.grid.any()
        assert board.current_player is Player.ONE
        assert board.game_result is GameResult.IN_PROGRESS

    def test_custom_shape(self):
        board = Board(5, 8)
        assert board.dimensions() == (5, 8)
        assert board.get_valid_moves() == list(range(8))

    def test_too_small(self):
        with pytest.raises(ValueError):
            Board(3, 7)

    def test_from_grid_infers_player_to_move(self):
        grid = np.zeros((ROWS, COLS), dtype=int)
        grid[ROWS - 1, 3] = Player.ONE.value
        assert Board.from_grid(grid).current_player is Player.TWO

        grid[ROWS - 1, 4] = Player.TWO.value
        assert Board.from_grid(grid).current_player is Player.ONE

    def test_from_grid_copies(self):
        grid = np.zeros((ROWS, COLS), dtype=int)
        board = Board.from_grid(grid)
        board.insert(0, Player.ONE)
        assert not grid.any()

    def test_copy_is_independent(self):
        board = play(3, 3)
        clone = board.copy()
        clone.make_move(4)
        assert board.moves_made == [3, 3]
        assert clone.moves_made == [3, 3, 4]


class TestInsertRemove:
    def test_pieces_stack_from_the_bottom(self):
        board = Board()
        assert board.insert(2, Player.ONE) == ROWS - 1
        assert board.insert(2, Player.TWO) == ROWS - 2
        assert board.cell_at(ROWS - 1, 2) is Player.ONE
        assert board.cell_at(ROWS - 2, 2) is Player.TWO

    def test_remove_takes_the_top_piece(self):
        board = Board()
        board.insert(2, Player.ONE)
        board.insert(2, Player.TWO)
        assert board.remove(2) == ROWS - 2
        assert board.cell_at(ROWS - 1, 2) is Player.ONE
        assert board.cell_at(ROWS - 2, 2) is Player.EMPTY

    def test_insert_then_remove_restores_grid(self):
        board = play(3, 3, 4, 2, 5)
        before = board.grid.copy()
        for col in range(COLS):
            board.insert(col, Player.TWO)
            board.remove(col)
        np.testing.assert_array_equal(board.grid, before)

    def test_insert_into_full_column(self):
        board = Board()
        for _ in range(ROWS):
            board.insert(0, Player.ONE)
        before = board.grid.copy()
        assert not board.is_playable(0)
        with pytest.raises(InvalidMoveError):
            board.insert(0, Player.TWO)
        np.testing.assert_array_equal(board.grid, before)

    @pytest.mark.parametrize("col", [-1, COLS, 100])
    def test_out_of_range(self, col):
        board = Board()
        with pytest.raises(InvalidMoveError):
            board.insert(col, Player.ONE)
        with pytest.raises(InvalidMoveError):
            board.remove(col)

    def test_remove_from_empty_column(self):
        with pytest.raises(InvalidMoveError):
            Board().remove(3)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            Board().remove(3)

    def test_is_full(self):
        board = Board()
        for col in range(COLS):
            for row in range(ROWS):
                board.insert(col, Player.ONE if (row // 2 + col) % 2 == 0 else Player.TWO)
        assert board.is_full()
        assert board.drop_row(0) == -1


class TestSimulate:
    def test_yields_row_and_restores(self):
        board = play(3)
        before = board.grid.copy()
        with board.simulate(3, Player.TWO) as row:
            assert row == ROWS - 2
            assert board.cell_at(row, 3) is Player.TWO
        np.testing.assert_array_equal(board.grid, before)

    def test_restores_when_body_raises(self):
        board = play(3, 4)
        before = board.grid.copy()
        with pytest.raises(RuntimeError):
            with board.simulate(2, Player.ONE):
                with board.simulate(2, Player.TWO):
                    raise RuntimeError("evaluation failed")
        np.testing.assert_array_equal(board.grid, before)

    def test_nested_simulations_unwind_in_order(self):
        board = Board()
        with board.simulate(0, Player.ONE):
            with board.simulate(0, Player.TWO):
                assert board.column_height(0) == 2
            assert board.column_height(0) == 1
        assert board.column_height(0) == 0


class TestGameBookkeeping:
    def test_players_alternate(self):
        board = play(3)
        assert board.current_player is Player.TWO
        assert board.last_move == (ROWS - 1, 3)

    def test_horizontal_win(self):
        board = play(0, 6, 1, 6, 2, 6, 3)
        assert board.game_result is GameResult.PLAYER_ONE_WIN
        assert board.get_winning_line() == [(ROWS - 1, c) for c in range(4)]
        assert board.get_valid_moves() == []
        assert not board.make_move(4)

    def test_vertical_win_for_two(self):
        board = play(0, 3, 1, 3, 0, 3, 1, 3)
        assert board.game_result is GameResult.PLAYER_TWO_WIN

    def test_undo_after_win(self):
        board = play(0, 6, 1, 6, 2, 6, 3)
        assert board.undo_move()
        assert board.game_result is GameResult.IN_PROGRESS
        assert board.current_player is Player.ONE
        assert board.last_move == (ROWS - 3, 6)

    def test_undo_switches_player_back(self):
        board = play(3, 4)
        assert board.undo_move()
        assert board.current_player is Player.TWO
        assert board.moves_made == [3]

    def test_undo_on_empty_board(self):
        board = Board()
        assert not board.undo_move()
        assert board.last_move is None

    def test_invalid_move_returns_false(self):
        board = play(*([0] * ROWS))
        assert not board.make_move(0)
        assert not board.make_move(-1)
        assert not board.make_move(COLS)

    def test_draw(self):
        grid = np.array([[1 if (r // 2 + c) % 2 == 0 else 2 for c in range(COLS)]
                         for r in range(ROWS)])
        grid[0, 3] = Player.EMPTY.value
        board = Board.from_grid(grid)
        assert board.current_player is Player.TWO
        assert board.make_move(3)
        assert board.is_full()
        assert board.game_result is GameResult.DRAW
        assert board.get_winning_line() == []

    def test_render(self):
        text = play(3, 4).render()
        assert "X" in text and "O" in text
        assert text == str(play(3, 4))
