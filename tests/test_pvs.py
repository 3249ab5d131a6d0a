"""Tests for DeepeningPVS, the hard tier."""

import numpy as np
import pytest

from connect4engine.ai.evaluation import Evaluator
from connect4engine.ai.pvs import DeepeningPVS, WIN_THREAT
from connect4engine.ai.safety import SafetyOracle
from connect4engine.config import EngineConfig
from connect4engine.game.board import Board
from connect4engine.utils import ROWS, COLS, NO_MOVE, Player

CELLS = {'.': Player.EMPTY.value, 'X': Player.ONE.value, 'O': Player.TWO.value}
INF = EngineConfig.INFINITY
WIN = EngineConfig.WIN_SCORE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def board_from(*rows: str) -> Board:
    """Board from text rows, bottom row last; rows above the given ones are empty."""
    grid = np.zeros((ROWS, COLS), dtype=int)
    for offset, text in enumerate(reversed(rows)):
        for col, ch in enumerate(text):
            grid[ROWS - 1 - offset, col] = CELLS[ch]
    return Board.from_grid(grid)


def play(*columns: int) -> Board:
    board = Board()
    for col in columns:
        board.make_move(col)
    return board


def pvs_for(board: Board, **config) -> DeepeningPVS:
    evaluator = Evaluator(board)
    return DeepeningPVS(board, evaluator, SafetyOracle(board, evaluator, evaluator), EngineConfig(**config))


def negamax(board: Board, evaluator: Evaluator, side: Player, depth: int) -> int:
    """Unpruned negamax with the same leaf and terminal scores."""
    opponent = side.other()
    if evaluator.check_win(side):
        return WIN + depth
    if evaluator.check_win(opponent):
        return -(WIN + depth)
    if board.is_full() or depth <= 0:
        return evaluator.evaluate_position(side)

    best = -INF
    for col in range(board.cols):
        if board.is_playable(col):
            with board.simulate(col, side):
                best = max(best, -negamax(board, evaluator, opponent, depth - 1))
    return best


# ---------------------------------------------------------------------------
# pvs
# ---------------------------------------------------------------------------

class TestPVS:
    def test_depth_zero_is_static_evaluation(self):
        board = play(3, 3, 4)
        search = pvs_for(board)
        for side in (Player.ONE, Player.TWO):
            assert search.pvs(side, 0, -INF, INF) == search.evaluator.evaluate_position(side)

    def test_terminal_scores(self):
        board = board_from("OO.....", "XXXX...")
        search = pvs_for(board)
        assert search.pvs(Player.ONE, 2, -INF, INF) == WIN + 2
        assert search.pvs(Player.TWO, 2, -INF, INF) == -(WIN + 2)

    @pytest.mark.parametrize("moves,depth", [((3, 3, 4, 2), 3), ((2, 4, 3, 5, 1, 1), 3), ((3,), 2)])
    def test_matches_plain_negamax(self, moves, depth):
        board = play(*moves)
        side = board.current_player
        search = pvs_for(board)
        expected = negamax(board, search.evaluator, side, depth)
        assert search.pvs(side, depth, -INF, INF) == expected

    def test_grid_untouched(self):
        board = play(3, 3, 4, 2, 5)
        before = board.grid.copy()
        pvs_for(board).pvs(Player.TWO, 3, -INF, INF)
        np.testing.assert_array_equal(board.grid, before)

    def test_updates_killers_and_history(self):
        board = play(3, 3)
        search = pvs_for(board)
        search.pvs(Player.ONE, 2, -INF, INF)
        assert any(killer != NO_MOVE for killer in search.ordering.killer_moves)
        assert search.ordering.history.sum() > 0


# ---------------------------------------------------------------------------
# find_best_move
# ---------------------------------------------------------------------------

class TestFindBestMove:
    def test_immediate_win(self):
        board = board_from("OO.....", "XXX....")
        assert pvs_for(board).find_best_move(Player.ONE, 4) == 3

    def test_immediate_block(self):
        board = board_from("XX.....", "OOO...X")
        assert pvs_for(board).find_best_move(Player.ONE, 4) == 3

    def test_sets_up_double_threat(self):
        board = board_from("O.XX..O")
        assert pvs_for(board).find_best_move(Player.ONE, 4) == 4

    def test_full_board(self):
        grid = np.array([[1 if (r // 2 + c) % 2 == 0 else 2 for c in range(COLS)]
                         for r in range(ROWS)])
        assert pvs_for(Board.from_grid(grid)).find_best_move(Player.TWO) == NO_MOVE

    def test_returns_legal_move_and_restores_grid(self):
        board = play(3, 3, 2, 4)
        before = board.grid.copy()
        move = pvs_for(board).find_best_move(Player.ONE, 4)
        assert board.is_playable(move)
        np.testing.assert_array_equal(board.grid, before)

    def test_depth_is_clamped(self):
        board = play(3)
        search = pvs_for(board, MAX_DEPTH=2)
        move = search.find_best_move(Player.TWO, 20)
        assert board.is_playable(move)

        shallow = pvs_for(board)
        assert shallow.find_best_move(Player.TWO, 1) == pvs_for(board).find_best_move(Player.TWO, 2)

    def test_deterministic(self):
        first = pvs_for(play(3, 2)).find_best_move(Player.ONE, 4)
        second = pvs_for(play(3, 2)).find_best_move(Player.ONE, 4)
        assert first == second

    def test_reset(self):
        board = play(3, 3)
        search = pvs_for(board)
        search.find_best_move(Player.ONE, 2)
        assert search.nodes_searched > 0
        search.reset()
        assert search.nodes_searched == 0
        assert search.ordering.history.sum() == 0
        assert all(killer == NO_MOVE for killer in search.ordering.killer_moves)


class TestOrdering:
    def test_winning_column_first(self):
        board = board_from("OO.....", "XXX....")
        search = pvs_for(board)
        assert search._threat_score(3, Player.ONE) == WIN_THREAT
        assert search.order_moves(search.evaluator.find_valid_moves(), Player.ONE)[0] == 3

    def test_block_ranked_early(self):
        board = board_from("X.OOO.X")
        search = pvs_for(board)
        ordered = search.order_moves(search.evaluator.find_valid_moves(), Player.ONE)
        assert set(ordered[:2]) == {1, 5}

    def test_empty_board_is_center_first(self):
        search = pvs_for(Board())
        assert search.order_moves(search.evaluator.find_valid_moves(), Player.ONE) == [3, 2, 4, 1, 5, 0, 6]
