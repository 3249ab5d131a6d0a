"""
pvs.py - Iterative deepening principal variation search (hard tier)

Negamax formulation: every node is scored from the point of view of the side
to move there, and a child's score is negated on the way up.

Iterative deepening searches depths 2, 4, 6, ... up to the requested depth.
Killer and history tables carry over from one depth to the next, so each pass
starts from the move order the previous one learned.

Principal variation search: the first (best ordered) child gets the full
window; every later child is first tried with a null window [-alpha-1, -alpha]
and only re-searched with the full window when it lands strictly inside
(alpha, beta).
"""

from typing import List, Optional

from connect4engine.config import EngineConfig
from connect4engine.debug import debug, DebugLevel
from connect4engine.game.board import Board
from connect4engine.utils import NO_MOVE, Player, center_distance
from connect4engine.ai.evaluation import Evaluator
from connect4engine.ai.move_ordering import MoveOrdering
from connect4engine.ai.safety import SafetyOracle

WIN_THREAT = 1000
LINE_THREAT = 50


class DeepeningPVS:
    """Negamax PVS with iterative deepening, killer moves and history heuristic."""

    def __init__(self, board: Board, evaluator: Evaluator, safety: SafetyOracle,
                 config: Optional[EngineConfig] = None):
        self.board = board
        self.evaluator = evaluator
        self.safety = safety
        self.config = config or EngineConfig()
        self.ordering = MoveOrdering(board.cols, max_ply=self.config.MAX_DEPTH + 1,
                                     history_cap=self.config.HISTORY_SHIFT_CAP)
        self.nodes_searched = 0

    def reset(self):
        self.ordering.reset()
        self.nodes_searched = 0

    def find_best_move(self, player: Player, depth: Optional[int] = None) -> int:
        """
        Best column for `player` after iterative deepening up to `depth`.

        Depth is clamped to [2, MAX_DEPTH]; odd depths search the even depths
        below them. An immediate win or a forced block is returned without
        searching, and a win found at any depth ends the deepening early.
        """
        depth = self.config.HARD_DEPTH if depth is None else depth
        self.reset()
        opponent = player.other()

        win = self.safety.find_immediate_win(player)
        if win != NO_MOVE:
            return win
        block = self.safety.find_immediate_block(opponent)
        if block != NO_MOVE:
            return block

        moves = self.evaluator.find_valid_moves()
        if not moves:
            return NO_MOVE

        max_depth = self.config.MAX_DEPTH
        target = min(max(2, depth), max_depth)
        win_threshold = self.config.WIN_SCORE - max_depth
        cols = self.board.cols

        best, best_score = moves[0], None
        with debug.timed("pvs_search", "pvs"):
            for current_depth in range(2, target + 1, 2):
                moves = self.order_moves(moves, player, ply=0)
                depth_best, depth_score = moves[0], None
                for col in moves:
                    score = self._search_root_child(col, player, current_depth)
                    self.ordering.record_history(col, player, current_depth)
                    if (depth_score is None or score > depth_score
                            or (score == depth_score
                                and center_distance(col, cols) < center_distance(depth_best, cols))):
                        depth_best, depth_score = col, score
                        self.ordering.record_killer(col, 0)

                best, best_score = depth_best, depth_score
                debug.debug(f"PVS depth {current_depth} for {player.name}: column {best} "
                            f"(score {best_score}, {self.nodes_searched} nodes)", "pvs")
                if best_score >= win_threshold:
                    break

        return best

    def _search_root_child(self, col: int, player: Player, depth: int) -> int:
        inf = self.config.INFINITY
        with self.board.simulate(col, player):
            return -self.pvs(player.other(), depth - 1, -inf, inf, ply=1)

    def pvs(self, side: Player, depth: int, alpha: int, beta: int, ply: int = 0) -> int:
        """
        Negamax value of the current position for `side`, the player to move.

        Terminal scores grow with the remaining depth, so quicker wins (and
        slower losses) are preferred.
        """
        self.nodes_searched += 1
        opponent = side.other()

        win_score = self.config.WIN_SCORE
        if self.evaluator.check_win(side):
            return win_score + depth
        if self.evaluator.check_win(opponent):
            return -(win_score + depth)
        if self.board.is_full() or depth <= 0:
            return self.evaluator.evaluate_position(side)

        moves = self.order_moves(self.evaluator.find_valid_moves(), side, ply)
        best = -self.config.INFINITY

        for index, col in enumerate(moves):
            with self.board.simulate(col, side):
                if index == 0:
                    score = -self.pvs(opponent, depth - 1, -beta, -alpha, ply + 1)
                else:
                    score = -self.pvs(opponent, depth - 1, -alpha - 1, -alpha, ply + 1)
                    if alpha < score < beta:
                        score = -self.pvs(opponent, depth - 1, -beta, -alpha, ply + 1)

            self.ordering.record_history(col, side, depth)
            if score > best:
                best = score
                self.ordering.record_killer(col, ply)
            alpha = max(alpha, score)
            if alpha >= beta:
                break

        if debug.is_enabled_for(DebugLevel.TRACE, "pvs"):
            debug.trace(f"ply {ply} depth {depth} {side.name} -> {best}", "pvs")
        return best

    # ------------------------------------------------------------------
    # Move ordering
    # ------------------------------------------------------------------

    def order_moves(self, moves: List[int], side: Player, ply: int = 0) -> List[int]:
        """Sort `moves` for `side`: threats, blocks, killers, history, center."""
        opponent = side.other()
        return self.ordering.order_moves(
            moves,
            threat_score=lambda col: self._threat_score(col, side),
            block_score=lambda col: self._block_score(col, side, opponent),
        )

    def _threat_score(self, col: int, side: Player) -> int:
        if not self.board.is_playable(col):
            return 0
        with self.board.simulate(col, side) as row:
            if self.evaluator.check_win(side):
                return WIN_THREAT
            return LINE_THREAT * self.safety.count_threat_lines(side, row, col)

    def _block_score(self, col: int, side: Player, opponent: Player) -> int:
        if not self.board.is_playable(col):
            return 0
        with self.board.simulate(col, side) as row:
            return self.safety.block_at(opponent, row, col)
