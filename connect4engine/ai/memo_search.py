"""
memo_search.py - Memoized minimax with alpha-beta pruning (moderate tier)

The same position is reached through many move orders, so results are cached
by Zobrist fingerprint at four levels, each keyed by fingerprint and player:

    transposition table   search result + depth + bound type per (position, player)
    evaluation cache      static evaluation per (position, player)
    move-order cache      sorted child list per (position, mover)
    win-move cache        immediate winning column per (position, player)

The tree search is classical minimax (explicit maximizing / minimizing nodes),
always scored from the point of view of the player the search runs for.

Algorithm overview:

    def minimax(depth, alpha, beta, maximizing):
        if tt usable for (position, depth, alpha, beta):
            return tt score
        if someone has won: return +-(WIN_SCORE + depth)
        if board full or depth == 0: return cached static eval
        for move in ordered moves:
            play, recurse with the other role, undo, tighten alpha or beta
            stop on alpha >= beta
        store score as UPPER / LOWER / EXACT against the entry window
"""

from typing import List, Optional, Tuple

from connect4engine.config import EngineConfig
from connect4engine.debug import debug, DebugLevel
from connect4engine.game.board import Board
from connect4engine.utils import NO_MOVE, Player, center_distance, center_first
from connect4engine.ai.evaluation import Evaluator
from connect4engine.ai.move_ordering import MoveOrdering
from connect4engine.ai.transposition_table import BoundType, EvaluationCache, TranspositionTable
from connect4engine.ai.zobrist import ZobristHasher

# Move-ordering scores for this tier
WIN_THREAT = 100
RUN_THREAT = 50
BLOCK_SCORE = 80

BLOCK_DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))


class MemoizedSearch:
    """Depth-limited minimax with alpha-beta pruning and fingerprint-keyed caches."""

    def __init__(self, board: Board, evaluator: Evaluator, config: Optional[EngineConfig] = None):
        self.board = board
        self.evaluator = evaluator
        self.config = config or EngineConfig()

        capacity = self.config.CACHE_CAPACITY
        self.hasher = ZobristHasher(board.rows, board.cols, seed=self.config.ZOBRIST_SEED)
        self.transpositions = TranspositionTable(capacity)
        self.evaluation_cache: EvaluationCache[tuple, int] = EvaluationCache(capacity)
        self.move_order_cache: EvaluationCache[tuple, List[int]] = EvaluationCache(capacity)
        self.win_move_cache: EvaluationCache[tuple, int] = EvaluationCache(capacity)
        self.ordering = MoveOrdering(board.cols, max_ply=self.config.MAX_DEPTH + 1,
                                     history_cap=self.config.HISTORY_SHIFT_CAP)

        self.nodes_searched = 0

    def fingerprint(self) -> int:
        return self.hasher.hash_grid(self.board.grid)

    def position_key(self, player: Player, fingerprint: Optional[int] = None) -> Tuple[int, int]:
        """Cache key for the current position seen from `player`."""
        if fingerprint is None:
            fingerprint = self.fingerprint()
        return fingerprint, player.value

    def clear_cache(self):
        """Drop every cached position and the killer/history tables."""
        self.transpositions.clear()
        self.evaluation_cache.clear()
        self.move_order_cache.clear()
        self.win_move_cache.clear()
        self.ordering.reset()

    # ------------------------------------------------------------------
    # Root
    # ------------------------------------------------------------------

    def find_best_move(self, player: Player, depth: Optional[int] = None) -> int:
        """
        Best column for `player`, searching `depth` plies (at least one).

        Takes an immediate win, then an immediate block, before searching.
        Returns NO_MOVE when the board has no legal move.
        """
        depth = self.config.MODERATE_DEPTH if depth is None else depth
        self.clear_cache()
        self.nodes_searched = 0
        opponent = player.other()

        win = self.try_immediate_win(player)
        if win != NO_MOVE:
            return win
        block = self.try_immediate_win(opponent)
        if block != NO_MOVE:
            return block

        if self.board.is_full():
            return NO_MOVE

        inf = self.config.INFINITY
        search_depth = max(1, depth)
        moves = self.order_moves(self.evaluator.find_valid_moves(), player, self.fingerprint())

        best, best_score = moves[0], None
        with debug.timed("memo_search", "memo"):
            for col in moves:
                with self.board.simulate(col, player):
                    score = self.minimax(player, search_depth - 1, -inf, inf, False, ply=1)
                if (best_score is None or score > best_score
                        or (score == best_score
                            and center_distance(col, self.board.cols) < center_distance(best, self.board.cols))):
                    best, best_score = col, score

        debug.debug(f"Memoized search depth {search_depth} for {player.name}: column {best} "
                    f"(score {best_score}, {self.nodes_searched} nodes, tt {self.transpositions.get_stats()})",
                    "memo")
        return best

    def try_immediate_win(self, player: Player) -> int:
        """First winning column for `player` in center-first order, memoized per position."""
        key = self.position_key(player)
        cached = self.win_move_cache.get(key)
        if cached is not None:
            return cached

        result = NO_MOVE
        for col in center_first(list(range(self.board.cols)), self.board.cols):
            if self.evaluator.is_winning_move(player, col):
                result = col
                break
        self.win_move_cache.put(key, result)
        return result

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    def lookup_transposition(self, key: Tuple[int, int], depth: int, alpha: int, beta: int) -> Optional[int]:
        """Stored score if it is deep enough and its bound settles this window, else None."""
        return self.transpositions.lookup(key, depth, alpha, beta)

    def store_transposition(self, key: Tuple[int, int], depth: int, score: int, bound: BoundType):
        self.transpositions.store(key, depth, score, bound)

    def evaluate_cached(self, player: Player, fingerprint: Optional[int] = None) -> int:
        """Static evaluation for `player`, memoized per (position, player)."""
        key = self.position_key(player, fingerprint)
        score = self.evaluation_cache.get(key)
        if score is None:
            score = self.evaluator.evaluate_position(player)
            self.evaluation_cache.put(key, score)
        return score

    # ------------------------------------------------------------------
    # Move ordering
    # ------------------------------------------------------------------

    def order_moves(self, moves: List[int], mover: Player, fingerprint: int) -> List[int]:
        """Sort `moves` for `mover`, reusing the cached order for this position when there is one."""
        key = self.position_key(mover, fingerprint)
        cached_order = self.move_order_cache.get(key)
        if cached_order is not None:
            rank = {col: i for i, col in enumerate(cached_order)}
            return sorted(moves, key=lambda c: rank.get(c, len(rank)))

        opponent = mover.other()
        ordered = self.ordering.order_moves(
            moves,
            threat_score=lambda col: self._threat_score(col, mover),
            block_score=lambda col: self._block_score(col, mover, opponent),
        )
        self.move_order_cache.put(key, list(ordered))
        return ordered

    def _threat_score(self, col: int, player: Player) -> int:
        if not self.board.is_playable(col):
            return 0
        with self.board.simulate(col, player):
            if self.evaluator.check_win(player):
                return WIN_THREAT
            return RUN_THREAT if self.evaluator.count_connected(player, 3) > 0 else 0

    def _block_score(self, col: int, player: Player, opponent: Player) -> int:
        if not self.board.is_playable(col):
            return 0
        with self.board.simulate(col, player) as row:
            return BLOCK_SCORE if self._touches_three(row, col, opponent) else 0

    def _touches_three(self, row: int, col: int, opponent: Player) -> bool:
        """Three consecutive `opponent` pieces start right next to (row, col) in some direction."""
        grid = self.board.grid
        rows, cols = grid.shape
        for dr, dc in BLOCK_DIRECTIONS:
            for sign in (1, -1):
                cells = [(row + sign * i * dr, col + sign * i * dc) for i in range(1, 4)]
                if all(0 <= r < rows and 0 <= c < cols and grid[r, c] == opponent.value
                       for r, c in cells):
                    return True
        return False

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def minimax(self, player: Player, depth: int, alpha: int, beta: int,
                maximizing: bool, ply: int = 0) -> int:
        """
        Minimax value of the current position for `player`.

        Args:
            player: The player the search is run for
            depth: Remaining depth
            alpha: Best score the maximizer can already guarantee
            beta: Best score the minimizer can already guarantee
            maximizing: True when `player` is to move
            ply: Distance from the root (killer table index)
        """
        self.nodes_searched += 1
        opponent = player.other()
        fingerprint = self.fingerprint()
        key = self.position_key(player, fingerprint)

        cached = self.lookup_transposition(key, depth, alpha, beta)
        if cached is not None:
            return cached

        win_score = self.config.WIN_SCORE
        if self.evaluator.check_win(player):
            return win_score + depth
        if self.evaluator.check_win(opponent):
            return -win_score - depth
        if self.board.is_full() or depth <= 0:
            score = self.evaluate_cached(player, fingerprint)
            self.store_transposition(key, depth, score, BoundType.EXACT)
            return score

        mover = player if maximizing else opponent
        moves = self.order_moves(self.evaluator.find_valid_moves(), mover, fingerprint)
        window = (alpha, beta)

        if maximizing:
            best = -self.config.INFINITY
            for col in moves:
                with self.board.simulate(col, mover):
                    score = self.minimax(player, depth - 1, alpha, beta, False, ply + 1)
                best = max(best, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    self._record_cutoff(col, mover, depth, ply)
                    break
        else:
            best = self.config.INFINITY
            for col in moves:
                with self.board.simulate(col, mover):
                    score = self.minimax(player, depth - 1, alpha, beta, True, ply + 1)
                best = min(best, score)
                beta = min(beta, score)
                if beta <= alpha:
                    self._record_cutoff(col, mover, depth, ply)
                    break

        self.store_transposition(key, depth, best, BoundType.classify(best, *window))
        if debug.is_enabled_for(DebugLevel.TRACE, "memo"):
            debug.trace(f"ply {ply} depth {depth} {'max' if maximizing else 'min'} -> {best}", "memo")
        return best

    def _record_cutoff(self, col: int, mover: Player, depth: int, ply: int):
        self.ordering.record_killer(col, ply)
        self.ordering.record_history(col, mover, depth)
