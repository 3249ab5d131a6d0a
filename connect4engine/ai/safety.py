"""
safety.py - Immediate win/block detection and multi-ply move safety

The SafetyOracle answers tactical questions by probing the board: drop a piece,
ask the win checker, take the piece back. Every trial move goes through
Board.simulate(), so the grid comes back exactly as it was even when a check
exits early.

is_safe_move() looks up to three plies past the candidate move:

    1. our move      if it gives us two winning columns, it is safe outright
    2. their reply   unsafe if it wins, or leaves them two winning columns
    3. our reply     unsafe if every reply of ours still leaves them two
                     winning columns
    4. their reply   unsafe if, whatever we reply, they have a winning move
                     ("trapped in two")

The oracle also hosts the one-ply threat heuristic the easy tier falls back on
when no candidate passes the safety check.
"""

from typing import List

from connect4engine.debug import debug
from connect4engine.game.board import Board
from connect4engine.utils import NO_MOVE, Player, CONNECT_N, center_distance, center_first
from connect4engine.ai.evaluation import Evaluator, WinChecker

# Threat heuristic weights
LINE_OF_TWO = 20
LINE_OF_THREE = 50
BLOCK_VALUE = 100
DOUBLE_THREAT_VALUE = 100
CENTER_BASE = 10

THREAT_DIRECTIONS = ((0, 1), (1, 0), (1, 1), (-1, 1))


class SafetyOracle:
    """Tactical checks: immediate wins, forced blocks and move safety."""

    def __init__(self, board: Board, win_checker: WinChecker, evaluator: Evaluator):
        self.board = board
        self.win_checker = win_checker
        self.evaluator = evaluator

    def _legal_columns(self) -> List[int]:
        return [c for c in range(self.board.cols) if self.board.is_playable(c)]

    def _wins_with(self, player: Player, col: int) -> bool:
        with self.board.simulate(col, player):
            return self.win_checker.check_win(player)

    def _count_winning_columns(self, player: Player, stop_at: int = 2) -> int:
        """Number of columns that win immediately for `player`, counting up to `stop_at`."""
        wins = 0
        for col in self._legal_columns():
            if self._wins_with(player, col):
                wins += 1
                if wins >= stop_at:
                    break
        return wins

    def has_double_threat(self, player: Player) -> bool:
        """True if `player` has two or more distinct winning columns right now."""
        return self._count_winning_columns(player) >= 2

    # ------------------------------------------------------------------
    # Immediate win / block
    # ------------------------------------------------------------------

    def find_immediate_win(self, player: Player) -> int:
        """
        Column that wins on the spot for `player`, or NO_MOVE.

        Columns are tried center first; when several win, the one closest to
        the center is returned (the first tried on equal distance).
        """
        if self.board.is_full():
            return NO_MOVE

        cols = self.board.cols
        winning = [col for col in center_first(self._legal_columns(), cols)
                   if self._wins_with(player, col)]
        if not winning:
            return NO_MOVE

        best = winning[0]
        for col in winning:
            if center_distance(col, cols) < center_distance(best, cols):
                best = col
        debug.debug(f"Immediate win for {player.name}: column {best} (of {winning})", "safety")
        return best

    def find_immediate_block(self, opponent: Player) -> int:
        """Column we must occupy to stop `opponent` winning next turn, or NO_MOVE."""
        return self.find_immediate_win(opponent)

    # ------------------------------------------------------------------
    # Safety
    # ------------------------------------------------------------------

    def is_safe_move(self, player: Player, col: int) -> bool:
        """
        Whether dropping into `col` avoids every loss the oracle can see
        within the next three plies. Unplayable columns are never safe.
        """
        if not self.board.is_playable(col):
            return False
        opponent = player.other()

        with self.board.simulate(col, player):
            if self.has_double_threat(player):
                debug.trace(f"Column {col} creates a double threat for {player.name}", "safety")
                return True
            safe = self._survives_all_replies(player, opponent)

        debug.trace(f"Column {col} for {player.name} is {'safe' if safe else 'unsafe'}", "safety")
        return safe

    def _survives_all_replies(self, player: Player, opponent: Player) -> bool:
        for reply in self._legal_columns():
            with self.board.simulate(reply, opponent):
                if self.win_checker.check_win(opponent):
                    return False
                if self.has_double_threat(opponent):
                    return False
                if self._fork_follows_every_reply(player, opponent):
                    return False
                if self._is_trapped_in_two(player, opponent):
                    return False
        return True

    def _fork_follows_every_reply(self, player: Player, opponent: Player) -> bool:
        """After each of our replies the opponent holds a double threat (and none of ours wins)."""
        replies = self._legal_columns()
        if not replies:
            return False
        for our_col in replies:
            with self.board.simulate(our_col, player):
                if self.win_checker.check_win(player):
                    return False
                if not self.has_double_threat(opponent):
                    return False
        return True

    def _is_trapped_in_two(self, player: Player, opponent: Player) -> bool:
        """Whatever we reply, the opponent has a winning move afterwards."""
        for our_col in self._legal_columns():
            with self.board.simulate(our_col, player):
                if self.win_checker.check_win(player):
                    return False
                if self._count_winning_columns(opponent, stop_at=1) == 0:
                    return False
        return True

    # ------------------------------------------------------------------
    # Line scoring shared with the hard tier's move ordering
    # ------------------------------------------------------------------

    def _run_from(self, row: int, col: int, dr: int, dc: int, player: Player) -> int:
        """Consecutive `player` pieces starting at (row, col) going (dr, dc), at most CONNECT_N - 1."""
        grid = self.board.grid
        rows, cols = grid.shape
        count = 0
        for _ in range(CONNECT_N - 1):
            if not (0 <= row < rows and 0 <= col < cols) or grid[row, col] != player.value:
                break
            count += 1
            row += dr
            col += dc
        return count

    def line_lengths(self, player: Player, row: int, col: int) -> List[int]:
        """Length of `player`'s line through (row, col) in each of the four directions."""
        return [1 + self._run_from(row + dr, col + dc, dr, dc, player)
                + self._run_from(row - dr, col - dc, -dr, -dc, player)
                for dr, dc in THREAT_DIRECTIONS]

    def count_threat_lines(self, player: Player, row: int, col: int) -> int:
        """Directions in which the piece at (row, col) sits on a line of three or more."""
        return sum(1 for length in self.line_lengths(player, row, col) if length >= 3)

    def threat_at(self, player: Player, row: int, col: int) -> int:
        total = 0
        for length in self.line_lengths(player, row, col):
            if length == 2:
                total += LINE_OF_TWO
            elif length >= 3:
                total += LINE_OF_THREE
        return total

    def block_at(self, opponent: Player, row: int, col: int) -> int:
        """BLOCK_VALUE if some four-cell window through (row, col) holds three `opponent` pieces."""
        grid = self.board.grid
        rows, cols = grid.shape
        for dr, dc in THREAT_DIRECTIONS:
            for offset in range(CONNECT_N):
                sr, sc = row - offset * dr, col - offset * dc
                er, ec = sr + (CONNECT_N - 1) * dr, sc + (CONNECT_N - 1) * dc
                if not (0 <= sr < rows and 0 <= sc < cols and 0 <= er < rows and 0 <= ec < cols):
                    continue
                window = [grid[sr + i * dr, sc + i * dc] for i in range(CONNECT_N)]
                if window.count(opponent.value) == CONNECT_N - 1:
                    return BLOCK_VALUE
        return 0

    # ------------------------------------------------------------------
    # Threat heuristic (easy tier fallback)
    # ------------------------------------------------------------------

    def find_best_move_threat_heuristic(self, player: Player) -> int:
        """
        Win, else block, else the move whose worst case after any opponent
        reply scores highest (threats, blocks and center proximity).
        """
        opponent = player.other()

        win = self.find_immediate_win(player)
        if win != NO_MOVE:
            return win
        block = self.find_immediate_block(opponent)
        if block != NO_MOVE:
            return block

        moves = self.evaluator.find_valid_moves()
        best_col, best_score = NO_MOVE, None
        for col in moves:
            with self.board.simulate(col, player) as row:
                score = self._score_with_lookahead(player, opponent, row, col)
            if best_score is None or score > best_score:
                best_col, best_score = col, score

        debug.debug(f"Threat heuristic for {player.name}: column {best_col} (score {best_score})", "safety")
        return best_col

    def _placed_score(self, player: Player, opponent: Player, row: int, col: int) -> int:
        return (self.threat_at(player, row, col) * 2
                + self.block_at(opponent, row, col) * 3
                + CENTER_BASE - center_distance(col, self.board.cols))

    def _score_with_lookahead(self, player: Player, opponent: Player, row: int, col: int) -> int:
        """Worst rescore of our piece at (row, col) over every opponent reply."""
        double_threat = DOUBLE_THREAT_VALUE if self.count_threat_lines(player, row, col) >= 2 else 0
        base = self._placed_score(player, opponent, row, col) + double_threat * 5

        replies = self._legal_columns()
        if not replies:
            return base

        worst = None
        for reply in replies:
            with self.board.simulate(reply, opponent):
                score = self._placed_score(player, opponent, row, col)
            if worst is None or score < worst:
                worst = score
        return worst
