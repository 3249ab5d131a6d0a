"""
engine.py - Engine facade and difficulty dispatch

Connect4Engine wires the search components around one Board:

    Evaluator       win detection, static evaluation, greedy choice
    SafetyOracle    immediate win/block, multi-ply safety
    MemoizedSearch  moderate tier
    DeepeningPVS    hard tier

All components share the same board and play trial moves on it in place, so one engine must
not be used from two threads at once.

StrategyDispatcher maps a Difficulty to the matching entry point, and
EnginePlayer adapts the engine to the get_move(board) interface the game
manager, environment and CLI use for computer opponents.
"""

from enum import Enum
from typing import Optional, Union

from connect4engine.config import EngineConfig
from connect4engine.debug import debug
from connect4engine.game.board import Board
from connect4engine.utils import NO_MOVE, Player
from connect4engine.ai.evaluation import Evaluator
from connect4engine.ai.memo_search import MemoizedSearch
from connect4engine.ai.pvs import DeepeningPVS
from connect4engine.ai.safety import SafetyOracle


class Difficulty(Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"

    @classmethod
    def parse(cls, value: Union['Difficulty', str]) -> 'Difficulty':
        """Accept a Difficulty or its name, case-insensitive."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            names = ", ".join(d.value for d in cls)
            raise ValueError(f"Unknown difficulty '{value}' (expected one of: {names})") from None


class Connect4Engine:
    """Move selection for one board at three strengths."""

    def __init__(self, board: Board, config: Optional[EngineConfig] = None):
        self.board = board
        self.config = config or EngineConfig()
        self.evaluator = Evaluator(board)
        self.safety = SafetyOracle(board, self.evaluator, self.evaluator)
        self.memo_search = MemoizedSearch(board, self.evaluator, self.config)
        self.pvs = DeepeningPVS(board, self.evaluator, self.safety, self.config)

    def check_win(self, player: Player) -> bool:
        return self.evaluator.check_win(player)

    def find_best_move_easy(self, player: Player) -> int:
        """
        Win, else block, else the greedy pick among moves that pass the safety
        check. Falls back on the threat heuristic when no move is safe.
        """
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

        safe_moves = [col for col in moves if self.safety.is_safe_move(player, col)]
        if not safe_moves:
            debug.debug(f"No safe move for {player.name}, using threat heuristic", "engine")
            return self.safety.find_best_move_threat_heuristic(player)

        debug.trace(f"Safe moves for {player.name}: {safe_moves}", "engine")
        return self.evaluator.find_best_move_greedy(player, safe_moves)

    def find_best_move_moderate(self, player: Player, depth: Optional[int] = None) -> int:
        return self.memo_search.find_best_move(player, self.config.MODERATE_DEPTH if depth is None else depth)

    def find_best_move_hard(self, player: Player, depth: Optional[int] = None) -> int:
        return self.pvs.find_best_move(player, self.config.HARD_DEPTH if depth is None else depth)

    def reset_search_state(self):
        """Forget every cached position and the killer/history tables."""
        self.memo_search.clear_cache()
        self.pvs.reset()
        debug.debug("Search state reset", "engine")


class StrategyDispatcher:
    """Routes a move request to the entry point of the chosen difficulty."""

    def __init__(self, engine: Connect4Engine):
        self.engine = engine

    def select_move(self, difficulty: Union[Difficulty, str], player: Player,
                    depth: Optional[int] = None) -> int:
        """
        Args:
            difficulty: Difficulty or its name ("easy", "moderate", "hard")
            player: Player to move
            depth: Search depth for the moderate and hard tiers (ignored by easy)

        Returns:
            The chosen column, or NO_MOVE if there is no legal move

        Raises:
            ValueError: for an unknown difficulty name
        """
        difficulty = Difficulty.parse(difficulty)
        if difficulty == Difficulty.EASY:
            move = self.engine.find_best_move_easy(player)
        elif difficulty == Difficulty.MODERATE:
            move = self.engine.find_best_move_moderate(player, depth)
        else:
            move = self.engine.find_best_move_hard(player, depth)

        debug.info(f"{difficulty.value} move for {player.name}: column {move}", "engine")
        return move


class EnginePlayer:
    """
    A computer player backed by Connect4Engine.

    Keeps one engine per board it is asked about, so caches survive between
    moves of the same game.
    """

    def __init__(self, difficulty: Union[Difficulty, str] = Difficulty.MODERATE,
                 depth: Optional[int] = None, config: Optional[EngineConfig] = None):
        self.difficulty = Difficulty.parse(difficulty)
        self.depth = depth
        self.config = config or EngineConfig()
        self._engine: Optional[Connect4Engine] = None

    def engine_for(self, board: Board) -> Connect4Engine:
        if self._engine is None or self._engine.board is not board:
            self._engine = Connect4Engine(board, self.config)
        return self._engine

    def get_move(self, board: Board) -> int:
        """Column for board.current_player, or NO_MOVE if none is legal."""
        dispatcher = StrategyDispatcher(self.engine_for(board))
        return dispatcher.select_move(self.difficulty, board.current_player, self.depth)

    def reset(self):
        if self._engine is not None:
            self._engine.reset_search_state()
