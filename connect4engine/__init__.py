"""
connect4engine - Connect Four move-selection engine

This package provides a numpy board, three engine tiers of increasing
strength (easy, moderate, hard), a game manager, a gymnasium environment
with an engine opponent, and a command-line interface.

    from connect4engine import Board, Connect4Engine, Player

    board = Board()
    engine = Connect4Engine(board)
    column = engine.find_best_move_hard(Player.ONE)
"""

# Version number
__version__ = '0.2.0'

from connect4engine.utils import NO_MOVE, Player, GameResult, InvalidMoveError, InvalidRangeError
from connect4engine.config import EngineConfig
from connect4engine.game.board import Board
from connect4engine.ai.engine import Connect4Engine, Difficulty, StrategyDispatcher

__all__ = [
    'NO_MOVE', 'Player', 'GameResult', 'InvalidMoveError', 'InvalidRangeError',
    'EngineConfig', 'Board', 'Connect4Engine', 'Difficulty', 'StrategyDispatcher',
]
