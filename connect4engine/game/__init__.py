"""
connect4engine.game - Core game mechanics for Connect Four

This package contains the board representation, game state management
and the gymnasium environment.
"""

from connect4engine.game.board import Board
from connect4engine.game.rules import ConnectFourGame, ConnectFourEnv

__all__ = ['Board', 'ConnectFourGame', 'ConnectFourEnv']
