"""
rules.py - Game state management and Gymnasium environment for Connect Four

This module provides:
1. A game manager that can ask the engine for a move at any difficulty
2. A gymnasium-compatible environment in which the opponent is an engine tier
"""

import numpy as np
import gymnasium as gym
from gymnasium import spaces
from typing import Dict, Tuple, List, Optional, Union

from connect4engine.config import EngineConfig
from connect4engine.debug import debug
from connect4engine.utils import ROWS, COLS, NO_MOVE, Player, GameResult
from connect4engine.game.board import Board


class ConnectFourEnv(gym.Env):
    """
    Connect Four environment following the Gymnasium interface.

    The agent plays `agent_player`; after every agent move that does not end
    the game, the engine replies for the other side at the configured
    difficulty. Rewards are from the agent's point of view.
    """

    metadata = {'render_modes': ['ascii', 'human', 'rgb_array'], 'render_fps': 4}

    def __init__(self, render_mode: Optional[str] = None,
                 opponent_difficulty: str = "easy",
                 opponent_depth: Optional[int] = None,
                 agent_player: Player = Player.ONE,
                 rows: int = ROWS, cols: int = COLS,
                 config: Optional[EngineConfig] = None):
        """
        Args:
            render_mode: Mode for rendering the environment
            opponent_difficulty: Engine tier playing the other side
            opponent_depth: Search depth for the moderate and hard tiers
            agent_player: The side the agent plays (Player.ONE moves first)
            rows: Board height
            cols: Board width
            config: Engine settings for the opponent
        """
        # Imported here: the engine package imports game.board
        from connect4engine.ai.engine import EnginePlayer

        debug.debug(f"Initializing ConnectFourEnv (opponent: {opponent_difficulty})", "env")
        if agent_player == Player.EMPTY:
            raise ValueError("agent_player must be Player.ONE or Player.TWO")

        self.board = Board(rows, cols)
        self.render_mode = render_mode
        self.agent_player = agent_player
        self.opponent = EnginePlayer(opponent_difficulty, opponent_depth, config)

        self.action_space = spaces.Discrete(cols)
        # Observation space: rows x cols board with 3 possible values (0, 1, 2)
        self.observation_space = spaces.Box(low=0, high=2, shape=(rows, cols), dtype=np.int8)

        self.reward_win = 1.0
        self.reward_lose = -1.0
        self.reward_draw = 0.1
        self.reward_invalid_move = -0.5
        self.reward_step = -0.01

    def reset(self, seed: Optional[int] = None, options: Optional[Dict] = None) -> Tuple[np.ndarray, Dict]:
        """
        Reset the environment to initial state.

        When the agent plays second, the engine's opening move is already on
        the board in the returned observation.
        """
        debug.debug("Resetting environment", "env")
        super().reset(seed=seed)

        self.board.reset()
        self.opponent.reset()
        if self.agent_player == Player.TWO:
            self._opponent_move()

        if self.render_mode == "human":
            self.render()
        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Play the agent's move, then the engine's reply.

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        debug.debug(f"Environment step with action {action}", "env")

        if not self.board.is_valid_move(int(action)):
            debug.warning(f"Invalid action: {action}", "env")
            info = self._get_info()
            info['invalid_move'] = True
            return self._get_observation(), self.reward_invalid_move, False, True, info

        self.board.make_move(int(action))
        info_extra = {}
        if not self.board.game_result.is_game_over():
            info_extra['opponent_move'] = self._opponent_move()

        reward, terminated = self._outcome()
        info = self._get_info()
        info.update(info_extra)

        if self.render_mode == "human":
            self.render()
        return self._get_observation(), reward, terminated, False, info

    def _opponent_move(self) -> int:
        column = self.opponent.get_move(self.board)
        if column == NO_MOVE:
            return column
        self.board.make_move(column)
        debug.debug(f"Opponent played column {column}", "env")
        return column

    def _outcome(self) -> Tuple[float, bool]:
        result = self.board.game_result
        if result == GameResult.DRAW:
            debug.info("Game over: Draw", "env")
            return self.reward_draw, True
        if result == GameResult.win_for(self.agent_player):
            debug.info("Game over: agent wins", "env")
            return self.reward_win, True
        if result.is_game_over():
            debug.info("Game over: engine wins", "env")
            return self.reward_lose, True
        return self.reward_step, False

    def render(self) -> Optional[Union[str, np.ndarray]]:
        """
        Render the current state of the environment.

        Returns:
            Rendered frame depending on render_mode
        """
        if self.render_mode is None:
            return None

        if self.render_mode == "ascii":
            return self.board.render()

        if self.render_mode == "human":
            print(self.board.render())
            return None

        # rgb_array: one 50x50 tile per cell with a filled disc
        cell, radius = 50, 20
        colors = {
            Player.EMPTY.value: (0, 0, 0),
            Player.ONE.value: (255, 0, 0),
            Player.TWO.value: (255, 255, 0),
        }
        rows, cols = self.board.dimensions()
        rgb_array = np.zeros((rows * cell, cols * cell, 3), dtype=np.uint8)
        rgb_array[:, :] = (0, 0, 128)

        yy, xx = np.mgrid[0:cell, 0:cell]
        disc = (yy - cell // 2) ** 2 + (xx - cell // 2) ** 2 <= radius ** 2
        for row in range(rows):
            for col in range(cols):
                tile = rgb_array[row * cell:(row + 1) * cell, col * cell:(col + 1) * cell]
                tile[disc] = colors[int(self.board.grid[row, col])]
        return rgb_array

    def _get_observation(self) -> np.ndarray:
        return self.board.get_state().astype(np.int8)

    def _get_info(self) -> Dict:
        valid_moves = self.board.get_valid_moves()
        return {
            'valid_moves': valid_moves,
            'num_valid_moves': len(valid_moves),
            'current_player': self.board.current_player.value,
            'game_result': self.board.game_result.name,
            'moves_made': len(self.board.moves_made),
            'winning_line': self.board.get_winning_line(),
            'last_move': self.board.last_move
        }

    def close(self):
        """Clean up resources."""
        self.opponent.reset()


class ConnectFourGame:
    """
    High-level Connect Four game manager.

    Holds one board and one engine bound to it, so search caches persist
    across the moves of a game and are dropped on reset().
    """

    def __init__(self, rows: int = ROWS, cols: int = COLS, config: Optional[EngineConfig] = None):
        from connect4engine.ai.engine import Connect4Engine, StrategyDispatcher

        debug.debug("Initializing ConnectFourGame", "game")
        self.board = Board(rows, cols)
        self.engine = Connect4Engine(self.board, config)
        self.dispatcher = StrategyDispatcher(self.engine)

    def reset(self) -> None:
        """Reset the game to initial state."""
        debug.debug("Resetting game", "game")
        self.board.reset()
        self.engine.reset_search_state()

    def make_move(self, column: int) -> bool:
        """
        Make a move for the current player.

        Returns:
            True if the move was successful, False otherwise
        """
        debug.debug(f"Game: Making move in column {column}", "game")
        return self.board.make_move(column)

    def engine_move(self, difficulty: str = "moderate", depth: Optional[int] = None) -> int:
        """
        Let the engine choose and play a move for the current player.

        Returns:
            The column played, or NO_MOVE if the game is over or the board is full
        """
        if self.is_game_over():
            return NO_MOVE
        column = self.dispatcher.select_move(difficulty, self.board.current_player, depth)
        if column != NO_MOVE:
            self.board.make_move(column)
        return column

    def suggest_move(self, difficulty: str = "moderate", depth: Optional[int] = None) -> int:
        """Column the engine would play for the current player, without playing it."""
        if self.is_game_over():
            return NO_MOVE
        return self.dispatcher.select_move(difficulty, self.board.current_player, depth)

    def undo_move(self) -> bool:
        """
        Undo the last move.

        Returns:
            True if a move was undone, False otherwise
        """
        return self.board.undo_move()

    def get_state(self) -> Board:
        return self.board

    def is_game_over(self) -> bool:
        return self.board.game_result.is_game_over()

    def get_winner(self) -> Optional[Player]:
        """
        Get the winner of the game.

        Returns:
            The winning player, or None if no winner yet or draw
        """
        if self.board.game_result == GameResult.PLAYER_ONE_WIN:
            return Player.ONE
        elif self.board.game_result == GameResult.PLAYER_TWO_WIN:
            return Player.TWO
        else:
            return None

    def get_current_player(self) -> Player:
        return self.board.current_player

    def get_valid_moves(self) -> List[int]:
        return self.board.get_valid_moves()

    def render(self) -> str:
        return self.board.render()
