"""
cli.py - Command-line interface for the Connect Four engine

This module provides a CLI for playing against the engine, analyzing board
positions with every tier, and benchmarking the tiers against each other.
"""

import argparse
import sys
import time
from typing import List, Optional

from connect4engine.config import EngineConfig
from connect4engine.debug import debug, DebugLevel
from connect4engine.utils import (ROWS, COLS, NO_MOVE, Player, InvalidMoveError,
                                  parse_position, parse_move_list, count_pieces)
from connect4engine.game.board import Board
from connect4engine.game.rules import ConnectFourGame
from connect4engine.ai.engine import Connect4Engine, Difficulty, StrategyDispatcher

EXAMPLES = """
Examples:

    # Play against the moderate engine
    python run.py play

    # Play second against the hard engine searching 8 plies
    python run.py play --difficulty hard --depth 8 --engine-first

    # Analyze the position after the moves 3, 3, 4, 2
    python run.py analyze --moves 3342

    # Analyze a full grid (42 comma-separated cells, top row first)
    python run.py analyze --position 0,0,0,0,0,0,0,...,1,1,1,0,2,2,2

    # Time every tier on 8 positions with extra logging
    python run.py --debug benchmark --iterations 8
"""

# Special command codes returned by get_human_move()
QUIT, UNDO, RESTART, HINT = -1, -2, -3, -4


class SimpleCLI:
    """Simple command-line interface for the Connect Four engine."""

    def __init__(self):
        self.args = None
        self.config = EngineConfig()
        self.game: Optional[ConnectFourGame] = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='Connect Four engine CLI', epilog=EXAMPLES,
                                         formatter_class=argparse.RawDescriptionHelpFormatter)
        parser.add_argument('--debug', action='store_true', help='Enable debug mode')
        parser.add_argument('--debug-level', choices=[lvl.name.lower() for lvl in DebugLevel],
                            default='info', help='Logging verbosity')

        subparsers = parser.add_subparsers(dest='command', help='Command to run')

        play_parser = subparsers.add_parser('play', help='Play a game against the engine')
        play_parser.add_argument('--difficulty', choices=[d.value for d in Difficulty],
                                 default='moderate', help='Engine strength')
        play_parser.add_argument('--depth', type=int, help='Search depth for moderate/hard')
        play_parser.add_argument('--engine-first', action='store_true',
                                 help='Let the engine make the first move')

        analyze_parser = subparsers.add_parser('analyze', help='Show what every tier plays in a position')
        source = analyze_parser.add_mutually_exclusive_group()
        source.add_argument('--position', type=str,
                            help=f'{ROWS * COLS} comma-separated cell values, top row first')
        source.add_argument('--moves', type=str, help='Move sequence from the empty board, e.g. 3342')
        analyze_parser.add_argument('--depth', type=int, help='Search depth for moderate/hard')

        benchmark_parser = subparsers.add_parser('benchmark', help='Time every tier on sample positions')
        benchmark_parser.add_argument('--iterations', type=int, default=5,
                                      help='Number of positions per tier')
        benchmark_parser.add_argument('--depth', type=int, help='Search depth for moderate/hard')
        return parser

    def parse_args(self, argv: Optional[List[str]] = None) -> None:
        """Parse command-line arguments and configure logging."""
        self.args = self.build_parser().parse_args(argv)

        if self.args.debug:
            debug.configure(level=DebugLevel.DEBUG)
        else:
            debug.set_from_string(self.args.debug_level)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI based on the parsed arguments."""
        if not self.args:
            self.parse_args(argv)

        if self.args.command == 'play':
            self.play_game()
        elif self.args.command == 'analyze':
            self.analyze_position()
        elif self.args.command == 'benchmark':
            self.benchmark()
        else:
            print("Please specify a command. Use --help for options.")
            sys.exit(1)

    # ------------------------------------------------------------------
    # play
    # ------------------------------------------------------------------

    def play_game(self) -> None:
        """Play a game against the engine."""
        self.game = ConnectFourGame(config=self.config)
        difficulty = self.args.difficulty
        human = Player.TWO if self.args.engine_first else Player.ONE

        print(f"Starting a new Connect Four game against the {difficulty} engine!")
        print(f"You are {human}. Enter a column number (0-{COLS - 1}) to make a move.")
        print("Other commands: 'q' to quit, 'u' to undo, 'r' to restart, 'h' for a hint.")
        print(self.game.render())

        while not self.game.is_game_over():
            if self.game.get_current_player() != human:
                print("Engine is thinking...")
                start = time.perf_counter()
                move = self.game.engine_move(difficulty, self.args.depth)
                print(f"Engine plays column {move} ({time.perf_counter() - start:.2f}s)")
                print(self.game.render())
                continue

            move = self.get_human_move()
            if move is None:
                continue
            if move == QUIT:
                print("Quitting game.")
                return
            if move == UNDO:
                # Take back the engine's reply and our own move
                undone = self.game.undo_move()
                if undone and self.game.get_current_player() != human:
                    self.game.undo_move()
                print("Move undone." if undone else "No moves to undo.")
                print(self.game.render())
                continue
            if move == RESTART:
                self.game.reset()
                print("Game restarted.")
                print(self.game.render())
                continue
            if move == HINT:
                print(f"Hint: column {self.game.suggest_move(difficulty, self.args.depth)}")
                continue

            if self.game.make_move(move):
                print(self.game.render())
            else:
                print(f"Invalid move: {move}")

        print("Game over!")
        winner = self.game.get_winner()
        if winner == human:
            print("You win! Congratulations!")
        elif winner is not None:
            print("Engine wins! Better luck next time.")
        else:
            print("It's a draw!")

    def get_human_move(self) -> Optional[int]:
        """
        Get a move from human player input.

        Returns:
            Column index, or special command code, or None if invalid input
        """
        user_input = input(f"Your move (columns 0-{COLS - 1}, q/u/r/h): ").strip().lower()
        commands = {'q': QUIT, 'u': UNDO, 'r': RESTART, 'h': HINT}
        if user_input in commands:
            return commands[user_input]

        try:
            move = int(user_input)
        except ValueError:
            print("Invalid input. Please enter a column number or special command.")
            return None

        if 0 <= move < COLS:
            return move
        print(f"Column must be between 0 and {COLS - 1}.")
        return None

    # ------------------------------------------------------------------
    # analyze
    # ------------------------------------------------------------------

    def load_board(self) -> Board:
        """
        Board described by --position or --moves (empty board if neither).

        Raises:
            ValueError: for a malformed position or an illegal move sequence
        """
        if self.args.position:
            return Board.from_grid(parse_position(self.args.position))

        board = Board()
        if self.args.moves:
            for col in parse_move_list(self.args.moves):
                if not board.make_move(col):
                    raise InvalidMoveError(f"Illegal move {col} after {len(board.moves_made)} moves")
        return board

    def analyze_position(self) -> None:
        """Print the position, its static features and each tier's choice."""
        try:
            board = self.load_board()
        except (ValueError, IndexError) as e:
            print(f"Error parsing position: {e}")
            return

        engine = Connect4Engine(board, self.config)
        dispatcher = StrategyDispatcher(engine)
        player = board.current_player
        opponent = player.other()

        print("Loaded position:")
        print(board.render())
        ones, twos = count_pieces(board.grid)
        print(f"\nPieces: X={ones} O={twos}, {player} to move")

        for p in (Player.ONE, Player.TWO):
            if engine.check_win(p):
                print(f"Player {p} has four in a row")

        evaluator = engine.evaluator
        print(f"Valid moves (search order): {evaluator.find_valid_moves()}")
        print(f"Evaluation for {player}: {evaluator.evaluate_position(player)}")
        print(f"Evaluation for {opponent}: {evaluator.evaluate_position(opponent)}")
        print(f"Lines of three / two for {player}: "
              f"{evaluator.count_connected(player, 3)} / {evaluator.count_connected(player, 2)}")

        win = engine.safety.find_immediate_win(player)
        block = engine.safety.find_immediate_block(opponent)
        print(f"Immediate win: {win if win != NO_MOVE else '-'}, "
              f"forced block: {block if block != NO_MOVE else '-'}")
        safe = [col for col in range(board.cols) if engine.safety.is_safe_move(player, col)]
        print(f"Safe moves: {safe}")

        print("\nEngine choices:")
        for difficulty in Difficulty:
            start = time.perf_counter()
            move = dispatcher.select_move(difficulty, player, self.args.depth)
            elapsed = time.perf_counter() - start
            print(f"  {difficulty.value:9s} column {move:2d}  ({elapsed * 1000:.1f} ms)")

    # ------------------------------------------------------------------
    # benchmark
    # ------------------------------------------------------------------

    def benchmark_positions(self, count: int) -> List[Board]:
        """Deterministic short openings, cycled when more positions are requested."""
        positions = []
        openings = ["", "3", "33", "334", "3342", "33425", "2435", "3344"]
        for i in range(count):
            board = Board()
            for col in parse_move_list(openings[i % len(openings)]):
                board.make_move(col)
            positions.append(board)
        return positions

    def benchmark(self) -> None:
        """Time each tier on the same positions."""
        iterations = max(1, self.args.iterations)
        print(f"Running benchmark on {iterations} positions per tier...")

        for difficulty in Difficulty:
            total_nodes = 0
            debug.start_timer(difficulty.value)
            for board in self.benchmark_positions(iterations):
                engine = Connect4Engine(board, self.config)
                StrategyDispatcher(engine).select_move(difficulty, board.current_player, self.args.depth)
                total_nodes += engine.memo_search.nodes_searched + engine.pvs.nodes_searched
            elapsed = debug.end_timer(difficulty.value) or 0.0

            line = (f"{difficulty.value:9s} {elapsed:.3f}s total, "
                    f"{elapsed / iterations * 1000:.1f} ms per move")
            if total_nodes:
                line += f", {total_nodes} nodes ({total_nodes / max(elapsed, 1e-9):.0f} nodes/s)"
            print(line)


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    cli = SimpleCLI()
    cli.run(argv)


if __name__ == "__main__":
    main()
