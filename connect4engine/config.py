"""
config.py - Engine configuration

Class-level defaults for search depths, cache capacities and score constants.
Any default can be overridden per instance:

    EngineConfig(CACHE_CAPACITY=1000, HARD_DEPTH=4)
"""

from connect4engine.utils import ROWS, COLS


class EngineConfig:
    # Board
    ROWS = ROWS
    COLS = COLS

    # Scores
    WIN_SCORE = 100_000
    INFINITY = 1_000_000_000

    # Search
    MAX_DEPTH = 10           # Ceiling for iterative deepening
    MODERATE_DEPTH = 4
    HARD_DEPTH = 6
    HISTORY_SHIFT_CAP = 10   # History increments are 1 << min(depth, cap)

    # Caches
    CACHE_CAPACITY = 50_000  # Per cache (transposition, evaluation, move order, win move)
    ZOBRIST_SEED = 42

    def __init__(self, **overrides):
        for name, value in overrides.items():
            if not hasattr(EngineConfig, name) or not name.isupper():
                raise AttributeError(f"Unknown engine setting: {name}")
            setattr(self, name, value)

    def as_dict(self) -> dict:
        return {name: getattr(self, name) for name in dir(self) if name.isupper()}

    def __repr__(self) -> str:
        settings = ", ".join(f"{k}={v}" for k, v in sorted(self.as_dict().items()))
        return f"EngineConfig({settings})"
