"""
transposition_table.py - Position-keyed caches for the memoized search

Key concepts:
- Bound types: EXACT (score is the true value), LOWER (search failed high at
  beta, true value >= score), UPPER (search failed low at alpha, true value <= score)
- An entry only answers a query searched at most as deep as the entry itself
- Capacity: the transposition table drops its shallowest quarter when full;
  the evaluation cache is simply cleared

Lookups never raise: a miss is None.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, Hashable, Optional, TypeVar

from connect4engine.debug import debug


class BoundType(Enum):
    """Type of bound stored in a transposition table entry."""
    EXACT = 0
    LOWER = 1
    UPPER = 2

    @staticmethod
    def classify(score: int, alpha: int, beta: int) -> 'BoundType':
        """Bound type of a score returned from a search entered with window (alpha, beta)."""
        if score <= alpha:
            return BoundType.UPPER
        if score >= beta:
            return BoundType.LOWER
        return BoundType.EXACT


@dataclass
class TTEntry:
    """
    Cached search result.

    Attributes:
        score: Evaluation score (or bound)
        depth: Remaining search depth when the entry was stored
        bound: Type of bound (EXACT/LOWER/UPPER)
    """
    score: int
    depth: int
    bound: BoundType


class TranspositionTable:
    """Dict-backed transposition table with depth-based eviction."""

    def __init__(self, capacity: int = 50_000):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.table: Dict[Hashable, TTEntry] = {}

        # Statistics
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self.table)

    def lookup(self, key: Hashable, depth: int, alpha: int, beta: int) -> Optional[int]:
        """
        Cached score usable at this node, or None.

        Usable when the stored depth is at least `depth` and the bound allows a
        cutoff: EXACT always, LOWER when score >= beta, UPPER when score <= alpha.
        """
        entry = self.table.get(key)
        if entry is None or entry.depth < depth:
            self.misses += 1
            return None

        if (entry.bound == BoundType.EXACT
                or (entry.bound == BoundType.LOWER and entry.score >= beta)
                or (entry.bound == BoundType.UPPER and entry.score <= alpha)):
            self.hits += 1
            return entry.score

        self.misses += 1
        return None

    def store(self, key: Hashable, depth: int, score: int, bound: BoundType):
        """Store a search result, evicting the shallowest quarter first if the table is full."""
        if key not in self.table and len(self.table) >= self.capacity:
            self.evict_shallow()
        self.table[key] = TTEntry(score=score, depth=depth, bound=bound)
        self.stores += 1

    def evict_shallow(self):
        """Drop the quarter of entries with the lowest search depth (at least one)."""
        remove = max(1, len(self.table) // 4)
        shallowest = sorted(self.table, key=lambda k: self.table[k].depth)[:remove]
        for key in shallowest:
            del self.table[key]
        self.evictions += 1
        debug.debug(f"Transposition table full: evicted {remove} shallow entries", "memo")

    def clear(self):
        """Clear all entries and statistics."""
        self.table.clear()
        self.hits = self.misses = self.stores = self.evictions = 0

    def get_stats(self) -> dict:
        total = self.hits + self.misses
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total if total else 0.0,
            'stores': self.stores,
            'evictions': self.evictions,
            'size': len(self.table),
            'capacity': self.capacity,
        }


K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class EvaluationCache(Generic[K, V]):
    """Bounded memo table that is cleared outright when it fills up."""

    def __init__(self, capacity: int = 50_000):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._values: Dict[K, V] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: K) -> Optional[V]:
        value = self._values.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: K, value: V):
        if key not in self._values and len(self._values) >= self.capacity:
            self._values.clear()
        self._values[key] = value

    def clear(self):
        self._values.clear()
        self.hits = self.misses = 0
