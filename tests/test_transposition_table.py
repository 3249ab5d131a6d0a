import pytest

from connect4engine.ai.transposition_table import (BoundType, EvaluationCache,
                                                   TranspositionTable, TTEntry)

INF = 10 ** 9


class TestBoundType:
    def test_classify(self):
        assert BoundType.classify(5, 0, 10) is BoundType.EXACT
        assert BoundType.classify(0, 0, 10) is BoundType.UPPER
        assert BoundType.classify(-3, 0, 10) is BoundType.UPPER
        assert BoundType.classify(10, 0, 10) is BoundType.LOWER
        assert BoundType.classify(12, 0, 10) is BoundType.LOWER

    def test_full_window_is_exact(self):
        assert BoundType.classify(123, -INF, INF) is BoundType.EXACT


class TestTranspositionTable:
    def test_miss(self):
        table = TranspositionTable()
        assert table.lookup(42, 0, -INF, INF) is None
        assert table.misses == 1 and len(table) == 0

    def test_exact_entry_answers_shallower_queries(self):
        table = TranspositionTable()
        table.store(42, 4, 17, BoundType.EXACT)
        for depth in range(5):
            assert table.lookup(42, depth, -INF, INF) == 17
            assert table.lookup(42, depth, 100, 200) == 17
        assert table.lookup(42, 5, -INF, INF) is None

    def test_lower_bound(self):
        table = TranspositionTable()
        table.store(7, 3, 50, BoundType.LOWER)
        assert table.lookup(7, 3, 0, 40) == 50
        assert table.lookup(7, 3, 0, 50) == 50
        assert table.lookup(7, 3, 0, 60) is None

    def test_upper_bound(self):
        table = TranspositionTable()
        table.store(7, 3, -10, BoundType.UPPER)
        assert table.lookup(7, 3, 0, 100) == -10
        assert table.lookup(7, 3, -10, 100) == -10
        assert table.lookup(7, 3, -20, 100) is None

    def test_store_overwrites(self):
        table = TranspositionTable()
        table.store(1, 2, 5, BoundType.UPPER)
        table.store(1, 6, 9, BoundType.EXACT)
        assert table.table[1] == TTEntry(score=9, depth=6, bound=BoundType.EXACT)
        assert len(table) == 1

    def test_evicts_shallowest_quarter(self):
        table = TranspositionTable(capacity=8)
        for fp in range(8):
            table.store(fp, fp, fp * 10, BoundType.EXACT)
        table.store(100, 3, 0, BoundType.EXACT)

        assert table.evictions == 1
        assert len(table) == 7
        assert sorted(table.table) == [2, 3, 4, 5, 6, 7, 100]
        assert table.lookup(0, 0, -INF, INF) is None
        assert table.lookup(7, 7, -INF, INF) == 70

    def test_overwrite_when_full_does_not_evict(self):
        table = TranspositionTable(capacity=2)
        table.store(1, 1, 0, BoundType.EXACT)
        table.store(2, 1, 0, BoundType.EXACT)
        table.store(2, 5, 3, BoundType.EXACT)
        assert table.evictions == 0
        assert len(table) == 2

    def test_tiny_table_still_evicts_one(self):
        table = TranspositionTable(capacity=1)
        table.store(1, 1, 0, BoundType.EXACT)
        table.store(2, 1, 0, BoundType.EXACT)
        assert list(table.table) == [2]

    def test_clear_and_stats(self):
        table = TranspositionTable()
        table.store(1, 1, 0, BoundType.EXACT)
        table.lookup(1, 1, -INF, INF)
        table.lookup(2, 1, -INF, INF)
        stats = table.get_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5
        assert stats['size'] == 1

        table.clear()
        assert len(table) == 0
        assert table.get_stats()['hits'] == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            TranspositionTable(capacity=0)


class TestEvaluationCache:
    def test_get_put(self):
        cache = EvaluationCache()
        assert cache.get(5) is None
        cache.put(5, -30)
        assert cache.get(5) == -30
        assert cache.hits == 1 and cache.misses == 1

    def test_clears_when_full(self):
        cache = EvaluationCache(capacity=2)
        cache.put('a', 1)
        cache.put('b', 2)
        cache.put('c', 3)
        assert len(cache) == 1
        assert cache.get('a') is None
        assert cache.get('c') == 3

    def test_zero_is_a_hit(self):
        cache = EvaluationCache()
        cache.put((1, 1), 0)
        assert cache.get((1, 1)) == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            EvaluationCache(capacity=0)


class TestPositionKeys:
    def test_same_fingerprint_different_player(self):
        table = TranspositionTable()
        table.store((99, 1), 2, 40, BoundType.EXACT)
        table.store((99, 2), 2, -40, BoundType.EXACT)
        assert len(table) == 2
        assert table.lookup((99, 1), 2, -INF, INF) == 40
        assert table.lookup((99, 2), 2, -INF, INF) == -40
        assert table.lookup(99, 2, -INF, INF) is None
