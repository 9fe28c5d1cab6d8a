"""
Tests for the exhaustive neighbor search.
"""
import numpy as np
import pytest

from brknn.exceptions import ConfigurationError
from brknn.neighbors import NeighborProvider, NeighborResult

LINE = np.array([[0.0], [1.0], [3.0], [6.0], [10.0]])


class TestNearest:
    def test_nearest_first(self):
        provider = NeighborProvider(LINE, scale_features=False)
        result = provider.nearest([2.9], 3)
        np.testing.assert_array_equal(result.indices, [2, 1, 0])
        np.testing.assert_allclose(result.distances, [0.1, 1.9, 2.9])

    def test_distances_parallel_to_last_query(self):
        provider = NeighborProvider(LINE, scale_features=False)
        result = provider.nearest([6.5], 2)
        np.testing.assert_allclose(provider.distances(), result.distances)

    def test_exclude_drops_the_held_out_row(self):
        provider = NeighborProvider(LINE, scale_features=False)
        result = provider.nearest(LINE[1], 2, exclude=1)
        assert 1 not in result.indices
        np.testing.assert_array_equal(result.indices, [0, 2])

    def test_k_bounded_by_training_set(self):
        provider = NeighborProvider(LINE, scale_features=False)
        assert len(provider.nearest([0.0], 50)) == 5
        assert len(provider.nearest([0.0], 50, exclude=0)) == 4

    def test_zero_k_returns_empty(self):
        provider = NeighborProvider(LINE)
        assert len(provider.nearest([0.0], 0)) == 0

    def test_scaling_uses_training_ranges(self):
        provider = NeighborProvider(LINE, scale_features=True)
        result = provider.nearest([10.0], 1)
        assert result.indices[0] == 4
        assert result.distances[0] == pytest.approx(0.0)
        # 10 -> 1.0 and 6 -> 0.6 after min-max scaling
        assert provider.nearest([10.0], 2).distances[1] == pytest.approx(0.4)

    def test_queries_clipped_to_training_ranges(self):
        provider = NeighborProvider(LINE)
        above = provider.nearest([20.0], 2)
        assert above.indices[0] == 4
        assert above.distances == pytest.approx([0.0, 0.4])
        below = provider.nearest([-5.0], 1)
        assert below.indices[0] == 0
        assert below.distances[0] == pytest.approx(0.0)

    def test_callable_metric(self):
        def manhattan(a, b):
            return float(np.abs(a - b).sum())

        X = np.array([[0.0, 0.0], [1.0, 1.0], [3.0, 0.0]])
        provider = NeighborProvider(X, metric=manhattan, scale_features=False)
        result = provider.nearest([0.0, 0.0], 3)
        np.testing.assert_allclose(result.distances, [0.0, 2.0, 3.0])

    def test_feature_count_checked(self):
        provider = NeighborProvider(LINE)
        with pytest.raises(ConfigurationError):
            provider.nearest([0.0, 1.0], 1)

    def test_nearest_many_matches_single_queries(self):
        provider = NeighborProvider(LINE, scale_features=False)
        queries = np.array([[0.2], [7.0]])
        batched = provider.nearest_many(queries, 2)
        for q, res in zip(queries, batched):
            single = provider.nearest(q, 2)
            np.testing.assert_array_equal(res.indices, single.indices)
            np.testing.assert_allclose(res.distances, single.distances)


class TestPrune:
    def test_prune_matches_fresh_query(self):
        provider = NeighborProvider(LINE, scale_features=False)
        full = provider.nearest([2.2], 4)
        for k in range(4, -1, -1):
            pruned = NeighborProvider.prune(full, k)
            fresh = provider.nearest([2.2], k)
            np.testing.assert_array_equal(pruned.indices, fresh.indices)
            np.testing.assert_allclose(pruned.distances, fresh.distances)

    def test_prune_rejects_negative_k(self):
        with pytest.raises(ConfigurationError):
            NeighborProvider.prune(NeighborResult.empty(), -1)
