#brknn/neighbors.py
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from sklearn.neighbors import NearestNeighbors
from sklearn.preprocessing import MinMaxScaler

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class NeighborResult:
    """Neighbors of one query, nearest first.

    ``indices`` are row positions in the training set and ``distances`` the
    raw (non-negative) distances to them, in the same order.
    """

    indices: np.ndarray
    distances: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    @classmethod
    def empty(cls) -> "NeighborResult":
        return cls(np.empty(0, dtype=int), np.empty(0, dtype=float))


class NeighborProvider:
    """Exhaustive k-nearest-neighbor search over a fixed training set.

    Features are optionally min-max scaled to [0, 1] using the training
    ranges, so that per-feature RMS distances stay on a comparable scale.
    Search is brute force so any scikit-learn metric name or Python callable
    can be plugged in.
    """

    def __init__(
        self,
        X,
        *,
        metric: str | Callable = "euclidean",
        scale_features: bool = True,
    ) -> None:
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ConfigurationError(f"Expected a 2D feature matrix, got shape {X.shape}")
        self.metric = metric
        self.scaler_: Optional[MinMaxScaler] = None
        if scale_features and X.shape[0] > 0:
            # Queries outside the training ranges are clipped onto them
            self.scaler_ = MinMaxScaler(clip=True).fit(X)
        self._X = self._transform(X)
        self._index: Optional[NearestNeighbors] = None
        if X.shape[0] > 0:
            self._index = NearestNeighbors(algorithm="brute", metric=metric).fit(self._X)
        self._last_distances = np.empty(0, dtype=float)

    @property
    def n_samples(self) -> int:
        return int(self._X.shape[0])

    @property
    def n_features(self) -> int:
        return int(self._X.shape[1])

    def _transform(self, X: np.ndarray) -> np.ndarray:
        if self.scaler_ is None:
            return X
        return self.scaler_.transform(X)

    def _as_queries(self, query) -> np.ndarray:
        Q = np.asarray(query, dtype=float)
        if Q.ndim == 1:
            Q = Q.reshape(1, -1)
        if Q.ndim != 2 or Q.shape[1] != self.n_features:
            raise ConfigurationError(
                f"Query has {Q.shape[-1]} features, training set has {self.n_features}"
            )
        return self._transform(Q)

    def nearest(self, query, k: int, exclude: Optional[int] = None) -> NeighborResult:
        """Return the ``k`` training rows closest to ``query``.

        ``exclude`` drops one training row (by position) from the candidates,
        which is how a held-out example is kept out of its own neighborhood.
        Fewer than ``k`` neighbors come back when the training set is smaller.
        """
        if k < 0:
            raise ConfigurationError(f"k must be non-negative, got {k}")
        Q = self._as_queries(query)
        available = self.n_samples - (1 if exclude is not None else 0)
        k = min(k, available)
        if k <= 0 or self._index is None:
            result = NeighborResult.empty()
        else:
            n_query = min(k + (1 if exclude is not None else 0), self.n_samples)
            dist, idx = self._index.kneighbors(Q, n_neighbors=n_query)
            dist, idx = dist[0], idx[0]
            if exclude is not None:
                keep = idx != exclude
                dist, idx = dist[keep], idx[keep]
            result = NeighborResult(idx[:k].astype(int), dist[:k].astype(float))
        self._last_distances = result.distances.copy()
        return result

    def nearest_many(self, X, k: int) -> List[NeighborResult]:
        """Batched ``nearest`` for several queries with one search call."""
        Q = self._as_queries(X)
        k = min(k, self.n_samples)
        if k <= 0 or self._index is None:
            return [NeighborResult.empty() for _ in range(Q.shape[0])]
        dist, idx = self._index.kneighbors(Q, n_neighbors=k)
        results = [
            NeighborResult(i.astype(int), d.astype(float)) for d, i in zip(dist, idx)
        ]
        if results:
            self._last_distances = results[-1].distances.copy()
        return results

    def distances(self) -> np.ndarray:
        """Distances of the most recent query, parallel to its neighbors."""
        return self._last_distances.copy()

    @staticmethod
    def prune(result: NeighborResult, new_k: int) -> NeighborResult:
        """Shrink a neighbor list to its ``new_k`` nearest entries."""
        if new_k < 0:
            raise ConfigurationError(f"new_k must be non-negative, got {new_k}")
        return NeighborResult(result.indices[:new_k], result.distances[:new_k])
