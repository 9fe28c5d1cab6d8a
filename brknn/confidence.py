#brknn/confidence.py
from dataclasses import dataclass

import numpy as np

from .config import WEIGHT_INVERSE, WEIGHT_NONE, WEIGHT_SIMILARITY, WEIGHTING_CHOICES
from .exceptions import ConfigurationError
from .neighbors import NeighborResult

# Keeps inverse-distance weights finite for exact matches
INVERSE_EPSILON = 1e-3


@dataclass
class Confidences:
    """Per-label relevance estimates for one query.

    ``avg_predicted_labels`` is the weighted number of relevant labels per
    neighbor, rounded; the cardinality policy uses it as its label budget.
    """

    values: np.ndarray
    avg_predicted_labels: int
    total_weight: float
    label_weight: float


def _round_half_up(x: float) -> int:
    return int(np.floor(x + 0.5))


class ConfidenceEstimator:
    """Turns a neighbor set into a normalized confidence vector.

    Every label starts from a ``1 / N`` floor (Laplace-style correction) and
    the normalizing total starts from ``L / N``, so a query with no usable
    neighbor weight still gets a defined, non-zero estimate.
    """

    def __init__(
        self,
        Y,
        *,
        n_features: int,
        sample_weight=None,
        weighting: str = WEIGHT_NONE,
    ) -> None:
        if weighting not in WEIGHTING_CHOICES:
            raise ConfigurationError(
                f"Unknown distance weighting '{weighting}'. "
                f"Try one of: {', '.join(WEIGHTING_CHOICES)}"
            )
        self.Y = np.asarray(Y)
        if self.Y.ndim != 2:
            raise ConfigurationError(f"Expected a 2D label matrix, got shape {self.Y.shape}")
        self.n_features = max(1, int(n_features))
        self.weighting = weighting
        if sample_weight is None:
            self.sample_weight = np.ones(self.Y.shape[0], dtype=float)
        else:
            self.sample_weight = np.asarray(sample_weight, dtype=float)
            if self.sample_weight.shape != (self.Y.shape[0],):
                raise ConfigurationError(
                    f"sample_weight must have {self.Y.shape[0]} entries, "
                    f"got shape {self.sample_weight.shape}"
                )
            if (self.sample_weight < 0).any():
                raise ConfigurationError("sample_weight must be non-negative")

    @property
    def n_labels(self) -> int:
        return int(self.Y.shape[1])

    @property
    def n_samples(self) -> int:
        return int(self.Y.shape[0])

    def weights(self, neighbors: NeighborResult) -> np.ndarray:
        """Vote weight of each neighbor, instance weight included."""
        raw = np.asarray(neighbors.distances, dtype=float)
        # Per-feature RMS distance
        dist = np.sqrt(raw * raw / self.n_features)
        if self.weighting == WEIGHT_INVERSE:
            w = 1.0 / (dist + INVERSE_EPSILON)
        elif self.weighting == WEIGHT_SIMILARITY:
            w = np.clip(1.0 - dist, 0.0, None)
        else:
            w = np.ones_like(dist)
        return w * self.sample_weight[neighbors.indices]

    def estimate(self, neighbors: NeighborResult) -> Confidences:
        n = max(1, self.n_samples)
        values = np.full(self.n_labels, 1.0 / n)
        total = self.n_labels / n
        label_weight = 0.0

        if len(neighbors) > 0:
            weights = self.weights(neighbors)
            relevant = (self.Y[neighbors.indices] == 1).astype(float)
            values += weights @ relevant
            label_weight = float(weights @ relevant.sum(axis=1))
            total += float(weights.sum())

        avg = _round_half_up(label_weight / total) if total > 0 else 0
        if total > 0:
            values /= total
        return Confidences(
            values=values,
            avg_predicted_labels=avg,
            total_weight=total,
            label_weight=label_weight,
        )
