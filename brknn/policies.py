#brknn/policies.py
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Type

import numpy as np

from .confidence import Confidences
from .config import POLICY_CARDINALITY, POLICY_FALLBACK, POLICY_THRESHOLD
from .exceptions import ConfigurationError, NumericDegeneracyError


class DecisionPolicy(ABC):
    """Turns a confidence vector into a 0/1 label assignment.

    Policies are stateless apart from their thresholds; the random generator
    used for tie-breaking belongs to the caller and is passed to ``decide``.
    """

    name: str = ""

    def __init__(self, thresholds: Sequence[float]) -> None:
        self.thresholds = np.asarray(thresholds, dtype=float)

    @property
    def n_labels(self) -> int:
        return int(self.thresholds.shape[0])

    def _check(self, values: np.ndarray) -> None:
        if values.shape != self.thresholds.shape:
            raise ConfigurationError(
                f"Got {values.shape[0]} confidences for {self.n_labels} labels"
            )

    @abstractmethod
    def decide(self, confidences: Confidences, rng: np.random.Generator) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_labels={self.n_labels})"


class ThresholdPolicy(DecisionPolicy):
    """Plain binary relevance: a label is on when it clears its threshold."""

    name = POLICY_THRESHOLD

    def decide(self, confidences: Confidences, rng: np.random.Generator) -> np.ndarray:
        values = np.asarray(confidences.values, dtype=float)
        self._check(values)
        return (values >= self.thresholds).astype(int)


def random_index_of_max(values: np.ndarray, rng: np.random.Generator) -> int:
    """Index of the largest value, ties broken uniformly at random."""
    best = np.flatnonzero(values == values.max())
    return int(best[rng.integers(len(best))])


class FallbackPolicy(ThresholdPolicy):
    """Threshold rule that never returns an empty label set.

    When nothing clears its threshold the single most confident label is
    switched on.
    """

    name = POLICY_FALLBACK

    def decide(self, confidences: Confidences, rng: np.random.Generator) -> np.ndarray:
        result = super().decide(confidences, rng)
        if not result.any():
            result[random_index_of_max(np.asarray(confidences.values, dtype=float), rng)] = 1
        return result


class CardinalityPolicy(DecisionPolicy):
    """Assigns exactly ``avg_predicted_labels`` labels, most confident first.

    Labels tied with the weakest selected confidence compete for the
    remaining slots uniformly at random.
    """

    name = POLICY_CARDINALITY

    def decide(self, confidences: Confidences, rng: np.random.Generator) -> np.ndarray:
        values = np.asarray(confidences.values, dtype=float)
        self._check(values)
        n_labels = values.shape[0]
        result = np.zeros(n_labels, dtype=int)

        budget = min(max(int(confidences.avg_predicted_labels), 0), n_labels)
        if budget == 0:
            return result

        order = np.argsort(values, kind="stable")
        pivot = values[order[n_labels - budget]]

        assigned = 0
        ties: List[int] = []
        for idx in order[::-1]:
            if values[idx] > pivot:
                result[idx] = 1
                assigned += 1
            elif values[idx] == pivot:
                ties.append(int(idx))
            else:
                break

        remaining = budget - assigned
        if remaining > len(ties):
            raise NumericDegeneracyError(
                f"Need {remaining} more labels but only {len(ties)} are tied at the pivot"
            )
        while remaining > 0:
            pick = ties[rng.integers(len(ties))]
            if result[pick] != 1:
                result[pick] = 1
                remaining -= 1
        return result


_REGISTRY: Dict[str, Type[DecisionPolicy]] = {
    POLICY_THRESHOLD: ThresholdPolicy,
    POLICY_FALLBACK: FallbackPolicy,
    POLICY_CARDINALITY: CardinalityPolicy,
}


def make_policy(name: str, thresholds: Sequence[float]) -> DecisionPolicy:
    key = (name or "").lower()
    if key not in _REGISTRY:
        raise ConfigurationError(
            f"Unknown policy '{name}'. Try one of: {', '.join(sorted(_REGISTRY))}"
        )
    return _REGISTRY[key](thresholds)
