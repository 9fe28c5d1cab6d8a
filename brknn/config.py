#brknn/config.py
import json
import numbers
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .exceptions import ConfigurationError

WEIGHT_NONE = "none"
WEIGHT_INVERSE = "inverse"
WEIGHT_SIMILARITY = "similarity"
WEIGHTING_CHOICES = (WEIGHT_NONE, WEIGHT_INVERSE, WEIGHT_SIMILARITY)

POLICY_THRESHOLD = "threshold"
POLICY_FALLBACK = "fallback"
POLICY_CARDINALITY = "cardinality"
POLICY_CHOICES = (POLICY_THRESHOLD, POLICY_FALLBACK, POLICY_CARDINALITY)

DEFAULT_NEIGHBORS = 10
DEFAULT_THRESHOLD = 0.5
DEFAULT_SEED = 1


@dataclass
class BRkNNConfig:
    """Construction-time settings of a BRkNN classifier.

    Parameters
    ----------
    n_labels : int or None
        Number of labels L. Inferred from the label matrix at fit time when
        left as None.
    n_neighbors : int, default=10
        Neighborhood size used for prediction.
    select_k : bool, default=False
        Pick ``n_neighbors`` by leave-one-out cross-validation during fit.
    cv_max_k : int or None
        Largest candidate k for the selection. Defaults to ``n_neighbors``.
    distance_weighting : {"none", "inverse", "similarity"}
        How a neighbor's distance turns into a vote weight.
    threshold : float, default=0.5
        Global threshold, broadcast to every label.
    thresholds : list of float or None
        Per-label thresholds. Overrides ``threshold`` when given.
    policy : {"threshold", "fallback", "cardinality"}
        Rule converting confidences into a label assignment.
    random_state : int, default=1
        Seed of the tie-break generator.
    metric : str or callable, default="euclidean"
        Distance used by the neighbor search.
    scale_features : bool, default=True
        Min-max scale features to [0, 1] before searching.
    verbose : bool, default=False
        Show a progress bar while selecting k.
    """

    n_labels: Optional[int] = None
    n_neighbors: int = DEFAULT_NEIGHBORS
    select_k: bool = False
    cv_max_k: Optional[int] = None
    distance_weighting: str = WEIGHT_NONE
    threshold: float = DEFAULT_THRESHOLD
    thresholds: Optional[List[float]] = None
    policy: str = POLICY_THRESHOLD
    random_state: int = DEFAULT_SEED
    metric: str | Callable = "euclidean"
    scale_features: bool = True
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.thresholds is not None:
            self.thresholds = [float(t) for t in self.thresholds]
        self.validate()

    @property
    def max_k(self) -> int:
        return self.cv_max_k if self.cv_max_k is not None else self.n_neighbors

    def validate(self) -> "BRkNNConfig":
        if self.n_labels is not None and self.n_labels < 1:
            raise ConfigurationError(f"n_labels must be positive, got {self.n_labels}")
        if self.n_neighbors < 1:
            raise ConfigurationError(f"n_neighbors must be positive, got {self.n_neighbors}")
        if self.cv_max_k is not None and self.cv_max_k < 1:
            raise ConfigurationError(f"cv_max_k must be positive, got {self.cv_max_k}")
        if self.distance_weighting not in WEIGHTING_CHOICES:
            raise ConfigurationError(
                f"Unknown distance weighting '{self.distance_weighting}'. "
                f"Try one of: {', '.join(WEIGHTING_CHOICES)}"
            )
        if self.policy not in POLICY_CHOICES:
            raise ConfigurationError(
                f"Unknown policy '{self.policy}'. Try one of: {', '.join(POLICY_CHOICES)}"
            )
        if (
            self.thresholds is not None
            and self.n_labels is not None
            and len(self.thresholds) != self.n_labels
        ):
            raise ConfigurationError(
                f"Expected {self.n_labels} thresholds, got {len(self.thresholds)}"
            )
        return self

    def threshold_vector(self, n_labels: int) -> List[float]:
        """Per-label thresholds, broadcasting the global one when none are set."""
        if self.thresholds is None:
            return [float(self.threshold)] * n_labels
        if len(self.thresholds) != n_labels:
            raise ConfigurationError(
                f"Expected {n_labels} thresholds, got {len(self.thresholds)}"
            )
        return list(self.thresholds)

    # ------------------------------------------------------------------
    # Serialisation

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        if callable(self.metric):
            # Callables do not survive JSON; keep their name for the record
            out["metric"] = getattr(self.metric, "__name__", repr(self.metric))
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BRkNNConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")
        return cls(**data)

    def to_json(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
        return path

    @classmethod
    def from_json(cls, path: str | Path) -> "BRkNNConfig":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def as_threshold_list(values: Sequence[float] | float, n_labels: int) -> List[float]:
    if isinstance(values, numbers.Real):
        return [float(values)] * n_labels
    out = [float(v) for v in values]
    if len(out) != n_labels:
        raise ConfigurationError(f"Expected {n_labels} thresholds, got {len(out)}")
    return out
