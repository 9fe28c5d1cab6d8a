#brknn/base/base.py
import numbers
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import joblib
import numpy as np
from sklearn.preprocessing import MultiLabelBinarizer

from ..exceptions import ConfigurationError
from ..neighbors import NeighborProvider


@dataclass
class FitArtifacts:
    provider: NeighborProvider
    features: np.ndarray
    label_matrix: np.ndarray
    n_neighbors: int
    sample_weight: Optional[np.ndarray] = None
    mlb: Optional[MultiLabelBinarizer] = None  # only when labels were given by name
    config: Dict[str, Any] = field(default_factory=dict)


def _is_indicator_rows(rows: List[Any]) -> bool:
    for row in rows:
        if isinstance(row, (str, bytes)) or not isinstance(row, Iterable):
            return False
        if not all(isinstance(v, (numbers.Number, np.bool_)) for v in row):
            return False
    return True


def _parse_label_names(raw) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        # Split on common delimiters (comma, semicolon, space)
        return [t for t in raw.replace(";", " ").replace(",", " ").split() if t]
    return [str(t).strip() for t in raw if str(t).strip()]


def prepare_labels(labels) -> Tuple[np.ndarray, Optional[MultiLabelBinarizer]]:
    """Return a 0/1 label matrix, plus the binarizer when labels came as names."""
    if isinstance(labels, np.ndarray) or hasattr(labels, "to_numpy"):
        rows = np.asarray(labels)
        mlb = None
    else:
        rows = list(labels)
        if _is_indicator_rows(rows):
            rows = np.asarray(rows)
            mlb = None
        else:
            mlb = MultiLabelBinarizer()
            rows = mlb.fit_transform([_parse_label_names(y) for y in rows])

    Y = np.asarray(rows)
    if Y.ndim != 2:
        raise ConfigurationError(f"Expected a 2D label matrix, got shape {Y.shape}")
    if Y.size and not np.isin(Y, (0, 1)).all():
        raise ConfigurationError("Label indicators must be 0 or 1")
    return Y.astype(int), mlb


class BaseModel(ABC):
    """Template for lazy multi-label models: fit/predict/save/load."""

    def __init__(self, **kwargs) -> None:
        self.artifacts: Optional[FitArtifacts] = None
        self._extra_params = kwargs

    # ------------------------------------------------------------------
    # Abstract API for subclasses

    @abstractmethod
    def _fit_arrays(
        self, X: np.ndarray, Y: np.ndarray, sample_weight: Optional[np.ndarray]
    ) -> FitArtifacts:
        raise NotImplementedError

    @abstractmethod
    def _predict_arrays(self, X: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _on_load(self) -> None:
        """Rebuild derived state after artifacts were loaded from disk."""

    # ------------------------------------------------------------------
    # Public API

    def fit(self, X, labels, sample_weight=None) -> "BaseModel":
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ConfigurationError(f"Expected a 2D feature matrix, got shape {X.shape}")
        if X.shape[0] == 0:
            raise ConfigurationError("Training set is empty")
        Y, mlb = prepare_labels(labels)
        if Y.shape[0] != X.shape[0]:
            raise ConfigurationError(
                f"Got {X.shape[0]} feature rows but {Y.shape[0]} label rows"
            )
        if sample_weight is not None:
            sample_weight = np.asarray(sample_weight, dtype=float)
            if sample_weight.shape != (X.shape[0],):
                raise ConfigurationError(
                    f"sample_weight must have {X.shape[0]} entries, got shape {sample_weight.shape}"
                )
            if (sample_weight < 0).any():
                raise ConfigurationError("sample_weight must be non-negative")

        artifacts = self._fit_arrays(X, Y, sample_weight)
        artifacts.mlb = mlb
        self.artifacts = artifacts
        return self

    def _check_fitted(self) -> FitArtifacts:
        if not self.artifacts:
            raise RuntimeError("Model not fitted.")
        return self.artifacts

    def predict(self, X) -> np.ndarray:
        self._check_fitted()
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        return self._predict_arrays(X)

    def predict_labels(self, X) -> List[List[str]]:
        artifacts = self._check_fitted()
        preds = self.predict(X)
        if artifacts.mlb is not None:
            # Convert binary matrix back to label strings
            return [list(lbls) for lbls in artifacts.mlb.inverse_transform(preds)]
        # Otherwise fall back to label positions
        return [[str(j) for j in np.flatnonzero(row)] for row in preds]

    def save(self, path: str | Path) -> Path:
        if not self.artifacts:
            raise RuntimeError("Nothing to save. Fit the model first.")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self.artifacts, path, compress=3, protocol=5)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "BaseModel":
        """Load a previously saved model."""
        obj = cls.__new__(cls)
        # Call __init__ to set up defaults, then restore the fitted state
        obj.__init__()
        obj.artifacts = joblib.load(path)
        obj._on_load()
        return obj
