#brknn/knn.py
import logging
from dataclasses import dataclass, fields
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd

from .base.base import BaseModel, FitArtifacts
from .confidence import ConfidenceEstimator
from .config import (
    DEFAULT_NEIGHBORS,
    DEFAULT_SEED,
    DEFAULT_THRESHOLD,
    POLICY_THRESHOLD,
    WEIGHT_NONE,
    BRkNNConfig,
    as_threshold_list,
)
from .exceptions import ConfigurationError
from .neighbors import NeighborProvider
from .policies import DecisionPolicy, make_policy
from .selection import NeighborhoodSizeSelector

logger = logging.getLogger(__name__)


@dataclass
class Prediction:
    decision: np.ndarray
    confidence: np.ndarray
    avg_predicted_labels: int = 0


class BRkNNClassifier(BaseModel):
    """Binary relevance k-nearest-neighbor multi-label classifier.

    Each label is scored by the (optionally distance-weighted) share of the
    query's neighbors carrying it, and a decision policy turns those scores
    into a label set:

    * ``threshold``   - labels whose confidence clears the threshold (BRkNN)
    * ``fallback``    - as above, but never empty (BRkNN-a)
    * ``cardinality`` - the top labels, as many as the neighbors carry on
      average (BRkNN-b)

    With ``select_k=True`` the neighborhood size is picked during ``fit`` by
    hold-one-out cross-validation over 1..``cv_max_k``.
    """

    def __init__(
        self,
        *,
        n_labels: Optional[int] = None,
        n_neighbors: int = DEFAULT_NEIGHBORS,
        select_k: bool = False,
        cv_max_k: Optional[int] = None,
        distance_weighting: str = WEIGHT_NONE,
        threshold: float = DEFAULT_THRESHOLD,
        thresholds: Optional[Sequence[float]] = None,
        policy: str = POLICY_THRESHOLD,
        random_state: int = DEFAULT_SEED,
        metric: str | Callable = "euclidean",
        scale_features: bool = True,
        verbose: bool = False,
        **kwargs,
    ) -> None:
        self.config = BRkNNConfig(
            n_labels=n_labels,
            n_neighbors=n_neighbors,
            select_k=select_k,
            cv_max_k=cv_max_k,
            distance_weighting=distance_weighting,
            threshold=threshold,
            thresholds=list(thresholds) if thresholds is not None else None,
            policy=policy,
            random_state=random_state,
            metric=metric,
            scale_features=scale_features,
            verbose=verbose,
        )
        self.n_neighbors = n_neighbors
        self.cv_results_: Optional[pd.Series] = None
        self._estimator: Optional[ConfidenceEstimator] = None
        self._policy: Optional[DecisionPolicy] = None
        self._rng = np.random.default_rng(random_state)
        super().__init__(**kwargs)

    @classmethod
    def from_config(cls, config: BRkNNConfig, **kwargs) -> "BRkNNClassifier":
        params = {f.name: getattr(config, f.name) for f in fields(config)}
        params.update(kwargs)
        return cls(**params)

    @property
    def policy(self) -> Optional[DecisionPolicy]:
        return self._policy

    @property
    def n_labels(self) -> int:
        return int(self._check_fitted().label_matrix.shape[1])

    # ------------------------------------------------------------------
    # Fitting

    def _build_components(self) -> None:
        artifacts = self._check_fitted()
        n_labels = artifacts.label_matrix.shape[1]
        self._estimator = ConfidenceEstimator(
            artifacts.label_matrix,
            n_features=artifacts.provider.n_features,
            sample_weight=artifacts.sample_weight,
            weighting=self.config.distance_weighting,
        )
        self._policy = make_policy(self.config.policy, self.config.threshold_vector(n_labels))

    def _fit_arrays(self, X, Y, sample_weight) -> FitArtifacts:
        cfg = self.config
        n_labels = Y.shape[1]
        if n_labels < 1:
            raise ConfigurationError("Training labels must contain at least one label")
        if cfg.n_labels is not None and cfg.n_labels != n_labels:
            raise ConfigurationError(
                f"Configured for {cfg.n_labels} labels but the training set has {n_labels}"
            )
        cfg.threshold_vector(n_labels)

        provider = NeighborProvider(X, metric=cfg.metric, scale_features=cfg.scale_features)
        self.artifacts = FitArtifacts(
            provider=provider,
            features=X,
            label_matrix=Y,
            n_neighbors=cfg.n_neighbors,
            sample_weight=sample_weight,
            config=cfg.to_dict(),
        )
        self._build_components()
        self._rng = np.random.default_rng(cfg.random_state)
        self.n_neighbors = cfg.n_neighbors
        logger.info(
            "Fitted BRkNN (%s policy) on %d samples, %d features, %d labels",
            cfg.policy,
            X.shape[0],
            X.shape[1],
            n_labels,
        )

        if cfg.select_k:
            try:
                self.select_k()
            except Exception:
                # A failed selection leaves the model unfitted
                self.artifacts = None
                raise
        return self.artifacts

    def select_k(self) -> int:
        """Pick k by hold-one-out cross-validation and make it the active k."""
        artifacts = self._check_fitted()
        selector = NeighborhoodSizeSelector(
            artifacts.provider,
            self._estimator,
            self._policy,
            cv_max_k=self.config.max_k,
            verbose=self.config.verbose,
        )
        best_k = selector.select(artifacts.features, artifacts.label_matrix, self._rng)
        artifacts.n_neighbors = best_k
        self.n_neighbors = best_k
        self.cv_results_ = selector.cv_results_
        return best_k

    def set_thresholds(self, thresholds: Sequence[float] | float) -> "BRkNNClassifier":
        """Replace the per-label thresholds used by the decision policy."""
        values = as_threshold_list(thresholds, self.n_labels)
        self.config.thresholds = values
        self._check_fitted().config["thresholds"] = values
        self._policy = make_policy(self.config.policy, values)
        return self

    def _on_load(self) -> None:
        artifacts = self._check_fitted()
        data = dict(artifacts.config)
        data["metric"] = artifacts.provider.metric
        self.config = BRkNNConfig.from_dict(data)
        self.n_neighbors = artifacts.n_neighbors
        self._rng = np.random.default_rng(self.config.random_state)
        self._build_components()

    # ------------------------------------------------------------------
    # Prediction

    def _decide(self, neighbors) -> Prediction:
        confidences = self._estimator.estimate(neighbors)
        decision = self._policy.decide(confidences, self._rng)
        return Prediction(
            decision=decision,
            confidence=confidences.values,
            avg_predicted_labels=confidences.avg_predicted_labels,
        )

    def predict_one(self, x) -> Prediction:
        artifacts = self._check_fitted()
        neighbors = artifacts.provider.nearest(x, artifacts.n_neighbors)
        return self._decide(neighbors)

    def _predict_arrays(self, X: np.ndarray) -> np.ndarray:
        artifacts = self._check_fitted()
        results = artifacts.provider.nearest_many(X, artifacts.n_neighbors)
        out = np.zeros((len(results), artifacts.label_matrix.shape[1]), dtype=int)
        for i, neighbors in enumerate(results):
            out[i] = self._decide(neighbors).decision
        return out

    def predict_proba(self, X) -> np.ndarray:
        artifacts = self._check_fitted()
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        results = artifacts.provider.nearest_many(X, artifacts.n_neighbors)
        out = np.zeros((len(results), artifacts.label_matrix.shape[1]), dtype=float)
        for i, neighbors in enumerate(results):
            out[i] = self._estimator.estimate(neighbors).values
        return out
