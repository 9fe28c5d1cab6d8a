#brknn/selection.py
import logging
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.metrics import hamming_loss
from tqdm import tqdm

from .confidence import ConfidenceEstimator
from .exceptions import ConfigurationError, CrossValidationError
from .neighbors import NeighborProvider
from .policies import DecisionPolicy

logger = logging.getLogger(__name__)

# How often (in examples) progress is written to the debug log
PROGRESS_EVERY = 50


class NeighborhoodSizeSelector:
    """Hold-one-out search for the neighborhood size minimising Hamming loss.

    Each training example is queried once for ``cv_max_k`` neighbors. The
    list is then evaluated for k = cv_max_k, ..., 1, dropping the farthest
    neighbor between steps, so one search serves every candidate k.
    """

    def __init__(
        self,
        provider: NeighborProvider,
        estimator: ConfidenceEstimator,
        policy: DecisionPolicy,
        *,
        cv_max_k: int,
        verbose: bool = False,
    ) -> None:
        if cv_max_k < 1:
            raise ConfigurationError(f"cv_max_k must be positive, got {cv_max_k}")
        self.provider = provider
        self.estimator = estimator
        self.policy = policy
        self.cv_max_k = cv_max_k
        self.verbose = verbose
        self.cv_results_: Optional[pd.Series] = None

    def select(self, X, Y, rng: np.random.Generator) -> int:
        """Return the best k in [1, cv_max_k]; the smallest one wins ties."""
        X = np.asarray(X, dtype=float)
        Y = np.asarray(Y)
        n_samples = X.shape[0]
        if n_samples - 1 < self.cv_max_k:
            logger.warning(
                "cv_max_k=%d exceeds the %d neighbors available per held-out example",
                self.cv_max_k,
                max(0, n_samples - 1),
            )

        performance = np.zeros(self.cv_max_k, dtype=float)
        try:
            for i in tqdm(range(n_samples), desc="Selecting k", disable=not self.verbose):
                if i % PROGRESS_EVERY == 0:
                    logger.debug("Cross validating %d/%d", i, n_samples)
                neighbors = self.provider.nearest(X[i], self.cv_max_k, exclude=i)
                truth = Y[i].reshape(1, -1)
                for k in range(self.cv_max_k, 0, -1):
                    confidences = self.estimator.estimate(neighbors)
                    decision = self.policy.decide(confidences, rng)
                    performance[k - 1] += hamming_loss(truth, decision.reshape(1, -1))
                    neighbors = self.provider.prune(neighbors, k - 1)
        except Exception as ex:
            raise CrossValidationError(f"Couldn't optimize by cross-validation: {ex}") from ex

        self.cv_results_ = pd.Series(
            performance / max(1, n_samples),
            index=pd.RangeIndex(1, self.cv_max_k + 1, name="k"),
            name="hamming_loss",
        )
        for k, loss in self.cv_results_.items():
            logger.debug("Hold-one-out performance of %d neighbors (Hamming Loss) = %.6f", k, loss)

        # argmin returns the first minimum, i.e. the smallest k
        best_k = int(np.argmin(performance)) + 1
        logger.info("Selected k = %d", best_k)
        return best_k
