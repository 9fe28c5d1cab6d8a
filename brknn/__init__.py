# brknn/__init__.py

import logging

from .base.base import BaseModel, FitArtifacts
from .base.factory import ModelFactory
from .confidence import ConfidenceEstimator, Confidences
from .config import BRkNNConfig
from .exceptions import (
    BRkNNError,
    ConfigurationError,
    CrossValidationError,
    NumericDegeneracyError,
)
from .knn import BRkNNClassifier, Prediction
from .metrics import hamming, one_error
from .neighbors import NeighborProvider, NeighborResult
from .policies import (
    CardinalityPolicy,
    DecisionPolicy,
    FallbackPolicy,
    ThresholdPolicy,
    make_policy,
)
from .selection import NeighborhoodSizeSelector

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'BaseModel',
    'FitArtifacts',
    'ModelFactory',
    'ConfidenceEstimator',
    'Confidences',
    'BRkNNConfig',
    'BRkNNError',
    'ConfigurationError',
    'CrossValidationError',
    'NumericDegeneracyError',
    'BRkNNClassifier',
    'Prediction',
    'hamming',
    'one_error',
    'NeighborProvider',
    'NeighborResult',
    'CardinalityPolicy',
    'DecisionPolicy',
    'FallbackPolicy',
    'ThresholdPolicy',
    'make_policy',
    'NeighborhoodSizeSelector',
]
