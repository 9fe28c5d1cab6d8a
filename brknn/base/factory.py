## brknn/base/factory.py

from ..config import POLICY_CARDINALITY, POLICY_FALLBACK, POLICY_THRESHOLD
from ..exceptions import ConfigurationError
from ..knn import BRkNNClassifier
from .base import BaseModel

_REGISTRY = {
    "brknn": POLICY_THRESHOLD,
    "brknn_a": POLICY_FALLBACK,     # never predicts an empty label set
    "brknn_b": POLICY_CARDINALITY,  # predicts the neighbors' average label count
}


class ModelFactory:
    @staticmethod
    def create(name: str, **kwargs) -> BaseModel:
        key = (name or "").lower().replace("-", "_")
        if key not in _REGISTRY:
            raise ConfigurationError(
                f"Unknown model '{name}'. Try one of: {', '.join(sorted(_REGISTRY))}"
            )
        if "policy" in kwargs:
            raise ConfigurationError(f"Model '{name}' fixes its own decision policy")
        return BRkNNClassifier(policy=_REGISTRY[key], **kwargs)

    @staticmethod
    def choices() -> tuple[str, ...]:
        return tuple(sorted(_REGISTRY.keys()))
