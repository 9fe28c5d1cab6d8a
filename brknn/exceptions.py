#brknn/exceptions.py


class BRkNNError(Exception):
    """Base class for errors raised by the classifier."""


class ConfigurationError(BRkNNError, ValueError):
    """Invalid label count, neighborhood size, policy or threshold setup."""


class CrossValidationError(BRkNNError, RuntimeError):
    """Leave-one-out selection of k could not complete."""


class NumericDegeneracyError(BRkNNError, ArithmeticError):
    """Raised when the cardinality policy runs out of tied labels to draw from."""
