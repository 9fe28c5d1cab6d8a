#brknn/metrics.py
import numpy as np
from sklearn.metrics import hamming_loss


def hamming(Y_true, Y_pred) -> float:
    """Fraction of label assignments that disagree with the ground truth."""
    return float(hamming_loss(np.asarray(Y_true), np.asarray(Y_pred)))


def one_error(Y_true, confidences) -> float:
    """Fraction of examples whose top-ranked label is not relevant.

    Examples without any relevant label are skipped, since every ranking
    would count as an error for them.
    """
    Y_true = np.asarray(Y_true)
    scores = np.asarray(confidences, dtype=float)
    if Y_true.shape != scores.shape:
        raise ValueError(f"Shape mismatch: {Y_true.shape} vs {scores.shape}")
    keep = Y_true.sum(axis=1) > 0
    if not keep.any():
        return 0.0
    top = np.argmax(scores[keep], axis=1)
    hits = Y_true[keep][np.arange(top.shape[0]), top] == 1
    return float(1.0 - hits.mean())
