"""
Shared fixtures for the BRkNN test suite.
"""
import numpy as np
import pytest


@pytest.fixture
def two_cluster_data():
    """Four examples, two labels: the first two carry label 0, the rest label 1."""
    X = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    Y = np.array([[1, 0], [1, 0], [0, 1], [0, 1]])
    return X, Y


@pytest.fixture
def diamond_data():
    """Four label-A points around a single label-B point at the center.

    Every A point's nearest neighbor is the B point, so one neighbor always
    gets A wrong, two neighbors produce a 50/50 tie, and three neighbors are
    the smallest neighborhood that gets every A point right.
    """
    X = np.array(
        [
            [1.0, 0.0],
            [0.0, 1.0],
            [-1.0, 0.0],
            [0.0, -1.0],
            [0.0, 0.0],
        ]
    )
    Y = np.array([[1, 0], [1, 0], [1, 0], [1, 0], [0, 1]])
    return X, Y


@pytest.fixture
def rng():
    return np.random.default_rng(1)
