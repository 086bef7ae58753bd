# tests/conftest.py
import logging

import numpy as np
import pytest
from sklearn.datasets import make_blobs


@pytest.fixture(autouse=True, scope="session")
def configure_test_logging():
    """
    Configure consistent log formatting for all tests.
    Runs automatically once per test session.
    """
    log_format = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
    date_format = "%H:%M:%S"
    logging.basicConfig(level=logging.INFO, format=log_format, datefmt=date_format)


@pytest.fixture
def blobs():
    """Four well separated 3D clusters with sparse, non-zero-based labels."""
    X, y = make_blobs(n_samples=120, centers=4, n_features=3, cluster_std=0.8, random_state=0)
    labels = np.array([10, 3, 42, 7])[y]
    return X, labels


@pytest.fixture
def worked_stream():
    """
    Two 1D clusters, A = [0, 0, 2] and B = [10, 12], arriving A, B, A, B, A.
    """
    X = np.array([[0.0], [10.0], [0.0], [12.0], [2.0]])
    labels = np.array([1, 2, 1, 2, 1])
    return X, labels
