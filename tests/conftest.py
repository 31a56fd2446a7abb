"""
Shared fixtures for clusterlab tests.
"""
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from clusterlab.data import make_lecture_blobs


@pytest.fixture
def blobs():
    """Three well-separated 2-D blobs of 15 points each."""
    return make_lecture_blobs(n_per_cluster=15, std=0.1, random_seed=42)


@pytest.fixture
def random_points():
    """Unstructured points with no ties in their pairwise distances."""
    rng = np.random.default_rng(7)
    return rng.normal(size=(30, 3))


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
