"""
Tests for synthetic data generators.
"""
import numpy as np
import pandas as pd
import pytest

from clusterlab.data import (
    LECTURE_MEANS,
    generate_gaussian_clusters,
    make_lecture_blobs,
    generate_factor_returns,
)


def test_generate_gaussian_clusters_shapes():
    """Test output shapes and labels."""
    X, y = generate_gaussian_clusters([(0, 0, 0), (5, 5, 5)], n_per_cluster=10)

    assert X.shape == (20, 3)
    assert y.shape == (20,)
    assert list(np.bincount(y)) == [10, 10]


def test_generate_gaussian_clusters_per_cluster_counts():
    """Test one count per cluster."""
    X, y = generate_gaussian_clusters([(0, 0), (1, 1), (2, 2)], n_per_cluster=[3, 5, 7])

    assert X.shape == (15, 2)
    assert list(np.bincount(y)) == [3, 5, 7]


def test_generate_gaussian_clusters_zero_noise():
    """Test that zero noise places every point on its mean."""
    X, y = generate_gaussian_clusters([(1, 2), (3, 4)], n_per_cluster=4, std=0.0)

    np.testing.assert_allclose(X[y == 0], np.tile([1, 2], (4, 1)))
    np.testing.assert_allclose(X[y == 1], np.tile([3, 4], (4, 1)))


def test_generate_gaussian_clusters_reproducible():
    """Test that the seed fixes the draw."""
    X1, _ = generate_gaussian_clusters([(0, 0), (1, 1)], random_seed=3)
    X2, _ = generate_gaussian_clusters([(0, 0), (1, 1)], random_seed=3)
    X3, _ = generate_gaussian_clusters([(0, 0), (1, 1)], random_seed=4)

    np.testing.assert_array_equal(X1, X2)
    assert not np.allclose(X1, X3)


def test_generate_gaussian_clusters_invalid():
    """Test invalid arguments."""
    with pytest.raises(ValueError, match="At least one"):
        generate_gaussian_clusters([])
    with pytest.raises(ValueError):
        generate_gaussian_clusters([(0, 0), (1, 1, 1)])
    with pytest.raises(ValueError, match="n_per_cluster"):
        generate_gaussian_clusters([(0, 0)], n_per_cluster=0)
    with pytest.raises(ValueError, match="std"):
        generate_gaussian_clusters([(0, 0)], std=-1.0)
    with pytest.raises(ValueError, match="one entry per cluster"):
        generate_gaussian_clusters([(0, 0), (1, 1)], n_per_cluster=[1, 2, 3])


def test_make_lecture_blobs(blobs):
    """Test the three-blob example."""
    X, y = blobs

    assert X.shape == (45, 2)
    for c, mean in enumerate(LECTURE_MEANS):
        np.testing.assert_allclose(X[y == c].mean(axis=0), mean, atol=0.1)


def test_generate_factor_returns():
    """Test simulated returns and their sector structure."""
    returns, sectors = generate_factor_returns(
        n_sectors=3, assets_per_sector=4, n_periods=500, random_seed=1
    )

    assert isinstance(returns, pd.DataFrame)
    assert returns.shape == (500, 12)
    assert list(np.bincount(sectors)) == [4, 4, 4]

    corr = returns.corr().values
    same = sectors[:, None] == sectors[None, :]
    off_diag = ~np.eye(12, dtype=bool)
    assert corr[same & off_diag].mean() > corr[~same].mean()


def test_generate_factor_returns_invalid():
    """Test invalid arguments."""
    with pytest.raises(ValueError):
        generate_factor_returns(n_sectors=0)
    with pytest.raises(ValueError, match="n_periods"):
        generate_factor_returns(n_periods=1)
