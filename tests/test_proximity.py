"""
Tests for proximity matrices.
"""
import numpy as np
import pandas as pd
import pytest

from clusterlab.clustering import (
    pairwise_distances,
    correlation_distance,
    similarity_to_dissimilarity,
    validate_proximity_matrix,
    to_condensed,
    to_square,
)


def test_pairwise_distances_euclidean():
    """Test a known 3-4-5 triangle."""
    X = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 4.0]])

    D = pairwise_distances(X)

    expected = np.array([[0, 3, 4], [3, 0, 5], [4, 5, 0]], dtype=float)
    np.testing.assert_allclose(D, expected)


def test_pairwise_distances_manhattan():
    """Test the manhattan alias."""
    X = np.array([[0.0, 0.0], [3.0, 4.0]])

    D = pairwise_distances(X, metric='manhattan')

    assert D[0, 1] == pytest.approx(7.0)


def test_pairwise_distances_properties(random_points):
    """Test symmetry, zero diagonal and non-negativity."""
    D = pairwise_distances(random_points, metric='chebyshev')

    np.testing.assert_array_equal(D, D.T)
    assert np.all(np.diag(D) == 0)
    assert np.all(D >= 0)


def test_pairwise_distances_unknown_metric():
    """Test unknown metric names."""
    with pytest.raises(ValueError, match="Unknown metric"):
        pairwise_distances(np.zeros((3, 2)), metric='hamming-ish')


def test_correlation_distance():
    """Test correlation distance on perfectly (anti)correlated series."""
    base = np.array([0.01, -0.02, 0.03, 0.00, -0.01])
    returns = pd.DataFrame({'A': base, 'B': 2 * base, 'C': -base})

    D = correlation_distance(returns)

    assert isinstance(D, pd.DataFrame)
    assert list(D.index) == ['A', 'B', 'C']
    assert D.loc['A', 'B'] == pytest.approx(0.0, abs=1e-7)
    assert D.loc['A', 'C'] == pytest.approx(2.0)

    linear = correlation_distance(returns.values, method='linear')
    assert isinstance(linear, np.ndarray)
    assert linear[0, 2] == pytest.approx(2.0)


def test_correlation_distance_invalid():
    """Test degenerate return series."""
    with pytest.raises(ValueError, match="two periods"):
        correlation_distance(np.array([[0.01, 0.02]]))
    with pytest.raises(ValueError, match="constant"):
        correlation_distance(np.array([[0.01, 0.02], [0.01, 0.03], [0.01, 0.01]]))
    with pytest.raises(ValueError, match="Unknown correlation distance"):
        correlation_distance(np.eye(3), method='angular')


def test_similarity_to_dissimilarity():
    """Test both conversion rules."""
    S = np.array([[1.0, 0.8], [0.8, 1.0]])

    np.testing.assert_allclose(similarity_to_dissimilarity(S, 'one'), [[0, 0.2], [0.2, 0]])
    np.testing.assert_allclose(similarity_to_dissimilarity(S * 5, 'max'), [[0, 1], [1, 0]])

    with pytest.raises(ValueError, match=r"\[0, 1\]"):
        similarity_to_dissimilarity(S * 5, 'one')


def test_validate_proximity_matrix_accepts_valid(random_points):
    """Test that a valid matrix is returned as a copy."""
    D = pairwise_distances(random_points)

    checked = validate_proximity_matrix(D)

    np.testing.assert_allclose(checked, D)
    assert checked is not D


@pytest.mark.parametrize("matrix, message", [
    (np.zeros((2, 3)), "square"),
    (np.zeros((0, 0)), "empty"),
    (np.array([[0.0, np.nan], [np.nan, 0.0]]), "NaN"),
    (np.array([[0.0, 1.0], [2.0, 0.0]]), "symmetric"),
    (np.array([[1.0, 1.0], [1.0, 0.0]]), "diagonal"),
    (np.array([[0.0, -1.0], [-1.0, 0.0]]), "negative"),
])
def test_validate_proximity_matrix_rejects(matrix, message):
    """Test every structural violation."""
    with pytest.raises(ValueError, match=message):
        validate_proximity_matrix(matrix)


def test_condensed_conversion(random_points):
    """Test condensed form length and inversion."""
    D = pairwise_distances(random_points)

    d = to_condensed(D)

    assert d.shape == (30 * 29 // 2,)
    np.testing.assert_allclose(to_square(d), D)
