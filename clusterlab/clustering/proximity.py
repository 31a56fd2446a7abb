"""
Proximity matrices for distance-based clustering.

A proximity matrix holds one dissimilarity per pair of objects. It is
square, symmetric, has a zero diagonal and is the only input the
agglomerative procedures need.
"""

import numpy as np
import pandas as pd
from typing import Union
from scipy.spatial.distance import pdist, squareform

from ..data.loader import validate_observations


METRICS = {
    'euclidean': 'euclidean',
    'sqeuclidean': 'sqeuclidean',
    'manhattan': 'cityblock',
    'cityblock': 'cityblock',
    'chebyshev': 'chebyshev',
    'cosine': 'cosine',
    'correlation': 'correlation',
}


def pairwise_distances(X, metric: str = 'euclidean') -> np.ndarray:
    """
    Compute the square dissimilarity matrix between all rows of X.

    Args:
        X: Observation matrix (n_objects x n_features)
        metric: One of 'euclidean', 'sqeuclidean', 'manhattan',
            'chebyshev', 'cosine', 'correlation'

    Returns:
        Symmetric (n_objects x n_objects) matrix with zero diagonal
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric}. Choose from {sorted(METRICS)}")
    X = validate_observations(X)
    D = squareform(pdist(X, metric=METRICS[metric]))
    np.fill_diagonal(D, 0.0)
    return D


def correlation_distance(
    returns: Union[pd.DataFrame, np.ndarray],
    method: str = 'sqrt'
) -> Union[pd.DataFrame, np.ndarray]:
    """
    Distance between assets derived from the correlation of their returns.

    Columns of `returns` are assets, rows are periods.

    Args:
        returns: Returns matrix (periods x assets)
        method: 'sqrt' for sqrt(2 * (1 - rho)), 'linear' for 1 - rho

    Returns:
        Asset x asset distance matrix (DataFrame if a DataFrame was given)
    """
    if method not in ('sqrt', 'linear'):
        raise ValueError(f"Unknown correlation distance method: {method}")

    values = validate_observations(returns)
    if values.shape[0] < 2:
        raise ValueError("At least two periods are needed to estimate correlations")

    rho = np.atleast_2d(np.corrcoef(values, rowvar=False))
    if not np.all(np.isfinite(rho)):
        raise ValueError("Correlation undefined for constant return series")

    dissim = np.clip(1.0 - rho, 0.0, 2.0)
    D = np.sqrt(2.0 * dissim) if method == 'sqrt' else dissim
    D = (D + D.T) / 2
    np.fill_diagonal(D, 0.0)

    if isinstance(returns, pd.DataFrame):
        return pd.DataFrame(D, index=returns.columns, columns=returns.columns)
    return D


def similarity_to_dissimilarity(S, method: str = 'max') -> np.ndarray:
    """
    Turn a similarity matrix into a dissimilarity matrix.

    Args:
        S: Square similarity matrix
        method: 'max' for max(S) - S, 'one' for 1 - S (similarities in [0, 1])

    Returns:
        Dissimilarity matrix with zero diagonal
    """
    S = np.asarray(S, dtype=float)
    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise ValueError(f"Similarity matrix must be square, got shape {S.shape}")

    if method == 'max':
        D = S.max() - S
    elif method == 'one':
        if S.min() < 0 or S.max() > 1:
            raise ValueError("Method 'one' requires similarities in [0, 1]")
        D = 1.0 - S
    else:
        raise ValueError(f"Unknown conversion method: {method}")

    np.fill_diagonal(D, 0.0)
    return D


def validate_proximity_matrix(D, tol: float = 1e-8) -> np.ndarray:
    """
    Check that D is a valid dissimilarity matrix.

    Args:
        D: Candidate proximity matrix
        tol: Absolute tolerance for symmetry and the zero diagonal

    Returns:
        Exactly symmetric float copy of D
    """
    D = np.array(D, dtype=float)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"Proximity matrix must be square, got shape {D.shape}")
    if D.shape[0] == 0:
        raise ValueError("Proximity matrix is empty")
    if not np.all(np.isfinite(D)):
        raise ValueError("Proximity matrix contains NaN or infinite values")
    if not np.allclose(D, D.T, atol=tol, rtol=0):
        raise ValueError("Proximity matrix is not symmetric")
    if np.any(np.abs(np.diag(D)) > tol):
        raise ValueError("Proximity matrix must have a zero diagonal")
    if np.any(D < -tol):
        raise ValueError("Proximity matrix contains negative dissimilarities")

    D = (D + D.T) / 2
    np.fill_diagonal(D, 0.0)
    return np.maximum(D, 0.0)


def to_condensed(D) -> np.ndarray:
    """Square proximity matrix to condensed (upper triangle) vector."""
    return squareform(validate_proximity_matrix(D), checks=False)


def to_square(d) -> np.ndarray:
    """Condensed distance vector to square proximity matrix."""
    d = np.asarray(d, dtype=float)
    if d.ndim != 1:
        raise ValueError("Condensed distances must be a 1-D vector")
    return squareform(d, checks=False)
