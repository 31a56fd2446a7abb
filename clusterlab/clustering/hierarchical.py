"""
Agglomerative hierarchical clustering.

Starting from singletons, the two closest clusters are merged repeatedly
until one cluster remains. After each merge the distances from the new
cluster to every other cluster are derived from the old distances with
the Lance-Williams recurrence

    d(k, i+j) = a_i d(k, i) + a_j d(k, j) + b d(i, j) + g |d(k, i) - d(k, j)|

so the raw observations are never revisited. The merge history is
returned as a linkage matrix in the scipy layout: row t holds
[cluster a, cluster b, merge distance, size of the new cluster], with
ids below N naming original objects and id N + t naming the cluster
formed at row t.
"""

import numpy as np
import pandas as pd
from typing import Optional

from .proximity import pairwise_distances, validate_proximity_matrix
from ..data.loader import validate_observations


LINKAGE_METHODS = ('single', 'complete', 'average', 'weighted', 'centroid', 'median', 'ward')

# Recurrences that are only geometrically meaningful on squared Euclidean distances
SQUARED_METHODS = ('centroid', 'median', 'ward')

# Criteria whose merge distances can never decrease
MONOTONIC_METHODS = ('single', 'complete', 'average', 'weighted', 'ward')


def _lance_williams(
    method: str,
    d_ki: np.ndarray,
    d_kj: np.ndarray,
    d_ij: float,
    n_i: int,
    n_j: int,
    n_k: np.ndarray
) -> np.ndarray:
    """Distance from every other cluster k to the merged cluster i+j."""
    if method == 'single':
        return np.minimum(d_ki, d_kj)
    if method == 'complete':
        return np.maximum(d_ki, d_kj)
    if method == 'average':
        return (n_i * d_ki + n_j * d_kj) / (n_i + n_j)
    if method == 'weighted':
        return 0.5 * (d_ki + d_kj)
    if method == 'centroid':
        n = n_i + n_j
        return (n_i * d_ki + n_j * d_kj) / n - n_i * n_j * d_ij / n ** 2
    if method == 'median':
        return 0.5 * d_ki + 0.5 * d_kj - 0.25 * d_ij
    if method == 'ward':
        total = n_i + n_j + n_k
        return ((n_i + n_k) * d_ki + (n_j + n_k) * d_kj - n_k * d_ij) / total
    raise ValueError(f"Unknown linkage method: {method}. Choose from {LINKAGE_METHODS}")


def agglomerate(D, method: str = 'single') -> np.ndarray:
    """
    Build the full merge hierarchy from a proximity matrix.

    Args:
        D: Square dissimilarity matrix (n_objects x n_objects)
        method: Linkage criterion, one of LINKAGE_METHODS. Centroid,
            median and Ward expect Euclidean distances.

    Returns:
        Linkage matrix of shape (n_objects - 1, 4)
    """
    if method not in LINKAGE_METHODS:
        raise ValueError(f"Unknown linkage method: {method}. Choose from {LINKAGE_METHODS}")

    dist = validate_proximity_matrix(D)
    n = dist.shape[0]
    Z = np.zeros((max(n - 1, 0), 4))
    if n < 2:
        return Z

    squared = method in SQUARED_METHODS
    if squared:
        dist = dist ** 2
    np.fill_diagonal(dist, np.inf)

    # Slot s holds cluster ids[s]; a merge reuses the lower slot
    ids = np.arange(n)
    sizes = np.ones(n, dtype=int)
    active = np.ones(n, dtype=bool)

    for step in range(n - 1):
        flat = int(np.argmin(dist))
        i, j = divmod(flat, n)
        if i > j:
            i, j = j, i
        d_ij = dist[i, j]

        height = np.sqrt(max(d_ij, 0.0)) if squared else d_ij
        a, b = sorted((ids[i], ids[j]))
        Z[step] = [a, b, height, sizes[i] + sizes[j]]

        active[i] = active[j] = False
        others = np.flatnonzero(active)
        if len(others):
            new = _lance_williams(
                method, dist[i, others], dist[j, others], d_ij,
                sizes[i], sizes[j], sizes[others]
            )
            if squared:
                new = np.maximum(new, 0.0)
            dist[i, others] = new
            dist[others, i] = new

        dist[j, :] = np.inf
        dist[:, j] = np.inf
        active[i] = True
        sizes[i] += sizes[j]
        ids[i] = n + step

    return Z


def linkage(X, method: str = 'single', metric: str = 'euclidean') -> np.ndarray:
    """
    Agglomerative clustering of observations.

    Args:
        X: Observation matrix (n_objects x n_features)
        method: Linkage criterion
        metric: Dissimilarity between objects (see proximity.METRICS)

    Returns:
        Linkage matrix of shape (n_objects - 1, 4)
    """
    if method in SQUARED_METHODS and metric != 'euclidean':
        raise ValueError(f"Method '{method}' requires the euclidean metric, got '{metric}'")
    return agglomerate(pairwise_distances(X, metric=metric), method=method)


def validate_linkage(
    Z,
    n_objects: Optional[int] = None,
    check_monotonic: bool = False,
    tol: float = 1e-10
) -> np.ndarray:
    """
    Check the structure of a linkage matrix.

    Every row must merge two clusters that already exist (an original
    object or a cluster formed by an earlier row) and that have not
    been merged before; the recorded size must equal the sum of the
    merged sizes.

    Args:
        Z: Candidate linkage matrix
        n_objects: Expected number of original objects
        check_monotonic: Also require non-decreasing merge distances
        tol: Tolerance for the monotonicity check

    Returns:
        Z as a float array
    """
    Z = np.asarray(Z, dtype=float)
    if Z.ndim != 2 or Z.shape[1] != 4:
        raise ValueError(f"Linkage matrix must have shape (n - 1, 4), got {Z.shape}")

    n = Z.shape[0] + 1
    if n_objects is not None and n != n_objects:
        raise ValueError(f"Linkage matrix has {Z.shape[0]} merges, expected {n_objects - 1}")
    if not np.all(np.isfinite(Z)):
        raise ValueError("Linkage matrix contains NaN or infinite values")

    ids = Z[:, :2]
    if np.any(ids != np.floor(ids)):
        raise ValueError("Cluster identifiers must be integers")
    if np.any(Z[:, 2] < 0):
        raise ValueError("Merge distances must be non-negative")

    sizes = np.ones(2 * n - 1)
    used = np.zeros(2 * n - 1, dtype=bool)
    for t, (a, b, _, size) in enumerate(Z):
        a, b = int(a), int(b)
        for c in (a, b):
            if c < 0 or c >= n + t:
                raise ValueError(f"Row {t} references cluster {c} before it exists")
            if used[c]:
                raise ValueError(f"Cluster {c} is merged more than once")
        if a == b:
            raise ValueError(f"Row {t} merges cluster {a} with itself")
        used[a] = used[b] = True
        sizes[n + t] = sizes[a] + sizes[b]
        if size != sizes[n + t]:
            raise ValueError(f"Row {t} records size {size:g}, expected {sizes[n + t]:g}")

    if check_monotonic and not is_monotonic(Z, tol=tol):
        raise ValueError("Merge distances are not non-decreasing")

    return Z


def is_monotonic(Z, tol: float = 1e-10) -> bool:
    """True when merge distances never decrease."""
    heights = np.asarray(Z, dtype=float)[:, 2]
    return bool(np.all(np.diff(heights) >= -tol))


def _leaf_members(Z: np.ndarray, n: int) -> list:
    members = [[i] for i in range(n)]
    for a, b, _, _ in Z:
        members.append(members[int(a)] + members[int(b)])
    return members


def fcluster_maxclust(Z, n_clusters: int) -> np.ndarray:
    """
    Cut the hierarchy into a fixed number of clusters.

    The first N - K merges are applied; the remaining K - 1 are undone.

    Args:
        Z: Linkage matrix
        n_clusters: Number of flat clusters K, in [1, N]

    Returns:
        Labels 0..K-1, numbered in order of first appearance
    """
    Z = validate_linkage(Z)
    n = Z.shape[0] + 1
    if int(n_clusters) != n_clusters or not 1 <= n_clusters <= n:
        raise ValueError(f"n_clusters must be an integer in [1, {n}], got {n_clusters}")

    keep = np.zeros(len(Z), dtype=bool)
    keep[:n - int(n_clusters)] = True
    return _labels_from_merges(Z, n, keep)


def fcluster_distance(Z, threshold: float) -> np.ndarray:
    """
    Cut the hierarchy at a merge distance.

    Objects end up together when every merge on the path joining them is
    at or below the threshold.

    Args:
        Z: Linkage matrix
        threshold: Cut height

    Returns:
        Labels numbered in order of first appearance
    """
    Z = validate_linkage(Z)
    n = Z.shape[0] + 1

    # Height of a subtree is the largest merge inside it
    subtree = np.zeros(2 * n - 1)
    for t, (a, b, d, _) in enumerate(Z):
        subtree[n + t] = max(d, subtree[int(a)], subtree[int(b)])

    keep = subtree[n:] <= threshold
    return _labels_from_merges(Z, n, keep)


def _labels_from_merges(Z: np.ndarray, n: int, keep: np.ndarray) -> np.ndarray:
    parent = np.arange(n)

    def find(x):
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    # Any leaf of a cluster stands in for it
    rep = np.zeros(2 * n - 1, dtype=int)
    rep[:n] = np.arange(n)
    for t, (a, b, _, _) in enumerate(Z):
        a, b = int(a), int(b)
        rep[n + t] = rep[a]
        if keep[t]:
            ra, rb = find(rep[a]), find(rep[b])
            parent[max(ra, rb)] = min(ra, rb)

    roots = np.array([find(i) for i in range(n)])
    _, labels = np.unique(roots, return_inverse=True)
    # np.unique orders by root index, which is the smallest member: first appearance
    return labels.astype(int)


def cophenetic_distances(Z) -> np.ndarray:
    """
    Square matrix of the merge distance at which each pair first joins.

    Args:
        Z: Linkage matrix

    Returns:
        Symmetric (n_objects x n_objects) cophenetic matrix
    """
    Z = validate_linkage(Z)
    n = Z.shape[0] + 1
    members = _leaf_members(Z, n)
    C = np.zeros((n, n))
    for a, b, d, _ in Z:
        left, right = members[int(a)], members[int(b)]
        C[np.ix_(left, right)] = d
        C[np.ix_(right, left)] = d
    return C


def cophenetic_correlation(Z, D) -> float:
    """
    Pearson correlation between cophenetic and original distances.

    Values close to 1 mean the dendrogram preserves the original
    pairwise distances well.
    """
    C = cophenetic_distances(Z)
    D = validate_proximity_matrix(D)
    if C.shape != D.shape:
        raise ValueError(f"Linkage covers {C.shape[0]} objects, proximity matrix {D.shape[0]}")
    iu = np.triu_indices(C.shape[0], k=1)
    if len(iu[0]) < 2:
        raise ValueError("Cophenetic correlation needs at least three objects")
    return float(np.corrcoef(C[iu], D[iu])[0, 1])


def merge_sequence(Z) -> pd.DataFrame:
    """Linkage matrix as a readable table of merges."""
    Z = validate_linkage(Z)
    n = Z.shape[0] + 1
    return pd.DataFrame({
        'step': np.arange(1, len(Z) + 1),
        'cluster_a': Z[:, 0].astype(int),
        'cluster_b': Z[:, 1].astype(int),
        'distance': Z[:, 2],
        'size': Z[:, 3].astype(int),
        'new_cluster': n + np.arange(len(Z)),
    })


def hierarchical_clustering(
    X,
    n_clusters: int,
    method: str = 'single',
    metric: str = 'euclidean',
    precomputed: bool = False,
    verbose: bool = True
):
    """
    Build the hierarchy and cut it into a fixed number of clusters.

    Args:
        X: Observation matrix, or a proximity matrix when precomputed
        n_clusters: Number of flat clusters
        method: Linkage criterion
        metric: Dissimilarity between objects (ignored when precomputed)
        precomputed: Whether X is already a proximity matrix
        verbose: Whether to print progress

    Returns:
        Tuple of (linkage matrix, flat labels, proximity matrix)
    """
    if verbose:
        print(f"\n[Clustering] Agglomerative clustering ({method} linkage)...")

    if precomputed:
        D = validate_proximity_matrix(X)
    else:
        if method in SQUARED_METHODS and metric != 'euclidean':
            raise ValueError(f"Method '{method}' requires the euclidean metric, got '{metric}'")
        D = pairwise_distances(validate_observations(X), metric=metric)

    Z = agglomerate(D, method=method)
    labels = fcluster_maxclust(Z, n_clusters)

    if verbose:
        print(f"✓ {len(Z)} merges over {D.shape[0]} objects")
        if len(Z):
            print(f"  Merge heights: {Z[0, 2]:.4f} .. {Z[-1, 2]:.4f}"
                  f" ({'monotonic' if is_monotonic(Z) else 'with inversions'})")
        sizes = np.bincount(labels)
        for c, size in enumerate(sizes):
            print(f"  Cluster {c}: {size:4d} objects")

    return Z, labels, D
