"""
K-means partitional clustering.

This module implements centroid-based clustering with Lloyd iterations:
assign each object to its nearest centroid, recompute each centroid as
the mean of its members, and repeat until the assignments settle.
Several random restarts are run and the lowest-inertia solution kept,
since each run only reaches a local optimum.
"""

import json
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from sklearn.preprocessing import StandardScaler

from ..data.loader import validate_observations


INIT_STRATEGIES = ('random', 'random_partition', 'k-means++')


@dataclass
class KMeansResult:
    """Outcome of a k-means fit."""
    labels: np.ndarray  # Cluster index per object, in [0, K)
    centroids: np.ndarray  # K x F
    inertia: float  # Total within-cluster squared distance
    n_iter: int
    converged: bool
    inertia_history: List[float] = field(default_factory=list)

    @property
    def n_clusters(self) -> int:
        return len(self.centroids)

    def cluster_sizes(self) -> np.ndarray:
        return np.bincount(self.labels, minlength=self.n_clusters)


def _squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Squared Euclidean distance from every object to every centroid."""
    diff = X[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return np.einsum('nkf,nkf->nk', diff, diff)


def _inertia(X: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> float:
    return float(np.sum((X - centroids[labels]) ** 2))


def assign_to_centroids(X, centroids) -> np.ndarray:
    """
    Assign each object to its nearest centroid.

    Args:
        X: Observation matrix (n_objects x n_features)
        centroids: Centroid matrix (n_clusters x n_features)

    Returns:
        Index of the nearest centroid for every object (ties go to the
        lowest index)
    """
    X = validate_observations(X)
    centroids = np.atleast_2d(np.asarray(centroids, dtype=float))
    if centroids.shape[1] != X.shape[1]:
        raise ValueError(
            f"Centroids have {centroids.shape[1]} features, observations have {X.shape[1]}"
        )
    return np.argmin(_squared_distances(X, centroids), axis=1)


def _init_random(X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    idx = rng.choice(len(X), size=k, replace=False)
    return X[idx].copy()


def _init_random_partition(X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    labels = rng.integers(0, k, size=len(X))
    # Every cluster gets at least one object
    labels[rng.permutation(len(X))[:k]] = np.arange(k)
    return np.vstack([X[labels == j].mean(axis=0) for j in range(k)])


def _init_kmeans_plus_plus(X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    n = len(X)
    chosen = [int(rng.integers(n))]
    closest = np.sum((X - X[chosen[0]]) ** 2, axis=1)

    for _ in range(1, k):
        total = closest.sum()
        if total > 0:
            probs = closest / total
        else:
            # All remaining objects coincide with a chosen centroid
            probs = np.ones(n)
            probs[chosen] = 0
            probs /= probs.sum()
        nxt = int(rng.choice(n, p=probs))
        chosen.append(nxt)
        closest = np.minimum(closest, np.sum((X - X[nxt]) ** 2, axis=1))

    return X[chosen].copy()


def _initialize(
    X: np.ndarray,
    k: int,
    init: Union[str, np.ndarray],
    rng: np.random.Generator
) -> np.ndarray:
    if isinstance(init, str):
        if init == 'random':
            return _init_random(X, k, rng)
        if init == 'random_partition':
            return _init_random_partition(X, k, rng)
        if init == 'k-means++':
            return _init_kmeans_plus_plus(X, k, rng)
        raise ValueError(f"Unknown init strategy: {init}. Choose from {INIT_STRATEGIES}")

    centroids = np.asarray(init, dtype=float)
    if centroids.shape != (k, X.shape[1]):
        raise ValueError(
            f"Initial centroids must have shape {(k, X.shape[1])}, got {centroids.shape}"
        )
    return centroids.copy()


def _refit(X: np.ndarray, labels: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Recompute centroids as member means and reseed empty clusters.

    An empty cluster takes over the object farthest from its own
    centroid (taken from a cluster with at least two members), which
    never increases the inertia.
    """
    labels = labels.copy()
    counts = np.bincount(labels, minlength=k)
    centroids = np.zeros((k, X.shape[1]))
    for j in np.flatnonzero(counts):
        centroids[j] = X[labels == j].mean(axis=0)

    for j in np.flatnonzero(counts == 0):
        dist = np.sum((X - centroids[labels]) ** 2, axis=1)
        dist[counts[labels] < 2] = -1.0
        i = int(np.argmax(dist))
        donor = labels[i]

        labels[i] = j
        counts[donor] -= 1
        counts[j] = 1
        centroids[j] = X[i]
        centroids[donor] = X[labels == donor].mean(axis=0)

    return labels, centroids


def _lloyd(
    X: np.ndarray,
    centroids: np.ndarray,
    max_iter: int,
    tol: float
) -> KMeansResult:
    """Single k-means run from the given starting centroids."""
    k = len(centroids)
    labels, centroids = _refit(X, assign_to_centroids(X, centroids), k)
    history = [_inertia(X, labels, centroids)]
    converged = False
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        new_labels = assign_to_centroids(X, centroids)
        if np.array_equal(new_labels, labels):
            converged = True
            break

        new_labels, new_centroids = _refit(X, new_labels, k)
        shift = float(np.sum((new_centroids - centroids) ** 2))
        labels, centroids = new_labels, new_centroids
        history.append(_inertia(X, labels, centroids))

        if shift <= tol:
            converged = True
            break

    return KMeansResult(
        labels=labels,
        centroids=centroids,
        inertia=history[-1],
        n_iter=n_iter,
        converged=converged,
        inertia_history=history
    )


def kmeans(
    X,
    n_clusters: int,
    init: Union[str, np.ndarray] = 'k-means++',
    n_init: int = 10,
    max_iter: int = 300,
    tol: float = 1e-4,
    random_seed: Optional[int] = 42
) -> KMeansResult:
    """
    Partition objects into K groups minimizing within-group squared distance.

    Args:
        X: Observation matrix (n_objects x n_features)
        n_clusters: Target number of clusters K
        init: 'random', 'random_partition', 'k-means++' or a K x F array
        n_init: Number of restarts (ignored when init is an array)
        max_iter: Iteration cap per restart
        tol: Convergence tolerance on centroid movement, relative to the
            mean feature variance
        random_seed: Seed shared by all restarts

    Returns:
        KMeansResult of the restart with the lowest inertia
    """
    X = validate_observations(X)
    n_samples = X.shape[0]

    if int(n_clusters) != n_clusters or not 1 <= n_clusters <= n_samples:
        raise ValueError(
            f"n_clusters must be an integer in [1, {n_samples}], got {n_clusters}"
        )
    n_clusters = int(n_clusters)
    if n_init < 1:
        raise ValueError(f"n_init must be positive, got {n_init}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be positive, got {max_iter}")
    if tol < 0:
        raise ValueError(f"tol must be non-negative, got {tol}")

    if not isinstance(init, str):
        n_init = 1

    abs_tol = tol * float(np.mean(np.var(X, axis=0)))
    rng = np.random.default_rng(random_seed)

    best = None
    for _ in range(n_init):
        start = _initialize(X, n_clusters, init, rng)
        result = _lloyd(X, start, max_iter, abs_tol)
        if best is None or result.inertia < best.inertia:
            best = result

    return best


def perform_clustering(
    X,
    n_clusters: int,
    standardize: bool = True,
    init: str = 'k-means++',
    n_init: int = 10,
    max_iter: int = 300,
    random_seed: int = 42,
    verbose: bool = True
) -> Tuple[KMeansResult, Optional[StandardScaler], np.ndarray]:
    """
    Run k-means on an observation matrix with optional standardization.

    Args:
        X: Observation matrix
        n_clusters: Number of clusters
        standardize: Whether to scale features to unit variance first
        init: Initialization strategy
        n_init: Number of restarts
        max_iter: Iteration cap per restart
        random_seed: Random seed
        verbose: Whether to print progress

    Returns:
        Tuple of (fitted result, scaler or None, matrix that was clustered)
    """
    if verbose:
        print(f"\n[Clustering] K-means with K={n_clusters} ({n_init} restarts, init={init})...")

    X = validate_observations(X)
    scaler = None
    if standardize:
        scaler = StandardScaler()
        X = scaler.fit_transform(X)
        if verbose:
            print(f"✓ Standardized features: {X.shape}")

    result = kmeans(
        X, n_clusters, init=init, n_init=n_init,
        max_iter=max_iter, random_seed=random_seed
    )

    if verbose:
        status = "converged" if result.converged else "hit max_iter"
        print(f"✓ {status} after {result.n_iter} iterations, inertia = {result.inertia:.4f}")
        sizes = result.cluster_sizes()
        for c in range(n_clusters):
            pct = sizes[c] / len(result.labels) * 100
            print(f"  Cluster {c}: {sizes[c]:4d} objects ({pct:5.1f}%)")

    return result, scaler, X


def analyze_clusters(
    X,
    labels: np.ndarray,
    feature_names: Optional[List[str]] = None,
    verbose: bool = True
) -> pd.DataFrame:
    """
    Describe each cluster by its size and feature means.

    Args:
        X: Observation matrix used for clustering
        labels: Cluster assignments
        feature_names: Optional names for the feature columns
        verbose: Whether to print the profile

    Returns:
        DataFrame indexed by cluster with size, share, the mean of every
        feature and the largest absolute deviation from the overall mean
    """
    if isinstance(X, pd.DataFrame) and feature_names is None:
        feature_names = [str(c) for c in X.columns]
    values = validate_observations(X)
    labels = np.asarray(labels)
    if len(labels) != len(values):
        raise ValueError(f"Got {len(labels)} labels for {len(values)} objects")

    if feature_names is None:
        feature_names = [f"x{i}" for i in range(values.shape[1])]

    df = pd.DataFrame(values, columns=feature_names)
    overall_mean = df.mean()
    means = df.groupby(labels).mean()

    profile = pd.DataFrame({
        'size': pd.Series(labels).value_counts().sort_index(),
    })
    profile['share'] = profile['size'] / len(labels)
    profile = profile.join(means)
    profile['max_deviation'] = (means - overall_mean).abs().max(axis=1)
    profile.index.name = 'cluster'

    if verbose:
        for c, row in profile.iterrows():
            print(f"\n{'='*80}")
            print(f"CLUSTER {c}")
            print(f"{'='*80}")
            print(f"Size: {int(row['size'])} objects ({row['share']*100:.1f}%)")
            deviations = (means.loc[c] - overall_mean).abs().nlargest(5)
            for feat in deviations.index:
                cluster_val = means.loc[c, feat]
                overall_val = overall_mean[feat]
                direction = "↑" if cluster_val > overall_val else "↓"
                print(f"  {direction} {feat:20s}: {cluster_val:8.3f} (avg: {overall_val:8.3f})")

    return profile


def save_cluster_results(
    labels: np.ndarray,
    profile: pd.DataFrame,
    output_path: Union[str, Path],
    object_ids: Optional[List] = None,
    verbose: bool = True
) -> Dict[str, Path]:
    """
    Save cluster assignments and per-cluster statistics.

    Args:
        labels: Cluster assignments
        profile: Output of analyze_clusters
        output_path: Output directory
        object_ids: Optional identifiers for the objects
        verbose: Whether to print progress

    Returns:
        Dictionary with the written file paths
    """
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    labels = np.asarray(labels)
    if object_ids is None:
        object_ids = list(range(len(labels)))

    cluster_df = pd.DataFrame({'object': object_ids, 'cluster': labels})
    csv_path = output_path / 'cluster_assignments.csv'
    cluster_df.to_csv(csv_path, index=False)

    if verbose:
        print(f"✓ Saved {csv_path}")

    cluster_stats = {
        str(c): {k: float(v) for k, v in row.items()}
        for c, row in profile.iterrows()
    }
    json_path = output_path / 'cluster_statistics.json'
    with open(json_path, 'w') as f:
        json.dump(cluster_stats, f, indent=2)

    if verbose:
        print(f"✓ Saved {json_path}")

    return {'assignments': csv_path, 'statistics': json_path}
