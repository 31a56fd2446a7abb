"""
Heuristics for choosing the number of clusters.

Three independent procedures are provided and each produces its own
recommendation:

- Variance ratio / elbow: within- and between-cluster sums of squares
  over a range of K, scored by [BSS/(K-1)] / [WSS/(n-K)].
- Gap statistic: observed log within-cluster dispersion against the
  dispersion expected under a uniform reference distribution.
- Silhouette: s = (b - a) / max(a, b) per object, averaged.

The procedures are not combined; they can and do disagree.
"""

import numpy as np
import pandas as pd
from typing import Callable, Dict, List, Optional, Tuple

from .kmeans import kmeans
from .hierarchical import LINKAGE_METHODS, fcluster_maxclust, linkage
from .proximity import pairwise_distances, validate_proximity_matrix
from ..data.loader import validate_observations


def total_sum_of_squares(X) -> float:
    """Squared distance of every object to the grand mean, summed."""
    X = validate_observations(X)
    return float(np.sum((X - X.mean(axis=0)) ** 2))


def within_cluster_sum_of_squares(X, labels) -> float:
    """Squared distance of every object to its cluster centroid, summed."""
    X = validate_observations(X)
    labels = _check_labels(labels, len(X))
    wss = 0.0
    for c in np.unique(labels):
        members = X[labels == c]
        wss += float(np.sum((members - members.mean(axis=0)) ** 2))
    return wss


def between_cluster_sum_of_squares(X, labels) -> float:
    """Size-weighted squared distance of cluster centroids to the grand mean."""
    X = validate_observations(X)
    labels = _check_labels(labels, len(X))
    grand_mean = X.mean(axis=0)
    bss = 0.0
    for c in np.unique(labels):
        members = X[labels == c]
        bss += len(members) * float(np.sum((members.mean(axis=0) - grand_mean) ** 2))
    return bss


def variance_ratio(X, labels) -> float:
    """
    Variance ratio criterion [BSS/(k-1)] / [WSS/(n-k)].

    Defined for 2 <= k <= n - 1 clusters; infinite when every cluster
    is a single point cloud with zero spread.
    """
    X = validate_observations(X)
    labels = _check_labels(labels, len(X))
    n = len(X)
    k = len(np.unique(labels))
    if not 2 <= k <= n - 1:
        raise ValueError(f"Variance ratio needs 2 <= k <= n - 1 clusters, got k={k}, n={n}")

    wss = within_cluster_sum_of_squares(X, labels)
    bss = between_cluster_sum_of_squares(X, labels)
    if wss == 0:
        return np.inf
    return (bss / (k - 1)) / (wss / (n - k))


def _check_labels(labels, n: int) -> np.ndarray:
    labels = np.asarray(labels)
    if labels.ndim != 1 or len(labels) != n:
        raise ValueError(f"Expected {n} labels, got shape {labels.shape}")
    return labels


def _check_k_range(k_range, n: int, min_k: int = 1) -> List[int]:
    ks = [int(k) for k in k_range]
    if not ks:
        raise ValueError("k_range is empty")
    bad = [k for k in ks if not min_k <= k <= n]
    if bad:
        raise ValueError(f"k values {bad} outside [{min_k}, {n}]")
    return ks


def _make_labeler(
    X: np.ndarray,
    clusterer: str,
    n_init: int,
    random_seed: Optional[int]
) -> Callable[[int], np.ndarray]:
    """Return a function k -> labels for the requested clustering procedure."""
    if clusterer == 'kmeans':
        def label_kmeans(k: int) -> np.ndarray:
            return kmeans(X, k, n_init=n_init, random_seed=random_seed).labels
        return label_kmeans

    if clusterer in LINKAGE_METHODS:
        Z = linkage(X, method=clusterer)

        def label_hierarchy(k: int) -> np.ndarray:
            return fcluster_maxclust(Z, k)
        return label_hierarchy

    raise ValueError(
        f"Unknown clusterer: {clusterer}. Use 'kmeans' or one of {LINKAGE_METHODS}"
    )


def elbow_analysis(
    X,
    k_range=range(1, 11),
    clusterer: str = 'kmeans',
    n_init: int = 10,
    random_seed: Optional[int] = 42,
    verbose: bool = True
) -> pd.DataFrame:
    """
    Within/between sums of squares and variance ratio for a range of K.

    Args:
        X: Observation matrix
        k_range: Cluster counts to evaluate
        clusterer: 'kmeans' or a linkage method
        n_init: Restarts per K (k-means only)
        random_seed: Random seed
        verbose: Whether to print progress

    Returns:
        DataFrame with columns k, wss, bss, variance_ratio, explained
        (BSS/TSS) and improvement (relative WSS drop from the previous row)
    """
    X = validate_observations(X)
    n = len(X)
    ks = _check_k_range(k_range, n)
    label = _make_labeler(X, clusterer, n_init, random_seed)
    tss = total_sum_of_squares(X)

    if verbose:
        print("\n[Selection] Elbow / variance ratio analysis...")

    rows = []
    for k in ks:
        labels = label(k)
        wss = within_cluster_sum_of_squares(X, labels)
        bss = tss - wss
        ratio = variance_ratio(X, labels) if 2 <= k <= n - 1 else np.nan
        rows.append({
            'k': k,
            'wss': wss,
            'bss': bss,
            'variance_ratio': ratio,
            'explained': bss / tss if tss > 0 else np.nan,
        })
        if verbose:
            print(f"  k={k}: WSS = {wss:.4f}, BSS = {bss:.4f}, ratio = {ratio:.4f}")

    table = pd.DataFrame(rows)
    prev = table['wss'].shift(1)
    table['improvement'] = (prev - table['wss']) / prev.where(prev > 0)
    return table


def select_k_variance_ratio(table: pd.DataFrame) -> int:
    """K with the largest variance ratio."""
    ratios = table['variance_ratio']
    if ratios.isna().all():
        raise ValueError("No K in the table has a defined variance ratio")
    return int(table.loc[ratios.idxmax(), 'k'])


def select_k_elbow(table: pd.DataFrame, threshold: float = 0.1) -> int:
    """
    K after which adding a cluster stops paying off.

    Walks the table in order and returns the last K before the relative
    WSS improvement drops below the threshold.
    """
    ks = table['k'].tolist()
    improvements = table['improvement'].tolist()
    for i in range(1, len(ks)):
        if np.isnan(improvements[i]) or improvements[i] < threshold:
            return int(ks[i - 1])
    return int(ks[-1])


def _reference_sampler(X: np.ndarray, reference: str, rng: np.random.Generator):
    """Return a function drawing one null dataset shaped like X."""
    if reference == 'uniform':
        lo, hi = X.min(axis=0), X.max(axis=0)

        def draw_uniform() -> np.ndarray:
            return rng.uniform(lo, hi, size=X.shape)
        return draw_uniform

    if reference == 'pca':
        mean = X.mean(axis=0)
        _, _, vt = np.linalg.svd(X - mean, full_matrices=False)
        projected = (X - mean) @ vt.T
        lo, hi = projected.min(axis=0), projected.max(axis=0)

        def draw_pca() -> np.ndarray:
            sample = rng.uniform(lo, hi, size=(X.shape[0], len(lo)))
            return sample @ vt + mean
        return draw_pca

    raise ValueError(f"Unknown reference distribution: {reference}. Use 'uniform' or 'pca'")


def _log_dispersion(X: np.ndarray, labels: np.ndarray) -> float:
    # Pooled within-cluster dispersion W_k equals the within-cluster sum of squares
    wss = within_cluster_sum_of_squares(X, labels)
    return float(np.log(max(wss, np.finfo(float).tiny)))


def gap_statistic(
    X,
    k_range=range(1, 11),
    n_references: int = 10,
    reference: str = 'uniform',
    clusterer: str = 'kmeans',
    n_init: int = 10,
    random_seed: Optional[int] = 42,
    verbose: bool = True
) -> pd.DataFrame:
    """
    Gap statistic over a range of K.

    Gap(k) = E*[log W_k] - log W_k, where the expectation is estimated
    from `n_references` datasets drawn from the null distribution and
    clustered with the same procedure.

    Args:
        X: Observation matrix
        k_range: Cluster counts to evaluate
        n_references: Number of reference datasets B
        reference: 'uniform' (feature bounding box) or 'pca' (box aligned
            with the principal components)
        clusterer: 'kmeans' or a linkage method
        n_init: Restarts per K (k-means only)
        random_seed: Random seed
        verbose: Whether to print progress

    Returns:
        DataFrame with columns k, log_wk, ref_log_wk, gap, sk
    """
    X = validate_observations(X)
    ks = _check_k_range(k_range, len(X))
    if n_references < 1:
        raise ValueError(f"n_references must be positive, got {n_references}")

    rng = np.random.default_rng(random_seed)
    draw = _reference_sampler(X, reference, rng)

    if verbose:
        print(f"\n[Selection] Gap statistic ({n_references} {reference} references)...")

    label = _make_labeler(X, clusterer, n_init, random_seed)
    log_wk = np.array([_log_dispersion(X, label(k)) for k in ks])

    ref_log_wk = np.zeros((n_references, len(ks)))
    for b in range(n_references):
        ref = draw()
        ref_label = _make_labeler(ref, clusterer, n_init, random_seed)
        ref_log_wk[b] = [_log_dispersion(ref, ref_label(k)) for k in ks]

    ref_mean = ref_log_wk.mean(axis=0)
    sk = ref_log_wk.std(axis=0) * np.sqrt(1 + 1 / n_references)

    table = pd.DataFrame({
        'k': ks,
        'log_wk': log_wk,
        'ref_log_wk': ref_mean,
        'gap': ref_mean - log_wk,
        'sk': sk,
    })

    if verbose:
        for row in table.itertuples():
            print(f"  k={row.k}: gap = {row.gap:.4f} (s = {row.sk:.4f})")

    return table


def select_k_gap(table: pd.DataFrame) -> int:
    """
    Smallest K with Gap(k) >= Gap(k+1) - s(k+1).

    Falls back to the K with the largest gap when no K qualifies.
    """
    ks = table['k'].tolist()
    gap = table['gap'].tolist()
    sk = table['sk'].tolist()
    for i in range(len(ks) - 1):
        if gap[i] >= gap[i + 1] - sk[i + 1]:
            return int(ks[i])
    return int(table.loc[table['gap'].idxmax(), 'k'])


def silhouette_samples(
    X,
    labels,
    metric: str = 'euclidean',
    precomputed: bool = False
) -> np.ndarray:
    """
    Silhouette value of every object.

    a is the mean distance to the other members of the object's own
    cluster, b the smallest mean distance to the members of another
    cluster, and s = (b - a) / max(a, b). Objects alone in their
    cluster score 0.

    Args:
        X: Observation matrix, or a proximity matrix when precomputed
        labels: Cluster assignments
        metric: Dissimilarity between objects (ignored when precomputed)
        precomputed: Whether X is already a proximity matrix

    Returns:
        Array of silhouette values in [-1, 1]
    """
    D = validate_proximity_matrix(X) if precomputed else pairwise_distances(X, metric=metric)
    n = D.shape[0]
    labels = _check_labels(labels, n)

    clusters, idx = np.unique(labels, return_inverse=True)
    k = len(clusters)
    if not 2 <= k <= n - 1:
        raise ValueError(f"Silhouette needs 2 <= k <= n - 1 clusters, got k={k}, n={n}")

    onehot = np.zeros((n, k))
    onehot[np.arange(n), idx] = 1.0
    counts = onehot.sum(axis=0)
    sums = D @ onehot

    own_sum = sums[np.arange(n), idx]
    own_count = counts[idx] - 1
    a = np.divide(own_sum, own_count, out=np.zeros(n), where=own_count > 0)

    mean_other = sums / counts
    mean_other[np.arange(n), idx] = np.inf
    b = mean_other.min(axis=1)

    denom = np.maximum(a, b)
    s = np.divide(b - a, denom, out=np.zeros(n), where=denom > 0)
    s[own_count == 0] = 0.0
    return np.clip(s, -1.0, 1.0)


def silhouette_score(
    X,
    labels,
    metric: str = 'euclidean',
    precomputed: bool = False
) -> float:
    """Mean silhouette value over all objects."""
    return float(np.mean(silhouette_samples(X, labels, metric=metric, precomputed=precomputed)))


def silhouette_analysis(
    X,
    k_range=range(2, 11),
    clusterer: str = 'kmeans',
    n_init: int = 10,
    random_seed: Optional[int] = 42,
    verbose: bool = True
) -> pd.DataFrame:
    """
    Mean silhouette for each K.

    Returns:
        DataFrame with columns k, silhouette
    """
    X = validate_observations(X)
    ks = _check_k_range(k_range, len(X) - 1, min_k=2)
    label = _make_labeler(X, clusterer, n_init, random_seed)
    D = pairwise_distances(X)

    rows = []
    for k in ks:
        score = silhouette_score(D, label(k), precomputed=True)
        rows.append({'k': k, 'silhouette': score})
        if verbose:
            print(f"  k={k}: silhouette score = {score:.4f}")

    return pd.DataFrame(rows)


def find_optimal_clusters(
    X,
    k_range=range(2, 11),
    clusterer: str = 'kmeans',
    n_init: int = 10,
    random_seed: Optional[int] = 42,
    verbose: bool = True
) -> Tuple[int, List[float]]:
    """
    Find optimal number of clusters using silhouette score.

    Args:
        X: Observation matrix
        k_range: Range of K values to try
        clusterer: 'kmeans' or a linkage method
        n_init: Number of initializations per K
        random_seed: Random seed for reproducibility
        verbose: Whether to print progress

    Returns:
        Tuple of (optimal K, list of silhouette scores)
    """
    if verbose:
        print("\n[Selection] Finding optimal number of clusters...")

    table = silhouette_analysis(
        X, k_range, clusterer=clusterer, n_init=n_init,
        random_seed=random_seed, verbose=verbose
    )
    scores = table['silhouette'].tolist()
    optimal_k = int(table['k'].iloc[int(np.argmax(scores))])

    if verbose:
        print(f"\n✓ Optimal number of clusters: {optimal_k}")
        print(f"  Best silhouette score: {max(scores):.4f}")

    return optimal_k, scores


def compare_selection_methods(
    X,
    k_range=range(1, 11),
    clusterer: str = 'kmeans',
    n_init: int = 10,
    n_references: int = 10,
    reference: str = 'uniform',
    elbow_threshold: float = 0.1,
    random_seed: Optional[int] = 42,
    verbose: bool = True
) -> Dict[str, Dict]:
    """
    Run every selection heuristic and report each recommendation.

    The silhouette is only evaluated for K >= 2. Recommendations are
    listed side by side, not reconciled.

    Returns:
        Dictionary keyed by method ('elbow', 'variance_ratio', 'gap',
        'silhouette'), each holding the method's 'table' and chosen 'k'
    """
    X = validate_observations(X)
    ks = _check_k_range(k_range, len(X))

    elbow = elbow_analysis(
        X, ks, clusterer=clusterer, n_init=n_init,
        random_seed=random_seed, verbose=verbose
    )
    gap = gap_statistic(
        X, ks, n_references=n_references, reference=reference,
        clusterer=clusterer, n_init=n_init, random_seed=random_seed, verbose=verbose
    )

    results = {'elbow': {'table': elbow, 'k': select_k_elbow(elbow, elbow_threshold)}}
    if elbow['variance_ratio'].notna().any():
        results['variance_ratio'] = {'table': elbow, 'k': select_k_variance_ratio(elbow)}
    results['gap'] = {'table': gap, 'k': select_k_gap(gap)}

    sil_ks = [k for k in ks if 2 <= k <= len(X) - 1]
    if sil_ks:
        if verbose:
            print("\n[Selection] Silhouette analysis...")
        sil = silhouette_analysis(
            X, sil_ks, clusterer=clusterer, n_init=n_init,
            random_seed=random_seed, verbose=verbose
        )
        results['silhouette'] = {
            'table': sil,
            'k': int(sil.loc[sil['silhouette'].idxmax(), 'k'])
        }

    if verbose:
        print(f"\n{'='*80}")
        print("RECOMMENDED NUMBER OF CLUSTERS")
        print(f"{'='*80}")
        for name, res in results.items():
            print(f"  {name:15s}: k = {res['k']}")
        if len({res['k'] for res in results.values()}) > 1:
            print("  ⚠️  Methods disagree")

    return results
