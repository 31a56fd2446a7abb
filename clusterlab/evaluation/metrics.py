"""
Evaluation metrics for clustering results.

This module compares a clustering against the groups that generated
the data. Cluster numbers are arbitrary, so every metric here is
invariant to relabeling.
"""

import numpy as np
import pandas as pd
from typing import Dict
from sklearn.metrics import adjusted_rand_score, normalized_mutual_info_score


def _check_pair(y_true, y_pred):
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if y_true.shape != y_pred.shape or y_true.ndim != 1:
        raise ValueError(
            f"Label arrays must be 1-D and of equal length, got {y_true.shape} and {y_pred.shape}"
        )
    if len(y_true) == 0:
        raise ValueError("Label arrays are empty")
    return y_true, y_pred


def contingency_table(y_true, y_pred) -> pd.DataFrame:
    """
    Count objects for every (true group, cluster) pair.

    Args:
        y_true: Generating group labels
        y_pred: Cluster assignments

    Returns:
        DataFrame with true groups as rows and clusters as columns
    """
    y_true, y_pred = _check_pair(y_true, y_pred)
    return pd.crosstab(
        pd.Series(y_true, name='true'),
        pd.Series(y_pred, name='cluster')
    )


def purity(y_true, y_pred) -> float:
    """
    Share of objects belonging to the majority true group of their cluster.

    Args:
        y_true: Generating group labels
        y_pred: Cluster assignments

    Returns:
        Purity in (0, 1]
    """
    table = contingency_table(y_true, y_pred)
    return float(table.max(axis=0).sum() / table.values.sum())


def adjusted_rand_index(y_true, y_pred) -> float:
    """Rand index corrected for chance; 1 means identical partitions."""
    y_true, y_pred = _check_pair(y_true, y_pred)
    return float(adjusted_rand_score(y_true, y_pred))


def matches_partition(y_true, y_pred) -> bool:
    """
    True when both labelings describe the same partition.

    Holds exactly when the contingency table has one non-zero cell in
    every row and every column.
    """
    table = contingency_table(y_true, y_pred).values
    nonzero = table > 0
    return bool(
        table.shape[0] == table.shape[1]
        and np.all(nonzero.sum(axis=0) == 1)
        and np.all(nonzero.sum(axis=1) == 1)
    )


def evaluate_recovery(y_true, y_pred) -> Dict:
    """
    Compute all recovery metrics.

    Args:
        y_true: Generating group labels
        y_pred: Cluster assignments

    Returns:
        Dictionary with purity, adjusted Rand index, normalized mutual
        information, exact-recovery flag and group/cluster counts
    """
    y_true, y_pred = _check_pair(y_true, y_pred)
    return {
        'purity': purity(y_true, y_pred),
        'ari': adjusted_rand_index(y_true, y_pred),
        'nmi': float(normalized_mutual_info_score(y_true, y_pred)),
        'exact': matches_partition(y_true, y_pred),
        'n_groups': int(len(np.unique(y_true))),
        'n_clusters': int(len(np.unique(y_pred))),
    }


def print_recovery_metrics(
    y_true,
    y_pred,
    title: str = "CLUSTERING"
) -> Dict:
    """
    Print recovery metrics and the contingency table.

    Args:
        y_true: Generating group labels
        y_pred: Cluster assignments
        title: Title for the metrics display

    Returns:
        Dictionary with computed metrics
    """
    metrics = evaluate_recovery(y_true, y_pred)

    print(f"\n{'='*70}")
    print(f"{title} RESULTS (Recovery of Generating Groups)")
    print(f"{'='*70}")
    print(f"Groups: {metrics['n_groups']}, clusters: {metrics['n_clusters']}")
    print(f"  Purity: {metrics['purity']:.1%}")
    print(f"  ARI:    {metrics['ari']:.4f}")
    print(f"  NMI:    {metrics['nmi']:.4f}")
    print(f"  Exact recovery: {'✓' if metrics['exact'] else '✗'}")
    print(f"\n{contingency_table(y_true, y_pred).to_string()}")

    return metrics
