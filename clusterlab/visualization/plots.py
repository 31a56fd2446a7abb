"""
Visualization functions for clustering results.

This module provides plotting utilities for:
- Cluster scatter plots
- Dendrograms
- Cluster-count selection curves (elbow, gap, silhouette)
- Proximity matrices
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.cluster.hierarchy import dendrogram
from sklearn.decomposition import PCA
from typing import List, Optional, Sequence

from ..clustering.kmeans import KMeansResult
from ..clustering.hierarchical import validate_linkage
from ..clustering.selection import silhouette_samples
from ..data.loader import validate_observations


# Set plotting style
plt.style.use('seaborn-v0_8-darkgrid')
sns.set_palette("husl")


def _finish(fig: plt.Figure, save_path: Optional[str], show: bool) -> plt.Figure:
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"✓ Saved {save_path}")

    if show:
        plt.show()

    return fig


def plot_clusters(
    X,
    labels: np.ndarray,
    centroids: Optional[np.ndarray] = None,
    title: str = 'Clusters',
    feature_names: Optional[Sequence[str]] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Scatter plot of objects colored by cluster.

    Data with more than two features is projected on its first two
    principal components.

    Args:
        X: Observation matrix
        labels: Cluster assignments
        centroids: Optional centroid matrix to overlay
        title: Plot title
        feature_names: Axis labels for two-feature data
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    values = validate_observations(X)
    labels = np.asarray(labels)
    centers = None if centroids is None else np.atleast_2d(np.asarray(centroids, dtype=float))

    if values.shape[1] == 1:
        values = np.hstack([values, np.zeros_like(values)])
        if centers is not None:
            centers = np.hstack([centers, np.zeros_like(centers)])
        xlabel, ylabel = (feature_names[0] if feature_names else 'x0'), ''
    elif values.shape[1] == 2:
        xlabel, ylabel = feature_names if feature_names else ('x0', 'x1')
    else:
        pca = PCA(n_components=2)
        values = pca.fit_transform(values)
        if centers is not None:
            centers = pca.transform(centers)
        xlabel = f'PC1 ({pca.explained_variance_ratio_[0]:.1%} variance)'
        ylabel = f'PC2 ({pca.explained_variance_ratio_[1]:.1%} variance)'

    fig, ax = plt.subplots(figsize=(8, 6))

    for c in np.unique(labels):
        mask = (labels == c)
        ax.scatter(values[mask, 0], values[mask, 1], label=f"C{c} (n={mask.sum()})",
                   alpha=0.7, s=40)

    if centers is not None:
        ax.scatter(centers[:, 0], centers[:, 1], marker='X', s=200, c='black',
                   edgecolors='white', linewidths=1, label='Centroids', zorder=10)

    ax.set_xlabel(xlabel, fontsize=11)
    ax.set_ylabel(ylabel, fontsize=11)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='upper left', bbox_to_anchor=(1, 1), fontsize=9)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show)


def plot_kmeans_history(
    result: KMeansResult,
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Plot total within-cluster squared distance per k-means iteration.

    Args:
        result: Fitted k-means result
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(8, 5))

    ax.plot(range(len(result.inertia_history)), result.inertia_history,
            'bo-', linewidth=2, markersize=6)
    ax.set_xlabel('Iteration', fontsize=12)
    ax.set_ylabel('Within-cluster sum of squares', fontsize=12)
    ax.set_title(f'K-means convergence (K={result.n_clusters})', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show)


def plot_dendrogram(
    Z,
    labels: Optional[List[str]] = None,
    n_clusters: Optional[int] = None,
    cut_height: Optional[float] = None,
    title: str = 'Dendrogram',
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Draw the merge hierarchy as a dendrogram.

    Args:
        Z: Linkage matrix
        labels: Optional leaf labels
        n_clusters: Color the branches of this many clusters and draw the cut
        cut_height: Explicit cut height (overrides n_clusters)
        title: Plot title
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    Z = validate_linkage(Z)
    n = len(Z) + 1
    if n < 2:
        raise ValueError("A dendrogram needs at least two objects")

    if cut_height is None and n_clusters is not None:
        if not 1 <= n_clusters <= n:
            raise ValueError(f"n_clusters must be in [1, {n}], got {n_clusters}")
        if n_clusters == 1:
            cut_height = Z[-1, 2] * 1.05
        elif n_clusters == n:
            cut_height = Z[0, 2] / 2
        else:
            cut_height = (Z[-n_clusters, 2] + Z[-n_clusters + 1, 2]) / 2

    fig, ax = plt.subplots(figsize=(12, 6))

    dendrogram(
        Z,
        ax=ax,
        labels=labels,
        color_threshold=cut_height,
        above_threshold_color='grey',
        leaf_font_size=8
    )

    if cut_height is not None:
        ax.axhline(y=cut_height, color='red', linestyle='--',
                   label=f'Cut at {cut_height:.3f}')
        ax.legend()

    ax.set_xlabel('Object', fontsize=12)
    ax.set_ylabel('Merge distance', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')

    return _finish(fig, save_path, show)


def plot_elbow(
    table: pd.DataFrame,
    optimal_k: Optional[int] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Plot WSS and the variance ratio against the number of clusters.

    Args:
        table: Output of elbow_analysis
        optimal_k: Optional K to highlight
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax = axes[0]
    ax.plot(table['k'], table['wss'], 'bo-', linewidth=2, markersize=8, label='WSS')
    ax.plot(table['k'], table['bss'], 'gs--', linewidth=1.5, markersize=6, label='BSS')
    ax.set_xlabel('Number of Clusters (k)', fontsize=12)
    ax.set_ylabel('Sum of squares', fontsize=12)
    ax.set_title('Elbow', fontsize=14, fontweight='bold')

    ax = axes[1]
    ax.plot(table['k'], table['variance_ratio'], 'ro-', linewidth=2, markersize=8)
    ax.set_xlabel('Number of Clusters (k)', fontsize=12)
    ax.set_ylabel('[BSS/(k-1)] / [WSS/(n-k)]', fontsize=12)
    ax.set_title('Variance ratio', fontsize=14, fontweight='bold')

    for ax in axes:
        if optimal_k is not None:
            ax.axvline(x=optimal_k, color='grey', linestyle='--', label=f'k={optimal_k}')
        ax.grid(True, alpha=0.3)
        ax.legend()

    return _finish(fig, save_path, show)


def plot_gap_statistic(
    table: pd.DataFrame,
    optimal_k: Optional[int] = None,
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Plot the gap statistic with its standard error.

    Args:
        table: Output of gap_statistic
        optimal_k: Optional K to highlight
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax = axes[0]
    ax.plot(table['k'], table['log_wk'], 'bo-', linewidth=2, label='Observed log(W_k)')
    ax.plot(table['k'], table['ref_log_wk'], 'gs--', linewidth=2, label='Reference E*[log(W_k)]')
    ax.set_xlabel('Number of Clusters (k)', fontsize=12)
    ax.set_ylabel('log(W_k)', fontsize=12)
    ax.set_title('Within-cluster dispersion', fontsize=14, fontweight='bold')

    ax = axes[1]
    ax.errorbar(table['k'], table['gap'], yerr=table['sk'], fmt='ro-',
                linewidth=2, capsize=4, label='Gap')
    ax.set_xlabel('Number of Clusters (k)', fontsize=12)
    ax.set_ylabel('Gap(k)', fontsize=12)
    ax.set_title('Gap statistic', fontsize=14, fontweight='bold')
    if optimal_k is not None:
        ax.axvline(x=optimal_k, color='grey', linestyle='--', label=f'k={optimal_k}')

    for ax in axes:
        ax.grid(True, alpha=0.3)
        ax.legend()

    return _finish(fig, save_path, show)


def plot_silhouette(
    X,
    labels: np.ndarray,
    title: str = 'Silhouette',
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Silhouette plot: sorted per-object values grouped by cluster.

    Args:
        X: Observation matrix
        labels: Cluster assignments
        title: Plot title
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    labels = np.asarray(labels)
    values = silhouette_samples(X, labels)
    mean_value = values.mean()

    fig, ax = plt.subplots(figsize=(8, 6))

    y_lower = 0
    for c in np.unique(labels):
        cluster_values = np.sort(values[labels == c])
        y_upper = y_lower + len(cluster_values)
        ax.fill_betweenx(np.arange(y_lower, y_upper), 0, cluster_values, alpha=0.7)
        ax.text(-0.05, y_lower + len(cluster_values) / 2, f"C{c}", ha='right', va='center')
        y_lower = y_upper + 2

    ax.axvline(x=mean_value, color='red', linestyle='--', label=f'Mean = {mean_value:.3f}')
    ax.set_xlim(-1, 1)
    ax.set_yticks([])
    ax.set_xlabel('Silhouette value', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend()

    return _finish(fig, save_path, show)


def plot_cluster_optimization(
    k_range: range,
    silhouette_scores: List[float],
    optimal_k: int,
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Plot silhouette scores for different numbers of clusters.

    Args:
        k_range: Range of K values tested
        silhouette_scores: Silhouette score for each K
        optimal_k: Optimal number of clusters
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 5))

    ax.plot(list(k_range), silhouette_scores, 'bo-', linewidth=2, markersize=8)
    ax.axvline(x=optimal_k, color='red', linestyle='--',
               label=f'Optimal k={optimal_k}')

    ax.set_xlabel('Number of Clusters (k)', fontsize=12)
    ax.set_ylabel('Silhouette Score', fontsize=12)
    ax.set_title('Optimal Number of Clusters', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)
    ax.legend()

    return _finish(fig, save_path, show)


def plot_proximity_matrix(
    D,
    order: Optional[Sequence[int]] = None,
    labels: Optional[Sequence[str]] = None,
    title: str = 'Proximity Matrix',
    save_path: Optional[str] = None,
    show: bool = True
) -> plt.Figure:
    """
    Heatmap of a proximity matrix.

    Args:
        D: Square proximity matrix (array or DataFrame)
        order: Optional object order, e.g. dendrogram leaves
        labels: Optional object labels
        title: Plot title
        save_path: Optional path to save figure
        show: Whether to display the figure

    Returns:
        Matplotlib figure
    """
    if isinstance(D, pd.DataFrame):
        labels = list(D.index) if labels is None else labels
        D = D.values
    D = np.asarray(D, dtype=float)
    labels = list(labels) if labels is not None else list(range(D.shape[0]))

    if order is not None:
        order = list(order)
        D = D[np.ix_(order, order)]
        labels = [labels[i] for i in order]

    fig, ax = plt.subplots(figsize=(10, 8))
    sns.heatmap(pd.DataFrame(D, index=labels, columns=labels), cmap="Blues_r",
                square=True, ax=ax, cbar_kws={'label': 'Dissimilarity'})
    ax.set_title(title, fontsize=14, fontweight='bold')
    plt.xticks(rotation=90, fontsize=7)
    plt.yticks(fontsize=7)

    return _finish(fig, save_path, show)
