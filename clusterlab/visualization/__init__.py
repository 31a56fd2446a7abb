"""Visualization utilities for clustering results."""

from .plots import (
    plot_clusters,
    plot_kmeans_history,
    plot_dendrogram,
    plot_elbow,
    plot_gap_statistic,
    plot_silhouette,
    plot_cluster_optimization,
    plot_proximity_matrix
)

__all__ = [
    'plot_clusters',
    'plot_kmeans_history',
    'plot_dendrogram',
    'plot_elbow',
    'plot_gap_statistic',
    'plot_silhouette',
    'plot_cluster_optimization',
    'plot_proximity_matrix'
]
