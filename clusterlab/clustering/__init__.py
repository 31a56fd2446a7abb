"""Clustering procedures and cluster-count selection."""

from .proximity import (
    pairwise_distances,
    correlation_distance,
    similarity_to_dissimilarity,
    validate_proximity_matrix,
    to_condensed,
    to_square
)
from .kmeans import (
    KMeansResult,
    kmeans,
    assign_to_centroids,
    perform_clustering,
    analyze_clusters,
    save_cluster_results
)
from .hierarchical import (
    LINKAGE_METHODS,
    agglomerate,
    linkage,
    validate_linkage,
    is_monotonic,
    fcluster_maxclust,
    fcluster_distance,
    cophenetic_distances,
    cophenetic_correlation,
    merge_sequence,
    hierarchical_clustering
)
from .selection import (
    total_sum_of_squares,
    within_cluster_sum_of_squares,
    between_cluster_sum_of_squares,
    variance_ratio,
    elbow_analysis,
    select_k_variance_ratio,
    select_k_elbow,
    gap_statistic,
    select_k_gap,
    silhouette_samples,
    silhouette_score,
    silhouette_analysis,
    find_optimal_clusters,
    compare_selection_methods
)

__all__ = [
    'pairwise_distances',
    'correlation_distance',
    'similarity_to_dissimilarity',
    'validate_proximity_matrix',
    'to_condensed',
    'to_square',
    'KMeansResult',
    'kmeans',
    'assign_to_centroids',
    'perform_clustering',
    'analyze_clusters',
    'save_cluster_results',
    'LINKAGE_METHODS',
    'agglomerate',
    'linkage',
    'validate_linkage',
    'is_monotonic',
    'fcluster_maxclust',
    'fcluster_distance',
    'cophenetic_distances',
    'cophenetic_correlation',
    'merge_sequence',
    'hierarchical_clustering',
    'total_sum_of_squares',
    'within_cluster_sum_of_squares',
    'between_cluster_sum_of_squares',
    'variance_ratio',
    'elbow_analysis',
    'select_k_variance_ratio',
    'select_k_elbow',
    'gap_statistic',
    'select_k_gap',
    'silhouette_samples',
    'silhouette_score',
    'silhouette_analysis',
    'find_optimal_clusters',
    'compare_selection_methods'
]
