"""Evaluation metrics for clustering results."""

from .metrics import (
    contingency_table,
    purity,
    adjusted_rand_index,
    matches_partition,
    evaluate_recovery,
    print_recovery_metrics
)

__all__ = [
    'contingency_table',
    'purity',
    'adjusted_rand_index',
    'matches_partition',
    'evaluate_recovery',
    'print_recovery_metrics'
]
