"""Data generation and loading modules."""

from .synthetic import (
    LECTURE_MEANS,
    generate_gaussian_clusters,
    make_lecture_blobs,
    generate_factor_returns
)
from .loader import (
    load_observation_matrix,
    validate_observations,
    standardize_features
)

__all__ = [
    'LECTURE_MEANS',
    'generate_gaussian_clusters',
    'make_lecture_blobs',
    'generate_factor_returns',
    'load_observation_matrix',
    'validate_observations',
    'standardize_features'
]
