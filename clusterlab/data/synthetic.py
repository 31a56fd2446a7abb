"""
Synthetic data generators for clustering demonstrations.

This module produces small, fully labelled datasets with a known
group structure so clustering procedures can be checked against
the groups that generated them.
"""

import numpy as np
import pandas as pd
from typing import Optional, Sequence, Tuple, Union


LECTURE_MEANS = ((1.0, 1.0), (2.0, 2.0), (3.0, 1.0))


def _per_cluster(value, n_clusters: int, name: str) -> np.ndarray:
    """Broadcast a scalar or sequence parameter to one value per cluster."""
    arr = np.atleast_1d(np.asarray(value, dtype=float))
    if arr.size == 1:
        arr = np.repeat(arr, n_clusters)
    if arr.size != n_clusters:
        raise ValueError(
            f"{name} must be a scalar or have one entry per cluster "
            f"({n_clusters}), got {arr.size}"
        )
    return arr


def generate_gaussian_clusters(
    means: Sequence[Sequence[float]],
    n_per_cluster: Union[int, Sequence[int]] = 15,
    std: Union[float, Sequence[float]] = 0.1,
    random_seed: Optional[int] = 42
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draw isotropic Gaussian blobs around the given centers.

    Args:
        means: One mean vector per cluster, all of the same length
        n_per_cluster: Points per cluster (int or one count per cluster)
        std: Noise standard deviation (scalar or one value per cluster)
        random_seed: Seed for the random generator

    Returns:
        Tuple of (observation matrix N x F, generating group index per row)
    """
    if len(means) == 0:
        raise ValueError("At least one cluster mean is required")

    try:
        centers = np.asarray(means, dtype=float)
    except ValueError:
        raise ValueError("All cluster means must have the same number of features")
    if centers.ndim != 2:
        raise ValueError("Cluster means must form a 2-D array (clusters x features)")

    n_clusters, n_features = centers.shape
    counts = _per_cluster(n_per_cluster, n_clusters, "n_per_cluster")
    if np.any(counts < 1) or np.any(counts != np.floor(counts)):
        raise ValueError(f"n_per_cluster must be positive integers, got {n_per_cluster}")
    counts = counts.astype(int)

    stds = _per_cluster(std, n_clusters, "std")
    if np.any(stds < 0):
        raise ValueError(f"std must be non-negative, got {std}")

    rng = np.random.default_rng(random_seed)

    blocks = []
    labels = []
    for c in range(n_clusters):
        noise = rng.normal(0.0, stds[c], size=(counts[c], n_features))
        blocks.append(centers[c] + noise)
        labels.append(np.full(counts[c], c, dtype=int))

    return np.vstack(blocks), np.concatenate(labels)


def make_lecture_blobs(
    n_per_cluster: int = 15,
    std: float = 0.1,
    random_seed: Optional[int] = 42
) -> Tuple[np.ndarray, np.ndarray]:
    """Three 2-D blobs centered at (1,1), (2,2) and (3,1)."""
    return generate_gaussian_clusters(
        LECTURE_MEANS, n_per_cluster=n_per_cluster, std=std, random_seed=random_seed
    )


def generate_factor_returns(
    n_sectors: int = 3,
    assets_per_sector: int = 5,
    n_periods: int = 250,
    market_vol: float = 0.01,
    factor_vol: float = 0.01,
    idio_vol: float = 0.005,
    random_seed: Optional[int] = 42
) -> Tuple[pd.DataFrame, np.ndarray]:
    """
    Simulate daily asset returns driven by a market and sector factors.

    Each asset loads on the common market factor and on the factor
    of its own sector, plus idiosyncratic noise. Assets in the same
    sector are therefore more correlated with each other than with
    the rest of the universe.

    Args:
        n_sectors: Number of sectors (generating groups)
        assets_per_sector: Assets simulated in each sector
        n_periods: Number of return observations (rows)
        market_vol: Volatility of the market factor
        factor_vol: Volatility of each sector factor
        idio_vol: Volatility of the asset-specific noise
        random_seed: Seed for the random generator

    Returns:
        Tuple of (returns DataFrame periods x assets, sector index per asset)
    """
    if n_sectors < 1 or assets_per_sector < 1:
        raise ValueError("n_sectors and assets_per_sector must be positive")
    if n_periods < 2:
        raise ValueError(f"n_periods must be at least 2, got {n_periods}")
    if min(market_vol, factor_vol, idio_vol) < 0:
        raise ValueError("Volatilities must be non-negative")

    rng = np.random.default_rng(random_seed)

    market = rng.normal(0.0, market_vol, size=n_periods)
    sector_factors = rng.normal(0.0, factor_vol, size=(n_periods, n_sectors))

    columns = {}
    sectors = []
    for s in range(n_sectors):
        for a in range(assets_per_sector):
            beta = rng.uniform(0.8, 1.2)
            noise = rng.normal(0.0, idio_vol, size=n_periods)
            columns[f"S{s}_A{a}"] = beta * market + sector_factors[:, s] + noise
            sectors.append(s)

    returns = pd.DataFrame(columns)
    returns.index.name = "period"
    return returns, np.asarray(sectors, dtype=int)
