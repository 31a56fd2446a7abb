"""
Configuration settings for the clustering pipeline.

This module centralizes all configurable parameters including paths,
demonstration data, clustering and cluster-count selection settings.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class PathConfig:
    """Output path configurations."""
    output_dir: Path = Path("outputs")
    plots_dir: Path = Path("outputs/plots")
    results_dir: Path = Path("outputs/results")

    def __post_init__(self):
        """Create directories if they don't exist."""
        for dir_path in [self.output_dir, self.plots_dir, self.results_dir]:
            Path(dir_path).mkdir(parents=True, exist_ok=True)


@dataclass
class DataConfig:
    """Synthetic demonstration data settings."""
    means: List[Tuple[float, float]] = field(default_factory=lambda: [
        (1.0, 1.0), (2.0, 2.0), (3.0, 1.0)
    ])
    n_per_cluster: int = 15
    noise_std: float = 0.1
    random_seed: int = 42

    # Simulated asset returns
    n_sectors: int = 3
    assets_per_sector: int = 5
    n_periods: int = 250


@dataclass
class ClusteringConfig:
    """Clustering configuration."""
    n_clusters: int = 3
    min_clusters: int = 2
    max_clusters: int = 10
    n_init: int = 10
    max_iter: int = 300
    tol: float = 1e-4
    init: str = "k-means++"
    linkage: str = "single"
    metric: str = "euclidean"
    random_seed: int = 42


@dataclass
class SelectionConfig:
    """Cluster-count selection settings."""
    n_references: int = 10  # Reference datasets for the gap statistic
    reference: str = "uniform"  # "uniform" or "pca"
    elbow_threshold: float = 0.1  # Minimum relative WSS drop worth another cluster


@dataclass
class Config:
    """Main configuration container."""
    paths: PathConfig = field(default_factory=PathConfig)
    data: DataConfig = field(default_factory=DataConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)

    # Experiment settings
    experiment_name: str = "clustering_experiment"
    verbose: bool = True


def get_default_config() -> Config:
    """Return default configuration."""
    return Config()


def get_config_from_args(args) -> Config:
    """Create configuration from command-line arguments."""
    if hasattr(args, 'output_dir'):
        base = Path(args.output_dir)
        if hasattr(args, 'experiment_name'):
            base = base / args.experiment_name
        config = Config(paths=PathConfig(
            output_dir=base,
            plots_dir=base / "plots",
            results_dir=base / "results"
        ))
    else:
        config = get_default_config()

    # Override with args if provided
    if hasattr(args, 'n_clusters'):
        config.clustering.n_clusters = args.n_clusters
    if hasattr(args, 'min_clusters'):
        config.clustering.min_clusters = args.min_clusters
    if hasattr(args, 'max_clusters'):
        config.clustering.max_clusters = args.max_clusters
    if hasattr(args, 'n_init'):
        config.clustering.n_init = args.n_init
    if hasattr(args, 'init'):
        config.clustering.init = args.init
    if hasattr(args, 'linkage'):
        config.clustering.linkage = args.linkage
    if hasattr(args, 'metric'):
        config.clustering.metric = args.metric
    if hasattr(args, 'seed'):
        config.clustering.random_seed = args.seed
        config.data.random_seed = args.seed
    if hasattr(args, 'noise_std'):
        config.data.noise_std = args.noise_std
    if hasattr(args, 'n_references'):
        config.selection.n_references = args.n_references
    if hasattr(args, 'reference'):
        config.selection.reference = args.reference
    if hasattr(args, 'experiment_name'):
        config.experiment_name = args.experiment_name
    if hasattr(args, 'quiet'):
        config.verbose = not args.quiet

    return config
