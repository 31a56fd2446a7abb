"""
Tests for configuration handling.
"""
from argparse import Namespace

from config import Config, PathConfig, get_config_from_args
from main import parse_args


def test_path_config_creates_directories(tmp_path):
    """Test that output directories are created."""
    paths = PathConfig(
        output_dir=tmp_path / "run",
        plots_dir=tmp_path / "run" / "plots",
        results_dir=tmp_path / "run" / "results"
    )

    assert paths.plots_dir.is_dir()
    assert paths.results_dir.is_dir()


def test_defaults(tmp_path):
    """Test the default demonstration settings."""
    config = Config(paths=PathConfig(tmp_path, tmp_path / "p", tmp_path / "r"))

    assert config.data.means == [(1.0, 1.0), (2.0, 2.0), (3.0, 1.0)]
    assert config.data.n_per_cluster == 15
    assert config.clustering.n_clusters == 3
    assert config.clustering.linkage == 'single'
    assert config.selection.reference == 'uniform'
    assert config.verbose


def test_config_from_parsed_args(tmp_path):
    """Test that command line flags reach the configuration."""
    args = parse_args([
        '--linkage', 'ward', '--n-clusters', '4', '--seed', '7',
        '--reference', 'pca', '--quiet',
        '--output-dir', str(tmp_path), '--experiment-name', 'trial'
    ])

    config = get_config_from_args(args)

    assert config.clustering.linkage == 'ward'
    assert config.clustering.n_clusters == 4
    assert config.clustering.random_seed == 7
    assert config.data.random_seed == 7
    assert config.selection.reference == 'pca'
    assert config.experiment_name == 'trial'
    assert not config.verbose
    assert config.paths.results_dir == tmp_path / 'trial' / 'results'
    assert config.paths.results_dir.is_dir()


def test_config_from_partial_args(tmp_path, monkeypatch):
    """Test that missing attributes keep their defaults."""
    monkeypatch.chdir(tmp_path)

    config = get_config_from_args(Namespace(n_clusters=5))

    assert config.clustering.n_clusters == 5
    assert config.clustering.n_init == 10
    assert (tmp_path / "outputs").is_dir()
