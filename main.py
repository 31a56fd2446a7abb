#!/usr/bin/env python3
"""
Clustering Methods for Financial Data

Main entry point for the pipeline. Each mode generates demonstration
data, runs one clustering procedure and reports/plots the result:
1. kmeans: partitional clustering of the three-blob example
2. hierarchical: agglomerative clustering and dendrogram
3. select: elbow / variance ratio, gap statistic and silhouette
4. returns: correlation-distance clustering of simulated asset returns

Usage:
    python main.py --mode full
    python main.py --mode hierarchical --linkage complete --n-clusters 3
    python main.py --mode select --min-clusters 1 --max-clusters 8 --n-references 20
"""

import argparse
import json
import warnings
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt
from scipy.cluster.hierarchy import leaves_list

from config import Config, get_config_from_args
from clusterlab.data import generate_gaussian_clusters, generate_factor_returns
from clusterlab.clustering import (
    LINKAGE_METHODS,
    perform_clustering,
    analyze_clusters,
    save_cluster_results,
    hierarchical_clustering,
    cophenetic_correlation,
    merge_sequence,
    correlation_distance,
    compare_selection_methods
)
from clusterlab.evaluation import evaluate_recovery, print_recovery_metrics
from clusterlab.visualization import (
    plot_clusters,
    plot_kmeans_history,
    plot_dendrogram,
    plot_elbow,
    plot_gap_statistic,
    plot_silhouette,
    plot_cluster_optimization,
    plot_proximity_matrix
)

warnings.filterwarnings('ignore')


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Clustering methods for financial data analysis'
    )

    # Mode
    parser.add_argument('--mode', type=str, default='full',
                        choices=['full', 'kmeans', 'hierarchical', 'select', 'returns'],
                        help='Pipeline mode')

    # Data
    parser.add_argument('--noise-std', type=float, default=0.1,
                        help='Noise standard deviation of the demonstration blobs')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed')

    # Clustering
    parser.add_argument('--n-clusters', type=int, default=3,
                        help='Number of clusters')
    parser.add_argument('--n-init', type=int, default=10,
                        help='Number of k-means restarts')
    parser.add_argument('--init', type=str, default='k-means++',
                        choices=['random', 'random_partition', 'k-means++'],
                        help='K-means initialization strategy')
    parser.add_argument('--linkage', type=str, default='single',
                        choices=list(LINKAGE_METHODS),
                        help='Linkage criterion for hierarchical clustering')
    parser.add_argument('--metric', type=str, default='euclidean',
                        help='Dissimilarity between objects')

    # Selection
    parser.add_argument('--min-clusters', type=int, default=2,
                        help='Smallest K evaluated by the selection heuristics')
    parser.add_argument('--max-clusters', type=int, default=10,
                        help='Largest K evaluated by the selection heuristics')
    parser.add_argument('--n-references', type=int, default=10,
                        help='Reference datasets for the gap statistic')
    parser.add_argument('--reference', type=str, default='uniform',
                        choices=['uniform', 'pca'],
                        help='Reference distribution for the gap statistic')

    # Output
    parser.add_argument('--output-dir', type=str, default='outputs',
                        help='Output directory')
    parser.add_argument('--experiment-name', type=str, default='experiment',
                        help='Name for this experiment')
    parser.add_argument('--no-plots', action='store_true',
                        help='Disable plot generation')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress progress output')

    return parser.parse_args(argv)


def banner(title: str):
    print("\n" + "="*80)
    print(title)
    print("="*80)


def _plot_path(config: Config, name: str) -> str:
    return str(Path(config.paths.plots_dir) / name)


def make_demo_data(config: Config):
    """Three Gaussian blobs used throughout the lecture."""
    return generate_gaussian_clusters(
        config.data.means,
        n_per_cluster=config.data.n_per_cluster,
        std=config.data.noise_std,
        random_seed=config.data.random_seed
    )


def run_kmeans(config: Config, X: np.ndarray, y: np.ndarray, plots: bool = True) -> dict:
    """Partition the demonstration data with k-means."""
    verbose = config.verbose
    cfg = config.clustering
    if verbose:
        banner("K-MEANS CLUSTERING")

    result, _, X_used = perform_clustering(
        X, cfg.n_clusters, standardize=False, init=cfg.init,
        n_init=cfg.n_init, max_iter=cfg.max_iter,
        random_seed=cfg.random_seed, verbose=verbose
    )

    profile = analyze_clusters(X_used, result.labels, verbose=verbose)
    save_cluster_results(
        result.labels, profile, Path(config.paths.results_dir) / 'kmeans', verbose=verbose
    )

    if verbose:
        metrics = print_recovery_metrics(y, result.labels, title="K-MEANS")
    else:
        metrics = evaluate_recovery(y, result.labels)

    if plots:
        plot_clusters(X_used, result.labels, centroids=result.centroids,
                      title=f'K-means (K={cfg.n_clusters})',
                      save_path=_plot_path(config, 'kmeans_clusters.png'), show=False)
        plot_kmeans_history(result, save_path=_plot_path(config, 'kmeans_history.png'),
                            show=False)
        plt.close('all')

    return {
        'inertia': result.inertia,
        'n_iter': result.n_iter,
        'converged': result.converged,
        'recovery': metrics
    }


def run_hierarchical(config: Config, X: np.ndarray, y: np.ndarray, plots: bool = True) -> dict:
    """Build the merge hierarchy of the demonstration data and cut it."""
    verbose = config.verbose
    cfg = config.clustering
    if verbose:
        banner(f"HIERARCHICAL CLUSTERING ({cfg.linkage.upper()} LINKAGE)")

    Z, labels, D = hierarchical_clustering(
        X, cfg.n_clusters, method=cfg.linkage, metric=cfg.metric, verbose=verbose
    )
    coph = cophenetic_correlation(Z, D)

    results_dir = Path(config.paths.results_dir)
    merge_sequence(Z).to_csv(results_dir / 'merge_sequence.csv', index=False)
    if verbose:
        print(f"✓ Cophenetic correlation: {coph:.4f}")
        print(f"✓ Saved {results_dir / 'merge_sequence.csv'}")

    if verbose:
        metrics = print_recovery_metrics(y, labels, title="HIERARCHICAL")
    else:
        metrics = evaluate_recovery(y, labels)

    if plots:
        plot_dendrogram(Z, n_clusters=cfg.n_clusters,
                        title=f'Dendrogram ({cfg.linkage} linkage)',
                        save_path=_plot_path(config, 'dendrogram.png'), show=False)
        plot_clusters(X, labels, title=f'Hierarchical ({cfg.linkage}, K={cfg.n_clusters})',
                      save_path=_plot_path(config, 'hierarchical_clusters.png'), show=False)
        plot_proximity_matrix(D, order=leaves_list(Z),
                              save_path=_plot_path(config, 'proximity_matrix.png'), show=False)
        plt.close('all')

    return {
        'cophenetic_correlation': coph,
        'merge_heights': Z[:, 2].tolist(),
        'recovery': metrics
    }


def run_selection(config: Config, X: np.ndarray, plots: bool = True) -> dict:
    """Score candidate cluster counts with every heuristic."""
    verbose = config.verbose
    cfg = config.clustering
    if verbose:
        banner("CLUSTER-COUNT SELECTION")

    k_range = range(cfg.min_clusters, cfg.max_clusters + 1)
    results = compare_selection_methods(
        X, k_range,
        n_init=cfg.n_init,
        n_references=config.selection.n_references,
        reference=config.selection.reference,
        elbow_threshold=config.selection.elbow_threshold,
        random_seed=cfg.random_seed,
        verbose=verbose
    )

    results_dir = Path(config.paths.results_dir)
    results['elbow']['table'].to_csv(results_dir / 'elbow.csv', index=False)
    results['gap']['table'].to_csv(results_dir / 'gap_statistic.csv', index=False)
    if 'silhouette' in results:
        results['silhouette']['table'].to_csv(results_dir / 'silhouette.csv', index=False)

    if plots:
        plot_elbow(results['elbow']['table'], optimal_k=results['elbow']['k'],
                   save_path=_plot_path(config, 'elbow.png'), show=False)
        plot_gap_statistic(results['gap']['table'], optimal_k=results['gap']['k'],
                           save_path=_plot_path(config, 'gap_statistic.png'), show=False)
        if 'silhouette' in results:
            sil = results['silhouette']
            plot_cluster_optimization(sil['table']['k'], sil['table']['silhouette'].tolist(),
                                      sil['k'], save_path=_plot_path(config, 'silhouette_k.png'),
                                      show=False)
            labels = perform_clustering(
                X, sil['k'], standardize=False, n_init=cfg.n_init,
                random_seed=cfg.random_seed, verbose=False
            )[0].labels
            plot_silhouette(X, labels, title=f'Silhouette (K={sil["k"]})',
                            save_path=_plot_path(config, 'silhouette.png'), show=False)
        plt.close('all')

    return {name: res['k'] for name, res in results.items()}


def run_returns(config: Config, plots: bool = True) -> dict:
    """Cluster simulated asset returns on their correlation distance."""
    verbose = config.verbose
    cfg = config.clustering
    if verbose:
        banner("ASSET CLUSTERING ON CORRELATION DISTANCE")

    returns, sectors = generate_factor_returns(
        n_sectors=config.data.n_sectors,
        assets_per_sector=config.data.assets_per_sector,
        n_periods=config.data.n_periods,
        random_seed=config.data.random_seed
    )
    if verbose:
        print(f"✓ Simulated {returns.shape[1]} assets over {returns.shape[0]} periods")

    D = correlation_distance(returns)
    method = cfg.linkage if cfg.linkage not in ('centroid', 'median', 'ward') else 'average'
    Z, labels, _ = hierarchical_clustering(
        D.values, config.data.n_sectors, method=method, precomputed=True, verbose=verbose
    )

    if verbose:
        metrics = print_recovery_metrics(sectors, labels, title="SECTOR")
    else:
        metrics = evaluate_recovery(sectors, labels)

    if plots:
        names = list(returns.columns)
        plot_dendrogram(Z, labels=names, n_clusters=config.data.n_sectors,
                        title=f'Asset dendrogram ({method} linkage)',
                        save_path=_plot_path(config, 'asset_dendrogram.png'), show=False)
        plot_proximity_matrix(D, order=leaves_list(Z), title='Correlation distance',
                              save_path=_plot_path(config, 'asset_distance.png'), show=False)
        plt.close('all')

    return {'linkage': method, 'recovery': metrics}


def run_full_pipeline(config: Config, plots: bool = True) -> dict:
    """Run every lecture example in sequence."""
    if config.verbose:
        banner("CLUSTERING METHODS - FULL PIPELINE")

    X, y = make_demo_data(config)
    if config.verbose:
        print(f"✓ Generated {X.shape[0]} objects x {X.shape[1]} features "
              f"in {len(config.data.means)} groups")

    summary = {
        'kmeans': run_kmeans(config, X, y, plots),
        'hierarchical': run_hierarchical(config, X, y, plots),
        'selection': run_selection(config, X, plots),
        'returns': run_returns(config, plots),
    }
    return summary


def main(argv=None) -> dict:
    """Main entry point."""
    args = parse_args(argv)
    config = get_config_from_args(args)
    plots = not args.no_plots

    if args.mode == 'full':
        summary = run_full_pipeline(config, plots)
    elif args.mode == 'returns':
        summary = {'returns': run_returns(config, plots)}
    else:
        X, y = make_demo_data(config)
        if args.mode == 'kmeans':
            summary = {'kmeans': run_kmeans(config, X, y, plots)}
        elif args.mode == 'hierarchical':
            summary = {'hierarchical': run_hierarchical(config, X, y, plots)}
        else:
            summary = {'selection': run_selection(config, X, plots)}

    summary_path = Path(config.paths.results_dir) / 'summary.json'
    with open(summary_path, 'w') as f:
        json.dump(summary, f, indent=2, default=float)

    if config.verbose:
        banner("✅ PIPELINE COMPLETE!")
        print(f"\nOutputs saved to: {config.paths.output_dir}")
        print(f"  Plots:   {config.paths.plots_dir}")
        print(f"  Results: {config.paths.results_dir}")

    return summary


if __name__ == '__main__':
    main()
