"""
Tests for cluster-count selection heuristics.
"""
import numpy as np
import pandas as pd
import pytest
from sklearn import metrics as skm

from clusterlab.clustering import (
    kmeans,
    pairwise_distances,
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
    compare_selection_methods,
)


def test_sum_of_squares_decomposition(random_points):
    """Test TSS = WSS + BSS for an arbitrary partition."""
    labels = kmeans(random_points, 4, random_seed=1).labels

    tss = total_sum_of_squares(random_points)
    wss = within_cluster_sum_of_squares(random_points, labels)
    bss = between_cluster_sum_of_squares(random_points, labels)

    assert tss == pytest.approx(wss + bss)


def test_variance_ratio_matches_sklearn(random_points):
    """Test the variance ratio against the Calinski-Harabasz score."""
    labels = kmeans(random_points, 3, random_seed=2).labels

    expected = skm.calinski_harabasz_score(random_points, labels)

    assert variance_ratio(random_points, labels) == pytest.approx(expected)


def test_variance_ratio_domain():
    """Test the K range where the ratio is defined."""
    X = np.array([[0.0], [1.0], [5.0], [6.0]])

    with pytest.raises(ValueError, match="2 <= k"):
        variance_ratio(X, [0, 0, 0, 0])
    with pytest.raises(ValueError, match="2 <= k"):
        variance_ratio(X, [0, 1, 2, 3])
    assert variance_ratio(np.array([[0.0], [0.0], [3.0]]), [0, 0, 1]) == np.inf


def test_elbow_analysis_table(blobs):
    """Test the elbow table columns and its WSS trend."""
    X, _ = blobs

    table = elbow_analysis(X, range(1, 7), n_init=5, verbose=False)

    assert list(table.columns) == ['k', 'wss', 'bss', 'variance_ratio', 'explained', 'improvement']
    assert list(table['k']) == [1, 2, 3, 4, 5, 6]
    assert np.isnan(table['variance_ratio'].iloc[0])
    assert np.isnan(table['improvement'].iloc[0])
    assert table['wss'].iloc[0] == pytest.approx(total_sum_of_squares(X))
    assert table['wss'].iloc[2] < 0.1 * table['wss'].iloc[0]
    np.testing.assert_allclose(table['wss'] + table['bss'], total_sum_of_squares(X))


def test_elbow_analysis_hierarchical_is_nested(random_points):
    """Test that WSS never grows along a hierarchy."""
    table = elbow_analysis(random_points, range(1, 10), clusterer='ward', verbose=False)

    assert np.all(np.diff(table['wss']) <= 1e-9)


def test_elbow_and_variance_ratio_pick_three(blobs):
    """Test both elbow rules on three separated blobs."""
    X, _ = blobs

    table = elbow_analysis(X, range(1, 7), n_init=5, verbose=False)

    assert select_k_variance_ratio(table) == 3
    assert select_k_elbow(table, threshold=0.25) == 3


def test_select_k_elbow_rule():
    """Test the improvement threshold walk."""
    table = pd.DataFrame({
        'k': [1, 2, 3, 4, 5],
        'improvement': [np.nan, 0.6, 0.9, 0.05, 0.02],
    })

    assert select_k_elbow(table, threshold=0.1) == 3
    assert select_k_elbow(table, threshold=0.01) == 5
    assert select_k_elbow(table, threshold=0.95) == 1


def test_select_k_variance_ratio_undefined():
    """Test a table without any defined ratio."""
    table = pd.DataFrame({'k': [1], 'variance_ratio': [np.nan]})
    with pytest.raises(ValueError, match="variance ratio"):
        select_k_variance_ratio(table)


def test_invalid_k_range(random_points):
    """Test empty and out-of-range K values."""
    with pytest.raises(ValueError, match="empty"):
        elbow_analysis(random_points, [], verbose=False)
    with pytest.raises(ValueError, match="outside"):
        elbow_analysis(random_points, [0, 1], verbose=False)
    with pytest.raises(ValueError, match="Unknown clusterer"):
        elbow_analysis(random_points, [1, 2], clusterer='dbscan', verbose=False)


@pytest.mark.parametrize("reference", ['uniform', 'pca'])
def test_gap_statistic_table(blobs, reference):
    """Test the gap table and its peak at the generating K."""
    X, _ = blobs

    table = gap_statistic(
        X, range(1, 7), n_references=5, reference=reference, n_init=5, verbose=False
    )

    assert list(table.columns) == ['k', 'log_wk', 'ref_log_wk', 'gap', 'sk']
    assert np.all(table['sk'] >= 0)
    np.testing.assert_allclose(table['gap'], table['ref_log_wk'] - table['log_wk'])
    assert int(table.loc[table['gap'].idxmax(), 'k']) == 3


def test_gap_statistic_reproducible(random_points):
    """Test that the seed fixes the reference draws."""
    first = gap_statistic(random_points, range(1, 4), n_references=3, n_init=2, verbose=False)
    second = gap_statistic(random_points, range(1, 4), n_references=3, n_init=2, verbose=False)

    pd.testing.assert_frame_equal(first, second)


def test_gap_statistic_invalid(random_points):
    """Test invalid reference settings."""
    with pytest.raises(ValueError, match="n_references"):
        gap_statistic(random_points, [1, 2], n_references=0, verbose=False)
    with pytest.raises(ValueError, match="reference distribution"):
        gap_statistic(random_points, [1, 2], reference='normal', verbose=False)


def test_select_k_gap_rule():
    """Test the one-standard-error rule and its fallback."""
    table = pd.DataFrame({
        'k': [1, 2, 3, 4],
        'gap': [0.1, 0.5, 0.9, 0.85],
        'sk': [0.05, 0.05, 0.05, 0.05],
    })
    assert select_k_gap(table) == 3

    rising = pd.DataFrame({
        'k': [1, 2, 3],
        'gap': [0.1, 0.5, 0.9],
        'sk': [0.01, 0.01, 0.01],
    })
    assert select_k_gap(rising) == 3


def test_silhouette_samples_bounds(random_points):
    """Test that every silhouette value lies in [-1, 1]."""
    for k in (2, 5, 10):
        labels = kmeans(random_points, k, random_seed=k).labels
        s = silhouette_samples(random_points, labels)
        assert s.shape == (30,)
        assert np.all(s >= -1.0) and np.all(s <= 1.0)


@pytest.mark.parametrize("metric", ['euclidean', 'manhattan'])
def test_silhouette_matches_sklearn(random_points, metric):
    """Test silhouette values against scikit-learn."""
    labels = kmeans(random_points, 4, random_seed=3).labels

    ours = silhouette_samples(random_points, labels, metric=metric)
    expected = skm.silhouette_samples(random_points, labels, metric=metric)

    np.testing.assert_allclose(ours, expected, atol=1e-10)


def test_silhouette_precomputed(random_points):
    """Test that a proximity matrix gives the same score."""
    labels = kmeans(random_points, 3, random_seed=4).labels
    D = pairwise_distances(random_points)

    assert silhouette_score(D, labels, precomputed=True) == pytest.approx(
        silhouette_score(random_points, labels)
    )


def test_silhouette_singleton_scores_zero():
    """Test that an object alone in its cluster scores 0."""
    X = np.array([[0.0], [0.1], [0.2], [5.0]])

    s = silhouette_samples(X, [0, 0, 0, 1])

    assert s[3] == 0.0
    assert np.all(s[:3] > 0.9)


def test_silhouette_invalid_cluster_count():
    """Test K = 1 and K = N."""
    X = np.array([[0.0], [1.0], [2.0]])
    with pytest.raises(ValueError, match="2 <= k"):
        silhouette_samples(X, [0, 0, 0])
    with pytest.raises(ValueError, match="2 <= k"):
        silhouette_samples(X, [0, 1, 2])
    with pytest.raises(ValueError, match="labels"):
        silhouette_samples(X, [0, 1])


def test_silhouette_analysis_picks_three(blobs):
    """Test silhouette-based selection on three blobs."""
    X, _ = blobs

    table = silhouette_analysis(X, range(2, 7), n_init=5, verbose=False)
    optimal_k, scores = find_optimal_clusters(X, range(2, 7), n_init=5, verbose=False)

    assert list(table.columns) == ['k', 'silhouette']
    assert optimal_k == 3
    assert scores == pytest.approx(table['silhouette'].tolist())


def test_silhouette_analysis_hierarchical(blobs):
    """Test silhouette selection on a single-linkage hierarchy."""
    X, _ = blobs

    optimal_k, _ = find_optimal_clusters(X, range(2, 7), clusterer='single', verbose=False)

    assert optimal_k == 3


def test_compare_selection_methods(blobs, capsys):
    """Test that every method reports its own K."""
    X, _ = blobs

    results = compare_selection_methods(
        X, range(1, 7), n_init=5, n_references=5, elbow_threshold=0.25, verbose=True
    )

    assert set(results) == {'elbow', 'variance_ratio', 'gap', 'silhouette'}
    for res in results.values():
        assert isinstance(res['table'], pd.DataFrame)
        assert 1 <= res['k'] <= 6
    assert results['silhouette']['k'] == 3
    assert results['variance_ratio']['k'] == 3
    assert "RECOMMENDED NUMBER OF CLUSTERS" in capsys.readouterr().out


def test_compare_selection_methods_without_silhouette(random_points):
    """Test that K = 1 alone skips the ratio-based methods."""
    results = compare_selection_methods(
        random_points, [1], n_init=2, n_references=2, verbose=False
    )

    assert set(results) == {'elbow', 'gap'}
    assert results['gap']['k'] == 1
