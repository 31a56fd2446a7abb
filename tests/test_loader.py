"""
Tests for observation matrix loading.
"""
import numpy as np
import pandas as pd
import pytest

from clusterlab.data import (
    load_observation_matrix,
    validate_observations,
    standardize_features,
)


def _write_csv(path):
    df = pd.DataFrame({
        'ticker': ['AAA', 'BBB', 'CCC', 'DDD'],
        'value': [1.0, 2.0, np.nan, 4.0],
        'momentum': [0.1, 0.2, 0.3, 0.4],
    })
    df.to_csv(path, index=False)


def test_load_observation_matrix_numeric_columns(tmp_path):
    """Test that only numeric columns are kept and NaN rows dropped."""
    path = tmp_path / "features.csv"
    _write_csv(path)

    df = load_observation_matrix(path, index_col='ticker', verbose=False)

    assert list(df.columns) == ['value', 'momentum']
    assert list(df.index) == ['AAA', 'BBB', 'DDD']


def test_load_observation_matrix_column_subset(tmp_path):
    """Test explicit column selection without dropping."""
    path = tmp_path / "features.csv"
    _write_csv(path)

    df = load_observation_matrix(path, columns=['momentum'], dropna=False, verbose=False)

    assert df.shape == (4, 1)


def test_load_observation_matrix_missing_column(tmp_path):
    """Test unknown columns."""
    path = tmp_path / "features.csv"
    _write_csv(path)

    with pytest.raises(ValueError, match="not found"):
        load_observation_matrix(path, columns=['size'], verbose=False)


def test_validate_observations():
    """Test conversion and validation."""
    assert validate_observations([1.0, 2.0, 3.0]).shape == (3, 1)
    assert validate_observations([[1, 2], [3, 4]]).dtype == float

    with pytest.raises(ValueError, match="NaN"):
        validate_observations([[1.0, np.nan]])
    with pytest.raises(ValueError, match="no rows"):
        validate_observations(np.empty((0, 2)))
    with pytest.raises(ValueError, match="2-D"):
        validate_observations(np.zeros((2, 2, 2)))


def test_standardize_features():
    """Test zero mean and unit variance."""
    X = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0]])

    X_scaled, scaler = standardize_features(X)

    np.testing.assert_allclose(X_scaled.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(X_scaled.std(axis=0), 1.0)
    np.testing.assert_allclose(scaler.inverse_transform(X_scaled), X)
