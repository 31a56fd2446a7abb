"""
Observation matrix loading and preparation.

This module reads feature tables (rows = objects, columns = features)
and prepares them for distance-based clustering.
"""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import List, Optional, Tuple, Union
from sklearn.preprocessing import StandardScaler


def load_observation_matrix(
    path: Union[str, Path],
    columns: Optional[List[str]] = None,
    index_col: Optional[Union[int, str]] = None,
    dropna: bool = True,
    verbose: bool = True
) -> pd.DataFrame:
    """
    Load a CSV of numeric features as an observation matrix.

    Args:
        path: Path to the CSV file
        columns: Optional subset of feature columns to keep
        index_col: Optional column holding object identifiers
        dropna: Whether to drop objects with missing feature values
        verbose: Whether to print loading statistics

    Returns:
        DataFrame with one row per object and one column per feature
    """
    df = pd.read_csv(path, index_col=index_col)

    if columns is not None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"Columns not found in {path}: {missing}")
        df = df[columns]
    else:
        df = df.select_dtypes(include=[np.number])

    if df.shape[1] == 0:
        raise ValueError(f"No numeric feature columns found in {path}")

    n_before = len(df)
    if dropna:
        df = df.dropna()

    if verbose:
        print(f"✓ Loaded observation matrix: {df.shape[0]} objects x {df.shape[1]} features")
        if n_before > len(df):
            print(f"  Dropped {n_before - len(df)} objects with missing values")

    return df


def validate_observations(X) -> np.ndarray:
    """
    Convert input to a finite 2-D float array.

    Args:
        X: Array-like or DataFrame of shape (n_objects, n_features)

    Returns:
        Float ndarray of the same shape
    """
    arr = np.asarray(X, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"Observation matrix must be 2-D, got {arr.ndim} dimensions")
    if arr.shape[0] == 0:
        raise ValueError("Observation matrix has no rows")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Observation matrix contains NaN or infinite values")
    return arr


def standardize_features(X) -> Tuple[np.ndarray, StandardScaler]:
    """
    Scale each feature to zero mean and unit variance.

    Args:
        X: Observation matrix

    Returns:
        Tuple of (scaled matrix, fitted scaler)
    """
    scaler = StandardScaler()
    X_scaled = scaler.fit_transform(validate_observations(X))
    return X_scaled, scaler
