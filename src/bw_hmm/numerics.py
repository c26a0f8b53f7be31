"""Numerical utilities shared by the estimator.

Provides a stable log-sum-exp reduction and small helpers for keeping
probability vectors well defined.
"""

from typing import Iterable, Union

import numpy as np

ArrayLike = Union[np.ndarray, Iterable[float]]


def log_sum_exp(values: ArrayLike) -> float:
    """Compute log(sum(exp(values))) without overflow or underflow.

    The maximum is subtracted before exponentiating. Empty input and input
    made only of ``-inf`` give ``-inf`` instead of NaN.

    Args:
        values: Log-domain values, any shape (flattened).

    Returns:
        The reduction as a Python float.

    Examples:
        >>> log_sum_exp([0.0, 0.0])
        0.6931471805599453
        >>> log_sum_exp([])
        -inf
    """
    a = np.asarray(values, dtype=np.float64).ravel()
    if a.size == 0:
        return float('-inf')
    a_max = np.max(a)
    if np.isneginf(a_max):
        return float('-inf')
    if np.isposinf(a_max):
        return float('inf')
    return float(a_max + np.log(np.sum(np.exp(a - a_max))))


def floor_probabilities(p: np.ndarray, floor: float) -> np.ndarray:
    """Replace non-positive (or NaN) entries with ``floor``."""
    p = np.asarray(p, dtype=np.float64)
    return np.where(p > 0, p, floor)


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Rescale each row to sum to 1; a zero row sum is treated as 1.

    Works on vectors (a single row) and 2-D matrices.
    """
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim == 1:
        total = m.sum()
        return m / (total if total != 0 else 1.0)
    sums = m.sum(axis=1, keepdims=True)
    sums[sums == 0] = 1.0
    return m / sums
