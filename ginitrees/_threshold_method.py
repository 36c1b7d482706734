from typing import Optional

import numpy as np
from numba import njit
from sklearn.utils import check_random_state

from ._registry import ThresholdMethods


@njit(cache=True, nogil=True)
def midpoints(x: np.ndarray) -> np.ndarray:
    """Midpoints between adjacent sorted distinct values.

    Each candidate c between distinct values lo < hi satisfies lo < c <= hi, so x >= c and x < c are both non-empty.
    When the midpoint rounds onto lo, as for adjacent doubles, hi is used instead.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    Returns
    -------
    np.ndarray
        Candidates in ascending order, empty when x has fewer than 2 distinct values.
    """
    values = np.unique(x)
    n = len(values) - 1
    if n < 1:
        return np.empty(0, dtype=np.float64)

    candidates = np.empty(n, dtype=np.float64)
    for j in range(n):
        lo = values[j]
        hi = values[j + 1]

        # Halving first keeps lo + hi from overflowing
        mid = lo / 2 + hi / 2
        if mid <= lo or mid > hi:
            mid = hi
        candidates[j] = mid

    return candidates


@ThresholdMethods.register("exact")
def exact(x: np.ndarray, max_thresholds: Optional[int] = None, random_state=None) -> np.ndarray:
    """Unique midpoints in array.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int, default=None
        Kept here for API compatibility with other threshold methods.

    random_state : int or np.random.RandomState, default=None
        Kept here for API compatibility with other threshold methods.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    if x.ndim > 1:
        x = x.ravel()

    return midpoints(x)


@ThresholdMethods.register("random")
def random(x: np.ndarray, max_thresholds: Optional[int] = None, random_state=None) -> np.ndarray:
    """Random sample of unique midpoints in array, kept in ascending order.

    Parameters
    ----------
    x : np.ndarray
        Input data.

    max_thresholds : int, default=None
        Maximum number of thresholds to generate. All midpoints are returned when None.

    random_state : int or np.random.RandomState, default=None
        Random seed or random source.

    Returns
    -------
    np.ndarray
        Thresholds in array.
    """
    if x.ndim > 1:
        x = x.ravel()

    values = midpoints(x)
    if max_thresholds is None or max_thresholds >= len(values):
        return values

    prng = check_random_state(random_state)
    return np.sort(prng.choice(values, size=max_thresholds, replace=False))
