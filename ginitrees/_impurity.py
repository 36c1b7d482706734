from typing import Any, Sequence, Tuple

import numpy as np
from numba import njit

from ._sample import Feature


@njit(cache=True, nogil=True)
def gini_index(y: np.ndarray) -> float:
    """Calculate gini index of binary labels.

    Labels other than 0.0 and 1.0 count toward the total but toward neither class.

    Parameters
    ----------
    y : np.ndarray
        Labels, must not be empty.

    Returns
    -------
    float
        Gini index.
    """
    n = len(y)
    n_pos = 0
    n_neg = 0
    for value in y:
        if value == 1.0:
            n_pos += 1
        elif value == 0.0:
            n_neg += 1

    p_pos = n_pos / n
    p_neg = n_neg / n
    return 1.0 - p_pos * p_pos - p_neg * p_neg


@njit(cache=True, nogil=True)
def split_gini_index(x: np.ndarray, y: np.ndarray, threshold: float) -> float:
    """Weighted gini index of the binary split x >= threshold versus x < threshold.

    Parameters
    ----------
    x : np.ndarray
        Feature values.

    y : np.ndarray
        Labels.

    threshold : float
        Threshold.

    Returns
    -------
    float
        Sample count weighted gini index of both sides, inf when the threshold leaves a side empty.
    """
    idx = x >= threshold
    y_pos = y[idx]
    y_neg = y[~idx]
    n = len(y)
    if len(y_pos) == 0 or len(y_neg) == 0:
        return np.inf

    return (len(y_pos) / n) * gini_index(y_pos) + (len(y_neg) / n) * gini_index(y_neg)


def labels_array(samples: Sequence[Any]) -> np.ndarray:
    """Labels of samples as a float array, missing labels become nan."""
    return np.array([np.nan if s.label is None else s.label for s in samples], dtype=float)


def feature_array(feature: Feature, samples: Sequence[Any]) -> np.ndarray:
    """Values of a feature across samples as a float array."""
    return np.array([feature(s) for s in samples], dtype=float)


def partition(feature: Feature, threshold: float, samples: Sequence[Any]) -> Tuple[Tuple[Any, ...], Tuple[Any, ...]]:
    """Split samples on a feature threshold.

    Parameters
    ----------
    feature : Feature
        Feature used for splitting.

    threshold : float
        Samples with feature value >= threshold go to the positive side, the rest to the negative side.

    samples : Sequence[Any]
        Samples to split.

    Returns
    -------
    positive : Tuple[Any, ...]
        Samples with feature value >= threshold, in input order.

    negative : Tuple[Any, ...]
        Samples with feature value < threshold, in input order.
    """
    positive = tuple(s for s in samples if feature(s) >= threshold)
    negative = tuple(s for s in samples if feature(s) < threshold)
    return positive, negative


def gini_impurity(samples: Sequence[Any]) -> float:
    """Gini impurity 1 - p1^2 - p0^2 of a sample set.

    Parameters
    ----------
    samples : Sequence[Any]
        Labeled samples.

    Returns
    -------
    float
        Impurity, 0.0 when all labels agree and at most 0.5 for binary labels.
    """
    if not len(samples):
        raise ValueError("Gini impurity is undefined for an empty sample set")

    return float(gini_index(labels_array(samples)))


def gini_impurity_for_split(feature: Feature, threshold: float, samples: Sequence[Any]) -> float:
    """Sample count weighted gini impurity of splitting samples on a feature threshold.

    Parameters
    ----------
    feature : Feature
        Feature used for splitting.

    threshold : float
        Split point, >= goes to the positive side and < to the negative side.

    samples : Sequence[Any]
        Labeled samples.

    Returns
    -------
    float
        Weighted impurity of both sides.
    """
    positive, negative = partition(feature, threshold, samples)
    if not positive or not negative:
        raise ValueError(
            f"Threshold ({threshold}) on feature ({feature}) leaves an empty side "
            f"({len(negative)}|{len(positive)}), gini impurity is undefined"
        )

    n = len(samples)
    return (len(positive) / n) * gini_impurity(positive) + (len(negative) / n) * gini_impurity(negative)
