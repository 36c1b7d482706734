from math import ceil
from typing import Any, Optional, Sequence, Union

import numpy as np
from numba import njit
from sklearn.utils import check_random_state


def logger(name: str, message: str) -> None:
    """Prints messages with style "[NAME] message".

    Parameters
    ----------
    name : str
        Short title of message, for example, tree or forest.

    message : str
        Main description to be displayed in terminal.
    """
    print(f"[{name.upper()}] {message}")


def positive_fraction(samples: Sequence[Any]) -> float:
    """Fraction of samples labeled 1.0.

    Parameters
    ----------
    samples : Sequence[Any]
        Labeled samples, must not be empty.

    Returns
    -------
    float
        Empirical probability of the positive label.
    """
    if not len(samples):
        raise ValueError("Positive fraction is undefined for an empty sample set")

    return sum(1 for s in samples if s.label == 1.0) / len(samples)


def calculate_max_value(*, n_values: int, desired_max: Optional[Union[str, float, int]] = None) -> int:
    """Calculate the maximum desired value based on a fixed input size.

    Parameters
    ----------
    n_values : int
        Total number of values.

    desired_max : Union[str, float, int], default=None
        Desired number of values.

    Returns
    -------
    int
        Maximum value.
    """
    if type(desired_max) is int:
        total = min(desired_max, n_values)
    elif desired_max == "sqrt":
        total = ceil(np.sqrt(n_values))
    elif desired_max == "log2":
        total = ceil(np.log2(n_values))
    elif type(desired_max) is float:
        total = ceil(n_values * desired_max)
    else:
        total = n_values

    return max(1, min(n_values, total))


@njit(fastmath=True, nogil=True)
def bayesian_bootstrap_proba(n: int, random_state: int) -> np.ndarray:
    """Generate Bayesian bootstrap probabilities for a sample of size n.

    Parameters
    ----------
    n : int
        Number of samples.

    random_state : int
        Random seed.

    Returns
    -------
    np.ndarray
        Bootstrap probabilities associated with each sample.
    """
    np.random.seed(random_state)

    p = np.random.exponential(scale=1.0, size=n)
    return p / p.sum()


def bootstrap_sample_idx(
    *, n: int, max_samples: int, bootstrap_method: Optional[str], random_state: Any
) -> np.ndarray:
    """Indices for resampling a training set of size n.

    Parameters
    ----------
    n : int
        Number of samples in the training set.

    max_samples : int
        Number of indices to draw.

    bootstrap_method : {"classic", "bayesian"} or None
        Draw with replacement, with replacement under Bayesian bootstrap weights, or (None) without replacement.

    random_state : int or np.random.RandomState
        Random seed or random source.

    Returns
    -------
    np.ndarray
        Indices for the resample.
    """
    prng = check_random_state(random_state)

    if bootstrap_method is None:
        return prng.choice(n, size=min(max_samples, n), replace=False)

    p = None
    if bootstrap_method == "bayesian":
        p = bayesian_bootstrap_proba(n=n, random_state=int(prng.randint(1, 1_000_000)))
    elif bootstrap_method != "classic":
        raise ValueError(f"bootstrap_method ({bootstrap_method}) not supported, expected one of: classic, bayesian")

    return prng.choice(n, size=max_samples, p=p, replace=True)
