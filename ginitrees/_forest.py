import warnings
from multiprocessing import cpu_count
from typing import Any, List, Optional, Sequence

import numpy as np
from joblib import delayed, Parallel
from sklearn.utils import check_random_state

from ._sample import Feature
from ._tree import build_node, SplitNode
from ._utils import bootstrap_sample_idx, logger

# Defines how often to print status during parallel tree training
_PRINT_FACTOR = {
    1: 20,
    2: 10,
    3: 1,
}


def _resolve_n_jobs(n_jobs: Optional[int]) -> int:
    """Number of workers, negative values count back from the number of CPUs."""
    max_cpus = cpu_count()
    value = 1 if n_jobs is None else n_jobs
    value = min(value, max_cpus)
    if value < 0:
        cpus = np.arange(1, max_cpus + 1)
        value = max_cpus if abs(value) > max_cpus else int(cpus[value])
    return max(1, value)


def _parallel_build_tree(
    *,
    samples: Sequence[Any],
    features: Sequence[Feature],
    max_samples: int,
    feature_sample_size: Optional[int],
    resample_features: str,
    bootstrap_method: Optional[str],
    threshold_method: str,
    max_thresholds: Optional[int],
    random_state: int,
    estimator_idx: int,
    n_estimators: int,
    verbose: int,
) -> Optional[SplitNode]:
    """Build one tree of the forest on a resample of the training set.

    Note: This function can't go locally in a function, because joblib complains that it cannot pickle it when placed
    there

    Parameters
    ----------
    samples : Sequence[Any]
        Training samples.

    features : Sequence[Feature]
        Features available for splitting.

    max_samples : int
        Size of the resample.

    feature_sample_size : int, optional
        Number of features drawn at random.

    resample_features : {"root", "node"}
        Draw the feature subset for the root split only or at every node.

    bootstrap_method : str, optional
        Type of resampling to use.

    threshold_method : str
        Method to generate candidate thresholds.

    max_thresholds : int, optional
        Maximum number of candidate thresholds.

    random_state : int
        Random seed of this tree.

    estimator_idx : int
        Tree index in ensemble.

    n_estimators : int
        Number of trees to grow.

    verbose : int
        Controls verbosity of fitting.

    Returns
    -------
    SplitNode or None
        Root of the tree, None when the resample cannot be split.
    """
    if verbose:
        if estimator_idx % _PRINT_FACTOR[verbose] == 0:
            logger("forest", f"Building tree {estimator_idx}/{n_estimators}")

    prng = np.random.RandomState(random_state)
    idx = bootstrap_sample_idx(
        n=len(samples), max_samples=max_samples, bootstrap_method=bootstrap_method, random_state=prng
    )

    return build_node(
        samples=[samples[i] for i in idx],
        features=features,
        feature_sample_size=feature_sample_size,
        resample_features=resample_features,
        random_state=prng,
        threshold_method=threshold_method,
        max_thresholds=max_thresholds,
    )


def build_forest(
    samples: Sequence[Any],
    features: Sequence[Feature],
    n_estimators: int = 300,
    max_samples: Optional[int] = None,
    feature_sample_size: Optional[int] = 2,
    resample_features: str = "root",
    bootstrap_method: Optional[str] = "classic",
    threshold_method: str = "exact",
    max_thresholds: Optional[int] = None,
    random_state: Any = None,
    n_jobs: Optional[int] = None,
    verbose: int = 0,
) -> List[SplitNode]:
    """Grow a random forest of decision trees.

    Parameters
    ----------
    samples : Sequence[Any]
        Training samples.

    features : Sequence[Feature]
        Features available for splitting.

    n_estimators : int, default=300
        Number of trees.

    max_samples : int, default=None
        Number of samples drawn for each tree, defaults to the size of the training set.

    feature_sample_size : int, default=2
        Number of features drawn at random, None to use all features.

    resample_features : {"root", "node"}, default="root"
        Draw the feature subset for the root split only or at every node.

    bootstrap_method : {"classic", "bayesian"} or None, default="classic"
        Draw with replacement, with Bayesian bootstrap weights, or (None) without replacement.

    threshold_method : {"exact", "random"}, default="exact"
        Method to generate candidate thresholds.

    max_thresholds : int, default=None
        Maximum number of candidates for the "random" threshold method.

    random_state : int or np.random.RandomState, default=None
        Random seed. Tree j is grown with seed random_state + j.

    n_jobs : int, default=None
        Number of jobs to run in parallel.

    verbose : int, default=0
        Controls verbosity when fitting.

    Returns
    -------
    List[SplitNode]
        Grown trees, resamples that could not be split are skipped.
    """
    n = len(samples)
    if not n:
        raise ValueError("Unable to build a forest on an empty sample set")
    if n_estimators < 1:
        raise ValueError(f"n_estimators ({n_estimators}) should be >= 1")

    max_samples = n if max_samples is None else max_samples
    if max_samples < 1:
        raise ValueError(f"max_samples ({max_samples}) should be >= 1")
    if bootstrap_method is None and max_samples > n:
        raise ValueError(f"max_samples ({max_samples}) should be <= {n} when sampling without replacement")
    if resample_features not in ("root", "node"):
        raise ValueError(f"resample_features ({resample_features}) not supported, expected one of: root, node")

    if random_state is None or isinstance(random_state, np.random.RandomState):
        seed = int(check_random_state(random_state).randint(1, 1_000_000))
    else:
        seed = int(random_state)
    verbose = min(verbose, 3)

    trees = Parallel(n_jobs=_resolve_n_jobs(n_jobs), backend="loky")(
        delayed(_parallel_build_tree)(
            samples=samples,
            features=features,
            max_samples=max_samples,
            feature_sample_size=feature_sample_size,
            resample_features=resample_features,
            bootstrap_method=bootstrap_method,
            threshold_method=threshold_method,
            max_thresholds=max_thresholds,
            random_state=seed + estimator_idx,
            estimator_idx=estimator_idx,
            n_estimators=n_estimators,
            verbose=verbose,
        )
        for estimator_idx in range(1, n_estimators + 1)
    )

    forest = [tree for tree in trees if tree is not None]
    n_skipped = n_estimators - len(forest)
    if not forest:
        raise ValueError(f"Unable to split any of the ({n_estimators}) resamples, no tree was grown")
    if n_skipped:
        warnings.warn(f"Skipped ({n_skipped}) of ({n_estimators}) trees because their resample could not be split")

    return forest


def forest_votes(forest: Sequence[SplitNode], sample: Any, threshold: float = 0.5) -> int:
    """Number of trees predicting the positive label.

    Parameters
    ----------
    forest : Sequence[SplitNode]
        Grown trees.

    sample : Any
        Sample to predict.

    threshold : float, default=0.5
        A tree votes positive when its predicted probability is >= threshold.

    Returns
    -------
    int
        Positive votes.
    """
    return sum(1 for tree in forest if tree.predict(sample) >= threshold)


def forest_predict(forest: Sequence[SplitNode], sample: Any) -> float:
    """Majority vote of the forest, 1.0 when at least half of the trees vote positive."""
    if not len(forest):
        raise ValueError("Unable to predict with an empty forest")

    return 1.0 if 2 * forest_votes(forest, sample) >= len(forest) else 0.0
