from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.utils import check_random_state

from ._impurity import feature_array, labels_array, partition, split_gini_index
from ._threshold_method import ThresholdMethods
from ._sample import Feature, FeatureAndSplit
from ._utils import logger, positive_fraction


@dataclass(frozen=True)
class SplitNode:
    """Node in decision tree.

    Parameters
    ----------
    feature : Feature
        Feature used to split the node.

    split_value : float
        Threshold, samples with feature value >= split_value go to the positive side.

    samples : Tuple[Any, ...]
        Samples that reached the node.

    impurity : float
        Weighted gini impurity of the node's split.

    positive_child : SplitNode, optional (default=None)
        Subtree grown on the positive side, None when the positive side is a leaf.

    negative_child : SplitNode, optional (default=None)
        Subtree grown on the negative side, None when the negative side is a leaf.
    """

    feature: Feature
    split_value: float
    samples: Tuple[Any, ...] = field(repr=False)
    impurity: float
    positive_child: Optional["SplitNode"] = field(default=None, repr=False)
    negative_child: Optional["SplitNode"] = field(default=None, repr=False)

    @cached_property
    def positive_samples(self) -> Tuple[Any, ...]:
        """Samples with feature value >= split_value."""
        return partition(self.feature, self.split_value, self.samples)[0]

    @cached_property
    def negative_samples(self) -> Tuple[Any, ...]:
        """Samples with feature value < split_value."""
        return partition(self.feature, self.split_value, self.samples)[1]

    def children(self) -> Iterator["SplitNode"]:
        """Yield present children, negative side first."""
        for child in (self.negative_child, self.positive_child):
            if child is not None:
                yield child

    def depth(self) -> int:
        """Number of nodes on the longest path from this node down."""
        return 1 + max((child.depth() for child in self.children()), default=0)

    def n_nodes(self) -> int:
        """Number of nodes in the subtree rooted here."""
        return 1 + sum(child.n_nodes() for child in self.children())

    def predict(self, sample: Any) -> float:
        """Predict the probability of the positive label for a single sample.

        When the branch taken by the sample has no subtree, the estimate is the fraction of positive labels among
        this node's samples on the same side of the split.

        Parameters
        ----------
        sample : Any
            Sample to predict, its label is ignored.

        Returns
        -------
        float
            Probability of label 1.0.
        """
        if self.feature(sample) >= self.split_value:
            if self.positive_child is not None:
                return self.positive_child.predict(sample)
            branch = self.positive_samples
        else:
            if self.negative_child is not None:
                return self.negative_child.predict(sample)
            branch = self.negative_samples

        # Empty side, fall back to the whole node
        if not branch:
            return positive_fraction(self.samples)

        return positive_fraction(branch)

    def __str__(self) -> str:
        return (
            f"{self.feature} split on {self.split_value}, "
            f"{len(self.negative_samples)}|{len(self.positive_samples)}, Impurity: {self.impurity}"
        )


def _select_best_split(x: np.ndarray, y: np.ndarray, thresholds: np.ndarray) -> Tuple[float, float]:
    """Select the threshold with the lowest weighted impurity.

    Parameters
    ----------
    x : np.ndarray
        Feature values.

    y : np.ndarray
        Labels.

    thresholds : np.ndarray
        Candidate thresholds, at least one.

    Returns
    -------
    best_threshold : float
        First threshold reaching the minimum impurity.

    best_impurity : float
        Impurity of the split on best_threshold, inf when every threshold leaves a side empty.
    """
    best_threshold = thresholds[0]
    best_impurity = np.inf

    for threshold in thresholds:
        impurity = split_gini_index(x, y, threshold)
        if impurity < best_impurity:
            best_threshold = threshold
            best_impurity = impurity

    return float(best_threshold), float(best_impurity)


def _candidate_thresholds(
    x: np.ndarray, threshold_method: str, max_thresholds: Optional[int], prng: np.random.RandomState
) -> np.ndarray:
    method = ThresholdMethods[threshold_method]
    return method(x, max_thresholds=max_thresholds, random_state=prng)


def best_threshold(
    feature: Feature,
    samples: Sequence[Any],
    threshold_method: str = "exact",
    max_thresholds: Optional[int] = None,
    random_state: Any = None,
) -> Optional[float]:
    """Find the threshold on a feature that minimizes the weighted gini impurity of the split.

    Candidates are the midpoints between adjacent sorted distinct feature values, or the upper value when the midpoint
    rounds onto the lower one, so every candidate leaves samples on both sides of the split.

    Parameters
    ----------
    feature : Feature
        Feature to split on.

    samples : Sequence[Any]
        Labeled samples.

    threshold_method : {"exact", "random"}, default="exact"
        Method to generate candidate thresholds.

    max_thresholds : int, default=None
        Maximum number of candidates for the "random" threshold method.

    random_state : int or np.random.RandomState, default=None
        Random seed or random source for the "random" threshold method.

    Returns
    -------
    float or None
        Best threshold, None when the feature takes fewer than 2 distinct values.
    """
    x = feature_array(feature, samples)
    thresholds = _candidate_thresholds(x, threshold_method, max_thresholds, check_random_state(random_state))
    if not len(thresholds):
        return None

    threshold, impurity = _select_best_split(x, labels_array(samples), thresholds)
    return None if np.isinf(impurity) else threshold


def _select_features(
    features: Sequence[Feature], feature_sample_size: Optional[int], prng: np.random.RandomState
) -> List[Feature]:
    """Candidate features for a node, a random subset kept in the caller's order when feature_sample_size is set."""
    if feature_sample_size is None:
        return list(features)

    idx = np.sort(prng.choice(len(features), size=feature_sample_size, replace=False))
    return [features[j] for j in idx]


def _build_node(
    samples: Tuple[Any, ...],
    features: Sequence[Feature],
    previous_impurity: Optional[float],
    feature_sample_size: Optional[int],
    resample_features: str,
    prng: np.random.RandomState,
    threshold_method: str,
    max_thresholds: Optional[int],
    verbose: int,
    depth: int,
) -> Optional[SplitNode]:
    """Recursively build tree.

    Parameters
    ----------
    samples : Tuple[Any, ...]
        Samples reaching the node.

    features : Sequence[Feature]
        All available features.

    previous_impurity : float or None
        Split impurity of the parent node, None at the root.

    feature_sample_size : int or None
        Number of features drawn at random for this node, None to use all features.

    resample_features : {"root", "node"}
        Whether children draw their own feature subset or search all features.

    prng : np.random.RandomState
        Random source.

    threshold_method : str
        Method to generate candidate thresholds.

    max_thresholds : int or None
        Maximum number of candidate thresholds.

    verbose : int
        Controls verbosity.

    depth : int
        Depth of the node.

    Returns
    -------
    SplitNode or None
        Node in decision tree, None when the branch should stay a leaf in the parent.
    """
    y = labels_array(samples)
    best: Optional[FeatureAndSplit] = None
    best_impurity = np.inf

    for feature in _select_features(features, feature_sample_size, prng):
        x = feature_array(feature, samples)
        thresholds = _candidate_thresholds(x, threshold_method, max_thresholds, prng)

        # Constant feature, nothing to split on
        if not len(thresholds):
            continue

        threshold, impurity = _select_best_split(x, y, thresholds)
        if impurity < best_impurity:
            best = FeatureAndSplit(feature=feature, split=threshold)
            best_impurity = impurity

    if best is None:
        if verbose > 2:
            logger("tree", f"No valid split at depth ({depth}) with ({len(samples)}) samples")
        return None

    if previous_impurity is not None and not best_impurity < previous_impurity:
        if verbose > 2:
            logger(
                "tree",
                f"Stopping at depth ({depth}), best impurity ({best_impurity:.4f}) does not improve on "
                f"({previous_impurity:.4f})",
            )
        return None

    if verbose > 2:
        logger("tree", f"Splitting ({len(samples)}) samples at depth ({depth}) on {best.feature} >= {best.split}")

    positive, negative = partition(best.feature, best.split, samples)
    kwargs = dict(
        features=features,
        previous_impurity=best_impurity,
        feature_sample_size=feature_sample_size if resample_features == "node" else None,
        resample_features=resample_features,
        prng=prng,
        threshold_method=threshold_method,
        max_thresholds=max_thresholds,
        verbose=verbose,
        depth=depth + 1,
    )
    negative_child = _build_node(negative, **kwargs)  # type: ignore
    positive_child = _build_node(positive, **kwargs)  # type: ignore

    return SplitNode(
        feature=best.feature,
        split_value=best.split,
        samples=samples,
        impurity=best_impurity,
        positive_child=positive_child,
        negative_child=negative_child,
    )


def build_node(
    samples: Sequence[Any],
    features: Sequence[Feature],
    previous_impurity: Optional[float] = None,
    feature_sample_size: Optional[int] = None,
    resample_features: str = "root",
    random_state: Any = None,
    threshold_method: str = "exact",
    max_thresholds: Optional[int] = None,
    verbose: int = 0,
) -> Optional[SplitNode]:
    """Grow a decision tree on labeled samples.

    At every node the (feature, threshold) pair with the lowest weighted gini impurity is chosen, ties going to the
    first feature in order. Growth below a node continues only while each additional split strictly improves on the
    impurity of the split above it.

    Parameters
    ----------
    samples : Sequence[Any]
        Labeled samples, any objects with a ``label`` attribute the features can read.

    features : Sequence[Feature]
        Features available for splitting.

    previous_impurity : float, default=None
        Impurity the best split must beat, None to always split when possible.

    feature_sample_size : int, default=None
        Number of features drawn without replacement for the root split, None to use all features.

    resample_features : {"root", "node"}, default="root"
        With "root" only the root split uses the random feature subset and every other node searches all features.
        With "node" a new subset is drawn at every node.

    random_state : int or np.random.RandomState, default=None
        Random seed or random source for feature and threshold sampling.

    threshold_method : {"exact", "random"}, default="exact"
        Method to generate candidate thresholds.

    max_thresholds : int, default=None
        Maximum number of candidates for the "random" threshold method.

    verbose : int, default=0
        Controls verbosity while building.

    Returns
    -------
    SplitNode or None
        Root of the tree, None when no split is possible or no split improves on previous_impurity.
    """
    if not len(samples):
        raise ValueError("Unable to build a tree on an empty sample set")
    if not len(features):
        raise ValueError("Unable to build a tree without features")
    if feature_sample_size is not None and not 1 <= feature_sample_size <= len(features):
        raise ValueError(f"feature_sample_size ({feature_sample_size}) should be in range [1, {len(features)}]")
    if resample_features not in ("root", "node"):
        raise ValueError(f"resample_features ({resample_features}) not supported, expected one of: root, node")
    if threshold_method not in ThresholdMethods:
        raise KeyError(
            f"threshold_method ({threshold_method}) not found in registry ({ThresholdMethods.name}), "
            f"expected one of: {list(ThresholdMethods)}"
        )

    return _build_node(
        tuple(samples),
        list(features),
        previous_impurity=previous_impurity,
        feature_sample_size=feature_sample_size,
        resample_features=resample_features,
        prng=check_random_state(random_state),
        threshold_method=threshold_method,
        max_thresholds=max_thresholds,
        verbose=verbose,
        depth=1,
    )
