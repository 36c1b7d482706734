from abc import ABCMeta, abstractmethod
from typing import Any, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, confloat, NonNegativeInt, PositiveInt, field_validator
from sklearn.base import BaseEstimator, ClassifierMixin

from ._forest import build_forest, forest_votes
from ._threshold_method import ThresholdMethods
from ._sample import array_features, Feature, Sample
from ._tree import build_node, SplitNode
from ._utils import calculate_max_value, logger

# Type aliases
ProbabilityFloat = confloat(gt=0.0, le=1.0)
MaxValuesOption = Optional[Union[Literal["sqrt", "log2"], PositiveInt, ProbabilityFloat]]  # type: ignore


class GiniTreeParameters(BaseModel):
    """Model for GiniTreeClassifier parameters."""

    max_features: MaxValuesOption
    resample_features: Literal["root", "node"]
    threshold_method: str
    max_thresholds: Optional[PositiveInt]
    random_state: Optional[NonNegativeInt]
    verbose: NonNegativeInt

    @field_validator("threshold_method")
    @classmethod
    def validate_threshold_method(cls, v: str) -> str:
        """Validate threshold_method."""
        supported = list(ThresholdMethods)
        if v not in supported:
            raise ValueError(f"threshold_method ({v}) not supported, expected one of: {supported}")

        return v


class GiniForestParameters(GiniTreeParameters):
    """Model for GiniForestClassifier parameters."""

    n_estimators: PositiveInt
    max_samples: MaxValuesOption
    bootstrap_method: Optional[Literal["classic", "bayesian"]]
    n_jobs: Optional[int]


class BaseGiniEstimator(ClassifierMixin, BaseEstimator, metaclass=ABCMeta):
    """Base class for gini tree estimators.

    Warning: This class should not be used directly. Use derived classes instead.
    """

    @property
    @abstractmethod
    def _parameter_model(self) -> type:
        """Model for validating hyperparameters."""
        pass

    def _validate_parameters(self) -> None:
        """Validate hyperparameters."""
        self._parameter_model(**self.get_params())

    def _validate_data_fit(self, *, X: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Validate data for training by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target, 0 or 1.

        Returns
        -------
        np.ndarray
            Training features.

        np.ndarray
            Training target.
        """
        feature_names_in = None
        if hasattr(X, "columns"):
            feature_names_in = [str(column) for column in X.columns]
        X = self._as_array(X, "X")

        if X.ndim == 1:
            X = X[:, None]
        elif X.ndim > 2:
            raise ValueError(
                f"Arrays with more than 2 dimensions are not supported for X, detected ({X.ndim}) dimensions"
            )

        if feature_names_in is None:
            feature_names_in = [f"f{j}" for j in range(1, X.shape[1] + 1)]
        self.feature_names_in_ = feature_names_in

        y = self._as_array(y, "y")
        if y.ndim == 2:
            y = y.ravel()
        elif y.ndim > 2:
            raise ValueError(f"Multi-output labels are not supported for y, detected ({y.ndim - 1}) outputs")

        if len(X) != len(y):
            raise ValueError(f"Different number of samples between X ({len(X)}) and y ({len(y)})")
        if not len(y):
            raise ValueError("Unable to fit on an empty training set")

        y = y.astype(float)
        labels = np.unique(y)
        if not np.isin(labels, [0.0, 1.0]).all():
            raise ValueError(f"Only binary labels 0 and 1 are supported for y, got ({labels.tolist()})")

        return X.astype(float), y

    def _validate_data_predict(self, X: Any) -> np.ndarray:
        """Validate data for inference by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Inference features.

        Returns
        -------
        np.ndarray
            Inference features.
        """
        if not hasattr(self, "feature_names_in_"):
            raise ValueError("Estimator not trained, must call fit() method before predict()")

        feature_names = None
        if hasattr(X, "columns"):
            feature_names = [str(column) for column in X.columns]
        X = self._as_array(X, "X")

        if X.ndim == 1:
            X = X[:, None]
        elif X.ndim > 2:
            raise ValueError(
                f"Arrays with more than 2 dimensions are not supported for X, detected ({X.ndim}) dimensions"
            )

        if X.shape[1] != len(self.feature_names_in_):
            raise ValueError(f"X should have ({len(self.feature_names_in_)}) features, got ({X.shape[1]})")

        if feature_names:
            if set(feature_names) != set(self.feature_names_in_):
                diff = list(set(self.feature_names_in_) - set(feature_names))
                raise ValueError(f"Mismatch in feature names for X, missing ({len(diff)}) features: {diff}")

        return X.astype(float)

    @staticmethod
    def _as_array(data: Any, name: str) -> np.ndarray:
        """Convert supported input types to a numpy array.

        Parameters
        ----------
        data : np.ndarray, list, tuple, or pandas data structure
            Input data.

        name : str
            Name of the input used in error messages.

        Returns
        -------
        np.ndarray
            Input data as array.
        """
        if isinstance(data, np.ndarray):
            return data
        if isinstance(data, (list, tuple)):
            return np.array(data)
        if hasattr(data, "values"):
            return np.asarray(data.values)

        raise ValueError(
            f"Unsupported type for {name} ({type(data)}), expected np.ndarray, list, tuple, or pandas data structure"
        )

    def _training_samples(self, X: np.ndarray, y: np.ndarray) -> Tuple[List[Sample], List[Feature]]:
        """Convert training arrays into samples and index features."""
        self.n_features_in_ = X.shape[1]
        self.classes_ = np.array([0, 1])
        samples = [Sample(values=tuple(row), label=label) for row, label in zip(X.tolist(), y.tolist())]
        features = array_features(self.n_features_in_, self.feature_names_in_)

        return samples, features

    def _feature_sample_size(self) -> Optional[int]:
        """Resolve max_features into the number of features drawn at random.

        Returns
        -------
        int or None
            Number of features, None when every feature is used.
        """
        if self.max_features is None:
            return None
        return calculate_max_value(n_values=self.n_features_in_, desired_max=self.max_features)

    @abstractmethod
    def predict_proba(self, X: Any) -> np.ndarray:
        """Predict class probabilities."""
        pass

    def predict(self, X: Any) -> np.ndarray:
        """Predict target.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted class labels, 1 when the probability of the positive label is >= 0.5.
        """
        y_hat = self.predict_proba(X)
        return (y_hat[:, 1] >= 0.5).astype(int)


class GiniTreeClassifier(BaseGiniEstimator):
    """Binary decision tree classifier grown on gini impurity.

    Parameters
    ----------
    max_features : {"sqrt", "log2"}, int, or float, default=None
        Number of features drawn at random, None to use all features.

    resample_features : {"root", "node"}, default="root"
        Draw the feature subset for the root split only or at every node.

    threshold_method : {"exact", "random"}, default="exact"
        Method to calculate thresholds on a feature used during split selection.

    max_thresholds : int, default=None
        Maximum number of thresholds for the "random" threshold method.

    random_state : int, default=None
        Random seed.

    verbose : int, default=0
        Controls verbosity when fitting.

    Attributes
    ----------
    classes_ : np.ndarray
        Class labels, always [0, 1].

    n_features_in_ : int
        Number of features seen during fit.

    feature_names_in_ : List[str]
        List of feature names seen during fit.

    tree_ : SplitNode
        Root of the grown tree.
    """

    def __init__(
        self,
        *,
        max_features: Optional[Union[str, float, int]] = None,
        resample_features: str = "root",
        threshold_method: str = "exact",
        max_thresholds: Optional[int] = None,
        random_state: Optional[int] = None,
        verbose: int = 0,
    ) -> None:
        self.max_features = max_features
        self.resample_features = resample_features
        self.threshold_method = threshold_method
        self.max_thresholds = max_thresholds
        self.random_state = random_state
        self.verbose = verbose

        self._validate_parameters()

    @property
    def _parameter_model(self) -> type:
        return GiniTreeParameters

    def fit(self, X: Any, y: Any) -> "GiniTreeClassifier":
        """Train estimator.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target, 0 or 1.

        Returns
        -------
        self
            Fitted estimator.
        """
        X, y = self._validate_data_fit(X=X, y=y)
        samples, features = self._training_samples(X, y)

        if self.verbose:
            logger("tree", f"Fitting tree on ({len(samples)}) samples with ({len(features)}) features")

        tree = build_node(
            samples,
            features,
            feature_sample_size=self._feature_sample_size(),
            resample_features=self.resample_features,
            random_state=self.random_state,
            threshold_method=self.threshold_method,
            max_thresholds=self.max_thresholds,
            verbose=self.verbose,
        )
        if tree is None:
            raise ValueError("Unable to split training data, every feature is constant")
        self.tree_: SplitNode = tree

        return self

    def predict_proba(self, X: Any) -> np.ndarray:
        """Predict class probabilities.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted probabilities of shape (n_samples, 2).
        """
        X = self._validate_data_predict(X)

        p = np.array([self.tree_.predict(Sample(values=tuple(row))) for row in X.tolist()])
        return np.column_stack([1 - p, p])


class GiniForestClassifier(BaseGiniEstimator):
    """Random forest of gini trees aggregated by majority vote.

    Parameters
    ----------
    n_estimators : int, default=100
        Number of trees.

    max_features : {"sqrt", "log2"}, int, or float, default="sqrt"
        Number of features drawn at random, None to use all features.

    resample_features : {"root", "node"}, default="root"
        Draw the feature subset for the root split only or at every node.

    threshold_method : {"exact", "random"}, default="exact"
        Method to calculate thresholds on a feature used during split selection.

    max_thresholds : int, default=None
        Maximum number of thresholds for the "random" threshold method.

    bootstrap_method : {"classic", "bayesian"} or None, default="classic"
        Type of resampling for each tree, None draws without replacement.

    max_samples : int or float, default=None
        Number of samples to draw for each tree, defaults to the size of the training set.

    n_jobs : int, default=None
        Number of jobs to run in parallel.

    random_state : int, default=None
        Random seed.

    verbose : int, default=0
        Controls verbosity when fitting.

    Attributes
    ----------
    classes_ : np.ndarray
        Class labels, always [0, 1].

    n_features_in_ : int
        Number of features seen during fit.

    feature_names_in_ : List[str]
        List of feature names seen during fit.

    estimators_ : List[SplitNode]
        Roots of the grown trees.
    """

    def __init__(
        self,
        *,
        n_estimators: int = 100,
        max_features: Optional[Union[str, float, int]] = "sqrt",
        resample_features: str = "root",
        threshold_method: str = "exact",
        max_thresholds: Optional[int] = None,
        bootstrap_method: Optional[str] = "classic",
        max_samples: Optional[Union[int, float]] = None,
        n_jobs: Optional[int] = None,
        random_state: Optional[int] = None,
        verbose: int = 0,
    ) -> None:
        self.n_estimators = n_estimators
        self.max_features = max_features
        self.resample_features = resample_features
        self.threshold_method = threshold_method
        self.max_thresholds = max_thresholds
        self.bootstrap_method = bootstrap_method
        self.max_samples = max_samples
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.verbose = verbose

        self._validate_parameters()

    @property
    def _parameter_model(self) -> type:
        return GiniForestParameters

    def fit(self, X: Any, y: Any) -> "GiniForestClassifier":
        """Train estimator.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target, 0 or 1.

        Returns
        -------
        self
            Fitted estimator.
        """
        X, y = self._validate_data_fit(X=X, y=y)
        samples, features = self._training_samples(X, y)
        n = len(samples)

        self.estimators_: List[SplitNode] = build_forest(
            samples,
            features,
            n_estimators=self.n_estimators,
            max_samples=calculate_max_value(n_values=n, desired_max=self.max_samples) if self.max_samples else n,
            feature_sample_size=self._feature_sample_size(),
            resample_features=self.resample_features,
            bootstrap_method=self.bootstrap_method,
            threshold_method=self.threshold_method,
            max_thresholds=self.max_thresholds,
            random_state=self.random_state,
            n_jobs=self.n_jobs,
            verbose=self.verbose,
        )

        return self

    def predict_proba(self, X: Any) -> np.ndarray:
        """Predict class probabilities as the fraction of trees voting for each class.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Vote fractions of shape (n_samples, 2).
        """
        X = self._validate_data_predict(X)

        n_trees = len(self.estimators_)
        p = np.array([forest_votes(self.estimators_, Sample(values=tuple(row))) / n_trees for row in X.tolist()])
        return np.column_stack([1 - p, p])
