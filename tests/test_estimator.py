"""Tests for ginitrees._estimator.py."""
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

from ginitrees._estimator import GiniForestClassifier, GiniTreeClassifier
from ginitrees._tree import SplitNode

pytestmark = pytest.mark.tree


@pytest.fixture
def threshold_data():
    """Single feature with labels switching at 10."""
    X = np.arange(30, dtype=float)
    y = (X >= 10).astype(int)
    return X.reshape(-1, 1), y


@pytest.fixture
def noisy_data():
    """Two features, the label only depends on the first one."""
    prng = np.random.RandomState(1718)
    X = prng.uniform(size=(200, 2))
    y = (X[:, 0] > 0.5).astype(int)
    return X, y


class TestGiniTreeClassifier:
    """Test GiniTreeClassifier functionality."""

    def test_fit_predict(self, threshold_data) -> None:
        """Test a single threshold is learned exactly."""
        X, y = threshold_data
        clf = GiniTreeClassifier().fit(X, y)

        assert isinstance(clf.tree_, SplitNode)
        assert clf.tree_.split_value == 9.5, f"Wrong split, got ({clf.tree_.split_value}) but expected (9.5)"
        assert clf.score(X, y) == 1.0
        assert clf.n_features_in_ == 1
        assert clf.feature_names_in_ == ["f1"]

    def test_predict_proba(self, threshold_data) -> None:
        """Test probabilities have one column per class and sum to one."""
        X, y = threshold_data
        proba = GiniTreeClassifier().fit(X, y).predict_proba(X)

        assert proba.shape == (30, 2)
        assert np.allclose(proba.sum(axis=1), 1.0)
        assert np.all(proba[:, 1] == y)

    def test_one_dimensional_input(self, threshold_data) -> None:
        """Test a 1-d array is treated as a single feature."""
        X, y = threshold_data
        clf = GiniTreeClassifier().fit(X.ravel(), y)

        assert np.all(clf.predict(X.ravel()) == y)

    def test_not_trained(self, threshold_data) -> None:
        """Test predicting before fitting raises."""
        X, _ = threshold_data
        with pytest.raises(ValueError):
            GiniTreeClassifier().predict(X)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"threshold_method": "bogus"},
            {"max_features": 0},
            {"max_features": 1.5},
            {"max_features": "all"},
            {"max_thresholds": 0},
            {"resample_features": "leaf"},
            {"random_state": -1},
            {"verbose": -1},
        ],
    )
    def test_invalid_parameters(self, kwargs: Dict[str, Any]) -> None:
        """Test invalid hyperparameters are rejected at construction."""
        with pytest.raises(ValidationError):
            GiniTreeClassifier(**kwargs)

    def test_get_params(self) -> None:
        """Test hyperparameters round trip through sklearn's parameter API."""
        clf = GiniTreeClassifier(max_features="sqrt", threshold_method="random", max_thresholds=4, random_state=1)
        params = clf.get_params()

        assert params["max_features"] == "sqrt"
        assert params["threshold_method"] == "random"
        assert params["max_thresholds"] == 4
        assert params["random_state"] == 1

    @pytest.mark.parametrize(
        "X,y",
        [
            (np.array([[1.0], [2.0], [3.0]]), np.array([0, 1, 2])),
            (np.array([[1.0], [2.0], [3.0]]), np.array([0, 1])),
            (np.zeros((2, 2, 2)), np.array([0, 1])),
            (np.array([[1.0], [1.0], [1.0]]), np.array([0, 1, 0])),
        ],
    )
    def test_invalid_data(self, X: np.ndarray, y: np.ndarray) -> None:
        """Test unusable training data raises."""
        with pytest.raises(ValueError):
            GiniTreeClassifier().fit(X, y)

    def test_feature_names(self, threshold_data) -> None:
        """Test pandas column names become feature names."""
        X, y = threshold_data
        df = pd.DataFrame({"a": X.ravel(), "b": np.zeros(len(X))})
        clf = GiniTreeClassifier().fit(df, pd.Series(y))

        assert clf.feature_names_in_ == ["a", "b"]
        assert str(clf.tree_.feature) == "a"
        assert np.all(clf.predict(df) == y)

        with pytest.raises(ValueError):
            clf.predict(df.rename(columns={"b": "c"}))

        with pytest.raises(ValueError):
            clf.predict(X)

    def test_random_thresholds(self, noisy_data) -> None:
        """Test the random threshold method still separates the classes well."""
        X, y = noisy_data
        clf = GiniTreeClassifier(threshold_method="random", max_thresholds=16, random_state=0).fit(X, y)

        assert clf.score(X, y) >= 0.9

    def test_verbose(self, threshold_data, capsys) -> None:
        """Test fitting reports progress."""
        X, y = threshold_data
        GiniTreeClassifier(verbose=1).fit(X, y)
        out, _ = capsys.readouterr()

        assert "[TREE] Fitting tree on (30) samples with (1) features" in out


@pytest.mark.forest
class TestGiniForestClassifier:
    """Test GiniForestClassifier functionality."""

    def test_fit_predict(self, noisy_data) -> None:
        """Test the forest learns the informative feature."""
        X, y = noisy_data
        clf = GiniForestClassifier(n_estimators=20, random_state=0).fit(X, y)

        assert len(clf.estimators_) == 20
        assert clf.score(X, y) >= 0.9

    def test_predict_proba(self, noisy_data) -> None:
        """Test probabilities are vote fractions."""
        X, y = noisy_data
        clf = GiniForestClassifier(n_estimators=10, random_state=0).fit(X, y)
        proba = clf.predict_proba(X)

        assert proba.shape == (len(X), 2)
        assert np.allclose(proba.sum(axis=1), 1.0)
        assert np.allclose(proba[:, 1] * 10, np.round(proba[:, 1] * 10))

    def test_reproducible(self, noisy_data) -> None:
        """Test forests fitted with the same seed predict the same."""
        X, y = noisy_data
        a = GiniForestClassifier(n_estimators=10, max_samples=0.5, random_state=3).fit(X, y)
        b = GiniForestClassifier(n_estimators=10, max_samples=0.5, random_state=3).fit(X, y)

        assert np.array_equal(a.predict_proba(X), b.predict_proba(X))
        assert all(len(tree.samples) == 100 for tree in a.estimators_)

    @pytest.mark.parametrize("resample_features", ["root", "node"])
    def test_resample_features(self, noisy_data, resample_features: str) -> None:
        """Test both feature sampling modes reach the trees."""
        X, y = noisy_data
        clf = GiniForestClassifier(n_estimators=5, max_features=1, resample_features=resample_features, random_state=0)
        clf.fit(X, y)

        assert clf.get_params()["resample_features"] == resample_features
        assert len(clf.estimators_) == 5

    @pytest.mark.parametrize("bootstrap_method", ["classic", "bayesian", None])
    def test_bootstrap_methods(self, noisy_data, bootstrap_method) -> None:
        """Test every resampling method can be used."""
        X, y = noisy_data
        clf = GiniForestClassifier(
            n_estimators=5, bootstrap_method=bootstrap_method, max_samples=0.8, random_state=0
        ).fit(X, y)

        assert clf.score(X, y) >= 0.9

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"n_estimators": 0},
            {"bootstrap_method": "jackknife"},
            {"resample_features": "leaf"},
            {"max_samples": -1},
            {"threshold_method": "bogus"},
        ],
    )
    def test_invalid_parameters(self, kwargs: Dict[str, Any]) -> None:
        """Test invalid hyperparameters are rejected at construction."""
        with pytest.raises(ValidationError):
            GiniForestClassifier(**kwargs)
