"""Tests for ginitrees._utils.py."""
from typing import Any, Dict

import numpy as np
import pytest

from ginitrees._registry import Registry
from ginitrees._sample import Sample
from ginitrees._threshold_method import ThresholdMethods
from ginitrees._utils import bootstrap_sample_idx, calculate_max_value, logger, positive_fraction

pytestmark = pytest.mark.other


def test_logger(capsys) -> None:
    """Test logger function."""
    logger("tree", "hello")
    out, _ = capsys.readouterr()
    assert out == "[TREE] hello\n"


@pytest.mark.parametrize(
    "labels,expected",
    [
        ([1.0], 1.0),
        ([0.0, 0.0], 0.0),
        ([1.0, 0.0, 0.0, 1.0], 0.5),
        ([1.0, 0.0, 0.0], 1 / 3),
    ],
)
def test_positive_fraction(labels, expected: float) -> None:
    """Test positive_fraction function."""
    samples = [Sample(values=(0.0,), label=label) for label in labels]
    assert positive_fraction(samples) == expected


def test_positive_fraction_empty() -> None:
    """Test positive_fraction on an empty sample set."""
    with pytest.raises(ValueError):
        positive_fraction([])


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({"n_values": 10, "desired_max": None}, 10),
        ({"n_values": 10, "desired_max": 3}, 3),
        ({"n_values": 10, "desired_max": 30}, 10),
        ({"n_values": 10, "desired_max": "sqrt"}, 4),
        ({"n_values": 10, "desired_max": "log2"}, 4),
        ({"n_values": 10, "desired_max": 0.25}, 3),
        ({"n_values": 1, "desired_max": "log2"}, 1),
    ],
)
def test_calculate_max_value(kwargs: Dict[str, Any], expected: int) -> None:
    """Test calculate_max_value function."""
    value = calculate_max_value(**kwargs)
    assert value == expected, f"Wrong value, got ({value}) but expected ({expected})"


class TestBootstrapSampleIdx:
    """Test bootstrap_sample_idx functionality."""

    @pytest.mark.parametrize("bootstrap_method", ["classic", "bayesian"])
    def test_with_replacement(self, bootstrap_method: str) -> None:
        """Test resampling with replacement draws the requested number of valid indices."""
        idx = bootstrap_sample_idx(n=10, max_samples=25, bootstrap_method=bootstrap_method, random_state=0)

        assert len(idx) == 25
        assert idx.min() >= 0 and idx.max() < 10

    def test_without_replacement(self) -> None:
        """Test resampling without replacement never repeats an index."""
        idx = bootstrap_sample_idx(n=10, max_samples=6, bootstrap_method=None, random_state=0)

        assert len(idx) == 6
        assert len(np.unique(idx)) == 6

    def test_reproducible(self) -> None:
        """Test the same seed gives the same indices."""
        for bootstrap_method in ["classic", "bayesian", None]:
            a = bootstrap_sample_idx(n=20, max_samples=10, bootstrap_method=bootstrap_method, random_state=7)
            b = bootstrap_sample_idx(n=20, max_samples=10, bootstrap_method=bootstrap_method, random_state=7)
            assert np.array_equal(a, b)

    def test_unsupported(self) -> None:
        """Test an unknown resampling method raises."""
        with pytest.raises(ValueError):
            bootstrap_sample_idx(n=10, max_samples=10, bootstrap_method="jackknife", random_state=0)


class TestRegistry:
    """Test Registry functionality."""

    def test_register(self) -> None:
        """Test callables are found under their alias."""
        registry = Registry("Test")

        @registry.register("double")
        def double(x: int) -> int:
            return 2 * x

        assert registry.name == "Test"
        assert "double" in registry
        assert list(registry) == ["double"]
        assert len(registry) == 1
        assert registry["double"](2) == 4

    def test_duplicate_alias(self) -> None:
        """Test an alias can only be registered once."""
        registry = Registry("Test")
        registry.register("f")(len)

        with pytest.raises(KeyError):
            registry.register("f")(sum)

    def test_missing_alias(self) -> None:
        """Test looking up an unknown alias raises."""
        with pytest.raises(KeyError):
            Registry("Test")["missing"]


class TestThresholdMethods:
    """Test threshold methods."""

    def test_registered(self) -> None:
        """Test both threshold methods are registered."""
        assert sorted(ThresholdMethods) == ["exact", "random"]

    @pytest.mark.parametrize(
        "x,expected",
        [
            (np.array([3.0, 1.0, 2.0, 2.0]), np.array([1.5, 2.5])),
            (np.array([55.0, 60.0, 70.0, 75.0]), np.array([57.5, 65.0, 72.5])),
            (np.array([4.0, 4.0]), np.array([])),
        ],
    )
    def test_exact(self, x: np.ndarray, expected: np.ndarray) -> None:
        """Test exact thresholds are the midpoints between sorted distinct values."""
        thresholds = ThresholdMethods["exact"](x)
        assert np.array_equal(thresholds, expected), f"Wrong thresholds, got ({thresholds}) but expected ({expected})"

    @pytest.mark.parametrize(
        "lo,hi",
        [
            (1.0, np.nextafter(1.0, 2.0)),
            (-5.0, np.nextafter(-5.0, 0.0)),
            (1e308, 1.7e308),
            (-1.7e308, 1.7e308),
            (0.0, 5e-324),
        ],
    )
    def test_exact_between_values(self, lo: float, hi: float) -> None:
        """Test every threshold lies in (lo, hi] for adjacent, huge and tiny values."""
        thresholds = ThresholdMethods["exact"](np.array([hi, lo, hi]))

        assert len(thresholds) == 1
        assert lo < thresholds[0] <= hi, f"Threshold ({thresholds[0]}) outside of ({lo}, {hi}]"
        assert np.isfinite(thresholds[0])

    def test_random(self) -> None:
        """Test random thresholds are a sorted subset of the exact thresholds."""
        x = np.arange(50, dtype=float)
        exact = ThresholdMethods["exact"](x)
        thresholds = ThresholdMethods["random"](x, max_thresholds=5, random_state=0)

        assert len(thresholds) == 5
        assert np.all(np.isin(thresholds, exact))
        assert np.all(np.diff(thresholds) > 0)

    def test_random_all(self) -> None:
        """Test random thresholds fall back to every midpoint when enough are allowed."""
        x = np.array([1.0, 2.0, 3.0])
        thresholds = ThresholdMethods["random"](x, max_thresholds=10, random_state=0)

        assert np.array_equal(thresholds, np.array([1.5, 2.5]))
