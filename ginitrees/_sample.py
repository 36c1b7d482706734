from dataclasses import dataclass, field
from operator import attrgetter, itemgetter
from typing import Any, Callable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Sample:
    """Labeled record of continuous feature values.

    Parameters
    ----------
    values : Tuple[float, ...]
        Feature values in column order.

    label : float, optional (default=None)
        Binary label, 0.0 or 1.0. Absent at inference time.
    """

    values: Tuple[float, ...]
    label: Optional[float] = None

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class WeatherSample:
    """Weather observation with an optional good weather indicator.

    Parameters
    ----------
    rain : float
        Whether it rained (0.0 or 1.0).

    lightning : float
        Whether there was lightning (0.0 or 1.0).

    cloudy : float
        Whether it was cloudy (0.0 or 1.0).

    temperature : float
        Temperature in degrees Fahrenheit.

    label : float, optional (default=None)
        Good weather indicator, 1.0 for good weather and 0.0 for bad weather.
    """

    rain: float
    lightning: float
    cloudy: float
    temperature: float
    label: Optional[float] = None


@dataclass(frozen=True)
class Feature:
    """Named scalar accessor over a sample.

    Parameters
    ----------
    name : str
        Feature name.

    mapper : Callable[[Any], float]
        Extracts the feature value from a sample. Use picklable callables (``operator.attrgetter`` or
        ``operator.itemgetter``) when trees are trained with several jobs.
    """

    name: str
    mapper: Callable[[Any], float] = field(compare=False)

    def __call__(self, sample: Any) -> float:
        return float(self.mapper(sample))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FeatureAndSplit:
    """Candidate split found while searching a node."""

    feature: Feature
    split: float


WEATHER_FEATURES: List[Feature] = [
    Feature("Rain", attrgetter("rain")),
    Feature("Lightning", attrgetter("lightning")),
    Feature("Cloudy", attrgetter("cloudy")),
    Feature("Temperature", attrgetter("temperature")),
]


def array_features(n_features: int, names: Optional[Sequence[str]] = None) -> List[Feature]:
    """Create index based features for ``Sample`` records.

    Parameters
    ----------
    n_features : int
        Number of columns.

    names : Sequence[str], optional (default=None)
        Column names, defaults to f1, f2, ..., fn.

    Returns
    -------
    List[Feature]
        One feature per column.
    """
    if names is None:
        names = [f"f{j}" for j in range(1, n_features + 1)]
    if len(names) != n_features:
        raise ValueError(f"Expected ({n_features}) feature names, got ({len(names)})")

    return [Feature(name, itemgetter(j)) for j, name in enumerate(names)]
