# flake8: noqa
import sys

from ._estimator import GiniForestClassifier, GiniTreeClassifier
from ._forest import build_forest, forest_predict, forest_votes
from ._impurity import gini_impurity, gini_impurity_for_split
from ._sample import array_features, Feature, FeatureAndSplit, Sample, WEATHER_FEATURES, WeatherSample
from ._tree import best_threshold, build_node, SplitNode

__version__ = "0.1.0"

# Trees grow one stack frame per level
sys.setrecursionlimit(max(sys.getrecursionlimit(), 100_000))
