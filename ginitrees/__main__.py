import sys
from typing import Any

from ginitrees import build_forest, build_node, forest_votes, WEATHER_FEATURES, WeatherSample
from ginitrees.datasets import GOOD_WEATHER_URL, load_good_weather
from ginitrees.export import render_tree

N_ESTIMATORS = 300
FEATURE_SAMPLE_SIZE = 2
RANDOM_STATE = 1718


def main(source: Any = GOOD_WEATHER_URL, forest: bool = False) -> None:
    """Grow a tree on the good weather data, print it, and predict tomorrow's weather.

    Parameters
    ----------
    source : str, path or file-like, default=GOOD_WEATHER_URL
        Location of the good weather CSV file.

    forest : bool, default=False
        Also grow a random forest and print its vote.
    """
    samples = load_good_weather(source)

    tree = build_node(samples, WEATHER_FEATURES)
    if tree is None:
        raise ValueError(f"Unable to split the ({len(samples)}) weather samples")
    print(render_tree(tree))

    prediction = tree.predict(WeatherSample(rain=0.0, lightning=0.0, cloudy=1.0, temperature=76.0))
    if prediction >= 0.5:
        print(f"Weather is good: {prediction * 100.0}% confident")
    else:
        print(f"Weather is bad: {prediction * 100.0}% chance of it being good")

    if forest:
        trees = build_forest(
            samples,
            WEATHER_FEATURES,
            n_estimators=N_ESTIMATORS,
            max_samples=(len(samples) // 3) * 2,
            feature_sample_size=FEATURE_SAMPLE_SIZE,
            bootstrap_method=None,
            random_state=RANDOM_STATE,
        )
        vote = forest_votes(trees, WeatherSample(rain=0.0, lightning=0.0, cloudy=1.0, temperature=81.0))
        if 2 * vote >= len(trees):
            print(f"Weather is good: {vote}/{len(trees)} votes")
        else:
            print(f"Weather is bad: {vote}/{len(trees)} votes")


if __name__ == "__main__":
    args = [arg for arg in sys.argv[1:] if arg != "--forest"]
    main(source=args[0] if args else GOOD_WEATHER_URL, forest="--forest" in sys.argv[1:])
