from typing import Any, List

import pandas as pd

from ._sample import WeatherSample

GOOD_WEATHER_URL = (
    "https://raw.githubusercontent.com/thomasnield/machine-learning-demo-data/master/classification/"
    "good_weather_classification.csv"
)
_COLUMNS = ["rain", "lightning", "cloudy", "temperature", "label"]


def load_good_weather(source: Any = GOOD_WEATHER_URL) -> List[WeatherSample]:
    """Load labeled weather observations.

    The first row is a header, every following row holds rain, lightning, cloudy, temperature and the good weather
    indicator, in that order. Blank lines are ignored.

    Parameters
    ----------
    source : str, path or file-like, default=GOOD_WEATHER_URL
        Location of the CSV file, anything ``pandas.read_csv`` accepts.

    Returns
    -------
    List[WeatherSample]
        Samples in file order.
    """
    df = pd.read_csv(source, header=0, names=_COLUMNS, skip_blank_lines=True)
    df = df.dropna(how="all").astype(float)

    return [WeatherSample(**row) for row in df.to_dict(orient="records")]
