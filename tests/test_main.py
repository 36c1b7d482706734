"""Tests for ginitrees.__main__.py."""
import pytest

from ginitrees.__main__ import main

pytestmark = pytest.mark.other

CSV = """rain,lightning,cloudy,temperature,good_weather
0,0,0,70,1
1,0,1,60,0
0,1,1,55,0
0,0,0,75,1
"""


@pytest.fixture
def weather_csv(tmp_path):
    """Small good weather file."""
    path = tmp_path / "weather.csv"
    path.write_text(CSV)
    return path


def test_main(weather_csv, capsys) -> None:
    """Test the tree is printed followed by the prediction for cloudy, dry and 76 degrees."""
    main(source=weather_csv)
    out, _ = capsys.readouterr()
    lines = out.strip().split("\n")

    assert lines == ["(Cloudy split on 0.5, 2|2, Impurity: 0.0)", "Weather is bad: 0.0% chance of it being good"]


@pytest.mark.forest
def test_main_forest(weather_csv, capsys) -> None:
    """Test the forest vote is printed after the tree prediction."""
    with pytest.warns(UserWarning):
        main(source=weather_csv, forest=True)
    out, _ = capsys.readouterr()
    last = out.strip().split("\n")[-1]

    assert last.startswith("Weather is "), f"Unexpected output ({last})"
    assert last.endswith(" votes")
