import math

import pytest

from leaguesim.state import BattingLine, PitchingLine
from leaguesim.stats import (
    compute_batting_rates,
    compute_pitching_rates,
    pearson_correlation,
    population_stdev,
    pythagorean_win_pct,
)


def test_batting_rates():
    line = BattingLine(1, 1, pa=5, ab=4, h=2, doubles=1, hr=1, bb=1, so=1)
    rates = compute_batting_rates(line)
    assert rates["avg"] == pytest.approx(0.5)
    assert rates["obp"] == pytest.approx(0.6)
    assert rates["slg"] == pytest.approx(1.5)
    assert rates["ops"] == pytest.approx(2.1)
    assert rates["iso"] == pytest.approx(1.0)
    assert rates["babip"] == pytest.approx(0.5)
    assert rates["k_pct"] == pytest.approx(0.2)


def test_empty_lines_are_zero():
    assert set(compute_batting_rates(BattingLine(1, 1)).values()) == {0.0}
    assert set(compute_pitching_rates(PitchingLine(1, 1)).values()) == {0.0}


def test_pitching_rates():
    line = PitchingLine(1, 1, outs=27, bf=36, h=7, er=3, bb=2, so=9, hr=1, pitches=135)
    rates = compute_pitching_rates(line)
    assert rates["ip"] == pytest.approx(9.0)
    assert rates["era"] == pytest.approx(3.0)
    assert rates["whip"] == pytest.approx(1.0)
    assert rates["k9"] == pytest.approx(9.0)
    assert rates["pitches_per_pa"] == pytest.approx(3.75)


def test_pythagorean():
    assert pythagorean_win_pct(700, 700) == pytest.approx(0.5)
    assert pythagorean_win_pct(0, 0) == 0.5
    assert pythagorean_win_pct(800, 600) > 0.6
    with pytest.raises(ValueError):
        pythagorean_win_pct(-1, 5)


def test_population_stdev():
    assert population_stdev([1, 2, 3, 4]) == pytest.approx(math.sqrt(1.25))
    assert population_stdev([81] * 30) == 0.0
    with pytest.raises(ValueError):
        population_stdev([])


def test_pearson_correlation():
    xs = [1, 2, 3, 4]
    assert pearson_correlation(xs, [2, 4, 6, 8]) == pytest.approx(1.0)
    assert pearson_correlation(xs, [8, 6, 4, 2]) == pytest.approx(-1.0)
    assert pearson_correlation(xs, [5, 5, 5, 5]) == 0.0
    with pytest.raises(ValueError):
        pearson_correlation(xs, [1, 2])
    with pytest.raises(ValueError):
        pearson_correlation([1], [1])
