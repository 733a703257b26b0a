from __future__ import annotations

import math
from typing import Dict, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from leaguesim.state import BattingLine, PitchingLine

PYTHAGOREAN_EXPONENT = 1.83


def compute_batting_rates(stats: 'BattingLine') -> Dict[str, float]:
    """Return rate-based batting metrics.

    Parameters
    ----------
    stats: BattingLine
        Game or season batting totals.
    """
    ab = stats.ab
    pa = stats.pa
    h = stats.h
    singles = h - stats.doubles - stats.triples - stats.hr
    tb = singles + 2 * stats.doubles + 3 * stats.triples + 4 * stats.hr

    avg = h / ab if ab else 0.0
    obp_den = ab + stats.bb + stats.hbp + stats.sf
    obp = (h + stats.bb + stats.hbp) / obp_den if obp_den else 0.0
    slg = tb / ab if ab else 0.0
    babip_den = ab - stats.hr - stats.so + stats.sf
    babip = (h - stats.hr) / babip_den if babip_den else 0.0
    return {
        "avg": avg,
        "obp": obp,
        "slg": slg,
        "ops": obp + slg,
        "iso": slg - avg,
        "babip": babip,
        "k_pct": stats.so / pa if pa else 0.0,
        "bb_pct": stats.bb / pa if pa else 0.0,
        "hr_pct": stats.hr / pa if pa else 0.0,
    }


def compute_pitching_rates(stats: 'PitchingLine') -> Dict[str, float]:
    """Return rate-based pitching metrics."""

    ip = stats.outs / 3.0
    bf = stats.bf
    era = stats.er * 27 / stats.outs if stats.outs else 0.0
    whip = (stats.bb + stats.h) / ip if ip else 0.0
    return {
        "ip": ip,
        "era": era,
        "whip": whip,
        "k9": stats.so * 9 / ip if ip else 0.0,
        "bb9": stats.bb * 9 / ip if ip else 0.0,
        "hr9": stats.hr * 9 / ip if ip else 0.0,
        "k_pct": stats.so / bf if bf else 0.0,
        "bb_pct": stats.bb / bf if bf else 0.0,
        "pitches_per_pa": stats.pitches / bf if bf else 0.0,
    }


def pythagorean_win_pct(
    runs_scored: float, runs_allowed: float, exponent: float = PYTHAGOREAN_EXPONENT
) -> float:
    """Expected winning percentage from runs scored and allowed."""

    if runs_scored < 0 or runs_allowed < 0:
        raise ValueError("runs must be non-negative")
    if runs_scored == 0 and runs_allowed == 0:
        return 0.5
    rs = runs_scored ** exponent
    return rs / (rs + runs_allowed ** exponent)


def population_stdev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by ``n``)."""

    if not values:
        raise ValueError("population_stdev requires at least one value")
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equally long sequences."""

    if len(xs) != len(ys):
        raise ValueError("sequences must have the same length")
    if len(xs) < 2:
        raise ValueError("correlation needs at least two points")
    mx = sum(xs) / len(xs)
    my = sum(ys) / len(ys)
    sxy = sum((x - mx) * (y - my) for x, y in zip(xs, ys))
    sxx = sum((x - mx) ** 2 for x in xs)
    syy = sum((y - my) ** 2 for y in ys)
    if sxx == 0 or syy == 0:
        return 0.0
    return sxy / math.sqrt(sxx * syy)


__all__ = [
    "PYTHAGOREAN_EXPONENT",
    "compute_batting_rates",
    "compute_pitching_rates",
    "pythagorean_win_pct",
    "population_stdev",
    "pearson_correlation",
]
