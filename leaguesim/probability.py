"""Probability helpers shared by the plate appearance model."""
from __future__ import annotations

import math


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` to the inclusive ``low``-``high`` range."""
    return max(low, min(high, value))


def squash(value: float, limit: float) -> float:
    """Soft-limit ``value`` to the open interval ``(-limit, limit)``.

    Small values pass through almost unchanged while large ones approach the
    limit smoothly, so stacked modifiers can never dominate an outcome.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    # tanh rounds to exactly 1.0 for large arguments; keep the result inside.
    inner = math.nextafter(limit, 0.0)
    return clamp(limit * math.tanh(value / limit), -inner, inner)


def log5(batter: float, pitcher: float, league: float) -> float:
    """Return the odds-ratio blend of a batter and pitcher rate.

    With ``league`` as the baseline this is Bill James' log5: an average
    batter against an average pitcher reproduces the league rate, and each
    side's deviation from average compounds multiplicatively on the odds.
    """

    if not 0.0 < league < 1.0:
        raise ValueError("league rate must be strictly between 0 and 1")
    batter = clamp(batter, 1e-6, 1 - 1e-6)
    pitcher = clamp(pitcher, 1e-6, 1 - 1e-6)
    hit = batter * pitcher / league
    miss = (1.0 - batter) * (1.0 - pitcher) / (1.0 - league)
    return hit / (hit + miss)


__all__ = ["clamp", "squash", "log5"]
