"""Helpers for combining latent attributes into single ratings.

Overall ratings are weighted means of a player's latent attributes.  The
weights depend on position so a shortstop's glove counts for more than a
designated hitter's.  Values stay on the 0-550 latent scale; use
:func:`models.player.to_scouting_scale` for the 20-80 presentation grade.
"""
from __future__ import annotations

from typing import Any, Mapping

from models.player import ATTRIBUTE_MAX, ATTRIBUTE_MIN, Player

HITTER_OVERALL_WEIGHTS: dict[str, dict[str, float]] = {
    "C": {
        "contact": 0.25,
        "power": 0.20,
        "eye": 0.10,
        "fielding": 0.20,
        "arm": 0.10,
        "durability": 0.10,
        "offensive_iq": 0.05,
    },
    "1B": {
        "contact": 0.20,
        "power": 0.30,
        "eye": 0.15,
        "fielding": 0.15,
        "arm": 0.05,
        "durability": 0.10,
        "offensive_iq": 0.05,
    },
    "2B": {
        "contact": 0.25,
        "power": 0.15,
        "eye": 0.15,
        "fielding": 0.20,
        "arm": 0.10,
        "speed": 0.05,
        "durability": 0.05,
        "defensive_iq": 0.05,
    },
    "3B": {
        "contact": 0.20,
        "power": 0.25,
        "eye": 0.10,
        "fielding": 0.18,
        "arm": 0.12,
        "durability": 0.10,
        "offensive_iq": 0.05,
    },
    "SS": {
        "contact": 0.20,
        "power": 0.12,
        "eye": 0.13,
        "fielding": 0.25,
        "arm": 0.12,
        "speed": 0.08,
        "durability": 0.05,
        "defensive_iq": 0.05,
    },
    "LF": {
        "contact": 0.22,
        "power": 0.25,
        "eye": 0.15,
        "fielding": 0.15,
        "arm": 0.08,
        "speed": 0.10,
        "durability": 0.05,
    },
    "CF": {
        "contact": 0.22,
        "power": 0.18,
        "eye": 0.12,
        "fielding": 0.20,
        "arm": 0.08,
        "speed": 0.15,
        "durability": 0.05,
    },
    "RF": {
        "contact": 0.20,
        "power": 0.28,
        "eye": 0.12,
        "fielding": 0.15,
        "arm": 0.10,
        "speed": 0.08,
        "durability": 0.07,
    },
    "DH": {
        "contact": 0.22,
        "power": 0.33,
        "eye": 0.18,
        "durability": 0.12,
        "offensive_iq": 0.10,
        "baserunning": 0.05,
    },
}

PITCHER_OVERALL_WEIGHTS: dict[str, dict[str, float]] = {
    "SP": {
        "stuff": 0.25,
        "movement": 0.20,
        "command": 0.25,
        "stamina": 0.15,
        "arsenal": 0.05,
        "pitching_iq": 0.10,
    },
    "RP": {
        "stuff": 0.35,
        "movement": 0.18,
        "command": 0.25,
        "stamina": 0.05,
        "arsenal": 0.05,
        "pitching_iq": 0.08,
        "recovery": 0.04,
    },
    "CL": {
        "stuff": 0.38,
        "movement": 0.15,
        "command": 0.25,
        "stamina": 0.05,
        "arsenal": 0.05,
        "pitching_iq": 0.07,
        "mental_toughness": 0.05,
    },
}

# Batting order strength: contact first, then power and plate discipline.
LINEUP_WEIGHTS = {"contact": 1.0, "power": 0.8, "eye": 0.6}


def clamp_attribute(
    value: float, minimum: float = ATTRIBUTE_MIN, maximum: float = ATTRIBUTE_MAX
) -> float:
    """Clamp ``value`` to the latent attribute range."""
    return max(minimum, min(maximum, value))


def weighted_rating(attrs: Any, weights: Mapping[str, float]) -> int:
    """Return the weighted mean of ``attrs`` using ``weights``.

    Attributes missing from ``attrs`` are skipped and the remaining weights
    are renormalised, so a partial attribute block still yields a rating.
    """

    total = 0.0
    weight_sum = 0.0
    for name, weight in weights.items():
        value = getattr(attrs, name, None)
        if isinstance(value, (int, float)):
            total += value * weight
            weight_sum += weight
    return round(total / weight_sum) if weight_sum > 0 else 0


def hitter_overall(attrs: Any, position: str) -> int:
    try:
        weights = HITTER_OVERALL_WEIGHTS[position]
    except KeyError:
        raise ValueError(f"Unknown hitter position: {position}") from None
    return weighted_rating(attrs, weights)


def pitcher_overall(attrs: Any, position: str) -> int:
    try:
        weights = PITCHER_OVERALL_WEIGHTS[position]
    except KeyError:
        raise ValueError(f"Unknown pitcher position: {position}") from None
    return weighted_rating(attrs, weights)


def overall_rating(player: Player) -> int:
    """Return the positional overall rating for ``player``."""

    if player.is_pitcher:
        if player.pitching is None:
            raise ValueError(f"Pitcher {player.player_id} has no pitching attributes")
        return pitcher_overall(player.pitching, player.position)
    if player.hitting is None:
        raise ValueError(f"Hitter {player.player_id} has no hitting attributes")
    return hitter_overall(player.hitting, player.position)


def lineup_score(player: Player) -> float:
    """Return the sort key used to build a batting order."""
    attrs = player.hitting
    if attrs is None:
        return 0.0
    return sum(getattr(attrs, name) * weight for name, weight in LINEUP_WEIGHTS.items())


__all__ = [
    "HITTER_OVERALL_WEIGHTS",
    "PITCHER_OVERALL_WEIGHTS",
    "LINEUP_WEIGHTS",
    "clamp_attribute",
    "weighted_rating",
    "hitter_overall",
    "pitcher_overall",
    "overall_rating",
    "lineup_score",
]
