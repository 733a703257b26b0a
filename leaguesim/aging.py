"""Between-season player development.

Each latent attribute follows its own aging curve: a rising phase before the
peak window, a near-flat plateau through it and a decline afterwards which
may accelerate past a second age threshold.  :func:`advance_season` ages
every player by one year and returns new :class:`~models.player.Player`
objects; the input list is left untouched so a finished season's snapshot
stays valid.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple
import logging

from leaguesim.ratings import overall_rating
from leaguesim.rng import RandomStream
from models.player import ATTRIBUTE_MAX, HitterAttributes, PitcherAttributes, Player

logger = logging.getLogger(__name__)

PRIME_START = 26
PRIME_END = 31
RETIREMENT_AGE = 38
PLATEAU_EROSION = -0.5
DEVELOPMENT_FLOOR = 50
# Per-attribute noise (latent points) by roster level.
DEVELOPMENT_SIGMA = {"MLB": 4.0, "AAA": 6.0, "ROOKIE": 8.0}
NOISE_SHARE = 0.55


@dataclass(frozen=True)
class AgingCurve:
    peak_age: int
    rise: float
    decline: float
    peak_end: Optional[int] = None
    late_decline_age: Optional[int] = None
    late_decline: Optional[float] = None

    def delta(self, age: int) -> float:
        """Deterministic change for a player who is ``age`` this season."""
        end = self.peak_end if self.peak_end is not None else self.peak_age
        if age < self.peak_age:
            return self.rise
        if age <= end:
            return PLATEAU_EROSION
        if self.late_decline_age is not None and age >= self.late_decline_age:
            return -(self.late_decline if self.late_decline is not None else self.decline)
        return -self.decline


HITTER_CURVES: Dict[str, AgingCurve] = {
    "contact": AgingCurve(27, 15, 6, peak_end=29),
    "power": AgingCurve(27, 18, 10, peak_end=30, late_decline_age=34, late_decline=18),
    "eye": AgingCurve(29, 10, 4, peak_end=32),
    "speed": AgingCurve(23, 8, 15, peak_end=26, late_decline_age=30, late_decline=22),
    "baserunning": AgingCurve(28, 8, 2, peak_end=32),
    "fielding": AgingCurve(24, 20, 8, peak_end=28),
    "arm": AgingCurve(24, 15, 12, peak_end=27),
    "durability": AgingCurve(26, 5, 8, peak_end=30),
    "offensive_iq": AgingCurve(30, 8, 1, peak_end=32),
    "defensive_iq": AgingCurve(28, 8, 1, peak_end=30),
}

PITCHER_CURVES: Dict[str, AgingCurve] = {
    "stuff": AgingCurve(25, 18, 12, peak_end=28, late_decline_age=33, late_decline=20),
    "movement": AgingCurve(27, 12, 6, peak_end=30),
    "command": AgingCurve(29, 10, 4, peak_end=33),
    "stamina": AgingCurve(26, 10, 10, peak_end=30),
    "hold_runners": AgingCurve(28, 5, 2),
    "durability": AgingCurve(26, 5, 8, peak_end=30),
    "recovery": AgingCurve(24, 8, 12, peak_end=28),
    "pitching_iq": AgingCurve(30, 8, 1, peak_end=34),
}


class DevelopmentEvent(NamedTuple):
    player_id: int
    kind: str  # "breakout" or "bust"
    overall_delta: int


def work_ethic_factor(work_ethic: float) -> float:
    """Growth multiplier: 0.6 at no work ethic up to 1.4 at 100."""
    return 0.60 + (work_ethic / 100.0) * 0.80


def _develop(
    rng: RandomStream,
    attrs,
    curves: Dict[str, AgingCurve],
    age: int,
    sigma: float,
    ethic: float,
) -> None:
    for name, curve in curves.items():
        delta = curve.delta(age)
        if delta > 0:
            delta *= ethic
        noise = rng.gaussian(0.0, sigma)
        value = getattr(attrs, name) + delta + noise
        setattr(attrs, name, max(DEVELOPMENT_FLOOR, min(ATTRIBUTE_MAX, round(value))))
    # Mental toughness closes 8% of the remaining gap every year.
    growth = (100 - attrs.mental_toughness) * 0.08
    attrs.mental_toughness = max(
        0, min(100, round(attrs.mental_toughness + growth + rng.gaussian(0.0, 2.0)))
    )


def develop_player(player: Player, rng: RandomStream) -> Player:
    """Return a copy of ``player`` one year older with developed attributes."""

    age = player.age + 1
    sigma = DEVELOPMENT_SIGMA.get(player.level, DEVELOPMENT_SIGMA["MLB"]) * NOISE_SHARE
    hitting: HitterAttributes | None = None
    pitching: PitcherAttributes | None = None
    if player.hitting is not None:
        hitting = replace(player.hitting)
        _develop(rng, hitting, HITTER_CURVES, age, sigma, work_ethic_factor(hitting.work_ethic))
    if player.pitching is not None:
        pitching = replace(player.pitching)
        ethic = work_ethic_factor(pitching.work_ethic)
        _develop(rng, pitching, PITCHER_CURVES, age, sigma, ethic)
        # Slow accumulation of new pitches up to the peak age.
        if age <= 28 and pitching.arsenal < 5:
            gain = max(0.0, 0.05 * ethic + rng.gaussian(0.0, 0.08))
            pitching.arsenal = max(2, min(5, round(pitching.arsenal + gain)))
    developed = replace(player, age=age, hitting=hitting, pitching=pitching)
    developed.overall = overall_rating(developed)
    developed.potential = max(developed.potential, developed.overall)
    return developed


def retirement_probability(age: int, overall_drop: float) -> float:
    """Chance that a player of ``age`` retires after the season."""

    if age < 35:
        base = 0.01
    elif age == 35:
        base = 0.05
    elif age == 36:
        base = 0.10
    elif age == 37:
        base = 0.20
    elif age == RETIREMENT_AGE:
        base = 0.35
    elif age == 39:
        base = 0.50
    else:
        base = 0.65
    drop_bonus = max(0.0, (overall_drop - 30) / 100) * 0.20
    return min(0.95, base + drop_bonus)


def retirement_candidates(players: Iterable[Player], threshold: float = 0.30) -> List[int]:
    """Return ids of players whose retirement probability exceeds ``threshold``.

    Nobody is removed automatically; the list is for the caller's roster
    management between seasons.
    """

    return [
        p.player_id
        for p in players
        if retirement_probability(p.age, max(0, p.potential - p.overall)) > threshold
    ]


def advance_season(
    players: Iterable[Player], rng: RandomStream, *, event_threshold: int = 25
) -> Tuple[List[Player], List[DevelopmentEvent]]:
    """Age every player one year.

    Returns the developed players (same order) and the breakouts and busts
    whose overall rating moved by at least ``event_threshold`` points.
    """

    developed: List[Player] = []
    events: List[DevelopmentEvent] = []
    for player in players:
        new = develop_player(player, rng)
        change = new.overall - player.overall
        if change >= event_threshold:
            events.append(DevelopmentEvent(player.player_id, "breakout", change))
        elif change <= -event_threshold:
            events.append(DevelopmentEvent(player.player_id, "bust", change))
        developed.append(new)
    logger.debug("Aged %d players (%d notable changes)", len(developed), len(events))
    return developed, events


__all__ = [
    "AgingCurve",
    "HITTER_CURVES",
    "PITCHER_CURVES",
    "PRIME_START",
    "PRIME_END",
    "RETIREMENT_AGE",
    "DevelopmentEvent",
    "develop_player",
    "advance_season",
    "retirement_probability",
    "retirement_candidates",
    "work_ethic_factor",
]
