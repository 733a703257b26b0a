from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional

# Latent attributes live on a 0-550 scale where 400 is a league-average
# major leaguer.  Scouting grades map that range onto the familiar 20-80.
ATTRIBUTE_MIN = 0
ATTRIBUTE_MAX = 550
LEAGUE_AVERAGE = 400

SERVICE_DAYS_PER_YEAR = 172
ARBITRATION_YEARS = 3
FREE_AGENCY_YEARS = 6

HITTER_POSITIONS = ("C", "1B", "2B", "3B", "SS", "LF", "CF", "RF", "DH")
PITCHER_POSITIONS = ("SP", "RP", "CL")
LEVELS = ("MLB", "AAA", "ROOKIE")


def to_scouting_scale(value: float) -> int:
    """Return the 20-80 scouting grade for a 0-550 latent value."""
    clamped = max(ATTRIBUTE_MIN, min(ATTRIBUTE_MAX, value))
    return round(20 + clamped / ATTRIBUTE_MAX * 60)


@dataclass(slots=True)
class HitterAttributes:
    contact: float = 0
    power: float = 0
    eye: float = 0
    speed: float = 0
    fielding: float = 0
    arm: float = 0
    durability: float = 0
    baserunning: float = 0
    platoon_sensitivity: float = 0.0  # -1..1, 0 = no split
    offensive_iq: float = 0
    defensive_iq: float = 0
    work_ethic: float = 50  # 0-100
    mental_toughness: float = 50  # 0-100

    graded: ClassVar[tuple[str, ...]] = (
        "contact",
        "power",
        "eye",
        "speed",
        "fielding",
        "arm",
        "durability",
        "baserunning",
    )


@dataclass(slots=True)
class PitcherAttributes:
    stuff: float = 0
    movement: float = 0
    command: float = 0
    stamina: float = 0
    arsenal: int = 2  # number of usable pitches
    gb_tendency: float = 50  # ground-ball percentage tendency, 25-75
    hold_runners: float = 0
    durability: float = 0
    recovery: float = 0
    platoon_tendency: float = 0.0  # -1..1
    fastball_pct: float = 0.55
    breaking_pct: float = 0.30
    offspeed_pct: float = 0.15
    pitching_iq: float = 0
    work_ethic: float = 50
    mental_toughness: float = 50

    graded: ClassVar[tuple[str, ...]] = (
        "stuff",
        "movement",
        "command",
        "stamina",
        "hold_runners",
        "durability",
        "recovery",
    )


@dataclass
class Player:
    """A generated player with latent attributes and roster bookkeeping."""

    player_id: int
    team_id: int
    name: str
    age: int
    position: str
    bats: str
    throws: str
    level: str = "MLB"
    nationality: str = "USA"
    hitting: Optional[HitterAttributes] = None
    pitching: Optional[PitcherAttributes] = None
    overall: int = 0
    potential: int = 0
    service_days: int = 0
    on_forty_man: bool = False
    active: bool = False

    @property
    def is_pitcher(self) -> bool:
        return self.position in PITCHER_POSITIONS

    @property
    def service_years(self) -> float:
        return self.service_days / SERVICE_DAYS_PER_YEAR

    @property
    def arbitration_eligible(self) -> bool:
        return self.service_days >= ARBITRATION_YEARS * SERVICE_DAYS_PER_YEAR

    @property
    def free_agent_eligible(self) -> bool:
        return self.service_days >= FREE_AGENCY_YEARS * SERVICE_DAYS_PER_YEAR

    @property
    def grades(self) -> Dict[str, int]:
        """Scouting grades for the player's graded attributes."""
        attrs = self.pitching if self.is_pitcher else self.hitting
        if attrs is None:
            return {}
        return {name: to_scouting_scale(getattr(attrs, name)) for name in attrs.graded}


__all__ = [
    "ATTRIBUTE_MIN",
    "ATTRIBUTE_MAX",
    "LEAGUE_AVERAGE",
    "SERVICE_DAYS_PER_YEAR",
    "HITTER_POSITIONS",
    "PITCHER_POSITIONS",
    "LEVELS",
    "HitterAttributes",
    "PitcherAttributes",
    "Player",
    "to_scouting_scale",
]
