"""League structure: team table, park factors and pre-season validation."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import csv
import logging

from models.player import PITCHER_POSITIONS, Player
from models.roster import active_limit
from models.team import DIVISIONS, LEAGUES, Team
from utils.exceptions import ConfigurationError
from utils.path_utils import get_data_dir

logger = logging.getLogger(__name__)

TEAMS_PATH = get_data_dir() / "teams.csv"
PARK_FACTORS_PATH = get_data_dir() / "park_factors.csv"

MIN_ACTIVE_HITTERS = 9
MIN_ACTIVE_STARTERS = 1
MIN_ACTIVE_RELIEVERS = 1


@dataclass(frozen=True)
class ParkFactor:
    park_id: int
    name: str
    hr_factor: float = 1.0
    hit_factor: float = 1.0


NEUTRAL_PARK = ParkFactor(-1, "Neutral")


def load_teams(path: str | Path | None = None) -> List[Team]:
    """Return the teams listed in ``path`` (the bundled table by default)."""

    path = Path(path) if path is not None else TEAMS_PATH
    teams: List[Team] = []
    with path.open(newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            try:
                teams.append(
                    Team(
                        team_id=int(row["team_id"]),
                        name=row["name"],
                        abbreviation=row["abbreviation"],
                        city=row["city"],
                        league=row["league"],
                        division=row["division"],
                        park_id=int(row["park_id"]),
                    )
                )
            except (KeyError, ValueError) as exc:
                raise ConfigurationError(f"Malformed team row in {path}: {row}") from exc
    return teams


@lru_cache(maxsize=4)
def load_park_factors(path: str | Path | None = None) -> Dict[int, ParkFactor]:
    """Return ``{park_id: ParkFactor}`` from ``path``."""

    path = Path(path) if path is not None else PARK_FACTORS_PATH
    parks: Dict[int, ParkFactor] = {}
    with path.open(newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            park = ParkFactor(
                park_id=int(row["park_id"]),
                name=row["name"],
                hr_factor=float(row["hr_factor"]),
                hit_factor=float(row["hit_factor"]),
            )
            parks[park.park_id] = park
    return parks


def park_for(team: Team, parks: Optional[Mapping[int, ParkFactor]] = None) -> ParkFactor:
    parks = load_park_factors() if parks is None else parks
    return parks.get(team.park_id, NEUTRAL_PARK)


def team_problems(team: Team, players: Sequence[Player], month: int = 4) -> List[str]:
    """Return reasons ``team`` cannot take the field with ``players``."""

    problems: List[str] = []
    label = f"team {team.team_id}"
    if team.league not in LEAGUES:
        problems.append(f"{label}: unknown league '{team.league}'")
    if team.division not in DIVISIONS:
        problems.append(f"{label}: unknown division '{team.division}'")

    active = [p for p in players if p.active]
    hitters = [p for p in active if p.position not in PITCHER_POSITIONS]
    starters = [p for p in active if p.position == "SP"]
    relievers = [p for p in active if p.position in ("RP", "CL")]
    if len(active) > active_limit(month):
        problems.append(f"{label}: {len(active)} active players (limit {active_limit(month)})")
    if len(hitters) < MIN_ACTIVE_HITTERS:
        problems.append(f"{label}: only {len(hitters)} active hitters")
    if len(starters) < MIN_ACTIVE_STARTERS:
        problems.append(f"{label}: no active starting pitcher")
    if len(relievers) < MIN_ACTIVE_RELIEVERS:
        problems.append(f"{label}: no active relief pitcher")
    forty_man = sum(1 for p in players if p.on_forty_man)
    if forty_man > 40:
        problems.append(f"{label}: {forty_man} players on the 40-man roster")
    for player in active:
        if player.level != "MLB":
            problems.append(f"{label}: active player {player.player_id} is at level {player.level}")
        if player.is_pitcher and player.pitching is None:
            problems.append(f"{label}: pitcher {player.player_id} has no pitching attributes")
        if not player.is_pitcher and player.hitting is None:
            problems.append(f"{label}: hitter {player.player_id} has no hitting attributes")
        if player.bats not in ("R", "L", "S") or player.throws not in ("R", "L"):
            problems.append(f"{label}: player {player.player_id} has invalid handedness")
    return problems


def validate_league(
    teams: Iterable[Team],
    players: Iterable[Player],
    team_ids: Optional[Iterable[int]] = None,
) -> None:
    """Raise :class:`ConfigurationError` when the league cannot be simulated.

    ``team_ids`` lists the teams a schedule needs; each must be present.
    All problems are collected before raising so one run reports them all.
    """

    teams = list(teams)
    players = list(players)
    problems: List[str] = []

    by_id: Dict[int, Team] = {}
    for team in teams:
        if team.team_id in by_id:
            problems.append(f"duplicate team id {team.team_id}")
        by_id[team.team_id] = team
    if team_ids is not None:
        missing = sorted(set(team_ids) - set(by_id))
        if missing:
            problems.append(f"schedule references unknown teams {missing}")

    seen: set[int] = set()
    roster: Dict[int, List[Player]] = {team_id: [] for team_id in by_id}
    for player in players:
        if player.player_id in seen:
            problems.append(f"duplicate player id {player.player_id}")
        seen.add(player.player_id)
        if player.team_id not in roster:
            problems.append(f"player {player.player_id} belongs to unknown team {player.team_id}")
            continue
        roster[player.team_id].append(player)

    for team_id, team in sorted(by_id.items()):
        problems.extend(team_problems(team, roster[team_id]))

    if problems:
        logger.debug("League validation found %d problems", len(problems))
        raise ConfigurationError("League is not ready to simulate", problems)


__all__ = [
    "ParkFactor",
    "NEUTRAL_PARK",
    "load_teams",
    "load_park_factors",
    "park_for",
    "team_problems",
    "validate_league",
]
