"""Fixed 162-game league schedule.

The league has thirty clubs: ids 1-15 form the American League and 16-30 the
National League, each split into East, Central and West divisions of five
clubs in id order.  Game pairs are produced in three passes:

* divisional - each pair inside a division plays 19 games, ten hosted by the
  lower id club, giving 76 divisional games per team;
* intra-league - each pair in the same league but different divisions plays
  six games, three at each park, giving 60 games per team;
* interleague - every club meets the five clubs of the same-index division in
  the other league five times (three at the AL park, two at the NL park),
  plus one bonus game per rival index so each club lands on exactly 162.

Pairs are shuffled with a fixed-seed 32-bit LCG and dealt fifteen per game
day starting on opening day, with one off day after every six game days.  The
result depends only on these structural constants so it is computed once per
process and cached in a :class:`ScheduleCache`.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from itertools import combinations
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import csv
import logging

from leaguesim.rng import Lcg32
from utils.exceptions import InvariantViolation

__all__ = [
    "ScheduleEntry",
    "ScheduleCache",
    "generate_schedule_template",
    "validate_schedule",
    "schedule_breakdown",
    "check_schedule",
    "clear_schedule_cache",
    "save_schedule",
    "league_of",
    "division_of",
    "SEASON_OPENER",
    "GAMES_PER_TEAM",
]

logger = logging.getLogger(__name__)

TEAM_COUNT = 30
DIVISION_SIZE = 5
AL_DIVISIONS: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(range(start, start + DIVISION_SIZE)) for start in (1, 6, 11)
)
NL_DIVISIONS: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(range(start, start + DIVISION_SIZE)) for start in (16, 21, 26)
)
DIVISION_NAMES = ("East", "Central", "West")

GAMES_PER_TEAM = 162
DIVISIONAL_GAMES = 19
INTRA_LEAGUE_GAMES = 6
INTERLEAGUE_AL_HOME = 3
INTERLEAGUE_NL_HOME = 2
DIVISIONAL_GAMES_PER_TEAM = 76

SHUFFLE_SEED = 123456789
GAMES_PER_DAY = 15
GAME_DAYS_BETWEEN_OFF_DAYS = 6
SEASON_OPENER = date(2026, 4, 1)


@dataclass(frozen=True)
class ScheduleEntry:
    """One scheduled game."""

    game_id: int
    date: str
    home_team_id: int
    away_team_id: int
    is_interleague: bool
    is_divisional: bool


def league_of(team_id: int) -> str:
    if not 1 <= team_id <= TEAM_COUNT:
        raise ValueError(f"team id {team_id} outside 1-{TEAM_COUNT}")
    return "AL" if team_id <= 15 else "NL"


def division_of(team_id: int) -> str:
    league_of(team_id)
    return DIVISION_NAMES[((team_id - 1) % 15) // DIVISION_SIZE]


def _same_division(a: int, b: int) -> bool:
    return (a - 1) // DIVISION_SIZE == (b - 1) // DIVISION_SIZE


def _pair(home: int, away: int) -> Tuple[int, int, bool, bool]:
    interleague = league_of(home) != league_of(away)
    return home, away, interleague, not interleague and _same_division(home, away)


def _add_series(pairs: list, team_a: int, team_b: int, games: int) -> None:
    """Append ``games`` pairs split evenly, the odd game hosted by ``team_a``."""

    half, remainder = divmod(games, 2)
    pairs.extend(_pair(team_a, team_b) for _ in range(half))
    pairs.extend(_pair(team_b, team_a) for _ in range(half))
    pairs.extend(_pair(team_a, team_b) for _ in range(remainder))


def _game_pairs() -> List[Tuple[int, int, bool, bool]]:
    pairs: List[Tuple[int, int, bool, bool]] = []

    # Divisional: 4 opponents x 19 games = 76.
    for division in AL_DIVISIONS + NL_DIVISIONS:
        for team_a, team_b in combinations(division, 2):
            _add_series(pairs, team_a, team_b, DIVISIONAL_GAMES)

    # Intra-league, other divisions: 10 opponents x 6 games = 60.
    for divisions in (AL_DIVISIONS, NL_DIVISIONS):
        for div_a, div_b in combinations(divisions, 2):
            for team_a in div_a:
                for team_b in div_b:
                    _add_series(pairs, team_a, team_b, INTRA_LEAGUE_GAMES)

    # Interleague against the same-index division: 5 opponents x 5 games.
    rivals = list(zip(AL_DIVISIONS, NL_DIVISIONS))
    for al_div, nl_div in rivals:
        for al_team in al_div:
            for nl_team in nl_div:
                pairs.extend(_pair(al_team, nl_team) for _ in range(INTERLEAGUE_AL_HOME))
                pairs.extend(_pair(nl_team, al_team) for _ in range(INTERLEAGUE_NL_HOME))

    # One bonus game per rival index brings everyone from 161 to 162.  The
    # host alternates between the AL club (even index) and the NL club.
    for al_div, nl_div in rivals:
        for index, (al_team, nl_team) in enumerate(zip(al_div, nl_div)):
            if index % 2 == 0:
                pairs.append(_pair(al_team, nl_team))
            else:
                pairs.append(_pair(nl_team, al_team))
    return pairs


def _build_schedule() -> Tuple[ScheduleEntry, ...]:
    pairs = Lcg32(SHUFFLE_SEED).shuffle(_game_pairs())
    entries: List[ScheduleEntry] = []
    for index, (home, away, interleague, divisional) in enumerate(pairs):
        game_day = index // GAMES_PER_DAY
        calendar_day = game_day + game_day // GAME_DAYS_BETWEEN_OFF_DAYS
        entries.append(
            ScheduleEntry(
                game_id=index + 1,
                date=(SEASON_OPENER + timedelta(days=calendar_day)).isoformat(),
                home_team_id=home,
                away_team_id=away,
                is_interleague=interleague,
                is_divisional=divisional,
            )
        )
    return tuple(entries)


class ScheduleCache:
    """Memo for the league schedule.

    The schedule is built on first use and returned unchanged afterwards.
    :meth:`clear` drops the memo so the next :meth:`get` rebuilds it.
    """

    def __init__(self) -> None:
        self._schedule: Optional[Tuple[ScheduleEntry, ...]] = None
        self.builds = 0

    def get(self) -> Tuple[ScheduleEntry, ...]:
        if self._schedule is None:
            self._schedule = _build_schedule()
            self.builds += 1
            logger.debug("Built league schedule with %d games", len(self._schedule))
        return self._schedule

    def clear(self) -> None:
        self._schedule = None


_CACHE = ScheduleCache()


def generate_schedule_template() -> Tuple[ScheduleEntry, ...]:
    """Return the league schedule, building it on first use."""
    return _CACHE.get()


def clear_schedule_cache() -> None:
    """Force the next :func:`generate_schedule_template` call to rebuild."""
    _CACHE.clear()


def validate_schedule(schedule: Iterable[ScheduleEntry]) -> Dict[int, int]:
    """Return ``{team_id: games}`` for ``schedule``."""

    counts: Counter[int] = Counter()
    for entry in schedule:
        counts[entry.home_team_id] += 1
        counts[entry.away_team_id] += 1
    return dict(sorted(counts.items()))


def schedule_breakdown(schedule: Iterable[ScheduleEntry]) -> Dict[int, Dict[str, int]]:
    """Return divisional, intra-league and interleague game counts per team."""

    breakdown: Dict[int, Dict[str, int]] = defaultdict(
        lambda: {"divisional": 0, "intra_league": 0, "interleague": 0, "home": 0}
    )
    for entry in schedule:
        if entry.is_divisional:
            kind = "divisional"
        elif entry.is_interleague:
            kind = "interleague"
        else:
            kind = "intra_league"
        for team_id in (entry.home_team_id, entry.away_team_id):
            breakdown[team_id][kind] += 1
        breakdown[entry.home_team_id]["home"] += 1
    return dict(sorted(breakdown.items()))


def check_schedule(
    schedule: Sequence[ScheduleEntry], team_ids: Optional[Iterable[int]] = None
) -> Dict[int, int]:
    """Raise :class:`InvariantViolation` unless every team plays 162 games.

    When ``team_ids`` is supplied, teams with no games count as zero and
    teams outside the list are reported too.
    """

    counts = validate_schedule(schedule)
    expected = set(team_ids) if team_ids is not None else set(counts)
    problems = [
        f"team {team_id}: {counts.get(team_id, 0)} games"
        for team_id in sorted(expected | set(counts))
        if counts.get(team_id, 0) != GAMES_PER_TEAM or team_id not in expected
    ]
    if problems:
        raise InvariantViolation(
            f"Schedule must give every team {GAMES_PER_TEAM} games: " + "; ".join(problems)
        )
    return counts


def save_schedule(schedule: Iterable[ScheduleEntry], path: str | Path) -> None:
    """Save a schedule to a CSV file.

    Parameters
    ----------
    schedule:
        Entries as produced by :func:`generate_schedule_template`.
    path:
        Destination path for the CSV file.  Parent directories are created
        automatically.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = [
        "game_id",
        "date",
        "home_team_id",
        "away_team_id",
        "is_interleague",
        "is_divisional",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for entry in schedule:
            writer.writerow(
                {
                    "game_id": entry.game_id,
                    "date": entry.date,
                    "home_team_id": entry.home_team_id,
                    "away_team_id": entry.away_team_id,
                    "is_interleague": int(entry.is_interleague),
                    "is_divisional": int(entry.is_divisional),
                }
            )
