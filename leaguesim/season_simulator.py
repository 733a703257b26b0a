"""Season orchestration.

:class:`SeasonSimulator` walks a schedule in order, one schedule day (a run
of consecutive games sharing a date) at a time, playing every game with its own
derived seed and folding each box score into
per-player and per-team season totals.  :func:`simulate_season` is the
one-call wrapper used by scripts and tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date as Date
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import copy
import logging

from leaguesim.config import SimConfig
from leaguesim.rng import derive_seed
from leaguesim.run_values import RunValueModel, RunValueObservations
from leaguesim.schedule_generator import GAMES_PER_TEAM, ScheduleEntry, check_schedule
from leaguesim.service_time import accrue_service
from leaguesim.simulation import PlayerPool, simulate
from leaguesim.state import BattingLine, BoxScore, PitchingLine
from leaguesim.stats import population_stdev, pythagorean_win_pct
from leaguesim.teams import validate_league
from models.player import Player
from models.team import Team
from utils.exceptions import InvariantViolation

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

_BATTING_TOTALS = tuple(
    f.name for f in fields(BattingLine) if f.name not in ("player_id", "team_id")
)
_PITCHING_TOTALS = ("outs", "bf", "h", "r", "er", "bb", "so", "hbp", "hr", "pitches")


@dataclass
class PlayerSeasonStat:
    """Running season totals for one player."""

    player_id: int
    team_id: int
    batting: Optional[BattingLine] = None
    pitching: Optional[PitchingLine] = None
    games: int = 0
    games_started: int = 0
    wins: int = 0
    losses: int = 0
    saves: int = 0

    def add_batting(self, line: BattingLine) -> None:
        if self.batting is None:
            self.batting = BattingLine(self.player_id, self.team_id)
        for name in _BATTING_TOTALS:
            setattr(self.batting, name, getattr(self.batting, name) + getattr(line, name))
        self.games += 1

    def add_pitching(self, line: PitchingLine) -> None:
        if self.pitching is None:
            self.pitching = PitchingLine(self.player_id, self.team_id)
        for name in _PITCHING_TOTALS:
            setattr(self.pitching, name, getattr(self.pitching, name) + getattr(line, name))
        self.games += 1
        if line.started:
            self.games_started += 1
        if line.decision == "W":
            self.wins += 1
        elif line.decision == "L":
            self.losses += 1
        elif line.decision == "SV":
            self.saves += 1

    @property
    def innings_pitched(self) -> float:
        return self.pitching.outs / 3 if self.pitching is not None else 0.0


@dataclass
class TeamSeasonRecord:
    """Win/loss record and run totals for one club."""

    team_id: int
    wins: int = 0
    losses: int = 0
    runs_scored: int = 0
    runs_allowed: int = 0
    home_wins: int = 0
    away_wins: int = 0

    @property
    def games(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        return self.wins / self.games if self.games else 0.0

    @property
    def pythagorean_pct(self) -> float:
        return pythagorean_win_pct(self.runs_scored, self.runs_allowed)


@dataclass(frozen=True)
class SeasonResult:
    """Frozen summary of a simulated season.

    The records, player totals and RE24 observations are snapshots; games
    the simulator plays later never change them.
    """

    season: int
    seed: int
    games: int
    league_era: float
    league_ba: float
    league_rpg: float
    team_wins_sd: float
    teams: Mapping[int, TeamSeasonRecord]
    players: Mapping[int, PlayerSeasonStat]
    service_days: Mapping[int, int]
    run_value_observations: RunValueObservations = field(repr=False)
    config_version: str = "1.0"

    def wins(self) -> List[int]:
        """Wins per team in team id order."""
        return [self.teams[team_id].wins for team_id in sorted(self.teams)]


class SeasonSimulator:
    """Simulate a season schedule day by day.

    Parameters
    ----------
    teams, players:
        The league.  Validated before anything is simulated; neither is
        modified.
    schedule:
        Schedule entries; every team must appear in exactly 162 games.
    seed:
        Season seed.  Game ``g`` is played with ``derive_seed(seed, g)``.
    after_game:
        Optional callable invoked with each finished :class:`BoxScore`.
    """

    def __init__(
        self,
        teams: Iterable[Team],
        players: Iterable[Player],
        schedule: Sequence[ScheduleEntry],
        seed: int,
        *,
        season: int = 2026,
        config: SimConfig | None = None,
        run_values: RunValueModel | None = None,
        after_game: Callable[[BoxScore], None] | None = None,
    ) -> None:
        if isinstance(seed, bool) or not isinstance(seed, int) or seed < 0:
            raise ValueError("seed must be a non-negative int")
        self.config = config or SimConfig.default()
        self.teams: Dict[int, Team] = {t.team_id: t for t in teams}
        self.players: List[Player] = list(players)
        self.schedule: List[ScheduleEntry] = list(schedule)
        team_ids = {e.home_team_id for e in self.schedule} | {e.away_team_id for e in self.schedule}
        validate_league(self.teams.values(), self.players, team_ids)
        check_schedule(self.schedule, self.teams)

        self.seed = seed
        self.season = season
        self.run_values = run_values or RunValueModel.anchor()
        self.after_game = after_game
        self.pool = PlayerPool(self.players, self.config)

        self.dates: List[str] = sorted({e.date for e in self.schedule})
        # Games are played in schedule order; a day is a run of equal dates.
        self._days: List[range] = []
        start = 0
        for position in range(1, len(self.schedule) + 1):
            if (
                position == len(self.schedule)
                or self.schedule[position].date != self.schedule[start].date
            ):
                self._days.append(range(start, position))
                start = position
        self._index = 0
        self.games_played = 0

        self.rotation_index: Dict[int, int] = {team_id: 0 for team_id in self.teams}
        self.bullpen_offset: Dict[int, int] = {team_id: 0 for team_id in self.teams}
        self.records: Dict[int, TeamSeasonRecord] = {
            team_id: TeamSeasonRecord(team_id) for team_id in sorted(self.teams)
        }
        self.player_stats: Dict[int, PlayerSeasonStat] = {}
        self.observations = RunValueObservations()

    # ------------------------------------------------------------------
    def remaining_days(self) -> int:
        """Return the number of scheduled days not yet played."""
        return len(self._days) - self._index

    @property
    def total_games(self) -> int:
        return len(self.schedule)

    def simulate_next_day(self) -> List[BoxScore]:
        """Play every game on the next scheduled day and return the box scores."""

        if self._index >= len(self._days):
            return []
        day = self._days[self._index]
        boxes = [self.play_game(self.schedule[position]) for position in day]
        self._index += 1
        return boxes

    def play_game(self, entry: ScheduleEntry) -> BoxScore:
        home = self.teams[entry.home_team_id]
        away = self.teams[entry.away_team_id]
        box = simulate(
            entry.game_id,
            self.season,
            entry.date,
            home,
            away,
            self.pool,
            derive_seed(self.seed, entry.game_id),
            run_values=self.run_values,
            rotation_index=self.rotation_index,
            bullpen_offset=self.bullpen_offset,
        )
        step = self.config.Season.bullpen_step
        for team_id in (home.team_id, away.team_id):
            self.rotation_index[team_id] += 1
            self.bullpen_offset[team_id] += step
        self._record(box)
        self.games_played += 1
        if self.after_game is not None:
            self.after_game(box)
        return box

    def _record(self, box: BoxScore) -> None:
        home = self.records[box.home_team_id]
        away = self.records[box.away_team_id]
        home.runs_scored += box.home_runs
        home.runs_allowed += box.away_runs
        away.runs_scored += box.away_runs
        away.runs_allowed += box.home_runs
        if box.home_runs > box.away_runs:
            home.wins += 1
            home.home_wins += 1
            away.losses += 1
        else:
            away.wins += 1
            away.away_wins += 1
            home.losses += 1

        stats = self.player_stats
        for player_id, line in box.batting.items():
            stat = stats.get(player_id)
            if stat is None:
                stat = stats[player_id] = PlayerSeasonStat(player_id, line.team_id)
            stat.add_batting(line)
        for player_id, line in box.pitching.items():
            stat = stats.get(player_id)
            if stat is None:
                stat = stats[player_id] = PlayerSeasonStat(player_id, line.team_id)
            stat.add_pitching(line)
        self.observations.extend(box.re24_observations)

    # ------------------------------------------------------------------
    def run(self, progress: ProgressCallback | None = None) -> SeasonResult:
        """Play the remaining schedule and return the season result."""

        total = self.total_games
        every = max(1, self.config.Season.progress_every)
        logger.info(
            "Simulating season %d: %d games, seed %d, config %s",
            self.season,
            total,
            self.seed,
            self.config.version,
        )
        while self.remaining_days():
            before = self.games_played
            self.simulate_next_day()
            if progress is not None and before // every != self.games_played // every:
                progress(self.games_played, total)
        if progress is not None:
            progress(self.games_played, total)
        return self.result()

    def calendar_days(self) -> int:
        if not self.dates:
            return 0
        first = Date.fromisoformat(self.dates[0])
        last = Date.fromisoformat(self.dates[-1])
        return (last - first).days + 1

    def result(self) -> SeasonResult:
        """Return the frozen :class:`SeasonResult` once every game is played."""

        if self.games_played != self.total_games:
            raise InvariantViolation(
                f"Season {self.season} has {self.total_games - self.games_played} unplayed games"
            )
        bad = [
            f"team {r.team_id}: {r.wins}-{r.losses}"
            for r in self.records.values()
            if r.wins + r.losses != GAMES_PER_TEAM
        ]
        if bad:
            raise InvariantViolation("Wins and losses must sum to 162: " + "; ".join(bad))

        hits = at_bats = earned = outs = 0
        for stat in self.player_stats.values():
            if stat.batting is not None:
                hits += stat.batting.h
                at_bats += stat.batting.ab
            if stat.pitching is not None:
                earned += stat.pitching.er
                outs += stat.pitching.outs
        runs = sum(r.runs_scored for r in self.records.values())
        service = accrue_service(
            self.players, self.calendar_days(), self.config.Season.service_days_cap
        )
        result = SeasonResult(
            season=self.season,
            seed=self.seed,
            games=self.games_played,
            league_era=earned / outs * 27 if outs else 0.0,
            league_ba=hits / at_bats if at_bats else 0.0,
            league_rpg=runs / (self.games_played * 2) if self.games_played else 0.0,
            team_wins_sd=population_stdev([r.wins for r in self.records.values()]),
            teams=MappingProxyType(copy.deepcopy(self.records)),
            players=MappingProxyType(copy.deepcopy(self.player_stats)),
            service_days=MappingProxyType(service),
            run_value_observations=copy.deepcopy(self.observations),
            config_version=self.config.version,
        )
        logger.info(
            "Season %d complete: ERA %.2f, BA %.3f, R/G %.2f, win SD %.1f",
            result.season,
            result.league_era,
            result.league_ba,
            result.league_rpg,
            result.team_wins_sd,
        )
        return result


def simulate_season(
    teams: Iterable[Team],
    players: Iterable[Player],
    schedule: Sequence[ScheduleEntry],
    seed: int,
    *,
    season: int = 2026,
    config: SimConfig | None = None,
    run_values: RunValueModel | None = None,
    progress: ProgressCallback | None = None,
) -> SeasonResult:
    """Simulate every game of ``schedule`` and return the season result.

    Raises
    ------
    ConfigurationError
        If the league cannot be simulated (raised before any game is played).
    InvariantViolation
        If the schedule does not give every team 162 games, or a box score or
        the final standings do not close.
    """

    simulator = SeasonSimulator(
        teams,
        players,
        schedule,
        seed,
        season=season,
        config=config,
        run_values=run_values,
    )
    return simulator.run(progress)


__all__ = [
    "PlayerSeasonStat",
    "TeamSeasonRecord",
    "SeasonResult",
    "SeasonSimulator",
    "simulate_season",
]
