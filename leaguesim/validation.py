"""Calibration gates, determinism and latency checks.

A gate compares one league-level metric with the accepted range from
``data/calibration_gates.csv``.  Gate failures are reported as data
(:attr:`GateResult.passed` is ``False``); nothing here raises for a
failing gate.
"""
from __future__ import annotations

from dataclasses import dataclass
from statistics import median
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import logging
import time

from leaguesim.benchmarks import load_gate_ranges
from leaguesim.config import SimConfig
from leaguesim.player_generator import generate_league
from leaguesim.rng import create, derive_seed
from leaguesim.schedule_generator import ScheduleEntry, generate_schedule_template
from leaguesim.season_simulator import ProgressCallback, SeasonResult, simulate_season
from leaguesim.simulation import PlayerPool, simulate
from leaguesim.stats import pearson_correlation
from leaguesim.teams import load_teams
from models.player import Player
from models.team import Team

logger = logging.getLogger(__name__)

CALIBRATION_SEEDS = (42, 137, 9001)
# Seed of the one league every calibration season is played with.
CALIBRATION_LEAGUE_SEED = 42


@dataclass(frozen=True)
class GateResult:
    name: str
    value: float
    low: float
    high: float

    @property
    def passed(self) -> bool:
        return self.low <= self.value <= self.high

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"{status} {self.name}: {self.value:.4g} (range {self.low:g}-{self.high:g})"


def season_metrics(result: SeasonResult) -> Dict[str, float]:
    """Return the gate metrics for one season."""

    wins = [record.wins for record in result.teams.values()]
    win_pct = [record.win_pct for record in result.teams.values()]
    pythag = [record.pythagorean_pct for record in result.teams.values()]
    batting = [s.batting for s in result.players.values() if s.batting is not None]
    pitching = [s.pitching for s in result.players.values() if s.pitching is not None]
    return {
        "league_era": result.league_era,
        "league_ba": result.league_ba,
        "league_rpg": result.league_rpg,
        "team_wins_sd": result.team_wins_sd,
        "teams_100_wins": float(sum(1 for w in wins if w >= 100)),
        "teams_under_60_wins": float(sum(1 for w in wins if w < 60)),
        "hitters_40_hr": float(sum(1 for line in batting if line.hr >= 40)),
        "pitchers_200_k": float(sum(1 for line in pitching if line.so >= 200)),
        "pitchers_200_ip": float(sum(1 for line in pitching if line.outs >= 600)),
        "pythagorean_correlation": pearson_correlation(win_pct, pythag),
    }


def evaluate_gates(
    results: Sequence[SeasonResult],
    gates: Optional[Mapping[str, tuple]] = None,
    timings: Optional[Mapping[str, float]] = None,
) -> List[GateResult]:
    """Evaluate every gate over ``results``.

    Season metrics are averaged across the supplied seasons.  Timing gates
    (``single_game_ms``, ``season_ms``) are only evaluated when ``timings``
    provides them.
    """

    if not results:
        raise ValueError("evaluate_gates needs at least one season")
    gates = load_gate_ranges() if gates is None else gates
    per_season = [season_metrics(result) for result in results]
    values: Dict[str, float] = {
        key: sum(m[key] for m in per_season) / len(per_season) for key in per_season[0]
    }
    if timings:
        values.update(timings)

    report: List[GateResult] = []
    for name, (low, high) in gates.items():
        if name not in values:
            continue
        gate = GateResult(name, values[name], low, high)
        logger.debug("%s", gate)
        report.append(gate)
    return report


def check_determinism(
    teams: Iterable[Team],
    players: Iterable[Player],
    seed: int,
    *,
    schedule: Sequence[ScheduleEntry] | None = None,
    config: SimConfig | None = None,
) -> GateResult:
    """Simulate the same season twice and compare every team's record."""

    teams = list(teams)
    players = list(players)
    schedule = generate_schedule_template() if schedule is None else schedule
    first = simulate_season(teams, players, schedule, seed, config=config)
    second = simulate_season(teams, players, schedule, seed, config=config)
    same = (
        first.wins() == second.wins()
        and [r.runs_scored for r in first.teams.values()]
        == [r.runs_scored for r in second.teams.values()]
        and first.league_era == second.league_era
    )
    return GateResult("determinism", 1.0 if same else 0.0, 1.0, 1.0)


def _elapsed_ms(func: Callable[[], object]) -> float:
    start = time.perf_counter()
    func()
    return (time.perf_counter() - start) * 1000.0


def time_single_game(
    teams: Sequence[Team],
    pool: PlayerPool,
    seed: int = 0,
    *,
    repeats: int = 25,
) -> float:
    """Return the median wall time of one game in milliseconds."""

    if len(teams) < 2:
        raise ValueError("timing a game needs two teams")
    home, away = teams[0], teams[1]
    samples = [
        _elapsed_ms(
            lambda i=i: simulate(
                i + 1, 2026, "2026-04-01", home, away, pool, derive_seed(seed, i + 1)
            )
        )
        for i in range(repeats)
    ]
    return median(samples)


def time_season(
    teams: Sequence[Team],
    players: Sequence[Player],
    seed: int,
    *,
    schedule: Sequence[ScheduleEntry] | None = None,
    config: SimConfig | None = None,
) -> float:
    """Return the wall time of a full season in milliseconds."""

    schedule = generate_schedule_template() if schedule is None else schedule
    return _elapsed_ms(lambda: simulate_season(teams, players, schedule, seed, config=config))


def run_calibration(
    seeds: Sequence[int] = CALIBRATION_SEEDS,
    *,
    league_seed: int = CALIBRATION_LEAGUE_SEED,
    season: int = 2026,
    config: SimConfig | None = None,
    progress: ProgressCallback | None = None,
) -> List[SeasonResult]:
    """Generate one league and simulate a season over it for every seed.

    The players come from ``league_seed`` so the seasons differ only in how
    the games are played.
    """

    teams = load_teams()
    schedule = generate_schedule_template()
    players = generate_league(create(league_seed), teams, season, config)
    logger.info("Calibrating league %d over seeds %s", league_seed, list(seeds))
    results = []
    for seed in seeds:
        results.append(
            simulate_season(
                teams, players, schedule, seed, season=season, config=config, progress=progress
            )
        )
    return results


__all__ = [
    "CALIBRATION_SEEDS",
    "CALIBRATION_LEAGUE_SEED",
    "GateResult",
    "season_metrics",
    "evaluate_gates",
    "check_determinism",
    "time_single_game",
    "time_season",
    "run_calibration",
]
