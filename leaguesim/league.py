"""Multi-season league driver.

:class:`LeagueSimulator` plays consecutive seasons with the same clubs.
Between seasons it credits service time and ages every player, and every
``RunValue.recalibration_interval`` seasons it blends the RE24 observations
gathered since the last recalibration into the run expectancy table used by
later seasons.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
import logging

from leaguesim.aging import DevelopmentEvent, advance_season
from leaguesim.config import SimConfig
from leaguesim.rng import create, derive_seed
from leaguesim.run_values import RunValueModel, RunValueObservations
from leaguesim.schedule_generator import ScheduleEntry, generate_schedule_template
from leaguesim.season_simulator import ProgressCallback, SeasonResult, simulate_season
from leaguesim.service_time import apply_service_time
from models.player import Player
from models.team import Team

logger = logging.getLogger(__name__)

# Offsets the aging stream away from the game seeds of the same season.
AGING_STREAM = 0x5EA5


class LeagueSimulator:
    """Hold a league across seasons.

    Season ``k`` (0-based) is played with ``derive_seed(seed, k)``, so the
    first season matches a direct :func:`simulate_season` call with ``seed``.
    """

    def __init__(
        self,
        teams: Iterable[Team],
        players: Iterable[Player],
        seed: int,
        *,
        first_season: int = 2026,
        config: SimConfig | None = None,
        run_values: RunValueModel | None = None,
        schedule: Optional[Sequence[ScheduleEntry]] = None,
    ) -> None:
        self.teams: List[Team] = list(teams)
        self.players: List[Player] = list(players)
        self.seed = seed
        self.season = first_season
        self.config = config or SimConfig.default()
        self.run_values = run_values or RunValueModel.anchor()
        self.schedule = tuple(schedule) if schedule is not None else generate_schedule_template()
        self.pending = RunValueObservations()
        self.seasons_played = 0
        self.results: List[SeasonResult] = []
        self.events: List[DevelopmentEvent] = []

    def simulate_season(self, progress: ProgressCallback | None = None) -> SeasonResult:
        """Play the next season and prepare the league for the one after."""

        index = self.seasons_played
        result = simulate_season(
            self.teams,
            self.players,
            self.schedule,
            derive_seed(self.seed, index),
            season=self.season,
            config=self.config,
            run_values=self.run_values,
            progress=progress,
        )
        self.results.append(result)
        self.seasons_played += 1
        self.season += 1
        self.pending.merge(result.run_value_observations)
        if self.seasons_played % self.config.RunValue.recalibration_interval == 0:
            self.recalibrate()

        players = apply_service_time(self.players, result.service_days)
        rng = create(derive_seed(self.seed ^ AGING_STREAM, index))
        self.players, events = advance_season(players, rng)
        self.events.extend(events)
        return result

    def recalibrate(self) -> RunValueModel:
        """Blend the pending observations into the RE24 table."""

        self.run_values = self.run_values.recalibrate(self.pending, self.config)
        self.pending = RunValueObservations()
        return self.run_values

    def run(self, seasons: int, progress: ProgressCallback | None = None) -> List[SeasonResult]:
        if seasons < 0:
            raise ValueError("seasons must be non-negative")
        results = [self.simulate_season(progress) for _ in range(seasons)]
        logger.info(
            "Simulated %d seasons; RE24 generation %d", seasons, self.run_values.generation
        )
        return results


__all__ = ["LeagueSimulator"]
