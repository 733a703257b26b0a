"""Plate appearance level game simulation.

:func:`simulate` plays one game between two clubs and returns a closed
:class:`~leaguesim.state.BoxScore`.  The game is driven entirely by a
:class:`~leaguesim.rng.RandomStream` seeded with the game seed, so the same
seed and inputs always produce the same box score.

Each plate appearance:

* lets the manager lift the pitcher (:class:`~leaguesim.bullpen.ManagerHook`),
* gives the lead runner a chance to steal,
* folds fatigue, times through the order and platoon into one squashed
  modifier,
* resolves the outcome with :class:`~leaguesim.plate_appearance.PlateAppearanceModel`,
* moves the runners with :class:`~leaguesim.baserunning.Baserunning`,
* books the batting, pitching and RE24 lines.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

from leaguesim.baserunning import Bases, Baserunning, StealAttempt
from leaguesim.bullpen import Bullpen, ManagerHook
from leaguesim.config import SimConfig
from leaguesim.modifiers import (
    combined_modifier,
    fatigue_modifier,
    platoon_modifier,
    times_through_order_bonus,
)
from leaguesim.plate_appearance import (
    DOUBLE,
    DOUBLE_PLAY,
    FIELDERS_CHOICE,
    HIT_BY_PITCH,
    HITS,
    HOME_RUN,
    LeagueEnvironment,
    PlateAppearanceModel,
    REACHED_ON_ERROR,
    SAC_FLY,
    SINGLE,
    STRIKEOUT,
    TRIPLE,
    WALK,
    HitterProfile,
    PitcherProfile,
)
from leaguesim.ratings import lineup_score
from leaguesim.rng import create
from leaguesim.run_values import RunValueModel
from leaguesim.state import BattingLine, BoxScore, PitchingLine, Runner, base_mask
from leaguesim.teams import ParkFactor, park_for
from models.player import Player
from models.team import Team
from utils.exceptions import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)

LINEUP_SIZE = 9

# Outcome code -> key of the ``Pitches`` config section.
PITCH_KEYS = {
    STRIKEOUT: "strikeout",
    WALK: "walk",
    HIT_BY_PITCH: "hit_by_pitch",
    HOME_RUN: "home_run",
    SINGLE: "single",
    DOUBLE: "double",
    TRIPLE: "triple",
    REACHED_ON_ERROR: "error",
    DOUBLE_PLAY: "double_play",
    SAC_FLY: "sac_fly",
}


class PlayerPool:
    """Simulation-ready view of a league's players.

    Building a pool fits the :class:`LeagueEnvironment` to the active players
    and prepares every profile, lineup, rotation and defense rating once, so a
    season pays that cost a single time instead of once per game.  Results
    are only comparable between games that share a pool.
    """

    def __init__(self, players: Iterable[Player], config: SimConfig | None = None) -> None:
        self.config = config or SimConfig.default()
        self.players: Dict[int, Player] = {p.player_id: p for p in players}
        self.lineups: Dict[int, List[int]] = {}
        self.rotations: Dict[int, List[int]] = {}
        self.relievers: Dict[int, List[Player]] = {}
        self.defense: Dict[int, float] = {}

        by_team: Dict[int, List[Player]] = {}
        for player in self.players.values():
            if player.active:
                by_team.setdefault(player.team_id, []).append(player)
        for team_id, members in sorted(by_team.items()):
            hitters = [p for p in members if not p.is_pitcher and p.hitting is not None]
            lineup = sorted(hitters, key=lambda p: (-lineup_score(p), p.player_id))[:LINEUP_SIZE]
            starters = sorted(
                (p for p in members if p.position == "SP" and p.pitching is not None),
                key=lambda p: (-p.overall, p.player_id),
            )
            self.lineups[team_id] = [p.player_id for p in lineup]
            self.rotations[team_id] = [p.player_id for p in starters]
            self.relievers[team_id] = [
                p for p in members if p.position in ("RP", "CL") and p.pitching is not None
            ]
            self.defense[team_id] = (
                sum(p.hitting.fielding for p in lineup) / len(lineup) if lineup else 400.0
            )

        self.environment = self._fit_environment()
        cfg = self.config
        env = self.environment
        self.hitters: Dict[int, HitterProfile] = {
            pid: env.hitter_profile(p, cfg)
            for pid, p in self.players.items()
            if not p.is_pitcher and p.hitting is not None
        }
        self.pitchers: Dict[int, PitcherProfile] = {
            pid: env.pitcher_profile(p, cfg)
            for pid, p in self.players.items()
            if p.is_pitcher and p.pitching is not None
        }
        self.model = PlateAppearanceModel(cfg)

    def _fit_environment(self) -> LeagueEnvironment:
        share = self.config.Hook.starter_bf_share
        hitters = [self.players[pid].hitting for lineup in self.lineups.values() for pid in lineup]
        pitchers = []
        for team_id, rotation in self.rotations.items():
            for pid in rotation:
                pitchers.append((self.players[pid].pitching, share / len(rotation)))
            pen = self.relievers[team_id]
            for player in pen:
                pitchers.append((player.pitching, (1.0 - share) / len(pen)))
        if not hitters or not pitchers:
            return LeagueEnvironment.neutral()
        return LeagueEnvironment.build(hitters, pitchers, self.config)

    @property
    def team_ids(self) -> List[int]:
        return sorted(self.lineups)

    def lineup(self, team_id: int) -> List[int]:
        lineup = self.lineups.get(team_id, [])
        if len(lineup) < LINEUP_SIZE:
            raise ConfigurationError(f"Team {team_id} cannot field a lineup of {LINEUP_SIZE}")
        return lineup

    def rotation(self, team_id: int) -> List[int]:
        rotation = self.rotations.get(team_id, [])
        if not rotation:
            raise ConfigurationError(f"Team {team_id} has no active starting pitcher")
        return rotation


def as_pool(
    players: Union[PlayerPool, Iterable[Player]], config: SimConfig | None = None
) -> PlayerPool:
    """Return ``players`` as a :class:`PlayerPool` using ``config``."""

    if isinstance(players, PlayerPool):
        if config is None or config is players.config:
            return players
        return PlayerPool(players.players.values(), config)
    return PlayerPool(players, config)


def _for_team(value: Union[int, Mapping[int, int]], team_id: int) -> int:
    if isinstance(value, int):
        return value
    return value.get(team_id, 0)


@dataclass
class TeamGameState:
    """Mutable state for one club during a game."""

    team_id: int
    lineup: List[int]
    bullpen: Bullpen
    defense: float
    pitcher: PitchingLine
    batting_index: int = 0
    runs: int = 0
    outs_made: int = 0
    inning_runs: List[Optional[int]] = field(default_factory=list)


class GameSimulation:
    """Play a single game between ``home_team`` and ``away_team``."""

    def __init__(
        self,
        game_id: int,
        season: int,
        date: str,
        home_team: Team,
        away_team: Team,
        pool: PlayerPool,
        seed: int,
        *,
        run_values: RunValueModel | None = None,
        rotation_index: Union[int, Mapping[int, int]] = 0,
        bullpen_offset: Union[int, Mapping[int, int]] = 0,
        park: ParkFactor | None = None,
    ) -> None:
        self.game_id = game_id
        self.season = season
        self.date = date
        self.pool = pool
        self.cfg = pool.config
        self.seed = seed
        self.rng = create(seed)
        self.run_values = run_values or RunValueModel.anchor()
        self.hook = ManagerHook(self.cfg)
        self.running = Baserunning(self.cfg, self.run_values)
        self.model = pool.model
        self.park = park or park_for(home_team)
        pitches = self.cfg.Pitches
        self.pitch_counts = {code: getattr(pitches, key) for code, key in PITCH_KEYS.items()}
        self.default_pitches = pitches.out

        self.batting: Dict[int, BattingLine] = {}
        self.pitching: Dict[int, PitchingLine] = {}
        self.observations: List[Tuple[int, int]] = []
        self.innings = 0
        # (team id, pitcher of record, pitcher charged) for the latest lead change.
        self._go_ahead: Optional[Tuple[int, PitchingLine, PitchingLine]] = None

        self.away = self._team_state(away_team.team_id, rotation_index, bullpen_offset)
        self.home = self._team_state(home_team.team_id, rotation_index, bullpen_offset)

    def _team_state(
        self,
        team_id: int,
        rotation_index: Union[int, Mapping[int, int]],
        bullpen_offset: Union[int, Mapping[int, int]],
    ) -> TeamGameState:
        pool = self.pool
        lineup = pool.lineup(team_id)
        rotation = pool.rotation(team_id)
        starter_id = rotation[_for_team(rotation_index, team_id) % len(rotation)]
        starter = PitchingLine(starter_id, team_id, started=True)
        self.pitching[starter_id] = starter
        for pid in lineup:
            self.batting[pid] = BattingLine(pid, team_id)
        bullpen = Bullpen.build(pool.relievers[team_id], _for_team(bullpen_offset, team_id))
        return TeamGameState(team_id, list(lineup), bullpen, pool.defense[team_id], starter)

    # ------------------------------------------------------------------
    # Game flow
    # ------------------------------------------------------------------
    def simulate_game(self) -> BoxScore:
        """Play until the game is decided and return the checked box score."""

        ext = self.cfg.ExtraInnings
        inning = 1
        while True:
            self._play_half(inning, self.away, self.home)
            if inning >= ext.regulation_innings and self.home.runs > self.away.runs:
                self.home.inning_runs.append(None)
                break
            self._play_half(inning, self.home, self.away)
            if inning >= ext.regulation_innings and self.home.runs != self.away.runs:
                break
            if inning >= ext.max_innings:
                raise InvariantViolation(
                    f"Game {self.game_id} still tied after {inning} innings"
                )
            inning += 1
        self.innings = inning
        self._assign_decisions()
        return generate_boxscore(self)

    def start_half(self, inning: int, offense: TeamGameState, defense: TeamGameState) -> Bases:
        """Return the bases at the start of a half inning.

        From ``ExtraInnings.ghost_runner_inning`` on, the batter who made the
        last plate appearance starts on second as an unearned runner.
        """

        bases: Bases = [None, None, None]
        if inning >= self.cfg.ExtraInnings.ghost_runner_inning:
            runner_id = offense.lineup[offense.batting_index - 1]
            bases[1] = Runner(
                self.batting[runner_id],
                defense.pitcher,
                self.pool.hitters[runner_id].speed,
                earned=False,
            )
        return bases

    def _play_half(self, inning: int, offense: TeamGameState, defense: TeamGameState) -> None:
        cfg = self.cfg
        if self.hook.pull_at_inning_break(defense.pitcher, inning):
            self._change_pitcher(defense, offense, inning)
        bases = self.start_half(inning, offense, defense)

        rand = self.rng.random
        values = self.run_values
        walk_off_possible = offense is self.home and inning >= cfg.ExtraInnings.regulation_innings
        outs = 0
        errors = 0
        half_runs = 0
        states: List[Tuple[int, int]] = []

        while outs < 3:
            if self.hook.pull_before_pa(defense.pitcher):
                self._change_pitcher(defense, offense, inning)
            pitcher = defense.pitcher
            p_profile = self.pool.pitchers[pitcher.player_id]
            steal = self.running.steal(bases, p_profile.hold, rand)
            if steal is not None:
                self._record_steal(steal, pitcher)
                if not steal.success:
                    outs += 1
                    if outs == 3:
                        break
            batter_id = offense.lineup[offense.batting_index]
            offense.batting_index = (offense.batting_index + 1) % len(offense.lineup)
            h_profile = self.pool.hitters[batter_id]
            line = self.batting[batter_id]

            state = outs * 8 + base_mask(bases)
            states.append((state, half_runs))
            re_before = values.values[state]

            faced = pitcher.faced.get(batter_id, 0) + 1
            pitcher.faced[batter_id] = faced
            modifier = combined_modifier(
                fatigue_modifier(pitcher.pitches, p_profile.fastball_pct, p_profile.stamina, cfg),
                times_through_order_bonus(min(faced, 3), p_profile.arsenal, cfg),
                platoon_modifier(
                    h_profile.bats, p_profile.throws, h_profile.sensitivity, p_profile.tendency, cfg
                ),
                cfg,
            )
            outcome = self.model.resolve(
                rand,
                h_profile,
                p_profile,
                modifier,
                self.park.hr_factor,
                self.park.hit_factor,
                defense.defense,
                bases[0] is not None,
                bases[2] is not None,
                outs,
            )
            batter = Runner(line, pitcher, h_profile.speed, outcome != REACHED_ON_ERROR)
            result = self.running.advance(outcome, bases, batter, outs, rand)

            if outcome == REACHED_ON_ERROR:
                errors += 1
            # Runs are unearned once the inning should have ended without errors.
            earned_ok = outs + errors < 3
            scored = result.scored
            if walk_off_possible and outcome != HOME_RUN:
                needed = defense.runs - offense.runs + 1
                scored = scored[:needed]
            made = min(result.outs, 3 - outs)
            outs += made

            self._record_plate_appearance(outcome, line, pitcher, made, p_profile.economy)
            for runner in scored:
                self._score(runner, offense, defense, earned_ok)
            half_runs += len(scored)
            if result.rbi:
                line.rbi += len(scored)
            line.re24 += values.expected_runs(outs, base_mask(bases)) - re_before + len(scored)

            if walk_off_possible and offense.runs > defense.runs:
                logger.debug("Game %d: walk-off in inning %d", self.game_id, inning)
                break

        offense.inning_runs.append(half_runs)
        offense.outs_made += outs
        if outs == 3:
            self.observations.extend((state, half_runs - before) for state, before in states)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------
    def _record_plate_appearance(
        self,
        outcome: str,
        line: BattingLine,
        pitcher: PitchingLine,
        outs: int,
        economy: float = 1.0,
    ) -> None:
        line.pa += 1
        pitcher.bf += 1
        pitcher.outs += outs
        pitcher.pitch_load += self.pitch_counts.get(outcome, self.default_pitches) * economy
        pitcher.pitches = round(pitcher.pitch_load)
        if outcome == WALK:
            line.bb += 1
            pitcher.bb += 1
            return
        if outcome == HIT_BY_PITCH:
            line.hbp += 1
            pitcher.hbp += 1
            return
        if outcome == SAC_FLY:
            line.sf += 1
            return
        line.ab += 1
        if outcome in HITS:
            line.h += 1
            pitcher.h += 1
            if outcome == DOUBLE:
                line.doubles += 1
            elif outcome == TRIPLE:
                line.triples += 1
            elif outcome == HOME_RUN:
                line.hr += 1
                pitcher.hr += 1
        elif outcome == STRIKEOUT:
            line.so += 1
            pitcher.so += 1
        elif outcome == DOUBLE_PLAY:
            line.gidp += 1
        elif outcome == REACHED_ON_ERROR:
            line.roe += 1
        elif outcome == FIELDERS_CHOICE:
            line.fc += 1

    @staticmethod
    def _record_steal(steal: StealAttempt, pitcher: PitchingLine) -> None:
        if steal.success:
            steal.runner.batter.sb += 1
        else:
            steal.runner.batter.cs += 1
            pitcher.outs += 1

    def _score(
        self, runner: Runner, offense: TeamGameState, defense: TeamGameState, earned_ok: bool
    ) -> None:
        runner.batter.r += 1
        runner.pitcher.r += 1
        if runner.earned and earned_ok:
            runner.pitcher.er += 1
        offense.runs += 1
        if offense.runs == defense.runs + 1:
            self._go_ahead = (offense.team_id, offense.pitcher, runner.pitcher)

    def _change_pitcher(self, defense: TeamGameState, offense: TeamGameState, inning: int) -> None:
        lead = defense.runs - offense.runs
        reliever_id = defense.bullpen.select(inning, lead, self.cfg)
        if reliever_id is None:
            return
        line = PitchingLine(reliever_id, defense.team_id, entered_inning=inning, entered_lead=lead)
        self.pitching[reliever_id] = line
        logger.debug(
            "Game %d: team %d replaces %d (%d pitches) with %d in inning %d",
            self.game_id,
            defense.team_id,
            defense.pitcher.player_id,
            defense.pitcher.pitches,
            reliever_id,
            inning,
        )
        defense.pitcher = line

    def _assign_decisions(self) -> None:
        """Credit the win, loss and save."""

        hook = self.cfg.Hook
        winner = self.home if self.home.runs > self.away.runs else self.away
        if self._go_ahead is None or self._go_ahead[0] != winner.team_id:
            raise InvariantViolation(f"Game {self.game_id} has no go-ahead run for the winner")
        _, record, charged = self._go_ahead
        if record.started and record.outs < hook.win_min_outs:
            relievers = [
                line
                for line in self.pitching.values()
                if line.team_id == winner.team_id and not line.started
            ]
            if relievers:
                record = max(relievers, key=lambda line: (line.outs - 3 * line.r, line.outs))
        record.decision = "W"
        charged.decision = "L"
        finisher = winner.pitcher
        if (
            finisher is not record
            and not finisher.started
            and 1 <= finisher.entered_lead <= hook.save_margin
        ):
            finisher.decision = "SV"


def generate_boxscore(sim: GameSimulation) -> BoxScore:
    """Return the checked :class:`BoxScore` for a finished ``sim``."""

    box = BoxScore(
        game_id=sim.game_id,
        season=sim.season,
        date=sim.date,
        home_team_id=sim.home.team_id,
        away_team_id=sim.away.team_id,
        home_runs=sim.home.runs,
        away_runs=sim.away.runs,
        innings=sim.innings,
        line_score={"away": list(sim.away.inning_runs), "home": list(sim.home.inning_runs)},
        outs={"away": sim.away.outs_made, "home": sim.home.outs_made},
        batting=sim.batting,
        pitching=sim.pitching,
        re24_observations=sim.observations,
        seed=sim.seed,
    )
    return box.check()


def simulate(
    game_id: int,
    season: int,
    date: str,
    home_team: Team,
    away_team: Team,
    players: Union[PlayerPool, Iterable[Player]],
    seed: int,
    *,
    config: SimConfig | None = None,
    run_values: RunValueModel | None = None,
    rotation_index: Union[int, Mapping[int, int]] = 0,
    bullpen_offset: Union[int, Mapping[int, int]] = 0,
) -> BoxScore:
    """Simulate one game and return its box score.

    Parameters
    ----------
    players:
        A prepared :class:`PlayerPool` or any collection of players.  A plain
        collection is turned into a pool fitted to those players only.
    seed:
        Non-negative integer seeding the game's random stream.
    rotation_index, bullpen_offset:
        Either one value for both clubs or a ``{team_id: value}`` mapping.
        The starter is ``rotation[rotation_index % len(rotation)]``.

    Raises
    ------
    ConfigurationError
        If a club cannot field a lineup or a starting pitcher.
    InvariantViolation
        If the finished box score does not close or the game reaches the
        inning cap still tied.
    """

    pool = as_pool(players, config)
    sim = GameSimulation(
        game_id,
        season,
        date,
        home_team,
        away_team,
        pool,
        seed,
        run_values=run_values,
        rotation_index=rotation_index,
        bullpen_offset=bullpen_offset,
    )
    return sim.simulate_game()


__all__ = [
    "PlayerPool",
    "TeamGameState",
    "GameSimulation",
    "as_pool",
    "generate_boxscore",
    "simulate",
]
