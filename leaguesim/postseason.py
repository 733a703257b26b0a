"""Twelve-team postseason played after the regular season.

Each league sends six clubs.  The three division winners take seeds 1-3 by
record and the three best remaining clubs take seeds 4-6.  The bracket per
league is:

* Wild card round, best of three: #3 v #6 and #4 v #5.
* Division series, best of five: #1 v the #4/#5 winner, #2 v the #3/#6 winner.
* Championship series, best of seven.

The two league champions meet in a best-of-seven World Series where the club
with the better regular season record holds home field.  Games are played
with :func:`leaguesim.simulation.simulate`; ``simulate_series`` also accepts
any callable so a bracket can be exercised without the game engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union
import logging

from leaguesim.config import SimConfig
from leaguesim.rng import derive_seed
from leaguesim.run_values import RunValueModel
from leaguesim.season_simulator import SeasonResult, TeamSeasonRecord
from leaguesim.simulation import PlayerPool, as_pool, simulate
from leaguesim.state import BoxScore
from models.player import Player
from models.team import Team
from utils.exceptions import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)

TEAMS_PER_LEAGUE = 6

WILD_CARD = "WC"
DIVISION_SERIES = "DS"
CHAMPIONSHIP_SERIES = "CS"
WORLD_SERIES = "WS"
CHAMPION = "Champion"
STAGES = (WILD_CARD, DIVISION_SERIES, CHAMPIONSHIP_SERIES, WORLD_SERIES, CHAMPION)

# Home blocks for the higher seed, alternating: 1-1-1, 2-2-1 and 2-3-2.
SERIES_PATTERNS: Dict[int, Tuple[int, ...]] = {
    3: (1, 1, 1),
    5: (2, 2, 1),
    7: (2, 3, 2),
}

# (home_runs, away_runs) or a finished box score.
GameOutcome = Union[BoxScore, Tuple[int, int]]
GameFn = Callable[[int, int, int], GameOutcome]


@dataclass(frozen=True)
class PlayoffTeam:
    team_id: int
    seed: int
    league: str
    wins: int
    losses: int
    run_diff: int


@dataclass(frozen=True)
class SeriesConfig:
    length: int
    pattern: Tuple[int, ...]

    @classmethod
    def best_of(cls, length: int) -> "SeriesConfig":
        try:
            return cls(length, SERIES_PATTERNS[length])
        except KeyError:
            raise ConfigurationError(
                f"Series length must be one of {sorted(SERIES_PATTERNS)}, got {length}"
            ) from None


class SeriesGame(NamedTuple):
    home_team_id: int
    away_team_id: int
    home_runs: int
    away_runs: int
    box: Optional[BoxScore] = None

    @property
    def winner_id(self) -> int:
        return self.home_team_id if self.home_runs > self.away_runs else self.away_team_id


@dataclass
class Matchup:
    high: PlayoffTeam
    low: PlayoffTeam
    config: SeriesConfig
    games: List[SeriesGame] = field(default_factory=list)
    high_wins: int = 0
    low_wins: int = 0
    winner: Optional[PlayoffTeam] = None

    @property
    def loser(self) -> Optional[PlayoffTeam]:
        if self.winner is None:
            return None
        return self.low if self.winner is self.high else self.high

    def home_teams(self) -> List[int]:
        """Return the home club of every potential game in order."""

        homes: List[int] = []
        flip = False
        for block in self.config.pattern:
            homes.extend([self.low.team_id if flip else self.high.team_id] * block)
            flip = not flip
        return homes


@dataclass
class Round:
    stage: str
    league: Optional[str]
    matchups: List[Matchup] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.league} {self.stage}" if self.league else self.stage


@dataclass
class PlayoffBracket:
    season: int
    seeds_by_league: Dict[str, List[PlayoffTeam]]
    rounds: List[Round] = field(default_factory=list)
    champion: Optional[PlayoffTeam] = None
    runner_up: Optional[PlayoffTeam] = None

    def games(self) -> List[SeriesGame]:
        return [g for rnd in self.rounds for m in rnd.matchups for g in m.games]

    def finish(self) -> Dict[int, str]:
        """Return ``{team_id: stage}`` with the furthest stage each club reached."""

        reached: Dict[int, str] = {}
        for rnd in self.rounds:
            for matchup in rnd.matchups:
                for team in (matchup.high, matchup.low):
                    reached[team.team_id] = rnd.stage
        if self.champion is not None:
            reached[self.champion.team_id] = CHAMPION
        return reached


def _rank_key(team: PlayoffTeam) -> Tuple[int, int, int, int]:
    return (-team.wins, team.losses, -team.run_diff, team.team_id)


def _candidate(team: Team, record: TeamSeasonRecord) -> PlayoffTeam:
    return PlayoffTeam(
        team_id=team.team_id,
        seed=0,
        league=team.league,
        wins=record.wins,
        losses=record.losses,
        run_diff=record.runs_scored - record.runs_allowed,
    )


def seed_league(
    league: str,
    teams: Iterable[Team],
    records: Mapping[int, TeamSeasonRecord],
    slots: int = TEAMS_PER_LEAGUE,
) -> List[PlayoffTeam]:
    """Return the seeded playoff clubs of ``league``, seed 1 first.

    Division winners are seeded ahead of every wild card.  Ties in wins are
    broken by fewer losses, then run differential, then team id.
    """

    by_division: Dict[str, List[PlayoffTeam]] = {}
    for team in teams:
        if team.league != league:
            continue
        if team.team_id not in records:
            raise ConfigurationError(f"No season record for team {team.team_id}")
        by_division.setdefault(team.division, []).append(_candidate(team, records[team.team_id]))

    winners = sorted(
        (min(members, key=_rank_key) for members in by_division.values()), key=_rank_key
    )
    winner_ids = {t.team_id for t in winners}
    wild_cards = sorted(
        (t for members in by_division.values() for t in members if t.team_id not in winner_ids),
        key=_rank_key,
    )
    pool = (winners + wild_cards)[:slots]
    if len(pool) < slots:
        raise ConfigurationError(f"{league} has {len(pool)} clubs; {slots} are needed")
    return [
        PlayoffTeam(t.team_id, seed, t.league, t.wins, t.losses, t.run_diff)
        for seed, t in enumerate(pool, start=1)
    ]


def _wins_needed(length: int) -> int:
    return length // 2 + 1


def _as_game(home_id: int, away_id: int, outcome: GameOutcome) -> SeriesGame:
    if isinstance(outcome, BoxScore):
        game = SeriesGame(home_id, away_id, outcome.home_runs, outcome.away_runs, outcome)
    else:
        home_runs, away_runs = outcome
        game = SeriesGame(home_id, away_id, int(home_runs), int(away_runs))
    if game.home_runs == game.away_runs:
        raise InvariantViolation(f"Postseason game {away_id} at {home_id} ended tied")
    return game


def simulate_series(matchup: Matchup, *, simulate_game: GameFn) -> Matchup:
    """Play ``matchup`` to completion and return it.

    ``simulate_game(home_id, away_id, game_number)`` plays one game; the
    game number counts from zero within the series.  A finished matchup is
    returned unchanged.
    """

    if matchup.winner is not None:
        return matchup
    needed = _wins_needed(matchup.config.length)
    high_id = matchup.high.team_id
    for game_number, home in enumerate(matchup.home_teams()):
        if matchup.high_wins >= needed or matchup.low_wins >= needed:
            break
        away = matchup.low.team_id if home == high_id else high_id
        game = _as_game(home, away, simulate_game(home, away, game_number))
        matchup.games.append(game)
        if game.winner_id == high_id:
            matchup.high_wins += 1
        else:
            matchup.low_wins += 1
    matchup.winner = matchup.high if matchup.high_wins > matchup.low_wins else matchup.low
    return matchup


def _series_configs(config: SimConfig) -> Dict[str, SeriesConfig]:
    post = config.Postseason
    return {
        WILD_CARD: SeriesConfig.best_of(post.wildcard_length),
        DIVISION_SERIES: SeriesConfig.best_of(post.division_length),
        CHAMPIONSHIP_SERIES: SeriesConfig.best_of(post.league_length),
        WORLD_SERIES: SeriesConfig.best_of(post.world_length),
    }


def _ordered(a: PlayoffTeam, b: PlayoffTeam) -> Tuple[PlayoffTeam, PlayoffTeam]:
    return (a, b) if a.seed < b.seed else (b, a)


def play_bracket(
    bracket: PlayoffBracket,
    simulate_game: Callable[[str, int, int, int], GameOutcome],
    *,
    config: SimConfig | None = None,
) -> PlayoffBracket:
    """Play every round of ``bracket`` and return it with its champion set.

    ``simulate_game`` receives the round name in front of the arguments
    :func:`simulate_series` passes on.
    """

    config = config or SimConfig.default()
    series = _series_configs(config)
    leagues = sorted(bracket.seeds_by_league)

    def play(rnd: Round) -> Round:
        for matchup in rnd.matchups:
            simulate_series(
                matchup,
                simulate_game=lambda home, away, n: simulate_game(rnd.name, home, away, n),
            )
            logger.debug(
                "%s: %d def. %d %d-%d",
                rnd.name,
                matchup.winner.team_id,
                matchup.loser.team_id,
                max(matchup.high_wins, matchup.low_wins),
                min(matchup.high_wins, matchup.low_wins),
            )
        bracket.rounds.append(rnd)
        return rnd

    wild_card: Dict[str, Round] = {}
    for league in leagues:
        s = {t.seed: t for t in bracket.seeds_by_league[league]}
        wild_card[league] = play(
            Round(
                WILD_CARD,
                league,
                [Matchup(s[3], s[6], series[WILD_CARD]), Matchup(s[4], s[5], series[WILD_CARD])],
            )
        )
    division: Dict[str, Round] = {}
    for league in leagues:
        s = {t.seed: t for t in bracket.seeds_by_league[league]}
        three_six, four_five = wild_card[league].matchups
        division[league] = play(
            Round(
                DIVISION_SERIES,
                league,
                [
                    Matchup(s[1], four_five.winner, series[DIVISION_SERIES]),
                    Matchup(s[2], three_six.winner, series[DIVISION_SERIES]),
                ],
            )
        )
    pennants: List[PlayoffTeam] = []
    for league in leagues:
        first, second = division[league].matchups
        high, low = _ordered(first.winner, second.winner)
        final = play(
            Round(CHAMPIONSHIP_SERIES, league, [Matchup(high, low, series[CHAMPIONSHIP_SERIES])])
        )
        pennants.append(final.matchups[0].winner)

    if len(pennants) == 2:
        high, low = sorted(pennants, key=_rank_key)
        world = play(Round(WORLD_SERIES, None, [Matchup(high, low, series[WORLD_SERIES])]))
        bracket.champion = world.matchups[0].winner
        bracket.runner_up = world.matchups[0].loser
    elif len(pennants) == 1:
        bracket.champion = pennants[0]
    logger.info(
        "Postseason %d: champion %s", bracket.season, bracket.champion and bracket.champion.team_id
    )
    return bracket


def generate_bracket(result: SeasonResult, teams: Iterable[Team]) -> PlayoffBracket:
    """Seed both leagues from the regular season standings."""

    teams = list(teams)
    leagues = sorted({t.league for t in teams})
    seeds = {league: seed_league(league, teams, result.teams) for league in leagues}
    return PlayoffBracket(season=result.season, seeds_by_league=seeds)


def simulate_postseason(
    result: SeasonResult,
    teams: Iterable[Team],
    players: Union[PlayerPool, Iterable[Player]],
    seed: int,
    *,
    config: SimConfig | None = None,
    run_values: RunValueModel | None = None,
) -> PlayoffBracket:
    """Seed and play the full postseason after ``result``.

    Postseason games are numbered from ``Postseason.game_id_base`` upward in
    the order they are played and use ``derive_seed(seed, game_id)``.  Within
    a series game ``n`` (from zero) starts ``rotation[n]`` and every club's
    bullpen rotates ``Season.bullpen_step`` places per game.
    """

    if isinstance(seed, bool) or not isinstance(seed, int) or seed < 0:
        raise ValueError("seed must be a non-negative int")
    pool = as_pool(players, config)
    config = pool.config
    teams = list(teams)
    by_id = {t.team_id: t for t in teams}
    bracket = generate_bracket(result, teams)
    opening_day = date(result.season, 10, 1)
    stage_days = {stage: index * 8 for index, stage in enumerate(STAGES)}
    counter = [config.Postseason.game_id_base]

    def play_game(round_name: str, home_id: int, away_id: int, game_number: int) -> BoxScore:
        counter[0] += 1
        game_id = counter[0]
        stage = round_name.split()[-1]
        return simulate(
            game_id,
            result.season,
            (opening_day + timedelta(days=stage_days[stage] + game_number)).isoformat(),
            by_id[home_id],
            by_id[away_id],
            pool,
            derive_seed(seed, game_id),
            config=config,
            run_values=run_values,
            rotation_index=game_number,
            bullpen_offset=game_number * config.Season.bullpen_step,
        )

    return play_bracket(bracket, play_game, config=config)


__all__ = [
    "TEAMS_PER_LEAGUE",
    "STAGES",
    "SERIES_PATTERNS",
    "PlayoffTeam",
    "SeriesConfig",
    "SeriesGame",
    "Matchup",
    "Round",
    "PlayoffBracket",
    "seed_league",
    "simulate_series",
    "play_bracket",
    "generate_bracket",
    "simulate_postseason",
]
