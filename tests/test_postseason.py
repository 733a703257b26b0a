import pytest

from leaguesim.config import SimConfig
from leaguesim.postseason import (
    Matchup,
    PlayoffBracket,
    PlayoffTeam,
    SeriesConfig,
    play_bracket,
    seed_league,
    simulate_postseason,
    simulate_series,
)
from leaguesim.schedule_generator import GAMES_PER_TEAM
from leaguesim.season_simulator import TeamSeasonRecord
from utils.exceptions import ConfigurationError, InvariantViolation

AL_WINS = {
    1: 95, 2: 93, 3: 70, 4: 60, 5: 55,
    6: 84, 7: 83, 8: 65, 9: 60, 10: 50,
    11: 90, 12: 85, 13: 85, 14: 70, 15: 60,
}


def _records(wins, run_diff=None):
    run_diff = run_diff or {}
    return {
        team_id: TeamSeasonRecord(
            team_id,
            wins=w,
            losses=GAMES_PER_TEAM - w,
            runs_scored=700 + run_diff.get(team_id, 0),
            runs_allowed=700,
        )
        for team_id, w in wins.items()
    }


def _league_records():
    wins = dict(AL_WINS)
    wins.update({team_id + 15: w - 1 for team_id, w in AL_WINS.items()})
    return _records(wins, {13: 25, 12: -10})


def _team(team_id, seed, wins=90):
    return PlayoffTeam(team_id, seed, "AL", wins, GAMES_PER_TEAM - wins, 0)


def always_home_wins(home, away, game_number):
    return 5, 3


def test_division_winners_take_the_top_seeds(teams):
    seeds = seed_league("AL", teams, _league_records())

    assert [t.team_id for t in seeds] == [1, 11, 6, 2, 13, 12]
    assert [t.seed for t in seeds] == [1, 2, 3, 4, 5, 6]
    # The Central winner is seeded third despite a worse record than the top wild card.
    assert seeds[2].wins < seeds[3].wins
    assert all(t.league == "AL" for t in seeds)


def test_seeding_ties_break_on_run_differential(teams):
    seeds = seed_league("AL", teams, _league_records())
    assert (seeds[4].team_id, seeds[5].team_id) == (13, 12)
    assert seeds[4].run_diff > seeds[5].run_diff


def test_seeding_requires_every_record(teams):
    records = _league_records()
    del records[7]
    with pytest.raises(ConfigurationError):
        seed_league("AL", teams, records)


@pytest.mark.parametrize(
    "length, homes",
    [
        (3, [1, 2, 1]),
        (5, [1, 1, 2, 2, 1]),
        (7, [1, 1, 2, 2, 2, 1, 1]),
    ],
)
def test_series_home_patterns(length, homes):
    matchup = Matchup(_team(1, 1), _team(2, 2), SeriesConfig.best_of(length))
    assert matchup.home_teams() == homes


@pytest.mark.parametrize("length", [3, 5, 7])
def test_home_teams_winning_every_game_goes_the_distance(length):
    matchup = Matchup(_team(1, 1), _team(2, 2), SeriesConfig.best_of(length))
    simulate_series(matchup, simulate_game=always_home_wins)

    assert len(matchup.games) == length
    assert matchup.winner.team_id == 1
    assert matchup.loser.team_id == 2
    assert matchup.high_wins == length // 2 + 1
    assert [g.home_team_id for g in matchup.games] == matchup.home_teams()


def test_series_stops_once_clinched():
    matchup = Matchup(_team(1, 1), _team(2, 2), SeriesConfig.best_of(7))
    calls = []

    def high_seed_wins(home, away, game_number):
        calls.append(game_number)
        return (6, 1) if home == 1 else (1, 6)

    simulate_series(matchup, simulate_game=high_seed_wins)
    assert calls == [0, 1, 2, 3]
    assert (matchup.high_wins, matchup.low_wins) == (4, 0)

    # A finished series is not replayed.
    simulate_series(matchup, simulate_game=high_seed_wins)
    assert len(calls) == 4


def test_tied_series_game_is_rejected():
    matchup = Matchup(_team(1, 1), _team(2, 2), SeriesConfig.best_of(3))
    with pytest.raises(InvariantViolation):
        simulate_series(matchup, simulate_game=lambda home, away, n: (2, 2))


def test_unknown_series_length_is_rejected():
    with pytest.raises(ConfigurationError):
        SeriesConfig.best_of(4)
    cfg = SimConfig.default().with_overrides({"Postseason": {"division_length": 6}})
    bracket = PlayoffBracket(2026, {})
    with pytest.raises(ConfigurationError):
        play_bracket(bracket, lambda *args: (1, 0), config=cfg)


def test_bracket_with_home_teams_always_winning(teams):
    records = _league_records()
    seeds = {league: seed_league(league, teams, records) for league in ("AL", "NL")}
    bracket = PlayoffBracket(2026, seeds)
    rounds_seen = []

    def play(round_name, home, away, game_number):
        rounds_seen.append(round_name)
        return 4, 2

    play_bracket(bracket, play)

    assert [r.name for r in bracket.rounds] == [
        "AL WC", "NL WC", "AL DS", "NL DS", "AL CS", "NL CS", "WS",
    ]
    # 4 wild card series of 3, 4 division series of 5, 3 series of 7.
    assert len(bracket.games()) == 4 * 3 + 4 * 5 + 3 * 7
    assert len(rounds_seen) == len(bracket.games())
    # The AL top seed has the better record and keeps home field.
    assert bracket.champion.team_id == 1
    assert bracket.runner_up.team_id == 16

    finish = bracket.finish()
    assert len(finish) == 12
    assert finish[1] == "Champion"
    assert finish[16] == "WS"
    assert finish[11] == "CS"
    assert finish[6] == finish[2] == "DS"
    assert finish[13] == finish[12] == "WC"


def test_division_series_pairs_top_seeds_with_wild_card_winners(teams):
    records = _league_records()
    seeds = {"AL": seed_league("AL", teams, records)}
    bracket = play_bracket(PlayoffBracket(2026, seeds), lambda *args: (3, 1))

    wild_card, division, final = bracket.rounds
    assert [(m.high.seed, m.low.seed) for m in wild_card.matchups] == [(3, 6), (4, 5)]
    assert [(m.high.seed, m.low.seed) for m in division.matchups] == [(1, 4), (2, 3)]
    assert [(m.high.seed, m.low.seed) for m in final.matchups] == [(1, 2)]
    # With a single league the pennant winner is the champion.
    assert bracket.champion.seed == 1
    assert bracket.runner_up is None


def test_full_postseason(season_result, teams, pool):
    bracket = simulate_postseason(season_result, teams, pool, 7)

    finish = bracket.finish()
    assert len(finish) == 12
    assert list(finish.values()).count("Champion") == 1
    assert bracket.champion.team_id in finish

    games = bracket.games()
    base = SimConfig.default().Postseason.game_id_base
    ids = [g.box.game_id for g in games]
    assert len(set(ids)) == len(ids)
    assert min(ids) == base + 1
    for rnd in bracket.rounds:
        for matchup in rnd.matchups:
            needed = matchup.config.length // 2 + 1
            assert max(matchup.high_wins, matchup.low_wins) == needed
            assert all(g.box.problems() == [] for g in matchup.games)

    again = simulate_postseason(season_result, teams, pool, 7)
    assert [(g.home_runs, g.away_runs) for g in again.games()] == [
        (g.home_runs, g.away_runs) for g in games
    ]


def test_postseason_rejects_negative_seed(season_result, teams, pool):
    with pytest.raises(ValueError):
        simulate_postseason(season_result, teams, pool, -1)
