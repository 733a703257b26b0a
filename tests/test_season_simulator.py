import dataclasses
from dataclasses import replace

import pytest

from leaguesim.season_simulator import SeasonSimulator, simulate_season
from leaguesim.schedule_generator import GAMES_PER_TEAM
from utils.exceptions import ConfigurationError, InvariantViolation


def test_every_team_finishes_162_games(season_result):
    assert season_result.games == len(season_result.teams) * GAMES_PER_TEAM // 2
    for record in season_result.teams.values():
        assert record.wins + record.losses == GAMES_PER_TEAM
        assert record.home_wins + record.away_wins == record.wins
    assert sum(season_result.wins()) == season_result.games


def test_league_aggregates_are_plausible(season_result):
    assert 2.5 < season_result.league_era < 6.0
    assert 0.200 < season_result.league_ba < 0.320
    assert 3.0 < season_result.league_rpg < 6.0
    assert season_result.team_wins_sd > 0
    runs = sum(r.runs_scored for r in season_result.teams.values())
    allowed = sum(r.runs_allowed for r in season_result.teams.values())
    assert runs == allowed


def test_decisions_add_up(season_result):
    wins = sum(s.wins for s in season_result.players.values())
    losses = sum(s.losses for s in season_result.players.values())
    saves = sum(s.saves for s in season_result.players.values())
    assert wins == losses == season_result.games
    assert 0 < saves < season_result.games


def test_starts_are_spread_over_the_rotation(season_result):
    starts = {}
    for stat in season_result.players.values():
        if stat.games_started:
            starts.setdefault(stat.team_id, []).append(stat.games_started)
    for team_starts in starts.values():
        assert sum(team_starts) == GAMES_PER_TEAM
        assert len(team_starts) == 5
        assert min(team_starts) >= 30


def test_service_time_accrued(season_result, league_players):
    active = [p for p in league_players if p.active and p.level == "MLB"]
    assert set(season_result.service_days) == {p.player_id for p in active}
    assert set(season_result.service_days.values()) == {172}


def test_result_is_read_only(season_result):
    with pytest.raises(TypeError):
        season_result.teams[1] = None
    with pytest.raises(dataclasses.FrozenInstanceError):
        season_result.league_era = 0.0


def test_progress_reports(season_run):
    result, calls, _ = season_run
    assert calls[-1] == (result.games, result.games)
    done = [c[0] for c in calls]
    assert done == sorted(done)
    assert len(calls) >= result.games // 100


def test_run_value_observations_collected(season_result):
    observations = season_result.run_value_observations
    assert observations.total > 0
    assert all(count > 0 for count in observations.counts)


def test_same_seed_same_season(teams, league_players, schedule, season_result):
    again = simulate_season(teams, league_players, schedule, season_result.seed)
    assert again.wins() == season_result.wins()
    assert again.league_era == season_result.league_era
    assert again.league_ba == season_result.league_ba


def test_simulate_next_day(teams, league_players, schedule):
    boxes = []
    sim = SeasonSimulator(teams, league_players, schedule, 3, after_game=boxes.append)
    days = sim.remaining_days()
    played = sim.simulate_next_day()
    assert sim.remaining_days() == days - 1
    assert played == boxes
    assert {box.date for box in played} == {"2026-04-01"}
    assert len(played) == sum(1 for e in schedule if e.date == "2026-04-01")
    with pytest.raises(InvariantViolation):
        sim.result()


def test_short_schedule_rejected(teams, league_players, schedule):
    with pytest.raises(InvariantViolation):
        SeasonSimulator(teams, league_players, schedule[:-1], 1)


def test_invalid_league_rejected_before_play(teams, league_players, schedule):
    players = [
        replace(p, active=False) if p.team_id == 4 and p.position == "SP" else p
        for p in league_players
    ]
    with pytest.raises(ConfigurationError) as excinfo:
        SeasonSimulator(teams, players, schedule, 1)
    assert any("team 4" in problem for problem in excinfo.value.problems)


def test_negative_seed_rejected(teams, league_players, schedule):
    with pytest.raises(ValueError):
        SeasonSimulator(teams, league_players, schedule, -1)


def test_games_follow_schedule_order(teams, league_players, schedule):
    backwards = list(reversed(schedule))
    boxes = []
    sim = SeasonSimulator(teams, league_players, backwards, 3, after_game=boxes.append)
    played = sim.simulate_next_day()
    assert played[0].game_id == backwards[0].game_id
    assert [box.game_id for box in played] == [e.game_id for e in backwards[: len(played)]]
    assert {box.date for box in played} == {backwards[0].date}
    assert sim.remaining_days() == len({e.date for e in schedule}) - 1


def test_result_is_a_snapshot(season_run):
    result, _, simulator = season_run
    record = result.teams[1]
    wins = record.wins
    stat = next(s for s in result.players.values() if s.batting is not None)
    hits = stat.batting.h
    total = result.run_value_observations.total

    simulator.records[1].wins += 1
    simulator.player_stats[stat.player_id].batting.h += 5
    simulator.observations.add(0, 3)
    try:
        assert result.teams[1].wins == wins
        assert result.players[stat.player_id].batting.h == hits
        assert result.run_value_observations.total == total
    finally:
        simulator.records[1].wins -= 1
        simulator.player_stats[stat.player_id].batting.h -= 5
        simulator.observations.runs[0] -= 3
        simulator.observations.counts[0] -= 1


def test_stolen_bases_are_booked(season_result):
    lines = [s.batting for s in season_result.players.values() if s.batting is not None]
    steals = sum(line.sb for line in lines)
    caught = sum(line.cs for line in lines)
    assert 0 < caught < steals
    assert steals < season_result.games * 2
