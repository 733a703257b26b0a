import pytest

from leaguesim.config import SimConfig
from leaguesim.plate_appearance import STRIKEOUT
from leaguesim.simulation import GameSimulation, PlayerPool, as_pool, simulate
from leaguesim.state import BattingLine, PitchingLine
from utils.exceptions import ConfigurationError
from tests.util.factories import make_club, make_team


def _max_pitches_per_pa(cfg):
    # One more plate appearance by the least economical pitcher, plus rounding.
    return max(cfg.section("Pitches").values()) * cfg.Pitcher.economy_ceiling + 1


def test_game_box_score_closes(teams, pool):
    box = simulate(1, 2026, "2026-04-01", teams[0], teams[1], pool, 7)
    assert box.problems() == []
    assert box.innings >= 9
    assert box.home_runs != box.away_runs
    decisions = box.decisions()
    assert "W" in decisions and "L" in decisions
    starters = [line for line in box.pitching.values() if line.started]
    assert sorted(line.team_id for line in starters) == sorted([teams[0].team_id, teams[1].team_id])


def test_same_seed_same_game(teams, pool):
    first = simulate(3, 2026, "2026-04-01", teams[2], teams[3], pool, 1234)
    second = simulate(3, 2026, "2026-04-01", teams[2], teams[3], pool, 1234)
    assert first.line_score == second.line_score
    assert first.batting == second.batting
    assert first.pitching == second.pitching
    assert first.re24_observations == second.re24_observations


def test_different_seeds_vary(teams, pool):
    scores = {
        tuple(simulate(1, 2026, "2026-04-01", teams[0], teams[1], pool, seed).line_score["away"])
        for seed in range(8)
    }
    assert len(scores) > 1


def test_starters_respect_pitch_ceiling(teams, pool):
    ceiling = pool.config.Hook.starter_ceiling
    margin = _max_pitches_per_pa(pool.config)
    for seed in range(20):
        box = simulate(seed + 1, 2026, "2026-04-01", teams[4], teams[5], pool, seed)
        for line in box.pitching.values():
            if line.started:
                assert line.pitches < ceiling + margin


def test_low_pitch_ceiling_override(teams, league_players):
    cfg = SimConfig.default().with_overrides({"Hook": {"starter_ceiling": 30}})
    low = PlayerPool(league_players, cfg)
    margin = _max_pitches_per_pa(cfg)
    for seed in range(10):
        box = simulate(seed + 1, 2026, "2026-04-01", teams[6], teams[7], low, seed)
        starters = [line for line in box.pitching.values() if line.started]
        assert all(line.pitches < 30 + margin for line in starters)
        assert len(box.pitching) > 2


def test_batting_and_pitching_totals_agree(teams, pool):
    for seed in range(10):
        box = simulate(seed + 1, 2026, "2026-04-01", teams[8], teams[9], pool, seed)
        batting_pa = sum(line.pa for line in box.batting.values())
        faced = sum(line.bf for line in box.pitching.values())
        assert batting_pa == faced
        for line in box.pitching.values():
            assert 0 <= line.er <= line.r


def test_ghost_runner_starts_on_second(teams, pool):
    sim = GameSimulation(1, 2026, "2026-04-01", teams[0], teams[1], pool, 5)
    assert sim.start_half(9, sim.home, sim.away) == [None, None, None]

    sim.home.batting_index = 3
    bases = sim.start_half(10, sim.home, sim.away)
    assert bases[0] is None and bases[2] is None
    runner = bases[1]
    assert runner.batter is sim.batting[sim.home.lineup[2]]
    assert runner.pitcher is sim.away.pitcher
    assert not runner.earned

    sim.away.batting_index = 0
    bases = sim.start_half(11, sim.away, sim.home)
    assert bases[1].batter is sim.batting[sim.away.lineup[-1]]


def test_extra_inning_games_close(teams, pool):
    extra = None
    for seed in range(400):
        box = simulate(seed + 1, 2026, "2026-04-01", teams[10], teams[11], pool, seed)
        if box.innings > 9:
            extra = box
            break
    assert extra is not None
    assert len(extra.line_score["away"]) == extra.innings
    assert len(extra.line_score["home"]) == extra.innings
    assert extra.problems() == []


def test_rotation_index_picks_the_starter(teams, pool):
    home, away = teams[0], teams[1]
    box = simulate(
        1, 2026, "2026-04-01", home, away, pool, 11, rotation_index={home.team_id: 2}
    )
    starters = {line.team_id: line.player_id for line in box.pitching.values() if line.started}
    assert starters[home.team_id] == pool.rotation(home.team_id)[2]
    assert starters[away.team_id] == pool.rotation(away.team_id)[0]


def test_plain_player_list_builds_a_pool():
    players = make_club(1, 1) + make_club(2, 100)
    box = simulate(1, 2026, "2026-04-01", make_team(1), make_team(2), players, 3)
    assert box.problems() == []


def test_missing_lineup_is_a_configuration_error():
    players = make_club(1, 1)
    with pytest.raises(ConfigurationError):
        simulate(1, 2026, "2026-04-01", make_team(1), make_team(2), players, 3)


def test_as_pool_reuses_matching_pool(pool):
    assert as_pool(pool) is pool
    other = as_pool(pool, SimConfig.default().with_overrides({"Hook": {"reliever_cap": 30}}))
    assert other is not pool
    assert other.config.Hook.reliever_cap == 30


def test_pool_lineups_and_rotations(pool):
    for team_id in pool.team_ids:
        assert len(pool.lineup(team_id)) == 9
        assert len(pool.rotation(team_id)) == 5
        assert len(pool.relievers[team_id]) == 8


def test_pitch_count_accumulates_economy(teams, pool):
    sim = GameSimulation(1, 2026, "2026-04-01", teams[0], teams[1], pool, 5)
    cost = pool.config.Pitches.strikeout
    line = PitchingLine(900, teams[0].team_id, started=True)
    batter = BattingLine(901, teams[1].team_id)
    sim._record_plate_appearance(STRIKEOUT, batter, line, 1, 0.8)
    sim._record_plate_appearance(STRIKEOUT, batter, line, 1, 0.8)
    assert line.pitch_load == pytest.approx(2 * cost * 0.8)
    assert line.pitches == round(2 * cost * 0.8)
    assert line.bf == 2 and line.so == 2 and batter.so == 2
