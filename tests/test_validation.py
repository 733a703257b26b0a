import pytest

from leaguesim import validation
from leaguesim.benchmarks import load_gate_ranges
from leaguesim.rng import create
from leaguesim.validation import (
    CALIBRATION_LEAGUE_SEED,
    CALIBRATION_SEEDS,
    GateResult,
    check_determinism,
    evaluate_gates,
    run_calibration,
    season_metrics,
    time_season,
    time_single_game,
)

TIMING_GATES = {"single_game_ms", "season_ms"}


def test_gate_result():
    passed = GateResult("league_era", 4.1, 3.8, 4.4)
    failed = GateResult("league_era", 4.6, 3.8, 4.4)
    assert passed.passed
    assert not failed.passed
    assert str(passed).startswith("PASS league_era")
    assert str(failed).startswith("FAIL")
    assert GateResult("edge", 3.8, 3.8, 4.4).passed


def test_season_metrics_cover_every_season_gate(season_result):
    metrics = season_metrics(season_result)
    assert set(load_gate_ranges()) - TIMING_GATES <= set(metrics)
    assert metrics["league_era"] == season_result.league_era
    assert metrics["teams_100_wins"] == sum(1 for w in season_result.wins() if w >= 100)
    assert -1.0 <= metrics["pythagorean_correlation"] <= 1.0


def test_evaluate_gates_with_custom_ranges(season_result):
    gates = {"league_era": (0.0, 100.0), "not_a_metric": (0.0, 1.0)}
    report = evaluate_gates([season_result], gates)
    assert [g.name for g in report] == ["league_era"]
    assert report[0].passed


def test_timing_gates_need_timings(season_result):
    gates = {"single_game_ms": (0.0, 50.0)}
    assert evaluate_gates([season_result], gates) == []
    report = evaluate_gates([season_result], gates, timings={"single_game_ms": 12.0})
    assert report == [GateResult("single_game_ms", 12.0, 0.0, 50.0)]


def test_evaluate_gates_averages_seasons(season_result):
    report = evaluate_gates([season_result, season_result], {"league_ba": (0.0, 1.0)})
    assert report[0].value == pytest.approx(season_result.league_ba)
    with pytest.raises(ValueError):
        evaluate_gates([])


def test_time_single_game(teams, pool):
    assert time_single_game(teams, pool, repeats=3) > 0
    with pytest.raises(ValueError):
        time_single_game(teams[:1], pool)


def test_pythagorean_fit(season_result):
    assert season_metrics(season_result)["pythagorean_correlation"] > 0.8


@pytest.mark.slow
def test_determinism_gate(teams, league_players, schedule):
    gate = check_determinism(teams, league_players, 7, schedule=schedule)
    assert gate.passed


@pytest.mark.slow
def test_calibration_gates_pass():
    results = run_calibration(CALIBRATION_SEEDS)
    failed = [str(g) for g in evaluate_gates(results) if not g.passed]
    assert failed == []


def test_run_calibration_plays_every_seed_over_one_league(monkeypatch):
    league = [object()]
    generated = []
    played = []

    def fake_generate(rng, teams, season, config=None):
        generated.append(rng.random())
        return league

    def fake_season(teams, players, schedule, seed, **kwargs):
        played.append((players, seed))
        return seed

    monkeypatch.setattr(validation, "generate_league", fake_generate)
    monkeypatch.setattr(validation, "simulate_season", fake_season)
    assert run_calibration() == list(CALIBRATION_SEEDS)
    assert generated == [create(CALIBRATION_LEAGUE_SEED).random()]
    assert [seed for _, seed in played] == [42, 137, 9001]
    assert all(players is league for players, _ in played)


@pytest.mark.slow
def test_single_game_latency_gate(teams, pool):
    _, high = load_gate_ranges()["single_game_ms"]
    assert high == 50
    assert time_single_game(teams, pool, 42) <= high


@pytest.mark.slow
def test_season_latency_gate(teams, league_players, schedule):
    _, high = load_gate_ranges()["season_ms"]
    assert high == 5000
    assert time_season(teams, league_players, 42, schedule=schedule) <= high
