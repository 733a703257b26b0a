import pandas as pd

from leaguesim.postseason import generate_bracket, play_bracket
from leaguesim.reports import (
    batting_frame,
    export_season,
    gates_frame,
    pitching_frame,
    postseason_frame,
    run_values_frame,
    standings_frame,
)
from leaguesim.run_values import RunValueModel
from leaguesim.validation import GateResult


def test_standings_frame(season_result, teams):
    df = standings_frame(season_result, teams)
    assert len(df) == 30
    assert (df["w"] + df["l"] == 162).all()
    assert set(df["team"]) == {t.abbreviation for t in teams}
    for _, group in df.groupby(["league", "division"]):
        assert list(group["w"]) == sorted(group["w"], reverse=True)
    assert df["run_diff"].sum() == 0


def test_batting_frame(season_result, league_players):
    by_id = {p.player_id: p for p in league_players}
    df = batting_frame(season_result, by_id, min_pa=300)
    assert not df.empty
    assert (df["pa"] >= 300).all()
    assert list(df["ops"]) == sorted(df["ops"], reverse=True)
    assert df["name"].str.len().min() > 0


def test_pitching_frame(season_result):
    df = pitching_frame(season_result, min_outs=150)
    assert not df.empty
    assert list(df["outs"]) == sorted(df["outs"], reverse=True)
    assert {"era", "whip", "w", "l", "sv"} <= set(df.columns)


def test_gates_and_run_values_frames():
    df = gates_frame([GateResult("league_era", 4.0, 3.8, 4.4)])
    assert list(df.columns) == ["metric", "value", "low", "high", "passed"]
    assert bool(df.loc[0, "passed"])
    rv = run_values_frame(RunValueModel.anchor())
    assert len(rv) == 24
    assert rv.loc[0, "bases"] == "---"


def test_export_season(tmp_path, season_result, teams, league_players):
    paths = export_season(season_result, tmp_path / "out", teams=teams, players=league_players)
    assert set(paths) == {"standings", "batting", "pitching"}
    assert paths["standings"].name == f"season_{season_result.season}_standings.csv"
    standings = pd.read_csv(paths["standings"])
    assert len(standings) == 30
    batting = pd.read_csv(paths["batting"])
    assert len(batting) == sum(1 for s in season_result.players.values() if s.batting is not None)


def test_postseason_frame(season_result, teams):
    bracket = play_bracket(generate_bracket(season_result, teams), lambda *args: (5, 4))
    df = postseason_frame(bracket, teams)

    assert len(df) == 11
    assert list(df["round"])[-1] == "WS"
    assert (df[["high_w", "low_w"]].max(axis=1) == df["games"] // 2 + 1).all()
    champion = next(t for t in teams if t.team_id == bracket.champion.team_id)
    assert df.iloc[-1]["winner"] == champion.abbreviation
