"""Tabular season reports built with pandas."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from leaguesim.postseason import PlayoffBracket
from leaguesim.run_values import RunValueModel
from leaguesim.season_simulator import SeasonResult
from leaguesim.stats import compute_batting_rates, compute_pitching_rates
from leaguesim.validation import GateResult
from models.player import Player
from models.team import Team


def standings_frame(result: SeasonResult, teams: Optional[Iterable[Team]] = None) -> pd.DataFrame:
    """Return one row per team with its record and Pythagorean expectation."""

    names = {t.team_id: t for t in teams} if teams is not None else {}
    rows = []
    for team_id, record in sorted(result.teams.items()):
        team = names.get(team_id)
        rows.append(
            {
                "team_id": team_id,
                "team": team.abbreviation if team else str(team_id),
                "league": team.league if team else "",
                "division": team.division if team else "",
                "w": record.wins,
                "l": record.losses,
                "pct": record.win_pct,
                "rs": record.runs_scored,
                "ra": record.runs_allowed,
                "run_diff": record.runs_scored - record.runs_allowed,
                "pythag_w": round(record.pythagorean_pct * record.games),
                "home_w": record.home_wins,
                "away_w": record.away_wins,
            }
        )
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values(["league", "division", "w"], ascending=[True, True, False]).reset_index(
        drop=True
    )


def batting_frame(
    result: SeasonResult, players: Optional[Mapping[int, Player]] = None, min_pa: int = 0
) -> pd.DataFrame:
    """Return season batting totals and rates, best OPS first."""

    rows = []
    for player_id, stat in result.players.items():
        line = stat.batting
        if line is None or line.pa < min_pa:
            continue
        row = {
            "player_id": player_id,
            "name": players[player_id].name if players and player_id in players else "",
            "team_id": stat.team_id,
            "g": stat.games,
            "pa": line.pa,
            "ab": line.ab,
            "r": line.r,
            "h": line.h,
            "2b": line.doubles,
            "3b": line.triples,
            "hr": line.hr,
            "rbi": line.rbi,
            "bb": line.bb,
            "so": line.so,
            "sb": line.sb,
            "cs": line.cs,
            "re24": round(line.re24, 2),
        }
        row.update(compute_batting_rates(line))
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values(["ops", "player_id"], ascending=[False, True]).reset_index(drop=True)


def pitching_frame(
    result: SeasonResult, players: Optional[Mapping[int, Player]] = None, min_outs: int = 0
) -> pd.DataFrame:
    """Return season pitching totals and rates, most innings first."""

    rows = []
    for player_id, stat in result.players.items():
        line = stat.pitching
        if line is None or line.outs < min_outs:
            continue
        row = {
            "player_id": player_id,
            "name": players[player_id].name if players and player_id in players else "",
            "team_id": stat.team_id,
            "g": stat.games,
            "gs": stat.games_started,
            "w": stat.wins,
            "l": stat.losses,
            "sv": stat.saves,
            "outs": line.outs,
            "h": line.h,
            "r": line.r,
            "er": line.er,
            "bb": line.bb,
            "so": line.so,
            "hr": line.hr,
            "pitches": line.pitches,
        }
        row.update(compute_pitching_rates(line))
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values(["outs", "player_id"], ascending=[False, True]).reset_index(drop=True)


def gates_frame(gates: Iterable[GateResult]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"metric": g.name, "value": g.value, "low": g.low, "high": g.high, "passed": g.passed}
            for g in gates
        ]
    )


def postseason_frame(
    bracket: PlayoffBracket, teams: Optional[Iterable[Team]] = None
) -> pd.DataFrame:
    """Return one row per postseason series in the order they were played."""

    names = {t.team_id: t.abbreviation for t in teams} if teams is not None else {}
    rows = []
    for rnd in bracket.rounds:
        for matchup in rnd.matchups:
            rows.append(
                {
                    "round": rnd.name,
                    "high": names.get(matchup.high.team_id, str(matchup.high.team_id)),
                    "high_seed": matchup.high.seed,
                    "low": names.get(matchup.low.team_id, str(matchup.low.team_id)),
                    "low_seed": matchup.low.seed,
                    "high_w": matchup.high_wins,
                    "low_w": matchup.low_wins,
                    "games": len(matchup.games),
                    "winner": names.get(matchup.winner.team_id, str(matchup.winner.team_id)),
                }
            )
    return pd.DataFrame(rows)


def run_values_frame(model: RunValueModel) -> pd.DataFrame:
    return pd.DataFrame(model.rows(), columns=["outs", "bases", "runs"])


def export_season(
    result: SeasonResult,
    directory: str | Path,
    *,
    teams: Optional[Iterable[Team]] = None,
    players: Optional[Iterable[Player]] = None,
) -> Dict[str, Path]:
    """Write standings, batting and pitching CSV files to ``directory``.

    Returns the written paths keyed by report name.  Parent directories are
    created automatically.
    """

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    by_id = {p.player_id: p for p in players} if players is not None else None
    frames = {
        "standings": standings_frame(result, teams),
        "batting": batting_frame(result, by_id),
        "pitching": pitching_frame(result, by_id),
    }
    paths: Dict[str, Path] = {}
    for name, df in frames.items():
        path = directory / f"season_{result.season}_{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = path
    return paths


__all__ = [
    "standings_frame",
    "batting_frame",
    "pitching_frame",
    "gates_frame",
    "run_values_frame",
    "postseason_frame",
    "export_season",
]
