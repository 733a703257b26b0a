"""Simulate a single game between two teams and print the line score."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Iterable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from leaguesim.config import load_config
from leaguesim.player_generator import generate_league
from leaguesim.rng import create
from leaguesim.simulation import PlayerPool, simulate
from leaguesim.stats import compute_pitching_rates
from leaguesim.teams import load_teams


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a single game")
    parser.add_argument("home", type=int, help="Home team ID (1-30)")
    parser.add_argument("away", type=int, help="Away team ID (1-30)")
    parser.add_argument("--seed", type=int, default=0, help="Game seed (default: 0)")
    parser.add_argument(
        "--league-seed",
        type=int,
        default=42,
        help="Seed used to generate the league's players (default: 42)",
    )
    parser.add_argument("--season", type=int, default=2026)
    parser.add_argument("--config", type=Path, help="Optional JSON file with config overrides")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    teams = {t.team_id: t for t in load_teams()}
    if args.home not in teams or args.away not in teams or args.home == args.away:
        raise SystemExit("home and away must be two different team ids from the team table")
    players = generate_league(create(args.league_seed), teams.values(), args.season, config)
    pool = PlayerPool(players, config)
    home, away = teams[args.home], teams[args.away]
    box = simulate(1, args.season, f"{args.season}-04-01", home, away, pool, args.seed)

    innings = " ".join(f"{i + 1:>2}" for i in range(box.innings))
    print(f"{'':<5}{innings}   R")
    for side, team in (("away", away), ("home", home)):
        cells = " ".join(" x" if r is None else f"{r:>2}" for r in box.line_score[side])
        runs = box.away_runs if side == "away" else box.home_runs
        print(f"{team.abbreviation:<5}{cells}  {runs:>2}")

    names = {p.player_id: p.name for p in players}
    print()
    for line in box.pitching.values():
        rates = compute_pitching_rates(line)
        decision = f" ({line.decision})" if line.decision else ""
        print(
            f"{names[line.player_id]:<24}{decision:<5} IP {line.outs // 3}.{line.outs % 3}"
            f"  H {line.h}  R {line.r}  ER {line.er}  BB {line.bb}  K {line.so}"
            f"  P {line.pitches}  ERA {rates['era']:.2f}"
        )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
