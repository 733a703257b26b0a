"""Simulate one or more 162-game seasons and report the calibration gates.

One league is generated from ``--league-seed`` and every seed plays its
seasons with that league.  With ``--seasons`` greater than one the league is
carried forward, aging its players and recalibrating the RE24 table on the
configured cadence.  ``--postseason`` plays the twelve-team bracket after
every season.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable
import argparse
import logging
import os
import sys
import time

from tqdm import tqdm

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from leaguesim.config import load_config
from leaguesim.league import LeagueSimulator
from leaguesim.player_generator import generate_league
from leaguesim.postseason import simulate_postseason
from leaguesim.reports import export_season, gates_frame, postseason_frame, standings_frame
from leaguesim.rng import create
from leaguesim.schedule_generator import generate_schedule_template
from leaguesim.simulation import PlayerPool
from leaguesim.teams import load_teams
from leaguesim.validation import (
    CALIBRATION_LEAGUE_SEED,
    CALIBRATION_SEEDS,
    check_determinism,
    evaluate_gates,
    time_single_game,
)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate full league seasons")
    parser.add_argument(
        "--seeds",
        type=int,
        nargs="+",
        default=list(CALIBRATION_SEEDS),
        help="Seeds to simulate (default: %(default)s)",
    )
    parser.add_argument(
        "--league-seed",
        type=int,
        default=CALIBRATION_LEAGUE_SEED,
        help="Seed used to generate the league (default: %(default)s)",
    )
    parser.add_argument(
        "--seasons",
        type=int,
        default=1,
        help="Consecutive seasons to play per seed (default: 1)",
    )
    parser.add_argument("--season", type=int, default=2026, help="First season year")
    parser.add_argument("--config", type=Path, help="Optional JSON file with config overrides")
    parser.add_argument("--export-dir", type=Path, help="Write standings/batting/pitching CSVs here")
    parser.add_argument(
        "--postseason",
        action="store_true",
        help="Play the twelve-team postseason after every season",
    )
    parser.add_argument(
        "--check-determinism",
        action="store_true",
        help="Replay the first seed's season and compare the results",
    )
    parser.add_argument(
        "--disable-tqdm",
        action="store_true",
        help="Disable tqdm progress bar.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    env_disable = os.getenv("DISABLE_TQDM", "").lower() in {"1", "true", "yes"}
    use_tqdm = not (args.disable_tqdm or env_disable)

    config = load_config(args.config)
    teams = load_teams()
    schedule = generate_schedule_template()

    players = generate_league(create(args.league_seed), teams, args.season, config)
    results = []
    timings = {
        "single_game_ms": time_single_game(teams, PlayerPool(players, config), args.league_seed)
    }
    for seed in args.seeds:
        league = LeagueSimulator(
            teams, players, seed, first_season=args.season, config=config, schedule=schedule
        )
        for _ in range(args.seasons):
            bar = tqdm(
                total=len(schedule),
                desc=f"Season {league.season} seed {seed}",
                disable=not use_tqdm,
            )

            def progress(done: int, total: int, bar=bar) -> None:
                bar.update(done - bar.n)

            season_players = league.players if args.postseason else None
            start = time.perf_counter()
            result = league.simulate_season(progress)
            timings.setdefault("season_ms", (time.perf_counter() - start) * 1000.0)
            bar.close()
            results.append(result)
            print(standings_frame(result, teams).to_string(index=False))
            if args.postseason:
                bracket = simulate_postseason(result, teams, season_players, seed, config=config)
                print(postseason_frame(bracket, teams).to_string(index=False))
            if args.export_dir:
                paths = export_season(
                    result, args.export_dir / f"seed_{seed}", teams=teams, players=players
                )
                print("Saved " + ", ".join(str(p) for p in paths.values()))

    gates = evaluate_gates(results, timings=timings)
    if args.check_determinism:
        gates.append(
            check_determinism(teams, players, args.seeds[0], schedule=schedule, config=config)
        )
    print(gates_frame(gates).to_string(index=False))
    return 0 if all(g.passed for g in gates) else 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
