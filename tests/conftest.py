import os

import pytest

from leaguesim.player_generator import generate_league
from leaguesim.rng import create
from leaguesim.schedule_generator import generate_schedule_template
from leaguesim.season_simulator import SeasonSimulator
from leaguesim.simulation import PlayerPool
from leaguesim.teams import load_teams

LEAGUE_SEED = 42
SEASON_SEED = 99


def pytest_sessionstart(session):
    """Keep progress bars out of the test output."""
    os.environ.setdefault("DISABLE_TQDM", "1")


@pytest.fixture(scope="session")
def teams():
    return load_teams()


@pytest.fixture(scope="session")
def league_players(teams):
    return generate_league(create(LEAGUE_SEED), teams, 2026)


@pytest.fixture(scope="session")
def pool(league_players):
    return PlayerPool(league_players)


@pytest.fixture(scope="session")
def schedule():
    return generate_schedule_template()


@pytest.fixture(scope="session")
def season_run(teams, league_players, schedule):
    """One full season with seed 99, the progress callbacks it made and its simulator."""

    calls = []
    simulator = SeasonSimulator(teams, league_players, schedule, SEASON_SEED)
    result = simulator.run(lambda done, total: calls.append((done, total)))
    return result, calls, simulator


@pytest.fixture(scope="session")
def season_result(season_run):
    return season_run[0]
