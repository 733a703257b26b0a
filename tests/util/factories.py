from __future__ import annotations

from typing import List

from leaguesim.ratings import overall_rating
from leaguesim.state import BattingLine, PitchingLine, Runner
from models.player import HitterAttributes, PitcherAttributes, Player
from models.team import Team

LINEUP_POSITIONS = ("C", "1B", "2B", "3B", "SS", "LF", "CF", "RF", "DH")


def make_hitter(pid: int, team_id: int = 1, position: str = "CF", bats: str = "R", **attrs) -> Player:
    """Return an active major league hitter with league-average attributes."""

    values = dict(
        contact=400,
        power=400,
        eye=400,
        speed=400,
        fielding=400,
        arm=400,
        durability=400,
        baserunning=400,
        offensive_iq=400,
        defensive_iq=400,
    )
    values.update(attrs)
    player = Player(
        player_id=pid,
        team_id=team_id,
        name=f"Hitter {pid}",
        age=27,
        position=position,
        bats=bats,
        throws="R",
        hitting=HitterAttributes(**values),
        active=True,
        on_forty_man=True,
    )
    player.overall = overall_rating(player)
    return player


def make_pitcher(
    pid: int, team_id: int = 1, position: str = "SP", throws: str = "R", **attrs
) -> Player:
    """Return an active major league pitcher with league-average attributes."""

    values = dict(
        stuff=400,
        movement=400,
        command=400,
        stamina=400,
        arsenal=3,
        gb_tendency=45,
        hold_runners=400,
        durability=400,
        recovery=400,
        pitching_iq=400,
    )
    values.update(attrs)
    player = Player(
        player_id=pid,
        team_id=team_id,
        name=f"Pitcher {pid}",
        age=27,
        position=position,
        bats=throws,
        throws=throws,
        pitching=PitcherAttributes(**values),
        active=True,
        on_forty_man=True,
    )
    player.overall = overall_rating(player)
    return player


def make_club(team_id: int, first_id: int) -> List[Player]:
    """Return a minimal active roster: nine hitters, five starters, eight relievers."""

    players: List[Player] = []
    pid = first_id
    for position in LINEUP_POSITIONS:
        players.append(make_hitter(pid, team_id, position))
        pid += 1
    for _ in range(5):
        players.append(make_pitcher(pid, team_id, "SP"))
        pid += 1
    for _ in range(7):
        players.append(make_pitcher(pid, team_id, "RP", stamina=250))
        pid += 1
    players.append(make_pitcher(pid, team_id, "CL", stamina=250, stuff=440))
    return players


def make_team(team_id: int, league: str = "AL", division: str = "East") -> Team:
    return Team(
        team_id=team_id,
        name=f"Club {team_id}",
        abbreviation=f"C{team_id:02d}",
        city="Testville",
        league=league,
        division=division,
        park_id=-1,
    )


def make_runner(batter_id: int = 1, pitcher_id: int = 100, speed: float = 400.0) -> Runner:
    return Runner(BattingLine(batter_id, 1), PitchingLine(pitcher_id, 2), speed)
