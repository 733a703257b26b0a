from __future__ import annotations

from dataclasses import dataclass, field

from models.roster import Roster

LEAGUES = ("AL", "NL")
DIVISIONS = ("East", "Central", "West")


@dataclass
class Team:
    team_id: int
    name: str
    abbreviation: str
    city: str
    league: str
    division: str
    park_id: int = 4
    roster: Roster = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.roster is None:
            self.roster = Roster(self.team_id)

    @property
    def full_name(self) -> str:
        return f"{self.city} {self.name}"

    @property
    def active_roster(self) -> list[int]:
        return self.roster.active

    @property
    def forty_man(self) -> list[int]:
        return self.roster.forty_man
