from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

ACTIVE_LIMIT = 26
SEPTEMBER_ACTIVE_LIMIT = 28
FORTY_MAN_LIMIT = 40


def active_limit(month: int) -> int:
    """Return the active roster limit for calendar ``month``."""
    return SEPTEMBER_ACTIVE_LIMIT if month == 9 else ACTIVE_LIMIT


@dataclass
class Roster:
    team_id: int
    active: List[int] = field(default_factory=list)
    forty_man: List[int] = field(default_factory=list)
    aaa: List[int] = field(default_factory=list)
    rookie: List[int] = field(default_factory=list)

    def move_player(self, player_id: int, from_level: str, to_level: str) -> None:
        source = getattr(self, from_level)
        if player_id not in source:
            raise ValueError(f"{player_id} not on {from_level}")
        source.remove(player_id)
        target = getattr(self, to_level)
        target.append(player_id)
        # Anyone on the active roster must also hold a 40-man spot.
        if to_level == "active" and player_id not in self.forty_man:
            self.forty_man.append(player_id)

    def problems(self, month: int = 4) -> List[str]:
        """Return a list of roster rule violations (empty when valid)."""

        issues: List[str] = []
        limit = active_limit(month)
        if len(self.active) > limit:
            issues.append(
                f"team {self.team_id}: {len(self.active)} active players (limit {limit})"
            )
        if len(self.forty_man) > FORTY_MAN_LIMIT:
            issues.append(
                f"team {self.team_id}: {len(self.forty_man)} on 40-man roster"
                f" (limit {FORTY_MAN_LIMIT})"
            )
        missing = [pid for pid in self.active if pid not in self.forty_man]
        if missing:
            issues.append(f"team {self.team_id}: active players {missing} not on 40-man roster")
        if len(set(self.active)) != len(self.active):
            issues.append(f"team {self.team_id}: duplicate active roster entries")
        return issues
