"""Manager hook and bullpen usage.

:class:`ManagerHook` answers the two questions a manager asks during a game:
should the current pitcher face another batter, and should he go back out
for the next inning.  :class:`Bullpen` picks who comes in.  Thresholds come
from the ``Hook`` config section.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from leaguesim.config import SimConfig
from leaguesim.state import PitchingLine
from models.player import Player

BATTERS_PER_TURN = 9
SETUP_ARMS = 2


def times_through(line: PitchingLine) -> int:
    """Return which trip through the order the pitcher is on (1-based)."""
    return line.bf // BATTERS_PER_TURN + 1


class ManagerHook:
    """Decide when the pitcher on the mound is lifted."""

    def __init__(self, cfg: SimConfig) -> None:
        self.hook = cfg.Hook

    def pull_before_pa(self, line: PitchingLine) -> bool:
        """Return ``True`` if ``line``'s pitcher must not face another batter.

        Starters are lifted at the pitch ceiling, relievers at their own cap.
        """

        hook = self.hook
        if line.started:
            return line.pitches >= hook.starter_ceiling
        return line.pitches >= hook.reliever_cap

    def pull_at_inning_break(self, line: PitchingLine, inning: int) -> bool:
        """Return ``True`` if the pitcher should not start ``inning``."""

        hook = self.hook
        if self.pull_before_pa(line):
            return True
        if line.started:
            # Third time through the order the early hook applies.
            return (
                times_through(line) >= hook.early_hook_tto
                and line.pitches > hook.early_hook_pitches
            )
        # From the late innings each reliever works a single inning.
        return inning >= hook.late_inning and line.outs > 0


@dataclass
class Bullpen:
    """Relievers available to one team for one game.

    ``setup`` holds the best non-closing relievers and ``middle`` the rest,
    rotated by the game's bullpen offset so the same arm is not always first
    out of the pen.
    """

    closer: Optional[int]
    setup: List[int]
    middle: List[int]
    used: Set[int] = field(default_factory=set)

    @classmethod
    def build(cls, relievers: Sequence[Player], offset: int = 0) -> "Bullpen":
        ranked = sorted(relievers, key=lambda p: (-p.overall, p.player_id))
        closers = [p for p in ranked if p.position == "CL"]
        closer = closers[0] if closers else (ranked[0] if ranked else None)
        rest = [p.player_id for p in ranked if p is not closer]
        setup = rest[:SETUP_ARMS]
        middle = rest[SETUP_ARMS:]
        if middle:
            shift = offset % len(middle)
            middle = middle[shift:] + middle[:shift]
        return cls(closer.player_id if closer is not None else None, setup, middle)

    def _first_available(self, candidates: Sequence[int]) -> Optional[int]:
        for player_id in candidates:
            if player_id not in self.used:
                return player_id
        return None

    @property
    def remaining(self) -> int:
        pool = self.setup + self.middle + ([self.closer] if self.closer is not None else [])
        return sum(1 for player_id in pool if player_id not in self.used)

    def select(self, inning: int, lead: int, cfg: SimConfig) -> Optional[int]:
        """Return the reliever to bring in, or ``None`` when no eligible arm is left.

        Parameters
        ----------
        inning:
            Inning the reliever will pitch in.
        lead:
            Run margin for the fielding team (negative when trailing).
        """

        hook = cfg.Hook
        choice: Optional[int] = None
        save_spot = inning >= hook.closer_inning and 1 <= lead <= hook.save_margin
        if save_spot and self.closer is not None and self.closer not in self.used:
            choice = self.closer
        if choice is None and inning >= hook.late_inning and abs(lead) <= hook.setup_margin:
            choice = self._first_available(self.setup)
        if choice is None:
            choice = self._first_available(self.middle)
        if choice is None:
            choice = self._first_available(self.setup)
        if choice is not None:
            self.used.add(choice)
        return choice


__all__ = ["ManagerHook", "Bullpen", "times_through"]
