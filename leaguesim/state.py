"""State containers for a single game and its box score."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from utils.exceptions import InvariantViolation


@dataclass(slots=True)
class BattingLine:
    """Batting statistics for one player in one game."""

    player_id: int
    team_id: int
    pa: int = 0  # Plate appearances
    ab: int = 0  # At bats
    r: int = 0  # Runs scored
    h: int = 0  # Hits
    doubles: int = 0
    triples: int = 0
    hr: int = 0  # Home runs
    rbi: int = 0  # Runs batted in
    bb: int = 0  # Walks
    so: int = 0  # Strikeouts
    hbp: int = 0  # Hit by pitch
    sf: int = 0  # Sacrifice flies
    gidp: int = 0  # Ground into double play
    roe: int = 0  # Reached on error
    fc: int = 0  # Fielder's choice
    sb: int = 0  # Stolen bases
    cs: int = 0  # Caught stealing
    re24: float = 0.0  # Run value added over the plate appearances


@dataclass(slots=True)
class PitchingLine:
    """Pitching statistics for one player in one game."""

    player_id: int
    team_id: int
    started: bool = False
    outs: int = 0
    bf: int = 0  # Batters faced
    h: int = 0
    r: int = 0
    er: int = 0
    bb: int = 0
    so: int = 0
    hbp: int = 0
    hr: int = 0
    pitches: int = 0
    pitch_load: float = 0.0  # Unrounded pitch count behind ``pitches``
    decision: Optional[str] = None  # "W", "L" or "SV"
    entered_inning: int = 1
    entered_lead: int = 0  # Score margin for the pitcher's team on entry
    faced: Dict[int, int] = field(default_factory=dict)  # batter id -> PAs

    @property
    def innings_pitched(self) -> float:
        return self.outs / 3


@dataclass(slots=True)
class Runner:
    """A runner on base.

    ``pitcher`` is charged if the runner scores.  ``earned`` is ``False`` for
    runners who reached on an error or as the extra-inning runner.
    """

    batter: BattingLine
    pitcher: PitchingLine
    speed: float
    earned: bool = True


# Base occupancy encoded as a bit mask: 1 = first, 2 = second, 4 = third.
def base_mask(bases: List[Optional[Runner]]) -> int:
    mask = 0
    if bases[0] is not None:
        mask |= 1
    if bases[1] is not None:
        mask |= 2
    if bases[2] is not None:
        mask |= 4
    return mask


@dataclass
class BoxScore:
    """Final record of one game.

    ``line_score`` holds runs per inning for each side (``"away"`` and
    ``"home"``); an unplayed bottom half is recorded as ``None``.
    ``outs`` counts the outs made by each batting side.
    """

    game_id: int
    season: int
    date: str
    home_team_id: int
    away_team_id: int
    home_runs: int
    away_runs: int
    innings: int
    line_score: Dict[str, List[Optional[int]]]
    outs: Dict[str, int]
    batting: Dict[int, BattingLine]
    pitching: Dict[int, PitchingLine]
    re24_observations: List[Tuple[int, int]] = field(default_factory=list)
    seed: int = 0

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------
    @property
    def winner_id(self) -> int:
        return self.home_team_id if self.home_runs > self.away_runs else self.away_team_id

    @property
    def loser_id(self) -> int:
        return self.away_team_id if self.home_runs > self.away_runs else self.home_team_id

    def team_batting(self, team_id: int) -> List[BattingLine]:
        return [line for line in self.batting.values() if line.team_id == team_id]

    def team_pitching(self, team_id: int) -> List[PitchingLine]:
        return [line for line in self.pitching.values() if line.team_id == team_id]

    def decisions(self) -> Dict[str, int]:
        """Return ``{"W": player_id, "L": player_id[, "SV": player_id]}``."""
        return {
            line.decision: line.player_id
            for line in self.pitching.values()
            if line.decision is not None
        }

    # ------------------------------------------------------------------
    # Closure
    # ------------------------------------------------------------------
    def problems(self) -> List[str]:
        """Return every internal inconsistency in the box score."""

        issues: List[str] = []
        if self.innings < 9:
            issues.append(f"only {self.innings} innings played")
        if self.home_runs == self.away_runs:
            issues.append("game ended tied")

        sides = (
            ("away", self.away_team_id, self.home_team_id, self.away_runs),
            ("home", self.home_team_id, self.away_team_id, self.home_runs),
        )
        for side, team_id, opponent_id, runs in sides:
            line = self.line_score.get(side, [])
            if len(line) != self.innings:
                issues.append(f"{side} line score has {len(line)} innings")
            if sum(r for r in line if r is not None) != runs:
                issues.append(f"{side} line score does not sum to {runs}")
            batting = self.team_batting(team_id)
            pitching = self.team_pitching(opponent_id)
            if sum(b.r for b in batting) != runs:
                issues.append(f"{side} batting runs do not sum to {runs}")
            if sum(p.r for p in pitching) != runs:
                issues.append(f"{side} runs charged to pitchers do not sum to {runs}")
            if sum(b.h for b in batting) != sum(p.h for p in pitching):
                issues.append(f"{side} hits disagree between batting and pitching")
            if sum(p.outs for p in pitching) != self.outs.get(side, -1):
                issues.append(f"{side} outs disagree between batting and pitching")
            for p in pitching:
                if p.er > p.r:
                    issues.append(f"pitcher {p.player_id} has more earned than total runs")

        played = [r is not None for r in self.line_score.get("home", [])]
        full_home = 3 * (self.innings - 1)
        if self.outs.get("away") != 3 * self.innings:
            issues.append(f"away side made {self.outs.get('away')} outs in {self.innings} innings")
        home_outs = self.outs.get("home", -1)
        if played and played[-1]:
            if not full_home <= home_outs <= full_home + 3:
                issues.append(f"home side made {home_outs} outs in {self.innings} innings")
            if home_outs < full_home + 3 and self.home_runs <= self.away_runs:
                issues.append("home half ended early without a walk-off")
        elif home_outs != full_home:
            issues.append(f"home side made {home_outs} outs with the last bottom half unplayed")

        decisions = [p for p in self.pitching.values() if p.decision is not None]
        wins = [p for p in decisions if p.decision == "W"]
        losses = [p for p in decisions if p.decision == "L"]
        saves = [p for p in decisions if p.decision == "SV"]
        if len(wins) != 1 or len(losses) != 1 or len(saves) > 1:
            issues.append(
                f"expected one W, one L and at most one SV, got {len(wins)}/{len(losses)}/{len(saves)}"
            )
        else:
            if wins[0].team_id != self.winner_id:
                issues.append("winning pitcher is not on the winning team")
            if losses[0].team_id != self.loser_id:
                issues.append("losing pitcher is not on the losing team")
            if saves and (saves[0].team_id != self.winner_id or saves[0] is wins[0]):
                issues.append("save credited incorrectly")
        return issues

    def check(self) -> "BoxScore":
        """Raise :class:`InvariantViolation` if the box score does not close."""

        issues = self.problems()
        if issues:
            raise InvariantViolation(f"Game {self.game_id} box score does not close: " + "; ".join(issues))
        return self


__all__ = ["BattingLine", "PitchingLine", "Runner", "BoxScore", "base_mask"]
