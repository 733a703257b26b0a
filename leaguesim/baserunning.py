"""Runner advancement for each plate appearance outcome.

Bases are a three element list (first, second, third) holding
:class:`~leaguesim.state.Runner` objects or ``None``.  :meth:`Baserunning.advance`
moves runners in place and returns the runners who scored, lead runner first,
together with the number of outs recorded on the play.

Optional extra-base attempts (going first to third, scoring from second on a
single, scoring from first on a double) are decided the way a third-base
coach would: estimate the chance the runner is safe from his speed and how
deep the ball was hit, then send him only when the run expectancy of sending
beats holding, using the current RE24 table.

Between plate appearances :meth:`Baserunning.steal` lets the lead runner with
an open base ahead try to steal it; nobody steals home.
"""
from __future__ import annotations

from typing import Callable, List, NamedTuple, Optional, Tuple

from leaguesim.config import SimConfig
from leaguesim.plate_appearance import (
    DOUBLE,
    DOUBLE_PLAY,
    FIELDERS_CHOICE,
    FLY_OUT,
    GROUND_OUT,
    HIT_BY_PITCH,
    HOME_RUN,
    LINE_OUT,
    POP_OUT,
    REACHED_ON_ERROR,
    SAC_FLY,
    SINGLE,
    STRIKEOUT,
    TRIPLE,
    WALK,
)
from leaguesim.probability import clamp
from leaguesim.run_values import RunValueModel
from leaguesim.state import Runner

Bases = List[Optional[Runner]]


class PlayResult(NamedTuple):
    scored: List[Runner]
    outs: int
    rbi: bool  # whether runs on the play are credited as RBI


class StealAttempt(NamedTuple):
    runner: Runner
    from_base: int  # 0 = first, 1 = second
    success: bool


class Baserunning:
    """Advance runners using ``cfg.Baserunning`` and an RE24 table."""

    def __init__(self, cfg: SimConfig, run_values: RunValueModel) -> None:
        self.cfg = cfg
        self.run_values = run_values
        self.br = cfg.Baserunning
        self.batted = cfg.BattedBall
        self.stealing = cfg.Stealing

    # ------------------------------------------------------------------
    # Stolen bases
    # ------------------------------------------------------------------
    def steal_attempt_chance(self, speed: float, from_base: int) -> float:
        """Chance a runner on ``from_base`` breaks for the next base."""
        st = self.stealing
        chance = clamp(
            st.attempt_base + st.attempt_speed_slope * (speed - 400.0) / 100.0,
            0.0,
            st.attempt_max,
        )
        return chance * st.third_base_share if from_base == 1 else chance

    def steal_success_chance(self, speed: float, hold: float) -> float:
        """Chance the runner is safe against a pitcher with ``hold`` rating."""
        st = self.stealing
        return clamp(
            st.success_base
            + st.success_speed_slope * (speed - 400.0) / 100.0
            - st.hold_slope * (hold - 400.0) / 100.0,
            st.success_min,
            st.success_max,
        )

    def steal(
        self, bases: Bases, hold: float, rand: Callable[[], float]
    ) -> Optional[StealAttempt]:
        """Let the lead runner with an open base ahead try to steal it.

        The runner moves up on success and is removed from ``bases`` when
        caught.  Returns ``None`` when nobody goes.
        """

        for base in (1, 0):
            runner = bases[base]
            if runner is None or bases[base + 1] is not None:
                continue
            if rand() >= self.steal_attempt_chance(runner.speed, base):
                return None
            success = rand() < self.steal_success_chance(runner.speed, hold)
            bases[base] = None
            if success:
                bases[base + 1] = runner
            return StealAttempt(runner, base, success)
        return None

    # ------------------------------------------------------------------
    # Send decisions
    # ------------------------------------------------------------------
    def send_chance(self, speed: float, spread: float, depth: float) -> float:
        """Chance the runner is safe when sent.

        ``depth`` is a uniform draw describing how favourable the ball was
        for the runner (0 = perfect).  Faster runners add to the chance.
        """
        return clamp(
            1.0 - spread * depth * depth + (speed - 400.0) / 550.0 * self.br.speed_weight,
            0.05,
            0.99,
        )

    def _attempt(
        self,
        rand: Callable[[], float],
        runner: Runner,
        spread: float,
        outs: int,
        hold_mask: int,
        safe_mask: int,
        out_mask: int,
        runs_on_safe: int,
    ) -> Optional[bool]:
        """Return ``True`` if sent and safe, ``False`` if thrown out, ``None`` if held."""

        p = self.send_chance(runner.speed, spread, rand())
        re = self.run_values.expected_runs
        send_value = p * (runs_on_safe + re(outs, safe_mask)) + (1.0 - p) * re(outs + 1, out_mask)
        if send_value < re(outs, hold_mask):
            return None
        return rand() < p

    # ------------------------------------------------------------------
    # Outcome handlers
    # ------------------------------------------------------------------
    def advance(
        self,
        outcome: str,
        bases: Bases,
        batter: Runner,
        outs: int,
        rand: Callable[[], float],
    ) -> PlayResult:
        """Apply ``outcome`` to ``bases`` with ``outs`` already recorded."""

        if outcome == STRIKEOUT or outcome == LINE_OUT or outcome == POP_OUT:
            return PlayResult([], 1, True)
        if outcome == WALK or outcome == HIT_BY_PITCH:
            return PlayResult(self._force(bases, batter), 0, True)
        if outcome == HOME_RUN:
            scored = [r for r in (bases[2], bases[1], bases[0]) if r is not None]
            scored.append(batter)
            bases[0] = bases[1] = bases[2] = None
            return PlayResult(scored, 0, True)
        if outcome == TRIPLE:
            scored = [r for r in (bases[2], bases[1], bases[0]) if r is not None]
            bases[0] = bases[1] = None
            bases[2] = batter
            return PlayResult(scored, 0, True)
        if outcome == DOUBLE:
            return self._double(bases, batter, outs, rand)
        if outcome == SINGLE:
            return self._single(bases, batter, outs, rand)
        if outcome == REACHED_ON_ERROR:
            return self._error(bases, batter)
        if outcome == GROUND_OUT:
            return self._ground_out(bases, outs, rand)
        if outcome == DOUBLE_PLAY:
            return self._double_play(bases, outs, rand)
        if outcome == FIELDERS_CHOICE:
            return self._fielders_choice(bases, batter)
        if outcome == SAC_FLY:
            return self._sac_fly(bases, outs, rand)
        if outcome == FLY_OUT:
            return self._fly_out(bases, outs, rand)
        raise ValueError(f"Unknown outcome: {outcome}")

    @staticmethod
    def _force(bases: Bases, batter: Runner) -> List[Runner]:
        scored: List[Runner] = []
        if bases[0] is not None:
            if bases[1] is not None:
                if bases[2] is not None:
                    scored.append(bases[2])
                bases[2] = bases[1]
            bases[1] = bases[0]
        bases[0] = batter
        return scored

    def _single(self, bases: Bases, batter: Runner, outs: int, rand) -> PlayResult:
        first, second, third = bases
        scored: List[Runner] = []
        made = 0
        if third is not None:
            scored.append(third)
        bases[0], bases[1], bases[2] = batter, None, None
        trail = 2 if first is not None else 0

        if second is not None:
            spread = self.br.two_out_spread if outs == 2 else self.br.single_send_spread
            result = self._attempt(
                rand, second, spread, outs, 1 | trail | 4, 1 | trail, 1 | trail, 1
            )
            if result is None:
                bases[2] = second
            elif result:
                scored.append(second)
            else:
                made += 1

        if first is not None:
            bases[1] = first
            if bases[2] is None and outs + made < 3:
                result = self._attempt(
                    rand, first, self.br.first_to_third_spread, outs + made, 1 | 2, 1 | 4, 1, 0
                )
                if result:
                    bases[1], bases[2] = None, first
                elif result is False:
                    bases[1] = None
                    made += 1
        return PlayResult(scored, made, True)

    def _double(self, bases: Bases, batter: Runner, outs: int, rand) -> PlayResult:
        first, second, third = bases
        scored = [r for r in (third, second) if r is not None]
        made = 0
        bases[0], bases[1], bases[2] = None, batter, None
        if first is not None:
            spread = self.br.two_out_spread if outs == 2 else self.br.double_send_spread
            result = self._attempt(rand, first, spread, outs, 2 | 4, 2, 2, 1)
            if result is None:
                bases[2] = first
            elif result:
                scored.append(first)
            else:
                made += 1
        return PlayResult(scored, made, True)

    @staticmethod
    def _error(bases: Bases, batter: Runner) -> PlayResult:
        first, second, third = bases
        scored = [third] if third is not None else []
        bases[2], bases[1], bases[0] = second, first, batter
        return PlayResult(scored, 0, False)

    def _ground_out(self, bases: Bases, outs: int, rand) -> PlayResult:
        if outs + 1 >= 3:
            return PlayResult([], 1, True)
        first, second, third = bases
        scored: List[Runner] = []
        if third is not None:
            if rand() < self.batted.gb_score_from_third:
                scored.append(third)
                bases[2] = None
        if second is not None and bases[2] is None:
            bases[2], bases[1] = second, None
        if first is not None and bases[1] is None:
            bases[1], bases[0] = first, None
        return PlayResult(scored, 1, True)

    def _double_play(self, bases: Bases, outs: int, rand) -> PlayResult:
        # Runner from first and the batter are retired.
        bases[0] = None
        if outs + 2 >= 3:
            return PlayResult([], 2, False)
        scored: List[Runner] = []
        third = bases[2]
        if third is not None and rand() < self.batted.gb_score_from_third:
            scored.append(third)
            bases[2] = None
        if bases[1] is not None and bases[2] is None:
            bases[2], bases[1] = bases[1], None
        return PlayResult(scored, 2, False)

    @staticmethod
    def _fielders_choice(bases: Bases, batter: Runner) -> PlayResult:
        # The lead forced runner is retired and the batter reaches first.
        first, second, third = bases
        if second is None:
            bases[0], bases[1] = batter, None
        elif third is None:
            bases[0], bases[1], bases[2] = batter, first, None
        else:
            bases[0], bases[1], bases[2] = batter, first, second
        return PlayResult([], 1, True)

    def _sac_fly(self, bases: Bases, outs: int, rand) -> PlayResult:
        third = bases[2]
        bases[2] = None
        scored = [third] if third is not None else []
        second = bases[1]
        if second is not None and outs + 1 < 3 and rand() < self.batted.tag_second_to_third:
            bases[2], bases[1] = second, None
        return PlayResult(scored, 1, True)

    def _fly_out(self, bases: Bases, outs: int, rand) -> PlayResult:
        second = bases[1]
        if (
            second is not None
            and bases[2] is None
            and outs + 1 < 3
            and rand() < self.batted.tag_second_to_third
        ):
            bases[2], bases[1] = second, None
        return PlayResult([], 1, True)


__all__ = ["Baserunning", "PlayResult", "StealAttempt", "Bases"]
