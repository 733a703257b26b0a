"""Contextual at-bat modifiers.

Each helper returns a signed adjustment from the batting side's point of view:
positive values favour the hitter.  :func:`combined_modifier` folds the three
sources together multiplicatively and squashes the result so no stack of
modifiers can swing an at-bat by more than the configured limit.
"""
from __future__ import annotations

from leaguesim.config import SimConfig
from leaguesim.probability import clamp, squash


def times_through_order_bonus(times_through: int, arsenal: int, cfg: SimConfig) -> float:
    """Bonus for the batter facing a pitcher for the ``times_through`` time.

    The first look carries no bonus, the second and third-plus use the
    configured values.  Pitchers with deeper arsenals shrink the penalty and
    thin arsenals widen it.
    """

    if times_through < 1:
        raise ValueError("times_through starts at 1")
    tto = cfg.TimesThroughOrder
    if times_through == 1:
        return 0.0
    base = tto.second if times_through == 2 else tto.third
    scale = 1.0 - (arsenal - tto.arsenal_pivot) * tto.arsenal_step
    return base * max(0.0, scale)


def has_platoon_advantage(bats: str, throws: str) -> bool:
    """Return ``True`` when the batter holds the handedness advantage."""

    if bats not in ("R", "L", "S"):
        raise ValueError(f"Unknown batting side: {bats}")
    if throws not in ("R", "L"):
        raise ValueError(f"Unknown throwing hand: {throws}")
    # Switch hitters never hold the edge; they fall on the same-side branch.
    return bats != "S" and bats != throws


def platoon_modifier(
    bats: str, throws: str, sensitivity: float, tendency: float, cfg: SimConfig
) -> float:
    """Platoon swing for a batter/pitcher handedness pairing.

    Opposite hands boost the batter; same hands or a switch hitter suppress
    him.  The size scales with the batter's platoon sensitivity.  The
    pitcher's own platoon tendency adds a small tilt independent of the
    matchup.
    """

    plat = cfg.Platoon
    advantage = has_platoon_advantage(bats, throws)
    split = plat.base * abs(sensitivity)
    return (split if advantage else -split) + tendency * plat.tendency_scale


def fatigue_modifier(
    pitch_count: int, fastball_pct: float, stamina: float, cfg: SimConfig
) -> float:
    """Hitter bonus from pitcher fatigue after ``pitch_count`` pitches.

    Pitch count is converted to innings-equivalents and multiplied by a
    per-inning velocity loss, stressed further by heavy fastball usage and
    scaled by stamina.  The resulting velocity loss maps to a continuous,
    piecewise-linear bonus that steepens as the pitcher tires.
    """

    if pitch_count < 0:
        raise ValueError("pitch_count must be non-negative")
    fat = cfg.Fatigue
    stamina_factor = clamp(400.0 / max(stamina, 1.0), fat.stamina_floor, fat.stamina_ceiling)
    velo_loss = (
        (pitch_count / fat.pitches_per_inning)
        * fat.velo_loss_per_inning
        * (1.0 + (fastball_pct - 0.5) * fat.fastball_stress)
        * stamina_factor
    )
    if velo_loss < 1.0:
        return fat.tier1_rate * velo_loss
    if velo_loss < 2.0:
        return fat.tier1_rate + (velo_loss - 1.0) * fat.tier2_rate
    return fat.tier1_rate + fat.tier2_rate + (velo_loss - 2.0) * fat.tier3_rate


def combined_modifier(fatigue: float, tto: float, platoon: float, cfg: SimConfig) -> float:
    """Fold the three modifiers together and squash to the configured limit."""

    raw = (1.0 + fatigue) * (1.0 + tto) * (1.0 + platoon) - 1.0
    return squash(raw, cfg.Modifiers.squash_limit)


__all__ = [
    "times_through_order_bonus",
    "has_platoon_advantage",
    "platoon_modifier",
    "fatigue_modifier",
    "combined_modifier",
]
