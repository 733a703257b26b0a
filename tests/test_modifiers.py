import pytest

from leaguesim.config import SimConfig
from leaguesim.modifiers import (
    combined_modifier,
    fatigue_modifier,
    has_platoon_advantage,
    platoon_modifier,
    times_through_order_bonus,
)

CFG = SimConfig.default()


def test_times_through_order_penalty_grows():
    tto = CFG.TimesThroughOrder
    assert times_through_order_bonus(1, 3, CFG) == 0.0
    assert times_through_order_bonus(2, tto.arsenal_pivot, CFG) == pytest.approx(tto.second)
    assert times_through_order_bonus(3, tto.arsenal_pivot, CFG) == pytest.approx(tto.third)
    assert times_through_order_bonus(3, 5, CFG) < times_through_order_bonus(3, 2, CFG)
    with pytest.raises(ValueError):
        times_through_order_bonus(0, 3, CFG)


def test_platoon_advantage():
    assert has_platoon_advantage("L", "R")
    assert not has_platoon_advantage("R", "R")
    assert not has_platoon_advantage("S", "L")
    assert not has_platoon_advantage("S", "R")
    with pytest.raises(ValueError):
        has_platoon_advantage("X", "R")
    with pytest.raises(ValueError):
        has_platoon_advantage("R", "S")


def test_platoon_modifier_sign_and_switch_hitters():
    opposite = platoon_modifier("L", "R", 1.0, 0.0, CFG)
    same = platoon_modifier("R", "R", 1.0, 0.0, CFG)
    switch = platoon_modifier("S", "R", 1.0, 0.0, CFG)
    assert opposite == pytest.approx(CFG.Platoon.base)
    assert same == pytest.approx(-CFG.Platoon.base)
    assert switch == pytest.approx(-CFG.Platoon.base)
    assert platoon_modifier("S", "L", 0.5, 0.0, CFG) == pytest.approx(-CFG.Platoon.base / 2)
    assert platoon_modifier("R", "R", 0.0, 0.0, CFG) == 0.0


def test_fatigue_rises_with_pitch_count():
    values = [fatigue_modifier(n, 0.55, 400, CFG) for n in (0, 30, 60, 90, 120)]
    assert values[0] == 0.0
    assert values == sorted(values)
    assert values[-1] > values[1]
    assert fatigue_modifier(90, 0.55, 500, CFG) < fatigue_modifier(90, 0.55, 300, CFG)
    assert fatigue_modifier(90, 0.70, 400, CFG) > fatigue_modifier(90, 0.40, 400, CFG)
    with pytest.raises(ValueError):
        fatigue_modifier(-1, 0.55, 400, CFG)


def test_combined_modifier_is_squashed():
    limit = CFG.Modifiers.squash_limit
    assert combined_modifier(0.0, 0.0, 0.0, CFG) == 0.0
    assert combined_modifier(2.0, 2.0, 2.0, CFG) < limit
    assert combined_modifier(-0.9, -0.9, -0.9, CFG) > -limit
    small = combined_modifier(0.01, 0.0, 0.0, CFG)
    assert small == pytest.approx(0.01, abs=1e-3)
