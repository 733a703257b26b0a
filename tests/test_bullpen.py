from leaguesim.bullpen import Bullpen, ManagerHook, times_through
from leaguesim.config import SimConfig
from leaguesim.state import PitchingLine
from tests.util.factories import make_pitcher

CFG = SimConfig.default()


def starter(**stats) -> PitchingLine:
    return PitchingLine(1, 1, started=True, **stats)


def reliever(**stats) -> PitchingLine:
    return PitchingLine(2, 1, **stats)


def test_times_through():
    assert times_through(starter()) == 1
    assert times_through(starter(bf=8)) == 1
    assert times_through(starter(bf=9)) == 2
    assert times_through(starter(bf=19)) == 3


def test_starter_pulled_at_pitch_ceiling():
    hook = ManagerHook(CFG)
    assert hook.pull_before_pa(starter(pitches=110))
    assert not hook.pull_before_pa(starter(pitches=109))
    # Runs allowed never force a starter out mid-inning.
    assert not hook.pull_before_pa(starter(pitches=60, r=8))


def test_reliever_pulled_at_cap():
    hook = ManagerHook(CFG)
    assert hook.pull_before_pa(reliever(pitches=35))
    assert not hook.pull_before_pa(reliever(pitches=34))


def test_starter_inning_break_hook():
    hook = ManagerHook(CFG)
    # First two trips through the order are never cut short at the break.
    assert not hook.pull_at_inning_break(starter(bf=17, pitches=100), 7)
    # Third time through, at or under the early hook pitch count.
    assert not hook.pull_at_inning_break(starter(bf=20, pitches=75, r=4), 7)
    assert hook.pull_at_inning_break(starter(bf=20, pitches=76), 4)
    assert hook.pull_at_inning_break(starter(bf=18, pitches=90), 6)


def test_early_hook_ignores_runs_allowed():
    hook = ManagerHook(CFG)
    # A starter cruising through his third turn still comes out past 75 pitches.
    assert hook.pull_at_inning_break(starter(bf=19, pitches=80, r=0), 7)
    assert hook.pull_at_inning_break(starter(bf=19, pitches=80, r=5), 7)


def test_reliever_works_one_late_inning():
    hook = ManagerHook(CFG)
    assert hook.pull_at_inning_break(reliever(outs=3, pitches=15), 7)
    assert not hook.pull_at_inning_break(reliever(outs=3, pitches=15), 6)
    assert not hook.pull_at_inning_break(reliever(outs=0), 8)


def _relievers():
    closer = make_pitcher(50, position="CL", stuff=470)
    arms = [make_pitcher(51 + i, position="RP", stuff=460 - 20 * i) for i in range(6)]
    return closer, arms


def test_build_ranks_closer_setup_and_middle():
    closer, arms = _relievers()
    pen = Bullpen.build([arms[3], closer, arms[0], arms[5], arms[1], arms[2], arms[4]])
    assert pen.closer == 50
    assert pen.setup == [51, 52]
    assert pen.middle == [53, 54, 55, 56]
    assert pen.remaining == 7


def test_build_rotates_middle_relievers():
    closer, arms = _relievers()
    pen = Bullpen.build([closer] + arms, offset=5)
    assert pen.setup == [51, 52]
    assert pen.middle == [54, 55, 56, 53]


def test_build_without_closer_uses_best_reliever():
    _, arms = _relievers()
    pen = Bullpen.build(arms)
    assert pen.closer == 51
    assert pen.setup == [52, 53]


def test_closer_only_in_save_situations():
    closer, arms = _relievers()
    pen = Bullpen.build([closer] + arms)
    assert pen.select(9, 4, CFG) == 53
    assert pen.select(9, -1, CFG) == 51
    assert pen.select(9, 2, CFG) == 50
    assert 50 in pen.used


def test_setup_men_in_close_late_games():
    closer, arms = _relievers()
    pen = Bullpen.build([closer] + arms)
    assert pen.select(8, 1, CFG) == 51
    assert pen.select(7, 0, CFG) == 52
    assert pen.select(8, 1, CFG) == 53
    assert pen.select(4, 0, CFG) == 54


def test_exhausted_bullpen_returns_none():
    closer, arms = _relievers()
    pen = Bullpen.build([closer] + arms[:2])
    assert pen.select(3, 0, CFG) == 51
    assert pen.select(3, 0, CFG) == 52
    # Only the closer is left and this is not a save situation.
    assert pen.select(3, 0, CFG) is None
    assert pen.remaining == 1
    assert pen.select(9, 1, CFG) == 50
    assert pen.remaining == 0
