import pytest

from leaguesim.service_time import accrue_service, apply_service_time, super_two_ids
from tests.util.factories import make_hitter


def test_accrue_service_for_active_major_leaguers():
    active = make_hitter(1)
    bench = make_hitter(2)
    bench.active = False
    minors = make_hitter(3)
    minors.level = "AAA"
    accrued = accrue_service([active, bench, minors], 186)
    assert accrued == {1: 172}
    assert accrue_service([active], 150) == {1: 150}
    with pytest.raises(ValueError):
        accrue_service([active], -1)


def test_apply_service_time_copies_players():
    first = make_hitter(1)
    second = make_hitter(2)
    updated = apply_service_time([first, second], {1: 172})
    assert updated[0].service_days == 172
    assert first.service_days == 0
    assert updated[1] is second


def test_super_two_takes_top_share():
    players = []
    for i in range(10):
        player = make_hitter(i + 1)
        player.service_days = 344 + i * 10
        players.append(player)
    veteran = make_hitter(99)
    veteran.service_days = 600
    players.append(veteran)
    assert super_two_ids(players) == [10, 9, 8]
