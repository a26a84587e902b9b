from core.models import OfflineAuto, OfflineManual, Online
from core.services.navigation import NavigationStateMachine


def make_nav(size=10):
    box = {"size": size}
    nav = NavigationStateMachine(lambda: box["size"])
    return nav, box


def test_online_next_wraps_around():
    nav, _ = make_nav(5)
    seen = [nav.next() for _ in range(5)]
    assert seen == [1, 2, 3, 4, 0]


def test_online_previous_from_zero_goes_to_last():
    nav, _ = make_nav(5)
    assert nav.previous() == 4


def test_navigation_on_empty_set_stays_at_zero():
    nav, _ = make_nav(0)
    assert nav.next() == 0
    assert nav.previous() == 0


def test_every_step_bumps_epoch():
    nav, _ = make_nav(5)
    start = nav.epoch
    nav.next()
    nav.previous()
    nav.jump_to(3)
    assert nav.epoch == start + 3


def test_manual_offline_cycles_through_snapshot():
    nav, _ = make_nav(47)
    for _ in range(5):
        nav.next()
    mode = nav.toggle_offline([7, 5, 6])
    assert isinstance(mode, OfflineManual)
    assert nav.offline_sequence == (5, 6, 7)
    assert nav.current_index == 5
    assert [nav.next() for _ in range(4)] == [6, 7, 5, 6]
    assert [nav.previous() for _ in range(3)] == [5, 7, 6]


def test_offline_entry_pins_to_first_cached_when_current_not_cached():
    nav, _ = make_nav(47)
    nav.jump_to(20)
    nav.toggle_offline([3, 4])
    assert nav.current_index == 3


def test_offline_with_empty_snapshot_is_pinned_to_zero():
    nav, _ = make_nav(47)
    nav.jump_to(9)
    nav.toggle_offline([])
    assert nav.current_index == 0
    assert nav.next() == 0
    assert nav.previous() == 0


def test_toggle_twice_without_navigation_restores_position():
    nav, _ = make_nav(47)
    nav.jump_to(20)
    nav.toggle_offline([1, 2])
    assert nav.current_index == 1
    nav.toggle_offline([1, 2])
    assert isinstance(nav.mode, Online)
    assert nav.current_index == 20


def test_toggle_back_online_after_navigation_keeps_offline_position():
    nav, _ = make_nav(47)
    nav.jump_to(20)
    nav.toggle_offline([1, 2])
    nav.next()
    nav.toggle_offline([1, 2])
    assert nav.current_index == 2
    assert nav.next() == 3


def test_auto_offline_does_not_override_manual():
    nav, _ = make_nav(10)
    nav.toggle_offline([0, 1])
    assert nav.enter_auto_offline([0, 1, 2]) is False
    assert isinstance(nav.mode, OfflineManual)
    assert nav.offline_sequence == (0, 1)


def test_restore_online_only_leaves_auto_offline():
    nav, _ = make_nav(10)
    nav.toggle_offline([0])
    assert nav.restore_online() is False
    assert isinstance(nav.mode, OfflineManual)

    nav.toggle_offline([])
    assert nav.enter_auto_offline([0, 1]) is True
    assert isinstance(nav.mode, OfflineAuto)
    assert nav.restore_online() is True
    assert isinstance(nav.mode, Online)


def test_jump_to_offline_only_reaches_snapshot_positions():
    nav, _ = make_nav(10)
    nav.toggle_offline([2, 4, 6])
    assert nav.jump_to(5) is False
    assert nav.jump_to(6) is True
    assert nav.next() == 2


def test_jump_to_rejects_out_of_range_online():
    nav, _ = make_nav(10)
    assert nav.jump_to(10) is False
    assert nav.jump_to(-1) is False
    assert nav.current_index == 0


def test_reset_returns_online_at_zero():
    nav, _ = make_nav(10)
    nav.jump_to(7)
    nav.toggle_offline([7])
    epoch = nav.epoch
    nav.reset()
    assert isinstance(nav.mode, Online)
    assert nav.current_index == 0
    assert nav.offline_sequence == ()
    assert nav.epoch > epoch


def test_online_restore_skips_entry_index_beyond_shrunk_set():
    nav, box = make_nav(10)
    nav.jump_to(8)
    nav.toggle_offline([1])
    box["size"] = 5
    nav.toggle_offline([1])
    assert nav.current_index == 1
