import pytest

from core.services.interfaces import ImageLoadFailure, PrefetchFailure
from core.services.prefetch_cache import PrefetchCache, in_window, window_positions
from fakes import ManualRunner, make_descriptors


def make_cache(lookahead=3):
    runner = ManualRunner()
    loaded: list[str] = []

    def loader(url):
        loaded.append(url)
        return url

    return PrefetchCache(runner, loader, lookahead=lookahead), runner, loaded


def test_window_positions_wrap_around():
    assert window_positions(45, 47, 3) == [45, 46, 0]
    assert window_positions(0, 2, 3) == [0, 1]
    assert window_positions(0, 0, 3) == []


def test_in_window():
    assert in_window(46, 45, 47, 3)
    assert in_window(0, 45, 47, 3)
    assert not in_window(1, 45, 47, 3)
    assert not in_window(44, 45, 47, 3)


def test_refill_issues_window_and_caches_on_completion():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    assert cache.refill(0, items, epoch=1) == [0, 1, 2]
    assert cache.in_flight == {0, 1, 2}
    assert len(cache) == 0

    runner.run_all()
    assert cache.positions == {0, 1, 2}
    assert cache.in_flight == frozenset()


def test_refill_skips_cached_and_in_flight_positions():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    cache.refill(0, items, epoch=1)
    runner.run_next()
    assert cache.refill(1, items, epoch=2) == [3]
    runner.run_all()
    assert cache.snapshot() == (0, 1, 2, 3)


def test_late_completion_for_passed_position_is_discarded():
    cache, runner, _ = make_cache()
    items = make_descriptors(47)
    cache.refill(0, items, epoch=1)
    for i, epoch in zip(range(1, 6), range(2, 7)):
        cache.refill(i, items, epoch=epoch)
    runner.run_all()
    assert cache.snapshot() == (5, 6, 7)


def test_completion_under_current_epoch_is_kept():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    cache.refill(4, items, epoch=3)
    runner.run_all()
    assert 4 in cache and 6 in cache


def test_failed_load_is_not_cached_and_can_be_retried():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    cache.refill(0, items, epoch=1)
    first = runner.pending[0]
    runner.fail(first, OSError("boom"))
    runner.run_all()
    assert cache.positions == {1, 2}
    assert cache.refill(0, items, epoch=1) == [0]


def test_clear_discards_in_flight_completions():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    cache.refill(0, items, epoch=1)
    cache.clear()
    assert len(cache) == 0
    runner.run_all()
    assert len(cache) == 0
    assert cache.in_flight == frozenset()


def test_clear_discards_late_failures_too():
    cache, runner, _ = make_cache()
    items = make_descriptors(10)
    cache.refill(0, items, epoch=1)
    tokens = runner.pending
    cache.clear()
    cache.refill(0, items, epoch=2)
    for token in tokens:
        runner.fail(token, OSError("late"))
    assert cache.in_flight == {0, 1, 2}


def test_window_near_end_prefetches_wrapped_positions():
    cache, runner, loaded = make_cache()
    items = make_descriptors(47)
    assert cache.refill(45, items, epoch=1) == [45, 46, 0]
    runner.run_all()
    assert cache.snapshot() == (0, 45, 46)
    assert loaded[-1] == items[0].url


def test_small_set_does_not_issue_duplicates():
    cache, runner, _ = make_cache(lookahead=5)
    assert cache.refill(1, make_descriptors(2), epoch=1) == [1, 0]


def test_loader_errors_surface_as_prefetch_failures():
    runner = ManualRunner()

    def loader(url):
        raise ImageLoadFailure(url)

    cache = PrefetchCache(runner, loader, lookahead=1)
    cache.refill(0, make_descriptors(3), epoch=1)
    token = runner.pending[0]
    fn, _on_done, _on_error = runner._tasks.pop(token)
    with pytest.raises(PrefetchFailure):
        fn()


def test_completion_rechecked_after_set_grows_in_same_view():
    runner = ManualRunner()
    size = {"n": 30}
    cache = PrefetchCache(runner, lambda url: url, lookahead=3, size=lambda: size["n"])
    cache.refill(28, make_descriptors(30), epoch=4)
    size["n"] = 47
    runner.run_all()
    assert cache.snapshot() == (28, 29)
