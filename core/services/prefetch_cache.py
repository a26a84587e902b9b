"""Bounded lookahead cache of image positions.

A position is recorded as cached only when its load completes *and* it is
still inside the lookahead window of the position being viewed at completion
time. Loads are tagged with the navigation epoch they were issued under and
the cache generation; late completions from a cleared cache, or for positions
the viewer has already moved past, are discarded instead of cancelled.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from core.models import ImageDescriptor
from core.services.interfaces import ITaskRunner, PrefetchFailure, SlideshowError

DEFAULT_LOOKAHEAD = 3


def window_positions(current: int, size: int, lookahead: int) -> list[int]:
    """Positions `[current, current + lookahead - 1] mod size`, without repeats."""
    if size <= 0 or lookahead <= 0:
        return []
    seen: list[int] = []
    for offset in range(lookahead):
        pos = (current + offset) % size
        if pos not in seen:
            seen.append(pos)
    return seen


def in_window(position: int, current: int, size: int, lookahead: int) -> bool:
    """True if `position` lies in the lookahead window starting at `current`."""
    if size <= 0:
        return False
    return (position - current) % size < min(lookahead, size)


class PrefetchCache:
    """Keeps the next `lookahead` positions warm through `loader`.

    `size`, when given, reports the live metadata length so completions are
    validated against the current shape of the set.
    """

    def __init__(
        self,
        runner: ITaskRunner,
        loader: Callable[[str], Any],
        lookahead: int = DEFAULT_LOOKAHEAD,
        size: Callable[[], int] | None = None,
    ) -> None:
        self._runner = runner
        self._live_size = size
        self._loader = loader
        self._lookahead = max(1, int(lookahead))
        self._cached: set[int] = set()
        self._in_flight: set[int] = set()
        self._generation = 0
        self._epoch = 0
        self._current = 0
        self._size = 0

    @property
    def positions(self) -> frozenset[int]:
        return frozenset(self._cached)

    @property
    def in_flight(self) -> frozenset[int]:
        return frozenset(self._in_flight)

    def __contains__(self, position: object) -> bool:
        return position in self._cached

    def __len__(self) -> int:
        return len(self._cached)

    def snapshot(self) -> tuple[int, ...]:
        """Sorted cached positions; used as the offline browsing sequence."""
        return tuple(sorted(self._cached))

    def clear(self) -> None:
        """Forget everything; completions of earlier loads will be ignored."""
        self._cached.clear()
        self._in_flight.clear()
        self._generation += 1
        self._current = 0
        self._size = 0

    def track(self, current: int, size: int, epoch: int) -> None:
        """Record the position being viewed; completions validate against it."""
        self._current = current
        self._size = size
        self._epoch = epoch

    def refill(self, current: int, items: Sequence[ImageDescriptor], epoch: int) -> list[int]:
        """Issue loads for window positions not yet cached or in flight.

        Returns the positions that were requested. Never blocks.
        """
        size = len(items)
        self.track(current, size, epoch)
        issued: list[int] = []
        for pos in window_positions(current, size, self._lookahead):
            if pos in self._cached or pos in self._in_flight:
                continue
            self._issue(pos, items[pos], epoch)
            issued.append(pos)
        return issued

    def _issue(self, position: int, descriptor: ImageDescriptor, epoch: int) -> None:
        generation = self._generation
        url = descriptor.url
        self._in_flight.add(position)
        logger.info("Prefetching image {}: {}", position, url)

        def _load() -> Any:
            try:
                return self._loader(url)
            except SlideshowError as ex:
                raise PrefetchFailure(f"{url}: {ex}") from ex

        self._runner.submit(
            _load,
            lambda _image: self._on_loaded(position, url, epoch, generation),
            lambda exc: self._on_failed(position, url, generation, exc),
        )

    def _is_still_relevant(self, position: int, epoch: int) -> bool:
        # pagination may have reshaped the window since the last track()
        size = self._live_size() if self._live_size is not None else self._size
        if epoch == self._epoch and size == self._size:
            return True
        return in_window(position, self._current, size, self._lookahead)

    def _on_loaded(self, position: int, url: str, epoch: int, generation: int) -> None:
        if generation != self._generation:
            logger.info("Image prefetch completed but was cancelled {}", position)
            return
        self._in_flight.discard(position)
        if not self._is_still_relevant(position, epoch):
            logger.info("Image prefetch completed but already passed {}", position)
            return
        self._cached.add(position)
        logger.info("Image prefetched successfully {}: {}", position, url)

    def _on_failed(self, position: int, url: str, generation: int, exc: BaseException) -> None:
        if generation != self._generation:
            return
        self._in_flight.discard(position)
        logger.warning("Image prefetch failed {}: {} ({})", position, url, exc)
