"""Ordered, append-only store of image descriptors for the current criteria.

Positions are stable for the lifetime of a metadata set: entries are never
reordered or removed, only appended by pagination. The whole set is dropped by
`clear()`, which also invalidates any request still in flight.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from core.models import ImageDescriptor, SelectionCriteria
from core.services.interfaces import (
    IImageSource,
    ITaskRunner,
    MetadataExtendFailure,
    MetadataLoadFailure,
)

DEFAULT_PAGE_SIZE = 30
DEFAULT_MAX_ITEMS = 47  # provider-imposed ceiling
DEFAULT_EXTEND_THRESHOLD = 3


class MetadataStore:
    """Holds the metadata set and loads/extends it through a task runner."""

    def __init__(
        self,
        source: IImageSource,
        runner: ITaskRunner,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_items: int = DEFAULT_MAX_ITEMS,
        extend_threshold: int = DEFAULT_EXTEND_THRESHOLD,
    ) -> None:
        self._source = source
        self._runner = runner
        self._page_size = max(1, int(page_size))
        self._max_items = max(1, int(max_items))
        self._threshold = max(0, int(extend_threshold))
        self._items: list[ImageDescriptor] = []
        self._generation = 0
        self._extending = False
        self._exhausted = False

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> ImageDescriptor:
        return self._items[index]

    @property
    def items(self) -> tuple[ImageDescriptor, ...]:
        return tuple(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        """Drop every entry and invalidate outstanding requests."""
        self._items = []
        self._generation += 1
        self._extending = False
        self._exhausted = False

    def load(
        self,
        criteria: SelectionCriteria,
        on_ready: Callable[[bool], None],
    ) -> None:
        """Replace the set with the first page for `criteria`.

        `on_ready(True)` fires once the set is non-empty; `on_ready(False)`
        when the request failed or returned nothing. Results of a load that was
        superseded by `clear()` are ignored and `on_ready` is not called.
        """
        self.clear()
        generation = self._generation
        count = min(self._page_size, self._max_items)
        logger.info(
            "Loading metadata with orientation={}, query={}",
            criteria.orientation.value,
            criteria.query,
        )

        def _fetch() -> list[ImageDescriptor]:
            items = self._source.fetch_metadata(criteria, count, 0)
            if not items:
                raise MetadataLoadFailure(f"no images for query {criteria.query!r}")
            return items

        def _done(items: list[ImageDescriptor]) -> None:
            if generation != self._generation:
                logger.debug("Discarding metadata page from a previous set")
                return
            self._items = list(items[: self._max_items])
            logger.info("Loaded {} metadata items", len(self._items))
            on_ready(True)

        def _failed(exc: BaseException) -> None:
            if generation != self._generation:
                return
            logger.error("Metadata load failed: {}", exc)
            on_ready(False)

        self._runner.submit(_fetch, _done, _failed)

    def should_extend(self, index: int) -> bool:
        """True when `index` is within the threshold of the end of a capped set."""
        n = len(self._items)
        if n == 0 or self._extending or self._exhausted:
            return False
        return n < self._max_items and index >= n - self._threshold

    def extend(
        self,
        criteria: SelectionCriteria,
        on_failure: Callable[[BaseException], None],
    ) -> bool:
        """Append the next page in place; returns False if nothing was requested."""
        if not self.should_extend(len(self._items) - 1):
            return False
        generation = self._generation
        start = len(self._items)
        count = min(self._page_size, self._max_items - start)
        self._extending = True
        logger.info("Loading more metadata starting from {}", start)

        def _fetch() -> list[ImageDescriptor]:
            try:
                return self._source.fetch_metadata(criteria, count, start)
            except MetadataLoadFailure as ex:
                raise MetadataExtendFailure(str(ex)) from ex

        def _done(items: list[ImageDescriptor]) -> None:
            if generation != self._generation:
                return
            self._extending = False
            room = self._max_items - len(self._items)
            appended = list(items[:room])
            if not appended:
                self._exhausted = True
                logger.info("No more metadata after {} items", len(self._items))
                return
            self._items.extend(appended)
            logger.info(
                "Loaded additional {} metadata items, total: {}",
                len(appended),
                len(self._items),
            )

        def _failed(exc: BaseException) -> None:
            if generation != self._generation:
                return
            self._extending = False
            logger.error("Load more metadata failed: {}", exc)
            on_failure(exc)

        self._runner.submit(_fetch, _done, _failed)
        return True
