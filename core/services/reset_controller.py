"""Full invalidation when the selection criteria change."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from core.models import SelectionCriteria
from core.services.metadata_store import MetadataStore
from core.services.navigation import NavigationStateMachine
from core.services.prefetch_cache import PrefetchCache


class ResetController:
    """Clears metadata, cache and position, then reloads under new criteria.

    While a reload is pending `is_loading` is True and navigation is expected
    to be ignored. The view keeps its loading state up until the first image
    of the new set is displayed, or the reload fails.
    """

    def __init__(
        self,
        store: MetadataStore,
        cache: PrefetchCache,
        navigation: NavigationStateMachine,
        *,
        set_loading: Callable[[bool], None],
        stop_auto_advance: Callable[[], None],
        start_auto_advance: Callable[[], None],
        display_current: Callable[[], None],
        on_load_failed: Callable[[], None],
        on_mode_reset: Callable[[], None],
    ) -> None:
        self._store = store
        self._cache = cache
        self._nav = navigation
        self._set_loading = set_loading
        self._stop_auto_advance = stop_auto_advance
        self._start_auto_advance = start_auto_advance
        self._display_current = display_current
        self._on_load_failed = on_load_failed
        self._on_mode_reset = on_mode_reset
        self._loading = False

    @property
    def is_loading(self) -> bool:
        return self._loading

    def reset(self, criteria: SelectionCriteria) -> None:
        """Run the reset sequence; the reload completes asynchronously."""
        self._loading = True
        self._set_loading(True)
        self._stop_auto_advance()
        logger.info("Resetting metadata and cache")
        self._cache.clear()
        self._nav.reset()
        self._on_mode_reset()
        self._store.load(criteria, self._on_reloaded)

    def _on_reloaded(self, ok: bool) -> None:
        self._loading = False
        if ok:
            # the overlay stays up until the first image is shown
            self._start_auto_advance()
            self._display_current()
        else:
            self._on_load_failed()
            self._set_loading(False)
