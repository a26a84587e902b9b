"""ViewModel for the kiosk slideshow: navigation, prefetch, and offline fallback.

One `MainVM` is constructed per session. It owns the metadata store, the
prefetch cache, the navigation state machine, the connectivity monitor and the
reset controller, plus one timer handle per concern. Every method runs on the
GUI thread; blocking work goes through the injected task runner and comes back
as callbacks on that same thread.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any

from loguru import logger

from app.viewmodels.photo_vm import PhotoVM
from core.models import (
    DEFAULT_COLOR,
    ImageDescriptor,
    Mode,
    Orientation,
    RemoteConfig,
    SelectionCriteria,
)
from core.services.connectivity import ConnectivityMonitor
from core.services.interfaces import IImageSource, ISlideshowView, ITaskRunner, ITimer
from core.services.metadata_store import (
    DEFAULT_EXTEND_THRESHOLD,
    DEFAULT_MAX_ITEMS,
    DEFAULT_PAGE_SIZE,
    MetadataStore,
)
from core.services.navigation import NavigationStateMachine
from core.services.prefetch_cache import DEFAULT_LOOKAHEAD, PrefetchCache
from core.services.reset_controller import ResetController

ATTRIBUTION_DELAY_MS = 5000
ATTRIBUTION_VISIBLE_MS = 5000
WARNING_VISIBLE_MS = 5000


class MainVM:
    """Main slideshow view-model.

    Mediates between an `IImageSource` and an `ISlideshowView`. Commands
    (`next_image`, `toggle_offline`, ...) update state synchronously and only
    schedule the asynchronous work; they never wait for it.
    """

    def __init__(
        self,
        source: IImageSource,
        runner: ITaskRunner,
        load_image: Callable[[str], Any],
        timer_factory: Callable[[], ITimer],
        *,
        lookahead: int = DEFAULT_LOOKAHEAD,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_items: int = DEFAULT_MAX_ITEMS,
        extend_threshold: int = DEFAULT_EXTEND_THRESHOLD,
    ) -> None:
        """Create a MainVM.

        Args:
            source: Metadata/image collaborator (config, metadata, ping).
            runner: Task runner delivering completions on the GUI thread.
            load_image: Blocking `url -> image` loader, run on the runner.
            timer_factory: Creates one single-shot timer handle per concern.
            lookahead: Prefetch window size.
            page_size: Metadata page size.
            max_items: Ceiling on the metadata set size.
            extend_threshold: Distance from the end that triggers pagination.
        """
        self._source = source
        self._runner = runner
        self._load_image = load_image
        self._view: ISlideshowView | None = None
        self._config = RemoteConfig()
        self._criteria = SelectionCriteria(query=self._config.image_query)
        self._started = False
        self._attribution_visible = False
        self._loading_shown = False
        self._indicator_offline = False

        self._store = MetadataStore(
            source,
            runner,
            page_size=page_size,
            max_items=max_items,
            extend_threshold=extend_threshold,
        )
        self._cache = PrefetchCache(
            runner, load_image, lookahead=lookahead, size=lambda: len(self._store)
        )
        self._nav = NavigationStateMachine(lambda: len(self._store))
        self._monitor = ConnectivityMonitor(
            source,
            runner,
            on_lost=self._on_connectivity_lost,
            on_restored=self._on_connectivity_restored,
        )
        self._reset = ResetController(
            self._store,
            self._cache,
            self._nav,
            set_loading=self._set_loading,
            stop_auto_advance=self._stop_auto_advance,
            start_auto_advance=self._restart_auto_advance,
            display_current=self._display_current,
            on_load_failed=self._on_metadata_load_failed,
            on_mode_reset=self._update_offline_indicator,
        )

        self._advance_timer = timer_factory()
        self._attribution_show_timer = timer_factory()
        self._attribution_hide_timer = timer_factory()
        self._warning_timer = timer_factory()

    # Wiring

    def bind_view(self, view: ISlideshowView) -> None:
        """Register the presentation layer receiving display callbacks."""
        self._view = view

    def start(self, orientation: Orientation = Orientation.LANDSCAPE) -> None:
        """Load the remote config, then the first metadata page."""
        logger.info("Initializing slideshow")
        self._criteria = replace(self._criteria, orientation=orientation)
        self._set_loading(True)
        self._runner.submit(self._source.fetch_config, self._on_config, self._on_config_failed)

    def _on_config(self, config: RemoteConfig) -> None:
        self._config = config
        logger.info(
            "Config loaded: provider={}, interval={}s, query={}",
            config.provider,
            config.image_interval,
            config.image_query,
        )
        self._begin()

    def _on_config_failed(self, exc: BaseException) -> None:
        logger.error("Config load failed: {}", exc)
        self._config = RemoteConfig()
        self._begin()

    def _begin(self) -> None:
        self._started = True
        self._criteria = replace(self._criteria, query=self._config.image_query)
        self._reset.reset(self._criteria)

    # Read-only state

    @property
    def current_index(self) -> int:
        return self._nav.current_index

    @property
    def mode(self) -> Mode:
        return self._nav.mode

    @property
    def is_offline(self) -> bool:
        return self._nav.is_offline

    @property
    def is_loading(self) -> bool:
        return self._reset.is_loading

    @property
    def metadata(self) -> tuple[ImageDescriptor, ...]:
        return self._store.items

    @property
    def prefetched(self) -> frozenset[int]:
        return self._cache.positions

    @property
    def offline_sequence(self) -> tuple[int, ...]:
        return self._nav.offline_sequence

    @property
    def config(self) -> RemoteConfig:
        return self._config

    @property
    def criteria(self) -> SelectionCriteria:
        return self._criteria

    @property
    def attribution_visible(self) -> bool:
        return self._attribution_visible

    # Navigation commands

    def next_image(self) -> None:
        if not self._can_navigate():
            return
        index = self._nav.next()
        if self._nav.is_offline:
            logger.info("Next image (offline): {}", index)
        else:
            logger.info("Next image: {}", index)
        self._after_navigation()

    def previous_image(self) -> None:
        if not self._can_navigate():
            return
        index = self._nav.previous()
        if self._nav.is_offline:
            logger.info("Previous image (offline): {}", index)
        else:
            logger.info("Previous image: {}", index)
        self._after_navigation()

    def jump_to(self, index: int) -> bool:
        """Show `index` directly; offline, only cached positions are reachable."""
        if not self._can_navigate() or not self._nav.jump_to(index):
            return False
        logger.info("Jump to image: {}", index)
        self._after_navigation()
        return True

    def _can_navigate(self) -> bool:
        return not self._reset.is_loading and not self._store.is_empty

    def _after_navigation(self) -> None:
        self._display_current()
        self._restart_auto_advance()

    # Mode / presentation commands

    def toggle_offline(self) -> None:
        self._nav.toggle_offline(self._cache.snapshot())
        self._update_offline_indicator()
        if not self._nav.is_offline:
            self._refill()
        self._restart_auto_advance()

    def toggle_attribution(self) -> None:
        self._set_attribution_visible(not self._attribution_visible)
        if self._attribution_visible:
            self._attribution_hide_timer.start(ATTRIBUTION_VISIBLE_MS, self._hide_attribution)

    # Criteria changes

    def change_query(self, query: str) -> bool:
        """Reset onto a new search term; blank or unchanged terms are ignored."""
        query = (query or "").strip()
        if not query or query == self._criteria.query:
            return False
        logger.info('Search query changed from "{}" to "{}"', self._criteria.query, query)
        self._criteria = replace(self._criteria, query=query)
        if self._started:
            self._reset.reset(self._criteria)
        return True

    def change_orientation(self, orientation: Orientation) -> bool:
        """Reset when the display orientation flips."""
        if orientation == self._criteria.orientation:
            return False
        logger.info(
            "Orientation changed from {} to {}",
            self._criteria.orientation.value,
            orientation.value,
        )
        self._criteria = replace(self._criteria, orientation=orientation)
        if self._started:
            self._reset.reset(self._criteria)
        return True

    # Display

    def _display_current(self) -> None:
        index = self._nav.current_index
        if not 0 <= index < len(self._store):
            return
        descriptor = self._store[index]
        epoch = self._nav.epoch
        logger.info("Displaying image {}: {}", index, descriptor.url)

        self._cancel_attribution()
        self._set_attribution_visible(False)
        if self._view is not None:
            self._view.set_background(descriptor.color or DEFAULT_COLOR)

        url = descriptor.url
        self._runner.submit(
            lambda: self._load_image(url),
            lambda image: self._on_display_loaded(epoch, index, descriptor, image),
            lambda exc: self._on_display_failed(epoch, index, descriptor, exc),
        )
        self._monitor.probe()

        self._cache.track(index, len(self._store), epoch)
        if self._nav.is_offline:
            return
        self._cache.refill(index, self._store.items, epoch)
        if self._store.should_extend(index):
            self._store.extend(self._criteria, self._on_extend_failed)

    def _on_display_loaded(
        self, epoch: int, index: int, descriptor: ImageDescriptor, image: Any
    ) -> None:
        if epoch != self._nav.epoch:
            logger.debug("Dropping stale display of image {}", index)
            return
        logger.info("Image loaded successfully {}: {}", index, descriptor.url)
        if self._view is not None:
            self._view.show_image(index, descriptor, image)
        self._hide_loading()
        self._schedule_attribution(descriptor)

    def _on_display_failed(
        self, epoch: int, index: int, descriptor: ImageDescriptor, exc: BaseException
    ) -> None:
        if epoch != self._nav.epoch:
            logger.debug("Ignoring failure of superseded image {}: {}", index, exc)
            return
        logger.error("Image load failed {}: {} ({})", index, descriptor.url, exc)
        self._hide_loading()
        self._monitor.report_image_failure()

    def _refill(self) -> None:
        if self._store.is_empty:
            return
        self._cache.refill(self._nav.current_index, self._store.items, self._nav.epoch)

    # Connectivity

    def _on_connectivity_lost(self) -> None:
        if self._nav.enter_auto_offline(self._cache.snapshot()):
            logger.warning("Server connectivity lost - entering offline mode")
            self._update_offline_indicator()

    def _on_connectivity_restored(self) -> None:
        if self._nav.restore_online():
            logger.info("Server connectivity restored - exiting offline mode")
            self._update_offline_indicator()
            self._refill()

    def _on_extend_failed(self, exc: BaseException) -> None:
        self._on_connectivity_lost()

    def _on_metadata_load_failed(self) -> None:
        logger.warning("No images available for query {}", self._criteria.query)
        self._show_warning()
        self._on_connectivity_lost()
        # the next tick retries the load
        self._restart_auto_advance()

    def _update_offline_indicator(self) -> None:
        offline = self._nav.is_offline
        if offline == self._indicator_offline:
            return
        self._indicator_offline = offline
        logger.info("Entering offline mode" if offline else "Exiting offline mode")
        if self._view is not None:
            self._view.set_offline_indicator(offline)

    # Timers

    def _restart_auto_advance(self) -> None:
        interval_ms = int(max(1.0, float(self._config.image_interval)) * 1000)
        self._advance_timer.start(interval_ms, self._on_auto_advance)

    def _stop_auto_advance(self) -> None:
        self._advance_timer.stop()

    def _on_auto_advance(self) -> None:
        if self._store.is_empty and not self._reset.is_loading:
            logger.info("Retrying metadata load")
            self._reset.reset(self._criteria)
            return
        self.next_image()

    def _schedule_attribution(self, descriptor: ImageDescriptor) -> None:
        photo = PhotoVM(descriptor, self._config.provider)
        if not photo.has_attribution:
            return
        if self._view is not None:
            self._view.set_attribution(photo.photographer, photo.details, photo.photographer_url)
        self._attribution_show_timer.start(ATTRIBUTION_DELAY_MS, self._show_attribution)

    def _show_attribution(self) -> None:
        self._set_attribution_visible(True)
        self._attribution_hide_timer.start(ATTRIBUTION_VISIBLE_MS, self._hide_attribution)

    def _hide_attribution(self) -> None:
        self._set_attribution_visible(False)

    def _cancel_attribution(self) -> None:
        self._attribution_show_timer.stop()
        self._attribution_hide_timer.stop()

    def _set_attribution_visible(self, visible: bool) -> None:
        self._attribution_visible = visible
        if self._view is not None:
            self._view.set_attribution_visible(visible)

    def _show_warning(self) -> None:
        if self._view is not None:
            self._view.set_warning_visible(True)
        self._warning_timer.start(WARNING_VISIBLE_MS, self._hide_warning)

    def _hide_warning(self) -> None:
        if self._view is not None:
            self._view.set_warning_visible(False)

    def _set_loading(self, loading: bool) -> None:
        self._loading_shown = loading
        if self._view is not None:
            self._view.set_loading(loading)

    def _hide_loading(self) -> None:
        if self._loading_shown:
            self._set_loading(False)
