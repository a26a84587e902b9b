"""Core service interfaces and the slideshow error taxonomy.

The core components never talk to Qt or the network directly. They receive
collaborators implementing the interfaces below, so the same logic runs
against the Qt adapters in `app.views` and the fakes used by the tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from core.models import ImageDescriptor, RemoteConfig, SelectionCriteria


class SlideshowError(Exception):
    """Base class for recoverable slideshow failures."""


class ConfigLoadFailure(SlideshowError):
    """Remote config unavailable; built-in defaults apply."""


class MetadataLoadFailure(SlideshowError):
    """Initial metadata page could not be loaded (or was empty)."""


class MetadataExtendFailure(SlideshowError):
    """A pagination request failed; already-loaded entries stay usable."""


class ImageLoadFailure(SlideshowError):
    """Image bytes could not be fetched or decoded."""


class ProbeFailure(SlideshowError):
    """Liveness probe did not reach the server."""


class PrefetchFailure(SlideshowError):
    """A lookahead load failed; logged only."""


class IImageSource:
    """Interface for the metadata/image collaborator (HTTP server)."""

    def fetch_config(self) -> RemoteConfig:
        """Return the server config or raise `ConfigLoadFailure`."""
        raise NotImplementedError

    def fetch_metadata(
        self, criteria: SelectionCriteria, count: int, start: int = 0
    ) -> list[ImageDescriptor]:
        """Return up to `count` descriptors starting at `start`."""
        raise NotImplementedError

    def fetch_image(self, url: str) -> bytes:
        """Return raw image bytes or raise `ImageLoadFailure`."""
        raise NotImplementedError

    def ping(self) -> None:
        """Return normally when reachable, raise `ProbeFailure` otherwise."""
        raise NotImplementedError


class ITaskRunner:
    """Runs blocking work off the event loop and reports back on it.

    `on_done(result)` or `on_error(exc)` is always invoked on the same
    execution context that owns the slideshow state.
    """

    def submit(
        self,
        fn: Callable[[], Any],
        on_done: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> int:
        """Schedule `fn` and return a task token."""
        raise NotImplementedError


class ITimer:
    """A single-shot, rearmable timer handle (one per concern)."""

    def start(self, msec: int, callback: Callable[[], None]) -> None:
        """Arm the timer, replacing any pending shot."""
        raise NotImplementedError

    def stop(self) -> None:
        """Cancel the pending shot, if any."""
        raise NotImplementedError

    @property
    def is_active(self) -> bool:
        raise NotImplementedError


class ISlideshowView:
    """Presentation callbacks driven by the view-model."""

    def show_image(self, index: int, descriptor: ImageDescriptor, image: Any) -> None:
        raise NotImplementedError

    def set_background(self, color: str) -> None:
        raise NotImplementedError

    def set_attribution(
        self, photographer: str, details: str, photographer_url: str | None = None
    ) -> None:
        raise NotImplementedError

    def set_attribution_visible(self, visible: bool) -> None:
        raise NotImplementedError

    def set_offline_indicator(self, offline: bool) -> None:
        raise NotImplementedError

    def set_loading(self, loading: bool) -> None:
        raise NotImplementedError

    def set_warning_visible(self, visible: bool) -> None:
        raise NotImplementedError
