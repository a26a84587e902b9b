"""Connectivity monitor: liveness probes and image-failure signals.

Probes run independently of rendering. Each probe carries a sequence number;
a result older than the newest one already applied is ignored, so a slow
success cannot undo a newer failure (or vice versa).
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from core.services.interfaces import IImageSource, ITaskRunner


class ConnectivityMonitor:
    """Reports `on_lost` / `on_restored`; the caller decides what they mean."""

    def __init__(
        self,
        source: IImageSource,
        runner: ITaskRunner,
        on_lost: Callable[[], None],
        on_restored: Callable[[], None],
    ) -> None:
        self._source = source
        self._runner = runner
        self._on_lost = on_lost
        self._on_restored = on_restored
        self._issued = 0
        self._resolved = 0

    def probe(self) -> int:
        """Send a liveness probe; returns its sequence number."""
        self._issued += 1
        seq = self._issued
        self._runner.submit(
            self._source.ping,
            lambda _result: self._resolve(seq, True),
            lambda exc: self._resolve(seq, False, exc),
        )
        return seq

    def report_image_failure(self) -> None:
        """The displayed image failed to load: treat as lost without waiting."""
        self._on_lost()

    def _resolve(self, seq: int, ok: bool, exc: BaseException | None = None) -> None:
        if seq < self._resolved:
            logger.debug("Ignoring stale probe {} (latest {})", seq, self._resolved)
            return
        self._resolved = seq
        if ok:
            self._on_restored()
        else:
            logger.debug("Probe {} failed: {}", seq, exc)
            self._on_lost()
