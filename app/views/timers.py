"""QTimer-backed implementation of the single-shot timer handle."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer

from core.services.interfaces import ITimer


class QtTimer(ITimer):
    """One rearmable single-shot timer; `start` replaces any pending shot."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)
        self._callback: Callable[[], None] | None = None

    def start(self, msec: int, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(max(0, int(msec)))

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
