from __future__ import annotations

from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal
from loguru import logger

from core.services.interfaces import ITaskRunner


class _TaskReceiver(QObject):
    """Lives on the GUI thread; worker emissions are queued onto it."""

    taskFinished = Signal(int, bool, object)  # token, ok, result or exception


class _Task(QRunnable):
    """QRunnable for background work (HTTP fetch, image decode, ping).

    Emits `receiver.taskFinished(token, ok, payload)` upon completion, where
    `payload` is the return value or the raised exception.
    """

    def __init__(self, *, token: int, fn: Callable[[], Any], receiver: _TaskReceiver) -> None:
        super().__init__()
        self._token = token
        self._fn = fn
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        try:
            result = self._fn()
            ok = True
        except Exception as ex:  # delivered to the submitter's on_error
            result = ex
            ok = False
        self._receiver.taskFinished.emit(self._token, ok, result)


class TaskRunner(ITaskRunner):
    """Dispatches tasks to a thread pool and calls back on the GUI thread.

    Callbacks are kept here, keyed by token, so worker threads never touch
    slideshow state.
    """

    def __init__(self, pool: QThreadPool | None = None, max_threads: int | None = None) -> None:
        self._pool = pool or QThreadPool.globalInstance()
        if max_threads:
            self._pool.setMaxThreadCount(int(max_threads))
        self._receiver = _TaskReceiver()
        self._receiver.taskFinished.connect(self._dispatch)
        self._callbacks: dict[
            int, tuple[Callable[[Any], None], Callable[[BaseException], None]]
        ] = {}
        self._next_token = 0

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def submit(
        self,
        fn: Callable[[], Any],
        on_done: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> int:
        self._next_token += 1
        token = self._next_token
        self._callbacks[token] = (on_done, on_error)
        self._pool.start(_Task(token=token, fn=fn, receiver=self._receiver))
        return token

    def _dispatch(self, token: int, ok: bool, payload: Any) -> None:
        callbacks = self._callbacks.pop(token, None)
        if callbacks is None:
            logger.debug("No callbacks for task {}", token)
            return
        on_done, on_error = callbacks
        if ok:
            on_done(payload)
        else:
            on_error(payload)

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until the pool is idle (used on shutdown)."""
        return self._pool.waitForDone(msecs)
