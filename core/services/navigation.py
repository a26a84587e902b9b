"""Navigation state machine: current position, mode, and the offline snapshot.

Modes are `Online`, `OfflineAuto` and `OfflineManual`. While online the
current index walks the whole metadata set; while offline it walks only the
snapshot of cached positions taken on entry. Every navigation event bumps a
monotonically increasing epoch used to validate late asynchronous completions.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace

from loguru import logger

from core.models import Mode, OfflineAuto, OfflineManual, Online


class NavigationStateMachine:
    """Owns `current_index` and the mode; `size` reports the metadata length."""

    def __init__(self, size: Callable[[], int]) -> None:
        self._size = size
        self._current_index = 0
        self._mode: Mode = Online()
        self._epoch = 0

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_offline(self) -> bool:
        return self._mode.is_offline

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def offline_sequence(self) -> tuple[int, ...]:
        if isinstance(self._mode, Online):
            return ()
        return self._mode.sequence

    def reset(self) -> None:
        """Back to `Online` at position 0. The epoch keeps counting."""
        self._current_index = 0
        self._mode = Online()
        self._epoch += 1

    # Navigation commands

    def next(self) -> int:
        return self._step(1)

    def previous(self) -> int:
        return self._step(-1)

    def _step(self, delta: int) -> int:
        self._epoch += 1
        mode = self._mode
        if isinstance(mode, Online):
            size = self._size()
            if size > 0:
                self._current_index = (self._current_index + delta) % size
            return self._current_index
        if not mode.sequence:
            # Nothing cached on entry: pinned to 0.
            self._current_index = 0
            return self._current_index
        position = (mode.position + delta) % len(mode.sequence)
        self._mode = replace(mode, position=position)
        self._current_index = mode.sequence[position]
        return self._current_index

    def jump_to(self, index: int) -> bool:
        """Move to `index`; offline, only positions in the snapshot are reachable."""
        mode = self._mode
        if isinstance(mode, Online):
            size = self._size()
            if not 0 <= index < size:
                return False
            self._epoch += 1
            self._current_index = index
            return True
        if index not in mode.sequence:
            return False
        self._epoch += 1
        self._mode = replace(mode, position=mode.sequence.index(index))
        self._current_index = index
        return True

    # Mode transitions

    def toggle_offline(self, cached_positions: Iterable[int]) -> Mode:
        """Manual toggle between `Online` and `OfflineManual`."""
        if self._mode.is_offline:
            self._go_online()
            logger.info("Manual offline toggle - offline mode: False")
        else:
            self._go_offline(OfflineManual, cached_positions)
            logger.info("Manual offline toggle - offline mode: True")
        return self._mode

    def enter_auto_offline(self, cached_positions: Iterable[int]) -> bool:
        """Enter `OfflineAuto` unless already offline. Returns True on change."""
        if self._mode.is_offline:
            return False
        self._go_offline(OfflineAuto, cached_positions)
        return True

    def restore_online(self) -> bool:
        """Leave `OfflineAuto`; a manual offline mode is never overridden."""
        if not isinstance(self._mode, OfflineAuto):
            return False
        self._go_online()
        return True

    def _go_offline(
        self, mode_cls: type[OfflineAuto] | type[OfflineManual], cached_positions: Iterable[int]
    ) -> None:
        sequence = tuple(sorted(set(cached_positions)))
        logger.info(
            "Offline mode activated - {} prefetched images available: {}",
            len(sequence),
            list(sequence),
        )
        entry_index = self._current_index
        if entry_index in sequence:
            position = sequence.index(entry_index)
        else:
            position = 0
            self._current_index = sequence[0] if sequence else 0
        self._mode = mode_cls(
            sequence=sequence,
            position=position,
            entry_index=entry_index,
            entry_epoch=self._epoch,
        )

    def _go_online(self) -> None:
        mode = self._mode
        if not isinstance(mode, Online) and mode.entry_epoch == self._epoch:
            # no navigation happened while offline: undo the pin
            if mode.entry_index < self._size():
                self._current_index = mode.entry_index
        self._mode = Online()
