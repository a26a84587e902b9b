"""
UI/view constants centralized for reuse across view modules.

Key bindings and presentation defaults only; engine timings live with the
view-model.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

# Key bindings
KEYS_NEXT: frozenset[int] = frozenset({Qt.Key.Key_N.value, Qt.Key.Key_Right.value})
KEYS_PREVIOUS: frozenset[int] = frozenset({Qt.Key.Key_P.value, Qt.Key.Key_Left.value})
KEYS_ATTRIBUTION: frozenset[int] = frozenset({Qt.Key.Key_A.value})
KEYS_OFFLINE: frozenset[int] = frozenset({Qt.Key.Key_O.value})
KEYS_SEARCH: frozenset[int] = frozenset({Qt.Key.Key_S.value})
KEYS_FULLSCREEN: frozenset[int] = frozenset({Qt.Key.Key_F.value, Qt.Key.Key_F11.value})
KEYS_FIRST: frozenset[int] = frozenset({Qt.Key.Key_Home.value})
KEYS_LEAVE_FULLSCREEN: frozenset[int] = frozenset({Qt.Key.Key_Escape.value})

# Presentation
WINDOW_TITLE: str = "Wall"
DEFAULT_WINDOW_SIZE: tuple[int, int] = (1280, 720)
LOADING_TEXT: str = "Loading…"
OFFLINE_TEXT: str = "Offline"
WARNING_TEXT: str = "No images found for this search"
OVERLAY_MARGIN_PX: int = 24
