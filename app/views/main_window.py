"""Kiosk MainWindow: full-window image with attribution and status overlays.

The window is a thin presentation layer. It forwards user input to the
view-model and implements the `ISlideshowView` callbacks the view-model drives.
"""

from __future__ import annotations

import html
from typing import Any

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QKeyEvent, QMouseEvent, QPixmap, QResizeEvent, QWheelEvent
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QWidget
from loguru import logger

from app.views.constants import (
    DEFAULT_WINDOW_SIZE,
    KEYS_ATTRIBUTION,
    KEYS_FIRST,
    KEYS_FULLSCREEN,
    KEYS_LEAVE_FULLSCREEN,
    KEYS_NEXT,
    KEYS_OFFLINE,
    KEYS_PREVIOUS,
    KEYS_SEARCH,
    LOADING_TEXT,
    OFFLINE_TEXT,
    OVERLAY_MARGIN_PX,
    WARNING_TEXT,
    WINDOW_TITLE,
)
from app.views.search_dialog import SearchDialog
from core.models import ImageDescriptor, Orientation
from core.services.interfaces import ISlideshowView


class MainWindow(QMainWindow, ISlideshowView):
    """Main kiosk window.

    Args:
        vm: `MainVM` receiving navigation, toggle and criteria commands.
        settings: Settings instance (`window.fullscreen`).
    """

    def __init__(self, vm: Any, settings: Any | None = None) -> None:
        super().__init__()
        self._vm = vm
        self._settings = settings
        self._pixmap: QPixmap | None = None

        self._setup_ui()
        self._setup_window_properties()

        # Delay single-click handling so a double click does not also toggle
        self._click_timer = QTimer(self)
        self._click_timer.setSingleShot(True)
        self._click_timer.timeout.connect(self._vm.toggle_attribution)

    def _setup_ui(self) -> None:
        """Create the image surface and the overlay labels."""
        self.setWindowTitle(WINDOW_TITLE)
        central = QWidget(self)
        central.setObjectName("wall")
        self.setCentralWidget(central)

        self._image_label = QLabel(central)
        self._image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._attribution = QLabel(central)
        self._attribution.setTextFormat(Qt.TextFormat.RichText)
        self._attribution.setOpenExternalLinks(True)
        self._attribution.setStyleSheet(
            "background: rgba(0, 0, 0, 150); color: white; padding: 8px 12px;"
            " border-radius: 6px; font-size: 16px;"
        )
        self._attribution.hide()

        self._offline = QLabel(OFFLINE_TEXT, central)
        self._offline.setStyleSheet(
            "background: rgba(180, 40, 40, 200); color: white; padding: 4px 8px;"
            " border-radius: 4px;"
        )
        self._offline.hide()

        self._warning = QLabel(WARNING_TEXT, central)
        self._warning.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._warning.setStyleSheet(
            "background: rgba(0, 0, 0, 190); color: #f0a500; padding: 12px 18px;"
            " border-radius: 8px; font-size: 18px;"
        )
        self._warning.hide()

        self._loading = QLabel(LOADING_TEXT, central)
        self._loading.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._loading.setStyleSheet("background: black; color: white; font-size: 28px;")
        self._loading.show()

        self.set_background("#000")

    def _setup_window_properties(self) -> None:
        self.resize(*DEFAULT_WINDOW_SIZE)
        self.setCursor(Qt.CursorShape.BlankCursor)

    def show_kiosk(self) -> None:
        """Show fullscreen unless `window.fullscreen` is false."""
        fullscreen = True
        if self._settings is not None:
            fullscreen = bool(self._settings.get("window.fullscreen", True))
        if fullscreen:
            self.showFullScreen()
        else:
            self.show()

    def current_orientation(self) -> Orientation:
        """Orientation of the surface the slideshow will fill."""
        size = self.size()
        screen = self.screen()
        if not self.isVisible() and screen is not None:
            size = screen.size()
        return Orientation.from_size(size.width(), size.height())

    # ISlideshowView

    def show_image(self, index: int, descriptor: ImageDescriptor, image: Any) -> None:
        if isinstance(image, QImage):
            self._pixmap = QPixmap.fromImage(image)
        elif isinstance(image, QPixmap):
            self._pixmap = image
        else:
            logger.warning("Unsupported image object for {}: {}", index, type(image))
            return
        self._refit()

    def set_background(self, color: str) -> None:
        self.centralWidget().setStyleSheet(f"#wall {{ background-color: {color}; }}")

    def set_attribution(
        self, photographer: str, details: str, photographer_url: str | None = None
    ) -> None:
        text = f"<b>{html.escape(photographer)}</b>"
        if photographer_url:
            href = html.escape(photographer_url, quote=True)
            text = f"<a href='{href}' style='color: white; text-decoration: none;'>{text}</a>"
        if details:
            text += f"<br/><span style='font-size: 13px;'>{html.escape(details)}</span>"
        self._attribution.setText(text)
        self._layout_overlays()

    def set_attribution_visible(self, visible: bool) -> None:
        self._attribution.setVisible(visible)
        if visible:
            self._attribution.raise_()

    def set_offline_indicator(self, offline: bool) -> None:
        self._offline.setVisible(offline)
        if offline:
            self._offline.raise_()

    def set_loading(self, loading: bool) -> None:
        self._loading.setVisible(loading)
        if loading:
            self._loading.raise_()

    def set_warning_visible(self, visible: bool) -> None:
        self._warning.setVisible(visible)
        if visible:
            self._warning.raise_()

    # Input

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        key = int(event.key())
        if key in KEYS_NEXT:
            self._vm.next_image()
        elif key in KEYS_PREVIOUS:
            self._vm.previous_image()
        elif key in KEYS_ATTRIBUTION:
            self._vm.toggle_attribution()
        elif key in KEYS_OFFLINE:
            self._vm.toggle_offline()
        elif key in KEYS_SEARCH:
            self.open_search_dialog()
        elif key in KEYS_FULLSCREEN:
            self.toggle_fullscreen()
        elif key in KEYS_FIRST:
            self._vm.jump_to(0)
        elif key in KEYS_LEAVE_FULLSCREEN and self.isFullScreen():
            self.showNormal()
        else:
            super().keyPressEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        delta = event.angleDelta().y()
        if delta < 0:
            self._vm.next_image()
        elif delta > 0:
            self._vm.previous_image()
        event.accept()

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            self._click_timer.start(QApplication.doubleClickInterval())
        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        self._click_timer.stop()
        self.toggle_fullscreen()
        event.accept()

    def open_search_dialog(self) -> None:
        logger.info("Opening search dialog")
        dlg = SearchDialog(self._vm.criteria.query, self)
        dlg.searchRequested.connect(self._vm.change_query)
        dlg.exec()

    def toggle_fullscreen(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

    # Layout

    def resizeEvent(self, event: QResizeEvent) -> None:  # noqa: N802
        super().resizeEvent(event)
        self._refit()
        size = event.size()
        self._vm.change_orientation(Orientation.from_size(size.width(), size.height()))

    def _refit(self) -> None:
        area = self.centralWidget().size()
        self._image_label.setGeometry(0, 0, area.width(), area.height())
        self._loading.setGeometry(0, 0, area.width(), area.height())
        if self._pixmap is not None and not self._pixmap.isNull():
            self._image_label.setPixmap(
                self._pixmap.scaled(
                    area,
                    Qt.AspectRatioMode.KeepAspectRatio,
                    Qt.TransformationMode.SmoothTransformation,
                )
            )
        self._layout_overlays()

    def _layout_overlays(self) -> None:
        area = self.centralWidget().size()
        m = OVERLAY_MARGIN_PX

        self._attribution.adjustSize()
        self._attribution.move(m, area.height() - self._attribution.height() - m)

        self._offline.adjustSize()
        self._offline.move(area.width() - self._offline.width() - m, m)

        self._warning.adjustSize()
        self._warning.move((area.width() - self._warning.width()) // 2, m)
