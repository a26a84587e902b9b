from __future__ import annotations

from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.views.image_tasks import TaskRunner
from app.views.main_window import MainWindow
from app.views.timers import QtTimer
from core.services.metadata_store import (
    DEFAULT_EXTEND_THRESHOLD,
    DEFAULT_MAX_ITEMS,
    DEFAULT_PAGE_SIZE,
)
from core.services.prefetch_cache import DEFAULT_LOOKAHEAD
from infrastructure.api_client import DEFAULT_BASE_URL, ApiClient
from infrastructure.image_service import ImageService
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def build_vm(settings: JsonSettings, app: QApplication, runner: TaskRunner) -> MainVM:
    """Wire the HTTP client, image cache and Qt adapters into a `MainVM`."""
    client = ApiClient(
        base_url=str(settings.get("server.base_url", DEFAULT_BASE_URL)),
        timeout=settings.get_float("server.timeout_seconds", 5.0),
        ping_timeout=settings.get_float("server.ping_timeout_seconds", 2.0),
    )
    images = ImageService(client.fetch_image, resolve=client.resolve, settings=settings)
    return MainVM(
        client,
        runner,
        images.get_image,
        lambda: QtTimer(app),
        lookahead=settings.get_int("slideshow.lookahead", DEFAULT_LOOKAHEAD),
        page_size=settings.get_int("slideshow.page_size", DEFAULT_PAGE_SIZE),
        max_items=settings.get_int("slideshow.max_items", DEFAULT_MAX_ITEMS),
        extend_threshold=settings.get_int("slideshow.extend_threshold", DEFAULT_EXTEND_THRESHOLD),
    )


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    init_logging(settings.get("logging.dir"), str(settings.get("logging.level", "INFO")))

    app = QApplication(sys.argv)

    runner = TaskRunner(max_threads=settings.get_int("server.max_connections", 6))
    vm = build_vm(settings, app, runner)
    win = MainWindow(vm=vm, settings=settings)
    vm.bind_view(win)
    win.show_kiosk()
    vm.start(win.current_orientation())
    logger.info("Slideshow window shown")

    code = app.exec()

    if runner.pending:
        logger.info("Waiting for {} background tasks", runner.pending)
    runner.wait_for_done(5000)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
