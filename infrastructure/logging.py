"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

APP_DIR_NAME = "wall-kiosk"


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(Path.home() / ".local" / "state" / APP_DIR_NAME / "logs")


def init_logging(log_dir: str | None = None, level: str = "INFO") -> Path:
    """Initialize rotating file logging plus a stderr sink; returns the log dir."""
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir).expanduser()
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level=level, enqueue=True, backtrace=False, diagnose=False)
    logger.add(
        str(log_path / "wall_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    return log_path

