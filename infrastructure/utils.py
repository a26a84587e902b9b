"""Utilities for timestamp parsing and formatting.

Parsing is best-effort and never raises; callers should expect `None` when a
provider omits or mangles a value.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from loguru import logger

MONTH_YEAR_FMT = "%B %Y"


def parse_iso_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp such as `2021-03-04T10:20:30Z`."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    # fromisoformat() before 3.11 does not accept a trailing "Z"
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as ex:
        logger.debug("Unparseable timestamp {!r}: {}", value, ex)
        return None


def format_month_year(dt: datetime | None) -> str:
    """Format as e.g. "March 2021"; empty string when None."""
    try:
        return dt.strftime(MONTH_YEAR_FMT) if dt else ""
    except (ValueError, AttributeError):
        return ""
