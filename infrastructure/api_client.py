"""HTTP client for the slideshow server (`/api/config`, metadata, images, ping).

All calls are blocking and meant to run on worker threads. Transport errors,
bad status codes and malformed payloads are converted into the slideshow
error taxonomy so callers never see `requests` exceptions.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import requests
from loguru import logger

from core.models import (
    DEFAULT_COLOR,
    Attribution,
    ImageDescriptor,
    RemoteConfig,
    SelectionCriteria,
)
from core.services.interfaces import (
    ConfigLoadFailure,
    IImageSource,
    ImageLoadFailure,
    MetadataLoadFailure,
    ProbeFailure,
)
from infrastructure.utils import parse_iso_datetime

USER_AGENT = "WallKiosk/1.0"
DEFAULT_BASE_URL = "http://localhost:3000"


def parse_descriptor(raw: dict[str, Any]) -> ImageDescriptor:
    """Build an `ImageDescriptor` from one entry of the metadata payload.

    Provider-dependent fields (`user`, `location`, `created_at`) are optional.
    """
    if not isinstance(raw, dict) or "url" not in raw:
        raise ValueError(f"invalid image descriptor: {raw!r}")

    attribution: Attribution | None = None
    user = raw.get("user")
    if isinstance(user, dict) and user.get("name"):
        attribution = Attribution(
            photographer_name=str(user["name"]),
            photographer_url=user.get("href"),
        )

    location = raw.get("location")
    location_name = None
    if isinstance(location, dict) and location.get("name"):
        location_name = str(location["name"])

    return ImageDescriptor(
        id=str(raw.get("id", raw["url"])),
        url=str(raw["url"]),
        color=str(raw.get("color") or DEFAULT_COLOR),
        attribution=attribution,
        captured_at=parse_iso_datetime(raw.get("created_at")),
        location_name=location_name,
    )


class ApiClient(IImageSource):
    """`requests`-based implementation of `IImageSource`."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        ping_timeout: float = 2.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = float(timeout)
        self._ping_timeout = float(ping_timeout)
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def resolve(self, url: str) -> str:
        """Absolute URL for server-relative paths such as `/api/images/a.jpg`."""
        return urljoin(self._base_url, url)

    def _get(self, path: str, timeout: float, **params: Any) -> requests.Response:
        response = self._session.get(self.resolve(path), params=params or None, timeout=timeout)
        response.raise_for_status()
        return response

    def fetch_config(self) -> RemoteConfig:
        logger.info("Loading configuration")
        try:
            data = self._get("/api/config", self._timeout).json()
            return RemoteConfig(
                provider=str(data.get("provider") or "local"),
                image_interval=float(data.get("imageInterval") or 30),
                image_query=str(data.get("imageQuery") or "nature"),
            )
        except (requests.RequestException, ValueError, TypeError, AttributeError) as ex:
            raise ConfigLoadFailure(str(ex)) from ex

    def fetch_metadata(
        self, criteria: SelectionCriteria, count: int, start: int = 0
    ) -> list[ImageDescriptor]:
        try:
            data = self._get(
                "/api/images/metadata",
                self._timeout,
                count=count,
                start=start,
                orientation=criteria.orientation.value,
                query=criteria.query,
            ).json()
            images = data["images"]
            return [parse_descriptor(raw) for raw in images]
        except (requests.RequestException, ValueError, TypeError, KeyError) as ex:
            raise MetadataLoadFailure(str(ex)) from ex

    def fetch_image(self, url: str) -> bytes:
        try:
            return self._get(url, self._timeout).content
        except requests.RequestException as ex:
            raise ImageLoadFailure(f"{url}: {ex}") from ex

    def ping(self) -> None:
        try:
            self._get("/api/ping", self._ping_timeout)
        except requests.RequestException as ex:
            raise ProbeFailure(str(ex)) from ex
