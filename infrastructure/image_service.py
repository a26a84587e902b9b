"""Image loading and caching for the slideshow.

Fetched bytes are kept in an on-disk cache keyed by URL and decoded images in
a small in-memory LRU, so an image that loaded once can be shown again without
a network round trip. Decoding uses Qt first and falls back to Pillow for
formats the Qt plugins cannot read.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
import hashlib
import io
import os
from pathlib import Path
import threading

from PIL import Image, ImageOps
from PySide6.QtGui import QImage
from loguru import logger

from core.services.interfaces import ImageLoadFailure

DEFAULT_DISK_DIR = Path.home() / ".cache" / "wall-kiosk" / "images"


def _compute_cache_key(url: str) -> str:
    """Stable cache key for a resolved image URL."""
    return hashlib.sha1(url.encode("utf-8", errors="ignore")).hexdigest()


def _ensure_dir(p: Path) -> None:
    """Create directory `p` if missing (including parents)."""
    p.mkdir(parents=True, exist_ok=True)


@dataclass
class _MemCacheItem:
    key: str
    image: QImage


class _LRUCache:
    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, _MemCacheItem] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str) -> QImage | None:
        """Return cached QImage for key, moving it to the MRU position."""
        with self._lock:
            item = self._data.get(key)
            if not item:
                return None
            self._data.move_to_end(key)
            return item.image

    def put(self, key: str, image: QImage) -> None:
        """Insert or update `key` with `image`, evicting LRU when over capacity."""
        with self._lock:
            self._data[key] = _MemCacheItem(key, image)
            self._data.move_to_end(key)
            while len(self._data) > self._cap:
                self._data.popitem(last=False)


class ImageService:
    """Fetches images through `fetch`, with memory and disk caches in front."""

    def __init__(
        self,
        fetch: Callable[[str], bytes],
        resolve: Callable[[str], str] | None = None,
        settings: object | None = None,
    ) -> None:
        """Initialize caches from settings (`cache.memory_items`, `cache.disk_dir`)."""
        self._fetch = fetch
        self._resolve = resolve or (lambda url: url)
        self._mem_cap = 64
        self._disk_dir = str(DEFAULT_DISK_DIR)
        if settings is not None:
            try:
                self._mem_cap = int(settings.get("cache.memory_items", 64) or 64)
            except (ValueError, TypeError):
                logger.warning("Invalid cache.memory_items, using {}", self._mem_cap)
            raw_dir = settings.get("cache.disk_dir", None)
            if isinstance(raw_dir, str) and raw_dir:
                self._disk_dir = str(Path(raw_dir).expanduser())
        self._disk_path = Path(self._disk_dir)
        _ensure_dir(self._disk_path)
        self._mem_cache = _LRUCache(self._mem_cap)
        self._key_locks: dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def get_image(self, url: str) -> QImage:
        """Return the decoded image for `url`; raises `ImageLoadFailure`."""
        resolved = self._resolve(url)
        key = _compute_cache_key(resolved)
        img = self._mem_cache.get(key)
        if img is not None and not img.isNull():
            return img

        # one load per URL at a time; others wait and reuse its result
        with self._lock_for(key):
            img = self._mem_cache.get(key)
            if img is not None and not img.isNull():
                return img
            img = self._load_uncached(key, resolved, url)
            self._mem_cache.put(key, img)
            return img

    def _load_uncached(self, key: str, resolved: str, url: str) -> QImage:
        disk_file = self._disk_path / key
        if disk_file.exists():
            try:
                img = self._decode(disk_file.read_bytes())
            except OSError as ex:
                logger.debug("Read disk cache failed for {}: {}", disk_file, ex)
                img = None
            if img is not None:
                return img
            # Corrupt entry; refetch below
            disk_file.unlink(missing_ok=True)

        data = self._fetch(resolved)
        img = self._decode(data)
        if img is None:
            raise ImageLoadFailure(f"undecodable image data: {url}")
        # write aside, then rename, so readers never see a partial file
        part_file = disk_file.with_name(f"{key}.part")
        try:
            part_file.write_bytes(data)
            os.replace(part_file, disk_file)
        except OSError as ex:
            logger.debug("Save disk cache failed for {}: {}", disk_file, ex)
            part_file.unlink(missing_ok=True)
        return img

    def _decode(self, data: bytes) -> QImage | None:
        """Decode with Qt, then Pillow; None if neither can read `data`."""
        if not data:
            return None
        img = QImage.fromData(data)
        if img is not None and not img.isNull():
            return img
        return self._decode_via_pillow(data)

    def _decode_via_pillow(self, data: bytes) -> QImage | None:
        try:
            with Image.open(io.BytesIO(data)) as im:
                try:
                    im = ImageOps.exif_transpose(im)
                except (OSError, ValueError, AttributeError):
                    pass
                return self._pil_to_qimage(im)
        except (OSError, ValueError) as ex:
            logger.debug("Pillow decode failed: {}", ex)
            return None

    def _pil_to_qimage(self, pil_img: Image.Image) -> QImage | None:
        """Convert a Pillow image to `QImage` and detach from the source buffer."""
        if pil_img.mode not in ("RGBA", "RGB"):
            pil_img = pil_img.convert("RGBA")
        if pil_img.mode == "RGB":
            data = pil_img.tobytes("raw", "RGB")
            qimg = QImage(
                data, pil_img.width, pil_img.height, pil_img.width * 3, QImage.Format.Format_RGB888
            )
        else:
            data = pil_img.tobytes("raw", "RGBA")
            qimg = QImage(
                data,
                pil_img.width,
                pil_img.height,
                pil_img.width * 4,
                QImage.Format.Format_RGBA8888,
            )
        if qimg.isNull():
            return None
        return qimg.copy()
