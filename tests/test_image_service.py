import io
import json
import threading
import time

from PIL import Image
import pytest

from core.services.interfaces import ImageLoadFailure
from infrastructure.image_service import ImageService, _compute_cache_key
from infrastructure.settings import JsonSettings


def png_bytes(color=(200, 30, 30), size=(8, 6)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def disk_dir(tmp_path):
    return tmp_path / "images"


@pytest.fixture
def settings(tmp_path, disk_dir):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"cache": {"memory_items": 4, "disk_dir": str(disk_dir)}}))
    return JsonSettings(path)


class CountingFetch:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.urls: list[str] = []

    def __call__(self, url: str) -> bytes:
        self.urls.append(url)
        return self.data


def test_get_image_decodes_and_caches_in_memory(qapp, settings, disk_dir):
    fetch = CountingFetch(png_bytes())
    svc = ImageService(fetch, settings=settings)
    img = svc.get_image("http://x/a.png")
    assert (img.width(), img.height()) == (8, 6)
    svc.get_image("http://x/a.png")
    assert fetch.urls == ["http://x/a.png"]
    assert (disk_dir / _compute_cache_key("http://x/a.png")).exists()


def test_disk_cache_survives_new_service(qapp, settings):
    ImageService(CountingFetch(png_bytes()), settings=settings).get_image("http://x/b.png")
    offline_fetch = CountingFetch(b"")
    again = ImageService(offline_fetch, settings=settings)
    assert not again.get_image("http://x/b.png").isNull()
    assert offline_fetch.urls == []


def test_relative_urls_are_resolved_before_fetch(qapp, settings):
    fetch = CountingFetch(png_bytes())
    svc = ImageService(fetch, resolve=lambda u: "http://srv" + u, settings=settings)
    svc.get_image("/api/images/c.png")
    assert fetch.urls == ["http://srv/api/images/c.png"]


def test_undecodable_data_raises(qapp, settings, disk_dir):
    svc = ImageService(CountingFetch(b"not an image"), settings=settings)
    with pytest.raises(ImageLoadFailure):
        svc.get_image("http://x/broken.jpg")
    assert list(disk_dir.iterdir()) == []


def test_fetch_errors_propagate(qapp, settings):
    def failing(url):
        raise ImageLoadFailure(url)

    svc = ImageService(failing, settings=settings)
    with pytest.raises(ImageLoadFailure):
        svc.get_image("http://x/gone.jpg")


def test_concurrent_requests_for_same_url_fetch_once(qapp, settings, disk_dir):
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow_fetch(url):
        calls.append(url)
        entered.set()
        release.wait(5)
        return png_bytes()

    svc = ImageService(slow_fetch, settings=settings)
    results = []
    workers = [
        threading.Thread(target=lambda: results.append(svc.get_image("http://x/a.png")))
        for _ in range(2)
    ]
    workers[0].start()
    assert entered.wait(5)
    workers[1].start()
    time.sleep(0.1)
    release.set()
    for t in workers:
        t.join(5)

    assert len(calls) == 1
    assert len(results) == 2
    assert all(not img.isNull() for img in results)
    assert [p.name for p in disk_dir.iterdir()] == [_compute_cache_key("http://x/a.png")]


def test_pillow_fallback_converts_mode(qapp, settings):
    svc = ImageService(CountingFetch(b""), settings=settings)
    img = svc._pil_to_qimage(Image.new("L", (3, 2), 128))
    assert (img.width(), img.height()) == (3, 2)
