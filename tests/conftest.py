# tests/conftest.py
from __future__ import annotations
from pathlib import Path

import numpy as np
from PIL import Image
import pytest

from avatoken.config import default_config, resolve_config


def distance_grid(width: int, height: int, cx: float, cy: float) -> np.ndarray:
    """Distance from (cx, cy) to each pixel center, indexed [y, x]."""
    ys, xs = np.mgrid[0:height, 0:width]
    return np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)


def solid(size, color, mode="RGB") -> Image.Image:
    return Image.new(mode, size, color)


@pytest.fixture
def noise_image():
    """Random opaque RGB image so color checks cannot pass by accident."""
    def _make(width: int, height: int, seed: int = 7) -> Image.Image:
        rng = np.random.default_rng(seed)
        arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        return Image.fromarray(arr)
    return _make


@pytest.fixture
def cfg(tmp_path: Path):
    """Resolved default config writing into a temp output folder."""
    c = default_config()
    c["output"]["dir"] = str(tmp_path / "tokens")
    return resolve_config(c)


class FakeResponse:
    """Just enough of requests.Response for sources.fetch_image."""
    def __init__(self, content: bytes = b"", content_type: str = "image/png", status_code: int = 200):
        self.content = content
        self.status_code = status_code
        self.headers = {"Content-Type": content_type} if content_type is not None else {}

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)


def png_bytes(image: Image.Image, fmt: str = "PNG") -> bytes:
    from io import BytesIO
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def fake_get(monkeypatch):
    """
    Patch requests.get; map URL -> FakeResponse. Unknown URLs raise ConnectionError.
    """
    import requests
    routes = {}

    def _get(url, timeout=None, **kw):
        if url not in routes:
            raise requests.ConnectionError(f"cannot reach {url}")
        return routes[url]

    monkeypatch.setattr(requests, "get", _get, raising=True)
    return routes
