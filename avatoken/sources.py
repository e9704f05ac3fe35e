# avatoken/sources.py
from __future__ import annotations

import logging
import posixpath
from io import BytesIO
from pathlib import Path
from typing import Iterable, Tuple
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from .utils import ensure_dir

log = logging.getLogger(__name__)


class UnsupportedImageError(ValueError):
    """Input is not one of the accepted image types."""


class DecodeError(ValueError):
    """Pillow could not decode the image data."""


# ---- image discovery ----
IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".bmp"}

# downloads are restricted to PNG and JPEG
_DOWNLOAD_TYPES = {"image/png": ".png", "image/jpeg": ".jpg", "image/jpg": ".jpg"}
_DOWNLOAD_EXTS = {".png", ".jpg", ".jpeg"}


def is_url(text: str) -> bool:
    return text.lower().startswith(("http://", "https://"))


def is_image_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTS


def _decode(data: BytesIO | Path, label: str) -> Image.Image:
    try:
        with Image.open(data) as im:
            im.load()
            return im.copy()
    except UnidentifiedImageError as exc:
        raise DecodeError(f"Not a recognizable image {label}") from exc
    except (OSError, SyntaxError) as exc:  # truncated / corrupt files
        raise DecodeError(f"Cannot decode image {label}: {exc}") from exc


def load_image(path: str | Path) -> Image.Image:
    """Load a local image file fully into memory.

    Raises:
        FileNotFoundError: path does not exist or is not a file.
        UnsupportedImageError: the extension is not an image extension.
        DecodeError: the file cannot be decoded.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"File not found: {p}")
    if not is_image_file(p):
        raise UnsupportedImageError(f"Not an image file: {p}")
    return _decode(p, str(p))


def _name_from_url(url: str, ext: str) -> str:
    name = posixpath.basename(unquote(urlparse(url).path))
    if not name:
        return "download" + ext
    if Path(name).suffix.lower() not in _DOWNLOAD_EXTS:
        name += ext
    return name


def fetch_image(url: str, timeout: float = 15.0) -> Tuple[Image.Image, str]:
    """Download a PNG or JPEG and return (image, file name derived from the URL)."""
    log.debug("GET %s", url)
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()

    ctype = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
    url_ext = Path(urlparse(url).path).suffix.lower()
    if ctype in _DOWNLOAD_TYPES:
        ext = _DOWNLOAD_TYPES[ctype]
    elif ctype in ("", "application/octet-stream") and url_ext in _DOWNLOAD_EXTS:
        ext = url_ext
    else:
        raise UnsupportedImageError(
            f"Unsupported download {url}: content type {ctype or 'unknown'!r}, only PNG and JPEG are accepted"
        )

    image = _decode(BytesIO(resp.content), url)
    return image, _name_from_url(url, ext)


# ---- output ----
def output_name(name: str, prefix: str = "token_", strip: Iterable[str] = ("danimalsound_",)) -> str:
    """token_<base name>.png. Each strip marker is removed once from the whole path, then the base name is taken."""
    path = str(name)
    for marker in strip:
        path = path.replace(marker, "", 1)
    stem = Path(path).stem or "image"
    return f"{prefix}{stem}.png"


def save_png(image: Image.Image, out_dir: str | Path, name: str) -> Path:
    out_path = ensure_dir(out_dir) / name
    image.save(out_path, format="PNG")
    return out_path
