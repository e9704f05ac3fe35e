"""Border colors: literal hex colors and the average-tone tint."""
from __future__ import annotations

import re
from typing import Tuple

import numpy as np
from PIL import Image

Color = Tuple[int, int, int, int]

BLACK: Color = (0, 0, 0, 255)

_HEX6 = re.compile(r"[0-9a-fA-F]{6}")

# single-channel modes that carry more than 8 bits per sample
_WIDE_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


def parse_hex_color(text: str) -> Color:
    """Parse ``#RRGGBB`` (leading ``#`` optional) into an opaque RGBA tuple.

    Anything that is not exactly six hex digits yields opaque black.
    """
    code = text or ""
    if code.startswith("#"):
        code = code[1:]
    if not _HEX6.fullmatch(code):
        return BLACK
    return (int(code[0:2], 16), int(code[2:4], 16), int(code[4:6], 16), 255)


def to_hex(color: Color) -> str:
    r, g, b = color[:3]
    return f"#{r:02x}{g:02x}{b:02x}"


def to_8bit(image: Image.Image) -> Image.Image:
    """16-bit single-channel images scaled down to an 8-bit "L" image; others unchanged."""
    if image.mode not in _WIDE_MODES:
        return image
    arr = np.asarray(image, dtype=np.int64)
    # "I" may hold anything, keep it in the 16-bit range first
    arr = np.clip(arr, 0, 65535) >> 8
    return Image.fromarray(arr.astype(np.uint8))


def _rgb_array(image: Image.Image) -> np.ndarray:
    """(N, 3) int64 array of 8-bit RGB samples."""
    arr = np.asarray(to_8bit(image).convert("RGB"), dtype=np.int64)
    return arr.reshape(-1, 3)


def average_tone(image: Image.Image, brightness: int = 100, contrast: float = 10.0) -> Color:
    """
    Representative color of an image, used as a border tint.

    1) per-channel mean of R, G, B over all pixels (alpha ignored, integer division)
    2) + brightness, clamped to [0, 255]
    3) contrast around the brightness-adjusted value itself, clamped to [0, 255]

    Step 3 uses the same value as sample and reference mean, so it leaves the
    color unchanged for any contrast factor.
    """
    rgb = _rgb_array(image)
    count = rgb.shape[0]
    if count == 0:
        raise ValueError("Cannot compute the average tone of an empty image")

    means = rgb.sum(axis=0) // count

    bright = np.clip(means + int(brightness), 0, 255).astype(np.float64)

    mean = bright
    contrasted = np.clip(mean + (bright - mean) * float(contrast), 0, 255)

    r, g, b = (int(v) for v in contrasted)
    return (r, g, b, 255)
