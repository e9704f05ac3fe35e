# avatoken/process.py
"""Token rendering: circular clip, Lanczos downscale, ring border."""
from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .colors import Color, average_tone, to_8bit


class ConversionError(RuntimeError):
    """The resampled image is not in the pixel format the renderer draws on."""


# ---------- geometry ----------
def _distance_grid(width: int, height: int, cx: float, cy: float) -> np.ndarray:
    """Distance from (cx, cy) to every pixel center, shape (height, width)."""
    ys = np.arange(height, dtype=np.float32) + 0.5
    xs = np.arange(width, dtype=np.float32) + 0.5
    return np.hypot(xs[np.newaxis, :] - cx, ys[:, np.newaxis] - cy)


def _coverage_to_mask(cov: np.ndarray) -> Image.Image:
    return Image.fromarray(np.rint(cov * 255.0).astype(np.uint8))


def disc_mask(size: Tuple[int, int], center: Tuple[float, float], radius: float) -> Image.Image:
    """Anti-aliased filled circle as an "L" mask (255 inside, 0 outside)."""
    w, h = size
    d = _distance_grid(w, h, center[0], center[1])
    return _coverage_to_mask(np.clip(radius - d + 0.5, 0.0, 1.0))


def ring_mask(size: Tuple[int, int], center: Tuple[float, float],
              radius: float, width: float) -> Image.Image:
    """Anti-aliased ring: centerline `radius`, stroke `width`."""
    w, h = size
    d = _distance_grid(w, h, center[0], center[1])
    inner = radius - width / 2.0
    outer = radius + width / 2.0
    cov = np.minimum(d - inner + 0.5, outer - d + 0.5)
    return _coverage_to_mask(np.clip(cov, 0.0, 1.0))


# ---------- stages ----------
def composite_circle(image: Image.Image) -> Image.Image:
    """
    Clip `image` to the circle of radius min(W, H) / 2 centered on the canvas.

    The result keeps the source size, is RGBA, and is fully transparent
    outside the circle. Non-square sources are not re-centered: the circle
    sits in the middle of the canvas, the image stays at the origin.
    """
    src = image.copy() if image.mode == "RGBA" else to_8bit(image).convert("RGBA")
    width, height = src.size
    radius = min(width, height) / 2.0
    mask = disc_mask((width, height), (width / 2.0, height / 2.0), radius)

    alpha = np.asarray(src.getchannel("A"), dtype=np.uint16)
    clip = np.asarray(mask, dtype=np.uint16)
    src.putalpha(Image.fromarray(((alpha * clip + 127) // 255).astype(np.uint8)))

    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    # only pixels the circle touches are copied; the rest stay (0, 0, 0, 0)
    canvas.paste(src, (0, 0), mask.point(lambda v: 255 if v else 0))
    return canvas


def scale_and_border(image: Image.Image, scale: int, border_width: float, color: Color) -> Image.Image:
    """
    Resize to scale x scale with Lanczos and stroke a ring just inside the edge.

    The ring centerline has radius (scale - border_width) / 2, so with an
    opaque color its outer edge touches the canvas border.
    """
    scale = int(scale)
    if scale < 1:
        raise ValueError(f"scale must be >= 1, got {scale}")
    if not (0 <= border_width < scale):
        raise ValueError(f"border_width must be in [0, {scale}), got {border_width}")

    resized = image.resize((scale, scale), Image.Resampling.LANCZOS)
    if resized.mode != "RGBA":
        raise ConversionError(f"Expected an RGBA image after resampling, got {resized.mode}")

    if border_width == 0:
        return resized

    radius = (scale - border_width) / 2.0
    center = (scale / 2.0, scale / 2.0)

    ring = ring_mask((scale, scale), center, radius, border_width)
    r, g, b, a = color
    alpha = (np.asarray(ring, dtype=np.uint16) * a + 127) // 255
    layer = Image.new("RGBA", (scale, scale), (r, g, b, 0))
    layer.putalpha(Image.fromarray(alpha.astype(np.uint8)))
    return Image.alpha_composite(resized, layer)


def make_token(image: Image.Image,
               scale: int = 300,
               border_width: float = 10,
               color: Optional[Color] = None,
               brightness: int = 100,
               contrast: float = 10.0) -> Image.Image:
    """Full pipeline. With `color=None` the ring is tinted from the source's average tone."""
    clipped = composite_circle(image)
    if color is None:
        color = average_tone(image, brightness=brightness, contrast=contrast)
    return scale_and_border(clipped, scale, border_width, color)
