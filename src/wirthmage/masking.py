"""Background masking, alpha binarization, outline synthesis, and flattening."""

from __future__ import annotations

import numpy as np
from PIL import Image

from wirthmage.colors import RGB
from wirthmage.models import OutlineStyle
from wirthmage.raster import Raster

ALPHA_THRESHOLD = 128


def mask(raster: Raster) -> RGB:
    """Make every pixel matching the top-left color transparent.

    The top-left pixel's RGB is the background key.  Exact matches get
    alpha 0; every other pixel has its alpha binarized at 128.  Mutates
    *raster* in place.

    Returns:
        The background key, for flattening after quantization.
    """
    r, g, b, _ = raster.get_pixel(0, 0)
    key = (r, g, b)
    matches = np.all(raster.rgb == np.asarray(key, dtype=np.uint8), axis=-1)
    alpha = raster.alpha
    alpha[:] = np.where(alpha < ALPHA_THRESHOLD, 0, 255).astype(np.uint8)
    alpha[matches] = 0
    return key


def apply_binary_alpha(raster: Raster) -> None:
    """Snap alpha to 0 or 255 at the 128 threshold, in place."""
    alpha = raster.alpha
    alpha[:] = np.where(alpha < ALPHA_THRESHOLD, 0, 255).astype(np.uint8)


def _neighbour_any(flags: np.ndarray) -> np.ndarray:
    """True where at least one 4-connected in-bounds neighbour is set."""
    out = np.zeros_like(flags)
    out[1:, :] |= flags[:-1, :]
    out[:-1, :] |= flags[1:, :]
    out[:, 1:] |= flags[:, :-1]
    out[:, :-1] |= flags[:, 1:]
    return out


def draw_outline(raster: Raster, style: OutlineStyle) -> Raster:
    """Paint a 1-pixel ring along the mask boundary.

    Opacity is read once from *raster* (alpha >= 128) and every write goes
    to a copy, so painted pixels never influence their neighbours within
    the same call.

    Args:
        raster: Source raster; left unmodified.
        style: ``outer`` paints transparent pixels next to opaque ones,
            ``inner`` paints opaque pixels next to transparent ones.

    Returns:
        A new raster with the outline applied.
    """
    opaque = raster.alpha >= ALPHA_THRESHOLD
    out = raster.copy()

    if style.outer is not None:
        ring = ~opaque & _neighbour_any(opaque)
        out.data[ring] = (*style.outer, 255)

    if style.inner is not None:
        ring = opaque & _neighbour_any(~opaque)
        out.data[ring] = (*style.inner, 255)

    return out


def flatten_background(raster: Raster, color: RGB) -> Raster:
    """Composite *raster* over an opaque fill of *color*.

    Equivalent to painting the background underneath the image; the
    result is fully opaque.
    """
    backdrop = Image.new("RGBA", (raster.width, raster.height), (*color, 255))
    composed = Image.alpha_composite(backdrop, raster.to_image())
    return Raster.from_image(composed)
