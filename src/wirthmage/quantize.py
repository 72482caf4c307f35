"""Palette construction (Wu) and pixel remapping (Floyd–Steinberg, nearest).

The palette builder follows Xiaolin Wu's variance-minimizing box split
over a 32×32×32 RGB histogram.  Cumulative moment tables make the sum
over any box an 8-term lookup, so each candidate cut is O(1).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numba import njit

from wirthmage.colors import RGB
from wirthmage.errors import PreconditionError
from wirthmage.logging import get_logger
from wirthmage.masking import ALPHA_THRESHOLD
from wirthmage.models import MAX_PALETTE_COLORS, Palette
from wirthmage.raster import Raster

logger = get_logger("quantize")

_SIDE = 33  # 32 histogram bins per channel plus a zero row for prefix sums
_NEAREST_CHUNK = 4096

Cube = tuple[int, int, int, int, int, int]  # r0, r1, g0, g1, b0, b1 (exclusive lows)


def clamp_colors(colors: int | float) -> int:
    """Clamp a requested palette size to [2, 256].

    Raises:
        PreconditionError: If *colors* is negative or not a number.
    """
    if isinstance(colors, bool) or not isinstance(colors, (int, float)):
        raise PreconditionError(f"colors must be a number, got {colors!r}")
    if colors < 0 or colors != colors:
        raise PreconditionError(f"colors must not be negative, got {colors}")
    return max(2, min(MAX_PALETTE_COLORS, int(round(colors))))


# ---------------------------------------------------------------------------
# Wu palette
# ---------------------------------------------------------------------------


class WuQuantizer:
    """Builds a palette of at most *max_colors* entries from RGB pixels."""

    def __init__(self, pixels: np.ndarray) -> None:
        rgb = pixels.reshape(-1, 3).astype(np.int64)
        bins = (rgb >> 3) + 1
        flat = (bins[:, 0] * _SIDE + bins[:, 1]) * _SIDE + bins[:, 2]
        size = _SIDE**3

        moments = np.empty((5, size), dtype=np.float64)
        moments[0] = np.bincount(flat, minlength=size)
        moments[1] = np.bincount(flat, weights=rgb[:, 0], minlength=size)
        moments[2] = np.bincount(flat, weights=rgb[:, 1], minlength=size)
        moments[3] = np.bincount(flat, weights=rgb[:, 2], minlength=size)
        moments[4] = np.bincount(
            flat, weights=(rgb * rgb).sum(axis=1), minlength=size
        )
        m = moments.reshape(5, _SIDE, _SIDE, _SIDE)
        self._m = m.cumsum(axis=1).cumsum(axis=2).cumsum(axis=3)
        # Views with the cut axis moved to position 1.
        self._by_axis = (
            self._m,
            np.moveaxis(self._m, 2, 1),
            np.moveaxis(self._m, 3, 1),
        )

    def _volume(self, cube: Cube) -> np.ndarray:
        r0, r1, g0, g1, b0, b1 = cube
        m = self._m
        return (
            m[:, r1, g1, b1]
            - m[:, r1, g1, b0]
            - m[:, r1, g0, b1]
            + m[:, r1, g0, b0]
            - m[:, r0, g1, b1]
            + m[:, r0, g1, b0]
            + m[:, r0, g0, b1]
            - m[:, r0, g0, b0]
        )

    def _variance(self, cube: Cube) -> float:
        r0, r1, g0, g1, b0, b1 = cube
        if (r1 - r0) * (g1 - g0) * (b1 - b0) <= 1:
            return 0.0
        w, sr, sg, sb, s2 = self._volume(cube)
        if w == 0:
            return 0.0
        return float(s2 - (sr * sr + sg * sg + sb * sb) / w)

    def _split(self, cube: Cube) -> tuple[Cube, Cube] | None:
        whole = self._volume(cube)
        bounds = [(cube[0], cube[1]), (cube[2], cube[3]), (cube[4], cube[5])]

        best_score = 0.0
        best: tuple[int, int] | None = None
        for axis in range(3):
            lo, hi = bounds[axis]
            if hi - lo < 2:
                continue
            (p0, p1), (q0, q1) = [bounds[a] for a in range(3) if a != axis]
            view = self._by_axis[axis]

            def face(c: np.ndarray | int) -> np.ndarray:
                return (
                    view[:, c, p1, q1]
                    - view[:, c, p1, q0]
                    - view[:, c, p0, q1]
                    + view[:, c, p0, q0]
                )

            cuts = np.arange(lo + 1, hi)
            lower = face(cuts) - face(lo)[:, None]
            upper = whole[:, None] - lower
            w0, w1 = lower[0], upper[0]
            valid = (w0 > 0) & (w1 > 0)
            if not valid.any():
                continue
            with np.errstate(divide="ignore", invalid="ignore"):
                score = (lower[1:4] ** 2).sum(axis=0) / w0 + (
                    upper[1:4] ** 2
                ).sum(axis=0) / w1
            score = np.where(valid, score, -1.0)
            pos = int(score.argmax())
            if score[pos] > best_score:
                best_score = float(score[pos])
                best = (axis, int(cuts[pos]))

        if best is None:
            return None
        axis, cut = best
        first = list(cube)
        second = list(cube)
        first[axis * 2 + 1] = cut
        second[axis * 2] = cut
        return tuple(first), tuple(second)  # type: ignore[return-value]

    def palette(self, max_colors: int) -> list[RGB]:
        cubes: list[Cube] = [(0, _SIDE - 1, 0, _SIDE - 1, 0, _SIDE - 1)]
        variances = [self._variance(cubes[0])]

        while len(cubes) < max_colors:
            target = int(np.argmax(variances))
            if variances[target] <= 0:
                break
            halves = self._split(cubes[target])
            if halves is None:
                variances[target] = 0.0
                continue
            first, second = halves
            cubes[target] = first
            variances[target] = self._variance(first)
            cubes.append(second)
            variances.append(self._variance(second))

        colors: list[RGB] = []
        seen: set[RGB] = set()
        for cube in cubes:
            w, sr, sg, sb, _ = self._volume(cube)
            if w <= 0:
                continue
            color = (int(round(sr / w)), int(round(sg / w)), int(round(sb / w)))
            if color not in seen:
                seen.add(color)
                colors.append(color)
        return colors


def build_palette(raster: Raster, colors: int) -> Palette:
    """Build a Wu palette of at most *colors* entries from every pixel's RGB.

    Alpha is ignored; transparent pixels contribute like opaque ones.
    """
    count = clamp_colors(colors)
    entries = WuQuantizer(raster.rgb).palette(count)
    logger.debug("Wu palette: %d of %d requested colors", len(entries), count)
    return Palette(colors=entries)


# ---------------------------------------------------------------------------
# Remapping
# ---------------------------------------------------------------------------


def nearest_indices(rgb: np.ndarray, palette: Palette) -> np.ndarray:
    """Exact Euclidean nearest palette index for each pixel.

    Ties resolve to the lowest index.  Distances are computed once per
    distinct color, in chunks, so large photos stay within memory.

    Args:
        rgb: Array of shape ``(..., 3)``.
        palette: Non-empty palette.

    Returns:
        uint8 array with the leading shape of *rgb*.
    """
    pal = palette.as_array().astype(np.int64)
    if len(pal) == 0:
        raise PreconditionError("Cannot map pixels onto an empty palette")
    flat = rgb.reshape(-1, 3).astype(np.int64)
    keys = (flat[:, 0] << 16) | (flat[:, 1] << 8) | flat[:, 2]
    unique, inverse = np.unique(keys, return_inverse=True)
    unique_rgb = np.stack(
        [(unique >> 16) & 0xFF, (unique >> 8) & 0xFF, unique & 0xFF], axis=1
    )

    best = np.empty(len(unique), dtype=np.uint8)
    for start in range(0, len(unique), _NEAREST_CHUNK):
        chunk = unique_rgb[start : start + _NEAREST_CHUNK]
        diff = chunk[:, None, :] - pal[None, :, :]
        best[start : start + len(chunk)] = (diff * diff).sum(axis=2).argmin(axis=1)
    return best[inverse.reshape(-1)].reshape(rgb.shape[:-1])


@njit
def _diffuse(rgb, visible, pal):
    """Floyd–Steinberg over a float ``(H, W, 3)`` buffer, updated in place.

    Pixels pick the nearest palette entry (lowest index on ties) for their
    clamped, rounded color; error only flows to neighbours whose
    ``visible`` flag matches.
    """
    height, width = visible.shape
    n_colors = pal.shape[0]
    indices = np.zeros((height, width), dtype=np.uint8)
    err = np.zeros(3)
    weights = (7.0 / 16.0, 3.0 / 16.0, 5.0 / 16.0, 1.0 / 16.0)

    for y in range(height):
        for x in range(width):
            for c in range(3):
                rgb[y, x, c] = min(255.0, max(0.0, rgb[y, x, c]))

            best = 0
            best_dist = np.inf
            for k in range(n_colors):
                dist = 0.0
                for c in range(3):
                    d = np.floor(rgb[y, x, c] + 0.5) - pal[k, c]
                    dist += d * d
                if dist < best_dist:
                    best_dist = dist
                    best = k
            indices[y, x] = best

            for c in range(3):
                err[c] = rgb[y, x, c] - pal[best, c]
            if err[0] == 0.0 and err[1] == 0.0 and err[2] == 0.0:
                continue

            vis = visible[y, x]
            # right, down-left, down, down-right
            targets = ((y, x + 1), (y + 1, x - 1), (y + 1, x), (y + 1, x + 1))
            for t in range(4):
                ty, tx = targets[t]
                if ty >= height or tx < 0 or tx >= width:
                    continue
                if visible[ty, tx] != vis:
                    continue
                for c in range(3):
                    rgb[ty, tx, c] += err[c] * weights[t]

    return indices


def dither(raster: Raster, palette: Palette) -> Raster:
    """Remap *raster* onto *palette* with Floyd–Steinberg error diffusion.

    Error goes 7/16 right, 3/16 down-left, 5/16 down and 1/16 down-right,
    and only between pixels of the same opacity class, so the transparent
    background and the visible subject never dither against each other.
    Alpha is preserved.
    """
    pal = palette.as_array().astype(np.float64)
    if len(pal) == 0:
        raise PreconditionError("Cannot dither onto an empty palette")

    work = raster.rgb.astype(np.float64)
    visible = raster.alpha >= ALPHA_THRESHOLD
    indices = _diffuse(work, visible, pal)

    out = raster.copy()
    out.data[..., :3] = pal.astype(np.uint8)[indices]
    return out


def quantize(raster: Raster, colors: int) -> Raster:
    """Reduce *raster* to at most *colors* colors with dithering.

    *colors* is clamped to [2, 256].
    """
    palette = build_palette(raster, colors)
    return dither(raster, palette)


# ---------------------------------------------------------------------------
# Finalize
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexedRaster:
    """Palette indices for every pixel of a finalized image.

    ``palette[0]`` is the color of pixel (0, 0), which encoders treat as
    the background entry.
    """

    indices: np.ndarray
    palette: Palette

    @property
    def width(self) -> int:
        return int(self.indices.shape[1])

    @property
    def height(self) -> int:
        return int(self.indices.shape[0])

    def to_rgb(self) -> np.ndarray:
        """Expand indices back to an ``(height, width, 3)`` uint8 array."""
        return self.palette.as_array().astype(np.uint8)[self.indices]


def finalize(raster: Raster, colors: int) -> IndexedRaster | None:
    """Rebuild the palette from the final pixels and index every pixel.

    The color of pixel (0, 0) is forced into slot 0 and removed from the
    rest of the palette; pixels are mapped by pure nearest color (no
    dithering).  Returns None when *colors* is 0: the image stays direct
    24-bit color.
    """
    if colors == 0:
        return None

    count = clamp_colors(colors)
    candidates = build_palette(raster, count).colors
    r, g, b, _ = raster.get_pixel(0, 0)
    background = (r, g, b)
    entries = [background] + [c for c in candidates if c != background]
    palette = Palette(colors=entries[:count])
    indices = nearest_indices(raster.rgb, palette)
    logger.debug(
        "Finalized %dx%d raster onto %d palette entries",
        raster.width,
        raster.height,
        len(palette),
    )
    return IndexedRaster(indices=indices, palette=palette)
