"""Shared fixtures for wirthmage tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from wirthmage.raster import Raster

RED = (255, 0, 0)
NEAR_RED = (254, 0, 0)


def solid(width: int, height: int, rgba: tuple[int, int, int, int]) -> Raster:
    """A raster filled with one RGBA value."""
    return Raster.new(width, height, rgba)


def colorful_disc(size: int = 400, radius: int = 120) -> Raster:
    """White opaque square with a rainbow-gradient disc in the middle."""
    yy, xx = np.mgrid[0:size, 0:size]
    data = np.full((size, size, 4), 255, dtype=np.uint8)
    inside = (xx - size // 2) ** 2 + (yy - size // 2) ** 2 <= radius**2
    data[..., 0] = np.where(inside, xx * 255 // size, 255)
    data[..., 1] = np.where(inside, yy * 255 // size, 255)
    data[..., 2] = np.where(inside, (xx + yy) * 255 // (2 * size), 255)
    return Raster(data)


# ---------------------------------------------------------------------------
# Raster fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def red_with_near_red_square() -> Raster:
    """10×10 red background with a 4×4 (254, 0, 0) square at (3, 3)."""
    raster = solid(10, 10, (*RED, 255))
    raster.data[3:7, 3:7, :3] = NEAR_RED
    return raster


@pytest.fixture()
def gradient() -> Raster:
    """64×32 opaque gradient with many distinct colors."""
    yy, xx = np.mgrid[0:32, 0:64]
    data = np.empty((32, 64, 4), dtype=np.uint8)
    data[..., 0] = xx * 4
    data[..., 1] = yy * 8
    data[..., 2] = 255 - xx * 2
    data[..., 3] = 255
    return Raster(data)


@pytest.fixture()
def disc_source() -> Raster:
    """400×400 opaque-background source used for end-to-end conversions."""
    return colorful_disc()


@pytest.fixture()
def image_file(tmp_path: Path) -> Path:
    """A small PNG on disk with a white background and a blue square."""
    img = Image.new("RGBA", (60, 40), (255, 255, 255, 255))
    for x in range(20, 40):
        for y in range(10, 30):
            img.putpixel((x, y), (30, 60, 200, 255))
    path = tmp_path / "sample.png"
    img.save(path)
    return path
