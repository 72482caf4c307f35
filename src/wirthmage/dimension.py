"""Immutable width/height values and the fixed output size presets."""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping


@dataclass(frozen=True)
class Dimension:
    """A width × height pair in pixels.

    Both operations return new instances and floor fractional results.
    ``scale(0)`` produces a degenerate 0×0 value; callers must never ask
    for it, and it is not checked here.
    """

    width: int
    height: int

    @property
    def pixels(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def scale(self, factor: float) -> Dimension:
        """Multiply each side by *factor*, flooring independently."""
        return Dimension(
            math.floor(self.width * factor), math.floor(self.height * factor)
        )

    def limit_pixels(self, max_pixels: int) -> Dimension:
        """Shrink to at most *max_pixels* while keeping the aspect ratio."""
        if self.pixels <= max_pixels:
            return Dimension(self.width, self.height)
        ratio = self.aspect_ratio
        height = math.sqrt(max_pixels / ratio)
        width = height * ratio
        return Dimension(math.floor(width), math.floor(height))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


PresetName = Literal["FULL", "YADO", "CARD"]

DIMENSION_PRESETS: Mapping[str, Dimension] = MappingProxyType(
    {
        "FULL": Dimension(632, 420),
        "YADO": Dimension(400, 260),
        "CARD": Dimension(74, 94),
    }
)


def preset_dimension(name: str, scale: float = 1) -> Dimension:
    """Return the preset *name* scaled by *scale*.

    Raises:
        KeyError: If *name* is not a known preset.
    """
    return DIMENSION_PRESETS[name].scale(scale)
