"""Pydantic models for conversion options, palettes, and output formats."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from wirthmage.colors import OUTLINE_STYLES, RGB, parse_color

ImageSize = Literal["ASIS", "FULL", "YADO", "CARD"]
MAX_PALETTE_COLORS = 256


class OutlineStyle(BaseModel):
    """Colors painted along the opaque/transparent boundary.

    Attributes:
        inner: Color for opaque pixels touching transparency, or None.
        outer: Color for transparent pixels touching opacity, or None.
    """

    model_config = ConfigDict(frozen=True)

    inner: RGB | None = None
    outer: RGB | None = None

    @field_validator("inner", "outer", mode="before")
    @classmethod
    def _resolve_color(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return parse_color(v)

    @classmethod
    def from_name(cls, name: str) -> OutlineStyle | None:
        """Look up a named outline preset; ``""`` or ``"none"`` means no outline.

        Raises:
            KeyError: If *name* is not a known preset.
        """
        if name in ("", "none"):
            return None
        inner, outer = OUTLINE_STYLES[name]
        return cls(inner=inner, outer=outer)

    @property
    def is_empty(self) -> bool:
        return self.inner is None and self.outer is None


class ConvertOptions(BaseModel):
    """Options for one conversion; immutable for the duration of ``process``.

    Attributes:
        image_size: Dimension preset name, or ``"ASIS"`` to keep the size.
        scale: Integer-like upscale factor applied to the preset (>= 1).
        colors: Palette size; 0 disables quantization, else 2–256.
        mask: Make pixels matching the top-left color transparent.
        outline: Outline style, only honored when ``mask`` is set.
    """

    model_config = ConfigDict(frozen=True)

    image_size: ImageSize = "ASIS"
    scale: float = Field(default=1, ge=1)
    colors: int = 0
    mask: bool = False
    outline: OutlineStyle | None = None

    @field_validator("colors")
    @classmethod
    def _colors_in_range(cls, v: int) -> int:
        if v != 0 and not 2 <= v <= MAX_PALETTE_COLORS:
            raise ValueError(
                f"colors must be 0 or between 2 and {MAX_PALETTE_COLORS}, got {v}"
            )
        return v

    @field_validator("outline", mode="before")
    @classmethod
    def _outline_from_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return OutlineStyle.from_name(v)
        return v


class Palette(BaseModel):
    """Ordered list of RGB entries (at most 256).

    When produced by the finalize step, entry 0 is the background color.
    """

    colors: list[RGB] = Field(default_factory=list, max_length=MAX_PALETTE_COLORS)

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> RGB:
        return self.colors[index]

    def as_array(self) -> np.ndarray:
        """Return the entries as an ``(n, 3)`` int32 array."""
        return np.asarray(self.colors, dtype=np.int32).reshape(-1, 3)


class OutputType(str, Enum):
    """File formats offered to the user."""

    BMP = "BMP"
    PNG = "PNG"
    JPEG = "JPEG"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]


_EXTENSIONS = {OutputType.BMP: ".bmp", OutputType.PNG: ".png", OutputType.JPEG: ".jpg"}
_MIME_TYPES = {
    OutputType.BMP: "image/bmp",
    OutputType.PNG: "image/png",
    OutputType.JPEG: "image/jpeg",
}


class BmpFormat(BaseModel):
    """Windows bitmap: 4/8-bit indexed, or 24-bit when there is no palette."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bmp"] = "bmp"


class PngFormat(BaseModel):
    """PNG; ``with_alpha`` turns palette slot 0 transparent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["png"] = "png"
    with_alpha: bool = False


class JpegFormat(BaseModel):
    """Lossy JPEG at ``quality`` in (0, 1]."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["jpeg"] = "jpeg"
    quality: float = Field(default=0.85, gt=0, le=1)


OutputFormat = Annotated[
    Union[BmpFormat, PngFormat, JpegFormat], Field(discriminator="kind")
]


class EncodedImage(BaseModel):
    """Serialized output tagged with its MIME type."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    extension: str

    def __len__(self) -> int:
        return len(self.data)


SCALE_SUFFIXES: dict[int, str] = {1: "", 2: ".x2", 4: ".x4"}


def output_filename(base_name: str, scale: int, output_type: OutputType) -> str:
    """Build ``{base}{suffix}{ext}``, e.g. ``card.x2.bmp``.

    Raises:
        KeyError: If *scale* is not 1, 2 or 4.
    """
    return f"{base_name}{SCALE_SUFFIXES[scale]}{output_type.extension}"
