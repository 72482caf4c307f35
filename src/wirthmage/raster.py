"""Owned RGBA pixel buffer shared by every pipeline stage."""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from PIL import Image

from wirthmage.dimension import Dimension
from wirthmage.errors import PreconditionError

RGBA = tuple[int, int, int, int]


class Raster:
    """A width × height RGBA8 buffer backed by a ``(height, width, 4)`` array.

    Stages either mutate :attr:`data` in place (mask, alpha binarization)
    or build a replacement raster (resize, outline).  A raster always owns
    its array; constructors copy unless told otherwise.
    """

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray, *, copy: bool = True) -> None:
        if data.ndim != 3 or data.shape[2] != 4:
            raise PreconditionError(
                f"Raster data must have shape (height, width, 4), got {data.shape}"
            )
        arr = np.array(data, dtype=np.uint8, copy=True) if copy else data
        if arr.dtype != np.uint8:
            arr = arr.astype(np.uint8)
        self.data = np.ascontiguousarray(arr)

    # -- construction -----------------------------------------------------

    @classmethod
    def new(
        cls, width: int, height: int, fill: RGBA = (0, 0, 0, 0)
    ) -> Raster:
        """Create a raster filled with a single RGBA color."""
        if width <= 0 or height <= 0:
            raise PreconditionError(f"Raster must have a positive area: {width}x{height}")
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[...] = fill
        return cls(data, copy=False)

    @classmethod
    def from_image(cls, image: Image.Image) -> Raster:
        """Copy a PIL image into a new raster (converted to RGBA)."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.asarray(image), copy=True)

    def to_image(self) -> Image.Image:
        """Return a PIL RGBA image holding a copy of the pixels."""
        return Image.fromarray(self.data.copy())

    # -- geometry ---------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def dimension(self) -> Dimension:
        return Dimension(self.width, self.height)

    @property
    def rgb(self) -> np.ndarray:
        """View of the color channels, shape ``(height, width, 3)``."""
        return self.data[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel, shape ``(height, width)``."""
        return self.data[..., 3]

    # -- pixel access -----------------------------------------------------

    def get_pixel(self, x: int, y: int) -> RGBA:
        r, g, b, a = self.data[y, x]
        return (int(r), int(g), int(b), int(a))

    def set_pixel(self, x: int, y: int, value: RGBA) -> None:
        self.data[y, x] = value

    def transform(self, fn: Callable[[Raster], Raster | None]) -> Raster:
        """Apply *fn* to the whole buffer and keep its result.

        *fn* may mutate the raster and return None, or return a replacement
        raster whose pixels are copied back into this one (dimensions may
        change).  Returns ``self`` for chaining.
        """
        result = fn(self)
        if result is not None and result is not self:
            self.data = np.array(result.data, dtype=np.uint8, copy=True)
        return self

    def crop(self, x: int, y: int, width: int, height: int) -> Raster:
        """Copy the sub-region starting at ``(x, y)`` into a new raster."""
        if width <= 0 or height <= 0:
            raise PreconditionError(f"Crop must have a positive area: {width}x{height}")
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise PreconditionError(
                f"Crop {width}x{height}+{x}+{y} exceeds raster {self.dimension}"
            )
        return Raster(self.data[y : y + height, x : x + width], copy=True)

    def copy(self) -> Raster:
        return Raster(self.data, copy=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(
            np.array_equal(self.data, other.data)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height})"
