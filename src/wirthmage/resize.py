"""Aspect-preserving center crop followed by a quality resample."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageFilter

from wirthmage.dimension import Dimension
from wirthmage.errors import PreconditionError
from wirthmage.raster import Raster

UNSHARP_RADIUS = 0.6
UNSHARP_PERCENT = 50
UNSHARP_THRESHOLD = 2


@dataclass(frozen=True)
class CropRect:
    """Crop window in source pixels; bounds may be fractional."""

    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> tuple[float, float, float, float]:
        """``(left, upper, right, lower)`` as expected by ``Image.resize``."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


def calculate_center_crop(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
) -> CropRect:
    """Largest centered window of the source with the target's aspect ratio.

    A source wider than the target keeps its full height and loses width on
    both sides; otherwise it keeps its full width and loses height.
    """
    target_ratio = target_width / target_height
    source_ratio = source_width / source_height

    if source_ratio > target_ratio:
        width = source_height * target_ratio
        return CropRect(
            x=(source_width - width) / 2, y=0.0, width=width, height=float(source_height)
        )

    height = source_width / target_ratio
    return CropRect(
        x=0.0, y=(source_height - height) / 2, width=float(source_width), height=height
    )


def resize(raster: Raster, target: Dimension) -> Raster:
    """Center-crop *raster* to the target aspect ratio and resample it.

    Resampling uses Lanczos over the (possibly fractional) crop window,
    with alpha premultiplied by Pillow, followed by a light unsharp mask
    to recover edge contrast.  Alpha is left soft; callers that mask must
    re-binarize it.

    Raises:
        PreconditionError: If *target* has zero area.
    """
    if target.width <= 0 or target.height <= 0:
        raise PreconditionError(f"Cannot resize to zero-area dimension {target}")

    rect = calculate_center_crop(raster.width, raster.height, target.width, target.height)
    resized = raster.to_image().resize(
        (target.width, target.height),
        resample=Image.Resampling.LANCZOS,
        box=rect.box,
    )
    sharpened = resized.filter(
        ImageFilter.UnsharpMask(
            radius=UNSHARP_RADIUS,
            percent=UNSHARP_PERCENT,
            threshold=UNSHARP_THRESHOLD,
        )
    )
    return Raster.from_image(sharpened)
