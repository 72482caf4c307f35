"""Format encoders and the single dispatch entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wirthmage.encoders.bmp import bit_depth_for, encode_bmp, row_size
from wirthmage.encoders.jpeg import encode_jpeg
from wirthmage.encoders.png import encode_png
from wirthmage.errors import EncodeError
from wirthmage.models import (
    BmpFormat,
    EncodedImage,
    JpegFormat,
    OutputFormat,
    OutputType,
    PngFormat,
)

if TYPE_CHECKING:
    from wirthmage.processor import ProcessedImage


def encode(processed: ProcessedImage, fmt: OutputFormat) -> EncodedImage:
    """Serialize *processed* in the format described by *fmt*.

    Raises:
        EncodeError: If *fmt* is not a known output format.
    """
    if isinstance(fmt, BmpFormat):
        data = encode_bmp(processed.raster, processed.indexed)
        output_type = OutputType.BMP
    elif isinstance(fmt, PngFormat):
        data = encode_png(processed.raster, processed.indexed, fmt.with_alpha)
        output_type = OutputType.PNG
    elif isinstance(fmt, JpegFormat):
        data = encode_jpeg(processed.raster, fmt.quality)
        output_type = OutputType.JPEG
    else:
        raise EncodeError(f"Unsupported output format: {fmt!r}")

    return EncodedImage(
        data=data, mime_type=output_type.mime_type, extension=output_type.extension
    )


__all__ = [
    "bit_depth_for",
    "encode",
    "encode_bmp",
    "encode_jpeg",
    "encode_png",
    "row_size",
]
