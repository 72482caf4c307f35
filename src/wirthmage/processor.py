"""Conversion pipeline orchestration.

``ImageProcessor.process`` runs the fixed stage order

    mask → resize (+ alpha re-binarization) → outline → quantize
    → flatten background → finalize

and returns a ``ProcessedImage``.  Encoding takes that value explicitly
(``encode(processed, fmt)``); the processor also keeps the most recent
result so the per-format ``encode_*`` helpers can be called right after
``process``.  Each worker owns its own processor.
"""

from __future__ import annotations

from dataclasses import dataclass

from wirthmage.colors import RGB
from wirthmage.dimension import preset_dimension
from wirthmage.encoders import encode
from wirthmage.errors import NoProcessedDataError
from wirthmage.logging import get_logger, log_stage
from wirthmage.masking import (
    apply_binary_alpha,
    draw_outline,
    flatten_background,
    mask,
)
from wirthmage.models import (
    BmpFormat,
    ConvertOptions,
    EncodedImage,
    JpegFormat,
    OutputFormat,
    OutputType,
    PngFormat,
)
from wirthmage.quantize import IndexedRaster, finalize, quantize
from wirthmage.raster import Raster
from wirthmage.resize import resize

logger = get_logger("processor")


@dataclass(frozen=True)
class ProcessedImage:
    """Result of one ``process`` call.

    Attributes:
        raster: Final RGBA pixels (background flattened when masked).
        indexed: Palette indices, or None for direct 24-bit color.
        masked: Whether background masking was requested.
        background: Background key captured by the mask stage, if any.
    """

    raster: Raster
    indexed: IndexedRaster | None
    masked: bool = False
    background: RGB | None = None

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height


def format_for(output_type: OutputType, options: ConvertOptions) -> OutputFormat:
    """Map a user-facing output type to an encoder format."""
    if output_type is OutputType.BMP:
        return BmpFormat()
    if output_type is OutputType.PNG:
        return PngFormat(with_alpha=options.mask)
    return JpegFormat()


class ImageProcessor:
    """Runs the conversion pipeline and holds its latest result."""

    def __init__(self) -> None:
        self._last: ProcessedImage | None = None

    @property
    def last_result(self) -> ProcessedImage | None:
        return self._last

    def process(
        self, source: Raster, options: ConvertOptions | None = None
    ) -> ProcessedImage:
        """Convert *source* according to *options*.

        The source raster is copied and never modified.  Any previously
        held result is discarded before the first stage runs.
        """
        self._last = None
        opts = options or ConvertOptions()
        raster = source.copy()

        background: RGB | None = None
        if opts.mask:
            with log_stage(logger, "mask"):
                background = mask(raster)

        if opts.image_size != "ASIS":
            target = preset_dimension(opts.image_size, opts.scale)
            with log_stage(logger, "resize", size=target):
                raster = resize(raster, target)
                if opts.mask:
                    # resampling blurs the alpha edge
                    apply_binary_alpha(raster)

        if opts.mask and opts.outline is not None and not opts.outline.is_empty:
            with log_stage(logger, "outline"):
                raster = draw_outline(raster, opts.outline)

        if opts.colors:
            # quantize while the background is still transparent
            with log_stage(logger, "quantize", colors=opts.colors):
                raster = quantize(raster, opts.colors)

        if background is not None:
            with log_stage(logger, "flatten"):
                raster = flatten_background(raster, background)

        with log_stage(logger, "finalize"):
            indexed = finalize(raster, opts.colors)

        result = ProcessedImage(
            raster=raster,
            indexed=indexed,
            masked=opts.mask,
            background=background,
        )
        logger.debug(
            "Processed %s -> %s (%s)",
            source.dimension,
            raster.dimension,
            f"{len(indexed.palette)} colors" if indexed else "direct color",
        )
        self._last = result
        return result

    def _require_result(self) -> ProcessedImage:
        if self._last is None:
            raise NoProcessedDataError("No processed data: call process() first")
        return self._last

    def encode(self, fmt: OutputFormat) -> EncodedImage:
        """Encode the held result in *fmt*."""
        return encode(self._require_result(), fmt)

    def encode_bmp(self) -> EncodedImage:
        return self.encode(BmpFormat())

    def encode_png(self, mask: bool = False) -> EncodedImage:
        return self.encode(PngFormat(with_alpha=mask))

    def encode_jpeg(self, quality: float = 0.85) -> EncodedImage:
        return self.encode(JpegFormat(quality=quality))
