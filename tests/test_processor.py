"""Tests for wirthmage.processor — the full conversion pipeline."""

from __future__ import annotations

import io
import struct

import numpy as np
import pytest
from PIL import Image

from wirthmage.colors import BLACK, WHITE
from wirthmage.dimension import Dimension
from wirthmage.errors import NoProcessedDataError
from wirthmage.models import (
    BmpFormat,
    ConvertOptions,
    JpegFormat,
    OutlineStyle,
    OutputType,
    PngFormat,
)
from wirthmage.processor import ImageProcessor, format_for
from wirthmage.raster import Raster


@pytest.fixture()
def processor() -> ImageProcessor:
    return ImageProcessor()


@pytest.fixture()
def card_options() -> ConvertOptions:
    return ConvertOptions(
        image_size="CARD",
        scale=1,
        colors=16,
        mask=True,
        outline=OutlineStyle(inner="black"),
    )


class TestProcessorState:
    """Tests for the held-result lifecycle."""

    def test_encode_before_process_fails(self, processor: ImageProcessor) -> None:
        for call in (
            processor.encode_bmp,
            processor.encode_png,
            processor.encode_jpeg,
        ):
            with pytest.raises(NoProcessedDataError):
                call()

    def test_process_holds_latest_result(
        self, processor: ImageProcessor, gradient: Raster
    ) -> None:
        first = processor.process(gradient)
        assert processor.last_result is first
        second = processor.process(gradient, ConvertOptions(colors=4))
        assert processor.last_result is second
        assert second.indexed is not None

    def test_failed_process_clears_result(
        self, processor: ImageProcessor, gradient: Raster
    ) -> None:
        processor.process(gradient)
        with pytest.raises(AttributeError):
            processor.process(gradient, "CARD")  # type: ignore[arg-type]
        assert processor.last_result is None
        with pytest.raises(NoProcessedDataError):
            processor.encode_bmp()

    def test_source_is_not_modified(
        self, processor: ImageProcessor, disc_source: Raster, card_options: ConvertOptions
    ) -> None:
        before = disc_source.copy()
        processor.process(disc_source, card_options)
        assert disc_source == before


class TestPipeline:
    """Tests for stage selection and ordering."""

    def test_no_options_is_identity(
        self, processor: ImageProcessor, gradient: Raster
    ) -> None:
        result = processor.process(gradient)
        assert result.raster == gradient
        assert result.indexed is None
        assert result.background is None

    def test_direct_color_bmp_is_24bit(
        self, processor: ImageProcessor, gradient: Raster
    ) -> None:
        processor.process(gradient)
        data = processor.encode_bmp().data
        assert struct.unpack_from("<H", data, 28)[0] == 24

    def test_resize_to_scaled_preset(
        self, processor: ImageProcessor, disc_source: Raster
    ) -> None:
        result = processor.process(disc_source, ConvertOptions(image_size="CARD", scale=2))
        assert result.raster.dimension == Dimension(148, 188)

    def test_mask_flattens_background(
        self, processor: ImageProcessor, disc_source: Raster
    ) -> None:
        result = processor.process(disc_source, ConvertOptions(mask=True))
        assert result.background == WHITE
        assert result.masked
        assert int(result.raster.alpha.min()) == 255
        assert result.raster.get_pixel(0, 0) == (*WHITE, 255)

    def test_outline_ignored_without_mask(
        self, processor: ImageProcessor, disc_source: Raster
    ) -> None:
        opts = ConvertOptions(outline=OutlineStyle(inner=BLACK))
        result = processor.process(disc_source, opts)
        assert result.raster == disc_source

    def test_inner_outline_drawn_on_subject(
        self, processor: ImageProcessor, disc_source: Raster
    ) -> None:
        opts = ConvertOptions(mask=True, outline=OutlineStyle(inner=BLACK))
        result = processor.process(disc_source, opts)
        # leftmost pixel of the disc on the middle row
        assert result.raster.get_pixel(80, 200) == (*BLACK, 255)
        assert result.raster.get_pixel(79, 200) == (*WHITE, 255)

    def test_quantize_limits_colors(
        self, processor: ImageProcessor, disc_source: Raster
    ) -> None:
        result = processor.process(disc_source, ConvertOptions(colors=8))
        assert result.indexed is not None
        assert len(result.indexed.palette) <= 8
        r, g, b, _ = result.raster.get_pixel(0, 0)
        assert result.indexed.palette[0] == (r, g, b)


class TestEndToEnd:
    """Full conversions from a 400×400 source."""

    def test_card_bmp(
        self,
        processor: ImageProcessor,
        disc_source: Raster,
        card_options: ConvertOptions,
    ) -> None:
        result = processor.process(disc_source, card_options)
        assert result.raster.dimension == Dimension(74, 94)
        assert result.indexed is not None
        assert len(result.indexed.palette) == 16
        assert result.indexed.palette[0] == WHITE

        data = processor.encode_bmp().data
        assert struct.unpack_from("<H", data, 28)[0] == 4
        assert len(data) == 14 + 40 + 16 * 4 + 40 * 94 == 3878

    def test_card_png_with_alpha(
        self,
        processor: ImageProcessor,
        disc_source: Raster,
        card_options: ConvertOptions,
    ) -> None:
        processor.process(disc_source, card_options)
        encoded = processor.encode_png(mask=True)
        assert encoded.mime_type == "image/png"
        with Image.open(io.BytesIO(encoded.data)) as img:
            assert img.size == (74, 94)
            rgba = np.asarray(img.convert("RGBA"))
        assert rgba[0, 0, 3] == 0
        assert rgba[47, 37, 3] == 255

    def test_jpeg(self, processor: ImageProcessor, disc_source: Raster) -> None:
        processor.process(disc_source, ConvertOptions(image_size="YADO"))
        encoded = processor.encode_jpeg(0.7)
        assert encoded.data[:2] == b"\xff\xd8"
        with Image.open(io.BytesIO(encoded.data)) as img:
            assert img.size == (400, 260)

    def test_encode_does_not_change_state(
        self,
        processor: ImageProcessor,
        disc_source: Raster,
        card_options: ConvertOptions,
    ) -> None:
        result = processor.process(disc_source, card_options)
        first = processor.encode(BmpFormat()).data
        processor.encode(JpegFormat())
        assert processor.last_result is result
        assert processor.encode(BmpFormat()).data == first


class TestFormatFor:
    """Tests for mapping output types to encoder formats."""

    def test_bmp(self) -> None:
        assert format_for(OutputType.BMP, ConvertOptions()) == BmpFormat()

    def test_png_alpha_follows_mask(self) -> None:
        assert format_for(OutputType.PNG, ConvertOptions(mask=True)) == PngFormat(
            with_alpha=True
        )
        assert format_for(OutputType.PNG, ConvertOptions()) == PngFormat()

    def test_jpeg(self) -> None:
        assert isinstance(format_for(OutputType.JPEG, ConvertOptions()), JpegFormat)
