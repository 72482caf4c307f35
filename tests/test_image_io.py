"""Tests for wirthmage.image_io — decoding and atomic writes."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from wirthmage.errors import DecodeError
from wirthmage.image_io import load_raster, write_output
from wirthmage.models import EncodedImage


class TestLoadRaster:
    """Tests for load_raster."""

    def test_decodes_png(self, image_file: Path) -> None:
        raster = load_raster(image_file)
        assert (raster.width, raster.height) == (60, 40)
        assert raster.get_pixel(0, 0) == (255, 255, 255, 255)
        assert raster.get_pixel(25, 15) == (30, 60, 200, 255)

    def test_rgb_source_becomes_opaque_rgba(self, tmp_path: Path) -> None:
        path = tmp_path / "rgb.jpg"
        Image.new("RGB", (8, 8), (0, 0, 0)).save(path)
        raster = load_raster(path)
        assert int(raster.alpha.min()) == 255

    def test_applies_exif_orientation(self, tmp_path: Path) -> None:
        path = tmp_path / "rotated.jpg"
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90° clockwise for display
        Image.new("RGB", (20, 10), (10, 10, 10)).save(path, exif=exif)
        raster = load_raster(path)
        assert (raster.width, raster.height) == (10, 20)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DecodeError, match="not found"):
            load_raster(tmp_path / "missing.png")

    def test_not_an_image(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.png"
        path.write_bytes(b"definitely not a png")
        with pytest.raises(DecodeError, match="Cannot decode"):
            load_raster(path)


class TestWriteOutput:
    """Tests for write_output."""

    def test_writes_bytes(self, tmp_path: Path) -> None:
        encoded = EncodedImage(data=b"BMdata", mime_type="image/bmp", extension=".bmp")
        target = write_output(tmp_path / "out", "card.bmp", encoded)
        assert target == tmp_path / "out" / "card.bmp"
        assert target.read_bytes() == b"BMdata"

    def test_overwrites_and_leaves_no_temp_files(self, tmp_path: Path) -> None:
        first = EncodedImage(data=b"one", mime_type="image/png", extension=".png")
        second = EncodedImage(data=b"two", mime_type="image/png", extension=".png")
        write_output(tmp_path, "a.png", first)
        write_output(tmp_path, "a.png", second)
        assert (tmp_path / "a.png").read_bytes() == b"two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.png"]
