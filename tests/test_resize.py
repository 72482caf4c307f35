"""Tests for wirthmage.resize — center crop and resampling."""

from __future__ import annotations

import numpy as np
import pytest

from wirthmage.dimension import DIMENSION_PRESETS, Dimension
from wirthmage.errors import PreconditionError
from wirthmage.raster import Raster
from wirthmage.resize import CropRect, calculate_center_crop, resize


class TestCenterCrop:
    """Tests for calculate_center_crop."""

    def test_wide_source_loses_width(self) -> None:
        rect = calculate_center_crop(1000, 500, 4, 3)
        assert rect.width == pytest.approx(666.6667, abs=1e-3)
        assert rect.height == 500
        assert rect.x == pytest.approx(166.6667, abs=1e-3)
        assert rect.y == 0

    def test_tall_source_loses_height(self) -> None:
        rect = calculate_center_crop(500, 1000, 74, 94)
        assert rect.width == 500
        assert rect.height == pytest.approx(500 * 94 / 74)
        assert rect.x == 0
        assert rect.y == pytest.approx((1000 - 500 * 94 / 74) / 2)

    def test_same_aspect_keeps_everything(self) -> None:
        rect = calculate_center_crop(800, 600, 4, 3)
        assert rect == CropRect(0.0, 0.0, 800.0, 600.0)

    def test_box(self) -> None:
        assert CropRect(1.5, 2.0, 10.0, 20.0).box == (1.5, 2.0, 11.5, 22.0)


class TestResize:
    """Tests for resize."""

    def test_output_has_target_size(self, gradient: Raster) -> None:
        card = DIMENSION_PRESETS["CARD"]
        out = resize(gradient, card)
        assert out.dimension == card

    def test_upscale(self, gradient: Raster) -> None:
        out = resize(gradient, Dimension(128, 64))
        assert out.dimension == Dimension(128, 64)

    def test_uniform_color_is_preserved(self) -> None:
        raster = Raster.new(50, 30, (10, 200, 30, 255))
        out = resize(raster, Dimension(20, 20))
        diff = np.abs(out.data.astype(int) - np.array([10, 200, 30, 255]))
        assert int(diff.max()) <= 1

    def test_source_is_not_modified(self, gradient: Raster) -> None:
        before = gradient.copy()
        resize(gradient, Dimension(10, 10))
        assert gradient == before

    @pytest.mark.parametrize("target", [Dimension(0, 10), Dimension(10, 0)])
    def test_zero_area_is_precondition_error(
        self, gradient: Raster, target: Dimension
    ) -> None:
        with pytest.raises(PreconditionError):
            resize(gradient, target)
