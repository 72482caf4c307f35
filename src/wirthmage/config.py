"""Converter settings: YAML persistence and mapping onto ConvertOptions."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from wirthmage.colors import OUTLINE_STYLES
from wirthmage.errors import ConfigError
from wirthmage.logging import get_logger
from wirthmage.models import ConvertOptions, ImageSize, OutlineStyle, OutputType

logger = get_logger("config")

COLOR_CHOICES: tuple[int, ...] = (0, 2, 4, 8, 16, 32, 64, 128, 256)


class ConverterSettings(BaseModel):
    """User-facing settings, one field per control of the converter form.

    Attributes:
        output_size: Dimension preset, or ``"ASIS"`` to keep the size.
        scale_x2: Also produce a 2× output (ignored for ASIS).
        scale_x4: Also produce a 4× output (ignored for ASIS).
        output_type: BMP, PNG, or JPEG.
        colors: Palette size from ``COLOR_CHOICES``; 0 disables reduction.
        mask: Make the top-left color transparent.
        outline: Outline preset name, or ``""`` for none.
    """

    output_size: ImageSize = "ASIS"
    scale_x2: bool = False
    scale_x4: bool = False
    output_type: OutputType = OutputType.BMP
    colors: int = 0
    mask: bool = False
    outline: str = ""

    @field_validator("colors")
    @classmethod
    def _colors_is_choice(cls, v: int) -> int:
        if v not in COLOR_CHOICES:
            raise ValueError(f"colors must be one of {list(COLOR_CHOICES)}, got {v}")
        return v

    @field_validator("outline")
    @classmethod
    def _outline_is_known(cls, v: str) -> str:
        if v not in ("", "none") and v not in OUTLINE_STYLES:
            raise ValueError(f"Unknown outline style: {v!r}")
        return "" if v == "none" else v

    def scales(self) -> list[tuple[int, str]]:
        """Enabled ``(factor, file suffix)`` pairs; x2/x4 need a preset size."""
        pairs = [(1, "")]
        if self.output_size != "ASIS":
            if self.scale_x2:
                pairs.append((2, ".x2"))
            if self.scale_x4:
                pairs.append((4, ".x4"))
        return pairs

    def to_convert_options(self, scale: int = 1) -> ConvertOptions:
        """Build pipeline options, forcing off what the output cannot use.

        JPEG has no palette or transparency, so colors, mask, and outline
        are dropped; without a mask there is no boundary to outline.
        """
        colors, mask, outline = self.colors, self.mask, self.outline
        if self.output_type is OutputType.JPEG:
            colors, mask, outline = 0, False, ""
        elif not mask:
            outline = ""
        return ConvertOptions(
            image_size=self.output_size,
            scale=scale,
            colors=colors,
            mask=mask,
            outline=OutlineStyle.from_name(outline),
        )


def load_settings(path: str | Path) -> ConverterSettings:
    """Load converter settings from a YAML file.

    Missing keys fall back to the defaults.

    Raises:
        ConfigError: If the file is missing, malformed, or invalid.
    """
    resolved = Path(path)
    if not resolved.is_file():
        raise ConfigError(f"Settings file not found: {resolved}")

    with open(resolved, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {resolved}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}"
        )

    try:
        settings = ConverterSettings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {resolved}: {exc}") from exc

    logger.debug("Loaded settings from %s: %s", resolved, settings)
    return settings


def save_settings(settings: ConverterSettings, path: str | Path) -> Path:
    """Write *settings* to a YAML file and return its path."""
    resolved = Path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump(mode="json")
    with open(resolved, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, allow_unicode=True, sort_keys=False)
    return resolved
