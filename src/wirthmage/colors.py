"""Color-string resolution and the named outline styles."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from PIL import ImageColor

from wirthmage.errors import ColorParseError

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)

# Japanese names used by the settings form.
_NAMED_COLORS: Mapping[str, RGB] = MappingProxyType({"黒": BLACK, "白": WHITE})

_RGB_FUNC = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*[\d.]+\s*)?\)$"
)


def parse_color(value: str | RGB) -> RGB:
    """Resolve a CSS-style color string to an ``(R, G, B)`` tuple.

    Accepts ``#rgb``, ``#rrggbb``, ``rgb(r, g, b)``, CSS color names
    (``"black"``, ``"white"``, ...), the names ``黒`` and ``白``, or an
    RGB tuple which is validated and returned unchanged.

    Raises:
        ColorParseError: If the value cannot be resolved.
    """
    if isinstance(value, (tuple, list)):
        if len(value) != 3 or not all(
            isinstance(c, int) and 0 <= c <= 255 for c in value
        ):
            raise ColorParseError(f"Invalid RGB triple: {value!r}")
        return (value[0], value[1], value[2])

    text = value.strip()
    if text in _NAMED_COLORS:
        return _NAMED_COLORS[text]

    match = _RGB_FUNC.match(text.lower())
    if match:
        channels = tuple(int(c) for c in match.groups())
        if any(c > 255 for c in channels):
            raise ColorParseError(f"Color channel out of range: {value!r}")
        return (channels[0], channels[1], channels[2])

    try:
        resolved = ImageColor.getrgb(text)
    except ValueError as exc:
        raise ColorParseError(f"Unknown color: {value!r}") from exc
    return (resolved[0], resolved[1], resolved[2])


def color_to_css(color: RGB) -> str:
    """Format an RGB tuple as ``rgb(r,g,b)``."""
    return f"rgb({color[0]},{color[1]},{color[2]})"


# Outline presets offered by the settings form, keyed by their display
# name and an ASCII alias.  Values are (inner, outer).
_OUTLINE_PRESETS: dict[str, tuple[RGB | None, RGB | None]] = {
    "黒": (BLACK, None),
    "白": (WHITE, None),
    "黒(外側)": (None, BLACK),
    "白(外側)": (None, WHITE),
    "黒+白(外側)": (BLACK, WHITE),
    "白+黒(外側)": (WHITE, BLACK),
}
_OUTLINE_ALIASES: dict[str, str] = {
    "black": "黒",
    "white": "白",
    "black-outer": "黒(外側)",
    "white-outer": "白(外側)",
    "black+white-outer": "黒+白(外側)",
    "white+black-outer": "白+黒(外側)",
}

OUTLINE_STYLES: Mapping[str, tuple[RGB | None, RGB | None]] = MappingProxyType(
    {
        **_OUTLINE_PRESETS,
        **{alias: _OUTLINE_PRESETS[name] for alias, name in _OUTLINE_ALIASES.items()},
    }
)

OUTLINE_NAMES: tuple[str, ...] = tuple(_OUTLINE_PRESETS) + tuple(_OUTLINE_ALIASES)
