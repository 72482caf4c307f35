"""Wirthmage error hierarchy.

Every exception raised by the conversion core inherits from
WirthmageError, so a batch driver can catch the base class for per-item
reporting while tests target the specific subclasses.
"""


class WirthmageError(Exception):
    """Base exception for all Wirthmage errors."""


class ConfigError(WirthmageError):
    """Raised when a settings file cannot be loaded or validated."""


class DecodeError(WirthmageError):
    """Raised when a source image cannot be decoded into a raster."""


class ColorParseError(WirthmageError, ValueError):
    """Raised when an outline color string cannot be resolved to RGB."""


class PreconditionError(WirthmageError, ValueError):
    """Raised when a caller passes values the pipeline must never receive
    (zero-area dimensions, negative color counts)."""


class EncodeError(WirthmageError):
    """Raised when a processed image cannot be serialized."""


class NoProcessedDataError(EncodeError):
    """Raised when an encoder runs before any image has been processed."""
