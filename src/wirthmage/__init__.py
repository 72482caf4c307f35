"""Wirthmage — convert images into small indexed BMP/PNG/JPEG assets."""

from wirthmage.batch import BatchConverter, BatchReport
from wirthmage.colors import OUTLINE_NAMES, OUTLINE_STYLES, parse_color
from wirthmage.config import ConverterSettings, load_settings, save_settings
from wirthmage.dimension import DIMENSION_PRESETS, Dimension, preset_dimension
from wirthmage.encoders import encode
from wirthmage.errors import (
    ColorParseError,
    ConfigError,
    DecodeError,
    EncodeError,
    NoProcessedDataError,
    PreconditionError,
    WirthmageError,
)
from wirthmage.image_io import load_raster, write_output
from wirthmage.logging import get_logger, setup_logging
from wirthmage.masking import draw_outline, flatten_background, mask
from wirthmage.models import (
    BmpFormat,
    ConvertOptions,
    EncodedImage,
    JpegFormat,
    OutlineStyle,
    OutputFormat,
    OutputType,
    Palette,
    PngFormat,
)
from wirthmage.processor import ImageProcessor, ProcessedImage
from wirthmage.quantize import IndexedRaster, finalize, quantize
from wirthmage.raster import Raster
from wirthmage.resize import calculate_center_crop, resize

__all__ = [
    "BatchConverter",
    "BatchReport",
    "BmpFormat",
    "ColorParseError",
    "ConfigError",
    "ConvertOptions",
    "ConverterSettings",
    "DIMENSION_PRESETS",
    "DecodeError",
    "Dimension",
    "EncodeError",
    "EncodedImage",
    "ImageProcessor",
    "IndexedRaster",
    "JpegFormat",
    "NoProcessedDataError",
    "OUTLINE_NAMES",
    "OUTLINE_STYLES",
    "OutlineStyle",
    "OutputFormat",
    "OutputType",
    "Palette",
    "PngFormat",
    "PreconditionError",
    "ProcessedImage",
    "Raster",
    "WirthmageError",
    "calculate_center_crop",
    "draw_outline",
    "encode",
    "finalize",
    "flatten_background",
    "get_logger",
    "load_raster",
    "load_settings",
    "mask",
    "parse_color",
    "preset_dimension",
    "quantize",
    "resize",
    "save_settings",
    "setup_logging",
    "write_output",
]
