"""Decoding source files into rasters and writing encoded outputs."""

from __future__ import annotations

import os
import threading
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from wirthmage.errors import DecodeError
from wirthmage.logging import get_logger
from wirthmage.models import EncodedImage
from wirthmage.raster import Raster

logger = get_logger("image_io")


def load_raster(image_path: str | Path) -> Raster:
    """Decode an image file into an RGBA raster.

    EXIF orientation is applied so the raster matches what viewers show.

    Raises:
        DecodeError: If the file is missing or not a decodable image.
    """
    path = Path(image_path)
    if not path.is_file():
        raise DecodeError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            raster = Raster.from_image(oriented)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image: {path}") from exc

    if raster.width == 0 or raster.height == 0:
        raise DecodeError(f"Image has no pixels: {path}")
    logger.debug("Decoded %s (%s)", path.name, raster.dimension)
    return raster


def write_output(directory: Path, file_name: str, encoded: EncodedImage) -> Path:
    """Atomically write *encoded* to ``directory / file_name``.

    Data goes to a same-directory temp file first and is then renamed over
    the target, so an interrupted batch never leaves a truncated image.
    """
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / file_name
    tmp_path = target.with_name(
        f".{target.name}.tmp-{os.getpid()}-{threading.get_ident()}"
    )
    tmp_path.write_bytes(encoded.data)
    tmp_path.replace(target)
    logger.info("Wrote %s (%d bytes)", target, len(encoded.data))
    return target
