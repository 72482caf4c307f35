"""PNG output: palette PNG when the image is indexed, RGBA otherwise."""

from __future__ import annotations

import io

from PIL import Image

from wirthmage.quantize import IndexedRaster
from wirthmage.raster import Raster


def encode_png(
    raster: Raster, indexed: IndexedRaster | None, with_alpha: bool = False
) -> bytes:
    """Serialize a finalized image as PNG.

    With a palette, pixels that resolve to palette slot 0 are fully
    transparent when *with_alpha* is set and everything else is opaque.
    Without a palette the final RGBA pixels are written as-is.  Pillow's
    ``optimize`` pass recompresses losslessly.
    """
    buf = io.BytesIO()
    if indexed is None:
        raster.to_image().save(buf, format="PNG", optimize=True)
        return buf.getvalue()

    image = Image.frombytes(
        "P", (indexed.width, indexed.height), indexed.indices.astype("uint8").tobytes()
    )
    flat: list[int] = []
    for color in indexed.palette.colors:
        flat.extend(color)
    image.putpalette(flat)

    params: dict[str, object] = {"optimize": True}
    if with_alpha:
        params["transparency"] = 0
    image.save(buf, format="PNG", **params)
    return buf.getvalue()
