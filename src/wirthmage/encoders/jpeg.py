"""JPEG output from the final direct pixels."""

from __future__ import annotations

import io

from wirthmage.raster import Raster

DEFAULT_QUALITY = 0.85


def encode_jpeg(raster: Raster, quality: float = DEFAULT_QUALITY) -> bytes:
    """Serialize *raster* as a progressive JPEG; alpha is dropped.

    *quality* is in (0, 1] and maps to Pillow's 1–100 scale.
    """
    buf = io.BytesIO()
    raster.to_image().convert("RGB").save(
        buf,
        format="JPEG",
        quality=max(1, min(100, round(quality * 100))),
        progressive=True,
        optimize=True,
    )
    return buf.getvalue()
