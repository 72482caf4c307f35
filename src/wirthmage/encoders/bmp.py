"""Windows BMP writer for indexed (4/8-bit) and direct (24-bit) images.

Layout: BITMAPFILEHEADER (14 bytes), BITMAPINFOHEADER (40 bytes), palette
as B,G,R,0 quads, then bottom-up pixel rows each padded with zeros to a
4-byte boundary.
"""

from __future__ import annotations

import struct

import numpy as np

from wirthmage.errors import EncodeError
from wirthmage.quantize import IndexedRaster
from wirthmage.raster import Raster

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40


def bit_depth_for(palette_size: int | None) -> int:
    """4 for up to 16 entries, 8 for up to 256, 24 without a palette."""
    if palette_size is None:
        return 24
    if palette_size <= 16:
        return 4
    if palette_size <= 256:
        return 8
    raise EncodeError(f"BMP palette cannot hold {palette_size} colors")


def row_size(bit_depth: int, width: int) -> int:
    """Bytes per stored row, padded to a multiple of four."""
    return (bit_depth * width + 31) // 32 * 4


def _pack_rows(rows: np.ndarray, bit_depth: int, stride: int) -> bytes:
    """Pack top-down rows into a bottom-up, padded pixel array."""
    height = rows.shape[0]
    if bit_depth == 24:
        packed = rows[..., ::-1].reshape(height, -1)  # RGB -> BGR
    elif bit_depth == 8:
        packed = rows
    else:
        if rows.shape[1] % 2:
            rows = np.pad(rows, ((0, 0), (0, 1)))
        packed = (rows[:, 0::2] << 4) | (rows[:, 1::2] & 0x0F)

    out = np.zeros((height, stride), dtype=np.uint8)
    out[:, : packed.shape[1]] = packed
    return out[::-1].tobytes()


def encode_bmp(raster: Raster, indexed: IndexedRaster | None) -> bytes:
    """Serialize a finalized image as BMP.

    Args:
        raster: Final RGBA pixels, used for 24-bit output.
        indexed: Palette indices; when given, the file is 4- or 8-bit.

    Returns:
        The complete BMP file.
    """
    width, height = raster.width, raster.height
    if indexed is not None:
        palette = indexed.palette.colors
        depth = bit_depth_for(len(palette))
        rows = indexed.indices.astype(np.uint8)
    else:
        palette = []
        depth = 24
        rows = np.ascontiguousarray(raster.rgb)

    stride = row_size(depth, width)
    pixel_data_size = stride * height
    color_count = len(palette)
    offset = FILE_HEADER_SIZE + INFO_HEADER_SIZE + color_count * 4
    file_size = offset + pixel_data_size

    header = struct.pack("<2sIHHI", b"BM", file_size, 0, 0, offset)
    info = struct.pack(
        "<IiiHHIIiiII",
        INFO_HEADER_SIZE,
        width,
        height,  # positive height: bottom-up
        1,
        depth,
        0,  # BI_RGB
        pixel_data_size,
        0,
        0,
        color_count,
        color_count,
    )
    quads = b"".join(struct.pack("<BBBB", b, g, r, 0) for r, g, b in palette)

    data = header + info + quads + _pack_rows(rows, depth, stride)
    if len(data) != file_size:
        raise EncodeError(f"BMP size mismatch: wrote {len(data)}, expected {file_size}")
    return data
