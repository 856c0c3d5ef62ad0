"""Builders for small synthetic rasters and PGM buffers."""
from __future__ import annotations

import numpy as np

from casemap.core.map_module.map_raster import RasterImage

FREE = 254
OCCUPIED = 0

MAP_YAML = """\
image: map.pgm
resolution: 0.05
origin: [-5.0, -5.0, 0.0]
negate: 0
occupied_thresh: 0.65
free_thresh: 0.196
"""


def make_p5(arr: np.ndarray, maxval: int = 255) -> bytes:
    h, w = arr.shape
    header = f"P5\n{w} {h}\n{maxval}\n".encode()
    if maxval > 255:
        return header + arr.astype(">u2").tobytes()
    return header + arr.astype(np.uint8).tobytes()


def block_raster(width: int = 10, height: int = 10, blocks=((2, 2, 4, 4),)) -> RasterImage:
    arr = np.full((height, width), FREE, dtype=np.uint8)
    for x0, y0, x1, y1 in blocks:
        arr[y0:y1 + 1, x0:x1 + 1] = OCCUPIED
    return RasterImage.from_array(arr)
