"""Map module package: raster, metadata, transform, contours, output."""

from .map_contour import (
    CELL_FREE,
    CELL_OCCUPIED,
    CELL_UNKNOWN,
    Contour,
    classify,
    contours_to_json,
    extract_contours,
)
from .map_logic import MapLogic, Point, pixel_to_world, world_to_pixel
from .map_meta import MapMetadata, Origin, parse_map_yaml
from .map_output import MapRenderer, MarkerGlyph, RulerGlyph, encode_png
from .map_raster import RasterImage, decode_pgm

__all__ = [
    "CELL_FREE",
    "CELL_OCCUPIED",
    "CELL_UNKNOWN",
    "Contour",
    "MapLogic",
    "MapMetadata",
    "MapRenderer",
    "MarkerGlyph",
    "Origin",
    "Point",
    "RasterImage",
    "RulerGlyph",
    "classify",
    "contours_to_json",
    "decode_pgm",
    "encode_png",
    "extract_contours",
    "parse_map_yaml",
    "pixel_to_world",
    "world_to_pixel",
]
