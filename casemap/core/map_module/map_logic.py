"""World <-> pixel coordinate transform for occupancy maps."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .map_meta import MapMetadata


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def to_json(self) -> dict:
        return {"x": self.x, "y": self.y}


def world_to_pixel(world_x: float, world_y: float, metadata: MapMetadata, image_height: int) -> Point:
    """
    世界坐标 (x, y) → 像素坐标 (px, py)

    The origin is the pose of the bottom-left pixel row, so the vertical axis
    is flipped: world y grows up, pixel rows grow down. A non-zero
    ``origin.theta`` rotates the offset into the map frame first. No clamping.
    """
    origin = metadata.origin
    dx = world_x - origin.x
    dy = world_y - origin.y
    if origin.theta:
        c, s = math.cos(origin.theta), math.sin(origin.theta)
        dx, dy = c * dx + s * dy, -s * dx + c * dy
    return Point(
        x=dx / metadata.resolution,
        y=image_height - dy / metadata.resolution,
    )


def pixel_to_world(pixel_x: float, pixel_y: float, metadata: MapMetadata, image_height: int) -> Point:
    """Exact inverse of :func:`world_to_pixel`."""
    origin = metadata.origin
    mx = pixel_x * metadata.resolution
    my = (image_height - pixel_y) * metadata.resolution
    if origin.theta:
        c, s = math.cos(origin.theta), math.sin(origin.theta)
        mx, my = c * mx - s * my, s * mx + c * my
    return Point(x=origin.x + mx, y=origin.y + my)


class MapLogic:
    """Coordinate transform bound to one map."""

    def __init__(self, metadata: MapMetadata, image_height: int) -> None:
        self.metadata = metadata
        self.image_height = image_height

    @property
    def resolution(self) -> float:
        return self.metadata.resolution

    def world_to_pixel(self, x: float, y: float) -> Point:
        return world_to_pixel(x, y, self.metadata, self.image_height)

    def pixel_to_world(self, px: float, py: float) -> Point:
        return pixel_to_world(px, py, self.metadata, self.image_height)

    def pixel_distance_to_world(self, distance: float) -> float:
        """像素距离 → 世界距离"""
        return distance * self.metadata.resolution
