"""ROS map_server style metadata (``map.yaml``)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import yaml

from casemap.core.errors import InvalidValue, MissingField
from casemap.utils.logging import log, log_function_call

DEFAULT_NEGATE = False
DEFAULT_OCCUPIED_THRESH = 0.65
DEFAULT_FREE_THRESH = 0.196

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


@dataclass(frozen=True, slots=True)
class Origin:
    """World pose of the raster's bottom-left pixel."""

    x: float
    y: float
    theta: float = 0.0


@dataclass(frozen=True, slots=True)
class MapMetadata:
    resolution: float                  # world units per pixel
    origin: Origin
    occupied_thresh: float = DEFAULT_OCCUPIED_THRESH
    free_thresh: float = DEFAULT_FREE_THRESH
    negate: bool = DEFAULT_NEGATE
    image: Optional[str] = None

    def __str__(self) -> str:
        return (
            f"MapMetadata(resolution={self.resolution}, "
            f"origin=({self.origin.x}, {self.origin.y}, {self.origin.theta}), "
            f"thresh=({self.free_thresh}, {self.occupied_thresh}), negate={self.negate})"
        )


@log_function_call()
def parse_map_yaml(text: str) -> MapMetadata:
    """
    解析地图元数据

    Raises:
        MissingField: ``resolution`` or ``origin`` absent.
        InvalidValue: unreadable YAML, ``resolution <= 0``, malformed origin,
            thresholds or negate flag.
    """
    try:
        info = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidValue("<document>", None, f"YAML syntax error: {exc}") from exc
    if not isinstance(info, dict):
        raise InvalidValue("<document>", info, "expected a key/value mapping")

    for key in ("resolution", "origin"):
        if info.get(key) is None:
            raise MissingField(key)

    resolution = _number("resolution", info["resolution"])
    if resolution <= 0:
        raise InvalidValue("resolution", info["resolution"], "must be > 0")

    meta = MapMetadata(
        resolution=resolution,
        origin=_origin(info["origin"]),
        occupied_thresh=_number("occupied_thresh", info.get("occupied_thresh", DEFAULT_OCCUPIED_THRESH)),
        free_thresh=_number("free_thresh", info.get("free_thresh", DEFAULT_FREE_THRESH)),
        negate=_flag("negate", info.get("negate", DEFAULT_NEGATE)),
        image=str(info["image"]) if info.get("image") is not None else None,
    )
    if meta.free_thresh > meta.occupied_thresh:
        # 阈值倒置时仍继续分类：先判 free，再判 occupied
        log.warning(
            "free_thresh %.3f > occupied_thresh %.3f; free wins where they overlap",
            meta.free_thresh, meta.occupied_thresh,
        )
    log.debug("parsed %s", meta)
    return meta


def _number(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidValue(field, value, "expected a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidValue(field, value, "expected a number") from exc
    if not math.isfinite(number):
        raise InvalidValue(field, value, "must be finite")
    return number


def _origin(value: Any) -> Origin:
    if isinstance(value, (str, bytes)) or not hasattr(value, "__len__"):
        raise InvalidValue("origin", value, "expected [x, y] or [x, y, theta]")
    if len(value) not in (2, 3):
        raise InvalidValue("origin", value, "expected 2 or 3 elements")
    coords = [_number("origin", v) for v in value]
    return Origin(*coords)


def _flag(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise InvalidValue(field, value, "expected a boolean")
