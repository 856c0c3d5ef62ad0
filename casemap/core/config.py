"""
编辑器配置

Reads ``casemap/config/editor.yaml`` (or the file named by
``CASEMAP_EDITOR_CONFIG``) into an immutable :class:`EditorConfig`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Final, Mapping, Optional, Tuple, Union

import yaml

from casemap.utils.logging import log

DEFAULT_CONFIG_PATH: Final[Path] = Path(__file__).resolve().parent.parent / "config" / "editor.yaml"
CONFIG_ENV_VAR: Final[str] = "CASEMAP_EDITOR_CONFIG"

Color = Tuple[int, ...]


@dataclass(frozen=True, slots=True)
class ScaleLimits:
    default: float = 2.0
    min: float = 1.0
    max: float = 4.0
    step: float = 0.5

    def clamp(self, value: float) -> float:
        return min(self.max, max(self.min, value))


@dataclass(frozen=True, slots=True)
class RenderColors:
    contour: Color = (0, 100, 255, 128)
    marker: Color = (244, 67, 54)
    marker_selected: Color = (255, 235, 59)
    marker_locked: Color = (158, 158, 158)
    marker_outline: Color = (255, 255, 255)
    ruler: Color = (76, 175, 80)
    label_background: Color = (0, 0, 0)
    label_text: Color = (255, 255, 255)


@dataclass(frozen=True, slots=True)
class EditorConfig:
    pick_radius: float = 8.0            # image px
    marker_radius: float = 8.0          # screen px
    ruler_point_radius: float = 6.0     # screen px
    scale: ScaleLimits = field(default_factory=ScaleLimits)
    new_marker_label: str = "New Marker"
    new_marker_category: str = "uncategorized"
    colors: RenderColors = field(default_factory=RenderColors)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EditorConfig":
        """Build from a parsed YAML mapping; missing keys keep their defaults."""
        base = cls()
        scale_cfg = data.get("scale") or {}
        marker_cfg = data.get("new_marker") or {}
        color_cfg = data.get("colors") or {}

        scale = ScaleLimits(
            default=float(scale_cfg.get("default", base.scale.default)),
            min=float(scale_cfg.get("min", base.scale.min)),
            max=float(scale_cfg.get("max", base.scale.max)),
            step=float(scale_cfg.get("step", base.scale.step)),
        )
        if scale.min <= 0 or scale.min > scale.max:
            raise ValueError(f"invalid scale limits: {scale}")

        colors = RenderColors(**{
            name: tuple(int(c) for c in color_cfg.get(name, getattr(base.colors, name)))
            for name in RenderColors.__dataclass_fields__
        })

        return cls(
            pick_radius=float(data.get("pick_radius", base.pick_radius)),
            marker_radius=float(data.get("marker_radius", base.marker_radius)),
            ruler_point_radius=float(data.get("ruler_point_radius", base.ruler_point_radius)),
            scale=scale,
            new_marker_label=str(marker_cfg.get("label", base.new_marker_label)),
            new_marker_category=str(marker_cfg.get("category", base.new_marker_category)),
            colors=colors,
        )


def load_editor_config(path: Optional[Union[str, os.PathLike[str]]] = None) -> EditorConfig:
    """
    读取编辑器配置

    Lookup order: explicit ``path``, ``$CASEMAP_EDITOR_CONFIG``, packaged default.
    """
    cfg_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    data: Dict[str, Any] = yaml.safe_load(cfg_path.read_text("utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"editor config must be a mapping: {cfg_path}")
    config = EditorConfig.from_mapping(data)
    log.debug("editor config loaded from %s: %s", cfg_path, config)
    return config
