"""
编辑器场景步骤

Each step takes the :class:`ExecutionContext` plus the ``params`` of the
YAML step. ``open_map`` must come first; it builds a synthetic map and opens
an editor session on it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from casemap.core.config import EditorConfig
from casemap.core.editor.engine import MapEditorEngine
from casemap.core.editor.pointer import PointerController
from casemap.core.editor.state import MapView
from casemap.core.evidence.evidence_table import EvidenceRow
from casemap.core.case_loader import place_evidence
from casemap.core.map_module.map_contour import extract_contours
from casemap.core.map_module.map_logic import MapLogic, Point
from casemap.core.map_module.map_meta import MapMetadata, Origin
from casemap.core.map_module.map_raster import RasterImage

from .registry import step


def _raster(width: int, height: int, blocks: Sequence[Sequence[int]]) -> RasterImage:
    arr = np.full((height, width), 254, dtype=np.uint8)
    for x0, y0, x1, y1 in blocks:
        arr[y0:y1 + 1, x0:x1 + 1] = 0
    return RasterImage.from_array(arr)


@step("open_map")
def open_map(
    ctx,
    width: int = 200,
    height: int = 200,
    resolution: float = 0.05,
    origin: Sequence[float] = (0.0, 0.0, 0.0),
    blocks: Optional[List[List[int]]] = None,
    evidence: Optional[List[Dict[str, Any]]] = None,
    pick_radius: float = 8.0,
) -> None:
    raster = _raster(width, height, blocks or [])
    metadata = MapMetadata(resolution=resolution, origin=Origin(*origin))
    view = MapView(raster=raster, metadata=metadata, contours=tuple(extract_contours(raster, metadata)))
    logic = MapLogic(metadata, raster.height)
    records = [
        place_evidence(EvidenceRow(id=str(e["id"]), world_x=float(e["x"]), world_y=float(e["y"])), logic)
        for e in (evidence or [])
    ]
    engine = MapEditorEngine(EditorConfig(pick_radius=pick_radius))
    session = engine.open_session(view, records)
    ctx["engine"] = engine
    ctx["session"] = session
    ctx["pointer"] = PointerController(engine, session)


@step("pointer_down")
def pointer_down(ctx, x: float, y: float) -> None:
    ctx["pointer"].down(x, y)


@step("pointer_move")
def pointer_move(ctx, x: float, y: float) -> None:
    ctx["pointer"].move(x, y)


@step("pointer_up")
def pointer_up(ctx) -> None:
    ctx["pointer"].up()


@step("toggle_ruler")
def toggle_ruler(ctx, active: Optional[bool] = None) -> None:
    ctx["engine"].set_ruler_mode(ctx["session"], active)


@step("ruler_click")
def ruler_click(ctx, x: float, y: float) -> None:
    """Click in image pixels, independent of zoom."""
    ctx["engine"].measure_ruler(ctx["session"], Point(x, y))


@step("set_scale")
def set_scale(ctx, scale: float) -> None:
    ctx["engine"].set_scale(ctx["session"], scale)


@step("select")
def select(ctx, id: Optional[str] = None) -> None:
    ctx["engine"].select(ctx["session"], id)


@step("add_marker")
def add_marker(ctx) -> None:
    ctx["last_added"] = ctx["engine"].add_marker(ctx["session"]).id


@step("delete_selected")
def delete_selected(ctx) -> None:
    ctx["engine"].delete_selected(ctx["session"])


@step("toggle_lock")
def toggle_lock(ctx, id: str) -> None:
    ctx["engine"].toggle_lock(ctx["session"], id)


@step("update_field")
def update_field(ctx, name: str, value: str) -> None:
    ctx["engine"].update_field(ctx["session"], name, value)


@step("reset_one")
def reset_one(ctx, id: str) -> None:
    ctx["engine"].reset_one(ctx["session"], id)


@step("reset_all")
def reset_all(ctx) -> None:
    ctx["engine"].reset_all(ctx["session"])


@step("export_snapshot")
def export_snapshot(ctx) -> None:
    ctx["snapshot_png"] = ctx["engine"].export_snapshot(ctx["session"])
