"""
地图编辑引擎

Geometric editing operations on an :class:`EditorSession`.

Per-marker state: Idle -> Selected -> Dragging -> Idle; a locked marker can
be selected but never dragged. Ruler: Inactive -> AwaitingStart ->
AwaitingEnd -> Measured, and a click in Measured starts a new measurement.

Operations never raise on invalid requests (unknown id, locked marker, move
without a drag); they log at debug level and return ``False``/``None``.
"""

from __future__ import annotations

import copy
import math
import time
from typing import Iterable, Optional

from casemap.core.config import EditorConfig, load_editor_config
from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.evidence.evidence_table import write_evidence_csv
from casemap.core.map_module.map_logic import Point
from casemap.core.map_module.map_output import MapRenderer, MarkerGlyph, RulerGlyph
from casemap.utils.logging import log
from casemap.utils.media_codec import parse_data_url

from .state import EditorSession, MapView

EDITABLE_FIELDS = ("label", "category", "notes")


class MapEditorEngine:
    """Stateless operations; all mutable state lives in the session passed in."""

    def __init__(self, config: Optional[EditorConfig] = None) -> None:
        self.config = config or load_editor_config()
        self._renderer = MapRenderer(self.config)

    def open_session(self, view: MapView, records: Iterable[EvidenceRecord]) -> EditorSession:
        return EditorSession.open(view, records, self.config.scale.default)

    # ------------------------------------------------------------------ #
    # 选择 / 拖拽                                                          #
    # ------------------------------------------------------------------ #
    def hit_test(self, session: EditorSession, pointer: Point,
                 scale: Optional[float] = None) -> Optional[EvidenceRecord]:
        """
        Nearest marker within ``pick_radius`` of a screen-space pointer.

        The pointer is divided by ``scale`` and compared in image pixels, so
        the pick area does not change with zoom. Equal distances go to the
        earlier marker in list order.
        """
        scale = session.scale if scale is None else scale
        if scale <= 0:
            return None
        px, py = pointer.x / scale, pointer.y / scale
        best: Optional[EvidenceRecord] = None
        best_dist = math.inf
        for rec in session.records:
            dist = math.hypot(px - rec.pixel.x, py - rec.pixel.y)
            if dist <= self.config.pick_radius and dist < best_dist:
                best, best_dist = rec, dist
        return best

    def select(self, session: EditorSession, record_id: Optional[str]) -> bool:
        if record_id is not None and session.find(record_id) is None:
            log.debug("select ignored, unknown marker %s", record_id)
            return False
        session.selected_id = record_id
        return True

    def begin_drag(self, session: EditorSession, record_id: str) -> bool:
        rec = session.find(record_id)
        if rec is None or rec.locked:
            log.debug("drag refused for %s (%s)", record_id, "locked" if rec else "unknown")
            return False
        session.selected_id = record_id
        session.dragging_id = record_id
        return True

    def update_drag(self, session: EditorSession, pointer: Point,
                    scale: Optional[float] = None) -> bool:
        """Move the dragged marker to ``pointer / scale``. No-op without an active drag."""
        if session.dragging_id is None:
            return False
        scale = session.scale if scale is None else scale
        rec = session.find(session.dragging_id)
        if rec is None or rec.locked or scale <= 0:
            session.dragging_id = None
            return False
        rec.pixel = Point(pointer.x / scale, pointer.y / scale)
        return True

    def end_drag(self, session: EditorSession) -> bool:
        if session.dragging_id is None:
            return False
        rec = session.find(session.dragging_id)
        if rec is not None:
            log.debug("marker %s dropped at (%.1f, %.1f)", rec.id, rec.pixel.x, rec.pixel.y)
        session.dragging_id = None
        return True

    # ------------------------------------------------------------------ #
    # 复位                                                                #
    # ------------------------------------------------------------------ #
    def reset_one(self, session: EditorSession, record_id: str) -> bool:
        rec = session.find(record_id)
        if rec is None or rec.original_pixel is None:
            return False
        rec.pixel = rec.original_pixel
        return True

    def reset_all(self, session: EditorSession) -> None:
        """Replace the collection with a fresh deep copy of the opening snapshot."""
        session.records = copy.deepcopy(session.snapshot)
        session.dragging_id = None
        if session.find(session.selected_id) is None:
            session.selected_id = None
        log.info("reset %d marker(s) to their original positions", len(session.records))

    # ------------------------------------------------------------------ #
    # 增删 / 锁定 / 编辑                                                    #
    # ------------------------------------------------------------------ #
    def add_marker(self, session: EditorSession) -> EvidenceRecord:
        center = Point(session.view.width / 2, session.view.height / 2)
        rec = EvidenceRecord(
            id=session.next_marker_id(),
            pixel=center,
            original_pixel=center,
            time=time.strftime("%H:%M:%S"),
            label=self.config.new_marker_label,
            category=self.config.new_marker_category,
        )
        session.records.append(rec)
        session.selected_id = rec.id
        log.info("added marker %s at (%.1f, %.1f)", rec.id, center.x, center.y)
        return rec

    def delete_selected(self, session: EditorSession) -> Optional[EvidenceRecord]:
        rec = session.selected
        if rec is None:
            return None
        session.records.remove(rec)
        if session.dragging_id == rec.id:
            session.dragging_id = None
        session.selected_id = None
        log.info("deleted marker %s", rec.id)
        return rec

    def toggle_lock(self, session: EditorSession, record_id: str) -> Optional[bool]:
        rec = session.find(record_id)
        if rec is None:
            return None
        rec.locked = not rec.locked
        if rec.locked and session.dragging_id == record_id:
            self.end_drag(session)
        return rec.locked

    def update_field(self, session: EditorSession, name: str, value: str) -> bool:
        """Edit label/category/notes of the selected marker."""
        rec = session.selected
        if rec is None or name not in EDITABLE_FIELDS:
            return False
        setattr(rec, name, value)
        return True

    def attach_images(self, session: EditorSession, record_id: str, images: Iterable[str]) -> int:
        """Append image data URLs to a marker; returns how many were accepted."""
        rec = session.find(record_id)
        if rec is None:
            return 0
        added = 0
        for url in images:
            if parse_data_url(url) is None:
                log.warning("marker %s: ignoring attachment that is not an image data URL", record_id)
                continue
            rec.attached_images.append(url)
            added += 1
        return added

    def remove_image(self, session: EditorSession, record_id: str, index: int) -> bool:
        rec = session.find(record_id)
        if rec is None or not 0 <= index < len(rec.attached_images):
            return False
        del rec.attached_images[index]
        return True

    # ------------------------------------------------------------------ #
    # 缩放 / 标尺                                                          #
    # ------------------------------------------------------------------ #
    def set_scale(self, session: EditorSession, scale: float) -> float:
        session.scale = self.config.scale.clamp(scale)
        return session.scale

    def zoom_in(self, session: EditorSession) -> float:
        return self.set_scale(session, session.scale + self.config.scale.step)

    def zoom_out(self, session: EditorSession) -> float:
        return self.set_scale(session, session.scale - self.config.scale.step)

    def set_ruler_mode(self, session: EditorSession, active: Optional[bool] = None) -> bool:
        """Switch (or toggle) ruler mode; clears the ruler, the selection and any drag."""
        ruler = session.ruler
        ruler.active = (not ruler.active) if active is None else active
        ruler.clear()
        session.selected_id = None
        session.dragging_id = None
        return ruler.active

    def measure_ruler(self, session: EditorSession, point: Point) -> Optional[float]:
        """
        标尺点击（图像像素坐标）

        First click sets the start, second sets the end and returns the
        distance in world units (``hypot * resolution``), a further click
        starts over from that point.
        """
        ruler = session.ruler
        ruler.active = True
        if ruler.start is None or ruler.end is not None:
            ruler.start = point
            ruler.end = None
            ruler.distance = None
            return None
        ruler.end = point
        pixels = math.hypot(point.x - ruler.start.x, point.y - ruler.start.y)
        ruler.distance = session.view.logic.pixel_distance_to_world(pixels)
        log.debug("ruler %s -> %s = %.3f", ruler.start, ruler.end, ruler.distance)
        return ruler.distance

    # ------------------------------------------------------------------ #
    # 导出                                                                #
    # ------------------------------------------------------------------ #
    def export_snapshot(self, session: EditorSession) -> bytes:
        """Current view (map, contours, markers, ruler) as PNG bytes. Read only."""
        markers = [
            MarkerGlyph(
                x=rec.pixel.x,
                y=rec.pixel.y,
                selected=rec.id == session.selected_id,
                locked=rec.locked,
            )
            for rec in session.records
        ]
        ruler = None
        if session.ruler.active and session.ruler.start is not None:
            ruler = RulerGlyph(session.ruler.start, session.ruler.end, session.ruler.distance)
        return self._renderer.render(
            session.view.raster,
            session.view.contours,
            markers,
            ruler,
            scale=session.scale,
        )

    def export_evidence_csv(self, session: EditorSession) -> str:
        return write_evidence_csv(session.records, session.view.metadata, session.view.height)
