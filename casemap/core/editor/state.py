# casemap/core/editor/state.py
"""
编辑器会话状态

Everything one open map needs while being edited: the marker list, the
selection and drag targets, zoom, ruler, and the snapshot used by
"reset all". A session is passed explicitly to every editor operation, so
several sessions (tabs) can coexist without sharing state.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from enum import IntEnum, unique
from typing import Iterable, List, Optional, Tuple

from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.map_module.map_contour import Contour
from casemap.core.map_module.map_logic import MapLogic, Point
from casemap.core.map_module.map_meta import MapMetadata
from casemap.core.map_module.map_raster import RasterImage
from casemap.utils.logging import log


# --------------------------------------------------------------------------- #
#  枚举定义
# --------------------------------------------------------------------------- #
@unique
class RecordState(IntEnum):
    IDLE = 0
    SELECTED = 1
    DRAGGING = 2
    UNKNOWN = 255  # record not in session


@unique
class RulerPhase(IntEnum):
    INACTIVE = 0
    AWAITING_START = 1
    AWAITING_END = 2
    MEASURED = 3


# --------------------------------------------------------------------------- #
#  数据类
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class MapView:
    """Read-only map content the editor draws on."""

    raster: RasterImage
    metadata: MapMetadata
    contours: Tuple[Contour, ...] = ()

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height

    @property
    def logic(self) -> MapLogic:
        return MapLogic(self.metadata, self.raster.height)


@dataclass(slots=True)
class RulerState:
    active: bool = False
    start: Optional[Point] = None
    end: Optional[Point] = None
    distance: Optional[float] = None    # world units

    @property
    def phase(self) -> RulerPhase:
        if not self.active:
            return RulerPhase.INACTIVE
        if self.start is None:
            return RulerPhase.AWAITING_START
        if self.end is None:
            return RulerPhase.AWAITING_END
        return RulerPhase.MEASURED

    def clear(self) -> None:
        self.start = None
        self.end = None
        self.distance = None

    def __str__(self) -> str:
        return (
            f"RulerState<{self.phase.name}, start={self.start}, "
            f"end={self.end}, distance={self.distance}>"
        )


@dataclass(slots=True)
class EditorSession:
    view: MapView
    records: List[EvidenceRecord]
    scale: float
    selected_id: Optional[str] = None
    dragging_id: Optional[str] = None
    ruler: RulerState = field(default_factory=RulerState)
    snapshot: List[EvidenceRecord] = field(default_factory=list)
    marker_seq: int = 0

    @classmethod
    def open(cls, view: MapView, records: Iterable[EvidenceRecord], scale: float) -> "EditorSession":
        """
        打开会话

        Captures ``original_pixel`` where it is still unset and stores a deep
        copy of the records, positioned at their reset targets, as the
        "reset all" snapshot.
        """
        records = list(records)
        for rec in records:
            rec.capture_original()
        snapshot = [
            dataclasses.replace(copy.deepcopy(rec), pixel=rec.original_pixel)
            for rec in records
        ]
        session = cls(view=view, records=records, scale=scale, snapshot=snapshot)
        log.info(
            "editor session opened: %dx%d map, %d marker(s), scale=%.1f",
            view.width, view.height, len(records), scale,
        )
        return session

    # ------------------------------------------------------------------- #
    #  查询接口
    # ------------------------------------------------------------------- #
    def find(self, record_id: Optional[str]) -> Optional[EvidenceRecord]:
        if record_id is None:
            return None
        for rec in self.records:
            if rec.id == record_id:
                return rec
        return None

    @property
    def selected(self) -> Optional[EvidenceRecord]:
        return self.find(self.selected_id)

    def record_state(self, record_id: str) -> RecordState:
        if self.find(record_id) is None:
            return RecordState.UNKNOWN
        if self.dragging_id == record_id:
            return RecordState.DRAGGING
        if self.selected_id == record_id:
            return RecordState.SELECTED
        return RecordState.IDLE

    def next_marker_id(self) -> str:
        """Session-local ``marker-<n>``; skips ids already in use."""
        taken = {rec.id for rec in self.records}
        while True:
            self.marker_seq += 1
            candidate = f"marker-{self.marker_seq}"
            if candidate not in taken:
                return candidate

    def __str__(self) -> str:
        return (
            f"EditorSession<markers={len(self.records)}, selected={self.selected_id}, "
            f"dragging={self.dragging_id}, scale={self.scale}, {self.ruler}>"
        )
