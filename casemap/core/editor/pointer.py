"""Routes raw canvas pointer events (screen pixels) to editor operations."""

from __future__ import annotations

from typing import Optional

from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.map_module.map_logic import Point

from .engine import MapEditorEngine
from .state import EditorSession


class PointerController:
    """
    down -> move* -> up, in arrival order.

    In ruler mode a press measures at ``pointer / scale``. Otherwise a press
    selects the marker under the pointer and starts dragging it (locked
    markers are only selected); a press on empty map clears the selection.
    """

    def __init__(self, engine: MapEditorEngine, session: EditorSession) -> None:
        self.engine = engine
        self.session = session

    def down(self, x: float, y: float) -> Optional[EvidenceRecord]:
        session = self.session
        if session.ruler.active:
            self.engine.measure_ruler(session, Point(x / session.scale, y / session.scale))
            return None
        hit = self.engine.hit_test(session, Point(x, y))
        if hit is None:
            self.engine.select(session, None)
            return None
        self.engine.select(session, hit.id)
        self.engine.begin_drag(session, hit.id)
        return hit

    def move(self, x: float, y: float) -> bool:
        if self.session.ruler.active:
            return False
        return self.engine.update_drag(self.session, Point(x, y))

    def up(self) -> bool:
        return self.engine.end_drag(self.session)
