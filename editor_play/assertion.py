# editor_play/assertion.py
"""Assertions over an editor session after a scenario ran."""

from __future__ import annotations

import math
from typing import Any, Dict, List

from casemap.core.editor.state import RecordState, RulerPhase

from .executor import ExecutionContext

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _close(actual: Any, expected: Any, tol: float) -> bool:
    if actual is None or expected is None:
        return actual is expected
    return math.isclose(float(actual), float(expected), abs_tol=tol)


def check_one(assertion: Dict[str, Any], ctx: ExecutionContext) -> None:
    """Check one assertion dict; raises AssertionError with a readable message."""
    kind = assertion.get("type")
    session = ctx["session"]
    tol = float(assertion.get("tolerance", 1e-6))

    if kind == "marker":
        rec = session.find(assertion["id"])
        if "exists" in assertion:
            assert (rec is not None) == assertion["exists"], f"marker {assertion['id']} exists={rec is not None}"
            return
        assert rec is not None, f"marker {assertion['id']} not in session: {session}"
        if "pixel" in assertion:
            ex, ey = assertion["pixel"]
            assert _close(rec.pixel.x, ex, tol) and _close(rec.pixel.y, ey, tol), \
                f"marker {rec.id} at ({rec.pixel.x}, {rec.pixel.y}), expected ({ex}, {ey})"
        if "locked" in assertion:
            assert rec.locked == assertion["locked"], f"marker {rec.id} locked={rec.locked}"
        if "state" in assertion:
            state = session.record_state(rec.id)
            assert state == RecordState[assertion["state"].upper()], f"marker {rec.id} state={state.name}"
        for name in ("label", "category", "notes"):
            if name in assertion:
                assert getattr(rec, name) == assertion[name], f"marker {rec.id} {name}={getattr(rec, name)!r}"
    elif kind == "ruler":
        ruler = session.ruler
        if "phase" in assertion:
            assert ruler.phase == RulerPhase[assertion["phase"].upper()], f"ruler phase={ruler.phase.name}"
        if "distance" in assertion:
            assert _close(ruler.distance, assertion["distance"], tol), f"ruler distance={ruler.distance}"
    elif kind == "session":
        if "selected" in assertion:
            assert session.selected_id == assertion["selected"], f"selected={session.selected_id}"
        if "dragging" in assertion:
            assert session.dragging_id == assertion["dragging"], f"dragging={session.dragging_id}"
        if "count" in assertion:
            assert len(session.records) == assertion["count"], f"count={len(session.records)}"
        if "scale" in assertion:
            assert _close(session.scale, assertion["scale"], tol), f"scale={session.scale}"
        if "contours" in assertion:
            assert len(session.view.contours) == assertion["contours"], f"contours={len(session.view.contours)}"
    elif kind == "snapshot":
        png = ctx.get("snapshot_png")
        assert png is not None and png.startswith(PNG_SIGNATURE), "no PNG snapshot exported"
    else:
        raise ValueError(f"unsupported assertion type: {kind}")


def check(assertions: List[Dict[str, Any]], ctx: ExecutionContext) -> None:
    for item in assertions:
        check_one(item, ctx)
