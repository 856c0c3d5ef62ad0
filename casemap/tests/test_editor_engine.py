import csv
import io

import pytest
from PIL import Image

from casemap.core.config import EditorConfig
from casemap.core.editor.engine import MapEditorEngine
from casemap.core.editor.state import RecordState, RulerPhase
from casemap.core.map_module.map_logic import Point
from casemap.utils.media_codec import to_data_url


def test_open_session_captures_originals(make_session):
    session = make_session((10, 10), (50, 60))
    assert [r.original_pixel for r in session.records] == [Point(10, 10), Point(50, 60)]
    assert session.scale == EditorConfig().scale.default
    assert session.ruler.phase is RulerPhase.INACTIVE


def test_hit_test_is_scale_invariant(engine, make_session):
    session = make_session((50, 50))
    for scale in (1, 2, 3.5):
        assert engine.hit_test(session, Point(55 * scale, 50 * scale), scale).id == "e1"
        assert engine.hit_test(session, Point(59 * scale, 50 * scale), scale) is None


def test_hit_test_prefers_nearest_then_list_order(engine, make_session):
    session = make_session((50, 50), (56, 50), (56, 50))
    assert engine.hit_test(session, Point(55, 50), 1).id == "e2"
    assert engine.hit_test(session, Point(53, 50), 1).id == "e1"
    session = make_session((50, 50), (54, 50))
    assert engine.hit_test(session, Point(52, 50), 1).id == "e1"


def test_drag_cycle(engine, make_session):
    session = make_session((10, 10))
    assert engine.begin_drag(session, "e1")
    assert session.record_state("e1") is RecordState.DRAGGING
    for x in (30, 40, 40):
        assert engine.update_drag(session, Point(x, 80), scale=2)
    assert session.find("e1").pixel == Point(20, 40)
    assert engine.end_drag(session)
    assert session.record_state("e1") is RecordState.SELECTED
    assert session.find("e1").original_pixel == Point(10, 10)


def test_update_drag_without_begin_is_noop(engine, make_session):
    session = make_session((10, 10))
    assert engine.update_drag(session, Point(100, 100)) is False
    assert engine.end_drag(session) is False
    assert session.find("e1").pixel == Point(10, 10)


def test_lock_invariant(engine, make_session):
    session = make_session((10, 10))
    assert engine.toggle_lock(session, "e1") is True
    assert engine.begin_drag(session, "e1") is False
    engine.update_drag(session, Point(90, 90))
    assert session.find("e1").pixel == Point(10, 10)
    assert engine.select(session, "e1")
    assert session.record_state("e1") is RecordState.SELECTED


def test_locking_during_drag_ends_it(engine, make_session):
    session = make_session((10, 10))
    engine.begin_drag(session, "e1")
    engine.update_drag(session, Point(40, 40), scale=2)
    engine.toggle_lock(session, "e1")
    assert session.dragging_id is None
    assert engine.update_drag(session, Point(80, 80), scale=2) is False
    assert session.find("e1").pixel == Point(20, 20)
    assert engine.toggle_lock(session, "e1") is False
    assert engine.toggle_lock(session, "missing") is None


def test_reset_one(engine, make_session):
    session = make_session((10, 10), (20, 20))
    for rid in ("e1", "e2"):
        engine.begin_drag(session, rid)
        engine.update_drag(session, Point(200, 200), scale=1)
        engine.end_drag(session)
    assert engine.reset_one(session, "e1")
    assert session.find("e1").pixel == Point(10, 10)
    assert session.find("e2").pixel == Point(200, 200)
    assert engine.reset_one(session, "nope") is False


def test_reset_all_fidelity_and_independence(engine, make_session):
    session = make_session((10, 10), (20, 20), (30, 30))
    for i, rid in enumerate(("e1", "e2", "e1", "e3")):
        engine.begin_drag(session, rid)
        engine.update_drag(session, Point(100 + i, 7 * i), scale=1)
        engine.end_drag(session)
    engine.add_marker(session)
    engine.select(session, "e2")
    engine.delete_selected(session)
    session.find("e1").label = "edited"

    engine.reset_all(session)
    assert [r.id for r in session.records] == ["e1", "e2", "e3"]
    assert all(r.pixel == r.original_pixel for r in session.records)
    assert session.find("e1").label == ""

    # edits after a reset must not leak into the snapshot
    session.find("e1").label = "again"
    session.find("e1").attached_images.append("data:image/png;base64,AA==")
    engine.reset_all(session)
    assert session.find("e1").label == ""
    assert session.find("e1").attached_images == []


def test_add_marker(engine, make_session):
    session = make_session((10, 10))
    rec = engine.add_marker(session)
    assert rec.pixel == rec.original_pixel == Point(100, 100)
    assert rec.locked is False
    assert session.selected_id == rec.id
    assert rec.label == EditorConfig().new_marker_label
    second = engine.add_marker(session)
    assert second.id != rec.id


def test_new_ids_skip_existing(engine, make_session):
    session = make_session((10, 10))
    session.records[0].id = "marker-1"
    assert engine.add_marker(session).id == "marker-2"


def test_delete_selected(engine, make_session):
    session = make_session((10, 10), (20, 20))
    assert engine.delete_selected(session) is None
    engine.begin_drag(session, "e2")
    removed = engine.delete_selected(session)
    assert removed.id == "e2"
    assert session.selected_id is None and session.dragging_id is None
    assert [r.id for r in session.records] == ["e1"]


def test_update_field_only_known_fields(engine, make_session):
    session = make_session((10, 10))
    assert engine.update_field(session, "label", "x") is False
    engine.select(session, "e1")
    assert engine.update_field(session, "notes", "on the floor")
    assert engine.update_field(session, "id", "hijack") is False
    assert session.find("e1").notes == "on the floor"


def test_attach_and_remove_images(engine, make_session):
    session = make_session((10, 10))
    good = to_data_url(b"img", "image/jpeg")
    assert engine.attach_images(session, "e1", [good, "not a url", good]) == 2
    assert engine.remove_image(session, "e1", 0)
    assert engine.remove_image(session, "e1", 5) is False
    assert session.find("e1").attached_images == [good]
    assert engine.attach_images(session, "missing", [good]) == 0


def test_zoom_is_clamped(engine, make_session):
    session = make_session()
    limits = EditorConfig().scale
    assert engine.set_scale(session, 100) == limits.max
    assert engine.zoom_in(session) == limits.max
    assert engine.set_scale(session, 0) == limits.min
    assert engine.zoom_out(session) == limits.min
    assert engine.zoom_in(session) == limits.min + limits.step


def test_ruler_distance(engine, make_session):
    session = make_session()
    engine.set_ruler_mode(session, True)
    assert session.ruler.phase is RulerPhase.AWAITING_START
    assert engine.measure_ruler(session, Point(0, 0)) is None
    assert session.ruler.phase is RulerPhase.AWAITING_END
    assert engine.measure_ruler(session, Point(100, 0)) == pytest.approx(5.0)
    assert session.ruler.phase is RulerPhase.MEASURED


def test_ruler_restarts_on_third_click(engine, make_session):
    session = make_session()
    engine.set_ruler_mode(session, True)
    engine.measure_ruler(session, Point(0, 0))
    engine.measure_ruler(session, Point(100, 0))
    engine.measure_ruler(session, Point(3, 4))
    assert session.ruler.start == Point(3, 4)
    assert session.ruler.phase is RulerPhase.AWAITING_END
    assert engine.measure_ruler(session, Point(6, 8)) == pytest.approx(0.25)


def test_ruler_mode_toggle_clears_state(engine, make_session):
    session = make_session((10, 10))
    engine.begin_drag(session, "e1")
    assert engine.set_ruler_mode(session) is True
    assert session.selected_id is None and session.dragging_id is None
    engine.measure_ruler(session, Point(1, 1))
    assert engine.set_ruler_mode(session) is False
    assert session.ruler.start is None


def test_export_snapshot_is_read_only(engine, make_session):
    session = make_session((10, 10), (120, 80))
    engine.select(session, "e1")
    engine.toggle_lock(session, "e2")
    engine.set_ruler_mode(session, True)
    engine.measure_ruler(session, Point(10, 150))
    engine.measure_ruler(session, Point(190, 150))
    before = str(session), [r.to_json() for r in session.records]

    png = engine.export_snapshot(session)
    img = Image.open(io.BytesIO(png))
    assert img.size == (400, 400)
    assert (str(session), [r.to_json() for r in session.records]) == before
    assert engine.export_snapshot(session) == png


def test_export_evidence_csv(engine, make_session):
    session = make_session((100, 100))
    rows = list(csv.DictReader(io.StringIO(engine.export_evidence_csv(session))))
    assert rows[0]["id"] == "e1"
    assert float(rows[0]["x"]) == pytest.approx(0.0)


def test_sessions_do_not_share_state(engine, make_session):
    a = make_session((10, 10))
    b = make_session((10, 10))
    engine.begin_drag(a, "e1")
    engine.update_drag(a, Point(100, 100), scale=1)
    assert b.find("e1").pixel == Point(10, 10)
    assert b.selected_id is None


def test_engine_reads_packaged_config(monkeypatch):
    monkeypatch.delenv("CASEMAP_EDITOR_CONFIG", raising=False)
    assert MapEditorEngine().config == EditorConfig()
