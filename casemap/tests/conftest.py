"""Shared fixtures: tiny synthetic maps and case directories."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import numpy as np
import pytest

from casemap.core.config import EditorConfig
from casemap.core.editor.engine import MapEditorEngine
from casemap.core.editor.state import MapView
from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.map_module.map_contour import extract_contours
from casemap.core.map_module.map_logic import Point
from casemap.core.map_module.map_meta import MapMetadata, Origin
from casemap.core.map_module.map_raster import RasterImage

from map_fixtures import FREE, MAP_YAML, OCCUPIED, block_raster, make_p5


@pytest.fixture
def metadata() -> MapMetadata:
    return MapMetadata(resolution=0.05, origin=Origin(-5.0, -5.0, 0.0))


@pytest.fixture
def engine() -> MapEditorEngine:
    return MapEditorEngine(EditorConfig())


@pytest.fixture
def make_session(engine, metadata) -> Callable:
    """Session on a 200x200 map with markers e1..eN at the given pixels."""

    def factory(*pixels, raster: Optional[RasterImage] = None):
        raster = raster or block_raster(200, 200, ((20, 20, 40, 40),))
        view = MapView(raster=raster, metadata=metadata, contours=tuple(extract_contours(raster, metadata)))
        records = [EvidenceRecord(id=f"e{i + 1}", pixel=Point(*p)) for i, p in enumerate(pixels)]
        return engine.open_session(view, records)

    return factory


@pytest.fixture
def case_root(tmp_path: Path) -> Path:
    """``<tmp>/case-1`` with a 200x200 map, metadata and a three-row evidence table."""
    case = tmp_path / "case-1"
    case.mkdir()
    arr = np.full((200, 200), FREE, dtype=np.uint8)
    arr[10:20, 10:30] = OCCUPIED
    (case / "map.pgm").write_bytes(make_p5(arr))
    (case / "map.yaml").write_text(MAP_YAML, encoding="utf-8")
    (case / "evidence.csv").write_text(
        "id,x,y,time,label,category,notes,image,officer\n"
        "a,0,0,10:00,Knife,weapon,under table,case-1/photos/a.jpg,Kim\n"
        "b,1.0,-1.0,10:05,Glass,trace,,,Lee\n"
        "c,oops,2,10:07,Broken,,,,\n",
        encoding="utf-8",
    )
    (case / "photos").mkdir()
    (case / "photos" / "a.jpg").write_bytes(b"\xff\xd8\xff\xe0fakejpeg")
    return tmp_path
