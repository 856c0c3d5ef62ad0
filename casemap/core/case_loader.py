"""Case import pipeline: raster + metadata + evidence -> editor-ready payload."""

from __future__ import annotations

import copy
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, TypeVar

from casemap.core.case_store import CaseStore, find_case_files
from casemap.core.errors import CaseFilesMissing, CaseNotFound, InvalidRow, MapError, MapImportError
from casemap.core.editor.engine import MapEditorEngine
from casemap.core.editor.state import EditorSession, MapView
from casemap.core.evidence.evidence_media import attach_image_urls
from casemap.core.evidence.evidence_record import EvidenceRecord
from casemap.core.evidence.evidence_table import EvidenceRow, EvidenceTable, parse_evidence_csv
from casemap.core.map_module.map_contour import contours_to_json, extract_contours
from casemap.core.map_module.map_logic import MapLogic
from casemap.core.map_module.map_meta import parse_map_yaml
from casemap.core.map_module.map_output import encode_png
from casemap.core.map_module.map_raster import decode_pgm
from casemap.utils.logging import log
from casemap.utils.media_codec import to_data_url

T = TypeVar("T")
SummaryProvider = Callable[[str, List[str]], Any]


@dataclass
class CasePayload:
    """Everything the presentation layer needs for one case."""

    case_id: str
    view: MapView
    records: List[EvidenceRecord]
    base_png: bytes
    summary: Any = None
    skipped_rows: List[InvalidRow] = field(default_factory=list)

    def to_json(self) -> dict:
        return {
            "success": True,
            "map": {
                "width": self.view.width,
                "height": self.view.height,
                "contours": contours_to_json(self.view.contours),
            },
            "evidence": [rec.to_json() for rec in self.records],
            "baseImage": to_data_url(self.base_png, "image/png"),
            "summary": self.summary,
            "skippedRows": [{"line": r.line, "reason": r.reason} for r in self.skipped_rows],
        }

    def open_session(self, engine: MapEditorEngine) -> EditorSession:
        """New editor session over a private copy of the records."""
        return engine.open_session(self.view, copy.deepcopy(self.records))


def place_evidence(row: EvidenceRow, logic: MapLogic) -> EvidenceRecord:
    """证据行 → 像素坐标记录"""
    pixel = logic.world_to_pixel(row.world_x, row.world_y)
    return EvidenceRecord(
        id=row.id,
        pixel=pixel,
        world_x=row.world_x,
        world_y=row.world_y,
        original_pixel=pixel,
        time=row.time,
        label=row.label,
        category=row.category,
        notes=row.notes,
        image_key=row.image_key,
        extra=dict(row.extra),
    )


class MapCaseLoader:
    """Loads one case from a :class:`CaseStore`; loaders share no state between cases."""

    def __init__(
        self,
        store: CaseStore,
        summary_provider: Optional[SummaryProvider] = None,
        max_workers: int = 3,
    ) -> None:
        self.store = store
        self.summary_provider = summary_provider
        self.max_workers = max_workers

    def load_case(self, case_id: str) -> CasePayload:
        """
        导入案件

        Raises:
            CaseNotFound: the store has no keys for ``case_id``.
            CaseFilesMissing: no PGM or no YAML among the keys.
            MapImportError: any decode/parse/encode failure, wrapping the cause.
        """
        keys = self.store.list_keys(case_id)
        if not keys:
            raise CaseNotFound(case_id)
        files = find_case_files(keys)
        missing = files.missing()
        if missing:
            raise CaseFilesMissing(case_id, missing)
        log.info("loading case %s: raster=%s metadata=%s evidence=%s",
                 case_id, files.raster, files.metadata, files.evidence)

        # 1. 三个输入互不依赖，并行读取与解析
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="casemap") as pool:
            raster_f = pool.submit(self._stage, case_id, "raster", self._read_raster, files.raster)
            meta_f = pool.submit(self._stage, case_id, "metadata", self._read_metadata, files.metadata)
            table_f = (
                pool.submit(self._stage, case_id, "evidence", self._read_evidence, files.evidence)
                if files.evidence else None
            )
            raster = raster_f.result()
            metadata = meta_f.result()
            table = table_f.result() if table_f is not None else EvidenceTable()

        # 2. 轮廓：失败时为空列表
        contours = tuple(extract_contours(raster, metadata))

        # 3. 证据点 → 像素坐标
        logic = MapLogic(metadata, raster.height)
        records = [place_evidence(row, logic) for row in table.rows]
        attach_image_urls(records, self.store.get_object)

        # 4. 底图编码
        base_png = self._stage(case_id, "encoding", encode_png, raster)

        payload = CasePayload(
            case_id=case_id,
            view=MapView(raster=raster, metadata=metadata, contours=contours),
            records=records,
            base_png=base_png,
            summary=self._summary(case_id, keys),
            skipped_rows=list(table.skipped),
        )
        log.info("case %s loaded: %dx%d, %d contour(s), %d marker(s), %d row(s) skipped",
                 case_id, raster.width, raster.height, len(contours), len(records), len(table.skipped))
        return payload

    # ------------------------------------------------------------------ #
    def _read_raster(self, key: str):
        return decode_pgm(self.store.get_object(key))

    def _read_metadata(self, key: str):
        return parse_map_yaml(self.store.get_object(key).decode("utf-8"))

    def _read_evidence(self, key: str) -> EvidenceTable:
        return parse_evidence_csv(self.store.get_object(key).decode("utf-8-sig"))

    @staticmethod
    def _stage(case_id: str, stage: str, fn: Callable[..., T], *args) -> T:
        try:
            return fn(*args)
        except (MapError, OSError, LookupError, UnicodeDecodeError) as exc:
            log.error("case %s: %s stage failed: %s", case_id, stage, exc)
            raise MapImportError(case_id, stage, exc) from exc

    def _summary(self, case_id: str, keys: List[str]) -> Any:
        if self.summary_provider is None:
            return None
        try:
            return self.summary_provider(case_id, keys)
        except Exception:  # noqa: BLE001
            log.exception("summary provider raised for case %s", case_id)
            return None
