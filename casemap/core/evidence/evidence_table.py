"""Evidence CSV: delimited rows of world-coordinate observations."""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from casemap.core.errors import InvalidRow, MalformedTable
from casemap.core.map_module.map_logic import pixel_to_world
from casemap.core.map_module.map_meta import MapMetadata
from casemap.utils.logging import log

from .evidence_record import EvidenceRecord

# canonical column -> accepted header spellings (lower-case)
RECOGNIZED_COLUMNS: Dict[str, tuple] = {
    "id": ("id",),
    "x": ("x",),
    "y": ("y",),
    "time": ("time", "timestamp"),
    "label": ("label",),
    "category": ("category",),
    "notes": ("notes", "note"),
    "image": ("image", "imagekey", "image_key"),
}
_ALIASES = {alias: canon for canon, names in RECOGNIZED_COLUMNS.items() for alias in names}
_DELIMITERS = (",", ";", "\t")
OUTPUT_COLUMNS = ("id", "x", "y", "time", "label", "category", "notes", "image")


@dataclass(slots=True)
class EvidenceRow:
    """A parsed evidence row, still in world coordinates."""

    id: str
    world_x: float
    world_y: float
    time: str = ""
    label: str = ""
    category: str = ""
    notes: str = ""
    image_key: str = ""
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class EvidenceTable:
    rows: List[EvidenceRow] = field(default_factory=list)
    skipped: List[InvalidRow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def _detect_delimiter(header_line: str) -> str:
    counts = {d: header_line.count(d) for d in _DELIMITERS}
    best = max(_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ","


def _coordinate(name: str, raw: Optional[str]) -> float:
    text = (raw or "").strip()
    if not text:
        raise ValueError(f"missing {name}")
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{name} is not a number: {text!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"{name} is not finite: {text!r}")
    return value


def parse_evidence_csv(text: str) -> EvidenceTable:
    """
    解析证据表

    One bad row never aborts the table: rows with a missing or non-numeric
    ``x``/``y``, or that the CSV reader cannot tokenize, land in ``skipped``
    and parsing continues. An unreadable header raises :class:`MalformedTable`.
    """
    table = EvidenceTable()
    text = (text or "").lstrip("\ufeff")
    if not text.strip():
        return table

    header_line = text.splitlines()[0]
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=_detect_delimiter(header_line))
    try:
        header = [h.strip() for h in next(reader)]
    except csv.Error as exc:
        raise MalformedTable(f"unreadable evidence header: {exc}") from exc
    columns = [_ALIASES.get(h.lower()) for h in header]

    seen: Dict[str, int] = {}
    data_index = 0
    while True:
        try:
            values = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            # the reader drops the offending line and resumes on the next one
            data_index += 1
            bad = InvalidRow(reader.line_num, f"unreadable row: {exc}", {})
            log.warning("skipping %s", bad)
            table.skipped.append(bad)
            continue
        if not any(v.strip() for v in values):
            continue
        data_index += 1
        line = reader.line_num

        fields: Dict[str, str] = {}
        extra: Dict[str, str] = {}
        for name, canon, value in zip(header, columns, values):
            if canon is None:
                extra[name] = value
            else:
                fields.setdefault(canon, value.strip())
        raw = dict(zip(header, values))

        try:
            wx = _coordinate("x", fields.get("x"))
            wy = _coordinate("y", fields.get("y"))
        except ValueError as exc:
            bad = InvalidRow(line, str(exc), raw)
            log.warning("skipping %s", bad)
            table.skipped.append(bad)
            continue

        row_id = fields.get("id") or str(data_index)
        if row_id in seen:
            seen[row_id] += 1
            unique = f"{row_id}-{seen[row_id]}"
            while unique in seen:
                seen[row_id] += 1
                unique = f"{row_id}-{seen[row_id]}"
            log.warning("duplicate evidence id %r at line %d renamed to %r", row_id, line, unique)
            row_id = unique
        seen[row_id] = 1

        table.rows.append(EvidenceRow(
            id=row_id,
            world_x=wx,
            world_y=wy,
            time=fields.get("time", ""),
            label=fields.get("label", ""),
            category=fields.get("category", ""),
            notes=fields.get("notes", ""),
            image_key=fields.get("image", ""),
            extra=extra,
        ))

    log.info("parsed %d evidence row(s), skipped %d", len(table.rows), len(table.skipped))
    return table


def write_evidence_csv(
    records: Iterable[EvidenceRecord],
    metadata: MapMetadata,
    image_height: int,
) -> str:
    """
    导出证据表

    World ``x``/``y`` are recomputed from each record's current pixel so a
    re-import places the markers where they were left.
    """
    records = list(records)
    extra_cols: List[str] = []
    for rec in records:
        for key in rec.extra:
            if key not in extra_cols:
                extra_cols.append(key)

    buf = io.StringIO(newline="")
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(list(OUTPUT_COLUMNS) + extra_cols)
    for rec in records:
        world = pixel_to_world(rec.pixel.x, rec.pixel.y, metadata, image_height)
        writer.writerow(
            [rec.id, repr(world.x), repr(world.y), rec.time, rec.label,
             rec.category, rec.notes, rec.image_key]
            + [rec.extra.get(col, "") for col in extra_cols]
        )
    return buf.getvalue()
