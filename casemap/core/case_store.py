"""
案件文件来源

The import pipeline reads its inputs through :class:`CaseStore`. Object
storage lives outside this package; :class:`DirectoryCaseStore` serves cases
from a local folder (``<root>/<case_id>/...``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from casemap.utils.logging import log

RASTER_SUFFIXES = (".pgm",)
METADATA_SUFFIXES = (".yaml", ".yml")
EVIDENCE_SUFFIXES = (".csv",)


class CaseStore(Protocol):
    """存储接口 - 由外部存储层实现"""

    def list_keys(self, case_id: str) -> List[str]:
        ...

    def get_object(self, key: str) -> bytes:
        ...


class DirectoryCaseStore:
    """Keys are POSIX paths relative to ``root``, e.g. ``case-7/map.pgm``."""

    def __init__(self, root: Union[str, os.PathLike[str]]) -> None:
        self.root = Path(root).resolve()

    def list_keys(self, case_id: str) -> List[str]:
        case_dir = (self.root / case_id).resolve()
        if not case_dir.is_relative_to(self.root) or not case_dir.is_dir():
            log.debug("no case directory for %s under %s", case_id, self.root)
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in case_dir.rglob("*")
            if p.is_file()
        )

    def get_object(self, key: str) -> bytes:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise KeyError(f"key escapes store root: {key}")
        return path.read_bytes()


@dataclass
class CaseFiles:
    raster: Optional[str] = None
    metadata: Optional[str] = None
    evidence: Optional[str] = None
    keys: List[str] = field(default_factory=list)

    def missing(self) -> List[str]:
        out = []
        if not self.raster:
            out.append("PGM")
        if not self.metadata:
            out.append("YAML")
        return out


def find_case_files(keys: Iterable[str]) -> CaseFiles:
    """First key per role by extension (case-insensitive); the order of ``keys`` decides ties."""
    files = CaseFiles()
    for key in keys:
        files.keys.append(key)
        lower = key.lower()
        if files.raster is None and lower.endswith(RASTER_SUFFIXES):
            files.raster = key
        elif files.metadata is None and lower.endswith(METADATA_SUFFIXES):
            files.metadata = key
        elif files.evidence is None and lower.endswith(EVIDENCE_SUFFIXES):
            files.evidence = key
    return files
