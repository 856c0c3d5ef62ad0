"""Exception hierarchy for map import and rendering."""

from __future__ import annotations


class MapError(Exception):
    """Base class for every casemap failure."""


class MalformedRaster(MapError):
    """PGM header, dimension or sample violation; no partial raster is usable."""


class MetadataError(MapError):
    """Map YAML problem."""


class MissingField(MetadataError):
    def __init__(self, field: str) -> None:
        super().__init__(f"map metadata is missing required field '{field}'")
        self.field = field


class InvalidValue(MetadataError):
    def __init__(self, field: str, value: object, reason: str = "") -> None:
        msg = f"invalid value for '{field}': {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.field = field
        self.value = value


class InvalidRow(MapError):
    """A single evidence row that could not be parsed. Collected, not fatal."""

    def __init__(self, line: int, reason: str, raw: dict | None = None) -> None:
        super().__init__(f"evidence row at line {line}: {reason}")
        self.line = line
        self.reason = reason
        self.raw = dict(raw or {})


class MalformedTable(MapError):
    """Evidence text whose header row cannot be read as delimited values."""


class EncodingError(MapError):
    """Raster could not be turned into an image (only for empty input)."""


class MapImportError(MapError):
    """Import pipeline failure; ``__cause__`` carries the parser error."""

    def __init__(self, case_id: str, stage: str, cause: Exception) -> None:
        super().__init__(f"case '{case_id}' failed at {stage}: {cause}")
        self.case_id = case_id
        self.stage = stage


class CaseNotFound(MapError):
    def __init__(self, case_id: str) -> None:
        super().__init__(f"no files found for case '{case_id}'")
        self.case_id = case_id


class CaseFilesMissing(MapError):
    def __init__(self, case_id: str, missing: list[str]) -> None:
        super().__init__(f"case '{case_id}' requires {' and '.join(missing)} file(s)")
        self.case_id = case_id
        self.missing = list(missing)
