"""Evidence package: table parsing, marker records, attachments."""

from .evidence_media import attach_image_urls, image_data_url
from .evidence_record import EvidenceRecord
from .evidence_table import (
    RECOGNIZED_COLUMNS,
    EvidenceRow,
    EvidenceTable,
    parse_evidence_csv,
    write_evidence_csv,
)

__all__ = [
    "RECOGNIZED_COLUMNS",
    "EvidenceRecord",
    "EvidenceRow",
    "EvidenceTable",
    "attach_image_urls",
    "image_data_url",
    "parse_evidence_csv",
    "write_evidence_csv",
]
