"""casemap: occupancy-grid case maps with editable evidence markers."""

from casemap.core.case_loader import CasePayload, MapCaseLoader
from casemap.core.case_store import CaseStore, DirectoryCaseStore
from casemap.core.config import EditorConfig, load_editor_config
from casemap.core.editor import MapEditorEngine, PointerController
from casemap.core.errors import MapError

__version__ = "0.1.0"

__all__ = [
    "CasePayload",
    "CaseStore",
    "DirectoryCaseStore",
    "EditorConfig",
    "MapCaseLoader",
    "MapEditorEngine",
    "MapError",
    "PointerController",
    "load_editor_config",
]
