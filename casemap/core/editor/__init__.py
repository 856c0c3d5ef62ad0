"""Editor package: session state, engine, pointer routing."""

from .engine import EDITABLE_FIELDS, MapEditorEngine
from .pointer import PointerController
from .state import EditorSession, MapView, RecordState, RulerPhase, RulerState

__all__ = [
    "EDITABLE_FIELDS",
    "EditorSession",
    "MapEditorEngine",
    "MapView",
    "PointerController",
    "RecordState",
    "RulerPhase",
    "RulerState",
]
