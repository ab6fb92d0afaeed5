"""Knitspace sketch-to-UI pipeline built with PySide6.

Freehand strokes are captured on a canvas, snapshotted once drawing goes
idle and sent to a generative backend. The backend streams JSON patches
that are decoded into a UI spec tree and flattened for rendering.
"""

from .cancellation import CancellationToken
from .catalog import CATALOG, build_system_prompt, normalize_piece_card_props
from .config import KnitspaceSettings, load_settings
from .constants import LOADING_VERBS, STORAGE_KEY, STROKE_OPTIONS
from .drawing import CanvasState, SketchCanvas
from .errors import CaptureError, DecodeSkew, KnitspaceError, PersistenceError, TransportError
from .flatten import tree_to_flat_spec
from .generating import LoadingVerbTicker
from .history import HistoryStore, MemoryStorage, SettingsStorage
from .idle import IdleScheduler
from .outline import StrokeOptions, render_outline
from .patch_stream import SpecStreamDecoder, StreamUpdate, apply_patch
from .project import Project
from .transport import GenerationClient, GenerationStream, build_request_body
from .types import (
    EntryStatus,
    FlatElement,
    FlatSpec,
    SketchEntry,
    Stroke,
    StrokePoint,
)

__all__ = [
    "CATALOG",
    "CancellationToken",
    "CanvasState",
    "CaptureError",
    "DecodeSkew",
    "EntryStatus",
    "FlatElement",
    "FlatSpec",
    "GenerationClient",
    "GenerationStream",
    "HistoryStore",
    "IdleScheduler",
    "KnitspaceError",
    "KnitspaceSettings",
    "LOADING_VERBS",
    "LoadingVerbTicker",
    "MemoryStorage",
    "PersistenceError",
    "Project",
    "STORAGE_KEY",
    "STROKE_OPTIONS",
    "SettingsStorage",
    "SketchCanvas",
    "SketchEntry",
    "SpecStreamDecoder",
    "StreamUpdate",
    "Stroke",
    "StrokeOptions",
    "StrokePoint",
    "TransportError",
    "apply_patch",
    "build_request_body",
    "build_system_prompt",
    "load_settings",
    "normalize_piece_card_props",
    "render_outline",
    "tree_to_flat_spec",
]
