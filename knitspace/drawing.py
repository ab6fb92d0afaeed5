"""Freehand capture surface for knitspace.

``SketchCanvas`` owns the strokes drawn on one surface. Pointer input is
driven through an explicit two-state machine (idle / drawing); completed
strokes bump the draw version and arm the idle check, and when the canvas
goes quiet it rasterizes itself and announces the snapshot.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import Property, QObject, QTimer, Signal, Slot

from .config import KnitspaceSettings
from .constants import CLEAR_REVEAL_MS, DEFAULT_IDLE_MS, DEFAULT_PRESSURE, PRIMARY_BUTTON, TRANSPARENT
from .errors import CaptureError
from .idle import IdleScheduler
from .outline import StrokeOptions, default_stroke_options, stroke_outline, svg_path_from_outline
from .snapshot import png_data_url, rasterize_outlines
from .types import Stroke, StrokePoint

logger = logging.getLogger(__name__)

Vec = Tuple[float, float]


class CanvasState(Enum):
    """Capture states."""

    IDLE = "idle"
    DRAWING = "drawing"


TRANSITIONS: Dict[Tuple[CanvasState, str], CanvasState] = {
    (CanvasState.IDLE, "down"): CanvasState.DRAWING,
    (CanvasState.DRAWING, "down"): CanvasState.DRAWING,
    (CanvasState.DRAWING, "move"): CanvasState.DRAWING,
    (CanvasState.DRAWING, "up"): CanvasState.IDLE,
    (CanvasState.DRAWING, "cancel"): CanvasState.IDLE,
    (CanvasState.DRAWING, "leave"): CanvasState.IDLE,
    (CanvasState.IDLE, "up"): CanvasState.IDLE,
    (CanvasState.IDLE, "cancel"): CanvasState.IDLE,
    (CanvasState.IDLE, "leave"): CanvasState.IDLE,
    (CanvasState.IDLE, "clear"): CanvasState.IDLE,
    (CanvasState.DRAWING, "clear"): CanvasState.IDLE,
}

END_EVENTS = ("up", "cancel", "leave")


class SketchCanvas(QObject):
    """Qt-facing stroke model for the drawing surface."""

    drawStarted = Signal()
    drawingChanged = Signal()
    stateChanged = Signal()
    drawVersionChanged = Signal()
    clearVisibleChanged = Signal()
    devicePixelRatioChanged = Signal()
    idle = Signal(int, arguments=["version"])
    snapshotReady = Signal(int, str, arguments=["version", "dataUrl"])

    def __init__(
        self,
        idle_ms: int = DEFAULT_IDLE_MS,
        options: Optional[StrokeOptions] = None,
        device_pixel_ratio: float = 1.0,
        background: str = TRANSPARENT,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._options = options or default_stroke_options()
        self._device_pixel_ratio = device_pixel_ratio
        self._background = background
        self._strokes: List[Stroke] = []
        self._active_stroke_id: Optional[int] = None
        self._state = CanvasState.IDLE
        self._draw_version = 0
        self._last_stroke_id = 0
        self._surface: Optional[Tuple[float, float, float, float]] = None
        self._outline_cache: Dict[int, List[Vec]] = {}

        self._idle = IdleScheduler(idle_ms, self)
        self._idle.idle.connect(self._on_idle)

        self._clear_visible = False
        self._clear_reveal_timer = QTimer(self)
        self._clear_reveal_timer.setSingleShot(True)
        self._clear_reveal_timer.timeout.connect(self._reveal_clear)

    @classmethod
    def from_settings(cls, settings: KnitspaceSettings, parent: Optional[QObject] = None) -> "SketchCanvas":
        return cls(
            idle_ms=settings.idle_ms,
            device_pixel_ratio=settings.device_pixel_ratio,
            background=settings.background,
            parent=parent,
        )

    # --- Properties exposed to QML -----------------------------------------
    @Property(int, notify=drawingChanged)
    def strokeCount(self) -> int:
        return len(self._strokes)

    @Property(int, notify=drawVersionChanged)
    def drawVersion(self) -> int:
        return self._draw_version

    @Property(bool, notify=stateChanged)
    def isDrawing(self) -> bool:
        return self._state is CanvasState.DRAWING

    @Property(list, notify=drawingChanged)
    def strokePaths(self) -> List[str]:
        """SVG path data per stroke, for a QML ``PathSvg``."""
        return [svg_path_from_outline(outline) for outline in self._outlines()]

    @Property(bool, notify=clearVisibleChanged)
    def clearVisible(self) -> bool:
        return self._clear_visible

    @Property(float, notify=devicePixelRatioChanged)
    def devicePixelRatio(self) -> float:
        return self._device_pixel_ratio

    @devicePixelRatio.setter  # type: ignore[no-redef]
    def devicePixelRatio(self, value: float) -> None:
        value = float(value) if value and value > 0 else 1.0
        if self._device_pixel_ratio != value:
            self._device_pixel_ratio = value
            self.devicePixelRatioChanged.emit()

    @property
    def state(self) -> CanvasState:
        return self._state

    @property
    def strokes(self) -> List[Stroke]:
        return list(self._strokes)

    @property
    def idle_scheduler(self) -> IdleScheduler:
        return self._idle

    # --- Surface geometry ---------------------------------------------------
    @Slot(float, float, float, float)
    def setSurfaceGeometry(self, x: float, y: float, width: float, height: float) -> None:
        """Record the live bounding box of the drawing surface."""
        self._surface = (float(x), float(y), float(width), float(height))

    @Slot()
    def clearSurfaceGeometry(self) -> None:
        self._surface = None

    def _local_point(self, x: float, y: float, pressure: float) -> Optional[StrokePoint]:
        if self._surface is None:
            return None
        left, top, _, _ = self._surface
        return StrokePoint(x - left, y - top, pressure or DEFAULT_PRESSURE)

    # --- State machine ------------------------------------------------------
    def _transition(self, event: str) -> bool:
        next_state = TRANSITIONS.get((self._state, event))
        if next_state is None:
            return False
        if next_state is not self._state:
            self._state = next_state
            self.stateChanged.emit()
        return True

    def _next_stroke_id(self) -> int:
        stroke_id = int(time.time() * 1000)
        if stroke_id <= self._last_stroke_id:
            stroke_id = self._last_stroke_id + 1
        self._last_stroke_id = stroke_id
        return stroke_id

    def _active_stroke(self) -> Optional[Stroke]:
        if self._active_stroke_id is None:
            return None
        for stroke in reversed(self._strokes):
            if stroke.id == self._active_stroke_id:
                return stroke
        return None

    @Slot(float, float, float, int, result=bool)
    def beginStroke(self, x: float, y: float, pressure: float = 0.0, button: int = PRIMARY_BUTTON) -> bool:
        """Start a stroke at a scene-coordinate position."""
        if button != PRIMARY_BUTTON:
            return False
        point = self._local_point(x, y, pressure)
        if point is None:
            return False

        self.drawStarted.emit()
        self._idle.cancel()
        self._transition("down")
        stroke = Stroke(id=self._next_stroke_id(), points=[point])
        self._strokes.append(stroke)
        self._active_stroke_id = stroke.id
        self._on_stroke_count_changed()
        self.drawingChanged.emit()
        return True

    @Slot(float, float, float)
    def extendStroke(self, x: float, y: float, pressure: float = 0.0) -> None:
        """Append a sample to the active stroke."""
        stroke = self._active_stroke()
        if stroke is None:
            return
        point = self._local_point(x, y, pressure)
        if point is None:
            return
        self._idle.cancel()
        self._transition("move")
        stroke.points.append(point)
        self._outline_cache.pop(stroke.id, None)
        self.drawingChanged.emit()

    @Slot()
    def endStroke(self) -> None:
        self._end("up")

    @Slot()
    def cancelStroke(self) -> None:
        self._end("cancel")

    @Slot()
    def leaveSurface(self) -> None:
        self._end("leave")

    def _end(self, event: str) -> None:
        if event not in END_EVENTS:
            raise ValueError(f"Not a stroke-ending event: {event}")
        if self._active_stroke_id is not None:
            self._draw_version += 1
            self.drawVersionChanged.emit()
        self._active_stroke_id = None
        self._transition(event)
        self._idle.schedule(self._draw_version, bool(self._strokes))

    @Slot()
    def clear(self) -> None:
        """Remove all strokes and drop any pending idle check."""
        self._strokes.clear()
        self._outline_cache.clear()
        self._active_stroke_id = None
        self._transition("clear")
        self._idle.cancel()
        self._on_stroke_count_changed()
        self.drawingChanged.emit()

    @Slot()
    def dispose(self) -> None:
        """Stop every timer owned by the canvas."""
        self._idle.cancel()
        self._clear_reveal_timer.stop()

    # --- Outlines and snapshots --------------------------------------------
    def _outlines(self) -> List[List[Vec]]:
        outlines = []
        for stroke in self._strokes:
            outline = self._outline_cache.get(stroke.id)
            if outline is None:
                outline = stroke_outline(stroke.point_tuples(), self._options)
                if stroke.id != self._active_stroke_id:
                    self._outline_cache[stroke.id] = outline
            outlines.append(outline)
        return outlines

    def snapshot(self) -> Optional[str]:
        """Rasterize the current strokes into a PNG data URL."""
        if self._surface is None:
            logger.debug("No surface geometry, skipping snapshot")
            return None
        _, _, width, height = self._surface
        try:
            image = rasterize_outlines(
                self._outlines(),
                width,
                height,
                device_pixel_ratio=self._device_pixel_ratio,
                background=self._background,
            )
        except CaptureError as exc:
            logger.debug("Skipping snapshot: %s", exc)
            return None
        return png_data_url(image) or None

    @Slot(result=str)
    def snapshotDataUrl(self) -> str:
        return self.snapshot() or ""

    def _on_idle(self, version: int) -> None:
        self.idle.emit(version)
        data_url = self.snapshot()
        if data_url:
            self.snapshotReady.emit(version, data_url)

    # --- Clear button reveal ------------------------------------------------
    def _on_stroke_count_changed(self) -> None:
        self._clear_reveal_timer.stop()
        if not self._strokes:
            if self._clear_visible:
                self._clear_visible = False
                self.clearVisibleChanged.emit()
            return
        self._clear_reveal_timer.start(CLEAR_REVEAL_MS)

    def _reveal_clear(self) -> None:
        if self._strokes and not self._clear_visible:
            self._clear_visible = True
            self.clearVisibleChanged.emit()
