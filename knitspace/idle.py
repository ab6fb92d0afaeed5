"""Idle detection for the sketch canvas."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Property, QObject, QTimer, Signal, Slot

from .constants import DEFAULT_IDLE_MS

logger = logging.getLogger(__name__)


class IdleScheduler(QObject):
    """Emit ``idle(version)`` once drawing has been quiet for ``idleMs``.

    Activity cancels the pending timer; the end of a stroke re-arms it. A
    given draw version fires at most once.
    """

    idle = Signal(int, arguments=["version"])
    idleMsChanged = Signal()

    def __init__(self, idle_ms: int = DEFAULT_IDLE_MS, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._idle_ms = max(0, int(idle_ms))
        self._pending_version: Optional[int] = None
        self._last_fired_version: Optional[int] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    @Property(int, notify=idleMsChanged)
    def idleMs(self) -> int:
        return self._idle_ms

    @idleMs.setter  # type: ignore[no-redef]
    def idleMs(self, value: int) -> None:
        value = max(0, int(value))
        if self._idle_ms != value:
            self._idle_ms = value
            self.idleMsChanged.emit()

    @property
    def is_armed(self) -> bool:
        return self._timer.isActive()

    @Slot()
    def cancel(self) -> None:
        """Drop any pending idle check."""
        self._timer.stop()
        self._pending_version = None

    def schedule(self, version: int, has_strokes: bool) -> None:
        """Re-arm the idle timer for ``version``; never arms on an empty canvas."""
        if not has_strokes:
            self.cancel()
            return
        self._pending_version = version
        self._timer.start(self._idle_ms)

    def reset(self) -> None:
        """Forget which version already fired."""
        self.cancel()
        self._last_fired_version = None

    def _on_timeout(self) -> None:
        version = self._pending_version
        self._pending_version = None
        if version is None:
            return
        if version == self._last_fired_version:
            logger.debug("Idle for draw version %d already reported", version)
            return
        self._last_fired_version = version
        self.idle.emit(version)
