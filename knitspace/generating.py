"""Rotating status text shown while a generation is pending."""

from __future__ import annotations

import random
from typing import Optional, Sequence

from PySide6.QtCore import Property, QObject, QTimer, Signal, Slot

from .constants import LOADING_VERB_INTERVAL_MS, LOADING_VERBS


class LoadingVerbTicker(QObject):
    """Pick a new loading verb every ``interval_ms`` while active."""

    verbChanged = Signal()
    activeChanged = Signal()

    def __init__(
        self,
        verbs: Sequence[str] = LOADING_VERBS,
        interval_ms: int = LOADING_VERB_INTERVAL_MS,
        rng: Optional[random.Random] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._verbs = tuple(verbs)
        self._rng = rng or random.Random()
        self._verb = self.pick()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._rotate)

    def pick(self) -> str:
        if not self._verbs:
            return "Loading"
        return self._rng.choice(self._verbs)

    @Property(str, notify=verbChanged)
    def verb(self) -> str:
        return self._verb

    @Property(bool, notify=activeChanged)
    def active(self) -> bool:
        return self._timer.isActive()

    @Slot()
    def start(self) -> None:
        was_active = self._timer.isActive()
        self._set_verb(self.pick())
        self._timer.start()
        if not was_active:
            self.activeChanged.emit()

    @Slot()
    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
            self.activeChanged.emit()

    def _rotate(self) -> None:
        self._set_verb(self.pick())

    def _set_verb(self, verb: str) -> None:
        if verb != self._verb:
            self._verb = verb
            self.verbChanged.emit()
