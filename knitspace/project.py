"""Sketch session: submission coordinator and history model.

``Project`` owns the sketch history and the one generation that may be in
flight. Snapshots are deduplicated by draw version; a new submission or a
new stroke cancels the pending generation and drops its entry. Every stream
callback checks that its cancellation token is still the active one before
touching state, so a late chunk from a superseded stream is discarded.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from PySide6.QtCore import Property, QObject, Signal, Slot

from .cancellation import CancellationToken
from .config import KnitspaceSettings, load_settings
from .errors import TransportError
from .flatten import flat_spec_dict
from .generating import LoadingVerbTicker
from .history import HistoryStore
from .patch_stream import SpecStreamDecoder
from .transport import GenerationClient
from .types import EntryStatus, SketchEntry

logger = logging.getLogger(__name__)


class Project(QObject):
    """Single session object for capture, generation and history."""

    entriesChanged = Signal()
    selectedEntryChanged = Signal()
    pendingChanged = Signal()
    loadingVerbChanged = Signal()
    entryUpdated = Signal(str, arguments=["entryId"])

    def __init__(
        self,
        client=None,
        history: Optional[HistoryStore] = None,
        settings: Optional[KnitspaceSettings] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._settings = settings or load_settings()
        self._client = client if client is not None else GenerationClient(self._settings, parent=self)
        self._history = history if history is not None else HistoryStore(key=self._settings.storage_key)

        self._entries: List[SketchEntry] = []
        self._selected_entry_id: Optional[str] = None
        self._active_entry_id: Optional[str] = None
        self._active_token: Optional[CancellationToken] = None
        self._last_submitted_version: Optional[int] = None
        self._loaded = False
        self._canvas = None

        self._ticker = LoadingVerbTicker(parent=self)
        self._ticker.verbChanged.connect(self.loadingVerbChanged)

    # --- Lifecycle -----------------------------------------------------------
    @Slot()
    def init(self) -> None:
        """Load persisted history once."""
        if self._loaded:
            return
        self._entries = self._history.load()
        self._loaded = True
        logger.info("Loaded %d sketch entries", len(self._entries))
        self.entriesChanged.emit()
        self._set_selected(self._entries[-1].id if self._entries else None)

    @Slot()
    def dispose(self) -> None:
        """Abort the in-flight stream and let go of the canvas."""
        token = self._active_token
        self._active_entry_id = None
        self._active_token = None
        if token is not None:
            token.cancel()
        self._ticker.stop()
        canvas = self.detachCanvas()
        if canvas is not None:
            canvas.dispose()

    def attachCanvas(self, canvas) -> None:
        """Cancel on new strokes and submit the canvas's idle snapshots."""
        self.detachCanvas()
        self._canvas = canvas
        canvas.drawStarted.connect(self.cancelPending)
        canvas.snapshotReady.connect(self.submitSnapshot)

    def detachCanvas(self):
        canvas, self._canvas = self._canvas, None
        if canvas is not None:
            canvas.drawStarted.disconnect(self.cancelPending)
            canvas.snapshotReady.disconnect(self.submitSnapshot)
        return canvas

    # --- Python accessors ----------------------------------------------------
    @property
    def history_entries(self) -> List[SketchEntry]:
        return list(self._entries)

    @property
    def selected_entry_id(self) -> Optional[str]:
        return self._selected_entry_id

    @property
    def pending_entry_id(self) -> Optional[str]:
        return self._active_entry_id

    @property
    def last_submitted_version(self) -> Optional[int]:
        return self._last_submitted_version

    @property
    def active_token(self) -> Optional[CancellationToken]:
        return self._active_token

    def entry(self, entry_id: str) -> Optional[SketchEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    # --- Properties exposed to QML -------------------------------------------
    @Property(list, notify=entriesChanged)
    def entries(self) -> List[Dict[str, Any]]:
        result = []
        for entry in self._entries:
            data = entry.to_dict()
            data["flatSpec"] = flat_spec_dict(entry.spec)
            result.append(data)
        return result

    @Property(str, notify=selectedEntryChanged)
    def selectedEntryId(self) -> str:
        return self._selected_entry_id or ""

    @Property("QVariant", notify=selectedEntryChanged)
    def selectedFlatSpec(self) -> Optional[Dict[str, Any]]:
        if self._selected_entry_id is None:
            return None
        entry = self.entry(self._selected_entry_id)
        return flat_spec_dict(entry.spec) if entry is not None else None

    @Property(str, notify=pendingChanged)
    def pendingEntryId(self) -> str:
        return self._active_entry_id or ""

    @Property(bool, notify=pendingChanged)
    def isPending(self) -> bool:
        return self._active_entry_id is not None

    @Property(str, constant=True)
    def storageKey(self) -> str:
        return self._history.key

    @Property(str, notify=loadingVerbChanged)
    def loadingVerb(self) -> str:
        return self._ticker.verb

    # --- Selection -----------------------------------------------------------
    @Slot(str)
    def setSelectedEntryId(self, entry_id: str) -> None:
        if entry_id and self.entry(entry_id) is None:
            logger.debug("Ignoring selection of unknown entry %s", entry_id)
            return
        self._set_selected(entry_id or None)

    def _set_selected(self, entry_id: Optional[str]) -> None:
        if self._selected_entry_id != entry_id:
            self._selected_entry_id = entry_id
            self.selectedEntryChanged.emit()

    # --- Submission ----------------------------------------------------------
    @Slot(int, str, result=bool)
    def submitSnapshot(self, version: int, image_data_url: str) -> bool:
        """Start a generation for a snapshot. Returns False for a duplicate version."""
        if version == self._last_submitted_version:
            logger.debug("Draw version %d already submitted", version)
            return False
        if self._active_entry_id is not None:
            self.cancelPending()

        entry_id = uuid.uuid4().hex
        token = CancellationToken(owner=entry_id)
        self._active_entry_id = entry_id
        self._active_token = token
        self._last_submitted_version = version

        self._entries.append(
            SketchEntry(
                id=entry_id,
                image_url=image_data_url,
                spec=None,
                status=EntryStatus.PENDING,
                created_at=int(time.time() * 1000),
            )
        )
        self._commit_entries()
        self._set_selected(entry_id)
        self.pendingChanged.emit()
        self._ticker.start()
        logger.info("Submitting draw version %d as %s", version, entry_id)

        decoder = SpecStreamDecoder()
        try:
            stream = self._client.open_stream(image_data_url, token)
        except TransportError as exc:
            self._on_failed(entry_id, token, str(exc))
            return True
        stream.chunkReceived.connect(lambda chunk: self._on_chunk(entry_id, token, decoder, chunk))
        stream.finished.connect(lambda: self._on_finished(entry_id, token, decoder))
        stream.failed.connect(lambda message: self._on_failed(entry_id, token, message))
        return True

    @Slot(result=bool)
    def cancelPending(self) -> bool:
        """Abort the pending generation and drop its entry."""
        entry_id = self._active_entry_id
        if entry_id is None:
            return False
        token = self._active_token
        self._active_entry_id = None
        self._active_token = None
        if token is not None:
            token.cancel()

        self._entries = [entry for entry in self._entries if entry.id != entry_id]
        self._commit_entries()
        if self._selected_entry_id == entry_id:
            self._set_selected(None)
        self._ticker.stop()
        self.pendingChanged.emit()
        logger.info("Cancelled pending entry %s", entry_id)
        return True

    @Slot()
    def clearHistory(self) -> None:
        token = self._active_token
        was_pending = self._active_entry_id is not None
        self._active_entry_id = None
        self._active_token = None
        self._last_submitted_version = None
        if token is not None:
            token.cancel()

        self._entries = []
        self.entriesChanged.emit()
        self._history.clear()
        self._set_selected(None)
        self._ticker.stop()
        if was_pending:
            self.pendingChanged.emit()

    # --- Stream callbacks ----------------------------------------------------
    def _owns(self, entry_id: str, token: CancellationToken) -> bool:
        return (
            token is self._active_token
            and not token.cancelled
            and self._active_entry_id == entry_id
        )

    def _release(self) -> None:
        self._active_entry_id = None
        self._active_token = None
        self._ticker.stop()
        self.pendingChanged.emit()

    def _on_chunk(self, entry_id: str, token: CancellationToken, decoder: SpecStreamDecoder, chunk: str) -> None:
        if not self._owns(entry_id, token):
            logger.debug("Dropping stale chunk for %s", entry_id)
            return
        update = decoder.push(chunk)
        if not update.changed:
            return
        entry = self.entry(entry_id)
        if entry is None:
            return
        entry.spec = update.result
        self._commit_entries()
        self.entryUpdated.emit(entry_id)
        if self._selected_entry_id == entry_id:
            self.selectedEntryChanged.emit()

    def _on_finished(self, entry_id: str, token: CancellationToken, decoder: SpecStreamDecoder) -> None:
        if not self._owns(entry_id, token):
            logger.debug("Dropping stale completion for %s", entry_id)
            return
        decoder.finish()
        entry = self.entry(entry_id)
        self._release()
        if entry is None:
            return
        entry.spec = decoder.get_result()
        entry.status = EntryStatus.READY
        if decoder.skipped_lines:
            logger.debug("Entry %s skipped %d malformed lines", entry_id, decoder.skipped_lines)
        logger.info("Entry %s ready", entry_id)
        self._commit_entries()
        self.entryUpdated.emit(entry_id)
        if self._selected_entry_id == entry_id:
            self.selectedEntryChanged.emit()
        else:
            self._set_selected(entry_id)

    def _on_failed(self, entry_id: str, token: CancellationToken, message: str) -> None:
        if not self._owns(entry_id, token):
            logger.debug("Dropping stale failure for %s", entry_id)
            return
        entry = self.entry(entry_id)
        self._release()
        if entry is None:
            return
        entry.status = EntryStatus.ERROR
        logger.warning("Entry %s failed: %s", entry_id, message)
        self._commit_entries()
        self.entryUpdated.emit(entry_id)

    def _commit_entries(self) -> None:
        self.entriesChanged.emit()
        if self._loaded:
            self._history.save(self._entries)
