"""Durable sketch history.

History is a JSON array of serialized ``SketchEntry`` objects stored as a
single string under one key. Loading is best-effort: anything unreadable
yields an empty history rather than an error.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Optional

from PySide6.QtCore import QSettings

from .constants import SETTINGS_APPLICATION, SETTINGS_ORGANIZATION, STORAGE_KEY
from .errors import PersistenceError
from .types import EntryStatus, SketchEntry

logger = logging.getLogger(__name__)


class SettingsStorage:
    """Key/value string store backed by ``QSettings``."""

    def __init__(self, settings: Optional[QSettings] = None):
        self._settings = settings or QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)

    @property
    def settings(self) -> QSettings:
        return self._settings

    def _check_status(self, action: str) -> None:
        status = self._settings.status()
        if status != QSettings.Status.NoError:
            raise PersistenceError(f"Could not {action} settings ({status})")

    def get(self, key: str) -> Optional[str]:
        self._check_status("read")
        stored = self._settings.value(key)
        # QSettings hands back None for missing keys and may coerce types
        if stored is None:
            return None
        if isinstance(stored, bytes):
            return stored.decode("utf-8", errors="replace")
        if not isinstance(stored, str):
            raise PersistenceError(f"Unexpected value type for {key}: {type(stored).__name__}")
        return stored

    def set(self, key: str, value: str) -> None:
        self._settings.setValue(key, value)
        self._settings.sync()
        self._check_status("write")

    def remove(self, key: str) -> None:
        self._settings.remove(key)
        self._settings.sync()
        self._check_status("write")


class MemoryStorage:
    """In-process store with the same interface as ``SettingsStorage``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


def _is_entry_record(item: object) -> bool:
    return (
        isinstance(item, dict)
        and isinstance(item.get("id"), str)
        and isinstance(item.get("imageUrl"), str)
    )


class HistoryStore:
    """Load and save the ordered list of sketch entries."""

    def __init__(self, storage=None, key: str = STORAGE_KEY):
        self._storage = storage if storage is not None else SettingsStorage()
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def storage(self):
        return self._storage

    def load(self) -> List[SketchEntry]:
        try:
            raw = self._storage.get(self._key)
        except PersistenceError as exc:
            logger.warning("Could not read sketch history: %s", exc)
            return []
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable sketch history under %s", self._key)
            return []
        if not isinstance(data, list):
            logger.warning("Discarding sketch history under %s: not a list", self._key)
            return []

        entries = []
        for item in data:
            if not _is_entry_record(item):
                continue
            try:
                entry = SketchEntry.from_dict(item)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable history record: %s", exc)
                continue
            if entry.status is EntryStatus.PENDING:
                # Generation was interrupted before it finished.
                logger.debug("Dropping interrupted entry %s", entry.id)
                continue
            entries.append(entry)
        return entries

    def save(self, entries: Iterable[SketchEntry]) -> bool:
        try:
            try:
                payload = json.dumps([entry.to_dict() for entry in entries])
            except (TypeError, ValueError) as exc:
                raise PersistenceError(f"History is not serializable: {exc}") from exc
            self._storage.set(self._key, payload)
        except PersistenceError as exc:
            logger.warning("Could not save sketch history: %s", exc)
            return False
        return True

    def clear(self) -> bool:
        try:
            self._storage.remove(self._key)
        except PersistenceError as exc:
            logger.warning("Could not clear sketch history: %s", exc)
            return False
        return True
