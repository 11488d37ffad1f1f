"""
Request history for CMD AI.

A most-recent-first, deduplicated list of past requests, capped at
MAX_HISTORY entries and persisted as one JSON-encoded key in a small
local key-value store.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

HISTORY_KEY = "command-history"
MAX_HISTORY = 20

STORAGE_PATH = Path.home() / ".local" / "share" / "cmd-ai" / "storage.json"


class StorageBackend(ABC):
    """String key-value storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class MemoryStorage(StorageBackend):
    """In-process storage, used by tests."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage(StorageBackend):
    """
    All keys in a single JSON object file.

    Writes go through a temp file and os.replace, so a crash mid-write
    leaves the previous contents intact.
    """

    def __init__(self, path: Path = STORAGE_PATH):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object, ignoring")
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class HistoryStore:
    """Owns the persisted request history."""

    def __init__(self, backend: Optional[StorageBackend] = None,
                 key: str = HISTORY_KEY, max_entries: int = MAX_HISTORY):
        self.backend = backend if backend is not None else JsonFileStorage()
        self.key = key
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def list(self) -> List[str]:
        """Entries, most recent first. Missing or corrupt data is an empty history."""
        try:
            raw = self.backend.get_item(self.key)
        except Exception as e:
            logger.warning(f"Failed to read history: {e}")
            return []
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except ValueError:
            logger.warning("History is not valid JSON, treating as empty")
            return []
        if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
            logger.warning("History is not a list of strings, treating as empty")
            return []
        return entries

    def record(self, request: str) -> List[str]:
        """Move (or add) request to the front and drop anything past the cap."""
        with self._lock:
            entries = [e for e in self.list() if e != request]
            updated = [request, *entries][: self.max_entries]
            self.backend.set_item(self.key, json.dumps(updated, ensure_ascii=False))
        logger.debug(f"Recorded request; history has {len(updated)} entries")
        return updated

    def clear(self) -> None:
        with self._lock:
            try:
                self.backend.remove_item(self.key)
            except Exception as e:
                logger.error(f"Failed to clear history: {e}")

    def search(self, text: str) -> List[str]:
        """Entries containing text, ignoring case. Blank text matches everything."""
        entries = self.list()
        needle = text.strip().lower()
        if not needle:
            return entries
        return [e for e in entries if needle in e.lower()]

    def get(self, index: int) -> str:
        entries = self.list()
        if not 0 <= index < len(entries):
            raise IndexError(f"No history entry at position {index}")
        return entries[index]
