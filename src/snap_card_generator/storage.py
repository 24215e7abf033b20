"""Small JSON-backed key-value store and the card display counter."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DISPLAY_ID_KEY = "displayIdCounter"

# One lock per preference file, shared by every store opened on it
_FILE_LOCKS: dict[Path, threading.RLock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _FILE_LOCKS_GUARD:
        return _FILE_LOCKS.setdefault(key, threading.RLock())


class PreferenceStore:
    """Key-value preferences persisted as a single JSON file.

    Stores opened on the same file in one process share a lock, so
    read-modify-write updates from any of them are serialized.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: JSON file holding the preferences (created on first write)
        """
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Preference file {self.path} is corrupt, starting empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Preference file {self.path} is not an object, starting empty")
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def update(self, key: str, func, default: Any = None) -> Any:
        """Atomically replace a value with ``func(old)`` and return the new value."""
        with self._lock:
            data = self._read()
            new_value = func(data.get(key, default))
            data[key] = new_value
            self._write(data)
            return new_value


class DisplayIdCounter:
    """Monotonic card number that survives restarts. The first card is #1."""

    def __init__(self, store: PreferenceStore, key: str = DISPLAY_ID_KEY):
        self.store = store
        self.key = key

    def current(self) -> int:
        """Number given to the most recent card, 0 if none yet."""
        return int(self.store.get(self.key, 0))

    def next(self) -> int:
        """Increment the counter by one and return the new value."""
        value = self.store.update(self.key, lambda old: int(old or 0) + 1)
        logger.debug(f"Allocated display id {value}")
        return value
