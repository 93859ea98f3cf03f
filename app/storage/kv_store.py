"""JSON-file key-value store with per-key expiry.

Holds both conversation sessions and rate-limit windows. Every operation
re-reads the file so that separate requests (and worker processes) see each
other's writes; read-modify-write is not atomic across processes.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the backing file cannot be read or written."""


def _default_store_path() -> Path:
    """Default path for the key-value JSON file."""
    return Path("./data/kv_store.json")


class KeyValueStore:
    """Persistent keyed storage where each entry may carry an expiry time."""

    def __init__(
        self,
        store_path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(store_path) if store_path else _default_store_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def now(self) -> float:
        """Current time according to the store's clock (epoch seconds)."""
        return self._clock()

    def _load(self) -> dict[str, dict]:
        """Load all entries from disk."""
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Key-value store is corrupt, starting empty: %s", e)
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e
        entries = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            logger.warning("Key-value store has an unexpected layout, starting empty")
            return {}
        return entries

    def _save(self, entries: dict[str, dict]) -> None:
        """Persist entries to disk, dropping anything already expired."""
        now = self.now()
        live = {k: v for k, v in entries.items() if not self._expired(v, now)}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"entries": live}, f)
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error("Failed to save key-value store: %s", e)
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    @staticmethod
    def _expired(entry: dict, now: float) -> bool:
        expires_at = entry.get("expires_at")
        return expires_at is not None and expires_at <= now

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if absent or expired."""
        entry = self._load().get(key)
        if entry is None or self._expired(entry, self.now()):
            return None
        return entry.get("value")

    def put(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a JSON-serializable value, optionally expiring after ttl_seconds."""
        entries = self._load()
        expires_at = self.now() + ttl_seconds if ttl_seconds is not None else None
        entries[key] = {"value": value, "expires_at": expires_at}
        self._save(entries)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        entries = self._load()
        if key in entries:
            del entries[key]
            self._save(entries)
            return True
        return False

    def ping(self) -> bool:
        """Cheap availability check used by the health endpoint."""
        self._load()
        return True
