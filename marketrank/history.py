from __future__ import annotations

"""
View-history persistence behind a small key-value port.

Recommendation code never talks to a storage backend directly; it gets a
:class:`ViewHistory`, which reads and writes one JSON-encoded list of item
ids through any object that satisfies :class:`KeyValueStore`.

Two stores ship with the package:

* InMemoryStore  - dict-backed, used by tests and by the API by default
* JsonFileStore  - a JSON object on disk, used by the CLI

Reads and writes are not transactional: two writers racing on the same key
simply overwrite each other (last write wins).
"""

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from loguru import logger

from . import config


class HistoryReadError(RuntimeError):
    """The stored history could not be read or decoded."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class JsonFileStore:
    """
    Key-value store persisted as a single JSON object file.

    The file is re-read on every ``get`` so separate processes see each
    other's writes.  A missing file is an empty store.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._load()
            except (OSError, ValueError) as e:
                logger.warning("Store file {} unreadable, starting a fresh one: {}", self.path, e)
                data = {}
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp.replace(self.path)


class ViewHistory:
    """Most-recent-first list of viewed item ids, capped at ``limit``."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = config.HISTORY_KEY,
        limit: int = config.MAX_HISTORY,
    ):
        self.store = store
        self.key = key
        self.limit = limit

    def read(self) -> List[str]:
        """
        Return the stored ids.

        A missing key is an empty history.  Store failures, invalid JSON or
        a value that is not a list raise HistoryReadError.
        """
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            raise HistoryReadError(f"history store unavailable: {e}") from e

        if raw is None or raw == "":
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise HistoryReadError(f"history under {self.key!r} is not valid JSON") from e
        if not isinstance(data, list):
            raise HistoryReadError(f"history under {self.key!r} is not a list")
        return [str(x) for x in data]

    def write(self, ids: List[str]) -> List[str]:
        trimmed = [str(x) for x in ids][: self.limit]
        self.store.set(self.key, json.dumps(trimmed))
        return trimmed
