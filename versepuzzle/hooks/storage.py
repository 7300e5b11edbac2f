"""Key-value storage stubs — in-memory and local JSON files.

``InMemoryKeyValueStore`` loses data on restart and is what tests use.
``JsonFileKeyValueStore`` writes one JSON file per key under a base
directory, the server-side equivalent of the app's device storage.

Both can be told to fail (``fail_reads`` / ``fail_writes``) so the
fallback paths can be exercised without breaking a real disk.

TEAM: Replace with your storage (Redis, SQLite, etc.). Subclass
KeyValueStore from versepuzzle.hooks.interfaces and raise
PersistenceUnavailable on any I/O failure.

Usage:
    from versepuzzle.hooks.storage import JsonFileKeyValueStore

    store = JsonFileKeyValueStore(base_path="/tmp/verse-data")
    await store.set_item("bibleVersePuzzle_session:player-1", snapshot_dict)
"""

from __future__ import annotations

import copy
import json
import re
from pathlib import Path
from typing import Any

from versepuzzle.engine.errors import PersistenceUnavailable
from versepuzzle.hooks.interfaces import KeyValueStore

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class InMemoryKeyValueStore(KeyValueStore):
    """STUB — dict-backed storage, loses data on restart.

    Values are deep-copied on the way in and out, like a real store that
    serializes them.
    """

    def __init__(self) -> None:
        self._items: dict[str, dict[str, Any]] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def get_item(self, key: str) -> dict[str, Any] | None:
        if self.fail_reads:
            raise PersistenceUnavailable("Storage read failed (simulated).", key=key)
        value = self._items.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set_item(self, key: str, value: dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("Storage write failed (simulated).", key=key)
        self._items[key] = copy.deepcopy(value)

    async def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("Storage write failed (simulated).", key=key)
        self._items.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """STUB — one JSON file per key under ``base_path``.

    Keys are mapped to safe file names; characters outside
    ``[A-Za-z0-9_.-]`` become underscores. Files are written to a temp
    name and renamed so a crash mid-write never leaves half a file.
    """

    def __init__(self, base_path: str | Path = ".data") -> None:
        self._base_path = Path(base_path)
        self.fail_reads = False
        self.fail_writes = False

    def _path_for(self, key: str) -> Path:
        return self._base_path / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    async def get_item(self, key: str) -> dict[str, Any] | None:
        if self.fail_reads:
            raise PersistenceUnavailable("Storage read failed (simulated).", key=key)
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceUnavailable(f"Cannot read {path}: {exc}", key=key) from exc
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceUnavailable(f"Corrupt JSON in {path}: {exc}", key=key) from exc
        if not isinstance(value, dict):
            raise PersistenceUnavailable(f"Expected an object in {path}", key=key)
        return value

    async def set_item(self, key: str, value: dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("Storage write failed (simulated).", key=key)
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(value, default=str), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise PersistenceUnavailable(f"Cannot write {path}: {exc}", key=key) from exc

    async def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("Storage write failed (simulated).", key=key)
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceUnavailable(f"Cannot delete {path}: {exc}", key=key) from exc
