"""Key/value persistence for daily progress, streaks and resilience history.

The store is opaque: string keys to JSON strings. Reads and writes go through
read_json/write_json, which treat every failure as best-effort (log and fall
back) so a broken store never interrupts a session.
"""
from typing import Any, Dict, Optional
from collections import OrderedDict
from pathlib import Path
import json
import logging

from config import MAX_STORE_KEYS
from exceptions import PersistenceError


class MemoryStore:
    """In-memory store; with a positive maxsize the least recently used key is evicted"""
    def __init__(self, maxsize: int = MAX_STORE_KEYS):
        self.data: OrderedDict = OrderedDict()
        self.maxsize = maxsize

    def get(self, key: str) -> Optional[str]:
        if key in self.data:
            self.data.move_to_end(key)
            return self.data[key]
        return None

    def set(self, key: str, value: str):
        if key in self.data:
            self.data.move_to_end(key)
        elif self.maxsize > 0 and len(self.data) >= self.maxsize:
            # Remove oldest (first item)
            evicted, _ = self.data.popitem(last=False)
            logging.warning(f"Store full ({self.maxsize} keys), evicted {evicted}")
        self.data[key] = value

    def delete(self, key: str):
        self.data.pop(key, None)

    def clear(self):
        self.data.clear()

    def size(self) -> int:
        return len(self.data)


class JsonFileStore:
    """Store backed by a single JSON object on disk, rewritten on every set"""
    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Store {self.path} does not hold a JSON object")
        return data

    def _save(self, data: Dict[str, str]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write store {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str):
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str):
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    def clear(self):
        self._save({})

    def size(self) -> int:
        return len(self._load())


class NamespacedStore:
    """View of another store with every key prefixed, one per user session"""
    def __init__(self, store, namespace: str):
        self.store = store
        self.prefix = f"{namespace}:"

    def get(self, key: str) -> Optional[str]:
        return self.store.get(self.prefix + key)

    def set(self, key: str, value: str):
        self.store.set(self.prefix + key, value)

    def delete(self, key: str):
        self.store.delete(self.prefix + key)


def create_store(path: str = ""):
    """File store when a path is configured, memory store otherwise"""
    if path:
        logging.info(f"Using JSON file store at {path}")
        return JsonFileStore(path)
    return MemoryStore()


def read_json(store, key: str, default: Any = None) -> Any:
    """Read and decode a value; corrupt or unreadable data yields the default"""
    try:
        raw = store.get(key)
    except PersistenceError as e:
        logging.warning(f"Store read failed for {key}: {e}")
        return default
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logging.warning(f"Corrupt JSON under {key}, using default: {e}")
        return default


def write_json(store, key: str, value: Any) -> bool:
    """Encode and write a value; failures are logged and reported as False"""
    try:
        store.set(key, json.dumps(value))
        return True
    except (PersistenceError, TypeError, ValueError) as e:
        logging.error(f"Store write failed for {key}: {e}", exc_info=True)
        return False
