"""Record store interface (repository pattern).

Stores hold plain JSON-compatible dicts in named collections, one record per key,
each with an integer version. Stores must be swappable; engines only see the
Repository built on top of one.
"""

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from partybar.errors import ConflictError


class Collection(str, Enum):
    EVENTS     = "events"
    DRINKS     = "drinks"
    ORDERS     = "orders"
    COIN_CODES = "coin_codes"
    SESSIONS   = "sessions"


@dataclass(frozen=True)
class StoredRecord:
    key: str
    data: dict
    version: int


class RecordStore(ABC):
    """Interface for record persistence operations."""

    @abstractmethod
    def list_records(self, collection: Collection) -> List[StoredRecord]:
        """Return every record of a collection in insertion order."""
        ...

    @abstractmethod
    def get_record(self, collection: Collection, key: str) -> Optional[StoredRecord]:
        """Return a record by key, or None if not found."""
        ...

    @abstractmethod
    def upsert(
        self,
        collection: Collection,
        key: str,
        data: dict,
        expected_version: Optional[int] = None,
    ) -> int:
        """Insert or replace one record and return its new version.

        ``expected_version`` of None writes unconditionally, 0 requires that the
        record does not exist yet, any other value must match the stored version.

        Raises:
            ConflictError: If the stored version differs from ``expected_version``.
        """
        ...

    @abstractmethod
    def delete(self, collection: Collection, key: str) -> bool:
        """Remove a record. Returns False if it did not exist."""
        ...

    @abstractmethod
    def put_all(self, collection: Collection, records: Dict[str, dict]) -> None:
        """Overwrite the whole collection with ``records``."""
        ...

    def get_all(self, collection: Collection) -> List[dict]:
        return [r.data for r in self.list_records(collection)]


class MemoryStore(RecordStore):
    """Dict-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._data: Dict[Collection, Dict[str, StoredRecord]] = {c: {} for c in Collection}
        self._lock = threading.Lock()

    def list_records(self, collection: Collection) -> List[StoredRecord]:
        with self._lock:
            return [
                StoredRecord(r.key, copy.deepcopy(r.data), r.version)
                for r in self._data[collection].values()
            ]

    def get_record(self, collection: Collection, key: str) -> Optional[StoredRecord]:
        with self._lock:
            r = self._data[collection].get(key)
            if r is None:
                return None
            return StoredRecord(r.key, copy.deepcopy(r.data), r.version)

    def upsert(self, collection, key, data, expected_version=None) -> int:
        with self._lock:
            current = self._data[collection].get(key)
            actual = current.version if current else 0
            if expected_version is not None and expected_version != actual:
                raise ConflictError(collection.value, key, expected_version, actual)
            version = actual + 1
            self._data[collection][key] = StoredRecord(key, copy.deepcopy(data), version)
            return version

    def delete(self, collection: Collection, key: str) -> bool:
        with self._lock:
            return self._data[collection].pop(key, None) is not None

    def put_all(self, collection: Collection, records: Dict[str, dict]) -> None:
        with self._lock:
            old = self._data[collection]
            self._data[collection] = {
                key: StoredRecord(key, copy.deepcopy(data), old[key].version + 1 if key in old else 1)
                for key, data in records.items()
            }
