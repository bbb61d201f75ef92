"""
Thread-safe mapping from location identifier to LocationType.

Backs both the classifier's known-locations table and its lookup cache.
Entries are independent per key, so a single lock around each operation
is enough; concurrent writers of the same key race with last-writer-wins.
"""

import threading
from collections.abc import Mapping

from src.core.models import LocationType


class LocationMap:
    """Mutex-guarded dict of location id -> LocationType."""

    def __init__(self, initial: Mapping[str, LocationType] | None = None):
        self._entries: dict[str, LocationType] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, location_id: str) -> LocationType | None:
        with self._lock:
            return self._entries.get(location_id)

    def put(self, location_id: str, location_type: LocationType) -> None:
        with self._lock:
            self._entries[location_id] = location_type

    def put_all(self, entries: Mapping[str, LocationType]) -> None:
        with self._lock:
            self._entries.update(entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, location_id: object) -> bool:
        with self._lock:
            return location_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"LocationMap(size={len(self)})"
