"""Bounded id-to-record cache with first-in-first-out eviction."""

from __future__ import annotations

from collections import OrderedDict
import copy

from core.errors import KoraStateError
from core.types import Record


class RecordCache:
    """Capacity-bounded record snapshot cache.

    Eviction removes the earliest inserted id still cached. Reads do not
    change eviction order, and refreshing an id keeps its original slot.
    Records are copied on the way in and out so callers never share
    the cached objects.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise KoraStateError(f"Cache capacity must be at least 1, got {capacity}.")
        self._capacity = capacity
        self._entries: OrderedDict[str, Record] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._entries

    def get(self, record_id: str) -> Record | None:
        """Return a copy of the cached record, or None on a miss."""
        record = self._entries.get(record_id)
        if record is None:
            return None
        return copy.deepcopy(record)

    def put(self, record_id: str, record: Record) -> None:
        """Insert or refresh a record snapshot.

        Args:
            record_id: Record identifier.
            record: Record snapshot to cache.
        """
        if record_id not in self._entries and len(self._entries) >= self._capacity:
            self._entries.popitem(last=False)
        self._entries[record_id] = copy.deepcopy(record)

    def invalidate(self, record_id: str) -> None:
        """Drop a cached record if present."""
        self._entries.pop(record_id, None)

    def clear(self) -> None:
        self._entries.clear()
