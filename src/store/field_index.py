"""Opt-in secondary index from field values to record ids.

Entries are keyed ``"field:value"`` where value is canonical JSON,
so ``1`` and ``"1"`` map to different keys.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from core.constants import RECORD_ID_FIELD
from core.types import Record


class FieldIndex:
    """Equality index for explicitly registered fields."""

    def __init__(self) -> None:
        self._fields: set[str] = set()
        self._entries: dict[str, str] = {}

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self._fields)

    def __len__(self) -> int:
        return len(self._entries)

    def has_field(self, field: str) -> bool:
        return field in self._fields

    def add_field(self, field: str, records: Iterable[Record]) -> None:
        """Register a field and rebuild entries from a full record scan.

        Args:
            field: Field name to index.
            records: Current record set of the collection.
        """
        self._fields.add(field)
        for record in records:
            self.on_insert(record)

    def lookup(self, field: str, value: Any) -> str | None:
        """Return the indexed id for a field value.

        Args:
            field: Field name.
            value: Value to match.

        Returns:
            Record id, or None when the field is not indexed or has no entry.
        """
        if field not in self._fields:
            return None
        key = _index_key(field, value)
        if key is None:
            return None
        return self._entries.get(key)

    def on_insert(self, record: Record) -> None:
        """Add entries for every indexed field present on the record."""
        if not isinstance(record, dict):
            return
        record_id = record.get(RECORD_ID_FIELD)
        if not isinstance(record_id, str):
            return
        for key in self._keys_for(record):
            self._entries[key] = record_id

    def on_update(self, previous: Record, current: Record) -> None:
        """Replace the entries of a record's previous values with its current ones.

        Args:
            previous: Record state before the update.
            current: Record state after the update.
        """
        self.on_delete(previous)
        self.on_insert(current)

    def on_delete(self, record: Record) -> None:
        """Remove entries that still point at the record."""
        if not isinstance(record, dict):
            return
        record_id = record.get(RECORD_ID_FIELD)
        for key in self._keys_for(record):
            if self._entries.get(key) == record_id:
                del self._entries[key]

    def _keys_for(self, record: Record) -> list[str]:
        keys = []
        for field in self._fields:
            if record.get(field) is None:
                continue
            key = _index_key(field, record[field])
            if key is not None:
                keys.append(key)
        return keys


def _index_key(field: str, value: Any) -> str | None:
    """Build the ``field:value`` key, or None for unindexable values."""
    try:
        token = json.dumps(value, sort_keys=True)
    except (TypeError, ValueError):
        return None
    return f"{field}:{token}"


def values_equal(left: Any, right: Any) -> bool:
    """Compare field values the way index keys do.

    JSON values of different kinds never match, so ``True`` differs from
    ``1`` and ``1`` differs from ``1.0``, including inside nested arrays
    and objects.
    """
    try:
        return json.dumps(left, sort_keys=True) == json.dumps(right, sort_keys=True)
    except (TypeError, ValueError):
        return type(left) is type(right) and left == right
