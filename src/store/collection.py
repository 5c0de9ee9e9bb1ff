"""File-backed record collection.

This module orchestrates admission control, document IO, caching,
and field indexing behind insert, find, update, and delete.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.config import KoraConfig
from core.constants import COLLECTION_FILE_SUFFIX, RECORD_ID_FIELD
from core.identifiers import generate_id, is_valid_payload
from core.logging_config import get_logger
from core.types import OperationResult, Record, Status, failure, success
from store.concurrency_gate import ConcurrencyGate
from store.field_index import FieldIndex, values_equal
from store.record_cache import RecordCache
from store.storage_file import StorageFile
from sync.sync_manager import SyncManager

_LOGGER = get_logger(__name__)


class Collection:
    """Named set of schema-less records persisted as one JSON array.

    Every public operation takes a slot from the concurrency gate and
    returns an ``OperationResult``. The gate limits how many operations
    interleave; it does not serialize their read-modify-write cycles,
    so concurrent mutations may overwrite each other.
    """

    def __init__(
        self,
        name: str,
        data_root: Path,
        config: KoraConfig,
        logger: Any = None,
    ) -> None:
        """Create a collection bound to ``<data_root>/<name>.json``.

        Args:
            name: Collection name.
            data_root: Directory holding collection documents.
            config: Runtime configuration.
            logger: Optional structured logger override.
        """
        self._name = name
        self._logger = logger or _LOGGER
        self._storage = StorageFile(
            data_root / f"{name}{COLLECTION_FILE_SUFFIX}", config, logger=self._logger
        )
        self._gate = ConcurrencyGate(config.max_concurrent, label=name, logger=self._logger)
        self._cache = RecordCache(config.cache_capacity)
        self._index = FieldIndex()
        self._sync = SyncManager(self, config)

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        return self._storage.path

    @property
    def sync(self) -> SyncManager:
        return self._sync

    @property
    def indexed_fields(self) -> frozenset[str]:
        return self._index.fields

    async def init(self) -> None:
        """Create or load the backing document.

        Raises:
            KoraStoreError: If an existing document cannot be loaded.
        """
        records = await self._storage.init()
        for record in records:
            self._index.on_insert(record)
        self._logger.info("collection_opened", collection=self._name, record_count=len(records))

    async def read_all(self) -> list[Record]:
        """Return every record currently in the collection."""
        return await self._storage.read_all()

    async def count(self) -> int:
        return len(await self._storage.read_all())

    async def add_index_field(self, field: str) -> None:
        """Index a field and rebuild its entries from the stored records.

        Args:
            field: Field name to index.
        """
        records = await self._storage.read_all()
        self._index.add_field(field, records)
        self._logger.info("index_field_added", collection=self._name, field=field)

    async def insert(self, payload: Any) -> OperationResult:
        """Insert a payload as a new record with a fresh id.

        Args:
            payload: Object-shaped record fields.

        Returns:
            Envelope with the stored record on success.
        """
        if not self._gate.admit():
            return failure(Status.TOO_MANY_CONNECTIONS)
        try:
            if not is_valid_payload(payload):
                self._logger.warning("insert_rejected_invalid_data", collection=self._name)
                return failure(Status.INVALID_DATA)
            record = {**payload, RECORD_ID_FIELD: generate_id()}
            records = await self._storage.read_all()
            records.append(record)
            written = await self._storage.write_all(records)
            if not written.ok:
                return written
            self._cache.put(record[RECORD_ID_FIELD], record)
            self._index.on_insert(record)
            self._logger.info("record_inserted", collection=self._name, id=record[RECORD_ID_FIELD])
            return success(record)
        finally:
            self._gate.release()

    async def find_by_id(self, record_id: str) -> OperationResult:
        """Find a record by id.

        Args:
            record_id: Record identifier.

        Returns:
            Envelope with the record, or NotFound.
        """
        if not self._gate.admit():
            return failure(Status.TOO_MANY_CONNECTIONS)
        try:
            record = await self._resolve_id(record_id)
            if record is None:
                self._logger.warning("record_not_found", collection=self._name, id=record_id)
                return failure(Status.NOT_FOUND)
            return success(record)
        finally:
            self._gate.release()

    async def find_by_field(self, field: str, value: Any) -> OperationResult:
        """Find the first record whose field equals a value.

        Indexed fields resolve through the index; a miss or an entry
        that no longer matches falls back to a full scan.
        Values of different JSON kinds never match, so ``1`` does not
        find a record holding ``True``.

        Args:
            field: Field name.
            value: Value to match.

        Returns:
            Envelope with the record, or NotFound.
        """
        if not self._gate.admit():
            return failure(Status.TOO_MANY_CONNECTIONS)
        try:
            indexed_id = self._index.lookup(field, value)
            if indexed_id is not None:
                record = await self._resolve_id(indexed_id)
                if record is not None and values_equal(record.get(field), value):
                    self._logger.info("index_hit", collection=self._name, field=field)
                    return success(record)
            records = await self._storage.read_all()
            for record in records:
                if not isinstance(record, dict) or field not in record:
                    continue
                if values_equal(record[field], value):
                    self._logger.info("record_found_by_field", collection=self._name, field=field)
                    return success(record)
            self._logger.warning("record_not_found", collection=self._name, field=field)
            return failure(Status.NOT_FOUND)
        finally:
            self._gate.release()

    async def update(self, record_id: str, updates: Any) -> OperationResult:
        """Merge fields into an existing record, preserving its id.

        Args:
            record_id: Record identifier.
            updates: Object-shaped fields to merge.

        Returns:
            Envelope with the updated record, or NotFound/InvalidData.
        """
        if not self._gate.admit():
            return failure(Status.TOO_MANY_CONNECTIONS)
        try:
            if not is_valid_payload(updates):
                self._logger.warning("update_rejected_invalid_data", collection=self._name)
                return failure(Status.INVALID_DATA)
            self._cache.invalidate(record_id)
            records = await self._storage.read_all()
            position = _position_of(records, record_id)
            if position is None:
                self._logger.warning("update_target_missing", collection=self._name, id=record_id)
                return failure(Status.NOT_FOUND)
            previous = records[position]
            updated = {**previous, **updates, RECORD_ID_FIELD: record_id}
            records[position] = updated
            written = await self._storage.write_all(records)
            if not written.ok:
                return written
            self._cache.put(record_id, updated)
            self._index.on_update(previous, updated)
            self._logger.info("record_updated", collection=self._name, id=record_id)
            return success(updated)
        finally:
            self._gate.release()

    async def delete(self, record_id: str) -> OperationResult:
        """Remove a record from the document, cache, and index.

        Args:
            record_id: Record identifier.

        Returns:
            Envelope with True on success, False with NotFound.
        """
        if not self._gate.admit():
            return failure(Status.TOO_MANY_CONNECTIONS)
        try:
            records = await self._storage.read_all()
            position = _position_of(records, record_id)
            if position is None:
                self._logger.warning("delete_target_missing", collection=self._name, id=record_id)
                return failure(Status.NOT_FOUND, False)
            deleted = records.pop(position)
            written = await self._storage.write_all(records)
            if not written.ok:
                return written
            self._cache.invalidate(record_id)
            self._index.on_delete(deleted)
            self._logger.info("record_deleted", collection=self._name, id=record_id)
            return success(True)
        finally:
            self._gate.release()

    def configure_sync(self, endpoint: str, logger: Any = None, transport: Any = None) -> None:
        """Point the collection's sync manager at a remote endpoint."""
        self._sync.configure(endpoint, logger=logger, transport=transport)

    async def sync_pull(self) -> OperationResult:
        return await self._sync.pull()

    async def sync_push(self) -> OperationResult:
        return await self._sync.push()

    async def flush(self) -> None:
        """Write any buffered snapshot to disk now."""
        await self._storage.flush()

    async def close(self) -> None:
        """Flush buffered writes before the collection is discarded."""
        await self._storage.flush()
        self._logger.debug("collection_closed", collection=self._name)

    async def _resolve_id(self, record_id: str) -> Record | None:
        """Point lookup through the cache, then a full scan."""
        cached = self._cache.get(record_id)
        if cached is not None:
            self._logger.debug("cache_hit", collection=self._name, id=record_id)
            return cached
        records = await self._storage.read_all()
        position = _position_of(records, record_id)
        if position is None:
            return None
        record = records[position]
        self._cache.put(record_id, record)
        return record


def _position_of(records: list[Record], record_id: str) -> int | None:
    """Return the list position of a record id, or None."""
    for position, record in enumerate(records):
        if isinstance(record, dict) and record.get(RECORD_ID_FIELD) == record_id:
            return position
    return None
