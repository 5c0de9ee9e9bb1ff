"""Single JSON document holding every record of one collection.

This module isolates document IO: creation, full reads, the size
ceiling check, and full rewrites routed through the write coalescer.
"""

from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path
from typing import Any

from core.config import KoraConfig
from core.constants import EMPTY_DOCUMENT, JSON_INDENT
from core.errors import KoraReadError, KoraStoreError
from core.logging_config import get_logger
from core.types import OperationResult, Record, Status, failure, success
from store.write_coalescer import WriteCoalescer

_LOGGER = get_logger(__name__)


class StorageFile:
    """Flat-file persistence for one collection document."""

    def __init__(self, path: Path, config: KoraConfig, logger: Any = None) -> None:
        """Bind a document path to its size ceiling and write policy.

        Args:
            path: Location of the JSON array document.
            config: Runtime configuration.
            logger: Optional structured logger override.
        """
        self._path = path
        self._max_size_bytes = config.max_size_bytes
        self._strict_reads = config.strict_reads
        self._logger = logger or _LOGGER
        self._coalescer = WriteCoalescer(
            self._persist,
            window_seconds=config.write_debounce_seconds,
            synchronous=config.synchronous_writes,
            label=str(path),
            logger=self._logger,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def coalescer(self) -> WriteCoalescer:
        return self._coalescer

    async def init(self) -> list[Record]:
        """Ensure the document exists and return its records.

        Returns:
            Records currently stored; empty for a new document.

        Raises:
            KoraStoreError: If an existing document cannot be loaded.
        """
        try:
            return await asyncio.to_thread(_load_document, self._path)
        except FileNotFoundError:
            await asyncio.to_thread(self._path.write_text, EMPTY_DOCUMENT, encoding="utf-8")
            self._logger.info("collection_document_created", path=str(self._path))
            return []
        except (OSError, ValueError) as error:
            raise KoraStoreError(
                f"Failed to load collection document at {self._path}: {error}. "
                "Repair or remove the file before opening the collection."
            ) from error

    async def read_all(self) -> list[Record]:
        """Return the full record sequence.

        A snapshot accepted for writing but not yet on disk takes
        precedence over the document. Unreadable documents read as
        empty unless strict reads are enabled.

        Returns:
            Mutable copy of the record sequence.

        Raises:
            KoraReadError: If the document is unreadable in strict mode.
        """
        buffered = self._coalescer.latest_unpersisted
        if buffered is not None:
            return copy.deepcopy(buffered)
        try:
            return await asyncio.to_thread(_load_document, self._path)
        except (OSError, ValueError) as error:
            self._logger.error(
                "collection_read_failed",
                path=str(self._path),
                error=str(error),
                strict=self._strict_reads,
            )
            if self._strict_reads:
                raise KoraReadError(
                    f"Failed to read collection document at {self._path}: {error}. "
                    "Restore the file from a backup or disable strict reads."
                ) from error
            return []

    async def check_size(self) -> OperationResult | None:
        """Compare the on-disk document size against the ceiling.

        The check sees the document as it is before the write being
        admitted, so one write may grow it past the ceiling and the
        following write is the one rejected.

        Returns:
            A SizeLimitExceeded envelope, or None when writing may proceed.
        """
        try:
            stats = await asyncio.to_thread(self._path.stat)
        except OSError as error:
            self._logger.error("size_check_failed", path=str(self._path), error=str(error))
            return failure(Status.SIZE_LIMIT_EXCEEDED)
        if stats.st_size > self._max_size_bytes:
            self._logger.warning(
                "size_limit_exceeded",
                path=str(self._path),
                size_bytes=stats.st_size,
                max_size_bytes=self._max_size_bytes,
            )
            return failure(Status.SIZE_LIMIT_EXCEEDED)
        return None

    async def write_all(self, records: list[Record]) -> OperationResult:
        """Replace the document content.

        Success means the snapshot was accepted; durability follows
        within the debounce window unless writes are synchronous.

        Args:
            records: Full record sequence.

        Returns:
            Success or SizeLimitExceeded envelope.
        """
        rejected = await self.check_size()
        if rejected is not None:
            return rejected
        await self._coalescer.submit(copy.deepcopy(records))
        return success()

    async def flush(self) -> None:
        """Persist any buffered snapshot immediately."""
        await self._coalescer.flush()

    async def _persist(self, records: list[Record]) -> None:
        payload = json.dumps(records, indent=JSON_INDENT)
        await asyncio.to_thread(self._path.write_text, payload, encoding="utf-8")
        self._logger.debug("collection_written", path=str(self._path), record_count=len(records))


def _load_document(path: Path) -> list[Record]:
    """Read and validate a collection document.

    Args:
        path: Document path.

    Returns:
        Parsed record list.

    Raises:
        FileNotFoundError: If the document does not exist.
        ValueError: If content is not a JSON array.
    """
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []
    payload = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("expected JSON array at top level")
    return payload
