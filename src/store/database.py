"""Registry of named collections under one data root.

This module maps collection names to their documents and lazily
constructs collection instances, memoized for the registry lifetime.
"""

from __future__ import annotations

import asyncio
from typing import Any

from core.config import KoraConfig
from core.errors import KoraStoreError
from core.logging_config import get_logger
from store.collection import Collection

_LOGGER = get_logger(__name__)


class Database:
    """Directory of file-backed collections."""

    def __init__(self, config: KoraConfig | None = None, logger: Any = None) -> None:
        """Create a registry.

        Args:
            config: Optional runtime configuration.
            logger: Optional structured logger shared with collections.
        """
        self._config = config or KoraConfig.from_env()
        self._logger = logger or _LOGGER
        self._collections: dict[str, Collection] = {}
        self._lock = asyncio.Lock()

    @property
    def config(self) -> KoraConfig:
        return self._config

    @property
    def collections(self) -> tuple[str, ...]:
        return tuple(self._collections)

    async def init(self) -> None:
        """Create the data root directory.

        Raises:
            KoraStoreError: If the directory cannot be created.
        """
        try:
            await asyncio.to_thread(self._config.data_root.mkdir, parents=True, exist_ok=True)
        except OSError as error:
            raise KoraStoreError(
                f"Failed to create database directory {self._config.data_root}: {error}. "
                "Check permissions or choose another data root."
            ) from error
        self._logger.info("database_initialized", data_root=str(self._config.data_root))

    async def get_collection(self, name: str) -> Collection:
        """Return the named collection, creating it on first use.

        Args:
            name: Collection name; becomes ``<name>.json`` under the data root.

        Returns:
            Initialized collection instance.

        Raises:
            KoraStoreError: If the name is invalid or its document cannot load.
        """
        _validate_collection_name(name)
        async with self._lock:
            existing = self._collections.get(name)
            if existing is not None:
                return existing
            collection = Collection(name, self._config.data_root, self._config, self._logger)
            await collection.init()
            self._collections[name] = collection
            return collection

    async def flush(self) -> None:
        """Write buffered snapshots of every open collection."""
        for collection in self._collections.values():
            await collection.flush()

    async def close(self) -> None:
        """Flush and forget every open collection."""
        for collection in self._collections.values():
            await collection.close()
        self._collections.clear()


def _validate_collection_name(name: str) -> None:
    """Reject names that cannot map to a single file under the data root."""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise KoraStoreError(
            f"Invalid collection name '{name}'. "
            "Use a non-empty name without path separators."
        )
