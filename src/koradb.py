"""Public SDK surface for KoraDB.

This module provides a stable import path for embedding users.
It re-exports the registry, collection, and result types.
"""

from __future__ import annotations

from core.config import KoraConfig
from core.errors import (
    KoraConfigError,
    KoraError,
    KoraReadError,
    KoraStateError,
    KoraStoreError,
    KoraSyncError,
)
from core.identifiers import generate_id, is_valid_payload
from core.types import OperationResult, Record, Status
from store.collection import Collection
from store.database import Database
from sync.sync_manager import SyncManager

__all__ = [
    "Collection",
    "Database",
    "KoraConfig",
    "KoraConfigError",
    "KoraError",
    "KoraReadError",
    "KoraStateError",
    "KoraStoreError",
    "KoraSyncError",
    "OperationResult",
    "Record",
    "Status",
    "SyncManager",
    "generate_id",
    "is_valid_payload",
]
