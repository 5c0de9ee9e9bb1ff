"""Core constants used across KoraDB modules.

This module centralizes defaults and file layout names.
Keeping values here avoids magic literals in storage logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".koradb")
COLLECTION_FILE_SUFFIX = ".json"
EMPTY_DOCUMENT = "[]"
JSON_INDENT = 2
RECORD_ID_FIELD = "id"
RECORD_ID_BYTES = 16
DEFAULT_CACHE_CAPACITY = 100
DEFAULT_MAX_CONCURRENT = 10
DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_WRITE_DEBOUNCE_SECONDS = 0.1
DEFAULT_SYNC_TIMEOUT_SECONDS = 10.0
DEFAULT_SYNC_PUSH_METHOD = "POST"
SUPPORTED_SYNC_PUSH_METHODS = ("POST", "PUT")
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
