"""Runtime configuration model for KoraDB.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_CACHE_CAPACITY,
    DEFAULT_DATA_ROOT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_SYNC_PUSH_METHOD,
    DEFAULT_SYNC_TIMEOUT_SECONDS,
    DEFAULT_WRITE_DEBOUNCE_SECONDS,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_SYNC_PUSH_METHODS,
)
from core.errors import KoraConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class KoraConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Directory holding one JSON document per collection.
        cache_capacity: Maximum cached records per collection.
        max_concurrent: Admitted in-flight operations per collection.
        max_size_bytes: Size ceiling of one collection document.
        write_debounce_seconds: Window that coalesces document rewrites.
        synchronous_writes: Persist every rewrite before returning.
        strict_reads: Raise on unreadable documents instead of reading empty.
        sync_timeout_seconds: HTTP timeout for remote sync requests.
        sync_push_method: HTTP method used to push records.
        log_level: Minimum structured log level.
    """

    data_root: Path = DEFAULT_DATA_ROOT
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    write_debounce_seconds: float = DEFAULT_WRITE_DEBOUNCE_SECONDS
    synchronous_writes: bool = False
    strict_reads: bool = False
    sync_timeout_seconds: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    sync_push_method: str = DEFAULT_SYNC_PUSH_METHOD
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.cache_capacity < 1:
            raise KoraConfigError(
                f"Invalid cache capacity {self.cache_capacity}: expected at least 1."
            )
        if self.max_concurrent < 1:
            raise KoraConfigError(
                f"Invalid concurrency limit {self.max_concurrent}: expected at least 1."
            )
        if self.max_size_bytes < 1:
            raise KoraConfigError(
                f"Invalid size ceiling {self.max_size_bytes}: expected a positive byte count."
            )
        if self.write_debounce_seconds < 0 or self.sync_timeout_seconds <= 0:
            raise KoraConfigError(
                "Invalid timing configuration: debounce window must be >= 0 "
                "and sync timeout must be > 0."
            )
        if self.sync_push_method not in SUPPORTED_SYNC_PUSH_METHODS:
            raise KoraConfigError(
                f"Unsupported sync push method '{self.sync_push_method}'. "
                f"Use one of: {', '.join(SUPPORTED_SYNC_PUSH_METHODS)}."
            )
        if self.log_level not in SUPPORTED_LOG_LEVELS:
            raise KoraConfigError(
                f"Unsupported log level '{self.log_level}'. "
                f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
            )

    @classmethod
    def from_env(cls) -> "KoraConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            KoraConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("KORA_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            cache_capacity=_parse_int("KORA_CACHE_CAPACITY", DEFAULT_CACHE_CAPACITY),
            max_concurrent=_parse_int("KORA_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT),
            max_size_bytes=_parse_int("KORA_MAX_SIZE_BYTES", DEFAULT_MAX_SIZE_BYTES),
            write_debounce_seconds=_parse_float(
                "KORA_WRITE_DEBOUNCE_SECONDS", DEFAULT_WRITE_DEBOUNCE_SECONDS
            ),
            synchronous_writes=_parse_bool("KORA_SYNCHRONOUS_WRITES", False),
            strict_reads=_parse_bool("KORA_STRICT_READS", False),
            sync_timeout_seconds=_parse_float(
                "KORA_SYNC_TIMEOUT_SECONDS", DEFAULT_SYNC_TIMEOUT_SECONDS
            ),
            sync_push_method=os.getenv("KORA_SYNC_PUSH_METHOD", DEFAULT_SYNC_PUSH_METHOD).upper(),
            log_level=os.getenv("KORA_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )


def _parse_int(env_name: str, default: int) -> int:
    """Parse an integer environment value.

    Args:
        env_name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        KoraConfigError: If value cannot be parsed into int.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as error:
        raise KoraConfigError(
            f"Invalid {env_name} value: expected integer, got '{raw_value}'. "
            f"Set {env_name} to a numeric value."
        ) from error


def _parse_float(env_name: str, default: float) -> float:
    """Parse a float environment value."""
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError as error:
        raise KoraConfigError(
            f"Invalid {env_name} value: expected number, got '{raw_value}'. "
            f"Set {env_name} to a numeric value in seconds."
        ) from error


def _parse_bool(env_name: str, default: bool) -> bool:
    """Parse a boolean flag environment value."""
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise KoraConfigError(
        f"Invalid {env_name} value: expected a boolean flag, got '{raw_value}'. "
        f"Use one of: {', '.join(_TRUE_VALUES + _FALSE_VALUES)}."
    )
