"""Admission control for per-collection operations.

The gate caps in-flight operations and rejects the overflow immediately.
It bounds interleaving but does not provide mutual exclusion.
"""

from __future__ import annotations

from typing import Any

from core.errors import KoraStateError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ConcurrencyGate:
    """Bounded admission counter without queueing."""

    def __init__(self, limit: int, label: str = "", logger: Any = None) -> None:
        """Create a gate.

        Args:
            limit: Maximum number of concurrently admitted operations.
            label: Name included in log events, usually the collection.
            logger: Optional structured logger override.
        """
        if limit < 1:
            raise KoraStateError(f"Concurrency limit must be at least 1, got {limit}.")
        self._limit = limit
        self._active = 0
        self._label = label
        self._logger = logger or _LOGGER

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        return self._active

    def admit(self) -> bool:
        """Try to take an operation slot.

        Returns:
            True when admitted, False when the limit is already reached.
        """
        if self._active >= self._limit:
            self._logger.warning(
                "admission_rejected",
                collection=self._label,
                active=self._active,
                limit=self._limit,
            )
            return False
        self._active += 1
        return True

    def release(self) -> None:
        """Return a previously admitted slot.

        Raises:
            KoraStateError: If no slot is currently admitted.
        """
        if self._active == 0:
            raise KoraStateError(
                f"Gate for '{self._label}' released without a matching admit. "
                "Call release() only after a successful admit()."
            )
        self._active -= 1
