"""Shared typed models.

This module defines the result envelope returned by every public
collection and sync operation, plus the record type alias.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

Record = dict[str, Any]


class Status(Enum):
    """Result status taxonomy mirroring HTTP semantics."""

    SUCCESS = (200, "Operation successful")
    INVALID_DATA = (400, "Invalid data")
    NOT_FOUND = (404, "Record not found")
    SIZE_LIMIT_EXCEEDED = (413, "Database size limit exceeded")
    TOO_MANY_CONNECTIONS = (429, "Too many concurrent connections")
    SYNC_FAILED = (502, "Failed to sync with external API")

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message


@dataclass(frozen=True)
class OperationResult:
    """Result envelope of a public operation.

    Attributes:
        status: Outcome status with numeric code and message.
        data: Operation payload; ``None`` when nothing is returned.
    """

    status: Status
    data: Any = None

    @property
    def ok(self) -> bool:
        """Return whether the operation succeeded."""
        return self.status is Status.SUCCESS

    @property
    def code(self) -> int:
        return self.status.code

    @property
    def message(self) -> str:
        return self.status.message

    def to_dict(self) -> dict[str, Any]:
        """Render the envelope as a JSON-safe dictionary."""
        return {
            "status": {"code": self.status.code, "message": self.status.message},
            "data": self.data,
        }


def success(data: Any = None) -> OperationResult:
    """Build a success envelope."""
    return OperationResult(Status.SUCCESS, data)


def failure(status: Status, data: Any = None) -> OperationResult:
    """Build a non-success envelope for an expected condition."""
    return OperationResult(status, data)
