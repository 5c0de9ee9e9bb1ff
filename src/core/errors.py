"""KoraDB exception hierarchy.

Expected conditions are reported through result envelopes.
These exceptions are reserved for faults and misuse.
"""

from __future__ import annotations


class KoraError(Exception):
    """Base exception for all KoraDB failures."""


class KoraConfigError(KoraError):
    """Raised for invalid runtime configuration."""


class KoraStoreError(KoraError):
    """Raised for fatal storage and registry failures."""


class KoraReadError(KoraStoreError):
    """Raised when a collection document cannot be read in strict mode."""


class KoraSyncError(KoraError):
    """Raised inside sync flows before conversion to a SyncFailed result."""


class KoraStateError(KoraError):
    """Raised when a component is used in an invalid state."""
