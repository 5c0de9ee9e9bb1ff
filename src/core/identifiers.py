"""Record id generation and payload shape checks."""

from __future__ import annotations

import json
import secrets
from typing import Any

from core.constants import RECORD_ID_BYTES


def generate_id() -> str:
    """Return a 32-character hex id drawn from 128 random bits."""
    return secrets.token_hex(RECORD_ID_BYTES)


def is_valid_payload(value: Any) -> bool:
    """Return whether value is an object-shaped, JSON-storable payload.

    Args:
        value: Candidate payload.

    Returns:
        True for dictionaries whose content serializes to JSON; False for
        None, lists, scalars, and dictionaries holding values such as
        dates, sets, or circular references.
    """
    if not isinstance(value, dict):
        return False
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True
