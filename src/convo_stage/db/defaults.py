"""Column default factories shared by ORM models."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime

OBJECT_ID_BYTES = 12


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def new_object_id() -> str:
    """Return a fresh 24-character hex identifier for a stored document."""
    return secrets.token_hex(OBJECT_ID_BYTES)
