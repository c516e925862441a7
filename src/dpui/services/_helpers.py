"""Shared service-layer helper functions."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as RFC 3339 / ISO 8601 (preset ``createdAt``)."""
    return datetime.now(UTC).isoformat()


def new_preset_id() -> str:
    return str(uuid.uuid4())
