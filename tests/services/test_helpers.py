"""Tests for shared service-layer helper functions."""

from __future__ import annotations

import uuid
from datetime import datetime

from dpui.services._helpers import new_preset_id, now_iso


class TestNowIso:
    def test_parses_as_aware_datetime(self) -> None:
        parsed = datetime.fromisoformat(now_iso())
        assert parsed.tzinfo is not None
        assert parsed.utcoffset().total_seconds() == 0  # type: ignore[union-attr]


class TestNewPresetId:
    def test_is_uuid(self) -> None:
        assert uuid.UUID(new_preset_id()).version == 4

    def test_unique(self) -> None:
        assert len({new_preset_id() for _ in range(50)}) == 50
