"""Tests for typed payload contracts at the store boundary."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dpui.domain.display import Display
from dpui.domain.presets import Preset
from dpui.services.contracts import (
    DisplayListData,
    PresetListData,
    ToggleData,
    display_item,
    dump_validated,
    preset_item,
)
from dpui.services.store import DisplayStateStore


class TestPayloadContracts:
    def test_display_list_conforms(self, loaded_store: DisplayStateStore) -> None:
        payload = DisplayListData.model_validate(loaded_store.fetch_displays().data)
        assert payload.count == 2
        assert payload.enabled_count == 2
        assert payload.items[0].resolution == "2560x1440"

    def test_preset_list_conforms(self, loaded_store: DisplayStateStore) -> None:
        loaded_store.add_preset("Desk", "displayplacer x")
        payload = PresetListData.model_validate(loaded_store.fetch_presets().data)
        assert payload.count == 1
        assert payload.items[0].name == "Desk"

    def test_toggle_conforms(self, loaded_store: DisplayStateStore) -> None:
        payload = ToggleData.model_validate(loaded_store.request_toggle("2", False).data)
        assert payload.outcome == "pending"
        assert payload.remaining_seconds == 15


class TestHelpers:
    def test_display_item(self) -> None:
        d = Display(id="2", resolution=(1920, 1080), origin=(-1920, 0), rotation=90)
        assert display_item(d) == {
            "id": "2",
            "resolution": "1920x1080",
            "origin": [-1920, 0],
            "rotation": 90,
            "enabled": True,
        }

    def test_preset_item(self) -> None:
        p = Preset(id="a", name="Desk", config="x", created_at="2025-01-01T00:00:00Z")
        assert preset_item(p)["created_at"] == "2025-01-01T00:00:00Z"
        assert preset_item(p)["hotkey"] is None

    def test_dump_validated_rejects_bad_shape(self) -> None:
        with pytest.raises(ValidationError):
            dump_validated(ToggleData, {"display_id": "2"})

    def test_dump_validated_fills_defaults(self) -> None:
        data = dump_validated(ToggleData, {"display_id": "2", "outcome": "cancelled"})
        assert data == {
            "display_id": "2",
            "outcome": "cancelled",
            "remaining_seconds": None,
            "enabled": None,
        }
