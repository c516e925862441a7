"""Typed payload contracts for store results and UI events.

These models validate payload shapes before they leave the service layer,
so a renamed key (``origin`` vs ``position``) fails fast in tests instead
of silently breaking renderers and plugins.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from dpui.domain.display import Display
from dpui.domain.presets import Preset


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class DisplayItem(BaseModel):
    """One display row."""

    model_config = ConfigDict(extra="allow")

    id: str
    resolution: str
    origin: list[int]
    rotation: int
    enabled: bool


class DisplayListData(BaseModel):
    """Payload contract for ``fetch_displays`` and other device-list results."""

    count: int
    enabled_count: int
    items: list[DisplayItem]
    config: str | None = None


class PresetItem(BaseModel):
    """One preset row."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    config: str
    hotkey: str | None = None
    created_at: str


class PresetListData(BaseModel):
    """Payload contract for ``fetch_presets``."""

    version: str
    count: int
    selected: str | None = None
    items: list[PresetItem]


class ToggleData(BaseModel):
    """Payload contract for toggle actions."""

    display_id: str
    outcome: str
    remaining_seconds: int | None = None
    enabled: bool | None = None


def display_item(display: Display) -> dict[str, Any]:
    return {
        "id": display.id,
        "resolution": display.resolution_label,
        "origin": list(display.origin),
        "rotation": display.rotation,
        "enabled": display.enabled,
    }


def preset_item(preset: Preset) -> dict[str, Any]:
    return {
        "id": preset.id,
        "name": preset.name,
        "config": preset.config,
        "hotkey": preset.hotkey,
        "created_at": preset.created_at,
    }
