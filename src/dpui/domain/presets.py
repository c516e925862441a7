"""Preset and PresetCollection models.

Persisted layout::

    {"version": "1.0",
     "presets": [{"id", "name", "config", "hotkey"?, "createdAt"}]}

Files written by older builds used ``created_at``; both spellings load.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PRESET_FORMAT_VERSION = "1.0"


class Preset(BaseModel):
    """A named configuration string that reproduces a layout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    config: str = Field(min_length=1)
    hotkey: str | None = None
    created_at: str = Field(
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    @field_validator("name")
    @classmethod
    def _non_empty_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            msg = "preset name must not be empty"
            raise ValueError(msg)
        return stripped


class PresetCollection(BaseModel):
    """Ordered presets with unique ids."""

    model_config = {"frozen": True}

    version: str = PRESET_FORMAT_VERSION
    presets: tuple[Preset, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> PresetCollection:
        ids = [p.id for p in self.presets]
        if len(ids) != len(set(ids)):
            msg = "preset ids must be unique"
            raise ValueError(msg)
        return self

    def __len__(self) -> int:
        return len(self.presets)

    def get(self, preset_id: str) -> Preset | None:
        return next((p for p in self.presets if p.id == preset_id), None)

    def with_preset(self, preset: Preset) -> PresetCollection:
        """Append *preset*, or replace the preset with the same id in place."""
        if self.get(preset.id) is None:
            return PresetCollection(version=self.version, presets=(*self.presets, preset))
        presets = tuple(preset if p.id == preset.id else p for p in self.presets)
        return PresetCollection(version=self.version, presets=presets)

    def without(self, preset_id: str) -> PresetCollection:
        presets = tuple(p for p in self.presets if p.id != preset_id)
        return PresetCollection(version=self.version, presets=presets)

    def to_json_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)
