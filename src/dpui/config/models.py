"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, dpui.toml only contains overrides.
An empty or missing dpui.toml is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

# --- dpui.toml sections ---


class DisplayplacerConfig(BaseModel):
    """[displayplacer] section."""

    model_config = {"frozen": True}

    binary: str = "displayplacer"
    timeout_seconds: float = Field(default=10.0, gt=0)


class CanvasConfig(BaseModel):
    """[canvas] section: layout editor geometry, in canvas pixels."""

    model_config = {"frozen": True}

    max_width_px: float = Field(default=500.0, gt=0)
    max_height_px: float = Field(default=400.0, gt=0)
    scale_cap: float = Field(default=0.15, gt=0)
    margin_px: float = Field(default=20.0, ge=0)
    default_width: int = Field(default=2560, gt=0)
    default_height: int = Field(default=1440, gt=0)


class SafetyConfig(BaseModel):
    """[safety] section."""

    model_config = {"frozen": True}

    countdown_seconds: int = Field(default=15, ge=1)


class PresetsConfig(BaseModel):
    """[presets] section."""

    model_config = {"frozen": True}

    path: Path = Path("~/.config/dpui/presets.json")
    version: str = "1.0"


class HotkeysConfig(BaseModel):
    """[hotkeys] section."""

    model_config = {"frozen": True}

    enabled: bool = True
