"""Unified settings layered from several sources into one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``DPUI_*`` prefix, ``__`` for nested sections
  3. TOML file: ``dpui.toml`` found by :func:`find_config`
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from dpui.config.discovery import find_config
from dpui.config.models import (
    CanvasConfig,
    DisplayplacerConfig,
    HotkeysConfig,
    PresetsConfig,
    SafetyConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a discovered ``dpui.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class DpuiSettings(BaseSettings):
    """Frozen settings for the whole dpui CLI, stored on the click context."""

    model_config = {
        "frozen": True,
        "env_prefix": "DPUI_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    # --- TOML sections ---
    displayplacer: DisplayplacerConfig = Field(default_factory=DisplayplacerConfig)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    presets: PresetsConfig = Field(default_factory=PresetsConfig)
    hotkeys: HotkeysConfig = Field(default_factory=HotkeysConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start_dir: Path | None = None,
        **cli_flags: Any,
    ) -> DpuiSettings:
        """Discover the TOML file (or use *config_path*) and merge CLI flags on top."""
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(start_dir)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
