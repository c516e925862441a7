"""Shared pytest fixtures and in-memory collaborators for dpui tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pluggy
import pytest
from click.testing import CliRunner

from dpui.domain.display import DeviceSet, Display
from dpui.domain.errors import ToolError
from dpui.domain.presets import PresetCollection
from dpui.domain.shortcuts import Shortcut
from dpui.infrastructure.displayplacer import parse_display_token, parse_token_fields, split_config
from dpui.infrastructure.timers import SteppingScheduler
from dpui.plugins.event_bus import EventBus
from dpui.plugins.manager import PluginManager
from dpui.services.hotkeys import HotkeyRegistry
from dpui.services.store import DisplayStateStore

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeDisplayService:
    """In-memory displayplacer.

    ``apply`` understands full layout tokens and ``enabled:`` toggles, so
    read-after-write is observable through ``list``.
    """

    program = "displayplacer"

    def __init__(self, displays: list[Display]) -> None:
        self.displays = {d.id: d for d in displays}
        self.applied: list[str] = []
        self.list_calls = 0
        self.fail_list: ToolError | None = None
        self.fail_apply: ToolError | None = None

    def list(self) -> DeviceSet:
        self.list_calls += 1
        if self.fail_list is not None:
            raise self.fail_list
        return DeviceSet(displays=tuple(self.displays.values()), raw="fake")

    def apply(self, config: str) -> None:
        self.applied.append(config)
        if self.fail_apply is not None:
            raise self.fail_apply
        for token in split_config(config):
            fields = parse_token_fields(token)
            if "res" in fields:
                display = parse_display_token(token)
                if display is not None:
                    self.displays[display.id] = display
            elif "enabled" in fields:
                current = self.displays[fields["id"]]
                enabled = fields["enabled"] == "true"
                self.displays[current.id] = current.model_copy(update={"enabled": enabled})

    def disable_calls(self, display_id: str) -> int:
        needle = f'"id:{display_id} enabled:false"'
        return sum(1 for config in self.applied if needle in config)


class FakePresetRepository:
    """Preset persistence held in memory; counts loads and saves."""

    def __init__(self, collection: PresetCollection | None = None) -> None:
        self.collection = collection or PresetCollection()
        self.loads = 0
        self.saves = 0
        self.fail_save: Exception | None = None

    def load_presets(self) -> PresetCollection:
        self.loads += 1
        return self.collection

    def save_presets(self, collection: PresetCollection) -> None:
        if self.fail_save is not None:
            raise self.fail_save
        self.saves += 1
        self.collection = collection


class FakeHotkeyBackend:
    """Records OS registrations; ``trigger`` simulates a key press."""

    def __init__(self) -> None:
        self.callbacks: dict[str, Callable[[], None]] = {}
        self.history: list[tuple[str, str]] = []

    def register(self, shortcut: Shortcut, callback: Callable[[], None]) -> None:
        self.callbacks[str(shortcut)] = callback
        self.history.append(("register", str(shortcut)))

    def unregister(self, shortcut: Shortcut) -> None:
        self.callbacks.pop(str(shortcut), None)
        self.history.append(("unregister", str(shortcut)))

    def trigger(self, shortcut: str) -> None:
        self.callbacks[shortcut]()


hookimpl = pluggy.HookimplMarker("dpui")


class RecordingPlugin:
    """pluggy plugin that records every store event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def payloads(self, name: str) -> list[dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]

    @hookimpl
    def display_list_changed(self, displays: list[dict[str, Any]]) -> None:
        self.events.append(("display_list_changed", {"displays": displays}))

    @hookimpl
    def preset_list_changed(self, presets: list[dict[str, Any]]) -> None:
        self.events.append(("preset_list_changed", {"presets": presets}))

    @hookimpl
    def toggle_session_changed(self, display_id: str, remaining_seconds: int | None) -> None:
        self.events.append(
            (
                "toggle_session_changed",
                {"display_id": display_id, "remaining_seconds": remaining_seconds},
            )
        )

    @hookimpl
    def hotkey_activated(self, preset_id: str) -> None:
        self.events.append(("hotkey_activated", {"preset_id": preset_id}))

    @hookimpl
    def error(self, kind: str, message: str, retryable: bool) -> None:
        self.events.append(("error", {"kind": kind, "message": message, "retryable": retryable}))



# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


def two_displays() -> list[Display]:
    """Scenario layout: 2560x1440 at (0,0) and 1920x1080 at (2560,0)."""
    return [
        Display(id="1", resolution=(2560, 1440), origin=(0, 0)),
        Display(id="2", resolution=(1920, 1080), origin=(2560, 0)),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def scheduler() -> SteppingScheduler:
    return SteppingScheduler()


@pytest.fixture
def display_service() -> FakeDisplayService:
    return FakeDisplayService(two_displays())


@pytest.fixture
def preset_repo() -> FakePresetRepository:
    return FakePresetRepository()


@pytest.fixture
def hotkey_backend() -> FakeHotkeyBackend:
    return FakeHotkeyBackend()


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()


@pytest.fixture
def event_bus(recorder: RecordingPlugin) -> EventBus:
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    return EventBus(pm)


@pytest.fixture
def store(
    display_service: FakeDisplayService,
    preset_repo: FakePresetRepository,
    scheduler: SteppingScheduler,
    hotkey_backend: FakeHotkeyBackend,
    event_bus: EventBus,
) -> Generator[DisplayStateStore]:
    """Store wired to fakes; nothing loaded yet."""
    s = DisplayStateStore(
        display_service,
        preset_repo,
        scheduler=scheduler,
        hotkeys=HotkeyRegistry(hotkey_backend),
        event_bus=event_bus,
    )
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def loaded_store(store: DisplayStateStore) -> DisplayStateStore:
    result = store.load()
    assert result.ok, result.error
    return store


@pytest.fixture
def cli_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    display_service: FakeDisplayService,
) -> FakeDisplayService:
    """Isolate the CLI: fake displayplacer, presets under tmp_path, no config file."""
    import dpui.infrastructure.displayplacer as displayplacer_mod

    monkeypatch.setattr(
        displayplacer_mod, "DisplayplacerService", lambda **_kwargs: display_service
    )
    monkeypatch.setenv("DPUI_PRESETS__PATH", str(tmp_path / "presets.json"))
    monkeypatch.setenv("DPUI_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.chdir(tmp_path)
    return display_service


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """``--verbose`` turns telemetry on for the rest of the thread."""
    yield
    from dpui.services.telemetry import disable_telemetry

    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state; CLI invocations reconfigure logging."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    dpui_logger = logging.getLogger("dpui")
    dpui_level = dpui_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    dpui_logger.setLevel(dpui_level)
