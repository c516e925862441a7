"""Pluggy hook specifications for UI-facing store events.

The store is the only producer. A UI (or any installed plugin) implements
the hooks it cares about and re-renders from the payload.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("dpui")


class DpuiHookSpec:
    """Hook specifications for the dpui event system."""

    @hookspec
    def display_list_changed(self, displays: list[dict[str, Any]]) -> None:
        """Called after the device list was re-fetched or moved locally."""

    @hookspec
    def preset_list_changed(self, presets: list[dict[str, Any]]) -> None:
        """Called after the preset collection was re-fetched."""

    @hookspec
    def toggle_session_changed(self, display_id: str, remaining_seconds: int | None) -> None:
        """Called on every countdown change; ``None`` means the session ended."""

    @hookspec
    def hotkey_activated(self, preset_id: str) -> None:
        """Called when a global shortcut resolved to a preset."""

    @hookspec
    def error(self, kind: str, message: str, retryable: bool) -> None:
        """Called when an action failed."""
