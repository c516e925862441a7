"""Built-in console plugin: renders live store events in the terminal.

Registered by the CLI for interactive commands (``display disable``,
``hotkey listen``). Output goes to stderr so piped stdout stays clean.
"""

from __future__ import annotations

from typing import Any

import click
import pluggy

hookimpl = pluggy.HookimplMarker("dpui")


class ConsoleEventPlugin:
    """Echo countdown ticks, hotkey activations and errors."""

    def __init__(self, *, quiet: bool = False, echo_errors: bool = False) -> None:
        self._quiet = quiet
        self._echo_errors = echo_errors
        self.preset_names: dict[str, str] = {}

    @hookimpl
    def preset_list_changed(self, presets: list[dict[str, Any]]) -> None:
        self.preset_names = {p["id"]: p["name"] for p in presets}

    @hookimpl
    def toggle_session_changed(self, display_id: str, remaining_seconds: int | None) -> None:
        if self._quiet:
            return
        if remaining_seconds is None:
            click.echo(f"Display {display_id}: confirmation closed.", err=True)
        else:
            click.echo(
                f"Display {display_id} turns off on confirm, {remaining_seconds}s left [y/N]",
                err=True,
            )

    @hookimpl
    def hotkey_activated(self, preset_id: str) -> None:
        if self._quiet:
            return
        name = self.preset_names.get(preset_id, preset_id)
        click.echo(f"Hotkey: applying preset {name!r}", err=True)

    @hookimpl
    def error(self, kind: str, message: str, retryable: bool) -> None:
        # Failed command results are rendered by the CLI itself.
        if not self._echo_errors:
            return
        suffix = " (retry possible)" if retryable else ""
        click.echo(f"ERROR [{kind}]: {message}{suffix}", err=True)
