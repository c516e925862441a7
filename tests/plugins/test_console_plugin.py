"""Tests for the built-in console event plugin."""

from __future__ import annotations

import pytest

from dpui.plugins.builtins.console import ConsoleEventPlugin


class TestConsoleEventPlugin:
    def test_countdown(self, capsys: pytest.CaptureFixture[str]) -> None:
        plugin = ConsoleEventPlugin()
        plugin.toggle_session_changed(display_id="2", remaining_seconds=15)
        plugin.toggle_session_changed(display_id="2", remaining_seconds=None)
        err = capsys.readouterr().err
        assert "Display 2 turns off on confirm, 15s left [y/N]" in err
        assert "Display 2: confirmation closed." in err

    def test_quiet(self, capsys: pytest.CaptureFixture[str]) -> None:
        plugin = ConsoleEventPlugin(quiet=True)
        plugin.toggle_session_changed(display_id="2", remaining_seconds=3)
        plugin.hotkey_activated(preset_id="a")
        assert capsys.readouterr().err == ""

    def test_hotkey_uses_preset_name(self, capsys: pytest.CaptureFixture[str]) -> None:
        plugin = ConsoleEventPlugin()
        plugin.preset_list_changed(presets=[{"id": "a", "name": "Desk"}])
        plugin.hotkey_activated(preset_id="a")
        plugin.hotkey_activated(preset_id="zz")
        err = capsys.readouterr().err
        assert "applying preset 'Desk'" in err
        assert "applying preset 'zz'" in err

    def test_errors_only_when_echoing(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleEventPlugin().error(kind="command_failed", message="boom", retryable=True)
        assert capsys.readouterr().err == ""
        ConsoleEventPlugin(echo_errors=True).error(
            kind="command_failed", message="boom", retryable=True
        )
        assert capsys.readouterr().err == "ERROR [command_failed]: boom (retry possible)\n"
