"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from dpui import __version__
from dpui.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["--help"], ["display", "preset", "hotkey", "--json", "--no-interact"]),
    # -- display group --
    (["display", "--help"], ["list", "canvas", "apply", "move", "enable", "disable"]),
    (["display", "list", "--help"], ["displayplacer"]),
    (["display", "apply", "--help"], ["CONFIG"]),
    (["display", "move", "--help"], ["DISPLAY_ID", "X", "Y", "--apply"]),
    (["display", "disable", "--help"], ["DISPLAY_ID", "--yes"]),
    # -- preset group --
    (["preset", "--help"], ["list", "show", "save", "apply", "rename", "delete"]),
    (["preset", "save", "--help"], ["NAME", "--hotkey"]),
    (["preset", "apply", "--help"], ["PRESET"]),
    (["preset", "rename", "--help"], ["PRESET", "NAME"]),
    # -- hotkey group --
    (["hotkey", "--help"], ["list", "check", "bind", "unbind", "listen"]),
    (["hotkey", "bind", "--help"], ["PRESET", "SHORTCUT"]),
    (["hotkey", "listen", "--help"], ["--count"]),
]


@pytest.mark.parametrize(
    ("args", "keywords"),
    HELP_COMMANDS,
    ids=[" ".join(args) for args, _ in HELP_COMMANDS],
)
def test_help(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    for keyword in keywords:
        assert keyword in result.output


class TestRootGroup:
    def test_no_command_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
