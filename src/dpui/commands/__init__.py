"""Subcommand modules for dpui.

Provides register_commands() which uses deferred imports to keep
``dpui --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups on the root CLI group."""
    from dpui.commands.display import display
    from dpui.commands.hotkey import hotkey
    from dpui.commands.preset import preset

    cli.add_command(display)
    cli.add_command(preset)
    cli.add_command(hotkey)
