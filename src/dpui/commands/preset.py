"""Command group: saved layouts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dpui.commands._base import DpuiGroup

if TYPE_CHECKING:
    from dpui.commands._context import AppContext

_PRESET_EXAMPLES = """\
  dpui preset list
  dpui preset save "Desk" --hotkey Cmd+Shift+1
  dpui preset apply Desk
  dpui preset show Desk
  dpui preset rename Desk 'Desk (docked)'
  dpui preset delete 'Desk (docked)'"""


@click.group(cls=DpuiGroup, examples=_PRESET_EXAMPLES)
@click.pass_obj
def preset(app: AppContext) -> None:
    """Save, apply and manage layout presets.

    PRESET arguments accept a preset id or its name.
    """


@preset.command(
    "list",
    examples="""\
  dpui preset list
  dpui --json preset list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List saved presets."""
    app.emit(app.store.fetch_presets())


@preset.command(
    examples="""\
  dpui preset show Desk""",
)
@click.argument("ref", metavar="PRESET")
@click.pass_obj
def show(app: AppContext, ref: str) -> None:
    """Show one preset, including its configuration string."""
    store = app.store
    app.check(store.fetch_presets())
    app.emit(store.get_preset(app.resolve_preset(ref)))


@preset.command(
    examples="""\
  dpui preset save Desk
  dpui preset save "Presentation" --hotkey Ctrl+Alt+P""",
)
@click.argument("name")
@click.option("--hotkey", default=None, help="Global shortcut, e.g. Cmd+Shift+1.")
@click.pass_obj
def save(app: AppContext, name: str, hotkey: str | None) -> None:
    """Save the current display layout as a new preset."""
    store = app.store
    app.check(store.load())
    app.emit(store.save_current_layout(name, hotkey=hotkey))


@preset.command(
    examples="""\
  dpui preset apply Desk""",
)
@click.argument("ref", metavar="PRESET")
@click.pass_obj
def apply(app: AppContext, ref: str) -> None:
    """Apply a saved preset."""
    store = app.store
    app.check(store.load())
    app.emit(store.apply_preset(app.resolve_preset(ref)))


@preset.command(
    examples="""\
  dpui preset rename Desk 'Desk (docked)'""",
)
@click.argument("ref", metavar="PRESET")
@click.argument("name")
@click.pass_obj
def rename(app: AppContext, ref: str, name: str) -> None:
    """Rename a preset."""
    store = app.store
    app.check(store.load())
    app.emit(store.update_preset(app.resolve_preset(ref), name=name))


@preset.command(
    examples="""\
  dpui preset delete Desk""",
)
@click.argument("ref", metavar="PRESET")
@click.pass_obj
def delete(app: AppContext, ref: str) -> None:
    """Delete a preset and release its hotkey."""
    store = app.store
    app.check(store.load())
    app.emit(store.delete_preset(app.resolve_preset(ref)))
