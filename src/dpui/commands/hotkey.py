"""Command group: global keyboard shortcuts for presets."""

from __future__ import annotations

import queue
from collections.abc import Callable
from typing import TYPE_CHECKING

import click

from dpui.commands._base import DpuiGroup
from dpui.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from dpui.commands._context import AppContext

_HOTKEY_EXAMPLES = """\
  dpui hotkey list
  dpui hotkey check Cmd+Shift+1
  dpui hotkey bind Desk Cmd+Shift+1
  dpui hotkey unbind Desk
  dpui hotkey listen"""

_POLL_SECONDS = 0.5


@click.group(cls=DpuiGroup, examples=_HOTKEY_EXAMPLES)
@click.pass_obj
def hotkey(app: AppContext) -> None:
    """Bind presets to global shortcuts and listen for them.

    Shortcuts are modifiers from Cmd, Ctrl, Alt (Option), Shift followed by
    one key, joined with '+': Cmd+Shift+1, Ctrl+Alt+D, Cmd+F5.
    """


@hotkey.command(
    "list",
    examples="""\
  dpui hotkey list
  dpui --json hotkey list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List bound shortcuts and the presets they apply."""
    store = app.store
    result = app.check(store.fetch_presets())
    listing = store.list_hotkeys()
    app.emit(listing.model_copy(update={"warnings": result.warnings}))


@hotkey.command(
    examples="""\
  dpui hotkey check cmd+shift+1
  dpui hotkey check Option+F5""",
)
@click.argument("shortcut")
@click.pass_obj
def check(app: AppContext, shortcut: str) -> None:
    """Validate a shortcut and report whether a preset already uses it."""
    store = app.store
    app.check(store.fetch_presets())
    app.emit(store.check_shortcut(shortcut))


@hotkey.command(
    examples="""\
  dpui hotkey bind Desk Cmd+Shift+1""",
)
@click.argument("ref", metavar="PRESET")
@click.argument("shortcut")
@click.pass_obj
def bind(app: AppContext, ref: str, shortcut: str) -> None:
    """Bind SHORTCUT to a preset, replacing the preset's previous shortcut."""
    store = app.store
    app.check(store.load())
    app.emit(store.set_preset_hotkey(app.resolve_preset(ref), shortcut))


@hotkey.command(
    examples="""\
  dpui hotkey unbind Desk""",
)
@click.argument("ref", metavar="PRESET")
@click.pass_obj
def unbind(app: AppContext, ref: str) -> None:
    """Remove a preset's shortcut."""
    store = app.store
    app.check(store.load())
    app.emit(store.set_preset_hotkey(app.resolve_preset(ref), None))


@hotkey.command(
    examples="""\
  dpui hotkey listen
  dpui hotkey listen --count 1""",
)
@click.option(
    "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Exit after this many activations.",
)
@click.pass_obj
def listen(app: AppContext, count: int | None) -> None:
    """Apply presets when their shortcuts are pressed (Ctrl+C to stop)."""
    if not app.settings.hotkeys.enabled:
        app.emit(
            _failure(
                "HOTKEYS_DISABLED",
                "Global hotkeys are disabled in the configuration",
                hint="Set [hotkeys] enabled = true in dpui.toml.",
            )
        )
        return

    store = app.store
    app.check(store.load())
    bindings = store.hotkeys.list_bindings()
    if not bindings:
        app.emit(
            _failure(
                "NO_HOTKEYS",
                "No preset has a hotkey",
                hint="Bind one with `dpui hotkey bind PRESET SHORTCUT`.",
            )
        )
        return

    from dpui.infrastructure.hotkeys import PynputHotkeyBackend

    # The listener thread only enqueues; activations run on this thread.
    activations: queue.Queue[Callable[[], None]] = queue.Queue()
    backend = PynputHotkeyBackend(post=activations.put)
    try:
        store.hotkeys.attach(backend)
        backend.start()
    except ImportError as exc:
        app.emit(
            _failure(
                "HOTKEYS_UNAVAILABLE",
                f"Global hotkeys are not available on this system: {exc}",
                hint="Hotkeys need macOS with pynput installed.",
            )
        )
        return

    app.enable_console_events(echo_errors=True)
    if not app.settings.quiet:
        for binding in bindings:
            click.echo(f"Listening: {binding.shortcut} -> {binding.description}", err=True)

    handled = 0
    try:
        while count is None or handled < count:
            try:
                activation = activations.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            activation()
            handled += 1
    except KeyboardInterrupt:
        pass
    finally:
        backend.stop()
        store.hotkeys.detach()

    app.emit(ServiceResult(ok=True, op="hotkey_listen", data={"activations": handled}))


def _failure(code: str, message: str, *, hint: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op="hotkey_listen",
        error=ServiceError(code=code, message=message, detail={"hint": hint, "retryable": False}),
    )
