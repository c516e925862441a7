"""Command group: inspect, arrange, and toggle displays."""

from __future__ import annotations

import select
import sys
import time
from typing import TYPE_CHECKING

import click

from dpui.commands._base import DpuiGroup
from dpui.services.result import ServiceError, ServiceResult
from dpui.services.toggle import TICK_INTERVAL_SECONDS, ToggleOutcome

if TYPE_CHECKING:
    from dpui.commands._context import AppContext

_DISPLAY_EXAMPLES = """\
  dpui display list
  dpui display canvas
  dpui display move 2 2560 0 --apply
  dpui display disable 2
  dpui display enable 2
  dpui display apply 'displayplacer "id:1 res:2560x1440 origin:(0,0) degree:0"'"""


@click.group(cls=DpuiGroup, examples=_DISPLAY_EXAMPLES)
@click.pass_obj
def display(app: AppContext) -> None:
    """List, arrange, enable and disable displays."""


@display.command(
    "list",
    examples="""\
  dpui display list
  dpui --json display list
  dpui -q display list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """Show the connected displays as reported by displayplacer."""
    app.emit(app.store.fetch_displays())


@display.command(
    examples="""\
  dpui display canvas
  dpui --json display canvas""",
)
@click.pass_obj
def canvas(app: AppContext) -> None:
    """Show where each display sits on the layout canvas."""
    app.check(app.store.fetch_displays())
    app.emit(app.store.canvas_layout())


@display.command(
    examples="""\
  dpui display apply 'displayplacer "id:1 res:2560x1440 origin:(0,0) degree:0"'""",
)
@click.argument("config")
@click.pass_obj
def apply(app: AppContext, config: str) -> None:
    """Apply a full displayplacer configuration string."""
    app.emit(app.store.apply_config(config))


@display.command(
    examples="""\
  dpui display move 2 -1920 0
  dpui display move 2 2560 0 --apply""",
    context_settings={"ignore_unknown_options": True},
)
@click.argument("display_id")
@click.argument("x", type=int)
@click.argument("y", type=int)
@click.option("--apply", "apply_now", is_flag=True, help="Apply the new layout right away.")
@click.pass_obj
def move(app: AppContext, display_id: str, x: int, y: int, apply_now: bool) -> None:
    """Move a display's origin (real pixels; negative values allowed)."""
    store = app.store
    app.check(store.fetch_displays())
    result = app.check(store.update_display_position(display_id, x, y))
    if apply_now:
        app.emit(store.apply_layout())
    else:
        app.emit(result)


@display.command(
    examples="""\
  dpui display enable 2""",
)
@click.argument("display_id")
@click.pass_obj
def enable(app: AppContext, display_id: str) -> None:
    """Turn a display on. Enabling needs no confirmation."""
    store = app.store
    app.check(store.fetch_displays())
    app.emit(store.request_toggle(display_id, True))


@display.command(
    examples="""\
  dpui display disable 2
  dpui display disable 2 --yes""",
)
@click.argument("display_id")
@click.option("-y", "--yes", is_flag=True, help="Confirm without the countdown prompt.")
@click.pass_obj
def disable(app: AppContext, display_id: str, yes: bool) -> None:
    """Turn a display off after confirmation.

    Without an answer the countdown expires and nothing is changed.
    The last enabled display cannot be turned off.
    """
    store = app.store
    app.check(store.fetch_displays())
    result = app.check(store.request_toggle(display_id, False))
    if result.data.get("outcome") != ToggleOutcome.PENDING:
        app.emit(result)
        return

    if yes:
        app.emit(store.confirm_toggle(display_id))
        return

    if app.settings.no_interact:
        store.cancel_toggle(display_id)
        app.emit(
            _failure(
                "CONFIRMATION_REQUIRED",
                f"Disabling display {display_id} needs confirmation",
                hint="Pass --yes to confirm non-interactively.",
            )
        )
        return

    app.enable_console_events()
    if _await_confirmation(app, display_id):
        app.emit(store.confirm_toggle(display_id))
    elif store.toggles.is_pending(display_id):
        app.emit(store.cancel_toggle(display_id))
    else:
        app.emit(
            _failure(
                "CONFIRMATION_TIMEOUT",
                f"No confirmation for display {display_id}; nothing was changed",
                hint="Run the command again and answer y to turn the display off.",
            )
        )


# ---------------------------------------------------------------------------
# Countdown prompt
# ---------------------------------------------------------------------------


def _read_answer(timeout: float) -> str | None:
    """Wait up to *timeout* seconds for a line on stdin; None on timeout."""
    ready, _, _ = select.select([sys.stdin], [], [], timeout)
    if not ready:
        return None
    return sys.stdin.readline()


def _await_confirmation(app: AppContext, display_id: str) -> bool:
    """Pump the countdown until the user answers or the session ends.

    Returns True only for an explicit yes while the session is still pending.
    """
    toggles = app.store.toggles
    while toggles.is_pending(display_id):
        started = time.monotonic()
        answer = _read_answer(TICK_INTERVAL_SECONDS)
        elapsed = TICK_INTERVAL_SECONDS if answer is None else time.monotonic() - started
        app.scheduler.advance(elapsed)
        if not toggles.is_pending(display_id):
            return False
        if answer is None:
            continue
        return answer.strip().lower() in ("y", "yes")
    return False


def _failure(code: str, message: str, *, hint: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op="confirm_toggle",
        error=ServiceError(code=code, message=message, detail={"hint": hint, "retryable": True}),
    )
