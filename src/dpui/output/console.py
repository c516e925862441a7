"""Rich Console factory and theme for dpui output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DPUI_THEME = Theme(
    {
        "dpui.ok": "bold green",
        "dpui.error": "bold red",
        "dpui.warning": "bold yellow",
        "dpui.hint": "italic yellow",
        "dpui.op": "bold cyan",
        "dpui.key": "dim",
        "dpui.id": "bold blue",
        "dpui.name": "bold",
        "dpui.hotkey": "magenta",
        "dpui.enabled": "green",
        "dpui.disabled": "dim red",
        "dpui.config": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DPUI_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_enabled(enabled: bool) -> str:
    return "dpui.enabled" if enabled else "dpui.disabled"
