"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dpui.output.console import create_console, get_output, style_for_enabled

if TYPE_CHECKING:
    from rich.console import Console

    from dpui.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    # For list results, return IDs only
    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "preset_id", "display_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="dpui.ok")
    op = Text(f"  {result.op}", style="dpui.op")
    console.print(Text.assemble(label, op))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="dpui.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="dpui.id")
    elif key == "name":
        v = Text(str(value), style="dpui.name")
    elif key in ("hotkey", "shortcut", "glyphs"):
        v = Text(str(value), style="dpui.hotkey")
    elif key == "config":
        v = Text(str(value), style="dpui.config")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    failed = "  [dpui.error]failed[/dpui.error]" if span_data.get("failed") else ""
    console.print(f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}{failed}")

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _display_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="dpui.id", no_wrap=True)
    table.add_column("Resolution")
    table.add_column("Origin", justify="right")
    table.add_column("Rotation", justify="right")
    table.add_column("State")
    for item in items:
        enabled = bool(item.get("enabled"))
        x, y = item.get("origin", [0, 0])
        table.add_row(
            str(item.get("id", "")),
            str(item.get("resolution", "")),
            f"({x},{y})",
            f"{item.get('rotation', 0)}°",
            Text("on" if enabled else "off", style=style_for_enabled(enabled)),
        )
    return table


def _preset_table(items: list[dict[str, Any]], *, selected: str | None = None) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="dpui.id", no_wrap=True)
    table.add_column("Name", style="dpui.name")
    table.add_column("Hotkey", style="dpui.hotkey")
    table.add_column("Created", style="dim")
    for item in items:
        name = str(item.get("name", ""))
        if selected is not None and item.get("id") == selected:
            name = f"* {name}"
        table.add_row(
            str(item.get("id", "")),
            name,
            str(item.get("hotkey") or ""),
            str(item.get("created_at", "")),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="dpui.error")
    op = Text(f"  {result.op}", style="dpui.op")
    console.print(Text.assemble(label, op, ": ", msg))
    detail = err.detail if err else {}
    hint = detail.get("hint")
    if hint:
        console.print(Text(f"  hint: {hint}", style="dpui.hint"))
    if detail.get("retryable"):
        console.print(Text("  The action can be retried.", style="dim"))
    if verbose and detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in detail.items():
            console.print(f"    {k}: {v}")
    if verbose:
        _render_meta(console, result)


# ── Display renderers ─────────────────────────────────────────────────


def _render_display_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render fetch_displays / apply results as a table."""
    d = result.data
    if result.op != "fetch_displays":
        _status_line(console, result)
        preset = d.get("preset")
        if preset:
            _field(console, "preset", preset.get("name", preset.get("id")))
        if verbose and "config" in d:
            _field(console, "config", d["config"])
    items = d.get("items", [])
    console.print(_display_table(items))
    console.print(f"\n{d.get('count', len(items))} displays, {d.get('enabled_count', 0)} enabled")
    if verbose:
        _render_meta(console, result)


def _render_toggle(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "display_id", d.get("display_id"))
    _field(console, "outcome", d.get("outcome"))
    if d.get("remaining_seconds") is not None:
        _field(console, "remaining_seconds", d["remaining_seconds"])
    if d.get("enabled") is not None:
        _field(console, "enabled", d["enabled"])


def _render_position(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render local (not yet applied) position updates."""
    _status_line(console, result)
    d = result.data
    _field(console, "display_id", d.get("display_id"))
    if d.get("origin") is not None:
        x, y = d["origin"]
        _field(console, "origin", f"({x},{y})")
    console.print(Text("  not applied; pass --apply to apply the layout", style="dim"))


def _render_canvas(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the fitted canvas: bounds, scale and one rectangle per display."""
    d = result.data
    b = d["bounds"]
    width, height = d["canvas_size"]
    _field(console, "bounds", f"({b['min_x']},{b['min_y']})-({b['max_x']},{b['max_y']})")
    _field(console, "scale", f"{d['scale']:.6f}")
    _field(console, "canvas", f"{width:.1f}x{height:.1f} px")
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="dpui.id", no_wrap=True)
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    for rect in d.get("rects", []):
        table.add_row(
            str(rect["display_id"]),
            f"{rect['x']:.1f}",
            f"{rect['y']:.1f}",
            f"{rect['width']:.1f}",
            f"{rect['height']:.1f}",
        )
    console.print()
    console.print(table)


# ── Preset renderers ──────────────────────────────────────────────────


def _render_preset_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    items = d.get("items", [])
    if not items:
        console.print("No presets saved.")
    else:
        console.print(_preset_table(items, selected=d.get("selected")))
        console.print(f"\n{d.get('count', len(items))} presets")
    if verbose:
        _render_meta(console, result)


def _render_preset_mutation(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render add/save/update/delete preset results."""
    _status_line(console, result)
    for key in ("id", "name", "hotkey", "created_at"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if verbose and "config" in result.data:
        _field(console, "config", result.data["config"])
    if verbose:
        _render_meta(console, result)


def _render_preset(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single preset as a panel."""
    d = result.data
    lines = [f"id: {d.get('id')}", f"created: {d.get('created_at')}"]
    if d.get("hotkey"):
        lines.append(f"hotkey: {d['hotkey']}")
    lines.append("")
    lines.append(str(d.get("config", "")))
    console.print(Panel("\n".join(lines), title=str(d.get("name", "?")), expand=False))


# ── Hotkey renderers ──────────────────────────────────────────────────


def _render_hotkey_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No hotkeys bound.")
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Shortcut", style="dpui.hotkey", no_wrap=True)
    table.add_column("Keys")
    table.add_column("Preset", style="dpui.name")
    table.add_column("Preset ID", style="dpui.id")
    for item in items:
        table.add_row(
            str(item["shortcut"]),
            str(item.get("glyphs", "")),
            str(item.get("preset_name") or ""),
            str(item["preset_id"]),
        )
    console.print(table)


def _render_shortcut_check(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "shortcut", d["shortcut"])
    _field(console, "glyphs", d["glyphs"])
    if d["available"]:
        console.print(Text("  available", style="dpui.ok"))
    else:
        console.print(Text(f"  in use by preset {d['owner']}", style="dpui.warning"))


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Displays
    "fetch_displays": _render_display_list,
    "apply_config": _render_display_list,
    "apply_layout": _render_display_list,
    "apply_preset": _render_display_list,
    "canvas_layout": _render_canvas,
    # Toggles
    "request_toggle": _render_toggle,
    "confirm_toggle": _render_toggle,
    "cancel_toggle": _render_toggle,
    # Drag
    "update_display_position": _render_position,
    "drag_to": _render_position,
    "end_drag": _render_position,
    # Presets
    "fetch_presets": _render_preset_list,
    "get_preset": _render_preset,
    "add_preset": _render_preset_mutation,
    "save_current_layout": _render_preset_mutation,
    "update_preset": _render_preset_mutation,
    "set_preset_hotkey": _render_preset_mutation,
    "delete_preset": _render_preset_mutation,
    # Hotkeys
    "list_hotkeys": _render_hotkey_list,
    "check_shortcut": _render_shortcut_check,
}
