"""Tests for operation-specific Rich renderers."""

from typing import Any

from dpui.domain.errors import ErrorKind, ToolError
from dpui.output.renderers import render_quiet, render_result
from dpui.services.result import ServiceError, ServiceResult

_DISPLAYS: dict[str, Any] = {
    "count": 2,
    "enabled_count": 1,
    "items": [
        {"id": "1", "resolution": "2560x1440", "origin": [0, 0], "rotation": 0, "enabled": True},
        {
            "id": "2",
            "resolution": "1920x1080",
            "origin": [-1920, 0],
            "rotation": 90,
            "enabled": False,
        },
    ],
}

_PRESETS: dict[str, Any] = {
    "version": "1.0",
    "count": 2,
    "selected": "b",
    "items": [
        {
            "id": "a",
            "name": "Desk",
            "config": "displayplacer x",
            "hotkey": "Cmd+Shift+1",
            "created_at": "2025-01-01T00:00:00Z",
        },
        {
            "id": "b",
            "name": "Sofa",
            "config": "displayplacer y",
            "hotkey": None,
            "created_at": "2025-01-02T00:00:00Z",
        },
    ],
}


class TestDisplayRenderers:
    def test_display_table(self) -> None:
        output = render_result(ServiceResult(ok=True, op="fetch_displays", data=_DISPLAYS))
        assert "2560x1440" in output
        assert "(-1920,0)" in output
        assert "90°" in output
        assert "off" in output
        assert "2 displays, 1 enabled" in output
        assert "OK" not in output

    def test_apply_shows_status_and_preset(self) -> None:
        data = {**_DISPLAYS, "config": "displayplacer x", "preset": _PRESETS["items"][0]}
        output = render_result(ServiceResult(ok=True, op="apply_preset", data=data))
        assert "OK  apply_preset" in output
        assert "preset: Desk" in output
        assert "displayplacer x" not in output
        verbose = render_result(
            ServiceResult(ok=True, op="apply_preset", data=data), verbose=True
        )
        assert "config: displayplacer x" in verbose

    def test_canvas(self) -> None:
        data = {
            "bounds": {"min_x": 0, "min_y": 0, "max_x": 4480, "max_y": 1440},
            "scale": 500 / 4480,
            "margin": 20.0,
            "canvas_size": [540.0, 200.71],
            "rects": [
                {"display_id": "1", "x": 20.0, "y": 20.0, "width": 285.7, "height": 160.7},
            ],
        }
        output = render_result(ServiceResult(ok=True, op="canvas_layout", data=data))
        assert "bounds: (0,0)-(4480,1440)" in output
        assert "scale: 0.111607" in output
        assert "canvas: 540.0x200.7 px" in output
        assert "285.7" in output

    def test_toggle(self) -> None:
        data = {"display_id": "2", "outcome": "pending", "remaining_seconds": 15, "enabled": None}
        output = render_result(ServiceResult(ok=True, op="request_toggle", data=data))
        assert "outcome: pending" in output
        assert "remaining_seconds: 15" in output
        assert "enabled" not in output

    def test_position(self) -> None:
        data = {"display_id": "2", "origin": [3000, 100], "speculative": True}
        output = render_result(ServiceResult(ok=True, op="update_display_position", data=data))
        assert "origin: (3000,100)" in output
        assert "not applied" in output


class TestPresetRenderers:
    def test_list_marks_selected(self) -> None:
        output = render_result(ServiceResult(ok=True, op="fetch_presets", data=_PRESETS))
        assert "* Sofa" in output
        assert "* Desk" not in output
        assert "Cmd+Shift+1" in output
        assert "2 presets" in output

    def test_empty_list(self) -> None:
        data = {"version": "1.0", "count": 0, "selected": None, "items": []}
        output = render_result(ServiceResult(ok=True, op="fetch_presets", data=data))
        assert output == "No presets saved."

    def test_mutation(self) -> None:
        item = _PRESETS["items"][0]
        output = render_result(ServiceResult(ok=True, op="add_preset", data=item))
        assert "OK  add_preset" in output
        assert "name: Desk" in output
        assert "hotkey: Cmd+Shift+1" in output

    def test_panel(self) -> None:
        output = render_result(
            ServiceResult(ok=True, op="get_preset", data=_PRESETS["items"][0])
        )
        assert "Desk" in output
        assert "hotkey: Cmd+Shift+1" in output
        assert "displayplacer x" in output


class TestHotkeyRenderers:
    def test_list(self) -> None:
        data = {
            "count": 1,
            "items": [
                {
                    "preset_id": "a",
                    "shortcut": "Cmd+Shift+1",
                    "description": "Apply Desk",
                    "glyphs": "⌘⇧1",
                    "preset_name": "Desk",
                }
            ],
        }
        output = render_result(ServiceResult(ok=True, op="list_hotkeys", data=data))
        assert "Cmd+Shift+1" in output
        assert "⌘⇧1" in output
        assert "Desk" in output

    def test_empty_list(self) -> None:
        data: dict[str, Any] = {"count": 0, "items": []}
        assert render_result(ServiceResult(ok=True, op="list_hotkeys", data=data)) == (
            "No hotkeys bound."
        )

    def test_shortcut_taken(self) -> None:
        data = {"shortcut": "Cmd+1", "glyphs": "⌘1", "available": False, "owner": "a"}
        output = render_result(ServiceResult(ok=True, op="check_shortcut", data=data))
        assert "in use by preset a" in output


class TestErrorsAndFallback:
    def test_error_with_hint(self) -> None:
        error = ServiceError.from_exception(ToolError("not found", kind=ErrorKind.TOOL_NOT_FOUND))
        output = render_result(ServiceResult(ok=False, op="fetch_displays", error=error))
        assert "ERROR  fetch_displays: not found" in output
        assert "hint: Install displayplacer" in output
        assert "can be retried" not in output

    def test_retryable_error(self) -> None:
        error = ServiceError.from_exception(ToolError("busy"))
        output = render_result(ServiceResult(ok=False, op="apply_config", error=error))
        assert "The action can be retried." in output

    def test_verbose_error_detail(self) -> None:
        error = ServiceError.from_exception(ToolError("busy"))
        output = render_result(
            ServiceResult(ok=False, op="apply_config", error=error), verbose=True
        )
        assert "kind: command_failed" in output

    def test_generic(self) -> None:
        result = ServiceResult(ok=True, op="hotkey_listen", data={"activations": 3})
        output = render_result(result)
        assert "OK  hotkey_listen" in output
        assert "activations: 3" in output

    def test_verbose_meta_tree(self) -> None:
        result = ServiceResult(
            ok=True,
            op="hotkey_activation",
            data={"applied": True},
            meta={
                "telemetry": {
                    "name": "DisplayStateStore.handle_hotkey_activation",
                    "duration_ms": 12.5,
                    "children": [{"name": "list_displays", "duration_ms": 3.0}],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "DisplayStateStore.handle_hotkey_activation" in output
        assert "list_displays" in output
        assert "12.50ms" in output

    def test_failed_span_is_marked(self) -> None:
        result = ServiceResult(
            ok=False,
            op="fetch_displays",
            error=ServiceError(code="TOOL_FAILED", message="exit 1"),
            meta={
                "telemetry": {
                    "name": "DisplayStateStore.fetch_displays",
                    "duration_ms": 4.0,
                    "failed": True,
                    "children": [
                        {"name": "list_displays", "duration_ms": 3.0, "failed": True}
                    ],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "list_displays  failed" in output


class TestQuiet:
    def test_items_become_ids(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="fetch_displays", data=_DISPLAYS)) == "1\n2"

    def test_ok(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="confirm_toggle")) == "OK: confirm_toggle"

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False, op="apply_preset", error=ServiceError(code="X", message="nope")
        )
        assert render_quiet(result) == "ERROR: apply_preset: nope"
