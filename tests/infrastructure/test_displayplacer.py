"""Tests for the displayplacer adapter: output parsing and subprocess errors."""

import subprocess
from typing import Any

import pytest

from dpui.domain.errors import ErrorKind, ToolError
from dpui.infrastructure.displayplacer import (
    DisplayplacerService,
    parse_display_token,
    parse_list_output,
    parse_origin,
    split_config,
)

LIST_OUTPUT = """\
Persistent screen id: 37D8832A-2D66-02CA-B9F7-8F30A301B230
Contextual screen id: 1
Type: 27 inch external screen
Resolution: 2560x1440
Origin: (0,0) - main display

Persistent screen id: 1B6D7A0C
Contextual screen id: 2
Resolution: 1920x1080
Origin: (-1920,-200)

Example: displayplacer "id:AAAA res:800x600 origin:(0,0) degree:0"

Execute the command below to set your screens to the current arrangement:

displayplacer "id:37D8832A-2D66-02CA-B9F7-8F30A301B230 res:2560x1440 hz:60 color_depth:8 enabled:true scaling:on origin:(0,0) degree:0" "id:1B6D7A0C res:1920x1080 hz:60 color_depth:8 enabled:true scaling:off origin:(-1920,-200) degree:90"
"""


class TestParsing:
    def test_parse_origin(self) -> None:
        assert parse_origin("(-1920,-200)") == (-1920, -200)
        assert parse_origin("( 10 , 20 )") == (10, 20)
        assert parse_origin("10,20") is None

    def test_list_output_after_marker_only(self) -> None:
        ds = parse_list_output(LIST_OUTPUT)
        assert ds.ids == ["37D8832A-2D66-02CA-B9F7-8F30A301B230", "1B6D7A0C"]
        second = ds.get("1B6D7A0C")
        assert second is not None
        assert second.origin == (-1920, -200)
        assert second.rotation == 90
        assert second.resolution == (1920, 1080)
        assert ds.raw == LIST_OUTPUT

    def test_disabled_token(self) -> None:
        display = parse_display_token("id:2 res:800x600 enabled:false origin:(0,0) degree:0")
        assert display is not None
        assert display.enabled is False

    def test_unreadable_resolution_skipped(self) -> None:
        assert parse_display_token("id:2 res:wide origin:(0,0)") is None
        assert parse_display_token("res:800x600 origin:(0,0)") is None

    def test_unsupported_rotation_is_a_tool_error(self) -> None:
        with pytest.raises(ToolError, match="display 2") as exc_info:
            parse_display_token("id:2 res:800x600 origin:(0,0) degree:45")
        assert exc_info.value.kind is ErrorKind.INVALID_CONFIG

    def test_no_displays_raises(self) -> None:
        with pytest.raises(ToolError, match="No displays found") as exc_info:
            parse_list_output("nothing useful here\n")
        assert exc_info.value.kind is ErrorKind.COMMAND_FAILED

    def test_duplicate_ids_ignored(self) -> None:
        out = (
            "Execute the command below\n"
            'displayplacer "id:1 res:800x600 origin:(0,0) degree:0" '
            '"id:1 res:1024x768 origin:(0,0) degree:0"\n'
        )
        ds = parse_list_output(out)
        assert len(ds) == 1
        assert ds.displays[0].resolution == (800, 600)


class TestSplitConfig:
    def test_drops_program(self) -> None:
        assert split_config('/opt/homebrew/bin/displayplacer "id:1 enabled:false"') == [
            "id:1 enabled:false"
        ]

    def test_without_program(self) -> None:
        assert split_config('"id:1 enabled:true" "id:2 enabled:false"') == [
            "id:1 enabled:true",
            "id:2 enabled:false",
        ]

    def test_unbalanced_quotes(self) -> None:
        with pytest.raises(ToolError) as exc_info:
            split_config('displayplacer "id:1')
        assert exc_info.value.kind is ErrorKind.INVALID_CONFIG

    def test_empty(self) -> None:
        with pytest.raises(ToolError, match="empty"):
            split_config("displayplacer")


class _Completed:
    def __init__(self, returncode: int, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class TestDisplayplacerService:
    def _patch_run(self, monkeypatch: pytest.MonkeyPatch, outcome: Any) -> list[list[str]]:
        calls: list[list[str]] = []

        def fake_run(argv: list[str], **kwargs: Any) -> _Completed:
            calls.append(argv)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        monkeypatch.setattr(subprocess, "run", fake_run)
        return calls

    def test_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = self._patch_run(monkeypatch, _Completed(0, stdout=LIST_OUTPUT))
        ds = DisplayplacerService().list()
        assert calls == [["displayplacer", "list"]]
        assert len(ds) == 2

    def test_apply_passes_tokens(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = self._patch_run(monkeypatch, _Completed(0))
        service = DisplayplacerService(binary="/usr/local/bin/displayplacer")
        service.apply('displayplacer "id:1 enabled:false"')
        assert calls == [["/usr/local/bin/displayplacer", "id:1 enabled:false"]]
        assert service.program == "displayplacer"

    def test_missing_binary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self._patch_run(monkeypatch, FileNotFoundError(2, "No such file"))
        with pytest.raises(ToolError) as exc_info:
            DisplayplacerService().list()
        assert exc_info.value.kind is ErrorKind.TOOL_NOT_FOUND
        assert exc_info.value.retryable is False

    def test_permission_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self._patch_run(monkeypatch, PermissionError(13, "denied"))
        with pytest.raises(ToolError) as exc_info:
            DisplayplacerService().list()
        assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self._patch_run(monkeypatch, subprocess.TimeoutExpired(["displayplacer"], 1.0))
        with pytest.raises(ToolError, match="timed out") as exc_info:
            DisplayplacerService(timeout=1.0).list()
        assert exc_info.value.kind is ErrorKind.COMMAND_FAILED

    def test_nonzero_exit_classified(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self._patch_run(monkeypatch, _Completed(1, stderr="Unable to find screen 9"))
        with pytest.raises(ToolError) as exc_info:
            DisplayplacerService().apply('displayplacer "id:9 enabled:true"')
        assert exc_info.value.kind is ErrorKind.DISPLAY_NOT_FOUND
        assert "Unable to find screen 9" in exc_info.value.message

    def test_nonzero_exit_unknown_becomes_command_failed(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        self._patch_run(monkeypatch, _Completed(3, stderr="weird"))
        with pytest.raises(ToolError) as exc_info:
            DisplayplacerService().list()
        assert exc_info.value.kind is ErrorKind.COMMAND_FAILED
