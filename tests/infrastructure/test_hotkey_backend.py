"""Tests for the pynput hotkey backend that do not start a listener."""

import pytest

from dpui.domain.shortcuts import parse_shortcut
from dpui.infrastructure.hotkeys import PynputHotkeyBackend, to_pynput_combo


class TestToPynputCombo:
    @pytest.mark.parametrize(
        ("shortcut", "combo"),
        [
            ("Cmd+Shift+1", "<cmd>+<shift>+1"),
            ("Ctrl+Alt+D", "<ctrl>+<alt>+d"),
            ("Cmd+F5", "<cmd>+<f5>"),
            ("Cmd+Space", "<cmd>+<space>"),
            ("Alt+PageUp", "<alt>+<page_up>"),
            ("Ctrl+/", "<ctrl>+/"),
        ],
    )
    def test_render(self, shortcut: str, combo: str) -> None:
        assert to_pynput_combo(parse_shortcut(shortcut)) == combo


class TestPynputHotkeyBackend:
    def test_register_without_start(self) -> None:
        backend = PynputHotkeyBackend()
        backend.register(parse_shortcut("Cmd+Shift+1"), lambda: None)
        backend.register(parse_shortcut("Ctrl+2"), lambda: None)
        assert backend.combos == ["<cmd>+<shift>+1", "<ctrl>+2"]
        backend.unregister(parse_shortcut("Ctrl+2"))
        assert backend.combos == ["<cmd>+<shift>+1"]

    def test_unregister_unknown_is_noop(self) -> None:
        backend = PynputHotkeyBackend()
        backend.unregister(parse_shortcut("Cmd+9"))
        assert backend.combos == []

    def test_post_wraps_callbacks(self) -> None:
        posted: list[object] = []
        fired: list[int] = []
        backend = PynputHotkeyBackend(post=posted.append)

        def callback() -> None:
            fired.append(1)

        backend.register(parse_shortcut("Cmd+1"), callback)
        backend._combos["<cmd>+1"]()
        assert posted == [callback]
        assert fired == []

    def test_stop_without_start(self) -> None:
        backend = PynputHotkeyBackend()
        backend.stop()
        assert backend.combos == []
