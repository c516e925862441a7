"""OS-level global hotkeys via pynput.

pynput's ``GlobalHotKeys`` takes its full combo map at construction, so
registering or unregistering restarts the listener with the new map.
Listener callbacks run on pynput's thread; pass ``post`` to hand them to the
thread that owns the core (the CLI listener passes ``queue.Queue.put``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from dpui.domain.shortcuts import Shortcut

logger = logging.getLogger(__name__)

_PYNPUT_MODIFIERS: dict[str, str] = {
    "Cmd": "<cmd>",
    "Ctrl": "<ctrl>",
    "Alt": "<alt>",
    "Shift": "<shift>",
}

_PYNPUT_NAMED: dict[str, str] = {
    "Space": "<space>",
    "Tab": "<tab>",
    "Enter": "<enter>",
    "Escape": "<esc>",
    "Backspace": "<backspace>",
    "Delete": "<delete>",
    "Insert": "<insert>",
    "Home": "<home>",
    "End": "<end>",
    "PageUp": "<page_up>",
    "PageDown": "<page_down>",
    "Up": "<up>",
    "Down": "<down>",
    "Left": "<left>",
    "Right": "<right>",
}


class HotkeyBackend(Protocol):
    """Capability contract for the OS hotkey subsystem."""

    def register(self, shortcut: Shortcut, callback: Callable[[], None]) -> None: ...

    def unregister(self, shortcut: Shortcut) -> None: ...


def to_pynput_combo(shortcut: Shortcut) -> str:
    """Render a Shortcut in pynput's ``<cmd>+<shift>+1`` notation.

    Examples:
        >>> from dpui.domain.shortcuts import parse_shortcut
        >>> to_pynput_combo(parse_shortcut("Cmd+Shift+F5"))
        '<cmd>+<shift>+<f5>'
    """
    key = shortcut.key
    if key in _PYNPUT_NAMED:
        rendered = _PYNPUT_NAMED[key]
    elif len(key) > 1 and key.startswith("F") and key[1:].isdigit():
        rendered = f"<{key.lower()}>"
    else:
        rendered = key.lower()
    return "+".join([*(_PYNPUT_MODIFIERS[m] for m in shortcut.modifiers), rendered])


class PynputHotkeyBackend:
    """Global hotkeys through ``pynput.keyboard.GlobalHotKeys``."""

    def __init__(self, *, post: Callable[[Callable[[], None]], None] | None = None) -> None:
        self._post = post
        self._combos: dict[str, Callable[[], None]] = {}
        self._listener: Any = None
        self._running = False

    @property
    def combos(self) -> list[str]:
        return sorted(self._combos)

    def register(self, shortcut: Shortcut, callback: Callable[[], None]) -> None:
        combo = to_pynput_combo(shortcut)
        self._combos[combo] = self._wrap(callback)
        logger.debug("Registered hotkey %s as %s", shortcut, combo)
        self._restart()

    def unregister(self, shortcut: Shortcut) -> None:
        combo = to_pynput_combo(shortcut)
        if self._combos.pop(combo, None) is not None:
            logger.debug("Unregistered hotkey %s", shortcut)
            self._restart()

    def start(self) -> None:
        self._running = True
        self._restart()

    def stop(self) -> None:
        self._running = False
        self._stop_listener()

    def _wrap(self, callback: Callable[[], None]) -> Callable[[], None]:
        post = self._post
        if post is None:
            return callback

        def _runner() -> None:
            post(callback)

        return _runner

    def _restart(self) -> None:
        if not self._running:
            return
        self._stop_listener()
        if not self._combos:
            return
        from pynput import keyboard

        self._listener = keyboard.GlobalHotKeys(dict(self._combos))
        self._listener.start()

    def _stop_listener(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
