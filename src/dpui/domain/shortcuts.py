"""Global shortcut grammar, parsing, and normalization.

Grammar::

    shortcut  := (modifier "+")* key
    modifier  := Cmd | Ctrl | Alt | Shift        (aliases accepted, see MODIFIER_ALIASES)
    key       := A-Z | 0-9 | F1-F24 | named key | punctuation

Tokens are case-insensitive and surrounding whitespace is ignored. Each
modifier may appear at most once, all modifiers precede the key, and there is
exactly one key. Two shortcuts are the same binding when their normalized
forms are equal; normalization orders modifiers as Cmd, Ctrl, Alt, Shift.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from dpui.domain.errors import InvalidShortcutFormatError

SEPARATOR = "+"

MODIFIER_ORDER: tuple[str, ...] = ("Cmd", "Ctrl", "Alt", "Shift")

MODIFIER_ALIASES: dict[str, str] = {
    "cmd": "Cmd",
    "command": "Cmd",
    "super": "Cmd",
    "meta": "Cmd",
    "ctrl": "Ctrl",
    "control": "Ctrl",
    "alt": "Alt",
    "option": "Alt",
    "opt": "Alt",
    "shift": "Shift",
}

NAMED_KEYS: dict[str, str] = {
    "space": "Space",
    "tab": "Tab",
    "enter": "Enter",
    "return": "Enter",
    "escape": "Escape",
    "esc": "Escape",
    "backspace": "Backspace",
    "delete": "Delete",
    "insert": "Insert",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
}

PUNCTUATION_KEYS = frozenset("-=[];',./\\`")

_FUNCTION_KEY = re.compile(r"^f([1-9]|1[0-9]|2[0-4])$")

GLYPHS: dict[str, str] = {"Cmd": "⌘", "Ctrl": "⌃", "Alt": "⌥", "Shift": "⇧"}


@dataclass(frozen=True)
class Shortcut:
    """A parsed, normalized key combination."""

    modifiers: tuple[str, ...]
    key: str

    def __str__(self) -> str:
        return SEPARATOR.join([*self.modifiers, self.key])

    @property
    def glyphs(self) -> str:
        """Compact rendering such as ``⌘⇧1``."""
        return "".join(GLYPHS[m] for m in self.modifiers) + self.key


def _canonical_key(token: str) -> str | None:
    lowered = token.lower()
    if len(token) == 1 and token.isalnum() and token.isascii():
        return token.upper()
    if token in PUNCTUATION_KEYS:
        return token
    if _FUNCTION_KEY.match(lowered):
        return lowered.upper()
    return NAMED_KEYS.get(lowered)


def parse_shortcut(text: str) -> Shortcut:
    """Parse and normalize *text*; raise InvalidShortcutFormatError on violations.

    Examples:
        >>> str(parse_shortcut("shift+cmd+1"))
        'Cmd+Shift+1'
        >>> parse_shortcut("Ctrl+Alt+d").glyphs
        '⌃⌥D'
    """
    if not text or not text.strip():
        msg = "shortcut is empty"
        raise InvalidShortcutFormatError(msg)

    tokens = [t.strip() for t in text.split(SEPARATOR)]
    if any(not t for t in tokens):
        msg = f"shortcut {text!r} has an empty token"
        raise InvalidShortcutFormatError(msg)

    *modifier_tokens, key_token = tokens

    modifiers: set[str] = set()
    for token in modifier_tokens:
        modifier = MODIFIER_ALIASES.get(token.lower())
        if modifier is None:
            if _canonical_key(token) is not None:
                msg = f"shortcut {text!r} has more than one key"
            else:
                msg = f"shortcut {text!r} has unrecognized token {token!r}"
            raise InvalidShortcutFormatError(msg)
        if modifier in modifiers:
            msg = f"shortcut {text!r} repeats modifier {modifier}"
            raise InvalidShortcutFormatError(msg)
        modifiers.add(modifier)

    if key_token.lower() in MODIFIER_ALIASES:
        msg = f"shortcut {text!r} has no key, only modifiers"
        raise InvalidShortcutFormatError(msg)
    key = _canonical_key(key_token)
    if key is None:
        msg = f"shortcut {text!r} has unrecognized key {key_token!r}"
        raise InvalidShortcutFormatError(msg)

    ordered = tuple(m for m in MODIFIER_ORDER if m in modifiers)
    return Shortcut(modifiers=ordered, key=key)


def normalize_shortcut(text: str) -> str:
    """Canonical string form used for comparisons and persistence."""
    return str(parse_shortcut(text))
