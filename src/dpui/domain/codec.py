"""Preset codec: DeviceSet to a one-line displayplacer command.

Presets store this string verbatim and replay it; the core never parses a
preset back. Display ids are tool-assigned and contain no whitespace, so no
escaping is needed.
"""

from __future__ import annotations

from collections.abc import Iterable

from dpui.domain.display import VALID_ROTATIONS, DeviceSet, Display

DEFAULT_PROGRAM = "displayplacer"


def encode_display(display: Display) -> str:
    """Quoted token for one display.

    Examples:
        >>> from dpui.domain.display import Display
        >>> encode_display(Display(id="1", resolution=(2560, 1440)))
        '"id:1 res:2560x1440 origin:(0,0) degree:0"'
    """
    if display.rotation not in VALID_ROTATIONS:
        msg = f"illegal rotation {display.rotation} for display {display.id}"
        raise ValueError(msg)
    x, y = display.origin
    return (
        f'"id:{display.id} res:{display.width}x{display.height} '
        f'origin:({x},{y}) degree:{display.rotation}"'
    )


def encode(displays: DeviceSet | Iterable[Display], *, program: str = DEFAULT_PROGRAM) -> str:
    """Encode displays, in order, as a full configuration command."""
    items = displays.displays if isinstance(displays, DeviceSet) else tuple(displays)
    if not items:
        msg = "cannot encode an empty display set"
        raise ValueError(msg)
    return " ".join([program, *(encode_display(d) for d in items)])


def encode_toggle(display_id: str, enabled: bool, *, program: str = DEFAULT_PROGRAM) -> str:
    """Command that enables or disables a single display."""
    state = "true" if enabled else "false"
    return f'{program} "id:{display_id} enabled:{state}"'
