"""displayplacer adapter: the ExternalDisplayService implementation.

``displayplacer list`` prints human-readable details followed by a line such
as ``Execute the command below to set your screens to the current
arrangement`` and the command itself::

    displayplacer "id:37D8832A res:2560x1440 hz:60 enabled:true origin:(0,0) degree:0" ...

Only quoted tokens on ``displayplacer`` lines after that marker are parsed,
so the example commands in the help text are ignored.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
from typing import Protocol

from pydantic import ValidationError

from dpui.domain.codec import DEFAULT_PROGRAM
from dpui.domain.display import DeviceSet, Display
from dpui.domain.errors import ErrorClassifier, ErrorKind, ToolError, classify_tool_error

logger = logging.getLogger(__name__)

EXECUTE_MARKER = "Execute the command below"

_ORIGIN = re.compile(r"^\(\s*(-?\d+)\s*,\s*(-?\d+)\s*\)$")
_RESOLUTION = re.compile(r"^(\d+)x(\d+)$")


class ExternalDisplayService(Protocol):
    """Capability contract for the external display tool."""

    def list(self) -> DeviceSet: ...

    def apply(self, config: str) -> None: ...


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_origin(text: str) -> tuple[int, int] | None:
    """Parse ``(x,y)``; negative values allowed.

    Examples:
        >>> parse_origin("(-1920,0)")
        (-1920, 0)
        >>> parse_origin("(1,2,3)") is None
        True
    """
    match = _ORIGIN.match(text.strip())
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_token_fields(token: str) -> dict[str, str]:
    """Split ``key:value key:value`` into a dict (first colon splits)."""
    fields: dict[str, str] = {}
    for part in token.split():
        key, sep, value = part.partition(":")
        if sep:
            fields[key] = value
    return fields


def parse_display_token(token: str) -> Display | None:
    """Build a Display from one quoted token, or None when unusable.

    Raises ToolError (``invalid_config``) when the token is readable but its
    values are not a valid display, such as ``degree:45``.
    """
    fields = parse_token_fields(token)
    display_id = fields.get("id")
    if not display_id:
        return None

    res = _RESOLUTION.match(fields.get("res", ""))
    if res is None:
        logger.warning("Skipping display %s: unreadable resolution", display_id)
        return None
    width, height = int(res.group(1)), int(res.group(2))
    if width <= 0 or height <= 0:
        logger.warning("Skipping display %s: empty resolution", display_id)
        return None

    origin = parse_origin(fields.get("origin", "(0,0)")) or (0, 0)
    try:
        rotation = int(fields.get("degree", "0"))
    except ValueError:
        rotation = 0

    enabled = fields.get("enabled", "true").lower() != "false" and "disabled" not in token
    try:
        return Display(
            id=display_id,
            resolution=(width, height),
            origin=origin,
            rotation=rotation,
            enabled=enabled,
        )
    except ValidationError as exc:
        details = "; ".join(e["msg"] for e in exc.errors())
        msg = f"Unsupported values for display {display_id}: {details}"
        raise ToolError(msg, kind=ErrorKind.INVALID_CONFIG) from exc


def parse_list_output(output: str, *, program: str = DEFAULT_PROGRAM) -> DeviceSet:
    """Parse ``displayplacer list`` stdout into a DeviceSet.

    Raises ToolError when no display could be found.
    """
    displays: list[Display] = []
    seen: set[str] = set()
    after_marker = False

    for line in output.splitlines():
        if EXECUTE_MARKER in line:
            after_marker = True
            continue
        stripped = line.strip()
        if not (after_marker and stripped.startswith(program)):
            continue
        if "id:" not in stripped or "origin:" not in stripped:
            continue
        for part in stripped.split('"'):
            if "id:" not in part or "origin:" not in part:
                continue
            display = parse_display_token(part)
            if display is None or display.id in seen:
                continue
            seen.add(display.id)
            displays.append(display)

    if not displays:
        msg = f"No displays found in {program} output"
        raise ToolError(msg, kind=ErrorKind.COMMAND_FAILED)
    return DeviceSet(displays=tuple(displays), raw=output)


def split_config(config: str, *, program: str = DEFAULT_PROGRAM) -> list[str]:
    """Split a configuration string into argv, dropping a leading program name.

    Examples:
        >>> split_config('displayplacer "id:1 res:800x600 origin:(0,0) degree:0"')
        ['id:1 res:800x600 origin:(0,0) degree:0']
    """
    try:
        args = shlex.split(config)
    except ValueError as exc:
        msg = f"invalid configuration string: {exc}"
        raise ToolError(msg, kind=ErrorKind.INVALID_CONFIG) from exc
    if args and args[0].rsplit("/", 1)[-1] == program:
        args = args[1:]
    if not args:
        msg = "configuration string is empty"
        raise ToolError(msg, kind=ErrorKind.INVALID_CONFIG)
    return args


# ---------------------------------------------------------------------------
# Subprocess service
# ---------------------------------------------------------------------------


class DisplayplacerService:
    """Runs the displayplacer binary.

    Parameters:
        binary: Executable name or path.
        timeout: Seconds before a hung invocation is abandoned.
        classifier: Maps stderr text to an ErrorKind.
    """

    def __init__(
        self,
        *,
        binary: str = DEFAULT_PROGRAM,
        timeout: float = 10.0,
        classifier: ErrorClassifier = classify_tool_error,
    ) -> None:
        self._binary = binary
        self._timeout = timeout
        self._classify = classifier

    @property
    def program(self) -> str:
        return self._binary.rsplit("/", 1)[-1]

    def list(self) -> DeviceSet:
        stdout = self._run(["list"])
        return parse_list_output(stdout, program=self.program)

    def apply(self, config: str) -> None:
        self._run(split_config(config, program=self.program))

    def _run(self, args: list[str]) -> str:
        argv = [self._binary, *args]
        logger.debug("Running %s", shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            msg = f"Failed to execute {self._binary}: not found"
            raise ToolError(msg, kind=ErrorKind.TOOL_NOT_FOUND) from exc
        except PermissionError as exc:
            msg = f"Failed to execute {self._binary}: permission denied"
            raise ToolError(msg, kind=ErrorKind.PERMISSION_DENIED) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"{self._binary} timed out after {self._timeout:g}s"
            raise ToolError(msg, kind=ErrorKind.COMMAND_FAILED) from exc

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            msg = f"{self.program} failed: {detail}" if detail else f"{self.program} failed"
            kind = self._classify(msg)
            if kind is ErrorKind.UNKNOWN:
                kind = ErrorKind.COMMAND_FAILED
            raise ToolError(msg, kind=kind)
        return proc.stdout
