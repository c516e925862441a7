"""Error taxonomy and the heuristic tool-error classifier.

Every failure the core can report maps onto one :class:`ErrorKind`.
Local rejections (last display, shortcut format, shortcut taken) are raised
before any external call is made. Tool failures carry opaque text that is
classified on a best-effort basis; the classifier is not authoritative.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum


class ErrorKind(StrEnum):
    """Actionable failure categories surfaced to the UI."""

    TOOL_NOT_FOUND = "tool_not_found"
    COMMAND_FAILED = "command_failed"
    DISPLAY_NOT_FOUND = "display_not_found"
    PERMISSION_DENIED = "permission_denied"
    INVALID_CONFIG = "invalid_config"
    SHORTCUT_UNAVAILABLE = "shortcut_unavailable"
    INVALID_SHORTCUT_FORMAT = "invalid_shortcut_format"
    LAST_DISPLAY_PROTECTED = "last_display_protected"
    UNKNOWN = "unknown"


# Retrying cannot succeed until the user fixes the environment.
NON_RETRYABLE: frozenset[ErrorKind] = frozenset(
    {ErrorKind.TOOL_NOT_FOUND, ErrorKind.PERMISSION_DENIED}
)

# Rejected locally; no external call was made.
LOCAL_REJECTIONS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.LAST_DISPLAY_PROTECTED,
        ErrorKind.INVALID_SHORTCUT_FORMAT,
        ErrorKind.SHORTCUT_UNAVAILABLE,
    }
)

ERROR_HINTS: dict[ErrorKind, str] = {
    ErrorKind.TOOL_NOT_FOUND: "Install displayplacer: brew install displayplacer",
    ErrorKind.COMMAND_FAILED: "Check display connections and other display managers.",
    ErrorKind.DISPLAY_NOT_FOUND: "The display is no longer connected; refresh the list.",
    ErrorKind.PERMISSION_DENIED: "Grant the required permissions in System Settings.",
    ErrorKind.INVALID_CONFIG: "The preset may not match the connected displays; save it again.",
    ErrorKind.SHORTCUT_UNAVAILABLE: "Pick a different shortcut or unbind the other preset.",
    ErrorKind.INVALID_SHORTCUT_FORMAT: "Examples: Cmd+Shift+1, Ctrl+Alt+D",
    ErrorKind.LAST_DISPLAY_PROTECTED: "At least one display must stay enabled.",
    ErrorKind.UNKNOWN: "Run `displayplacer list` in a terminal to inspect the tool.",
}


def is_retryable(kind: ErrorKind) -> bool:
    """Whether offering a retry to the user makes sense for *kind*."""
    return kind not in NON_RETRYABLE and kind not in LOCAL_REJECTIONS


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DpuiError(Exception):
    """Base class for every error raised inside the dpui core."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def code(self) -> str:
        """Upper-case error code used in :class:`ServiceError`."""
        return self.kind.value.upper()

    @property
    def retryable(self) -> bool:
        return is_retryable(self.kind)

    @property
    def hint(self) -> str:
        return ERROR_HINTS.get(self.kind, "")


class ToolError(DpuiError):
    """The external display tool failed or could not be run."""

    kind = ErrorKind.COMMAND_FAILED


class PresetStoreError(DpuiError):
    """The preset file could not be read, parsed, or written."""

    kind = ErrorKind.INVALID_CONFIG


class LastDisplayProtectedError(DpuiError):
    kind = ErrorKind.LAST_DISPLAY_PROTECTED


class InvalidShortcutFormatError(DpuiError):
    kind = ErrorKind.INVALID_SHORTCUT_FORMAT


class ShortcutUnavailableError(DpuiError):
    kind = ErrorKind.SHORTCUT_UNAVAILABLE


class ToggleStateError(DpuiError):
    """A toggle operation was issued outside ``PendingConfirmation``."""

    @property
    def code(self) -> str:
        return "NO_PENDING_SESSION"

    @property
    def retryable(self) -> bool:
        return False

    @property
    def hint(self) -> str:
        return "Request the disable again to start a new confirmation."


class PresetNotFoundError(DpuiError):
    @property
    def code(self) -> str:
        return "PRESET_NOT_FOUND"

    @property
    def retryable(self) -> bool:
        return False

    @property
    def hint(self) -> str:
        return "Run `dpui preset list` to see the saved presets."


class ActionPendingError(DpuiError):
    """A mutating action for the same display or preset is still running."""

    @property
    def code(self) -> str:
        return "ACTION_PENDING"

    @property
    def hint(self) -> str:
        return "Wait for the running action to finish."


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

ErrorClassifier = Callable[[str], ErrorKind]

# Ordered: the first matching rule wins.
_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (
        ErrorKind.TOOL_NOT_FOUND,
        (
            "command not found",
            "no such file or directory",
            "displayplacer: not found",
            "displayplacer not found",
        ),
    ),
    (ErrorKind.PERMISSION_DENIED, ("permission", "denied", "not permitted")),
    (ErrorKind.DISPLAY_NOT_FOUND, ("unable to find screen", "display not found")),
    (ErrorKind.INVALID_CONFIG, ("invalid", "configuration")),
    (
        ErrorKind.COMMAND_FAILED,
        ("failed to execute", "command failed", "displayplacer failed", "timed out"),
    ),
)


def classify_tool_error(message: str) -> ErrorKind:
    """Map an opaque tool failure message to an :class:`ErrorKind`.

    Substring matching on known phrases, case-insensitive.

    Examples:
        >>> classify_tool_error("zsh: command not found: displayplacer")
        <ErrorKind.TOOL_NOT_FOUND: 'tool_not_found'>
        >>> classify_tool_error("Unable to find screen 1234")
        <ErrorKind.DISPLAY_NOT_FOUND: 'display_not_found'>
        >>> classify_tool_error("boom")
        <ErrorKind.UNKNOWN: 'unknown'>
    """
    text = message.lower()
    for kind, phrases in _RULES:
        if any(phrase in text for phrase in phrases):
            return kind
    return ErrorKind.UNKNOWN
