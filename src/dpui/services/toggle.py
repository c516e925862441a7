"""ToggleSafetyController: countdown/confirm/rollback guard for disabling displays.

Per display::

    Idle --request_disable--> PendingConfirmation(15) --confirm--> Idle (disable runs)
                                   |  tick x15 / cancel
                                   v
                                  Idle (nothing applied)

INVARIANT: at least one display stays enabled. Displays with a pending disable
count as already off: ``request_disable`` is rejected before any session
exists when no other display would remain, and ``confirm`` re-checks the count
and ends the session without a disable when it has dropped to one.

INVARIANT: a session's 1-second timer is cancelled whenever the session
ends (confirm, cancel, expiry, shutdown); no tick reaches a dead session.

The controller never calls the display tool. It returns a
:class:`ToggleOutcome` and the caller (the store) performs the action.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from dpui.domain.errors import LastDisplayProtectedError, ToggleStateError
from dpui.infrastructure.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 15

_LAST_DISPLAY_MSG = "The last enabled display cannot be turned off."
TICK_INTERVAL_SECONDS = 1.0


class ToggleOutcome(StrEnum):
    """What the caller must do after a controller operation."""

    APPLY_ENABLE = "apply_enable"
    PENDING = "pending"
    APPLY_DISABLE = "apply_disable"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass
class ToggleSession:
    """A pending disable confirmation for one display."""

    display_id: str
    remaining_seconds: int
    timer: TimerHandle | None = field(default=None, repr=False)

    def stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


SessionListener = Callable[[str, int | None], None]


class ToggleSafetyController:
    """Owns every pending ToggleSession, at most one per display.

    Parameters:
        scheduler: Source of the periodic 1-second tick.
        countdown_seconds: Initial ``remaining_seconds`` of a session.
        on_change: Called with ``(display_id, remaining)`` on start and on
            every tick, and with ``(display_id, None)`` when a session ends.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        on_change: SessionListener | None = None,
    ) -> None:
        if countdown_seconds < 1:
            msg = f"countdown_seconds must be >= 1, got {countdown_seconds}"
            raise ValueError(msg)
        self._scheduler = scheduler
        self._countdown = countdown_seconds
        self._sessions: dict[str, ToggleSession] = {}
        self.on_change = on_change

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def countdown_seconds(self) -> int:
        return self._countdown

    def session(self, display_id: str) -> ToggleSession | None:
        return self._sessions.get(display_id)

    def remaining(self, display_id: str) -> int | None:
        """Seconds left for *display_id*, or None when Idle."""
        session = self._sessions.get(display_id)
        return None if session is None else session.remaining_seconds

    def is_pending(self, display_id: str) -> bool:
        return display_id in self._sessions

    @property
    def pending_ids(self) -> list[str]:
        return list(self._sessions)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def request_enable(self, display_id: str) -> ToggleOutcome:
        """Enabling is always safe; the caller applies it immediately."""
        logger.debug("Enable requested for %s", display_id)
        return ToggleOutcome.APPLY_ENABLE

    def request_disable(self, display_id: str, enabled_count: int) -> ToggleSession:
        """Start a confirmation countdown for disabling *display_id*.

        A second request while a session is pending returns that session
        unchanged; the countdown is not restarted.
        """
        others = sum(1 for pending in self._sessions if pending != display_id)
        if enabled_count - others <= 1:
            raise LastDisplayProtectedError(_LAST_DISPLAY_MSG)

        existing = self._sessions.get(display_id)
        if existing is not None:
            return existing

        session = ToggleSession(display_id=display_id, remaining_seconds=self._countdown)
        self._sessions[display_id] = session
        session.timer = self._scheduler.call_every(
            TICK_INTERVAL_SECONDS, lambda: self._on_timer(display_id)
        )
        logger.debug("Disable pending for %s (%ds)", display_id, self._countdown)
        self._notify(display_id, session.remaining_seconds)
        return session

    def tick(self, display_id: str) -> ToggleOutcome:
        """Advance the countdown by one second; at zero the session is cancelled."""
        session = self._require(display_id)
        session.remaining_seconds = max(0, session.remaining_seconds - 1)
        if session.remaining_seconds == 0:
            self._end(display_id)
            logger.info("Disable of %s timed out; nothing applied", display_id)
            return ToggleOutcome.EXPIRED
        self._notify(display_id, session.remaining_seconds)
        return ToggleOutcome.PENDING

    def confirm(self, display_id: str, enabled_count: int | None = None) -> ToggleOutcome:
        """End the session; the caller must now disable the display exactly once.

        With *enabled_count*, a confirmation that would leave no display on
        ends the session and raises :class:`LastDisplayProtectedError`.
        """
        self._require(display_id)
        if enabled_count is not None and enabled_count <= 1:
            self._end(display_id)
            logger.info("Disable of %s refused; it is the last enabled display", display_id)
            raise LastDisplayProtectedError(_LAST_DISPLAY_MSG)
        self._end(display_id)
        return ToggleOutcome.APPLY_DISABLE

    def cancel(self, display_id: str) -> ToggleOutcome:
        """End the session without any action."""
        self._require(display_id)
        self._end(display_id)
        return ToggleOutcome.CANCELLED

    def shutdown(self) -> None:
        """Teardown: cancel every pending session and its timer."""
        for display_id in list(self._sessions):
            self._end(display_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require(self, display_id: str) -> ToggleSession:
        session = self._sessions.get(display_id)
        if session is None:
            msg = f"No pending confirmation for display {display_id}"
            raise ToggleStateError(msg)
        return session

    def _on_timer(self, display_id: str) -> None:
        if display_id in self._sessions:
            self.tick(display_id)

    def _end(self, display_id: str) -> None:
        session = self._sessions.pop(display_id)
        session.stop_timer()
        self._notify(display_id, None)

    def _notify(self, display_id: str, remaining: int | None) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(display_id, remaining)
        except Exception:
            logger.warning("Toggle listener failed for %s", display_id, exc_info=True)
