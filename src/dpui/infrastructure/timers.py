"""Periodic timers for toggle countdowns.

The toggle controller only needs ``call_every(interval, callback)`` and a
handle it can cancel. :class:`SteppingScheduler` moves time only when the
owner calls :meth:`~SteppingScheduler.advance`: tests step it directly and the
CLI prompt loop advances it by the wall-clock time it waited.

INVARIANT: once ``cancel()`` returns, the callback never fires again.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...


class _SteppingTimer:
    def __init__(self, seq: int, interval: float, due: float, callback: Callable[[], None]) -> None:
        self.seq = seq
        self.interval = interval
        self.due = due
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class SteppingScheduler:
    """Scheduler whose clock is advanced explicitly."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[_SteppingTimer] = []
        self._seq = itertools.count()

    def call_every(self, interval: float, callback: Callable[[], None]) -> _SteppingTimer:
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        timer = _SteppingTimer(next(self._seq), interval, self.now + interval, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that can still fire."""
        return sum(1 for t in self._timers if t.active)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in time order.

        Returns the number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while True:
            self._timers = [t for t in self._timers if t.active]
            due = [t for t in self._timers if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            timer.due += timer.interval
            timer.callback()
            fired += 1
        self.now = target
        return fired

