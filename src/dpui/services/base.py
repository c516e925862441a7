"""BaseService: shared foundation for dpui services.

A service owns an optional :class:`~dpui.plugins.event_bus.EventBus`.
Without one (tests, embedding code that polls state) events are dropped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dpui.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes that publish UI events.

    Usage::

        class DisplayStateStore(BaseService):
            def fetch_displays(self) -> ServiceResult:
                warnings: list[str] = []
                ...
                self._dispatch_event("display_list_changed", {...}, warnings)
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus

    @property
    def event_bus(self) -> EventBus | None:
        return self._event_bus

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a UI event. No-op if no event bus is attached.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
