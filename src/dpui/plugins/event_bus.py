"""Synchronous event dispatch over pluggy.

The core is single-threaded, so hooks run inline on the caller's thread in
registration order.

INVARIANT: plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dpui.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatches store events to registered plugins."""

    def __init__(self, plugin_manager: PluginManager) -> None:
        self._pm = plugin_manager
        self.dispatched: int = 0

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call *hook_name* on every plugin; unknown hooks are ignored.

        Raises whatever a plugin raised; callers turn that into a warning.
        """
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            logger.debug("No hook named %s", hook_name)
            return
        self.dispatched += 1
        hook_fn(**payload)
