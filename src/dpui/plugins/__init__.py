"""Extension layer: UI events via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from dpui.plugins.event_bus import EventBus
from dpui.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
