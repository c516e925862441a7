"""Plugin discovery and loading.

Discovery: entry points in the ``dpui.plugins`` group, via pluggy's
setuptools entry point loader. Built-in plugins are registered directly.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from dpui.plugins.hookspecs import DpuiHookSpec

PROJECT_NAME = "dpui"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(DpuiHookSpec)

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins and return the names of all registered plugins."""
        self._pm.load_setuptools_entrypoints("dpui.plugins")
        self._instantiate_classes()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _instantiate_classes(self) -> None:
        """Entry points may register a class; hooks need an instance."""
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)
