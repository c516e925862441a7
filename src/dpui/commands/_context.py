"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy store construction and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dpui.infrastructure.timers import SteppingScheduler
from dpui.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from dpui.config.settings import DpuiSettings
    from dpui.plugins.manager import PluginManager
    from dpui.services.result import ServiceResult
    from dpui.services.store import DisplayStateStore


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    created on first use so ``--help`` and ``--version`` never run
    displayplacer or touch the preset file.

    The CLI is a short-lived process, so countdown timers run on a
    :class:`SteppingScheduler` that interactive commands pump themselves.
    """

    def __init__(self, settings: DpuiSettings) -> None:
        self.settings = settings
        self.scheduler = SteppingScheduler()
        self._store: DisplayStateStore | None = None
        self._plugin_manager: PluginManager | None = None
        self._console_events = False

        from dpui.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from dpui.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugin_manager(self) -> PluginManager:
        if self._plugin_manager is None:
            from dpui.plugins.manager import PluginManager

            self._plugin_manager = PluginManager()
            self._plugin_manager.discover_and_load()
        return self._plugin_manager

    @property
    def store(self) -> DisplayStateStore:
        """The store (created lazily on first access)."""
        if self._store is None:
            from dpui.infrastructure.displayplacer import DisplayplacerService
            from dpui.infrastructure.preset_store import JsonPresetStore
            from dpui.plugins.event_bus import EventBus
            from dpui.services.store import DisplayStateStore

            s = self.settings
            service = DisplayplacerService(
                binary=s.displayplacer.binary,
                timeout=s.displayplacer.timeout_seconds,
            )
            self._store = DisplayStateStore(
                service,
                JsonPresetStore(s.presets.path, version=s.presets.version),
                scheduler=self.scheduler,
                event_bus=EventBus(self.plugin_manager),
                countdown_seconds=s.safety.countdown_seconds,
                canvas=s.canvas,
                program=service.program,
            )
        return self._store

    def enable_console_events(self, *, echo_errors: bool = False) -> None:
        """Print live store events (countdown, hotkeys) to stderr."""
        if self._console_events:
            return
        from dpui.plugins.builtins.console import ConsoleEventPlugin

        self.plugin_manager.register_plugin(
            ConsoleEventPlugin(quiet=self.settings.quiet, echo_errors=echo_errors)
        )
        self._console_events = True

    def resolve_preset(self, ref: str) -> str:
        """Map a preset id or (case-insensitive) name to its id.

        Unknown references pass through so the store reports them.
        """
        presets = self.store.presets
        if presets.get(ref) is not None:
            return ref
        wanted = ref.casefold()
        for preset in presets.presets:
            if preset.name.casefold() == wanted:
                return preset.id
        return ref

    def check(self, result: ServiceResult) -> ServiceResult:
        """Return *result* if it succeeded; otherwise emit it and exit 1."""
        if not result.ok:
            self.emit(result)
        return result

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
