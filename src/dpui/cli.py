"""Root CLI group for dpui with global flags and command registration."""

from __future__ import annotations

import click

from dpui import __version__
from dpui.commands import register_commands
from dpui.commands._context import AppContext
from dpui.config.settings import DpuiSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="dpui")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-interact", is_flag=True, help="Non-interactive mode (no prompts).")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_interact: bool,
    config_path: str | None,
) -> None:
    """dpui: arrange, toggle and snapshot displays via displayplacer."""
    ctx.ensure_object(dict)
    settings = DpuiSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        no_interact=no_interact,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
