"""Click command and group classes for dpui.

Any dpui command or group declared with ``examples="..."`` gets an eager
``--examples`` flag that prints the text and exits before the command
body runs, so displayplacer is never called for it.
"""

from __future__ import annotations

from typing import Any

import click


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(getattr(ctx.command, "examples", ""))
    ctx.exit(0)


class _ExamplesMixin:
    examples: str | None

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(  # type: ignore[attr-defined]
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_print_examples,
                    help="Show usage examples and exit.",
                )
            )


class DpuiCommand(_ExamplesMixin, click.Command):
    """A leaf command (``dpui display move`` and friends)."""


class DpuiGroup(_ExamplesMixin, click.Group):
    """Command group whose ``@group.command`` subcommands are DpuiCommands."""

    command_class = DpuiCommand
