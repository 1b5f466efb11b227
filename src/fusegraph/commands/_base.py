"""Click building blocks shared by fusegraph commands.

``FgCommand`` takes an ``examples`` string and, when given one, grows an
eager ``--examples`` flag that prints it and exits, so ``--help`` stays
short. ``graph_argument`` is the GRAPH_JSON positional taken by every
command that reads a graph document.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])


def graph_argument(func: F) -> F:
    """Add the GRAPH_JSON argument: an existing JSON graph document."""
    return click.argument(
        "graph_json",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
    )(func)


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    assert isinstance(ctx.command, FgCommand)
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(ctx.command.examples)
    ctx.exit(0)


class FgCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_print_examples,
                    help="Show usage examples and exit.",
                )
            )


class FgGroup(click.Group):
    """Root group: subcommands default to :class:`FgCommand`.

    Commands are listed in registration order (rewrite first), not
    alphabetically.
    """

    command_class = FgCommand

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(self.commands)
