"""Command: list registered properties."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fusegraph.commands._base import FgCommand

if TYPE_CHECKING:
    from fusegraph.commands._context import AppContext


@click.command(
    cls=FgCommand,
    examples="""\
  fusegraph properties
  fusegraph --json properties""",
)
@click.pass_obj
def properties(app: AppContext) -> None:
    """List property names available to ``rewrite --property``."""
    from fusegraph.services.rewrite import RewriteService

    app.emit(RewriteService(app.plugins.registry, app.plugins).list_properties())
