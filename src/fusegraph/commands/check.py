"""Command: structural invariant report for a graph document."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fusegraph.commands._base import FgCommand, graph_argument

if TYPE_CHECKING:
    from pathlib import Path

    from fusegraph.commands._context import AppContext


@click.command(
    cls=FgCommand,
    examples="""\
  fusegraph check model.json
  fusegraph --json check fused.json""",
)
@graph_argument
@click.pass_obj
def check(app: AppContext, graph_json: Path) -> None:
    """Report dangling edges, cycles and dead nodes in GRAPH_JSON."""
    from fusegraph.services.check import CheckService

    graph = app.read_graph(graph_json, op="check")
    app.emit(CheckService().check(graph))
