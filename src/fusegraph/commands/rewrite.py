"""Command: run one property over a graph document."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from fusegraph.commands._base import FgCommand, graph_argument

if TYPE_CHECKING:
    from fusegraph.commands._context import AppContext


@click.command(
    cls=FgCommand,
    examples="""\
  fusegraph rewrite model.json --property elemwise
  fusegraph rewrite model.json -p gemm_bias_act -o fused.json
  FUSEGRAPH_PROPERTY=elemwise fusegraph --json rewrite model.json
  fusegraph rewrite model.json --no-verify""",
)
@graph_argument
@click.option("-p", "--property", "property_name", default=None, help="Property to apply.")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the rewritten graph document here.",
)
@click.option("--no-verify", is_flag=True, help="Skip the post-rewrite invariant check.")
@click.pass_obj
def rewrite(
    app: AppContext,
    graph_json: Path,
    property_name: str | None,
    output: Path | None,
    no_verify: bool,
) -> None:
    """Collapse every region of GRAPH_JSON matched by a property."""
    from fusegraph.infrastructure.graph.document import dump_graph
    from fusegraph.services.rewrite import RewriteService

    graph = app.read_graph(graph_json, op="rewrite")
    svc = RewriteService(app.plugins.registry, app.plugins)
    result = svc.rewrite(
        graph,
        property_name or app.settings.resolve_property(),
        verify=app.settings.rewrite.verify and not no_verify,
    )
    if result.ok and output is not None:
        dump_graph(graph, output)
    app.emit(result)
