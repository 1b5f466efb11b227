"""JSON graph documents — the CLI's ingestion and export format.

The rewriting core only ever sees :class:`~fusegraph.domain.graph.Graph`.
This module is the adapter the CLI uses to get one from disk and to write
the rewritten result back.

Reference syntax inside ``inputs`` and ``outputs``:

- ``input:<name>`` — a graph-level input
- ``<node>`` — output slot 0 of the node called ``<node>``
- ``<node>:<slot>`` — a specific output slot
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fusegraph.domain.errors import GraphIntegrityError
from fusegraph.domain.graph import Graph, InputRef, OutputRef, Source
from fusegraph.infrastructure.graph.engine import GraphEngine

INPUT_PREFIX = "input:"


class NodeDocument(BaseModel):
    """One node entry."""

    model_config = ConfigDict(extra="forbid")

    name: str
    op: str
    inputs: list[str] = Field(default_factory=list)
    num_outputs: int = Field(default=1, ge=0)
    attrs: dict[str, Any] = Field(default_factory=dict)
    subgraph: GraphDocument | None = None


class GraphDocument(BaseModel):
    """A whole graph. Nodes must be listed after the nodes they read from."""

    model_config = ConfigDict(extra="forbid")

    name: str = "main"
    inputs: list[str] = Field(default_factory=list)
    nodes: list[NodeDocument] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)


NodeDocument.model_rebuild()


def to_graph(doc: GraphDocument) -> Graph:
    """Build a Graph from *doc*.

    Raises:
        GraphIntegrityError: Duplicate node names or unresolvable references.
    """
    graph = Graph(doc.name)
    inputs = {name: graph.add_input(name) for name in doc.inputs}
    by_name: dict[str, int] = {}

    def resolve(ref: str) -> Source:
        if ref.startswith(INPUT_PREFIX):
            input_name = ref.removeprefix(INPUT_PREFIX)
            if input_name not in inputs:
                raise GraphIntegrityError(f"Unknown graph input {input_name!r}")
            return inputs[input_name]
        node_name, slot = ref, 0
        head, sep, tail = ref.rpartition(":")
        if sep and tail.isdigit() and head in by_name:
            node_name, slot = head, int(tail)
        if node_name not in by_name:
            raise GraphIntegrityError(f"Reference to unknown or later node {ref!r}")
        return OutputRef(by_name[node_name], slot)

    for entry in doc.nodes:
        if entry.name in by_name:
            raise GraphIntegrityError(f"Duplicate node name {entry.name!r}")
        node = graph.add_node(
            entry.op,
            [resolve(ref) for ref in entry.inputs],
            name=entry.name,
            attrs=entry.attrs,
            num_outputs=entry.num_outputs,
            subgraph=to_graph(entry.subgraph) if entry.subgraph is not None else None,
        )
        by_name[entry.name] = node.id

    graph.set_outputs(resolve(ref) for ref in doc.outputs)
    return graph


def from_graph(graph: Graph) -> GraphDocument:
    """Serialize *graph* (and any owned sub-graphs) to a document."""

    def ref(src: Source) -> str:
        if isinstance(src, InputRef):
            return f"{INPUT_PREFIX}{graph.input_names[src.index]}"
        producer = graph.node(src.node)
        if producer.num_outputs == 1:
            return producer.name
        return f"{producer.name}:{src.slot}"

    return GraphDocument(
        name=graph.name,
        inputs=list(graph.input_names),
        nodes=[
            NodeDocument(
                name=node.name,
                op=node.op,
                inputs=[ref(src) for src in node.inputs],
                num_outputs=node.num_outputs,
                attrs=dict(node.attrs),
                subgraph=from_graph(node.subgraph) if node.subgraph is not None else None,
            )
            for node in (graph.node(i) for i in GraphEngine(graph).topological_order())
        ],
        outputs=[ref(src) for src in graph.outputs],
    )


def load_graph(path: Path) -> Graph:
    """Read a JSON graph document from *path*."""
    raw = path.read_text(encoding="utf-8")
    return to_graph(GraphDocument.model_validate_json(raw))


def dump_graph(graph: Graph, path: Path) -> None:
    """Write *graph* to *path* as an indented JSON document."""
    path.write_text(from_graph(graph).model_dump_json(indent=2) + "\n", encoding="utf-8")
