"""GraphSurgeon — collapse an accepted candidate set into one subgraph node.

Surgery is atomic per candidate. Everything that can fail (the cycle
check, building the private sub-graph, the property's node factory) runs
before the first mutation, so a failed extraction leaves the graph exactly
as it was.

Boundary slot numbering is part of the contract with node factories and
any execution layer:

- input slot *k* is the *k*-th edge entering the set, ordered by member
  (topological order) and then by the member's input slot;
- output slot *k* is the *k*-th distinct member output port that is read
  outside the set or returned from the graph, ordered by member and then
  by output slot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fusegraph.domain.errors import CycleWouldFormError, FactoryFailure, GraphIntegrityError
from fusegraph.domain.graph import Edge, Graph, InputRef, Node, OutputRef, Source
from fusegraph.infrastructure.graph import GraphEngine

if TYPE_CHECKING:
    from fusegraph.domain.property import Property

logger = logging.getLogger(__name__)


@dataclass
class Boundary:
    """Edges crossing into and out of a node set."""

    inputs: list[Edge] = field(default_factory=list)
    outputs: dict[OutputRef, list[Edge]] = field(default_factory=dict)
    graph_outputs: dict[OutputRef, list[int]] = field(default_factory=dict)

    @property
    def ports(self) -> list[OutputRef]:
        """Member output ports that need a subgraph output slot, in slot order."""
        return list(self.outputs)

    @property
    def crossing_in(self) -> int:
        return len(self.inputs)

    @property
    def crossing_out(self) -> int:
        """External consumer edges plus graph-level outputs fed by the set."""
        return sum(len(e) for e in self.outputs.values()) + sum(
            len(i) for i in self.graph_outputs.values()
        )


class GraphSurgeon:
    """Performs subgraph extraction on one Graph."""

    def __init__(self, graph: Graph) -> None:
        self._graph = graph

    def boundary(self, members: Iterable[int]) -> Boundary:
        """Compute the boundary of *members*, which must be in topological order."""
        graph = self._graph
        ordered = list(members)
        inside = set(ordered)
        result = Boundary()

        for member_id in ordered:
            node = graph.node(member_id)
            for edge in node.in_edges():
                if isinstance(edge.src, OutputRef) and edge.src.node in inside:
                    continue
                result.inputs.append(edge)

        for member_id in ordered:
            node = graph.node(member_id)
            for slot in range(node.num_outputs):
                port = OutputRef(member_id, slot)
                external = [e for e in node.consumers if e.src == port and e.dst not in inside]
                returned = [i for i, src in enumerate(graph.outputs) if src == port]
                if external or returned:
                    result.outputs[port] = external
                    if returned:
                        result.graph_outputs[port] = returned
        return result

    def extract(self, members: Iterable[int], prop: Property, ordinal: int) -> Node:
        """Replace *members* with a single node produced by *prop*.

        Args:
            members: Node ids of an accepted candidate set.
            prop: Supplies the subgraph op and the attribute payload.
            ordinal: Per-property, per-pass counter used for naming.

        Returns:
            The new subgraph node, already wired into the graph.

        Raises:
            CycleWouldFormError: Collapsing the set would close a cycle.
            FactoryFailure: ``prop.create_node`` raised or returned a non-mapping.
            GraphIntegrityError: *members* is empty or names unknown nodes.
        """
        graph = self._graph
        requested = list(dict.fromkeys(members))
        if not requested:
            raise GraphIntegrityError("Cannot extract an empty candidate set")
        missing = [m for m in requested if m not in graph]
        if missing:
            raise GraphIntegrityError(f"Candidate refers to nodes not in the graph: {missing}")

        engine = GraphEngine(graph)
        if engine.would_create_cycle(requested):
            raise CycleWouldFormError(
                f"Collapsing {len(requested)} nodes of {graph.name!r} would form a cycle"
            )
        inside = set(requested)
        ordered = [n for n in engine.topological_order() if n in inside]
        boundary = self.boundary(ordered)

        name = self._unique_name(f"{prop.name}_{ordinal}", inside)
        subgraph = self._build_subgraph(name, ordered, boundary)
        try:
            payload = prop.create_node(subgraph, ordinal)
        except Exception as exc:
            raise FactoryFailure(
                f"Property {prop.name!r} failed to create node {name}: {exc}"
            ) from exc
        if not isinstance(payload, Mapping):
            raise FactoryFailure(
                f"Property {prop.name!r} returned {type(payload).__name__} for {name}; "
                "expected a mapping"
            )

        # Point of no return: only infallible mutations below.
        storage = graph.node_ids()
        first = min(ordered, key=storage.index)
        fused = graph.add_node(
            prop.subgraph_op,
            [edge.src for edge in boundary.inputs],
            name=name,
            attrs=dict(payload),
            num_outputs=len(boundary.ports),
            subgraph=subgraph,
            before=first,
        )
        for slot, port in enumerate(boundary.ports):
            new_src = OutputRef(fused.id, slot)
            for edge in boundary.outputs[port]:
                graph.replace_source(edge, new_src)
            for index in boundary.graph_outputs.get(port, []):
                graph.replace_output(index, new_src)
        graph.remove_nodes(ordered)

        logger.debug(
            "Extracted %s: %d nodes, %d inputs, %d outputs",
            name,
            len(ordered),
            boundary.crossing_in,
            len(boundary.ports),
        )
        return fused

    def _build_subgraph(self, name: str, ordered: list[int], boundary: Boundary) -> Graph:
        """Copy the members into a new Graph whose inputs/outputs are the boundary slots."""
        graph = self._graph
        subgraph = Graph(name)
        entering: dict[tuple[int, int], InputRef] = {}
        for index, edge in enumerate(boundary.inputs):
            entering[(edge.dst, edge.dst_slot)] = subgraph.add_input(
                f"in{index}:{self._describe(edge.src)}"
            )

        relocated: dict[int, int] = {}
        for member_id in ordered:
            node = graph.node(member_id)
            inputs: list[Source] = []
            for edge in node.in_edges():
                if (member_id, edge.dst_slot) in entering:
                    inputs.append(entering[(member_id, edge.dst_slot)])
                else:
                    assert isinstance(edge.src, OutputRef)
                    inputs.append(OutputRef(relocated[edge.src.node], edge.src.slot))
            moved = subgraph.add_node(
                node.op,
                inputs,
                name=node.name,
                attrs=node.attrs,
                num_outputs=node.num_outputs,
                subgraph=node.subgraph,
            )
            relocated[member_id] = moved.id

        subgraph.set_outputs(OutputRef(relocated[p.node], p.slot) for p in boundary.ports)
        return subgraph

    def _unique_name(self, base: str, leaving: set[int]) -> str:
        """*base*, or *base* with a numeric suffix if a surviving node already uses it."""
        taken = {node.name for node in self._graph if node.id not in leaving}
        name, suffix = base, 0
        while name in taken:
            suffix += 1
            name = f"{base}_{suffix}"
        return name

    def _describe(self, src: Source) -> str:
        if isinstance(src, InputRef):
            return self._graph.input_names[src.index]
        return f"{self._graph.node(src.node).name}:{src.slot}"
