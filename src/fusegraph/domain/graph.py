"""Graph model — an arena of operator nodes joined by data edges.

Nodes are addressed by stable integer ids that are never reused within a
Graph. Adjacency is stored on both endpoints: a consumer lists its sources
in ``inputs`` (one per input slot) and a producer lists the matching
:class:`Edge` records in ``consumers``. Every mutation goes through the
Graph so the two sides always agree.

Graph-level inputs are not nodes. A node reads one through an
:class:`InputRef`, so a graph input is never offered to a Selector as a
neighbor.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from fusegraph.domain.errors import GraphIntegrityError


@dataclass(frozen=True, slots=True)
class OutputRef:
    """Output *slot* of producer *node*."""

    node: int
    slot: int = 0

    def __str__(self) -> str:
        return f"%{self.node}:{self.slot}"


@dataclass(frozen=True, slots=True)
class InputRef:
    """Graph-level external input number *index*."""

    index: int

    def __str__(self) -> str:
        return f"$in{self.index}"


type Source = OutputRef | InputRef


@dataclass(frozen=True, slots=True)
class Edge:
    """Data dependency from *src* into input slot *dst_slot* of node *dst*."""

    src: Source
    dst: int
    dst_slot: int


@dataclass(eq=False)
class Node:
    """One operator invocation. Owned by exactly one :class:`Graph`."""

    id: int
    op: str
    name: str
    inputs: list[Source] = field(default_factory=list)
    num_outputs: int = 1
    attrs: dict[str, Any] = field(default_factory=dict)
    consumers: list[Edge] = field(default_factory=list)
    subgraph: Graph | None = None

    @property
    def is_subgraph(self) -> bool:
        return self.subgraph is not None

    def in_edges(self) -> list[Edge]:
        """Incoming edges in input-slot order."""
        return [Edge(src, self.id, slot) for slot, src in enumerate(self.inputs)]

    def output(self, slot: int = 0) -> OutputRef:
        if not 0 <= slot < self.num_outputs:
            raise IndexError(f"{self.name} has no output slot {slot}")
        return OutputRef(self.id, slot)

    def __repr__(self) -> str:
        return f"Node(id={self.id}, op={self.op!r}, name={self.name!r})"


class Graph:
    """Directed acyclic graph of :class:`Node` objects.

    Storage order is insertion order, except that a node inserted with
    ``before=`` takes the position of an existing node. Topological order is
    not stored; :class:`fusegraph.infrastructure.graph.GraphEngine` recomputes
    it on demand.
    """

    def __init__(self, name: str = "main") -> None:
        self.name = name
        self.input_names: list[str] = []
        self.outputs: list[Source] = []
        self._nodes: dict[int, Node] = {}
        self._order: list[int] = []
        self._next_id = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_input(self, name: str) -> InputRef:
        """Declare a new graph-level input and return a reference to it."""
        if name in self.input_names:
            raise ValueError(f"Duplicate graph input name: {name!r}")
        self.input_names.append(name)
        return InputRef(len(self.input_names) - 1)

    def add_node(
        self,
        op: str,
        inputs: Sequence[Source] = (),
        *,
        name: str | None = None,
        attrs: dict[str, Any] | None = None,
        num_outputs: int = 1,
        subgraph: Graph | None = None,
        before: int | None = None,
    ) -> Node:
        """Create a node reading *inputs* (in slot order) and wire both endpoints.

        Args:
            op: Operator kind tag.
            inputs: One source per input slot.
            name: Display name; defaults to ``<op>_<id>``.
            attrs: Operator parameters. Copied.
            num_outputs: Number of output slots.
            subgraph: Owned sub-graph, for Subgraph Nodes.
            before: Insert into storage order at the position of this node id
                instead of appending.
        """
        if num_outputs < 0:
            raise ValueError(f"num_outputs must be >= 0 (got {num_outputs})")
        if before is not None and before not in self._nodes:
            raise KeyError(before)
        for src in inputs:
            self._check_source(src)

        node_id = self._next_id
        self._next_id += 1
        node = Node(
            id=node_id,
            op=op,
            name=name or f"{op.lower()}_{node_id}",
            inputs=list(inputs),
            num_outputs=num_outputs,
            attrs=dict(attrs or {}),
            subgraph=subgraph,
        )
        self._nodes[node_id] = node
        if before is None:
            self._order.append(node_id)
        else:
            self._order.insert(self._order.index(before), node_id)

        for edge in node.in_edges():
            if isinstance(edge.src, OutputRef):
                self._nodes[edge.src.node].consumers.append(edge)
        return node

    def set_outputs(self, sources: Iterable[Source]) -> None:
        """Declare the graph-level return values."""
        resolved = list(sources)
        for src in resolved:
            self._check_source(src)
        self.outputs = resolved

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def node(self, node_id: int) -> Node:
        return self._nodes[node_id]

    def nodes(self) -> list[Node]:
        """All nodes in storage order."""
        return [self._nodes[i] for i in self._order]

    def node_ids(self) -> list[int]:
        return list(self._order)

    def find(self, name: str) -> Node | None:
        """Return the first node called *name*, or None."""
        for node in self.nodes():
            if node.name == name:
                return node
        return None

    def edges(self) -> list[Edge]:
        """Every edge, grouped by consumer in storage order."""
        return [edge for node in self.nodes() for edge in node.in_edges()]

    def producers(self, node_id: int) -> list[int]:
        """Distinct producer node ids of *node_id*, in input-slot order."""
        seen: dict[int, None] = {}
        for src in self._nodes[node_id].inputs:
            if isinstance(src, OutputRef):
                seen.setdefault(src.node, None)
        return list(seen)

    def consumers(self, node_id: int) -> list[int]:
        """Distinct consumer node ids of *node_id*, in edge order."""
        seen: dict[int, None] = {}
        for edge in self._nodes[node_id].consumers:
            seen.setdefault(edge.dst, None)
        return list(seen)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes())

    def __repr__(self) -> str:
        return f"Graph(name={self.name!r}, nodes={len(self)}, inputs={len(self.input_names)})"

    # ------------------------------------------------------------------
    # Surgery primitives (used by GraphSurgeon only)
    # ------------------------------------------------------------------

    def replace_source(self, edge: Edge, new_src: Source) -> Edge:
        """Re-point input slot ``edge.dst_slot`` of ``edge.dst`` at *new_src*."""
        consumer = self._nodes[edge.dst]
        if consumer.inputs[edge.dst_slot] != edge.src:
            raise GraphIntegrityError(f"{edge} is not present in graph {self.name!r}")
        self._check_source(new_src)

        if isinstance(edge.src, OutputRef):
            self._nodes[edge.src.node].consumers.remove(edge)
        consumer.inputs[edge.dst_slot] = new_src
        new_edge = Edge(new_src, edge.dst, edge.dst_slot)
        if isinstance(new_src, OutputRef):
            self._nodes[new_src.node].consumers.append(new_edge)
        return new_edge

    def replace_output(self, index: int, new_src: Source) -> None:
        self._check_source(new_src)
        self.outputs[index] = new_src

    def remove_nodes(self, node_ids: Iterable[int]) -> None:
        """Delete *node_ids*. Nothing outside the set may still read from them."""
        doomed = set(node_ids)
        for node_id in doomed:
            node = self._nodes[node_id]
            for edge in node.consumers:
                if edge.dst not in doomed:
                    raise GraphIntegrityError(
                        f"Cannot remove {node.name}: still consumed by node {edge.dst}"
                    )
        for src in self.outputs:
            if isinstance(src, OutputRef) and src.node in doomed:
                raise GraphIntegrityError(f"Cannot remove node {src.node}: it is a graph output")

        for node_id in doomed:
            for edge in self._nodes[node_id].in_edges():
                if isinstance(edge.src, OutputRef) and edge.src.node not in doomed:
                    self._nodes[edge.src.node].consumers.remove(edge)
        for node_id in doomed:
            del self._nodes[node_id]
        self._order = [i for i in self._order if i not in doomed]

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise :class:`GraphIntegrityError` on the first broken invariant.

        Checks dangling references, out-of-range slots and disagreement
        between a producer's consumer list and its consumers' inputs.
        Recurses into owned sub-graphs. Acyclicity is checked by the
        infrastructure layer.
        """
        for problem in self.problems():
            raise GraphIntegrityError(problem)

    def problems(self) -> list[str]:
        """Return every structural problem as a human-readable message."""
        found: list[str] = []
        for node in self.nodes():
            for edge in node.in_edges():
                found.extend(self._source_problems(edge.src, f"{node.name} input {edge.dst_slot}"))
                if isinstance(edge.src, OutputRef) and edge.src.node in self._nodes:
                    recorded = self._nodes[edge.src.node].consumers.count(edge)
                    if recorded != 1:
                        found.append(
                            f"{node.name} input {edge.dst_slot}: producer records the edge "
                            f"{recorded} times"
                        )
            for edge in node.consumers:
                consumer = self._nodes.get(edge.dst)
                if consumer is None:
                    found.append(f"{node.name}: consumer {edge.dst} does not exist")
                elif (
                    not isinstance(edge.src, OutputRef)
                    or edge.src.node != node.id
                    or edge.dst_slot >= len(consumer.inputs)
                    or consumer.inputs[edge.dst_slot] != edge.src
                ):
                    found.append(
                        f"{node.name}: consumer edge {edge} not mirrored by {consumer.name}"
                    )
            if node.subgraph is not None:
                found.extend(f"{node.name}/{p}" for p in node.subgraph.problems())
        for index, src in enumerate(self.outputs):
            found.extend(self._source_problems(src, f"graph output {index}"))
        return found

    def copy(self) -> Graph:
        """Deep structural copy; node ids are preserved."""
        return copy.deepcopy(self)

    def _check_source(self, src: Source) -> None:
        problems = self._source_problems(src, "source")
        if problems:
            raise GraphIntegrityError(problems[0])

    def _source_problems(self, src: Source, where: str) -> list[str]:
        if isinstance(src, InputRef):
            if not 0 <= src.index < len(self.input_names):
                return [f"{where}: graph input {src.index} does not exist"]
            return []
        producer = self._nodes.get(src.node)
        if producer is None:
            return [f"{where}: producer {src.node} does not exist"]
        if not 0 <= src.slot < producer.num_outputs:
            return [f"{where}: {producer.name} has no output slot {src.slot}"]
        return []
