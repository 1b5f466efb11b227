"""GraphEngine — lazy-built NetworkX view of a fusegraph Graph.

Answers order and reachability questions (topological order, cycle
detection, would-this-contraction-form-a-cycle) without touching the
Graph itself. Contractions are applied to the NetworkX view only, so an
extraction pass can reason about the graph it is about to produce.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import networkx as nx

from fusegraph.domain.errors import GraphIntegrityError
from fusegraph.domain.graph import Graph, OutputRef

logger = logging.getLogger(__name__)

type _DiGraph = nx.DiGraph


class GraphEngine:
    """Order and cycle queries over a node-level DiGraph of *graph*."""

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._digraph: _DiGraph | None = None
        self._rep: dict[int, int] = {}

    @property
    def digraph(self) -> _DiGraph:
        """Return the DiGraph, building it on first access."""
        if self._digraph is None:
            self._digraph = self._build()
        return self._digraph

    def invalidate(self) -> None:
        """Drop the cached view and any contractions applied to it."""
        self._digraph = None
        self._rep.clear()

    def _build(self) -> _DiGraph:
        """One DiGraph node per graph node, one DiGraph edge per producer/consumer pair.

        Graph-level inputs are not nodes and contribute no edges.
        """
        g: _DiGraph = nx.DiGraph()
        for position, node in enumerate(self._graph.nodes()):
            g.add_node(node.id, op=node.op, position=position)
        for edge in self._graph.edges():
            if isinstance(edge.src, OutputRef):
                g.add_edge(edge.src.node, edge.dst)
        return g

    # ------------------------------------------------------------------
    # Order
    # ------------------------------------------------------------------

    def topological_order(self) -> list[int]:
        """Node ids in topological order, ties broken by storage position.

        Raises:
            GraphIntegrityError: The graph contains a cycle.
        """
        g = self.digraph
        try:
            return list(
                nx.lexicographical_topological_sort(g, key=lambda n: g.nodes[n]["position"])
            )
        except nx.NetworkXUnfeasible as exc:
            raise GraphIntegrityError(f"Graph {self._graph.name!r} contains a cycle") from exc

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def find_cycle(self) -> list[int]:
        """Return the node ids along one cycle, or an empty list."""
        try:
            return [u for u, _v in nx.find_cycle(self.digraph)]
        except nx.NetworkXNoCycle:
            return []

    # ------------------------------------------------------------------
    # Contraction
    # ------------------------------------------------------------------

    def would_create_cycle(self, members: Iterable[int]) -> bool:
        """Whether collapsing *members* into one node would close a cycle.

        That happens exactly when a path leaves the set and re-enters it.
        Previously contracted groups are taken into account.
        """
        g = self.digraph
        group = {self._rep.get(m, m) for m in members}
        exits = {succ for m in group for succ in g.successors(m)} - group
        reached: set[int] = set()
        for start in exits:
            if start in reached:
                continue
            reached.add(start)
            reached |= nx.descendants(g, start)
            if reached & group:
                return True
        return False

    def contract(self, members: Iterable[int]) -> int:
        """Merge *members* into their first element in the DiGraph view.

        Returns the representative node id.
        """
        members = list(members)
        ordered = [self._rep.get(m, m) for m in members]
        if not ordered:
            raise ValueError("cannot contract an empty set")
        rep = ordered[0]
        g = self.digraph
        for other in ordered[1:]:
            if other == rep:
                continue
            nx.contracted_nodes(g, rep, other, self_loops=False, copy=False)
        for m in members:
            self._rep[m] = rep
        logger.debug("Contracted %d nodes into %s", len(ordered), rep)
        return rep
