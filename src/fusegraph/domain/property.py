"""Property — one named rewriting rule.

A property pairs a selector factory (which nodes to group) with a node
factory (what attributes the replacement node carries). The node factory
is the backend's extension point; fusegraph never interprets its payload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from fusegraph.domain.graph import Graph
from fusegraph.domain.selector import Selector

DEFAULT_SUBGRAPH_OP = "_subgraph"

type NodeFactory = Callable[[Graph, int], Mapping[str, Any]]


@runtime_checkable
class Property(Protocol):
    """Structural interface for a rewriting rule."""

    name: str
    subgraph_op: str

    def create_selector(self) -> Selector:
        """Return a fresh selector with no state carried over."""
        ...

    def create_node(self, subgraph: Graph, ordinal: int) -> Mapping[str, Any]:
        """Return the attribute payload for the node replacing *subgraph*.

        *ordinal* numbers the subgraph nodes this property produced in the
        current pass and is only meant for naming. Raise to report an error.
        """
        ...


type PropertyFactory = Callable[[], Property]


@dataclass(frozen=True)
class SubgraphProperty:
    """Property assembled from two callables.

    Usage::

        prop = SubgraphProperty(
            name="relu_chain",
            selector_factory=lambda: OpSetSelector({"RELU"}),
            node_factory=describe_subgraph,
        )
    """

    name: str
    selector_factory: Callable[[], Selector]
    node_factory: NodeFactory
    subgraph_op: str = DEFAULT_SUBGRAPH_OP

    def create_selector(self) -> Selector:
        return self.selector_factory()

    def create_node(self, subgraph: Graph, ordinal: int) -> Mapping[str, Any]:
        return self.node_factory(subgraph, ordinal)


def describe_subgraph(subgraph: Graph, ordinal: int) -> dict[str, Any]:
    """Default node factory: a summary of what the subgraph contains."""
    return {
        "subgraph_name": subgraph.name,
        "ordinal": ordinal,
        "ops": [node.op for node in subgraph.nodes()],
        "num_inputs": len(subgraph.input_names),
        "num_outputs": len(subgraph.outputs),
    }
