"""Graph analysis engine and document conversion."""

from fusegraph.infrastructure.graph.engine import GraphEngine

__all__ = ["GraphEngine"]
