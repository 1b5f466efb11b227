"""CheckService — structural invariants report for a graph.

Errors: dangling or one-sided edges (from ``Graph.problems``) and cycles.
Warnings: nodes whose outputs are neither consumed nor returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fusegraph.domain.graph import OutputRef
from fusegraph.infrastructure.graph import GraphEngine
from fusegraph.services.base import BaseService
from fusegraph.services.contracts import CheckResultData, dump_validated
from fusegraph.services.result import ServiceResult
from fusegraph.services.telemetry import traced

if TYPE_CHECKING:
    from fusegraph.domain.graph import Graph


class CheckService(BaseService):
    """Reports structural problems without modifying the graph."""

    @traced
    def check(self, graph: Graph) -> ServiceResult:
        issues: list[dict[str, Any]] = [
            {"category": "structure", "severity": "error", "message": problem}
            for problem in graph.problems()
        ]

        # Cycle detection needs a structurally sound graph to build from.
        if not issues:
            cycle = GraphEngine(graph).find_cycle()
            if cycle:
                names = [graph.node(n).name for n in cycle]
                issues.append(
                    {
                        "category": "cycle",
                        "severity": "error",
                        "node": names[0],
                        "message": "Cycle through " + " -> ".join(names),
                    }
                )

            returned = {src.node for src in graph.outputs if isinstance(src, OutputRef)}
            for node in graph.nodes():
                if not node.consumers and node.id not in returned:
                    issues.append(
                        {
                            "category": "dead_node",
                            "severity": "warning",
                            "node": node.name,
                            "message": f"{node.name} is neither consumed nor a graph output",
                        }
                    )

        error_count = sum(1 for i in issues if i["severity"] == "error")
        data = dump_validated(
            CheckResultData,
            {
                "graph": graph.name,
                "node_count": len(graph),
                "edge_count": len(graph.edges()),
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": len(issues) - error_count,
                "healthy": error_count == 0,
            },
        )
        return ServiceResult(ok=True, op="check", data=data)
