"""RewriteService — one optimization pass of one property over one graph.

Flow: resolve the property name, validate the graph, extract candidate
sets, hand each accepted set to the surgeon, verify the result.

Failure policy:

- Lookup failures, invalid input graphs and selector protocol violations
  abort the pass before the graph is touched (``ok=False``).
- A candidate that the surgeon cannot collapse (cycle, factory error) is
  skipped with a warning; the rest of the pass continues.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fusegraph.domain.errors import (
    GraphIntegrityError,
    PropertyLookupError,
    SelectorProtocolViolation,
    SurgeryError,
)
from fusegraph.infrastructure.graph import GraphEngine
from fusegraph.services.base import BaseService
from fusegraph.services.contracts import PropertyListData, RewriteResultData, dump_validated
from fusegraph.services.extractor import SubgraphExtractor
from fusegraph.services.result import (
    INVALID_GRAPH,
    LOOKUP_FAILED,
    NO_PROPERTY,
    SELECTOR_PROTOCOL_VIOLATION,
    ServiceResult,
)
from fusegraph.services.surgeon import GraphSurgeon
from fusegraph.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from fusegraph.domain.graph import Graph

logger = logging.getLogger(__name__)


class RewriteService(BaseService):
    """Applies registered properties to graphs."""

    @traced
    def rewrite(
        self,
        graph: Graph,
        property_name: str | None,
        *,
        verify: bool = True,
    ) -> ServiceResult:
        """Collapse every region of *graph* selected by *property_name*.

        *graph* is modified in place. When lookup, validation or extraction
        fails it is returned untouched.

        Args:
            graph: The graph to rewrite.
            property_name: Registry name of the property to apply.
            verify: Re-check structure and acyclicity after surgery.
        """
        op = "rewrite"
        if not property_name:
            return ServiceResult.failure(
                op,
                NO_PROPERTY,
                "No property selected (use --property or FUSEGRAPH_PROPERTY)",
                known=self._registry.names(),
            )
        try:
            prop = self._registry.lookup(property_name)()
        except PropertyLookupError as exc:
            return ServiceResult.failure(op, LOOKUP_FAILED, str(exc), known=exc.known)

        with trace_span("validate"):
            problems = graph.problems()
        if problems:
            return ServiceResult.failure(op, INVALID_GRAPH, problems[0], problems=problems)

        try:
            with trace_span("extract") as span:
                report = SubgraphExtractor(prop).extract(graph)
                if span:
                    span.annotate("nodes", len(graph))
                    span.annotate("accepted", len(report.accepted))
        except SelectorProtocolViolation as exc:
            logger.error("Selector protocol violation in property %s: %s", prop.name, exc)
            return ServiceResult.failure(
                op, SELECTOR_PROTOCOL_VIOLATION, str(exc), property=prop.name
            )
        except GraphIntegrityError as exc:
            return ServiceResult.failure(op, INVALID_GRAPH, str(exc))

        warnings: list[str] = []
        rejected: list[dict[str, Any]] = [
            {
                "seed": graph.node(r.seed).name,
                "members": [graph.node(m).name for m in r.members],
                "code": r.code,
                "reason": r.reason,
            }
            for r in report.rejected
        ]
        warnings.extend(r["reason"] for r in rejected)

        surgeon = GraphSurgeon(graph)
        subgraphs: list[dict[str, Any]] = []
        for candidate in report.accepted:
            seed_name = graph.node(candidate.seed).name
            member_names = [graph.node(m).name for m in candidate.members]
            with trace_span("surgery"):
                try:
                    node = surgeon.extract(candidate.members, prop, len(subgraphs))
                except SurgeryError as exc:
                    logger.warning("Skipping candidate seeded at %s: %s", seed_name, exc)
                    warnings.append(str(exc))
                    rejected.append(
                        {
                            "seed": seed_name,
                            "members": member_names,
                            "code": exc.code,
                            "reason": str(exc),
                        }
                    )
                    continue
            subgraphs.append(
                {
                    "name": node.name,
                    "op": node.op,
                    "members": member_names,
                    "num_inputs": len(node.inputs),
                    "num_outputs": node.num_outputs,
                }
            )

        if verify:
            with trace_span("verify"):
                problems = graph.problems()
                if not problems and not GraphEngine(graph).is_acyclic():
                    problems = [f"Graph {graph.name!r} contains a cycle after rewriting"]
            if problems:
                logger.error("Post-rewrite verification failed: %s", problems[0])
                return ServiceResult.failure(
                    op, INVALID_GRAPH, "Post-rewrite verification failed", problems=problems
                )

        self._dispatch_event(
            "post_rewrite",
            {
                "property_name": prop.name,
                "graph_name": graph.name,
                "subgraph_count": len(subgraphs),
                "rejected_count": len(rejected),
            },
            warnings,
        )

        data = dump_validated(
            RewriteResultData,
            {
                "property": prop.name,
                "graph": graph.name,
                "seeds": report.seeds,
                "subgraph_count": len(subgraphs),
                "subgraphs": subgraphs,
                "rejected": rejected,
                "node_count": len(graph),
            },
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    def list_properties(self) -> ServiceResult:
        """List registered property names with the op their subgraph nodes get."""
        items = [
            {"name": name, "subgraph_op": self._registry.lookup(name)().subgraph_op}
            for name in self._registry.names()
        ]
        return ServiceResult(
            ok=True,
            op="list_properties",
            data=dump_validated(PropertyListData, {"count": len(items), "items": items}),
        )
