"""SubgraphExtractor — drive a Selector over a Graph to find candidate sets.

One pass visits every node as a potential seed in topological order. From
each seed the selector's set grows by a breadth-first worklist: for every
frontier member all distinct producers are probed, then all distinct
consumers, and admitted neighbors join the frontier. Once the frontier is
empty the selector's ``filter`` picks the final subset.

The extractor never mutates the Graph. Accepted sets are contracted in a
NetworkX view so that later candidates are checked for cycles against the
graph the surgeon will actually produce.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fusegraph.domain.errors import CycleWouldFormError, SelectorProtocolViolation
from fusegraph.domain.selector import Selector
from fusegraph.infrastructure.graph import GraphEngine

if TYPE_CHECKING:
    from fusegraph.domain.graph import Graph, Node
    from fusegraph.domain.property import Property

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateSet:
    """An accepted group of node ids, in topological order."""

    seed: int
    members: tuple[int, ...]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.members

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CandidateRejection:
    """A set that passed ``filter`` but could not be accepted."""

    seed: int
    members: tuple[int, ...]
    code: str
    reason: str


@dataclass
class ExtractionReport:
    """Outcome of one extraction pass."""

    accepted: list[CandidateSet] = field(default_factory=list)
    rejected: list[CandidateRejection] = field(default_factory=list)
    seeds: int = 0


class SubgraphExtractor:
    """Find disjoint candidate sets for one property.

    A fresh selector is requested from the property for every seed, so
    selector state never leaks from one candidate set into the next.
    """

    def __init__(self, prop: Property) -> None:
        self._property = prop

    def extract(self, graph: Graph) -> ExtractionReport:
        """Run the selector over *graph* and return accepted and rejected sets.

        Raises:
            SelectorProtocolViolation: The selector broke its contract. No
                partial result is returned.
            GraphIntegrityError: *graph* contains a cycle.
        """
        engine = GraphEngine(graph)
        order = engine.topological_order()
        position = {node_id: i for i, node_id in enumerate(order)}
        consumed: set[int] = set()
        report = ExtractionReport()

        for seed_id in order:
            if seed_id in consumed:
                continue
            selector = self._new_selector()
            seed = graph.node(seed_id)
            if not _as_bool(selector.select(seed), selector, "select", seed):
                continue
            report.seeds += 1

            members = self._expand(graph, selector, seed, consumed)
            candidates = sorted(members, key=position.__getitem__)
            accepted = self._filter(graph, selector, candidates, position)
            if not accepted:
                logger.debug("Candidate seeded at %s rejected by filter", seed.name)
                continue

            if engine.would_create_cycle(accepted):
                logger.info(
                    "Candidate seeded at %s rejected: collapsing %d nodes would form a cycle",
                    seed.name,
                    len(accepted),
                )
                report.rejected.append(
                    CandidateRejection(
                        seed=seed_id,
                        members=tuple(accepted),
                        code=CycleWouldFormError.code,
                        reason=f"collapsing the set seeded at {seed.name} would form a cycle",
                    )
                )
                continue

            engine.contract(accepted)
            consumed.update(accepted)
            report.accepted.append(CandidateSet(seed=seed_id, members=tuple(accepted)))
            logger.debug("Accepted candidate seeded at %s with %d nodes", seed.name, len(accepted))

        return report

    def _new_selector(self) -> Selector:
        selector = self._property.create_selector()
        if not isinstance(selector, Selector):
            raise SelectorProtocolViolation(
                f"Property {self._property.name!r} produced {type(selector).__name__}, "
                "which does not implement select/select_input/select_output/filter"
            )
        return selector

    @staticmethod
    def _expand(graph: Graph, selector: Selector, seed: Node, consumed: set[int]) -> list[int]:
        """Grow the set from *seed* until no selector call admits another node."""
        members: dict[int, None] = {seed.id: None}
        frontier: deque[int] = deque([seed.id])

        while frontier:
            current = graph.node(frontier.popleft())
            for producer_id in graph.producers(current.id):
                if producer_id in members or producer_id in consumed:
                    continue
                producer = graph.node(producer_id)
                if _as_bool(
                    selector.select_input(current, producer), selector, "select_input", producer
                ):
                    members[producer_id] = None
                    frontier.append(producer_id)
            for consumer_id in graph.consumers(current.id):
                if consumer_id in members or consumer_id in consumed:
                    continue
                consumer = graph.node(consumer_id)
                if _as_bool(
                    selector.select_output(current, consumer), selector, "select_output", consumer
                ):
                    members[consumer_id] = None
                    frontier.append(consumer_id)

        return list(members)

    @staticmethod
    def _filter(
        graph: Graph,
        selector: Selector,
        candidates: list[int],
        position: dict[int, int],
    ) -> list[int]:
        """Apply ``filter`` and check that it only narrowed the set."""
        chosen = selector.filter([graph.node(i) for i in candidates])
        allowed = set(candidates)
        seen: set[int] = set()
        for node in chosen:
            node_id = getattr(node, "id", None)
            if node_id not in allowed or graph.node(node_id) is not node:
                raise SelectorProtocolViolation(
                    f"{type(selector).__name__}.filter returned {node!r}, which was not a candidate"
                )
            if node_id in seen:
                raise SelectorProtocolViolation(
                    f"{type(selector).__name__}.filter returned {node!r} more than once"
                )
            seen.add(node_id)
        return sorted(seen, key=position.__getitem__)


def _as_bool(answer: object, selector: Selector, method: str, node: Node) -> bool:
    if not isinstance(answer, bool):
        raise SelectorProtocolViolation(
            f"{type(selector).__name__}.{method} returned {answer!r} for {node.name}; expected bool"
        )
    return answer
