"""Selector protocol and the built-in selectors.

A Selector decides membership of one candidate set. The extractor calls
``select`` on every unconsumed node to find seeds, then walks outward from
the seed asking ``select_input`` / ``select_output`` about direct
neighbors, and finally hands the fixpoint to ``filter``.

Selectors are structural: any object with the four methods qualifies.
They may keep private state, which lives for one candidate set because the
extractor asks the property for a new selector for every seed.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from typing import Protocol, runtime_checkable

from fusegraph.domain.graph import Node


@runtime_checkable
class Selector(Protocol):
    """Membership predicate driven by :class:`~fusegraph.services.extractor.SubgraphExtractor`."""

    def select(self, node: Node) -> bool:
        """Return True to start a new candidate set at *node*."""
        ...

    def select_input(self, node: Node, producer: Node) -> bool:
        """Return True to admit *producer*, a direct producer of member *node*."""
        ...

    def select_output(self, node: Node, consumer: Node) -> bool:
        """Return True to admit *consumer*, a direct consumer of member *node*."""
        ...

    def filter(self, candidates: list[Node]) -> list[Node]:
        """Return the accepted subset of the expanded set (empty rejects it)."""
        ...


class OpSetSelector:
    """Group connected nodes whose op belongs to a fixed set.

    Args:
        ops: Operator kinds eligible for grouping.
        min_size: Sets smaller than this are rejected by ``filter``.
        max_size: Stop admitting neighbors once the set has this many members.
    """

    def __init__(
        self,
        ops: Iterable[str],
        *,
        min_size: int = 2,
        max_size: int | None = None,
    ) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1 (got {max_size})")
        self.ops = frozenset(ops)
        self.min_size = min_size
        self.max_size = max_size
        self._size = 0

    def select(self, node: Node) -> bool:
        if node.op not in self.ops:
            return False
        self._size = 1
        return True

    def select_input(self, node: Node, producer: Node) -> bool:
        return self._admit(producer)

    def select_output(self, node: Node, consumer: Node) -> bool:
        return self._admit(consumer)

    def filter(self, candidates: list[Node]) -> list[Node]:
        if len(candidates) < self.min_size:
            return []
        return list(candidates)

    def _admit(self, node: Node) -> bool:
        if node.op not in self.ops:
            return False
        if self.max_size is not None and self._size >= self.max_size:
            return False
        self._size += 1
        return True

    def __repr__(self) -> str:
        return (
            f"OpSetSelector(ops={sorted(self.ops)}, "
            f"min_size={self.min_size}, max_size={self.max_size})"
        )


class ChainSelector:
    """Match a linear producer-to-consumer chain of operators.

    Each step of *pattern* is an op name or a collection of alternative op
    names, e.g. ``["MATMUL", "BIAS_ADD", {"RELU", "GELU"}]``. Expansion only
    moves forward, one hop at a time, and only through a node whose every
    consumer edge goes to the next step. Partial matches are rejected.

    Selectors see nodes, not graph outputs: a chain whose intermediate value
    is also returned from the graph still matches here. Properties that need
    a single-output subgraph reject it in their node factory.
    """

    def __init__(self, pattern: Sequence[str | Collection[str]]) -> None:
        if not pattern:
            raise ValueError("pattern must contain at least one step")
        self.steps: tuple[frozenset[str], ...] = tuple(
            frozenset([step]) if isinstance(step, str) else frozenset(step) for step in pattern
        )
        self._matched = 0
        self._tail: int | None = None

    def select(self, node: Node) -> bool:
        if node.op not in self.steps[0]:
            return False
        self._matched = 1
        self._tail = node.id
        return True

    def select_input(self, node: Node, producer: Node) -> bool:
        return False

    def select_output(self, node: Node, consumer: Node) -> bool:
        if node.id != self._tail or self._matched >= len(self.steps):
            return False
        if consumer.op not in self.steps[self._matched]:
            return False
        # The intermediate result must not escape the chain.
        if any(edge.dst != consumer.id for edge in node.consumers):
            return False
        self._matched += 1
        self._tail = consumer.id
        return True

    def filter(self, candidates: list[Node]) -> list[Node]:
        if self._matched != len(self.steps):
            return []
        return list(candidates)

    def __repr__(self) -> str:
        return f"ChainSelector({[sorted(s) for s in self.steps]})"
