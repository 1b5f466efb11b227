"""Shared pytest fixtures and graph builders for fusegraph tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fusegraph.domain.graph import Graph, Node, Source
from fusegraph.domain.property import SubgraphProperty, describe_subgraph
from fusegraph.domain.selector import OpSetSelector
from fusegraph.plugins.registry import PropertyRegistry
from fusegraph.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test from an empty directory with no fusegraph env vars.

    Telemetry and logging are put back afterwards since ``--verbose`` changes
    both for the rest of the process.
    """
    for var in ("FUSEGRAPH_PROPERTY", "FUSEGRAPH_CONFIG", "FUSEGRAPH_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    pkg_level = logging.getLogger("fusegraph").level
    yield
    disable_telemetry()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("fusegraph").setLevel(pkg_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> PropertyRegistry:
    """Registry with an ``ab`` property grouping connected A and B nodes."""
    reg = PropertyRegistry()
    reg.register("ab", lambda: op_set_property("ab", {"A", "B"}))
    return reg


@pytest.fixture
def diamond() -> Graph:
    """x -> A -> (B, C) -> D -> out, with every node elementwise."""
    g = Graph("diamond")
    x = g.add_input("x")
    a = g.add_node("ADD", [x, x], name="a")
    b = g.add_node("RELU", [a.output()], name="b")
    c = g.add_node("EXP", [a.output()], name="c")
    d = g.add_node("MUL", [b.output(), c.output()], name="d")
    g.set_outputs([d.output()])
    return g


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def op_set_property(
    name: str, ops: set[str], *, min_size: int = 2, **kwargs: Any
) -> SubgraphProperty:
    """A SubgraphProperty over OpSetSelector with the default node factory."""
    return SubgraphProperty(
        name=name,
        selector_factory=lambda: OpSetSelector(ops, min_size=min_size),
        node_factory=describe_subgraph,
        **kwargs,
    )


def chain(ops: Sequence[str], *, name: str = "chain") -> Graph:
    """Linear graph ``x -> ops[0] -> ops[1] -> ... -> out``.

    Node names are the lower-cased ops.
    """
    g = Graph(name)
    src: Source = g.add_input("x")
    for op in ops:
        node = g.add_node(op, [src], name=op.lower())
        src = node.output()
    g.set_outputs([src])
    return g


def boundary_signature(graph: Graph) -> tuple[list[str], int]:
    """What the outside world sees: graph inputs and the number of outputs."""
    return list(graph.input_names), len(graph.outputs)


def write_graph_json(path: Path, doc: dict[str, Any]) -> Path:
    """Write *doc* as a graph document and return *path*."""
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def names(graph: Graph) -> list[str]:
    """Node names in storage order."""
    return [n.name for n in graph.nodes()]


class SameOpSelector:
    """Groups connected nodes sharing the seed's op; rejects singletons."""

    def __init__(self) -> None:
        self.op: str | None = None
        self.filtered: list[list[int]] = []

    def select(self, node: Node) -> bool:
        self.op = node.op
        return True

    def select_input(self, node: Node, producer: Node) -> bool:
        return producer.op == self.op

    def select_output(self, node: Node, consumer: Node) -> bool:
        return consumer.op == self.op

    def filter(self, candidates: list[Node]) -> list[Node]:
        self.filtered.append([n.id for n in candidates])
        return candidates if len(candidates) > 1 else []
