"""Tests for GraphSurgeon — boundary wiring, atomicity and sub-graph ownership."""

from __future__ import annotations

from typing import Any

import pytest

from fusegraph.domain.errors import CycleWouldFormError, FactoryFailure, GraphIntegrityError
from fusegraph.domain.graph import Graph, InputRef, OutputRef
from fusegraph.domain.property import SubgraphProperty, describe_subgraph
from fusegraph.domain.selector import OpSetSelector
from fusegraph.infrastructure.graph import GraphEngine
from fusegraph.infrastructure.graph.document import from_graph
from fusegraph.services.surgeon import GraphSurgeon
from tests.conftest import boundary_signature, chain, names, op_set_property


def _ids(graph: Graph, *node_names: str) -> list[int]:
    return [graph.find(n).id for n in node_names]


def _prop(node_factory: Any = describe_subgraph, op: str = "FUSED") -> SubgraphProperty:
    return SubgraphProperty("fuse", lambda: OpSetSelector({"A"}), node_factory, subgraph_op=op)


class TestBoundary:
    def test_counts_in_diamond(self, diamond: Graph) -> None:
        b = GraphSurgeon(diamond).boundary(_ids(diamond, "b", "c", "d"))
        assert b.crossing_in == 2
        assert b.crossing_out == 1
        assert b.ports == [OutputRef(diamond.find("d").id)]
        assert b.graph_outputs == {OutputRef(diamond.find("d").id): [0]}

    def test_fan_out_shares_one_port(self) -> None:
        g = chain(["A", "B"])
        a = g.find("a")
        g.add_node("C", [a.output()], name="c1")
        g.add_node("C", [a.output()], name="c2")
        b = GraphSurgeon(g).boundary(_ids(g, "a", "b"))
        assert b.ports == [OutputRef(a.id), OutputRef(g.find("b").id)]
        assert len(b.outputs[OutputRef(a.id)]) == 2
        assert b.crossing_out == 3


class TestExtract:
    def test_chain_scenario(self) -> None:
        g = chain(["A", "B", "C"])
        fused = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        c = g.find("c")
        assert names(g) == ["fuse_0", "c"]
        assert fused.op == "FUSED"
        assert fused.inputs == [InputRef(0)]
        assert fused.num_outputs == 1
        assert c.inputs == [OutputRef(fused.id, 0)]
        assert g.outputs == [OutputRef(c.id)]
        assert g.problems() == []

    def test_subgraph_is_owned_and_wired(self) -> None:
        g = chain(["A", "B", "C"])
        fused = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        sub = fused.subgraph
        assert sub is not None and sub.name == "fuse_0"
        assert sub.input_names == ["in0:x"]
        assert names(sub) == ["a", "b"]
        assert sub.outputs == [OutputRef(sub.find("b").id)]
        assert sub.problems() == []

    def test_payload_becomes_attrs(self) -> None:
        g = chain(["A", "B"])
        fused = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 3)
        assert fused.name == "fuse_3"
        assert fused.attrs == {
            "subgraph_name": "fuse_3",
            "ordinal": 3,
            "ops": ["A", "B"],
            "num_inputs": 1,
            "num_outputs": 1,
        }

    def test_boundary_completeness(self, diamond: Graph) -> None:
        surgeon = GraphSurgeon(diamond)
        members = _ids(diamond, "b", "c", "d")
        before = surgeon.boundary(members)
        fused = surgeon.extract(members, _prop(), 0)
        incoming = len(fused.inputs)
        outgoing = len(fused.consumers) + sum(
            1 for src in diamond.outputs if isinstance(src, OutputRef) and src.node == fused.id
        )
        assert (incoming, outgoing) == (before.crossing_in, before.crossing_out)

    def test_one_input_slot_per_entering_edge(self, diamond: Graph) -> None:
        fused = GraphSurgeon(diamond).extract(_ids(diamond, "b", "c", "d"), _prop(), 0)
        a = diamond.find("a")
        assert fused.inputs == [OutputRef(a.id), OutputRef(a.id)]
        assert fused.subgraph.input_names == ["in0:a:0", "in1:a:0"]

    def test_fan_out_and_graph_outputs_preserved(self) -> None:
        g = chain(["A", "B"])
        a = g.find("a")
        c1 = g.add_node("C", [a.output()], name="c1")
        c2 = g.add_node("C", [a.output()], name="c2")
        g.set_outputs([g.find("b").output(), a.output()])
        fused = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        assert fused.num_outputs == 2
        assert c1.inputs == [OutputRef(fused.id, 0)]
        assert c2.inputs == [OutputRef(fused.id, 0)]
        assert g.outputs == [OutputRef(fused.id, 1), OutputRef(fused.id, 0)]
        assert boundary_signature(g) == (["x"], 2)
        assert g.problems() == []

    def test_sink_set_has_no_outputs(self) -> None:
        g = chain(["A"])
        g.add_node("A", [g.find("a").output()], name="sink")
        fused = GraphSurgeon(g).extract(_ids(g, "sink"), _prop(), 0)
        assert fused.num_outputs == 0
        assert fused.subgraph.outputs == []

    def test_name_collision_gets_suffix(self) -> None:
        g = Graph("taken")
        x = g.add_input("x")
        a = g.add_node("A", [x], name="a")
        b = g.add_node("B", [a.output()], name="b")
        c = g.add_node("C", [b.output()], name="fuse_0")
        d = g.add_node("D", [c.output()], name="fuse_0_1")
        g.set_outputs([d.output()])
        fused = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        assert fused.name == "fuse_0_2"
        assert fused.subgraph.name == "fuse_0_2"
        assert names(g) == ["fuse_0_2", "fuse_0", "fuse_0_1"]

    def test_absorbed_member_name_can_be_reused(self) -> None:
        g = Graph("reuse")
        a = g.add_node("A", [g.add_input("x")], name="fuse_0")
        g.add_node("B", [a.output()], name="b")
        fused = GraphSurgeon(g).extract(_ids(g, "fuse_0", "b"), _prop(), 0)
        assert fused.name == "fuse_0"

    def test_placed_at_first_member(self) -> None:
        g = chain(["Z", "A", "B", "Y"])
        GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        assert names(g) == ["z", "fuse_0", "y"]

    def test_result_is_acyclic_and_topologically_serializable(self, diamond: Graph) -> None:
        GraphSurgeon(diamond).extract(_ids(diamond, "a", "b"), _prop(), 0)
        assert GraphEngine(diamond).is_acyclic()
        assert [n.name for n in from_graph(diamond).nodes] == ["fuse_0", "c", "d"]

    def test_nested_subgraph_node_moves_with_member(self) -> None:
        g = chain(["A", "B"])
        inner = chain(["Q"], name="inner")
        first = GraphSurgeon(g).extract(_ids(g, "a", "b"), _prop(), 0)
        first.subgraph.find("a").subgraph = inner
        g.add_node("C", [first.output()], name="c")
        outer = GraphSurgeon(g).extract([first.id, g.find("c").id], _prop(), 1)
        assert outer.subgraph.find("fuse_0").subgraph.find("a").subgraph is inner


class TestAtomicity:
    def test_cycle_rejected_without_mutation(self, diamond: Graph) -> None:
        snapshot = from_graph(diamond)
        with pytest.raises(CycleWouldFormError):
            GraphSurgeon(diamond).extract(_ids(diamond, "a", "b", "d"), _prop(), 0)
        assert from_graph(diamond) == snapshot

    def test_factory_exception_leaves_graph_untouched(self, diamond: Graph) -> None:
        def boom(subgraph: Graph, ordinal: int) -> dict[str, Any]:
            raise RuntimeError("backend refused")

        snapshot = from_graph(diamond)
        with pytest.raises(FactoryFailure, match="backend refused") as exc_info:
            GraphSurgeon(diamond).extract(_ids(diamond, "b", "c", "d"), _prop(boom), 0)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert from_graph(diamond) == snapshot
        assert diamond.problems() == []

    def test_factory_non_mapping(self, diamond: Graph) -> None:
        with pytest.raises(FactoryFailure, match="expected a mapping"):
            GraphSurgeon(diamond).extract(_ids(diamond, "b", "c"), _prop(lambda s, o: 42), 0)

    def test_empty_and_unknown_members(self, diamond: Graph) -> None:
        surgeon = GraphSurgeon(diamond)
        with pytest.raises(GraphIntegrityError, match="empty"):
            surgeon.extract([], _prop(), 0)
        with pytest.raises(GraphIntegrityError, match="not in the graph"):
            surgeon.extract([99], _prop(), 0)

    def test_error_codes(self) -> None:
        assert CycleWouldFormError.code == "CYCLE_WOULD_FORM"
        assert FactoryFailure.code == "FACTORY_FAILED"


class TestEquivalence:
    def test_every_accepted_set_keeps_the_boundary(self) -> None:
        g = Graph("wide")
        x, y = g.add_input("x"), g.add_input("y")
        a = g.add_node("A", [x, y], name="a")
        b = g.add_node("A", [a.output()], name="b")
        z = g.add_node("Z", [a.output(), y], name="z")
        c = g.add_node("A", [b.output(), z.output()], name="c")
        g.set_outputs([c.output(), z.output()])

        prop = op_set_property("fuse", {"A"})
        before = boundary_signature(g)
        GraphSurgeon(g).extract(_ids(g, "a", "b"), prop, 0)
        assert boundary_signature(g) == before
        assert GraphEngine(g).is_acyclic()
        assert g.problems() == []
