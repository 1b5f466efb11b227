"""Built-in fusion properties.

``elemwise``
    Groups connected elementwise operators (``ADD``, ``RELU``, ...) into
    one subgraph node. The op set and size limits come from the
    ``[elemwise]`` config section.

``gemm_bias_act``
    Matches the linear chain ``MATMUL -> BIAS_ADD -> RELU|GELU`` and
    replaces it with a ``GEMM_BIAS_ACT`` node carrying the activation and,
    when the matmul declares it, the ``mnk`` problem size.
"""

from __future__ import annotations

from typing import Any

from fusegraph.config.models import ElemwiseConfig
from fusegraph.domain.graph import Graph, OutputRef
from fusegraph.domain.property import PropertyFactory, SubgraphProperty, describe_subgraph
from fusegraph.domain.selector import ChainSelector, OpSetSelector
from fusegraph.plugins.hookspecs import hookimpl

GEMM_BIAS_ACT_PATTERN = ("MATMUL", "BIAS_ADD", ("RELU", "GELU"))


def gemm_bias_act_payload(subgraph: Graph, ordinal: int) -> dict[str, Any]:
    """Attribute payload for a fused ``GEMM_BIAS_ACT`` node.

    Raises:
        ValueError: A value other than the activation leaves the chain, e.g.
            the matmul result is also a graph output.
    """
    matmul, _bias_add, act = subgraph.nodes()
    if any(not isinstance(src, OutputRef) or src.node != act.id for src in subgraph.outputs):
        raise ValueError(f"{subgraph.name}: only the activation may leave a GEMM_BIAS_ACT chain")
    payload: dict[str, Any] = {
        "kernel": "GEMM_BIAS_ACT",
        "act": act.op.lower(),
        "subgraph_name": subgraph.name,
        "ordinal": ordinal,
    }
    if "mnk" in matmul.attrs:
        payload["mnk"] = tuple(matmul.attrs["mnk"])
    return payload


class FusionPlugin:
    """Registers the ``elemwise`` and ``gemm_bias_act`` properties."""

    def __init__(self, elemwise: ElemwiseConfig | None = None) -> None:
        self._elemwise = elemwise or ElemwiseConfig()

    @hookimpl
    def register_properties(self) -> dict[str, PropertyFactory]:
        cfg = self._elemwise

        def elemwise() -> SubgraphProperty:
            return SubgraphProperty(
                name="elemwise",
                selector_factory=lambda: OpSetSelector(
                    cfg.ops, min_size=cfg.min_size, max_size=cfg.max_size
                ),
                node_factory=describe_subgraph,
                subgraph_op="FUSED_ELEMWISE",
            )

        def gemm_bias_act() -> SubgraphProperty:
            return SubgraphProperty(
                name="gemm_bias_act",
                selector_factory=lambda: ChainSelector(GEMM_BIAS_ACT_PATTERN),
                node_factory=gemm_bias_act_payload,
                subgraph_op="GEMM_BIAS_ACT",
            )

        return {"elemwise": elemwise, "gemm_bias_act": gemm_bias_act}
