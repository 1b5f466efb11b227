"""Typed payload contracts for service results.

Service payloads are validated against these models before they leave the
service layer, so a renamed key fails in tests instead of in a consumer.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class SubgraphItem(BaseModel):
    """One subgraph node created by a rewrite pass."""

    name: str
    op: str
    members: list[str]
    num_inputs: int
    num_outputs: int


class RejectedItem(BaseModel):
    """One candidate set that was dropped after passing ``filter``."""

    seed: str
    members: list[str]
    code: str
    reason: str


class RewriteResultData(BaseModel):
    """Payload contract for ``RewriteService.rewrite``."""

    property: str
    graph: str
    seeds: int
    subgraph_count: int
    subgraphs: list[SubgraphItem]
    rejected: list[RejectedItem]
    node_count: int


class CheckIssue(BaseModel):
    """One structural finding returned by ``CheckService.check``."""

    model_config = ConfigDict(extra="allow")

    category: Literal["structure", "cycle", "dead_node"]
    severity: Literal["warning", "error"]
    node: str | None = None
    message: str


class CheckResultData(BaseModel):
    """Payload contract for ``CheckService.check``."""

    graph: str
    node_count: int
    edge_count: int
    issues: list[CheckIssue]
    count: int
    error_count: int
    warning_count: int
    healthy: bool


class PropertyListData(BaseModel):
    """Payload contract for ``RewriteService.list_properties``."""

    count: int
    items: list[dict[str, str]]
