"""Tests for format_result and the rich renderers."""

from __future__ import annotations

import json

from fusegraph.output.formatters import OutputSettings, format_result
from fusegraph.services.result import ServiceResult

REWRITE = ServiceResult(
    ok=True,
    op="rewrite",
    data={
        "property": "elemwise",
        "graph": "main",
        "seeds": 2,
        "subgraph_count": 1,
        "subgraphs": [
            {
                "name": "elemwise_0",
                "op": "FUSED_ELEMWISE",
                "members": ["add", "relu"],
                "num_inputs": 2,
                "num_outputs": 1,
            }
        ],
        "rejected": [
            {"seed": "[mul]", "members": ["[mul]"], "code": "CYCLE_WOULD_FORM", "reason": "r"}
        ],
        "node_count": 3,
    },
    meta={"telemetry": {"name": "RewriteService.rewrite", "duration_ms": 1.5}},
)


class TestFormatResult:
    def test_json_mode(self) -> None:
        out = format_result(REWRITE, settings=OutputSettings(json_output=True))
        assert json.loads(out)["data"]["subgraph_count"] == 1

    def test_quiet_lists_names(self) -> None:
        assert format_result(REWRITE, settings=OutputSettings(quiet=True)) == "elemwise_0"

    def test_quiet_without_items(self) -> None:
        result = ServiceResult(ok=True, op="check", data={"healthy": True})
        assert format_result(result, settings=OutputSettings(quiet=True)) == "OK: check"

    def test_quiet_error(self) -> None:
        result = ServiceResult.failure("rewrite", "LOOKUP_FAILED", "Unknown property 'x'")
        out = format_result(result, settings=OutputSettings(quiet=True))
        assert out.startswith("ERROR: rewrite")


class TestRenderers:
    def test_rewrite_table(self) -> None:
        out = format_result(REWRITE)
        assert "OK" in out
        assert "elemwise_0" in out
        assert "FUSED_ELEMWISE" in out
        assert "add, relu" in out
        assert "[mul]" in out
        assert "CYCLE_WOULD_FORM" in out
        assert "RewriteService.rewrite" not in out

    def test_verbose_shows_spans(self) -> None:
        out = format_result(REWRITE, settings=OutputSettings(verbose=True))
        assert "RewriteService.rewrite" in out

    def test_check_issues(self) -> None:
        result = ServiceResult(
            ok=True,
            op="check",
            data={
                "graph": "main",
                "healthy": False,
                "error_count": 1,
                "warning_count": 0,
                "issues": [
                    {"category": "cycle", "severity": "error", "message": "Cycle through a -> b"}
                ],
            },
        )
        out = format_result(result)
        assert "healthy: False" in out
        assert "Cycle through a -> b" in out

    def test_properties_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_properties",
            data={"count": 1, "items": [{"name": "elemwise", "subgraph_op": "FUSED_ELEMWISE"}]},
        )
        out = format_result(result)
        assert "elemwise" in out
        assert "FUSED_ELEMWISE" in out

    def test_error_with_detail(self) -> None:
        result = ServiceResult.failure(
            "rewrite", "LOOKUP_FAILED", "Unknown property 'x'", known=["a"]
        )
        out = format_result(result, settings=OutputSettings(verbose=True))
        assert "ERROR" in out
        assert "Unknown property 'x'" in out
        assert "known" in out

    def test_generic_fallback(self) -> None:
        out = format_result(ServiceResult(ok=True, op="other", data={"k": "v"}))
        assert "k: v" in out
