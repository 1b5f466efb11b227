"""Tests for ServiceResult and ServiceError."""

import json

import pytest

from fusegraph.services.result import LOOKUP_FAILED, ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="rewrite", data={"subgraph_count": 1})
        assert result.ok is True
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_shorthand(self) -> None:
        result = ServiceResult.failure(
            "rewrite", LOOKUP_FAILED, "Unknown property 'x'", known=["a"]
        )
        assert result.ok is False
        assert result.error == ServiceError(
            code="LOOKUP_FAILED", message="Unknown property 'x'", detail={"known": ["a"]}
        )

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="check", data={"healthy": True}, warnings=["w"])
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"] == {"healthy": True}
        assert parsed["warnings"] == ["w"]

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="check")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]
