"""Tests for PropertyRegistry."""

from __future__ import annotations

import pytest

from fusegraph.domain.errors import PropertyLookupError
from fusegraph.plugins.registry import PropertyRegistry
from tests.conftest import op_set_property


def _factory():
    return op_set_property("p", {"A"})


class TestPropertyRegistry:
    def test_register_and_lookup(self) -> None:
        reg = PropertyRegistry()
        reg.register("p", _factory)
        assert reg.lookup("p") is _factory
        assert "p" in reg
        assert len(reg) == 1

    def test_names_sorted(self) -> None:
        reg = PropertyRegistry()
        for name in ("zeta", "alpha", "mid"):
            reg.register(name, _factory)
        assert reg.names() == ["alpha", "mid", "zeta"]

    def test_duplicate_rejected(self) -> None:
        reg = PropertyRegistry()
        reg.register("p", _factory)
        with pytest.raises(ValueError, match="already registered"):
            reg.register("p", _factory)
        reg.register("p", _factory, replace=True)

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(TypeError):
            PropertyRegistry().register("p", op_set_property("p", {"A"}))  # type: ignore[arg-type]

    def test_unknown_name(self) -> None:
        reg = PropertyRegistry()
        reg.register("b", _factory)
        reg.register("a", _factory)
        with pytest.raises(PropertyLookupError) as exc_info:
            reg.lookup("c")
        assert exc_info.value.name == "c"
        assert exc_info.value.known == ["a", "b"]
        assert str(exc_info.value) == "Unknown property 'c' (known: a, b)"
        assert isinstance(exc_info.value, LookupError)

    def test_unknown_name_empty_registry(self) -> None:
        with pytest.raises(PropertyLookupError, match=r"^Unknown property 'x'$"):
            PropertyRegistry().lookup("x")
