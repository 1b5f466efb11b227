"""Pluggy hook specifications for fusegraph.

One setup-time hook lets a plugin contribute named rewriting properties;
one lifecycle hook reports the outcome of each rewrite pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from fusegraph.domain.property import PropertyFactory

hookspec = pluggy.HookspecMarker("fusegraph")
hookimpl = pluggy.HookimplMarker("fusegraph")


class FusegraphHookSpec:
    """Hook specifications for the fusegraph plugin system."""

    @hookspec
    def register_properties(self) -> dict[str, PropertyFactory] | None:
        """Return name -> property factory mappings for the registry."""

    @hookspec
    def post_rewrite(
        self,
        property_name: str,
        graph_name: str,
        subgraph_count: int,
        rejected_count: int,
    ) -> None:
        """Called after a rewrite pass completes."""
