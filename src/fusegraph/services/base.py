"""BaseService — shared foundation for fusegraph services.

Every service receives the :class:`PropertyRegistry` it resolves names
against and, optionally, the :class:`PluginManager` whose lifecycle hooks
it fires. Neither is global: callers wire them explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fusegraph.plugins.registry import PropertyRegistry

if TYPE_CHECKING:
    from fusegraph.plugins.manager import PluginManager


class BaseService:
    """Base for service-layer classes.

    Usage::

        class RewriteService(BaseService):
            def rewrite(self, graph: Graph, property_name: str) -> ServiceResult:
                factory = self._registry.lookup(property_name)
                ...
    """

    def __init__(
        self,
        registry: PropertyRegistry | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self._registry = registry if registry is not None else PropertyRegistry()
        self._plugins = plugins

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Fire a lifecycle hook. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        warnings.extend(self._plugins.notify(hook_name, **payload))
