"""Plugin discovery, loading, and property registration.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from a local directory (``.fusegraph/plugins/``).
Every plugin's ``register_properties`` result is collected into one
:class:`~fusegraph.plugins.registry.PropertyRegistry`.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any

import pluggy

from fusegraph.plugins.hookspecs import FusegraphHookSpec
from fusegraph.plugins.registry import PropertyRegistry

PROJECT_NAME = "fusegraph"
ENTRY_POINT_GROUP = "fusegraph.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self, registry: PropertyRegistry | None = None) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FusegraphHookSpec)
        self.registry = registry if registry is not None else PropertyRegistry()
        self._loaded: bool = False

    def discover_and_load(
        self,
        *,
        local_dir: Path | None = None,
        entry_points: bool = True,
    ) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Plugins registered before this call (built-ins) contribute their
        properties here too, so this must run even when discovery is off
        (``entry_points=False`` and no *local_dir*). Returns the names of
        all registered plugins.
        """
        if entry_points:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
            self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        for name, plugin in self._pm.list_name_plugin():
            if plugin is not None:
                self._register_plugin_properties(plugin, name)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins).

        After :meth:`discover_and_load` the plugin's properties are added to
        the registry immediately.
        """
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        if self._loaded:
            self._register_plugin_properties(plugin, resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance. Properties it registered stay registered."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Registered plugins in registration order."""
        return [p for _name, p in self._pm.list_name_plugin() if p is not None]

    def list_plugin_names(self) -> list[str]:
        return [name for name, p in self._pm.list_name_plugin() if p is not None]

    def notify(self, hook_name: str, **payload: Any) -> list[str]:
        """Call lifecycle hook *hook_name* on every plugin.

        INVARIANT: Plugin failures are warnings, never errors. Returns the
        warning messages so services can surface them.
        """
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return [f"Plugin hook {hook_name} failed"]
        return []

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Scan *local_dir* for single-file Python plugins.

        Each ``*.py`` file (excluding ``_``-prefixed names) is loaded as a
        module. Classes defined in it that carry hookimpl-decorated methods
        are instantiated and registered. A broken file is logged and skipped.
        """
        if not local_dir.is_dir():
            return

        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module_name = f"fusegraph_local_plugin_{py_file.stem}"
            try:
                spec = importlib.util.spec_from_file_location(module_name, py_file)
                if spec is None or spec.loader is None:
                    logger.warning("Could not create module spec for %s", py_file)
                    continue
                module = importlib.util.module_from_spec(spec)
                sys.modules[module_name] = module
                spec.loader.exec_module(module)
            except Exception:
                logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
                sys.modules.pop(module_name, None)
                continue

            for _attr_name, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module_name or not self._has_hook_impls(obj):
                    continue
                try:
                    self._pm.register(obj(), name=f"{module_name}.{obj.__name__}")
                except Exception:
                    logger.warning(
                        "Failed to instantiate plugin class %s from %s",
                        obj.__name__,
                        py_file,
                        exc_info=True,
                    )
                    continue
                logger.debug("Loaded local plugin %s from %s", obj.__name__, py_file)

    def _normalize_plugin_instances(self) -> None:
        """Replace plugin classes registered by entry points with instances.

        Hook dispatch against a class object leaves ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s", plugin_name, exc_info=True
                )
                continue
            self._pm.register(instance, name=plugin_name)

    def _register_plugin_properties(self, plugin: object, plugin_name: str) -> None:
        """Add the properties exposed by one plugin to the registry."""
        hook = getattr(plugin, "register_properties", None)
        if hook is None:
            return

        try:
            factories = hook()
        except Exception:
            logger.warning(
                "Failed to collect properties from plugin %s", plugin_name, exc_info=True
            )
            return

        if factories is None:
            return
        if not isinstance(factories, dict):
            logger.warning("Plugin %s returned non-dict property registrations", plugin_name)
            return

        for name, factory in factories.items():
            try:
                self.registry.register(name, factory)
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping property %r from plugin %s", name, plugin_name, exc_info=True
                )

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("fusegraph")`` sets a ``fusegraph_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "fusegraph_impl", None):
                return True
        return False
