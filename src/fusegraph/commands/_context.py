"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Owns the lazily built plugin manager, graph loading
for command arguments, and result emission (stdout/stderr routing plus
exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from fusegraph.domain.errors import GraphIntegrityError
from fusegraph.output.formatters import OutputSettings, format_result
from fusegraph.services.result import INVALID_GRAPH, ServiceResult

if TYPE_CHECKING:
    from pathlib import Path

    from fusegraph.config.settings import FusegraphSettings
    from fusegraph.domain.graph import Graph
    from fusegraph.plugins.manager import PluginManager


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Plugins are discovered on first use so ``--help`` and ``--version``
    never import third-party plugin code.
    """

    def __init__(self, settings: FusegraphSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        from fusegraph.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from fusegraph.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager, with built-ins and discovered plugins loaded."""
        if self._plugins is None:
            from fusegraph.plugins.builtins.fusion import FusionPlugin
            from fusegraph.plugins.manager import PluginManager

            pm = PluginManager()
            pm.register_plugin(FusionPlugin(self.settings.elemwise), name="fusion")
            if self.settings.plugins.enabled:
                pm.discover_and_load(local_dir=self.settings.plugin_dir())
            else:
                pm.discover_and_load(entry_points=False)
            self._plugins = pm
        return self._plugins

    def read_graph(self, path: Path, *, op: str) -> Graph:
        """Load a graph document, emitting an ``INVALID_GRAPH`` failure on error."""
        from fusegraph.infrastructure.graph.document import load_graph

        try:
            return load_graph(path)
        except (OSError, ValidationError, GraphIntegrityError) as exc:
            failure = ServiceResult.failure(op, INVALID_GRAPH, f"Cannot load {path}: {exc}")
        self.emit(failure)
        raise SystemExit(1)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they do not
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # JSON payloads already carry their warnings.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
