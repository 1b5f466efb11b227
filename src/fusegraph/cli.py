"""Root CLI group for fusegraph with global flags and command registration."""

from __future__ import annotations

import click

from fusegraph import __version__
from fusegraph.commands import register_commands
from fusegraph.commands._base import FgGroup
from fusegraph.commands._context import AppContext
from fusegraph.config.settings import FusegraphSettings


@click.group(cls=FgGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="fusegraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """fusegraph — pattern-driven subgraph rewriting for dataflow graphs."""
    ctx.ensure_object(dict)
    settings = FusegraphSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
