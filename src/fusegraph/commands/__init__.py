"""Subcommand modules for fusegraph.

Provides register_commands() which uses deferred imports to keep
``fusegraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from fusegraph.commands.check import check
    from fusegraph.commands.properties import properties
    from fusegraph.commands.rewrite import rewrite

    cli.add_command(rewrite)
    cli.add_command(check)
    cli.add_command(properties)
