"""Project and config discovery.

A fusegraph project is the nearest directory, walking up from the working
directory, that holds either ``fusegraph.toml`` or a ``.fusegraph/``
directory (local plugins live in ``.fusegraph/plugins/``). The walk stops
at the first such directory, so a parent project's config never leaks into
a nested one. ``FUSEGRAPH_CONFIG`` names the config file directly.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fusegraph.config.models import FusegraphConfig

CONFIG_FILENAME = "fusegraph.toml"
CONFIG_ENV_VAR = "FUSEGRAPH_CONFIG"
PROJECT_DIRNAME = ".fusegraph"


@dataclass(frozen=True)
class ProjectLocation:
    """Root directory of a project and the config file found there, if any."""

    root: Path
    config_path: Path | None = None


def locate_project(start: Path | None = None) -> ProjectLocation:
    """Find the project enclosing *start* (default: cwd).

    Without a marker anywhere up the tree the project root is *start*
    itself. When ``FUSEGRAPH_CONFIG`` is set the walk is skipped; a path
    there that does not exist means no config file at all.
    """
    origin = (start or Path.cwd()).resolve()

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return ProjectLocation(root=p.parent, config_path=p)
        return ProjectLocation(root=origin)

    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return ProjectLocation(root=directory, config_path=candidate)
        if (directory / PROJECT_DIRNAME).is_dir():
            return ProjectLocation(root=directory)
    return ProjectLocation(root=origin)


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file governing *start*, or None."""
    return locate_project(start).config_path


def read_config_data(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        tomllib.TOMLDecodeError: The file is not valid TOML.
    """
    return tomllib.loads(path.read_text(encoding="utf-8"))


def load_config(path: Path | None = None, cwd: Path | None = None) -> FusegraphConfig:
    """Load and validate the config at *path*, or the one governing *cwd*.

    Returns the defaults if there is no config file.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return FusegraphConfig()
    return FusegraphConfig.model_validate(read_config_data(path))
