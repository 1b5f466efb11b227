"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``FUSEGRAPH_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``fusegraph.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

The property used by a rewrite is resolved here, once, before any graph
is touched: ``--property`` / ``FUSEGRAPH_PROPERTY`` first, then
``[rewrite] property`` from the TOML file.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from fusegraph.config.discovery import locate_project, read_config_data
from fusegraph.config.models import ElemwiseConfig, PluginsConfig, RewriteConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``fusegraph.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = read_config_data(toml_path)
            except tomllib.TOMLDecodeError as exc:
                import click

                raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class FusegraphSettings(BaseSettings):
    """Unified, frozen settings for the fusegraph CLI.

    Attributes:
        root: Directory of the discovered ``fusegraph.toml``, or CWD.
        config_path: The TOML file in use, if any.
        property: Property name chosen on the command line or through
            ``FUSEGRAPH_PROPERTY``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FUSEGRAPH_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved paths ---
    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    property: str | None = None

    # --- TOML sections ---
    rewrite: RewriteConfig = Field(default_factory=RewriteConfig)
    elemwise: ElemwiseConfig = Field(default_factory=ElemwiseConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> FusegraphSettings:
        """Construct settings from a CLI invocation.

        Locates the enclosing project (or uses the explicit *config_path*),
        takes *root* from the project directory unless given, and merges
        CLI flags as highest-priority overrides. Flags passed as None are
        dropped so they do not mask env vars or TOML values.
        """
        if config_path:
            p = Path(config_path)
            toml_path = p if p.is_file() else None
            project_root = p.parent if toml_path else Path.cwd()
        else:
            location = locate_project(root)
            toml_path, project_root = location.config_path, location.root

        resolved_root = root if root is not None else project_root

        overrides = {k: v for k, v in cli_flags.items() if v is not None}
        _tls.toml_path = toml_path
        try:
            return cls(root=resolved_root, config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None

    def resolve_property(self) -> str | None:
        """Return the property name to activate, or None if none is configured."""
        return self.property or self.rewrite.property

    def plugin_dir(self) -> Path:
        """Absolute directory scanned for local single-file plugins."""
        local = Path(self.plugins.local_dir)
        return local if local.is_absolute() else self.root / local
