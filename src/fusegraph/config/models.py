"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``fusegraph.toml`` only holds
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_ELEMWISE_OPS: tuple[str, ...] = (
    "ADD",
    "SUB",
    "MUL",
    "DIV",
    "NEG",
    "EXP",
    "BIAS_ADD",
    "RELU",
    "GELU",
    "SIGMOID",
    "TANH",
)


class RewriteConfig(BaseModel):
    """[rewrite] section."""

    model_config = {"frozen": True}

    property: str | None = None
    verify: bool = True


class ElemwiseConfig(BaseModel):
    """[elemwise] section — tuning for the built-in ``elemwise`` property."""

    model_config = {"frozen": True}

    ops: list[str] = Field(default_factory=lambda: list(DEFAULT_ELEMWISE_OPS))
    min_size: int = Field(default=2, ge=1)
    max_size: int | None = Field(default=None, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".fusegraph/plugins"


class FusegraphConfig(BaseModel):
    """Root config model matching the full ``fusegraph.toml`` structure."""

    model_config = {"frozen": True}

    rewrite: RewriteConfig = Field(default_factory=RewriteConfig)
    elemwise: ElemwiseConfig = Field(default_factory=ElemwiseConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
