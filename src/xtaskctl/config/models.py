"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, xtaskctl.toml only contains
overrides. A workspace that follows the usual layout needs no file at all.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# --- xtaskctl.toml sections ---


class WorkspaceConfig(BaseModel):
    """[workspace] section."""

    model_config = {"frozen": True}

    example_dirs: list[str] = Field(default_factory=lambda: ["examples"])
    # None exposes every base command in declared order.
    commands: list[str] | None = None
    cargo: str = "cargo"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".xtaskctl/plugins"


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = {"frozen": True}

    groups: Literal["auto", "github", "plain"] = "auto"
