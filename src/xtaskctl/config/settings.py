"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. CLI flags set on the root group (``--yes``, ``--verbose``, ...)
  2. ``XTASKCTL_*`` env vars, ``__`` for nested sections
     (``XTASKCTL_WORKSPACE__CARGO=cargo-nightly``)
  3. ``xtaskctl.toml`` discovered via walk-up
  4. Defaults baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`xtaskctl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from xtaskctl.config.discovery import find_config, find_workspace_root
from xtaskctl.config.models import OutputConfig, PluginsConfig, WorkspaceConfig
from xtaskctl.domain.environment import ExecutionEnvironment


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``xtaskctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class XtaskSettings(BaseSettings):
    """Unified settings for the entire xtaskctl CLI.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        workspace_root: Directory tasks run from (parent of
            ``xtaskctl.toml``, else the Cargo workspace root, else CWD).
        config_path: The config file in use, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "XTASKCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Derived from the config location, never read from TOML ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False
    assume_yes: bool = False
    execution_environment: ExecutionEnvironment = ExecutionEnvironment.STD

    # --- TOML sections ---
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
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
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> XtaskSettings:
        """Construct settings from CLI invocation.

        Discovers ``xtaskctl.toml`` via walk-up (or explicit *config_path*),
        resolves *workspace_root* from the config file's parent directory
        (else the enclosing Cargo workspace, else the CWD),
        and merges CLI flags as highest-priority overrides. Flags left at
        ``False`` do not override env vars or the config file.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(workspace_root)

        resolved_root = workspace_root
        if resolved_root is None and toml_path is not None:
            resolved_root = toml_path.parent.resolve()
        if resolved_root is None:
            resolved_root = find_workspace_root() or Path.cwd()

        overrides = {key: value for key, value in cli_flags.items() if value}

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root,
                config_path=toml_path,
                **overrides,
            )
        finally:
            _tls.toml_path = None

    @property
    def plugin_dir(self) -> Path:
        """Local plugin directory, resolved against the workspace root."""
        return self.workspace_root / self.plugins.local_dir
