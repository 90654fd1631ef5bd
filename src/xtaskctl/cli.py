"""Root CLI group for xtaskctl with global flags and command registration.

The command list depends on ``xtaskctl.toml`` and on plugins, so the root
group resolves it lazily from the parsed global flags and caches it on the
root context together with the :class:`AppContext`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

from xtaskctl import __version__
from xtaskctl.commands import commands_for
from xtaskctl.commands._base import XtaskGroup
from xtaskctl.commands._context import AppContext
from xtaskctl.config.settings import XtaskSettings
from xtaskctl.domain.environment import ENVIRONMENTS
from xtaskctl.domain.errors import CompositionError

_APP_KEY = "xtaskctl.app"
_COMMANDS_KEY = "xtaskctl.commands"

_FLAGS = ("json_output", "quiet", "verbose", "log_json", "no_interact", "assume_yes")


def app_context(ctx: click.Context) -> AppContext:
    """The invocation's AppContext, created from the root group's flags."""
    root = ctx.find_root()
    app = root.meta.get(_APP_KEY)
    if app is None:
        params = root.params
        settings = XtaskSettings.from_cli(
            config_path=params.get("config_path"),
            execution_environment=params.get("execution_environment"),
            **{flag: bool(params.get(flag, False)) for flag in _FLAGS},
        )
        extra = getattr(root.command, "extra_plugins", ())
        app = AppContext(settings, extra_plugins=extra)
        root.meta[_APP_KEY] = app
    return app


class XtaskctlCLI(XtaskGroup):
    """Root group whose subcommands come from the composed surface."""

    def __init__(self, *args: Any, extra_plugins: Sequence[object] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.extra_plugins = tuple(extra_plugins)

    def list_commands(self, ctx: click.Context) -> list[str]:
        return list(self._surface_commands(ctx))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return self._surface_commands(ctx).get(cmd_name)

    def _surface_commands(self, ctx: click.Context) -> dict[str, click.Command]:
        root = ctx.find_root()
        commands = root.meta.get(_COMMANDS_KEY)
        if commands is None:
            try:
                commands = commands_for(app_context(ctx).surface)
            except CompositionError as exc:
                raise click.ClickException(exc.message) from exc
            root.meta[_COMMANDS_KEY] = commands
        return commands


_CLI_EXAMPLES = """\
  xtaskctl check
  xtaskctl check --target crates --only alpha,beta compile
  xtaskctl --yes fix --target all-packages format
  xtaskctl --json test unit
  xtaskctl -e no-std build
  xtaskctl validate"""


def build_cli(*, plugins: Sequence[object] = ()) -> click.Group:
    """Create the root group; *plugins* are registered on top of discovery."""

    @click.group(
        "xtaskctl",
        cls=XtaskctlCLI,
        invoke_without_command=True,
        extra_plugins=plugins,
        examples=_CLI_EXAMPLES,
    )
    @click.version_option(version=__version__, prog_name="xtaskctl")
    @click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
    @click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
    @click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
    @click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
    @click.option(
        "--no-interact", is_flag=True, help="Non-interactive mode (prompts answer no)."
    )
    @click.option(
        "-y", "--yes", "assume_yes", is_flag=True, help="Answer yes to every confirmation."
    )
    @click.option(
        "-e",
        "--execution-environment",
        type=click.Choice(ENVIRONMENTS.names()),
        default=None,
        help="Set execution environment.  [default: std]",
    )
    @click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
    @click.pass_context
    def cli(
        ctx: click.Context,
        json_output: bool,
        quiet: bool,
        verbose: bool,
        log_json: bool,
        no_interact: bool,
        assume_yes: bool,
        execution_environment: str | None,
        config_path: str | None,
    ) -> None:
        """xtaskctl: task runner for Cargo workspaces."""
        ctx.obj = app_context(ctx)
        if ctx.invoked_subcommand is None:
            click.echo(ctx.get_help())

    return cli


cli = build_cli()
