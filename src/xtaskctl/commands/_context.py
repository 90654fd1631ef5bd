"""AppContext: shared Click context for all commands.

Created once per invocation, before the root group resolves its
subcommand, because the command list itself depends on configuration and
plugins. Provides the composed surface, lazy task-service construction,
the invocation's single :class:`Confirmation`, and centralized result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

import click

from xtaskctl.domain.commands import Command
from xtaskctl.domain.environment import ExecutionEnvironment
from xtaskctl.domain.errors import UnsupportedVariantError
from xtaskctl.domain.targets import Target
from xtaskctl.output.formatters import OutputSettings, format_result
from xtaskctl.services.confirm import Confirmation
from xtaskctl.services.dispatch import InvocationContext

if TYPE_CHECKING:
    from xtaskctl.config.settings import XtaskSettings
    from xtaskctl.domain.args import TaskArgs
    from xtaskctl.plugins.manager import PluginManager
    from xtaskctl.services.result import ServiceResult
    from xtaskctl.services.surface import Surface
    from xtaskctl.services.tasks import TaskService

logger = logging.getLogger(__name__)


def _assume(settings: XtaskSettings) -> bool | None:
    """Non-interactive answer: ``--yes`` wins over ``--no-interact``."""
    if settings.assume_yes:
        return True
    if settings.no_interact:
        return False
    return None


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``. The task service is
    created lazily so ``--help`` and ``--version`` never touch cargo.
    """

    def __init__(
        self,
        settings: XtaskSettings,
        *,
        plugins: PluginManager | None = None,
        extra_plugins: Iterable[object] = (),
    ) -> None:
        self.settings = settings
        self._surface: Surface | None = None
        self._tasks: TaskService | None = None
        self.confirmation = Confirmation(assume=_assume(settings))

        # Configure structured logging
        from xtaskctl.config.logging import configure_logging
        from xtaskctl.output.console import resolve_group_style

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
            github=resolve_group_style(settings.output.groups) == "github",
        )
        logger.debug("Execution environment: %s", self.execution_environment)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from xtaskctl.services.telemetry import enable_telemetry

            enable_telemetry()

        self.plugins = plugins or self._load_plugins(extra_plugins)

    @property
    def execution_environment(self) -> ExecutionEnvironment:
        """Environment chosen with ``-e`` (or config), ``std`` by default."""
        return self.settings.execution_environment

    def _load_plugins(self, extra_plugins: Iterable[object]) -> PluginManager:
        from xtaskctl.plugins.manager import PluginManager

        manager = PluginManager()
        if self.settings.plugins.enabled:
            names = manager.discover_and_load(local_dir=self.settings.plugin_dir)
            logger.debug("Loaded plugins: %s", names)
        for plugin in extra_plugins:
            manager.register_plugin(plugin)
        return manager

    @property
    def surface(self) -> Surface:
        """The composed command surface (built on first access).

        Raises:
            CompositionError: configuration or plugins declare an invalid
                vocabulary.
        """
        if self._surface is None:
            from xtaskctl.services.surface import compose_surface

            self._surface = compose_surface(
                commands=self.settings.workspace.commands,
                targets=self.plugins.collect_targets(),
                subcommands=self.plugins.collect_subcommands(),
                cli_commands=self.plugins.collect_cli_commands(),
                options=self.plugins.collect_command_options(),
            )
        return self._surface

    @property
    def tasks(self) -> TaskService:
        """The task service (created lazily on first access)."""
        if self._tasks is None:
            from xtaskctl.infrastructure.process import ProcessRunner
            from xtaskctl.infrastructure.workspace import Workspace
            from xtaskctl.output.console import LogGroups
            from xtaskctl.services.dispatch import TaskEngine
            from xtaskctl.services.tasks import TaskService

            root = self.settings.workspace_root
            config = self.settings.workspace
            engine = TaskEngine(
                ProcessRunner(root),
                Workspace(root, cargo=config.cargo, example_dirs=config.example_dirs),
                LogGroups(self.settings.output.groups, err=self.settings.json_output),
                cargo=config.cargo,
            )
            self._tasks = TaskService(engine, plugins=self.plugins)
        return self._tasks

    def run_task(self, command: str, args: TaskArgs) -> ServiceResult:
        """Run *command* with CLI-parsed *args*.

        Base variants go to the task service; anything host-only is handed
        to the ``run_task`` plugin hook.
        """
        surface = self.surface
        spec = surface.spec(command)
        if spec is None:
            msg = f"Command '{command}' has no task definition"
            raise click.ClickException(msg)
        try:
            base = args.downcast(
                targets=surface.targets,
                subcommands=surface.subcommands_for(command),
                options=spec.option_names(),
            )
        except UnsupportedVariantError as exc:
            context = self._invocation(Target.WORKSPACE, args)
            return self.tasks.run_host(command, args, context, reason=exc)

        context = self._invocation(base.target or Target.WORKSPACE, base)
        if command == Command.VALIDATE:
            return self.tasks.validate(context)
        return self.tasks.run(spec, base.subcommand, context, options=args.options)

    def _invocation(self, target: Target, args: TaskArgs) -> InvocationContext:
        return InvocationContext.create(
            target,
            exclude=args.exclude,
            only=args.only,
            confirmation=self.confirmation,
            options=args.options,
            environment=self.execution_environment,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
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
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
