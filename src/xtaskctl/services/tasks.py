"""TaskService: run catalog commands and report them as ServiceResults.

INVARIANT: every public method returns a ServiceResult. Execution and
composition failures become ``ok=False`` results that still list the steps
which ran before the failure.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from xtaskctl.domain.commands import Command
from xtaskctl.domain.errors import UnsupportedVariantError, XtaskError
from xtaskctl.domain.targets import Target
from xtaskctl.services.catalog import CATALOG, CommandSpec
from xtaskctl.services.dispatch import DispatchReport, InvocationContext, TaskEngine
from xtaskctl.services.result import ServiceError, ServiceResult
from xtaskctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from xtaskctl.domain.args import TaskArgs
    from xtaskctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


def _op(command: str, subcommand: object | None) -> str:
    return command if subcommand is None else f"{command} {subcommand}"


@dataclass(frozen=True)
class _Task:
    """What ``post_task`` observers are told about a finished task."""

    command: str
    subcommand: object | None
    target: object | None
    options: Mapping[str, Any]


class TaskService:
    """Handles task runs for base and host-only variants."""

    def __init__(
        self,
        engine: TaskEngine,
        *,
        plugins: PluginManager | None = None,
        specs: Mapping[str, CommandSpec] = CATALOG,
    ) -> None:
        self._engine = engine
        self._plugins = plugins
        self._specs = specs

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def run(
        self,
        spec: CommandSpec,
        subcommand: object | None,
        context: InvocationContext,
        *,
        options: Mapping[str, Any] | None = None,
    ) -> ServiceResult:
        """Dispatch one base command.

        *options* are every option value the CLI parsed, host-declared ones
        included; ``post_task`` observers receive them unfiltered.
        """
        op = _op(spec.name, subcommand)
        report = DispatchReport()
        task = _Task(spec.name, subcommand, context.target, options or context.options)
        try:
            with trace_span(op):
                self._engine.dispatch(spec, subcommand, context, report=report)
        except XtaskError as exc:
            return self._finish(op, task, context, report, error=exc)
        return self._finish(op, task, context, report)

    @traced
    def validate(self, context: InvocationContext) -> ServiceResult:
        """Run the validation plan on the whole workspace.

        The plan's steps share *context*'s confirmation; filters do not
        apply.
        """
        spec = self._specs[Command.VALIDATE]
        plan_context = InvocationContext.create(
            Target.WORKSPACE,
            confirmation=context.confirmation,
            environment=context.environment,
        )
        report = DispatchReport()
        task = _Task(spec.name, None, None, {})
        try:
            for command, subcommand in spec.plan:
                with trace_span(_op(command, subcommand)):
                    self._engine.dispatch(
                        self._specs[command], subcommand, plan_context, report=report
                    )
        except XtaskError as exc:
            return self._finish(spec.name, task, context, report, error=exc)
        return self._finish(spec.name, task, context, report)

    @traced
    def run_host(
        self,
        command: str,
        args: TaskArgs,
        context: InvocationContext,
        *,
        reason: UnsupportedVariantError | None = None,
    ) -> ServiceResult:
        """Hand a task with host-only variants to the ``run_task`` plugin hook.

        Reports UNSUPPORTED_VARIANT when no plugin handles it.
        """
        op = _op(command, args.subcommand)
        target = str(args.target) if args.target is not None else None
        subcommand = str(args.subcommand) if args.subcommand is not None else None
        report = DispatchReport()
        task = _Task(command, subcommand, target, args.options)
        handled: bool | None = None
        try:
            if self._plugins is not None:
                handled = self._plugins.run_task(
                    command=command,
                    subcommand=subcommand,
                    target=target,
                    exclude=sorted(context.exclude),
                    only=sorted(context.only),
                    answer=context.confirmation.answer,
                    options=dict(args.options),
                    environment=str(context.environment),
                )
            if not handled:
                if reason is None:
                    reason = UnsupportedVariantError(subcommand or target or command, command)
                raise reason
        except XtaskError as exc:
            return self._finish(op, task, context, report, error=exc)
        report.executed.append({"step": op, "scope": target or "host"})
        return self._finish(op, task, context, report)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _finish(
        self,
        op: str,
        task: _Task,
        context: InvocationContext,
        report: DispatchReport,
        *,
        error: XtaskError | None = None,
    ) -> ServiceResult:
        warnings = list(report.warnings)
        self._notify(task, context, ok=error is None, warnings=warnings)
        if error is not None:
            logger.debug("%s failed: %s", op, error.message)
            return ServiceResult(
                ok=False,
                op=op,
                data=report.to_data(),
                warnings=warnings,
                error=ServiceError.from_exception(error),
            )
        return ServiceResult(ok=True, op=op, data=report.to_data(), warnings=warnings)

    def _notify(
        self,
        task: _Task,
        context: InvocationContext,
        *,
        ok: bool,
        warnings: list[str],
    ) -> None:
        """Fire ``post_task``. INVARIANT: plugin failures are warnings."""
        if self._plugins is None:
            return
        try:
            self._plugins.post_task(
                command=task.command,
                subcommand=None if task.subcommand is None else str(task.subcommand),
                target=None if task.target is None else str(task.target),
                ok=ok,
                options=dict(task.options),
                environment=str(context.environment),
            )
        except Exception:
            logger.debug("post_task hook failed for %s", task.command, exc_info=True)
            warnings.append(f"post_task hook failed for {task.command}")
