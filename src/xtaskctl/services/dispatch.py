"""TaskEngine: recursive, confirmation-aware task dispatch.

One dispatch walks ``Warn -> Confirm -> Expand -> Execute``:

* the filter-ignored warning is evaluated once, at the top-level call;
* mutating steps resolve the invocation's :class:`Confirmation`, read-only
  steps never prompt;
* composite subcommands fan out to their leaves with the composite's
  answer, ``all-packages`` fans out to crates then examples;
* every external invocation runs inside one log group and the first
  :class:`ExecutionError` aborts the whole tree.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from xtaskctl.domain.environment import ExecutionEnvironment
from xtaskctl.domain.errors import XtaskError
from xtaskctl.domain.filters import ignored_filters_warning, included
from xtaskctl.domain.targets import Target, expand_target
from xtaskctl.infrastructure.cargo import Tool, ensure_installed, host_triple
from xtaskctl.infrastructure.process import append_trailing
from xtaskctl.infrastructure.workspace import MemberKind
from xtaskctl.services.catalog import HOST_PLACEHOLDER, CommandSpec, Granularity, Step
from xtaskctl.services.confirm import Confirmation
from xtaskctl.services.telemetry import trace_span

if TYPE_CHECKING:
    from xtaskctl.infrastructure.process import ProcessRunner
    from xtaskctl.infrastructure.workspace import Workspace
    from xtaskctl.output.console import LogGroups

logger = logging.getLogger(__name__)

_MEMBER_KINDS: dict[Target, MemberKind] = {
    Target.CRATES: MemberKind.CRATE,
    Target.EXAMPLES: MemberKind.EXAMPLE,
}

SKIP_DECLINED = "declined"
SKIP_FILTERED = "filtered"


@dataclass(frozen=True)
class InvocationContext:
    """Per-invocation inputs shared by every recursive dispatch call."""

    target: Target
    exclude: frozenset[str]
    only: frozenset[str]
    confirmation: Confirmation
    options: Mapping[str, Any] = field(default_factory=dict)
    environment: ExecutionEnvironment = ExecutionEnvironment.STD

    @classmethod
    def create(
        cls,
        target: Target = Target.WORKSPACE,
        *,
        exclude: Iterable[str] = (),
        only: Iterable[str] = (),
        confirmation: Confirmation | None = None,
        options: Mapping[str, Any] | None = None,
        environment: ExecutionEnvironment = ExecutionEnvironment.STD,
    ) -> InvocationContext:
        return cls(
            target=target,
            exclude=frozenset(exclude),
            only=frozenset(only),
            confirmation=confirmation or Confirmation(),
            options=dict(options or {}),
            environment=environment,
        )


@dataclass
class DispatchReport:
    """What ran and what did not, in execution order."""

    executed: list[dict[str, str]] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def ran(self, step: str, scope: str) -> None:
        self.executed.append({"step": step, "scope": scope})

    def skip(self, step: str, scope: str, reason: str) -> None:
        self.skipped.append({"step": step, "scope": scope, "reason": reason})

    def to_data(self) -> dict[str, Any]:
        return {"executed": list(self.executed), "skipped": list(self.skipped)}


Installer = Callable[..., None]


class TaskEngine:
    """Dispatch catalog steps against a workspace."""

    def __init__(
        self,
        runner: ProcessRunner,
        workspace: Workspace,
        groups: LogGroups,
        *,
        host: Callable[[], str] = host_triple,
        installer: Installer = ensure_installed,
        cargo: str = "cargo",
    ) -> None:
        self._runner = runner
        self._workspace = workspace
        self._groups = groups
        self._host = host
        self._host_value: str | None = None
        self._installer = installer
        self._cargo = cargo
        self._installed: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(
        self,
        command: CommandSpec,
        subcommand: StrEnum | str | None,
        context: InvocationContext,
        *,
        answer: bool | None = None,
        report: DispatchReport | None = None,
    ) -> DispatchReport:
        """Run *command* / *subcommand* for *context*.

        Pass *report* to accumulate several dispatches (``validate``);
        pass *answer* when an outer caller already decided.

        Raises:
            ExecutionError: the first external invocation that failed.
        """
        report = report if report is not None else DispatchReport()
        self._warn(command, subcommand, context, report)
        self._dispatch(command, subcommand, context, answer, report)
        return report

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _warn(
        self,
        command: CommandSpec,
        subcommand: StrEnum | str | None,
        context: InvocationContext,
        report: DispatchReport,
    ) -> None:
        if not command.targeted or context.target is not Target.WORKSPACE:
            return
        honors = (
            not command.is_composite(subcommand)
            and command.step_for(subcommand).honors_workspace_exclude
        )
        warning = ignored_filters_warning(
            exclude=context.exclude,
            only=context.only,
            honors_workspace_exclude=honors,
        )
        if warning:
            logger.warning(warning)
            report.warnings.append(warning)

    def _dispatch(
        self,
        command: CommandSpec,
        subcommand: StrEnum | str | None,
        context: InvocationContext,
        answer: bool | None,
        report: DispatchReport,
    ) -> None:
        if command.is_composite(subcommand):
            if answer is None and command.composite_mutates():
                answer = context.confirmation.resolve(command.composite_prompt)
            for leaf in command.leaves():
                self._dispatch(command, leaf, context, answer, report)
            return

        step = command.step_for(subcommand)
        label = command.name if subcommand is None else f"{command.name} {step.name}"
        forwarded = command.forwarded_args(context.options)
        if forwarded:
            step = replace(
                step,
                workspace_args=tuple(append_trailing(step.workspace_args, forwarded)),
                package_args=tuple(append_trailing(step.package_args, forwarded)),
            )
        if step.granularity is Granularity.GLOBAL:
            self._run_global(step, label, context, answer, report)
        else:
            self._run_targeted(step, label, context.target, context, answer, report)

    def _confirm(
        self,
        step: Step,
        target: Target | None,
        context: InvocationContext,
        answer: bool | None,
    ) -> bool:
        """Whether *step* may run; read-only steps only honor an explicit no."""
        if not step.mutating:
            return answer is not False
        return context.confirmation.resolve(step.prompt(target), answer)

    def _run_global(
        self,
        step: Step,
        label: str,
        context: InvocationContext,
        answer: bool | None,
        report: DispatchReport,
    ) -> None:
        if not self._confirm(step, None, context, answer):
            report.skip(label, "global", SKIP_DECLINED)
            return
        self._execute(step, label, step.title, "global", report)

    def _run_targeted(
        self,
        step: Step,
        label: str,
        target: Target,
        context: InvocationContext,
        answer: bool | None,
        report: DispatchReport,
    ) -> None:
        match target:
            case Target.WORKSPACE:
                if not self._confirm(step, target, context, answer):
                    report.skip(label, target, SKIP_DECLINED)
                    return
                excluded = sorted(context.exclude) if step.honors_workspace_exclude else []
                title = f"{step.title} Workspace"
                self._execute(step, label, title, target, report, excluded=excluded)
            case Target.CRATES | Target.EXAMPLES:
                if not self._confirm(step, target, context, answer):
                    report.skip(label, target, SKIP_DECLINED)
                    return
                for member in self._workspace.members(_MEMBER_KINDS[target]):
                    if not included(member.name, context.exclude, context.only):
                        report.skip(label, member.name, SKIP_FILTERED)
                        continue
                    title = f"{step.title}: {member.name}"
                    self._execute(step, label, title, member.name, report, package=member.name)
            case Target.ALL_PACKAGES:
                if step.mutating and answer is None:
                    answer = context.confirmation.resolve(step.prompt(target))
                for sub_target in expand_target(target):
                    self._run_targeted(step, label, sub_target, context, answer, report)
            case _:
                msg = f"Unsupported target '{target}' for '{label}'"
                raise XtaskError(msg, detail={"target": str(target), "step": label})

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(
        self,
        step: Step,
        label: str,
        title: str,
        scope: str,
        report: DispatchReport,
        *,
        package: str | None = None,
        excluded: Iterable[str] = (),
    ) -> None:
        if step.requires is not None:
            self._ensure(step.requires)
        with (
            structlog.contextvars.bound_contextvars(step=label, scope=str(scope)),
            trace_span(f"{label}:{scope}", program=step.program, scope=str(scope)),
            self._groups.group(title),
        ):
            if package is not None:
                args = self._expand(step.package_args)
                error = f"{step.error} for {package}"
                self._runner.run_for_package(step.program, package, args, error, env=step.env)
            elif step.granularity is Granularity.GLOBAL:
                args = self._expand(step.workspace_args)
                self._runner.run(step.program, args, step.error, env=step.env)
            else:
                args = self._expand(step.workspace_args)
                self._runner.run_for_workspace(
                    step.program, args, step.error, excluded=excluded, env=step.env
                )
        report.ran(label, str(scope))

    def _ensure(self, tool: Tool) -> None:
        if tool.binary in self._installed:
            return
        self._installer(self._runner, tool, cargo=self._cargo)
        self._installed.add(tool.binary)

    def _expand(self, args: Iterable[str]) -> list[str]:
        args = list(args)
        if HOST_PLACEHOLDER not in args:
            return args
        if self._host_value is None:
            self._host_value = self._host()
        return [self._host_value if arg == HOST_PLACEHOLDER else arg for arg in args]
