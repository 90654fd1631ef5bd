"""Tests for TaskService results, validate, and host-task routing."""

import pluggy
import pytest

from xtaskctl.domain.args import TaskArgs
from xtaskctl.domain.errors import ExecutionError, UnsupportedVariantError
from xtaskctl.domain.subcommands import CheckSubcommand, FixSubcommand
from xtaskctl.domain.targets import Target
from xtaskctl.plugins.manager import PluginManager
from xtaskctl.services.catalog import CATALOG, CHECK, FIX
from xtaskctl.services.confirm import Confirmation
from xtaskctl.services.dispatch import InvocationContext
from xtaskctl.services.tasks import TaskService

hookimpl = pluggy.HookimplMarker("xtaskctl")


class HostTasks:
    def __init__(self, handles: bool = True, fail: bool = False) -> None:
        self.handles = handles
        self.fail = fail
        self.calls: list[dict] = []
        self.finished: list[tuple] = []

    @hookimpl
    def run_task(self, command, subcommand, target, exclude, only, answer):
        self.calls.append(
            {
                "command": command,
                "subcommand": subcommand,
                "target": target,
                "exclude": exclude,
                "answer": answer,
            }
        )
        if self.fail:
            raise ExecutionError("frontend build failed")
        return True if self.handles else None

    @hookimpl
    def post_task(self, command, subcommand, target, ok):
        self.finished.append((command, subcommand, target, ok))


class BrokenObserver:
    @hookimpl
    def post_task(self, command, subcommand, target, ok):
        raise RuntimeError("observer down")


def _plugins(*plugins: object) -> PluginManager:
    manager = PluginManager()
    for plugin in plugins:
        manager.register_plugin(plugin)
    return manager


class TestRun:
    def test_success(self, engine) -> None:
        result = TaskService(engine).run(
            CHECK, CheckSubcommand.LINT, InvocationContext.create(Target.CRATES)
        )
        assert result.ok
        assert result.op == "check lint"
        assert [e["scope"] for e in result.data["executed"]] == ["alpha", "beta", "gamma"]
        assert result.data["skipped"] == []

    def test_failure_keeps_partial_report(self, engine, runner) -> None:
        runner.fail_when = lambda call: call["scope"] == "beta"
        result = TaskService(engine).run(
            CHECK, CheckSubcommand.FORMAT, InvocationContext.create(Target.CRATES)
        )
        assert not result.ok
        assert result.error.code == "EXECUTION_FAILED"
        assert result.data["executed"] == [{"step": "check format", "scope": "alpha"}]

    def test_warning_reported(self, engine) -> None:
        result = TaskService(engine).run(
            CHECK, CheckSubcommand.LINT, InvocationContext.create(only=["alpha"])
        )
        assert result.ok
        assert result.warnings == [
            "The --exclude and --only arguments are ignored when the target is 'workspace'."
        ]

    def test_declined_is_still_ok(self, engine, declining_prompter) -> None:
        context = InvocationContext.create(confirmation=Confirmation(declining_prompter))
        result = TaskService(engine).run(FIX, FixSubcommand.FORMAT, context)
        assert result.ok
        assert result.data["skipped"] == [
            {"step": "fix format", "scope": "workspace", "reason": "declined"}
        ]

    def test_post_task_notified(self, engine) -> None:
        host = HostTasks()
        TaskService(engine, plugins=_plugins(host)).run(
            CHECK, CheckSubcommand.LINT, InvocationContext.create()
        )
        assert host.finished == [("check", "lint", "workspace", True)]

    def test_post_task_failure_becomes_warning(self, engine) -> None:
        result = TaskService(engine, plugins=_plugins(BrokenObserver())).run(
            CHECK, CheckSubcommand.LINT, InvocationContext.create()
        )
        assert result.ok
        assert result.warnings == ["post_task hook failed for check"]


class TestValidate:
    def test_plan_order(self, engine, runner, groups) -> None:
        result = TaskService(engine).validate(InvocationContext.create())
        assert result.ok
        assert result.op == "validate"
        steps = [e["step"] for e in result.data["executed"]]
        assert steps == [
            "check audit",
            "check format",
            "check lint",
            "check typos",
            "compile",
            "test unit",
            "test integration",
            "doc build",
        ]
        assert all(call["scope"] in ("global", "workspace") for call in runner.calls)

    def test_filters_do_not_apply(self, engine, runner) -> None:
        context = InvocationContext.create(Target.CRATES, exclude=["alpha"], only=["beta"])
        result = TaskService(engine).validate(context)
        assert result.warnings == []
        compile_call = next(c for c in runner.calls if c["args"][:1] == ["check"])
        assert compile_call["excluded"] == []

    def test_stops_at_first_failure(self, engine, runner) -> None:
        runner.fail_when = lambda call: call["args"][:1] == ["check"]
        result = TaskService(engine).validate(InvocationContext.create())
        assert not result.ok
        assert result.data["executed"][-1]["step"] == "check typos"
        assert not any(call["args"][:1] == ["test"] for call in runner.calls)

    def test_never_prompts(self, engine, prompter) -> None:
        TaskService(engine).validate(
            InvocationContext.create(confirmation=Confirmation(prompter))
        )
        assert prompter.prompts == []


class TestRunHost:
    def test_handled(self, engine) -> None:
        host = HostTasks()
        service = TaskService(engine, plugins=_plugins(host))
        args = TaskArgs(target="frontend", subcommand="lint", exclude=("alpha",))
        result = service.run_host("check", args, InvocationContext.create(exclude=["alpha"]))
        assert result.ok
        assert result.op == "check lint"
        assert result.data["executed"] == [{"step": "check lint", "scope": "frontend"}]
        assert host.calls == [
            {
                "command": "check",
                "subcommand": "lint",
                "target": "frontend",
                "exclude": ["alpha"],
                "answer": None,
            }
        ]
        assert host.finished == [("check", "lint", "frontend", True)]

    def test_unhandled_reports_unsupported(self, engine) -> None:
        service = TaskService(engine, plugins=_plugins(HostTasks(handles=False)))
        reason = UnsupportedVariantError("frontend", "Target")
        result = service.run_host(
            "check", TaskArgs(target="frontend"), InvocationContext.create(), reason=reason
        )
        assert not result.ok
        assert result.error.code == "UNSUPPORTED_VARIANT"
        assert result.error.message == "frontend is not supported."

    def test_no_plugins(self, engine) -> None:
        result = TaskService(engine).run_host(
            "release", TaskArgs(), InvocationContext.create()
        )
        assert not result.ok
        assert result.error.message == "release is not supported."

    def test_plugin_failure(self, engine) -> None:
        host = HostTasks(fail=True)
        result = TaskService(engine, plugins=_plugins(host)).run_host(
            "build", TaskArgs(target="frontend"), InvocationContext.create()
        )
        assert not result.ok
        assert result.error.message == "frontend build failed"
        assert host.finished == [("build", None, "frontend", False)]


@pytest.mark.parametrize("name", ["check", "fix", "test", "dependencies", "vulnerabilities"])
def test_bare_composite_runs(engine, name: str) -> None:
    spec = CATALOG[name]
    result = TaskService(engine).run(
        spec,
        spec.composite,
        InvocationContext.create(confirmation=Confirmation(assume=True)),
    )
    assert result.ok
    assert result.op == f"{name} all"
