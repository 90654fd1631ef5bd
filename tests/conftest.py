"""Shared pytest fixtures for xtaskctl tests.

External processes never run in tests: the engine-level fixtures record
what would have been executed, and CLI tests patch ``subprocess.run``.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from xtaskctl.domain.errors import ExecutionError
from xtaskctl.infrastructure.workspace import MemberKind, WorkspaceMember
from xtaskctl.services.dispatch import TaskEngine
from xtaskctl.services.telemetry import disable_telemetry

HOST = "x86_64-unknown-linux-gnu"


class RecordingRunner:
    """ProcessRunner stand-in: records calls, fails when ``fail_when`` matches."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail_when: Callable[[dict[str, Any]], bool] | None = None

    def _record(self, call: dict[str, Any], error_message: str) -> None:
        self.calls.append(call)
        if self.fail_when is not None and self.fail_when(call):
            raise ExecutionError(error_message, detail={"command": call["program"]})

    def run(self, program, args, error_message, *, env=None, context=None) -> None:
        self._record(
            {"scope": "global", "program": program, "args": list(args), "env": dict(env or {})},
            error_message,
        )

    def run_for_workspace(self, program, args, error_message, *, excluded=(), env=None) -> None:
        self._record(
            {
                "scope": "workspace",
                "program": program,
                "args": list(args),
                "excluded": list(excluded),
                "env": dict(env or {}),
            },
            error_message,
        )

    def run_for_package(self, program, package, args, error_message, *, env=None) -> None:
        self._record(
            {"scope": package, "program": program, "args": list(args), "env": dict(env or {})},
            error_message,
        )


class FakeWorkspace:
    """Workspace stand-in with fixed crates and examples."""

    def __init__(self, crates: list[str], examples: list[str]) -> None:
        self._members = [
            *(WorkspaceMember(n, Path(f"crates/{n}/Cargo.toml"), MemberKind.CRATE) for n in crates),
            *(
                WorkspaceMember(n, Path(f"examples/{n}/Cargo.toml"), MemberKind.EXAMPLE)
                for n in examples
            ),
        ]
        self.queries: list[MemberKind | None] = []

    def members(self, kind: MemberKind | None = None) -> list[WorkspaceMember]:
        self.queries.append(kind)
        return [m for m in self._members if kind is None or m.kind is kind]


class RecordingGroups:
    """LogGroups stand-in that checks open/close pairing."""

    def __init__(self) -> None:
        self.titles: list[str] = []
        self.depth = 0

    @contextmanager
    def group(self, title: str) -> Iterator[None]:
        self.titles.append(title)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


class RecordingPrompter:
    """Prompter returning a fixed answer and remembering every prompt."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo logging and telemetry setup done by AppContext."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    xtask_level = logging.getLogger("xtaskctl").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("xtaskctl").setLevel(xtask_level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def workspace() -> FakeWorkspace:
    return FakeWorkspace(crates=["alpha", "beta", "gamma"], examples=["demo", "tour"])


@pytest.fixture
def groups() -> RecordingGroups:
    return RecordingGroups()


@pytest.fixture
def installed() -> list[str]:
    """Tools the engine asked to install, in order."""
    return []


@pytest.fixture
def engine(
    runner: RecordingRunner,
    workspace: FakeWorkspace,
    groups: RecordingGroups,
    installed: list[str],
) -> TaskEngine:
    def installer(_runner: Any, tool: Any, *, cargo: str = "cargo") -> None:
        installed.append(tool.binary)

    return TaskEngine(runner, workspace, groups, host=lambda: HOST, installer=installer)


@pytest.fixture
def prompter() -> RecordingPrompter:
    return RecordingPrompter(answer=True)


# ---------------------------------------------------------------------------
# CLI-level process fake
# ---------------------------------------------------------------------------


def cargo_metadata(root: Path, crates: list[str], examples: list[str]) -> str:
    """``cargo metadata`` JSON for a workspace with the given members."""
    packages = [
        {
            "name": name,
            "id": f"path+file://{root}/{folder}/{name}#0.1.0",
            "manifest_path": str(root / folder / name / "Cargo.toml"),
        }
        for folder, names in (("crates", crates), ("examples", examples))
        for name in names
    ]
    return json.dumps(
        {
            "packages": packages,
            "workspace_members": [p["id"] for p in packages],
            "workspace_root": str(root),
        }
    )


class FakeSubprocess:
    """Replacement for ``subprocess.run`` answering cargo metadata and rustc."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.commands: list[list[str]] = []
        self.failing: set[str] = set()
        self.crates = ["alpha", "beta"]
        self.examples = ["demo"]

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        if command[1:2] == ["metadata"]:
            stdout = cargo_metadata(self.root, self.crates, self.examples)
            return subprocess.CompletedProcess(command, 0, stdout=stdout, stderr="")
        if command[1:2] == ["-vV"]:
            return subprocess.CompletedProcess(command, 0, stdout=f"host: {HOST}\n", stderr="")
        self.commands.append(list(command))
        returncode = 1 if any(word in command for word in self.failing) else 0
        return subprocess.CompletedProcess(command, returncode)


@pytest.fixture
def fake_subprocess(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[FakeSubprocess]:
    """Run the CLI in an empty workspace with every subprocess faked.

    Tool binaries are reported as installed so no ``cargo install`` runs.
    """
    fake = FakeSubprocess(tmp_path)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(subprocess, "run", fake)
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.delenv("XTASKCTL_CONFIG", raising=False)
    monkeypatch.delenv("XTASKCTL_ASSUME_YES", raising=False)
    monkeypatch.delenv("XTASKCTL_EXECUTION_ENVIRONMENT", raising=False)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    yield fake


@pytest.fixture
def declining_prompter() -> RecordingPrompter:
    return RecordingPrompter(answer=False)
