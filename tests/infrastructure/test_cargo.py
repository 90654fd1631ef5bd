"""Tests for tool installation and host triple lookup."""

import subprocess

import pytest

from xtaskctl.domain.errors import ExecutionError
from xtaskctl.infrastructure.cargo import Tool, ensure_installed, host_triple


class RunnerSpy:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def run(self, program, args, error_message, **kwargs) -> None:
        self.calls.append((program, list(args), error_message))


class TestEnsureInstalled:
    def test_skips_when_on_path(self, monkeypatch) -> None:
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        runner = RunnerSpy()
        ensure_installed(runner, Tool("typos", "typos-cli"))
        assert runner.calls == []

    def test_installs_missing_tool(self, monkeypatch) -> None:
        monkeypatch.setattr("shutil.which", lambda name: None)
        runner = RunnerSpy()
        ensure_installed(runner, Tool("cargo-audit", "cargo-audit", features="fix"), cargo="cargo")
        assert runner.calls == [
            (
                "cargo",
                ["install", "cargo-audit", "--locked", "--features", "fix"],
                "Failed to install cargo-audit",
            )
        ]

    def test_pinned_version(self, monkeypatch) -> None:
        monkeypatch.setattr("shutil.which", lambda name: None)
        runner = RunnerSpy()
        ensure_installed(runner, Tool("cargo-deny", "cargo-deny", version="0.16.1"))
        assert runner.calls[0][1] == ["install", "cargo-deny", "--locked", "--version", "0.16.1"]


class TestHostTriple:
    def _fake(self, monkeypatch, stdout: str = "", error: Exception | None = None) -> None:
        def run(command, **kwargs):
            if error is not None:
                raise error
            return subprocess.CompletedProcess(command, 0, stdout=stdout, stderr="")

        monkeypatch.setattr(subprocess, "run", run)

    def test_parses_host_line(self, monkeypatch) -> None:
        self._fake(
            monkeypatch,
            "rustc 1.80.0 (051478957 2024-07-21)\nbinary: rustc\n"
            "host: aarch64-apple-darwin\nrelease: 1.80.0\n",
        )
        assert host_triple() == "aarch64-apple-darwin"

    def test_missing_host_line(self, monkeypatch) -> None:
        self._fake(monkeypatch, "rustc 1.80.0\n")
        with pytest.raises(ExecutionError, match="did not report"):
            host_triple()

    def test_rustc_missing(self, monkeypatch) -> None:
        self._fake(monkeypatch, error=FileNotFoundError("rustc"))
        with pytest.raises(ExecutionError, match="rustc -vV"):
            host_triple()
