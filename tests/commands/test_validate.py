"""CLI tests for ``validate`` and the untargeted commands."""

from __future__ import annotations

from xtaskctl.cli import cli

HOST = "x86_64-unknown-linux-gnu"

VALIDATE_PLAN = [
    ["cargo", "audit", "-q", "--color", "always"],
    ["cargo", "fmt", "--check"],
    ["cargo", "clippy", "--no-deps", "--color=always", "--", "--deny", "warnings"],
    ["typos", "--color", "always"],
    ["cargo", "check", "--workspace"],
    ["cargo", "test", "--workspace", "--lib", "--bins", "--color", "always"],
    ["cargo", "test", "--workspace", "--test", "*", "--color", "always"],
    ["cargo", "doc", "--workspace", "--no-deps"],
]


class TestValidate:
    def test_runs_plan_in_order(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["validate"])
        assert result.exit_code == 0, result.output
        assert fake_subprocess.commands == VALIDATE_PLAN
        assert result.stdout.splitlines()[0] == "OK  validate"
        assert "Do you want to proceed?" not in result.output

    def test_stops_on_failure(self, cli_runner, fake_subprocess) -> None:
        fake_subprocess.failing = {"--lib"}
        result = cli_runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "ERROR  validate - Unit tests failed" in result.stderr
        assert fake_subprocess.commands == VALIDATE_PLAN[:6]

    def test_accepts_no_target(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["validate", "--target", "crates"])
        assert result.exit_code == 2


class TestUntargeted:
    def test_dependencies_all(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["dependencies"])
        assert result.exit_code == 0, result.output
        assert fake_subprocess.commands == [
            ["cargo", "deny", "check"],
            ["cargo", "+nightly", "udeps"],
        ]

    def test_dependencies_rejects_target(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["dependencies", "--target", "crates", "deny"])
        assert result.exit_code == 2
        assert fake_subprocess.commands == []

    def test_sanitizer_uses_host_triple(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["vulnerabilities", "thread-sanitizer"])
        assert result.exit_code == 0, result.output
        assert fake_subprocess.commands == [
            ["cargo", "+nightly", "test", "-Zbuild-std", "--target", HOST]
        ]


class TestSingleStep:
    def test_build_workspace(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["build", "-x", "beta"])
        assert result.exit_code == 0
        assert fake_subprocess.commands == [
            ["cargo", "build", "--workspace", "--exclude", "beta"]
        ]

    def test_compile_examples(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["compile", "-t", "examples"])
        assert result.exit_code == 0
        assert fake_subprocess.commands == [["cargo", "check", "-p", "demo"]]

    def test_doc_default_subcommand(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["doc"])
        assert result.exit_code == 0
        assert fake_subprocess.commands == [["cargo", "doc", "--workspace", "--no-deps"]]

    def test_test_all(self, cli_runner, fake_subprocess) -> None:
        result = cli_runner.invoke(cli, ["test", "-t", "crates", "-n", "beta"])
        assert result.exit_code == 0
        assert fake_subprocess.commands == [
            ["cargo", "test", "--lib", "--bins", "--color", "always", "-p", "beta"],
            ["cargo", "test", "--test", "*", "--color", "always", "-p", "beta"],
        ]
