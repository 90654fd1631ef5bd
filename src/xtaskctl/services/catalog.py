"""Step catalog: what each command and subcommand actually runs.

A :class:`CommandSpec` maps every leaf subcommand of a command to a
:class:`Step`, a declarative description of one external invocation. The
dispatch engine never hard-codes tool arguments; it reads them from here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from xtaskctl.domain.commands import COMMANDS, Command
from xtaskctl.domain.errors import XtaskError
from xtaskctl.domain.subcommands import (
    CHECK_SUBCOMMANDS,
    DEPENDENCIES_SUBCOMMANDS,
    DOC_SUBCOMMANDS,
    FIX_SUBCOMMANDS,
    TEST_SUBCOMMANDS,
    VULNERABILITIES_SUBCOMMANDS,
    CheckSubcommand,
    DependenciesSubcommand,
    DocSubcommand,
    FixSubcommand,
    TestSubcommand,
    VulnerabilitiesSubcommand,
)
from xtaskctl.domain.targets import CATEGORY_LABELS, Target
from xtaskctl.domain.vocabulary import Vocabulary
from xtaskctl.infrastructure.cargo import Tool

HOST_PLACEHOLDER = "{host}"


class Granularity(StrEnum):
    TARGETED = "targeted"  # workspace or per-package, driven by the target
    GLOBAL = "global"  # runs once, target ignored


@dataclass(frozen=True)
class Step:
    """One leaf action.

    ``package_args`` never contain the package name: the runner injects
    ``-p <package>``. ``{host}`` in any argument is replaced by the host
    target triple.
    """

    name: str
    title: str
    describe: str
    error: str
    program: str = "cargo"
    workspace_args: tuple[str, ...] = ()
    package_args: tuple[str, ...] = ()
    granularity: Granularity = Granularity.TARGETED
    mutating: bool = False
    in_composite: bool = True
    honors_workspace_exclude: bool = False
    requires: Tool | None = None
    env: Mapping[str, str] = field(default_factory=dict)

    def prompt(self, target: Target | None = None) -> str:
        """Confirmation prompt for running this step against *target*."""
        if self.granularity is Granularity.GLOBAL or target is None:
            return f"This will run {self.describe}."
        match target:
            case Target.WORKSPACE:
                return f"This will run {self.describe} on the workspace."
            case Target.CRATES | Target.EXAMPLES:
                label = CATEGORY_LABELS[target]
                return f"This will run {self.describe} on all {label} of the workspace."
            case Target.ALL_PACKAGES:
                return f"This will run {self.describe} on all packages of the workspace."
        msg = f"No prompt for target '{target}'"
        raise XtaskError(msg)


@dataclass(frozen=True)
class CommandOption:
    """An extra option of one base command.

    When *forward* is set, a given value is passed to the external tool
    after the ``--`` separator as ``<forward> <value>``.
    """

    name: str
    flag: str
    help: str
    value_type: type = str
    metavar: str | None = None
    forward: str | None = None

    def forwarded(self, value: Any) -> list[str]:
        if value is None or self.forward is None:
            return []
        return [self.forward, str(value)]


@dataclass(frozen=True)
class CommandSpec:
    """A command, its subcommand vocabulary, and the step behind each leaf."""

    name: str
    doc: str
    steps: Mapping[str, Step] = field(default_factory=dict)
    single: Step | None = None
    subcommands: Vocabulary | None = None
    composite: str | None = None
    composite_prompt: str = ""
    targeted: bool = True
    plan: tuple[tuple[str, str | None], ...] = ()
    examples: str | None = None
    options: tuple[CommandOption, ...] = ()

    def is_composite(self, subcommand: StrEnum | str | None) -> bool:
        if subcommand is None or self.composite is None:
            return False
        return str(subcommand) == self.composite

    def step_for(self, subcommand: StrEnum | str | None) -> Step:
        if subcommand is None:
            if self.single is None:
                msg = f"Command '{self.name}' requires a subcommand"
                raise XtaskError(msg)
            return self.single
        step = self.steps.get(str(subcommand))
        if step is None:
            msg = f"Command '{self.name}' has no step for '{subcommand}'"
            raise XtaskError(msg)
        return step

    def leaves(self) -> list[StrEnum]:
        """Leaf subcommands a composite runs, in declared order."""
        if self.subcommands is None:
            return []
        return [
            member
            for member in self.subcommands
            if not self.is_composite(member) and self.step_for(member).in_composite
        ]

    def composite_mutates(self) -> bool:
        return any(self.step_for(leaf).mutating for leaf in self.leaves())

    def option_names(self) -> frozenset[str]:
        return frozenset(option.name for option in self.options)

    def forwarded_args(self, values: Mapping[str, Any]) -> list[str]:
        """Tool arguments for the option *values* this command forwards."""
        args: list[str] = []
        for option in self.options:
            args.extend(option.forwarded(values.get(option.name)))
        return args


# ── Shared argument lists ────────────────────────────────────────────

_COLOR = ("--color", "always")
_CLIPPY_DENY = ("--", "--deny", "warnings")
_CLIPPY_FIX = ("--fix", "--allow-dirty", "--allow-staged")

_CARGO_AUDIT = Tool("cargo-audit", "cargo-audit", features="fix")
_TYPOS = Tool("typos", "typos-cli")
_CARGO_DENY = Tool("cargo-deny", "cargo-deny")
_CARGO_UDEPS = Tool("cargo-udeps", "cargo-udeps")
_CARGO_CAREFUL = Tool("cargo-careful", "cargo-careful")


def _compile_step(name: str = "compile") -> Step:
    return Step(
        name=name,
        title="Compile",
        describe="a compilation check",
        error="Compilation failed",
        workspace_args=("check", "--workspace"),
        package_args=("check",),
        honors_workspace_exclude=True,
    )


# ── check / fix ──────────────────────────────────────────────────────

CHECK = CommandSpec(
    name=Command.CHECK,
    doc=COMMANDS.doc(Command.CHECK),
    subcommands=CHECK_SUBCOMMANDS,
    composite=CheckSubcommand.ALL,
    composite_prompt="This will run all the checks on all members of the workspace.",
    steps={
        CheckSubcommand.AUDIT: Step(
            name="audit",
            title="Audit Rust Dependencies",
            describe="the audit check",
            error="Audit check execution failed",
            workspace_args=("audit", "-q", *_COLOR),
            granularity=Granularity.GLOBAL,
            requires=_CARGO_AUDIT,
        ),
        # Compiling is covered by `compile` in validate, not by `check all`.
        CheckSubcommand.COMPILE: replace(_compile_step(), in_composite=False),
        CheckSubcommand.FORMAT: Step(
            name="format",
            title="Format",
            describe="the format check",
            error="Format check execution failed",
            workspace_args=("fmt", "--check"),
            package_args=("fmt", "--check"),
        ),
        CheckSubcommand.LINT: Step(
            name="lint",
            title="Lint",
            describe="the lint check",
            error="Lint check execution failed",
            workspace_args=("clippy", "--no-deps", "--color=always", *_CLIPPY_DENY),
            package_args=("clippy", "--no-deps", "--color=always", *_CLIPPY_DENY),
        ),
        CheckSubcommand.TYPOS: Step(
            name="typos",
            title="Typos",
            describe="a typos check on the source code",
            error="Some typos have been found.",
            program="typos",
            workspace_args=_COLOR,
            granularity=Granularity.GLOBAL,
            requires=_TYPOS,
        ),
    },
    examples="""\
  xtaskctl check
  xtaskctl check lint
  xtaskctl check --target crates --only alpha,beta compile
  xtaskctl check --target all-packages --exclude slow-example format""",
)

FIX = CommandSpec(
    name=Command.FIX,
    doc=COMMANDS.doc(Command.FIX),
    subcommands=FIX_SUBCOMMANDS,
    composite=FixSubcommand.ALL,
    composite_prompt="This will run all the checks with autofix on all members of the workspace.",
    steps={
        FixSubcommand.AUDIT: Step(
            name="audit",
            title="Audit Rust Dependencies",
            describe="the audit check with autofix mode enabled",
            error="Audit fix execution failed",
            workspace_args=("audit", "-q", *_COLOR, "fix"),
            granularity=Granularity.GLOBAL,
            mutating=True,
            requires=_CARGO_AUDIT,
        ),
        FixSubcommand.FORMAT: Step(
            name="format",
            title="Format",
            describe="format with auto-fix",
            error="Format execution failed",
            workspace_args=("fmt",),
            package_args=("fmt",),
            mutating=True,
        ),
        FixSubcommand.LINT: Step(
            name="lint",
            title="Lint",
            describe="lint with auto-fix",
            error="Lint fix execution failed",
            workspace_args=("clippy", "--no-deps", *_CLIPPY_FIX, "--color=always", *_CLIPPY_DENY),
            package_args=("clippy", "--no-deps", *_CLIPPY_FIX, "--color=always", *_CLIPPY_DENY),
            mutating=True,
        ),
        FixSubcommand.TYPOS: Step(
            name="typos",
            title="Typos",
            describe="a typos search in the source code with auto-fix",
            error="Some typos have been found and cannot be fixed.",
            program="typos",
            workspace_args=("--write-changes", *_COLOR),
            granularity=Granularity.GLOBAL,
            mutating=True,
            requires=_TYPOS,
        ),
    },
    examples="""\
  xtaskctl fix
  xtaskctl --yes fix format
  xtaskctl fix --target examples lint""",
)

# ── build / compile ──────────────────────────────────────────────────

BUILD = CommandSpec(
    name=Command.BUILD,
    doc=COMMANDS.doc(Command.BUILD),
    single=Step(
        name="build",
        title="Build",
        describe="a build",
        error="Build failed",
        workspace_args=("build", "--workspace"),
        package_args=("build",),
        honors_workspace_exclude=True,
    ),
    examples="""\
  xtaskctl build
  xtaskctl build --exclude heavy-crate
  xtaskctl build --target examples""",
)

COMPILE = CommandSpec(
    name=Command.COMPILE,
    doc=COMMANDS.doc(Command.COMPILE),
    single=_compile_step(),
    examples="""\
  xtaskctl compile
  xtaskctl compile --target crates --only core""",
)

# ── test / doc ───────────────────────────────────────────────────────

TEST = CommandSpec(
    name=Command.TEST,
    doc=COMMANDS.doc(Command.TEST),
    subcommands=TEST_SUBCOMMANDS,
    composite=TestSubcommand.ALL,
    composite_prompt="This will run all the tests.",
    options=(
        CommandOption(
            name="threads",
            flag="--test-threads",
            help="Maximum number of parallel tests.",
            value_type=int,
            metavar="NUMBER OF THREADS",
            forward="--test-threads",
        ),
    ),
    steps={
        TestSubcommand.UNIT: Step(
            name="unit",
            title="Unit Tests",
            describe="unit tests",
            error="Unit tests failed",
            workspace_args=("test", "--workspace", "--lib", "--bins", *_COLOR),
            package_args=("test", "--lib", "--bins", *_COLOR),
            honors_workspace_exclude=True,
        ),
        TestSubcommand.INTEGRATION: Step(
            name="integration",
            title="Integration Tests",
            describe="integration tests",
            error="Integration tests failed",
            workspace_args=("test", "--workspace", "--test", "*", *_COLOR),
            package_args=("test", "--test", "*", *_COLOR),
            honors_workspace_exclude=True,
        ),
    },
    examples="""\
  xtaskctl test
  xtaskctl test unit
  xtaskctl test --test-threads 1 integration
  xtaskctl test --target crates --exclude gpu-backend integration""",
)

DOC = CommandSpec(
    name=Command.DOC,
    doc=COMMANDS.doc(Command.DOC),
    subcommands=DOC_SUBCOMMANDS,
    steps={
        DocSubcommand.BUILD: Step(
            name="build",
            title="Build Documentation",
            describe="a documentation build",
            error="Documentation build failed",
            workspace_args=("doc", "--workspace", "--no-deps"),
            package_args=("doc", "--no-deps"),
            honors_workspace_exclude=True,
        ),
        DocSubcommand.TESTS: Step(
            name="tests",
            title="Documentation Tests",
            describe="documentation tests",
            error="Documentation tests failed",
            workspace_args=("test", "--workspace", "--doc", *_COLOR),
            package_args=("test", "--doc", *_COLOR),
            honors_workspace_exclude=True,
        ),
    },
    examples="""\
  xtaskctl doc
  xtaskctl doc tests""",
)

# ── dependencies / vulnerabilities ───────────────────────────────────

DEPENDENCIES = CommandSpec(
    name=Command.DEPENDENCIES,
    doc=COMMANDS.doc(Command.DEPENDENCIES),
    subcommands=DEPENDENCIES_SUBCOMMANDS,
    composite=DependenciesSubcommand.ALL,
    composite_prompt="This will run all the dependency checks.",
    targeted=False,
    steps={
        DependenciesSubcommand.DENY: Step(
            name="deny",
            title="Cargo Deny",
            describe="cargo-deny",
            error="Some dependencies don't meet the requirements!",
            workspace_args=("deny", "check"),
            granularity=Granularity.GLOBAL,
            requires=_CARGO_DENY,
        ),
        DependenciesSubcommand.UNUSED: Step(
            name="unused",
            title="Unused Dependencies",
            describe="cargo-udeps",
            error="Unused dependencies found!",
            workspace_args=("+nightly", "udeps"),
            granularity=Granularity.GLOBAL,
            requires=_CARGO_UDEPS,
        ),
    },
    examples="""\
  xtaskctl dependencies
  xtaskctl dependencies deny""",
)


def _sanitizer(name: str, title: str, flags: str, *, in_composite: bool = True) -> Step:
    return Step(
        name=name,
        title=title,
        describe=title,
        error=f"{title} found issues",
        workspace_args=("+nightly", "test", "-Zbuild-std", "--target", HOST_PLACEHOLDER),
        granularity=Granularity.GLOBAL,
        in_composite=in_composite,
        env={"RUSTFLAGS": flags, "RUSTDOCFLAGS": flags},
    )


_V = VulnerabilitiesSubcommand

VULNERABILITIES = CommandSpec(
    name=Command.VULNERABILITIES,
    doc=COMMANDS.doc(Command.VULNERABILITIES),
    subcommands=VULNERABILITIES_SUBCOMMANDS,
    composite=_V.ALL,
    composite_prompt="This will run all the vulnerability checks.",
    targeted=False,
    steps={
        _V.ADDRESS_SANITIZER: _sanitizer(
            "address-sanitizer", "Address Sanitizer", "-Zsanitizer=address"
        ),
        _V.CONTROL_FLOW_INTEGRITY: _sanitizer(
            "control-flow-integrity",
            "Control Flow Integrity",
            "-Zsanitizer=cfi -Ccodegen-units=1 -Clto",
        ),
        _V.HW_ADDRESS_SANITIZER: _sanitizer(
            "hw-address-sanitizer",
            "Hardware Address Sanitizer",
            "-Zsanitizer=hwaddress -Ctarget-feature=+tagged-globals",
            in_composite=False,
        ),
        _V.KERNEL_CONTROL_FLOW_INTEGRITY: _sanitizer(
            "kernel-control-flow-integrity",
            "Kernel Control Flow Integrity",
            "-Zsanitizer=kcfi",
            in_composite=False,
        ),
        _V.LEAK_SANITIZER: _sanitizer("leak-sanitizer", "Leak Sanitizer", "-Zsanitizer=leak"),
        _V.MEMORY_SANITIZER: _sanitizer(
            "memory-sanitizer",
            "Memory Sanitizer",
            "-Zsanitizer=memory -Zsanitizer-memory-track-origins",
        ),
        _V.MEM_TAG_SANITIZER: _sanitizer(
            "mem-tag-sanitizer",
            "MemTag Sanitizer",
            "-Zsanitizer=memtag -Ctarget-feature=+mte",
            in_composite=False,
        ),
        _V.NIGHTLY_CHECKS: Step(
            name="nightly-checks",
            title="Nightly Checks",
            describe="cargo-careful",
            error="Nightly checks found issues",
            workspace_args=("+nightly", "careful", "test"),
            granularity=Granularity.GLOBAL,
            requires=_CARGO_CAREFUL,
        ),
        _V.SAFE_STACK: _sanitizer("safe-stack", "SafeStack", "-Zsanitizer=safestack"),
        _V.SHADOW_CALL_STACK: _sanitizer(
            "shadow-call-stack",
            "ShadowCallStack",
            "-Zsanitizer=shadow-call-stack",
            in_composite=False,
        ),
        _V.THREAD_SANITIZER: _sanitizer(
            "thread-sanitizer", "Thread Sanitizer", "-Zsanitizer=thread"
        ),
    },
    examples="""\
  xtaskctl vulnerabilities
  xtaskctl vulnerabilities thread-sanitizer""",
)

# ── validate ─────────────────────────────────────────────────────────

VALIDATE = CommandSpec(
    name=Command.VALIDATE,
    doc=COMMANDS.doc(Command.VALIDATE),
    targeted=False,
    plan=(
        (Command.CHECK, CheckSubcommand.ALL),
        (Command.COMPILE, None),
        (Command.TEST, TestSubcommand.ALL),
        (Command.DOC, DocSubcommand.BUILD),
    ),
    examples="""\
  xtaskctl validate""",
)

CATALOG: dict[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        BUILD,
        CHECK,
        COMPILE,
        DEPENDENCIES,
        DOC,
        FIX,
        TEST,
        VALIDATE,
        VULNERABILITIES,
    )
}
