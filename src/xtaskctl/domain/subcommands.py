"""Base subcommand vocabularies, one per command that has subcommands.

``BASE_VOCABULARIES`` is the registry :func:`~xtaskctl.domain.vocabulary.compose`
consults when a host names the vocabulary it extends.
"""

from __future__ import annotations

from enum import StrEnum

from xtaskctl.domain.targets import TARGETS
from xtaskctl.domain.vocabulary import Vocabulary


class CheckSubcommand(StrEnum):
    ALL = "all"
    AUDIT = "audit"
    COMPILE = "compile"
    FORMAT = "format"
    LINT = "lint"
    TYPOS = "typos"


class FixSubcommand(StrEnum):
    ALL = "all"
    AUDIT = "audit"
    FORMAT = "format"
    LINT = "lint"
    TYPOS = "typos"


class TestSubcommand(StrEnum):
    __test__ = False  # not a pytest test class

    ALL = "all"
    UNIT = "unit"
    INTEGRATION = "integration"


class DocSubcommand(StrEnum):
    BUILD = "build"
    TESTS = "tests"


class DependenciesSubcommand(StrEnum):
    ALL = "all"
    DENY = "deny"
    UNUSED = "unused"


class VulnerabilitiesSubcommand(StrEnum):
    ALL = "all"
    ADDRESS_SANITIZER = "address-sanitizer"
    CONTROL_FLOW_INTEGRITY = "control-flow-integrity"
    HW_ADDRESS_SANITIZER = "hw-address-sanitizer"
    KERNEL_CONTROL_FLOW_INTEGRITY = "kernel-control-flow-integrity"
    LEAK_SANITIZER = "leak-sanitizer"
    MEMORY_SANITIZER = "memory-sanitizer"
    MEM_TAG_SANITIZER = "mem-tag-sanitizer"
    NIGHTLY_CHECKS = "nightly-checks"
    SAFE_STACK = "safe-stack"
    SHADOW_CALL_STACK = "shadow-call-stack"
    THREAD_SANITIZER = "thread-sanitizer"


CHECK_SUBCOMMANDS = Vocabulary(
    "CheckSubcommand",
    CheckSubcommand,
    docs={
        "all": "Run all the checks.",
        "audit": "Run audit command.",
        "compile": "Compile the targets (does not write actual binaries).",
        "format": "Run format command.",
        "lint": "Run lint command.",
        "typos": "Report typos in source code.",
    },
    default=CheckSubcommand.ALL,
)

FIX_SUBCOMMANDS = Vocabulary(
    "FixSubcommand",
    FixSubcommand,
    docs={
        "all": "Run all the fixes.",
        "audit": "Run audit command and fix vulnerable dependencies.",
        "format": "Run format command and fix formatting.",
        "lint": "Run lint command and fix issues.",
        "typos": "Find typos in source code and fix them.",
    },
    default=FixSubcommand.ALL,
)

TEST_SUBCOMMANDS = Vocabulary(
    "TestSubcommand",
    TestSubcommand,
    docs={
        "all": "Run all the tests.",
        "unit": "Run unit tests.",
        "integration": "Run integration tests.",
    },
    default=TestSubcommand.ALL,
)

DOC_SUBCOMMANDS = Vocabulary(
    "DocSubcommand",
    DocSubcommand,
    docs={
        "build": "Build documentation.",
        "tests": "Run documentation tests.",
    },
    default=DocSubcommand.BUILD,
)

DEPENDENCIES_SUBCOMMANDS = Vocabulary(
    "DependenciesSubcommand",
    DependenciesSubcommand,
    docs={
        "all": "Run all dependency checks.",
        "deny": "Run cargo-deny to lint the dependency graph.",
        "unused": "Run cargo-udeps to find unused dependencies.",
    },
    default=DependenciesSubcommand.ALL,
)

VULNERABILITIES_SUBCOMMANDS = Vocabulary(
    "VulnerabilitiesSubcommand",
    VulnerabilitiesSubcommand,
    docs={
        "all": "Run all most useful vulnerability checks.",
        "address-sanitizer": "Run Address sanitizer (memory error detector).",
        "control-flow-integrity": "Run LLVM Control Flow Integrity (forward-edge protection).",
        "hw-address-sanitizer": "Run hardware-assisted Address sanitizer.",
        "kernel-control-flow-integrity": "Run Kernel LLVM Control Flow Integrity.",
        "leak-sanitizer": "Run Leak sanitizer (run-time memory leak detector).",
        "memory-sanitizer": "Run Memory sanitizer (detector of uninitialized reads).",
        "mem-tag-sanitizer": "Run MemTag sanitizer (low-overhead address sanitizer).",
        "nightly-checks": "Run nightly-only checks through cargo-careful.",
        "safe-stack": "Run SafeStack check (backward-edge protection).",
        "shadow-call-stack": "Run ShadowCall check (backward-edge protection, aarch64 only).",
        "thread-sanitizer": "Run Thread sanitizer (data race detector).",
    },
    default=VulnerabilitiesSubcommand.ALL,
)

BASE_VOCABULARIES: dict[str, Vocabulary] = {
    vocab.name: vocab
    for vocab in (
        TARGETS,
        CHECK_SUBCOMMANDS,
        DEPENDENCIES_SUBCOMMANDS,
        DOC_SUBCOMMANDS,
        FIX_SUBCOMMANDS,
        TEST_SUBCOMMANDS,
        VULNERABILITIES_SUBCOMMANDS,
    )
}
