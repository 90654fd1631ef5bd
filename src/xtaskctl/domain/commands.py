"""The base Command vocabulary."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from xtaskctl.domain.vocabulary import ExtendedVocabulary, VariantSpec, Vocabulary, select


class Command(StrEnum):
    BUILD = "build"
    CHECK = "check"
    COMPILE = "compile"
    DEPENDENCIES = "dependencies"
    DOC = "doc"
    FIX = "fix"
    TEST = "test"
    VALIDATE = "validate"
    VULNERABILITIES = "vulnerabilities"


COMMANDS = Vocabulary(
    "Command",
    Command,
    docs={
        "build": "Build the code.",
        "check": (
            "Run checks like formatting, linting etc. This command only reports issues, "
            "use the 'fix' command to auto-fix issues."
        ),
        "compile": "Compile check the code (does not write binaries to disk).",
        "dependencies": "Run the specified dependencies check locally.",
        "doc": "Build documentation.",
        "fix": "Fix issues found with the 'check' command.",
        "test": "Run tests.",
        "validate": (
            "Validate the code base by running all the relevant checks and tests. "
            "Use this command before creating a new pull-request."
        ),
        "vulnerabilities": (
            "Run the specified vulnerability check locally. Requires a nightly toolchain."
        ),
    },
)


def select_commands(
    names: Sequence[str] | None = None,
    host_commands: Sequence[VariantSpec] = (),
) -> ExtendedVocabulary:
    """Build the command vocabulary a host exposes.

    *names* picks base commands in the given order (``None`` keeps all of
    them); *host_commands* are appended after them.

    Raises:
        CompositionError: an unknown or repeated base name, or a host
            command colliding with a base command or another host command.
    """
    return select(COMMANDS, names, host_commands, name="XtaskCommand")
