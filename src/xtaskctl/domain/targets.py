"""Target selectors and their expansion.

``all-packages`` means "every individually addressable package": it expands
to crates then examples, never to the workspace as a single unit.
"""

from __future__ import annotations

from enum import StrEnum

from xtaskctl.domain.vocabulary import Vocabulary


class Target(StrEnum):
    """Base target selectors, in declared order."""

    ALL_PACKAGES = "all-packages"
    CRATES = "crates"
    EXAMPLES = "examples"
    WORKSPACE = "workspace"


TARGETS = Vocabulary(
    "Target",
    Target,
    docs={
        "all-packages": "Targets all crates and examples using cargo --package.",
        "crates": "Targets all binary and library crates.",
        "examples": "Targets all example crates.",
        "workspace": "Targets the whole workspace using cargo --workspace.",
    },
    default=Target.WORKSPACE,
)

# Wording used in confirmation prompts for each package category.
CATEGORY_LABELS: dict[Target, str] = {
    Target.CRATES: "crates",
    Target.EXAMPLES: "examples",
}


def expand_target(target: Target) -> tuple[Target, ...]:
    """Return the sub-targets a composite target decomposes into.

    Raises:
        ValueError: *target* is not composite.
    """
    if target is Target.ALL_PACKAGES:
        return (Target.CRATES, Target.EXAMPLES)
    msg = f"Target '{target}' is not composite"
    raise ValueError(msg)
