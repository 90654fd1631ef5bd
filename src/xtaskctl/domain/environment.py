"""Execution environment the workspace is built for."""

from __future__ import annotations

from enum import StrEnum

from xtaskctl.domain.vocabulary import Vocabulary


class ExecutionEnvironment(StrEnum):
    NO_STD = "no-std"
    STD = "std"


ENVIRONMENTS = Vocabulary(
    "ExecutionEnvironment",
    ExecutionEnvironment,
    docs={
        "no-std": "Crates are built without the standard library.",
        "std": "Crates are built against the standard library.",
    },
    default=ExecutionEnvironment.STD,
)
