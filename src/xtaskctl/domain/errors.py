"""Exception taxonomy shared by every layer.

Composition errors abort before any task runs. Unsupported-variant errors
are recoverable by the caller. Execution errors are fail-fast for the whole
dispatch tree.
"""

from __future__ import annotations

from typing import Any


class XtaskError(Exception):
    """Base error carrying a stable ``code`` and structured ``detail``."""

    code = "XTASK_ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}


class CompositionError(XtaskError):
    """Invalid vocabulary or command composition."""

    code = "COMPOSITION_ERROR"


class UnsupportedVariantError(XtaskError):
    """A host-only variant reached a consumer of the base vocabulary."""

    code = "UNSUPPORTED_VARIANT"

    def __init__(self, variant: str, vocabulary: str) -> None:
        super().__init__(
            f"{variant} is not supported.",
            detail={"variant": variant, "vocabulary": vocabulary},
        )
        self.variant = variant
        self.vocabulary = vocabulary


class ExecutionError(XtaskError):
    """An external process failed or could not be spawned."""

    code = "EXECUTION_FAILED"
