"""Package include/exclude filters and the filter-ignored warning policy."""

from __future__ import annotations

from collections.abc import Collection

WARN_IGNORED_EXCLUDE_AND_ONLY_ARGS = (
    "The --exclude and --only arguments are ignored when the target is 'workspace'."
)
WARN_IGNORED_ONLY_ARGS = "The --only argument is ignored when the target is 'workspace'."


def included(name: str, exclude: Collection[str], only: Collection[str]) -> bool:
    """Whether package *name* passes the filters.

    An empty *only* admits every package; *exclude* always wins.
    """
    return (not only or name in only) and name not in exclude


def ignored_filters_warning(
    *,
    exclude: Collection[str],
    only: Collection[str],
    honors_workspace_exclude: bool,
) -> str | None:
    """Warning to emit when filters are given for the workspace target.

    Steps that honor workspace excludes (compile-like steps pass them as
    ``--exclude`` flags) only warn about ``--only``; every other selection,
    composites included, warns when either list is non-empty.
    """
    if honors_workspace_exclude:
        return WARN_IGNORED_ONLY_ARGS if only else None
    if exclude or only:
        return WARN_IGNORED_EXCLUDE_AND_ONLY_ARGS
    return None
