"""External process runner.

Runs one external command at a time with inherited stdio, scoped to the
whole workspace or to a single package. A non-zero exit or a spawn failure
becomes an :class:`~xtaskctl.domain.errors.ExecutionError` carrying the
caller's message.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from xtaskctl.domain.errors import ExecutionError

logger = logging.getLogger(__name__)

_ARGS_SEPARATOR = "--"


def inject_args(args: Sequence[str], extra: Iterable[str]) -> list[str]:
    """Insert *extra* before the ``--`` separator, or append when absent.

    ``cargo clippy -- --deny warnings`` must receive ``-p name`` on the
    cargo side of the separator.
    """
    args = list(args)
    extra = list(extra)
    if _ARGS_SEPARATOR in args:
        index = args.index(_ARGS_SEPARATOR)
        return [*args[:index], *extra, *args[index:]]
    return [*args, *extra]


def append_trailing(args: Sequence[str], trailing: Iterable[str]) -> list[str]:
    """Append *trailing* on the tool side of ``--``, adding the separator if needed."""
    args = list(args)
    trailing = list(trailing)
    if not trailing:
        return args
    if _ARGS_SEPARATOR not in args:
        args.append(_ARGS_SEPARATOR)
    return [*args, *trailing]


class ProcessRunner:
    """Run external commands from the workspace root."""

    def __init__(self, cwd: Path, *, env: Mapping[str, str] | None = None) -> None:
        self._cwd = cwd
        self._env = dict(env or {})

    @property
    def cwd(self) -> Path:
        return self._cwd

    def run(
        self,
        program: str,
        args: Sequence[str],
        error_message: str,
        *,
        env: Mapping[str, str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        """Run ``program args`` to completion.

        Raises:
            ExecutionError: the process exited non-zero or could not start.
        """
        command = [program, *args]
        detail: dict[str, Any] = {"command": shlex.join(command), **(context or {})}
        logger.debug("Running %s", detail["command"])
        try:
            completed = subprocess.run(
                command,
                cwd=self._cwd,
                env=self._merged_env(env),
                check=False,
            )
        except OSError as exc:
            detail["reason"] = str(exc)
            msg = f"{error_message} (could not start '{program}': {exc})"
            raise ExecutionError(msg, detail=detail) from exc

        if completed.returncode != 0:
            detail["returncode"] = completed.returncode
            raise ExecutionError(error_message, detail=detail)

    def run_for_workspace(
        self,
        program: str,
        args: Sequence[str],
        error_message: str,
        *,
        excluded: Iterable[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run against the whole workspace, passing ``--exclude`` per package."""
        flags = [flag for name in excluded for flag in ("--exclude", name)]
        self.run(
            program,
            inject_args(args, flags),
            error_message,
            env=env,
            context={"scope": "workspace"},
        )

    def run_for_package(
        self,
        program: str,
        package: str,
        args: Sequence[str],
        error_message: str,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run against a single package (injects ``-p <package>``)."""
        self.run(
            program,
            inject_args(args, ["-p", package]),
            error_message,
            env=env,
            context={"scope": "package", "package": package},
        )

    def _merged_env(self, env: Mapping[str, str] | None) -> dict[str, str] | None:
        if not env and not self._env:
            return None
        return {**os.environ, **self._env, **(env or {})}
