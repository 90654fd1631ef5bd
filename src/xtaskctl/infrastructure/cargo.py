"""Cargo toolchain helpers: tool installation and host triple lookup."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass

from xtaskctl.domain.errors import ExecutionError
from xtaskctl.infrastructure.process import ProcessRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    """An external binary installable with ``cargo install``."""

    binary: str
    crate: str
    features: str | None = None
    version: str | None = None


def ensure_installed(runner: ProcessRunner, tool: Tool, *, cargo: str = "cargo") -> None:
    """Install *tool* with ``cargo install`` unless its binary is on PATH."""
    if shutil.which(tool.binary):
        logger.debug("%s already installed", tool.binary)
        return
    args = ["install", tool.crate, "--locked"]
    if tool.version:
        args += ["--version", tool.version]
    if tool.features:
        args += ["--features", tool.features]
    logger.info("Installing %s", tool.crate)
    runner.run(cargo, args, f"Failed to install {tool.crate}")


def host_triple(rustc: str = "rustc") -> str:
    """Return the host target triple reported by ``rustc -vV``."""
    try:
        completed = subprocess.run(
            [rustc, "-vV"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        msg = "Failed to query the host target triple with rustc -vV"
        raise ExecutionError(msg, detail={"reason": str(exc)}) from exc

    for line in completed.stdout.splitlines():
        if line.startswith("host:"):
            return line.split(":", 1)[1].strip()
    msg = "rustc -vV did not report a host target triple"
    raise ExecutionError(msg)
