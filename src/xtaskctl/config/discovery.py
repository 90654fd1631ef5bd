"""Config file and workspace root discovery.

Both walk up from the current directory, the way cargo does:

* ``xtaskctl.toml``: the nearest one wins; ``XTASKCTL_CONFIG`` (or
  ``--config``) overrides the search.
* the Cargo workspace root: the nearest ``Cargo.toml`` with a
  ``[workspace]`` table, or the nearest manifest for a single-package
  project.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "xtaskctl.toml"
CONFIG_ENV_VAR = "XTASKCTL_CONFIG"
MANIFEST_FILENAME = "Cargo.toml"

logger = logging.getLogger(__name__)


def _ancestors(start: Path | None) -> Iterator[Path]:
    """*start* (default: cwd) and every parent directory, nearest first."""
    current = (start or Path.cwd()).resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for xtaskctl.toml.

    Returns the path to the config file, or None if not found.
    Checks XTASKCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    for directory in _ancestors(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _declares_workspace(manifest: Path) -> bool:
    try:
        data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        logger.debug("Skipping unreadable manifest %s", manifest, exc_info=True)
        return False
    return "workspace" in data


def find_workspace_root(start: Path | None = None) -> Path | None:
    """Directory of the Cargo workspace containing *start* (default: cwd).

    Returns None outside any Cargo project.
    """
    nearest: Path | None = None
    for directory in _ancestors(start):
        manifest = directory / MANIFEST_FILENAME
        if not manifest.is_file():
            continue
        if _declares_workspace(manifest):
            return directory
        if nearest is None:
            nearest = directory
    return nearest
