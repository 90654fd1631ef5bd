"""Workspace membership from ``cargo metadata``.

Members are classified as crates or examples by their manifest location
relative to the ``workspace_root`` cargo reports: a member whose manifest
sits under one of the configured example directories is an example, every
other member is a crate. The list is read fresh on every call, in
cargo's package order.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from xtaskctl.domain.errors import ExecutionError

logger = logging.getLogger(__name__)


class MemberKind(StrEnum):
    CRATE = "crate"
    EXAMPLE = "example"


@dataclass(frozen=True)
class WorkspaceMember:
    name: str
    manifest_path: Path
    kind: MemberKind


class Workspace:
    """Cargo workspace rooted at *root*."""

    def __init__(
        self,
        root: Path,
        *,
        cargo: str = "cargo",
        example_dirs: Sequence[str] = ("examples",),
    ) -> None:
        self.root = root
        self._cargo = cargo
        self._example_dirs = frozenset(example_dirs)

    def members(self, kind: MemberKind | None = None) -> list[WorkspaceMember]:
        """Workspace members, optionally restricted to one *kind*."""
        metadata = self._metadata()
        # Cargo's own root: *self.root* may be any directory inside the workspace.
        root = Path(metadata.get("workspace_root") or self.root)
        members = [self._classify(pkg, root) for pkg in self._packages(metadata)]
        if kind is None:
            return members
        return [m for m in members if m.kind is kind]

    def _classify(self, package: dict[str, Any], root: Path) -> WorkspaceMember:
        manifest = Path(package["manifest_path"])
        try:
            parts = manifest.relative_to(root).parts
        except ValueError:
            # Member outside the workspace tree: never an example.
            parts = (manifest.name,)
        is_example = any(part in self._example_dirs for part in parts[:-1])
        kind = MemberKind.EXAMPLE if is_example else MemberKind.CRATE
        return WorkspaceMember(name=package["name"], manifest_path=manifest, kind=kind)

    def _packages(self, metadata: dict[str, Any]) -> list[dict[str, Any]]:
        member_ids = set(metadata.get("workspace_members", []))
        packages = metadata.get("packages", [])
        if not member_ids:
            return list(packages)
        return [pkg for pkg in packages if pkg.get("id") in member_ids]

    def _metadata(self) -> dict[str, Any]:
        command = [self._cargo, "metadata", "--no-deps", "--format-version", "1"]
        try:
            completed = subprocess.run(
                command,
                cwd=self.root,
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            stderr = getattr(exc, "stderr", None) or str(exc)
            msg = "Failed to read workspace members with cargo metadata"
            raise ExecutionError(msg, detail={"reason": stderr.strip()}) from exc

        try:
            data = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            msg = "cargo metadata returned invalid JSON"
            raise ExecutionError(msg, detail={"reason": str(exc)}) from exc
        logger.debug("Read %d packages from cargo metadata", len(data.get("packages", [])))
        return data
