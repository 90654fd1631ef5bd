"""Parsed task arguments and their conversion to the base vocabularies."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from xtaskctl.domain.vocabulary import ExtendedVocabulary


@dataclass(frozen=True)
class TaskArgs:
    """One command's arguments as the CLI parsed them.

    ``target`` and ``subcommand`` hold members of the extended vocabularies
    (or base ones after :meth:`downcast`); ``None`` means the command has
    no such field.
    """

    target: StrEnum | None = None
    subcommand: StrEnum | None = None
    exclude: tuple[str, ...] = ()
    only: tuple[str, ...] = ()
    # Command-specific options, host-declared ones included.
    options: Mapping[str, Any] = field(default_factory=dict)

    def downcast(
        self,
        *,
        targets: ExtendedVocabulary | None = None,
        subcommands: ExtendedVocabulary | None = None,
        options: Collection[str] | None = None,
    ) -> TaskArgs:
        """Convert field by field to the base vocabularies.

        When *options* is given, only those option names are kept: the
        base command never sees options a host added to it.

        Raises:
            UnsupportedVariantError: the first host-only field (target first).
        """
        target = self.target
        if target is not None and targets is not None:
            target = targets.downcast(target)
        subcommand = self.subcommand
        if subcommand is not None and subcommands is not None:
            subcommand = subcommands.downcast(subcommand)
        kept = dict(self.options)
        if options is not None:
            kept = {name: value for name, value in kept.items() if name in options}
        return replace(self, target=target, subcommand=subcommand, options=kept)

    def is_host(
        self,
        *,
        targets: ExtendedVocabulary | None = None,
        subcommands: ExtendedVocabulary | None = None,
    ) -> bool:
        """True when any field is a host-only variant."""
        return bool(
            (self.target is not None and targets is not None and targets.is_host(self.target))
            or (
                self.subcommand is not None
                and subcommands is not None
                and subcommands.is_host(self.subcommand)
            )
        )
