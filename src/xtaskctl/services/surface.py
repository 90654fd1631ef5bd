"""Composition of the per-process command surface.

The surface is every vocabulary the CLI exposes: the selected commands
(base and host-only), the extended Target vocabulary, and one extended
subcommand vocabulary per base command that has subcommands. It is built
once at startup from configuration and plugin declarations.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from xtaskctl.domain.commands import select_commands
from xtaskctl.domain.errors import CompositionError
from xtaskctl.domain.subcommands import BASE_VOCABULARIES
from xtaskctl.domain.targets import TARGETS
from xtaskctl.domain.vocabulary import ExtendedVocabulary, VariantSpec, compose
from xtaskctl.services.catalog import CATALOG, CommandSpec

if TYPE_CHECKING:
    import click

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Surface:
    commands: ExtendedVocabulary
    targets: ExtendedVocabulary
    specs: dict[str, CommandSpec] = field(default_factory=dict)
    subcommands: dict[str, ExtendedVocabulary] = field(default_factory=dict)
    cli_commands: dict[str, click.Command] = field(default_factory=dict)
    options: dict[str, tuple[click.Option, ...]] = field(default_factory=dict)

    def spec(self, command: str) -> CommandSpec | None:
        """Catalog entry for a base command, None for host-only commands."""
        return self.specs.get(command)

    def subcommands_for(self, command: str) -> ExtendedVocabulary | None:
        return self.subcommands.get(command)

    def options_for(self, command: str) -> tuple[click.Option, ...]:
        """Host-declared options of base command *command*."""
        return self.options.get(command, ())


def compose_surface(
    *,
    commands: Sequence[str] | None = None,
    targets: Sequence[VariantSpec] = (),
    subcommands: Mapping[str, Sequence[VariantSpec]] | None = None,
    cli_commands: Sequence[click.Command] = (),
    options: Mapping[str, Sequence[click.Option]] | None = None,
) -> Surface:
    """Compose the surface.

    Args:
        commands: Base command names to expose, in order (None for all).
        targets: Host Target variants.
        subcommands: Host variants keyed by base vocabulary name
            (``"CheckSubcommand"``...). ``"Target"`` is accepted as an
            alias for *targets*.
        cli_commands: Host-only click commands.
        options: Host options keyed by base command name.

    Raises:
        CompositionError: any invalid declaration. Nothing has run yet.
    """
    subcommands = dict(subcommands or {})
    target_specs = [*targets, *subcommands.pop(TARGETS.name, [])]

    for vocabulary in subcommands:
        if vocabulary not in BASE_VOCABULARIES:
            msg = "Unknown vocabulary: {}\nPossible vocabularies are:\n  {}".format(
                vocabulary, "\n  ".join(BASE_VOCABULARIES)
            )
            raise CompositionError(msg)

    host_commands: dict[str, click.Command] = {}
    host_specs: list[VariantSpec] = []
    for command in cli_commands:
        name = command.name or ""
        if name in host_commands:
            msg = f"Command '{name}' is declared twice."
            raise CompositionError(msg)
        host_commands[name] = command
        host_specs.append(VariantSpec(name, command.get_short_help_str()))

    command_vocabulary = select_commands(commands, host_specs)

    specs: dict[str, CommandSpec] = {}
    extended: dict[str, ExtendedVocabulary] = {}
    for member in command_vocabulary:
        spec = CATALOG.get(member.value)
        if spec is None:
            continue
        specs[member.value] = spec
        if spec.subcommands is not None:
            extended[member.value] = compose(
                spec.subcommands,
                subcommands.get(spec.subcommands.name, ()),
                name=f"Extended{spec.subcommands.enum.__name__}",
            )

    host_options = _check_options(options or {}, specs)

    logger.debug(
        "Composed surface: %d commands, %d host targets",
        len(command_vocabulary),
        len(target_specs),
    )
    return Surface(
        commands=command_vocabulary,
        targets=compose(TARGETS, target_specs, name="ExtendedTarget"),
        specs=specs,
        subcommands=extended,
        cli_commands=host_commands,
        options=host_options,
    )


# Parameters every targeted command already owns.
_RESERVED = frozenset({"target", "exclude", "only"})
_RESERVED_FLAGS = frozenset({"-t", "--target", "-x", "--exclude", "-n", "--only", "--examples"})


def _check_options(
    options: Mapping[str, Sequence[click.Option]],
    specs: Mapping[str, CommandSpec],
) -> dict[str, tuple[click.Option, ...]]:
    """Validate host options against the commands they extend.

    Raises:
        CompositionError: unknown or host-only command, or a name or flag
            the command already uses.
    """
    checked: dict[str, tuple[click.Option, ...]] = {}
    for command, declared in options.items():
        spec = specs.get(command)
        if spec is None and command in CATALOG:
            logger.debug("Options for unselected command %s ignored", command)
            continue
        if spec is None:
            msg = "Cannot add options to '{}'.\nBase commands are:\n  {}".format(
                command, "\n  ".join(CATALOG)
            )
            raise CompositionError(msg)
        names = set(_RESERVED | spec.option_names())
        flags = set(_RESERVED_FLAGS) | {option.flag for option in spec.options}
        for option in declared:
            taken = [flag for flag in option.opts if flag in flags]
            if option.name in names or taken:
                label = ", ".join(taken) or option.name
                msg = f"Option {label} is already defined on '{command}'."
                raise CompositionError(msg)
            names.add(option.name or "")
            flags.update(option.opts)
        checked[command] = tuple(declared)
    return checked
