"""Command modules for xtaskctl.

Most commands are generated from the step catalog by
:func:`~xtaskctl.commands._factory.build_command`; ``validate`` is
hand-written, and plugins may contribute whole Click commands.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from xtaskctl.domain.commands import Command

if TYPE_CHECKING:
    import click

    from xtaskctl.services.surface import Surface


def commands_for(surface: Surface) -> dict[str, click.Command]:
    """Click commands for every command of *surface*, in surface order.

    Uses deferred imports so the factory is only loaded once a command
    list is actually needed.
    """
    from xtaskctl.commands._factory import build_command
    from xtaskctl.commands.validate import validate

    commands: dict[str, click.Command] = {}
    for member in surface.commands:
        name = member.value
        if name in surface.cli_commands:
            commands[name] = surface.cli_commands[name]
        elif name == Command.VALIDATE:
            commands[name] = validate
        else:
            commands[name] = build_command(name, surface.specs[name], surface)
    return commands
