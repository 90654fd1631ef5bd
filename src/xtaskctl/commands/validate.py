"""Command: run the pre-merge validation plan."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from xtaskctl.commands._base import XtaskCommand
from xtaskctl.domain.args import TaskArgs
from xtaskctl.domain.commands import COMMANDS, Command
from xtaskctl.services.catalog import VALIDATE

if TYPE_CHECKING:
    from xtaskctl.commands._context import AppContext


@click.command(
    Command.VALIDATE.value,
    cls=XtaskCommand,
    help=COMMANDS.doc(Command.VALIDATE),
    examples=VALIDATE.examples,
)
@click.pass_obj
def validate(app: AppContext) -> None:
    app.emit(app.run_task(Command.VALIDATE, TaskArgs()))
