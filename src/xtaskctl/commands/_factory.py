"""Build Click commands from catalog entries and the composed surface.

Commands with a subcommand vocabulary become groups that run the
vocabulary's default subcommand when invoked bare; single-step commands
become plain commands. ``--target``, ``--exclude``, ``--only`` and any
command options (``--test-threads``, plugin-declared ones) live on the
command (``xtaskctl check -t crates lint``), and the subcommands read them
from their parent context.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import click

from xtaskctl.commands._base import XtaskCommand, XtaskGroup
from xtaskctl.commands._context import AppContext
from xtaskctl.domain.args import TaskArgs

if TYPE_CHECKING:
    from enum import StrEnum

    from xtaskctl.domain.vocabulary import ExtendedVocabulary
    from xtaskctl.services.catalog import CommandSpec
    from xtaskctl.services.surface import Surface


def split_csv(
    _ctx: click.Context, _param: click.Parameter, value: tuple[str, ...]
) -> tuple[str, ...]:
    """Flatten repeated, comma-separated package names (``-x a,b -x c``)."""
    names: list[str] = []
    for chunk in value:
        for name in chunk.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return tuple(names)


def _target_params(targets: ExtendedVocabulary) -> list[click.Parameter]:
    default = targets.default.value if targets.default is not None else None
    return [
        click.Option(
            ["-t", "--target"],
            type=click.Choice(targets.names()),
            default=default,
            show_default=True,
            help="Target to run on.",
        ),
        click.Option(
            ["-x", "--exclude"],
            multiple=True,
            metavar="CRATE,CRATE,...",
            callback=split_csv,
            help="Comma-separated list of excluded crates.",
        ),
        click.Option(
            ["-n", "--only"],
            multiple=True,
            metavar="CRATE,CRATE,...",
            callback=split_csv,
            help="Comma-separated list of crates to include exclusively.",
        ),
    ]


def _option_params(spec: CommandSpec, host: Sequence[click.Option]) -> list[click.Parameter]:
    """The command's own options, then the ones plugins added to it."""
    params: list[click.Parameter] = [
        click.Option(
            [option.flag, option.name],
            type=option.value_type,
            default=None,
            metavar=option.metavar,
            help=option.help,
        )
        for option in spec.options
    ]
    params.extend(host)
    return params


def _task_args(
    params: dict[str, Any],
    targets: ExtendedVocabulary,
    subcommand: StrEnum | None,
    option_names: Sequence[str] = (),
) -> TaskArgs:
    target = params.get("target")
    return TaskArgs(
        target=targets.parse(target) if target is not None else None,
        subcommand=subcommand,
        exclude=tuple(params.get("exclude", ())),
        only=tuple(params.get("only", ())),
        options={name: params.get(name) for name in option_names},
    )


def _run(ctx: click.Context, command: str, args: TaskArgs) -> None:
    app = ctx.find_object(AppContext)
    if app is None:
        msg = "xtaskctl commands must run under the xtaskctl root group"
        raise click.UsageError(msg, ctx=ctx)
    app.emit(app.run_task(command, args))


def _subcommand(
    name: str,
    member: StrEnum,
    vocabulary: ExtendedVocabulary,
    targets: ExtendedVocabulary,
    option_names: Sequence[str],
) -> click.Command:
    @click.pass_context
    def callback(ctx: click.Context) -> None:
        parent = ctx.parent.params if ctx.parent is not None else {}
        _run(ctx, name, _task_args(parent, targets, member, option_names))

    doc = vocabulary.doc(member.value)
    if member is vocabulary.default:
        doc = f"{doc} [default]".strip()
    return XtaskCommand(member.value, callback=callback, help=doc, short_help=doc)


def build_command(
    name: str,
    spec: CommandSpec,
    surface: Surface,
) -> click.Command:
    """Create the Click command for base command *name*."""
    targets = surface.targets
    params = _target_params(targets) if spec.targeted else []
    extra = _option_params(spec, surface.options_for(name))
    params.extend(extra)
    option_names = [param.name for param in extra if param.name]
    help_targets = targets if spec.targeted else None
    vocabulary = surface.subcommands_for(name)

    if vocabulary is None:

        @click.pass_context
        def single(ctx: click.Context, **options: Any) -> None:
            _run(ctx, name, _task_args(options, targets, None, option_names))

        return XtaskCommand(
            name,
            callback=single,
            params=params,
            help=spec.doc,
            examples=spec.examples,
            targets=help_targets,
        )

    default = vocabulary.default

    @click.pass_context
    def group(ctx: click.Context, **options: Any) -> None:
        if ctx.invoked_subcommand is not None:
            return
        if default is None:
            click.echo(ctx.get_help())
            return
        _run(ctx, name, _task_args(options, targets, default, option_names))

    cmd = XtaskGroup(
        name,
        callback=group,
        params=params,
        help=spec.doc,
        examples=spec.examples,
        targets=help_targets,
        invoke_without_command=True,
    )
    for member in vocabulary:
        cmd.add_command(_subcommand(name, member, vocabulary, targets, option_names))
    return cmd

