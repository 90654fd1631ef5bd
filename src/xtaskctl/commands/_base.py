"""Click base classes shared by every xtaskctl command.

``XtaskCommand`` and ``XtaskGroup`` add two things to plain Click:

* an eager ``--examples`` flag printing usage examples, which keeps
  ``--help`` short;
* a ``Targets:`` help section listing the documented target variants
  (base and host-declared) when the command accepts ``--target``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from xtaskctl.domain.vocabulary import Vocabulary


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


def _write_targets(formatter: click.HelpFormatter, targets: Vocabulary | None) -> None:
    if targets is None:
        return
    rows = [
        (spec.name, f"{spec.doc} [default]".strip() if spec.default else spec.doc)
        for spec in targets.specs()
    ]
    with formatter.section("Targets"):
        formatter.write_dl(rows)


class XtaskCommand(click.Command):
    """Click Command with ``--examples`` and an optional Targets section."""

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        targets: Vocabulary | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.targets = targets
        if examples:
            _add_examples_option(self, examples)

    def format_options(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_options(ctx, formatter)
        _write_targets(formatter, self.targets)


class XtaskGroup(click.Group):
    """Click Group with ``--examples`` and an optional Targets section.

    Sets ``command_class = XtaskCommand`` so subcommands accept the same
    keyword arguments without explicit ``cls=``.
    """

    command_class = XtaskCommand

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        targets: Vocabulary | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.targets = targets
        if examples:
            _add_examples_option(self, examples)

    def list_commands(self, ctx: click.Context) -> list[str]:
        # Declared vocabulary order, not alphabetical.
        return list(self.commands)

    def format_options(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        # Group.format_options also writes the Commands section.
        super().format_options(ctx, formatter)
        _write_targets(formatter, self.targets)
