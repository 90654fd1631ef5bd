"""Pluggy hook specifications for xtaskctl surface extension and task events.

Four setup-time hooks let a host project extend the command surface
(targets, subcommands, options on base commands, whole CLI commands).
``run_task`` handles the host-only variants the generic engine rejects;
``post_task`` observes every completed task. Both task hooks receive the
parsed option values (host-declared ones included) and the execution
environment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    import click

    from xtaskctl.domain.vocabulary import VariantSpec

hookspec = pluggy.HookspecMarker("xtaskctl")


class XtaskctlHookSpec:
    """Hook specifications for the xtaskctl plugin system."""

    @hookspec
    def register_targets(self) -> list[VariantSpec] | None:
        """Return extra (or re-declared) Target variants."""

    @hookspec
    def register_subcommands(self) -> dict[str, list[VariantSpec]] | None:
        """Return variants keyed by base vocabulary name (e.g. ``"CheckSubcommand"``)."""

    @hookspec
    def register_command_options(self) -> dict[str, list[click.Option]] | None:
        """Return extra click options keyed by base command name (e.g. ``"build"``).

        Values reach ``run_task`` and ``post_task`` as *options*; the base
        command itself ignores them.
        """

    @hookspec
    def register_cli_commands(self) -> list[click.Command] | None:
        """Return host-only click commands appended to the command list."""

    @hookspec(firstresult=True)
    def run_task(
        self,
        command: str,
        subcommand: str | None,
        target: str | None,
        exclude: list[str],
        only: list[str],
        answer: bool | None,
        options: dict[str, Any],
        environment: str,
    ) -> bool | None:
        """Run a task involving a host-only variant.

        Return True once handled, None to let the next plugin try. Raise
        :class:`~xtaskctl.domain.errors.XtaskError` to report a failure.
        """

    @hookspec
    def post_task(
        self,
        command: str,
        subcommand: str | None,
        target: str | None,
        ok: bool,
        options: dict[str, Any],
        environment: str,
    ) -> None:
        """Called after every task run, successful or not."""
