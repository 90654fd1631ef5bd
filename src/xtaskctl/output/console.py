"""Rich Console factory, theme, and log groups for xtaskctl output.

Result rendering uses Consoles backed by a StringIO buffer, preserving the
``format_result() -> str`` contract. Log groups write straight to the
terminal so they interleave with the output of the external tools they
bracket: GitHub markers on stdout (stderr in JSON mode), plain rules on
stderr.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager
from io import StringIO

import click
from rich.console import Console
from rich.theme import Theme

XTASK_THEME = Theme(
    {
        "xtask.ok": "bold green",
        "xtask.error": "bold red",
        "xtask.warning": "bold yellow",
        "xtask.op": "bold cyan",
        "xtask.key": "dim",
        "xtask.step": "bold",
        "xtask.scope": "blue",
        "xtask.skipped": "yellow",
        "xtask.group": "bold magenta",
    }
)

GROUP_STYLES = ("auto", "github", "plain")


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=XTASK_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def resolve_group_style(style: str) -> str:
    """Concrete group style for *style*; ``auto`` means github under Actions."""
    if style not in GROUP_STYLES:
        msg = f"Unknown group style '{style}', expected one of: {', '.join(GROUP_STYLES)}"
        raise ValueError(msg)
    if style == "auto":
        return "github" if os.environ.get("GITHUB_ACTIONS") == "true" else "plain"
    return style


class LogGroups:
    """Bracket one logical unit of external output.

    ``github`` style emits ``::group::`` / ``::endgroup::`` workflow
    commands so CI folds the output; ``plain`` style prints a rule with the
    group title to stderr. GitHub markers go to stdout unless *err* is set,
    which keeps ``--json`` output a single document. Groups must be closed
    in the order they were opened.
    """

    def __init__(
        self, style: str = "auto", *, err: bool = False, console: Console | None = None
    ) -> None:
        self.style = resolve_group_style(style)
        self._err = err
        self._console = console or Console(theme=XTASK_THEME, highlight=False, stderr=True)
        self._open: list[str] = []

    @property
    def depth(self) -> int:
        return len(self._open)

    def open_group(self, title: str) -> None:
        self._open.append(title)
        if self.style == "github":
            click.echo(f"::group::{title}", err=self._err)
        else:
            self._console.rule(f"[xtask.group]{title}[/xtask.group]", align="left")

    def close_group(self) -> None:
        if not self._open:
            msg = "close_group() called without an open group"
            raise RuntimeError(msg)
        self._open.pop()
        if self.style == "github":
            click.echo("::endgroup::", err=self._err)

    @contextmanager
    def group(self, title: str) -> Generator[None]:
        """Open a group for the duration of the block, closing it on error too."""
        self.open_group(title)
        try:
            yield
        finally:
            self.close_group()
