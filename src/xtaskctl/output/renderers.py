"""Rich renderers for task ServiceResults.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text via ``get_output(console)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.text import Text

from xtaskctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from xtaskctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal, which is
    the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        _status_line(console, result)
    else:
        _render_error(console, result, verbose=verbose)

    _render_steps(console, result.data.get("executed", []), label="ran", style="xtask.step")
    _render_steps(
        console, result.data.get("skipped", []), label="skipped", style="xtask.skipped"
    )
    for key, value in result.data.items():
        if key not in ("executed", "skipped"):
            _field(console, key, value)

    if verbose:
        _render_meta(console, result)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "xtask.ok"), (f"  {result.op}", "xtask.op")))


def _render_error(console: Console, result: ServiceResult, *, verbose: bool) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text.assemble(("ERROR", "xtask.error"), (f"  {result.op}", "xtask.op"), f" - {msg}")
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_steps(
    console: Console, steps: list[dict[str, Any]], *, label: str, style: str
) -> None:
    for entry in steps:
        line = Text(f"  {label} ", style="xtask.key")
        line.append(str(entry.get("step", "")), style=style)
        scope = entry.get("scope")
        if scope:
            line.append(f"  {scope}", style="xtask.scope")
        reason = entry.get("reason")
        if reason:
            line.append(f"  ({reason})", style="dim")
        console.print(line)


def _field(console: Console, key: str, value: Any) -> None:
    console.print(Text.assemble((f"  {key}: ", "xtask.key"), str(value)))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block, span tree included."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    if duration > 10_000:
        style = "bold red"
    elif duration > 1000:
        style = "yellow"
    else:
        style = "dim"
    line = f"{prefix}[{style}]{duration:>10.2f}ms[/{style}]  {span_data.get('name', '?')}"
    if span_data.get("failed"):
        line += "  [bold red]failed[/bold red]"
    annotations = span_data.get("annotations")
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)
