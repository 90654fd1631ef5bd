"""structlog configuration for xtaskctl.

Log lines share stderr with the external tools' own output, so every mode
renders one line per event:

- console (default): colored when stderr is a terminal
- ``--log-json``: JSON lines for log collectors
- GitHub Actions: warnings and errors become ``::warning::`` /
  ``::error::`` workflow commands so they annotate the run

Events logged while a step runs carry its ``step`` and ``scope``
(bound by the dispatch engine through structlog contextvars).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

_ANNOTATIONS = {"warning": "warning", "error": "error", "critical": "error"}


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """``--verbose`` shows debug events, ``--quiet`` only errors."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def render_github(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> str:
    """Render one event as a GitHub workflow command line.

    Levels without an annotation fall back to ``level: event``.
    """
    level = str(event_dict.pop("level", "info"))
    event = str(event_dict.pop("event", ""))
    for key in ("timestamp", "logger"):
        event_dict.pop(key, None)
    scope = event_dict.pop("scope", None)
    step = event_dict.pop("step", None)
    if step:
        event = f"[{step}{f' {scope}' if scope else ''}] {event}"
    extras = " ".join(f"{key}={value}" for key, value in event_dict.items())
    text = f"{event} {extras}".rstrip()
    command = _ANNOTATIONS.get(level)
    if command is None:
        return f"{level}: {text}"
    # Workflow commands end at the first newline.
    return f"::{command}::{text.replace(chr(10), '%0A')}"


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
    github: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output; wins over *quiet*.
        quiet: Only ERROR-level output.
        log_json: Use the JSON renderer; wins over *github*.
        github: Render warnings and errors as workflow annotations.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    elif github:
        renderer = render_github
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("xtaskctl").setLevel(log_level(verbose=verbose, quiet=quiet))
