"""Per-invocation confirmation for mutating actions.

One :class:`Confirmation` lives in each invocation context. It is decided
at most once: the first unanswered :meth:`~Confirmation.resolve` call
prompts, every later call reuses the cached answer. Callers that already
hold an answer pass it as ``incoming`` so nested steps never prompt again.

Non-interactive behaviour is deterministic:

* ``assume=True`` (``--yes``) answers yes without prompting.
* ``assume=False`` (``--no-interact``) answers no without prompting.
* End of input on the prompt answers no.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

logger = logging.getLogger(__name__)

Prompter = Callable[[str], bool]


def click_prompter(prompt: str) -> bool:
    """Ask *prompt* on the terminal; EOF or Ctrl-C count as "no"."""
    try:
        return click.confirm(f"{prompt} Do you want to proceed?", default=False, err=True)
    except click.Abort:
        return False


class Confirmation:
    """Tri-state answer: unset until the first prompt, then decided."""

    def __init__(self, prompter: Prompter | None = None, *, assume: bool | None = None) -> None:
        self._prompter = prompter or click_prompter
        self._assume = assume
        self._answer: bool | None = None
        self.prompt_count = 0

    @property
    def decided(self) -> bool:
        return self._answer is not None

    @property
    def answer(self) -> bool | None:
        return self._answer

    def resolve(self, prompt: str, incoming: bool | None = None) -> bool:
        """Return the confirmation for *prompt*.

        An explicit *incoming* answer wins and leaves the state untouched.
        """
        if incoming is not None:
            return incoming
        if self._answer is not None:
            return self._answer

        if self._assume is not None:
            logger.debug("Confirmation auto-answered %s: %s", self._assume, prompt)
            answer = self._assume
        else:
            self.prompt_count += 1
            answer = bool(self._prompter(prompt))
        self._answer = answer
        if not answer:
            logger.info("Declined: %s", prompt)
        return answer
