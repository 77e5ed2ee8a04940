"""Interactive yes/no confirmation."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape


class ConfirmationDeclined(Exception):
    """The user answered "no". A control-flow signal, not a failure."""


class Prompter(Protocol):
    """Protocol for asking the user yes/no questions.

    Implementations: ConsolePrompter (tests use scripted fakes)
    """

    async def ask_yes_no(self, question: str, default_yes: bool = False) -> None:
        """Return on "yes", raise ConfirmationDeclined on "no"."""
        ...


def matches_answer(answer: str, expected: str) -> bool:
    """Case-insensitive match against a full word or its first letter."""
    answer = answer.strip().lower()
    expected = expected.lower()
    return answer == expected or answer == expected[0]


def is_affirmative(answer: str, default_yes: bool) -> bool:
    """Interpret an answer; anything but the non-default answer picks the default."""
    if default_yes:
        return not matches_answer(answer, "no")
    return matches_answer(answer, "yes")


def answer_options(default_yes: bool) -> str:
    """The ``[Y/n]`` / ``[y/N]`` hint, default in upper case."""
    return "[Y/n]" if default_yes else "[y/N]"


class ConsolePrompter:
    """Ask questions on the terminal through a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    async def ask(self, question: str) -> str:
        """Ask a free-form question.

        Reads stdin on the loop thread, so Ctrl-C interrupts the prompt.
        """
        return self.console.input(question)

    async def ask_yes_no(self, question: str, default_yes: bool = False) -> None:
        """Ask a yes/no question.

        Args:
            question: Question text (no markup)
            default_yes: Whether an empty answer means "yes"

        Raises:
            ConfirmationDeclined: If the answer is negative
        """
        options = answer_options(default_yes)
        prompt = f"\n[black on yellow]{escape(question)}[/black on yellow] [bold]{escape(options)}[/bold]: "
        answer = await self.ask(prompt)

        if not is_affirmative(answer, default_yes):
            raise ConfirmationDeclined(question)
