"""User interaction: progress reporting and confirmation prompts."""

from prmerge.ui.prompt import ConfirmationDeclined, ConsolePrompter, Prompter
from prmerge.ui.reporter import ConsoleReporter, Reporter

__all__ = [
    "ConfirmationDeclined",
    "ConsolePrompter",
    "ConsoleReporter",
    "Prompter",
    "Reporter",
]
