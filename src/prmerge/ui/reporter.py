"""Console progress reporting."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from rich.console import Console
from rich.markup import escape

ReportLevel = Literal["info", "phase", "success", "warning", "error"]


class Reporter(ABC):
    """Abstract base class for user-facing progress output."""

    @abstractmethod
    def report(self, message: str, level: ReportLevel = "info") -> None:
        """Show a message to the user.

        Args:
            message: Plain text (no markup)
            level: Styling hint
        """

    def phase_started(self, phase_id: str, description: str) -> None:
        """Mark the start of a phase."""
        self.report(f"\n\n  PHASE {phase_id} - {description}...\n", "phase")

    def phase_done(self) -> None:
        """Mark the successful end of the current phase."""
        self.report("\n  ...done", "success")

    def info(self, message: str) -> None:
        """Report a plain progress message."""
        self.report(message, "info")

    def warning(self, message: str) -> None:
        """Report something the user should look at."""
        self.report(message, "warning")

    def error(self, message: str) -> None:
        """Report a failure."""
        self.report(message, "error")


class ConsoleReporter(Reporter):
    """Reporter printing styled output with Rich."""

    STYLES: dict[ReportLevel, str] = {
        "info": "default",
        "phase": "bold cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def report(self, message: str, level: ReportLevel = "info") -> None:
        """Print message to console with the level's style."""
        style = self.STYLES.get(level, "default")
        self.console.print(f"[{style}]{escape(message)}[/{style}]")

