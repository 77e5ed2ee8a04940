"""Phase execution and fatal error handling."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

from prmerge.core.cleanup import CleanupRegistry
from prmerge.core.messages import OFFER_TO_CLEAN_UP, PHASES, error_message
from prmerge.core.models import ErrorCode, Phase
from prmerge.ui.prompt import ConfirmationDeclined, Prompter
from prmerge.ui.reporter import Reporter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MergeAborted(Exception):
    """Terminal state of a failed run. The process should exit with ``exit_code``."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class PhaseRunner:
    """Runs phases, reporting progress and handling their failures.

    A failing phase is reported, the user is offered to run the pending
    clean-up tasks, and the run ends with MergeAborted (chained to the
    original error).
    """

    def __init__(
        self,
        cleanup: CleanupRegistry,
        prompter: Prompter,
        reporter: Reporter,
        phases: dict[str, Phase] | None = None,
        usage_text: str = "",
    ) -> None:
        self.cleanup = cleanup
        self.prompter = prompter
        self.reporter = reporter
        self.phases = phases if phases is not None else PHASES
        self.usage_text = usage_text

    async def run_phase(
        self,
        phase_id: str,
        do_work: Callable[[], Awaitable[T]],
        skip_cleanup: bool = False,
    ) -> T:
        """Run one phase.

        Args:
            phase_id: Key into the phase catalog
            do_work: The phase's work
            skip_cleanup: Don't offer clean-up if the phase fails

        Returns:
            Whatever ``do_work`` returned

        Raises:
            MergeAborted: If ``do_work`` failed
        """
        phase = self.phases[phase_id]
        self.reporter.phase_started(phase.id, phase.description)
        logger.debug(f"Phase {phase.id} started")

        try:
            result = await do_work()
        except MergeAborted:
            raise
        except Exception as e:
            logger.debug(f"Phase {phase.id} failed: {e!r}")
            await self.report_fatal_error(ErrorCode.for_phase(phase.id), skip_cleanup, e)

        self.reporter.phase_done()
        return result

    async def report_fatal_error(
        self,
        code: ErrorCode | str,
        skip_cleanup: bool = False,
        error: BaseException | None = None,
    ) -> NoReturn:
        """Report an error, offer to clean up, and abort the run.

        Raises:
            MergeAborted: Always
        """
        message = error_message(code, self.usage_text)

        if error is not None:
            self.reporter.error(f"\n{error}")
        self.reporter.error(f"\n  ERROR: {message}\n\n  OPERATION ABORTED!")

        if not skip_cleanup and self.cleanup.has_pending_tasks():
            try:
                await self.offer_to_clean_up()
            except MergeAborted:
                # The clean-up phase has already reported its own failure.
                pass
            except Exception as e:
                self.reporter.error(f"\nSomething went wrong: {e}")

        raise MergeAborted(message) from error

    async def offer_to_clean_up(self) -> None:
        """Ask whether to run the pending clean-up tasks; list them if not."""
        try:
            await self.prompter.ask_yes_no(OFFER_TO_CLEAN_UP)
        except ConfirmationDeclined:
            self.reporter.info("\nOK, I'm not doing anything. FYI, the pending tasks (afaik) are:")
            await self.cleanup.run_cleanup(list_only=True, report=self._report_task)
            return

        await self.run_phase(
            "X",
            lambda: self.cleanup.run_cleanup(report=self._report_task),
            skip_cleanup=True,
        )

    def _report_task(self, description: str) -> None:
        self.reporter.info(f"    - {description}")
