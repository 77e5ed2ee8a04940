"""Merge orchestration: the fixed sequence of merge phases."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from prmerge.config import Config, get_executable
from prmerge.core.cleanup import CleanupRegistry
from prmerge.core.commit_message import rewrite_commit_message
from prmerge.core.models import MergeInput
from prmerge.core.runner import PhaseRunner
from prmerge.ui.prompt import ConfirmationDeclined, Prompter
from prmerge.ui.reporter import Reporter

if TYPE_CHECKING:
    from prmerge.runners.cla import ClaChecker
    from prmerge.runners.command import CommandRunner
    from prmerge.runners.git import GitClient

logger = logging.getLogger(__name__)


class Merger:
    """Merges a pull request into the target branch, phase by phase.

    Each risky step schedules a clean-up task, and retires it once the
    risk has passed, so a failure at any point can be rolled back.
    """

    def __init__(
        self,
        merge_input: MergeInput,
        config: Config,
        cleanup: CleanupRegistry,
        phase_runner: PhaseRunner,
        git: GitClient,
        cla_checker: ClaChecker,
        command_runner: CommandRunner,
        prompter: Prompter,
        reporter: Reporter,
    ) -> None:
        self.merge_input = merge_input
        self.config = config
        self.cleanup = cleanup
        self.phase_runner = phase_runner
        self.git = git
        self.cla_checker = cla_checker
        self.command_runner = command_runner
        self.prompter = prompter
        self.reporter = reporter

        branch = merge_input.branch
        temp_branch = merge_input.temp_branch

        self.checkout_branch_task = cleanup.register_task(
            f"Checkout branch `{branch}`.",
            lambda: self.git.checkout(branch),
        )
        self.delete_temp_branch_task = cleanup.register_task(
            f"Delete branch `{temp_branch}`.",
            lambda: self.git.delete_branch(temp_branch, force=True),
        )
        self.abort_rebase_task = cleanup.register_task(
            "Abort `git rebase`.",
            self._abort_rebase_quietly,
        )
        self.hard_reset_task = cleanup.register_task(
            f"Hard-reset to `origin/{branch}`.",
            lambda: self.git.reset(f"origin/{branch}", hard=True),
        )

    async def _abort_rebase_quietly(self) -> None:
        try:
            await self.git.abort_rebase()
        except Exception as e:
            logger.debug(f"Ignoring failed `git rebase --abort`: {e}")

    async def merge(self) -> bool:
        """Run all phases in order.

        Returns:
            Whether the changes were pushed to origin

        Raises:
            MergeAborted: If a phase failed (later phases don't run)
        """
        await self.phase1()
        await self.phase2()
        await self.phase3()
        await self.phase4()
        await self.phase5()
        return await self.phase6()

    async def phase1(self) -> None:
        """Verify the CLA signature."""

        async def do_work() -> None:
            pr_no = self.merge_input.pr_no
            try:
                await self.cla_checker.check(pr_no)
            except Exception as e:
                self.reporter.warning(f"    {e}")
                try:
                    await self.prompter.ask_yes_no(
                        "Failed to verify the CLA signature. Proceed anyway? (NOT RECOMMENDED)"
                    )
                except ConfirmationDeclined:
                    raise e from None

        await self.phase_runner.run_phase("1", do_work)

    async def phase2(self) -> None:
        """Fetch the PR as a local branch.

        Both clean-up tasks stay scheduled afterwards: the temp branch is
        still checked out until phase 3 merges it.
        """
        branch = self.merge_input.branch
        temp_branch = self.merge_input.temp_branch

        async def do_work() -> None:
            await self.git.checkout(branch)
            await self.git.pull(branch, rebase=True)
            await self.git.create_branch(temp_branch)
            self.cleanup.schedule(self.delete_temp_branch_task)
            self.cleanup.schedule(self.checkout_branch_task)
            await self.git.merge_pull_request(self.merge_input.pr_url)

        await self.phase_runner.run_phase("2", do_work)

    async def phase3(self) -> None:
        """Merge into the target branch and link the commit to the PR."""
        pr_no = self.merge_input.pr_no
        branch = self.merge_input.branch
        temp_branch = self.merge_input.temp_branch

        async def squash_and_reword(commit_count: int) -> None:
            await self.git.delete_branch(temp_branch, force=True)
            self.cleanup.unschedule(self.delete_temp_branch_task)
            if commit_count > 1:
                await self.cleanup.with_task(
                    self.abort_rebase_task,
                    lambda: self.git.rebase(commit_count, interactive=True),
                )
            await self.git.update_last_commit_message(lambda message: rewrite_commit_message(message, pr_no))

        async def do_work() -> None:
            commit_count = await self.git.count_commits_since(branch)
            logger.debug(f"PR #{pr_no} has {commit_count} commit(s)")

            await self.git.checkout(branch)
            self.cleanup.unschedule(self.checkout_branch_task)

            await self.cleanup.with_task(self.abort_rebase_task, lambda: self.git.rebase(temp_branch))
            await self.cleanup.with_task(self.hard_reset_task, lambda: squash_and_reword(commit_count))

        await self.phase_runner.run_phase("3", do_work)

    async def phase4(self) -> None:
        """Show the diff and log of the merged changes."""
        branch = self.merge_input.branch
        delay = self.config.inspect_delay

        async def do_work() -> None:
            self.reporter.warning("    GIT diff:\n")
            await asyncio.sleep(delay)
            await self.git.diff(f"origin/{branch}")
            self.reporter.warning("\n    GIT log:\n")
            await asyncio.sleep(delay)
            await self.git.log()

        await self.phase_runner.run_phase("4", do_work)

    async def phase5(self) -> None:
        """Run the CI checks, if the user wants to."""

        async def do_work() -> None:
            try:
                await self.prompter.ask_yes_no("Do you want to run the CI-checks now? (RECOMMENDED)", default_yes=True)
            except ConfirmationDeclined:
                return

            self.reporter.info("    Initializing the CI-checks...\n")
            executable, *args = self.config.ci_command
            await self.command_runner.run([get_executable(executable), *args])

        await self.phase_runner.run_phase("5", do_work)

    async def phase6(self) -> bool:
        """Push to origin, if the user wants to.

        Returns:
            Whether the changes were pushed
        """
        branch = self.merge_input.branch

        async def do_work() -> bool:
            try:
                await self.prompter.ask_yes_no(f"CAUTION: Do you want to push the changes to 'origin/{branch}'?")
            except ConfirmationDeclined:
                return False

            await self.git.push(branch)
            return True

        return await self.phase_runner.run_phase("6", do_work)
