"""Git operations used by the merge phases."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable

import httpx

from prmerge.core.cleanup import CleanupRegistry
from prmerge.runners.command import CommandError, CommandRunner

logger = logging.getLogger(__name__)


class PatchFetchError(Exception):
    """The pull request patch could not be downloaded."""


class GitClient:
    """Thin async wrapper around the git CLI.

    Owns the "abort `git am`" clean-up task, which is only scheduled while a
    patch is being applied.
    """

    def __init__(
        self,
        runner: CommandRunner,
        cleanup: CleanupRegistry,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.runner = runner
        self.cleanup = cleanup
        self.timeout = timeout
        self._http_client = http_client

        self.abort_am_task = cleanup.register_task("Abort `git am`.", self._abort_am_quietly)

    async def _git(self, *args: str, input: bytes | None = None) -> None:
        await self.runner.run(["git", *args], input=input)

    async def _abort_am_quietly(self) -> None:
        try:
            await self.abort_am()
        except CommandError as e:
            logger.debug(f"Ignoring failed `git am --abort`: {e}")

    async def abort_am(self) -> None:
        await self._git("am", "--abort")

    async def abort_rebase(self) -> None:
        await self._git("rebase", "--abort")

    async def checkout(self, branch: str) -> None:
        await self._git("checkout", branch)

    async def count_commits_since(self, commit: str) -> int:
        """Number of commits reachable from HEAD but not from ``commit``."""
        output = await self.runner.capture(["git", "rev-list", "--count", f"{commit}..HEAD"])
        return int(output.strip())

    async def create_branch(self, branch: str) -> None:
        await self._git("checkout", "-b", branch)

    async def delete_branch(self, branch: str, force: bool = False) -> None:
        args = ["branch", "--delete"]
        if force:
            args.append("--force")
        await self._git(*args, branch)

    async def diff(self, commit: str) -> None:
        await self._git("diff", commit)

    async def get_commit_message(self, commit: str) -> str:
        return await self.runner.capture(["git", "show", "--no-patch", "--format=%B", commit])

    async def get_last_commit_message(self) -> str:
        return await self.get_commit_message("HEAD")

    async def log(self, oneline: bool = False, count: int | None = None) -> None:
        """Show the log. Failures are ignored (quitting the pager exits non-zero)."""
        args = ["log"]
        if oneline:
            args.append("--oneline")
        if count:
            args.append(f"-{count}")

        try:
            await self._git(*args)
        except CommandError as e:
            logger.debug(f"Ignoring failed `git log`: {e}")

    async def fetch_patch(self, url: str) -> bytes:
        """Download a patch, following redirects.

        Raises:
            PatchFetchError: On network errors or non-2xx responses
        """
        logger.debug(f"Fetching patch: {url}")
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PatchFetchError(f"Failed to fetch {url} (HTTP {e.response.status_code})") from e
        except httpx.RequestError as e:
            raise PatchFetchError(f"Failed to fetch {url}: {e}") from e

        return response.content

    async def merge_pull_request(self, url: str) -> None:
        """Apply a pull request's patch on the current branch with ``git am -3``."""
        patch = await self.fetch_patch(url)
        await self.cleanup.with_task(self.abort_am_task, lambda: self._git("am", "-3", input=patch))

    async def pull(self, branch: str, rebase: bool = False) -> None:
        args = ["pull"]
        if rebase:
            args.append("--rebase")
        await self._git(*args, "origin", branch)

    async def push(self, branch: str) -> None:
        await self._git("push", "origin", branch)

    async def rebase(self, commit: str | int, interactive: bool = False) -> None:
        """Rebase onto ``commit``; an int means ``HEAD~<n>``."""
        if isinstance(commit, int):
            commit = f"HEAD~{commit}"

        args = ["rebase"]
        if interactive:
            args.append("--interactive")
        await self._git(*args, commit)

    async def reset(self, commit: str, hard: bool = False) -> None:
        args = ["reset"]
        if hard:
            args.append("--hard")
        await self._git(*args, commit)

    async def set_last_commit_message(self, message: str) -> None:
        """Amend HEAD with a (possibly multi-line) message via a temp file."""
        fd, path = tempfile.mkstemp(prefix=".temp-commit-message_", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(message)
            await self._git("commit", "--amend", f"--file={path}")
        finally:
            os.unlink(path)

    async def update_last_commit_message(self, get_new_message: Callable[[str], str]) -> None:
        old_message = await self.get_last_commit_message()
        await self.set_last_commit_message(get_new_message(old_message))
