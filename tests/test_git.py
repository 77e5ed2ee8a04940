"""Tests for the git client."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from conftest import FakeCommandRunner

from prmerge.core.cleanup import CleanupRegistry
from prmerge.runners.git import GitClient, PatchFetchError

PATCH_URL = "https://patch-diff.githubusercontent.com/raw/foo/bar/pull/12345.patch"


def make_client(
    runner: FakeCommandRunner,
    handler: httpx.MockTransport | None = None,
) -> tuple[GitClient, CleanupRegistry]:
    cleanup = CleanupRegistry()
    http_client = httpx.AsyncClient(transport=handler) if handler is not None else None
    return GitClient(runner, cleanup, http_client=http_client), cleanup  # type: ignore[arg-type]


class TestCommands:
    """Tests for the git command lines."""

    @pytest.mark.asyncio
    async def test_simple_commands(self) -> None:
        runner = FakeCommandRunner()
        git, _ = make_client(runner)

        await git.checkout("main")
        await git.create_branch("pr-1")
        await git.delete_branch("pr-1")
        await git.delete_branch("pr-1", force=True)
        await git.diff("origin/main")
        await git.pull("main")
        await git.pull("main", rebase=True)
        await git.push("main")
        await git.reset("origin/main", hard=True)
        await git.abort_rebase()
        await git.abort_am()

        assert runner.commands == [
            ["git", "checkout", "main"],
            ["git", "checkout", "-b", "pr-1"],
            ["git", "branch", "--delete", "pr-1"],
            ["git", "branch", "--delete", "--force", "pr-1"],
            ["git", "diff", "origin/main"],
            ["git", "pull", "origin", "main"],
            ["git", "pull", "--rebase", "origin", "main"],
            ["git", "push", "origin", "main"],
            ["git", "reset", "--hard", "origin/main"],
            ["git", "rebase", "--abort"],
            ["git", "am", "--abort"],
        ]

    @pytest.mark.asyncio
    async def test_rebase_with_commit_count(self) -> None:
        runner = FakeCommandRunner()
        git, _ = make_client(runner)

        await git.rebase("pr-1")
        await git.rebase(3, interactive=True)

        assert runner.commands == [
            ["git", "rebase", "pr-1"],
            ["git", "rebase", "--interactive", "HEAD~3"],
        ]

    @pytest.mark.asyncio
    async def test_count_commits_since(self) -> None:
        runner = FakeCommandRunner()
        runner.outputs[("git", "rev-list", "--count", "main..HEAD")] = "4\n"
        git, _ = make_client(runner)

        assert await git.count_commits_since("main") == 4

    @pytest.mark.asyncio
    async def test_get_last_commit_message(self) -> None:
        runner = FakeCommandRunner()
        runner.outputs[("git", "show", "--no-patch", "--format=%B", "HEAD")] = "feat: foo\n\n"
        git, _ = make_client(runner)

        assert await git.get_last_commit_message() == "feat: foo\n\n"

    @pytest.mark.asyncio
    async def test_log_ignores_failures(self) -> None:
        runner = FakeCommandRunner(fail_on={("git", "log", "--oneline", "-5")})
        git, _ = make_client(runner)

        await git.log(oneline=True, count=5)

        assert runner.commands == [["git", "log", "--oneline", "-5"]]

    @pytest.mark.asyncio
    async def test_abort_am_task_swallows_failures(self) -> None:
        runner = FakeCommandRunner(fail_on={("git", "am", "--abort")})
        git, cleanup = make_client(runner)

        await cleanup.get_task(git.abort_am_task).action()

        assert runner.commands == [["git", "am", "--abort"]]


class TestCommitMessage:
    """Tests for amending the last commit message."""

    @pytest.mark.asyncio
    async def test_amends_via_temp_file_and_removes_it(self) -> None:
        runner = FakeCommandRunner()
        seen: dict[str, str] = {}

        def read_message_file(command: list[str]) -> None:
            path = command[-1].removeprefix("--file=")
            seen["path"] = path
            seen["content"] = Path(path).read_text(encoding="utf-8")

        runner.on_run = read_message_file
        git, _ = make_client(runner)

        await git.set_last_commit_message("feat: foo\n\nCloses #1")

        assert runner.commands[0][:3] == ["git", "commit", "--amend"]
        assert seen["content"] == "feat: foo\n\nCloses #1"
        assert not Path(seen["path"]).exists()

    @pytest.mark.asyncio
    async def test_removes_temp_file_when_amend_fails(self) -> None:
        runner = FakeCommandRunner()
        paths: list[str] = []

        def fail(command: list[str]) -> None:
            paths.append(command[-1].removeprefix("--file="))
            raise RuntimeError("amend failed")

        runner.on_run = fail
        git, _ = make_client(runner)

        with pytest.raises(RuntimeError):
            await git.set_last_commit_message("msg")

        assert not Path(paths[0]).exists()

    @pytest.mark.asyncio
    async def test_update_last_commit_message(self) -> None:
        runner = FakeCommandRunner()
        runner.outputs[("git", "show", "--no-patch", "--format=%B", "HEAD")] = "old"
        contents: list[str] = []
        runner.on_run = lambda command: contents.append(Path(command[-1].removeprefix("--file=")).read_text())
        git, _ = make_client(runner)

        await git.update_last_commit_message(lambda old: f"{old} + new")

        assert contents == ["old + new"]


class TestMergePullRequest:
    """Tests for fetching and applying the PR patch."""

    @pytest.mark.asyncio
    async def test_fetches_patch_and_pipes_into_git_am(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=b"From abc\nSubject: [PATCH] foo\n")

        runner = FakeCommandRunner()
        pending: list[list[str]] = []
        git, cleanup = make_client(runner, httpx.MockTransport(handler))
        runner.on_run = lambda command: pending.append(cleanup.pending_descriptions())

        await git.merge_pull_request(PATCH_URL)

        assert requested == [PATCH_URL]
        assert runner.commands == [["git", "am", "-3"]]
        assert runner.inputs == [b"From abc\nSubject: [PATCH] foo\n"]
        assert pending == [["Abort `git am`."]]
        assert cleanup.has_pending_tasks() is False

    @pytest.mark.asyncio
    async def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "patch-diff.githubusercontent.com":
                return httpx.Response(302, headers={"Location": "https://example.com/1.patch"})
            return httpx.Response(200, content=b"patch")

        runner = FakeCommandRunner()
        git, _ = make_client(runner, httpx.MockTransport(handler))

        assert await git.fetch_patch(PATCH_URL) == b"patch"

    @pytest.mark.asyncio
    async def test_http_error_raises_patch_fetch_error(self) -> None:
        runner = FakeCommandRunner()
        git, _ = make_client(runner, httpx.MockTransport(lambda request: httpx.Response(404)))

        with pytest.raises(PatchFetchError, match="404"):
            await git.merge_pull_request(PATCH_URL)

        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_network_error_raises_patch_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        git, _ = make_client(FakeCommandRunner(), httpx.MockTransport(handler))

        with pytest.raises(PatchFetchError, match="no route"):
            await git.fetch_patch(PATCH_URL)
