"""Shared fixtures and fakes for prmerge tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from prmerge.config import Config, temp_branch_name
from prmerge.core.cleanup import CleanupRegistry, TaskId
from prmerge.core.models import MergeInput
from prmerge.runners.command import CommandError
from prmerge.ui.prompt import ConfirmationDeclined, is_affirmative
from prmerge.ui.reporter import ReportLevel, Reporter


class RecordingReporter(Reporter):
    """Reporter keeping every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[ReportLevel, str]] = []

    def report(self, message: str, level: ReportLevel = "info") -> None:
        self.messages.append((level, message))

    @property
    def text(self) -> str:
        return "\n".join(message for _, message in self.messages)


class ScriptedPrompter:
    """Prompter answering questions from a script ("" means the default)."""

    def __init__(self, answers: list[str] | None = None) -> None:
        self.answers = list(answers or [])
        self.questions: list[tuple[str, bool]] = []

    async def ask_yes_no(self, question: str, default_yes: bool = False) -> None:
        self.questions.append((question, default_yes))
        answer = self.answers.pop(0) if self.answers else ""
        if not is_affirmative(answer, default_yes):
            raise ConfirmationDeclined(question)


class RecordingCleanupRegistry(CleanupRegistry):
    """CleanupRegistry logging schedule/unschedule calls into a shared event list."""

    def __init__(self, events: list[tuple]) -> None:
        super().__init__()
        self.events = events

    def schedule(self, task_id: TaskId) -> None:
        self.events.append(("schedule", self.get_task(task_id).description))
        super().schedule(task_id)

    def unschedule(self, task_id: TaskId) -> None:
        self.events.append(("unschedule", self.get_task(task_id).description))
        super().unschedule(task_id)


class FakeGit:
    """In-memory stand-in for GitClient recording every operation."""

    def __init__(
        self,
        events: list[tuple],
        commit_count: int = 1,
        message: str = "feat(foo): add bar\n",
        fail_on: set[str] | None = None,
    ) -> None:
        self.events = events
        self.commit_count = commit_count
        self.message = message
        self.fail_on = fail_on or set()

    def _record(self, name: str, *args: object) -> None:
        self.events.append((name, *args))
        if name in self.fail_on:
            raise CommandError(["git", name], 1)

    async def abort_rebase(self) -> None:
        self._record("abort_rebase")

    async def checkout(self, branch: str) -> None:
        self._record("checkout", branch)

    async def count_commits_since(self, commit: str) -> int:
        self._record("count_commits_since", commit)
        return self.commit_count

    async def create_branch(self, branch: str) -> None:
        self._record("create_branch", branch)

    async def delete_branch(self, branch: str, force: bool = False) -> None:
        self._record("delete_branch", branch, force)

    async def diff(self, commit: str) -> None:
        self._record("diff", commit)

    async def log(self, oneline: bool = False, count: int | None = None) -> None:
        self._record("log")

    async def merge_pull_request(self, url: str) -> None:
        self._record("merge_pull_request", url)

    async def pull(self, branch: str, rebase: bool = False) -> None:
        self._record("pull", branch, rebase)

    async def push(self, branch: str) -> None:
        self._record("push", branch)

    async def rebase(self, commit: str | int, interactive: bool = False) -> None:
        self._record("rebase", commit, interactive)

    async def reset(self, commit: str, hard: bool = False) -> None:
        self._record("reset", commit, hard)

    async def update_last_commit_message(self, get_new_message: Callable[[str], str]) -> None:
        self._record("update_last_commit_message")
        self.message = get_new_message(self.message)


class FakeClaChecker:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.checked: list[int] = []

    async def check(self, pr_no: int) -> None:
        self.checked.append(pr_no)
        if self.error is not None:
            raise self.error


class FakeCommandRunner:
    """Records commands; ``outputs`` maps a command tuple to captured output."""

    def __init__(self, fail_on: set[tuple[str, ...]] | None = None) -> None:
        self.commands: list[list[str]] = []
        self.inputs: list[bytes | None] = []
        self.outputs: dict[tuple[str, ...], str] = {}
        self.fail_on = fail_on or set()
        self.on_run: Callable[[list[str]], None] | None = None

    def _check(self, command: list[str]) -> None:
        if tuple(command) in self.fail_on:
            raise CommandError(command, 1)

    async def run(self, command: list[str], input: bytes | None = None) -> None:
        self.commands.append(command)
        self.inputs.append(input)
        if self.on_run is not None:
            self.on_run(command)
        self._check(command)

    async def capture(self, command: list[str]) -> str:
        self.commands.append(command)
        self.inputs.append(None)
        self._check(command)
        return self.outputs.get(tuple(command), "")


@pytest.fixture
def config() -> Config:
    """Config with no delays."""
    return Config(inspect_delay=0)


@pytest.fixture
def merge_input(config: Config) -> MergeInput:
    return MergeInput(
        repo="foo/bar",
        branch="baz-qux",
        pr_no=12345,
        temp_branch=temp_branch_name(12345),
        pr_url=config.patch_url("foo/bar", 12345),
    )


@pytest.fixture
def events() -> list[tuple]:
    return []


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
