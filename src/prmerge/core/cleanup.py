"""Clean-up task bookkeeping.

Operations that change the repository state schedule a reversal task
before (or right after) they run, and unschedule it once the risk has
passed. If a later step fails, the pending tasks are drained in LIFO
order, so later changes are undone before earlier ones.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CleanupAction = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class TaskId:
    """Opaque handle of a registered clean-up task.

    Wraps the task's index in the registry's catalog. Two tasks with the
    same description still get distinct ids.
    """

    index: int


@dataclass(frozen=True)
class CleanupTask:
    """A registered reversal action."""

    description: str
    action: CleanupAction


class CleanupError(Exception):
    """One or more clean-up actions failed while draining the stack."""

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        self.failures = failures
        descriptions = ", ".join(description for description, _ in failures)
        super().__init__(f"{len(failures)} clean-up task(s) failed: {descriptions}")


class CleanupRegistry:
    """Catalog of clean-up tasks plus the stack of currently pending ones.

    Callers must not schedule a task that is already pending: ``schedule``
    pushes unconditionally and ``unschedule`` removes only the most recent
    occurrence.
    """

    def __init__(self) -> None:
        self._tasks: list[CleanupTask] = []
        self._pending: list[TaskId] = []

    def register_task(self, description: str, action: CleanupAction) -> TaskId:
        """Add a task to the catalog and return its id."""
        task_id = TaskId(len(self._tasks))
        self._tasks.append(CleanupTask(description, action))
        return task_id

    def get_task(self, task_id: TaskId) -> CleanupTask:
        return self._tasks[task_id.index]

    def schedule(self, task_id: TaskId) -> None:
        """Mark a task as pending (push it onto the stack)."""
        logger.debug(f"Scheduling clean-up task: {self.get_task(task_id).description}")
        self._pending.append(task_id)

    def unschedule(self, task_id: TaskId) -> None:
        """Remove the most recent occurrence of a task; no-op if absent."""
        for idx in range(len(self._pending) - 1, -1, -1):
            if self._pending[idx] == task_id:
                del self._pending[idx]
                logger.debug(f"Unscheduled clean-up task: {self.get_task(task_id).description}")
                return

    def has_pending_tasks(self) -> bool:
        return bool(self._pending)

    def pending_descriptions(self) -> list[str]:
        """Descriptions of pending tasks, next-to-run first."""
        return [self.get_task(task_id).description for task_id in reversed(self._pending)]

    async def run_cleanup(
        self,
        list_only: bool = False,
        report: Callable[[str], None] | None = None,
    ) -> None:
        """Pop and run pending tasks until the stack is empty.

        Args:
            list_only: Only report each task's description, do not run it
            report: Called with each task's description before it runs

        Raises:
            CleanupError: If any action failed. Remaining tasks still run.
        """
        failures: list[tuple[str, BaseException]] = []

        while self._pending:
            task = self.get_task(self._pending.pop())
            if report is not None:
                report(task.description)
            if list_only:
                continue

            try:
                await task.action()
            except Exception as e:
                logger.warning(f"Clean-up task failed ({task.description}): {e}")
                failures.append((task.description, e))

        if failures:
            raise CleanupError(failures)

    async def with_task(self, task_id: TaskId, fn: Callable[[], Awaitable[T]]) -> T:
        """Keep a task scheduled only while ``fn`` is in flight."""
        self.schedule(task_id)
        try:
            return await fn()
        finally:
            self.unschedule(task_id)
