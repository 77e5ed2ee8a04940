"""Core merge logic: phases, cleanup bookkeeping and commit messages."""

from prmerge.core.cleanup import CleanupError, CleanupRegistry, CleanupTask, TaskId
from prmerge.core.commit_message import has_closing_trailer, rewrite_commit_message
from prmerge.core.models import ErrorCode, MergeInput, Phase

__all__ = [
    "CleanupError",
    "CleanupRegistry",
    "CleanupTask",
    "ErrorCode",
    "MergeInput",
    "Phase",
    "TaskId",
    "has_closing_trailer",
    "rewrite_commit_message",
]
