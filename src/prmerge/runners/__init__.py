"""External collaborators: commands, git and the CLA check."""

from prmerge.runners.cla import ClaChecker, ClaCheckError
from prmerge.runners.command import CommandError, CommandRunner
from prmerge.runners.git import GitClient, PatchFetchError

__all__ = [
    "ClaCheckError",
    "ClaChecker",
    "CommandError",
    "CommandRunner",
    "GitClient",
    "PatchFetchError",
]
