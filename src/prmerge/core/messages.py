"""User-facing texts: phase catalog, error messages and usage."""

from __future__ import annotations

import re

from prmerge.core.models import ErrorCode, Phase

CLEAN_UP_HINT = "(Clean-up might be needed.)"

OFFER_TO_CLEAN_UP = "Do you want me to try to clean up for you?"

WARNING_BOX = (
    ":::::::::::::::::::::::::::::::::::::::::::::\n"
    "::  WARNING:                               ::\n"
    "::    This is still an experimental tool.  ::\n"
    "::    Use at your own risk!                ::\n"
    ":::::::::::::::::::::::::::::::::::::::::::::"
)

PHASES: dict[str, Phase] = {
    "1": Phase(
        id="1",
        description="Verifying CLA signature",
        instructions=("Verify that the author of PR #${prNo} has signed the CLA (label `${claLabel}`).",),
        error_message="Failed to verify the CLA signature.",
    ),
    "2": Phase(
        id="2",
        description="Fetching PR as local branch",
        instructions=(
            "`git checkout ${branch}`",
            "`git pull --rebase origin ${branch}`",
            "`git checkout -b ${tempBranch}`",
            "`curl -L ${prUrl} | git am -3`",
        ),
        error_message=f"Failed to fetch the PR as a local branch. {CLEAN_UP_HINT}",
    ),
    "3": Phase(
        id="3",
        description="Merging into the target branch",
        instructions=(
            "`git rev-list --count ${branch}..HEAD` (count the PR commits)",
            "`git checkout ${branch}`",
            "`git rebase ${tempBranch}`",
            "`git branch --delete --force ${tempBranch}`",
            "`git rebase --interactive HEAD~<COMMIT_COUNT>` (only if more than one commit, to squash)",
            "`git commit --amend` (append `Closes #${prNo}` to the message, before any `BREAKING CHANGE:`)",
        ),
        error_message=f"Failed to properly merge the PR into the target branch. {CLEAN_UP_HINT}",
    ),
    "4": Phase(
        id="4",
        description="Inspecting changes",
        instructions=(
            "`git diff origin/${branch}`",
            "`git log`",
        ),
    ),
    "5": Phase(
        id="5",
        description="Running the CI-checks",
        instructions=("`${ciCommand}` (optional, recommended)",),
        error_message=f"Failed to run the CI-checks or the CI-checks didn't pass. {CLEAN_UP_HINT}",
    ),
    "6": Phase(
        id="6",
        description="Pushing to origin",
        instructions=("`git push origin ${branch}` (optional)",),
        error_message=f"Failed to push the changes to origin. {CLEAN_UP_HINT}",
    ),
    "X": Phase(
        id="X",
        description="Trying to clean up the mess",
        error_message="Failed to clean up. Manual intervention might be needed.",
    ),
}


def usage(program: str, default_repo: str, default_branch: str) -> str:
    """Usage text, first line is the synopsis."""
    return (
        f"  USAGE: {program} <PRNO> [--branch=<BRANCH>] [--repo=<REPO>] [--instructions]\n"
        f'         (Defaults: BRANCH="{default_branch}", REPO="{default_repo}")'
    )


def error_message(code: ErrorCode | str, usage_text: str = "") -> str:
    """Human message for an error code, falling back to the code itself."""
    if isinstance(code, str) and not isinstance(code, ErrorCode):
        try:
            code = ErrorCode(code)
        except ValueError:
            return code or "<no error code>"

    if code == ErrorCode.MISSING_PR_NO:
        return f"No PR specified\n\n{usage_text}".rstrip()
    if code == ErrorCode.INVALID_PR_NO:
        return f"Invalid PR number (expected a positive integer)\n\n{usage_text}".rstrip()
    if code == ErrorCode.INVALID_REPO:
        return f"Invalid repo (expected '<owner>/<name>')\n\n{usage_text}".rstrip()
    if code == ErrorCode.UNEXPECTED:
        return f"Unexpected error! {CLEAN_UP_HINT}"

    phase_id = code.value.removeprefix("phase")
    phase = PHASES.get(phase_id)
    if phase is None:
        return code.value
    return phase.error_message or f"Phase {phase_id} failed."


def interpolate(text: str, data: dict[str, str]) -> str:
    """Replace every ``${key}`` in text; unknown keys render as ``undefined``."""
    return re.sub(r"\$\{([^}]*)\}", lambda m: data.get(m.group(1), "undefined"), text)
