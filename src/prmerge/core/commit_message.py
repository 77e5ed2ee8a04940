"""Commit message rewriting: link the merged commit to its pull request."""

from __future__ import annotations

import re

CLOSING_KEYWORDS = ("close", "closes", "closed", "fix", "fixes", "fixed", "resolve", "resolves", "resolved")

# Breaking-change notes must stay the trailing block of the message.
_TRAILER_POSITION = re.compile(r"(\n\s*BREAKING CHANGE:|\Z)")


def _closing_pattern(pr_no: int) -> re.Pattern[str]:
    keywords = "|".join(CLOSING_KEYWORDS)
    return re.compile(rf"\b(?:{keywords})\s*#{pr_no}(?!\d)", re.IGNORECASE)


def has_closing_trailer(message: str, pr_no: int) -> bool:
    """Check whether a message already closes the given PR (e.g. "Fixes #42")."""
    return _closing_pattern(pr_no).search(message) is not None


def rewrite_commit_message(message: str, pr_no: int) -> str:
    """Normalize a commit message and append a ``Closes #<pr_no>`` trailer.

    The trailer goes right before a ``BREAKING CHANGE:`` line if there is
    one, otherwise at the end. Messages that already close the PR are only
    normalized.

    Args:
        message: Current commit message (as printed by ``git show``)
        pr_no: Pull request number

    Returns:
        The new commit message
    """
    normalized = message.replace("\r\n", "\n").strip()

    if has_closing_trailer(normalized, pr_no):
        return normalized

    trailer = f"\n\nCloses #{pr_no}"
    return _TRAILER_POSITION.sub(lambda m: trailer + m.group(1), normalized, count=1)
