"""Core data models for prmerge."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Keys into the error message catalog."""

    MISSING_PR_NO = "missing_pr_no"
    INVALID_PR_NO = "invalid_pr_no"
    INVALID_REPO = "invalid_repo"
    PHASE_1 = "phase1"
    PHASE_2 = "phase2"
    PHASE_3 = "phase3"
    PHASE_4 = "phase4"
    PHASE_5 = "phase5"
    PHASE_6 = "phase6"
    PHASE_X = "phaseX"
    UNEXPECTED = "unexpected"

    @classmethod
    def for_phase(cls, phase_id: str) -> ErrorCode:
        """Return the error code belonging to a phase id."""
        return cls(f"phase{phase_id}")


class Phase(BaseModel):
    """One step of the merge workflow.

    Instructions are templates with `${key}` placeholders, rendered only
    when the user asks for the manual instructions instead of a run.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    instructions: tuple[str, ...] = ()
    error_message: str = ""


class MergeInput(BaseModel):
    """Validated command-line input for a single merge run."""

    model_config = ConfigDict(frozen=True)

    repo: str = Field(description="Repository in 'owner/name' format")
    branch: str = Field(description="Branch the PR is merged into")
    pr_no: int = Field(gt=0, description="Pull request number")
    temp_branch: str
    pr_url: str

    def template_data(self) -> dict[str, str]:
        """Values available to instruction templates."""
        return {
            "repo": self.repo,
            "branch": self.branch,
            "prNo": str(self.pr_no),
            "tempBranch": self.temp_branch,
            "prUrl": self.pr_url,
        }
