"""Configuration management for prmerge."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR = ".prmerge"


class Config(BaseModel):
    """prmerge configuration.

    Built once at startup (file defaults, then CLI overrides) and handed to
    every collaborator that needs it.
    """

    repo: str = Field(default="angular/angular.js", description="Default repository (owner/name)")
    branch: str = Field(default="master", description="Default branch to merge into")
    patch_host: str = Field(
        default="patch-diff.githubusercontent.com",
        description="Host serving raw pull request patches",
    )
    github_api: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    github_token: str | None = Field(
        default=None,
        description="Token for the CLA check; falls back to GITHUB_TOKEN",
    )
    cla_label: str = Field(default="cla: yes", description="Label marking a signed CLA")
    ci_command: list[str] = Field(
        default_factory=lambda: ["grunt", "ci-checks"],
        description="Command running the CI checks",
    )
    inspect_delay: float = Field(default=0.5, description="Pause before diff/log output in seconds")
    http_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")

    @field_validator("repo")
    @classmethod
    def _repo_has_owner(cls, value: str) -> str:
        if "/" not in value:
            raise ValueError(f"repo must be in 'owner/name' format, got {value!r}")
        return value

    @field_validator("ci_command")
    @classmethod
    def _ci_command_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("ci_command must not be empty")
        return value

    @property
    def token(self) -> str | None:
        """GitHub token from config or environment."""
        return self.github_token or os.getenv("GITHUB_TOKEN")

    def patch_url(self, repo: str, pr_no: int) -> str:
        """URL of the raw patch for a pull request."""
        return f"https://{self.patch_host}/raw/{repo}/pull/{pr_no}.patch"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file or use defaults."""
        if config_path is None:
            config_path = Path(CONFIG_DIR) / "config.yaml"

        if config_path.exists():
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path) -> None:
        """Save configuration to file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)


def temp_branch_name(pr_no: int) -> str:
    """Name of the branch a PR is staged on before merging."""
    return f"pr-{pr_no}"


def get_executable(name: str) -> str:
    """Platform-specific executable name (npm-style shims on Windows)."""
    suffix = ".cmd" if sys.platform == "win32" else ""
    return name + suffix
