"""Contributor License Agreement verification through the GitHub API.

A pull request counts as signed when it carries the configured label
(``cla: yes`` by default), as set by the CLA bot.
"""

from __future__ import annotations

import logging

import httpx

from prmerge.config import Config

logger = logging.getLogger(__name__)


class ClaCheckError(Exception):
    """The CLA signature could not be verified."""


class ClaChecker:
    """Checks the CLA label of a pull request."""

    def __init__(
        self,
        repo: str,
        config: Config,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.repo = repo
        self.label = config.cla_label
        self.api_base = config.github_api.rstrip("/")
        self.timeout = config.http_timeout
        self._http_client = http_client

        # Never log the token
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"

    async def _get_labels(self, pr_no: int) -> list[str]:
        url = f"{self.api_base}/repos/{self.repo}/issues/{pr_no}/labels"
        logger.debug(f"Fetching labels: {url}")

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=self._headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ClaCheckError(f"GitHub API error {e.response.status_code} for PR #{pr_no}") from e
        except httpx.RequestError as e:
            raise ClaCheckError(f"Could not reach GitHub: {e}") from e

        return [label["name"] for label in response.json()]

    async def check(self, pr_no: int) -> None:
        """Verify the CLA signature of a pull request.

        Raises:
            ClaCheckError: If the label is missing or GitHub can't be queried
        """
        labels = await self._get_labels(pr_no)
        if self.label.lower() not in (label.lower() for label in labels):
            raise ClaCheckError(f"PR #{pr_no} is missing the `{self.label}` label")
        logger.debug(f"CLA verified for PR #{pr_no}")
