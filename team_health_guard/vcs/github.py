"""
GitHub data collection for Team Health Guard.

Fetches contributors, commits, pull requests and issues for one repository
through the GitHub REST API and turns them into records the scorers accept.
"""

import logging
import os
from datetime import datetime, timedelta
from typing import Any

import httpx
from dotenv import load_dotenv

from team_health_guard.core import build_live_signals
from team_health_guard.errors import TeamHealthGuardError
from team_health_guard.metrics.base import LiveSignals
from team_health_guard.models import (
    CommitRecord,
    IssueRecord,
    PullRequestRecord,
    parse_optional_timestamp,
    parse_timestamp,
)

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
PER_PAGE = 100
COMMIT_LOOKBACK_DAYS = 30


class GitHubAPIError(TeamHealthGuardError):
    """The GitHub API answered with a non-success status."""

    def __init__(self, status: int, body: str, path: str):
        super().__init__(
            f"GitHub API {status} on {path}", {"body": body[:200]} if body else None
        )
        self.status = status
        self.body = body
        self.path = path


class GitHubCollector:
    """Collects live team signals for a GitHub repository."""

    def __init__(self, token: str | None = None, client: httpx.Client | None = None):
        """
        Initialize the collector.

        Args:
            token: GitHub Personal Access Token. If not provided, reads from
                   GITHUB_TOKEN environment variable.
            client: Optional preconfigured httpx client.

        Raises:
            ValueError: If token is not provided and GITHUB_TOKEN env var is not set
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GITHUB_TOKEN is required to collect live signals.\n"
                "\n"
                "To get started:\n"
                "1. Create a GitHub Personal Access Token:\n"
                "   https://github.com/settings/tokens/new\n"
                "2. Select scope: 'repo' (or 'public_repo' for public repositories)\n"
                "3. Set the token:\n"
                "   export GITHUB_TOKEN='your_token_here'  # Linux/macOS\n"
                "   or add to your .env file: GITHUB_TOKEN=your_token_here\n"
            )
        self._client = client or httpx.Client(base_url=GITHUB_API, timeout=10)

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        response = self._client.get(path, params=params, headers=headers)
        if response.status_code >= 400:
            raise GitHubAPIError(response.status_code, response.text, path)
        return response.json()

    def fetch_contributors(self, owner: str, repo: str) -> list[str]:
        data = self._get(
            f"/repos/{owner}/{repo}/contributors", {"per_page": PER_PAGE}
        )
        return [c["login"] for c in data if c.get("login")]

    def fetch_commits(
        self, owner: str, repo: str, since: datetime | None = None
    ) -> list[CommitRecord]:
        """Recent commits, newest first as the API returns them."""
        params: dict[str, Any] = {"per_page": PER_PAGE}
        if since is not None:
            params["since"] = since.isoformat()
        data = self._get(f"/repos/{owner}/{repo}/commits", params)

        commits = []
        for item in data:
            commit = item.get("commit", {})
            author = (item.get("author") or {}).get("login") or (
                commit.get("author") or {}
            ).get("name")
            record = CommitRecord(
                message=commit.get("message", ""),
                author=author,
                timestamp=parse_timestamp(
                    (commit.get("author") or {}).get("date"), "commit.author.date"
                ),
            )
            commits.append(record)
        logger.debug("Fetched %d commits for %s/%s", len(commits), owner, repo)
        return commits

    def fetch_pull_requests(
        self, owner: str, repo: str, state: str = "all"
    ) -> list[PullRequestRecord]:
        data = self._get(
            f"/repos/{owner}/{repo}/pulls", {"state": state, "per_page": PER_PAGE}
        )
        pull_requests = []
        for item in data:
            merged_at = parse_optional_timestamp(item.get("merged_at"), "merged_at")
            if item.get("state") == "open":
                pr_state = "open"
            elif merged_at is not None:
                pr_state = "merged"
            else:
                pr_state = "closed"
            pull_requests.append(
                PullRequestRecord(
                    number=item["number"],
                    title=item.get("title") or "",
                    state=pr_state,
                    author=(item.get("user") or {}).get("login", "unknown"),
                    created_at=parse_timestamp(item["created_at"], "created_at"),
                    updated_at=parse_timestamp(
                        item.get("updated_at") or item["created_at"], "updated_at"
                    ),
                    merged_at=merged_at,
                    closed_at=parse_optional_timestamp(
                        item.get("closed_at"), "closed_at"
                    ),
                )
            )
        return pull_requests

    def fetch_issues(
        self, owner: str, repo: str, state: str = "all"
    ) -> list[IssueRecord]:
        """Issues only; the issues endpoint also lists pull requests."""
        data = self._get(
            f"/repos/{owner}/{repo}/issues", {"state": state, "per_page": PER_PAGE}
        )
        return [
            IssueRecord(
                number=item["number"],
                title=item.get("title") or "",
                state=item.get("state", "open"),
                author=(item.get("user") or {}).get("login", "unknown"),
                created_at=parse_timestamp(item["created_at"], "created_at"),
                assignee=(item.get("assignee") or {}).get("login"),
                closed_at=parse_optional_timestamp(item.get("closed_at"), "closed_at"),
            )
            for item in data
            if "pull_request" not in item
        ]

    def collect_live_signals(
        self, owner: str, repo: str, now: datetime
    ) -> LiveSignals:
        """
        Fetch everything the live health formula needs.

        Raises:
            GitHubAPIError: If any request fails.
        """
        now = parse_timestamp(now, "now")
        contributors = self.fetch_contributors(owner, repo)
        commits = self.fetch_commits(
            owner, repo, since=now - timedelta(days=COMMIT_LOOKBACK_DAYS)
        )
        pull_requests = self.fetch_pull_requests(owner, repo)
        issues = self.fetch_issues(owner, repo)
        logger.info(
            "Collected %d commits, %d PRs, %d issues for %s/%s",
            len(commits),
            len(pull_requests),
            len(issues),
            owner,
            repo,
        )
        return build_live_signals(
            commits, pull_requests, issues, len(contributors), now
        )
