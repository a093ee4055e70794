"""Tests for the GitHub collector."""

from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from team_health_guard.vcs.github import GITHUB_API, GitHubAPIError, GitHubCollector

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)

CONTRIBUTORS = [
    {"login": "alice", "contributions": 40},
    {"login": "bob", "contributions": 12},
    {"type": "Anonymous", "contributions": 3},
]

COMMITS = [
    {
        "sha": "a1b2c3d",
        "commit": {
            "message": "feat: add search",
            "author": {"name": "Alice", "date": "2024-06-09T10:00:00Z"},
        },
        "author": {"login": "alice"},
    },
    {
        "sha": "d4e5f6a",
        "commit": {
            "message": "fix: crash on empty query",
            "author": {"name": "Bob B", "date": "2024-06-01T10:00:00Z"},
        },
        "author": None,
    },
]

PULLS = [
    {
        "number": 1,
        "title": "Add search",
        "state": "open",
        "user": {"login": "alice"},
        "created_at": "2024-06-08T10:00:00Z",
        "updated_at": "2024-06-09T10:00:00Z",
        "merged_at": None,
        "closed_at": None,
    },
    {
        "number": 2,
        "title": "Fix crash",
        "state": "closed",
        "user": {"login": "bob"},
        "created_at": "2024-06-01T10:00:00Z",
        "updated_at": "2024-06-02T10:00:00Z",
        "merged_at": "2024-06-02T10:00:00Z",
        "closed_at": "2024-06-02T10:00:00Z",
    },
]

ISSUES = [
    {
        "number": 10,
        "title": "Search is slow",
        "state": "open",
        "user": {"login": "carol"},
        "assignee": {"login": "alice"},
        "created_at": "2024-06-05T10:00:00Z",
        "closed_at": None,
    },
    {
        "number": 11,
        "title": "Typo",
        "state": "closed",
        "user": {"login": "carol"},
        "assignee": None,
        "created_at": "2024-06-01T10:00:00Z",
        "closed_at": "2024-06-03T10:00:00Z",
    },
    {
        "number": 1,
        "title": "Add search",
        "state": "open",
        "user": {"login": "alice"},
        "created_at": "2024-06-08T10:00:00Z",
        "pull_request": {"url": "https://api.github.com/repos/acme/widgets/pulls/1"},
    },
]

ROUTES = {
    "/repos/acme/widgets/contributors": CONTRIBUTORS,
    "/repos/acme/widgets/commits": COMMITS,
    "/repos/acme/widgets/pulls": PULLS,
    "/repos/acme/widgets/issues": ISSUES,
}


def _collector(routes=ROUTES, status_code=200) -> GitHubCollector:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer test_token"
        if status_code != 200:
            return httpx.Response(status_code, text="Not Found")
        return httpx.Response(200, json=routes[request.url.path])

    client = httpx.Client(base_url=GITHUB_API, transport=httpx.MockTransport(handler))
    return GitHubCollector(token="test_token", client=client)


def test_collector_requires_token():
    """Test that GitHubCollector requires a token."""
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ValueError, match="GITHUB_TOKEN is required"):
            GitHubCollector()


def test_collector_reads_token_from_env():
    """Test that GitHubCollector reads token from environment."""
    with patch.dict("os.environ", {"GITHUB_TOKEN": "env_token"}):
        collector = GitHubCollector()
        assert collector.token == "env_token"
        collector.close()


def test_fetch_contributors_skips_anonymous():
    assert _collector().fetch_contributors("acme", "widgets") == ["alice", "bob"]


def test_fetch_commits_falls_back_to_author_name():
    commits = _collector().fetch_commits("acme", "widgets")
    assert [c.author for c in commits] == ["alice", "Bob B"]
    assert commits[0].timestamp == datetime(2024, 6, 9, 10, 0, tzinfo=timezone.utc)


def test_fetch_commits_keeps_raw_messages():
    """Test that fetching commits leaves classification to the caller."""
    with patch("team_health_guard.commits.classify_commit") as mock_classify:
        commits = _collector().fetch_commits("acme", "widgets")
    mock_classify.assert_not_called()
    assert [c.message for c in commits] == [
        "feat: add search",
        "fix: crash on empty query",
    ]


def test_fetch_pull_requests_marks_merged():
    prs = _collector().fetch_pull_requests("acme", "widgets")
    assert [(pr.number, pr.state) for pr in prs] == [(1, "open"), (2, "merged")]


def test_fetch_issues_excludes_pull_requests():
    issues = _collector().fetch_issues("acme", "widgets")
    assert [i.number for i in issues] == [10, 11]
    assert issues[0].assignee == "alice"
    assert issues[1].assignee is None


def test_collect_live_signals():
    """Test assembling live signals from every endpoint."""
    signals = _collector().collect_live_signals("acme", "widgets", NOW)

    assert signals.commits_last_7_days == 1
    assert signals.open_prs == 1
    assert signals.closed_prs == 1
    assert signals.open_issues == 1
    assert signals.closed_issues == 1
    assert signals.contributor_count == 2
    assert [(h.author, h.status) for h in signals.contributor_health] == [
        ("alice", "active"),
        ("Bob B", "inactive"),
    ]


def test_api_error():
    """Test that non-success responses raise GitHubAPIError."""
    with pytest.raises(GitHubAPIError) as exc_info:
        _collector(status_code=404).fetch_contributors("acme", "missing")
    assert exc_info.value.status == 404
    assert exc_info.value.path == "/repos/acme/missing/contributors"
    assert "GitHub API 404" in str(exc_info.value)
