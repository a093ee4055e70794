"""
Hosting-platform data collection for Team Health Guard.

Collectors fetch raw repository activity and turn it into the record types
the scorers accept.
"""

from team_health_guard.vcs.github import GitHubAPIError, GitHubCollector

__all__ = [
    "GitHubAPIError",
    "GitHubCollector",
]
