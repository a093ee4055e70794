"""
Heuristic alert detection over team activity.

Every detector is a pure function of the records and an explicit ``now``;
storing and de-duplicating alerts across runs is left to the caller.
Thresholds default to the configured values.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from team_health_guard.config import get_threshold
from team_health_guard.models import (
    Alert,
    BranchRecord,
    ChatMessageRecord,
    CommitRecord,
    CycleTimeRow,
    IssueRecord,
    PullRequestRecord,
    parse_optional_timestamp,
    parse_timestamp,
)
from team_health_guard.patterns import BLOCKER

BLOCKER_WINDOW_HOURS = 24


def detect_inactive_branches(
    branches: Iterable[BranchRecord],
    now: datetime,
    inactive_days: int | None = None,
) -> list[Alert]:
    """Unmerged branches without a commit for ``inactive_days`` or more."""
    if inactive_days is None:
        inactive_days = get_threshold("inactive_branch_days")
    cutoff = parse_timestamp(now, "now") - timedelta(days=inactive_days)

    alerts = []
    for branch in branches:
        if branch.is_merged:
            continue
        if parse_timestamp(branch.last_commit_at, "last_commit_at") >= cutoff:
            continue
        alerts.append(
            Alert(
                type="inactive_branch",
                severity="warning",
                title=f"Inactive branch: {branch.name}",
                description=(
                    f'Branch "{branch.name}" by {branch.author} has had no commits '
                    f"for {inactive_days}+ days."
                ),
                metadata={"branch": branch.name, "author": branch.author},
            )
        )
    return alerts


def detect_stale_prs(
    pull_requests: Iterable[PullRequestRecord],
    now: datetime,
    stale_hours: int | None = None,
) -> list[Alert]:
    """Open pull requests opened more than ``stale_hours`` ago."""
    if stale_hours is None:
        stale_hours = get_threshold("stale_pr_hours")
    cutoff = parse_timestamp(now, "now") - timedelta(hours=stale_hours)

    alerts = []
    for pr in pull_requests:
        if pr.state != "open":
            continue
        if parse_timestamp(pr.created_at, "created_at") >= cutoff:
            continue
        alerts.append(
            Alert(
                type="stale_pr",
                severity="warning",
                title=f"PR #{pr.number} pending review",
                description=(
                    f'"{pr.title}" by {pr.author} has been open for '
                    f"{stale_hours}+ hours without review."
                ),
                metadata={"pr_number": pr.number, "title": pr.title},
            )
        )
    return alerts


def detect_idle_assignments(
    issues: Iterable[IssueRecord],
    commits: Sequence[CommitRecord],
    now: datetime,
    stale_hours: int | None = None,
) -> list[Alert]:
    """
    Open, assigned issues older than ``stale_hours`` whose assignee has not
    committed since that cutoff.
    """
    if stale_hours is None:
        stale_hours = get_threshold("stale_pr_hours")
    cutoff = parse_timestamp(now, "now") - timedelta(hours=stale_hours)

    recent_authors = {
        c.author for c in commits if parse_timestamp(c.timestamp, "timestamp") > cutoff
    }

    alerts = []
    for issue in issues:
        if issue.state != "open" or not issue.assignee:
            continue
        if parse_timestamp(issue.created_at, "created_at") >= cutoff:
            continue
        if issue.assignee in recent_authors:
            continue
        alerts.append(
            Alert(
                type="assigned_issue_no_commits",
                severity="info",
                title=f"Issue #{issue.number} assigned but no recent commits",
                description=(
                    f'"{issue.title}" assigned to {issue.assignee} '
                    "with no recent commits."
                ),
                metadata={"issue_number": issue.number},
            )
        )
    return alerts


def detect_blocker_clusters(
    messages: Iterable[ChatMessageRecord], now: datetime
) -> list[Alert]:
    """
    One critical alert when at least two people reported blockers in the
    last 24 hours.
    """
    cutoff = parse_timestamp(now, "now") - timedelta(hours=BLOCKER_WINDOW_HOURS)
    blockers = [
        m
        for m in messages
        if parse_timestamp(m.timestamp, "timestamp") > cutoff
        and BLOCKER.matches(m.text)
    ]
    if len(blockers) < 2:
        return []

    authors = list(dict.fromkeys(m.author for m in blockers))
    if len(authors) < 2:
        return []

    return [
        Alert(
            type="multiple_blockers",
            severity="critical",
            title="Multiple team members reporting blockers",
            description=(
                f"{len(authors)} team members reported blockers in the last "
                f"{BLOCKER_WINDOW_HOURS} hours. Immediate attention needed."
            ),
            metadata={"authors": authors, "count": len(blockers)},
        )
    ]


def detect_high_wip(
    pull_requests: Iterable[PullRequestRecord], wip_threshold: int | None = None
) -> list[Alert]:
    """Authors with more than ``wip_threshold`` open pull requests."""
    if wip_threshold is None:
        wip_threshold = get_threshold("wip_threshold")

    counts: dict[str, int] = {}
    for pr in pull_requests:
        if pr.state == "open":
            counts[pr.author] = counts.get(pr.author, 0) + 1

    return [
        Alert(
            type="high_wip",
            severity="warning",
            title=f"High WIP for {author}",
            description=(
                f"{author} has {count} open pull requests "
                f"(threshold: {wip_threshold})."
            ),
            metadata={"author": author, "wip_count": count},
        )
        for author, count in counts.items()
        if count > wip_threshold
    ]


def run_heuristic_detection(
    now: datetime,
    branches: Iterable[BranchRecord] = (),
    pull_requests: Iterable[PullRequestRecord] = (),
    issues: Iterable[IssueRecord] = (),
    commits: Sequence[CommitRecord] = (),
    messages: Iterable[ChatMessageRecord] = (),
) -> list[Alert]:
    """Run every detector and drop repeated (type, title) pairs."""
    prs = list(pull_requests)
    candidates = [
        *detect_inactive_branches(branches, now),
        *detect_stale_prs(prs, now),
        *detect_idle_assignments(issues, commits, now),
        *detect_blocker_clusters(messages, now),
        *detect_high_wip(prs),
    ]

    seen: set[tuple[str, str]] = set()
    alerts = []
    for alert in candidates:
        key = (alert.type, alert.title)
        if key in seen:
            continue
        seen.add(key)
        alerts.append(alert)
    return alerts


def count_critical_alerts(alerts: Iterable[Alert]) -> int:
    return sum(1 for a in alerts if a.severity == "critical")


# --- Cycle time ---


def calculate_cycle_time(pr: PullRequestRecord) -> CycleTimeRow:
    """
    Derive lifecycle durations for a pull request, in whole seconds.

    - pickup: opened -> first review
    - review: first review -> merged (or closed)
    - total: opened -> merged (or closed)

    Durations whose endpoints are unknown are None; endpoints recorded out
    of order give a negative duration rather than an error.
    """
    opened = parse_optional_timestamp(pr.created_at, "created_at")
    reviewed = parse_optional_timestamp(pr.first_review_at, "first_review_at")
    finished = parse_optional_timestamp(
        pr.merged_at, "merged_at"
    ) or parse_optional_timestamp(pr.closed_at, "closed_at")

    def seconds(start: datetime | None, end: datetime | None) -> int | None:
        if start is None or end is None:
            return None
        return math.floor((end - start).total_seconds())

    return CycleTimeRow(
        subject_id=str(pr.number),
        pickup_seconds=seconds(opened, reviewed),
        review_seconds=seconds(reviewed, finished),
        total_seconds=seconds(opened, finished),
    )


def exceeds_threshold(row: CycleTimeRow, threshold_hours: int | None = None) -> bool:
    """True when the total cycle time is known and above the threshold."""
    if threshold_hours is None:
        threshold_hours = get_threshold("cycle_time_threshold_hours")
    return row.total_seconds is not None and row.total_seconds > threshold_hours * 3600
