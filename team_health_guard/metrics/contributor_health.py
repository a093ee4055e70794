"""Contributor health (recency) metric."""

from collections.abc import Iterable
from datetime import datetime

from team_health_guard.metrics.base import (
    LiveSignals,
    Metric,
    MetricSpec,
    risk_for_score,
)
from team_health_guard.models import (
    CommitRecord,
    ContributorHealth,
    parse_timestamp,
)
from team_health_guard.rounding import round_half_up, round_score

ACTIVE_HOURS = 48
MODERATE_HOURS = 168
HEALTHY_STATUSES = ("active", "moderate")


def classify_recency(hours_since_last_commit: float) -> str:
    """
    - Up to 48 hours: active
    - Up to 7 days: moderate
    - Longer: inactive
    """
    if hours_since_last_commit <= ACTIVE_HOURS:
        return "active"
    if hours_since_last_commit <= MODERATE_HOURS:
        return "moderate"
    return "inactive"


def calculate_contributor_health(
    commits: Iterable[CommitRecord], now: datetime
) -> list[ContributorHealth]:
    """
    Recency status per author, based on each author's latest commit.

    Authors appear in order of first appearance in ``commits``.
    """
    now = parse_timestamp(now, "now")
    latest: dict[str, datetime] = {}
    for commit in commits:
        author = commit.author or "unknown"
        committed_at = parse_timestamp(commit.timestamp, "timestamp")
        if author not in latest or committed_at > latest[author]:
            latest[author] = committed_at

    health = []
    for author, last_commit in latest.items():
        hours = (now - last_commit).total_seconds() / 3600
        health.append(
            ContributorHealth(
                author=author,
                last_commit=last_commit,
                hours_since_last_commit=round_half_up(hours, 2),
                status=classify_recency(hours),
            )
        )
    return health


def check_contributor_health(health: Iterable[ContributorHealth]) -> Metric:
    """
    Share of health-checked contributors that are active or moderate.

    No health-checked contributors scores 0.
    """
    statuses = [h.status for h in health]
    if not statuses:
        return Metric(
            "Contributor Health",
            0,
            100,
            "Note: No contributor activity to analyze.",
            "None",
        )

    healthy = sum(1 for s in statuses if s in HEALTHY_STATUSES)
    score = round_score(healthy / len(statuses) * 100)
    return Metric(
        "Contributor Health",
        score,
        100,
        f"{healthy}/{len(statuses)} contributors active in the last 7 days.",
        risk_for_score(score),
    )


def _check(signals: LiveSignals) -> Metric:
    return check_contributor_health(signals.contributor_health)


METRIC = MetricSpec(
    key="contributor_health", name="Contributor Health", checker=_check
)
