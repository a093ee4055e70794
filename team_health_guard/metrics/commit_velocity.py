"""Commit velocity metric."""

from team_health_guard.metrics.base import (
    LiveSignals,
    Metric,
    MetricSpec,
    StoredSignals,
    risk_for_score,
)
from team_health_guard.models import require_non_negative
from team_health_guard.rounding import round_score

TARGET_COMMITS_PER_WEEK = 14


def check_commit_velocity(commits_last_7_days: int) -> Metric:
    """
    Scores commit velocity over the last 7 days.

    14 commits per week maps to 100; the score scales linearly below that.
    """
    require_non_negative(commits_last_7_days, "commits_last_7_days")
    score = min(
        100, round_score(commits_last_7_days / TARGET_COMMITS_PER_WEEK * 100)
    )
    return Metric(
        "Commit Velocity",
        score,
        100,
        f"{commits_last_7_days} commits in the last 7 days "
        f"(target {TARGET_COMMITS_PER_WEEK}/week).",
        risk_for_score(score),
    )


def check_commit_activity(commits_last_7_days: int) -> Metric:
    """Stored-data variant: 5 points per commit in the last 7 days."""
    require_non_negative(commits_last_7_days, "commits_last_7_days")
    score = min(100, commits_last_7_days * 5)
    return Metric(
        "Commit Activity",
        score,
        100,
        f"{commits_last_7_days} commits in the last 7 days.",
        risk_for_score(score),
    )


def _check(signals: LiveSignals) -> Metric:
    return check_commit_velocity(signals.commits_last_7_days)


def _check_stored(signals: StoredSignals) -> Metric:
    return check_commit_activity(signals.commits_last_7_days)


METRIC = MetricSpec(key="commit_velocity", name="Commit Velocity", checker=_check)

STORED_METRIC = MetricSpec(
    key="commit_score", name="Commit Activity", checker=_check_stored
)
