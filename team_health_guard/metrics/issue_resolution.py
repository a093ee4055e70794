"""Issue resolution and backlog metrics."""

from team_health_guard.metrics.base import (
    LiveSignals,
    Metric,
    MetricSpec,
    StoredSignals,
    risk_for_score,
)
from team_health_guard.models import require_non_negative
from team_health_guard.rounding import round_score


def check_issue_resolution(open_issues: int, closed_issues: int) -> Metric:
    """
    Evaluates how much of the issue backlog gets resolved.

    score = closed / total * 80 + bonus

    Bonus for a small open backlog:
    - 5 or fewer open: +20
    - 15 or fewer open: +10
    - More: +0
    """
    require_non_negative(open_issues, "open_issues")
    require_non_negative(closed_issues, "closed_issues")

    total = open_issues + closed_issues
    if total == 0:
        return Metric(
            "Issue Resolution",
            0,
            100,
            "Note: No issues to analyze.",
            "None",
        )

    if open_issues <= 5:
        bonus = 20
    elif open_issues <= 15:
        bonus = 10
    else:
        bonus = 0

    score = min(100, round_score(closed_issues / total * 80 + bonus))
    return Metric(
        "Issue Resolution",
        score,
        100,
        f"{closed_issues}/{total} issues closed, {open_issues} open.",
        risk_for_score(score),
    )


def check_issue_backlog(open_issues: int) -> Metric:
    """Stored-data variant: 50 above 20 open issues, 75 above 10, else 100."""
    require_non_negative(open_issues, "open_issues")
    if open_issues > 20:
        score = 50
    elif open_issues > 10:
        score = 75
    else:
        score = 100
    return Metric(
        "Issue Backlog",
        score,
        100,
        f"{open_issues} open issues.",
        risk_for_score(score),
    )


def _check(signals: LiveSignals) -> Metric:
    return check_issue_resolution(signals.open_issues, signals.closed_issues)


def _check_stored(signals: StoredSignals) -> Metric:
    return check_issue_backlog(signals.open_issues)


METRIC = MetricSpec(
    key="issue_resolution", name="Issue Resolution", checker=_check
)

STORED_METRIC = MetricSpec(
    key="issue_score", name="Issue Backlog", checker=_check_stored
)
