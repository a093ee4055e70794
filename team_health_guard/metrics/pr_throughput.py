"""Pull request throughput and backlog metrics."""

from team_health_guard.metrics.base import (
    LiveSignals,
    Metric,
    MetricSpec,
    StoredSignals,
    risk_for_score,
)
from team_health_guard.models import require_non_negative
from team_health_guard.rounding import round_score

BACKLOG_DAMPENING_CAP = 0.5
BACKLOG_DAMPENING_OPEN_PRS = 20


def check_pr_throughput(open_prs: int, closed_prs: int) -> Metric:
    """
    Rewards merge completion and penalizes an open backlog.

    score = closed / total * 100 * (1 - min(0.5, open / 20))

    The backlog dampening reaches its 50% cap at 20 open pull requests.
    No pull requests at all scores 0.
    """
    require_non_negative(open_prs, "open_prs")
    require_non_negative(closed_prs, "closed_prs")

    total = open_prs + closed_prs
    if total == 0:
        return Metric(
            "PR Throughput",
            0,
            100,
            "Note: No pull requests to analyze.",
            "None",
        )

    dampening = min(BACKLOG_DAMPENING_CAP, open_prs / BACKLOG_DAMPENING_OPEN_PRS)
    score = round_score(closed_prs / total * 100 * (1 - dampening))
    return Metric(
        "PR Throughput",
        score,
        100,
        f"{closed_prs}/{total} PRs closed, {open_prs} open.",
        risk_for_score(score),
    )


def check_pr_backlog(open_prs: int) -> Metric:
    """
    Stored-data variant scoring the size of the open PR backlog.

    - More than 10 open: 40
    - More than 5 open: 70
    - Otherwise: 100
    """
    require_non_negative(open_prs, "open_prs")
    if open_prs > 10:
        score = 40
    elif open_prs > 5:
        score = 70
    else:
        score = 100
    return Metric(
        "PR Backlog",
        score,
        100,
        f"{open_prs} open pull requests.",
        risk_for_score(score),
    )


def _check(signals: LiveSignals) -> Metric:
    return check_pr_throughput(signals.open_prs, signals.closed_prs)


def _check_stored(signals: StoredSignals) -> Metric:
    return check_pr_backlog(signals.open_prs)


METRIC = MetricSpec(key="pr_throughput", name="PR Throughput", checker=_check)

STORED_METRIC = MetricSpec(key="pr_score", name="PR Backlog", checker=_check_stored)
