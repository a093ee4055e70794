"""Activity spread metric."""

from team_health_guard.metrics.base import (
    LiveSignals,
    Metric,
    MetricSpec,
    risk_for_score,
)
from team_health_guard.models import require_non_negative


def check_activity_spread(contributor_count: int) -> Metric:
    """
    Scores how many people carry the work.

    - 4+ contributors: 100
    - 3: 80
    - 2: 60
    - 1: 30
    - none: 0
    """
    require_non_negative(contributor_count, "contributor_count")

    if contributor_count >= 4:
        score = 100
    elif contributor_count >= 3:
        score = 80
    elif contributor_count >= 2:
        score = 60
    elif contributor_count >= 1:
        score = 30
    else:
        score = 0

    if contributor_count == 1:
        message = "Single contributor carrying all activity."
    else:
        message = f"{contributor_count} active contributors."
    return Metric("Activity Spread", score, 100, message, risk_for_score(score))


def _check(signals: LiveSignals) -> Metric:
    return check_activity_spread(signals.contributor_count)


METRIC = MetricSpec(key="activity_spread", name="Activity Spread", checker=_check)
