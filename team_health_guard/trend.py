"""
Health score history.

Builds snapshot records from computed breakdowns and summarizes how the
score moved over time. Persisting snapshots is the caller's concern.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import NamedTuple

from team_health_guard.metrics.base import HealthScoreBreakdown
from team_health_guard.models import parse_timestamp

STABLE_DELTA = 5


class HealthSnapshot(NamedTuple):
    """A health score captured at a point in time."""

    score: int
    taken_at: datetime
    formula: str
    sub_scores: dict[str, int]
    penalty: int = 0


class TrendSummary(NamedTuple):
    """Direction of the health score across a series of snapshots."""

    first: int | None
    latest: int | None
    delta: int
    direction: str  # "improving", "declining", "stable"
    points: int


def snapshot_from_breakdown(
    breakdown: HealthScoreBreakdown, taken_at: datetime
) -> HealthSnapshot:
    """Flatten a breakdown into a record suitable for a snapshot store."""
    return HealthSnapshot(
        score=breakdown.score,
        taken_at=parse_timestamp(taken_at, "taken_at"),
        formula=breakdown.formula,
        sub_scores={s.key: s.score for s in breakdown.sub_scores},
        penalty=breakdown.penalty,
    )


def summarize_trend(snapshots: Iterable[HealthSnapshot]) -> TrendSummary:
    """
    Compare the oldest and newest snapshot.

    Snapshots may arrive in any order; they are sorted by ``taken_at``.
    A move of less than 5 points either way is reported as stable.
    """
    ordered = sorted(snapshots, key=lambda s: parse_timestamp(s.taken_at, "taken_at"))
    if not ordered:
        return TrendSummary(None, None, 0, "stable", 0)

    first, latest = ordered[0].score, ordered[-1].score
    delta = latest - first
    if delta >= STABLE_DELTA:
        direction = "improving"
    elif delta <= -STABLE_DELTA:
        direction = "declining"
    else:
        direction = "stable"
    return TrendSummary(first, latest, delta, direction, len(ordered))
