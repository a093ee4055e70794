"""
Shared metric types and scorer inputs.
"""

from typing import Callable, NamedTuple

from team_health_guard.models import ContributorHealth, require_non_negative


class Metric(NamedTuple):
    """A single health sub-score on a 0-100 scale."""

    name: str
    score: int
    max_score: int
    message: str
    risk: str  # "Critical", "High", "Medium", "Low", "None"


class SubScore(NamedTuple):
    """A metric with the weight it carries in the composite score."""

    key: str
    name: str
    score: int
    weight: float
    explanation: str
    risk: str


class HealthScoreBreakdown(NamedTuple):
    """Composite health score and the sub-scores behind it."""

    formula: str  # "live" or "stored"
    sub_scores: tuple[SubScore, ...]
    penalty: int
    score: int

    def as_dict(self) -> dict[str, dict[str, object]]:
        """Sub-scores keyed by metric key, as rendered by the dashboard."""
        return {
            s.key: {"score": s.score, "weight": s.weight, "detail": s.explanation}
            for s in self.sub_scores
        }


class LiveSignals(NamedTuple):
    """
    Inputs for the live-data health formula.

    Counts come straight from the hosting API: PR/issue ratios are
    available, so throughput and resolution can be scored.
    """

    commits_last_7_days: int = 0
    open_prs: int = 0
    closed_prs: int = 0
    open_issues: int = 0
    closed_issues: int = 0
    contributor_count: int = 0
    contributor_health: tuple[ContributorHealth, ...] = ()

    def validate(self) -> "LiveSignals":
        for field in (
            "commits_last_7_days",
            "open_prs",
            "closed_prs",
            "open_issues",
            "closed_issues",
            "contributor_count",
        ):
            require_non_negative(getattr(self, field), field)
        return self


class StoredSignals(NamedTuple):
    """
    Inputs for the stored-data health formula.

    The store only keeps backlog counts, so this variant scores absolute
    backlog sizes and subtracts a penalty for open critical alerts.
    """

    commits_last_7_days: int = 0
    open_prs: int = 0
    open_issues: int = 0
    at_risk_file_count: int = 0
    critical_alert_count: int = 0

    def validate(self) -> "StoredSignals":
        for field in self._fields:
            require_non_negative(getattr(self, field), field)
        return self


class MetricSpec(NamedTuple):
    """Definition of a weighted sub-score."""

    key: str
    name: str
    checker: Callable[..., Metric]


def risk_for_score(score: int) -> str:
    """Map a 0-100 score onto the shared risk vocabulary."""
    if score >= 80:
        return "None"
    if score >= 60:
        return "Low"
    if score >= 40:
        return "Medium"
    if score >= 20:
        return "High"
    return "Critical"
