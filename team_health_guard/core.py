"""
Composite health scoring for Team Health Guard.

Two formulas exist because the inputs differ in freshness:

- ``LiveSignals``: counts fetched from the hosting API, including PR and
  issue open/closed ratios. Weighted sum of five sub-scores.
- ``StoredSignals``: counts aggregated from the local store, which only
  knows backlog sizes. Plain average of four sub-scores minus a penalty
  for open critical alerts.

Callers pick the formula by the type of signals they pass in.
"""

import copy
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from team_health_guard.errors import ContractViolation
from team_health_guard.heuristics import count_critical_alerts
from team_health_guard.metrics import (
    activity_spread,
    bus_factor,
    commit_velocity,
    contributor_health,
    issue_resolution,
    pr_throughput,
)
from team_health_guard.metrics.base import (
    HealthScoreBreakdown,
    LiveSignals,
    MetricSpec,
    StoredSignals,
    SubScore,
)
from team_health_guard.models import (
    Alert,
    CommitRecord,
    FileAuthorship,
    IssueRecord,
    PullRequestRecord,
    parse_timestamp,
)
from team_health_guard.rounding import clamp, round_score

logger = logging.getLogger(__name__)

HealthFormula = LiveSignals | StoredSignals

LIVE_METRICS: tuple[MetricSpec, ...] = (
    commit_velocity.METRIC,
    pr_throughput.METRIC,
    issue_resolution.METRIC,
    activity_spread.METRIC,
    contributor_health.METRIC,
)

STORED_METRICS: tuple[MetricSpec, ...] = (
    commit_velocity.STORED_METRIC,
    pr_throughput.STORED_METRIC,
    issue_resolution.STORED_METRIC,
    bus_factor.STORED_METRIC,
)

DEFAULT_LIVE_WEIGHTS: dict[str, float] = {
    "commit_velocity": 0.30,
    "pr_throughput": 0.20,
    "issue_resolution": 0.20,
    "activity_spread": 0.15,
    "contributor_health": 0.15,
}

STORED_WEIGHTS: dict[str, float] = {spec.key: 0.25 for spec in STORED_METRICS}

ALERT_PENALTY_PER_CRITICAL = 15
MAX_ALERT_PENALTY = 50
RECENT_COMMIT_DAYS = 7
WEIGHT_TOLERANCE = 1e-9


def validate_weights(weights: Mapping[str, float], required: Iterable[str]) -> None:
    """
    Check that a weight set names exactly the required metrics and sums to 1.0.

    Raises:
        ContractViolation: If metrics are missing or unknown, a weight is
            outside [0, 1], or the weights do not sum to 1.0.
    """
    required_keys = set(required)

    missing = required_keys - weights.keys()
    if missing:
        raise ContractViolation(
            "weights", f"missing metrics: {', '.join(sorted(missing))}"
        )

    unknown = set(weights.keys()) - required_keys
    if unknown:
        raise ContractViolation(
            "weights", f"unknown metrics: {', '.join(sorted(unknown))}"
        )

    invalid = {
        key: value
        for key, value in weights.items()
        if isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not 0 <= value <= 1
    }
    if invalid:
        invalid_list = ", ".join(f"{k}={v}" for k, v in invalid.items())
        raise ContractViolation(
            "weights", f"weights must be numbers between 0 and 1: {invalid_list}"
        )

    total = math.fsum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ContractViolation("weights", f"weights must sum to 1.0, got {total}")


def resolve_live_weights(
    overrides: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """
    Live-formula weights with optional overrides.

    An empty mapping or None yields a copy of the defaults.

    Raises:
        ContractViolation: If the override set is not a valid weight set.
    """
    if not overrides:
        return copy.deepcopy(DEFAULT_LIVE_WEIGHTS)

    validate_weights(overrides, DEFAULT_LIVE_WEIGHTS.keys())
    weights = {key: float(value) for key, value in overrides.items()}
    logger.debug("Using live weight overrides: %s", weights)
    return weights


def get_metric_weights(formula: str = "live") -> dict[str, float]:
    """
    Default weights used by a formula.

    Raises:
        ValueError: If the formula is not recognized.
    """
    if formula == "live":
        return dict(DEFAULT_LIVE_WEIGHTS)
    if formula == "stored":
        return dict(STORED_WEIGHTS)
    raise ValueError(f"Unknown formula '{formula}'. Available: live, stored")


def _score_metrics(
    specs: Sequence[MetricSpec], weights: dict[str, float], signals: HealthFormula
) -> tuple[SubScore, ...]:
    sub_scores = []
    for spec in specs:
        metric = spec.checker(signals)
        sub_scores.append(
            SubScore(
                key=spec.key,
                name=metric.name,
                score=int(clamp(metric.score)),
                weight=weights[spec.key],
                explanation=metric.message,
                risk=metric.risk,
            )
        )
    return tuple(sub_scores)


def compute_live_health_score(
    signals: LiveSignals, weights: Mapping[str, float] | None = None
) -> HealthScoreBreakdown:
    """
    Weighted health score from live hosting-API signals.

    composite = clamp(round(0.30 C + 0.20 P + 0.20 I + 0.15 A + 0.15 D), 0, 100)

    where C is commit velocity, P PR throughput, I issue resolution,
    A activity spread and D contributor health (default weights).
    ``weights`` replaces the defaults for this call only.
    """
    signals.validate()
    weights = resolve_live_weights(weights)

    sub_scores = _score_metrics(LIVE_METRICS, weights, signals)
    weighted = math.fsum(s.score * s.weight for s in sub_scores)
    score = int(clamp(round_score(weighted)))

    logger.debug("Live health score %d from %s", score, sub_scores)
    return HealthScoreBreakdown("live", sub_scores, 0, score)


def compute_stored_health_score(signals: StoredSignals) -> HealthScoreBreakdown:
    """
    Health score from store-aggregated signals.

    composite = max(0, round(mean(commit, pr, issue, bus_factor) - penalty))

    The penalty is 15 points per open critical alert, capped at 50.
    """
    signals.validate()
    sub_scores = _score_metrics(STORED_METRICS, STORED_WEIGHTS, signals)
    average = math.fsum(s.score for s in sub_scores) / len(sub_scores)
    penalty = min(
        MAX_ALERT_PENALTY, signals.critical_alert_count * ALERT_PENALTY_PER_CRITICAL
    )
    score = int(clamp(round_score(average - penalty)))

    logger.debug("Stored health score %d (penalty %d)", score, penalty)
    return HealthScoreBreakdown("stored", sub_scores, penalty, score)


def compute_health_score(
    signals: HealthFormula, weights: Mapping[str, float] | None = None
) -> HealthScoreBreakdown:
    """
    Compute the health score with the formula matching the signal type.

    ``weights`` only applies to the live formula; the stored formula always
    averages its sub-scores.

    Raises:
        ContractViolation: If ``signals`` is neither LiveSignals nor StoredSignals.
    """
    if isinstance(signals, LiveSignals):
        return compute_live_health_score(signals, weights)
    if isinstance(signals, StoredSignals):
        return compute_stored_health_score(signals)
    raise ContractViolation(
        "signals", "expected LiveSignals or StoredSignals", type(signals).__name__
    )


# --- Signal assembly from raw records ---


def count_recent_commits(
    commits: Iterable[CommitRecord], now: datetime, days: int = RECENT_COMMIT_DAYS
) -> int:
    """Commits strictly newer than ``now - days``."""
    cutoff = parse_timestamp(now, "now") - timedelta(days=days)
    return sum(
        1 for c in commits if parse_timestamp(c.timestamp, "timestamp") > cutoff
    )


def build_live_signals(
    commits: Sequence[CommitRecord],
    pull_requests: Iterable[PullRequestRecord],
    issues: Iterable[IssueRecord],
    contributor_count: int,
    now: datetime,
) -> LiveSignals:
    """
    Assemble live-formula inputs from records fetched from the hosting API.

    Any PR that is not open (closed or merged) counts as closed.
    """
    prs = list(pull_requests)
    issue_list = list(issues)
    open_prs = sum(1 for pr in prs if pr.state == "open")
    open_issues = sum(1 for i in issue_list if i.state == "open")
    closed_issues = sum(1 for i in issue_list if i.state == "closed")

    return LiveSignals(
        commits_last_7_days=count_recent_commits(commits, now),
        open_prs=open_prs,
        closed_prs=len(prs) - open_prs,
        open_issues=open_issues,
        closed_issues=closed_issues,
        contributor_count=contributor_count,
        contributor_health=tuple(
            contributor_health.calculate_contributor_health(commits, now)
        ),
    ).validate()


def build_stored_signals(
    commits: Iterable[CommitRecord],
    open_prs: int,
    open_issues: int,
    authorships: Iterable[FileAuthorship],
    alerts: Iterable[Alert],
    now: datetime,
    concentration_threshold: float = bus_factor.DEFAULT_CONCENTRATION_THRESHOLD,
    top_files: int = bus_factor.DEFAULT_TOP_FILES,
) -> StoredSignals:
    """
    Assemble stored-formula inputs from store rows.

    At-risk files are the capped list of files above the concentration
    threshold; critical alerts are unresolved alerts with severity
    ``critical``.
    """
    at_risk = bus_factor.critical_files(authorships, concentration_threshold, top_files)
    return StoredSignals(
        commits_last_7_days=count_recent_commits(commits, now),
        open_prs=open_prs,
        open_issues=open_issues,
        at_risk_file_count=len(at_risk),
        critical_alert_count=count_critical_alerts(alerts),
    ).validate()
