"""
Tests for composite health scoring.
"""

from datetime import datetime, timedelta, timezone

import pytest

from team_health_guard.core import (
    DEFAULT_LIVE_WEIGHTS,
    build_live_signals,
    build_stored_signals,
    compute_health_score,
    compute_live_health_score,
    compute_stored_health_score,
    count_recent_commits,
    get_metric_weights,
    resolve_live_weights,
    validate_weights,
)
from team_health_guard.errors import ContractViolation
from team_health_guard.metrics.base import LiveSignals, StoredSignals
from team_health_guard.models import (
    Alert,
    CommitRecord,
    ContributorHealth,
    FileAuthorship,
    IssueRecord,
    PullRequestRecord,
)

NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)

COMMIT_ONLY_WEIGHTS = {
    "commit_velocity": 1.0,
    "pr_throughput": 0.0,
    "issue_resolution": 0.0,
    "activity_spread": 0.0,
    "contributor_health": 0.0,
}


def _health(*statuses: str) -> tuple[ContributorHealth, ...]:
    return tuple(
        ContributorHealth(f"dev{i}", NOW, 1.0, s) for i, s in enumerate(statuses)
    )


class TestLiveFormula:
    """Test the weighted live-signal formula."""

    def test_weighted_composite(self):
        signals = LiveSignals(
            commits_last_7_days=14,
            open_prs=0,
            closed_prs=10,
            open_issues=5,
            closed_issues=15,
            contributor_count=4,
            contributor_health=_health("active", "moderate", "active"),
        )
        breakdown = compute_live_health_score(signals)

        # 0.30*100 + 0.20*100 + 0.20*80 + 0.15*100 + 0.15*100
        assert breakdown.score == 96
        assert breakdown.formula == "live"
        assert breakdown.penalty == 0
        assert [s.key for s in breakdown.sub_scores] == [
            "commit_velocity",
            "pr_throughput",
            "issue_resolution",
            "activity_spread",
            "contributor_health",
        ]
        assert [s.score for s in breakdown.sub_scores] == [100, 100, 80, 100, 100]

    def test_empty_signals_score_zero(self):
        breakdown = compute_live_health_score(LiveSignals())
        assert breakdown.score == 0
        assert all(s.score == 0 for s in breakdown.sub_scores)

    def test_all_sub_scores_maxed(self):
        breakdown = compute_live_health_score(
            LiveSignals(
                commits_last_7_days=14,
                open_prs=0,
                closed_prs=10,
                open_issues=0,
                closed_issues=10,
                contributor_count=4,
                contributor_health=_health("active", "active", "active", "active"),
            )
        )
        assert [s.score for s in breakdown.sub_scores] == [100] * 5
        assert breakdown.score == 100

    @pytest.mark.parametrize(
        ("maxed", "expected"),
        [
            ({"commit_velocity"}, 30),
            ({"pr_throughput", "issue_resolution"}, 40),
            ({"activity_spread", "contributor_health"}, 30),
            ({"commit_velocity", "activity_spread", "contributor_health"}, 60),
            (
                {
                    "pr_throughput",
                    "issue_resolution",
                    "activity_spread",
                    "contributor_health",
                },
                70,
            ),
        ],
    )
    def test_boundary_mix_stays_in_range(self, maxed, expected):
        signals = LiveSignals(
            commits_last_7_days=14 if "commit_velocity" in maxed else 0,
            closed_prs=10 if "pr_throughput" in maxed else 0,
            closed_issues=10 if "issue_resolution" in maxed else 0,
            contributor_count=4 if "activity_spread" in maxed else 0,
            contributor_health=(
                _health("active", "moderate")
                if "contributor_health" in maxed
                else ()
            ),
        )
        breakdown = compute_live_health_score(signals)

        assert {s.key for s in breakdown.sub_scores if s.score == 100} == maxed
        assert {s.score for s in breakdown.sub_scores} <= {0, 100}
        assert breakdown.score == expected
        assert 0 <= breakdown.score <= 100

    def test_partial_signals(self):
        # C=round(7/14*100)=50, A=60, everything else 0
        breakdown = compute_live_health_score(
            LiveSignals(commits_last_7_days=7, contributor_count=2)
        )
        assert breakdown.score == 24

    def test_weights_in_breakdown(self):
        breakdown = compute_live_health_score(LiveSignals())
        assert {k: v["weight"] for k, v in breakdown.as_dict().items()} == (
            DEFAULT_LIVE_WEIGHTS
        )

    def test_negative_count_rejected(self):
        with pytest.raises(ContractViolation) as exc_info:
            compute_live_health_score(LiveSignals(closed_issues=-2))
        assert exc_info.value.field == "closed_issues"


class TestStoredFormula:
    """Test the averaged stored-signal formula."""

    def test_average_minus_penalty(self):
        signals = StoredSignals(
            commits_last_7_days=10,
            open_prs=6,
            open_issues=25,
            at_risk_file_count=3,
            critical_alert_count=1,
        )
        breakdown = compute_stored_health_score(signals)
        # (50 + 70 + 50 + 70) / 4 - 15
        assert breakdown.score == 45
        assert breakdown.penalty == 15
        assert breakdown.formula == "stored"
        assert {s.weight for s in breakdown.sub_scores} == {0.25}

    def test_penalty_is_capped(self):
        breakdown = compute_stored_health_score(
            StoredSignals(commits_last_7_days=20, critical_alert_count=5)
        )
        assert breakdown.penalty == 50
        assert breakdown.score == 50

    def test_score_never_negative(self):
        breakdown = compute_stored_health_score(
            StoredSignals(0, 11, 21, 6, 4)
        )
        assert breakdown.score == 0

    @pytest.mark.parametrize(("commits", "expected"), [(1, 76), (3, 79)])
    def test_rounding(self, commits, expected):
        # (5*commits + 300) / 4
        breakdown = compute_stored_health_score(StoredSignals(commits))
        assert breakdown.score == expected

    def test_empty_store(self):
        # No commits, empty backlogs: (0 + 100 + 100 + 100) / 4
        assert compute_stored_health_score(StoredSignals()).score == 75


class TestComputeHealthScore:
    def test_dispatches_on_signal_type(self):
        assert compute_health_score(LiveSignals()).formula == "live"
        assert compute_health_score(StoredSignals()).formula == "stored"

    def test_unknown_signals_rejected(self):
        with pytest.raises(ContractViolation):
            compute_health_score({"commits_last_7_days": 3})


class TestWeights:
    """Test live weight configuration."""

    def test_defaults_sum_to_one(self):
        validate_weights(DEFAULT_LIVE_WEIGHTS, DEFAULT_LIVE_WEIGHTS)

    def test_override_changes_score(self):
        breakdown = compute_live_health_score(
            LiveSignals(commits_last_7_days=7), COMMIT_ONLY_WEIGHTS
        )
        assert breakdown.score == 50
        assert breakdown.sub_scores[0].weight == 1.0

    def test_override_does_not_leak_into_later_calls(self):
        signals = LiveSignals(commits_last_7_days=14)
        before = compute_live_health_score(signals)
        compute_live_health_score(signals, COMMIT_ONLY_WEIGHTS)
        after = compute_live_health_score(signals)

        assert before.score == after.score == 30
        assert get_metric_weights("live") == DEFAULT_LIVE_WEIGHTS

    def test_dispatch_passes_weights_to_live_formula(self):
        signals = LiveSignals(commits_last_7_days=14)
        assert compute_health_score(signals, COMMIT_ONLY_WEIGHTS).score == 100
        assert compute_health_score(StoredSignals(), COMMIT_ONLY_WEIGHTS).score == 75

    def test_empty_overrides_resolve_to_defaults(self):
        assert resolve_live_weights({}) == DEFAULT_LIVE_WEIGHTS
        assert resolve_live_weights(None) == DEFAULT_LIVE_WEIGHTS
        assert resolve_live_weights(None) is not DEFAULT_LIVE_WEIGHTS

    def test_integer_weights_become_floats(self):
        weights = resolve_live_weights({**COMMIT_ONLY_WEIGHTS, "commit_velocity": 1})
        assert weights["commit_velocity"] == 1.0
        assert isinstance(weights["commit_velocity"], float)

    def test_sum_must_be_one(self):
        with pytest.raises(ContractViolation, match="sum to 1.0"):
            compute_live_health_score(
                LiveSignals(), {**DEFAULT_LIVE_WEIGHTS, "commit_velocity": 0.5}
            )

    def test_missing_metric(self):
        weights = dict(DEFAULT_LIVE_WEIGHTS)
        del weights["activity_spread"]
        with pytest.raises(ContractViolation, match="missing metrics: activity_spread"):
            resolve_live_weights(weights)

    def test_unknown_metric(self):
        with pytest.raises(ContractViolation, match="unknown metrics: stars"):
            resolve_live_weights({**DEFAULT_LIVE_WEIGHTS, "stars": 0.0})

    def test_out_of_range(self):
        with pytest.raises(ContractViolation, match="between 0 and 1"):
            resolve_live_weights(
                {**DEFAULT_LIVE_WEIGHTS, "commit_velocity": 1.3, "pr_throughput": -0.8}
            )

    def test_non_numeric_weight(self):
        with pytest.raises(ContractViolation, match="between 0 and 1"):
            resolve_live_weights({**DEFAULT_LIVE_WEIGHTS, "commit_velocity": "high"})

    def test_stored_weights(self):
        assert get_metric_weights("stored") == {
            "commit_score": 0.25,
            "pr_score": 0.25,
            "issue_score": 0.25,
            "bus_factor_score": 0.25,
        }

    def test_unknown_formula(self):
        with pytest.raises(ValueError, match="Unknown formula"):
            get_metric_weights("hybrid")


class TestSignalAssembly:
    """Test building scorer inputs from records."""

    def test_count_recent_commits_excludes_boundary(self):
        commits = [
            CommitRecord("a", "alice", NOW - timedelta(days=1)),
            CommitRecord("b", "alice", NOW - timedelta(days=7)),
            CommitRecord("c", "alice", NOW - timedelta(days=7) + timedelta(seconds=1)),
        ]
        assert count_recent_commits(commits, NOW) == 2

    def test_build_live_signals(self):
        commits = [
            CommitRecord("a", "alice", NOW - timedelta(days=1)),
            CommitRecord("b", "bob", NOW - timedelta(days=3)),
            CommitRecord("c", "carol", NOW - timedelta(days=10)),
        ]
        prs = [
            PullRequestRecord(1, "a", "open", "alice", NOW, NOW),
            PullRequestRecord(2, "b", "closed", "bob", NOW, NOW),
            PullRequestRecord(3, "c", "merged", "bob", NOW, NOW),
        ]
        issues = [
            IssueRecord(1, "a", "open", "alice", NOW),
            IssueRecord(2, "b", "closed", "bob", NOW),
            IssueRecord(3, "c", "closed", "bob", NOW),
        ]
        signals = build_live_signals(commits, prs, issues, 3, NOW)

        assert signals.commits_last_7_days == 2
        assert signals.open_prs == 1
        assert signals.closed_prs == 2
        assert signals.open_issues == 1
        assert signals.closed_issues == 2
        assert signals.contributor_count == 3
        assert [h.status for h in signals.contributor_health] == [
            "active",
            "moderate",
            "inactive",
        ]

    def test_build_stored_signals(self):
        authorships = [
            FileAuthorship("core.py", "alice", 100, 0),
            FileAuthorship("util.py", "alice", 50, 0),
            FileAuthorship("util.py", "bob", 50, 0),
        ]
        alerts = [
            Alert("multiple_blockers", "critical", "t1", "d"),
            Alert("stale_pr", "warning", "t2", "d"),
        ]
        commits = [CommitRecord("a", "alice", NOW - timedelta(hours=5))]
        signals = build_stored_signals(commits, 4, 12, authorships, alerts, NOW)

        assert signals == StoredSignals(
            commits_last_7_days=1,
            open_prs=4,
            open_issues=12,
            at_risk_file_count=1,
            critical_alert_count=1,
        )
