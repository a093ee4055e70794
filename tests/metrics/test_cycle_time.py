"""
Tests for cycle-time reshaping.
"""

import pytest

from team_health_guard.errors import ContractViolation
from team_health_guard.metrics.cycle_time import (
    average_cycle_time,
    cycle_time_row,
    cycle_time_trend,
    to_hours,
)
from team_health_guard.models import CycleTimeRow


class TestCycleTimeTrend:
    def test_stored_columns(self):
        row = cycle_time_row(
            {
                "pull_request_id": 42,
                "coding_time_seconds": 3600,
                "pickup_time_seconds": None,
                "review_time_seconds": 7200,
                "total_cycle_time_seconds": 10800,
            }
        )
        assert row == CycleTimeRow(
            subject_id="42",
            coding_seconds=3600,
            pickup_seconds=None,
            review_seconds=7200,
            deployment_seconds=None,
            total_seconds=10800,
        )

    def test_nulls_are_not_coerced(self):
        rows = cycle_time_trend(
            [{"subject_id": "a"}, CycleTimeRow("b", total_seconds=0)]
        )
        assert rows[0].total_seconds is None
        assert rows[1].total_seconds == 0
        assert [r.subject_id for r in rows] == ["a", "b"]

    def test_fractional_seconds_pass_through(self):
        row = cycle_time_row(
            {"pull_request_id": 7, "total_cycle_time_seconds": 3600.5}
        )
        assert row.total_seconds == 3600.5
        assert to_hours(row)["total_hours"] == 3600.5 / 3600

    def test_negative_duration_passes_through(self):
        row = cycle_time_row({"subject_id": "x", "review_time_seconds": -5})
        assert row.review_seconds == -5

    @pytest.mark.parametrize("value", ["3600", True, [60]])
    def test_non_numeric_duration_rejected(self, value):
        with pytest.raises(ContractViolation) as exc_info:
            cycle_time_row({"subject_id": "x", "review_time_seconds": value})
        assert exc_info.value.field == "review_seconds"

    def test_missing_subject_rejected(self):
        with pytest.raises(ContractViolation) as exc_info:
            cycle_time_row({"total_cycle_time_seconds": 60})
        assert exc_info.value.field == "subject_id"

    def test_to_hours(self):
        hours = to_hours(CycleTimeRow("1", coding_seconds=5400, total_seconds=7200))
        assert hours == {
            "coding_hours": 1.5,
            "pickup_hours": None,
            "review_hours": None,
            "deployment_hours": None,
            "total_hours": 2.0,
        }


class TestAverageCycleTime:
    def test_empty(self):
        assert average_cycle_time([]) is None

    def test_missing_totals_count_as_zero(self):
        rows = [CycleTimeRow("1", total_seconds=3600), CycleTimeRow("2")]
        assert average_cycle_time(rows) == 1800
