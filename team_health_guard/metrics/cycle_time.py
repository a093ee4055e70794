"""Cycle-time trend reshaping."""

from collections.abc import Iterable, Mapping
from typing import Any

from team_health_guard.errors import ContractViolation
from team_health_guard.models import CycleTimeRow
from team_health_guard.rounding import round_score

# CycleTimeRow field -> stored column name
STORED_COLUMNS = {
    "coding_seconds": "coding_time_seconds",
    "pickup_seconds": "pickup_time_seconds",
    "review_seconds": "review_time_seconds",
    "deployment_seconds": "deployment_time_seconds",
    "total_seconds": "total_cycle_time_seconds",
}

DURATION_FIELDS = tuple(STORED_COLUMNS)


def _duration(value: Any, field: str) -> float | None:
    """Durations pass through untouched, negative clock-skew values included."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ContractViolation(field, "expected a number of seconds", value)
    return value


def cycle_time_row(record: Mapping[str, Any] | CycleTimeRow) -> CycleTimeRow:
    """
    Reshape one stored cycle-time record.

    Accepts either a ``CycleTimeRow`` or a mapping with the stored column
    names. Missing durations stay ``None``; they are never coerced to 0.
    """
    if isinstance(record, CycleTimeRow):
        values = record._asdict()
        subject_id = record.subject_id
    else:
        values = {
            field: record.get(column, record.get(field))
            for field, column in STORED_COLUMNS.items()
        }
        subject_id = record.get("pull_request_id", record.get("subject_id"))
        if subject_id is None:
            raise ContractViolation(
                "subject_id", "record has neither pull_request_id nor subject_id"
            )

    return CycleTimeRow(
        subject_id=str(subject_id),
        **{field: _duration(values[field], field) for field in DURATION_FIELDS},
    )


def cycle_time_trend(
    records: Iterable[Mapping[str, Any] | CycleTimeRow],
) -> list[CycleTimeRow]:
    """Reshape stored records, preserving their order."""
    return [cycle_time_row(record) for record in records]


def to_hours(row: CycleTimeRow) -> dict[str, float | None]:
    """Durations of a row in hours, for presentation."""
    return {
        field.removesuffix("_seconds") + "_hours": (
            None if getattr(row, field) is None else getattr(row, field) / 3600
        )
        for field in DURATION_FIELDS
    }


def average_cycle_time(rows: Iterable[CycleTimeRow]) -> int | None:
    """
    Mean total cycle time in seconds, or None when there are no rows.

    Rows without a total count as 0.
    """
    totals = [row.total_seconds or 0 for row in rows]
    if not totals:
        return None
    return round_score(sum(totals) / len(totals))
