"""
Shared record types for the analytics engine.

Records are produced by the collaborator layer (store queries, GitHub API
responses) and treated as immutable snapshots by every scorer.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, NamedTuple

from team_health_guard.errors import ContractViolation

# --- Inputs ---


class CommitRecord(NamedTuple):
    """A single commit as handed over by the collaborator layer."""

    message: str
    author: str | None
    timestamp: datetime
    changed_files: tuple[str, ...] = ()
    diff_text: str | None = None
    lines_added: int = 0
    lines_deleted: int = 0


class ChatMessageRecord(NamedTuple):
    """A chat message from Discord/Slack/WhatsApp."""

    text: str
    author: str
    timestamp: datetime


class PullRequestRecord(NamedTuple):
    """A pull request with its lifecycle timestamps."""

    number: int
    title: str
    state: str  # "open", "closed", "merged"
    author: str
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    first_review_at: datetime | None = None
    additions: int = 0
    deletions: int = 0


class IssueRecord(NamedTuple):
    """An issue (pull requests excluded)."""

    number: int
    title: str
    state: str  # "open", "closed"
    author: str
    created_at: datetime
    assignee: str | None = None
    closed_at: datetime | None = None


class FileAuthorship(NamedTuple):
    """Per-file, per-author contribution tally."""

    file_path: str
    author: str
    lines_added: int = 0
    lines_modified: int = 0


class BranchRecord(NamedTuple):
    """A tracked branch."""

    name: str
    author: str
    last_commit_at: datetime
    is_merged: bool = False


# --- Derived records ---


class DiffAnalysis(NamedTuple):
    """Risk categories detected in a diff."""

    detected_categories: frozenset[str]
    detected_patterns: tuple[str, ...]  # same categories, in table order
    risk_level: str  # "low", "medium", "high"
    security_relevant: bool


class CommitClassification(NamedTuple):
    """Semantic classification of one commit."""

    type: str
    summary: str
    is_high_impact: bool
    diff_analysis: DiffAnalysis | None = None


class FileImpact(NamedTuple):
    """Blast-radius score for a single changed file."""

    score: int
    reason: str


class AuthorTally(NamedTuple):
    commits: int
    lines_added: int
    lines_deleted: int


class SprintSummary(NamedTuple):
    """Aggregated view over a batch of commits."""

    type_breakdown: dict[str, int]
    author_breakdown: dict[str, AuthorTally]
    total_high_impact: int
    total_lines_added: int
    total_lines_deleted: int
    summary_text: str


class IntentResult(NamedTuple):
    """Intent of a chat message and the evidence share backing it."""

    intent: str
    confidence: float


class NamedEntities(NamedTuple):
    """Structured substrings found in a message, in document order."""

    file_paths: list[str]
    issue_refs: list[str]
    urls: list[str]
    versions: list[str]
    error_codes: list[str]
    environments: list[str]
    branch_names: list[str]
    time_expressions: list[str]


class EntityBundle(NamedTuple):
    """Everything extracted from one chat message."""

    file_paths: list[str]
    issue_refs: list[str]
    urls: list[str]
    versions: list[str]
    error_codes: list[str]
    environments: list[str]
    branch_names: list[str]
    time_expressions: list[str]
    technical_terms: list[str]
    mentioned_users: list[str]
    tasks: list[str]
    is_blocker: bool
    intent_confidence: float


class TaskClaim(NamedTuple):
    """A first-person claim on a piece of work."""

    claimant: str
    description: str | None


class ContributorHealth(NamedTuple):
    """Recency status of a single contributor."""

    author: str
    last_commit: datetime
    hours_since_last_commit: float
    status: str  # "active", "moderate", "inactive"


class ContributorShare(NamedTuple):
    """One row of the knowledge-concentration table."""

    name: str
    contributions: int
    concentration: float  # percent, 1 decimal


class BusFactorResult(NamedTuple):
    """Bus factor over a contributor distribution."""

    bus_factor: int
    dominant_contributor: str | None
    concentration_percent: float
    contributor_count: int
    shares: tuple[ContributorShare, ...] = ()


class FileConcentration(NamedTuple):
    """Bus factor computed for a single file."""

    file_path: str
    bus_factor: int
    dominant_author: str | None
    concentration: float
    author_count: int
    is_critical: bool


class WipEntry(NamedTuple):
    author: str
    open_count: int


class CycleTimeRow(NamedTuple):
    """Stored lifecycle durations for one pull request, in seconds."""

    subject_id: str
    coding_seconds: float | None = None
    pickup_seconds: float | None = None
    review_seconds: float | None = None
    deployment_seconds: float | None = None
    total_seconds: float | None = None


class Alert(NamedTuple):
    """A heuristic alert raised over team activity."""

    type: str
    severity: str  # "info", "warning", "critical"
    title: str
    description: str
    metadata: Mapping[str, Any] = MappingProxyType({})


# --- Contract helpers ---


def parse_timestamp(value: datetime | str, field: str = "timestamp") -> datetime:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC) and ISO-8601 strings,
    including the trailing ``Z`` GitHub emits.

    Raises:
        ContractViolation: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ContractViolation(field, "not an ISO-8601 timestamp", value) from None
    else:
        raise ContractViolation(field, "expected datetime or ISO-8601 string", value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_timestamp(
    value: datetime | str | None, field: str
) -> datetime | None:
    if value is None:
        return None
    return parse_timestamp(value, field)


def require_non_negative(value: Any, field: str) -> int:
    """Return ``value`` if it is a non-negative integer count."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContractViolation(field, "expected an integer count", value)
    if value < 0:
        raise ContractViolation(field, "must not be negative", value)
    return value


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ContractViolation(field, "expected a string", value)
    return value


def validate_commit(commit: CommitRecord) -> CommitRecord:
    """Check the shape of a commit record before aggregating it."""
    require_text(commit.message, "message")
    require_non_negative(commit.lines_added, "lines_added")
    require_non_negative(commit.lines_deleted, "lines_deleted")
    parse_timestamp(commit.timestamp, "timestamp")
    return commit


def commit_from_mapping(data: Mapping[str, Any]) -> CommitRecord:
    """Build a CommitRecord from a JSON-like mapping."""
    return CommitRecord(
        message=require_text(data.get("message"), "message"),
        author=data.get("author"),
        timestamp=parse_timestamp(data.get("timestamp"), "timestamp"),
        changed_files=tuple(data.get("changed_files") or ()),
        diff_text=data.get("diff_text"),
        lines_added=require_non_negative(data.get("lines_added", 0), "lines_added"),
        lines_deleted=require_non_negative(
            data.get("lines_deleted", 0), "lines_deleted"
        ),
    )


def pull_request_from_mapping(data: Mapping[str, Any]) -> PullRequestRecord:
    """Build a PullRequestRecord from a JSON-like mapping."""
    return PullRequestRecord(
        number=require_non_negative(data.get("number"), "number"),
        title=data.get("title") or "",
        state=require_text(data.get("state"), "state"),
        author=data.get("author") or "unknown",
        created_at=parse_timestamp(data.get("created_at"), "created_at"),
        updated_at=parse_timestamp(
            data.get("updated_at") or data.get("created_at"), "updated_at"
        ),
        merged_at=parse_optional_timestamp(data.get("merged_at"), "merged_at"),
        closed_at=parse_optional_timestamp(data.get("closed_at"), "closed_at"),
        first_review_at=parse_optional_timestamp(
            data.get("first_review_at"), "first_review_at"
        ),
        additions=require_non_negative(data.get("additions", 0), "additions"),
        deletions=require_non_negative(data.get("deletions", 0), "deletions"),
    )
