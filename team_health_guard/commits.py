"""
Semantic commit analysis.

Classifies commits by message, changed file paths and diff content, scores
per-file blast radius and aggregates batches of commits into sprint
summaries.
"""

import logging
from collections.abc import Sequence

from team_health_guard.models import (
    AuthorTally,
    CommitClassification,
    CommitRecord,
    DiffAnalysis,
    FileImpact,
    SprintSummary,
    require_non_negative,
    require_text,
    validate_commit,
)
from team_health_guard.patterns import (
    COMMIT_TYPE_PATTERNS,
    CONVENTIONAL_PREFIX,
    DEFAULT_COMMIT_TYPE,
    DIFF_PATTERNS,
    DIFF_RISK_WEIGHTS,
    HIGH_IMPACT_PATHS,
    NON_CODE_FILE_PATH,
    TEST_FILE_PATH,
    first_match,
)

logger = logging.getLogger(__name__)


def is_high_impact_path(file_path: str) -> bool:
    """Return True if the path touches schema, auth, config or similar files."""
    return any(p.search(file_path) for p in HIGH_IMPACT_PATHS)


def score_file_impact(file_path: str, lines_changed: int) -> FileImpact:
    """
    Scores the blast radius of a change to a single file.

    The base score is twice the number of changed lines, capped at 100.
    Exactly one adjustment applies, checked in this order:

    - High-impact path: +40 (capped at 100)
    - Test file: -20 (floor 10)
    - Non-code file (.md, .txt, .json): -30 (floor 5)
    """
    require_text(file_path, "file_path")
    require_non_negative(lines_changed, "lines_changed")

    score = min(100, lines_changed * 2)

    if is_high_impact_path(file_path):
        return FileImpact(min(100, score + 40), "high-impact file path")
    if TEST_FILE_PATH.search(file_path):
        return FileImpact(max(10, score - 20), "test file")
    if NON_CODE_FILE_PATH.search(file_path):
        return FileImpact(max(5, score - 30), "non-code file")
    return FileImpact(score, "standard change")


def analyze_diff_content(diff_text: str) -> DiffAnalysis:
    """
    Detects risky content categories in a diff.

    Risk points: security +3, database +2, api +1. Other categories are
    reported but carry no risk.

    - 4+ points: high
    - 2-3 points: medium
    - otherwise: low
    """
    require_text(diff_text, "diff_text")

    detected: list[str] = []
    risk_score = 0
    for group in DIFF_PATTERNS:
        if group.matches(diff_text):
            detected.append(group.label)
            risk_score += DIFF_RISK_WEIGHTS.get(group.label, 0)

    if risk_score >= 4:
        risk_level = "high"
    elif risk_score >= 2:
        risk_level = "medium"
    else:
        risk_level = "low"

    return DiffAnalysis(
        detected_categories=frozenset(detected),
        detected_patterns=tuple(detected),
        risk_level=risk_level,
        security_relevant="security" in detected,
    )


def _render_summary(message: str, commit_type: str, is_high_impact: bool) -> str:
    clean = CONVENTIONAL_PREFIX.sub("", message, count=1).strip()
    capitalised = clean[:1].upper() + clean[1:]
    label = commit_type[:1].upper() + commit_type[1:]
    suffix = " (High Impact)" if is_high_impact else ""
    return f"[{label}] {capitalised}{suffix}"


def classify_commit(
    message: str,
    changed_files: Sequence[str] = (),
    diff_text: str | None = None,
) -> CommitClassification:
    """
    Classifies a commit.

    The type is the first entry of the commit-type table whose patterns match
    the message, defaulting to ``chore``. When a diff is supplied and it
    touches security-relevant content, the type becomes ``security`` no
    matter what the message says.
    """
    require_text(message, "message")

    commit_type = first_match(COMMIT_TYPE_PATTERNS, message) or DEFAULT_COMMIT_TYPE
    is_high_impact = any(is_high_impact_path(f) for f in changed_files)

    diff_analysis = None
    if diff_text:
        diff_analysis = analyze_diff_content(diff_text)
        if diff_analysis.security_relevant and commit_type != "security":
            logger.debug(
                "Diff overrides commit type %s -> security for %r",
                commit_type,
                message[:60],
            )
            commit_type = "security"

    return CommitClassification(
        type=commit_type,
        summary=_render_summary(message, commit_type, is_high_impact),
        is_high_impact=is_high_impact,
        diff_analysis=diff_analysis,
    )


def generate_commit_summary(
    message: str, files_changed: int, lines_added: int, lines_deleted: int
) -> str:
    """One-line summary such as ``FEAT across 3 files (+120/-4)``."""
    require_non_negative(files_changed, "files_changed")
    require_non_negative(lines_added, "lines_added")
    require_non_negative(lines_deleted, "lines_deleted")

    classification = classify_commit(message)
    scope = "1 file" if files_changed == 1 else f"{files_changed} files"
    delta = f"+{lines_added}/-{lines_deleted}"
    marker = " !! high-impact" if classification.is_high_impact else ""
    return f"{classification.type.upper()} across {scope} ({delta}){marker}"


def generate_sprint_summary(commits: Sequence[CommitRecord]) -> SprintSummary:
    """
    Aggregates a batch of commits by type and author.

    Each commit is classified from its message, files and diff. The
    summary text names the most common commit type; on ties the type seen
    first wins.
    """
    type_breakdown: dict[str, int] = {}
    author_totals: dict[str, list[int]] = {}
    total_high_impact = 0
    total_lines_added = 0
    total_lines_deleted = 0

    for commit in commits:
        validate_commit(commit)
        classification = classify_commit(
            commit.message, commit.changed_files, commit.diff_text
        )
        type_breakdown[classification.type] = (
            type_breakdown.get(classification.type, 0) + 1
        )
        if classification.is_high_impact:
            total_high_impact += 1
        total_lines_added += commit.lines_added
        total_lines_deleted += commit.lines_deleted

        tally = author_totals.setdefault(commit.author or "unknown", [0, 0, 0])
        tally[0] += 1
        tally[1] += commit.lines_added
        tally[2] += commit.lines_deleted

    if type_breakdown:
        top_type = max(type_breakdown, key=lambda t: type_breakdown[t])
        top_count = type_breakdown[top_type]
    else:
        top_type, top_count = "N/A", 0

    summary_text = (
        f"{len(commits)} commits ({total_lines_added} additions, "
        f"{total_lines_deleted} deletions). "
        f"Most common: {top_type} ({top_count}). "
        f"{total_high_impact} high-impact commits."
    )

    return SprintSummary(
        type_breakdown=type_breakdown,
        author_breakdown={
            author: AuthorTally(*values) for author, values in author_totals.items()
        },
        total_high_impact=total_high_impact,
        total_lines_added=total_lines_added,
        total_lines_deleted=total_lines_deleted,
        summary_text=summary_text,
    )
