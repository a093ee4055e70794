"""Bus factor / knowledge concentration metric."""

from collections.abc import Iterable, Mapping
from typing import NamedTuple

from team_health_guard.metrics.base import (
    Metric,
    MetricSpec,
    StoredSignals,
    risk_for_score,
)
from team_health_guard.models import (
    BusFactorResult,
    CommitRecord,
    ContributorShare,
    FileAuthorship,
    FileConcentration,
    require_non_negative,
)
from team_health_guard.rounding import round_half_up

DEFAULT_CONCENTRATION_THRESHOLD = 80.0
DEFAULT_TOP_FILES = 10


class KnowledgeRisk(NamedTuple):
    """Knowledge concentration at whichever granularity the data allows."""

    scope: str  # "file" or "contributor"
    files: list[FileConcentration]
    contributors: BusFactorResult | None


def compute_bus_factor(
    contributions: Mapping[str, int] | Iterable[tuple[str, int]],
) -> BusFactorResult:
    """
    Minimum number of top contributors covering at least half of all work.

    Contributors are ranked by contribution count, descending; equal counts
    keep their input order. The bus factor is the shortest prefix of that
    ranking whose cumulative share reaches 50%, so a contributor holding
    exactly half of the work has a bus factor of 1 on their own.

    With no contributions at all the bus factor is 0 and no concentration
    rows are produced.
    """
    items = list(
        contributions.items() if isinstance(contributions, Mapping) else contributions
    )
    for name, count in items:
        require_non_negative(count, f"contributions[{name}]")

    ranked = sorted(items, key=lambda item: item[1], reverse=True)
    total = sum(count for _, count in ranked)
    if total == 0:
        return BusFactorResult(
            bus_factor=0,
            dominant_contributor=None,
            concentration_percent=0.0,
            contributor_count=len(ranked),
        )

    shares = tuple(
        ContributorShare(name, count, round_half_up(count / total * 100, 1))
        for name, count in ranked
    )

    covered = 0
    bus_factor = 0
    for _, count in ranked:
        covered += count
        bus_factor += 1
        if covered * 2 >= total:
            break

    return BusFactorResult(
        bus_factor=bus_factor,
        dominant_contributor=shares[0].name,
        concentration_percent=shares[0].concentration,
        contributor_count=len(ranked),
        shares=shares,
    )


def contributor_tallies(commits: Iterable[CommitRecord]) -> dict[str, int]:
    """Commit count per author, in order of first appearance."""
    tallies: dict[str, int] = {}
    for commit in commits:
        author = commit.author or "unknown"
        tallies[author] = tallies.get(author, 0) + 1
    return tallies


def calculate_knowledge_concentration(
    authorships: Iterable[FileAuthorship],
) -> BusFactorResult:
    """Bus factor over line-level authorship (lines added + lines modified)."""
    totals: dict[str, int] = {}
    for row in authorships:
        require_non_negative(row.lines_added, "lines_added")
        require_non_negative(row.lines_modified, "lines_modified")
        totals[row.author] = (
            totals.get(row.author, 0) + row.lines_added + row.lines_modified
        )
    return compute_bus_factor(totals)


def file_concentrations(
    authorships: Iterable[FileAuthorship],
    threshold: float = DEFAULT_CONCENTRATION_THRESHOLD,
) -> list[FileConcentration]:
    """Per-file bus factor for every file, most concentrated first."""
    by_file: dict[str, list[FileAuthorship]] = {}
    for row in authorships:
        by_file.setdefault(row.file_path, []).append(row)

    files = []
    for file_path, rows in by_file.items():
        result = calculate_knowledge_concentration(rows)
        author_count = len({row.author for row in rows})
        files.append(
            FileConcentration(
                file_path=file_path,
                bus_factor=result.bus_factor,
                dominant_author=result.dominant_contributor,
                concentration=result.concentration_percent,
                author_count=author_count,
                is_critical=result.concentration_percent > threshold
                and author_count == 1,
            )
        )
    return sorted(files, key=lambda f: f.concentration, reverse=True)


def critical_files(
    authorships: Iterable[FileAuthorship],
    threshold: float = DEFAULT_CONCENTRATION_THRESHOLD,
    top_n: int = DEFAULT_TOP_FILES,
) -> list[FileConcentration]:
    """Files whose dominant author holds more than ``threshold`` percent."""
    return [
        f
        for f in file_concentrations(authorships, threshold)
        if f.concentration > threshold
    ][:top_n]


def assess_knowledge_concentration(
    authorships: Iterable[FileAuthorship],
    contributions: Mapping[str, int],
    threshold: float = DEFAULT_CONCENTRATION_THRESHOLD,
    top_n: int = DEFAULT_TOP_FILES,
) -> KnowledgeRisk:
    """
    Per-file concentration when file authorship is known, otherwise
    whole-codebase concentration per contributor.
    """
    rows = list(authorships)
    if rows:
        return KnowledgeRisk("file", critical_files(rows, threshold, top_n), None)
    return KnowledgeRisk("contributor", [], compute_bus_factor(contributions))


def check_bus_factor_risk(at_risk_file_count: int) -> Metric:
    """
    Stored-data sub-score from the number of single-owner files.

    - More than 5 at-risk files: 40
    - More than 2: 70
    - Otherwise: 100
    """
    require_non_negative(at_risk_file_count, "at_risk_file_count")
    if at_risk_file_count > 5:
        score = 40
    elif at_risk_file_count > 2:
        score = 70
    else:
        score = 100
    return Metric(
        "Knowledge Concentration",
        score,
        100,
        f"{at_risk_file_count} files dominated by a single author.",
        risk_for_score(score),
    )


def _check_stored(signals: StoredSignals) -> Metric:
    return check_bus_factor_risk(signals.at_risk_file_count)


STORED_METRIC = MetricSpec(
    key="bus_factor_score", name="Knowledge Concentration", checker=_check_stored
)
