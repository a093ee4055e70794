"""Work-in-progress distribution."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from team_health_guard.models import (
    PullRequestRecord,
    WipEntry,
    parse_timestamp,
)

DEFAULT_RECENT_DAYS = 7


def wip_per_author(
    pull_requests: Iterable[PullRequestRecord],
    now: datetime,
    recent_days: int = DEFAULT_RECENT_DAYS,
) -> list[WipEntry]:
    """
    Open pull requests updated within ``recent_days``, counted per author.

    Sorted by count descending; equal counts keep first-seen order.
    """
    cutoff = parse_timestamp(now, "now") - timedelta(days=recent_days)
    counts: dict[str, int] = {}
    for pr in pull_requests:
        if pr.state != "open":
            continue
        if parse_timestamp(pr.updated_at, "updated_at") < cutoff:
            continue
        counts[pr.author] = counts.get(pr.author, 0) + 1

    entries = [WipEntry(author, count) for author, count in counts.items()]
    return sorted(entries, key=lambda e: e.open_count, reverse=True)


def total_wip(entries: Iterable[WipEntry]) -> int:
    return sum(e.open_count for e in entries)
