"""
Command-line interface for Team Health Guard.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from team_health_guard.chat import detect_intent_with_confidence, extract_entities
from team_health_guard.commits import classify_commit, generate_sprint_summary
from team_health_guard.config import get_live_weight_overrides
from team_health_guard.core import compute_health_score, resolve_live_weights
from team_health_guard.errors import ContractViolation, TeamHealthGuardError
from team_health_guard.logging_config import setup_logging
from team_health_guard.metrics.base import (
    HealthScoreBreakdown,
    LiveSignals,
    StoredSignals,
)
from team_health_guard.metrics.bus_factor import compute_bus_factor
from team_health_guard.models import (
    ContributorHealth,
    commit_from_mapping,
    parse_timestamp,
)
from team_health_guard.vcs.github import GitHubCollector

# --- Typer App ---
app = typer.Typer(help="Team activity analytics: commits, chat and health scores.")
console = Console()

# --- Helper Functions ---


def load_json_file(path: Path) -> Any:
    """Read a JSON document, exiting with a readable message on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found: {escape(str(path))}[/red]")
        raise typer.Exit(code=1) from None
    except json.JSONDecodeError as e:
        console.print(
            f"[red]Invalid JSON in {escape(str(path))}: {escape(str(e))}[/red]"
        )
        raise typer.Exit(code=1) from None


def load_configured_weights() -> dict[str, float]:
    """Live weights from the project config, falling back to the defaults."""
    try:
        return resolve_live_weights(get_live_weight_overrides())
    except (ContractViolation, ValueError) as e:
        console.print(f"[red]Invalid weight configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None


def signals_from_aggregate(data: dict[str, Any]) -> LiveSignals | StoredSignals:
    """
    Build scorer inputs from an aggregate document.

    The ``formula`` key selects the variant ("live" or "stored"); every
    other key is a signal field.
    """
    if not isinstance(data, dict):
        raise ContractViolation(
            "aggregate", "expected a JSON object", type(data).__name__
        )

    fields = dict(data)
    formula = fields.pop("formula", "live")
    if formula == "stored":
        return StoredSignals(**fields)
    if formula != "live":
        raise ContractViolation("formula", "expected 'live' or 'stored'", formula)

    health = tuple(
        ContributorHealth(
            author=row["author"],
            last_commit=parse_timestamp(row["last_commit"], "last_commit"),
            hours_since_last_commit=float(row["hours_since_last_commit"]),
            status=row["status"],
        )
        for row in fields.pop("contributor_health", [])
    )
    return LiveSignals(**fields, contributor_health=health)


def score_color(score: int) -> str:
    if score < 50:
        return "red"
    if score < 80:
        return "yellow"
    return "green"


def display_breakdown(breakdown: HealthScoreBreakdown, title: str) -> None:
    """Display a health score and its sub-scores in a rich table."""
    color = score_color(breakdown.score)
    console.print(
        f"\n[bold cyan]{escape(title)}[/bold cyan] ({breakdown.formula} formula)\n"
        f"   Health Score: [{color}]{breakdown.score}/100[/{color}]"
    )
    if breakdown.penalty:
        console.print(f"   Alert penalty: [red]-{breakdown.penalty}[/red]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Score", justify="center", style="magenta")
    table.add_column("Weight", justify="center")
    table.add_column("Status", justify="left")
    table.add_column("Observation", justify="left")

    for sub in breakdown.sub_scores:
        if sub.risk in ("Critical", "High"):
            status = "[red]Needs attention[/red]"
        elif sub.risk in ("Medium", "Low"):
            status = "[yellow]Monitor[/yellow]"
        else:
            status = "[green]Healthy[/green]"
        table.add_row(
            sub.name,
            str(sub.score),
            f"{sub.weight:.2f}",
            status,
            escape(sub.explanation),
        )

    console.print(table)


# --- Commands ---


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors."),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Also write logs to this file."
    ),
):
    """Team Health Guard."""
    setup_logging(
        verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None
    )


@app.command()
def classify(
    message: str = typer.Argument(..., help="Commit message to classify."),
    files: list[str] = typer.Option(
        [], "--file", "-f", help="Changed file path (repeatable)."
    ),
    diff: Path | None = typer.Option(
        None, "--diff", help="File containing the unified diff of the commit."
    ),
):
    """Classify a commit message."""
    diff_text = diff.read_text(encoding="utf-8") if diff else None
    try:
        result = classify_commit(message, files, diff_text)
    except ContractViolation as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    console.print(f"[bold cyan]Type:[/bold cyan] {result.type}")
    console.print(f"[bold cyan]Summary:[/bold cyan] {escape(result.summary)}")
    if result.is_high_impact:
        console.print("[yellow]High impact: touches critical paths[/yellow]")
    if result.diff_analysis is not None:
        analysis = result.diff_analysis
        categories = ", ".join(sorted(analysis.detected_categories)) or "none"
        console.print(
            f"[bold cyan]Diff risk:[/bold cyan] {analysis.risk_level} "
            f"(categories: {categories})"
        )


@app.command()
def intent(
    text: str = typer.Argument(..., help="Chat message text."),
):
    """Detect the intent and entities of a chat message."""
    result = detect_intent_with_confidence(text)
    entities = extract_entities(text)

    console.print(
        f"[bold cyan]Intent:[/bold cyan] {result.intent} "
        f"(confidence {result.confidence:.2f})"
    )
    if entities.is_blocker:
        console.print("[red]Blocker reported[/red]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("Values", justify="left")
    for field in entities._fields:
        value = getattr(entities, field)
        if isinstance(value, list) and value:
            table.add_row(field, escape(", ".join(value)))
    if table.row_count:
        console.print(table)
    else:
        console.print("[dim]No entities found[/dim]")


@app.command()
def health(
    aggregate: Path = typer.Argument(
        ..., help="JSON file with aggregated signals and a 'formula' key."
    ),
):
    """Compute the composite health score from aggregated signals."""
    weights = load_configured_weights()
    data = load_json_file(aggregate)
    try:
        breakdown = compute_health_score(signals_from_aggregate(data), weights)
    except (ContractViolation, TypeError, KeyError) as e:
        console.print(f"[red]Invalid aggregate: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    display_breakdown(breakdown, aggregate.name)


@app.command("bus-factor")
def bus_factor(
    contributions: Path = typer.Argument(
        ..., help="JSON object mapping contributor names to contribution counts."
    ),
):
    """Compute the bus factor of a contributor distribution."""
    data = load_json_file(contributions)
    try:
        if not isinstance(data, dict):
            raise ContractViolation(
                "contributions", "expected a JSON object", type(data).__name__
            )
        result = compute_bus_factor(data)
    except ContractViolation as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    color = "red" if result.bus_factor <= 1 else "green"
    console.print(
        f"[bold cyan]Bus factor:[/bold cyan] [{color}]{result.bus_factor}[/{color}] "
        f"across {result.contributor_count} contributors"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Contributor", style="cyan")
    table.add_column("Contributions", justify="right")
    table.add_column("Share", justify="right")
    for share in result.shares:
        table.add_row(share.name, str(share.contributions), f"{share.concentration}%")
    console.print(table)


@app.command()
def sprint(
    commits: Path = typer.Argument(..., help="JSON list of commit objects."),
):
    """Summarize a batch of commits by type and author."""
    data = load_json_file(commits)
    try:
        if not isinstance(data, list):
            raise ContractViolation(
                "commits", "expected a JSON list", type(data).__name__
            )
        summary = generate_sprint_summary([commit_from_mapping(c) for c in data])
    except ContractViolation as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    console.print(escape(summary.summary_text))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Author", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Deleted", justify="right", style="red")
    for author, tally in summary.author_breakdown.items():
        table.add_row(
            author, str(tally.commits), str(tally.lines_added), str(tally.lines_deleted)
        )
    console.print(table)


@app.command()
def live(
    repository: str = typer.Argument(..., help="GitHub repository as OWNER/REPO."),
    token: str | None = typer.Option(
        None, "--token", help="GitHub token (defaults to GITHUB_TOKEN)."
    ),
):
    """Fetch live signals from GitHub and compute the health score."""
    owner, _, repo = repository.partition("/")
    if not owner or not repo or "/" in repo:
        console.print(f"[red]Expected OWNER/REPO, got '{escape(repository)}'[/red]")
        raise typer.Exit(code=1)

    weights = load_configured_weights()
    try:
        collector = GitHubCollector(token=token)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    try:
        signals = collector.collect_live_signals(
            owner, repo, datetime.now(timezone.utc)
        )
    except TeamHealthGuardError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        collector.close()

    display_breakdown(compute_health_score(signals, weights), repository)


if __name__ == "__main__":
    app()
