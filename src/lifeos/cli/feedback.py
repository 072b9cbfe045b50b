"""CLI commands for rating insights and inspecting a learning profile."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lifeos.errors import LearningError, LifeOSError
from lifeos.errors.user_messages import format_error_for_cli
from lifeos.learning.profile import FeedbackEntry, LearningProfile

console = Console()
feedback_app = typer.Typer(help="Insight feedback commands")


def read_profile(path: Path) -> LearningProfile:
    """Load the profile at ``path``, or start one named after the file."""
    if not path.exists():
        return LearningProfile(profile_id=path.stem)
    try:
        return LearningProfile.from_dict(json.loads(path.read_text()))
    except json.JSONDecodeError as exc:
        raise LearningError(f"Could not parse profile {path}: {exc}") from exc


def write_profile(profile: LearningProfile, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(profile.to_dict(), indent=2))


@feedback_app.command("add")
def add_feedback(
    profile_path: Path = typer.Argument(..., help="Learning profile JSON file"),
    insight_id: str = typer.Argument(..., help="Insight ID, e.g. trend:health"),
    rating: float = typer.Argument(..., help="Rating between 0 and 1"),
    action: str = typer.Argument("rated", help="What you did, e.g. accepted or dismissed"),
    insight_type: Optional[str] = typer.Option(
        None, "--type", help="Insight type when the ID does not encode one"
    ),
) -> None:
    """Record a rating for an insight."""
    try:
        profile = read_profile(profile_path)
        entry = FeedbackEntry(
            insight_id=insight_id,
            rating=rating,
            action=action,
            insight_type=insight_type,
        )
        profile = profile.with_feedback([entry])
    except LifeOSError as e:
        console.print(f"[red]{escape(format_error_for_cli(e))}[/red]")
        raise typer.Exit(1)

    write_profile(profile, profile_path)
    summary = profile.summary
    console.print(
        f"[green]✓ Recorded {rating:.2f} for {insight_id}[/green] "
        f"({summary.total_feedback} ratings, average {summary.average_rating:.2f})"
    )


@feedback_app.command("show")
def show_feedback(
    profile_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Learning profile JSON file"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the learning summary and per-type weights of a profile."""
    try:
        profile = read_profile(profile_path)
    except LifeOSError as e:
        console.print(f"[red]{escape(format_error_for_cli(e))}[/red]")
        raise typer.Exit(1)

    summary = profile.summary
    weights = profile.insight_weights()
    if output_json:
        payload = summary.to_dict()
        payload["insightWeights"] = {t.value: w for t, w in weights.items()}
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print(f"Profile: [cyan]{profile.profile_id}[/cyan]")
    console.print(
        f"Ratings: {summary.total_feedback}  Average: {summary.average_rating:.2f}  "
        f"Progress: {summary.learning_progress:.0%}"
    )

    table = Table(title="Insight Type Weights")
    table.add_column("Type", style="green")
    table.add_column("Mean Rating", justify="right")
    table.add_column("Weight", justify="right", style="magenta")
    preferences = summary.preferred_insight_types
    for insight_type, weight in weights.items():
        mean = preferences.get(insight_type.value)
        table.add_row(
            insight_type.value,
            f"{mean:.2f}" if mean is not None else "-",
            f"{weight:.1f}",
        )
    console.print(table)
