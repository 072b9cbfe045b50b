"""CLI commands for running a pattern analysis over an event file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.logging import RichHandler
from rich.table import Table

from lifeos.analysis.orchestrator import AnalysisOrchestrator
from lifeos.analysis.results import AnalysisResult, clamp
from lifeos.configuration.settings import DEFAULT_CONFIG_PATH, bootstrap_settings
from lifeos.errors import InvalidBatchError, LearningError, LifeOSError
from lifeos.errors.user_messages import format_error_for_cli
from lifeos.learning.profile import LearningProfile
from lifeos.models.insights import InsightType

console = Console()
analyze_app = typer.Typer(help="Pattern analysis commands")

FORMATS = ("table", "json", "yaml")


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich when ``--verbose`` is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_events(path: Path) -> List[Dict[str, Any]]:
    """Read events from a JSON array, a ``{"events": [...]}`` object or NDJSON."""
    text = path.read_text().strip()
    if not text:
        return []
    try:
        if text[0] in "[{":
            try:
                payload = json.loads(text)
            except json.JSONDecodeError:
                if text[0] != "{":
                    raise
                payload = [json.loads(line) for line in text.splitlines() if line.strip()]
        else:
            payload = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as exc:
        raise InvalidBatchError(f"Could not parse {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("events", [payload])
    return payload


def load_profile(path: Optional[Path]) -> Optional[LearningProfile]:
    if path is None or not path.exists():
        return None
    try:
        return LearningProfile.from_dict(json.loads(path.read_text()))
    except json.JSONDecodeError as exc:
        raise LearningError(f"Could not parse profile {path}: {exc}") from exc


def finding_rows(result: AnalysisResult) -> List[Tuple[InsightType, str, float, str]]:
    """Flatten a result into ``(type, insight id, confidence, description)`` rows."""
    rows: List[Tuple[InsightType, str, float, str]] = []
    for trend in result.trends:
        rows.append((trend.insight_type, trend.insight_id, trend.confidence, trend.description))
    for cycle in result.cycles:
        rows.append((cycle.insight_type, cycle.insight_id, cycle.strength, cycle.description))
    for corr in result.correlations:
        rows.append((corr.insight_type, corr.insight_id, corr.confidence, corr.description))
    for anomaly in result.anomalies:
        rows.append(
            (anomaly.insight_type, anomaly.insight_id, result.confidence, anomaly.description)
        )
    for analysis in result.clusters:
        rows.append(
            (
                analysis.insight_type,
                analysis.insight_id,
                clamp(analysis.silhouette),
                analysis.description,
            )
        )
    for prediction in result.predictions.values():
        rows.append(
            (
                prediction.insight_type,
                prediction.insight_id,
                prediction.confidence,
                prediction.description,
            )
        )
    return rows


def render_table(result: AnalysisResult) -> None:
    rows = finding_rows(result)
    if not rows:
        console.print("[yellow]No patterns found in this batch[/yellow]")
    else:
        table = Table(title=f"Patterns ({len(rows)} total)")
        table.add_column("Type", style="green")
        table.add_column("Insight ID", style="cyan")
        table.add_column("Confidence", justify="right")
        table.add_column("Surface", style="magenta")
        table.add_column("Description")
        for insight_type, insight_id, confidence, description in rows:
            surface = result.should_surface(insight_type, confidence)
            table.add_row(
                insight_type.value,
                insight_id,
                f"{confidence:.2f}",
                "yes" if surface else "no",
                description,
            )
        console.print(table)

    quality = result.data_quality
    console.print(
        f"Events: {result.event_count}  Confidence: {result.confidence:.2f}  "
        f"Data quality: {quality.score:.2f} "
        f"(recency {quality.recency:.2f}, variety {quality.variety:.2f}, "
        f"consistency {quality.consistency:.2f})"
    )


@analyze_app.command("run")
def run_analysis(
    events_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON or NDJSON file of events"
    ),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to config file"),
    profile_path: Optional[Path] = typer.Option(
        None, "--profile", help="Learning profile whose weights decide what to surface"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for K-means clustering"),
    as_of: Optional[int] = typer.Option(
        None, "--as-of", help="Reference time in epoch milliseconds (default: now)"
    ),
    horizon: Optional[int] = typer.Option(None, "--horizon", help="Prediction horizon in steps"),
    format_output: str = typer.Option("table", "--format", help="Output format: table, json, or yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Detect trends, cycles, correlations, anomalies and clusters in events."""
    configure_logging(verbose)
    if format_output not in FORMATS:
        console.print(f"[red]Invalid format: {format_output}[/red]")
        console.print(f"Valid: {', '.join(FORMATS)}")
        raise typer.Exit(1)

    overrides: Dict[str, Any] = {}
    if seed is not None:
        overrides.setdefault("analysis", {}).setdefault("clustering", {})["seed"] = seed
    if horizon is not None:
        overrides.setdefault("analysis", {}).setdefault("prediction", {})["horizon"] = horizon

    try:
        settings = bootstrap_settings(path=config_path, overrides=overrides, persist=False)
        orchestrator = AnalysisOrchestrator(settings.analysis)
        events = load_events(events_file)
        result, _ = orchestrator.analyze(events, load_profile(profile_path), as_of=as_of)
    except LifeOSError as e:
        console.print(f"[red]{escape(format_error_for_cli(e))}[/red]")
        raise typer.Exit(1)

    payload = result.to_dict()
    if format_output == "json":
        typer.echo(json.dumps(payload, indent=2))
    elif format_output == "yaml":
        typer.echo(yaml.safe_dump(payload, default_flow_style=False, sort_keys=False))
    else:
        render_table(result)
