"""CLI commands for running analyses over exported observation records.

Examples:
    sensorycompass analyze run records.json
    sensorycompass analyze run records.json --subject s-1 --days 14 --json
    sensorycompass analyze trend records.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from sensorycompass.analysis.cached import CachedAnalysisEngine
from sensorycompass.analysis.results import TrendPoint
from sensorycompass.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    AnalyticsConfiguration,
    ConfigurationProvider,
    load_configuration,
)
from sensorycompass.errors import SensoryCompassError
from sensorycompass.errors.user_messages import format_error_for_cli
from sensorycompass.models.records import RecordBundle, load_records_file

logger = logging.getLogger(__name__)

console = Console()
analyze_app = typer.Typer(help="Run pattern analysis over exported records")


def _load_config(config_path: Path) -> AnalyticsConfiguration:
    if config_path.exists():
        return load_configuration(config_path)
    logger.debug("No configuration at %s, using defaults", config_path)
    return AnalyticsConfiguration()


def _load_bundle(records: Path) -> RecordBundle:
    try:
        return load_records_file(records)
    except FileNotFoundError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1)
    except SensoryCompassError as exc:
        console.print(f"[red]{format_error_for_cli(exc)}[/red]")
        raise typer.Exit(code=1)


def _subjects(bundle: RecordBundle, subject: Optional[str]) -> List[str]:
    if subject:
        return [subject]
    return bundle.subject_ids()


def _analyze_subject(
    engine: CachedAnalysisEngine, bundle: RecordBundle, subject_id: str, days: Optional[int]
) -> Dict[str, Any]:
    records = bundle.for_subject(subject_id)
    emotions = records.emotions + [e for s in records.sessions for e in s.emotions]
    sensory = records.sensory_inputs + [i for s in records.sessions for i in s.sensory_inputs]
    sessions = records.sessions

    return {
        "subject_id": subject_id,
        "patterns": [
            p.to_dict()
            for p in engine.analyze_emotion_patterns(emotions, days) + engine.analyze_sensory_patterns(sensory, days)
        ],
        "correlations": [c.to_dict() for c in engine.analyze_environmental_correlations(sessions)],
        "alerts": [a.to_dict() for a in engine.generate_trigger_alerts(emotions, sensory, sessions, subject_id)],
        "anomalies": [a.to_dict() for a in engine.detect_anomalies(emotions, sensory, sessions)],
        "insights": [
            i.to_dict() for i in engine.generate_predictive_insights(emotions, sensory, sessions, records.goals)
        ],
        "correlation_matrix": engine.generate_correlation_matrix(sessions).to_dict(),
    }


def _print_report(report: Dict[str, Any]) -> None:
    console.print(f"\n[bold]Subject {report['subject_id']}[/bold]")

    if report["patterns"]:
        table = Table(title="Patterns")
        table.add_column("Pattern", style="cyan")
        table.add_column("Confidence", justify="right")
        table.add_column("Frequency", justify="right")
        table.add_column("Description")
        for pattern in report["patterns"]:
            table.add_row(
                pattern["pattern"],
                f"{pattern['confidence']:.0%}",
                str(pattern["frequency"]),
                pattern["description"],
            )
        console.print(table)
    else:
        console.print("[dim]No patterns yet; more observations are needed.[/dim]")

    for alert in report["alerts"]:
        color = {"high": "red", "medium": "yellow"}.get(alert["severity"], "green")
        console.print(f"[{color}]{alert['title']}[/{color}]: {alert['description']}")

    for correlation in report["correlations"]:
        console.print(
            f"{correlation['factor1']} vs {correlation['factor2']}: "
            f"r={correlation['correlation']:.2f} ({correlation['significance']})"
        )

    if report["anomalies"]:
        console.print(f"[yellow]{len(report['anomalies'])} anomalies detected[/yellow]")

    for insight in report["insights"]:
        console.print(f"- {insight['title']}: {insight['description']}")


@analyze_app.command("run")
def run_analysis(
    records: Path = typer.Argument(..., help="JSON export of observation records"),
    subject: Optional[str] = typer.Option(None, "--subject", help="Only analyze this subject"),
    days: Optional[int] = typer.Option(None, "--days", help="Analysis window in days"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Analyze patterns, alerts, anomalies and forecasts per subject."""

    bundle = _load_bundle(records)
    try:
        provider = ConfigurationProvider(_load_config(config_path))
    except SensoryCompassError as exc:
        console.print(f"[red]{format_error_for_cli(exc)}[/red]")
        raise typer.Exit(code=1)

    engine = CachedAnalysisEngine(provider)
    try:
        reports = [_analyze_subject(engine, bundle, subject_id, days) for subject_id in _subjects(bundle, subject)]
    finally:
        engine.close()

    if json_output:
        typer.echo(json.dumps({"subjects": reports}, indent=2))
        return
    if not reports:
        console.print("[yellow]No subjects found in records[/yellow]")
        return
    for report in reports:
        _print_report(report)


@analyze_app.command("trend")
def trend_analysis(
    records: Path = typer.Argument(..., help="JSON export of observation records"),
    subject: Optional[str] = typer.Option(None, "--subject", help="Only analyze this subject"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Show the emotion-intensity trend and how far it can be trusted."""

    bundle = _load_bundle(records)
    try:
        provider = ConfigurationProvider(_load_config(config_path))
    except SensoryCompassError as exc:
        console.print(f"[red]{format_error_for_cli(exc)}[/red]")
        raise typer.Exit(code=1)

    engine = CachedAnalysisEngine(provider)
    results: List[Dict[str, Any]] = []
    try:
        for subject_id in _subjects(bundle, subject):
            scoped = bundle.for_subject(subject_id)
            emotions = scoped.emotions + [e for s in scoped.sessions for e in s.emotions]
            trend = engine.analyze_trends_with_statistics(
                [TrendPoint(timestamp=e.timestamp, value=e.intensity) for e in emotions],
                metric="Emotion Intensity",
            )
            explanation = (
                engine.generate_confidence_explanation(
                    trend.data_points, trend.time_span_days, trend.significance, trend.confidence
                )
                if trend is not None
                else None
            )
            results.append(
                {
                    "subject_id": subject_id,
                    "trend": trend.to_dict() if trend else None,
                    "explanation": explanation.to_dict() if explanation else None,
                }
            )
    finally:
        engine.close()

    if json_output:
        typer.echo(json.dumps({"subjects": results}, indent=2))
        return

    table = Table(title="Emotion Intensity Trends")
    table.add_column("Subject", style="cyan")
    table.add_column("Direction")
    table.add_column("Rate/day", justify="right")
    table.add_column("R²", justify="right")
    table.add_column("Confidence")
    for row in results:
        trend = row["trend"]
        if trend is None:
            table.add_row(row["subject_id"], "-", "-", "-", "insufficient data")
            continue
        table.add_row(
            row["subject_id"],
            trend["direction"],
            f"{trend['rate']:+.3f}",
            f"{trend['significance']:.2f}",
            row["explanation"]["level"],
        )
    console.print(table)


__all__ = ["analyze_app"]
