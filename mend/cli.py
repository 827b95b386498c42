"""Mend command line.

Reads a JSON payload of activities and biometrics, runs the recovery engine,
and renders the result with rich (or as JSON).
"""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mend.core.logger import setup_logger
from mend.core.settings import get_settings
from mend.errors import MendError
from mend.models.recovery import CooldownStatus, RecoveryScore
from mend.models.training import TrainingSummary
from mend.persistence.repository import CooldownRepository, InMemoryCooldownRepository, SqlCooldownRepository
from mend.pipeline.recovery_engine import RecoveryEngine
from mend.providers import StaticActivityProvider, StaticBiometricProvider, load_payload
from mend.recovery.insights import ActivityRecommendation, notification_body, recovery_recommendations

console = Console()

app = typer.Typer(
    name="mend",
    help="Mend - recovery readiness scoring from biometrics and training history",
    add_completion=False,
)

INPUT_OPTION = typer.Option(..., "--input", "-i", help="JSON payload with activities and biometrics")
NOW_OPTION = typer.Option(None, "--now", help="Evaluate at this ISO-8601 time instead of the current time")
DATABASE_OPTION = typer.Option(None, "--database-url", help="Persist cooldown state in this database")
PERSIST_OPTION = typer.Option(False, "--persist", help="Persist cooldown state in the configured MEND_DATABASE_URL")
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
JSON_OPTION = typer.Option(False, "--json", help="Print raw JSON instead of tables")


def _setup_logging(debug: bool) -> None:
    # stdout carries command output; keep stderr quiet unless --debug
    setup_logger(get_settings(), level="DEBUG" if debug else "WARNING")


def _parse_now(value: str | None) -> dt.datetime | None:
    if value is None:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value)
    except ValueError as e:
        console.print(f"[red]Error:[/red] invalid --now value {value!r}", style="bold red")
        raise typer.Exit(1) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def _resolve_database_url(database_url: str | None, persist: bool) -> str | None:
    if database_url:
        return database_url
    if persist:
        return get_settings().database_url
    return None


def _build_engine(input_path: Path, now: str | None, database_url: str | None) -> tuple[RecoveryEngine, dt.datetime]:
    """Load the payload and construct an engine for its athlete."""
    try:
        payload = load_payload(input_path)
    except MendError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    evaluated_at = _parse_now(now) or payload.now or dt.datetime.now(dt.UTC)
    if evaluated_at.tzinfo is None:
        evaluated_at = evaluated_at.replace(tzinfo=dt.UTC)

    repository: CooldownRepository
    if database_url:
        repository = SqlCooldownRepository(database_url)
    else:
        repository = InMemoryCooldownRepository()

    engine = RecoveryEngine(
        athlete_id=payload.athlete_id,
        biometrics=StaticBiometricProvider(payload.biometrics, today=evaluated_at.date()),
        activities=StaticActivityProvider(payload.activities, now=evaluated_at),
        repository=repository,
    )
    logger.debug(f"Engine ready for athlete_id={payload.athlete_id} at {evaluated_at.isoformat()}")
    return engine, evaluated_at


def _print_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_score(score: RecoveryScore, sessions: list[ActivityRecommendation]) -> None:
    color = "green" if score.overall_score >= 60 else "yellow" if score.overall_score >= 40 else "red"
    body = f"[bold {color}]{notification_body(score)}[/bold {color}]"
    if score.cooldown_adjustment < 100:
        body += f"\n[dim]Base {score.base_score}, cooldown adjustment {score.cooldown_adjustment}%[/dim]"
    if score.is_low_confidence:
        body += "\n[yellow]Low confidence: no biometric data available[/yellow]"
    console.print(Panel(body, title=f"Recovery score - {score.date.isoformat()}", border_style=color))

    table = Table(title="Metrics")
    table.add_column("Metric")
    table.add_column("Score", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Trend")
    table.add_column("Details")
    for metric in score.metrics.values():
        table.add_row(
            metric.title,
            str(metric.score),
            f"{metric.delta_from_baseline:+.1f}",
            metric.trend.value,
            metric.description,
        )
    console.print(table)

    if score.training_load_score is not None:
        console.print(Panel(score.training_load_score.description, title="Training load"))

    for recommendation in recovery_recommendations(score):
        console.print(f"[bold]{recommendation.title}[/bold]: {recommendation.description}")

    if sessions:
        suggestions = Table(title="Suggested sessions")
        suggestions.add_column("Session")
        suggestions.add_column("Intensity")
        suggestions.add_column("Minutes", justify="right")
        for session in sessions:
            suggestions.add_row(session.title, session.intensity.value, str(session.duration_minutes))
        console.print(suggestions)


def _render_cooldown(status: CooldownStatus) -> None:
    border = "yellow" if status.is_in_cooldown else "green"
    body = f"{status.description}\nAdjustment: {status.adjustment}%   Recovered: {status.percentage}%"
    console.print(Panel(body, title="Recovery status", border_style=border))
    for tip in status.tips:
        console.print(f"  - {tip}")


def _render_training(summary: TrainingSummary) -> None:
    table = Table(title=f"Training volume - last {summary.window_days} days")
    table.add_column("Date")
    table.add_column("Minutes", justify="right")
    table.add_column("Activities", justify="right")
    table.add_column("Intensity")
    table.add_column("Load", justify="right")
    for volume in summary.daily_volumes:
        table.add_row(
            volume.date.isoformat(),
            f"{volume.total_duration_minutes:.0f}",
            str(volume.activity_count),
            "rest" if volume.is_rest_day else volume.intensity_level.value,
            str(volume.training_load),
        )
    console.print(table)
    console.print(f"Training load: [bold]{summary.load}[/bold]   Work:rest: [bold]{summary.work_rest_ratio}[/bold]")
    console.print(summary.training_load_score.description)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def score(
    input_path: Path = INPUT_OPTION,
    now: str | None = NOW_OPTION,
    database_url: str | None = DATABASE_OPTION,
    persist: bool = PERSIST_OPTION,
    debug: bool = DEBUG_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Compute today's recovery score."""
    _setup_logging(debug)
    engine, evaluated_at = _build_engine(input_path, now, _resolve_database_url(database_url, persist))
    result = engine.refresh(evaluated_at)
    sessions = engine.activity_recommendations(evaluated_at)

    if as_json:
        data = result.model_dump(mode="json")
        data["notification"] = notification_body(result)
        data["activity_recommendations"] = [s.model_dump(mode="json") for s in sessions]
        _print_json(data)
        return
    _render_score(result, sessions)


@app.command()
def cooldown(
    input_path: Path = INPUT_OPTION,
    now: str | None = NOW_OPTION,
    database_url: str | None = DATABASE_OPTION,
    persist: bool = PERSIST_OPTION,
    debug: bool = DEBUG_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Show post-activity recovery progress."""
    _setup_logging(debug)
    engine, evaluated_at = _build_engine(input_path, now, _resolve_database_url(database_url, persist))
    engine.refresh(evaluated_at)
    status = engine.cooldown_status(evaluated_at)

    if as_json:
        _print_json(status.model_dump(mode="json"))
        return
    _render_cooldown(status)


@app.command()
def training(
    input_path: Path = INPUT_OPTION,
    now: str | None = NOW_OPTION,
    debug: bool = DEBUG_OPTION,
    as_json: bool = JSON_OPTION,
):
    """Show training load, daily volumes, and work:rest ratio."""
    _setup_logging(debug)
    engine, evaluated_at = _build_engine(input_path, now, None)
    summary = engine.training_summary(evaluated_at)

    if as_json:
        _print_json(summary.model_dump(mode="json"))
        return
    _render_training(summary)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
