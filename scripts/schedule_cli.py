# ABOUTME: Provides a CLI that recommends the next study slot from a recorded session log.
# ABOUTME: Renders single-day and weekly recommendations and recorded history as Rich tables.

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.scheduling import (
    InvalidMetricsError,
    NoCandidatesError,
    PredictiveSchedulingEngine,
    ScoringConfig,
    load_session_history,
)
from src.scheduling.features import sessions_to_frame
from src.scheduling.result_builder import format_prediction

console = Console()
app = typer.Typer(help="Predict the best time of day for the next study session.")


def _default_config_path() -> Path:
    return Path("configs/scheduling.yaml")


def parse_priorities(values: Optional[List[str]]) -> Dict[str, float]:
    """Parse repeated ``SUBJECT=WEIGHT`` options into a priority map."""
    priorities: Dict[str, float] = {}
    for raw in values or []:
        subject, sep, weight = raw.rpartition("=")
        if not sep or not subject.strip():
            raise typer.BadParameter(f"Expected SUBJECT=WEIGHT, got '{raw}'", param_hint="--priority")
        try:
            priorities[subject.strip()] = float(weight)
        except ValueError as exc:
            raise typer.BadParameter(f"Weight for '{subject}' is not a number: '{weight}'", param_hint="--priority") from exc
    return priorities


def _parse_date(value: Optional[str], param_hint: str) -> date:
    if value is None:
        return date.today() + timedelta(days=1)
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'", param_hint=param_hint) from exc


def _load_engine(history: Path, config: Path) -> PredictiveSchedulingEngine:
    try:
        cfg = ScoringConfig.load(config) if config.exists() else ScoringConfig()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    if not history.exists():
        console.print(f"[red]Missing session history at {history}[/red]")
        raise typer.Exit(code=1)
    try:
        sessions = load_session_history(history)
    except (InvalidMetricsError, ValueError) as exc:
        console.print(f"[red]Could not load {history}: {exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(f"[schedule] Loaded {len(sessions)} sessions from {history}")
    return PredictiveSchedulingEngine.from_sessions(sessions, config=cfg)


def _prediction_table(predictions) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Score")
    table.add_column("Confidence")
    table.add_column("Plan")
    for p in predictions:
        minutes = int(p.estimated_duration.total_seconds() // 60)
        table.add_row(
            f"{p.recommended_time:%a %Y-%m-%d}",
            f"{p.recommended_time:%H:%M} ({p.time_of_day.label})",
            p.subject,
            f"{p.score:.3f}",
            f"{p.confidence_score:.0%}",
            f"{minutes} min {p.recommended_difficulty.value}",
        )
    return table


@app.command()
def predict(
    history: Path = typer.Option(..., "--history", help="Session log (.jsonl, .csv or .parquet)."),
    subjects: List[str] = typer.Option(..., "--subject", help="Candidate subject; repeat for several."),
    priorities: Optional[List[str]] = typer.Option(None, "--priority", help="Subject weight as SUBJECT=WEIGHT."),
    target_date: Optional[str] = typer.Option(None, "--date", help="Target date YYYY-MM-DD; defaults to tomorrow."),
    config: Path = typer.Option(_default_config_path(), "--config", help="Scoring config YAML."),
    per_subject: bool = typer.Option(False, "--per-subject", help="Show one recommendation per subject."),
) -> None:
    """
    Recommend when to study next on the target date.
    """
    engine = _load_engine(history, config)
    day = _parse_date(target_date, "--date")
    weights = parse_priorities(priorities)
    try:
        if per_subject:
            predictions = engine.predict_per_subject(day, subjects, weights)
        else:
            predictions = [engine.predict_optimal_schedule(day, subjects, weights)]
    except NoCandidatesError as exc:
        raise typer.BadParameter(str(exc), param_hint="--subject") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--priority") from exc

    console.rule("[bold blue]Next Study Session[/bold blue]")
    console.print(_prediction_table(predictions))
    console.print()
    console.print(format_prediction(predictions[0]))


@app.command()
def weekly(
    history: Path = typer.Option(..., "--history", help="Session log (.jsonl, .csv or .parquet)."),
    week_start: str = typer.Option(..., "--week-start", help="First day of the week, YYYY-MM-DD."),
    priorities: List[str] = typer.Option(..., "--priority", help="Subject weight as SUBJECT=WEIGHT."),
    config: Path = typer.Option(_default_config_path(), "--config", help="Scoring config YAML."),
) -> None:
    """
    Plan one session per day for seven days.
    """
    engine = _load_engine(history, config)
    start = _parse_date(week_start, "--week-start")
    weights = parse_priorities(priorities)
    try:
        predictions = engine.generate_weekly_schedule(start, weights)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--priority") from exc

    console.rule("[bold blue]Weekly Study Plan[/bold blue]")
    console.print(_prediction_table(predictions))


@app.command("history")
def show_history(
    history: Path = typer.Option(..., "--history", help="Session log (.jsonl, .csv or .parquet)."),
    subject: Optional[str] = typer.Option(None, "--subject", help="Only show this subject."),
    config: Path = typer.Option(_default_config_path(), "--config", help="Scoring config YAML."),
) -> None:
    """
    List recorded sessions with their composite scores.
    """
    engine = _load_engine(history, config)
    sessions = engine.history_for(subject) if subject else engine.history.snapshot()
    df = sessions_to_frame(sessions, engine.config)
    if df.empty:
        console.print("[yellow]No sessions recorded[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Timestamp", "Subject", "Slot", "Accuracy", "Focus", "Retention", "Composite"):
        table.add_column(column)
    for _, row in df.iterrows():
        table.add_row(
            f"{row['timestamp']:%Y-%m-%d %H:%M}",
            str(row["subject"]),
            f"{row['day_of_week']} {row['time_of_day']}",
            f"{row['accuracy']:.2f}",
            f"{row['focus_score']:.2f}",
            f"{row['retention_score']:.2f}",
            f"{row['composite']:.3f}",
        )
    console.print(table)
    console.print(f"[bold]{len(df):,} sessions across {df['subject'].nunique()} subject(s)[/bold]")


if __name__ == "__main__":
    app()
