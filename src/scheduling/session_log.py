# ABOUTME: Mirrors recorded sessions to a JSON-lines file on a background thread.
# ABOUTME: Loads session history back from .jsonl, .csv or .parquet files.

from __future__ import annotations

import json
import queue
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import typer

from .errors import InvalidMetricsError
from .schemas import StudySessionMetrics

_STOP = object()


def metrics_to_record(metrics: StudySessionMetrics) -> Dict[str, Any]:
    return {
        "timestamp": metrics.timestamp.isoformat(),
        "session_minutes": metrics.session_length.total_seconds() / 60.0,
        "total_questions": metrics.total_questions,
        "correct_answers": metrics.correct_answers,
        "average_response_time": metrics.average_response_time,
        "dominant_emotion": metrics.dominant_emotion.value,
        "time_of_day": metrics.time_of_day.value,
        "day_of_week": metrics.day_of_week.value,
        "difficulty": metrics.difficulty.value,
        "subject": metrics.subject,
        "focus_score": metrics.focus_score,
        "retention_score": metrics.retention_score,
        "completed_session": metrics.completed_session,
    }


def metrics_from_record(record: Dict[str, Any]) -> StudySessionMetrics:
    """Rebuild validated metrics from a log row; missing buckets are re-derived from the timestamp."""
    try:
        raw_timestamp = record["timestamp"]
        if pd.isna(raw_timestamp) or (isinstance(raw_timestamp, str) and not raw_timestamp.strip()):
            raise InvalidMetricsError("Session record has no timestamp")
        timestamp = pd.Timestamp(raw_timestamp).to_pydatetime()
        return StudySessionMetrics.create(
            timestamp=timestamp,
            session_length=float(record.get("session_minutes", 0.0)),
            total_questions=int(record["total_questions"]),
            correct_answers=int(record["correct_answers"]),
            average_response_time=float(record.get("average_response_time", 0.0)),
            subject=str(record["subject"]),
            focus_score=float(record["focus_score"]),
            retention_score=float(record["retention_score"]),
            completed_session=_as_bool(record.get("completed_session", True)),
            dominant_emotion=record.get("dominant_emotion") or "neutral",
            difficulty=record.get("difficulty") or "medium",
            time_of_day=_optional(record.get("time_of_day")),
            day_of_week=_optional(record.get("day_of_week")),
        )
    except InvalidMetricsError:
        raise
    except KeyError as exc:
        raise InvalidMetricsError(f"Session record missing field {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidMetricsError(f"Malformed session record: {exc}") from exc


def _optional(value):
    if value is None or (isinstance(value, float) and pd.isna(value)) or value == "":
        return None
    return value


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def load_session_history(path: Path) -> List[StudySessionMetrics]:
    """
    Read recorded sessions from disk in file order.

    Supports the JSON-lines log written by SessionLogWriter, plus CSV and
    parquet tables with the same columns.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in {".jsonl", ".ndjson"}:
        rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    elif suffix == ".csv":
        rows = pd.read_csv(path).to_dict(orient="records")
    elif suffix == ".parquet":
        rows = pd.read_parquet(path).to_dict(orient="records")
    else:
        raise ValueError(f"Unsupported history file '{path.name}'. Expected .jsonl, .csv or .parquet.")
    return [metrics_from_record(row) for row in rows]


class SessionLogWriter:
    """
    Best-effort asynchronous append of sessions to a JSON-lines file.

    ``submit`` only enqueues; a daemon thread performs the file writes. Write
    failures are reported on stderr and counted in ``failures``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.written = 0
        self.failures = 0
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="session-log-writer", daemon=True)
        self._thread.start()

    def submit(self, metrics: StudySessionMetrics) -> None:
        self._queue.put_nowait(metrics_to_record(metrics))

    def flush(self) -> None:
        self._queue.join()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread.is_alive():
            self._queue.put(_STOP)
            self._thread.join(timeout)

    def __enter__(self) -> "SessionLogWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            record = self._queue.get()
            try:
                if record is _STOP:
                    return
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record) + "\n")
                self.written += 1
            except OSError as exc:
                self.failures += 1
                typer.echo(f"[schedule] Failed to append session to {self.path}: {exc}", err=True)
            finally:
                self._queue.task_done()
