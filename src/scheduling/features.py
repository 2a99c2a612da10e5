# ABOUTME: Turns raw session history into comparable per-slot performance scores.
# ABOUTME: Combines composite session scoring, recency decay and shrinkage toward neutral.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import ScoringConfig
from .schemas import DayOfWeek, StudySessionMetrics, TimeOfDay

FRAME_COLUMNS = [
    "subject",
    "timestamp",
    "time_of_day",
    "day_of_week",
    "difficulty",
    "dominant_emotion",
    "session_minutes",
    "total_questions",
    "correct_answers",
    "accuracy",
    "focus_score",
    "retention_score",
    "average_response_time",
    "completed_session",
    "composite",
]


def response_time_score(average_response_time: float, ceiling_s: float) -> float:
    """Map seconds-per-question to [0, 1]; instant answers score 1, the ceiling and above score 0."""
    clipped = min(max(average_response_time, 0.0), ceiling_s)
    return 1.0 - clipped / ceiling_s


def session_components(metrics: StudySessionMetrics, config: ScoringConfig) -> Dict[str, float]:
    return {
        "accuracy": metrics.accuracy,
        "focus": metrics.focus_score,
        "retention": metrics.retention_score,
        "response_time": response_time_score(metrics.average_response_time, config.response_time_ceiling_s),
        "completion": 1.0 if metrics.completed_session else 0.0,
        "emotion": metrics.dominant_emotion.valence,
    }


def session_composite_score(metrics: StudySessionMetrics, config: Optional[ScoringConfig] = None) -> float:
    """Weighted combination of a session's signals; stays in [0, 1] because the weights sum to 1."""
    config = config or ScoringConfig()
    components = session_components(metrics, config)
    score = sum(config.weights[name] * value for name, value in components.items())
    return float(min(max(score, 0.0), 1.0))


def recency_weight(age_days: float, half_life_days: float, floor: float = 0.0) -> float:
    """Exponential decay by age; sessions dated after ``as_of`` count fully."""
    if age_days <= 0:
        return 1.0
    return max(0.5 ** (age_days / half_life_days), floor)


def age_in_days(timestamp: datetime, as_of: datetime) -> float:
    return (_naive_utc(as_of) - _naive_utc(timestamp)).total_seconds() / 86400.0


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def sessions_to_frame(
    sessions: Iterable[StudySessionMetrics],
    config: Optional[ScoringConfig] = None,
    as_of: Optional[datetime] = None,
) -> pd.DataFrame:
    """
    Tabular view of session history with per-session composite scores.

    When ``as_of`` is given, ``age_days`` and the decayed ``weight`` columns
    are added as well.
    """
    config = config or ScoringConfig()
    columns = FRAME_COLUMNS + (["age_days", "weight"] if as_of is not None else [])
    rows = []
    for m in sessions:
        row = {
            "subject": m.subject,
            "timestamp": m.timestamp,
            "time_of_day": m.time_of_day.value,
            "day_of_week": m.day_of_week.value,
            "difficulty": m.difficulty.value,
            "dominant_emotion": m.dominant_emotion.value,
            "session_minutes": m.session_length.total_seconds() / 60.0,
            "total_questions": m.total_questions,
            "correct_answers": m.correct_answers,
            "accuracy": m.accuracy,
            "focus_score": m.focus_score,
            "retention_score": m.retention_score,
            "average_response_time": m.average_response_time,
            "completed_session": m.completed_session,
            "composite": session_composite_score(m, config),
        }
        if as_of is not None:
            row["age_days"] = age_in_days(m.timestamp, as_of)
            row["weight"] = recency_weight(row["age_days"], config.half_life_days, config.min_recency_weight)
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


@dataclass(frozen=True)
class SubjectScores:
    """
    Smoothed performance scores for one subject.

    ``cells`` is keyed by ``(time_of_day, day_of_week)``; ``slots`` by
    ``time_of_day`` across all days and ``days`` by ``day_of_week`` across all
    times. ``slot_means`` holds the decay-weighted slot means before shrinkage.
    Groups without any session are absent.
    """

    subject: str
    session_count: int
    cells: Dict[Tuple[TimeOfDay, DayOfWeek], float] = field(default_factory=dict)
    cell_counts: Dict[Tuple[TimeOfDay, DayOfWeek], int] = field(default_factory=dict)
    slots: Dict[TimeOfDay, float] = field(default_factory=dict)
    slot_counts: Dict[TimeOfDay, int] = field(default_factory=dict)
    slot_means: Dict[TimeOfDay, float] = field(default_factory=dict)
    days: Dict[DayOfWeek, float] = field(default_factory=dict)
    day_counts: Dict[DayOfWeek, int] = field(default_factory=dict)

    def cell(self, time_of_day: TimeOfDay, day_of_week: DayOfWeek) -> Optional[float]:
        return self.cells.get((time_of_day, day_of_week))

    def slot(self, time_of_day: TimeOfDay) -> Optional[float]:
        return self.slots.get(time_of_day)

    def day(self, day_of_week: DayOfWeek) -> Optional[float]:
        return self.days.get(day_of_week)


def _smoothed_group_scores(df: pd.DataFrame, keys: Sequence[str], config: ScoringConfig) -> pd.DataFrame:
    # Decay-weighted mean shrunk toward the neutral score by `prior_weight`
    # pseudo-sessions, so sparse or stale groups stay close to "unknown".
    work = df.assign(weighted=df["composite"] * df["weight"])
    grouped = (
        work.groupby(list(keys), sort=False)
        .agg(
            weighted=("weighted", "sum"),
            weight=("weight", "sum"),
            count=("composite", "size"),
        )
        .reset_index()
    )
    prior = config.prior_weight
    grouped["score"] = (grouped["weighted"] + prior * config.neutral_score) / (grouped["weight"] + prior)
    grouped["score"] = np.clip(grouped["score"].astype(float), 0.0, 1.0)
    # Unshrunk decay-weighted mean; a zero total weight falls back to neutral.
    grouped["mean"] = (grouped["weighted"] / grouped["weight"].replace(0.0, np.nan)).fillna(config.neutral_score)
    return grouped


def aggregate_subject_scores(
    sessions: Iterable[StudySessionMetrics],
    subject: str,
    as_of: datetime,
    config: Optional[ScoringConfig] = None,
) -> SubjectScores:
    config = config or ScoringConfig()
    df = sessions_to_frame((m for m in sessions if m.subject == subject), config, as_of=as_of)
    if df.empty:
        return SubjectScores(subject=subject, session_count=0)

    cells: Dict[Tuple[TimeOfDay, DayOfWeek], float] = {}
    cell_counts: Dict[Tuple[TimeOfDay, DayOfWeek], int] = {}
    for _, row in _smoothed_group_scores(df, ["time_of_day", "day_of_week"], config).iterrows():
        key = (TimeOfDay(row["time_of_day"]), DayOfWeek(row["day_of_week"]))
        cells[key] = float(row["score"])
        cell_counts[key] = int(row["count"])

    slots: Dict[TimeOfDay, float] = {}
    slot_counts: Dict[TimeOfDay, int] = {}
    slot_means: Dict[TimeOfDay, float] = {}
    for _, row in _smoothed_group_scores(df, ["time_of_day"], config).iterrows():
        key = TimeOfDay(row["time_of_day"])
        slots[key] = float(row["score"])
        slot_counts[key] = int(row["count"])
        slot_means[key] = float(row["mean"])

    days: Dict[DayOfWeek, float] = {}
    day_counts: Dict[DayOfWeek, int] = {}
    for _, row in _smoothed_group_scores(df, ["day_of_week"], config).iterrows():
        key = DayOfWeek(row["day_of_week"])
        days[key] = float(row["score"])
        day_counts[key] = int(row["count"])

    return SubjectScores(
        subject=subject,
        session_count=int(len(df)),
        cells=cells,
        cell_counts=cell_counts,
        slots=slots,
        slot_counts=slot_counts,
        slot_means=slot_means,
        days=days,
        day_counts=day_counts,
    )


def aggregate_all(
    sessions: Sequence[StudySessionMetrics],
    subjects: Iterable[str],
    as_of: datetime,
    config: Optional[ScoringConfig] = None,
) -> Dict[str, SubjectScores]:
    config = config or ScoringConfig()
    return {subject: aggregate_subject_scores(sessions, subject, as_of, config) for subject in subjects}
