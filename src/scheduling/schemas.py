# ABOUTME: Defines the canonical session-metrics and prediction records of the scheduler.
# ABOUTME: Centralizes the closed time-of-day, weekday, difficulty and emotion enumerations.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Type, TypeVar, Union

from .errors import InvalidMetricsError

E = TypeVar("E", bound=Enum)


class TimeOfDay(str, Enum):
    """Seven fixed buckets partitioning a day; declaration order is the tie-break order."""

    EARLY_MORNING = "early_morning"  # 5-8
    MORNING = "morning"  # 8-11
    MIDDAY = "midday"  # 11-14
    AFTERNOON = "afternoon"  # 14-17
    EVENING = "evening"  # 17-20
    NIGHT = "night"  # 20-23
    LATE_NIGHT = "late_night"  # 23-5

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        if not 0 <= hour < 24:
            raise ValueError(f"Hour must be in [0, 24), got {hour}.")
        for start, end, bucket in _HOUR_RANGES:
            if start <= hour < end:
                return bucket
        return cls.LATE_NIGHT

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @property
    def order(self) -> int:
        return list(TimeOfDay).index(self)


_HOUR_RANGES = (
    (5, 8, TimeOfDay.EARLY_MORNING),
    (8, 11, TimeOfDay.MORNING),
    (11, 14, TimeOfDay.MIDDAY),
    (14, 17, TimeOfDay.AFTERNOON),
    (17, 20, TimeOfDay.EVENING),
    (20, 23, TimeOfDay.NIGHT),
)


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: Union[date, datetime]) -> "DayOfWeek":
        return list(cls)[value.weekday()]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class StudyDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    REVIEW = "review"


class EmotionalState(str, Enum):
    FRUSTRATED = "frustrated"
    CONFIDENT = "confident"
    BORED = "bored"
    EXCITED = "excited"
    CONFUSED = "confused"
    OVERWHELMED = "overwhelmed"
    NEUTRAL = "neutral"

    @property
    def valence(self) -> float:
        """Emotion contribution in [0, 1]: positive 1.0, neutral 0.5, negative 0.0."""
        if self in POSITIVE_EMOTIONS:
            return 1.0
        if self is EmotionalState.NEUTRAL:
            return 0.5
        return 0.0


POSITIVE_EMOTIONS = frozenset({EmotionalState.CONFIDENT, EmotionalState.EXCITED})
NEGATIVE_EMOTIONS = frozenset(
    {
        EmotionalState.FRUSTRATED,
        EmotionalState.BORED,
        EmotionalState.CONFUSED,
        EmotionalState.OVERWHELMED,
    }
)


def coerce_enum(enum_cls: Type[E], value) -> E:
    """
    Accept an enum member, its value, or its name in snake or camel case.

    ``"lateNight"``, ``"late_night"`` and ``"LATE_NIGHT"`` all map to
    ``TimeOfDay.LATE_NIGHT``.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().replace("_", "").replace("-", "").replace(" ", "").lower()
        for member in enum_cls:
            if member.value.replace("_", "") == key or member.name.replace("_", "").lower() == key:
                return member
    raise ValueError(f"Unknown {enum_cls.__name__} value: {value!r}")


@dataclass(frozen=True)
class StudySessionMetrics:
    """One completed study session; build it through :meth:`create`."""

    timestamp: datetime
    session_length: timedelta
    total_questions: int
    correct_answers: int
    average_response_time: float  # seconds per question
    dominant_emotion: EmotionalState
    time_of_day: TimeOfDay
    day_of_week: DayOfWeek
    difficulty: StudyDifficulty
    subject: str
    focus_score: float
    retention_score: float
    completed_session: bool

    @property
    def accuracy(self) -> float:
        return self.correct_answers / max(self.total_questions, 1)

    @classmethod
    def create(
        cls,
        *,
        timestamp: datetime,
        session_length: Union[timedelta, float, int],
        total_questions: int,
        correct_answers: int,
        average_response_time: float,
        subject: str,
        focus_score: float,
        retention_score: float,
        completed_session: bool = True,
        dominant_emotion: Union[EmotionalState, str] = EmotionalState.NEUTRAL,
        difficulty: Union[StudyDifficulty, str] = StudyDifficulty.MEDIUM,
        time_of_day: Optional[Union[TimeOfDay, str]] = None,
        day_of_week: Optional[Union[DayOfWeek, str]] = None,
    ) -> "StudySessionMetrics":
        """
        Validate raw session fields and build an immutable metrics record.

        ``session_length`` may be a ``timedelta`` or a number of minutes.
        When ``time_of_day`` or ``day_of_week`` are omitted they are derived
        from ``timestamp``.

        Raises:
            InvalidMetricsError: on any malformed field.
        """
        if not isinstance(timestamp, datetime):
            raise InvalidMetricsError(f"timestamp must be a datetime, got {type(timestamp).__name__}")
        if timestamp != timestamp:
            # pandas NaT passes the isinstance check but compares unequal to itself.
            raise InvalidMetricsError("timestamp is missing (NaT)")
        if not isinstance(session_length, timedelta):
            try:
                session_length = timedelta(minutes=float(session_length))
            except (TypeError, ValueError) as exc:
                raise InvalidMetricsError(f"Invalid session_length: {session_length!r}") from exc
        try:
            emotion = coerce_enum(EmotionalState, dominant_emotion)
            level = coerce_enum(StudyDifficulty, difficulty)
            slot = TimeOfDay.from_hour(timestamp.hour) if time_of_day is None else coerce_enum(TimeOfDay, time_of_day)
            weekday = DayOfWeek.from_date(timestamp) if day_of_week is None else coerce_enum(DayOfWeek, day_of_week)
        except ValueError as exc:
            raise InvalidMetricsError(str(exc)) from exc

        metrics = cls(
            timestamp=timestamp,
            session_length=session_length,
            total_questions=total_questions,
            correct_answers=correct_answers,
            average_response_time=average_response_time,
            dominant_emotion=emotion,
            time_of_day=slot,
            day_of_week=weekday,
            difficulty=level,
            subject=subject.strip() if isinstance(subject, str) else subject,
            focus_score=focus_score,
            retention_score=retention_score,
            completed_session=bool(completed_session),
        )
        validate_metrics(metrics)
        return metrics


def validate_metrics(metrics: StudySessionMetrics) -> None:
    """Raise InvalidMetricsError unless every field of ``metrics`` is well formed."""
    if not isinstance(metrics, StudySessionMetrics):
        raise InvalidMetricsError(f"Expected StudySessionMetrics, got {type(metrics).__name__}")
    if not isinstance(metrics.timestamp, datetime) or metrics.timestamp != metrics.timestamp:
        raise InvalidMetricsError("timestamp must be a valid datetime")
    for name in ("total_questions", "correct_answers"):
        value = getattr(metrics, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidMetricsError(f"{name} must be an integer, got {value!r}")
        if value < 0:
            raise InvalidMetricsError(f"{name} must be non-negative, got {value}")
    if metrics.correct_answers > metrics.total_questions:
        raise InvalidMetricsError(
            f"correct_answers ({metrics.correct_answers}) exceeds total_questions ({metrics.total_questions})"
        )
    if not isinstance(metrics.session_length, timedelta) or metrics.session_length < timedelta(0):
        raise InvalidMetricsError(f"session_length must be a non-negative duration, got {metrics.session_length!r}")
    if not _is_finite_number(metrics.average_response_time) or metrics.average_response_time < 0:
        raise InvalidMetricsError(
            f"average_response_time must be a non-negative number, got {metrics.average_response_time!r}"
        )
    for name in ("focus_score", "retention_score"):
        value = getattr(metrics, name)
        if not _is_finite_number(value) or not 0.0 <= value <= 1.0:
            raise InvalidMetricsError(f"{name} must be within [0, 1], got {value!r}")
    if not isinstance(metrics.subject, str) or not metrics.subject.strip():
        raise InvalidMetricsError("subject must be a non-empty string")
    for name, enum_cls in (
        ("dominant_emotion", EmotionalState),
        ("time_of_day", TimeOfDay),
        ("day_of_week", DayOfWeek),
        ("difficulty", StudyDifficulty),
    ):
        if not isinstance(getattr(metrics, name), enum_cls):
            raise InvalidMetricsError(f"{name} must be a {enum_cls.__name__}")


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class StudySchedulePrediction:
    """Immutable recommendation for the next study session."""

    recommended_time: datetime
    subject: str
    score: float
    time_of_day: TimeOfDay
    day_of_week: DayOfWeek
    score_source: str
    confidence_score: float
    estimated_duration: timedelta
    recommended_difficulty: StudyDifficulty
    reasoning: str
    optimization_factors: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "optimization_factors", MappingProxyType(dict(self.optimization_factors)))


def combine(target_date: Union[date, datetime], at: time) -> datetime:
    """Place the representative time ``at`` on the calendar day of ``target_date``."""
    day = target_date.date() if isinstance(target_date, datetime) else target_date
    tzinfo = target_date.tzinfo if isinstance(target_date, datetime) else None
    return datetime.combine(day, at, tzinfo=tzinfo)
