# ABOUTME: Tests the session-metrics factory and the time bucket enumerations.
# ABOUTME: Ensures malformed sessions are rejected before they reach the engine.

from datetime import date, datetime, timedelta

import pytest

from src.scheduling.errors import InvalidMetricsError
from src.scheduling.schemas import (
    DayOfWeek,
    EmotionalState,
    StudyDifficulty,
    StudySchedulePrediction,
    StudySessionMetrics,
    TimeOfDay,
    coerce_enum,
)


def _create(**overrides):
    fields = dict(
        timestamp=datetime(2024, 1, 2, 15, 10),
        session_length=timedelta(minutes=30),
        total_questions=10,
        correct_answers=8,
        average_response_time=4.5,
        subject="Biology",
        focus_score=0.8,
        retention_score=0.7,
        completed_session=True,
        dominant_emotion="confident",
    )
    fields.update(overrides)
    return StudySessionMetrics.create(**fields)


@pytest.mark.parametrize(
    "hour,expected",
    [
        (0, TimeOfDay.LATE_NIGHT),
        (4, TimeOfDay.LATE_NIGHT),
        (5, TimeOfDay.EARLY_MORNING),
        (8, TimeOfDay.MORNING),
        (10, TimeOfDay.MORNING),
        (11, TimeOfDay.MIDDAY),
        (14, TimeOfDay.AFTERNOON),
        (17, TimeOfDay.EVENING),
        (20, TimeOfDay.NIGHT),
        (23, TimeOfDay.LATE_NIGHT),
    ],
)
def test_time_of_day_from_hour_uses_fixed_ranges(hour, expected):
    assert TimeOfDay.from_hour(hour) is expected


def test_time_of_day_rejects_out_of_range_hour():
    with pytest.raises(ValueError):
        TimeOfDay.from_hour(24)


def test_day_of_week_from_date():
    assert DayOfWeek.from_date(date(2024, 1, 1)) is DayOfWeek.MONDAY
    assert DayOfWeek.from_date(datetime(2024, 1, 7, 12)) is DayOfWeek.SUNDAY


def test_coerce_enum_accepts_camel_and_snake_case():
    assert coerce_enum(TimeOfDay, "lateNight") is TimeOfDay.LATE_NIGHT
    assert coerce_enum(TimeOfDay, "late_night") is TimeOfDay.LATE_NIGHT
    assert coerce_enum(TimeOfDay, "EARLY_MORNING") is TimeOfDay.EARLY_MORNING
    with pytest.raises(ValueError):
        coerce_enum(TimeOfDay, "brunch")


def test_create_derives_buckets_from_timestamp():
    metrics = _create()
    assert metrics.time_of_day is TimeOfDay.AFTERNOON
    assert metrics.day_of_week is DayOfWeek.TUESDAY
    assert metrics.dominant_emotion is EmotionalState.CONFIDENT
    assert metrics.difficulty is StudyDifficulty.MEDIUM
    assert metrics.accuracy == pytest.approx(0.8)


def test_create_keeps_explicit_buckets_and_numeric_minutes():
    metrics = _create(time_of_day="morning", day_of_week="friday", session_length=45)
    assert metrics.time_of_day is TimeOfDay.MORNING
    assert metrics.day_of_week is DayOfWeek.FRIDAY
    assert metrics.session_length == timedelta(minutes=45)


def test_accuracy_with_no_questions_is_zero():
    assert _create(total_questions=0, correct_answers=0).accuracy == 0.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"correct_answers": 11},
        {"correct_answers": -1},
        {"total_questions": -2, "correct_answers": -3},
        {"session_length": timedelta(minutes=-5)},
        {"average_response_time": -0.1},
        {"average_response_time": float("nan")},
        {"focus_score": 1.2},
        {"retention_score": -0.01},
        {"subject": "   "},
        {"dominant_emotion": "ecstatic"},
        {"timestamp": "2024-01-02"},
    ],
)
def test_create_rejects_malformed_sessions(overrides):
    with pytest.raises(InvalidMetricsError):
        _create(**overrides)


def test_invalid_metrics_error_is_a_value_error():
    with pytest.raises(ValueError):
        _create(correct_answers=99)


def test_prediction_factors_are_read_only():
    prediction = StudySchedulePrediction(
        recommended_time=datetime(2024, 1, 2, 15, 30),
        subject="Biology",
        score=0.8,
        time_of_day=TimeOfDay.AFTERNOON,
        day_of_week=DayOfWeek.TUESDAY,
        score_source="cell",
        confidence_score=0.6,
        estimated_duration=timedelta(minutes=25),
        recommended_difficulty=StudyDifficulty.MEDIUM,
        reasoning="",
        optimization_factors={"slot_score": 0.8},
    )
    with pytest.raises(TypeError):
        prediction.optimization_factors["slot_score"] = 1.0
