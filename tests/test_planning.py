# ABOUTME: Tests the difficulty, duration and confidence heuristics around a chosen slot.
# ABOUTME: Uses synthetic sessions to exercise defaults, history preferences and clamping.

from datetime import datetime, timedelta

import pytest

from src.scheduling.planning import (
    best_time_by_difficulty,
    confidence_score,
    distribute_subjects,
    estimate_duration,
    predict_difficulty,
)
from src.scheduling.schemas import StudyDifficulty, StudySessionMetrics, TimeOfDay


def _mk_session(hour: int, difficulty: str, correct: int = 9, minutes: float = 30, completed: bool = True):
    return StudySessionMetrics.create(
        timestamp=datetime(2024, 1, 1, hour, 0),
        session_length=timedelta(minutes=minutes),
        total_questions=10,
        correct_answers=correct,
        average_response_time=6.0,
        subject="Physics",
        focus_score=0.7,
        retention_score=0.7,
        completed_session=completed,
        difficulty=difficulty,
    )


@pytest.mark.parametrize(
    "slot,expected",
    [
        (TimeOfDay.MORNING, StudyDifficulty.HARD),
        (TimeOfDay.AFTERNOON, StudyDifficulty.MEDIUM),
        (TimeOfDay.EVENING, StudyDifficulty.REVIEW),
        (TimeOfDay.NIGHT, StudyDifficulty.EASY),
        (TimeOfDay.LATE_NIGHT, StudyDifficulty.REVIEW),
    ],
)
def test_default_difficulty_by_time(slot, expected):
    assert predict_difficulty(slot) is expected


def test_history_preference_overrides_default():
    sessions = [
        _mk_session(19, "hard", correct=10),
        _mk_session(9, "hard", correct=3),
    ]
    assert best_time_by_difficulty(sessions)[StudyDifficulty.HARD] is TimeOfDay.EVENING
    assert predict_difficulty(TimeOfDay.EVENING, sessions) is StudyDifficulty.HARD
    # Mornings no longer match any preference, so the default applies.
    assert predict_difficulty(TimeOfDay.MORNING, sessions) is StudyDifficulty.HARD


def test_duration_defaults_and_adjustments():
    assert estimate_duration(TimeOfDay.AFTERNOON, StudyDifficulty.MEDIUM) == timedelta(minutes=25)
    assert estimate_duration(TimeOfDay.MORNING, StudyDifficulty.HARD) == timedelta(minutes=22)
    assert estimate_duration(TimeOfDay.LATE_NIGHT, StudyDifficulty.REVIEW) == timedelta(minutes=21)


def test_duration_uses_completed_sessions_and_clamps():
    long_sessions = [_mk_session(15, "medium", minutes=300)]
    assert estimate_duration(TimeOfDay.AFTERNOON, StudyDifficulty.MEDIUM, long_sessions) == timedelta(minutes=120)

    abandoned = [_mk_session(15, "medium", minutes=5, completed=False)]
    assert estimate_duration(TimeOfDay.AFTERNOON, StudyDifficulty.MEDIUM, abandoned) == timedelta(minutes=25)

    short = [_mk_session(15, "medium", minutes=5)]
    assert estimate_duration(TimeOfDay.AFTERNOON, StudyDifficulty.MEDIUM, short) == timedelta(minutes=15)


def test_confidence_grows_with_history():
    cold = confidence_score(0, {}, from_default=True)
    some = confidence_score(5, {TimeOfDay.MORNING: 0.9})
    lots = confidence_score(20, {TimeOfDay.MORNING: 0.8, TimeOfDay.EVENING: 0.7})

    assert cold == pytest.approx(0.3)
    assert some == pytest.approx(0.6)
    assert lots == pytest.approx(1.0)
    assert cold < some < lots


def test_consistency_bonus_needs_genuinely_similar_slots():
    # Shrunk toward neutral these would read 0.725 and 0.3, a variance under 0.1.
    uneven = confidence_score(5, {TimeOfDay.MORNING: 0.95, TimeOfDay.EVENING: 0.1})
    even = confidence_score(5, {TimeOfDay.MORNING: 0.8, TimeOfDay.EVENING: 0.7})
    assert uneven == pytest.approx(0.6)
    assert even == pytest.approx(0.8)


def test_fewer_subjects_than_days_repeat_by_priority():
    plan = distribute_subjects(["Art", "Math", "Biology"], {"Math": 3.0, "Biology": 2.0, "Art": 1.0})
    assert plan == [["Math"], ["Biology"], ["Art"], ["Math"], ["Biology"], ["Art"], ["Math"]]


def test_more_subjects_than_days_fill_every_day():
    subjects = [f"S{i:02d}" for i in range(10)]
    plan = distribute_subjects(subjects, {})
    assert len(plan) == 7
    assert all(plan)
    assert sorted(s for day in plan for s in day) == subjects
    assert plan[0] == ["S00", "S07"]
