# ABOUTME: Derives the session plan around a chosen slot: difficulty, duration and confidence.
# ABOUTME: Heuristics fall back to research-based defaults when history is thin.

from __future__ import annotations

from datetime import timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .config import ScoringConfig
from .features import session_composite_score
from .schemas import StudyDifficulty, StudySessionMetrics, TimeOfDay

DEFAULT_SESSION_MINUTES = 25  # Pomodoro
MIN_SESSION_MINUTES = 15
MAX_SESSION_MINUTES = 120

# Variance of raw per-slot means below which performance counts as consistent.
CONSISTENCY_VARIANCE = 0.1

DEFAULT_DIFFICULTY_BY_TIME: Dict[TimeOfDay, StudyDifficulty] = {
    TimeOfDay.EARLY_MORNING: StudyDifficulty.HARD,
    TimeOfDay.MORNING: StudyDifficulty.HARD,
    TimeOfDay.MIDDAY: StudyDifficulty.MEDIUM,
    TimeOfDay.AFTERNOON: StudyDifficulty.MEDIUM,
    TimeOfDay.EVENING: StudyDifficulty.REVIEW,
    TimeOfDay.NIGHT: StudyDifficulty.EASY,
    TimeOfDay.LATE_NIGHT: StudyDifficulty.REVIEW,
}

DIFFICULTY_DURATION_FACTOR = {
    StudyDifficulty.HARD: 0.8,
    StudyDifficulty.MEDIUM: 1.0,
    StudyDifficulty.EASY: 1.2,
    StudyDifficulty.REVIEW: 1.2,
}

TIME_DURATION_FACTOR = {
    TimeOfDay.EARLY_MORNING: 1.1,
    TimeOfDay.MORNING: 1.1,
    TimeOfDay.LATE_NIGHT: 0.7,
}


def best_time_by_difficulty(
    sessions: Iterable[StudySessionMetrics],
    config: Optional[ScoringConfig] = None,
) -> Dict[StudyDifficulty, TimeOfDay]:
    """For each difficulty seen in history, the time of day with the highest mean composite score."""
    config = config or ScoringConfig()
    totals: Dict[StudyDifficulty, Dict[TimeOfDay, list]] = {}
    for m in sessions:
        totals.setdefault(m.difficulty, {}).setdefault(m.time_of_day, []).append(session_composite_score(m, config))

    best: Dict[StudyDifficulty, TimeOfDay] = {}
    for difficulty, by_time in totals.items():
        # Earlier buckets win ties.
        best[difficulty] = max(TimeOfDay, key=lambda t: (float(np.mean(by_time[t])) if t in by_time else -1.0, -t.order))
    return best


def predict_difficulty(
    time_of_day: TimeOfDay,
    sessions: Sequence[StudySessionMetrics] = (),
    config: Optional[ScoringConfig] = None,
) -> StudyDifficulty:
    preferences = best_time_by_difficulty(sessions, config)
    for difficulty in StudyDifficulty:
        if preferences.get(difficulty) == time_of_day:
            return difficulty
    return DEFAULT_DIFFICULTY_BY_TIME[time_of_day]


def estimate_duration(
    time_of_day: TimeOfDay,
    difficulty: StudyDifficulty,
    sessions: Sequence[StudySessionMetrics] = (),
) -> timedelta:
    """
    Suggested session length.

    Starts from the mean length of completed sessions (25 minutes without
    any), shortens hard material and late-night slots, lengthens easy/review
    material and morning slots, then clamps to 15-120 minutes.
    """
    completed = [m.session_length.total_seconds() / 60.0 for m in sessions if m.completed_session]
    minutes = float(np.mean(completed)) if completed else float(DEFAULT_SESSION_MINUTES)
    minutes *= DIFFICULTY_DURATION_FACTOR[difficulty]
    minutes *= TIME_DURATION_FACTOR.get(time_of_day, 1.0)
    minutes = min(max(round(minutes), MIN_SESSION_MINUTES), MAX_SESSION_MINUTES)
    return timedelta(minutes=minutes)


def confidence_score(
    subject_sessions: int,
    slot_means: Mapping[TimeOfDay, float],
    from_default: bool = False,
) -> float:
    """
    Confidence in a recommendation, in [0, 1].

    ``slot_means`` must be the unshrunk per-slot means, not the smoothed
    scores used for ranking.
    """
    confidence = 0.5
    if subject_sessions >= 20:
        confidence += 0.3
    elif subject_sessions >= 10:
        confidence += 0.2
    elif subject_sessions >= 5:
        confidence += 0.1

    if len(slot_means) >= 2 and float(np.var(list(slot_means.values()))) < CONSISTENCY_VARIANCE:
        confidence += 0.2
    if from_default:
        confidence -= 0.2
    return float(min(max(confidence, 0.0), 1.0))


def distribute_subjects(
    subjects: Sequence[str],
    subject_priorities: Mapping[str, float],
    days: int = 7,
    default_priority: float = 1.0,
) -> List[List[str]]:
    """
    Spread candidate subjects over ``days`` days, highest priority first.

    With fewer subjects than days the ordered list repeats, so higher
    priorities get more days; with more subjects each day receives every
    ``days``-th subject. No day is left empty.
    """
    ordered = sorted(subjects, key=lambda s: (-subject_priorities.get(s, default_priority), s))
    if not ordered:
        return [[] for _ in range(days)]
    if len(ordered) <= days:
        return [[ordered[day % len(ordered)]] for day in range(days)]
    return [ordered[day::days] for day in range(days)]
