# ABOUTME: Ranks every (subject, time-of-day) slot on a target date and picks the best one.
# ABOUTME: Applies the cell -> time-of-day -> neutral fallback and caller priority weights.

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import ScoringConfig
from .errors import NoCandidatesError
from .features import SubjectScores
from .schemas import DayOfWeek, TimeOfDay

SOURCE_CELL = "cell"
SOURCE_TIME_OF_DAY = "time_of_day"
SOURCE_DEFAULT = "default"

# Weighted scores within this absolute distance of the group leader are tied.
TIE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class SlotScore:
    """Score of one candidate slot, with the evidence behind it."""

    subject: str
    time_of_day: TimeOfDay
    day_of_week: DayOfWeek
    base_score: float
    priority: float
    weighted_score: float
    source: str
    subject_sessions: int  # all sessions recorded for the subject
    slot_sessions: int  # sessions backing base_score
    day_score: Optional[float] = None  # subject score on this weekday across all times


def normalize_subjects(available_subjects: Iterable[str]) -> List[str]:
    """Deduplicate and sort candidate subjects; an empty result raises NoCandidatesError."""
    if available_subjects is None:
        raise NoCandidatesError("No candidate subjects supplied.")
    if isinstance(available_subjects, str):
        available_subjects = [available_subjects]
    subjects = set()
    for subject in available_subjects:
        if not isinstance(subject, str) or not subject.strip():
            raise ValueError(f"Subject names must be non-empty strings, got {subject!r}")
        subjects.add(subject.strip())
    if not subjects:
        raise NoCandidatesError("No candidate subjects supplied.")
    return sorted(subjects)


def normalize_priorities(
    subjects: Iterable[str],
    subject_priorities: Optional[Mapping[str, float]],
    default_priority: float = 1.0,
) -> Dict[str, float]:
    priorities = dict(subject_priorities or {})
    resolved: Dict[str, float] = {}
    for subject in subjects:
        weight = priorities.get(subject, default_priority)
        if isinstance(weight, bool) or not isinstance(weight, numbers.Real) or not weight > 0:
            raise ValueError(f"Priority for {subject!r} must be a positive number, got {weight!r}")
        resolved[subject] = float(weight)
    return resolved


def _tie_key(slot: SlotScore) -> Tuple[int, int, str]:
    return (-slot.subject_sessions, slot.time_of_day.order, slot.subject)


def order_slots(slots: Iterable[SlotScore]) -> List[SlotScore]:
    """
    Sort slots best first.

    Slots are first sorted by weighted score, then split into runs whose
    scores lie within ``TIE_TOLERANCE`` of the run's first slot; each run is
    ordered by the tie-break key.
    """
    by_score = sorted(slots, key=lambda s: -s.weighted_score)
    ordered: List[SlotScore] = []
    run: List[SlotScore] = []
    for slot in by_score:
        if run and not math.isclose(slot.weighted_score, run[0].weighted_score, rel_tol=0.0, abs_tol=TIE_TOLERANCE):
            ordered.extend(sorted(run, key=_tie_key))
            run = []
        run.append(slot)
    ordered.extend(sorted(run, key=_tie_key))
    return ordered


class SchedulePredictor:
    """
    Chooses the best study slot for a day across candidate subjects.

    Algorithm:
    1. Derive the weekday bucket from the target date
    2. Score each (subject, time of day) with the exact weekday cell, else the
       time-of-day score across all weekdays, else the neutral default
    3. Multiply by the subject's priority
    4. Take the maximum; ties prefer more subject history, then the earlier
       time of day, then the alphabetically first subject
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def score_slot(
        self,
        scores: SubjectScores,
        time_of_day: TimeOfDay,
        day_of_week: DayOfWeek,
        priority: float,
    ) -> SlotScore:
        cell = scores.cell(time_of_day, day_of_week)
        if cell is not None:
            base, source = cell, SOURCE_CELL
            backing = scores.cell_counts.get((time_of_day, day_of_week), 0)
        elif scores.slot(time_of_day) is not None:
            base, source = scores.slot(time_of_day), SOURCE_TIME_OF_DAY
            backing = scores.slot_counts.get(time_of_day, 0)
        else:
            base, source = self.config.neutral_score, SOURCE_DEFAULT
            backing = 0
        return SlotScore(
            subject=scores.subject,
            time_of_day=time_of_day,
            day_of_week=day_of_week,
            base_score=float(base),
            priority=priority,
            weighted_score=float(base) * priority,
            source=source,
            subject_sessions=scores.session_count,
            slot_sessions=backing,
            day_score=scores.day(day_of_week),
        )

    def rank(
        self,
        target_date: Union[date, datetime],
        subject_scores: Mapping[str, SubjectScores],
        subject_priorities: Optional[Mapping[str, float]] = None,
    ) -> List[SlotScore]:
        """Score the whole subject x time-of-day grid, best slot first."""
        subjects = normalize_subjects(subject_scores.keys())
        priorities = normalize_priorities(subjects, subject_priorities, self.config.default_priority)
        day_of_week = DayOfWeek.from_date(target_date)

        grid = [
            self.score_slot(subject_scores[subject], time_of_day, day_of_week, priorities[subject])
            for subject in subjects
            for time_of_day in TimeOfDay
        ]
        return order_slots(grid)

    def select(
        self,
        target_date: Union[date, datetime],
        subject_scores: Mapping[str, SubjectScores],
        subject_priorities: Optional[Mapping[str, float]] = None,
    ) -> SlotScore:
        return self.rank(target_date, subject_scores, subject_priorities)[0]
