# ABOUTME: Exposes the predictive scheduling engine: record sessions, predict the next slot.
# ABOUTME: Wires the history store, aggregator, predictor and result builder together.

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from .config import ScoringConfig
from .features import SubjectScores, aggregate_all
from .history import SessionHistoryStore
from .planning import confidence_score, distribute_subjects, estimate_duration, predict_difficulty
from .predictor import SOURCE_DEFAULT, SchedulePredictor, SlotScore, normalize_priorities, normalize_subjects
from .result_builder import build_prediction
from .schemas import StudySchedulePrediction, StudySessionMetrics, combine


class SessionSink(Protocol):
    def submit(self, metrics: StudySessionMetrics) -> None:
        ...


class PredictiveSchedulingEngine:
    """
    Learns when a student studies best and recommends the next session.

    One engine owns one history; construct it where it is needed and pass
    it to collaborators rather than sharing a global instance.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        sink: Optional[SessionSink] = None,
        history: Optional[SessionHistoryStore] = None,
    ):
        self.config = config or ScoringConfig()
        self.sink = sink
        self.history = history if history is not None else SessionHistoryStore()
        self.predictor = SchedulePredictor(self.config)

    @classmethod
    def from_sessions(cls, sessions: Iterable[StudySessionMetrics], **kwargs) -> "PredictiveSchedulingEngine":
        engine = cls(**kwargs)
        for metrics in sessions:
            engine.history.append(metrics)
        return engine

    def record_study_session(self, metrics: StudySessionMetrics) -> None:
        """
        Append one completed session to the history.

        Raises:
            InvalidMetricsError: if the record is malformed; nothing is stored.
        """
        self.history.append(metrics)
        if self.sink is not None:
            self.sink.submit(metrics)

    def history_for(self, subject: str) -> Tuple[StudySessionMetrics, ...]:
        return self.history.history_for(subject)

    def session_count(self, subject: Optional[str] = None) -> int:
        return len(self.history) if subject is None else self.history.session_count(subject)

    def rank_slots(
        self,
        target_date: Union[date, datetime],
        available_subjects: Iterable[str],
        subject_priorities: Optional[Mapping[str, float]] = None,
        as_of: Optional[datetime] = None,
    ) -> List[SlotScore]:
        """Full ranked grid of (subject, time of day) slots for ``target_date``."""
        ranked, _, _ = self._rank(target_date, available_subjects, subject_priorities, as_of)
        return ranked

    def predict_optimal_schedule(
        self,
        target_date: Union[date, datetime],
        available_subjects: Iterable[str],
        subject_priorities: Optional[Mapping[str, float]] = None,
        as_of: Optional[datetime] = None,
    ) -> StudySchedulePrediction:
        """
        Recommend the single best (subject, time of day) on ``target_date``.

        Past dates are allowed. ``as_of`` is the reference time for recency
        decay and defaults to the start of ``target_date``, which keeps the
        result a pure function of the history and the arguments.

        Raises:
            NoCandidatesError: if ``available_subjects`` is empty.
        """
        ranked, scores, sessions = self._rank(target_date, available_subjects, subject_priorities, as_of)
        return self._build(ranked[0], target_date, scores, sessions)

    def predict_per_subject(
        self,
        target_date: Union[date, datetime],
        available_subjects: Iterable[str],
        subject_priorities: Optional[Mapping[str, float]] = None,
        as_of: Optional[datetime] = None,
    ) -> List[StudySchedulePrediction]:
        """One prediction per candidate subject, best weighted score first."""
        ranked, scores, sessions = self._rank(target_date, available_subjects, subject_priorities, as_of)
        best_by_subject = {}
        for slot in ranked:
            best_by_subject.setdefault(slot.subject, slot)
        return [self._build(slot, target_date, scores, sessions) for slot in best_by_subject.values()]

    def generate_weekly_schedule(
        self,
        week_start: Union[date, datetime],
        subject_priorities: Mapping[str, float],
        available_subjects: Optional[Iterable[str]] = None,
        as_of: Optional[datetime] = None,
    ) -> List[StudySchedulePrediction]:
        """
        One prediction for each of the seven days starting at ``week_start``.

        Subjects are spread over the week by priority before each day picks its
        best slot, so several subjects share the week.

        Raises:
            NoCandidatesError: if no subjects are supplied.
            ValueError: if a priority is not a positive number.
        """
        subjects = normalize_subjects(available_subjects if available_subjects is not None else subject_priorities)
        priorities = normalize_priorities(subjects, subject_priorities, self.config.default_priority)
        plan = distribute_subjects(subjects, priorities, days=7)
        return [
            self.predict_optimal_schedule(week_start + timedelta(days=offset), day_subjects, priorities, as_of)
            for offset, day_subjects in enumerate(plan)
        ]

    def _rank(self, target_date, available_subjects, subject_priorities, as_of):
        subjects = normalize_subjects(available_subjects)
        sessions = self.history.snapshot()
        scores = aggregate_all(sessions, subjects, as_of or combine(target_date, time.min), self.config)
        ranked = self.predictor.rank(target_date, scores, subject_priorities)
        return ranked, scores, sessions

    def _build(
        self,
        slot: SlotScore,
        target_date: Union[date, datetime],
        scores: Mapping[str, SubjectScores],
        sessions: Sequence[StudySessionMetrics],
    ) -> StudySchedulePrediction:
        subject_sessions = [m for m in sessions if m.subject == slot.subject]
        difficulty = predict_difficulty(slot.time_of_day, subject_sessions, self.config)
        return build_prediction(
            slot,
            target_date,
            confidence=confidence_score(
                slot.subject_sessions,
                scores[slot.subject].slot_means,
                from_default=slot.source == SOURCE_DEFAULT,
            ),
            estimated_duration=estimate_duration(slot.time_of_day, difficulty, subject_sessions),
            difficulty=difficulty,
            config=self.config,
        )
