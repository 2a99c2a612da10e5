# ABOUTME: Unit tests for the append-only session history store.
# ABOUTME: Verifies ordering, duplicate retention, rejection and concurrent appends.

import threading
import unittest
from datetime import datetime, timedelta

from src.scheduling.errors import InvalidMetricsError
from src.scheduling.history import SessionHistoryStore
from src.scheduling.schemas import (
    DayOfWeek,
    EmotionalState,
    StudyDifficulty,
    StudySessionMetrics,
    TimeOfDay,
)


def _session(subject: str = "Math", hour: int = 9, correct: int = 7) -> StudySessionMetrics:
    return StudySessionMetrics.create(
        timestamp=datetime(2024, 1, 1, hour, 0),
        session_length=timedelta(minutes=30),
        total_questions=10,
        correct_answers=correct,
        average_response_time=5.0,
        subject=subject,
        focus_score=0.7,
        retention_score=0.6,
    )


class TestSessionHistoryStore(unittest.TestCase):
    def setUp(self):
        self.store = SessionHistoryStore()

    def test_append_then_read_shows_entry_once(self):
        first = _session("Math")
        second = _session("History")
        self.store.append(first)
        before = self.store.snapshot()

        self.store.append(second)
        after = self.store.snapshot()

        self.assertEqual(after.count(second), 1)
        self.assertEqual(after[: len(before)], before)
        self.assertIs(after[0], first)

    def test_identical_sessions_are_distinct_entries(self):
        metrics = _session()
        self.store.append(metrics)
        self.store.append(metrics)
        self.assertEqual(len(self.store), 2)
        self.assertEqual(self.store.session_count("Math"), 2)

    def test_history_for_filters_by_subject_in_insertion_order(self):
        entries = [_session("Math", 9, 3), _session("Art", 10), _session("Math", 11, 9)]
        for entry in entries:
            self.store.append(entry)

        math = self.store.history_for("Math")
        self.assertEqual([m.correct_answers for m in math], [3, 9])
        self.assertEqual(self.store.history_for("Chemistry"), ())
        self.assertEqual(self.store.subjects(), ["Art", "Math"])

    def test_invalid_metrics_are_rejected_and_not_stored(self):
        # Built without the factory so validation happens at the store boundary.
        bad = StudySessionMetrics(
            timestamp=datetime(2024, 1, 1, 9, 0),
            session_length=timedelta(minutes=30),
            total_questions=5,
            correct_answers=6,
            average_response_time=3.0,
            dominant_emotion=EmotionalState.NEUTRAL,
            time_of_day=TimeOfDay.MORNING,
            day_of_week=DayOfWeek.MONDAY,
            difficulty=StudyDifficulty.EASY,
            subject="Math",
            focus_score=0.5,
            retention_score=0.5,
            completed_session=True,
        )
        with self.assertRaises(InvalidMetricsError):
            self.store.append(bad)
        self.assertEqual(len(self.store), 0)

    def test_snapshot_is_immutable_copy(self):
        self.store.append(_session())
        snap = self.store.snapshot()
        self.store.append(_session())
        self.assertEqual(len(snap), 1)
        self.assertIsInstance(snap, tuple)

    def test_concurrent_appends_are_all_retained(self):
        per_thread = 50

        def writer(subject):
            for _ in range(per_thread):
                self.store.append(_session(subject))

        threads = [threading.Thread(target=writer, args=(f"S{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(self.store), 8 * per_thread)
        for i in range(8):
            self.assertEqual(len(self.store.history_for(f"S{i}")), per_thread)


if __name__ == "__main__":
    unittest.main()
