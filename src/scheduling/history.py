# ABOUTME: Keeps the append-only log of recorded study sessions for one engine.
# ABOUTME: Appends are serialized by a lock; readers always get a consistent snapshot.

from __future__ import annotations

import threading
from typing import Dict, List, Tuple

from .schemas import StudySessionMetrics, validate_metrics


class SessionHistoryStore:
    """
    Ordered, append-only retention of study session metrics.

    Entries are validated before they become visible, are never mutated and
    are never removed. Reads return tuples copied under the write lock, so a
    concurrent reader sees either the state before or after an append.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[StudySessionMetrics] = []
        self._subject_counts: Dict[str, int] = {}

    def append(self, metrics: StudySessionMetrics) -> None:
        validate_metrics(metrics)
        with self._lock:
            self._entries.append(metrics)
            self._subject_counts[metrics.subject] = self._subject_counts.get(metrics.subject, 0) + 1

    def snapshot(self) -> Tuple[StudySessionMetrics, ...]:
        with self._lock:
            return tuple(self._entries)

    def history_for(self, subject: str) -> Tuple[StudySessionMetrics, ...]:
        return tuple(m for m in self.snapshot() if m.subject == subject)

    def session_count(self, subject: str) -> int:
        with self._lock:
            return self._subject_counts.get(subject, 0)

    def subjects(self) -> List[str]:
        with self._lock:
            return sorted(self._subject_counts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
