# ABOUTME: Makes the predictive scheduling package importable as src.scheduling.
# ABOUTME: Re-exports the engine, record types and errors for convenience.

from .config import ScoringConfig
from .engine import PredictiveSchedulingEngine
from .errors import InvalidMetricsError, NoCandidatesError, SchedulingError
from .schemas import (
    DayOfWeek,
    EmotionalState,
    StudyDifficulty,
    StudySchedulePrediction,
    StudySessionMetrics,
    TimeOfDay,
)
from .session_log import SessionLogWriter, load_session_history

__all__ = [
    "DayOfWeek",
    "EmotionalState",
    "InvalidMetricsError",
    "NoCandidatesError",
    "PredictiveSchedulingEngine",
    "SchedulingError",
    "ScoringConfig",
    "SessionLogWriter",
    "StudyDifficulty",
    "StudySchedulePrediction",
    "StudySessionMetrics",
    "TimeOfDay",
    "load_session_history",
]
