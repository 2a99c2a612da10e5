# ABOUTME: Declares the error types raised at the scheduling engine boundary.
# ABOUTME: Callers fix their input on these errors rather than retrying verbatim.


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class InvalidMetricsError(SchedulingError, ValueError):
    """Raised when a study session record is malformed and cannot be recorded."""


class NoCandidatesError(SchedulingError, ValueError):
    """Raised when a prediction is requested without any candidate subjects."""
