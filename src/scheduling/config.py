# ABOUTME: Holds the scoring hyperparameters used by the aggregator and predictor.
# ABOUTME: Loads overrides from YAML configs and validates them up front.

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import time
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

import yaml

from .schemas import TimeOfDay, coerce_enum

COMPONENTS = ("accuracy", "focus", "retention", "response_time", "completion", "emotion")

DEFAULT_WEIGHTS: Dict[str, float] = {
    "accuracy": 0.35,
    "focus": 0.20,
    "retention": 0.20,
    "response_time": 0.15,
    "completion": 0.05,
    "emotion": 0.05,
}

DEFAULT_REPRESENTATIVE_TIMES: Dict[TimeOfDay, time] = {
    TimeOfDay.EARLY_MORNING: time(6, 30),
    TimeOfDay.MORNING: time(9, 30),
    TimeOfDay.MIDDAY: time(12, 30),
    TimeOfDay.AFTERNOON: time(15, 30),
    TimeOfDay.EVENING: time(18, 30),
    TimeOfDay.NIGHT: time(21, 30),
    TimeOfDay.LATE_NIGHT: time(23, 30),
}


@dataclass(frozen=True)
class ScoringConfig:
    """
    Hyperparameters for composite scoring and slot selection.

    - weights: per-component weights of the composite score (sum to 1)
    - half_life_days: recency decay half-life (>0)
    - min_recency_weight: floor on a session's decayed weight, in [0, 1]
    - prior_weight: pseudo-sessions at the neutral score mixed into every group (>0)
    - response_time_ceiling_s: response times at or above this score 0 (>0)
    - neutral_score: score for slots with no history at all, in [0, 1]
    - default_priority: priority for subjects missing from the priority map (>0)
    - representative_times: clock time used for each time-of-day bucket
    """

    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    half_life_days: float = 14.0
    min_recency_weight: float = 0.05
    prior_weight: float = 1.0
    response_time_ceiling_s: float = 60.0
    neutral_score: float = 0.5
    default_priority: float = 1.0
    representative_times: Mapping[TimeOfDay, time] = field(
        default_factory=lambda: dict(DEFAULT_REPRESENTATIVE_TIMES)
    )

    def __post_init__(self) -> None:
        weights = {str(k): float(v) for k, v in self.weights.items()}
        unknown = set(weights) - set(COMPONENTS)
        missing = set(COMPONENTS) - set(weights)
        if unknown or missing:
            raise ValueError(
                f"Composite weights must name exactly {', '.join(COMPONENTS)}; "
                f"unknown={sorted(unknown)} missing={sorted(missing)}"
            )
        if any(w < 0 for w in weights.values()):
            raise ValueError("Composite weights must be non-negative.")
        if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-6):
            raise ValueError(f"Composite weights must sum to 1.0, got {sum(weights.values()):.4f}")
        if self.half_life_days <= 0:
            raise ValueError("half_life_days must be positive.")
        if not 0.0 <= self.min_recency_weight <= 1.0:
            raise ValueError("min_recency_weight must be within [0, 1].")
        if self.prior_weight <= 0:
            raise ValueError("prior_weight must be positive.")
        if self.response_time_ceiling_s <= 0:
            raise ValueError("response_time_ceiling_s must be positive.")
        if not 0.0 <= self.neutral_score <= 1.0:
            raise ValueError("neutral_score must be within [0, 1].")
        if self.default_priority <= 0:
            raise ValueError("default_priority must be positive.")

        times = dict(DEFAULT_REPRESENTATIVE_TIMES)
        for key, value in self.representative_times.items():
            slot = coerce_enum(TimeOfDay, key)
            times[slot] = _parse_time(value)

        object.__setattr__(self, "weights", MappingProxyType(weights))
        object.__setattr__(self, "representative_times", MappingProxyType(times))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ScoringConfig":
        allowed = {f.name for f in fields(cls)}
        unknown = set(raw) - allowed
        if unknown:
            raise ValueError(f"Unknown scoring config keys: {sorted(unknown)}")
        kwargs = dict(raw)
        if "weights" in kwargs:
            # Partial overrides keep the remaining default weights.
            kwargs["weights"] = {**DEFAULT_WEIGHTS, **kwargs["weights"]}
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path) -> "ScoringConfig":
        """Read a YAML config; scoring keys may sit at the top level or under ``scoring:``."""
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}
        if not isinstance(cfg, dict):
            raise ValueError(f"Config at {path} must be a mapping.")
        return cls.from_dict(cfg.get("scoring", cfg))


def _parse_time(value) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads unquoted 06:30 as a sexagesimal integer (390).
        return time(value // 60, value % 60)
    if isinstance(value, str):
        hour, _, minute = value.strip().partition(":")
        return time(int(hour), int(minute or 0))
    raise ValueError(f"Invalid representative time: {value!r}")
