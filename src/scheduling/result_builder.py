# ABOUTME: Packages the winning slot into an immutable StudySchedulePrediction.
# ABOUTME: Also renders human-readable reasoning and JSON-friendly views of a prediction.

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from .config import ScoringConfig
from .predictor import SOURCE_CELL, SOURCE_DEFAULT, SOURCE_TIME_OF_DAY, SlotScore
from .schemas import StudyDifficulty, StudySchedulePrediction, combine

GOOD_DAY_THRESHOLD = 0.6


def generate_reasoning(slot: SlotScore, difficulty: StudyDifficulty) -> str:
    """
    Explain a recommendation in plain language.

    This is the template-based explanation; it only restates evidence that
    the predictor already computed.
    """
    reasons: List[str] = []
    when = slot.time_of_day.label
    if slot.source == SOURCE_DEFAULT and slot.subject_sessions == 0:
        reasons.append(f"No {slot.subject} history yet, so {when} is a starting suggestion")
    elif slot.source == SOURCE_DEFAULT:
        reasons.append(
            f"No {slot.subject} sessions in the {when} yet and your recorded times score "
            f"at or below neutral, so this untried slot is the best bet"
        )
    elif slot.source == SOURCE_CELL:
        reasons.append(
            f"Based on {slot.slot_sessions} past {slot.subject} session(s) on "
            f"{slot.day_of_week.label} {when}s"
        )
    else:
        reasons.append(f"Based on {slot.slot_sessions} past {slot.subject} session(s) in the {when}")

    if slot.source != SOURCE_DEFAULT and slot.base_score > 0.7:
        reasons.append(f"You typically score {slot.base_score:.0%} during the {when}")

    if slot.day_score is not None and slot.day_score > GOOD_DAY_THRESHOLD:
        reasons.append(f"{slot.day_of_week.label}s are historically good study days for you")

    if difficulty == StudyDifficulty.HARD:
        reasons.append("This time is suited to challenging material")
    elif difficulty == StudyDifficulty.REVIEW:
        reasons.append("This time is suited to review and consolidation")
    else:
        reasons.append("This timing balances cognitive load with your usual alertness")
    return ". ".join(reasons) + "."


def build_prediction(
    slot: SlotScore,
    target_date: Union[date, datetime],
    *,
    confidence: float,
    estimated_duration: timedelta,
    difficulty: StudyDifficulty,
    config: Optional[ScoringConfig] = None,
) -> StudySchedulePrediction:
    config = config or ScoringConfig()
    return StudySchedulePrediction(
        recommended_time=combine(target_date, config.representative_times[slot.time_of_day]),
        subject=slot.subject,
        score=slot.weighted_score,
        time_of_day=slot.time_of_day,
        day_of_week=slot.day_of_week,
        score_source=slot.source,
        confidence_score=confidence,
        estimated_duration=estimated_duration,
        recommended_difficulty=difficulty,
        reasoning=generate_reasoning(slot, difficulty),
        optimization_factors={
            "slot_score": slot.base_score,
            "priority": slot.priority,
            "weighted_score": slot.weighted_score,
            "slot_sessions": float(slot.slot_sessions),
            "subject_sessions": float(slot.subject_sessions),
            "day_score": slot.day_score if slot.day_score is not None else config.neutral_score,
        },
    )


def prediction_to_dict(prediction: StudySchedulePrediction) -> Dict[str, Any]:
    return {
        "recommended_time": prediction.recommended_time.isoformat(),
        "subject": prediction.subject,
        "score": round(prediction.score, 6),
        "time_of_day": prediction.time_of_day.value,
        "day_of_week": prediction.day_of_week.value,
        "score_source": prediction.score_source,
        "confidence_score": round(prediction.confidence_score, 4),
        "estimated_minutes": int(prediction.estimated_duration.total_seconds() // 60),
        "recommended_difficulty": prediction.recommended_difficulty.value,
        "reasoning": prediction.reasoning,
        "optimization_factors": dict(prediction.optimization_factors),
    }


def format_prediction(prediction: StudySchedulePrediction) -> str:
    source_label = {
        SOURCE_CELL: "same weekday and time",
        SOURCE_TIME_OF_DAY: "same time, any weekday",
        SOURCE_DEFAULT: "no history (neutral default)",
    }.get(prediction.score_source, prediction.score_source)
    minutes = int(prediction.estimated_duration.total_seconds() // 60)
    lines = [
        f"Subject: {prediction.subject}",
        f"When: {prediction.recommended_time:%A %Y-%m-%d %H:%M} ({prediction.time_of_day.label})",
        f"Score: {prediction.score:.3f} from {source_label}",
        f"Confidence: {prediction.confidence_score:.0%}",
        f"Plan: {minutes} min, {prediction.recommended_difficulty.value}",
        "",
        prediction.reasoning,
    ]
    return "\n".join(lines)
