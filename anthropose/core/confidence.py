"""
Confidence scoring for photo-based measurements.

Model
─────
A direct measurement (read straight off two or more landmarks) gets the
mean visibility of the landmarks it uses:

    C_direct = mean( v_i )   for i in required slots

A slot the backend did not report (visibility 0) contributes a neutral
0.5 instead of 0, so one missing minor keypoint does not collapse the score.

A derived measurement (ratio of a direct one, or an anthropometric model
output) multiplies its source score by a fixed decay factor  k ≤ 1:

    C_derived = k · C_source

so a derived value can never be more confident than what it came from.

Display
───────
    percentage = round(100 · C)
    label      = high    if percentage ≥ 80
                 medium  if percentage ≥ 60
                 low     otherwise

Thresholds, the neutral default and every decay factor are configurable in
AppConfig.confidence.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from anthropose.config import config
from anthropose.models.schemas import ConfidenceLabel, MeasurementResult, PoseLandmarks

ccfg = config.confidence


def landmark_score(landmarks: PoseLandmarks, required_slots: Iterable[int]) -> float:
    """Mean visibility of the required slots, unreported slots counting as neutral."""
    values = [
        landmarks[s].visibility if landmarks[s].visibility > 0 else ccfg.missing_visibility
        for s in required_slots
    ]
    if not values:
        return 0.0
    return float(np.clip(np.mean(values), 0.0, 1.0))


def decay(score: float, factor: float) -> float:
    """Apply a derived-measurement penalty."""
    return float(np.clip(score * min(factor, 1.0), 0.0, 1.0))


def label_for(percentage: int) -> ConfidenceLabel:
    if percentage >= ccfg.high_threshold:
        return ConfidenceLabel.high
    if percentage >= ccfg.medium_threshold:
        return ConfidenceLabel.medium
    return ConfidenceLabel.low


def to_display(score: float) -> tuple[int, ConfidenceLabel]:
    """Convert a 0–1 score to (percentage, label); percentage rounds half up."""
    percentage = int(np.floor(float(np.clip(score, 0.0, 1.0)) * 100 + 0.5))
    return percentage, label_for(percentage)


def make_result(
    value: float,
    score: float,
    source: str,
    method: str | None = None,
    unit: str = "cm",
) -> MeasurementResult:
    """Package a value with its display confidence."""
    score = round(float(np.clip(score, 0.0, 1.0)), 4)
    percentage, label = to_display(score)
    return MeasurementResult(
        value=round(float(value), 1),
        unit=unit,
        confidence_score=score,
        confidence_percentage=percentage,
        confidence_label=label,
        source=source,
        method=method or source,
    )
