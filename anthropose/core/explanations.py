"""
Human-readable method names and confidence explanations for results.
"""

from __future__ import annotations

from collections.abc import Mapping

from anthropose.models.schemas import MeasurementResult

METHOD_NAMES: dict[str, str] = {
    "front_view": "Direct Detection",
    "side_view": "Side View Analysis",
    "back_view": "Back View Detection",
    "arms_extended": "Extended Pose",
    "legs_apart": "Wide Stance",
    "front_view_estimated": "Front + Estimation",
    "front_and_side_combined": "Multi-View Combined",
    "dual_view": "Dual Camera",
    "estimated_depth": "Depth Estimation",
    "arm_width_estimation": "Arm Analysis",
    "hip_to_thigh_estimation": "Hip-to-Thigh Ratio",
    "thigh_ratio": "Thigh Proportion",
    "direct_estimation": "Direct Calculation",
}

# label -> source/method -> explanation; "default" is the per-label fallback
EXPLANATIONS: dict[str, dict[str, str]] = {
    "high": {
        "front_view": "Clear body landmarks detected from front camera with good visibility.",
        "back_view": "Back landmarks clearly visible and accurately positioned.",
        "side_view": "Side profile well-captured with reliable depth information.",
        "default": "Measurement method worked optimally with clear landmark detection.",
    },
    "medium": {
        "front_view_estimated": "Based on detected landmarks plus anatomical estimation for accuracy.",
        "front_and_side_combined": "Combines multiple camera angles but relies partly on estimation.",
        "default": "Good measurement quality with some estimation involved.",
    },
    "low": {
        "estimated_depth": "Limited depth information available from single camera angle.",
        "default": (
            "Measurement relies heavily on statistical body ratios rather than direct detection."
        ),
    },
}

FALLBACK_EXPLANATION = "Measurement confidence based on detection quality and method reliability."


def method_name(tag: str | None) -> str:
    if tag is None:
        return "Unknown"
    return METHOD_NAMES.get(tag, tag)


def explain(result: MeasurementResult) -> str:
    by_label = EXPLANATIONS.get(result.confidence_label.value, {})
    for key in (result.source, result.method):
        if key in by_label:
            return by_label[key]
    return by_label.get("default", FALLBACK_EXPLANATION)


def explain_all(measurements: Mapping[str, MeasurementResult]) -> dict[str, str]:
    return {name: explain(result) for name, result in measurements.items()}
