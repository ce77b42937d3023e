"""
Circumference estimation from 2D photographs.

Torso (chest, waist, hips)
──────────────────────────
A horizontal torso cross-section is approximated by an ellipse whose axes
are the front-view width  W  and the front-to-back depth  D:

    D      = side-view depth                 (method "dual_view")
           = W · front_to_depth              (method "estimated_depth")
    D_adj  = D · (1 + (BMI − 22) · bmi_coeff)
    C      = P(W/2, D_adj/2)

where P is Ramanujan's second approximation of the ellipse perimeter.  For
semi-axes  a ≥ b:

    h = (a − b)² / (a + b)²
    P = π (a + b) (1 + 3h / (10 + √(4 − 3h)))

P is exact for a circle (h = 0 → 2πr) and within ~0.04 % for the aspect
ratios of a human torso.  BMI 22 is the reference "normal" build.

Limbs (biceps, thigh, calf)
───────────────────────────
Limb girth cannot be seen in a single 2D photo.  A joint-to-joint offset
(shoulder→elbow, hip→knee, knee→ankle) is scaled against a nearby reference
segment (shoulder width for arms, hip width for legs), converted to cm via
the view calibration when one exists, and multiplied by a part ratio.  These
are indirect proxies, so confidence is deliberately discounted.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from anthropose.config import config
from anthropose.core.confidence import decay, landmark_score, make_result
from anthropose.core.landmarks import (
    LEFT_ANKLE, LEFT_ELBOW, LEFT_HIP, LEFT_KNEE, LEFT_SHOULDER,
    RIGHT_ANKLE, RIGHT_ELBOW, RIGHT_HIP, RIGHT_KNEE, RIGHT_SHOULDER,
    all_detected,
    pixel_distance,
)
from anthropose.core.ratios import RATIO_TABLE, AnthropometricRatioTable
from anthropose.models.schemas import MeasurementResult, PoseLandmarks, UserProfile

ccfg = config.confidence
pcfg = config.proportions

# output name -> (front width field, side depth field, ratio-table part)
TORSO_PARTS: dict[str, tuple[str, str, str]] = {
    "chestCircumference": ("shoulderWidth", "chestDepth", "chest"),
    "waistCircumference": ("waistWidth", "waistDepth", "waist"),
    "hipCircumference": ("hipWidth", "hipDepth", "hips"),
}


@dataclass(frozen=True)
class CircumferenceEstimate:
    value: float
    confidence: float
    method: str


def ellipse_perimeter(a: float, b: float) -> float:
    """Ramanujan's approximation of the perimeter of an ellipse with semi-axes a, b."""
    a, b = max(a, b), min(a, b)
    if a + b <= 0:
        return 0.0
    h = (a - b) ** 2 / (a + b) ** 2
    return math.pi * (a + b) * (1 + 3 * h / (10 + math.sqrt(4 - 3 * h)))


def bmi_factor(profile: UserProfile, bmi_coeff: float) -> float:
    return 1 + (profile.bmi - config.calibration.reference_bmi) * bmi_coeff


def estimate_circumference(
    front_width_cm: float,
    side_depth_cm: float | None,
    body_part: str,
    profile: UserProfile,
    table: AnthropometricRatioTable = RATIO_TABLE,
) -> CircumferenceEstimate:
    """Ellipse-model circumference of a torso section."""
    ratios = table.lookup(profile.gender, body_part)

    if side_depth_cm is not None and side_depth_cm > 0:
        depth = side_depth_cm
        method, confidence = "dual_view", ccfg.dual_view
    else:
        depth = front_width_cm * ratios.front_to_depth
        method, confidence = "estimated_depth", ccfg.estimated_depth

    adjusted_depth = depth * bmi_factor(profile, ratios.bmi_coeff)
    value = ellipse_perimeter(front_width_cm / 2, adjusted_depth / 2)
    return CircumferenceEstimate(value=value, confidence=confidence, method=method)


def fuse_circumferences(
    front: Mapping[str, MeasurementResult],
    depths: Mapping[str, MeasurementResult],
    side_pixels_per_cm: float | None,
    profile: UserProfile,
) -> dict[str, MeasurementResult]:
    """
    Chest, waist and hip circumference from front widths and side depths.

    Side depths are in pixels; they are converted with the side view's own
    calibration.  Without it the depth is estimated from the front width.
    The reported confidence never exceeds that of the inputs it was built on.
    """
    out: dict[str, MeasurementResult] = {}
    for name, (width_key, depth_key, part) in TORSO_PARTS.items():
        width = front.get(width_key)
        if width is None:
            continue

        depth = depths.get(depth_key)
        depth_cm = None
        if depth is not None and side_pixels_per_cm:
            depth_cm = depth.value / side_pixels_per_cm

        est = estimate_circumference(width.value, depth_cm, part, profile)
        score = min(est.confidence, width.confidence_score)
        if est.method == "dual_view":
            score = min(score, depth.confidence_score)

        out[name] = make_result(est.value, score, "front_and_side_combined", est.method)
    return out


# ── Limbs ──────────────────────────────────────────────────────────────

def _max_horizontal_offset(
    landmarks: PoseLandmarks, pairs: tuple[tuple[int, int], ...], width: int,
) -> float | None:
    offsets = [
        abs(landmarks[a].x - landmarks[b].x) * width
        for a, b in pairs
        if all_detected(landmarks, a, b)
    ]
    return max(offsets) if offsets else None


def estimate_biceps(
    landmarks: PoseLandmarks,
    profile: UserProfile,
    width: int,
    height: int,
    pixels_per_cm: float | None = None,
) -> CircumferenceEstimate | None:
    """Biceps circumference from the upper-arm offset, scaled by shoulder width."""
    if not all_detected(landmarks, LEFT_SHOULDER, RIGHT_SHOULDER):
        return None
    arm_px = _max_horizontal_offset(
        landmarks, ((LEFT_SHOULDER, LEFT_ELBOW), (RIGHT_SHOULDER, RIGHT_ELBOW)), width,
    )
    shoulder_px = pixel_distance(landmarks[LEFT_SHOULDER], landmarks[RIGHT_SHOULDER], width, height)
    if not arm_px or shoulder_px <= 0:
        return None

    if pixels_per_cm:
        shoulder_cm = shoulder_px / pixels_per_cm
    else:
        shoulder_cm = profile.height_cm * pcfg.shoulder_width_prior
    arm_width_cm = arm_px / shoulder_px * shoulder_cm

    ratios = RATIO_TABLE.lookup(profile.gender, "biceps")
    value = arm_width_cm * ratios.arm_width_ratio * bmi_factor(profile, ratios.bmi_coeff)

    score = landmark_score(landmarks, (LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_ELBOW, RIGHT_ELBOW))
    return CircumferenceEstimate(
        value=value,
        confidence=decay(score, ccfg.decay_biceps),
        method="arm_width_estimation",
    )


def estimate_thigh(
    landmarks: PoseLandmarks,
    profile: UserProfile,
    width: int,
    height: int,
    pixels_per_cm: float | None = None,
) -> CircumferenceEstimate | None:
    """Thigh circumference from the hip-to-knee offset, scaled by hip width."""
    if not all_detected(landmarks, LEFT_HIP, RIGHT_HIP):
        return None
    thigh_px = _max_horizontal_offset(
        landmarks, ((LEFT_HIP, LEFT_KNEE), (RIGHT_HIP, RIGHT_KNEE)), width,
    )
    hip_px = pixel_distance(landmarks[LEFT_HIP], landmarks[RIGHT_HIP], width, height)
    if not thigh_px or hip_px <= 0:
        return None

    if pixels_per_cm:
        hip_cm = hip_px / pixels_per_cm
    else:
        hip_cm = profile.height_cm * pcfg.hip_width_prior
    thigh_width_cm = thigh_px / hip_px * hip_cm

    ratios = RATIO_TABLE.lookup(profile.gender, "thigh")
    value = thigh_width_cm * ratios.hip_ratio * bmi_factor(profile, ratios.bmi_coeff)

    score = landmark_score(landmarks, (LEFT_HIP, RIGHT_HIP, LEFT_KNEE, RIGHT_KNEE))
    return CircumferenceEstimate(
        value=value,
        confidence=decay(score, ccfg.decay_thigh),
        method="hip_to_thigh_estimation",
    )


def estimate_calf(
    landmarks: PoseLandmarks,
    profile: UserProfile,
    width: int,
    height: int,
    thigh: CircumferenceEstimate | None = None,
    pixels_per_cm: float | None = None,
) -> CircumferenceEstimate | None:
    """
    Calf circumference.

    Preferably a fixed fraction of the thigh estimate; otherwise a direct
    knee/ankle offset estimate with a low base confidence.
    """
    ratios = RATIO_TABLE.lookup(profile.gender, "calf")

    if thigh is not None and thigh.value > 0:
        value = thigh.value * ratios.thigh_ratio
        confidence = min(decay(thigh.confidence, ccfg.decay_calf_from_thigh), ccfg.calf_from_thigh_cap)
        method = "thigh_ratio"
    else:
        if not all_detected(landmarks, LEFT_KNEE, RIGHT_KNEE):
            return None
        offset_px = _max_horizontal_offset(
            landmarks, ((LEFT_KNEE, LEFT_ANKLE), (RIGHT_KNEE, RIGHT_ANKLE)), width,
        )
        knee_px = pixel_distance(landmarks[LEFT_KNEE], landmarks[RIGHT_KNEE], width, height)
        if not offset_px or knee_px <= 0:
            return None

        if pixels_per_cm:
            knee_cm = knee_px / pixels_per_cm
        else:
            knee_cm = profile.height_cm * pcfg.knee_span_prior
        calf_width_cm = offset_px * pcfg.calf_narrowing / knee_px * knee_cm
        value = calf_width_cm * pcfg.calf_direct_ratio

        score = landmark_score(landmarks, (LEFT_KNEE, RIGHT_KNEE, LEFT_ANKLE, RIGHT_ANKLE))
        confidence = min(ccfg.calf_direct_base, score)
        method = "direct_estimation"

    value *= bmi_factor(profile, ratios.bmi_coeff)
    return CircumferenceEstimate(value=value, confidence=confidence, method=method)
