"""
Per-view measurement extractors.

Each extractor maps one CapturedView plus the user profile to named
MeasurementResults.  Direct measurements carry the raw landmark score;
everything derived from them carries a decayed score.

  View           │ Measurements
  ───────────────┼──────────────────────────────────────────────────────
  front          │ shoulderWidth, hipWidth, armLength, legLength (direct)
                 │ chestWidth, waistWidth, sleeveLength, pantsLength
  back           │ backLength, shoulderBladeWidth
  side           │ shoulderDepth, chestDepth, waistDepth, hipDepth (pixels,
                 │ consumed by circumference fusion only)
  arms_extended  │ biceps, armSpan
  legs_apart     │ thigh, calf

Asymmetric poses: lengths take the longer side, since foreshortening only
ever shortens a limb in projection.
"""

from __future__ import annotations

from collections.abc import Callable

from anthropose.config import config
from anthropose.core.calibration import calibrate, pixel_to_cm
from anthropose.core.confidence import decay, landmark_score, make_result
from anthropose.exceptions import InsufficientLandmarks
from anthropose.core.fusion import estimate_biceps, estimate_calf, estimate_thigh
from anthropose.core.landmarks import (
    LEFT_ANKLE, LEFT_HIP, LEFT_SHOULDER, LEFT_WRIST, NOSE,
    RIGHT_ANKLE, RIGHT_HIP, RIGHT_SHOULDER, RIGHT_WRIST,
    all_detected,
    pixel_distance,
)
from anthropose.models.schemas import CapturedView, MeasurementResult, UserProfile, ViewId

ccfg = config.confidence
pcfg = config.proportions

Extractor = Callable[[CapturedView, UserProfile], dict[str, MeasurementResult]]


def _longest_segment(view: CapturedView, pairs: tuple[tuple[int, int], ...]) -> float | None:
    lm = view.landmarks
    lengths = [
        pixel_distance(lm[a], lm[b], view.image_width, view.image_height)
        for a, b in pairs
        if all_detected(lm, a, b)
    ]
    return max(lengths) if lengths else None


def optional_scale(view: CapturedView, profile: UserProfile) -> float | None:
    """Pixels per cm for the view, or None when it cannot be calibrated."""
    try:
        return calibrate(view.landmarks, view.image_height, profile.height_cm)
    except InsufficientLandmarks:
        return None


# ── Front ──────────────────────────────────────────────────────────────

def extract_front(view: CapturedView, profile: UserProfile) -> dict[str, MeasurementResult]:
    lm = view.landmarks
    w, h = view.image_width, view.image_height
    scale = calibrate(lm, h, profile.height_cm)
    out: dict[str, MeasurementResult] = {}

    if all_detected(lm, LEFT_SHOULDER, RIGHT_SHOULDER):
        shoulder_px = pixel_distance(lm[LEFT_SHOULDER], lm[RIGHT_SHOULDER], w, h)
        score = landmark_score(lm, (LEFT_SHOULDER, RIGHT_SHOULDER))
        out["shoulderWidth"] = make_result(pixel_to_cm(shoulder_px, scale), score, "front_view")
        out["chestWidth"] = make_result(
            pixel_to_cm(shoulder_px * pcfg.chest_to_shoulder, scale),
            decay(score, ccfg.decay_chest_width),
            "front_view_estimated",
        )
        out["waistWidth"] = make_result(
            pixel_to_cm(shoulder_px * pcfg.waist_to_shoulder, scale),
            decay(score, ccfg.decay_waist_width),
            "front_view_estimated",
        )

    if all_detected(lm, LEFT_HIP, RIGHT_HIP):
        hip_px = pixel_distance(lm[LEFT_HIP], lm[RIGHT_HIP], w, h)
        score = landmark_score(lm, (LEFT_HIP, RIGHT_HIP))
        out["hipWidth"] = make_result(pixel_to_cm(hip_px, scale), score, "front_view")

    arm_px = _longest_segment(view, ((LEFT_SHOULDER, LEFT_WRIST), (RIGHT_SHOULDER, RIGHT_WRIST)))
    if arm_px is not None:
        arm_cm = pixel_to_cm(arm_px, scale)
        score = landmark_score(lm, (LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_WRIST, RIGHT_WRIST))
        out["armLength"] = make_result(arm_cm, score, "front_view")
        out["sleeveLength"] = make_result(
            arm_cm * pcfg.sleeve_to_arm,
            decay(score, ccfg.decay_sleeve_length),
            "front_view_estimated",
        )

    leg_px = _longest_segment(view, ((LEFT_HIP, LEFT_ANKLE), (RIGHT_HIP, RIGHT_ANKLE)))
    if leg_px is not None:
        leg_cm = pixel_to_cm(leg_px, scale)
        score = landmark_score(lm, (LEFT_HIP, RIGHT_HIP, LEFT_ANKLE, RIGHT_ANKLE))
        out["legLength"] = make_result(leg_cm, score, "front_view")
        out["pantsLength"] = make_result(
            leg_cm * pcfg.pants_to_leg,
            decay(score, ccfg.decay_pants_length),
            "front_view_estimated",
        )

    return out


# ── Back ───────────────────────────────────────────────────────────────

def extract_back(view: CapturedView, profile: UserProfile) -> dict[str, MeasurementResult]:
    """
    Back length runs from an estimated neck point (80 % of the way from the
    nose down to the shoulder line) to an estimated natural waist point
    (midway between the shoulder line and the hip line).
    """
    lm = view.landmarks
    w, h = view.image_width, view.image_height
    scale = calibrate(lm, h, profile.height_cm)
    out: dict[str, MeasurementResult] = {}

    torso = (NOSE, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)
    if all_detected(lm, *torso):
        shoulder_y = (lm[LEFT_SHOULDER].y + lm[RIGHT_SHOULDER].y) / 2
        hip_y = (lm[LEFT_HIP].y + lm[RIGHT_HIP].y) / 2
        neck_y = lm[NOSE].y + (shoulder_y - lm[NOSE].y) * pcfg.neck_point_fraction
        waist_y = (shoulder_y + hip_y) / 2
        back_px = abs(waist_y - neck_y) * h
        out["backLength"] = make_result(
            pixel_to_cm(back_px, scale), landmark_score(lm, torso), "back_view",
        )

    if all_detected(lm, LEFT_SHOULDER, RIGHT_SHOULDER):
        blade_px = pixel_distance(lm[LEFT_SHOULDER], lm[RIGHT_SHOULDER], w, h)
        out["shoulderBladeWidth"] = make_result(
            pixel_to_cm(blade_px, scale),
            landmark_score(lm, (LEFT_SHOULDER, RIGHT_SHOULDER)),
            "back_view",
        )

    return out


# ── Side ───────────────────────────────────────────────────────────────

def extract_side(view: CapturedView, profile: UserProfile) -> dict[str, MeasurementResult]:
    """
    Front-to-back depth proxies, in pixels.

    In a profile photo the two shoulders (and the two hips) sit one behind
    the other, so their horizontal separation tracks torso depth.
    """
    lm = view.landmarks
    needed = (LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)
    if not all_detected(lm, *needed):
        raise InsufficientLandmarks("side view needs both shoulders and both hips")

    w = view.image_width
    shoulder_depth = abs(lm[LEFT_SHOULDER].x - lm[RIGHT_SHOULDER].x) * w
    hip_depth = abs(lm[LEFT_HIP].x - lm[RIGHT_HIP].x) * w
    chest_depth = shoulder_depth * pcfg.chest_depth_to_shoulder_depth
    waist_depth = (chest_depth + hip_depth) / 2

    score = landmark_score(lm, needed)
    return {
        name: make_result(value, score, "side_view", unit="px")
        for name, value in (
            ("shoulderDepth", shoulder_depth),
            ("chestDepth", chest_depth),
            ("waistDepth", waist_depth),
            ("hipDepth", hip_depth),
        )
    }


# ── Arms extended ──────────────────────────────────────────────────────

def extract_arms_extended(view: CapturedView, profile: UserProfile) -> dict[str, MeasurementResult]:
    lm = view.landmarks
    w, h = view.image_width, view.image_height
    out: dict[str, MeasurementResult] = {}

    biceps = estimate_biceps(lm, profile, w, h, optional_scale(view, profile))
    if biceps is not None:
        out["biceps"] = make_result(biceps.value, biceps.confidence, "arms_extended", biceps.method)

    if all_detected(lm, LEFT_WRIST, RIGHT_WRIST):
        # Arm span ≈ stature, so the wrist span is read as a fraction of image width
        span_px = pixel_distance(lm[LEFT_WRIST], lm[RIGHT_WRIST], w, h)
        span_cm = span_px / w * profile.height_cm * pcfg.arm_span_to_height
        score = decay(landmark_score(lm, (LEFT_WRIST, RIGHT_WRIST)), ccfg.decay_arm_span)
        out["armSpan"] = make_result(span_cm, score, "arms_extended")

    return out


# ── Legs apart ─────────────────────────────────────────────────────────

def extract_legs_apart(view: CapturedView, profile: UserProfile) -> dict[str, MeasurementResult]:
    lm = view.landmarks
    w, h = view.image_width, view.image_height
    scale = optional_scale(view, profile)
    out: dict[str, MeasurementResult] = {}

    thigh = estimate_thigh(lm, profile, w, h, scale)
    if thigh is not None:
        out["thigh"] = make_result(thigh.value, thigh.confidence, "legs_apart", thigh.method)

    calf = estimate_calf(lm, profile, w, h, thigh, scale)
    if calf is not None:
        out["calf"] = make_result(calf.value, calf.confidence, "legs_apart", calf.method)

    return out


EXTRACTORS: dict[ViewId, Extractor] = {
    ViewId.front: extract_front,
    ViewId.side: extract_side,
    ViewId.back: extract_back,
    ViewId.arms_extended: extract_arms_extended,
    ViewId.legs_apart: extract_legs_apart,
}
