"""
Per-view metric calibration.

The user's stature is the only metric reference.  In a full-body photo the
head-to-ankle span covers (approximately) the whole stature, so

    pose_height   = |y_ankle − y_nose|                  (normalized, 0–1)
    pixels_per_cm = image_height_px · pose_height / height_cm
    d_cm          = d_px / pixels_per_cm

The lower of the two ankles is used (the one closest to the floor); when
only one ankle is detected it is used alone.  Without any ankle the span is
undefined and the view is rejected with InsufficientLandmarks.
"""

from __future__ import annotations

from anthropose.exceptions import InsufficientLandmarks
from anthropose.core.landmarks import LEFT_ANKLE, NOSE, RIGHT_ANKLE, is_detected
from anthropose.models.schemas import PoseLandmarks


def pose_height(landmarks: PoseLandmarks) -> float:
    """Normalized vertical span from the nose to the lower detected ankle."""
    head = landmarks[NOSE]
    if not is_detected(head):
        raise InsufficientLandmarks("head landmark not detected")

    ankles = [landmarks[s] for s in (LEFT_ANKLE, RIGHT_ANKLE) if is_detected(landmarks[s])]
    if not ankles:
        raise InsufficientLandmarks("no ankle landmark detected")

    ankle = max(ankles, key=lambda lm: lm.y)
    span = abs(head.y - ankle.y)
    if span <= 0.0:
        raise InsufficientLandmarks("head and ankle at the same height")
    return span


def calibrate(landmarks: PoseLandmarks, image_height_px: int, user_height_cm: float) -> float:
    """Pixels per centimeter for one photograph."""
    if image_height_px <= 0 or user_height_cm <= 0:
        raise ValueError("image height and user height must be positive")
    return image_height_px * pose_height(landmarks) / user_height_cm


def pixel_to_cm(pixel_distance: float, pixels_per_cm: float) -> float:
    return pixel_distance / pixels_per_cm
