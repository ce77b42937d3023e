#!/usr/bin/env python3
"""
Synthetic pose landmark sets with analytically known pixel geometry.

Describes one person standing in a fixed frame in normalized image
coordinates and derives the landmark set each captured view would produce.
Because every landmark position is chosen, the expected calibrated
measurements are exact:

    pixels_per_cm = image_height · (ankle_y − nose_y) / height_cm
    shoulderWidth = 2 · shoulder_half · image_width / pixels_per_cm

The default scene matches the 320×400 reference frame: nose at (0.5, 0.1),
shoulders at (0.35, 0.3) / (0.65, 0.3), ankles at (0.45, 0.95) / (0.55, 0.95).

Usage:
    python scripts/synthetic_pose.py [output.json]
"""

from __future__ import annotations

import json
import math
import sys
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from anthropose.core.landmarks import (
    LEFT_ANKLE, LEFT_ELBOW, LEFT_HIP, LEFT_KNEE, LEFT_SHOULDER, LEFT_WRIST, NOSE,
    RIGHT_ANKLE, RIGHT_ELBOW, RIGHT_HIP, RIGHT_KNEE, RIGHT_SHOULDER, RIGHT_WRIST,
    landmarks_from_slots,
)
from anthropose.models.schemas import Landmark, PoseLandmarks, ViewId


@dataclass
class PoseScene:
    """Standing person; horizontal offsets are half-spans around x = 0.5."""

    image_width: int = 320
    image_height: int = 400
    visibility: float = 0.9

    nose_y: float = 0.10
    shoulder_y: float = 0.30
    elbow_y: float = 0.45
    wrist_y: float = 0.60
    hip_y: float = 0.55
    knee_y: float = 0.75
    ankle_y: float = 0.95

    shoulder_half: float = 0.15
    elbow_half: float = 0.18
    wrist_half: float = 0.20
    hip_half: float = 0.08
    knee_half: float = 0.06
    ankle_half: float = 0.05

    # Side view: front-to-back separation of the shoulder and hip pairs
    shoulder_depth_half: float = 0.06
    hip_depth_half: float = 0.07

    def pixels_per_cm(self, height_cm: float) -> float:
        return self.image_height * (self.ankle_y - self.nose_y) / height_cm


def _pairs(scene: PoseScene, halves: dict[tuple[int, int], tuple[float, float]]) -> dict:
    """Mirror (left, right) slot pairs around the vertical center line."""
    v = scene.visibility
    slots = {}
    for (left, right), (half, y) in halves.items():
        slots[left] = (0.5 - half, y, 0.0, v)
        slots[right] = (0.5 + half, y, 0.0, v)
    return slots


def front_landmarks(scene: PoseScene | None = None) -> PoseLandmarks:
    s = scene or PoseScene()
    slots = _pairs(s, {
        (LEFT_SHOULDER, RIGHT_SHOULDER): (s.shoulder_half, s.shoulder_y),
        (LEFT_ELBOW, RIGHT_ELBOW): (s.elbow_half, s.elbow_y),
        (LEFT_WRIST, RIGHT_WRIST): (s.wrist_half, s.wrist_y),
        (LEFT_HIP, RIGHT_HIP): (s.hip_half, s.hip_y),
        (LEFT_KNEE, RIGHT_KNEE): (s.knee_half, s.knee_y),
        (LEFT_ANKLE, RIGHT_ANKLE): (s.ankle_half, s.ankle_y),
    })
    slots[NOSE] = (0.5, s.nose_y, 0.0, s.visibility)
    return landmarks_from_slots(slots)


def back_landmarks(scene: PoseScene | None = None) -> PoseLandmarks:
    """Front geometry seen from behind: the face is hidden, so the nose is uncertain."""
    s = scene or PoseScene()
    lm = front_landmarks(s)
    return with_visibility(lm, {NOSE: s.visibility / 2})


def side_landmarks(scene: PoseScene | None = None) -> PoseLandmarks:
    s = scene or PoseScene()
    slots = _pairs(s, {
        (LEFT_SHOULDER, RIGHT_SHOULDER): (s.shoulder_depth_half, s.shoulder_y),
        (LEFT_ELBOW, RIGHT_ELBOW): (0.02, s.elbow_y),
        (LEFT_WRIST, RIGHT_WRIST): (0.02, s.wrist_y),
        (LEFT_HIP, RIGHT_HIP): (s.hip_depth_half, s.hip_y),
        (LEFT_KNEE, RIGHT_KNEE): (0.02, s.knee_y),
        (LEFT_ANKLE, RIGHT_ANKLE): (0.02, s.ankle_y),
    })
    slots[NOSE] = (0.56, s.nose_y, 0.0, s.visibility)
    return landmarks_from_slots(slots)


def arms_extended_landmarks(scene: PoseScene | None = None) -> PoseLandmarks:
    """T-pose: elbows and wrists raised to shoulder height."""
    s = scene or PoseScene()
    slots = _pairs(s, {
        (LEFT_SHOULDER, RIGHT_SHOULDER): (s.shoulder_half, s.shoulder_y),
        (LEFT_ELBOW, RIGHT_ELBOW): (0.30, s.shoulder_y),
        (LEFT_WRIST, RIGHT_WRIST): (0.45, s.shoulder_y),
        (LEFT_HIP, RIGHT_HIP): (s.hip_half, s.hip_y),
        (LEFT_KNEE, RIGHT_KNEE): (s.knee_half, s.knee_y),
        (LEFT_ANKLE, RIGHT_ANKLE): (s.ankle_half, s.ankle_y),
    })
    slots[NOSE] = (0.5, s.nose_y, 0.0, s.visibility)
    return landmarks_from_slots(slots)


def legs_apart_landmarks(scene: PoseScene | None = None) -> PoseLandmarks:
    """Wide stance: knees and ankles spread outside the hips."""
    s = scene or PoseScene()
    slots = _pairs(s, {
        (LEFT_SHOULDER, RIGHT_SHOULDER): (s.shoulder_half, s.shoulder_y),
        (LEFT_ELBOW, RIGHT_ELBOW): (s.elbow_half, s.elbow_y),
        (LEFT_WRIST, RIGHT_WRIST): (s.wrist_half, s.wrist_y),
        (LEFT_HIP, RIGHT_HIP): (s.hip_half, s.hip_y),
        (LEFT_KNEE, RIGHT_KNEE): (0.15, s.knee_y),
        (LEFT_ANKLE, RIGHT_ANKLE): (0.22, s.ankle_y),
    })
    slots[NOSE] = (0.5, s.nose_y, 0.0, s.visibility)
    return landmarks_from_slots(slots)


VIEW_BUILDERS = {
    ViewId.front: front_landmarks,
    ViewId.side: side_landmarks,
    ViewId.back: back_landmarks,
    ViewId.arms_extended: arms_extended_landmarks,
    ViewId.legs_apart: legs_apart_landmarks,
}


def generate_views(scene: PoseScene | None = None) -> dict[ViewId, PoseLandmarks]:
    return {view_id: build(scene) for view_id, build in VIEW_BUILDERS.items()}


# ── Perturbations ──────────────────────────────────────────────────────

def with_visibility(landmarks: PoseLandmarks, overrides: dict[int, float]) -> PoseLandmarks:
    """Copy with some slots' visibility replaced (0 marks the slot undetected)."""
    points = list(landmarks.points)
    for slot, vis in overrides.items():
        p = points[slot]
        points[slot] = Landmark(x=p.x, y=p.y, z=p.z, visibility=vis)
    return PoseLandmarks(points=tuple(points))


def without(landmarks: PoseLandmarks, *slots: int) -> PoseLandmarks:
    return with_visibility(landmarks, {s: 0.0 for s in slots})


def to_array(landmarks: PoseLandmarks) -> np.ndarray:
    return np.array([[p.x, p.y, p.z, p.visibility] for p in landmarks])


def blank_photo(scene: PoseScene | None = None, ext: str = ".png") -> bytes:
    """Encoded plain image with the scene's frame size (pose content is irrelevant)."""
    s = scene or PoseScene()
    image = np.full((s.image_height, s.image_width, 3), 200, dtype=np.uint8)
    ok, buf = cv2.imencode(ext, image)
    if not ok:
        raise RuntimeError(f"cv2 could not encode {ext}")
    return buf.tobytes()


# ── Ground truth ───────────────────────────────────────────────────────

def ground_truth(scene: PoseScene, height_cm: float) -> dict[str, float]:
    """Expected direct front-view measurements in cm."""
    s = scene
    ppcm = s.pixels_per_cm(height_cm)
    w, h = s.image_width, s.image_height
    arm_px = math.hypot((s.wrist_half - s.shoulder_half) * w, (s.wrist_y - s.shoulder_y) * h)
    leg_px = math.hypot((s.hip_half - s.ankle_half) * w, (s.ankle_y - s.hip_y) * h)
    return {
        "shoulderWidth": 2 * s.shoulder_half * w / ppcm,
        "hipWidth": 2 * s.hip_half * w / ppcm,
        "armLength": arm_px / ppcm,
        "legLength": leg_px / ppcm,
    }


def main():
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    views = generate_views()
    data = {view_id.value: to_array(lm).round(4).tolist() for view_id, lm in views.items()}
    text = json.dumps(data, indent=2)
    if out is None:
        print(text)
    else:
        out.write_text(text)
        print(f"Wrote {len(views)} views to {out}")


if __name__ == "__main__":
    main()
