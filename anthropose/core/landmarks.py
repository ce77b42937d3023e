"""
Canonical 33-slot landmark schema.

Slot order follows MediaPipe BlazePose:

  Slot │ Landmark          Slot │ Landmark
  ─────┼───────────────    ─────┼────────────────
   0   │ nose               15  │ left wrist
   2/5 │ left/right eye     16  │ right wrist
   7/8 │ left/right ear     23  │ left hip
   11  │ left shoulder      24  │ right hip
   12  │ right shoulder     25  │ left knee
   13  │ left elbow         26  │ right knee
   14  │ right elbow        27  │ left ankle
                            28  │ right ankle

Backends that emit fewer or differently named keypoints are remapped through
KEYPOINT_SLOTS.  Slots with no source keypoint stay as zero-visibility
placeholders, so index access never fails.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from anthropose.models.schemas import N_LANDMARKS, Landmark, PoseLandmarks

NOSE = 0
LEFT_EYE, RIGHT_EYE = 2, 5
LEFT_EAR, RIGHT_EAR = 7, 8
LEFT_SHOULDER, RIGHT_SHOULDER = 11, 12
LEFT_ELBOW, RIGHT_ELBOW = 13, 14
LEFT_WRIST, RIGHT_WRIST = 15, 16
LEFT_HIP, RIGHT_HIP = 23, 24
LEFT_KNEE, RIGHT_KNEE = 25, 26
LEFT_ANKLE, RIGHT_ANKLE = 27, 28

# COCO-17 / MoveNet keypoint name -> canonical slot
KEYPOINT_SLOTS: dict[str, int] = {
    "nose": NOSE,
    "left_eye": LEFT_EYE,
    "right_eye": RIGHT_EYE,
    "left_ear": LEFT_EAR,
    "right_ear": RIGHT_EAR,
    "left_shoulder": LEFT_SHOULDER,
    "right_shoulder": RIGHT_SHOULDER,
    "left_elbow": LEFT_ELBOW,
    "right_elbow": RIGHT_ELBOW,
    "left_wrist": LEFT_WRIST,
    "right_wrist": RIGHT_WRIST,
    "left_hip": LEFT_HIP,
    "right_hip": RIGHT_HIP,
    "left_knee": LEFT_KNEE,
    "right_knee": RIGHT_KNEE,
    "left_ankle": LEFT_ANKLE,
    "right_ankle": RIGHT_ANKLE,
}

# COCO keypoint order as emitted by YOLO pose models
COCO_KEYPOINTS: tuple[str, ...] = (
    "nose", "left_eye", "right_eye", "left_ear", "right_ear",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist", "left_hip", "right_hip",
    "left_knee", "right_knee", "left_ankle", "right_ankle",
)

PLACEHOLDER = Landmark()


def _clip01(v: float) -> float:
    return float(min(max(v, 0.0), 1.0))


def make_landmark(x: float, y: float, z: float = 0.0, visibility: float = 0.0) -> Landmark:
    """Build a landmark, clipping coordinates that fall slightly outside the frame."""
    return Landmark(x=_clip01(x), y=_clip01(y), z=float(z), visibility=_clip01(visibility))


def empty_landmarks() -> PoseLandmarks:
    return PoseLandmarks(points=(PLACEHOLDER,) * N_LANDMARKS)


def landmarks_from_slots(slots: Mapping[int, Sequence[float]]) -> PoseLandmarks:
    """
    Build a full 33-slot array from a sparse ``{slot: (x, y, z, visibility)}`` map.
    """
    points = [PLACEHOLDER] * N_LANDMARKS
    for slot, values in slots.items():
        if not 0 <= slot < N_LANDMARKS:
            raise ValueError(f"landmark slot {slot} outside 0..{N_LANDMARKS - 1}")
        points[slot] = make_landmark(*values)
    return PoseLandmarks(points=tuple(points))


def landmarks_from_array(arr: np.ndarray | Sequence[Sequence[float]]) -> PoseLandmarks:
    """Validate an (33, 4) array of x, y, z, visibility rows."""
    arr = np.asarray(arr, dtype=float)
    if arr.shape != (N_LANDMARKS, 4):
        raise ValueError(f"expected landmark array of shape ({N_LANDMARKS}, 4), got {arr.shape}")
    return landmarks_from_slots({i: tuple(row) for i, row in enumerate(arr)})


def remap_keypoints(keypoints: Iterable[tuple[str, float, float, float]]) -> PoseLandmarks:
    """
    Remap named keypoints ``(name, x, y, score)`` onto the canonical schema.

    Unknown names are ignored; unmapped slots stay zero-visibility.
    """
    slots: dict[int, tuple[float, float, float, float]] = {}
    for name, x, y, score in keypoints:
        slot = KEYPOINT_SLOTS.get(name)
        if slot is not None:
            slots[slot] = (x, y, 0.0, score)
    return landmarks_from_slots(slots)


# ── Geometry helpers ───────────────────────────────────────────────────

def is_detected(lm: Landmark) -> bool:
    return lm.visibility > 0.0


def all_detected(landmarks: PoseLandmarks, *slots: int) -> bool:
    return all(is_detected(landmarks[s]) for s in slots)


def to_pixels(lm: Landmark, width: int, height: int) -> np.ndarray:
    return np.array([lm.x * width, lm.y * height])


def pixel_distance(a: Landmark, b: Landmark, width: int, height: int) -> float:
    """Euclidean distance between two landmarks in image pixels."""
    return float(np.linalg.norm(to_pixels(a, width, height) - to_pixels(b, width, height)))
