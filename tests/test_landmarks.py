"""Tests for the canonical landmark schema and keypoint remapping."""

import numpy as np
import pytest
from pydantic import ValidationError

from anthropose.core.landmarks import (
    COCO_KEYPOINTS,
    LEFT_ANKLE,
    LEFT_EYE,
    LEFT_SHOULDER,
    NOSE,
    RIGHT_SHOULDER,
    all_detected,
    empty_landmarks,
    landmarks_from_array,
    landmarks_from_slots,
    make_landmark,
    pixel_distance,
    remap_keypoints,
)
from anthropose.models.schemas import Landmark, N_LANDMARKS, PoseLandmarks


class TestSchema:

    def test_exactly_33_slots(self):
        assert len(empty_landmarks()) == N_LANDMARKS == 33

    def test_rejects_wrong_length(self):
        with pytest.raises(ValidationError):
            PoseLandmarks(points=(Landmark(),) * 17)

    def test_rejects_out_of_range_coordinates(self):
        with pytest.raises(ValidationError):
            Landmark(x=1.2, y=0.5, visibility=0.9)

    def test_make_landmark_clips_to_frame(self):
        lm = make_landmark(1.03, -0.01, visibility=1.5)
        assert (lm.x, lm.y, lm.visibility) == (1.0, 0.0, 1.0)

    def test_placeholders_are_undetected(self):
        lm = landmarks_from_slots({NOSE: (0.5, 0.1, 0.0, 0.9)})
        assert all_detected(lm, NOSE)
        assert not all_detected(lm, NOSE, LEFT_ANKLE)

    def test_bad_slot_rejected(self):
        with pytest.raises(ValueError):
            landmarks_from_slots({40: (0.5, 0.5, 0.0, 1.0)})

    def test_from_array_requires_shape(self):
        with pytest.raises(ValueError):
            landmarks_from_array(np.zeros((17, 3)))

    def test_from_array_roundtrip(self):
        arr = np.zeros((N_LANDMARKS, 4))
        arr[LEFT_SHOULDER] = [0.35, 0.3, 0.0, 0.9]
        lm = landmarks_from_array(arr)
        assert lm[LEFT_SHOULDER].x == pytest.approx(0.35)
        assert lm[LEFT_SHOULDER].visibility == pytest.approx(0.9)


class TestRemap:

    def test_coco_names_map_to_blazepose_slots(self):
        kps = [(name, 0.1 + i * 0.05, 0.2, 0.8) for i, name in enumerate(COCO_KEYPOINTS)]
        lm = remap_keypoints(kps)
        assert lm[NOSE].x == pytest.approx(0.1)
        assert lm[LEFT_EYE].x == pytest.approx(0.15)
        # left_shoulder is COCO index 5
        assert lm[LEFT_SHOULDER].x == pytest.approx(0.35)
        assert lm[RIGHT_SHOULDER].x == pytest.approx(0.40)

    def test_unmapped_slots_are_placeholders(self):
        lm = remap_keypoints([("nose", 0.5, 0.1, 0.9)])
        assert len(lm) == N_LANDMARKS
        detected = [i for i, p in enumerate(lm) if p.visibility > 0]
        assert detected == [NOSE]

    def test_unknown_names_ignored(self):
        lm = remap_keypoints([("tail", 0.5, 0.5, 1.0)])
        assert not any(p.visibility > 0 for p in lm)


class TestGeometry:

    def test_pixel_distance_uses_frame_size(self):
        a = make_landmark(0.35, 0.3, visibility=1.0)
        b = make_landmark(0.65, 0.3, visibility=1.0)
        assert pixel_distance(a, b, 320, 400) == pytest.approx(96.0)

    def test_pixel_distance_anisotropic(self):
        a = make_landmark(0.0, 0.0)
        b = make_landmark(0.0, 0.5)
        assert pixel_distance(a, b, 320, 400) == pytest.approx(200.0)
