"""Tests for the confidence model."""

import pytest

from anthropose.core.confidence import decay, label_for, landmark_score, make_result, to_display
from anthropose.core.landmarks import LEFT_SHOULDER, RIGHT_SHOULDER, landmarks_from_slots
from anthropose.models.schemas import ConfidenceLabel


class TestLandmarkScore:

    def test_mean_visibility(self):
        lm = landmarks_from_slots({
            LEFT_SHOULDER: (0.35, 0.3, 0.0, 0.9),
            RIGHT_SHOULDER: (0.65, 0.3, 0.0, 0.7),
        })
        assert landmark_score(lm, (LEFT_SHOULDER, RIGHT_SHOULDER)) == pytest.approx(0.8)

    def test_unreported_slot_counts_as_neutral(self):
        lm = landmarks_from_slots({LEFT_SHOULDER: (0.35, 0.3, 0.0, 0.9)})
        assert landmark_score(lm, (LEFT_SHOULDER, RIGHT_SHOULDER)) == pytest.approx(0.7)

    def test_no_slots(self):
        lm = landmarks_from_slots({})
        assert landmark_score(lm, ()) == 0.0


class TestDisplay:

    @pytest.mark.parametrize("percentage, label", [
        (100, ConfidenceLabel.high),
        (80, ConfidenceLabel.high),
        (79, ConfidenceLabel.medium),
        (60, ConfidenceLabel.medium),
        (59, ConfidenceLabel.low),
        (0, ConfidenceLabel.low),
    ])
    def test_label_boundaries(self, percentage, label):
        assert label_for(percentage) is label

    @pytest.mark.parametrize("score, percentage", [
        (0.625, 63),
        (0.125, 13),
        (0.796, 80),
        (0.794, 79),
        (0.596, 60),
        (0.0, 0),
        (1.0, 100),
    ])
    def test_rounds_half_up(self, score, percentage):
        assert to_display(score)[0] == percentage

    def test_out_of_range_clamped(self):
        assert to_display(1.3) == (100, ConfidenceLabel.high)
        assert to_display(-0.2) == (0, ConfidenceLabel.low)


class TestDecay:

    def test_derived_never_exceeds_source(self):
        for factor in (0.6, 0.85, 1.0, 1.4):
            assert decay(0.9, factor) <= 0.9

    def test_applies_factor(self):
        assert decay(0.8, 0.6) == pytest.approx(0.48)


class TestMakeResult:

    def test_fields(self):
        r = make_result(49.4142, 0.9, "front_view")
        assert r.value == 49.4
        assert r.unit == "cm"
        assert r.confidence_percentage == 90
        assert r.confidence_label is ConfidenceLabel.high
        assert r.method == "front_view"

    def test_serializes_with_camel_case_aliases(self):
        data = make_result(10.0, 0.55, "legs_apart", "thigh_ratio").model_dump(by_alias=True)
        assert data["confidenceScore"] == 0.55
        assert data["confidencePercentage"] == 55
        assert data["confidenceLabel"] == "low"
        assert data["method"] == "thigh_ratio"
