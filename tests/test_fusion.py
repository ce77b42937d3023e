"""Tests for ellipse-model circumference fusion and limb estimates."""

import math

import pytest

from anthropose.core.extractors import extract_front, extract_side, optional_scale
from anthropose.core.fusion import (
    bmi_factor,
    ellipse_perimeter,
    estimate_biceps,
    estimate_calf,
    estimate_circumference,
    estimate_thigh,
    fuse_circumferences,
)
from anthropose.core.landmarks import LEFT_KNEE, RIGHT_KNEE
from anthropose.core.ratios import RATIO_TABLE
from anthropose.models.schemas import UserProfile, ViewId
from scripts.synthetic_pose import arms_extended_landmarks, legs_apart_landmarks, without


@pytest.fixture
def reference_build() -> UserProfile:
    """BMI exactly 22, so every BMI adjustment is neutral."""
    return UserProfile(height_cm=175, weight_kg=67.375, gender="male")


class TestEllipsePerimeter:

    @pytest.mark.parametrize("r", [1.0, 7.5, 20.0])
    def test_circle_is_exact(self, r):
        assert ellipse_perimeter(r, r) == pytest.approx(2 * math.pi * r)

    def test_known_ellipse(self):
        # a=3, b=2: true perimeter 15.86544...
        assert ellipse_perimeter(3, 2) == pytest.approx(15.8654, abs=1e-3)

    def test_axis_order_irrelevant(self):
        assert ellipse_perimeter(2, 5) == pytest.approx(ellipse_perimeter(5, 2))

    def test_degenerate(self):
        assert ellipse_perimeter(0, 0) == 0.0


class TestEstimateCircumference:

    def test_reference_bmi_is_neutral(self, reference_build):
        assert reference_build.bmi == 22.0
        assert bmi_factor(reference_build, 0.02) == pytest.approx(1.0)

    def test_dual_view(self, reference_build):
        est = estimate_circumference(30.0, 20.0, "chest", reference_build)
        assert est.method == "dual_view"
        assert est.confidence == pytest.approx(0.8)
        assert est.value == pytest.approx(ellipse_perimeter(15.0, 10.0))

    def test_estimated_depth(self, reference_build):
        est = estimate_circumference(30.0, None, "chest", reference_build)
        depth = 30.0 * RATIO_TABLE.lookup("male", "chest").front_to_depth
        assert est.method == "estimated_depth"
        assert est.confidence == pytest.approx(0.6)
        assert est.value == pytest.approx(ellipse_perimeter(15.0, depth / 2))

    def test_zero_depth_treated_as_missing(self, reference_build):
        assert estimate_circumference(30.0, 0.0, "waist", reference_build).method == "estimated_depth"

    def test_higher_bmi_larger_circumference(self):
        lean = UserProfile(height_cm=175, weight_kg=60, gender="female")
        heavy = UserProfile(height_cm=175, weight_kg=100, gender="female")
        a = estimate_circumference(30.0, 20.0, "waist", lean)
        b = estimate_circumference(30.0, 20.0, "waist", heavy)
        assert b.value > a.value

    def test_gender_tables_differ(self, reference_build):
        female = UserProfile(height_cm=175, weight_kg=67.375, gender="female")
        m = estimate_circumference(30.0, None, "hips", reference_build)
        f = estimate_circumference(30.0, None, "hips", female)
        assert m.value != f.value

    def test_unknown_part(self, reference_build):
        with pytest.raises(KeyError):
            estimate_circumference(30.0, None, "neck", reference_build)


class TestFuseCircumferences:

    def test_dual_view_when_side_calibrates(self, views, profile):
        front = extract_front(views[ViewId.front], profile)
        depths = extract_side(views[ViewId.side], profile)
        scale = optional_scale(views[ViewId.side], profile)
        fused = fuse_circumferences(front, depths, scale, profile)

        assert set(fused) == {"chestCircumference", "waistCircumference", "hipCircumference"}
        for r in fused.values():
            assert r.source == "front_and_side_combined"
            assert r.method == "dual_view"

    def test_estimated_depth_without_side_scale(self, views, profile):
        front = extract_front(views[ViewId.front], profile)
        depths = extract_side(views[ViewId.side], profile)
        fused = fuse_circumferences(front, depths, None, profile)
        assert {r.method for r in fused.values()} == {"estimated_depth"}

    def test_confidence_capped_by_inputs(self, views, profile):
        front = extract_front(views[ViewId.front], profile)
        depths = extract_side(views[ViewId.side], profile)
        fused = fuse_circumferences(front, depths, optional_scale(views[ViewId.side], profile), profile)
        assert fused["chestCircumference"].confidence_score <= front["shoulderWidth"].confidence_score
        assert fused["waistCircumference"].confidence_score <= front["waistWidth"].confidence_score
        assert fused["chestCircumference"].confidence_score <= 0.8

    def test_side_depth_in_cm_uses_side_scale(self, views, profile):
        front = extract_front(views[ViewId.front], profile)
        depths = extract_side(views[ViewId.side], profile)
        scale = optional_scale(views[ViewId.side], profile)
        fused = fuse_circumferences(front, depths, scale, profile)
        expected = estimate_circumference(
            front["hipWidth"].value, depths["hipDepth"].value / scale, "hips", profile,
        )
        assert fused["hipCircumference"].value == pytest.approx(expected.value, abs=0.05)

    def test_missing_front_width_skips_part(self, views, profile):
        front = extract_front(views[ViewId.front], profile)
        front.pop("hipWidth")
        fused = fuse_circumferences(front, {}, None, profile)
        assert "hipCircumference" not in fused
        assert "chestCircumference" in fused


class TestLimbs:

    def test_biceps_discounted(self, profile, scene):
        lm = arms_extended_landmarks(scene)
        est = estimate_biceps(lm, profile, scene.image_width, scene.image_height)
        assert est.method == "arm_width_estimation"
        assert est.value > 0
        assert est.confidence == pytest.approx(0.9 * 0.7)

    def test_thigh_uses_calibration_when_given(self, profile, scene):
        lm = legs_apart_landmarks(scene)
        w, h = scene.image_width, scene.image_height
        prior = estimate_thigh(lm, profile, w, h)
        calibrated = estimate_thigh(lm, profile, w, h, scene.pixels_per_cm(profile.height_cm))
        assert prior.method == calibrated.method == "hip_to_thigh_estimation"
        assert prior.value != calibrated.value

    def test_calf_from_thigh(self, profile, scene):
        lm = legs_apart_landmarks(scene)
        w, h = scene.image_width, scene.image_height
        thigh = estimate_thigh(lm, profile, w, h)
        calf = estimate_calf(lm, profile, w, h, thigh)
        assert calf.method == "thigh_ratio"
        assert calf.value < thigh.value
        assert calf.confidence <= min(thigh.confidence, 0.8)

    def test_calf_direct_fallback(self, profile, scene):
        lm = legs_apart_landmarks(scene)
        calf = estimate_calf(lm, profile, scene.image_width, scene.image_height, None)
        assert calf.method == "direct_estimation"
        assert calf.confidence <= 0.4

    def test_calf_needs_knees(self, profile, scene):
        lm = without(legs_apart_landmarks(scene), LEFT_KNEE, RIGHT_KNEE)
        assert estimate_calf(lm, profile, scene.image_width, scene.image_height, None) is None
