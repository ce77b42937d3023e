"""
Gender-specific anthropometric ratio table.

  Part    │ Coefficient      │ Meaning
  ────────┼──────────────────┼──────────────────────────────────────────
  chest   │ front_to_depth   │ depth ≈ front width × ratio (no side view)
  waist   │ bmi_coeff        │ relative depth change per BMI unit above 22
  hips    │ width_to_circ    │ crude circumference / width ratio
  biceps  │ arm_width_ratio  │ upper-arm width → biceps circumference
  thigh   │ hip_ratio        │ thigh width → thigh circumference
  calf    │ thigh_ratio      │ thigh circumference → calf circumference

These are empirical approximations, not validated against ground truth;
they are kept together and versioned so they can be recalibrated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from anthropose.models.schemas import Gender


class PartRatios(BaseModel):
    model_config = ConfigDict(frozen=True)

    bmi_coeff: float
    front_to_depth: float | None = None
    width_to_circ: float | None = None
    arm_width_ratio: float | None = None
    hip_ratio: float | None = None
    thigh_ratio: float | None = None


class AnthropometricRatioTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    parts: dict[Gender, dict[str, PartRatios]]

    def lookup(self, gender: Gender, body_part: str) -> PartRatios:
        try:
            return self.parts[Gender(gender)][body_part]
        except KeyError as exc:
            raise KeyError(f"no ratios for {gender!s}/{body_part}") from exc


RATIO_TABLE = AnthropometricRatioTable(
    version="2025.1",
    parts={
        Gender.male: {
            "chest": PartRatios(front_to_depth=0.88, bmi_coeff=0.015, width_to_circ=2.8),
            "waist": PartRatios(front_to_depth=0.85, bmi_coeff=0.020, width_to_circ=2.6),
            "hips": PartRatios(front_to_depth=0.90, bmi_coeff=0.012, width_to_circ=2.4),
            "biceps": PartRatios(arm_width_ratio=0.65, bmi_coeff=0.020),
            "thigh": PartRatios(hip_ratio=0.72, bmi_coeff=0.025),
            "calf": PartRatios(thigh_ratio=0.68, bmi_coeff=0.015),
        },
        Gender.female: {
            "chest": PartRatios(front_to_depth=0.85, bmi_coeff=0.018, width_to_circ=2.6),
            "waist": PartRatios(front_to_depth=0.82, bmi_coeff=0.025, width_to_circ=2.4),
            "hips": PartRatios(front_to_depth=0.95, bmi_coeff=0.010, width_to_circ=2.8),
            "biceps": PartRatios(arm_width_ratio=0.60, bmi_coeff=0.018),
            "thigh": PartRatios(hip_ratio=0.75, bmi_coeff=0.028),
            "calf": PartRatios(thigh_ratio=0.65, bmi_coeff=0.012),
        },
    },
)
