"""
Pydantic models for API request/response and internal data transfer.
"""

from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

N_LANDMARKS = 33


# ── Enums ──────────────────────────────────────────────────────────────

class ViewId(str, Enum):
    front = "front"
    side = "side"
    back = "back"
    arms_extended = "arms_extended"
    legs_apart = "legs_apart"


class Gender(str, Enum):
    male = "male"
    female = "female"


class ConfidenceLabel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class RunStatus(str, Enum):
    completed = "completed"
    failed = "failed"


# ── Landmarks ──────────────────────────────────────────────────────────

class Landmark(BaseModel):
    """Normalized keypoint. x, y and visibility in [0, 1]; z is relative depth."""
    model_config = ConfigDict(frozen=True)

    x: float = Field(0.0, ge=0.0, le=1.0)
    y: float = Field(0.0, ge=0.0, le=1.0)
    z: float = 0.0
    visibility: float = Field(0.0, ge=0.0, le=1.0)


class PoseLandmarks(BaseModel):
    """Canonical 33-slot landmark array (BlazePose slot order)."""
    model_config = ConfigDict(frozen=True)

    points: tuple[Landmark, ...]

    @field_validator("points")
    @classmethod
    def _exactly_33(cls, v: tuple[Landmark, ...]) -> tuple[Landmark, ...]:
        if len(v) != N_LANDMARKS:
            raise ValueError(f"expected {N_LANDMARKS} landmarks, got {len(v)}")
        return v

    def __getitem__(self, slot: int) -> Landmark:
        return self.points[slot]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


class CapturedView(BaseModel):
    """One processed photograph: its orientation and detected landmarks."""
    model_config = ConfigDict(frozen=True)

    view_id: ViewId
    landmarks: PoseLandmarks
    image_width: int = Field(..., gt=0)
    image_height: int = Field(..., gt=0)
    backend: str


# ── User profile ───────────────────────────────────────────────────────

class UserProfile(BaseModel):
    """Metric reference for calibration. BMI is always derived from height and weight."""
    model_config = ConfigDict(frozen=True)

    height_cm: float = Field(..., gt=0)
    weight_kg: float = Field(..., gt=0)
    gender: Gender
    age: int | None = Field(None, ge=0)

    @computed_field
    @property
    def bmi(self) -> float:
        return round(self.weight_kg / (self.height_cm / 100) ** 2, 1)


# ── Measurement primitives ─────────────────────────────────────────────

class MeasurementResult(BaseModel):
    """One body measurement with its confidence and provenance."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: float
    unit: str = "cm"
    confidence_score: float = Field(..., ge=0.0, le=1.0, alias="confidenceScore")
    confidence_percentage: int = Field(..., ge=0, le=100, alias="confidencePercentage")
    confidence_label: ConfidenceLabel = Field(..., alias="confidenceLabel")
    source: str
    method: str | None = None


class ProcessingError(BaseModel):
    """User-facing failure description with remediation hints."""
    message: str
    suggestions: list[str] = Field(default_factory=list)
    error_message: str | None = None


class MeasurementReport(BaseModel):
    """Outcome of one processing run."""
    status: RunStatus
    measurements: dict[str, MeasurementResult] = Field(default_factory=dict)
    user_profile: UserProfile
    views_processed: list[ViewId] = Field(default_factory=list)
    view_failures: dict[str, str] = Field(default_factory=dict)
    backend: str | None = None
    error: ProcessingError | None = None


# ── API request / response ─────────────────────────────────────────────

class MeasurementResponse(BaseModel):
    run_id: str
    report: MeasurementReport
    explanations: dict[str, str] = Field(default_factory=dict)
    processing_time_s: float


class HealthResponse(BaseModel):
    status: str
    version: str
    backend_state: str
    backend: str | None = None


class ErrorResponse(BaseModel):
    detail: str
