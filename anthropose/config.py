"""
AnthroPose configuration.

All tunable parameters live here so the measurement pipeline
is fully configurable without touching algorithmic code.
Gender-specific circumference ratios live in ``anthropose.core.ratios``.

Every field can be overridden from the environment, e.g.
``ANTHROPOSE_BACKEND__DETECT_TIMEOUT_S=12``.
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class BackendConfig(BaseSettings):
    """Pose-estimation backend selection and limits."""

    # Tried in order; "synthetic" should stay last
    candidates: list[str] = ["mediapipe", "yolo", "synthetic"]
    init_timeout_s: float = 30.0
    detect_timeout_s: float = 8.0

    # MediaPipe Tasks PoseLandmarker
    mediapipe_model_path: Path = Path("models/pose_landmarker_lite.task")
    mediapipe_model_url: str = (
        "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
        "pose_landmarker_lite/float16/1/pose_landmarker_lite.task"
    )
    min_detection_confidence: float = 0.5

    # Ultralytics YOLO pose
    yolo_weights: str = "yolov8n-pose.pt"

    synthetic_visibility_cap: float = 0.3


class ProportionConfig(BaseSettings):
    """Gender-independent empirical multipliers (documented approximations)."""

    waist_to_shoulder: float = 0.80
    chest_to_shoulder: float = 0.85
    sleeve_to_arm: float = 0.95
    pants_to_leg: float = 0.92
    neck_point_fraction: float = 0.80  # nose -> shoulder line
    chest_depth_to_shoulder_depth: float = 1.10
    arm_span_to_height: float = 1.10

    # Limb reference priors (fraction of stature) when a view cannot be calibrated
    shoulder_width_prior: float = 0.25
    hip_width_prior: float = 0.20
    knee_span_prior: float = 0.15

    calf_narrowing: float = 0.70  # calf is narrower than the knee-ankle offset
    calf_direct_ratio: float = 2.2


class ConfidenceConfig(BaseSettings):
    """Thresholds and decay multipliers for the confidence model."""

    high_threshold: int = 80
    medium_threshold: int = 60
    missing_visibility: float = 0.5

    # Decay factors for derived measurements
    decay_chest_width: float = 0.90
    decay_waist_width: float = 0.60
    decay_sleeve_length: float = 0.85
    decay_pants_length: float = 0.90
    decay_arm_span: float = 0.90
    decay_biceps: float = 0.70
    decay_thigh: float = 0.60
    decay_calf_from_thigh: float = 0.90
    calf_from_thigh_cap: float = 0.80
    calf_direct_base: float = 0.40

    # Circumference fusion
    dual_view: float = 0.80
    estimated_depth: float = 0.60


class CalibrationConfig(BaseSettings):
    """Metric reference parameters."""

    reference_bmi: float = 22.0
    default_image_width: int = 320
    default_image_height: int = 400


class SyncConfig(BaseSettings):
    """Remote measurement-sync endpoint."""

    enabled: bool = False
    url: str = "https://sbsm-api.onrender.com/measurement-sync"
    timeout_s: float = 5.0


class StorageConfig(BaseSettings):
    """File storage paths."""

    upload_dir: Path = Path("/tmp/anthropose/uploads")
    result_dir: Path = Path("/tmp/anthropose/results")
    max_upload_size_mb: int = 20


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(env_prefix="ANTHROPOSE_", env_nested_delimiter="__")

    app_name: str = "AnthroPose"
    version: str = "0.1.0"
    debug: bool = False
    api_key_header: str = "X-API-Key"
    cors_origins: list[str] = ["*"]

    backend: BackendConfig = Field(default_factory=BackendConfig)
    proportions: ProportionConfig = Field(default_factory=ProportionConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


config = AppConfig()
