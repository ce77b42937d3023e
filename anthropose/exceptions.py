"""
Measurement engine errors.

Per-view errors (NoLandmarksDetected, InsufficientLandmarks, DetectionTimeout)
are recovered inside the orchestrator by skipping the view.  Only
AllViewsFailed and InvalidUserProfile reach callers, and BackendUnavailable
only if the synthetic fallback itself fails.
"""

from __future__ import annotations

from anthropose.models.schemas import ProcessingError


class MeasurementError(Exception):
    """
    Base class for measurement engine errors.

    Callers (API layer, CLI, tests) can catch this single umbrella type.
    """


class BackendUnavailable(MeasurementError):
    """Every pose backend candidate failed to initialize, synthetic included."""


class NoLandmarksDetected(MeasurementError):
    """
    The backend returned no pose for an image.

    Typical causes:
      - Person out of frame or partly cropped
      - Very dark or low-contrast photo
    """


class InsufficientLandmarks(MeasurementError):
    """
    A pose was found but the landmarks a view needs are missing.

    Typically both ankles are out of frame, so the head-to-ankle span
    used for calibration is undefined.
    """


class DetectionTimeout(MeasurementError):
    """Pose inference for one view exceeded the configured timeout."""


class InvalidUserProfile(MeasurementError):
    """Height, weight or gender missing or out of range."""


DEFAULT_SUGGESTIONS = [
    "Ensure your full body is visible from head to feet in every photo",
    "Check lighting and contrast: stand in front of a plain, well-lit background",
    "Wear fitted clothing so joints are clearly visible",
    "Keep the camera at chest height and hold the phone still",
]


class AllViewsFailed(MeasurementError):
    """No captured view produced usable landmarks."""

    def __init__(self, failures: dict[str, str] | None = None, suggestions: list[str] | None = None):
        self.failures = dict(failures or {})
        self.suggestions = list(suggestions or DEFAULT_SUGGESTIONS)
        super().__init__("No pose landmarks detected in any photos.")

    def to_error(self) -> ProcessingError:
        details = "; ".join(f"{view}: {reason}" for view, reason in self.failures.items())
        return ProcessingError(
            message=str(self),
            suggestions=self.suggestions,
            error_message=details or None,
        )


class ImageDecodeError(MeasurementError):
    """A captured photo could not be decoded into an RGB image."""
