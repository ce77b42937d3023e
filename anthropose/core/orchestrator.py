"""
Measurement orchestrator.

Drives one processing run:

    idle → initializing → ready → processing → completed
                        ↘ error              ↘ failed

  1. Initialize (or reuse) the pose backend.
  2. For each captured view, strictly one after another: decode the image,
     run pose detection with a timeout, wrap the landmarks in a CapturedView.
  3. Run the matching extractor for every view that produced landmarks.
  4. Fuse front widths and side depths into circumferences.

A view that fails (undecodable image, no pose, missing landmarks, timeout)
is recorded in ``view_failures`` and skipped.  The run fails only when no
view produced landmarks; otherwise it completes with whatever fields the
surviving views support.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

import numpy as np

from anthropose.adapters.image_loader import load_image
from anthropose.config import config
from anthropose.core.backends import BackendManager
from anthropose.exceptions import (
    AllViewsFailed,
    ImageDecodeError,
    InsufficientLandmarks,
    MeasurementError,
)
from anthropose.core.extractors import EXTRACTORS, optional_scale
from anthropose.core.fusion import fuse_circumferences
from anthropose.core.landmarks import landmarks_from_array
from anthropose.core.profile import ensure_profile
from anthropose.models.schemas import (
    CapturedView,
    MeasurementReport,
    MeasurementResult,
    PoseLandmarks,
    RunStatus,
    UserProfile,
    ViewId,
)

logger = logging.getLogger(__name__)

# Processing order; also the merge order of the result map
VIEW_ORDER: tuple[ViewId, ...] = (
    ViewId.front,
    ViewId.side,
    ViewId.back,
    ViewId.arms_extended,
    ViewId.legs_apart,
)

ImageLoader = Callable[[Any], Awaitable[np.ndarray]]


class EngineState(str, Enum):
    idle = "idle"
    initializing = "initializing"
    ready = "ready"
    error = "error"
    processing = "processing"
    completed = "completed"
    failed = "failed"


def capture_view(
    view_id: ViewId | str,
    landmarks: PoseLandmarks | np.ndarray,
    image: np.ndarray | None = None,
    backend: str = "external",
) -> CapturedView:
    """
    Wrap landmarks as a CapturedView.

    Without an image the configured default frame size is assumed.
    """
    if not isinstance(landmarks, PoseLandmarks):
        landmarks = landmarks_from_array(landmarks)
    if image is not None:
        height, width = image.shape[:2]
    else:
        width = config.calibration.default_image_width
        height = config.calibration.default_image_height
    return CapturedView(
        view_id=ViewId(view_id),
        landmarks=landmarks,
        image_width=int(width),
        image_height=int(height),
        backend=backend,
    )


def compute_measurements(
    views: Mapping[ViewId, CapturedView],
    profile: UserProfile,
    failures: dict[str, str] | None = None,
) -> dict[str, MeasurementResult]:
    """
    Extract and fuse measurements for already-detected views.

    Views whose landmarks cannot support their extractor are recorded in
    ``failures`` and contribute nothing.
    """
    failures = failures if failures is not None else {}
    measurements: dict[str, MeasurementResult] = {}
    front: dict[str, MeasurementResult] | None = None
    depths: dict[str, MeasurementResult] | None = None

    for view_id in VIEW_ORDER:
        view = views.get(view_id)
        if view is None:
            continue
        try:
            extracted = EXTRACTORS[view_id](view, profile)
        except InsufficientLandmarks as exc:
            logger.warning("View %s skipped: %s", view_id.value, exc)
            failures[view_id.value] = f"{type(exc).__name__}: {exc}"
            continue

        if view_id is ViewId.side:
            depths = extracted
            continue
        if view_id is ViewId.front:
            front = extracted
        measurements.update(extracted)

    if front is not None and depths is not None:
        side_scale = optional_scale(views[ViewId.side], profile)
        measurements.update(fuse_circumferences(front, depths, side_scale, profile))

    return measurements


class MeasurementOrchestrator:
    """Runs the detection + measurement pipeline over a set of captured views."""

    def __init__(self, backends: BackendManager, loader: ImageLoader | None = None):
        self.backends = backends
        self.loader = loader or load_image
        self.state = EngineState.idle
        self.history: list[EngineState] = [EngineState.idle]

    def _transition(self, state: EngineState) -> None:
        logger.debug("Orchestrator %s → %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def _capture(self, view_id: ViewId, src: Any, backend_name: str) -> CapturedView:
        image = src if isinstance(src, np.ndarray) else await self.loader(src)
        if image.ndim != 3 or image.shape[2] != 3 or image.shape[0] == 0 or image.shape[1] == 0:
            raise ImageDecodeError(f"expected an HxWx3 image, got shape {image.shape}")
        landmarks = await self.backends.detect(image)
        return capture_view(view_id, landmarks, image, backend=backend_name)

    async def run(
        self,
        images: Mapping[ViewId | str, Any],
        profile: UserProfile | Mapping[str, Any],
    ) -> MeasurementReport:
        """
        Process one set of captured photos.

        ``images`` maps view ids to decoded RGB arrays or to anything the
        loader accepts (bytes, data URL, path).  Raises InvalidUserProfile
        before any work, and BackendUnavailable only if even the synthetic
        backend could not start.
        """
        profile = ensure_profile(profile)
        sources = {ViewId(k): v for k, v in images.items()}

        self.history = [EngineState.idle]
        self.state = EngineState.idle
        self._transition(EngineState.initializing)
        try:
            handle = await self.backends.initialize()
        except MeasurementError:
            self._transition(EngineState.error)
            raise
        self._transition(EngineState.ready)
        self._transition(EngineState.processing)

        captured: dict[ViewId, CapturedView] = {}
        failures: dict[str, str] = {}
        for view_id in VIEW_ORDER:
            if view_id not in sources:
                continue
            try:
                captured[view_id] = await self._capture(view_id, sources[view_id], handle.name)
            except MeasurementError as exc:
                logger.warning("View %s failed: %s: %s", view_id.value, type(exc).__name__, exc)
                failures[view_id.value] = f"{type(exc).__name__}: {exc}"

        if not captured:
            self._transition(EngineState.failed)
            error = AllViewsFailed(failures)
            logger.warning("Run failed: no usable views (%d attempted)", len(sources))
            return MeasurementReport(
                status=RunStatus.failed,
                user_profile=profile,
                view_failures=failures,
                backend=handle.name,
                error=error.to_error(),
            )

        measurements = compute_measurements(captured, profile, failures)
        self._transition(EngineState.completed)
        logger.info(
            "Run completed: %d views, %d measurements, %d failures",
            len(captured), len(measurements), len(failures),
        )
        return MeasurementReport(
            status=RunStatus.completed,
            measurements=measurements,
            user_profile=profile,
            views_processed=list(captured),
            view_failures=failures,
            backend=handle.name,
        )
