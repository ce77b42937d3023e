"""
Pose-estimation backends with ordered fallback.

Three interchangeable backends are tried in configured order:

  Backend     │ Model                            │ Native output
  ────────────┼──────────────────────────────────┼─────────────────────────
  mediapipe   │ MediaPipe Tasks PoseLandmarker   │ 33 BlazePose landmarks
  yolo        │ Ultralytics YOLOv8-pose          │ 17 COCO keypoints
  synthetic   │ fixed skeleton (no model)        │ 33 landmarks, vis ≤ 0.3

The heavy libraries are imported inside ``load()`` so a missing runtime only
fails that candidate.  The synthetic backend has no requirements, so a
BackendManager always ends up with a structurally valid detector and only
confidence degrades.

BackendManager owns the single cached handle.  It is created once per
process (see ``anthropose.main``) and passed to every orchestrator;
concurrent callers await the same in-flight initialization.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import numpy as np
import requests

from anthropose.config import config
from anthropose.exceptions import (
    BackendUnavailable,
    DetectionTimeout,
    MeasurementError,
    NoLandmarksDetected,
)
from anthropose.core.landmarks import (
    COCO_KEYPOINTS,
    landmarks_from_array,
    landmarks_from_slots,
    remap_keypoints,
)
from anthropose.models.schemas import N_LANDMARKS, PoseLandmarks

logger = logging.getLogger(__name__)

bcfg = config.backend


class PoseBackend(Protocol):
    name: str

    def load(self) -> None:
        """Blocking setup (model download, session creation)."""

    def detect(self, image: np.ndarray) -> PoseLandmarks:
        """Return canonical landmarks for an RGB image or raise NoLandmarksDetected."""


# ── MediaPipe Tasks ────────────────────────────────────────────────────

class MediaPipeBackend:
    name = "mediapipe"

    def __init__(
        self,
        model_path: Path | None = None,
        model_url: str | None = None,
        min_detection_confidence: float | None = None,
    ):
        self.model_path = Path(model_path or bcfg.mediapipe_model_path)
        self.model_url = model_url or bcfg.mediapipe_model_url
        self.min_detection_confidence = (
            bcfg.min_detection_confidence if min_detection_confidence is None else min_detection_confidence
        )
        self._landmarker = None

    def _ensure_model(self) -> Path:
        if self.model_path.exists() and self.model_path.stat().st_size > 1024:
            return self.model_path

        logger.info("Downloading pose landmarker model to %s", self.model_path)
        self.model_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.model_path.with_suffix(self.model_path.suffix + ".tmp")
        with requests.get(self.model_url, stream=True, timeout=60) as response:
            response.raise_for_status()
            with tmp_path.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=1 << 16):
                    handle.write(chunk)
        tmp_path.replace(self.model_path)
        return self.model_path

    def load(self) -> None:
        from mediapipe.tasks.python.core.base_options import BaseOptions
        from mediapipe.tasks.python.vision import PoseLandmarker, PoseLandmarkerOptions, RunningMode

        options = PoseLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self._ensure_model())),
            running_mode=RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=self.min_detection_confidence,
        )
        self._landmarker = PoseLandmarker.create_from_options(options)

    def detect(self, image: np.ndarray) -> PoseLandmarks:
        import mediapipe as mp

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))
        result = self._landmarker.detect(mp_image)
        if not result.pose_landmarks:
            raise NoLandmarksDetected("MediaPipe found no pose")

        rows = []
        for lm in result.pose_landmarks[0]:
            visibility = lm.visibility if lm.visibility is not None else config.confidence.missing_visibility
            rows.append((lm.x, lm.y, lm.z, visibility))
        return landmarks_from_array(rows)


# ── Ultralytics YOLO pose ──────────────────────────────────────────────

class YoloPoseBackend:
    name = "yolo"

    def __init__(self, weights: str | None = None):
        self.weights = weights or bcfg.yolo_weights
        self._model = None

    def load(self) -> None:
        from ultralytics import YOLO

        self._model = YOLO(self.weights)

    def detect(self, image: np.ndarray) -> PoseLandmarks:
        # Ultralytics treats ndarray input as BGR
        results = self._model(np.ascontiguousarray(image[..., ::-1]), verbose=False)
        result = results[0]
        keypoints = result.keypoints
        if keypoints is None or len(keypoints) == 0:
            raise NoLandmarksDetected("YOLO found no pose")

        # Most confident person when several are in frame
        idx = 0
        if result.boxes is not None and len(result.boxes) > 1:
            idx = int(result.boxes.conf.argmax())

        xyn = keypoints.xyn[idx].cpu().numpy()
        if keypoints.conf is not None:
            scores = keypoints.conf[idx].cpu().numpy()
        else:
            scores = np.full(len(xyn), config.confidence.missing_visibility)

        return remap_keypoints(
            (name, float(x), float(y), float(s))
            for name, (x, y), s in zip(COCO_KEYPOINTS, xyn, scores)
        )


# ── Synthetic fallback ─────────────────────────────────────────────────

# Standing person facing the camera, normalized image coordinates
_SYNTHETIC_SKELETON: dict[int, tuple[float, float, float]] = {
    0: (0.50, 0.15, 0.8),   # nose
    11: (0.40, 0.30, 0.8),  # left shoulder
    12: (0.60, 0.30, 0.8),  # right shoulder
    13: (0.35, 0.45, 0.7),  # left elbow
    14: (0.65, 0.45, 0.7),  # right elbow
    15: (0.30, 0.60, 0.6),  # left wrist
    16: (0.70, 0.60, 0.6),  # right wrist
    23: (0.45, 0.55, 0.8),  # left hip
    24: (0.55, 0.55, 0.8),  # right hip
    25: (0.45, 0.75, 0.7),  # left knee
    26: (0.55, 0.75, 0.7),  # right knee
    27: (0.45, 0.95, 0.6),  # left ankle
    28: (0.55, 0.95, 0.6),  # right ankle
}


class SyntheticBackend:
    """Deterministic low-confidence skeleton; ignores image content."""

    name = "synthetic"

    def __init__(self, visibility_cap: float | None = None):
        self.visibility_cap = bcfg.synthetic_visibility_cap if visibility_cap is None else visibility_cap

    def load(self) -> None:
        logger.warning("Using synthetic pose fallback: measurements will carry low confidence")

    def detect(self, image: np.ndarray) -> PoseLandmarks:
        cap = self.visibility_cap
        slots = {i: (0.5, 0.5, 0.0, cap) for i in range(N_LANDMARKS)}
        for slot, (x, y, vis) in _SYNTHETIC_SKELETON.items():
            slots[slot] = (x, y, 0.0, min(vis, cap))
        return landmarks_from_slots(slots)


BACKEND_FACTORIES: dict[str, Callable[[], PoseBackend]] = {
    "mediapipe": MediaPipeBackend,
    "yolo": YoloPoseBackend,
    "synthetic": SyntheticBackend,
}


# ── Lifecycle ──────────────────────────────────────────────────────────

class BackendState(str, Enum):
    uninitialized = "uninitialized"
    initializing = "initializing"
    ready = "ready"
    failed = "failed"


@dataclass(frozen=True)
class BackendHandle:
    name: str
    backend: PoseBackend


class BackendManager:
    """
    Owns the process-wide pose backend.

    ``initialize()`` is idempotent: the first call walks the candidate list,
    later and concurrent calls get the cached handle (or the cached failure).
    """

    def __init__(
        self,
        candidates: Sequence[str] | None = None,
        factories: dict[str, Callable[[], PoseBackend]] | None = None,
        init_timeout_s: float | None = None,
        detect_timeout_s: float | None = None,
    ):
        self.candidates = list(candidates or bcfg.candidates)
        self.factories = dict(factories or BACKEND_FACTORIES)
        self.init_timeout_s = init_timeout_s or bcfg.init_timeout_s
        self.detect_timeout_s = detect_timeout_s or bcfg.detect_timeout_s

        self._state = BackendState.uninitialized
        self._handle: BackendHandle | None = None
        self._error: BackendUnavailable | None = None
        self._pending: asyncio.Future | None = None
        self._detect_lock = threading.Lock()

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def handle(self) -> BackendHandle | None:
        return self._handle

    async def initialize(self) -> BackendHandle:
        if self._handle is not None:
            return self._handle
        if self._error is not None:
            raise self._error

        if self._pending is None:
            self._state = BackendState.initializing
            self._pending = asyncio.ensure_future(self._initialize())
        return await asyncio.shield(self._pending)

    async def _initialize(self) -> BackendHandle:
        errors: list[str] = []
        try:
            for name in self.candidates:
                factory = self.factories.get(name)
                if factory is None:
                    logger.warning("Unknown pose backend '%s' skipped", name)
                    errors.append(f"{name}: unknown backend")
                    continue
                try:
                    backend = factory()
                    await asyncio.wait_for(asyncio.to_thread(backend.load), self.init_timeout_s)
                except asyncio.TimeoutError:
                    logger.warning("Pose backend '%s' timed out after %.0f s", name, self.init_timeout_s)
                    errors.append(f"{name}: init timeout")
                    continue
                except Exception as exc:
                    logger.warning("Pose backend '%s' failed to initialize: %s", name, exc)
                    errors.append(f"{name}: {exc}")
                    continue

                self._handle = BackendHandle(name=name, backend=backend)
                self._state = BackendState.ready
                logger.info("Pose backend ready: %s", name)
                return self._handle

            self._state = BackendState.failed
            self._error = BackendUnavailable("All pose backends failed: " + "; ".join(errors))
            raise self._error
        finally:
            self._pending = None

    def _locked_detect(self, backend: PoseBackend, image: np.ndarray, deadline: float):
        # Runs in a worker thread; a call abandoned by its caller keeps the
        # lock until the backend really returns.
        if not self._detect_lock.acquire(timeout=max(deadline - time.monotonic(), 0.0)):
            raise DetectionTimeout("pose backend busy with an earlier inference")
        try:
            if time.monotonic() >= deadline:
                raise DetectionTimeout("pose backend busy with an earlier inference")
            return backend.detect(image)
        finally:
            self._detect_lock.release()

    async def detect(self, image: np.ndarray) -> PoseLandmarks:
        """
        Run the cached backend on one image, bounded by the detect timeout.

        Inference is serialised: at most one ``backend.detect`` runs at a
        time, and waiting for the backend counts against the timeout.
        Unexpected backend errors surface as NoLandmarksDetected.
        """
        handle = await self.initialize()
        deadline = time.monotonic() + self.detect_timeout_s
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self._locked_detect, handle.backend, image, deadline),
                self.detect_timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise DetectionTimeout(
                f"{handle.name} inference exceeded {self.detect_timeout_s:g} s"
            ) from exc
        except MeasurementError:
            raise
        except Exception as exc:
            logger.warning("Pose backend '%s' crashed during inference: %r", handle.name, exc)
            raise NoLandmarksDetected(f"{handle.name} inference failed: {exc}") from exc

        if isinstance(result, PoseLandmarks):
            return result
        try:
            return landmarks_from_array(result)
        except ValueError as exc:
            raise NoLandmarksDetected(f"{handle.name} returned malformed landmarks: {exc}") from exc
