"""
Measurement endpoints.

POST takes one photo per captured view plus the user profile as multipart
form data, runs the full detection + measurement pipeline and returns the
report with per-field explanations.  GET returns a stored run.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile

from anthropose.adapters.sync_client import MeasurementSyncClient
from anthropose.api.middleware.auth import require_api_key
from anthropose.config import config
from anthropose.core.explanations import explain_all
from anthropose.core.orchestrator import MeasurementOrchestrator
from anthropose.core.profile import build_profile
from anthropose.exceptions import BackendUnavailable, InvalidUserProfile
from anthropose.models.schemas import (
    ErrorResponse,
    MeasurementResponse,
    RunStatus,
    ViewId,
)
from anthropose.storage.result_store import load_result, save_result, save_upload

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_api_key)])


async def _read_upload(view_id: ViewId, upload: UploadFile) -> bytes:
    content = await upload.read()
    max_bytes = config.storage.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            413,
            f"Photo for view '{view_id.value}' too large ({len(content)} bytes). Max: {max_bytes} bytes.",
        )
    if not content:
        raise HTTPException(400, f"Photo for view '{view_id.value}' is empty")
    return content


@router.post(
    "",
    response_model=MeasurementResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"description": "No view produced usable landmarks"},
        503: {"model": ErrorResponse},
    },
)
async def create_measurements(
    request: Request,
    background_tasks: BackgroundTasks,
    height_cm: float | None = Form(None),
    weight_kg: float | None = Form(None),
    gender: str | None = Form(None),
    age: int | None = Form(None),
    front: UploadFile | None = File(None),
    side: UploadFile | None = File(None),
    back: UploadFile | None = File(None),
    arms_extended: UploadFile | None = File(None),
    legs_apart: UploadFile | None = File(None),
):
    """Measure a user from one or more captured photos."""

    try:
        profile = build_profile(height_cm, weight_kg, gender, age)
    except InvalidUserProfile as exc:
        raise HTTPException(400, f"Invalid user profile: {exc}") from exc

    uploads = {
        ViewId.front: front,
        ViewId.side: side,
        ViewId.back: back,
        ViewId.arms_extended: arms_extended,
        ViewId.legs_apart: legs_apart,
    }
    images = {
        view_id: await _read_upload(view_id, upload)
        for view_id, upload in uploads.items()
        if upload is not None
    }
    if not images:
        raise HTTPException(400, "At least one view photo is required")

    run_id = uuid.uuid4().hex[:16]
    for view_id, content in images.items():
        save_upload(run_id, view_id.value, content)

    t0 = time.perf_counter()
    orchestrator = MeasurementOrchestrator(request.app.state.backends)
    try:
        report = await orchestrator.run(images, profile)
    except BackendUnavailable as exc:
        logger.exception("No pose backend available for run %s", run_id)
        raise HTTPException(503, f"Pose detection unavailable: {exc}") from exc
    elapsed = time.perf_counter() - t0

    response = MeasurementResponse(
        run_id=run_id,
        report=report,
        explanations=explain_all(report.measurements),
        processing_time_s=round(elapsed, 3),
    )
    save_result(run_id, response.model_dump(mode="json", by_alias=True))

    if report.status is RunStatus.failed:
        logger.warning("Run %s failed: %s", run_id, report.view_failures)
        raise HTTPException(422, report.error.model_dump())

    if config.sync.enabled:
        background_tasks.add_task(MeasurementSyncClient().push_all, profile, report.measurements)

    logger.info("Measurements complete for %s in %.2f s", run_id, elapsed)
    return response


@router.get(
    "/{run_id}",
    response_model=MeasurementResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_measurements(run_id: str):
    """Return a stored measurement run."""
    data = load_result(run_id)
    if data is None:
        raise HTTPException(404, f"Run '{run_id}' not found")
    return MeasurementResponse.model_validate(data)
