"""
AnthroPose FastAPI application.

Endpoints:
  POST /api/v1/measurements            — measure from captured view photos
  GET  /api/v1/measurements/{run_id}   — fetch a stored run
  GET  /health                         — health check with pose backend state
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from anthropose.config import config
from anthropose.api.routes import measurements
from anthropose.core.backends import BackendManager
from anthropose.exceptions import BackendUnavailable
from anthropose.models.schemas import HealthResponse

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.storage.upload_dir.mkdir(parents=True, exist_ok=True)
    config.storage.result_dir.mkdir(parents=True, exist_ok=True)
    try:
        await app.state.backends.initialize()
    except BackendUnavailable:
        logger.exception("Pose backend initialization failed")
    logger.info("AnthroPose %s started", config.version)
    yield


app = FastAPI(
    title=config.app_name,
    version=config.version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# One backend manager per process, shared by every request
app.state.backends = BackendManager()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Route registration ─────────────────────────────────────────────────

app.include_router(measurements.router, prefix="/api/v1/measurements", tags=["measurements"])


@app.get("/health", response_model=HealthResponse)
async def health():
    backends: BackendManager = app.state.backends
    handle = backends.handle
    return HealthResponse(
        status="ok",
        version=config.version,
        backend_state=backends.state.value,
        backend=handle.name if handle else None,
    )
