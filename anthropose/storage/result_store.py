"""
Local filesystem storage for captured photos and measurement runs.

In production, replace with object storage.  The interface is kept
minimal so swapping storage backends is straightforward.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from anthropose.config import config

logger = logging.getLogger(__name__)

_RUN_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _check_run_id(run_id: str) -> str:
    # Run ids become path components
    if not _RUN_ID.match(run_id):
        raise ValueError(f"invalid run id: {run_id!r}")
    return run_id


def save_upload(run_id: str, view_id: str, content: bytes) -> Path:
    """Persist one captured photo.  Returns the saved path."""
    d = config.storage.upload_dir / _check_run_id(run_id)
    d.mkdir(parents=True, exist_ok=True)
    dest = d / f"{view_id}.img"
    dest.write_bytes(content)
    logger.info("Saved upload: %s (%d bytes)", dest, len(content))
    return dest


def save_result(run_id: str, data: dict) -> Path:
    """Persist a measurement run as JSON."""
    dest = config.storage.result_dir / f"{_check_run_id(run_id)}.json"
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(json.dumps(data, indent=2, default=str))
    return dest


def load_result(run_id: str) -> dict | None:
    """Load a stored measurement run, or None if not found."""
    try:
        path = config.storage.result_dir / f"{_check_run_id(run_id)}.json"
    except ValueError:
        return None
    if not path.exists():
        return None
    return json.loads(path.read_text())
