"""
API key authentication dependency.

Keys come from the ANTHROPOSE_API_KEYS environment variable (comma
separated).  With no keys configured the gate is open, which is the
development default.
"""

from __future__ import annotations

import os
import secrets
from typing import Annotated

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from anthropose.config import config

_api_key_header = APIKeyHeader(name=config.api_key_header, auto_error=False)


def load_keys() -> set[str]:
    raw = os.environ.get("ANTHROPOSE_API_KEYS", "")
    return {k.strip() for k in raw.split(",") if k.strip()}


async def require_api_key(
    api_key: Annotated[str | None, Security(_api_key_header)],
) -> str:
    """Dependency: reject requests without a valid API key."""
    valid_keys = load_keys()
    if not valid_keys:
        return "dev"

    if api_key is None or not any(secrets.compare_digest(api_key, k) for k in valid_keys):
        raise HTTPException(401, "Invalid or missing API key")
    return api_key
