"""
Remote measurement sync.

Pushes one ``{user_profile, measurement}`` payload per measurement to the
configured endpoint.  Fire-and-forget: a failed push is logged and reported
as False, it never affects the measurement result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

import requests

from anthropose.config import config
from anthropose.models.schemas import MeasurementResult, UserProfile

logger = logging.getLogger(__name__)

scfg = config.sync


def build_payload(
    profile: UserProfile,
    name: str,
    result: MeasurementResult,
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    return {
        "user_profile": {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "user_id": f"{profile.height_cm:g}-{profile.weight_kg:g}",
            "user_height": profile.height_cm,
            "user_weight": profile.weight_kg,
        },
        "measurement": {
            "type": name,
            "value": result.value,
            "confidence_score": result.confidence_score,
            "confidence_percentage": result.confidence_percentage,
            "confidence_label": result.confidence_label.value,
            "source": result.source,
            "method": result.method or result.source,
            "unit": result.unit,
        },
    }


class MeasurementSyncClient:
    """Blocking client; the API runs it as a background task."""

    def __init__(
        self,
        url: str | None = None,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
    ):
        self.url = url or scfg.url
        self.timeout_s = timeout_s or scfg.timeout_s
        self.session = session or requests.Session()

    def push(self, profile: UserProfile, name: str, result: MeasurementResult) -> bool:
        payload = build_payload(profile, name, result)
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout_s)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning("Measurement sync failed for %s: %s", name, exc)
            return False
        return True

    def push_all(self, profile: UserProfile, measurements: Mapping[str, MeasurementResult]) -> int:
        """Push every measurement; returns how many were accepted."""
        accepted = sum(self.push(profile, name, result) for name, result in measurements.items())
        logger.info("Synced %d/%d measurements", accepted, len(measurements))
        return accepted
