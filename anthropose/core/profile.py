"""
User profile validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from anthropose.exceptions import InvalidUserProfile
from anthropose.models.schemas import UserProfile


def build_profile(
    height_cm: float | None,
    weight_kg: float | None,
    gender: str | None,
    age: int | None = None,
) -> UserProfile:
    """Validate raw profile fields; rejected before any processing starts."""
    missing = [
        name for name, value in (("height", height_cm), ("weight", weight_kg), ("gender", gender))
        if value in (None, "")
    ]
    if missing:
        raise InvalidUserProfile(f"missing profile field(s): {', '.join(missing)}")

    try:
        return UserProfile(height_cm=height_cm, weight_kg=weight_kg, gender=gender, age=age)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidUserProfile(problems) from exc


def ensure_profile(profile: UserProfile | Mapping[str, Any]) -> UserProfile:
    if isinstance(profile, UserProfile):
        return profile
    return build_profile(
        profile.get("height_cm"),
        profile.get("weight_kg"),
        profile.get("gender"),
        profile.get("age"),
    )
