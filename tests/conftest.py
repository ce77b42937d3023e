"""
Shared test fixtures.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from anthropose.config import config
from anthropose.core.orchestrator import capture_view
from anthropose.models.schemas import UserProfile, ViewId
from scripts.synthetic_pose import PoseScene, generate_views


@pytest.fixture
def scene() -> PoseScene:
    """Reference 320×400 frame with the person spanning nose 0.1 → ankles 0.95."""
    return PoseScene()


@pytest.fixture
def profile() -> UserProfile:
    """175 cm / 70 kg male, BMI 22.9."""
    return UserProfile(height_cm=175, weight_kg=70, gender="male")


@pytest.fixture
def female_profile() -> UserProfile:
    return UserProfile(height_cm=165, weight_kg=60, gender="female")


@pytest.fixture
def views(scene):
    """All five captured views of the synthetic scene."""
    return {
        view_id: capture_view(view_id, lm, backend="synthetic")
        for view_id, lm in generate_views(scene).items()
    }


@pytest.fixture
def front_only(views):
    return {ViewId.front: views[ViewId.front]}


@pytest.fixture(autouse=True)
def tmp_storage(tmp_path, monkeypatch):
    """Redirect uploads and stored results into the test's temp dir."""
    monkeypatch.setattr(config.storage, "upload_dir", tmp_path / "uploads")
    monkeypatch.setattr(config.storage, "result_dir", tmp_path / "results")
    return tmp_path
