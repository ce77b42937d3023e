"""Tests for pose backend fallback and lifecycle."""

import asyncio
import threading
import time

import numpy as np
import pytest

from anthropose.core.backends import BackendManager, BackendState, SyntheticBackend
from anthropose.core.landmarks import LEFT_SHOULDER
from anthropose.exceptions import BackendUnavailable, DetectionTimeout, NoLandmarksDetected
from anthropose.models.schemas import N_LANDMARKS, PoseLandmarks
from scripts.synthetic_pose import front_landmarks, to_array

IMAGE = np.zeros((400, 320, 3), dtype=np.uint8)


class BrokenBackend:
    name = "broken"

    def load(self):
        raise RuntimeError("runtime not installed")

    def detect(self, image):
        raise AssertionError("never loaded")


class CountingBackend:
    """Records how many times it was loaded; returns the reference front pose."""

    name = "counting"
    loads = 0

    def __init__(self, load_delay=0.0, detect_delay=0.0, raw=False):
        self.load_delay = load_delay
        self.detect_delay = detect_delay
        self.raw = raw

    def load(self):
        type(self).loads += 1
        time.sleep(self.load_delay)

    def detect(self, image):
        time.sleep(self.detect_delay)
        lm = front_landmarks()
        return to_array(lm) if self.raw else lm


class BlindBackend(CountingBackend):
    name = "blind"

    def detect(self, image):
        raise NoLandmarksDetected("nobody in frame")


class CrashingBackend(CountingBackend):
    name = "crashing"

    def detect(self, image):
        raise RuntimeError("inference crashed")


class ShortArrayBackend(CountingBackend):
    name = "short"

    def detect(self, image):
        return np.zeros((17, 3))


class OverlapBackend(CountingBackend):
    """Tracks how many detect calls are inside the backend at once."""

    name = "overlap"

    def __init__(self, delays):
        super().__init__()
        self.delays = list(delays)
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def detect(self, image):
        with self._guard:
            delay = self.delays[self.calls]
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(delay)
            return front_landmarks()
        finally:
            with self._guard:
                self.active -= 1


@pytest.fixture(autouse=True)
def reset_counts():
    CountingBackend.loads = 0


def _manager(candidates, **factories):
    defaults = {"broken": BrokenBackend, "synthetic": SyntheticBackend, "counting": CountingBackend}
    defaults.update(factories)
    return BackendManager(candidates=candidates, factories=defaults)


class TestFallback:

    def test_first_working_candidate_wins(self):
        mgr = _manager(["broken", "counting", "synthetic"])
        handle = asyncio.run(mgr.initialize())
        assert handle.name == "counting"
        assert mgr.state is BackendState.ready

    def test_falls_back_to_synthetic(self):
        mgr = _manager(["broken", "synthetic"])
        handle = asyncio.run(mgr.initialize())
        assert handle.name == "synthetic"

    def test_unknown_candidate_skipped(self):
        mgr = _manager(["openpose", "synthetic"])
        assert asyncio.run(mgr.initialize()).name == "synthetic"

    def test_all_fail(self):
        mgr = _manager(["broken"])
        with pytest.raises(BackendUnavailable):
            asyncio.run(mgr.initialize())
        assert mgr.state is BackendState.failed
        # Failure is cached, not retried
        with pytest.raises(BackendUnavailable):
            asyncio.run(mgr.initialize())

    def test_init_timeout_moves_on(self):
        mgr = BackendManager(
            candidates=["slow", "synthetic"],
            factories={"slow": lambda: CountingBackend(load_delay=0.5), "synthetic": SyntheticBackend},
            init_timeout_s=0.05,
        )
        assert asyncio.run(mgr.initialize()).name == "synthetic"


class TestLifecycle:

    def test_starts_uninitialized(self):
        mgr = _manager(["synthetic"])
        assert mgr.state is BackendState.uninitialized
        assert mgr.handle is None

    def test_idempotent(self):
        mgr = _manager(["counting"])

        async def twice():
            a = await mgr.initialize()
            b = await mgr.initialize()
            return a, b

        a, b = asyncio.run(twice())
        assert a is b
        assert CountingBackend.loads == 1

    def test_concurrent_callers_share_initialization(self):
        mgr = BackendManager(
            candidates=["counting"],
            factories={"counting": lambda: CountingBackend(load_delay=0.05)},
        )

        async def many():
            return await asyncio.gather(*(mgr.initialize() for _ in range(5)))

        handles = asyncio.run(many())
        assert all(h is handles[0] for h in handles)
        assert CountingBackend.loads == 1


class TestDetect:

    def test_returns_canonical_landmarks(self):
        mgr = _manager(["counting"])
        lm = asyncio.run(mgr.detect(IMAGE))
        assert isinstance(lm, PoseLandmarks)
        assert lm[LEFT_SHOULDER].x == pytest.approx(0.35)

    def test_raw_array_output_validated(self):
        mgr = BackendManager(candidates=["raw"], factories={"raw": lambda: CountingBackend(raw=True)})
        lm = asyncio.run(mgr.detect(IMAGE))
        assert len(lm) == N_LANDMARKS

    def test_detect_timeout(self):
        mgr = BackendManager(
            candidates=["slow"],
            factories={"slow": lambda: CountingBackend(detect_delay=0.5)},
            detect_timeout_s=0.05,
        )
        with pytest.raises(DetectionTimeout):
            asyncio.run(mgr.detect(IMAGE))

    def test_no_pose_propagates(self):
        mgr = BackendManager(candidates=["blind"], factories={"blind": BlindBackend})
        with pytest.raises(NoLandmarksDetected):
            asyncio.run(mgr.detect(IMAGE))

    def test_timeout_message_keeps_fraction(self):
        mgr = BackendManager(
            candidates=["slow"],
            factories={"slow": lambda: CountingBackend(detect_delay=0.3)},
            detect_timeout_s=0.05,
        )
        with pytest.raises(DetectionTimeout, match="0.05 s"):
            asyncio.run(mgr.detect(IMAGE))

    def test_backend_crash_becomes_no_landmarks(self):
        mgr = BackendManager(candidates=["crashing"], factories={"crashing": CrashingBackend})
        with pytest.raises(NoLandmarksDetected, match="inference crashed"):
            asyncio.run(mgr.detect(IMAGE))

    def test_malformed_output_becomes_no_landmarks(self):
        mgr = BackendManager(candidates=["short"], factories={"short": ShortArrayBackend})
        with pytest.raises(NoLandmarksDetected):
            asyncio.run(mgr.detect(IMAGE))


class TestSerializedInference:

    def test_timed_out_call_blocks_next_until_it_returns(self):
        backend = OverlapBackend(delays=[0.5, 0.0])
        mgr = BackendManager(
            candidates=["overlap"], factories={"overlap": lambda: backend}, detect_timeout_s=0.4,
        )

        async def two_views():
            with pytest.raises(DetectionTimeout):
                await mgr.detect(IMAGE)
            return await mgr.detect(IMAGE)

        lm = asyncio.run(two_views())
        assert isinstance(lm, PoseLandmarks)
        assert backend.calls == 2
        assert backend.max_active == 1

    def test_busy_backend_times_out_waiting(self):
        backend = OverlapBackend(delays=[0.6, 0.0])
        mgr = BackendManager(
            candidates=["overlap"], factories={"overlap": lambda: backend}, detect_timeout_s=0.1,
        )

        async def two_views():
            for _ in range(2):
                with pytest.raises(DetectionTimeout):
                    await mgr.detect(IMAGE)

        asyncio.run(two_views())
        assert backend.max_active == 1

    def test_concurrent_requests_do_not_overlap(self):
        backend = OverlapBackend(delays=[0.05] * 4)
        mgr = BackendManager(
            candidates=["overlap"], factories={"overlap": lambda: backend}, detect_timeout_s=5,
        )

        async def many():
            return await asyncio.gather(*(mgr.detect(IMAGE) for _ in range(4)))

        assert len(asyncio.run(many())) == 4
        assert backend.max_active == 1


class TestSynthetic:

    def test_visibility_capped(self):
        lm = SyntheticBackend().detect(IMAGE)
        assert len(lm) == N_LANDMARKS
        assert max(p.visibility for p in lm) <= 0.3

    def test_deterministic(self):
        assert SyntheticBackend().detect(IMAGE) == SyntheticBackend().detect(np.ones_like(IMAGE))

    def test_custom_cap(self):
        lm = SyntheticBackend(visibility_cap=0.1).detect(IMAGE)
        assert max(p.visibility for p in lm) == pytest.approx(0.1)
