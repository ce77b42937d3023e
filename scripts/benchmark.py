#!/usr/bin/env python3
"""
End-to-end benchmark: synthetic views → extract → fuse → compare.

Runs the measurement pipeline on synthetic landmark sets with known pixel
geometry, for several statures, and reports the error of the direct front
measurements plus the circumferences each profile produces.

Usage:
    python scripts/benchmark.py
"""

from __future__ import annotations

import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import numpy as np

from scripts.synthetic_pose import PoseScene, generate_views, ground_truth
from anthropose.core.orchestrator import capture_view, compute_measurements
from anthropose.models.schemas import UserProfile

PROFILES = [
    UserProfile(height_cm=160, weight_kg=55, gender="female"),
    UserProfile(height_cm=175, weight_kg=70, gender="male"),
    UserProfile(height_cm=188, weight_kg=95, gender="male"),
]


def main():
    print("=" * 70)
    print("AnthroPose Benchmark")
    print("=" * 70)

    scene = PoseScene()
    views = {
        view_id: capture_view(view_id, lm, backend="synthetic")
        for view_id, lm in generate_views(scene).items()
    }

    errors = []
    for profile in PROFILES:
        print(f"\n[{profile.gender.value}, {profile.height_cm:.0f} cm, BMI {profile.bmi}]")

        t0 = time.perf_counter()
        measurements = compute_measurements(views, profile)
        elapsed = time.perf_counter() - t0

        print("-" * 70)
        print(f"{'Measurement':<26} {'Predicted':>10} {'Truth':>10} {'Error':>10} {'Conf':>8}")
        print("-" * 70)
        truth = ground_truth(scene, profile.height_cm)
        for name, m in measurements.items():
            gt = truth.get(name)
            if gt is None:
                print(f"{name:<26} {m.value:>10.1f} {'':>10} {'':>10} {m.confidence_percentage:>7d}%")
                continue
            err = m.value - gt
            errors.append(abs(err))
            print(f"{name:<26} {m.value:>10.1f} {gt:>10.1f} {err:>+10.2f} {m.confidence_percentage:>7d}%")
        print(f"    Pipeline time: {elapsed * 1000:.1f} ms")

    mae = np.mean(errors)
    print(f"\n    MAE (direct): {mae:.3f} cm")
    print(f"    Rounding bound 0.05 cm: {'PASS' if mae <= 0.05 else 'FAIL'}")
    print("\n" + "=" * 70)


if __name__ == "__main__":
    main()
