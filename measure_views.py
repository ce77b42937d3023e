#!/usr/bin/env python3

import argparse
import asyncio
import json
import sys

from anthropose.core.backends import BackendManager
from anthropose.core.explanations import explain_all
from anthropose.core.orchestrator import MeasurementOrchestrator
from anthropose.exceptions import MeasurementError
from anthropose.models.schemas import RunStatus, ViewId


def _parse_view(arg: str) -> tuple[str, str]:
    view, sep, path = arg.partition("=")
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected VIEW=PATH, got '{arg}'")
    try:
        ViewId(view)
    except ValueError:
        valid = ", ".join(v.value for v in ViewId)
        raise argparse.ArgumentTypeError(f"unknown view '{view}' (valid: {valid})") from None
    return view, path


def measure_views(images: dict[str, str], profile: dict, backends: list[str] | None = None) -> dict:
    orchestrator = MeasurementOrchestrator(BackendManager(candidates=backends))
    report = asyncio.run(orchestrator.run(images, profile))
    result = report.model_dump(mode="json", by_alias=True)
    result["explanations"] = explain_all(report.measurements)
    return result


def main():
    parser = argparse.ArgumentParser(description="Body measurements from captured view photos")
    parser.add_argument("--height", type=float, required=True, help="height in cm")
    parser.add_argument("--weight", type=float, required=True, help="weight in kg")
    parser.add_argument("--gender", choices=["male", "female"], required=True)
    parser.add_argument("--age", type=int, default=None)
    parser.add_argument(
        "--backend", action="append", dest="backends",
        help="pose backend to try, in order (repeatable); defaults to the configured list",
    )
    parser.add_argument("views", nargs="+", type=_parse_view, metavar="VIEW=PATH")
    args = parser.parse_args()

    profile = {"height_cm": args.height, "weight_kg": args.weight, "gender": args.gender, "age": args.age}
    try:
        result = measure_views(dict(args.views), profile, args.backends)
    except MeasurementError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))
    if result["status"] == RunStatus.failed.value:
        sys.exit(1)


if __name__ == "__main__":
    main()
