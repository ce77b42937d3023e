"""
Image decoding for captured photos.

Accepts what capture front-ends actually send:
  - raw encoded bytes (JPEG / PNG upload)
  - ``data:image/jpeg;base64,...`` URLs (webcam snapshots)
  - bare base64 strings
  - local file paths

Always returns an HxWx3 uint8 RGB array.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path

import cv2
import numpy as np

from anthropose.exceptions import ImageDecodeError

logger = logging.getLogger(__name__)


def _is_file(src: str) -> bool:
    # Long base64 payloads can exceed the OS name limit
    try:
        return Path(src).is_file()
    except (OSError, ValueError):
        return False


def _source_bytes(src: str | bytes | Path) -> bytes:
    if isinstance(src, (bytes, bytearray)):
        return bytes(src)
    if isinstance(src, Path):
        try:
            return src.read_bytes()
        except OSError as exc:
            raise ImageDecodeError(f"cannot read {src}: {exc}") from exc

    if src.startswith("data:"):
        _, _, payload = src.partition(",")
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ImageDecodeError("malformed data URL") from exc

    if len(src) < 4096 and _is_file(src):
        return Path(src).read_bytes()

    try:
        return base64.b64decode(src, validate=True)
    except binascii.Error as exc:
        raise ImageDecodeError("source is neither a file path nor base64 image data") from exc


def decode_image(src: str | bytes | Path) -> np.ndarray:
    """Decode an encoded image into an RGB array."""
    data = _source_bytes(src)
    if not data:
        raise ImageDecodeError("empty image data")

    bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if bgr is None:
        raise ImageDecodeError("unsupported or corrupt image encoding")

    logger.debug("Decoded image %dx%d", bgr.shape[1], bgr.shape[0])
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


async def load_image(src: str | bytes | Path) -> np.ndarray:
    return await asyncio.to_thread(decode_image, src)
