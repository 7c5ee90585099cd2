"""Read pixel dimensions from photo bytes."""

from __future__ import annotations

import asyncio
import io

from PIL import Image, UnidentifiedImageError


class ImageProbeError(Exception):
    """Bytes could not be decoded as an image."""


def read_dimensions(data: bytes) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageProbeError("Failed to load image") from exc
    return int(width), int(height)


async def probe_dimensions(data: bytes) -> tuple[int, int]:
    """Decode headers off the event loop."""
    return await asyncio.to_thread(read_dimensions, data)


__all__ = ["ImageProbeError", "probe_dimensions", "read_dimensions"]
