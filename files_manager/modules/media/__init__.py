"""
Media Module - Black Box Interface

Purpose: Produce resized raster copies of stored images
Interface: resize(path, width) -> bytes
Hidden: Imaging library, resampling, encoding

Replaceable with any implementation of the RasterResizer protocol.
"""

import asyncio
import io
from typing import Protocol

from PIL import Image


class RasterResizer(Protocol):
    """Protocol for thumbnail producers."""

    async def resize(self, path: str, width: int) -> bytes:
        """Return the image at path scaled to width, aspect ratio kept."""
        ...


class PillowResizer:
    """Resizes images with Pillow in a worker thread."""

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS):
        self.resample = resample

    def _resize_sync(self, path: str, width: int) -> bytes:
        with Image.open(path) as img:
            fmt = img.format or "PNG"
            height = max(1, round(img.height * width / img.width))
            resized = img.resize((width, height), self.resample)
            buffer = io.BytesIO()
            resized.save(buffer, format=fmt)
            return buffer.getvalue()

    async def resize(self, path: str, width: int) -> bytes:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        return await asyncio.to_thread(self._resize_sync, path, width)


__all__ = ["RasterResizer", "PillowResizer"]
