"""
Module: render.buffer

Purpose:
    Reusable pixel storage for page rasters. A RasterBuffer keeps one flat
    numpy byte array and hands out shaped views sized to the page being
    rendered, growing only when a page needs more room. Bulk export renders
    every page into the same buffer, so memory is bounded by the largest
    page rather than the page count.

Key Classes:
    - RasterBuffer: Owner of the reusable storage
    - PixelRaster: View of one rendered page inside a buffer

Dependencies:
    - numpy: Pixel storage
    - PIL.Image: Conversion for cropping and encoding
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from label_toolkit.core.errors import StaleRaster

logger = logging.getLogger(__name__)

RGB_CHANNELS = 3


class RasterBuffer:
    """
    Reusable RGB pixel storage.

    Every write bumps ``generation``; rasters remember the generation they
    were written in and refuse to be read once it has moved on, so a view
    can never silently show another page's pixels.

    Example:
        >>> buffer = RasterBuffer()
        >>> view = buffer.prepare(200, 100)
        >>> view.shape
        (100, 200, 3)
    """

    def __init__(self, name: str = "raster") -> None:
        self.name = name
        self._storage = np.zeros(0, dtype=np.uint8)
        self._shape: tuple[int, int, int] = (0, 0, RGB_CHANNELS)
        self.generation = 0
        self.valid = False

    @property
    def capacity(self) -> int:
        """Allocated size in bytes."""
        return int(self._storage.size)

    @property
    def width(self) -> int:
        return self._shape[1]

    @property
    def height(self) -> int:
        return self._shape[0]

    def prepare(self, width: int, height: int, channels: int = RGB_CHANNELS) -> np.ndarray:
        """
        Resize for a new page and return a writable view.

        Marks the buffer invalid until commit() is called, and bumps the
        generation so views of the previous page become stale.

        Args:
            width: Page width in pixels
            height: Page height in pixels
            channels: Bytes per pixel

        Returns:
            Writable (height, width, channels) uint8 view
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid raster size {width}x{height}")

        needed = width * height * channels
        if needed > self._storage.size:
            logger.debug(f"Growing {self.name} buffer to {needed} bytes")
            self._storage = np.empty(needed, dtype=np.uint8)

        self._shape = (height, width, channels)
        self.generation += 1
        self.valid = False
        return self._storage[:needed].reshape(self._shape)

    def commit(self) -> int:
        """Mark the prepared contents complete. Returns the generation."""
        self.valid = True
        return self.generation

    def invalidate(self) -> None:
        """Discard the current contents after a failed write."""
        self.generation += 1
        self.valid = False

    def view(self, generation: int) -> np.ndarray:
        """
        Get the read-only pixel view written in ``generation``.

        Raises:
            StaleRaster: If the buffer was rewritten or invalidated since
        """
        if not self.valid or generation != self.generation:
            raise StaleRaster(
                f"{self.name} buffer no longer holds generation {generation}"
            )
        height, width, channels = self._shape
        view = self._storage[: height * width * channels].reshape(self._shape)
        view.flags.writeable = False
        return view


@dataclass(frozen=True)
class PixelRaster:
    """
    One rendered page inside a RasterBuffer.

    Attributes:
        page_number: 1-indexed page this raster shows
        width: Raster width in pixels
        height: Raster height in pixels
        scale: Render scale relative to 72 dpi
        buffer: Storage holding the pixels
        generation: Buffer generation the pixels were written in
    """

    page_number: int
    width: int
    height: int
    scale: float
    buffer: RasterBuffer
    generation: int

    @property
    def is_current(self) -> bool:
        """True while the buffer still holds this raster's pixels."""
        return self.buffer.valid and self.buffer.generation == self.generation

    @property
    def pixels(self) -> np.ndarray:
        """Read-only (height, width, 3) uint8 array."""
        return self.buffer.view(self.generation)

    def to_image(self) -> Image.Image:
        """Copy the raster into a standalone PIL image."""
        return Image.fromarray(np.array(self.pixels))
