"""
Core data models for label_toolkit.

Contains:
- CropRegion: Normalized (percentage) crop rectangle
- PixelRect: Integer pixel rectangle resolved against a raster
"""

from .region import (
    CropRegion,
    PixelRect,
    DEFAULT_REGION,
    MIN_REGION_SIZE,
    clamp_region,
    to_pixel_rect,
)

__all__ = [
    "CropRegion",
    "PixelRect",
    "DEFAULT_REGION",
    "MIN_REGION_SIZE",
    "clamp_region",
    "to_pixel_rect",
]
