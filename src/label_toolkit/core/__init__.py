"""
Core types shared by every label_toolkit component.

Contains:
- models: CropRegion and PixelRect geometry
- errors: Exception taxonomy
"""

from .errors import (
    LabelToolkitError,
    LoadError,
    NoDocumentLoaded,
    PageOutOfRange,
    RenderFailure,
    InvalidRegion,
    EmptyCropRegion,
    StaleRaster,
    DetectionUnavailable,
    BatchExportError,
    ExportCancelled,
    ExportInProgress,
)
from .models import CropRegion, PixelRect, clamp_region, to_pixel_rect

__all__ = [
    "LabelToolkitError",
    "LoadError",
    "NoDocumentLoaded",
    "PageOutOfRange",
    "RenderFailure",
    "InvalidRegion",
    "EmptyCropRegion",
    "StaleRaster",
    "DetectionUnavailable",
    "BatchExportError",
    "ExportCancelled",
    "ExportInProgress",
    "CropRegion",
    "PixelRect",
    "clamp_region",
    "to_pixel_rect",
]
