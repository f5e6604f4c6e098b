"""
Module: core.errors

Purpose:
    Exception taxonomy for label_toolkit. Geometry errors are recovered
    locally by clamping wherever a fallback exists; I/O and service errors
    propagate to the session or CLI, which reports a single message.

Key Classes:
    - LabelToolkitError: Base for every toolkit error
    - LoadError, NoDocumentLoaded, PageOutOfRange, RenderFailure: Document and render errors
    - InvalidRegion, EmptyCropRegion: Degenerate geometry
    - StaleRaster: Raster read after its buffer was reused or invalidated
    - DetectionUnavailable: AI service failed or returned unusable data
    - BatchExportError, ExportCancelled, ExportInProgress: Bulk export

Used By:
    - Every label_toolkit module
"""

from __future__ import annotations

from typing import Optional


class LabelToolkitError(Exception):
    """Base class for all label_toolkit errors."""
    pass


class LoadError(LabelToolkitError):
    """Document could not be opened or parsed."""

    def __init__(self, message: str, file_name: str = ""):
        super().__init__(message)
        self.file_name = file_name


class NoDocumentLoaded(LabelToolkitError):
    """Operation needs a loaded document or rendered page."""
    pass


class PageOutOfRange(LabelToolkitError):
    """Requested page number is outside 1..num_pages."""

    def __init__(self, page_number: int, num_pages: int):
        super().__init__(f"Page {page_number} is out of range (1-{num_pages})")
        self.page_number = page_number
        self.num_pages = num_pages


class RenderFailure(LabelToolkitError):
    """Page rasterization failed in the rendering backend."""

    def __init__(self, page_number: int, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to render page {page_number}{detail}")
        self.page_number = page_number
        self.cause = cause


class InvalidRegion(LabelToolkitError):
    """Region cannot be resolved into a usable rectangle."""
    pass


class EmptyCropRegion(LabelToolkitError):
    """Crop resolved to a pixel rectangle with zero area."""

    def __init__(self, width: int, height: int):
        super().__init__(f"Crop region resolves to an empty {width}x{height} pixel rectangle")
        self.width = width
        self.height = height


class StaleRaster(LabelToolkitError):
    """Raster view no longer matches the contents of its buffer."""
    pass


class DetectionUnavailable(LabelToolkitError):
    """Detection service failed, timed out, or returned unusable data."""
    pass


class BatchExportError(LabelToolkitError):
    """Bulk export aborted because one page failed."""

    def __init__(self, page_number: int, message: str):
        super().__init__(f"Export aborted on page {page_number}: {message}")
        self.page_number = page_number


class ExportCancelled(LabelToolkitError):
    """Bulk export was cancelled before completion."""

    def __init__(self, pages_done: int, total: int):
        super().__init__(f"Export cancelled after {pages_done} of {total} pages")
        self.pages_done = pages_done
        self.total = total


class ExportInProgress(LabelToolkitError):
    """A bulk export is already running for this session."""
    pass
