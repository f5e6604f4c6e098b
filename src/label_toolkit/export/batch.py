"""
Module: export.batch

Purpose:
    Apply one crop region to every page of a document and package the
    crops into a single ZIP archive.

    Pages are processed strictly in order through one shared RasterBuffer,
    which bounds memory to the largest page. Any page failure aborts the
    whole batch: no partial archive is ever saved, since an archive
    silently missing a page is worse than a visible failure.

Key Functions:
    - export_all(): Bulk export entry point

Key Classes:
    - ExportProgress: {current, total} progress value
    - ExportResult: Saved archive summary

Dependencies:
    - render.rasterizer: Page rendering
    - crop.cropper: Cropping and encoding
    - export.archive: ZIP assembly and saving

Used By:
    - session.state: LabelSession.export_all()
    - cli: export command
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from label_toolkit.core.errors import (
    BatchExportError,
    EmptyCropRegion,
    ExportCancelled,
    InvalidRegion,
    RenderFailure,
    StaleRaster,
)
from label_toolkit.core.models import CropRegion, clamp_region
from label_toolkit.crop.cropper import (
    DEFAULT_JPEG_QUALITY,
    OutputFormat,
    crop_and_encode,
    page_filename,
)
from label_toolkit.export.archive import ArchiveSaver, LabelArchive, archive_filename
from label_toolkit.render.buffer import RasterBuffer
from label_toolkit.render.document import DocumentHandle
from label_toolkit.render.rasterizer import DEFAULT_RENDER_SCALE, render_page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportProgress:
    """
    Bulk export progress.

    ``current`` is the page being worked on (0 before the first page),
    not the number of pages completed.
    """

    current: int
    total: int

    @property
    def fraction(self) -> float:
        return self.current / self.total if self.total else 0.0


# Receives progress updates; None means "no export in flight"
ProgressSink = Callable[[Optional[ExportProgress]], None]


@dataclass(frozen=True)
class ExportResult:
    """
    Summary of a completed bulk export.

    Attributes:
        path: Location returned by the save capability
        filename: Archive file name
        entries: Entry names in archive order
        elapsed_s: Wall time for the whole batch
    """

    path: Path
    filename: str
    entries: Tuple[str, ...]
    elapsed_s: float

    @property
    def page_count(self) -> int:
        return len(self.entries)


def _emit(sink: Optional[ProgressSink], progress: Optional[ExportProgress]) -> None:
    if sink is not None:
        sink(progress)


async def export_all(
    document: DocumentHandle,
    region: CropRegion,
    progress_sink: Optional[ProgressSink] = None,
    *,
    saver: ArchiveSaver,
    page_count: Optional[int] = None,
    scale: float = DEFAULT_RENDER_SCALE,
    fmt: OutputFormat = OutputFormat.PNG,
    quality: int = DEFAULT_JPEG_QUALITY,
    buffer: Optional[RasterBuffer] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ExportResult:
    """
    Crop every page with the same region and save one ZIP archive.

    Pipeline:
    1. Emit progress (0, total)
    2. For each page i in 1..total, in order:
       a. Emit progress (i, total) before rendering
       b. Render page i into the shared buffer
       c. Crop with ``region`` (no per-page override)
       d. Add label_page_<i>.<ext> to the archive
    3. Finalize as cropped_labels_<stem>.zip and hand it to ``saver``
    4. Clear progress (emit None) on every exit path

    Args:
        document: Opened document
        region: Crop region applied to every page
        progress_sink: Receives ExportProgress updates and a final None
        saver: Save capability for the finished archive
        page_count: Pages to export (defaults to document.num_pages)
        scale: Render scale
        fmt: Output codec for archive entries
        quality: JPEG quality
        buffer: Reusable render buffer (allocated if None)
        cancel_event: When set, the batch stops before the next page

    Returns:
        ExportResult for the saved archive

    Raises:
        BatchExportError: If any page fails to render or crop
        ExportCancelled: If ``cancel_event`` was set mid-batch

    Example:
        >>> result = await export_all(doc, region, print, saver=DirectorySaver(out))
        >>> result.entries[:2]
        ('label_page_1.png', 'label_page_2.png')
    """
    total = document.num_pages if page_count is None else page_count
    if not 0 < total <= document.num_pages:
        raise ValueError(f"page_count must be in 1..{document.num_pages}: {total}")

    region = clamp_region(region)
    buffer = buffer if buffer is not None else RasterBuffer(name="batch")
    archive = LabelArchive()
    start_time = time.perf_counter()

    logger.info(f"Starting bulk export of {total} pages from {document.file_name}")
    _emit(progress_sink, ExportProgress(0, total))

    try:
        for page_number in range(1, total + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise ExportCancelled(page_number - 1, total)

            _emit(progress_sink, ExportProgress(page_number, total))
            try:
                raster = await render_page(document, page_number, scale, buffer)
                encoded = crop_and_encode(raster, region, fmt, quality=quality)
            except (RenderFailure, EmptyCropRegion, InvalidRegion, StaleRaster) as e:
                logger.error(f"Bulk export failed on page {page_number}: {e}")
                raise BatchExportError(page_number, str(e)) from e

            archive.add(page_filename(page_number, fmt), encoded.data)

        entries = tuple(archive.names)
        filename = archive_filename(document.stem)
        path = saver(archive.finalize(), filename)
    except BaseException:
        # Includes task cancellation: the partial archive never leaves here
        archive.discard()
        raise
    finally:
        _emit(progress_sink, None)

    elapsed = time.perf_counter() - start_time
    logger.info(f"Exported {len(entries)} labels to {path} in {elapsed:.2f}s")
    return ExportResult(path=path, filename=filename, entries=entries, elapsed_s=elapsed)
