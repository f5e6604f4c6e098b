"""
Module: session.state

Purpose:
    Explicit session state for one user working on one document: the
    loaded document, page navigation, the active crop region, presets,
    detection and bulk export progress. Nothing here is global; a session
    is created by the caller and passed where it is needed.

Key Classes:
    - LabelSession: Top-level orchestration

Dependencies:
    - render: Document loading and preview rendering
    - crop: Single-page export
    - export: Bulk export
    - presets: Template persistence
    - detection: AI suggestions

Used By:
    - cli: Every command
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from label_toolkit.config import ToolkitConfig
from label_toolkit.core.errors import ExportInProgress, NoDocumentLoaded
from label_toolkit.core.models import DEFAULT_REGION, CropRegion, clamp_region
from label_toolkit.crop.cropper import EncodedImage, OutputFormat, crop_and_encode, page_filename
from label_toolkit.detection.bridge import LabelDetector
from label_toolkit.export.archive import ArchiveSaver
from label_toolkit.export.batch import ExportProgress, ExportResult, export_all
from label_toolkit.presets.store import PresetStore
from label_toolkit.render.buffer import PixelRaster, RasterBuffer
from label_toolkit.render.document import DocumentHandle, open_document, open_document_path
from label_toolkit.session.navigation import NavigationState, PageNavigator

logger = logging.getLogger(__name__)


class LabelSession:
    """
    State for one cropping session.

    Lifecycle: load_document() creates the document and navigator,
    clear() or a new load tears them down. The crop region survives
    document changes, so one region can be applied to many files.

    Example:
        >>> session = LabelSession(config, presets)
        >>> await session.load_document(pdf_bytes, "labels.pdf")
        >>> session.set_region(CropRegion(5, 5, 50, 30))
        >>> result = await session.export_all(saver)
    """

    def __init__(
        self,
        config: ToolkitConfig,
        presets: PresetStore,
        detector: Optional[LabelDetector] = None,
        *,
        on_navigation: Optional[Callable[[NavigationState], None]] = None,
        on_progress: Optional[Callable[[Optional[ExportProgress]], None]] = None,
    ) -> None:
        self.config = config
        self.presets = presets
        self.detector = detector
        self._on_navigation = on_navigation
        self._on_progress = on_progress

        self.document: Optional[DocumentHandle] = None
        self.navigator: Optional[PageNavigator] = None
        self._region: CropRegion = DEFAULT_REGION
        self._export_progress: Optional[ExportProgress] = None
        self._batch_buffer = RasterBuffer(name="batch")

    # ─────────────────────────────────────────────────────────────────────────
    # Document lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def has_document(self) -> bool:
        return self.document is not None

    async def load_document(self, data: bytes, file_name: str) -> DocumentHandle:
        """
        Open a document and render its first page.

        On LoadError the session keeps its previous document untouched.
        """
        return await self._adopt(open_document(data, file_name))

    async def load_path(self, path: Path) -> DocumentHandle:
        """Open a PDF from disk. Same semantics as load_document()."""
        return await self._adopt(open_document_path(path))

    async def _adopt(self, document: DocumentHandle) -> DocumentHandle:
        try:
            self.clear()
        except ExportInProgress:
            document.close()
            raise

        self.document = document
        self.navigator = PageNavigator(
            document,
            scale=self.config.render_scale,
            on_change=self._on_navigation,
        )
        await self.navigator.refresh()
        return document

    def clear(self) -> None:
        """Close the current document, if any."""
        if self._export_progress is not None:
            raise ExportInProgress("Cannot close the document during an export")
        if self.document is not None:
            self.document.close()
        self.document = None
        self.navigator = None

    def _require_navigator(self) -> PageNavigator:
        if self.navigator is None:
            raise NoDocumentLoaded("No document loaded")
        return self.navigator

    @property
    def current_page(self) -> int:
        return self._require_navigator().current_page

    @property
    def raster(self) -> Optional[PixelRaster]:
        """Rendered current page, or None while rendering or after a failure."""
        return self.navigator.raster if self.navigator is not None else None

    # ─────────────────────────────────────────────────────────────────────────
    # Region and presets
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def region(self) -> CropRegion:
        return self._region

    def set_region(self, region: CropRegion) -> CropRegion:
        """Adopt a region after clamping it. Returns the adopted region."""
        self._region = clamp_region(region)
        return self._region

    def save_preset(self) -> List[CropRegion]:
        """Append the current region to the presets."""
        return self.presets.append(self._region)

    def apply_preset(self, index: int) -> CropRegion:
        """
        Adopt preset ``index`` (0-based).

        Raises:
            IndexError: If there is no such preset
        """
        regions = self.presets.load_all()
        if not 0 <= index < len(regions):
            raise IndexError(f"No preset {index + 1} (have {len(regions)})")
        return self.set_region(regions[index])

    # ─────────────────────────────────────────────────────────────────────────
    # Detection
    # ─────────────────────────────────────────────────────────────────────────

    async def auto_detect(self) -> Optional[CropRegion]:
        """
        Ask the detector for a region on the current page.

        Adopts and returns the clamped suggestion, or returns None when
        nothing was found (the region is then unchanged).
        """
        if self.detector is None:
            logger.warning("Auto-detect requested but detection is not configured")
            return None
        raster = self.raster
        if raster is None:
            raise NoDocumentLoaded("No rendered page to analyze")

        suggestion = await self.detector.suggest(raster)
        if suggestion is None:
            return None
        return self.set_region(suggestion)

    # ─────────────────────────────────────────────────────────────────────────
    # Export
    # ─────────────────────────────────────────────────────────────────────────

    def export_current(self, fmt: Optional[OutputFormat] = None) -> Tuple[str, EncodedImage]:
        """
        Crop the current page.

        Returns:
            (filename, encoded image) for label_page_<current>.<ext>

        Raises:
            NoDocumentLoaded: If no page is rendered
            EmptyCropRegion: If the crop resolves to zero pixels
        """
        fmt = fmt or self.config.single_format
        raster = self.raster
        if raster is None:
            raise NoDocumentLoaded("No rendered page to crop")
        encoded = crop_and_encode(raster, self._region, fmt, quality=self.config.jpeg_quality)
        return page_filename(raster.page_number, fmt), encoded

    @property
    def export_progress(self) -> Optional[ExportProgress]:
        """Progress of the running bulk export, None when idle."""
        return self._export_progress

    def _track_progress(self, progress: Optional[ExportProgress]) -> None:
        self._export_progress = progress
        if self._on_progress is not None:
            self._on_progress(progress)

    async def export_all(
        self,
        saver: ArchiveSaver,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExportResult:
        """
        Export every page with the current region.

        Raises:
            ExportInProgress: If an export is already running
            BatchExportError: If a page fails (nothing is saved)
        """
        if self._export_progress is not None:
            raise ExportInProgress("An export is already running")
        if self.document is None:
            raise NoDocumentLoaded("No document loaded")

        return await export_all(
            self.document,
            self._region,
            self._track_progress,
            saver=saver,
            scale=self.config.render_scale,
            fmt=self.config.batch_format,
            quality=self.config.jpeg_quality,
            buffer=self._batch_buffer,
            cancel_event=cancel_event,
        )
