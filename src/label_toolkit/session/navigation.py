"""
Module: session.navigation

Purpose:
    Page navigation state machine. Tracks the current page within the
    document and re-renders the preview whenever it changes.

    One render in flight per canvas: while a preview render is running,
    further transitions are rejected (reject-while-busy). Callers read
    ``rendering`` to show a loading indicator and disable input.

Key Classes:
    - PageNavigator: The state machine
    - NavigationState: Immutable snapshot for UI callbacks

Dependencies:
    - render.rasterizer: Preview rendering

Used By:
    - session.state: LabelSession
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from label_toolkit.core.errors import PageOutOfRange
from label_toolkit.render.buffer import PixelRaster, RasterBuffer
from label_toolkit.render.document import DocumentHandle
from label_toolkit.render.rasterizer import DEFAULT_RENDER_SCALE, render_page

logger = logging.getLogger(__name__)

Renderer = Callable[[DocumentHandle, int, float, RasterBuffer], Awaitable[PixelRaster]]


@dataclass(frozen=True)
class NavigationState:
    """Snapshot of navigation for UI binding."""

    current_page: int
    num_pages: int
    rendering: bool

    @property
    def can_go_next(self) -> bool:
        return not self.rendering and self.current_page < self.num_pages

    @property
    def can_go_previous(self) -> bool:
        return not self.rendering and self.current_page > 1


class PageNavigator:
    """
    Current-page pointer bounded by the document length.

    Transitions:
        - next(): no-op on the last page
        - previous(): no-op on the first page
        - jump_to(n): PageOutOfRange if n is outside 1..num_pages
        - refresh(): re-render the current page

    Each transition that changes the page renders it into the preview
    buffer. Transition methods return True when a render happened and
    False for no-ops and rejected (busy) requests.
    """

    def __init__(
        self,
        document: DocumentHandle,
        *,
        scale: float = DEFAULT_RENDER_SCALE,
        buffer: Optional[RasterBuffer] = None,
        renderer: Renderer = render_page,
        on_change: Optional[Callable[[NavigationState], None]] = None,
    ) -> None:
        self.document = document
        self.scale = scale
        self.buffer = buffer if buffer is not None else RasterBuffer(name="preview")
        self._renderer = renderer
        self._on_change = on_change
        self._current_page = 1
        self._rendering = False
        self.raster: Optional[PixelRaster] = None

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def num_pages(self) -> int:
        return self.document.num_pages

    @property
    def rendering(self) -> bool:
        return self._rendering

    @property
    def state(self) -> NavigationState:
        return NavigationState(self._current_page, self.num_pages, self._rendering)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    async def next(self) -> bool:
        if self._current_page >= self.num_pages:
            return False
        return await self._go_to(self._current_page + 1)

    async def previous(self) -> bool:
        if self._current_page <= 1:
            return False
        return await self._go_to(self._current_page - 1)

    async def jump_to(self, page_number: int) -> bool:
        """
        Go to a specific page.

        Raises:
            PageOutOfRange: If page_number is outside the document; the
                current page is unchanged and nothing is rendered
        """
        if not 1 <= page_number <= self.num_pages:
            raise PageOutOfRange(page_number, self.num_pages)
        if page_number == self._current_page:
            return False
        return await self._go_to(page_number)

    async def refresh(self) -> bool:
        """Render the current page (initial load or after a failure)."""
        return await self._go_to(self._current_page)

    async def _go_to(self, page_number: int) -> bool:
        if self._rendering:
            logger.debug(f"Ignoring navigation to page {page_number}: render in flight")
            return False

        self._current_page = page_number
        self._rendering = True
        self.raster = None
        self._notify()
        try:
            self.raster = await self._renderer(
                self.document, page_number, self.scale, self.buffer
            )
        finally:
            self._rendering = False
            self._notify()
        return True
