"""
Module: render.rasterizer

Purpose:
    Uniform "render page N at scale S into a buffer" operation over
    PyMuPDF. Rasterization runs in a worker thread so the calling event
    loop keeps serving the rest of the session.

Key Functions:
    - render_page(): Async render of one page into a RasterBuffer
    - rasterize_page(): Blocking render used by render_page()

Dependencies:
    - fitz (PyMuPDF): PDF rendering
    - numpy: Copying pixmap samples into the buffer

Used By:
    - export.batch: Per-page rendering during bulk export
    - session.navigation: Preview rendering
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import fitz
import numpy as np

from label_toolkit.core.errors import PageOutOfRange, RenderFailure
from label_toolkit.render.buffer import PixelRaster, RasterBuffer, RGB_CHANNELS
from label_toolkit.render.document import DocumentHandle

logger = logging.getLogger(__name__)

# 2x nominal (144 dpi) keeps barcodes and small print sharp after cropping
DEFAULT_RENDER_SCALE = 2.0


def check_page_number(document: DocumentHandle, page_number: int) -> None:
    """Raise PageOutOfRange unless 1 <= page_number <= num_pages."""
    if not 1 <= page_number <= document.num_pages:
        raise PageOutOfRange(page_number, document.num_pages)


def rasterize_page(
    document: DocumentHandle,
    page_number: int,
    scale: float,
    target: RasterBuffer,
) -> PixelRaster:
    """
    Render one page into ``target`` (blocking).

    The pixmap is produced before the buffer is touched, so a backend
    failure leaves the buffer's previous contents intact. The buffer is
    resized to this page's dimensions before the pixels are copied in.

    Args:
        document: Opened document
        page_number: 1-indexed page
        scale: Zoom factor relative to 72 dpi
        target: Buffer to render into

    Returns:
        PixelRaster viewing the page inside ``target``

    Raises:
        RenderFailure: If PyMuPDF fails or the copy into the buffer fails
    """
    try:
        page = document.doc.load_page(page_number - 1)
        matrix = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=matrix, alpha=False, colorspace=fitz.csRGB)
    except Exception as e:
        logger.error(f"Error rendering page {page_number}: {e}")
        raise RenderFailure(page_number, e) from e

    try:
        view = target.prepare(pix.width, pix.height, RGB_CHANNELS)
        samples = np.frombuffer(pix.samples, dtype=np.uint8)
        # Rows may be padded; honour the pixmap stride
        rows = samples.reshape(pix.height, pix.stride)
        view[...] = rows[:, : pix.width * RGB_CHANNELS].reshape(view.shape)
        generation = target.commit()
    except Exception as e:
        target.invalidate()
        logger.error(f"Error copying page {page_number} into {target.name} buffer: {e}")
        raise RenderFailure(page_number, e) from e

    return PixelRaster(
        page_number=page_number,
        width=pix.width,
        height=pix.height,
        scale=scale,
        buffer=target,
        generation=generation,
    )


async def render_page(
    document: DocumentHandle,
    page_number: int,
    scale: float = DEFAULT_RENDER_SCALE,
    target: Optional[RasterBuffer] = None,
) -> PixelRaster:
    """
    Render a page to pixels without blocking the event loop.

    Args:
        document: Opened document
        page_number: 1-indexed page, 1 <= page_number <= num_pages
        scale: Zoom factor relative to 72 dpi (default 2.0)
        target: Buffer to reuse; a fresh one is allocated if None

    Returns:
        PixelRaster for the page

    Raises:
        PageOutOfRange: If page_number is outside the document
        RenderFailure: If rasterization fails

    Example:
        >>> raster = await render_page(doc, 1, target=buffer)
        >>> raster.width, raster.height
        (1190, 1684)
    """
    check_page_number(document, page_number)
    if target is None:
        target = RasterBuffer()

    async with document.lock:
        return await asyncio.to_thread(rasterize_page, document, page_number, scale, target)
