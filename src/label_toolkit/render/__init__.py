"""
Module: render

Purpose:
    PDF loading and page rasterization. Wraps PyMuPDF behind a small
    async interface that renders into reusable pixel buffers.

Key Classes:
    - DocumentHandle: Opened PDF with page count and name
    - RasterBuffer: Reusable pixel storage
    - PixelRaster: One rendered page

Key Functions:
    - open_document(): Parse PDF bytes
    - render_page(): Render a page into a buffer

Dependencies:
    - fitz (PyMuPDF)
    - numpy
"""

from .buffer import PixelRaster, RasterBuffer
from .document import DocumentHandle, open_document, open_document_path
from .rasterizer import DEFAULT_RENDER_SCALE, render_page

__all__ = [
    "PixelRaster",
    "RasterBuffer",
    "DocumentHandle",
    "open_document",
    "open_document_path",
    "DEFAULT_RENDER_SCALE",
    "render_page",
]
