"""
Tests for render.document and render.rasterizer

Test Coverage:
- open_document(): Valid, empty and non-PDF input
- render_page(): Per-page dimensions, scale, range checks
- Failure handling: Buffer untouched when the backend fails
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from label_toolkit.core.errors import LoadError, PageOutOfRange, RenderFailure, StaleRaster
from label_toolkit.render.buffer import RasterBuffer
from label_toolkit.render.document import DocumentHandle, open_document, open_document_path
from label_toolkit.render.rasterizer import render_page


def test_open_document_reads_pages(pdf_bytes):
    handle = open_document(pdf_bytes, "labels.pdf")

    assert handle.num_pages == 3
    assert handle.stem == "labels"
    assert not handle.is_closed

    handle.close()
    assert handle.is_closed


def test_open_document_empty():
    with pytest.raises(LoadError) as exc_info:
        open_document(b"", "empty.pdf")

    assert exc_info.value.file_name == "empty.pdf"


def test_open_document_not_a_pdf():
    with pytest.raises(LoadError):
        open_document(b"this is not a pdf", "notes.pdf")


def test_open_document_path_missing(tmp_path):
    with pytest.raises(LoadError):
        open_document_path(tmp_path / "missing.pdf")


def test_open_document_path(pdf_path):
    handle = open_document_path(pdf_path)

    assert handle.file_name == "labels.pdf"
    assert handle.num_pages == 3
    handle.close()


def test_render_page_dimensions(document):
    raster = asyncio.run(render_page(document, 1, scale=1.0))

    assert (raster.width, raster.height) == (200, 100)
    assert raster.page_number == 1
    assert raster.pixels.shape == (100, 200, 3)


def test_render_page_scale(document):
    raster = asyncio.run(render_page(document, 1, scale=2.0))

    assert (raster.width, raster.height) == (400, 200)


def test_render_page_uses_each_page_size(document):
    """Pages of different sizes render at their own dimensions."""
    raster = asyncio.run(render_page(document, 3, scale=1.0))

    assert (raster.width, raster.height) == (300, 150)


def test_render_page_pixel_content(document):
    """Top-left quarter is black, bottom-right corner is white."""
    raster = asyncio.run(render_page(document, 1, scale=1.0))
    pixels = raster.pixels

    assert tuple(pixels[10, 10]) == (0, 0, 0)
    assert tuple(pixels[95, 195]) == (255, 255, 255)


@pytest.mark.parametrize("page_number", [0, 4, -1])
def test_render_page_out_of_range(document, page_number):
    with pytest.raises(PageOutOfRange) as exc_info:
        asyncio.run(render_page(document, page_number))

    assert exc_info.value.num_pages == 3


def test_render_reuses_buffer(document):
    """Rendering into a shared buffer makes the previous raster stale."""
    buffer = RasterBuffer()

    async def render_two():
        first = await render_page(document, 1, 1.0, buffer)
        second = await render_page(document, 3, 1.0, buffer)
        return first, second

    first, second = asyncio.run(render_two())

    assert second.is_current
    assert not first.is_current
    with pytest.raises(StaleRaster):
        first.pixels
    assert buffer.capacity == 300 * 150 * 3


def test_render_failure_leaves_buffer_intact(raster_factory):
    raster = raster_factory(10, 10, value=42)
    doc = MagicMock()
    doc.load_page.side_effect = RuntimeError("corrupt content stream")
    handle = DocumentHandle(doc=doc, num_pages=2, file_name="broken.pdf")

    with pytest.raises(RenderFailure) as exc_info:
        asyncio.run(render_page(handle, 2, 1.0, raster.buffer))

    assert exc_info.value.page_number == 2
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert raster.is_current
    assert raster.pixels[0, 0, 0] == 42
