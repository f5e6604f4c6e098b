import sys
from pathlib import Path
from typing import List, Tuple

import fitz
import pytest

# Add src to sys.path so we can import label_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from label_toolkit.render.buffer import PixelRaster, RasterBuffer  # noqa: E402
from label_toolkit.render.document import open_document  # noqa: E402

# Page sizes in points; the last page is larger to exercise per-page resolution
PAGE_SIZES: List[Tuple[int, int]] = [(200, 100), (200, 100), (300, 150)]


def make_pdf(page_sizes: List[Tuple[int, int]] = PAGE_SIZES) -> bytes:
    """Build a small PDF in memory with a black block in each page's top-left quarter."""
    doc = fitz.open()
    for i, (width, height) in enumerate(page_sizes):
        page = doc.new_page(width=width, height=height)
        page.draw_rect(fitz.Rect(0, 0, width / 2, height / 2), color=(0, 0, 0), fill=(0, 0, 0))
        if height >= 20:
            page.insert_text((width / 2 + 5, height - 10), f"Page {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def make_raster(width: int, height: int, value: int = 255, page_number: int = 1) -> PixelRaster:
    """Create a committed raster filled with one grey level."""
    buffer = RasterBuffer(name="test")
    view = buffer.prepare(width, height)
    view[...] = value
    generation = buffer.commit()
    return PixelRaster(
        page_number=page_number,
        width=width,
        height=height,
        scale=1.0,
        buffer=buffer,
        generation=generation,
    )


@pytest.fixture
def pdf_bytes() -> bytes:
    """Three-page PDF: two 200x100 pages and one 300x150 page."""
    return make_pdf()


@pytest.fixture
def pdf_path(tmp_path: Path, pdf_bytes: bytes) -> Path:
    path = tmp_path / "labels.pdf"
    path.write_bytes(pdf_bytes)
    return path


@pytest.fixture
def document(pdf_bytes: bytes):
    """Opened DocumentHandle for the three-page PDF."""
    handle = open_document(pdf_bytes, "labels.pdf")
    yield handle
    handle.close()


@pytest.fixture
def raster_factory():
    """Factory for in-memory rasters: raster_factory(width, height, value=255)."""
    return make_raster


@pytest.fixture
def pdf_factory():
    """Factory for PDFs with custom page sizes: pdf_factory([(w, h), ...])."""
    return make_pdf
