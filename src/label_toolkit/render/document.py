"""
Module: render.document

Purpose:
    Owns the opened PDF. Wraps a PyMuPDF document with its page count
    and display name, and serializes backend access so a preview render
    and a bulk export never drive the same document from two threads.

Key Classes:
    - DocumentHandle: Opened document plus metadata

Key Functions:
    - open_document(): Parse raw PDF bytes
    - open_document_path(): Parse a PDF from disk

Dependencies:
    - fitz (PyMuPDF): PDF parsing

Used By:
    - render.rasterizer: Page rendering
    - session.state: Document lifecycle
    - cli: File input
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

import fitz

from label_toolkit.core.errors import LoadError

logger = logging.getLogger(__name__)


@dataclass
class DocumentHandle:
    """
    Opened PDF document.

    Attributes:
        doc: PyMuPDF document
        num_pages: Page count (fixed at load)
        file_name: Display name of the source file
        lock: Serializes backend access across worker threads
    """

    doc: fitz.Document
    num_pages: int
    file_name: str
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def stem(self) -> str:
        """File name without its extension."""
        return Path(self.file_name).stem

    @property
    def is_closed(self) -> bool:
        return bool(self.doc.is_closed)

    def close(self) -> None:
        """Release the underlying document."""
        if not self.doc.is_closed:
            self.doc.close()
            logger.debug(f"Closed document {self.file_name}")


def open_document(data: bytes, file_name: str) -> DocumentHandle:
    """
    Parse raw PDF bytes into a DocumentHandle.

    Args:
        data: PDF file contents
        file_name: Display name (used for export file names)

    Returns:
        DocumentHandle with at least one page

    Raises:
        LoadError: If the bytes are empty, not a PDF, or have no pages
    """
    if not data:
        raise LoadError("Document is empty", file_name=file_name)

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.error(f"PDF loading error for {file_name}: {e}")
        raise LoadError(f"Failed to load PDF: {e}", file_name=file_name) from e

    if doc.page_count < 1:
        doc.close()
        raise LoadError("Document has no pages", file_name=file_name)

    logger.info(f"Loaded {file_name} ({doc.page_count} pages)")
    return DocumentHandle(doc=doc, num_pages=doc.page_count, file_name=file_name)


def open_document_path(path: Path) -> DocumentHandle:
    """
    Read and parse a PDF from disk.

    Raises:
        LoadError: If the file cannot be read or parsed
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"Cannot read {path}: {e}", file_name=path.name) from e
    return open_document(data, path.name)
