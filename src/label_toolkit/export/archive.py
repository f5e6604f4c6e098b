"""
Module: export.archive

Purpose:
    In-memory ZIP assembly for bulk export and the save capability that
    writes finished artifacts to disk.

Key Classes:
    - LabelArchive: Ordered in-memory ZIP of page crops
    - DirectorySaver: Default save capability (writes into a folder)

Key Functions:
    - archive_filename(): cropped_labels_<stem>.zip

Dependencies:
    - zipfile (std)

Used By:
    - export.batch: Bulk export
    - session.state, cli: Saving single-page crops
"""

from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Callable, List

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "cropped_labels_"
ARCHIVE_EXTENSION = "zip"

# Save capability: (artifact bytes, file name) -> saved location
ArchiveSaver = Callable[[bytes, str], Path]


def archive_filename(document_stem: str) -> str:
    """
    Name for the bulk export archive.

    Example:
        >>> archive_filename("shipping_batch")
        'cropped_labels_shipping_batch.zip'
    """
    return f"{ARCHIVE_PREFIX}{document_stem}.{ARCHIVE_EXTENSION}"


class LabelArchive:
    """
    ZIP archive assembled in memory.

    Entries keep insertion order; duplicate names are rejected so a
    page can never be written twice.
    """

    def __init__(self) -> None:
        self._buffer = BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", zipfile.ZIP_DEFLATED)
        self._names: List[str] = []
        self._closed = False

    @property
    def names(self) -> List[str]:
        """Entry names in insertion order."""
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def add(self, name: str, data: bytes) -> None:
        """Append one entry."""
        if self._closed:
            raise ValueError("Archive already finalized")
        if name in self._names:
            raise ValueError(f"Duplicate archive entry: {name}")
        self._zip.writestr(name, data)
        self._names.append(name)

    def finalize(self) -> bytes:
        """Close the archive and return the ZIP bytes."""
        if not self._closed:
            self._zip.close()
            self._closed = True
        return self._buffer.getvalue()

    def discard(self) -> None:
        """Drop all content without producing an artifact."""
        if not self._closed:
            self._zip.close()
            self._closed = True
        self._names.clear()
        self._buffer = BytesIO()


class DirectorySaver:
    """
    Save capability that writes artifacts into one directory.

    Example:
        >>> saver = DirectorySaver(Path("out"))
        >>> saver(b"...", "label_page_1.png")
        PosixPath('out/label_page_1.png')
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def __call__(self, data: bytes, filename: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_bytes(data)
        logger.info(f"Saved {path} ({len(data)} bytes)")
        return path
