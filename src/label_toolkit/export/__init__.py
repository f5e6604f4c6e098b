"""
Module: export

Purpose:
    Bulk export of one crop region across every page into a ZIP archive.

Key Functions:
    - export_all(): Render, crop and package every page

Key Classes:
    - ExportProgress, ExportResult
    - LabelArchive, DirectorySaver
"""

from .archive import ArchiveSaver, DirectorySaver, LabelArchive, archive_filename
from .batch import ExportProgress, ExportResult, ProgressSink, export_all

__all__ = [
    "ArchiveSaver",
    "DirectorySaver",
    "LabelArchive",
    "archive_filename",
    "ExportProgress",
    "ExportResult",
    "ProgressSink",
    "export_all",
]
