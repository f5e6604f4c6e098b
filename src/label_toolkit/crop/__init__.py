"""
Module: crop

Purpose:
    Cropping rendered pages to the active region and encoding the result.

Key Functions:
    - crop_and_encode(): Crop + encode one page
    - page_filename(): label_page_<n>.<ext>
"""

from .cropper import (
    EncodedImage,
    OutputFormat,
    crop_and_encode,
    crop_raster,
    encode_image,
    page_filename,
)

__all__ = [
    "EncodedImage",
    "OutputFormat",
    "crop_and_encode",
    "crop_raster",
    "encode_image",
    "page_filename",
]
