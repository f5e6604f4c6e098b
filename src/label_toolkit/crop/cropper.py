"""
Module: crop.cropper

Purpose:
    Cut the active crop region out of a rendered page and encode it.
    The region is resolved against the raster's own dimensions, never a
    fixed or cached size, so the same region works on pages that render
    at different sizes.

Key Functions:
    - crop_raster(): Crop a region into a new PIL image
    - encode_image(): Encode a PIL image to bytes
    - crop_and_encode(): Both, in one step
    - page_filename(): Deterministic per-page output name

Dependencies:
    - PIL: Cropping and encoding
    - numpy: Slicing raster pixels
    - label_toolkit.core.models.region: to_pixel_rect

Used By:
    - export.batch: Bulk export
    - session.state: Single-page export
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from io import BytesIO

import numpy as np
from PIL import Image

from label_toolkit.core.errors import EmptyCropRegion
from label_toolkit.core.models import CropRegion, PixelRect, to_pixel_rect
from label_toolkit.render.buffer import PixelRaster

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 80
PAGE_FILENAME_PREFIX = "label_page_"


class OutputFormat(str, Enum):
    """Image codecs available for crop output."""

    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else self.value

    @property
    def pil_format(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class EncodedImage:
    """
    Encoded crop output.

    Attributes:
        data: Encoded file bytes
        format: Codec used
        width: Pixel width of the crop
        height: Pixel height of the crop
    """

    data: bytes
    format: OutputFormat
    width: int
    height: int

    @property
    def extension(self) -> str:
        return self.format.extension


def page_filename(page_number: int, fmt: OutputFormat = OutputFormat.PNG) -> str:
    """
    Output name for one page's crop.

    Example:
        >>> page_filename(3)
        'label_page_3.png'
    """
    return f"{PAGE_FILENAME_PREFIX}{page_number}.{fmt.extension}"


def resolve_crop(raster: PixelRaster, region: CropRegion) -> PixelRect:
    """
    Resolve ``region`` against ``raster`` and reject empty results.

    Raises:
        EmptyCropRegion: If the pixel rectangle has zero width or height
        InvalidRegion: If the raster has no pixels
    """
    rect = to_pixel_rect(region, raster.width, raster.height)
    if rect.w <= 0 or rect.h <= 0:
        raise EmptyCropRegion(rect.w, rect.h)
    return rect


def crop_raster(raster: PixelRaster, region: CropRegion) -> Image.Image:
    """
    Crop a region from a rendered page.

    Args:
        raster: Source page (read only)
        region: Crop region in percent

    Returns:
        New RGB image sized to the resolved pixel rectangle

    Raises:
        EmptyCropRegion: If the region resolves to zero pixels
        StaleRaster: If the raster's buffer was reused since rendering

    Example:
        >>> image = crop_raster(raster, CropRegion(10, 10, 80, 40))
        >>> image.size
        (800, 800)
    """
    rect = resolve_crop(raster, region)
    pixels = raster.pixels
    # np.array copies, so the crop outlives the shared buffer
    cropped = np.array(pixels[rect.y : rect.y + rect.h, rect.x : rect.x + rect.w])
    return Image.fromarray(cropped)


def encode_image(
    image: Image.Image,
    fmt: OutputFormat = OutputFormat.PNG,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> EncodedImage:
    """
    Encode an image to bytes.

    Args:
        image: Image to encode
        fmt: Output codec
        quality: JPEG quality (ignored for PNG)

    Returns:
        EncodedImage with the file bytes
    """
    img_bytes = BytesIO()
    if fmt is OutputFormat.JPEG:
        image.convert("RGB").save(img_bytes, format=fmt.pil_format, quality=quality)
    else:
        image.save(img_bytes, format=fmt.pil_format)
    return EncodedImage(
        data=img_bytes.getvalue(),
        format=fmt,
        width=image.width,
        height=image.height,
    )


def crop_and_encode(
    raster: PixelRaster,
    region: CropRegion,
    fmt: OutputFormat = OutputFormat.PNG,
    *,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> EncodedImage:
    """
    Crop a region from a page and encode the result.

    Raises:
        EmptyCropRegion: Before any encoding happens, if the crop is empty
    """
    image = crop_raster(raster, region)
    encoded = encode_image(image, fmt, quality=quality)
    logger.debug(
        f"Cropped page {raster.page_number} to {encoded.width}x{encoded.height} {fmt.value}"
    )
    return encoded
