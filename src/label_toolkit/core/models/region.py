"""
Module: region

Purpose:
    Provides the CropRegion dataclass - a resolution-independent crop
    rectangle in percentage units of a page - and the functions that
    keep it valid and map it onto concrete rasters.

Key Functions:
    - clamp_region(region): Force every region invariant
    - to_pixel_rect(region, w, h): Resolve against one raster's size
    - CropRegion.to_dict() / from_dict(): JSON serialization

Dependencies:
    - dataclasses (std)
    - math (std)

Used By:
    - crop.cropper: Pixel resolution before cropping
    - presets.store: Persisted templates
    - detection.bridge: Clamping AI suggestions
    - session: Region mutations
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from label_toolkit.core.errors import InvalidRegion

# Percentage bounds
FULL_EXTENT = 100.0
MIN_REGION_SIZE = 5.0

# Tolerance for float drift when checking invariants
_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class CropRegion:
    """
    Crop rectangle in percentage units (0-100) of a page.

    The same region is portable across rasters of any size: it is
    resolved to pixels only at crop time, against the raster being
    cropped.

    Attributes:
        x: Left edge, percent of page width
        y: Top edge, percent of page height
        width: Width, percent of page width
        height: Height, percent of page height

    Invariants (enforced by clamp_region, checked by is_valid):
        - 0 <= x and 0 <= y
        - x + width <= 100 and y + height <= 100
        - width >= 5 and height >= 5

    Example:
        >>> region = CropRegion(10, 10, 80, 40)
        >>> region.right
        90
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        """Right edge in percent."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge in percent."""
        return self.y + self.height

    def is_valid(self) -> bool:
        """Check every region invariant without modifying the region."""
        if not _all_finite((self.x, self.y, self.width, self.height)):
            return False
        return (
            self.x >= -_EPSILON
            and self.y >= -_EPSILON
            and self.width >= MIN_REGION_SIZE - _EPSILON
            and self.height >= MIN_REGION_SIZE - _EPSILON
            and self.right <= FULL_EXTENT + _EPSILON
            and self.bottom <= FULL_EXTENT + _EPSILON
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> CropRegion:
        """
        Deserialize from dictionary.

        Args:
            data: Dict with numeric x, y, width, height

        Returns:
            CropRegion instance (not clamped)

        Raises:
            InvalidRegion: If a field is missing or not a number
                or not representable as a finite float
        """
        values = []
        for key in ("x", "y", "width", "height"):
            value = data.get(key) if isinstance(data, dict) else None
            # bool is an int subclass but never a coordinate
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidRegion(f"Region field {key!r} must be a number: {value!r}")
            if not _all_finite((value,)):
                raise InvalidRegion(f"Region field {key!r} must be finite: {value!r}")
            values.append(value)
        return cls(*values)


@dataclass(frozen=True, slots=True)
class PixelRect:
    """
    Integer pixel rectangle within a specific raster.

    Attributes:
        x: Left edge in pixels (inclusive)
        y: Top edge in pixels (inclusive)
        w: Width in pixels
        h: Height in pixels
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def area(self) -> int:
        return self.w * self.h

    def as_box(self) -> tuple[int, int, int, int]:
        """Get as (left, top, right, bottom) tuple for PIL."""
        return (self.x, self.y, self.x + self.w, self.y + self.h)


DEFAULT_REGION = CropRegion(10.0, 10.0, 80.0, 40.0)


def _all_finite(values) -> bool:
    try:
        return all(math.isfinite(v) for v in values)
    except OverflowError:
        # int too large for a float
        return False


def _bound(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_region(region: CropRegion) -> CropRegion:
    """
    Force a region into its valid range.

    Size is clamped first (to [5, 100]), then the origin is clamped so
    the rectangle stays inside the page. Every region mutation in the
    toolkit passes through here.

    Args:
        region: Possibly out-of-range region

    Returns:
        Region satisfying all CropRegion invariants

    Raises:
        InvalidRegion: If any coordinate is NaN or infinite

    Example:
        >>> clamp_region(CropRegion(-5, 0, 50, 50))
        CropRegion(x=0.0, y=0.0, width=50, height=50)
    """
    if not _all_finite((region.x, region.y, region.width, region.height)):
        raise InvalidRegion(f"Region has non-finite coordinates: {region}")

    width = _bound(region.width, MIN_REGION_SIZE, FULL_EXTENT)
    height = _bound(region.height, MIN_REGION_SIZE, FULL_EXTENT)
    x = _bound(region.x, 0.0, FULL_EXTENT - width)
    y = _bound(region.y, 0.0, FULL_EXTENT - height)
    return CropRegion(x=x, y=y, width=width, height=height)


def to_pixel_rect(region: CropRegion, raster_width: int, raster_height: int) -> PixelRect:
    """
    Resolve a percentage region against one raster's actual dimensions.

    Callers must pass the size of the raster being cropped, never a
    cached size from another page: pages may render at different sizes.
    The result is clipped to the raster so rounding never spills past
    its edge. A zero-area result is possible on tiny rasters and is left
    for the cropper to reject.

    Args:
        region: Region in percent
        raster_width: Width of the target raster in pixels
        raster_height: Height of the target raster in pixels

    Returns:
        PixelRect within [0, raster_width] x [0, raster_height]

    Raises:
        InvalidRegion: If a raster dimension is not positive

    Example:
        >>> to_pixel_rect(CropRegion(10, 10, 80, 40), 1000, 2000)
        PixelRect(x=100, y=200, w=800, h=800)
    """
    if raster_width <= 0 or raster_height <= 0:
        raise InvalidRegion(
            f"Cannot resolve region against a {raster_width}x{raster_height} raster"
        )

    x = int(round(region.x / FULL_EXTENT * raster_width))
    y = int(round(region.y / FULL_EXTENT * raster_height))
    w = int(round(region.width / FULL_EXTENT * raster_width))
    h = int(round(region.height / FULL_EXTENT * raster_height))

    x = min(max(x, 0), raster_width)
    y = min(max(y, 0), raster_height)
    w = max(0, min(w, raster_width - x))
    h = max(0, min(h, raster_height - y))
    return PixelRect(x=x, y=y, w=w, h=h)
