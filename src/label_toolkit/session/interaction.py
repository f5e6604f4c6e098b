"""
Drag interaction state machine for the crop overlay.

The UI layer feeds discrete pointer events in; the machine turns them into
clamped CropRegion values. Pointer deltas are converted to percentages of
the on-screen container, so the result is independent of display scaling.

States: IDLE -> MOVING | RESIZING -> IDLE
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from label_toolkit.core.models import CropRegion, clamp_region
from label_toolkit.core.models.region import FULL_EXTENT, MIN_REGION_SIZE


class DragMode(str, Enum):
    IDLE = "idle"
    MOVING = "moving"
    RESIZING = "resizing"  # bottom-right handle


class DragInteraction:
    """
    Converts pointer drags into crop regions.

    Example:
        >>> drag = DragInteraction()
        >>> drag.begin(DragMode.MOVING, 100, 100, CropRegion(10, 10, 80, 40), 1000, 1000)
        >>> drag.update(150, 100)
        CropRegion(x=15.0, y=10.0, width=80, height=40)
    """

    def __init__(self) -> None:
        self.mode = DragMode.IDLE
        self._origin = (0.0, 0.0)
        self._container = (1.0, 1.0)
        self._initial: Optional[CropRegion] = None

    @property
    def active(self) -> bool:
        return self.mode is not DragMode.IDLE

    def begin(
        self,
        mode: DragMode,
        pointer_x: float,
        pointer_y: float,
        region: CropRegion,
        container_width: float,
        container_height: float,
    ) -> None:
        """Start a drag from the given pointer position."""
        if mode is DragMode.IDLE:
            raise ValueError("Cannot begin a drag in IDLE mode")
        if container_width <= 0 or container_height <= 0:
            raise ValueError(
                f"Container must have a positive size: {container_width}x{container_height}"
            )
        self.mode = mode
        self._origin = (pointer_x, pointer_y)
        self._container = (container_width, container_height)
        self._initial = clamp_region(region)

    def update(self, pointer_x: float, pointer_y: float) -> CropRegion:
        """
        Region for the current pointer position.

        Raises:
            RuntimeError: If no drag is active
        """
        if self._initial is None or not self.active:
            raise RuntimeError("No drag in progress")

        initial = self._initial
        delta_x = (pointer_x - self._origin[0]) / self._container[0] * FULL_EXTENT
        delta_y = (pointer_y - self._origin[1]) / self._container[1] * FULL_EXTENT

        if self.mode is DragMode.MOVING:
            region = CropRegion(
                x=max(0.0, min(FULL_EXTENT - initial.width, initial.x + delta_x)),
                y=max(0.0, min(FULL_EXTENT - initial.height, initial.y + delta_y)),
                width=initial.width,
                height=initial.height,
            )
        else:
            region = CropRegion(
                x=initial.x,
                y=initial.y,
                width=max(MIN_REGION_SIZE, min(FULL_EXTENT - initial.x, initial.width + delta_x)),
                height=max(MIN_REGION_SIZE, min(FULL_EXTENT - initial.y, initial.height + delta_y)),
            )
        return clamp_region(region)

    def end(self) -> None:
        self.mode = DragMode.IDLE
        self._initial = None
