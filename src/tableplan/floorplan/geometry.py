# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Canvas geometry for the floor-plan editor.

Coordinates are canvas pixels with the origin at the top-left corner. A
table's ``(x, y)`` is the top-left corner of its unrotated footprint and
rotation (degrees, clockwise) is applied around the footprint centre.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..errors import LayoutError

ROTATION_STEP = 45
DROP_MARGIN = 40
DROP_TILE = 80

_PRECISION = 6


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle given by its edges."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def overlaps(self, other: Box) -> bool:
        """True when the interiors intersect; shared edges do not count."""
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )

    def inside(self, other: Box) -> bool:
        return (
            self.left >= other.left
            and self.top >= other.top
            and self.right <= other.right
            and self.bottom <= other.bottom
        )


@dataclass(frozen=True)
class Footprint:
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise LayoutError(f"Size must be positive, got {self.width}x{self.height}")
        object.__setattr__(self, "rotation", normalize_rotation(self.rotation))

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def bounding_box(self) -> Box:
        """Smallest axis-aligned box containing the rotated footprint."""
        theta = math.radians(self.rotation)
        cos_t, sin_t = abs(math.cos(theta)), abs(math.sin(theta))
        half_w = (self.width * cos_t + self.height * sin_t) / 2
        half_h = (self.width * sin_t + self.height * cos_t) / 2
        cx, cy = self.center
        return Box(
            round(cx - half_w, _PRECISION),
            round(cy - half_h, _PRECISION),
            round(cx + half_w, _PRECISION),
            round(cy + half_h, _PRECISION),
        )


@dataclass(frozen=True)
class Canvas:
    """Editor canvas; 800x600 with a 20px grid unless configured otherwise."""

    width: float = 800
    height: float = 600
    grid_size: int = 20

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise LayoutError(f"Canvas size must be positive, got {self.width}x{self.height}")
        if self.grid_size < 0:
            raise LayoutError("Grid size cannot be negative")

    @property
    def box(self) -> Box:
        return Box(0, 0, self.width, self.height)

    def contains(self, footprint: Footprint) -> bool:
        return footprint.bounding_box().inside(self.box)

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height, "grid_size": self.grid_size}


def normalize_rotation(degrees: float) -> float:
    """Map any angle into [0, 360)."""
    value = float(degrees) % 360
    return 0.0 if value == 360 else value


def overlaps(a: Footprint, b: Footprint) -> bool:
    return a.bounding_box().overlaps(b.bounding_box())


def snap(value: float, grid: int) -> float:
    """Round ``value`` to the nearest grid line; grid <= 0 disables snapping."""
    if grid <= 0:
        return value
    return float(round(value / grid) * grid)


def clamp_drop(
    x: float,
    y: float,
    canvas: Canvas,
    margin: float = DROP_MARGIN,
    tile: float = DROP_TILE,
) -> tuple[float, float]:
    """Position of an item dropped with the pointer at ``(x, y)``.

    The pointer grabs the centre of a standard tile, and the result is kept
    at least ``margin`` from the top-left edges and one tile from the
    bottom-right edges.
    """
    half = tile / 2
    cx = max(margin, min(x - half, canvas.width - tile))
    cy = max(margin, min(y - half, canvas.height - tile))
    return cx, cy


def clamp_into(footprint: Footprint, canvas: Canvas) -> Footprint:
    """Translate ``footprint`` so its bounding box lies inside the canvas when possible."""
    box = footprint.bounding_box()
    dx = 0.0
    dy = 0.0
    if box.width <= canvas.width:
        if box.left < 0:
            dx = -box.left
        elif box.right > canvas.width:
            dx = canvas.width - box.right
    if box.height <= canvas.height:
        if box.top < 0:
            dy = -box.top
        elif box.bottom > canvas.height:
            dy = canvas.height - box.bottom
    if not dx and not dy:
        return footprint
    return Footprint(
        footprint.x + dx, footprint.y + dy, footprint.width, footprint.height, footprint.rotation
    )


__all__ = [
    "Box",
    "Canvas",
    "DROP_MARGIN",
    "DROP_TILE",
    "Footprint",
    "ROTATION_STEP",
    "clamp_drop",
    "clamp_into",
    "normalize_rotation",
    "overlaps",
    "snap",
]
