# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Non-table items drawn on a floor plan: walls, doors, windows, decorations.

Fixtures have no inventory record and take no bookings. They are stored in
the layout next to the table positions, under their own generated id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from genro_toolbox import get_uuid

from ..errors import LayoutError
from .geometry import Footprint, normalize_rotation


@dataclass(frozen=True)
class FixtureTemplate:
    kind: str
    width: float
    height: float
    color: str
    shape: str = "rectangle"


FIXTURE_TEMPLATES: dict[str, FixtureTemplate] = {
    "wall": FixtureTemplate("wall", 100, 10, "#666666"),
    "door": FixtureTemplate("door", 30, 8, "#8B4513"),
    "window": FixtureTemplate("window", 60, 8, "#87CEEB"),
    "decoration": FixtureTemplate("decoration", 40, 40, "#228B22"),
}

FIXTURE_SHAPES = ("rectangle", "circle")


def get_template(kind: str) -> FixtureTemplate:
    try:
        return FIXTURE_TEMPLATES[kind]
    except KeyError:
        known = ", ".join(FIXTURE_TEMPLATES)
        raise LayoutError(f"Unknown fixture kind '{kind}' (expected one of: {known})") from None


@dataclass
class Fixture:
    """A wall, door, window or decoration on the canvas."""

    fixture_id: str
    kind: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    shape: str = "rectangle"
    color: str | None = None
    label: str | None = None

    @property
    def footprint(self) -> Footprint:
        return Footprint(self.x, self.y, self.width, self.height, self.rotation)

    @classmethod
    def create(
        cls,
        kind: str,
        x: float,
        y: float,
        width: float | None = None,
        height: float | None = None,
        shape: str | None = None,
        label: str | None = None,
    ) -> Fixture:
        """New fixture sized from the template of ``kind`` unless given."""
        template = get_template(kind)
        shape = shape or template.shape
        if shape not in FIXTURE_SHAPES:
            raise LayoutError(f"Unknown fixture shape '{shape}'")
        width = template.width if width is None else float(width)
        height = template.height if height is None else float(height)
        if width <= 0 or height <= 0:
            raise LayoutError(f"Size must be positive, got {width}x{height}")
        return cls(
            fixture_id=get_uuid(),
            kind=kind,
            x=float(x),
            y=float(y),
            width=width,
            height=height,
            shape=shape,
            color=template.color,
            label=label,
        )

    @classmethod
    def from_dict(cls, fixture_id: str, data: dict[str, Any]) -> Fixture:
        kind = data.get("kind") or data.get("type")
        template = get_template(str(kind))
        try:
            x = float(data["x"])
            y = float(data["y"])
            width = float(data["width"]) if data.get("width") is not None else template.width
            height = float(data["height"]) if data.get("height") is not None else template.height
        except (KeyError, TypeError, ValueError) as e:
            raise LayoutError(f"Fixture {fixture_id} needs numeric x, y and size") from e
        if width <= 0 or height <= 0:
            raise LayoutError(f"Size of fixture {fixture_id} must be positive")
        return cls(
            fixture_id=str(fixture_id),
            kind=template.kind,
            x=x,
            y=y,
            width=width,
            height=height,
            rotation=normalize_rotation(data.get("rotation") or 0),
            shape=data.get("shape") or template.shape,
            color=data.get("color") or template.color,
            label=data.get("label"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.fixture_id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "shape": self.shape,
            "color": self.color,
            "label": self.label,
        }


__all__ = ["FIXTURE_TEMPLATES", "Fixture", "FixtureTemplate", "get_template"]
