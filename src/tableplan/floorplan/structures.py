# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Palette of table structures that can be dropped onto the floor plan."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from ..errors import LayoutError

SHAPES = (
    "square",
    "circle",
    "rectangle",
    "oval",
    "round",
    "octagon",
    "hexagon",
    "long-rectangle",
    "curved",
)


@dataclass(frozen=True)
class TableStructure:
    id: str
    name: str
    shape: str
    default_capacity: int
    description: str
    width: float
    height: float

    def to_dict(self) -> dict:
        return asdict(self)


PALETTE: tuple[TableStructure, ...] = (
    TableStructure("square-1", "Square 1", "square", 1, "1-person square table", 40.91, 52.73),
    TableStructure("circle-1", "Round 1", "circle", 1, "1-person round table", 43.64, 43.64),
    TableStructure("square-2", "Square 2", "square", 2, "2-person square table", 40.91, 52.73),
    TableStructure("circle-2", "Round 2", "circle", 2, "2-person round table", 43.64, 43.64),
    TableStructure("circle-3", "Round 3", "round", 3, "3-person round table", 50, 46.82),
    TableStructure("square-4", "Square 4", "square", 4, "4-person square table", 77.27, 52.73),
    TableStructure(
        "square-4-compact",
        "Square 4 Compact",
        "square",
        4,
        "4-person compact square table",
        61.82,
        61.82,
    ),
    TableStructure("circle-4", "Round 4", "round", 4, "4-person round table", 52.73, 52.73),
    TableStructure("circle-5", "Round 5", "round", 5, "5-person round table", 63.64, 60.91),
    TableStructure("circle-6", "Round 6", "round", 6, "6-person round table", 70.91, 71.82),
    TableStructure("square-6", "Long 6", "long-rectangle", 6, "6-person long table", 112.73, 52.73),
    TableStructure("circle-8", "Round 8", "round", 8, "8-person round table", 80.91, 80.45),
    TableStructure("square-8", "Long 8", "long-rectangle", 8, "8-person long table", 148.18, 52.73),
)

_BY_ID = {s.id: s for s in PALETTE}


def list_structures() -> list[TableStructure]:
    return list(PALETTE)


def get_structure(structure_id: str) -> TableStructure:
    """Return the palette entry with ``structure_id``.

    Raises:
        LayoutError: Unknown structure.
    """
    try:
        return _BY_ID[structure_id]
    except KeyError:
        raise LayoutError(f"Unknown table structure '{structure_id}'") from None


def validate_shape(shape: str) -> str:
    if shape not in SHAPES:
        raise LayoutError(f"Unknown shape '{shape}'. Allowed: {', '.join(SHAPES)}")
    return shape


__all__ = [
    "PALETTE",
    "SHAPES",
    "TableStructure",
    "get_structure",
    "list_structures",
    "validate_shape",
]
