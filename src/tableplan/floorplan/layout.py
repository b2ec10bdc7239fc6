# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Floor-plan editor state for a single room.

A FloorPlan holds the positions of the tables placed in a room and applies
the editing operations a drag-and-drop canvas performs: dropping a new table
built from a palette structure, moving, rotating, resizing, changing shape
and removing it from the plan. Walls, doors, windows and decorations are
edited alongside the tables, and a selection can be duplicated. Every edit
is recorded so it can be undone and redone.

The serialised form is the ``positions`` mapping stored in the
``table_layouts`` table, ``{table_id: position_dict}``, plus the
``fixtures`` mapping ``{fixture_id: fixture_dict}``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Iterator

from genro_toolbox import get_uuid

from ..errors import LayoutError
from .fixtures import Fixture
from .geometry import (
    ROTATION_STEP,
    Canvas,
    Footprint,
    clamp_drop,
    clamp_into,
    normalize_rotation,
    snap,
)
from .structures import TableStructure, get_structure, validate_shape

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 60.0
DEFAULT_HEIGHT = 60.0
HISTORY_LIMIT = 50
DUPLICATE_OFFSET = 20

# Keys written by the web editor before positions were stored in snake_case
_CAMEL_KEYS = {
    "tableNumber": "table_number",
    "isConfigured": "is_configured",
    "structureId": "structure_id",
}


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "off")
    return bool(value)


@dataclass
class TablePosition:
    """Where and how one inventory table is drawn on the floor plan."""

    table_id: str
    x: float
    y: float
    rotation: float = 0.0
    shape: str = "square"
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    table_number: str | None = None
    capacity: int | None = None
    structure_id: str | None = None
    is_configured: bool = True

    @property
    def footprint(self) -> Footprint:
        return Footprint(self.x, self.y, self.width, self.height, self.rotation)

    @classmethod
    def from_dict(cls, table_id: str, data: dict[str, Any]) -> TablePosition:
        """Build a position from its stored dict (snake_case or legacy camelCase)."""
        values = {_CAMEL_KEYS.get(k, k): v for k, v in data.items()}
        try:
            x = float(values["x"])
            y = float(values["y"])
        except (KeyError, TypeError, ValueError) as e:
            raise LayoutError(f"Position of table {table_id} needs numeric x and y") from e
        width = values.get("width")
        height = values.get("height")
        try:
            width = float(width) if width is not None else DEFAULT_WIDTH
            height = float(height) if height is not None else DEFAULT_HEIGHT
        except (TypeError, ValueError) as e:
            raise LayoutError(f"Size of table {table_id} must be numeric") from e
        if width <= 0 or height <= 0:
            raise LayoutError(f"Size of table {table_id} must be positive, got {width}x{height}")

        table_number = values.get("table_number")
        capacity = values.get("capacity")
        return cls(
            table_id=str(table_id),
            x=x,
            y=y,
            rotation=normalize_rotation(values.get("rotation") or 0),
            shape=values.get("shape") or "square",
            width=width,
            height=height,
            table_number=str(table_number) if table_number is not None else None,
            capacity=int(capacity) if capacity is not None else None,
            structure_id=values.get("structure_id"),
            is_configured=_flag(values.get("is_configured", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.table_id,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "shape": self.shape,
            "width": self.width,
            "height": self.height,
            "table_number": self.table_number,
            "capacity": self.capacity,
            "structure_id": self.structure_id,
            "is_configured": self.is_configured,
        }


@dataclass
class _History:
    undo: deque = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))
    redo: list = field(default_factory=list)


class FloorPlan:
    """Editable set of table positions and fixtures for one room.

    Args:
        room: Room key the layout belongs to.
        canvas: Canvas size and grid; defaults to 800x600 with a 20px grid.
        positions: Initial positions keyed by table id.
        snap_to_grid: Snap moved/dropped items to the grid.
        fixtures: Walls, doors, windows and decorations keyed by fixture id.
    """

    def __init__(
        self,
        room: str = "main",
        canvas: Canvas | None = None,
        positions: dict[str, TablePosition] | None = None,
        snap_to_grid: bool = True,
        fixtures: dict[str, Fixture] | None = None,
    ):
        self.room = room
        self.canvas = canvas or Canvas()
        self.snap_to_grid = snap_to_grid
        self.positions: dict[str, TablePosition] = dict(positions or {})
        self.fixtures: dict[str, Fixture] = dict(fixtures or {})
        self._history = _History()
        self.dirty = False

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    @classmethod
    def from_positions(
        cls,
        room: str,
        positions: dict[str, dict[str, Any]] | None,
        canvas: Canvas | None = None,
        snap_to_grid: bool = True,
        fixtures: dict[str, dict[str, Any]] | None = None,
    ) -> FloorPlan:
        parsed = {
            str(table_id): TablePosition.from_dict(str(table_id), data)
            for table_id, data in (positions or {}).items()
        }
        items = {
            str(fixture_id): Fixture.from_dict(str(fixture_id), data)
            for fixture_id, data in (fixtures or {}).items()
        }
        return cls(room, canvas, parsed, snap_to_grid, items)

    def to_positions(self) -> dict[str, dict[str, Any]]:
        return {table_id: pos.to_dict() for table_id, pos in self.positions.items()}

    def to_fixtures(self) -> dict[str, dict[str, Any]]:
        return {fixture_id: item.to_dict() for fixture_id, item in self.fixtures.items()}

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def __contains__(self, table_id: object) -> bool:
        return table_id in self.positions

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[TablePosition]:
        return iter(self.positions.values())

    def get(self, table_id: str) -> TablePosition:
        try:
            return self.positions[table_id]
        except KeyError:
            raise LayoutError(f"Table {table_id} is not on the floor plan") from None

    def get_fixture(self, fixture_id: str) -> Fixture:
        try:
            return self.fixtures[fixture_id]
        except KeyError:
            raise LayoutError(f"Fixture {fixture_id} is not on the floor plan") from None

    def _item(self, item_id: str) -> TablePosition | Fixture:
        """Table position or fixture with this id."""
        if item_id in self.fixtures:
            return self.fixtures[item_id]
        return self.get(item_id)

    def find_by_number(self, table_number: str) -> TablePosition | None:
        for pos in self.positions.values():
            if pos.table_number == table_number:
                return pos
        return None

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def _snap(self, value: float) -> float:
        return snap(value, self.canvas.grid_size) if self.snap_to_grid else value

    def _snapshot(self) -> tuple[dict[str, TablePosition], dict[str, Fixture]]:
        return (
            {k: replace(v) for k, v in self.positions.items()},
            {k: replace(v) for k, v in self.fixtures.items()},
        )

    def _checkpoint(self) -> None:
        self._history.undo.append(self._snapshot())
        self._history.redo.clear()
        self.dirty = True

    def place(
        self,
        table: dict[str, Any],
        x: float,
        y: float,
        structure: TableStructure | str | None = None,
        from_pointer: bool = True,
    ) -> TablePosition:
        """Drop ``table`` on the canvas.

        Args:
            table: Inventory record with ``id``, ``table_number`` and ``capacity``.
            x, y: Pointer position when ``from_pointer``, else the top-left corner.
            structure: Palette structure (or its id) giving shape and size.
            from_pointer: Clamp the drop point inside the canvas margins.

        Raises:
            LayoutError: Table already placed, or its number is already used.
        """
        table_id = str(table["id"])
        if table_id in self.positions:
            raise LayoutError(f"Table {table_id} is already on the floor plan")

        table_number = table.get("table_number")
        table_number = str(table_number) if table_number is not None else None
        if table_number is not None:
            other = self.find_by_number(table_number)
            if other is not None:
                raise LayoutError(f"Table number {table_number} is already on the floor plan")

        if isinstance(structure, str):
            structure = get_structure(structure)

        if from_pointer:
            x, y = clamp_drop(x, y, self.canvas)
        position = TablePosition(
            table_id=table_id,
            x=self._snap(x),
            y=self._snap(y),
            shape=structure.shape if structure else table.get("shape") or "square",
            width=structure.width if structure else DEFAULT_WIDTH,
            height=structure.height if structure else DEFAULT_HEIGHT,
            table_number=table_number,
            capacity=table.get("capacity"),
            structure_id=structure.id if structure else None,
            is_configured=True,
        )
        self._checkpoint()
        self.positions[table_id] = position
        logger.debug(
            "Placed table %s in room %s at (%s, %s)", table_id, self.room, position.x, position.y
        )
        return position

    def _keep_on_canvas(self, item: TablePosition | Fixture) -> None:
        footprint = clamp_into(item.footprint, self.canvas)
        item.x = footprint.x
        item.y = footprint.y

    def move(
        self, item_id: str, x: float, y: float, from_pointer: bool = False
    ) -> TablePosition | Fixture:
        """Move a table or fixture; it stays inside the canvas.

        ``x``/``y`` is the top-left corner, or the pointer position of a drag
        when ``from_pointer`` (clamped to the drop margins like ``place``).
        """
        item = self._item(item_id)
        if from_pointer:
            x, y = clamp_drop(x, y, self.canvas)
        self._checkpoint()
        item.x = self._snap(x)
        item.y = self._snap(y)
        self._keep_on_canvas(item)
        return item

    def rotate(self, item_id: str, step: float = ROTATION_STEP) -> TablePosition | Fixture:
        """Turn a table or fixture clockwise by ``step`` degrees (45 by default)."""
        item = self._item(item_id)
        return self.set_rotation(item_id, item.rotation + step)

    def set_rotation(self, item_id: str, degrees: float) -> TablePosition | Fixture:
        item = self._item(item_id)
        self._checkpoint()
        item.rotation = normalize_rotation(degrees)
        return item

    def resize(self, item_id: str, width: float, height: float) -> TablePosition | Fixture:
        pos = self._item(item_id)
        if width <= 0 or height <= 0:
            raise LayoutError(f"Size must be positive, got {width}x{height}")
        self._checkpoint()
        pos.width = float(width)
        pos.height = float(height)
        return pos

    def set_shape(self, table_id: str, shape: str) -> TablePosition:
        pos = self.get(table_id)
        validate_shape(shape)
        self._checkpoint()
        pos.shape = shape
        return pos

    def configure(
        self, table_id: str, table_number: str | None = None, capacity: int | None = None
    ) -> TablePosition:
        """Refresh the table number and capacity cached on a position."""
        pos = self.get(table_id)
        if table_number is not None:
            other = self.find_by_number(str(table_number))
            if other is not None and other.table_id != table_id:
                raise LayoutError(f"Table number {table_number} is already on the floor plan")
        self._checkpoint()
        if table_number is not None:
            pos.table_number = str(table_number)
        if capacity is not None:
            pos.capacity = int(capacity)
        pos.is_configured = True
        return pos

    def remove(self, table_id: str) -> TablePosition:
        """Take a table off the plan; it stays in the inventory as unpositioned."""
        pos = self.get(table_id)
        self._checkpoint()
        del self.positions[table_id]
        return pos

    def add_fixture(
        self,
        kind: str,
        x: float,
        y: float,
        width: float | None = None,
        height: float | None = None,
        shape: str | None = None,
        label: str | None = None,
    ) -> Fixture:
        """Add a wall, door, window or decoration with its top-left corner at ``(x, y)``."""
        fixture = Fixture.create(kind, self._snap(x), self._snap(y), width, height, shape, label)
        self._keep_on_canvas(fixture)
        self._checkpoint()
        self.fixtures[fixture.fixture_id] = fixture
        logger.debug("Added %s %s in room %s", kind, fixture.fixture_id, self.room)
        return fixture

    def remove_fixture(self, fixture_id: str) -> Fixture:
        fixture = self.get_fixture(fixture_id)
        self._checkpoint()
        del self.fixtures[fixture_id]
        return fixture

    def duplicate(
        self,
        item_ids: list[str],
        new_tables: dict[str, dict[str, Any]] | None = None,
        offset: float = DUPLICATE_OFFSET,
    ) -> list[TablePosition | Fixture]:
        """Copy the selected items ``offset`` pixels down and right, as one edit.

        Args:
            item_ids: Table and fixture ids to copy.
            new_tables: Inventory record of the copy of each selected table,
                keyed by the source table id.

        Raises:
            LayoutError: Unknown id, or a table without its new inventory record.
        """
        new_tables = new_tables or {}
        sources = [self._item(item_id) for item_id in item_ids]
        copies: list[TablePosition | Fixture] = []
        for source in sources:
            if isinstance(source, Fixture):
                copy: TablePosition | Fixture = replace(source, fixture_id=get_uuid())
            else:
                table = new_tables.get(source.table_id)
                if table is None:
                    raise LayoutError(f"No new table given for the copy of {source.table_id}")
                number = table.get("table_number")
                copy = replace(
                    source,
                    table_id=str(table["id"]),
                    table_number=str(number) if number is not None else None,
                    capacity=table.get("capacity"),
                )
                if copy.table_id in self.positions:
                    raise LayoutError(f"Table {copy.table_id} is already on the floor plan")
            copy.x += offset
            copy.y += offset
            self._keep_on_canvas(copy)
            copies.append(copy)

        self._checkpoint()
        for copy in copies:
            if isinstance(copy, Fixture):
                self.fixtures[copy.fixture_id] = copy
            else:
                self.positions[copy.table_id] = copy
        return copies

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return bool(self._history.undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._history.redo)

    def undo(self) -> bool:
        if not self._history.undo:
            return False
        self._history.redo.append((self.positions, self.fixtures))
        self.positions, self.fixtures = self._history.undo.pop()
        self.dirty = True
        return True

    def redo(self) -> bool:
        if not self._history.redo:
            return False
        self._history.undo.append((self.positions, self.fixtures))
        self.positions, self.fixtures = self._history.redo.pop()
        self.dirty = True
        return True

    def mark_saved(self) -> None:
        self.dirty = False

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[dict[str, Any]]:
        """Return the problems found in the current layout.

        Each issue is ``{"type", "severity", "table_ids", "message"}``.
        Errors: duplicate_table_number, invalid_capacity.
        Warnings: overlapping_tables, table_out_of_bounds.
        """
        issues: list[dict[str, Any]] = []
        items = list(self.positions.values())

        seen: dict[str, str] = {}
        for pos in items:
            if pos.table_number is None:
                continue
            if pos.table_number in seen:
                issues.append({
                    "type": "duplicate_table_number",
                    "severity": "error",
                    "table_ids": [seen[pos.table_number], pos.table_id],
                    "message": f"Duplicate table number: {pos.table_number}",
                })
            else:
                seen[pos.table_number] = pos.table_id

        for pos in items:
            if pos.capacity is not None and pos.capacity < 1:
                issues.append({
                    "type": "invalid_capacity",
                    "severity": "error",
                    "table_ids": [pos.table_id],
                    "message": (
                        f"Table {pos.table_number or pos.table_id} has capacity {pos.capacity}"
                    ),
                })

        boxes = [(pos, pos.footprint.bounding_box()) for pos in items]
        for i, (first, first_box) in enumerate(boxes):
            for second, second_box in boxes[i + 1 :]:
                if first_box.overlaps(second_box):
                    issues.append({
                        "type": "overlapping_tables",
                        "severity": "warning",
                        "table_ids": [first.table_id, second.table_id],
                        "message": (
                            f"Tables {first.table_number or first.table_id} and "
                            f"{second.table_number or second.table_id} overlap"
                        ),
                    })

        canvas_box = self.canvas.box
        for pos, box in boxes:
            if not box.inside(canvas_box):
                issues.append({
                    "type": "table_out_of_bounds",
                    "severity": "warning",
                    "table_ids": [pos.table_id],
                    "message": (
                        f"Table {pos.table_number or pos.table_id} extends outside the floor"
                    ),
                })

        return issues

    def summary(self) -> dict[str, Any]:
        capacity = sum(pos.capacity or 0 for pos in self.positions.values())
        return {
            "room": self.room,
            "tables": len(self.positions),
            "fixtures": len(self.fixtures),
            "seats": capacity,
            "canvas": self.canvas.to_dict(),
        }


__all__ = ["DEFAULT_HEIGHT", "DEFAULT_WIDTH", "DUPLICATE_OFFSET", "FloorPlan", "TablePosition"]
