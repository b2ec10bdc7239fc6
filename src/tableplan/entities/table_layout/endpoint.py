# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Floor-plan editor REST API endpoint.

Every call loads the room's saved layout, reconciles it with the table
inventory, applies one editing operation and stores the result, all in the
request transaction. ``room`` defaults to the service's default room
("main"); any other value must be a room id of the restaurant.

Example:
    CLI commands auto-generated::

        tableplan layouts structures
        tableplan layouts place circle-4 200 160 --room <room-id>
        tableplan layouts rotate <table-id>
        tableplan layouts get --room <room-id>
        tableplan layouts reconcile
        tableplan layouts add-fixture wall 0 0 --width 400
        tableplan layouts duplicate '["<table-id>"]'
"""

from __future__ import annotations

from typing import Any, Literal

from ...errors import LayoutError
from ...floorplan import (
    Canvas,
    FloorPlan,
    Reconciliation,
    get_structure,
    list_structures,
    reconcile,
)
from ...interface.endpoint_base import BaseEndpoint, endpoint

FixtureKind = Literal["wall", "door", "window", "decoration"]


def _canvas(data: dict[str, Any] | None) -> Canvas:
    if not data:
        return Canvas()
    try:
        return Canvas(
            float(data["width"]), float(data["height"]), int(data.get("grid_size", 20))
        )
    except (KeyError, TypeError, ValueError) as e:
        raise LayoutError("Canvas needs numeric width and height") from e


class TableLayoutEndpoint(BaseEndpoint):
    """Floor-plan editing operations on the saved layout of a room."""

    name = "layouts"
    table_name = "table_layouts"

    # -------------------------------------------------------------------------
    # Loading and storing
    # -------------------------------------------------------------------------

    async def _load(
        self, tenant_id: str, restaurant_id: str, room: str | None
    ) -> tuple[FloorPlan, Reconciliation]:
        await self._require_restaurant(tenant_id, restaurant_id)
        room = await self._resolve_room(restaurant_id, room)
        stored = await self.table.load(restaurant_id, room)
        tables = await self.db.table("tables").for_restaurant(restaurant_id)
        result = reconcile(stored.get("positions"), tables, room_id=room)
        plan = FloorPlan.from_positions(
            room, result.positions, _canvas(stored.get("canvas")), fixtures=stored.get("fixtures")
        )
        return plan, result

    async def _store(self, tenant_id: str, restaurant_id: str, plan: FloorPlan) -> None:
        await self.table.store(
            tenant_id,
            restaurant_id,
            plan.room,
            plan.to_positions(),
            plan.canvas.to_dict(),
            plan.to_fixtures(),
        )
        plan.mark_saved()

    async def _claim_for_room(self, table: dict[str, Any], room: str) -> None:
        """A table placed in a room belongs to it from then on."""
        if table.get("room_id") != room:
            await self.db.table("tables").update({"room_id": room}, where={"id": table["id"]})

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def structures(self) -> list[dict[str, Any]]:
        """Palette of table structures that can be dropped on the floor plan."""
        return [s.to_dict() for s in list_structures()]

    async def list(self, tenant_id: str, restaurant_id: str) -> list[dict[str, Any]]:
        """Saved layouts of the restaurant with their table count."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return [
            {
                "room": layout["room"],
                "tables": len(layout.get("positions") or {}),
                "canvas": layout.get("canvas") or Canvas().to_dict(),
                "updated_at": layout.get("updated_at"),
            }
            for layout in await self.table.for_restaurant(restaurant_id)
        ]

    async def get(
        self, tenant_id: str, restaurant_id: str, room: str | None = None
    ) -> dict[str, Any]:
        """Reconciled floor plan of a room.

        Returns positions keyed by table id, the positioned entries, the
        unpositioned inventory tables and the orphaned position keys that a
        save would drop.
        """
        plan, result = await self._load(tenant_id, restaurant_id, room)
        return {
            "room": plan.room,
            "canvas": plan.canvas.to_dict(),
            **result.to_dict(),
            "fixtures": plan.to_fixtures(),
            "summary": plan.summary(),
        }

    async def validate(
        self, tenant_id: str, restaurant_id: str, room: str | None = None
    ) -> dict[str, Any]:
        """Check the saved layout for overlaps, out-of-bounds tables and bad data."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        issues = plan.validate()
        return {
            "room": plan.room,
            "valid": not any(i["severity"] == "error" for i in issues),
            "issues": issues,
        }

    # -------------------------------------------------------------------------
    # Whole-layout operations
    # -------------------------------------------------------------------------

    @endpoint(post=True)
    async def save(
        self,
        tenant_id: str,
        restaurant_id: str,
        positions: dict[str, dict[str, Any]],
        room: str | None = None,
        canvas: dict[str, Any] | None = None,
        fixtures: dict[str, dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Store the positions sent by the editor.

        Omitted ``canvas`` or ``fixtures`` keep the stored ones.

        Positions of unknown, inactive or other-room tables are dropped and
        reported in ``orphaned``; cached table numbers and capacities are
        refreshed from the inventory.
        """
        await self._require_restaurant(tenant_id, restaurant_id)
        room = await self._resolve_room(restaurant_id, room)
        tables = await self.db.table("tables").for_restaurant(restaurant_id)
        result = reconcile(positions, tables, room_id=room)

        stored = await self.table.load(restaurant_id, room)
        if canvas is None:
            canvas = stored.get("canvas")
        if fixtures is None:
            fixtures = stored.get("fixtures")
        plan = FloorPlan.from_positions(room, result.positions, _canvas(canvas), fixtures=fixtures)
        await self._store(tenant_id, restaurant_id, plan)

        by_id = {t["id"]: t for t in tables}
        for table_id in plan.positions:
            await self._claim_for_room(by_id[table_id], room)

        return {
            "room": room,
            "positions": plan.to_positions(),
            "fixtures": plan.to_fixtures(),
            "orphaned": result.orphaned,
            "refreshed": result.refreshed,
            "unpositioned": result.unpositioned,
            "issues": plan.validate(),
        }

    @endpoint(post=True)
    async def reconcile(
        self, tenant_id: str, restaurant_id: str, room: str | None = None
    ) -> dict[str, Any]:
        """Prune orphaned positions and refresh cached numbers; store if anything changed."""
        plan, result = await self._load(tenant_id, restaurant_id, room)
        if result.changed:
            await self._store(tenant_id, restaurant_id, plan)
        return {"room": plan.room, **result.to_dict()}

    @endpoint(post=True)
    async def set_canvas(
        self,
        tenant_id: str,
        restaurant_id: str,
        width: float,
        height: float,
        grid_size: int = 20,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Change the canvas size and grid of a room."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        plan.canvas = Canvas(width, height, grid_size)
        await self._store(tenant_id, restaurant_id, plan)
        return plan.summary()

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, room: str | None = None) -> bool:
        """Delete a room's saved layout; its tables become unpositioned."""
        await self._require_restaurant(tenant_id, restaurant_id)
        room = await self._resolve_room(restaurant_id, room)
        return await self.table.delete(where={"restaurant_id": restaurant_id, "room": room}) > 0

    # -------------------------------------------------------------------------
    # Editing operations
    # -------------------------------------------------------------------------

    @endpoint(post=True)
    async def place(
        self,
        tenant_id: str,
        restaurant_id: str,
        structure_id: str,
        x: float,
        y: float,
        table_number: str | None = None,
        capacity: int | None = None,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Drop a palette structure on the canvas, creating the inventory table.

        ``x``/``y`` is the pointer position; the table is clamped inside the
        canvas margins and snapped to the grid. Capacity defaults to the
        structure's and the table number to the next free number.
        """
        structure = get_structure(structure_id)
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        table = await self.db.table("tables").add_table(
            tenant_id,
            restaurant_id,
            table_number,
            capacity if capacity is not None else structure.default_capacity,
            room_id=plan.room,
            shape=structure.shape,
        )
        position = plan.place(table, x, y, structure)
        await self._store(tenant_id, restaurant_id, plan)
        return {"table": table, "position": position.to_dict()}

    @endpoint(post=True)
    async def position_table(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        x: float,
        y: float,
        structure_id: str | None = None,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Drop an unpositioned inventory table on the canvas."""
        plan, result = await self._load(tenant_id, restaurant_id, room)
        if table_id in plan:
            raise LayoutError(f"Table {table_id} is already on the floor plan")
        table = next((t for t in result.unpositioned if t["id"] == table_id), None)
        if table is None:
            found = await self.db.table("tables").record(
                where={"id": table_id, "tenant_id": tenant_id, "restaurant_id": restaurant_id},
                ignore_missing=True,
            )
            if not found:
                raise ValueError(f"Table '{table_id}' not found")
            raise LayoutError(f"Table {table_id} cannot be placed in room {plan.room}")

        structure = get_structure(structure_id) if structure_id else None
        position = plan.place(table, x, y, structure)
        await self._store(tenant_id, restaurant_id, plan)
        await self._claim_for_room(table, plan.room)
        return position.to_dict()

    @endpoint(post=True)
    async def move(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        x: float,
        y: float,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Move a positioned table (top-left corner, snapped to the grid)."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        position = plan.move(table_id, x, y)
        await self._store(tenant_id, restaurant_id, plan)
        return position.to_dict()

    @endpoint(post=True)
    async def rotate(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        step: float = 45,
        rotation: float | None = None,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Rotate a table clockwise by ``step`` degrees, or to an absolute ``rotation``."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        if rotation is not None:
            position = plan.set_rotation(table_id, rotation)
        else:
            position = plan.rotate(table_id, step)
        await self._store(tenant_id, restaurant_id, plan)
        return position.to_dict()

    @endpoint(post=True)
    async def resize(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        width: float,
        height: float,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Change the drawn size of a table."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        position = plan.resize(table_id, width, height)
        await self._store(tenant_id, restaurant_id, plan)
        return position.to_dict()

    @endpoint(post=True)
    async def set_shape(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        shape: str,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Change the shape of a table on the plan and in the inventory."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        position = plan.set_shape(table_id, shape)
        await self._store(tenant_id, restaurant_id, plan)
        await self.db.table("tables").update({"shape": shape}, where={"id": table_id})
        return position.to_dict()

    @endpoint(post=True)
    async def remove(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Take a table off the floor plan; it stays in the inventory as unpositioned."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        position = plan.remove(table_id)
        await self._store(tenant_id, restaurant_id, plan)
        return position.to_dict()

    @endpoint(post=True)
    async def configure(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        table_number: str | None = None,
        capacity: int | None = None,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Set the number and seats of a positioned table, on the plan and in the inventory."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        tables = self.db.table("tables")
        changes: dict[str, Any] = {}
        if table_number is not None:
            table_number = str(table_number).strip()
            if await tables.number_taken(restaurant_id, table_number, exclude_id=table_id):
                raise LayoutError(f"Table number {table_number} already exists")
            changes["table_number"] = table_number
        if capacity is not None:
            if capacity < 1:
                raise LayoutError("Capacity must be at least 1")
            changes["capacity"] = capacity

        position = plan.configure(table_id, table_number, capacity)
        await self._store(tenant_id, restaurant_id, plan)
        if changes:
            async with tables.record_to_update(table_id) as rec:
                rec.update(changes)
        return position.to_dict()

    @endpoint(post=True)
    async def duplicate(
        self,
        tenant_id: str,
        restaurant_id: str,
        item_ids: list[str],
        room: str | None = None,
    ) -> dict[str, Any]:
        """Copy selected tables and fixtures 20px down and right.

        Every copied table gets a new inventory record with the next free
        number, the capacity and shape of its source.
        """
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        tables = self.db.table("tables")
        sources = [plan.get(item_id) for item_id in item_ids if item_id not in plan.fixtures]
        new_tables: dict[str, dict[str, Any]] = {}
        for source in sources:
            stored = await tables.record(pkey=source.table_id)
            new_tables[source.table_id] = await tables.add_table(
                tenant_id,
                restaurant_id,
                None,
                stored["capacity"],
                room_id=plan.room,
                shape=stored.get("shape"),
            )
        copies = plan.duplicate(item_ids, new_tables)
        await self._store(tenant_id, restaurant_id, plan)
        return {
            "tables": list(new_tables.values()),
            "items": [copy.to_dict() for copy in copies],
        }

    # -------------------------------------------------------------------------
    # Fixtures
    # -------------------------------------------------------------------------

    @endpoint(post=True)
    async def add_fixture(
        self,
        tenant_id: str,
        restaurant_id: str,
        kind: FixtureKind,
        x: float,
        y: float,
        width: float | None = None,
        height: float | None = None,
        shape: str | None = None,
        label: str | None = None,
        room: str | None = None,
    ) -> dict[str, Any]:
        """Add a wall, door, window or decoration; size defaults to the kind's template."""
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        fixture = plan.add_fixture(kind, x, y, width, height, shape, label)
        await self._store(tenant_id, restaurant_id, plan)
        return fixture.to_dict()

    @endpoint(post=True)
    async def move_fixture(
        self,
        tenant_id: str,
        restaurant_id: str,
        fixture_id: str,
        x: float,
        y: float,
        room: str | None = None,
    ) -> dict[str, Any]:
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        plan.get_fixture(fixture_id)
        fixture = plan.move(fixture_id, x, y)
        await self._store(tenant_id, restaurant_id, plan)
        return fixture.to_dict()

    @endpoint(post=True)
    async def remove_fixture(
        self,
        tenant_id: str,
        restaurant_id: str,
        fixture_id: str,
        room: str | None = None,
    ) -> dict[str, Any]:
        plan, _ = await self._load(tenant_id, restaurant_id, room)
        fixture = plan.remove_fixture(fixture_id)
        await self._store(tenant_id, restaurant_id, plan)
        return fixture.to_dict()


__all__ = ["TableLayoutEndpoint"]
