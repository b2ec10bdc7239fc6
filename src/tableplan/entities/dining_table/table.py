# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table inventory manager.

The inventory is the source of truth for table numbers and capacities. The
floor plans only cache them, so inventory changes are pushed to the layouts:

- deleting a table removes its position from every layout of the restaurant,
  drops it from table combinations and unassigns its bookings
- moving a table to another room removes it from the old room's layout
- changing a capacity refreshes the capacity of its combinations
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import LayoutError
from ...floorplan import table_number_key
from ...floorplan.structures import validate_shape
from ...sql import Boolean, Integer, String, Table, Timestamp

logger = logging.getLogger(__name__)


class TablesTable(Table):
    name = "tables"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("table_number", String, nullable=False)
        c.column("capacity", Integer, nullable=False)
        c.column("shape", String)
        c.column("is_active", Boolean, default=1)
        # Room key: a rooms.id or the default room, NULL when not yet placed
        c.column("room_id", String).relation("rooms")
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    def table_constraints(self) -> list[str]:
        return ['UNIQUE ("restaurant_id", "table_number")']

    async def trigger_on_deleted(self, record: dict[str, Any]) -> None:
        table_id = record["id"]
        restaurant_id = record["restaurant_id"]
        await self.db.table("table_layouts").drop_table(restaurant_id, table_id)
        await self.db.table("combined_tables").drop_table(restaurant_id, table_id)
        unassigned = await self.db.table("bookings").update(
            {"table_id": None}, where={"table_id": table_id}, raw=True
        )
        if unassigned:
            logger.info("Table %s deleted, %d booking(s) unassigned", table_id, unassigned)

    async def trigger_on_updated(
        self, record: dict[str, Any], old_record: dict[str, Any]
    ) -> None:
        table_id = old_record["id"]
        restaurant_id = old_record["restaurant_id"]
        old_room = old_record.get("room_id")
        if "room_id" in record and record["room_id"] != old_room and old_room:
            await self.db.table("table_layouts").drop_table(restaurant_id, table_id, room=old_room)
        if "capacity" in record and record["capacity"] != old_record.get("capacity"):
            await self.db.table("combined_tables").refresh_capacity(restaurant_id)

    async def for_restaurant(
        self,
        restaurant_id: str,
        room_id: str | None = None,
        active_only: bool = False,
    ) -> list[dict[str, Any]]:
        """Inventory ordered by table number ("2" before "10")."""
        where: dict[str, Any] = {"restaurant_id": restaurant_id}
        if room_id is not None:
            where["room_id"] = room_id
        if active_only:
            where["is_active"] = True
        rows = await self.select(where=where)
        return sorted(rows, key=lambda t: table_number_key(t["table_number"]))

    async def add_table(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_number: str | None,
        capacity: int,
        room_id: str | None = None,
        shape: str | None = None,
    ) -> dict[str, Any]:
        """Validate and insert an inventory record.

        A missing table number is replaced by the next free numeric one.

        Raises:
            LayoutError: Capacity below 1, unknown shape, or number already used.
        """
        if capacity < 1:
            raise LayoutError("Capacity must be at least 1")
        if shape is not None:
            validate_shape(shape)
        if table_number is None or not str(table_number).strip():
            table_number = await self.next_number(restaurant_id)
        table_number = str(table_number).strip()
        if await self.number_taken(restaurant_id, table_number):
            raise LayoutError(f"Table number {table_number} already exists")

        record = {
            "tenant_id": tenant_id,
            "restaurant_id": restaurant_id,
            "table_number": table_number,
            "capacity": capacity,
            "shape": shape,
            "room_id": room_id or None,
            "is_active": True,
        }
        await self.insert(record)
        return record

    async def number_taken(
        self, restaurant_id: str, table_number: str, exclude_id: str | None = None
    ) -> bool:
        existing = await self.record(
            where={"restaurant_id": restaurant_id, "table_number": table_number},
            ignore_missing=True,
        )
        return bool(existing) and existing["id"] != exclude_id

    async def next_number(self, restaurant_id: str) -> str:
        """Smallest numeric table number greater than every numeric one in use."""
        rows = await self.select(columns=["table_number"], where={"restaurant_id": restaurant_id})
        numbers = [int(r["table_number"]) for r in rows if str(r["table_number"]).isdigit()]
        return str(max(numbers, default=0) + 1)


__all__ = ["TablesTable"]
