# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Room table manager.

A room is a dining area with its own floor plan. Deleting a room deletes
its layout and leaves its tables without a room.
"""

from __future__ import annotations

import logging
from typing import Any

from ...sql import Boolean, Integer, String, Table, Timestamp

logger = logging.getLogger(__name__)

PRIORITIES = ("Low", "Medium", "High")


class RoomsTable(Table):
    name = "rooms"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("name", String, nullable=False)
        c.column("priority", String, default="Medium")
        c.column("sort_order", Integer, default=0)
        c.column("is_active", Boolean, default=1)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    def table_constraints(self) -> list[str]:
        return ['UNIQUE ("restaurant_id", "name")']

    async def trigger_on_deleting(self, record: dict[str, Any]) -> None:
        room_id = record["id"]
        restaurant_id = record["restaurant_id"]
        await self.db.table("table_layouts").delete(
            where={"restaurant_id": restaurant_id, "room": room_id}
        )
        unassigned = await self.db.table("tables").update(
            {"room_id": None}, where={"restaurant_id": restaurant_id, "room_id": room_id}, raw=True
        )
        logger.info("Room %s deleted, %d table(s) left without a room", room_id, unassigned)

    async def for_restaurant(
        self, restaurant_id: str, active_only: bool = False
    ) -> list[dict[str, Any]]:
        where: dict[str, Any] = {"restaurant_id": restaurant_id}
        if active_only:
            where["is_active"] = True
        return await self.select(where=where, order_by="sort_order, name")


__all__ = ["PRIORITIES", "RoomsTable"]
