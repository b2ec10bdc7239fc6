# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Saved floor plans.

One record per (restaurant, room). ``positions`` is the JSON mapping
``{table_id: position}`` written by the editor, ``fixtures`` the walls,
doors, windows and decorations keyed by fixture id, and ``canvas`` holds
the canvas size and grid of the room.
"""

from __future__ import annotations

import logging
from typing import Any

from ...sql import String, Table, Timestamp

logger = logging.getLogger(__name__)


class TableLayoutsTable(Table):
    name = "table_layouts"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("room", String, nullable=False, default="main")
        c.column("positions", String, json_encoded=True)
        c.column("fixtures", String, json_encoded=True)
        c.column("canvas", String, json_encoded=True)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    def table_constraints(self) -> list[str]:
        return ['UNIQUE ("restaurant_id", "room")']

    async def load(self, restaurant_id: str, room: str) -> dict[str, Any]:
        """Stored layout of a room, or {} when none was saved yet."""
        return await self.record(
            where={"restaurant_id": restaurant_id, "room": room}, ignore_missing=True
        )

    async def store(
        self,
        tenant_id: str,
        restaurant_id: str,
        room: str,
        positions: dict[str, dict[str, Any]],
        canvas: dict[str, Any] | None = None,
        fixtures: dict[str, dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Insert or replace the layout of a room; None leaves canvas or fixtures as stored."""
        async with self.record_to_update(
            {"restaurant_id": restaurant_id, "room": room},
            insert_missing=True,
            tenant_id=tenant_id,
        ) as rec:
            rec["positions"] = positions
            if canvas is not None:
                rec["canvas"] = canvas
            if fixtures is not None:
                rec["fixtures"] = fixtures
        return rec

    async def for_restaurant(self, restaurant_id: str) -> list[dict[str, Any]]:
        return await self.select(where={"restaurant_id": restaurant_id}, order_by="room")

    async def drop_table(self, restaurant_id: str, table_id: str, room: str | None = None) -> int:
        """Remove the position of ``table_id`` from the restaurant's layouts.

        Args:
            room: Limit to one room's layout.

        Returns:
            Number of layouts changed.
        """
        where: dict[str, Any] = {"restaurant_id": restaurant_id}
        if room is not None:
            where["room"] = room
        changed = 0
        for layout in await self.select(where=where):
            positions = layout.get("positions") or {}
            if table_id not in positions:
                continue
            del positions[table_id]
            await self.update({"positions": positions}, where={"id": layout["id"]})
            changed += 1
        if changed:
            logger.debug("Removed table %s from %d layout(s)", table_id, changed)
        return changed


__all__ = ["TableLayoutsTable"]
