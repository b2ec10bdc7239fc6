# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table inventory REST API endpoint.

Example:
    CLI commands auto-generated::

        tableplan tables add 12 4 --room-id <room-id>
        tableplan tables list --active-only
        tableplan tables update <table-id> --capacity 6
        tableplan tables delete <table-id>
"""

from __future__ import annotations

from typing import Any

from ...errors import LayoutError
from ...floorplan.structures import validate_shape
from ...interface.endpoint_base import BaseEndpoint, endpoint


class DiningTableEndpoint(BaseEndpoint):
    """Inventory of the restaurant's tables."""

    name = "tables"

    async def list(
        self,
        tenant_id: str,
        restaurant_id: str,
        room_id: str | None = None,
        active_only: bool = False,
    ) -> list[dict[str, Any]]:
        """List tables, optionally only those of one room."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self.table.for_restaurant(restaurant_id, room_id, active_only)

    async def get(self, tenant_id: str, restaurant_id: str, table_id: str) -> dict[str, Any]:
        """Get a table."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self._scoped_record(tenant_id, restaurant_id, table_id, "Table")

    @endpoint(post=True)
    async def add(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_number: str,
        capacity: int,
        room_id: str | None = None,
        shape: str | None = None,
    ) -> dict[str, Any]:
        """Add a table to the inventory; it starts unpositioned."""
        await self._require_restaurant(tenant_id, restaurant_id)
        if room_id:
            room_id = await self._resolve_room(restaurant_id, room_id)
        record = await self.table.add_table(
            tenant_id, restaurant_id, table_number, capacity, room_id=room_id, shape=shape
        )
        return await self.table.record(pkey=record["id"])

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        table_number: str | None = None,
        capacity: int | None = None,
        room_id: str | None = None,
        shape: str | None = None,
        is_active: bool | None = None,
    ) -> dict[str, Any]:
        """Update a table; omitted fields are left unchanged.

        An empty ``room_id`` takes the table out of its room (and its floor plan).
        """
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, table_id, "Table")

        changes: dict[str, Any] = {}
        if table_number is not None:
            table_number = str(table_number).strip()
            if await self.table.number_taken(restaurant_id, table_number, exclude_id=table_id):
                raise LayoutError(f"Table number {table_number} already exists")
            changes["table_number"] = table_number
        if capacity is not None:
            if capacity < 1:
                raise LayoutError("Capacity must be at least 1")
            changes["capacity"] = capacity
        if room_id is not None:
            changes["room_id"] = (
                await self._resolve_room(restaurant_id, room_id) if room_id else None
            )
        if shape is not None:
            changes["shape"] = validate_shape(shape)
        if is_active is not None:
            changes["is_active"] = is_active

        async with self.table.record_to_update(table_id) as rec:
            rec.update(changes)
        return await self.table.record(pkey=table_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, table_id: str) -> bool:
        """Delete a table; its floor-plan positions and combinations go with it."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, table_id, "Table")
        return await self.table.delete(where={"id": table_id}) > 0


__all__ = ["DiningTableEndpoint"]
