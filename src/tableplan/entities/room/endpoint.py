# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Room REST API endpoint."""

from __future__ import annotations

from typing import Any, Literal

from ...errors import LayoutError
from ...interface.endpoint_base import BaseEndpoint, endpoint

Priority = Literal["Low", "Medium", "High"]


class RoomEndpoint(BaseEndpoint):
    name = "rooms"

    async def list(
        self, tenant_id: str, restaurant_id: str, active_only: bool = False
    ) -> list[dict[str, Any]]:
        """List the restaurant's rooms."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self.table.for_restaurant(restaurant_id, active_only)

    async def get(self, tenant_id: str, restaurant_id: str, room_id: str) -> dict[str, Any]:
        """Get a room."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self._scoped_record(tenant_id, restaurant_id, room_id, "Room")

    @endpoint(post=True)
    async def add(
        self,
        tenant_id: str,
        restaurant_id: str,
        name: str,
        priority: Priority = "Medium",
        sort_order: int = 0,
    ) -> dict[str, Any]:
        """Add a room; names are unique within the restaurant."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._check_name(restaurant_id, name)
        record = {
            "tenant_id": tenant_id,
            "restaurant_id": restaurant_id,
            "name": name,
            "priority": priority,
            "sort_order": sort_order,
        }
        await self.table.insert(record)
        return await self.table.record(pkey=record["id"])

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        room_id: str,
        name: str | None = None,
        priority: Priority | None = None,
        sort_order: int | None = None,
        is_active: bool | None = None,
    ) -> dict[str, Any]:
        """Update room fields; omitted fields are left unchanged."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, room_id, "Room")
        if name is not None:
            await self._check_name(restaurant_id, name, exclude_id=room_id)
        changes = {
            "name": name,
            "priority": priority,
            "sort_order": sort_order,
            "is_active": is_active,
        }
        async with self.table.record_to_update(room_id) as rec:
            rec.update({k: v for k, v in changes.items() if v is not None})
        return await self.table.record(pkey=room_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, room_id: str) -> bool:
        """Delete a room, its floor plan, and unassign its tables."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, room_id, "Room")
        return await self.table.delete(where={"id": room_id}) > 0

    async def _check_name(
        self, restaurant_id: str, name: str, exclude_id: str | None = None
    ) -> None:
        existing = await self.table.record(
            where={"restaurant_id": restaurant_id, "name": name}, ignore_missing=True
        )
        if existing and existing["id"] != exclude_id:
            raise LayoutError(f"Room '{name}' already exists")


__all__ = ["RoomEndpoint"]
