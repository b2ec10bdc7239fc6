# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Restaurant REST API endpoint.

Example:
    CLI commands auto-generated::

        tableplan restaurants add "Trattoria Roma" --address "Via Po 3"
        tableplan restaurants list
        tableplan restaurants update --restaurant-id <id> --setup-completed
"""

from __future__ import annotations

from typing import Any

from ...interface.endpoint_base import BaseEndpoint, endpoint


class RestaurantEndpoint(BaseEndpoint):
    """Restaurants of a tenant."""

    name = "restaurants"

    async def list(self, tenant_id: str) -> list[dict[str, Any]]:
        """List the tenant's restaurants."""
        return await self.table.for_tenant(tenant_id)

    async def get(self, tenant_id: str, restaurant_id: str) -> dict[str, Any]:
        """Get a restaurant.

        Raises:
            ValueError: "Restaurant not found" when missing or owned by another tenant.
        """
        return await self._require_restaurant(tenant_id, restaurant_id)

    @endpoint(post=True)
    async def add(
        self,
        tenant_id: str,
        name: str,
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Add a restaurant."""
        if not await self.db.table("tenants").exists({"id": tenant_id}):
            raise ValueError(f"Tenant '{tenant_id}' not found")
        record = {
            "tenant_id": tenant_id,
            "name": name,
            "address": address,
            "phone": phone,
            "email": email,
            "description": description,
        }
        await self.table.insert(record)
        return await self.table.record(pkey=record["id"])

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        name: str | None = None,
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        description: str | None = None,
        setup_completed: bool | None = None,
    ) -> dict[str, Any]:
        """Update restaurant fields; omitted fields are left unchanged."""
        await self._require_restaurant(tenant_id, restaurant_id)
        changes = {
            "name": name,
            "address": address,
            "phone": phone,
            "email": email,
            "description": description,
            "setup_completed": setup_completed,
        }
        async with self.table.record_to_update(restaurant_id) as rec:
            rec.update({k: v for k, v in changes.items() if v is not None})
        return await self.table.record(pkey=restaurant_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str) -> bool:
        """Delete a restaurant with its rooms, tables, layouts, customers and bookings."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self.table.delete(where={"id": restaurant_id}) > 0


__all__ = ["RestaurantEndpoint"]
