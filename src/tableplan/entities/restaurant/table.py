# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Restaurant table manager."""

from __future__ import annotations

from typing import Any

from ...sql import Boolean, String, Table, Timestamp

# Children deleted with a restaurant, most dependent first
_OWNED_TABLES = (
    "bookings",
    "customers",
    "combined_tables",
    "table_layouts",
    "tables",
    "rooms",
)


class RestaurantsTable(Table):
    name = "restaurants"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False).relation("tenants", sql=True)
        c.column("name", String, nullable=False)
        c.column("address", String)
        c.column("phone", String)
        c.column("email", String)
        c.column("description", String)
        c.column("setup_completed", Boolean, default=0)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    async def trigger_on_deleting(self, record: dict[str, Any]) -> None:
        for table_name in _OWNED_TABLES:
            if table_name in self.db.tables:
                await self.db.table(table_name).delete(
                    where={"restaurant_id": record["id"]}, raw=True
                )

    async def for_tenant(self, tenant_id: str) -> list[dict[str, Any]]:
        return await self.select(where={"tenant_id": tenant_id}, order_by="name")


__all__ = ["RestaurantsTable"]
