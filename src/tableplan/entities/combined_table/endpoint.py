# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Combined table REST API endpoint."""

from __future__ import annotations

from typing import Any

from ...errors import LayoutError
from ...interface.endpoint_base import BaseEndpoint, endpoint
from .table import MIN_MEMBERS


class CombinedTableEndpoint(BaseEndpoint):
    name = "combined_tables"

    async def list(
        self, tenant_id: str, restaurant_id: str, active_only: bool = False
    ) -> list[dict[str, Any]]:
        """List table combinations."""
        await self._require_restaurant(tenant_id, restaurant_id)
        where: dict[str, Any] = {"restaurant_id": restaurant_id}
        if active_only:
            where["is_active"] = True
        return await self.table.select(where=where, order_by="name")

    async def get(self, tenant_id: str, restaurant_id: str, combination_id: str) -> dict[str, Any]:
        """Get a table combination."""
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self._scoped_record(tenant_id, restaurant_id, combination_id, "Combination")

    @endpoint(post=True)
    async def add(
        self, tenant_id: str, restaurant_id: str, name: str, table_ids: list[str]
    ) -> dict[str, Any]:
        """Combine two or more tables of the restaurant under a name."""
        await self._require_restaurant(tenant_id, restaurant_id)
        members, total = await self._check_members(restaurant_id, table_ids)
        record = {
            "tenant_id": tenant_id,
            "restaurant_id": restaurant_id,
            "name": name,
            "table_ids": members,
            "total_capacity": total,
            "is_active": True,
        }
        await self.table.insert(record)
        return await self.table.record(pkey=record["id"])

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        combination_id: str,
        name: str | None = None,
        table_ids: list[str] | None = None,
        is_active: bool | None = None,
    ) -> dict[str, Any]:
        """Rename, change members or (de)activate a combination."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, combination_id, "Combination")
        async with self.table.record_to_update(combination_id) as rec:
            if name is not None:
                rec["name"] = name
            if table_ids is not None:
                rec["table_ids"], rec["total_capacity"] = await self._check_members(
                    restaurant_id, table_ids
                )
            if is_active is not None:
                rec["is_active"] = is_active
        return await self.table.record(pkey=combination_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, combination_id: str) -> bool:
        """Delete a combination; member tables are not affected."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, combination_id, "Combination")
        return await self.table.delete(where={"id": combination_id}) > 0

    async def _check_members(
        self, restaurant_id: str, table_ids: list[str]
    ) -> tuple[list[str], int]:
        members = list(dict.fromkeys(str(t) for t in table_ids))
        if len(members) < MIN_MEMBERS:
            raise LayoutError(f"A combination needs at least {MIN_MEMBERS} different tables")
        tables = await self.db.table("tables").for_restaurant(restaurant_id)
        by_id = {t["id"]: t for t in tables}
        total = 0
        for table_id in members:
            table = by_id.get(table_id)
            if table is None:
                raise ValueError(f"Table '{table_id}' not found")
            total += table["capacity"]
        return members, total


__all__ = ["CombinedTableEndpoint"]
