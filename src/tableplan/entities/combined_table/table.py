# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Combined tables: named groups of inventory tables seated as one.

``total_capacity`` is always the sum of the member capacities. A combination
left with fewer than two members after a table is deleted is deactivated.
"""

from __future__ import annotations

import logging
from typing import Any

from ...sql import Boolean, Integer, String, Table, Timestamp

logger = logging.getLogger(__name__)

MIN_MEMBERS = 2


class CombinedTablesTable(Table):
    name = "combined_tables"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("name", String, nullable=False)
        c.column("table_ids", String, json_encoded=True)
        c.column("total_capacity", Integer, default=0)
        c.column("is_active", Boolean, default=1)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    async def _capacities(self, restaurant_id: str) -> dict[str, int]:
        rows = await self.db.table("tables").select(
            columns=["id", "capacity"], where={"restaurant_id": restaurant_id}
        )
        return {r["id"]: r["capacity"] for r in rows}

    async def drop_table(self, restaurant_id: str, table_id: str) -> int:
        """Remove a deleted table from every combination that contains it."""
        capacities = await self._capacities(restaurant_id)
        changed = 0
        for combo in await self.select(where={"restaurant_id": restaurant_id}):
            members = combo.get("table_ids") or []
            if table_id not in members:
                continue
            members = [m for m in members if m != table_id]
            values: dict[str, Any] = {
                "table_ids": members,
                "total_capacity": sum(capacities.get(m, 0) for m in members),
            }
            if len(members) < MIN_MEMBERS:
                values["is_active"] = False
                logger.info("Combination %s deactivated: not enough tables left", combo["id"])
            await self.update(values, where={"id": combo["id"]})
            changed += 1
        return changed

    async def refresh_capacity(self, restaurant_id: str) -> int:
        """Recompute total_capacity of the restaurant's combinations."""
        capacities = await self._capacities(restaurant_id)
        changed = 0
        for combo in await self.select(where={"restaurant_id": restaurant_id}):
            total = sum(capacities.get(m, 0) for m in combo.get("table_ids") or [])
            if total != combo.get("total_capacity"):
                await self.update({"total_capacity": total}, where={"id": combo["id"]})
                changed += 1
        return changed


__all__ = ["CombinedTablesTable", "MIN_MEMBERS"]
