# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Activity log table.

Every successful POST of the API is recorded with its payload, so the
history of a floor plan or of a booking can be traced back call by call.
"""

from __future__ import annotations

import time
from typing import Any

from ...sql import Integer, String, Table


class ActivityLogTable(Table):
    """Audit trail of state-changing commands.

    Schema: id (auto-increment), command_ts (unix seconds), endpoint
    ("POST /api/layouts/move"), tenant_id, payload (JSON), response_status.
    """

    name = "activity_log"
    pkey = "id"

    def new_pkey_value(self) -> None:
        """INTEGER PRIMARY KEY autoincrement."""
        return None

    def configure(self) -> None:
        c = self.columns
        c.column("id", Integer)
        c.column("command_ts", Integer, nullable=False)
        c.column("endpoint", String, nullable=False)
        c.column("tenant_id", String)
        c.column("payload", String, nullable=False, json_encoded=True)
        c.column("response_status", Integer)

    async def log_command(
        self,
        endpoint: str,
        payload: dict[str, Any],
        *,
        tenant_id: str | None = None,
        response_status: int | None = None,
        command_ts: int | None = None,
    ) -> int:
        """Record a command; returns the generated log id.

        Args:
            endpoint: HTTP method + path (e.g. "POST /api/bookings/add").
            payload: Request parameters, stored as JSON.
            tenant_id: Tenant the command acted on.
            response_status: HTTP status returned to the caller.
            command_ts: Unix timestamp, defaults to now.
        """
        record: dict[str, Any] = {
            "command_ts": command_ts if command_ts is not None else int(time.time()),
            "endpoint": endpoint,
            "tenant_id": tenant_id,
            "payload": payload,
            "response_status": response_status,
        }
        await self.insert(record)
        return int(record.get("id") or 0)

    async def list_commands(
        self,
        *,
        tenant_id: str | None = None,
        since_ts: int | None = None,
        until_ts: int | None = None,
        endpoint_filter: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Logged commands in chronological order.

        ``endpoint_filter`` is a substring match on the endpoint.
        """
        conditions = []
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if tenant_id:
            conditions.append("tenant_id = :tenant_id")
            params["tenant_id"] = tenant_id
        if since_ts:
            conditions.append("command_ts >= :since_ts")
            params["since_ts"] = since_ts
        if until_ts:
            conditions.append("command_ts <= :until_ts")
            params["until_ts"] = until_ts
        if endpoint_filter:
            conditions.append("endpoint LIKE :endpoint_filter")
            params["endpoint_filter"] = f"%{endpoint_filter}%"

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        return await self.fetch_all(
            f"SELECT * FROM {self.name} WHERE {where_clause} "
            "ORDER BY command_ts ASC, id ASC LIMIT :limit OFFSET :offset",
            params,
        )

    async def purge_before(self, threshold_ts: int) -> int:
        """Delete entries with command_ts < threshold_ts; returns how many."""
        params = {"threshold_ts": threshold_ts}
        condition = "command_ts < :threshold_ts"
        row = await self.db.fetch_one(
            f"SELECT COUNT(*) AS cnt FROM {self.name} WHERE {condition}", params
        )
        count = int(row["cnt"]) if row else 0
        if count:
            await self.db.execute(f"DELETE FROM {self.name} WHERE {condition}", params)
        return count


__all__ = ["ActivityLogTable"]
