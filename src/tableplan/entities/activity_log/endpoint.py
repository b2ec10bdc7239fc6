# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Activity log REST API endpoint (admin only)."""

from __future__ import annotations

import time
from typing import Any

from ...interface.endpoint_base import BaseEndpoint, endpoint


class ActivityLogEndpoint(BaseEndpoint):
    name = "activity"
    table_name = "activity_log"
    admin_only = True

    async def list(
        self,
        tenant_id: str | None = None,
        since_ts: int | None = None,
        until_ts: int | None = None,
        endpoint_filter: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List logged commands, oldest first."""
        return await self.table.list_commands(
            tenant_id=tenant_id,
            since_ts=since_ts,
            until_ts=until_ts,
            endpoint_filter=endpoint_filter,
            limit=limit,
            offset=offset,
        )

    async def get(self, id: int) -> dict[str, Any]:
        """Get a log entry."""
        return await super().get(id)

    @endpoint(post=True)
    async def purge(self, older_than_days: int = 30) -> dict[str, Any]:
        """Delete entries older than ``older_than_days``."""
        threshold = int(time.time()) - older_than_days * 86400
        return {"deleted": await self.table.purge_before(threshold), "threshold_ts": threshold}


__all__ = ["ActivityLogEndpoint"]
