# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Bookings table manager.

Dates are stored as ISO strings (YYYY-MM-DD) and times as HH:MM, so that
string order is chronological order.

Each booking carries a management hash: the HMAC-SHA256 of
``"{booking_id}-{tenant_id}-{restaurant_id}-{action}"`` keyed with the
service secret. Guests manage their booking through links carrying it.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

from ...sql import Integer, String, Table, Timestamp

STATUSES = ("confirmed", "cancelled", "completed", "no-show")
SOURCES = ("manual", "online", "google")
HASH_ACTIONS = ("cancel", "change", "manage")


def booking_hash(
    secret: str, booking_id: str, tenant_id: str, restaurant_id: str, action: str = "manage"
) -> str:
    message = f"{booking_id}-{tenant_id}-{restaurant_id}-{action}"
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def verify_booking_hash(
    secret: str, booking: dict[str, Any], candidate: str, action: str = "manage"
) -> bool:
    """Check ``candidate`` against the hash derived for ``action``.

    The stored ``management_hash`` is only the "manage" hash, so it is never
    used here: a cancel link must carry the cancel hash.
    """
    expected = booking_hash(
        secret, booking["id"], booking["tenant_id"], booking["restaurant_id"], action
    )
    return hmac.compare_digest(expected, candidate or "")


def management_hashes(secret: str, booking: dict[str, Any]) -> dict[str, str]:
    """Hash of every guest action for ``booking``, keyed by action."""
    return {
        action: booking_hash(
            secret, booking["id"], booking["tenant_id"], booking["restaurant_id"], action
        )
        for action in HASH_ACTIONS
    }


class BookingsTable(Table):
    name = "bookings"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("customer_id", String).relation("customers")
        c.column("table_id", String).relation("tables")
        c.column("booking_date", String, nullable=False)
        c.column("start_time", String, nullable=False)
        c.column("end_time", String)
        c.column("guest_count", Integer, nullable=False)
        c.column("status", String, nullable=False, default="confirmed")
        c.column("source", String, nullable=False, default="manual")
        c.column("notes", String)
        c.column("management_hash", String)
        # manual, auto, auto_reassign or auto_conflict_resolved
        c.column("assignment_type", String)
        c.column("assigned_at", Timestamp)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    async def for_date(
        self, restaurant_id: str, booking_date: str, status: str | None = None
    ) -> list[dict[str, Any]]:
        """Bookings of a day ordered by start time."""
        where: dict[str, Any] = {"restaurant_id": restaurant_id, "booking_date": booking_date}
        if status:
            where["status"] = status
        return await self.select(where=where, order_by="start_time")

    async def for_table(self, table_id: str, booking_date: str) -> list[dict[str, Any]]:
        """Confirmed bookings of a table on a day."""
        return await self.select(
            where={"table_id": table_id, "booking_date": booking_date, "status": "confirmed"},
            order_by="start_time",
        )


__all__ = [
    "BookingsTable",
    "HASH_ACTIONS",
    "SOURCES",
    "STATUSES",
    "booking_hash",
    "management_hashes",
    "verify_booking_hash",
]
