# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Booking REST API endpoint.

Bookings are validated against the table inventory: a table assigned by hand
must fit the party and be free for the booking window. ``auto_assign`` is
the batch job that gives a table to every confirmed booking starting within
the next two hours.

Example:
    CLI commands auto-generated::

        tableplan bookings add 2025-06-14 20:00 4 --customer-name Rossi
        tableplan bookings list --booking-date 2025-06-14
        tableplan bookings availability 2025-06-14 20:00 4
        tableplan bookings auto-assign
        tableplan bookings conflicts 2025-06-14
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Literal

from ...errors import BookingError
from ...interface.endpoint_base import BaseEndpoint, endpoint
from ...scheduling import AutoAssigner, ConflictDetector, booking_window, windows_overlap
from ...scheduling.assignment import MANUAL
from ...scheduling.timeslots import parse_date, time_to_minutes
from ...sql import utc_now
from .table import booking_hash, management_hashes, verify_booking_hash

logger = logging.getLogger(__name__)

Status = Literal["confirmed", "cancelled", "completed", "no-show"]
Source = Literal["manual", "online", "google"]
HashAction = Literal["cancel", "change", "manage"]
CancelAction = Literal["cancel", "manage"]

# Fields a guest sees through a management link
_GUEST_FIELDS = (
    "id",
    "booking_date",
    "start_time",
    "end_time",
    "guest_count",
    "status",
    "notes",
)


class BookingEndpoint(BaseEndpoint):
    name = "bookings"

    @property
    def _hash_secret(self) -> str:
        return self.service.config.booking_hash_secret if self.service else "change-me"

    @property
    def _public_url(self) -> str:
        return self.service.config.public_url if self.service else "http://localhost:8000"

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _check_slot(
        self, booking_date: str, start_time: str, end_time: str | None, guest_count: int
    ) -> str:
        """Validate date, times and party size; returns the ISO date."""
        if guest_count < 1:
            raise BookingError("Guest count must be at least 1")
        day = parse_date(booking_date).isoformat()
        start = time_to_minutes(start_time)
        if end_time and time_to_minutes(end_time) <= start:
            raise BookingError("End time must be after start time")
        return day

    async def _check_table(
        self,
        tenant_id: str,
        restaurant_id: str,
        table_id: str,
        booking: dict[str, Any],
    ) -> dict[str, Any]:
        """Table the booking can sit at, or BookingError.

        The table must be active, large enough for the party, and have no
        other confirmed booking whose window overlaps this one.
        """
        table = await self.db.table("tables").record(
            where={"id": table_id, "tenant_id": tenant_id, "restaurant_id": restaurant_id},
            ignore_missing=True,
        )
        if not table:
            raise ValueError(f"Table '{table_id}' not found")
        if not table.get("is_active", True):
            raise BookingError(f"Table {table['table_number']} is not active")
        if booking["guest_count"] > table["capacity"]:
            raise BookingError(
                f"Table {table['table_number']} seats {table['capacity']}, "
                f"party of {booking['guest_count']}"
            )

        window = booking_window(booking)
        for other in await self.table.for_table(table_id, booking["booking_date"]):
            if other["id"] == booking.get("id"):
                continue
            if windows_overlap(window, booking_window(other)):
                raise BookingError(
                    f"Table {table['table_number']} is already booked at {other['start_time']}"
                )
        return table

    async def _booking(self, tenant_id: str, restaurant_id: str, booking_id: str) -> dict:
        await self._require_restaurant(tenant_id, restaurant_id)
        return await self._scoped_record(tenant_id, restaurant_id, booking_id, "Booking")

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def list(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_date: str | None = None,
        status: Status | None = None,
    ) -> list[dict[str, Any]]:
        """List bookings, optionally of one day and/or status."""
        await self._require_restaurant(tenant_id, restaurant_id)
        if booking_date:
            return await self.table.for_date(
                restaurant_id, parse_date(booking_date).isoformat(), status
            )
        where: dict[str, Any] = {"restaurant_id": restaurant_id}
        if status:
            where["status"] = status
        return await self.table.select(where=where, order_by="booking_date, start_time")

    async def get(self, tenant_id: str, restaurant_id: str, booking_id: str) -> dict[str, Any]:
        """Get a booking."""
        return await self._booking(tenant_id, restaurant_id, booking_id)

    @endpoint(post=True)
    async def add(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_date: str,
        start_time: str,
        guest_count: int,
        end_time: str | None = None,
        table_id: str | None = None,
        customer_id: str | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
        customer_phone: str | None = None,
        source: Source = "manual",
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Create a confirmed booking.

        The customer is ``customer_id`` or is looked up by email/phone and
        created when unknown (a walk-in without contacts). A ``table_id``
        assigns the table by hand; otherwise the booking waits for
        ``assign_table`` or ``auto_assign``.
        """
        await self._require_restaurant(tenant_id, restaurant_id)
        day = self._check_slot(booking_date, start_time, end_time, guest_count)
        record: dict[str, Any] = {
            "id": self.table.new_pkey_value(),
            "tenant_id": tenant_id,
            "restaurant_id": restaurant_id,
            "booking_date": day,
            "start_time": start_time,
            "end_time": end_time,
            "guest_count": guest_count,
            "status": "confirmed",
            "source": source,
            "notes": notes,
        }
        if table_id:
            await self._check_table(tenant_id, restaurant_id, table_id, record)
            record.update(table_id=table_id, assignment_type=MANUAL, assigned_at=utc_now())

        customers = self.db.table("customers")
        if customer_id:
            customer = await customers.record(
                where={"id": customer_id, "restaurant_id": restaurant_id}, ignore_missing=True
            )
            if not customer:
                raise ValueError(f"Customer '{customer_id}' not found")
        else:
            customer = await customers.find_or_create(
                tenant_id, restaurant_id, customer_name, customer_email, customer_phone
            )
        record["customer_id"] = customer["id"]
        record["management_hash"] = booking_hash(
            self._hash_secret, record["id"], tenant_id, restaurant_id
        )

        await self.table.insert(record)
        await customers.record_visit(customer["id"], day)
        logger.info("Booking %s created for %s at %s", record["id"], day, start_time)
        return await self.table.record(pkey=record["id"])

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_id: str,
        booking_date: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        guest_count: int | None = None,
        status: Status | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Update a booking; the assigned table is checked again when the slot changes.

        Confirming a cancelled or no-show booking checks the table the same way.

        An empty ``end_time`` clears it.
        """
        current = await self._booking(tenant_id, restaurant_id, booking_id)
        changes: dict[str, Any] = {}
        if booking_date is not None:
            changes["booking_date"] = booking_date
        if start_time is not None:
            changes["start_time"] = start_time
        if end_time is not None:
            changes["end_time"] = end_time or None
        if guest_count is not None:
            changes["guest_count"] = guest_count
        if status is not None:
            changes["status"] = status
        if notes is not None:
            changes["notes"] = notes

        merged = {**current, **changes}
        merged["booking_date"] = self._check_slot(
            merged["booking_date"], merged["start_time"], merged["end_time"], merged["guest_count"]
        )
        if "booking_date" in changes:
            changes["booking_date"] = merged["booking_date"]

        slot_changed = any(
            k in changes for k in ("booking_date", "start_time", "end_time", "guest_count")
        )
        reconfirmed = changes.get("status") == "confirmed" and current["status"] != "confirmed"
        recheck = slot_changed or reconfirmed
        if recheck and merged.get("table_id") and merged["status"] == "confirmed":
            await self._check_table(tenant_id, restaurant_id, merged["table_id"], merged)

        if changes:
            await self.table.update(changes, where={"id": booking_id})
        return await self.table.record(pkey=booking_id)

    @endpoint(post=True)
    async def cancel(self, tenant_id: str, restaurant_id: str, booking_id: str) -> dict[str, Any]:
        """Cancel a booking; its table becomes free for the slot."""
        booking = await self._booking(tenant_id, restaurant_id, booking_id)
        if booking["status"] != "cancelled":
            await self.table.update({"status": "cancelled"}, where={"id": booking_id})
        return await self.table.record(pkey=booking_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, booking_id: str) -> bool:
        """Delete a booking."""
        await self._booking(tenant_id, restaurant_id, booking_id)
        return await self.table.delete(where={"id": booking_id}) > 0

    # -------------------------------------------------------------------------
    # Guest management links
    # -------------------------------------------------------------------------

    async def _by_hash(self, booking_id: str, hash: str, action: str) -> dict[str, Any]:
        booking = await self.table.record(pkey=booking_id, ignore_missing=True)
        if not booking or not verify_booking_hash(self._hash_secret, booking, hash, action):
            # Same answer for unknown ids and wrong hashes
            raise ValueError("Booking not found")
        return booking

    async def get_by_hash(
        self, booking_id: str, hash: str, action: HashAction = "manage"
    ) -> dict[str, Any]:
        """Guest view of a booking reached through a management link."""
        booking = await self._by_hash(booking_id, hash, action)
        restaurant = await self.db.table("restaurants").record(
            pkey=booking["restaurant_id"], ignore_missing=True
        )
        return {
            **{k: booking.get(k) for k in _GUEST_FIELDS},
            "restaurant_name": restaurant.get("name"),
        }

    async def management_links(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_id: str,
        base_url: str | None = None,
    ) -> dict[str, Any]:
        """Cancel and change links for the guest confirmation message."""
        booking = await self._booking(tenant_id, restaurant_id, booking_id)
        hashes = management_hashes(self._hash_secret, booking)
        base = (base_url or self._public_url).rstrip("/")
        links: dict[str, Any] = {"id": booking_id}
        for action in ("cancel", "change"):
            links[f"{action}_hash"] = hashes[action]
            links[f"{action}_url"] = (
                f"{base}/booking-manage/{booking_id}?action={action}&hash={hashes[action]}"
            )
        return links

    @endpoint(post=True)
    async def cancel_by_hash(
        self, booking_id: str, hash: str, action: CancelAction = "cancel"
    ) -> dict[str, Any]:
        """Cancel a booking from a guest management link.

        Raises:
            BookingError: The booking is not confirmed any more.
        """
        booking = await self._by_hash(booking_id, hash, action)
        if booking["status"] != "confirmed":
            raise BookingError(f"Booking is {booking['status']} and cannot be cancelled")
        await self.table.update({"status": "cancelled"}, where={"id": booking_id})
        logger.info("Booking %s cancelled by guest", booking_id)
        return {"id": booking_id, "status": "cancelled"}

    # -------------------------------------------------------------------------
    # Table assignment
    # -------------------------------------------------------------------------

    @endpoint(post=True)
    async def assign_table(
        self, tenant_id: str, restaurant_id: str, booking_id: str, table_id: str
    ) -> dict[str, Any]:
        """Assign a table by hand (capacity and availability are checked)."""
        booking = await self._booking(tenant_id, restaurant_id, booking_id)
        if booking["status"] != "confirmed":
            raise BookingError(f"Booking is {booking['status']}")
        await self._check_table(tenant_id, restaurant_id, table_id, booking)
        await self.table.update(
            {"table_id": table_id, "assignment_type": MANUAL, "assigned_at": utc_now()},
            where={"id": booking_id},
        )
        return await self.table.record(pkey=booking_id)

    @endpoint(post=True)
    async def unassign_table(
        self, tenant_id: str, restaurant_id: str, booking_id: str
    ) -> dict[str, Any]:
        """Take the table away from a booking."""
        await self._booking(tenant_id, restaurant_id, booking_id)
        await self.table.update(
            {"table_id": None, "assignment_type": None, "assigned_at": None},
            where={"id": booking_id},
        )
        return await self.table.record(pkey=booking_id)

    @endpoint(post=True)
    async def auto_assign(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_date: str | None = None,
        now: str | None = None,
    ) -> dict[str, Any]:
        """Assign tables to the due unassigned bookings of a day.

        A booking is due when it starts within the next two hours (relative
        to ``now``, an ISO datetime, default the current local time). When
        no table is free, confirmed bookings blocking a suitable table may be
        moved to other tables. Bookings left without a table are reported in
        ``unassigned``.
        """
        await self._require_restaurant(tenant_id, restaurant_id)
        try:
            current = datetime.fromisoformat(now) if now else datetime.now()
        except ValueError as e:
            raise BookingError(f"Invalid datetime '{now}'") from e
        current = current.replace(tzinfo=None)
        day = parse_date(booking_date).isoformat() if booking_date else current.date().isoformat()

        tables = await self.db.table("tables").for_restaurant(restaurant_id, active_only=True)
        bookings = await self.table.for_date(restaurant_id, day)
        by_id = {b["id"]: b for b in bookings}
        assigner = AutoAssigner()

        assigned: list[dict[str, Any]] = []
        unassigned: list[str] = []
        for booking in bookings:
            if booking["status"] != "confirmed" or booking.get("table_id"):
                continue
            try:
                if not assigner.is_due(booking, current):
                    continue
                plan = assigner.assign(booking, tables, bookings)
            except BookingError:
                logger.exception("Booking %s has invalid times, skipped", booking["id"])
                unassigned.append(booking["id"])
                continue
            if not plan:
                logger.warning(
                    "No table for booking %s (%d guests at %s)",
                    booking["id"],
                    booking["guest_count"],
                    booking["start_time"],
                )
                unassigned.append(booking["id"])
                continue
            for assignment in plan:
                await self.table.update(
                    {
                        "table_id": assignment.table_id,
                        "assignment_type": assignment.assignment_type,
                        "assigned_at": utc_now(),
                    },
                    where={"id": assignment.booking_id},
                )
                by_id[assignment.booking_id]["table_id"] = assignment.table_id
                assigned.append(assignment.to_dict())

        logger.info(
            "Auto-assign %s %s: %d assignment(s), %d left unassigned",
            restaurant_id,
            day,
            len(assigned),
            len(unassigned),
        )
        return {"date": day, "assigned": assigned, "unassigned": unassigned}

    # -------------------------------------------------------------------------
    # Planning views
    # -------------------------------------------------------------------------

    async def conflicts(
        self, tenant_id: str, restaurant_id: str, booking_date: str
    ) -> list[dict[str, Any]]:
        """Capacity, double-booking and peak-congestion conflicts of a day."""
        await self._require_restaurant(tenant_id, restaurant_id)
        day = parse_date(booking_date).isoformat()
        bookings = await self.table.for_date(restaurant_id, day)
        tables = await self.db.table("tables").for_restaurant(restaurant_id, active_only=True)
        return ConflictDetector().detect_all(bookings, tables)

    async def availability(
        self,
        tenant_id: str,
        restaurant_id: str,
        booking_date: str,
        start_time: str,
        guest_count: int,
        end_time: str | None = None,
    ) -> list[dict[str, Any]]:
        """Active tables that fit the party and are free for the slot, smallest first."""
        await self._require_restaurant(tenant_id, restaurant_id)
        day = self._check_slot(booking_date, start_time, end_time, guest_count)
        slot = {
            "booking_date": day,
            "start_time": start_time,
            "end_time": end_time,
            "guest_count": guest_count,
        }
        tables = await self.db.table("tables").for_restaurant(restaurant_id, active_only=True)
        bookings = [
            b for b in await self.table.for_date(restaurant_id, day) if b["status"] == "confirmed"
        ]
        assigner = AutoAssigner(buffer=0)
        return [
            {
                "table_id": t["id"],
                "table_number": t["table_number"],
                "capacity": t["capacity"],
                "room_id": t.get("room_id"),
            }
            for t in assigner.suitable_tables(slot, tables)
            if not assigner.blocking_bookings(slot, t["id"], bookings)
        ]


__all__ = ["BookingEndpoint"]
