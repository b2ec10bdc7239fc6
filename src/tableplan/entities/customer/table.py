# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Customer table manager.

Email and phone are encrypted at rest when an encryption key is configured.
Encrypted values cannot be searched, so each is paired with a SHA-256 hash
of its normalised form used for lookups.
"""

from __future__ import annotations

import hashlib
from typing import Any

from ...sql import Boolean, Integer, String, Table, Timestamp

WALK_IN_NAME = "Walk-in Customer"


def normalize_email(email: str | None) -> str | None:
    email = (email or "").strip().lower()
    return email or None


def normalize_phone(phone: str | None) -> str | None:
    """Keep digits and a leading '+': "+39 06-123 45" -> "+390612345"."""
    phone = (phone or "").strip()
    digits = "".join(ch for ch in phone if ch.isdigit())
    if not digits:
        return None
    return f"+{digits}" if phone.startswith("+") else digits


def lookup_hash(value: str | None) -> str | None:
    return hashlib.sha256(value.encode()).hexdigest() if value else None


class CustomersTable(Table):
    name = "customers"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("tenant_id", String, nullable=False)
        c.column("restaurant_id", String, nullable=False).relation("restaurants", sql=True)
        c.column("name", String, nullable=False, default=WALK_IN_NAME)
        c.column("email", String, encrypted=True)
        c.column("phone", String, encrypted=True)
        c.column("email_hash", String)
        c.column("phone_hash", String)
        c.column("is_walk_in", Boolean, default=0)
        c.column("notes", String)
        c.column("total_bookings", Integer, default=0)
        c.column("last_visit", String)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    def _hash_contacts(self, record: dict[str, Any]) -> None:
        if "email" in record:
            record["email"] = normalize_email(record["email"])
            record["email_hash"] = lookup_hash(record["email"])
        if "phone" in record:
            record["phone"] = normalize_phone(record["phone"])
            record["phone_hash"] = lookup_hash(record["phone"])

    async def trigger_on_inserting(self, record: dict[str, Any]) -> dict[str, Any]:
        record = await super().trigger_on_inserting(record)
        self._hash_contacts(record)
        if not record.get("name"):
            record["name"] = WALK_IN_NAME
        return record

    async def trigger_on_updating(
        self, record: dict[str, Any], old_record: dict[str, Any]
    ) -> dict[str, Any]:
        record = await super().trigger_on_updating(record, old_record)
        self._hash_contacts(record)
        return record

    async def trigger_on_deleting(self, record: dict[str, Any]) -> None:
        await self.db.table("bookings").update(
            {"customer_id": None}, where={"customer_id": record["id"]}, raw=True
        )

    async def find(
        self, restaurant_id: str, email: str | None = None, phone: str | None = None
    ) -> dict[str, Any]:
        """Customer matching the email, else the phone; {} when none matches."""
        for column, value in (
            ("email_hash", lookup_hash(normalize_email(email))),
            ("phone_hash", lookup_hash(normalize_phone(phone))),
        ):
            if value is None:
                continue
            found = await self.record(
                where={"restaurant_id": restaurant_id, column: value},
                ignore_missing=True,
                ignore_duplicate=True,
            )
            if found:
                return found
        return {}

    async def find_or_create(
        self,
        tenant_id: str,
        restaurant_id: str,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> dict[str, Any]:
        """Existing customer with this email or phone, or a new one.

        Without email and phone a new walk-in customer is created. Missing
        contact details of an existing customer are filled in.
        """
        customer = await self.find(restaurant_id, email, phone)
        if customer:
            missing = {
                "email": email if email and not customer.get("email") else None,
                "phone": phone if phone and not customer.get("phone") else None,
            }
            missing = {k: v for k, v in missing.items() if v}
            if missing:
                await self.update(missing, where={"id": customer["id"]})
                customer = await self.record(pkey=customer["id"])
            return customer

        record = {
            "tenant_id": tenant_id,
            "restaurant_id": restaurant_id,
            "name": name or WALK_IN_NAME,
            "email": email,
            "phone": phone,
            "is_walk_in": not (email or phone),
        }
        await self.insert(record)
        return await self.record(pkey=record["id"])

    async def record_visit(self, customer_id: str, visit_date: str) -> None:
        """Count a booking and move last_visit forward (ISO dates compare as strings)."""
        async with self.record_to_update(customer_id, ignore_missing=True) as rec:
            if not rec:
                return
            rec["total_bookings"] = (rec.get("total_bookings") or 0) + 1
            if not rec.get("last_visit") or visit_date > rec["last_visit"]:
                rec["last_visit"] = visit_date


__all__ = [
    "CustomersTable",
    "WALK_IN_NAME",
    "lookup_hash",
    "normalize_email",
    "normalize_phone",
]
