# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Customer REST API endpoint."""

from __future__ import annotations

from typing import Any

from ...interface.endpoint_base import BaseEndpoint, endpoint


class CustomerEndpoint(BaseEndpoint):
    name = "customers"

    async def list(
        self, tenant_id: str, restaurant_id: str, search: str | None = None
    ) -> list[dict[str, Any]]:
        """List customers; ``search`` matches name, email or phone (case-insensitive).

        Contact details may be encrypted at rest, so the filter runs after
        decryption.
        """
        await self._require_restaurant(tenant_id, restaurant_id)
        customers = await self.table.select(where={"restaurant_id": restaurant_id}, order_by="name")
        if search:
            needle = search.strip().lower()
            customers = [
                c
                for c in customers
                if any(needle in (c.get(f) or "").lower() for f in ("name", "email", "phone"))
            ]
        return [self._public(c) for c in customers]

    async def get(self, tenant_id: str, restaurant_id: str, customer_id: str) -> dict[str, Any]:
        """Get a customer."""
        await self._require_restaurant(tenant_id, restaurant_id)
        customer = await self._scoped_record(tenant_id, restaurant_id, customer_id, "Customer")
        return self._public(customer)

    @endpoint(post=True)
    async def add(
        self,
        tenant_id: str,
        restaurant_id: str,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Find the customer by email/phone or create it (walk-in without contacts)."""
        await self._require_restaurant(tenant_id, restaurant_id)
        customer = await self.table.find_or_create(tenant_id, restaurant_id, name, email, phone)
        if notes is not None:
            await self.table.update({"notes": notes}, where={"id": customer["id"]})
            customer = await self.table.record(pkey=customer["id"])
        return self._public(customer)

    @endpoint(post=True)
    async def update(
        self,
        tenant_id: str,
        restaurant_id: str,
        customer_id: str,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Update customer fields; omitted fields are left unchanged."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, customer_id, "Customer")
        async with self.table.record_to_update(customer_id) as rec:
            if name is not None:
                rec["name"] = name
            if email is not None:
                rec["email"] = email
            if phone is not None:
                rec["phone"] = phone
            if notes is not None:
                rec["notes"] = notes
            if rec.get("email") or rec.get("phone"):
                rec["is_walk_in"] = False
        return self._public(await self.table.record(pkey=customer_id))

    @endpoint(post=True)
    async def delete(self, tenant_id: str, restaurant_id: str, customer_id: str) -> bool:
        """Delete a customer; their bookings are kept without a customer."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, customer_id, "Customer")
        return await self.table.delete(where={"id": customer_id}) > 0

    async def bookings(
        self, tenant_id: str, restaurant_id: str, customer_id: str
    ) -> list[dict[str, Any]]:
        """Booking history of a customer, most recent first."""
        await self._require_restaurant(tenant_id, restaurant_id)
        await self._scoped_record(tenant_id, restaurant_id, customer_id, "Customer")
        rows = await self.db.table("bookings").select(
            where={"restaurant_id": restaurant_id, "customer_id": customer_id}
        )
        return sorted(rows, key=lambda b: (b["booking_date"], b["start_time"]), reverse=True)

    def _public(self, customer: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in customer.items() if not k.endswith("_hash")}


__all__ = ["CustomerEndpoint"]
