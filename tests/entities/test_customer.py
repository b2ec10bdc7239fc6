# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for customers: lookup by contact, encryption at rest, search."""

from __future__ import annotations

import pytest

from tableplan.encryption import is_encrypted
from tableplan.entities.customer.table import (
    WALK_IN_NAME,
    lookup_hash,
    normalize_email,
    normalize_phone,
)


@pytest.fixture
def customers(endpoints):
    return endpoints["customers"]


class TestNormalisation:
    def test_email(self):
        assert normalize_email("  Mario@Example.COM ") == "mario@example.com"
        assert normalize_email("  ") is None
        assert normalize_email(None) is None

    def test_phone(self):
        assert normalize_phone("+39 06-123 45") == "+390612345"
        assert normalize_phone("(06) 123.45") == "0612345"
        assert normalize_phone("n/a") is None

    def test_lookup_hash(self):
        assert lookup_hash(None) is None
        assert len(lookup_hash("mario@example.com")) == 64


class TestCustomerEndpoint:
    async def test_add_with_contacts(self, customers, scope):
        customer = await customers.add(
            **scope, name="Mario Rossi", email="Mario@Example.com", notes="Window seat"
        )
        assert customer["email"] == "mario@example.com"
        assert customer["notes"] == "Window seat"
        assert customer["is_walk_in"] is False
        assert "email_hash" not in customer
        assert "phone_hash" not in customer

    async def test_contacts_encrypted_at_rest(self, customers, db, scope):
        customer = await customers.add(**scope, name="Mario", email="mario@example.com")
        [row] = await db.table("customers").select(where={"id": customer["id"]}, raw=True)
        assert is_encrypted(row["email"])
        assert row["email_hash"] == lookup_hash("mario@example.com")
        assert row["phone"] is None

    async def test_same_email_finds_existing(self, customers, scope):
        first = await customers.add(**scope, name="Mario", email="mario@example.com")
        second = await customers.add(
            **scope, name="Someone Else", email="MARIO@example.com", phone="333 1234"
        )
        assert second["id"] == first["id"]
        assert second["name"] == "Mario"
        assert second["phone"] == "3331234"

    async def test_phone_lookup(self, customers, scope):
        first = await customers.add(**scope, name="Anna", phone="+39 333 1234")
        second = await customers.add(**scope, phone="+393331234")
        assert second["id"] == first["id"]

    async def test_walk_in(self, customers, scope):
        first = await customers.add(**scope)
        second = await customers.add(**scope)
        assert first["name"] == WALK_IN_NAME
        assert first["is_walk_in"] is True
        assert first["id"] != second["id"]

    async def test_update_contacts_clears_walk_in(self, customers, scope):
        customer = await customers.add(**scope)
        updated = await customers.update(
            **scope, customer_id=customer["id"], name="Luca", phone="06 555"
        )
        assert updated["name"] == "Luca"
        assert updated["phone"] == "06555"
        assert updated["is_walk_in"] is False
        assert (await customers.add(**scope, phone="06-555"))["id"] == customer["id"]

    async def test_search(self, customers, scope):
        await customers.add(**scope, name="Mario Rossi", email="mario@example.com")
        await customers.add(**scope, name="Anna Bianchi", phone="333 999")
        assert [c["name"] for c in await customers.list(**scope)] == ["Anna Bianchi", "Mario Rossi"]
        assert [c["name"] for c in await customers.list(**scope, search="ROSSI")] == ["Mario Rossi"]
        assert [c["name"] for c in await customers.list(**scope, search="example")] == [
            "Mario Rossi"
        ]
        assert [c["name"] for c in await customers.list(**scope, search="999")] == [
            "Anna Bianchi"
        ]

    async def test_customers_scoped_to_restaurant(self, customers, endpoints, scope):
        customer = await customers.add(**scope, name="Mario", email="mario@example.com")
        other = await endpoints["restaurants"].add(tenant_id="acme", name="Second")
        other_scope = {"tenant_id": "acme", "restaurant_id": other["id"]}

        elsewhere = await customers.add(**other_scope, email="mario@example.com")
        assert elsewhere["id"] != customer["id"]
        with pytest.raises(ValueError, match="Customer '.*' not found"):
            await customers.get(**other_scope, customer_id=customer["id"])

    async def test_booking_history_and_delete(self, customers, endpoints, db, scope):
        bookings = endpoints["bookings"]
        customer = await customers.add(**scope, name="Mario", email="mario@example.com")
        for day in ("2025-06-10", "2025-06-20", "2025-06-15"):
            await bookings.add(
                **scope,
                booking_date=day,
                start_time="20:00",
                guest_count=2,
                customer_id=customer["id"],
            )

        history = await customers.bookings(**scope, customer_id=customer["id"])
        assert [b["booking_date"] for b in history] == ["2025-06-20", "2025-06-15", "2025-06-10"]
        refreshed = await customers.get(**scope, customer_id=customer["id"])
        assert refreshed["total_bookings"] == 3
        assert refreshed["last_visit"] == "2025-06-20"

        assert await customers.delete(**scope, customer_id=customer["id"]) is True
        remaining = await db.table("bookings").select()
        assert len(remaining) == 3
        assert all(b["customer_id"] is None for b in remaining)
