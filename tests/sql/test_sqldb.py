# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for SqlDb - registry, discovery, transactions and query helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tableplan.sql import Integer, SqlDb, String, Table

ENTITY_TABLES = {
    "tenants",
    "restaurants",
    "rooms",
    "tables",
    "combined_tables",
    "table_layouts",
    "customers",
    "bookings",
    "activity_log",
}


class GuestsTable(Table):
    name = "guests"
    pkey = "id"

    def configure(self):
        c = self.columns
        c.column("id", String)
        c.column("name", String)
        c.column("party_size", Integer)


class TestRegistry:
    def test_encryption_key_from_parent(self):
        class Owner:
            encryption_key = b"k" * 32

        assert SqlDb(":memory:").encryption_key is None
        assert SqlDb(":memory:", parent=Owner()).encryption_key == b"k" * 32
        assert SqlDb(":memory:", parent=object()).encryption_key is None

    def test_add_table_requires_name(self):
        class Nameless(Table):
            pass

        with pytest.raises(ValueError, match="must define 'name'"):
            SqlDb(":memory:").add_table(Nameless)

    def test_unknown_table(self):
        with pytest.raises(ValueError, match="Table 'guests' not registered"):
            SqlDb(":memory:").table("guests")

    def test_discover_entities(self):
        db = SqlDb(":memory:")
        registered = db.discover("tableplan.entities")
        assert {t.name for t in registered} == ENTITY_TABLES
        assert set(db.tables) == ENTITY_TABLES
        assert db.discover("tableplan.entities") == []

    def test_discover_missing_package(self):
        assert SqlDb(":memory:").discover("tableplan.no_such_entities") == []

    def test_discover_prefers_subclass(self, tmp_path, monkeypatch):
        pkg = tmp_path / "house_entities"
        (pkg / "booking").mkdir(parents=True)
        (pkg / "__init__.py").write_text("")
        (pkg / "booking" / "__init__.py").write_text("")
        (pkg / "booking" / "table.py").write_text(
            "from tableplan.entities.booking.table import BookingsTable\n\n\n"
            "class HouseBookingsTable(BookingsTable):\n"
            "    pass\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        db = SqlDb(":memory:")
        db.discover("tableplan.entities", "house_entities")
        assert type(db.table("bookings")).__name__ == "HouseBookingsTable"

    def test_creation_order_follows_foreign_keys(self):
        db = SqlDb(":memory:")
        db.discover("tableplan.entities")
        order = [t.name for t in db.creation_order()]
        assert order.index("tenants") < order.index("restaurants")
        for child in ("rooms", "tables", "bookings", "customers", "table_layouts"):
            assert order.index("restaurants") < order.index(child)

    async def test_check_structure_creates_then_syncs(self):
        db = SqlDb(":memory:")
        table = db.add_table(GuestsTable)
        table.create_schema = AsyncMock()
        table.sync_schema = AsyncMock()
        await db.check_structure()
        table.create_schema.assert_awaited_once()
        table.sync_schema.assert_awaited_once()


class TestConnection:
    def test_conn_outside_context(self):
        db = SqlDb(":memory:")
        assert db.in_connection is False
        with pytest.raises(RuntimeError, match="No active connection"):
            _ = db.conn

    async def test_commit_and_rollback(self, tmp_path):
        db = SqlDb(str(tmp_path / "tx.db"))
        db.add_table(GuestsTable)
        async with db.connection():
            await db.check_structure()
            await db.insert("guests", {"id": "g1", "name": "Rossi", "party_size": 2})

        with pytest.raises(RuntimeError):
            async with db.connection():
                await db.insert("guests", {"id": "g2", "name": "Bianchi", "party_size": 4})
                raise RuntimeError("walked out")

        async with db.connection():
            assert [r["id"] for r in await db.select("guests")] == ["g1"]

    async def test_nested_connection_reuses_outer(self, sqlite_db):
        outer = sqlite_db.conn
        async with sqlite_db.connection():
            assert sqlite_db.conn is outer
        assert sqlite_db.in_connection


class TestQueryHelpers:
    @pytest.fixture
    async def guests(self, sqlite_db):
        sqlite_db.add_table(GuestsTable)
        await sqlite_db.check_structure()
        for guest in (
            {"id": "g1", "name": "Rossi", "party_size": 2},
            {"id": "g2", "name": "Bianchi", "party_size": 6},
            {"id": "g3", "name": None, "party_size": 2},
        ):
            await sqlite_db.insert("guests", guest)
        return sqlite_db

    async def test_select(self, guests):
        rows = await guests.select("guests", ["id"], {"party_size": 2}, order_by="id")
        assert rows == [{"id": "g1"}, {"id": "g3"}]
        assert await guests.select("guests", ["id"], {"name": None}) == [{"id": "g3"}]
        assert len(await guests.select("guests", limit=2)) == 2

    async def test_exists(self, guests):
        assert await guests.exists("guests", {"id": "g2"})
        assert not await guests.exists("guests", {"id": "nobody"})
        assert await guests.exists("guests", {"name": None})
        assert await guests.exists("guests", {"name": "Bianchi"})
        assert not await guests.exists("guests", {"name": "Verdi"})

    async def test_update_with_overlapping_names(self, guests):
        changed = await guests.update("guests", {"party_size": 3}, {"party_size": 2})
        assert changed == 2
        assert await guests.count("guests", {"party_size": 3}) == 2

    async def test_delete_and_count(self, guests):
        assert await guests.count("guests") == 3
        await guests.delete("guests", {"id": "g1"})
        assert await guests.count("guests") == 2

    async def test_fetch_and_columns(self, guests):
        row = await guests.fetch_one(
            "SELECT COUNT(*) AS n FROM guests WHERE party_size > :m", {"m": 2}
        )
        assert row == {"n": 1}
        assert await guests.table_columns("guests") == {"id", "name", "party_size"}
