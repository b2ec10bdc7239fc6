# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for sql.adapters - adapter factory and SQLite row normalisation."""

from __future__ import annotations

from datetime import datetime

import pytest

from tableplan.sql.adapters import (
    ADAPTERS,
    DbAdapter,
    SqliteAdapter,
    get_adapter,
    insert_sql,
    quote,
)


class TestGetAdapter:
    @pytest.mark.parametrize(
        "connection_string",
        ["/data/tableplan.db", "./tableplan.db", ":memory:", "sqlite:/tmp/t.db", "sqlite::memory:"],
    )
    def test_sqlite_forms(self, connection_string):
        assert isinstance(get_adapter(connection_string), SqliteAdapter)

    def test_sqlite_prefix_strips_scheme(self):
        assert get_adapter("sqlite:/tmp/t.db").db_path == "/tmp/t.db"

    def test_invalid_connection_string(self):
        with pytest.raises(ValueError, match="Invalid connection string"):
            get_adapter("tableplan.db")

    def test_unknown_database_type(self):
        with pytest.raises(ValueError, match="Unknown database type"):
            get_adapter("mysql://localhost/tableplan")

    def test_postgresql(self):
        pytest.importorskip("psycopg")
        adapter = get_adapter("postgres://user:pw@localhost:5432/tableplan")
        assert adapter.dsn == "postgresql://user:pw@localhost:5432/tableplan"
        assert "postgresql" in ADAPTERS
        assert adapter.for_update_clause() == " FOR UPDATE"

    def test_postgresql_parameter_style(self):
        pytest.importorskip("psycopg")
        from tableplan.sql.adapters.postgresql import to_pyformat

        query = "SELECT * FROM bookings WHERE id = :id AND start_time::text > :start"
        assert to_pyformat(query) == (
            "SELECT * FROM bookings WHERE id = %(id)s AND start_time::text > %(start)s"
        )

    def test_insert_sql(self):
        assert quote("table") == '"table"'
        assert insert_sql("tables", {"id": "t1", "table_number": "4"}) == (
            'INSERT INTO tables ("id", "table_number") VALUES (:id, :table_number)'
        )

    def test_registry(self):
        assert ADAPTERS["sqlite"] is SqliteAdapter
        with pytest.raises(TypeError):
            DbAdapter()  # type: ignore[abstract]


class TestSqliteAdapter:
    @pytest.fixture
    async def conn(self, tmp_path):
        adapter = SqliteAdapter(str(tmp_path / "adapter.db"))
        conn = await adapter.acquire()
        yield adapter, conn
        await adapter.release(conn)

    async def test_insert_returning_id(self, conn):
        adapter, c = conn
        await adapter.execute(
            c, "CREATE TABLE log (id INTEGER PRIMARY KEY AUTOINCREMENT, endpoint TEXT)"
        )
        first = await adapter.insert_returning_id(c, "log", {"endpoint": "POST /a"})
        second = await adapter.insert_returning_id(c, "log", {"endpoint": "POST /b"})
        assert (first, second) == (1, 2)

    async def test_named_parameters_and_columns(self, conn):
        adapter, c = conn
        await adapter.execute(c, "CREATE TABLE rooms (id TEXT PRIMARY KEY, name TEXT)")
        await adapter.execute(c, "CREATE TABLE tables (id TEXT PRIMARY KEY, capacity INTEGER)")
        for table_id, capacity in (("t1", 2), ("t2", 4)):
            count = await adapter.execute(
                c,
                insert_sql("tables", {"id": table_id, "capacity": capacity}),
                {"id": table_id, "capacity": capacity},
            )
            assert count == 1
        assert await adapter.table_columns(c, "rooms") == {"id", "name"}
        rows = await adapter.fetch_all(
            c, "SELECT * FROM tables WHERE capacity >= :min ORDER BY id", {"min": 2}
        )
        assert [r["capacity"] for r in rows] == [2, 4]

    async def test_flags_become_bool(self, conn):
        adapter, c = conn
        await adapter.execute(
            c,
            "CREATE TABLE flags (is_active INTEGER, has_notes INTEGER, active INTEGER, "
            "setup_completed INTEGER, capacity INTEGER)",
        )
        await adapter.execute(c, "INSERT INTO flags VALUES (1, 0, 1, 0, 1)")
        row = await adapter.fetch_one(c, "SELECT * FROM flags")
        assert row == {
            "is_active": True,
            "has_notes": False,
            "active": True,
            "setup_completed": False,
            "capacity": 1,
        }
        assert row["capacity"] is not True

    async def test_timestamps_but_not_dates_or_clock_times(self, conn):
        adapter, c = conn
        await adapter.execute(
            c, "CREATE TABLE bookings (booking_date TEXT, start_time TEXT, created_at TEXT)"
        )
        await adapter.execute(
            c, "INSERT INTO bookings VALUES ('2025-06-14', '20:00', '2025-06-14 18:03:00')"
        )
        row = await adapter.fetch_one(c, "SELECT * FROM bookings")
        assert row["booking_date"] == "2025-06-14"
        assert row["start_time"] == "20:00"
        assert row["created_at"] == datetime(2025, 6, 14, 18, 3)

    def test_add_column_drops_non_constant_default(self):
        sql = SqliteAdapter(":memory:").add_column_sql(
            "tables", '"updated_at" TIMESTAMP DEFAULT CURRENT_TIMESTAMP'
        )
        assert sql == 'ALTER TABLE tables ADD COLUMN "updated_at" TIMESTAMP'

    async def test_rollback(self, tmp_path):
        adapter = SqliteAdapter(str(tmp_path / "tx.db"))
        conn = await adapter.acquire()
        await adapter.execute(conn, "CREATE TABLE rooms (id TEXT PRIMARY KEY)")
        await adapter.commit(conn)
        await adapter.execute(conn, "INSERT INTO rooms VALUES ('hall')")
        await adapter.rollback(conn)
        await adapter.release(conn)

        conn = await adapter.acquire()
        assert await adapter.fetch_one(conn, "SELECT * FROM rooms") is None
        await adapter.release(conn)
        await adapter.shutdown()
