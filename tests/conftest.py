# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: SQLite databases on temp files and a ready service.

Connection model:
- Each fixture opens a connection via `async with db.connection()`
- The connection stays open for the entire test
- Endpoint calls made by the test join that connection

SQLite ":memory:" gives every connection a fresh database, so temp files
are used instead.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from tableplan.service_base import ServiceConfig, TablePlanService
from tableplan.sql import SqlDb

TEST_KEY = bytes(range(32))
HASH_SECRET = "test-booking-secret"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's TABLEPLAN_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("TABLEPLAN_"):
            monkeypatch.delenv(name, raising=False)


@pytest_asyncio.fixture
async def sqlite_db() -> AsyncGenerator[SqlDb, None]:
    """Bare SqlDb on a temp file with an open connection."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db = SqlDb(os.path.join(tmpdir, "test.db"))
        async with db.connection():
            yield db
        await db.shutdown()


@pytest_asyncio.fixture
async def service() -> AsyncGenerator[TablePlanService, None]:
    """Initialised service (schema created, encryption on) with an open connection."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config = ServiceConfig(
            db_path=os.path.join(tmpdir, "tableplan.db"),
            test_mode=True,
            booking_hash_secret=HASH_SECRET,
        )
        svc = TablePlanService(config)
        svc.encryption.set_key(TEST_KEY)
        await svc.init()
        async with svc.db.connection():
            yield svc
        await svc.shutdown()


@pytest.fixture
def db(service):
    return service.db


@pytest.fixture
def endpoints(service):
    return service.endpoints


@pytest_asyncio.fixture
async def tenant(db) -> dict:
    await db.table("tenants").insert({"id": "acme", "name": "Acme Group", "active": True})
    return await db.table("tenants").record(pkey="acme")


@pytest_asyncio.fixture
async def restaurant(db, tenant) -> dict:
    record = {"tenant_id": tenant["id"], "name": "Trattoria Roma"}
    await db.table("restaurants").insert(record)
    return await db.table("restaurants").record(pkey=record["id"])


@pytest.fixture
def scope(restaurant) -> dict:
    """tenant_id/restaurant_id keyword arguments for endpoint calls."""
    return {"tenant_id": restaurant["tenant_id"], "restaurant_id": restaurant["id"]}


@pytest_asyncio.fixture
async def make_table(db, restaurant):
    """Factory inserting inventory tables: await make_table("1", 4, room_id=None)."""

    async def _make(table_number: str, capacity: int = 4, **extra) -> dict:
        return await db.table("tables").add_table(
            restaurant["tenant_id"], restaurant["id"], table_number, capacity, **extra
        )

    return _make
