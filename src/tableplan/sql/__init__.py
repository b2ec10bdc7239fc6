# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async SQL layer with adapter pattern and transaction support.

Components:
    SqlDb: Database manager with table registry, schema management and the
           per-task ``connection()`` transaction context.
    Table: Base class for table definitions with a Columns schema.
    DbAdapter: Abstract base for the SQLite/PostgreSQL adapters.
    Column, Columns: Schema definition with types and constraints.

Example::

    from tableplan.sql import Integer, SqlDb, String, Table

    class RoomsTable(Table):
        name = "rooms"
        pkey = "id"

        def configure(self):
            c = self.columns
            c.column("id", String)
            c.column("name", String, nullable=False)
            c.column("is_active", Integer, default=1)

    db = SqlDb("/data/tableplan.db")
    db.add_table(RoomsTable)
    async with db.connection():
        await db.check_structure()
        await db.table("rooms").insert({"name": "Terrace"})
"""

from .adapters import DbAdapter, get_adapter
from .column import Boolean, Column, Columns, Integer, Real, String, Timestamp
from .sqldb import SqlDb
from .table import RecordDuplicateError, RecordNotFoundError, RecordUpdater, Table, utc_now

__all__ = [
    "SqlDb",
    "Table",
    "RecordUpdater",
    "RecordNotFoundError",
    "RecordDuplicateError",
    "Column",
    "Columns",
    "Integer",
    "Real",
    "String",
    "Boolean",
    "Timestamp",
    "DbAdapter",
    "get_adapter",
    "utc_now",
]
