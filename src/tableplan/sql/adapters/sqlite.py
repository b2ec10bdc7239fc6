# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite backend on aiosqlite, the default single-restaurant store.

Each request opens its own connection. SQLite has no boolean or timestamp
types, so rows are converted on the way out to what PostgreSQL returns:

- ``is_*``/``has_*``/``use_*`` flags and a few known flag names become ``bool``
- ``*_at`` and other timestamp columns holding a date and a time become
  ``datetime``; booking dates (``2025-06-14``) and clock times (``20:00``)
  stay strings
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

import aiosqlite

from .base import DbAdapter, insert_sql

# ALTER TABLE ... ADD COLUMN rejects these defaults
_CLOCK_DEFAULT = re.compile(r"\s+DEFAULT\s+CURRENT_(?:TIMESTAMP|DATE|TIME)\b")

_FLAG_PREFIXES = ("is_", "use_", "has_")
_FLAG_NAMES = frozenset({"active", "enabled", "setup_completed"})
_STAMP_SUFFIXES = ("_at", "_date", "_time")
_STAMP_NAMES = frozenset({"created", "updated", "timestamp", "expires"})


def _is_flag(column: str) -> bool:
    return column.startswith(_FLAG_PREFIXES) or column in _FLAG_NAMES


def _is_stamp(column: str) -> bool:
    return column.endswith(_STAMP_SUFFIXES) or column in _STAMP_NAMES


def _to_datetime(value: str) -> datetime | str:
    if "T" not in value and " " not in value:
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value


def convert_row(columns: list[str], values: tuple[Any, ...]) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for column, value in zip(columns, values, strict=True):
        if isinstance(value, str) and _is_stamp(column):
            value = _to_datetime(value)
        elif isinstance(value, int) and value in (0, 1) and _is_flag(column):
            value = bool(value)
        row[column] = value
    return row


class SqliteAdapter(DbAdapter):
    def __init__(self, db_path: str):
        self.db_path = db_path or ":memory:"

    def add_column_sql(self, table: str, column_sql: str) -> str:
        return f"ALTER TABLE {table} ADD COLUMN {_CLOCK_DEFAULT.sub('', column_sql)}"

    async def acquire(self) -> aiosqlite.Connection:
        return await aiosqlite.connect(self.db_path)

    async def release(self, conn: aiosqlite.Connection) -> None:
        await conn.close()

    async def shutdown(self) -> None:
        """Connections are closed per request; nothing is pooled."""

    async def commit(self, conn: aiosqlite.Connection) -> None:
        await conn.commit()

    async def rollback(self, conn: aiosqlite.Connection) -> None:
        await conn.rollback()

    async def execute(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> int:
        cursor = await conn.execute(query, params or {})
        return cursor.rowcount

    async def fetch_all(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        async with conn.execute(query, params or {}) as cursor:
            columns = [d[0] for d in cursor.description]
            return [convert_row(columns, values) for values in await cursor.fetchall()]

    async def fetch_one(
        self, conn: aiosqlite.Connection, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        async with conn.execute(query, params or {}) as cursor:
            values = await cursor.fetchone()
            if values is None:
                return None
            return convert_row([d[0] for d in cursor.description], values)

    async def insert_returning_id(
        self, conn: aiosqlite.Connection, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        cursor = await conn.execute(insert_sql(table, values), values)
        return cursor.lastrowid

    async def table_columns(self, conn: aiosqlite.Connection, table: str) -> set[str]:
        async with conn.execute(f"PRAGMA table_info({table})") as cursor:
            return {info[1] for info in await cursor.fetchall()}


__all__ = ["SqliteAdapter", "convert_row"]
