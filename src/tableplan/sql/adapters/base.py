# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Backend contract of the storage layer.

SqlDb holds the connection of the running request in a context variable and
hands it to the adapter on every call; an adapter only opens, uses and
closes connections. SQL is always written with ``:name`` parameters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


def quote(name: str) -> str:
    """Column name as a quoted SQL identifier."""
    return f'"{name}"'


def insert_sql(table: str, values: dict[str, Any]) -> str:
    columns = ", ".join(quote(c) for c in values)
    params = ", ".join(f":{c}" for c in values)
    return f"INSERT INTO {table} ({columns}) VALUES ({params})"


class DbAdapter(ABC):
    """SQLite or PostgreSQL specifics: connections, rows and DDL dialect."""

    def pk_column(self, name: str) -> str:
        """Column definition of an integer key the backend numbers itself."""
        return f"{quote(name)} INTEGER PRIMARY KEY"

    def for_update_clause(self) -> str:
        return ""

    def add_column_sql(self, table: str, column_sql: str) -> str:
        return f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column_sql}"

    @abstractmethod
    async def acquire(self) -> Any:
        """Connection for one request."""

    @abstractmethod
    async def release(self, conn: Any) -> None: ...

    @abstractmethod
    async def shutdown(self) -> None: ...

    @abstractmethod
    async def commit(self, conn: Any) -> None: ...

    @abstractmethod
    async def rollback(self, conn: Any) -> None: ...

    @abstractmethod
    async def execute(self, conn: Any, query: str, params: dict[str, Any] | None = None) -> int:
        """Run a statement; returns the number of rows it touched."""

    @abstractmethod
    async def fetch_all(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]: ...

    async def fetch_one(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        rows = await self.fetch_all(conn, query, params)
        return rows[0] if rows else None

    @abstractmethod
    async def insert_returning_id(
        self, conn: Any, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        """Insert one row and return the key the backend generated for it."""

    @abstractmethod
    async def table_columns(self, conn: Any, table: str) -> set[str]:
        """Columns the stored table has now, used to add newly declared ones."""


__all__ = ["DbAdapter", "insert_sql", "quote"]
