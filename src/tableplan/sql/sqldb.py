# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database of a tableplan service: registered entity tables and transactions.

Every API request or CLI command runs inside one ``async with
db.connection()`` block: the connection is bound to the current task, and
the block commits when it ends normally and rolls back when it raises.
Tables use the connection of the block they are called from.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from .adapters import DbAdapter, get_adapter, insert_sql, quote

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .table import Table

logger = logging.getLogger(__name__)

_task_conn: ContextVar[Any] = ContextVar("tableplan_db_conn", default=None)


def where_sql(where: dict[str, Any], prefix: str = "") -> tuple[str, dict[str, Any]]:
    """``AND`` of equality tests with their parameters; None matches NULL."""
    tests: list[str] = []
    params: dict[str, Any] = {}
    for column, value in where.items():
        if value is None:
            tests.append(f"{quote(column)} IS NULL")
            continue
        tests.append(f"{quote(column)} = :{prefix}{column}")
        params[prefix + column] = value
    return " AND ".join(tests), params


class SqlDb:
    """Entity tables of one database plus the transaction of the running task.

    Args:
        connection_string: SQLite path or PostgreSQL URL.
        parent: Owning service; its ``encryption_key`` protects customer contacts.
    """

    def __init__(self, connection_string: str, parent: Any = None):
        self.connection_string = connection_string
        self.parent = parent
        self.adapter: DbAdapter = get_adapter(connection_string)
        self.tables: dict[str, Table] = {}

    @property
    def encryption_key(self) -> bytes | None:
        return getattr(self.parent, "encryption_key", None) if self.parent else None

    @property
    def conn(self) -> Any:
        conn = _task_conn.get()
        if conn is None:
            raise RuntimeError("No active connection. Use 'async with db.connection():'")
        return conn

    @property
    def in_connection(self) -> bool:
        return _task_conn.get() is not None

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[SqlDb]:
        """One transaction for the current task; nested blocks join the outer one."""
        if self.in_connection:
            yield self
            return

        conn = await self.adapter.acquire()
        token = _task_conn.set(conn)
        try:
            yield self
            await self.adapter.commit(conn)
        except Exception:
            await self.adapter.rollback(conn)
            raise
        finally:
            _task_conn.reset(token)
            await self.adapter.release(conn)

    async def shutdown(self) -> None:
        await self.adapter.shutdown()

    # -------------------------------------------------------------------------
    # Entity tables
    # -------------------------------------------------------------------------

    def add_table(self, table_class: type[Table]) -> Table:
        if not getattr(table_class, "name", None):
            raise ValueError(f"Table class {table_class.__name__} must define 'name'")
        table = table_class(self)
        self.tables[table.name] = table
        return table

    def discover(self, *packages: str) -> list[Table]:
        """Register the Table classes of ``<package>.<entity>.table`` modules.

        A subclass reusing an entity's table name replaces it, so a deployment
        package can extend the built-in entities.
        """
        chosen: dict[str, type[Table]] = {}
        for package in packages:
            for table_class in _entity_table_classes(package):
                current = chosen.get(table_class.name)
                if current is None or issubclass(table_class, current):
                    chosen[table_class.name] = table_class

        registered: list[Table] = []
        for name, table_class in chosen.items():
            current = self.tables.get(name)
            if current is None or (
                table_class is not type(current) and issubclass(table_class, type(current))
            ):
                registered.append(self.add_table(table_class))
        logger.debug("Registered tables: %s", ", ".join(t.name for t in registered))
        return registered

    def table(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise ValueError(f"Table '{name}' not registered. Use add_table() first.") from None

    def creation_order(self) -> list[Table]:
        """Tables sorted so that every foreign key target is created first."""
        ordered: list[Table] = []
        pending: set[str] = set()

        def visit(table: Table) -> None:
            if table in ordered or table.name in pending:
                return
            pending.add(table.name)
            for column in table.columns.values():
                target = self.tables.get(column.relation_table or "")
                if column.relation_sql and target is not None and target is not table:
                    visit(target)
            pending.discard(table.name)
            ordered.append(table)

        for table in self.tables.values():
            visit(table)
        return ordered

    async def check_structure(self) -> None:
        """Create missing tables, then add columns declared since they were created."""
        for table in self.creation_order():
            await table.create_schema()
            await table.sync_schema()

    # -------------------------------------------------------------------------
    # Queries on the task connection
    # -------------------------------------------------------------------------

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        return await self.adapter.execute(self.conn, query, params)

    async def fetch_one(
        self, query: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return await self.adapter.fetch_one(self.conn, query, params)

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        return await self.adapter.fetch_all(self.conn, query, params)

    async def table_columns(self, table: str) -> set[str]:
        return await self.adapter.table_columns(self.conn, table)

    async def insert(self, table: str, values: dict[str, Any]) -> int:
        return await self.execute(insert_sql(table, values), values)

    async def insert_returning_id(
        self, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        return await self.adapter.insert_returning_id(self.conn, table, values, pk_col)

    async def select(
        self,
        table: str,
        columns: list[str] | None = None,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        selected = ", ".join(quote(c) for c in columns) if columns else "*"
        query = f"SELECT {selected} FROM {table}"
        params: dict[str, Any] = {}
        if where:
            condition, params = where_sql(where)
            query += f" WHERE {condition}"
        if order_by:
            query += f" ORDER BY {order_by}"
        if limit:
            query += f" LIMIT {int(limit)}"
        return await self.fetch_all(query, params)

    async def update(self, table: str, values: dict[str, Any], where: dict[str, Any]) -> int:
        # Prefixes keep a column that is both set and filtered on apart
        condition, params = where_sql(where, prefix="whr_")
        assignments = ", ".join(f"{quote(c)} = :val_{c}" for c in values)
        params.update({f"val_{c}": v for c, v in values.items()})
        return await self.execute(f"UPDATE {table} SET {assignments} WHERE {condition}", params)

    async def delete(self, table: str, where: dict[str, Any]) -> int:
        condition, params = where_sql(where)
        return await self.execute(f"DELETE FROM {table} WHERE {condition}", params)

    async def exists(self, table: str, where: dict[str, Any]) -> bool:
        condition, params = where_sql(where)
        query = f"SELECT 1 AS hit FROM {table} WHERE {condition} LIMIT 1"
        return await self.fetch_one(query, params) is not None

    async def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        query = f"SELECT COUNT(*) AS n FROM {table}"
        params: dict[str, Any] = {}
        if where:
            condition, params = where_sql(where)
            query += f" WHERE {condition}"
        row = await self.fetch_one(query, params)
        return int(row["n"]) if row else 0


def _entity_table_classes(package: str) -> list[type[Table]]:
    """Named Table subclasses defined in the ``table`` module of each entity."""
    from .table import Table

    try:
        root = importlib.import_module(package)
    except ImportError:
        logger.warning("Entity package %s not importable", package)
        return []

    found: list[type[Table]] = []
    for _, entity, is_pkg in pkgutil.iter_modules(getattr(root, "__path__", None) or []):
        if not is_pkg:
            continue
        try:
            module = importlib.import_module(f"{package}.{entity}.table")
        except ModuleNotFoundError:
            continue
        found.extend(
            obj
            for name, obj in vars(module).items()
            if not name.startswith("_")
            and isinstance(obj, type)
            and issubclass(obj, Table)
            and obj is not Table
            and getattr(obj, "name", None)
        )
    return found


__all__ = ["SqlDb", "where_sql"]
