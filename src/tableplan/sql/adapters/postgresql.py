# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL backend for restaurant groups sharing one database.

Several tableplan instances may edit the same floor plans and bookings, so
``record_to_update`` locks the row with ``SELECT ... FOR UPDATE`` here.
Connections are borrowed from a psycopg_pool pool opened on first use.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from .base import DbAdapter, insert_sql, quote

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

_NAMED_PARAM = re.compile(r"(?<!:):([A-Za-z_]\w*)")


def to_pyformat(query: str) -> str:
    """``:name`` parameters as psycopg's ``%(name)s``; ``::type`` casts are kept."""
    return _NAMED_PARAM.sub(r"%(\1)s", query)


class PostgresAdapter(DbAdapter):
    """Pooled psycopg connections, ``search_path`` pinned to ``public``."""

    def __init__(self, dsn: str, pool_size: int = 10, connect_timeout: float = 10.0):
        try:
            import psycopg  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL storage needs psycopg: pip install tableplan[postgresql]"
            ) from e
        self.dsn = dsn
        self.pool_size = pool_size
        self.connect_timeout = connect_timeout
        self._pool: Any = None

    def pk_column(self, name: str) -> str:
        return f"{quote(name)} SERIAL PRIMARY KEY"

    def for_update_clause(self) -> str:
        return " FOR UPDATE"

    async def _open_pool(self) -> Any:
        import psycopg
        from psycopg_pool import AsyncConnectionPool, PoolTimeout

        pool = AsyncConnectionPool(
            self.dsn,
            min_size=1,
            max_size=self.pool_size,
            kwargs={"options": "-c search_path=public"},
            open=False,
        )
        try:
            await pool.open(wait=True, timeout=self.connect_timeout)
        except PoolTimeout:
            await pool.close()
            raise TimeoutError(
                f"No PostgreSQL connection within {self.connect_timeout}s"
            ) from None
        except psycopg.OperationalError as e:
            await pool.close()
            raise ConnectionError(f"PostgreSQL connection failed: {e}") from e
        return pool

    async def acquire(self) -> Any:
        if self._pool is None:
            self._pool = await self._open_pool()
        return await self._pool.getconn()

    async def release(self, conn: Any) -> None:
        if self._pool is not None:
            await self._pool.putconn(conn)

    async def shutdown(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()

    async def commit(self, conn: Any) -> None:
        await conn.commit()

    async def rollback(self, conn: Any) -> None:
        await conn.rollback()

    @asynccontextmanager
    async def _run(
        self, conn: Any, query: str, params: dict[str, Any] | None
    ) -> AsyncIterator[Any]:
        from psycopg.rows import dict_row

        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(to_pyformat(query), params or {})
            yield cur

    async def execute(self, conn: Any, query: str, params: dict[str, Any] | None = None) -> int:
        async with self._run(conn, query, params) as cur:
            return cur.rowcount

    async def fetch_all(
        self, conn: Any, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        async with self._run(conn, query, params) as cur:
            return await cur.fetchall()

    async def insert_returning_id(
        self, conn: Any, table: str, values: dict[str, Any], pk_col: str = "id"
    ) -> Any:
        query = f"{insert_sql(table, values)} RETURNING {quote(pk_col)}"
        async with self._run(conn, query, values) as cur:
            row = await cur.fetchone()
        return row[pk_col] if row else None

    async def table_columns(self, conn: Any, table: str) -> set[str]:
        rows = await self.fetch_all(
            conn,
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_schema = 'public' AND table_name = :table",
            {"table": table},
        )
        return {row["column_name"] for row in rows}


__all__ = ["PostgresAdapter", "to_pyformat"]
