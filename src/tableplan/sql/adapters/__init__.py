# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Storage backends selected from ``TABLEPLAN_DB``.

A filesystem path (or ``sqlite:<path>``) keeps everything in one SQLite file;
a ``postgresql://`` URL shares the database between instances and needs the
``postgresql`` extra (``pip install tableplan[postgresql]``).
"""

from __future__ import annotations

from .base import DbAdapter, insert_sql, quote
from .sqlite import SqliteAdapter

ADAPTERS: dict[str, type[DbAdapter]] = {"sqlite": SqliteAdapter}

_POSTGRES_SCHEMES = ("postgresql", "postgres")


def get_adapter(connection_string: str) -> DbAdapter:
    """Adapter for a database path or URL.

    Raises:
        ValueError: Neither a path nor a known ``scheme:`` prefix.
        ImportError: PostgreSQL requested without psycopg installed.
    """
    if connection_string == ":memory:" or connection_string.startswith(("/", "./")):
        return SqliteAdapter(connection_string)
    if ":" not in connection_string:
        raise ValueError(
            f"Invalid connection string: '{connection_string}'. "
            "Expected a filesystem path or 'sqlite:' / 'postgresql://'."
        )

    scheme, rest = connection_string.split(":", 1)
    scheme = scheme.lower()
    if scheme == "sqlite":
        return SqliteAdapter(rest)
    if scheme in _POSTGRES_SCHEMES:
        from .postgresql import PostgresAdapter

        for name in _POSTGRES_SCHEMES:
            ADAPTERS.setdefault(name, PostgresAdapter)
        return PostgresAdapter(f"postgresql:{rest}")
    raise ValueError(f"Unknown database type: '{scheme}'. Supported: sqlite, postgresql")


__all__ = ["ADAPTERS", "DbAdapter", "SqliteAdapter", "get_adapter", "insert_sql", "quote"]
