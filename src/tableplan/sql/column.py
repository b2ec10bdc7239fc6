# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Column definitions for Table schemas."""

from __future__ import annotations

from typing import Any

String = "TEXT"
Integer = "INTEGER"
Real = "REAL"
Boolean = "BOOLEAN"
Timestamp = "TIMESTAMP"

# Defaults rendered as SQL expressions rather than literals
_SQL_DEFAULTS = frozenset({"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME"})


class Column:
    """Single column definition.

    Attributes:
        name: Column name.
        type_: SQL type (TEXT, INTEGER, REAL, BOOLEAN, TIMESTAMP).
        nullable: Whether NULL is accepted.
        default: Default value (literal or SQL keyword like CURRENT_TIMESTAMP).
        unique: Add a UNIQUE constraint.
        json_encoded: Value is stored as JSON text and decoded on read.
        encrypted: Value is encrypted at rest when a key is configured.
    """

    def __init__(
        self,
        name: str,
        type_: str = String,
        nullable: bool = True,
        default: Any = None,
        unique: bool = False,
        json_encoded: bool = False,
        encrypted: bool = False,
    ):
        self.name = name
        self.type_ = type_
        self.nullable = nullable
        self.default = default
        self.unique = unique
        self.json_encoded = json_encoded
        self.encrypted = encrypted
        self.relation_table: str | None = None
        self.relation_pk: str = "id"
        self.relation_sql = False

    def relation(self, table: str, pk: str = "id", sql: bool = False) -> Column:
        """Declare a relation to another table; sql=True emits a FOREIGN KEY."""
        self.relation_table = table
        self.relation_pk = pk
        self.relation_sql = sql
        return self

    def _default_sql(self) -> str:
        value = self.default
        if isinstance(value, str) and value.upper() in _SQL_DEFAULTS:
            return value.upper()
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, (int, float)):
            return str(value)
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"

    def to_sql(self, primary_key: bool = False) -> str:
        """Render the column definition for CREATE/ALTER TABLE."""
        parts = [f'"{self.name}"', self.type_]
        if primary_key:
            parts.append("PRIMARY KEY")
        else:
            if not self.nullable:
                parts.append("NOT NULL")
            if self.unique:
                parts.append("UNIQUE")
        if self.default is not None:
            parts.append(f"DEFAULT {self._default_sql()}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"Column({self.name!r}, {self.type_})"


class Columns:
    """Ordered collection of Column definitions for a table."""

    def __init__(self) -> None:
        self._columns: dict[str, Column] = {}

    def column(self, name: str, type_: str = String, **kwargs: Any) -> Column:
        col = Column(name, type_, **kwargs)
        self._columns[name] = col
        return col

    def get(self, name: str) -> Column | None:
        return self._columns.get(name)

    def values(self) -> list[Column]:
        return list(self._columns.values())

    def names(self) -> list[str]:
        return list(self._columns)

    def json_columns(self) -> list[str]:
        return [c.name for c in self._columns.values() if c.json_encoded]

    def encrypted_columns(self) -> list[str]:
        return [c.name for c in self._columns.values() if c.encrypted]

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __len__(self) -> int:
        return len(self._columns)


__all__ = ["Column", "Columns", "String", "Integer", "Real", "Boolean", "Timestamp"]
