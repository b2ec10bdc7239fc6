# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class of the entity tables: schema, triggers and record access.

Rows come back as dicts with JSON columns decoded and customer contacts
decrypted; ``record_to_update`` edits one row inside the request transaction.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from genro_toolbox import get_uuid

from ..encryption import (
    EncryptionError,
    decrypt_value_with_key,
    encrypt_value_with_key,
    is_encrypted,
)
from .adapters import quote
from .column import Columns
from .sqldb import where_sql

if TYPE_CHECKING:
    from .sqldb import SqlDb

logger = logging.getLogger(__name__)

def utc_now() -> str:
    """Current UTC time in the format SQLite uses for CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

class RecordNotFoundError(Exception):
    """Raised when record() finds no matching record and ignore_missing=False."""

    def __init__(self, table: str, pkey: Any = None, where: dict[str, Any] | None = None):
        self.table = table
        self.pkey = pkey
        self.where = where
        if pkey is not None:
            msg = f"Record not found in '{table}' with pkey={pkey!r}"
        elif where:
            msg = f"Record not found in '{table}' with where={where!r}"
        else:
            msg = f"Record not found in '{table}'"
        super().__init__(msg)

class RecordDuplicateError(Exception):
    """Raised when record() finds multiple records and ignore_duplicate=False."""

    def __init__(
        self, table: str, count: int, pkey: Any = None, where: dict[str, Any] | None = None
    ):
        self.table = table
        self.count = count
        self.pkey = pkey
        self.where = where
        target = f" with pkey={pkey!r}" if pkey is not None else (
            f" with where={where!r}" if where else ""
        )
        super().__init__(f"Expected 1 record in '{table}'{target}, found {count}")

class RecordUpdater:
    """Async context manager that loads a record, lets the caller edit it, saves it.

    Usage:
        async with table.record_to_update(pk) as record:
            record["capacity"] = 6
        # → update() with the trigger chain

        async with table.record_to_update(
            {"restaurant_id": rid, "room": "main"}, insert_missing=True
        ) as record:
            record["positions"] = {}
        # → insert() when missing, update() otherwise

    On enter the record is read (SELECT FOR UPDATE on PostgreSQL). On a clean
    exit it is inserted, or updated with the changed columns only; when the
    block raises nothing is written.
    """

    def __init__(
        self,
        table: Table,
        pkey: str | None,
        pkey_value: Any,
        insert_missing: bool = False,
        ignore_missing: bool = False,
        for_update: bool = True,
        raw: bool = False,
        **kwargs: Any,
    ):
        self.table = table
        self.insert_missing = insert_missing
        self.ignore_missing = ignore_missing
        self.for_update = for_update
        self.raw = raw
        self.kwargs = kwargs
        self.record: dict[str, Any] | None = None
        self.old_record: dict[str, Any] | None = None
        self.is_insert = False

        if isinstance(pkey_value, dict):
            self.where: dict[str, Any] = pkey_value
        else:
            self.where = {pkey: pkey_value}  # type: ignore[dict-item]

    async def __aenter__(self) -> dict[str, Any]:
        self.old_record = await self.table.record(
            where=self.where, ignore_missing=True, for_update=self.for_update
        )

        if self.old_record:
            self.record = copy.deepcopy(self.old_record)
        else:
            if not (self.insert_missing or self.ignore_missing):
                raise RecordNotFoundError(self.table.name, where=self.where)
            self.record = dict(self.where) if self.insert_missing else {}
            self.is_insert = self.insert_missing
            self.old_record = None

        for k, v in self.kwargs.items():
            if v is not None:
                self.record[k] = v

        return self.record

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None or not self.record:
            return

        if self.is_insert:
            await self.table.insert(self.record, raw=self.raw)
        elif self.old_record:
            old = self.old_record
            changes = {k: v for k, v in self.record.items() if k not in old or old[k] != v}
            if changes:
                await self.table.update(changes, self.where, raw=self.raw)

class Table:
    """Base class for async table managers.

    Subclasses define columns in configure() and add domain operations.

    Attributes:
        name: Table name in database.
        pkey: Primary key column name.
        db: Owning SqlDb.
        columns: Column definitions.
    """

    name: str
    pkey: str | None = None

    def __init__(self, db: SqlDb) -> None:
        self.db = db
        if not getattr(self, "name", None):
            raise ValueError(f"{type(self).__name__} must define 'name'")

        self.columns = Columns()
        self.configure()

    def configure(self) -> None:
        """Override to define columns. Called during __init__."""

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------

    def pkey_value(self, record: dict[str, Any]) -> Any:
        return record.get(self.pkey) if self.pkey else None

    def new_pkey_value(self) -> Any:
        """New primary key value; None means the backend autoincrements it."""
        return get_uuid()

    # -------------------------------------------------------------------------
    # Trigger Hooks
    # -------------------------------------------------------------------------

    async def trigger_on_inserting(self, record: dict[str, Any]) -> dict[str, Any]:
        """Called before insert; returns the record to write.

        Fills the primary key via new_pkey_value() when it is missing.
        """
        if self.pkey and self.pkey not in record:
            pk_value = self.new_pkey_value()
            if pk_value is not None:
                record[self.pkey] = pk_value
        return record

    async def trigger_on_inserted(self, record: dict[str, Any]) -> None:
        pass

    async def trigger_on_updating(
        self, record: dict[str, Any], old_record: dict[str, Any]
    ) -> dict[str, Any]:
        """Called before update; stamps ``updated_at`` when the table has one."""
        if "updated_at" in self.columns:
            record["updated_at"] = utc_now()
        return record

    async def trigger_on_updated(self, record: dict[str, Any], old_record: dict[str, Any]) -> None:
        pass

    async def trigger_on_deleting(self, record: dict[str, Any]) -> None:
        pass

    async def trigger_on_deleted(self, record: dict[str, Any]) -> None:
        pass

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def create_table_sql(self) -> str:
        """Generate CREATE TABLE IF NOT EXISTS statement."""
        is_autoincrement = self.pkey and self.new_pkey_value() is None

        col_defs = []
        for col in self.columns.values():
            if col.name == self.pkey and is_autoincrement and col.type_ == "INTEGER":
                col_defs.append(self.db.adapter.pk_column(col.name))
            else:
                col_defs.append(col.to_sql(primary_key=col.name == self.pkey))

        for col in self.columns.values():
            if col.relation_sql and col.relation_table:
                ref = f"{col.relation_table}({quote(col.relation_pk)})"
                col_defs.append(f"FOREIGN KEY ({quote(col.name)}) REFERENCES {ref}")

        for constraint in self.table_constraints():
            col_defs.append(constraint)

        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    " + ",\n    ".join(col_defs) + "\n)"

    def table_constraints(self) -> list[str]:
        """Extra table-level constraints (e.g. composite UNIQUE). Override."""
        return []

    async def create_schema(self) -> None:
        await self.db.execute(self.create_table_sql())

    async def sync_schema(self) -> list[str]:
        """Add columns defined in configure() that the stored table lacks.

        Returns:
            Names of the columns that were added.
        """
        existing = await self.db.table_columns(self.name)
        added = []
        for col in self.columns.values():
            if col.name == self.pkey or col.name in existing:
                continue
            await self.db.execute(self.db.adapter.add_column_sql(self.name, col.to_sql()))
            added.append(col.name)
        if added:
            logger.info("Added columns to %s: %s", self.name, ", ".join(added))
        return added

    # -------------------------------------------------------------------------
    # JSON Encoding/Decoding
    # -------------------------------------------------------------------------

    def _encode_json_fields(self, data: dict[str, Any]) -> dict[str, Any]:
        result = dict(data)
        for col_name in self.columns.json_columns():
            if col_name in result and result[col_name] is not None:
                result[col_name] = json.dumps(result[col_name])
        return result

    def _decode_json_fields(self, row: dict[str, Any]) -> dict[str, Any]:
        result = dict(row)
        for col_name in self.columns.json_columns():
            value = result.get(col_name)
            if isinstance(value, str):
                result[col_name] = json.loads(value)
        return result

    # -------------------------------------------------------------------------
    # Encryption
    # -------------------------------------------------------------------------

    def _encrypt_fields(self, data: dict[str, Any]) -> dict[str, Any]:
        """Encrypt encrypted=True columns when a key is configured."""
        encrypted_cols = self.columns.encrypted_columns()
        key = self.db.encryption_key
        if not encrypted_cols or key is None:
            return data

        result = dict(data)
        for col_name in encrypted_cols:
            value = result.get(col_name)
            if isinstance(value, str) and value and not is_encrypted(value):
                result[col_name] = encrypt_value_with_key(value, key)
        return result

    def _decrypt_fields(self, row: dict[str, Any]) -> dict[str, Any]:
        """Decrypt encrypted=True columns; undecryptable values are kept as stored."""
        encrypted_cols = self.columns.encrypted_columns()
        key = self.db.encryption_key
        if not encrypted_cols or key is None:
            return row

        result = dict(row)
        for col_name in encrypted_cols:
            value = result.get(col_name)
            if is_encrypted(value):
                try:
                    result[col_name] = decrypt_value_with_key(value, key)
                except EncryptionError:
                    logger.warning("Cannot decrypt %s.%s, key changed?", self.name, col_name)
        return result

    def _prepare(self, record: dict[str, Any]) -> dict[str, Any]:
        """Keep only known columns, then JSON-encode and encrypt."""
        known = {k: v for k, v in record.items() if k in self.columns}
        return self._encrypt_fields(self._encode_json_fields(known))

    def _decode(self, row: dict[str, Any]) -> dict[str, Any]:
        return self._decrypt_fields(self._decode_json_fields(row))

    # -------------------------------------------------------------------------
    # CRUD Operations
    # -------------------------------------------------------------------------

    async def insert(self, data: dict[str, Any], raw: bool = False) -> int:
        """Insert a row.

        Args:
            data: Record data; mutated to carry the generated primary key.
            raw: If True, bypass triggers and encoding/encryption.
        """
        if raw:
            await self.db.insert(self.name, data)
            return 1

        record = await self.trigger_on_inserting(data)
        encoded = self._prepare(record)

        if self.pkey and self.pkey not in record:
            generated_id = await self.db.insert_returning_id(self.name, encoded, self.pkey)
            if generated_id is not None:
                data[self.pkey] = generated_id
                record[self.pkey] = generated_id
        else:
            await self.db.insert(self.name, encoded)
            if self.pkey and self.pkey in record and self.pkey not in data:
                data[self.pkey] = record[self.pkey]

        await self.trigger_on_inserted(record)
        return 1

    async def select(
        self,
        columns: list[str] | None = None,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        raw: bool = False,
    ) -> list[dict[str, Any]]:
        """Select rows; JSON columns decoded and encrypted columns decrypted unless raw."""
        rows = await self.db.select(self.name, columns, where, order_by, limit)
        if raw:
            return rows
        return [self._decode(row) for row in rows]

    async def record(
        self,
        pkey: Any = None,
        where: dict[str, Any] | None = None,
        ignore_missing: bool = False,
        ignore_duplicate: bool = False,
        for_update: bool = False,
        columns: list[str] | None = None,
        raw: bool = False,
    ) -> dict[str, Any]:
        """Fetch exactly one record by primary key or where conditions.

        Returns:
            Record dict, or {} if not found and ignore_missing=True.

        Raises:
            RecordNotFoundError: No record and ignore_missing=False.
            RecordDuplicateError: Several records and ignore_duplicate=False.
            ValueError: Neither pkey nor where given.
        """
        if pkey is not None:
            if self.pkey is None:
                raise ValueError(f"Table {self.name} has no primary key defined")
            effective_where = {self.pkey: pkey}
        elif where is not None:
            effective_where = where
        else:
            raise ValueError("record() requires either pkey or where argument")

        if for_update:
            row = await self.select_for_update(effective_where, columns)
            rows: list[dict[str, Any]] = [row] if row else []
        else:
            rows = await self.db.select(self.name, columns, effective_where, limit=2)
            if not raw:
                rows = [self._decode(r) for r in rows]

        if not rows:
            if ignore_missing:
                return {}
            raise RecordNotFoundError(self.name, pkey, where)

        if len(rows) > 1 and not ignore_duplicate:
            count = await self.db.count(self.name, effective_where)
            raise RecordDuplicateError(self.name, count, pkey, where)

        return rows[0]

    async def select_for_update(
        self,
        where: dict[str, Any],
        columns: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Single row with a FOR UPDATE lock where the backend supports it."""
        cols_sql = ", ".join(quote(c) for c in columns) if columns else "*"
        condition, params = where_sql(where)
        lock_clause = self.db.adapter.for_update_clause()

        query = f"SELECT {cols_sql} FROM {self.name} WHERE {condition}{lock_clause}"
        row = await self.db.fetch_one(query, params)
        return self._decode(row) if row else None

    def record_to_update(
        self,
        pkey_value: Any,
        insert_missing: bool = False,
        ignore_missing: bool = False,
        for_update: bool = True,
        raw: bool = False,
        **kwargs: Any,
    ) -> RecordUpdater:
        """Return an async context manager editing one record (see RecordUpdater).

        ``pkey_value`` may be a dict for composite keys.
        """
        if isinstance(pkey_value, dict):
            return RecordUpdater(
                self, None, pkey_value, insert_missing, ignore_missing, for_update, raw, **kwargs
            )

        if self.pkey is None:
            raise ValueError(f"Table {self.name} has no primary key defined")

        return RecordUpdater(
            self, self.pkey, pkey_value, insert_missing, ignore_missing, for_update, raw, **kwargs
        )

    async def update(
        self, values: dict[str, Any], where: dict[str, Any], raw: bool = False
    ) -> int:
        """Update rows matching ``where``; returns the affected row count."""
        if raw:
            return await self.db.update(self.name, values, where)

        old_record = await self.select_for_update(where)
        record = await self.trigger_on_updating(values, old_record or {})
        encoded = self._prepare(record)
        if not encoded:
            return 0
        result = await self.db.update(self.name, encoded, where)
        if result > 0 and old_record:
            await self.trigger_on_updated(record, old_record)
        return result

    async def delete(self, where: dict[str, Any], raw: bool = False) -> int:
        """Delete rows matching ``where``; triggers fire once per deleted record."""
        if raw:
            return await self.db.delete(self.name, where)

        records = await self.select(where=where)
        for rec in records:
            await self.trigger_on_deleting(rec)
        result = await self.db.delete(self.name, where)
        if result > 0:
            for rec in records:
                await self.trigger_on_deleted(rec)
        return result

    async def exists(self, where: dict[str, Any]) -> bool:
        return await self.db.exists(self.name, where)

    async def count(self, where: dict[str, Any] | None = None) -> int:
        return await self.db.count(self.name, where)

    # -------------------------------------------------------------------------
    # Raw Query
    # -------------------------------------------------------------------------

    async def fetch_all(
        self, query: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query, return all rows decoded."""
        rows = await self.db.fetch_all(query, params)
        return [self._decode(row) for row in rows]


__all__ = [
    "RecordDuplicateError",
    "RecordNotFoundError",
    "RecordUpdater",
    "Table",
    "utc_now",
]
