# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tenant table manager.

A tenant is a restaurant organisation: the top-level boundary every other
record hangs from. Each tenant may hold one API key; only its SHA-256 hash
is stored and the key itself is returned once, when created.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from typing import Any

from ...sql import Boolean, Integer, String, Table, Timestamp

logger = logging.getLogger(__name__)

DEFAULT_TENANT_ID = "default"


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()


class TenantsTable(Table):
    """Tenant storage table.

    Schema: id (PK), name, active, api_key_hash, api_key_expires_at (unix ts),
    timestamps.
    """

    name = "tenants"
    pkey = "id"

    def configure(self) -> None:
        c = self.columns
        c.column("id", String)
        c.column("name", String)
        c.column("active", Boolean, default=1)
        c.column("api_key_hash", String)
        c.column("api_key_expires_at", Integer)
        c.column("created_at", Timestamp, default="CURRENT_TIMESTAMP")
        c.column("updated_at", Timestamp, default="CURRENT_TIMESTAMP")

    async def trigger_on_deleting(self, record: dict[str, Any]) -> None:
        """Delete the tenant's restaurants (and everything they own)."""
        await self.db.table("restaurants").delete(where={"tenant_id": record["id"]})

    async def create_api_key(self, tenant_id: str, expires_at: int | None = None) -> str:
        """Generate and store a new API key, replacing the previous one.

        Args:
            tenant_id: Tenant identifier.
            expires_at: Unix timestamp of expiry (None = never expires).

        Returns:
            The generated API key (only returned once).

        Raises:
            RecordNotFoundError: If the tenant does not exist.
        """
        api_key = secrets.token_urlsafe(32)
        async with self.record_to_update(tenant_id) as rec:
            rec["api_key_hash"] = hash_api_key(api_key)
            rec["api_key_expires_at"] = expires_at
        logger.info("New API key issued for tenant %s", tenant_id)
        return api_key

    async def revoke_api_key(self, tenant_id: str) -> None:
        async with self.record_to_update(tenant_id) as rec:
            rec["api_key_hash"] = None
            rec["api_key_expires_at"] = None

    async def get_tenant_by_token(self, api_key: str) -> dict[str, Any] | None:
        """Tenant owning ``api_key``, or None if unknown or expired."""
        tenant = await self.record(
            where={"api_key_hash": hash_api_key(api_key)}, ignore_missing=True
        )
        if not tenant:
            return None

        expires_at = tenant.get("api_key_expires_at")
        if expires_at and expires_at < int(time.time()):
            return None
        return tenant

    async def ensure_default(self) -> dict[str, Any]:
        """Create the 'default' tenant used by single-organisation setups."""
        async with self.record_to_update(DEFAULT_TENANT_ID, insert_missing=True) as rec:
            if not rec.get("name"):
                rec["name"] = "Default Tenant"
                rec["active"] = True
        return rec


__all__ = ["DEFAULT_TENANT_ID", "TenantsTable", "hash_api_key"]
