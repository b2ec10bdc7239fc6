# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tenant REST API endpoint.

Tenant management is reserved to the admin token: tenant API keys are
rejected with 403 on every method.

Example:
    CLI commands auto-generated::

        tableplan tenants add acme --name "Acme Restaurants"
        tableplan tenants list
        tableplan tenants create-api-key --tenant-id acme
        tableplan tenants delete --tenant-id acme
"""

from __future__ import annotations

from typing import Any

from ...interface.endpoint_base import BaseEndpoint, endpoint
from ...sql import RecordNotFoundError


class TenantEndpoint(BaseEndpoint):
    """Tenant CRUD plus API key management."""

    name = "tenants"
    admin_only = True

    @endpoint(post=True)
    async def add(self, id: str, name: str | None = None, active: bool = True) -> dict[str, Any]:
        """Add a tenant, or update name/active of an existing one."""
        async with self.table.record_to_update(id, insert_missing=True) as rec:
            if name is not None:
                rec["name"] = name
            rec["active"] = active
        return await self.get(id)

    async def get(self, tenant_id: str) -> dict[str, Any]:
        """Get a tenant.

        Raises:
            ValueError: If tenant not found.
        """
        try:
            tenant = await self.table.record(pkey=tenant_id)
        except RecordNotFoundError:
            raise ValueError(f"Tenant '{tenant_id}' not found") from None
        return self._public(tenant)

    async def list(self, active_only: bool = False) -> list[dict[str, Any]]:
        """List tenants."""
        where = {"active": True} if active_only else None
        tenants = await self.table.select(where=where, order_by="id")
        return [self._public(t) for t in tenants]

    @endpoint(post=True)
    async def update(
        self, tenant_id: str, name: str | None = None, active: bool | None = None
    ) -> dict[str, Any]:
        """Update tenant fields; omitted fields are left unchanged."""
        try:
            async with self.table.record_to_update(tenant_id) as rec:
                if name is not None:
                    rec["name"] = name
                if active is not None:
                    rec["active"] = active
        except RecordNotFoundError:
            raise ValueError(f"Tenant '{tenant_id}' not found") from None
        return await self.get(tenant_id)

    @endpoint(post=True)
    async def delete(self, tenant_id: str) -> bool:
        """Delete a tenant with all its restaurants."""
        return await self.table.delete(where={"id": tenant_id}) > 0

    @endpoint(post=True)
    async def create_api_key(self, tenant_id: str, expires_at: int | None = None) -> dict[str, Any]:
        """Issue a new API key for the tenant. The key is shown only once."""
        try:
            api_key = await self.table.create_api_key(tenant_id, expires_at)
        except RecordNotFoundError:
            raise ValueError(f"Tenant '{tenant_id}' not found") from None
        return {"tenant_id": tenant_id, "api_key": api_key, "expires_at": expires_at}

    @endpoint(post=True)
    async def revoke_api_key(self, tenant_id: str) -> bool:
        """Remove the tenant's API key."""
        try:
            await self.table.revoke_api_key(tenant_id)
        except RecordNotFoundError:
            raise ValueError(f"Tenant '{tenant_id}' not found") from None
        return True

    def _public(self, tenant: dict[str, Any]) -> dict[str, Any]:
        result = {k: v for k, v in tenant.items() if k != "api_key_hash"}
        result["has_api_key"] = bool(tenant.get("api_key_hash"))
        return result


__all__ = ["TenantEndpoint"]
