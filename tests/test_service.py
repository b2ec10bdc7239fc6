# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for service_base - configuration and service start-up."""

from __future__ import annotations

import base64

from tableplan.entities.tenant.table import DEFAULT_TENANT_ID
from tableplan.service_base import ServiceConfig, TablePlanService, config_from_env


class TestConfig:
    def test_defaults(self):
        config = config_from_env()
        assert config == ServiceConfig()
        assert config.db_path == "/data/tableplan.db"
        assert config.api_token is None
        assert config.default_room == "main"
        assert config.test_mode is False

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("TABLEPLAN_DB", "/tmp/floor.db")
        monkeypatch.setenv("TABLEPLAN_API_TOKEN", "s3cret")
        monkeypatch.setenv("TABLEPLAN_INSTANCE", "roma")
        monkeypatch.setenv("TABLEPLAN_PORT", "9000")
        monkeypatch.setenv("TABLEPLAN_TEST_MODE", "yes")
        monkeypatch.setenv("TABLEPLAN_BOOKING_SECRET", "links")
        monkeypatch.setenv("TABLEPLAN_DEFAULT_ROOM", "hall")
        monkeypatch.setenv("TABLEPLAN_PUBLIC_URL", "https://roma.example")

        config = config_from_env()
        assert config.db_path == "/tmp/floor.db"
        assert config.api_token == "s3cret"
        assert config.instance_name == "roma"
        assert config.port == 9000
        assert config.test_mode is True
        assert config.booking_hash_secret == "links"
        assert config.default_room == "hall"
        assert config.public_url == "https://roma.example"


class TestService:
    def test_wiring(self, tmp_path):
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "t.db")))
        assert service.db.parent is service
        assert "bookings" in service.db.tables
        assert service.endpoints["layouts"].default_room == "main"
        assert service.api.app.title == "tableplan API"

    def test_encryption_key_from_env(self, tmp_path, monkeypatch):
        key = bytes(range(32))
        monkeypatch.setenv("TABLEPLAN_ENCRYPTION_KEY", base64.b64encode(key).decode())
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "t.db")))
        assert service.encryption_key == key
        assert service.db.encryption_key == key

    def test_bad_encryption_key_disables_encryption(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TABLEPLAN_ENCRYPTION_KEY", base64.b64encode(b"short").decode())
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "t.db")))
        assert service.encryption.is_configured is False

    async def test_init_creates_default_tenant(self, tmp_path):
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "t.db")))
        await service.init()
        await service.init()
        async with service.db.connection():
            tenants = await service.db.table("tenants").select()
        await service.shutdown()
        assert [t["id"] for t in tenants] == [DEFAULT_TENANT_ID]

    async def test_test_mode_skips_default_tenant(self, tmp_path):
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "t.db"), test_mode=True))
        await service.init()
        async with service.db.connection():
            assert await service.db.table("tenants").count() == 0
        await service.shutdown()
