# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""TablePlanService: configuration, database, endpoints and interfaces.

Components:
- ServiceConfig: configuration dataclass
- config_from_env(): Factory to build config from TABLEPLAN_* env vars
- TablePlanService: Foundation class with database, endpoints, and interfaces

Configuration via environment variables:
    TABLEPLAN_DB: Database path (SQLite file or PostgreSQL URL)
    TABLEPLAN_API_TOKEN: Admin API token
    TABLEPLAN_INSTANCE: Instance name for display
    TABLEPLAN_PORT: Server port (default: 8000)
    TABLEPLAN_TEST_MODE: Enable test mode
    TABLEPLAN_BOOKING_SECRET: Secret for booking management links
    TABLEPLAN_DEFAULT_ROOM: Room used when a layout call names none

TablePlanService provides:
1. Configuration: ServiceConfig instance at self.config
2. Encryption: EncryptionManager at self.encryption (loads key from env/secrets)
3. Database: SqlDb at self.db with autodiscovered Table classes
4. Endpoints: EndpointManager at self.endpoints with autodiscovered Endpoint classes
5. API: ApiManager at self.api (creates FastAPI app lazily)
6. CLI: CliManager at self.cli (creates Click group lazily)

Usage:
    config = config_from_env()
    service = TablePlanService(config=config)
    await service.init()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .encryption import EncryptionManager
from .interface.api_base import ApiManager
from .interface.cli_base import CliManager
from .interface.endpoint_base import EndpointManager
from .sql import SqlDb

logger = logging.getLogger(__name__)

DEFAULT_ROOM = "main"


@dataclass
class ServiceConfig:
    """Service configuration.

    Attributes:
        db_path: SQLite/PostgreSQL database path for persistence.
        instance_name: Service identifier for display.
        port: Default port for API server.
        api_token: Admin API token. If None, no auth required.
        test_mode: Enable test mode (no default tenant is created).
        booking_hash_secret: HMAC secret of booking management hashes.
        default_room: Room key used when a layout operation names none.
        public_url: Base URL of the guest booking-management links.
    """

    db_path: str = "/data/tableplan.db"
    instance_name: str = "tableplan"
    port: int = 8000
    api_token: str | None = None
    test_mode: bool = False
    booking_hash_secret: str = "change-me"
    default_room: str = DEFAULT_ROOM
    public_url: str = "http://localhost:8000"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def config_from_env() -> ServiceConfig:
    """Build ServiceConfig from TABLEPLAN_* environment variables."""
    return ServiceConfig(
        db_path=os.environ.get("TABLEPLAN_DB", "/data/tableplan.db"),
        instance_name=os.environ.get("TABLEPLAN_INSTANCE", "tableplan"),
        port=int(os.environ.get("TABLEPLAN_PORT", "8000")),
        api_token=os.environ.get("TABLEPLAN_API_TOKEN"),
        test_mode=_env_flag("TABLEPLAN_TEST_MODE"),
        booking_hash_secret=os.environ.get("TABLEPLAN_BOOKING_SECRET", "change-me"),
        default_room=os.environ.get("TABLEPLAN_DEFAULT_ROOM", DEFAULT_ROOM),
        public_url=os.environ.get("TABLEPLAN_PUBLIC_URL", "http://localhost:8000"),
    )


class TablePlanService:
    """Foundation layer: config, encryption, database, tables, endpoints, interfaces.

    Attributes:
        config: ServiceConfig instance with all configuration
        encryption: EncryptionManager for field encryption
        db: SqlDb with autodiscovered Table classes
        endpoints: EndpointManager with autodiscovered Endpoint instances
        api: ApiManager (creates FastAPI app lazily)
        cli: CliManager (creates Click group lazily)

    Class Attributes (override in subclass):
        entity_packages: Package names to scan for entities
        encryption_key_env: Environment variable name for encryption key
    """

    entity_packages: list[str] = ["tableplan.entities"]
    encryption_key_env: str = "TABLEPLAN_ENCRYPTION_KEY"

    def __init__(self, config: ServiceConfig | None = None):
        self.config = config or ServiceConfig()

        self.encryption = EncryptionManager(parent=self, env_var=self.encryption_key_env)

        self.db = SqlDb(self.config.db_path, parent=self)
        self.db.discover(*self.entity_packages)

        self.endpoints = EndpointManager(parent=self)
        self.endpoints.discover(*self.entity_packages)

        self.api = ApiManager(parent=self)
        self.cli = CliManager(parent=self)

    @property
    def encryption_key(self) -> bytes | None:
        """Encryption key for database field encryption. None if not configured."""
        return self.encryption.key

    async def init(self) -> None:
        """Create or sync the schema and make sure the default tenant exists.

        Runs in a single transaction, committed before returning.
        """
        async with self.db.connection():
            await self.db.check_structure()
            if not self.config.test_mode and "tenants" in self.db.tables:
                await self.db.table("tenants").ensure_default()
        logger.debug("%s initialised on %s", self.config.instance_name, self.config.db_path)

    async def shutdown(self) -> None:
        """Close the database pool/connection."""
        await self.db.shutdown()


__all__ = ["DEFAULT_ROOM", "ServiceConfig", "TablePlanService", "config_from_env"]
