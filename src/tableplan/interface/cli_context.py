# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI context management for tenant/restaurant resolution.

Most tableplan commands work on one restaurant of one tenant. Typing both
ids on every command is tedious, so the CLI keeps a current context.

Resolution order (each of tenant and restaurant independently):
    1. Explicit --tenant-id / --restaurant-id option
    2. Environment variable (TABLEPLAN_TENANT, TABLEPLAN_RESTAURANT)
    3. ~/.tableplan/.current file ("tenant/restaurant")

Example:
    ::

        from tableplan.interface.cli_context import require_context

        tenant, restaurant = require_context(require_restaurant=True)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable

_DEFAULT_BASE_DIR = Path.home() / ".tableplan"
_DEFAULT_ENV_TENANT = "TABLEPLAN_TENANT"
_DEFAULT_ENV_RESTAURANT = "TABLEPLAN_RESTAURANT"
_DEFAULT_CLI_NAME = "tableplan"


class CliContext:
    """Configurable tenant/restaurant context.

    Attributes:
        base_dir: Directory holding the ``.current`` file (~/.tableplan/).
        env_tenant: Environment variable for the tenant.
        env_restaurant: Environment variable for the restaurant.
        cli_name: CLI command name used in error messages.
    """

    def __init__(
        self,
        base_dir: Path | None = None,
        env_tenant: str | None = None,
        env_restaurant: str | None = None,
        cli_name: str | None = None,
        print_func: Callable[[str], None] | None = None,
    ):
        self.base_dir = base_dir or _DEFAULT_BASE_DIR
        self.env_tenant = env_tenant or _DEFAULT_ENV_TENANT
        self.env_restaurant = env_restaurant or _DEFAULT_ENV_RESTAURANT
        self.cli_name = cli_name or _DEFAULT_CLI_NAME
        self._print = print_func or print

    @property
    def current_file(self) -> Path:
        return self.base_dir / ".current"

    def parse_context(self, value: str) -> tuple[str | None, str | None]:
        """Parse a context string.

        Formats:
            "tenant" -> (tenant, None)
            "tenant/restaurant" -> (tenant, restaurant)
            "/restaurant" -> (None, restaurant)
        """
        if "/" in value:
            tenant, restaurant = value.split("/", 1)
            return tenant or None, restaurant or None
        return value or None, None

    def get_current_context(self) -> tuple[str | None, str | None]:
        if not self.current_file.exists():
            return None, None
        content = self.current_file.read_text().strip()
        if not content:
            return None, None
        return self.parse_context(content)

    def set_current_context(self, tenant: str | None, restaurant: str | None) -> None:
        """Write the context file. A None tenant keeps the current one."""
        current_tenant, _ = self.get_current_context()
        tenant = tenant or current_tenant
        if not tenant:
            return
        self.base_dir.mkdir(parents=True, exist_ok=True)
        if restaurant:
            self.current_file.write_text(f"{tenant}/{restaurant}")
        else:
            self.current_file.write_text(tenant)

    def clear_current_context(self) -> None:
        if self.current_file.exists():
            self.current_file.unlink()

    def resolve_context(
        self,
        explicit_tenant: str | None = None,
        explicit_restaurant: str | None = None,
    ) -> tuple[str | None, str | None]:
        """Resolve (tenant, restaurant); either may be None."""
        current_tenant, current_restaurant = self.get_current_context()
        tenant = explicit_tenant or os.environ.get(self.env_tenant) or current_tenant
        restaurant = (
            explicit_restaurant or os.environ.get(self.env_restaurant) or current_restaurant
        )
        return tenant, restaurant

    def require_context(
        self,
        explicit_tenant: str | None = None,
        explicit_restaurant: str | None = None,
        require_restaurant: bool = False,
    ) -> tuple[str, str | None]:
        """Resolve the context or exit with a hint.

        Raises:
            SystemExit: If the tenant (or the restaurant when required)
                cannot be resolved.
        """
        tenant, restaurant = self.resolve_context(explicit_tenant, explicit_restaurant)

        if not tenant:
            self._print("Error: Tenant required for this command.")
            self._print("")
            self._print("Options:")
            self._print("  - Pass --tenant-id")
            self._print(f"  - Use '{self.cli_name} use <tenant>/<restaurant>'")
            self._print(f"  - Set {self.env_tenant} environment variable")
            sys.exit(1)

        if require_restaurant and not restaurant:
            self._print("Error: Restaurant required for this command.")
            self._print("")
            self._print("Options:")
            self._print("  - Pass --restaurant-id")
            self._print(f"  - Use '{self.cli_name} use {tenant}/<restaurant>'")
            self._print(f"  - Set {self.env_restaurant} environment variable")
            sys.exit(1)

        return tenant, restaurant


_default_context = CliContext()


def resolve_context(
    explicit_tenant: str | None = None,
    explicit_restaurant: str | None = None,
) -> tuple[str | None, str | None]:
    return _default_context.resolve_context(explicit_tenant, explicit_restaurant)


def require_context(
    explicit_tenant: str | None = None,
    explicit_restaurant: str | None = None,
    require_restaurant: bool = False,
) -> tuple[str, str | None]:
    return _default_context.require_context(
        explicit_tenant, explicit_restaurant, require_restaurant
    )


def get_default_context() -> CliContext:
    return _default_context


def set_default_context(ctx: CliContext) -> None:
    """Replace the module-level context (tests point it at a temp dir)."""
    global _default_context
    _default_context = ctx


__all__ = [
    "CliContext",
    "get_default_context",
    "require_context",
    "resolve_context",
    "set_default_context",
]
