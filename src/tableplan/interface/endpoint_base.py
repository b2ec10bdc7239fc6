# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for endpoint introspection and command dispatch.

Endpoint classes are the single definition of the service operations: the
REST API and the CLI are generated from their async method signatures.

Components:
    endpoint: Decorator to configure method channels and HTTP method.
    BaseEndpoint: Base class with introspection capabilities.
    EndpointManager: Discovery and instantiation of endpoints.

Example:
    Define an endpoint::

        from tableplan.interface.endpoint_base import BaseEndpoint, endpoint

        class RoomEndpoint(BaseEndpoint):
            name = "rooms"

            async def list(self, tenant_id: str, restaurant_id: str) -> list[dict]:
                \"\"\"List rooms (GET on all channels).\"\"\"
                await self._require_restaurant(tenant_id, restaurant_id)
                return await self.table.select(where={"restaurant_id": restaurant_id})

            @endpoint(post=True)
            async def add(self, tenant_id: str, restaurant_id: str, name: str) -> dict:
                \"\"\"Add a room (POST on all channels).\"\"\"
                ...
"""

from __future__ import annotations

import importlib
import inspect
import json
import logging
import pkgutil
import types
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin, get_type_hints

from pydantic import create_model

from ..sql import RecordNotFoundError

if TYPE_CHECKING:
    from ..service_base import TablePlanService

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised when API token is invalid (not admin, not valid tenant token)."""


class ForbiddenError(Exception):
    """Raised when a valid tenant token reaches an admin-only operation."""


def endpoint(
    *,
    api: bool | None = None,
    cli: bool | None = None,
    post: bool | None = None,
) -> Callable[[Callable], Callable]:
    """Configure endpoint method channels and HTTP method.

    A None argument keeps the class default (``_default_api`` etc.).

    Example:
        ::

            @endpoint(post=True)
            async def move(self, tenant_id: str, table_id: str, x: float, y: float) -> dict:
                ...

            @endpoint(api=False)
            async def purge(self, before_ts: int) -> int:
                \"\"\"CLI only.\"\"\"
    """

    def decorator(method: Callable) -> Callable:
        if api is not None:
            method._endpoint_api = api  # type: ignore[attr-defined]
        if cli is not None:
            method._endpoint_cli = cli  # type: ignore[attr-defined]
        if post is not None:
            method._endpoint_post = post  # type: ignore[attr-defined]
        return method

    return decorator


class BaseEndpoint:
    """Base class for all endpoints with introspection capabilities.

    Class Attributes:
        name: Endpoint name used in URL paths and CLI groups.
        table_name: Table bound to the endpoint (defaults to ``name``).
        admin_only: Reject tenant tokens; only the admin token may call it.
        _default_api: Expose methods via REST API (default True).
        _default_cli: Expose methods via CLI (default True).
        _default_post: Use HTTP POST (default False, i.e. GET).

    Instance Attributes:
        table: Database table instance for operations.
        service: Owning service (config access), may be None in tests.
    """

    name: str = ""
    table_name: str | None = None
    admin_only: bool = False

    _default_api: bool = True
    _default_cli: bool = True
    _default_post: bool = False

    # Methods excluded from API/CLI generation
    _internal_methods = {"invoke"}

    def __init__(self, table: Any, service: TablePlanService | None = None):
        self.table = table
        self.service = service

    @property
    def db(self) -> Any:
        return self.table.db

    # =========================================================================
    # Shared helpers
    # =========================================================================

    async def _require_restaurant(self, tenant_id: str, restaurant_id: str) -> dict[str, Any]:
        """Return the restaurant if it belongs to the tenant.

        Raises:
            ValueError: "Restaurant not found" for missing or foreign restaurants.
        """
        restaurant = await self.db.table("restaurants").record(
            where={"id": restaurant_id, "tenant_id": tenant_id}, ignore_missing=True
        )
        if not restaurant:
            raise ValueError("Restaurant not found")
        return restaurant

    @property
    def default_room(self) -> str:
        return self.service.config.default_room if self.service else "main"

    async def _resolve_room(self, restaurant_id: str, room: str | None) -> str:
        """Room key for a layout operation: the default room or a room of the restaurant.

        Raises:
            ValueError: The room does not belong to the restaurant.
        """
        if not room or room == self.default_room:
            return self.default_room
        if not await self.db.table("rooms").exists({"id": room, "restaurant_id": restaurant_id}):
            raise ValueError(f"Room '{room}' not found")
        return room

    async def _scoped_record(
        self, tenant_id: str, restaurant_id: str, record_id: str, label: str | None = None
    ) -> dict[str, Any]:
        """Record of this endpoint's table owned by the restaurant, or ValueError."""
        try:
            return await self.table.record(
                where={"id": record_id, "tenant_id": tenant_id, "restaurant_id": restaurant_id}
            )
        except RecordNotFoundError:
            raise ValueError(f"{label or self.name} '{record_id}' not found") from None

    # =========================================================================
    # Base CRUD methods - subclasses override for scoped logic
    # =========================================================================

    async def list(self) -> list[dict[str, Any]]:
        """List all records."""
        return await self.table.select()

    async def get(self, id: str) -> dict[str, Any]:
        """Get single record by primary key.

        Raises:
            ValueError: If record not found.
        """
        try:
            return await self.table.record(pkey=id)
        except RecordNotFoundError:
            raise ValueError(f"{self.name} '{id}' not found") from None

    @endpoint(post=True)
    async def delete(self, id: str) -> bool:
        """Delete record by primary key."""
        pkey = self.table.pkey or "id"
        return await self.table.delete(where={pkey: id}) > 0

    # =========================================================================
    # Introspection methods for API/CLI generation
    # =========================================================================

    def get_methods(self) -> list[tuple[str, Callable]]:
        """Public async methods, excluding private and internal ones."""
        methods = []
        for method_name in dir(self):
            if method_name.startswith("_") or method_name in self._internal_methods:
                continue
            method = getattr(self, method_name)
            if callable(method) and inspect.iscoroutinefunction(method):
                methods.append((method_name, method))
        return methods

    def get_http_method(self, method_name: str) -> str:
        method = getattr(self, method_name)
        if hasattr(method, "_endpoint_post"):
            return "POST" if method._endpoint_post else "GET"
        return "POST" if self._default_post else "GET"

    def is_available_for_channel(self, method_name: str, channel: str) -> bool:
        """Check method attribute first, then the class default for ``channel``."""
        method = getattr(self, method_name)
        attr_name = f"_endpoint_{channel}"
        if hasattr(method, attr_name):
            return getattr(method, attr_name)
        return getattr(self, f"_default_{channel}", True)

    def _hints(self, method: Callable) -> dict[str, Any]:
        try:
            return get_type_hints(method)
        except (NameError, TypeError):
            return {}

    def create_request_model(self, method_name: str) -> type:
        """Pydantic model built from the method signature."""
        method = getattr(self, method_name)
        hints = self._hints(method)

        fields = {}
        for param_name, param in inspect.signature(method).parameters.items():
            if param_name == "self" or param.kind is inspect.Parameter.VAR_KEYWORD:
                continue
            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any
            if param.default is inspect.Parameter.empty:
                fields[param_name] = (annotation, ...)
            else:
                fields[param_name] = (annotation, param.default)

        model_name = f"{method_name.title().replace('_', '')}Request"
        return create_model(model_name, **fields)

    def is_simple_params(self, method_name: str) -> bool:
        """False if any parameter is a list or dict (query strings cannot carry them)."""
        method = getattr(self, method_name)
        hints = self._hints(method)
        for param_name, param in inspect.signature(method).parameters.items():
            if self._is_complex_type(hints.get(param_name, param.annotation)):
                return False
        return True

    def _is_complex_type(self, ann: Any) -> bool:
        if ann in (list, dict):
            return True

        origin = get_origin(ann)
        if origin in (list, dict):
            return True

        if origin is Union or origin is types.UnionType:
            return any(
                self._is_complex_type(arg) for arg in get_args(ann) if arg is not type(None)
            )
        return False

    def _coerce_json_params(self, method_name: str, params: dict[str, Any]) -> None:
        """Parse JSON strings in place for dict/list parameters (CLI passes strings)."""
        hints = self._hints(getattr(self, method_name))
        for param_name, value in params.items():
            if not isinstance(value, str):
                continue
            ann = hints.get(param_name)
            if ann is not None and self._is_complex_type(ann):
                try:
                    params[param_name] = json.loads(value)
                except json.JSONDecodeError:
                    # Pydantic reports the validation error
                    continue

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[None]:
        async with self.table.db.connection():
            yield

    async def invoke(
        self,
        method_name: str,
        params: dict[str, Any],
        *,
        api_token: str | None = None,
        is_admin: bool = False,
    ) -> Any:
        """Validate parameters and call an endpoint method inside a transaction.

        Single entry point for the API and the CLI. With a tenant token the
        tenant is resolved from the token and any ``tenant_id`` in the
        request must match it.

        Raises:
            ValidationError: Params don't match the method signature.
            InvalidTokenError: Unknown token, or token of another tenant.
            ForbiddenError: Tenant token on an admin-only endpoint.
            ValueError: Unknown method or domain error.
        """
        method = getattr(self, method_name, None)
        if method is None or not callable(method):
            raise ValueError(f"Method '{method_name}' not found on {self.name}")

        async with self._connection():
            if api_token and not is_admin:
                tenant_id = await self._resolve_tenant_from_token(api_token)
                if self.admin_only:
                    raise ForbiddenError("Admin token required, tenant tokens not allowed")
                requested = params.get("tenant_id")
                if requested and requested != tenant_id:
                    raise InvalidTokenError(f"Token not valid for tenant '{requested}'")
                if "tenant_id" in inspect.signature(method).parameters:
                    params["tenant_id"] = tenant_id

            self._coerce_json_params(method_name, params)

            model_class = self.create_request_model(method_name)
            validated = model_class.model_validate(params)

            return await method(**validated.model_dump())

    async def _resolve_tenant_from_token(self, api_token: str) -> str:
        """Tenant id owning ``api_token``.

        Raises:
            InvalidTokenError: Token matches no active tenant.
        """
        tenant = await self.table.db.table("tenants").get_tenant_by_token(api_token)
        if tenant and tenant.get("active", True):
            return tenant["id"]
        raise InvalidTokenError("Invalid API token")


class EndpointManager:
    """Discovers endpoint classes and holds their instances by name.

    Attributes:
        service: Owning service (access db via service.db).
    """

    def __init__(self, parent: TablePlanService):
        self.service = parent
        self._endpoints: dict[str, BaseEndpoint] = {}

    def discover(self, *packages: str) -> list[BaseEndpoint]:
        """Instantiate the endpoint class of every ``<package>.<entity>.endpoint``.

        When several packages define the same endpoint name the most derived
        class wins.
        """
        all_classes: dict[str, type[BaseEndpoint]] = {}
        for package in packages:
            for module in self._find_entity_modules(package, "endpoint").values():
                endpoint_class = self._get_class_from_module(module, "Endpoint")
                if endpoint_class is None:
                    continue
                existing = all_classes.get(endpoint_class.name)
                if existing is None or issubclass(endpoint_class, existing):
                    all_classes[endpoint_class.name] = endpoint_class

        for endpoint_class in all_classes.values():
            name = endpoint_class.name
            existing_instance = self._endpoints.get(name)
            if existing_instance is None or (
                endpoint_class is not type(existing_instance)
                and issubclass(endpoint_class, type(existing_instance))
            ):
                self.add(endpoint_class)

        return list(self._endpoints.values())

    def add(self, endpoint_class: type[BaseEndpoint]) -> BaseEndpoint:
        table = self.service.db.table(endpoint_class.table_name or endpoint_class.name)
        instance = endpoint_class(table, self.service)
        self._endpoints[endpoint_class.name] = instance
        return instance

    def _find_entity_modules(self, base_package: str, module_name: str) -> dict[str, Any]:
        result: dict[str, Any] = {}
        try:
            package = importlib.import_module(base_package)
        except ImportError:
            logger.warning("Endpoint package %s not importable", base_package)
            return result

        package_path = getattr(package, "__path__", None)
        if not package_path:
            return result

        for _, name, is_pkg in pkgutil.iter_modules(package_path):
            if not is_pkg:
                continue
            try:
                result[name] = importlib.import_module(f"{base_package}.{name}.{module_name}")
            except ModuleNotFoundError:
                continue
        return result

    def _get_class_from_module(self, module: Any, class_suffix: str) -> type | None:
        """Endpoint class of a module, preferring classes defined in the module itself."""
        candidates: list[type] = []
        for attr_name in dir(module):
            if attr_name.startswith("_") or attr_name in ("BaseEndpoint", "Endpoint"):
                continue
            obj = getattr(module, attr_name)
            if (
                isinstance(obj, type)
                and attr_name.endswith(class_suffix)
                and issubclass(obj, BaseEndpoint)
                and obj.name
            ):
                candidates.append(obj)

        for cls in candidates:
            if cls.__module__ == module.__name__:
                return cls
        return candidates[0] if candidates else None

    def __getitem__(self, name: str) -> BaseEndpoint:
        if name not in self._endpoints:
            raise KeyError(f"Endpoint '{name}' not found")
        return self._endpoints[name]

    def __contains__(self, name: str) -> bool:
        return name in self._endpoints

    def __iter__(self):
        return iter(self._endpoints)

    def values(self):
        return self._endpoints.values()

    def items(self):
        return self._endpoints.items()


__all__ = ["BaseEndpoint", "EndpointManager", "ForbiddenError", "InvalidTokenError", "endpoint"]
