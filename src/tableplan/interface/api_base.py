# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""FastAPI application manager with automatic route generation from endpoints.

API authentication uses the X-API-Token header with two access levels:
- Global admin token: full access, tenant_id passed explicitly
- Tenant token: tenant_id resolved from the token, own resources only

Components:
    ApiManager: FastAPI application factory and lifecycle manager.
    register_api_endpoint: Register endpoint methods as API routes.
    require_token: Authentication dependency for /api routes.
"""

from __future__ import annotations

import json
import logging
import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from pydantic import ValidationError

from ..errors import BookingError, LayoutError
from .endpoint_base import BaseEndpoint, ForbiddenError, InvalidTokenError

if TYPE_CHECKING:
    from ..service_base import TablePlanService

logger = logging.getLogger(__name__)

API_TOKEN_HEADER = "X-API-Token"
api_key_scheme = APIKeyHeader(name=API_TOKEN_HEADER, auto_error=False)


async def require_token(
    request: Request,
    api_token: str | None = Depends(api_key_scheme),
) -> None:
    """Check the X-API-Token header.

    The admin token is checked here by string comparison. Any other token is
    kept on ``request.state`` and verified as a tenant token by the endpoint,
    inside its database connection.

    Raises:
        HTTPException: 401 if the token is missing while auth is configured.
    """
    request.state.api_token = api_token
    request.state.is_admin = False

    expected = getattr(request.app.state, "api_token", None)

    if not api_token:
        if expected is not None:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing API token")
        return

    if expected is not None and secrets.compare_digest(api_token, expected):
        request.state.is_admin = True


auth_dependency = Depends(require_token)


def _json(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


async def _call(
    endpoint: BaseEndpoint, method_name: str, params: dict[str, Any], request: Request
) -> JSONResponse:
    """Run endpoint.invoke() and map exceptions to HTTP responses."""
    try:
        result = await endpoint.invoke(
            method_name,
            params,
            api_token=getattr(request.state, "api_token", None),
            is_admin=getattr(request.state, "is_admin", False),
        )
    except InvalidTokenError as e:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, str(e)) from e
    except ForbiddenError as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, str(e)) from e
    except ValidationError as e:
        return _json({"error": e.errors(include_url=False)}, 422)
    except (LayoutError, BookingError) as e:
        return _json({"error": str(e)}, 400)
    except ValueError as e:
        return _json({"error": str(e)}, 404)
    except Exception as e:
        logger.exception("Unhandled error in %s.%s", endpoint.name, method_name)
        return _json({"error": str(e)}, 500)

    if request.method == "POST":
        await _log_command(endpoint, method_name, params, request)
    return _json({"data": result})


async def _log_command(
    endpoint: BaseEndpoint, method_name: str, params: dict[str, Any], request: Request
) -> None:
    """Record a successful state-changing call in the activity log."""
    db = endpoint.table.db
    if "activity_log" not in db.tables:
        return
    async with db.connection():
        await db.table("activity_log").log_command(
            f"POST {request.url.path}",
            params,
            tenant_id=params.get("tenant_id"),
            response_status=200,
        )


def register_api_endpoint(router: APIRouter, endpoint: BaseEndpoint) -> None:
    """Register all API-enabled methods of an endpoint as routes.

    Routes are ``/{endpoint_name}/{method-name}``; GET methods read the query
    string, POST methods read a JSON body.
    """
    for method_name, method in endpoint.get_methods():
        if not endpoint.is_available_for_channel(method_name, "api"):
            continue
        path = f"/{endpoint.name}/{method_name.replace('_', '-')}"
        if endpoint.get_http_method(method_name) == "POST":
            _add_post_route(router, endpoint, method_name, path, method)
        else:
            _add_get_route(router, endpoint, method_name, path, method)


def _add_post_route(
    router: APIRouter, endpoint: BaseEndpoint, method_name: str, path: str, method: Any
) -> None:
    async def route_handler(request: Request) -> JSONResponse:
        raw = await request.body()
        try:
            body = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            return _json({"error": "Request body is not valid JSON"}, 400)
        if not isinstance(body, dict):
            return _json({"error": "Request body must be a JSON object"}, 400)
        return await _call(endpoint, method_name, body, request)

    route_handler.__doc__ = method.__doc__
    router.add_api_route(
        path, route_handler, methods=["POST"], name=f"{endpoint.name}.{method_name}"
    )


def _add_get_route(
    router: APIRouter, endpoint: BaseEndpoint, method_name: str, path: str, method: Any
) -> None:
    async def route_handler(request: Request) -> JSONResponse:
        return await _call(endpoint, method_name, dict(request.query_params), request)

    route_handler.__doc__ = method.__doc__
    router.add_api_route(
        path, route_handler, methods=["GET"], name=f"{endpoint.name}.{method_name}"
    )


class ApiManager:
    """Creates the FastAPI application lazily on first access.

    Authentication is controlled by service.config.api_token:
    - If set: X-API-Token header required for all /api/* routes
    - If None: open access (development mode)
    """

    def __init__(self, parent: TablePlanService):
        self.service = parent
        self._app: FastAPI | None = None

    @property
    def app(self) -> FastAPI:
        if self._app is None:
            self._app = self._create_app()
        return self._app

    def _create_app(self) -> FastAPI:
        app = FastAPI(
            title=f"{self.service.config.instance_name} API",
            version="0.1.0",
            lifespan=self._lifespan,
        )
        app.state.api_token = self.service.config.api_token

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "ok"}

        router = APIRouter(prefix="/api", dependencies=[auth_dependency])
        for endpoint in self.service.endpoints.values():
            register_api_endpoint(router, endpoint)
        app.include_router(router)

        return app

    @asynccontextmanager
    async def _lifespan(self, _app: Any):
        await self.service.init()
        yield
        await self.service.shutdown()


__all__ = ["API_TOKEN_HEADER", "ApiManager", "register_api_endpoint", "require_token"]
