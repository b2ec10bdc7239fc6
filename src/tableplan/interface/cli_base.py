# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Click command generation from endpoint classes via introspection.

Every public async endpoint method becomes ``tableplan <endpoint> <method>``.

Components:
    register_endpoint: Register endpoint methods as Click commands.
    CliManager: Builds the top-level group with the service commands.

Generated commands::

    tableplan use acme/bistro                      # set the current context
    tableplan restaurants list
    tableplan rooms add Terrace --restaurant-id r1
    tableplan tables add T1 4 --shape round
    tableplan layouts place <table-id> 120 200 --room main
    tableplan bookings auto-assign

Note:
    - tenant_id and restaurant_id become --tenant-id / --restaurant-id
      options with context fallback (see cli_context)
    - Other required params become positional arguments
    - Optional params become --options
    - Boolean params become --flag/--no-flag toggles
    - list/dict params take a JSON string
    - Method underscores become dashes (auto_assign → auto-assign)
"""

from __future__ import annotations

import asyncio
import inspect
import types
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, Literal, Union, get_args, get_origin

import click
from rich.console import Console
from rich.table import Table

from . import cli_context
from .endpoint_base import BaseEndpoint, ForbiddenError, InvalidTokenError

if TYPE_CHECKING:
    from ..service_base import TablePlanService

console = Console()

# Parameters filled from the CLI context when omitted
_CONTEXT_PARAMS = ("tenant_id", "restaurant_id")


def _print_result(result: Any) -> None:
    """Print command result with rich formatting."""
    if isinstance(result, list) and result and isinstance(result[0], dict):
        table = Table(show_header=True, header_style="bold cyan")
        keys = list(result[0].keys())
        for key in keys:
            table.add_column(key)
        for row in result:
            table.add_row(*[str(row.get(k, "")) for k in keys])
        console.print(table)
    elif isinstance(result, dict):
        for key, value in result.items():
            console.print(f"[bold]{key}:[/bold] {value}")
    elif isinstance(result, list):
        if not result:
            console.print("[dim](none)[/dim]")
        for item in result:
            console.print(f"  • {item}")
    else:
        console.print(result)


def _annotation_to_click_type(annotation: Any) -> Any:
    """Convert a resolved type annotation to a Click type.

    Returns:
        int, float, bool, str or click.Choice. Complex types map to str and
        are parsed as JSON by the endpoint.
    """
    if annotation is inspect.Parameter.empty or annotation is Any:
        return str

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        non_none = [a for a in get_args(annotation) if a is not type(None)]
        if len(non_none) == 1:
            annotation = non_none[0]
            origin = get_origin(annotation)

    if origin is Literal:
        return click.Choice([str(c) for c in get_args(annotation)])

    if annotation is int:
        return int
    if annotation is bool:
        return bool
    if annotation is float:
        return float
    return str


def _is_bool(annotation: Any) -> bool:
    if annotation is bool:
        return True
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return [a for a in get_args(annotation) if a is not type(None)] == [bool]
    return False


def _create_click_command(
    endpoint: BaseEndpoint, method_name: str, run_async: Callable[[Coroutine], Any]
) -> click.Command:
    """Create a Click command from an endpoint method.

    The command calls ``endpoint.invoke()`` so the CLI shares the pydantic
    validation of the API.
    """
    method = getattr(endpoint, method_name)
    sig = inspect.signature(method)
    hints = endpoint._hints(method)
    doc = inspect.getdoc(method) or f"{method_name} operation"

    params: list[Callable] = []
    context_params: set[str] = set()

    for param_name, param in sig.parameters.items():
        if param_name == "self" or param.kind is inspect.Parameter.VAR_KEYWORD:
            continue

        annotation = hints.get(param_name, param.annotation)
        click_type = _annotation_to_click_type(annotation)
        has_default = param.default is not inspect.Parameter.empty
        cli_name = param_name.replace("_", "-")

        if param_name in _CONTEXT_PARAMS:
            if not has_default:
                context_params.add(param_name)
            params.append(
                click.option(
                    f"--{cli_name}",
                    param_name,
                    default=param.default if has_default else None,
                    help=f"{param_name} (default: current context)",
                )
            )
        elif _is_bool(annotation):
            params.append(
                click.option(
                    f"--{cli_name}/--no-{cli_name}",
                    param_name,
                    default=param.default if has_default else False,
                    help=f"Enable/disable {param_name}",
                )
            )
        elif has_default:
            params.append(
                click.option(
                    f"--{cli_name}",
                    param_name,
                    type=click_type,
                    default=param.default,
                    show_default=param.default is not None,
                    help=f"{param_name} parameter",
                )
            )
        else:
            params.append(click.argument(param_name, type=click_type))

    def cmd_func(**kwargs: Any) -> None:
        if context_params:
            tenant, restaurant = cli_context.require_context(
                kwargs.get("tenant_id"),
                kwargs.get("restaurant_id"),
                require_restaurant="restaurant_id" in context_params,
            )
            if "tenant_id" in context_params:
                kwargs["tenant_id"] = tenant
            if "restaurant_id" in context_params:
                kwargs["restaurant_id"] = restaurant

        # Unset options fall back to the method defaults
        call_params = {k: v for k, v in kwargs.items() if v is not None}
        try:
            result = run_async(endpoint.invoke(method_name, call_params, is_admin=True))
        except (ValueError, ForbiddenError, InvalidTokenError) as e:
            raise click.ClickException(str(e)) from e
        if result is not None:
            _print_result(result)

    # Decorate the function bottom-up so Click keeps the signature order
    decorated: Callable = cmd_func
    for decorator in reversed(params):
        decorated = decorator(decorated)
    return click.command(help=doc)(decorated)


def register_endpoint(
    group: click.Group,
    endpoint: BaseEndpoint,
    run_async: Callable[[Coroutine], Any] | None = None,
) -> click.Group:
    """Register the CLI-enabled methods of an endpoint as a Click subgroup.

    Returns:
        The created subgroup, named after the endpoint.
    """
    if run_async is None:
        run_async = asyncio.run

    @group.group(name=endpoint.name)
    def endpoint_group() -> None:
        pass

    endpoint_group.help = f"Manage {endpoint.name}."

    for method_name, _ in endpoint.get_methods():
        if not endpoint.is_available_for_channel(method_name, "cli"):
            continue
        cmd = _create_click_command(endpoint, method_name, run_async)
        cmd.name = method_name.replace("_", "-")
        endpoint_group.add_command(cmd)

    return endpoint_group


class CliManager:
    """Creates the Click CLI lazily on first access.

    Each command runs in its own event loop: the service is initialised
    (schema check, default tenant) before the endpoint call and shut down
    after it.
    """

    def __init__(self, parent: TablePlanService):
        self.service = parent
        self._cli: click.Group | None = None

    @property
    def cli(self) -> click.Group:
        if self._cli is None:
            self._cli = self._create_cli()
        return self._cli

    def run_async(self, coro: Coroutine) -> Any:
        return asyncio.run(self._run_in_service(coro))

    async def _run_in_service(self, coro: Coroutine) -> Any:
        try:
            await self.service.init()
        except BaseException:
            coro.close()
            raise
        try:
            return await coro
        finally:
            await self.service.shutdown()

    def _create_cli(self) -> click.Group:
        @click.group()
        @click.version_option(package_name="tableplan")
        def cli() -> None:
            """Restaurant floor plan and table booking service."""

        for endpoint in self.service.endpoints.values():
            register_endpoint(cli, endpoint, self.run_async)

        @cli.command("use")
        @click.argument("context", required=False)
        @click.option("--clear", is_flag=True, help="Forget the current context")
        def use_cmd(context: str | None, clear: bool) -> None:
            """Show or set the current tenant/restaurant context."""
            ctx = cli_context.get_default_context()
            if clear:
                ctx.clear_current_context()
                console.print("Context cleared")
                return
            if context:
                tenant, restaurant = ctx.parse_context(context)
                ctx.set_current_context(tenant, restaurant)
            tenant, restaurant = ctx.resolve_context()
            console.print(f"[bold]tenant:[/bold] {tenant or '-'}")
            console.print(f"[bold]restaurant:[/bold] {restaurant or '-'}")

        @cli.command("serve")
        @click.option("--host", default="0.0.0.0", help="Bind host")
        @click.option("--port", "-p", default=self.service.config.port, help="Bind port")
        @click.option("--reload", is_flag=True, help="Enable auto-reload")
        def serve_cmd(host: str, port: int, reload: bool) -> None:
            """Start the API server."""
            import uvicorn

            uvicorn.run(self._get_server_module(), host=host, port=port, reload=reload)

        return cli

    def _get_server_module(self) -> str:
        return "tableplan.server:app"


__all__ = ["CliManager", "console", "register_endpoint"]
