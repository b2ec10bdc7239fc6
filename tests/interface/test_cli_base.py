# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for CLI command generation from endpoints."""

from __future__ import annotations

import inspect
import re
from typing import Any, Literal

import click
import pytest
from click.testing import CliRunner

from tableplan.interface import cli_context
from tableplan.interface.cli_base import _annotation_to_click_type, _print_result
from tableplan.interface.cli_context import CliContext
from tableplan.service_base import ServiceConfig, TablePlanService


@pytest.fixture(autouse=True)
def isolated_context(tmp_path):
    previous = cli_context.get_default_context()
    cli_context.set_default_context(CliContext(base_dir=tmp_path / "home"))
    yield
    cli_context.set_default_context(previous)


@pytest.fixture
def cli(tmp_path):
    service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "cli.db"), test_mode=True))
    return service.cli.cli


@pytest.fixture
def run(cli):
    runner = CliRunner()

    def _run(*args: str):
        return runner.invoke(cli, list(args))

    return _run


def _field(output: str, name: str) -> str:
    match = re.search(rf"^{name}: (\S+)", output, re.MULTILINE)
    assert match, output
    return match.group(1)


@pytest.fixture
def restaurant_id(run):
    """Tenant 'acme' with one restaurant, both set as the current context."""
    run("tenants", "add", "acme", "--name", "Acme")
    run("use", "acme")
    result = run("restaurants", "add", "Roma")
    restaurant_id = _field(result.output, "id")
    run("use", f"acme/{restaurant_id}")
    return restaurant_id


class TestAnnotationToClickType:
    @pytest.mark.parametrize(
        "annotation, expected",
        [
            (inspect.Parameter.empty, str),
            (Any, str),
            (int, int),
            (int | None, int),
            (float, float),
            (bool, bool),
            (list[str], str),
            (dict[str, Any] | None, str),
        ],
    )
    def test_simple(self, annotation, expected):
        assert _annotation_to_click_type(annotation) is expected

    def test_literal_becomes_choice(self):
        choice = _annotation_to_click_type(Literal["manage", "cancel"] | None)
        assert isinstance(choice, click.Choice)
        assert list(choice.choices) == ["manage", "cancel"]


class TestPrintResult:
    def test_dict(self, capsys):
        _print_result({"table_number": "4", "capacity": 6})
        out = capsys.readouterr().out
        assert "table_number: 4" in out
        assert "capacity: 6" in out

    def test_empty_list(self, capsys):
        _print_result([])
        assert "(none)" in capsys.readouterr().out

    def test_rows(self, capsys):
        _print_result([{"number": "1"}, {"number": "2"}])
        out = capsys.readouterr().out
        assert "number" in out
        assert "2" in out


class TestCommandTree:
    def test_groups(self, cli):
        assert {"tenants", "restaurants", "rooms", "tables", "layouts", "bookings"} <= set(
            cli.commands
        )
        assert {"use", "serve"} <= set(cli.commands)

    def test_method_names_use_dashes(self, cli):
        bookings = cli.commands["bookings"]
        assert "auto-assign" in bookings.commands
        assert "cancel-by-hash" in bookings.commands

    def test_context_params_are_options(self, cli):
        add = cli.commands["tables"].commands["add"]
        options = {p.name: p for p in add.params}
        assert isinstance(options["tenant_id"], click.Option)
        assert isinstance(options["restaurant_id"], click.Option)
        assert isinstance(options["table_number"], click.Argument)
        assert isinstance(options["capacity"], click.Argument)

    def test_arguments_keep_signature_order(self, cli):
        place = cli.commands["layouts"].commands["place"]
        arguments = [p.name for p in place.params if isinstance(p, click.Argument)]
        assert arguments == ["structure_id", "x", "y"]
        add = cli.commands["tables"].commands["add"]
        assert [p.name for p in add.params][:4] == [
            "tenant_id",
            "restaurant_id",
            "table_number",
            "capacity",
        ]


class TestCommands:
    def test_add_tenant(self, run):
        result = run("tenants", "add", "acme", "--name", "Acme")
        assert result.exit_code == 0, result.output
        assert "id: acme" in result.output

    def test_use_shows_context(self, run):
        assert "tenant: -" in run("use").output
        run("use", "acme/r1")
        result = run("use")
        assert "tenant: acme" in result.output
        assert "restaurant: r1" in result.output
        assert "Context cleared" in run("use", "--clear").output

    def test_missing_context(self, run):
        result = run("restaurants", "list")
        assert result.exit_code == 1
        assert "Tenant required" in result.output

    def test_context_fills_restaurant(self, run, restaurant_id):
        result = run("tables", "add", "7", "4", "--shape", "circle")
        assert result.exit_code == 0, result.output
        assert "table_number: 7" in result.output
        assert f"restaurant_id: {restaurant_id}" in result.output

        result = run("tables", "list", "--active-only")
        assert result.exit_code == 0, result.output

    def test_domain_error(self, run, restaurant_id):
        result = run("tables", "add", "7", "0")
        assert result.exit_code == 1
        assert "at least 1" in result.output

    def test_not_found(self, run, restaurant_id):
        result = run("rooms", "get", "cellar")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_json_params(self, run, restaurant_id):
        first = _field(run("tables", "add", "1", "2").output, "id")
        second = _field(run("tables", "add", "2", "4").output, "id")
        result = run("combined_tables", "add", "Long", f'["{first}", "{second}"]')
        assert result.exit_code == 0, result.output
        assert "total_capacity: 6" in result.output
