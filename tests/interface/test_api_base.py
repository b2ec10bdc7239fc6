# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for interface.api_base - generated routes, auth and error mapping."""

from __future__ import annotations

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from tableplan.interface.api_base import API_TOKEN_HEADER, register_api_endpoint
from tableplan.service_base import ServiceConfig, TablePlanService

ADMIN_TOKEN = "admin-secret"
ADMIN = {API_TOKEN_HEADER: ADMIN_TOKEN}


@pytest.fixture
def app_service(tmp_path):
    config = ServiceConfig(
        db_path=str(tmp_path / "api.db"), api_token=ADMIN_TOKEN, test_mode=True
    )
    return TablePlanService(config)


@pytest.fixture
def client(app_service):
    with TestClient(app_service.api.app) as client:
        yield client


@pytest.fixture
def tenant_headers(client):
    """Headers carrying a fresh API key of tenant 'acme'."""
    client.post("/api/tenants/add", json={"id": "acme", "name": "Acme"}, headers=ADMIN)
    response = client.post("/api/tenants/create-api-key", json={"tenant_id": "acme"}, headers=ADMIN)
    return {API_TOKEN_HEADER: response.json()["data"]["api_key"]}


@pytest.fixture
def restaurant_id(client, tenant_headers):
    response = client.post("/api/restaurants/add", json={"name": "Roma"}, headers=tenant_headers)
    return response.json()["data"]["id"]


class TestRoutes:
    def test_paths_use_dashes(self, app_service):
        router = APIRouter()
        register_api_endpoint(router, app_service.endpoints["bookings"])
        methods = {route.path: route.methods for route in router.routes}
        assert methods["/bookings/auto-assign"] == {"POST"}
        assert methods["/bookings/get-by-hash"] == {"GET"}
        assert methods["/bookings/list"] == {"GET"}

    def test_health_needs_no_token(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/tenants/list")
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing API token"

    def test_unknown_token(self, client):
        response = client.get("/api/tenants/list", headers={API_TOKEN_HEADER: "guess"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API token"

    def test_admin_token(self, client):
        response = client.post("/api/tenants/add", json={"id": "acme"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["data"]["id"] == "acme"

    def test_tenant_token_fills_tenant(self, client, tenant_headers):
        response = client.post(
            "/api/restaurants/add", json={"name": "Roma"}, headers=tenant_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["tenant_id"] == "acme"

    def test_tenant_token_on_admin_endpoint(self, client, tenant_headers):
        assert client.get("/api/tenants/list", headers=tenant_headers).status_code == 403
        assert client.get("/api/activity/list", headers=tenant_headers).status_code == 403

    def test_tenant_token_for_other_tenant(self, client, tenant_headers):
        response = client.get(
            "/api/restaurants/list", params={"tenant_id": "other"}, headers=tenant_headers
        )
        assert response.status_code == 401

    def test_revoked_key(self, client, tenant_headers):
        client.post("/api/tenants/revoke-api-key", json={"tenant_id": "acme"}, headers=ADMIN)
        assert client.get("/api/restaurants/list", headers=tenant_headers).status_code == 401

    def test_open_access_without_admin_token(self, tmp_path):
        service = TablePlanService(ServiceConfig(db_path=str(tmp_path / "open.db"), test_mode=True))
        with TestClient(service.api.app) as client:
            assert client.get("/api/tenants/list").json() == {"data": []}


class TestResponses:
    def test_get_reads_query_string(self, client, tenant_headers, restaurant_id):
        client.post(
            "/api/tables/add",
            json={"restaurant_id": restaurant_id, "table_number": "1", "capacity": 4},
            headers=tenant_headers,
        )
        response = client.get(
            "/api/tables/list",
            params={"restaurant_id": restaurant_id, "active_only": "true"},
            headers=tenant_headers,
        )
        assert response.status_code == 200
        assert [t["table_number"] for t in response.json()["data"]] == ["1"]

    def test_not_found_is_404(self, client, tenant_headers):
        response = client.get(
            "/api/restaurants/get", params={"restaurant_id": "nowhere"}, headers=tenant_headers
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Restaurant not found"}

    def test_layout_error_is_400(self, client, tenant_headers, restaurant_id):
        response = client.post(
            "/api/tables/add",
            json={"restaurant_id": restaurant_id, "table_number": "1", "capacity": 0},
            headers=tenant_headers,
        )
        assert response.status_code == 400
        assert "at least 1" in response.json()["error"]

    def test_booking_error_is_400(self, client, tenant_headers, restaurant_id):
        response = client.post(
            "/api/bookings/add",
            json={
                "restaurant_id": restaurant_id,
                "booking_date": "2025-06-14",
                "start_time": "25:00",
                "guest_count": 2,
            },
            headers=tenant_headers,
        )
        assert response.status_code == 400

    def test_validation_error_is_422(self, client, tenant_headers, restaurant_id):
        response = client.post(
            "/api/tables/add",
            json={"restaurant_id": restaurant_id, "table_number": "1", "capacity": "lots"},
            headers=tenant_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"][0]["loc"] == ["capacity"]

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]"])
    def test_bad_body_is_400(self, client, body):
        response = client.post(
            "/api/tenants/add",
            content=body,
            headers={**ADMIN, "Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestActivityLog:
    def test_successful_posts_are_logged(self, client, tenant_headers, restaurant_id):
        client.post(
            "/api/tables/add",
            json={"restaurant_id": restaurant_id, "table_number": "1", "capacity": 0},
            headers=tenant_headers,
        )
        client.get("/api/restaurants/list", headers=tenant_headers)

        entries = client.get("/api/activity/list", headers=ADMIN).json()["data"]
        assert [e["endpoint"] for e in entries] == [
            "POST /api/tenants/add",
            "POST /api/tenants/create-api-key",
            "POST /api/restaurants/add",
        ]
        restaurant_entry = entries[-1]
        assert restaurant_entry["tenant_id"] == "acme"
        assert restaurant_entry["payload"] == {"name": "Roma", "tenant_id": "acme"}
        assert restaurant_entry["response_status"] == 200
