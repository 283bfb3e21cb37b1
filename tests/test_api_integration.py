"""
Integration tests for API endpoints.

Tests the full HTTP request/response cycle with an in-memory document store.
"""
import httpx
import pytest
import respx
from unittest.mock import AsyncMock, patch

import app.main as main_module
from app.main import app
from app.api.dependencies import get_hierarchy_service
from app.infrastructure.api_constants import Collections
from app.infrastructure.document_store import FetchFailure, HttpDocumentStore
from app.services.application.hierarchy_service import HierarchyService


@pytest.fixture
def use_service():
    """Route requests to the given hierarchy service."""
    def install(service: HierarchyService):
        app.dependency_overrides[get_hierarchy_service] = lambda: service
    yield install
    app.dependency_overrides.clear()


# ============================================================
# Health Check Tests
# ============================================================

class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, test_client):
        """Root endpoint should return healthy status."""
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "service" in data
        assert "version" in data

    def test_health_endpoint(self, test_client):
        """Health endpoint should return healthy status."""
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================
# Farm Hierarchy Endpoint Tests
# ============================================================

class TestFarmHierarchyEndpoint:
    """Tests for GET /api/v1/farms/{farm_id}/hierarchy."""

    def test_hierarchy_response_structure(self, test_client, use_service, hierarchy_service):
        use_service(hierarchy_service)

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 200
        data = response.json()
        assert data["farmId"] == "farm-1"
        assert data["loading"] is False
        assert data["overAllocatedArea"] == 0

        root = data["hierarchy"][0]
        assert root["name"] == "Test Farm"
        assert root["type"] == "farm"

        north, south, idle = root["children"]
        assert north["label"] == "A"
        assert north["percentage"] == "40.0"
        assert north["cropType"] == "Tomatoes"
        assert north["beds"] == 3
        assert north["driplines"] == 5
        assert [block["name"] for block in north["children"]] == ["A1", "A2"]
        assert south["cropType"] == "Mixed"
        assert idle == {
            "name": "Idle Area (30.0%)",
            "type": "idle",
            "size": pytest.approx(3.0),
            "percentage": None,
            "label": None,
            "blocks": None,
            "beds": None,
            "driplines": None,
            "cropType": None,
            "children": [],
        }

    def test_farm_not_found(self, test_client, use_service, hierarchy_service):
        use_service(hierarchy_service)

        response = test_client.get("/api/v1/farms/missing/hierarchy")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_farm_without_sections(self, test_client, use_service, empty_store, aggregator):
        use_service(HierarchyService(store=empty_store, aggregator=aggregator))

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 200
        children = response.json()["hierarchy"][0]["children"]
        assert [child["name"] for child in children] == ["Idle Area (100.0%)"]

    def test_wave_failure_returns_empty_hierarchy(self, test_client, use_service, sample_store, aggregator):
        store = AsyncMock()
        store.get.side_effect = sample_store.get
        store.where.side_effect = [
            [{"id": "s1", "farmId": "farm-1", "name": "S", "area": 4}],
            FetchFailure("blocks unavailable"),
        ]
        use_service(HierarchyService(store=store, aggregator=aggregator))

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 200
        data = response.json()
        assert data["hierarchy"] == []
        assert data["loading"] is False

    def test_farm_lookup_failure(self, test_client, use_service, aggregator):
        store = AsyncMock()
        store.get.side_effect = FetchFailure("backend down")
        use_service(HierarchyService(store=store, aggregator=aggregator))

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 502
        assert response.json() == {
            "error": "Document store error",
            "detail": "backend down",
            "upstreamStatus": None,
        }

    def test_backend_client_error_reported_as_gateway_error(self, test_client, use_service, aggregator):
        store = AsyncMock()
        store.get.side_effect = FetchFailure("Store request failed: 403 - Forbidden", status_code=403)
        use_service(HierarchyService(store=store, aggregator=aggregator))

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 502
        assert response.json()["upstreamStatus"] == 403

    def test_non_json_farm_listing_is_gateway_error(self, test_client, use_service, aggregator):
        base_url = "http://farm-backend.test/api"
        store = HttpDocumentStore(base_url=base_url, max_retry_attempts=1)
        use_service(HierarchyService(store=store, aggregator=aggregator))

        with respx.mock:
            respx.get(f"{base_url}/farms").mock(
                return_value=httpx.Response(200, text="<html>oops</html>")
            )
            response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        assert response.status_code == 502
        assert "invalid JSON" in response.json()["detail"]

    def test_over_allocated_farm(self, test_client, use_service, empty_store, aggregator):
        empty_store.add(Collections.SECTIONS, {"id": "s1", "farmId": "farm-1", "name": "S", "area": 12.5})
        use_service(HierarchyService(store=empty_store, aggregator=aggregator))

        response = test_client.get("/api/v1/farms/farm-1/hierarchy")

        data = response.json()
        assert data["overAllocatedArea"] == pytest.approx(2.5)
        assert [child["type"] for child in data["hierarchy"][0]["children"]] == ["section"]


class TestBuildHierarchyEndpoint:
    """Tests for POST /api/v1/hierarchy."""

    def test_build_for_supplied_farm(self, test_client, use_service, hierarchy_service):
        use_service(hierarchy_service)

        response = test_client.post(
            "/api/v1/hierarchy",
            json={"id": "farm-1", "name": "Renamed", "area": 20},
        )

        assert response.status_code == 200
        root = response.json()["hierarchy"][0]
        assert root["name"] == "Renamed"
        assert root["children"][0]["percentage"] == "20.0"
        assert root["children"][-1]["name"] == "Idle Area (65.0%)"

    def test_invalid_body(self, test_client):
        response = test_client.post("/api/v1/hierarchy", json={"id": "farm-1"})

        assert response.status_code == 422


# ============================================================
# Response Format Tests
# ============================================================

class TestResponseFormats:
    """Tests for API response formats."""

    def test_openapi_schema_available(self, test_client):
        """OpenAPI schema should be available."""
        response = test_client.get("/openapi.json")

        assert response.status_code == 200
        data = response.json()
        assert "/api/v1/farms/{farm_id}/hierarchy" in data["paths"]
        assert "/api/v1/hierarchy" in data["paths"]

    def test_docs_endpoint_available(self, test_client):
        """Swagger docs should be available."""
        response = test_client.get("/docs")

        assert response.status_code == 200
        assert "swagger" in response.text.lower() or "html" in response.headers.get("content-type", "")


# ============================================================
# Server Entry Point Tests
# ============================================================

class TestServerEntryPoint:
    """Tests for the uvicorn entry point."""

    def test_run_serves_configured_address(self, monkeypatch):
        monkeypatch.setattr(main_module.settings, "host", "0.0.0.0")
        monkeypatch.setattr(main_module.settings, "port", 9001)

        with patch.object(main_module.uvicorn, "run") as run:
            main_module.run()

        run.assert_called_once()
        args, kwargs = run.call_args
        assert args == ("app.main:app",)
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9001
