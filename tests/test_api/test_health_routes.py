"""API tests for the root and health endpoints and app-level settings."""

import pytest
from fastapi.testclient import TestClient

import threadlingo
from threadlingo.api.server import create_app

pytestmark = pytest.mark.api


class TestRootAndHealth:
    def test_root_reports_name_and_version(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Threadlingo API", "version": threadlingo.__version__}

    def test_health(self, test_client):
        body = test_client.get("/health").json()
        assert body["status"] == "ok"
        assert body["model"] == "fake-model"
        assert body["state_backend"] == "InMemoryStateStore"
        assert body["evals"] == []


class TestAppSettings:
    def test_docs_enabled_outside_production(self, test_client):
        assert test_client.get("/openapi.json").status_code == 200

    def test_docs_disabled_in_production(self, test_config, store, fake_renderer):
        test_config.security.production = True
        app = create_app(test_config, store=store, renderer=fake_renderer)
        with TestClient(app) as client:
            assert client.get("/docs").status_code == 404
            assert client.get("/openapi.json").status_code == 404

    def test_cors_allows_configured_origin(self, test_client):
        response = test_client.options(
            "/api/translate",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_services_are_exposed_on_app_state(self, test_config, store, fake_renderer):
        app = create_app(test_config, store=store, renderer=fake_renderer)
        assert app.state.services.store is store
        assert app.state.services.http_client is None
