"""
Integration tests for the health and root endpoints and the app lifespan.
"""

from fastapi.testclient import TestClient

import backend.src.main as main_module


class TestHealthEndpoints:
    """Tests for service metadata endpoints."""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "scheduler-backend"

    def test_root(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


class TestLifespan:
    """Tests for startup/shutdown hooks."""

    def test_shutdown_disposes_engine(self, monkeypatch):
        calls = []
        monkeypatch.setattr(main_module, "dispose_engine", lambda: calls.append("disposed"))

        with TestClient(main_module.app):
            assert calls == []
        assert calls == ["disposed"]
