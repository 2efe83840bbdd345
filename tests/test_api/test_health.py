"""Tests for health check endpoints."""

from fastapi.testclient import TestClient

from schema_discovery import __version__
from schema_discovery.api.main import app
from schema_discovery.config import config

client = TestClient(app)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self):
        """Health check should return 200 OK."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_healthy_status(self):
        response = client.get("/health")
        assert response.json()["status"] == "healthy"

    def test_health_includes_version_and_model(self):
        data = client.get("/health").json()
        assert data["version"] == __version__
        assert data["model"] == config.orchestrator.model
