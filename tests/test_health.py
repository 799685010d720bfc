"""
TaskChat - Health Endpoint Tests
"""

import pytest
from fastapi.testclient import TestClient

from taskchat.main import app
from taskchat.config import settings


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_service_info(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["service"] == settings.APP_NAME
        assert data["version"] == settings.APP_VERSION


class TestRootEndpoint:
    """Tests for the root endpoint."""

    def test_root_includes_service_info(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == settings.APP_NAME
        assert "version" in data
