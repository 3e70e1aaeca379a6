import pytest
from fastapi.testclient import TestClient

from main import app

client = TestClient(app)


def test_health_check():
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "sonar-analysis-runner"


def test_health_check_returns_json():
    """Test that health check returns JSON content type."""
    response = client.get("/health")
    assert "application/json" in response.headers["content-type"]


def test_sonar_routes_are_mounted():
    """Test that the Sonar build step endpoints are served under /api."""
    paths = {route.path for route in app.routes}
    assert "/api/sonar/jobs/{job_name}/builds" in paths
    assert "/api/sonar/jobs/{job_name}/last-url" in paths
    assert "/api/sonar/triggers/evaluate" in paths


def test_unknown_route_returns_404():
    assert client.get("/api/unknown").status_code == 404
