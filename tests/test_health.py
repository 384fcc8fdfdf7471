"""Tests for the health check endpoint."""

from fastapi.testclient import TestClient

from todolist import __version__


def test_health_check(client: TestClient) -> None:
    """Test that health check returns healthy status."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert data["storage"] in ("file", "database")


def test_browser_client_is_served(client: TestClient) -> None:
    """Test that the static client is mounted at the root."""
    response = client.get("/")
    assert response.status_code == 200
    assert 'id="todoList"' in response.text

    script = client.get("/app.js")
    assert script.status_code == 200
    assert "escapeHtml" in script.text
