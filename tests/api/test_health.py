import pytest
from fastapi.testclient import TestClient

from imagecraft.api.main import create_app


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def test_health_check(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "message": "Server Healthy",
        "active_generations": 0,
    }


def test_health_check_echoes_correlation_id(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_health_check_assigns_correlation_id(client):
    response = client.get("/api/v1/health")
    assert response.headers["X-Correlation-ID"]


def test_health_check_replaces_unusable_correlation_id(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "two words"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] != "two words"
