"""Tests for health endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from leaveflow.infrastructure.database import get_async_db


class FakeSession:
    def __init__(self, fail=False):
        self.fail = fail

    async def execute(self, statement):
        if self.fail:
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.fixture
def health_client(app):
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, health_client):
        response = health_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_liveness(self, health_client):
        response = health_client.get("/api/v1/health/live")

        assert response.json() == {"status": "alive"}

    def test_ready(self, app, health_client):
        app.dependency_overrides[get_async_db] = lambda: FakeSession()

        response = health_client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "ok"}

    def test_not_ready(self, app, health_client):
        """Test readiness fails when the database does not answer."""
        app.dependency_overrides[get_async_db] = lambda: FakeSession(fail=True)

        response = health_client.get("/api/v1/health/ready")

        assert response.status_code == 503
