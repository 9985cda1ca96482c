import pytest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from prospect_batch.boundary.db import get_async_db
from prospect_batch.main import create_app


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def override_db(client, session):
    async def _db():
        yield session

    client.app.dependency_overrides[get_async_db] = _db


def test_health_check(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Server Healthy"}


def test_health_check_db(client):
    session = AsyncMock()
    override_db(client, session)

    response = client.get("/api/v1/health/db")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Database connection OK"}
    session.execute.assert_awaited_once()


def test_health_check_db_unavailable(client):
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    override_db(client, session)

    response = client.get("/api/v1/health/db")

    assert response.status_code == 503
    assert response.json()["detail"] == "Database unavailable"


def test_correlation_id_is_echoed(client):
    response = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-42"})

    assert response.headers["X-Correlation-ID"] == "req-42"


def test_correlation_id_is_generated(client):
    response = client.get("/api/v1/health")

    assert response.headers["X-Correlation-ID"]
