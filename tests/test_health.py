from datetime import UTC, datetime

from brodesk.api.routes.health import get_health_service
from brodesk.main import app
from brodesk.models.schemas.health import HealthResponse, StoreHealth
from fastapi.testclient import TestClient


class _HealthyService:
    def get_health(self) -> HealthResponse:
        return HealthResponse(
            status="ok",
            environment="test",
            store=StoreHealth(connected=True, ticket_count=12),
            change_feed_channel="ticket_changes",
            timestamp=datetime.now(UTC),
        )


class _DegradedService:
    def get_health(self) -> HealthResponse:
        return HealthResponse(
            status="degraded",
            environment="test",
            store=StoreHealth(connected=False, message="connection timeout"),
            change_feed_channel="ticket_changes",
            timestamp=datetime.now(UTC),
        )


def test_health_ok(client: TestClient) -> None:
    app.dependency_overrides[get_health_service] = _HealthyService
    response = client.get("/api/health")
    app.dependency_overrides.clear()

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "brodesk-backend"
    assert payload["store"]["ticket_count"] == 12


def test_health_degraded(client: TestClient) -> None:
    app.dependency_overrides[get_health_service] = _DegradedService
    response = client.get("/api/health")
    app.dependency_overrides.clear()

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["store"]["connected"] is False
    assert payload["store"]["message"] == "connection timeout"


def test_root(client: TestClient) -> None:
    response = client.get("/")
    assert response.json() == {"message": "BroDesk backend is running"}
