from brodesk.api.dependencies import get_current_actor
from brodesk.api.routes.tickets import get_ticket_service
from brodesk.main import app
from brodesk.models.entities import Actor
from brodesk.services.ticket_service import TicketService
from fastapi import status
from fastapi.testclient import TestClient
from tests.helpers.fakes import (
    FakeCommentRepository,
    FakeHistoryRepository,
    FakeSink,
    FakeTicketStore,
    make_ticket,
)

MEMBER = Actor(id="member-1", role="team_member", team_id="T1")
STUDENT = Actor(id="student-1", role="student")


def _install(actor: Actor) -> FakeTicketStore:
    store = FakeTicketStore(
        [
            make_ticket("1", team_id="T1", reporter_id=STUDENT.id),
            make_ticket("2", team_id="T2", reporter_id="student-2"),
        ]
    )
    service = TicketService(
        ticket_repository=store,
        history_repository=FakeHistoryRepository(store),
        comment_repository=FakeCommentRepository(),
        sink=FakeSink(),
    )
    app.dependency_overrides[get_current_actor] = lambda: actor
    app.dependency_overrides[get_ticket_service] = lambda: service
    return store


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    response = client.get("/api/tickets")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_list_tickets_is_scoped(client: TestClient) -> None:
    _install(MEMBER)

    response = client.get("/api/tickets", params={"status": "open"})

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert [ticket["id"] for ticket in payload["data"]] == ["1"]
    assert payload["meta"] == {"total": 1, "scope": "team"}


def test_submit_ticket(client: TestClient) -> None:
    _install(STUDENT)

    response = client.post(
        "/api/tickets",
        json={"title": "Leaking tap", "description": "Kitchen 2", "category_id": "cat-1"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["status"] == "open"
    assert data["priority"] == "medium"


def test_quick_action_route(client: TestClient) -> None:
    store = _install(MEMBER)

    response = client.post("/api/tickets/1/actions/start")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["status"] == "in_progress"
    assert store.tickets["1"].status == "in_progress"


def test_invalid_quick_action_returns_400(client: TestClient) -> None:
    _install(MEMBER)

    response = client.post("/api/tickets/1/actions/close")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"


def test_status_patch_forbidden_for_reporter(client: TestClient) -> None:
    _install(STUDENT)

    response = client.patch("/api/tickets/1/status", json={"status": "resolved"})

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_status_patch_rejects_unknown_status(client: TestClient) -> None:
    _install(MEMBER)

    response = client.patch("/api/tickets/1/status", json={"status": "archived"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_ticket_outside_scope_is_not_found(client: TestClient) -> None:
    _install(MEMBER)

    response = client.get("/api/tickets/2")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["code"] == "TICKET_NOT_FOUND"


def test_history_route(client: TestClient) -> None:
    _install(MEMBER)
    client.patch("/api/tickets/1/priority", json={"priority": "urgent"})

    response = client.get("/api/tickets/1/history")

    assert response.status_code == status.HTTP_200_OK
    entries = response.json()["data"]
    assert [(entry["field_name"], entry["old_value"], entry["new_value"]) for entry in entries] == [
        ("priority", "medium", "urgent")
    ]
