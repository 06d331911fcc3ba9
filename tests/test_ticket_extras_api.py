from datetime import UTC, datetime

from brodesk.api.dependencies import get_current_actor
from brodesk.api.routes.analytics import get_analytics_service
from brodesk.api.routes.attachments import get_attachment_service
from brodesk.api.routes.comments import get_comment_service
from brodesk.api.routes.reference import get_reference_repository
from brodesk.main import app
from brodesk.models.entities import Actor, AttachmentEntity, CategoryEntity, TeamEntity
from brodesk.services.analytics_service import AnalyticsService
from brodesk.services.attachment_service import AttachmentService
from brodesk.services.comment_service import CommentService
from fastapi import status
from fastapi.testclient import TestClient
from tests.helpers.fakes import (
    FakeAttachmentRepository,
    FakeCommentRepository,
    FakeReferenceRepository,
    FakeSink,
    FakeTicketStore,
    make_ticket,
)

STUDENT = Actor(id="student-1", role="student")
MEMBER = Actor(id="member-1", role="team_member", team_id="T1")
ADMIN = Actor(id="admin-1", role="admin")


def _store() -> FakeTicketStore:
    return FakeTicketStore([make_ticket("1", team_id="T1", reporter_id=STUDENT.id)])


def test_comment_routes(client: TestClient) -> None:
    comments = FakeCommentRepository()
    service = CommentService(_store(), comments, FakeSink())
    app.dependency_overrides[get_current_actor] = lambda: MEMBER
    app.dependency_overrides[get_comment_service] = lambda: service

    created = client.post(
        "/api/tickets/1/comments",
        json={"message": "Checking today", "is_internal": True},
    )
    listed = client.get("/api/tickets/1/comments")

    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["data"]["is_internal"] is True
    assert [item["message"] for item in listed.json()["data"]] == ["Checking today"]


def test_attachment_routes(client: TestClient) -> None:
    attachments = FakeAttachmentRepository(
        [
            AttachmentEntity(
                id="att-1",
                ticket_id="1",
                file_name="leak.jpg",
                file_url="https://files.test/leak.jpg",
                file_type="image/jpeg",
                size_bytes=100,
                uploaded_by=STUDENT.id,
                created_at=datetime.now(UTC),
            )
        ]
    )
    service = AttachmentService(_store(), attachments, max_bytes=1024)
    app.dependency_overrides[get_current_actor] = lambda: STUDENT
    app.dependency_overrides[get_attachment_service] = lambda: service

    listed = client.get("/api/tickets/1/attachments")
    assert listed.json()["data"][0]["can_delete"] is True

    too_large = client.post(
        "/api/tickets/1/attachments",
        json={"file_name": "video.mp4", "file_url": "https://files.test/v.mp4", "size_bytes": 4096},
    )
    assert too_large.status_code == status.HTTP_400_BAD_REQUEST
    assert too_large.json()["error"]["code"] == "ATTACHMENT_TOO_LARGE"

    deleted = client.delete("/api/attachments/att-1")
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert attachments.attachments == {}


def test_analytics_route_is_admin_only(client: TestClient) -> None:
    service = AnalyticsService(
        _store(),
        FakeReferenceRepository(categories=[CategoryEntity(id="cat-1", name="Facilities")]),
    )
    app.dependency_overrides[get_analytics_service] = lambda: service

    app.dependency_overrides[get_current_actor] = lambda: MEMBER
    forbidden = client.get("/api/analytics")
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    app.dependency_overrides[get_current_actor] = lambda: ADMIN
    response = client.get("/api/analytics")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["total_tickets"] == 1
    assert data["by_category"] == [{"name": "Facilities", "count": 1}]


def test_reference_routes(client: TestClient) -> None:
    repository = FakeReferenceRepository(
        categories=[CategoryEntity(id="cat-1", name="IT", icon="laptop", team_id="T2")],
        teams=[TeamEntity(id="T2", name="IT Support", team_lead_user_id="member-9")],
    )
    app.dependency_overrides[get_current_actor] = lambda: STUDENT
    app.dependency_overrides[get_reference_repository] = lambda: repository

    categories = client.get("/api/categories").json()["data"]
    teams = client.get("/api/teams").json()["data"]

    assert categories[0]["name"] == "IT"
    assert categories[0]["team_id"] == "T2"
    assert teams == [
        {
            "id": "T2",
            "name": "IT Support",
            "description": None,
            "team_lead_user_id": "member-9",
        }
    ]
