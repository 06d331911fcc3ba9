import asyncio
import json

import httpx
import pytest
from brodesk.core.config import Settings
from brodesk.core.errors import AppError
from brodesk.domain.notifications import PlannedNotification
from brodesk.models.entities import ProfileEntity
from brodesk.services.notification_service import (
    EmailNotificationSink,
    dispatch_notifications,
    render_email,
)
from tests.helpers.fakes import FakeReferenceRepository, FakeSink

PROFILE = ProfileEntity(id="student-1", full_name="Sam Student", email="sam@example.edu")
PAYLOAD = {"ticket_id": "1", "ticket_number": "BRO00001", "title": "Broken chair"}


def _sink(
    handler: object | None = None,
    *,
    api_key: str | None = "re_test",
) -> tuple[EmailNotificationSink, FakeReferenceRepository]:
    references = FakeReferenceRepository(profiles=[PROFILE])
    settings = Settings(
        notification_api_key=api_key,
        notification_api_url="https://mail.test/emails",
        log_dir=None,
    )
    transport = httpx.MockTransport(handler) if handler else None
    return EmailNotificationSink(settings, references, transport=transport), references


def test_render_email_subjects() -> None:
    subject, html = render_email("ticket_assigned", "Tom", PAYLOAD)
    assert subject == "New ticket assigned: BRO00001"
    assert "Hi Tom" in html

    subject, _ = render_email(
        "ticket_status_changed", "Sam", {**PAYLOAD, "new_status": "in_progress"}
    )
    assert subject == "Ticket BRO00001 is now in progress"


def test_notify_posts_email() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "email-1"})

    sink, _ = _sink(handler)
    asyncio.run(sink.notify("ticket_resolved", PROFILE.id, PAYLOAD))

    assert len(requests) == 1
    assert requests[0].headers["Authorization"] == "Bearer re_test"
    body = json.loads(requests[0].content)
    assert body["to"] == ["sam@example.edu"]
    assert body["subject"] == "Ticket BRO00001 has been resolved"


def test_notify_without_api_key_only_logs() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    sink, _ = _sink(handler, api_key=None)
    asyncio.run(sink.notify("ticket_comment", PROFILE.id, PAYLOAD))


def test_unknown_recipient_is_skipped() -> None:
    sink, _ = _sink(lambda request: httpx.Response(500))
    asyncio.run(sink.notify("ticket_comment", "nobody", PAYLOAD))


def _rejecting(request: httpx.Request) -> httpx.Response:
    return httpx.Response(422, json={"message": "invalid"})


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("down", request=request)


@pytest.mark.parametrize("handler", [_rejecting, _unreachable])
def test_delivery_failures_raise_sink_error(handler: object) -> None:
    sink, _ = _sink(handler)
    with pytest.raises(AppError) as exc_info:
        asyncio.run(sink.notify("ticket_assigned", PROFILE.id, PAYLOAD))
    assert exc_info.value.code == "NOTIFICATION_FAILED"


def test_profile_lookup_failure_raises_sink_error() -> None:
    sink, references = _sink(lambda request: httpx.Response(200))
    references.fail = True
    with pytest.raises(AppError) as exc_info:
        asyncio.run(sink.notify("ticket_assigned", PROFILE.id, PAYLOAD))
    assert exc_info.value.code == "NOTIFICATION_FAILED"


def test_dispatch_counts_failures_without_raising() -> None:
    planned = [
        PlannedNotification("ticket_status_changed", "student-1", PAYLOAD),
        PlannedNotification("ticket_resolved", "student-1", PAYLOAD),
    ]
    assert asyncio.run(dispatch_notifications(FakeSink(fail=True), planned)) == 2

    sink = FakeSink()
    assert asyncio.run(dispatch_notifications(sink, planned)) == 0
    assert len(sink.sent) == 2
    assert asyncio.run(dispatch_notifications(None, planned)) == 0
