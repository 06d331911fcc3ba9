import asyncio
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from brodesk.core.errors import NotFoundError, SinkError, StoreError
from brodesk.domain.interfaces import ChangeEvent, ChangeHandler
from brodesk.domain.lifecycle import apply_fields, audited_changes
from brodesk.domain.visibility import TicketScope
from brodesk.models.entities import (
    AttachmentEntity,
    CategoryEntity,
    CommentEntity,
    HistoryEntry,
    ProfileEntity,
    TeamEntity,
    TicketEntity,
)

BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)


def make_ticket(ticket_id: str = "1", **overrides: Any) -> TicketEntity:
    values: dict[str, Any] = {
        "id": ticket_id,
        "ticket_number": f"BRO{int(ticket_id) if ticket_id.isdigit() else 0:05d}",
        "title": f"Ticket {ticket_id}",
        "description": "Something is broken",
        "category_id": "cat-1",
        "priority": "medium",
        "status": "open",
        "reporter_id": "student-1",
        "created_at": BASE_TIME,
        "updated_at": BASE_TIME,
    }
    values.update(overrides)
    return TicketEntity(**values)


class FakeTicketStore:
    """In-memory ticket store that records history like the real one."""

    def __init__(self, tickets: list[TicketEntity] | None = None) -> None:
        self.tickets: dict[str, TicketEntity] = {ticket.id: ticket for ticket in tickets or []}
        self.history: list[HistoryEntry] = []
        self.writes: list[tuple[str, dict[str, Any], str]] = []
        self.read_count = 0
        self.fail_reads = False
        self.fail_writes = False
        self.read_gates: list[asyncio.Event] = []
        self._next_id = len(self.tickets) + 1

    async def query_tickets(
        self,
        scope: TicketScope,
        *,
        status: str | None = None,
        priority: str | None = None,
        q: str | None = None,
        limit: int | None = None,
        connection: object | None = None,
    ) -> list[TicketEntity]:
        self.read_count += 1
        # Take the result at call time so a gated read returns stale data.
        result = [
            replace(ticket)
            for ticket in self.tickets.values()
            if scope.includes(ticket)
            and (status is None or ticket.status == status)
            and (priority is None or ticket.priority == priority)
            and (q is None or q.lower() in ticket.title.lower())
        ]
        if self.read_gates:
            await self.read_gates.pop(0).wait()
        if self.fail_reads:
            raise StoreError(details={"operation": "query_tickets"})
        result.sort(key=lambda ticket: ticket.created_at, reverse=True)
        return result[:limit] if limit else result

    async def get_ticket(
        self,
        ticket_id: str,
        connection: object | None = None,
    ) -> TicketEntity | None:
        if self.fail_reads:
            raise StoreError(details={"operation": "get_ticket"})
        ticket = self.tickets.get(ticket_id)
        return replace(ticket) if ticket else None

    async def list_recent_open(
        self,
        limit: int = 50,
        connection: object | None = None,
    ) -> list[TicketEntity]:
        open_tickets = [
            ticket
            for ticket in self.tickets.values()
            if ticket.status in ("open", "in_progress", "need_info")
        ]
        open_tickets.sort(key=lambda ticket: ticket.created_at, reverse=True)
        return open_tickets[:limit]

    async def update_ticket_fields(
        self,
        ticket_id: str,
        fields: Mapping[str, Any],
        *,
        changed_by: str,
        connection: object | None = None,
    ) -> TicketEntity:
        if self.fail_writes:
            raise StoreError(details={"operation": "update_ticket_fields"})
        current = self.tickets.get(ticket_id)
        if current is None:
            raise NotFoundError("Ticket not found.", code="TICKET_NOT_FOUND")

        self.writes.append((ticket_id, dict(fields), changed_by))
        current_values = {
            "status": current.status,
            "priority": current.priority,
            "assigned_user_id": current.assigned_user_id,
            "team_id": current.team_id,
        }
        for field_name, old_value, new_value in audited_changes(current_values, fields):
            self.history.append(
                HistoryEntry(
                    id=str(len(self.history) + 1),
                    ticket_id=ticket_id,
                    field_name=field_name,
                    old_value=old_value,
                    new_value=new_value,
                    changed_by=changed_by,
                    created_at=current.updated_at + timedelta(minutes=len(self.history) + 1),
                )
            )
        updated = replace(apply_fields(current, fields), updated_at=datetime.now(UTC))
        self.tickets[ticket_id] = updated
        return replace(updated)

    async def insert_ticket(self, fields: Mapping[str, Any]) -> TicketEntity:
        ticket_id = str(100 + self._next_id)
        self._next_id += 1
        ticket = make_ticket(
            ticket_id,
            ticket_number=f"BRO{int(ticket_id):05d}",
            title=fields["title"],
            description=fields["description"],
            location=fields.get("location"),
            category_id=fields["category_id"],
            priority=fields.get("priority", "medium"),
            reporter_id=fields["reporter_id"],
            is_anonymous=bool(fields.get("is_anonymous", False)),
            created_at=datetime.now(UTC),
            updated_at=datetime.now(UTC),
        )
        self.tickets[ticket.id] = ticket
        return replace(ticket)

    def history_for(self, ticket_id: str) -> list[HistoryEntry]:
        return [entry for entry in self.history if entry.ticket_id == ticket_id]


class FakeChangeFeed:
    def __init__(self) -> None:
        self.handlers: dict[int, ChangeHandler] = {}
        self.subscribe_count = 0
        self.unsubscribe_count = 0
        self.fail_subscribe = False

    async def subscribe(self, on_event: ChangeHandler) -> int:
        if self.fail_subscribe:
            raise StoreError("Change feed is unavailable.")
        self.subscribe_count += 1
        handle = self.subscribe_count
        self.handlers[handle] = on_event
        return handle

    async def unsubscribe(self, handle: int) -> None:
        self.unsubscribe_count += 1
        self.handlers.pop(handle, None)

    async def publish(self, event: ChangeEvent) -> None:
        for handler in list(self.handlers.values()):
            await handler(event)


class FakeSink:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, dict[str, Any]]] = []

    async def notify(
        self,
        event_type: str,
        recipient_id: str,
        payload: Mapping[str, Any],
    ) -> None:
        if self.fail:
            raise SinkError(details={"type": event_type})
        self.sent.append((event_type, recipient_id, dict(payload)))


class FakeCommentRepository:
    def __init__(self) -> None:
        self.comments: list[CommentEntity] = []
        self.fail = False

    async def create(
        self,
        *,
        ticket_id: str,
        author_id: str,
        message: str,
        is_internal: bool = False,
        connection: object | None = None,
    ) -> CommentEntity:
        if self.fail:
            raise StoreError(details={"operation": "create_comment"})
        comment = CommentEntity(
            id=f"comment-{len(self.comments) + 1}",
            ticket_id=ticket_id,
            author_id=author_id,
            message=message,
            is_internal=is_internal,
            created_at=datetime.now(UTC),
        )
        self.comments.append(comment)
        return comment

    async def list_by_ticket(
        self,
        ticket_id: str,
        *,
        include_internal: bool,
        connection: object | None = None,
    ) -> list[CommentEntity]:
        return [
            comment
            for comment in self.comments
            if comment.ticket_id == ticket_id and (include_internal or not comment.is_internal)
        ]


class FakeHistoryRepository:
    def __init__(self, store: FakeTicketStore) -> None:
        self.store = store

    async def list_by_ticket(
        self,
        ticket_id: str,
        connection: object | None = None,
    ) -> list[HistoryEntry]:
        return list(reversed(self.store.history_for(ticket_id)))


class FakeAttachmentRepository:
    def __init__(self, attachments: list[AttachmentEntity] | None = None) -> None:
        self.attachments: dict[str, AttachmentEntity] = {
            attachment.id: attachment for attachment in attachments or []
        }

    async def create(
        self,
        *,
        ticket_id: str,
        file_name: str,
        file_url: str,
        file_type: str | None,
        size_bytes: int | None,
        uploaded_by: str,
        connection: object | None = None,
    ) -> AttachmentEntity:
        attachment = AttachmentEntity(
            id=f"att-{len(self.attachments) + 1}",
            ticket_id=ticket_id,
            file_name=file_name,
            file_url=file_url,
            file_type=file_type,
            size_bytes=size_bytes,
            uploaded_by=uploaded_by,
            created_at=datetime.now(UTC),
        )
        self.attachments[attachment.id] = attachment
        return attachment

    async def get_by_id(
        self,
        attachment_id: str,
        connection: object | None = None,
    ) -> AttachmentEntity | None:
        return self.attachments.get(attachment_id)

    async def list_by_ticket(
        self,
        ticket_id: str,
        connection: object | None = None,
    ) -> list[AttachmentEntity]:
        return [item for item in self.attachments.values() if item.ticket_id == ticket_id]

    async def delete(self, attachment_id: str, connection: object | None = None) -> bool:
        return self.attachments.pop(attachment_id, None) is not None


class FakeReferenceRepository:
    def __init__(
        self,
        *,
        categories: list[CategoryEntity] | None = None,
        teams: list[TeamEntity] | None = None,
        profiles: list[ProfileEntity] | None = None,
    ) -> None:
        self.categories = categories or []
        self.teams = teams or []
        self.profiles = {profile.id: profile for profile in profiles or []}
        self.fail = False

    async def list_categories(self, connection: object | None = None) -> list[CategoryEntity]:
        return list(self.categories)

    async def list_teams(self, connection: object | None = None) -> list[TeamEntity]:
        return list(self.teams)

    async def get_profile(
        self,
        user_id: str,
        connection: object | None = None,
    ) -> ProfileEntity | None:
        if self.fail:
            raise StoreError(details={"operation": "get_profile"})
        return self.profiles.get(user_id)
