import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from brodesk.core.errors import AppError, ForbiddenError, InputValidationError, NotFoundError
from brodesk.domain.interfaces import NotificationSink
from brodesk.domain.lifecycle import (
    available_quick_actions,
    plan_assignment,
    plan_priority_change,
    plan_quick_action,
    plan_status_change,
    status_label,
)
from brodesk.domain.notifications import plan_ticket_notifications
from brodesk.domain.permissions import Action, allowed_actions, can_perform, reporter_view
from brodesk.domain.visibility import scope_for
from brodesk.models.entities import Actor, TicketEntity, TicketPriority, TicketStatus
from brodesk.models.schemas.history import HistoryRead
from brodesk.models.schemas.ticket import (
    AssignmentUpdateRequest,
    StatusUpdateRequest,
    TicketListMeta,
    TicketListResponse,
    TicketRead,
    TicketSubmitRequest,
)
from brodesk.repositories.comment_repository import CommentRepository
from brodesk.repositories.history_repository import HistoryRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.notification_service import dispatch_notifications

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_ticket_read(actor: Actor, ticket: TicketEntity) -> TicketRead:
    reporter_id, reporter_name, reporter_email = reporter_view(actor, ticket)
    actions = allowed_actions(actor, ticket)
    return TicketRead(
        id=ticket.id,
        ticket_number=ticket.ticket_number,
        title=ticket.title,
        description=ticket.description,
        location=ticket.location,
        category_id=ticket.category_id,
        category_name=ticket.category_name,
        priority=ticket.priority,
        status=ticket.status,
        reporter_id=reporter_id,
        reporter_name=reporter_name,
        reporter_email=reporter_email,
        is_anonymous=ticket.is_anonymous,
        assigned_user_id=ticket.assigned_user_id,
        assignee_name=ticket.assignee_name,
        team_id=ticket.team_id,
        team_name=ticket.team_name,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        resolved_at=ticket.resolved_at,
        resolved_by=ticket.resolved_by,
        closed_at=ticket.closed_at,
        sentiment_score=ticket.sentiment_score,
        allowed_actions=actions,
        quick_actions=available_quick_actions(ticket.status) if "quick_action" in actions else [],
    )


class TicketService:
    def __init__(
        self,
        ticket_repository: TicketRepository,
        history_repository: HistoryRepository,
        comment_repository: CommentRepository,
        sink: NotificationSink | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ticket_repository = ticket_repository
        self.history_repository = history_repository
        self.comment_repository = comment_repository
        self.sink = sink
        self.clock = clock

    async def list_tickets(
        self,
        actor: Actor,
        *,
        status: TicketStatus | None = None,
        priority: TicketPriority | None = None,
        q: str | None = None,
    ) -> TicketListResponse:
        scope = scope_for(actor)
        normalized_q = q.strip() if q else None
        tickets = await self.ticket_repository.query_tickets(
            scope,
            status=status,
            priority=priority,
            q=normalized_q or None,
        )
        items = [build_ticket_read(actor, ticket) for ticket in tickets if scope.includes(ticket)]
        return TicketListResponse(
            data=items,
            meta=TicketListMeta(total=len(items), scope=scope.kind),
        )

    async def submit_ticket(self, actor: Actor, payload: TicketSubmitRequest) -> TicketRead:
        if not can_perform(actor, None, "submit"):
            raise ForbiddenError()
        title = self._validate_title(payload.title)
        description = payload.description.strip()
        if not description:
            raise InputValidationError(
                "Ticket description is required.",
                code="INVALID_TICKET_DESCRIPTION",
            )

        ticket = await self.ticket_repository.insert_ticket(
            {
                "title": title,
                "description": description,
                "location": (payload.location or "").strip() or None,
                "category_id": payload.category_id,
                "priority": payload.priority,
                "reporter_id": actor.id,
                "is_anonymous": payload.is_anonymous,
            }
        )
        logger.info("Ticket %s submitted by %s", ticket.ticket_number, actor.id)
        return build_ticket_read(actor, ticket)

    async def get_ticket(self, actor: Actor, ticket_id: str) -> TicketRead:
        ticket = await self._load(actor, ticket_id)
        return build_ticket_read(actor, ticket)

    async def apply_quick_action(self, actor: Actor, ticket_id: str, action: str) -> TicketRead:
        ticket = await self._load(actor, ticket_id)
        fields = plan_quick_action(ticket, action, actor_id=actor.id, now=self.clock())
        return await self._write(actor, ticket, fields, "quick_action")

    async def update_status(
        self,
        actor: Actor,
        ticket_id: str,
        payload: StatusUpdateRequest,
    ) -> TicketRead:
        ticket = await self._load(actor, ticket_id)
        fields = plan_status_change(ticket, payload.status, actor_id=actor.id, now=self.clock())
        result = await self._write(actor, ticket, fields, "edit_status")

        message = (payload.message or "").strip()
        if fields and message:
            # The status change stands even if the note cannot be posted.
            try:
                await self.comment_repository.create(
                    ticket_id=ticket.id,
                    author_id=actor.id,
                    message=f'Status updated to "{status_label(payload.status)}"\n\n{message}',
                    is_internal=False,
                )
            except AppError as exc:
                logger.warning("Status note for %s was not saved: %s", ticket.ticket_number, exc)
        return result

    async def update_priority(
        self,
        actor: Actor,
        ticket_id: str,
        priority: TicketPriority,
    ) -> TicketRead:
        ticket = await self._load(actor, ticket_id)
        fields = plan_priority_change(ticket, priority)
        return await self._write(actor, ticket, fields, "change_priority")

    async def update_assignment(
        self,
        actor: Actor,
        ticket_id: str,
        payload: AssignmentUpdateRequest,
    ) -> TicketRead:
        ticket = await self._load(actor, ticket_id)
        fields = plan_assignment(
            ticket,
            assigned_user_id=payload.assigned_user_id,
            team_id=payload.team_id,
        )
        return await self._write(actor, ticket, fields, "reassign")

    async def list_history(self, actor: Actor, ticket_id: str) -> list[HistoryRead]:
        ticket = await self._load(actor, ticket_id)
        entries = await self.history_repository.list_by_ticket(ticket.id)
        return [
            HistoryRead(
                id=entry.id,
                ticket_id=entry.ticket_id,
                field_name=entry.field_name,
                old_value=entry.old_value,
                new_value=entry.new_value,
                changed_by=entry.changed_by,
                changed_by_name=entry.changed_by_name,
                created_at=entry.created_at,
            )
            for entry in entries
        ]

    async def _load(self, actor: Actor, ticket_id: str) -> TicketEntity:
        ticket = await self.ticket_repository.get_ticket(ticket_id)
        if ticket is None or not can_perform(actor, ticket, "view"):
            raise NotFoundError(
                "Ticket not found.",
                details={"ticket_id": ticket_id},
                code="TICKET_NOT_FOUND",
            )
        return ticket

    async def _write(
        self,
        actor: Actor,
        ticket: TicketEntity,
        fields: dict[str, Any],
        action: Action,
    ) -> TicketRead:
        if not fields:
            return build_ticket_read(actor, ticket)
        if not can_perform(actor, ticket, action):
            raise ForbiddenError(details={"action": action, "ticket_id": ticket.id})

        updated = await self.ticket_repository.update_ticket_fields(
            ticket.id, fields, changed_by=actor.id
        )
        logger.info(
            "Ticket %s updated by %s: %s", ticket.ticket_number, actor.id, ", ".join(fields)
        )
        await dispatch_notifications(self.sink, plan_ticket_notifications(actor, ticket, updated))
        return build_ticket_read(actor, updated)

    def _validate_title(self, title: str) -> str:
        normalized = title.strip()
        if not 1 <= len(normalized) <= TITLE_MAX_LENGTH:
            raise InputValidationError(
                f"Ticket title length must be between 1 and {TITLE_MAX_LENGTH} characters.",
                code="INVALID_TICKET_TITLE",
            )
        return normalized
