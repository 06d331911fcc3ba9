import logging

from brodesk.core.errors import ForbiddenError, InputValidationError, NotFoundError
from brodesk.domain.interfaces import NotificationSink
from brodesk.domain.notifications import plan_comment_notifications
from brodesk.domain.permissions import can_perform
from brodesk.models.entities import Actor, CommentEntity, TicketEntity
from brodesk.models.schemas.comment import CommentCreateRequest, CommentRead
from brodesk.repositories.comment_repository import CommentRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.notification_service import dispatch_notifications

logger = logging.getLogger(__name__)


def _to_comment_read(comment: CommentEntity) -> CommentRead:
    return CommentRead(
        id=comment.id,
        ticket_id=comment.ticket_id,
        author_id=comment.author_id,
        author_name=comment.author_name,
        message=comment.message,
        is_internal=comment.is_internal,
        created_at=comment.created_at,
    )


class CommentService:
    def __init__(
        self,
        ticket_repository: TicketRepository,
        comment_repository: CommentRepository,
        sink: NotificationSink | None = None,
    ) -> None:
        self.ticket_repository = ticket_repository
        self.comment_repository = comment_repository
        self.sink = sink

    async def list_comments(self, actor: Actor, ticket_id: str) -> list[CommentRead]:
        ticket = await self._load(actor, ticket_id)
        comments = await self.comment_repository.list_by_ticket(
            ticket.id,
            include_internal=can_perform(actor, ticket, "view_internal"),
        )
        return [_to_comment_read(comment) for comment in comments]

    async def add_comment(
        self,
        actor: Actor,
        ticket_id: str,
        payload: CommentCreateRequest,
    ) -> CommentRead:
        ticket = await self._load(actor, ticket_id)
        message = payload.message.strip()
        if not message:
            raise InputValidationError("Comment message is required.", code="INVALID_COMMENT")

        action = "comment_internal" if payload.is_internal else "comment"
        if not can_perform(actor, ticket, action):
            raise ForbiddenError(details={"action": action, "ticket_id": ticket.id})

        comment = await self.comment_repository.create(
            ticket_id=ticket.id,
            author_id=actor.id,
            message=message,
            is_internal=payload.is_internal,
        )
        await dispatch_notifications(
            self.sink, plan_comment_notifications(actor, ticket, comment)
        )
        return _to_comment_read(comment)

    async def _load(self, actor: Actor, ticket_id: str) -> TicketEntity:
        ticket = await self.ticket_repository.get_ticket(ticket_id)
        if ticket is None or not can_perform(actor, ticket, "view"):
            raise NotFoundError(
                "Ticket not found.",
                details={"ticket_id": ticket_id},
                code="TICKET_NOT_FOUND",
            )
        return ticket
