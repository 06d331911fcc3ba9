import logging

from brodesk.core.errors import ForbiddenError, InputValidationError, NotFoundError
from brodesk.domain.permissions import can_perform
from brodesk.models.entities import Actor, AttachmentEntity, TicketEntity
from brodesk.models.schemas.attachment import AttachmentCreateRequest, AttachmentRead
from brodesk.repositories.attachment_repository import AttachmentRepository
from brodesk.repositories.ticket_repository import TicketRepository

logger = logging.getLogger(__name__)


class AttachmentService:
    """Attachment metadata; file bytes live in external object storage."""

    def __init__(
        self,
        ticket_repository: TicketRepository,
        attachment_repository: AttachmentRepository,
        max_bytes: int,
    ) -> None:
        self.ticket_repository = ticket_repository
        self.attachment_repository = attachment_repository
        self.max_bytes = max_bytes

    async def list_attachments(self, actor: Actor, ticket_id: str) -> list[AttachmentRead]:
        ticket = await self._load(actor, ticket_id)
        attachments = await self.attachment_repository.list_by_ticket(ticket.id)
        return [self._to_read(actor, ticket, attachment) for attachment in attachments]

    async def add_attachment(
        self,
        actor: Actor,
        ticket_id: str,
        payload: AttachmentCreateRequest,
    ) -> AttachmentRead:
        ticket = await self._load(actor, ticket_id)
        if not can_perform(actor, ticket, "attach"):
            raise ForbiddenError(details={"action": "attach", "ticket_id": ticket.id})

        file_name = payload.file_name.strip()
        file_url = payload.file_url.strip()
        if not file_name or not file_url:
            raise InputValidationError(
                "Attachment name and URL are required.",
                code="INVALID_ATTACHMENT",
            )
        if payload.size_bytes is not None and payload.size_bytes > self.max_bytes:
            raise InputValidationError(
                "Attachment exceeds the maximum allowed size.",
                details={"size_bytes": payload.size_bytes, "max_bytes": self.max_bytes},
                code="ATTACHMENT_TOO_LARGE",
            )

        attachment = await self.attachment_repository.create(
            ticket_id=ticket.id,
            file_name=file_name,
            file_url=file_url,
            file_type=payload.file_type,
            size_bytes=payload.size_bytes,
            uploaded_by=actor.id,
        )
        logger.info("Attachment %s added to %s", attachment.id, ticket.ticket_number)
        return self._to_read(actor, ticket, attachment)

    async def delete_attachment(self, actor: Actor, attachment_id: str) -> None:
        attachment = await self.attachment_repository.get_by_id(attachment_id)
        if attachment is None:
            self._raise_attachment_not_found(attachment_id)
        ticket = await self.ticket_repository.get_ticket(attachment.ticket_id)
        if ticket is None or not can_perform(actor, ticket, "view"):
            self._raise_attachment_not_found(attachment_id)
        if not can_perform(actor, ticket, "delete_attachment", attachment=attachment):
            raise ForbiddenError(
                "Only the uploader can delete an attachment.",
                details={"attachment_id": attachment_id},
            )

        deleted = await self.attachment_repository.delete(attachment_id)
        if not deleted:
            self._raise_attachment_not_found(attachment_id)

    def _to_read(
        self,
        actor: Actor,
        ticket: TicketEntity,
        attachment: AttachmentEntity,
    ) -> AttachmentRead:
        return AttachmentRead(
            id=attachment.id,
            ticket_id=attachment.ticket_id,
            file_name=attachment.file_name,
            file_url=attachment.file_url,
            file_type=attachment.file_type,
            size_bytes=attachment.size_bytes,
            uploaded_by=attachment.uploaded_by,
            created_at=attachment.created_at,
            can_delete=can_perform(actor, ticket, "delete_attachment", attachment=attachment),
        )

    async def _load(self, actor: Actor, ticket_id: str) -> TicketEntity:
        ticket = await self.ticket_repository.get_ticket(ticket_id)
        if ticket is None or not can_perform(actor, ticket, "view"):
            raise NotFoundError(
                "Ticket not found.",
                details={"ticket_id": ticket_id},
                code="TICKET_NOT_FOUND",
            )
        return ticket

    def _raise_attachment_not_found(self, attachment_id: str) -> None:
        raise NotFoundError(
            "Attachment not found.",
            details={"attachment_id": attachment_id},
            code="ATTACHMENT_NOT_FOUND",
        )
