from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from brodesk.api.dependencies import CurrentActor
from brodesk.core.config import Settings, get_settings
from brodesk.models.schemas.attachment import (
    AttachmentCreateRequest,
    AttachmentDataResponse,
    AttachmentListResponse,
)
from brodesk.repositories.attachment_repository import AttachmentRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.attachment_service import AttachmentService

router = APIRouter()


def get_attachment_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AttachmentService:
    return AttachmentService(
        ticket_repository=TicketRepository(),
        attachment_repository=AttachmentRepository(),
        max_bytes=settings.max_attachment_bytes,
    )


AttachmentServiceDep = Annotated[AttachmentService, Depends(get_attachment_service)]


@router.get("/tickets/{ticket_id}/attachments", response_model=AttachmentListResponse)
async def list_attachments(
    ticket_id: str,
    actor: CurrentActor,
    attachment_service: AttachmentServiceDep,
) -> AttachmentListResponse:
    attachments = await attachment_service.list_attachments(actor, ticket_id)
    return AttachmentListResponse(data=attachments)


@router.post(
    "/tickets/{ticket_id}/attachments",
    response_model=AttachmentDataResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_attachment(
    ticket_id: str,
    payload: AttachmentCreateRequest,
    actor: CurrentActor,
    attachment_service: AttachmentServiceDep,
) -> AttachmentDataResponse:
    attachment = await attachment_service.add_attachment(actor, ticket_id, payload)
    return AttachmentDataResponse(data=attachment)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    actor: CurrentActor,
    attachment_service: AttachmentServiceDep,
) -> Response:
    await attachment_service.delete_attachment(actor, attachment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
