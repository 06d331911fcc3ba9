from typing import Annotated

from fastapi import APIRouter, Depends, status

from brodesk.api.dependencies import CurrentActor, get_notification_sink
from brodesk.domain.interfaces import NotificationSink
from brodesk.models.schemas.comment import (
    CommentCreateRequest,
    CommentDataResponse,
    CommentListResponse,
)
from brodesk.repositories.comment_repository import CommentRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.comment_service import CommentService

router = APIRouter(prefix="/tickets/{ticket_id}/comments")


def get_comment_service(
    sink: Annotated[NotificationSink, Depends(get_notification_sink)],
) -> CommentService:
    return CommentService(
        ticket_repository=TicketRepository(),
        comment_repository=CommentRepository(),
        sink=sink,
    )


@router.get("", response_model=CommentListResponse)
async def list_comments(
    ticket_id: str,
    actor: CurrentActor,
    comment_service: Annotated[CommentService, Depends(get_comment_service)],
) -> CommentListResponse:
    comments = await comment_service.list_comments(actor, ticket_id)
    return CommentListResponse(data=comments)


@router.post("", response_model=CommentDataResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: str,
    payload: CommentCreateRequest,
    actor: CurrentActor,
    comment_service: Annotated[CommentService, Depends(get_comment_service)],
) -> CommentDataResponse:
    comment = await comment_service.add_comment(actor, ticket_id, payload)
    return CommentDataResponse(data=comment)
