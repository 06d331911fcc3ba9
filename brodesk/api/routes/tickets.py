from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from brodesk.api.dependencies import CurrentActor, get_notification_sink
from brodesk.domain.interfaces import NotificationSink
from brodesk.models.entities import TicketPriority, TicketStatus
from brodesk.models.schemas.history import HistoryListResponse
from brodesk.models.schemas.ticket import (
    AssignmentUpdateRequest,
    PriorityUpdateRequest,
    StatusUpdateRequest,
    TicketDataResponse,
    TicketListResponse,
    TicketSubmitRequest,
)
from brodesk.repositories.comment_repository import CommentRepository
from brodesk.repositories.history_repository import HistoryRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.ticket_service import TicketService

router = APIRouter(prefix="/tickets")


def get_ticket_service(
    sink: Annotated[NotificationSink, Depends(get_notification_sink)],
) -> TicketService:
    return TicketService(
        ticket_repository=TicketRepository(),
        history_repository=HistoryRepository(),
        comment_repository=CommentRepository(),
        sink=sink,
    )


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
    status: Annotated[TicketStatus | None, Query()] = None,
    priority: Annotated[TicketPriority | None, Query()] = None,
    q: Annotated[str | None, Query()] = None,
) -> TicketListResponse:
    return await ticket_service.list_tickets(actor, status=status, priority=priority, q=q)


@router.post("", response_model=TicketDataResponse, status_code=status.HTTP_201_CREATED)
async def submit_ticket(
    payload: TicketSubmitRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.submit_ticket(actor, payload)
    return TicketDataResponse(data=ticket)


@router.get("/{ticket_id}", response_model=TicketDataResponse)
async def get_ticket(
    ticket_id: str,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.get_ticket(actor, ticket_id)
    return TicketDataResponse(data=ticket)


@router.post("/{ticket_id}/actions/{action}", response_model=TicketDataResponse)
async def apply_quick_action(
    ticket_id: str,
    action: str,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.apply_quick_action(actor, ticket_id, action)
    return TicketDataResponse(data=ticket)


@router.patch("/{ticket_id}/status", response_model=TicketDataResponse)
async def update_status(
    ticket_id: str,
    payload: StatusUpdateRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.update_status(actor, ticket_id, payload)
    return TicketDataResponse(data=ticket)


@router.patch("/{ticket_id}/priority", response_model=TicketDataResponse)
async def update_priority(
    ticket_id: str,
    payload: PriorityUpdateRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.update_priority(actor, ticket_id, payload.priority)
    return TicketDataResponse(data=ticket)


@router.patch("/{ticket_id}/assignment", response_model=TicketDataResponse)
async def update_assignment(
    ticket_id: str,
    payload: AssignmentUpdateRequest,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> TicketDataResponse:
    ticket = await ticket_service.update_assignment(actor, ticket_id, payload)
    return TicketDataResponse(data=ticket)


@router.get("/{ticket_id}/history", response_model=HistoryListResponse)
async def list_history(
    ticket_id: str,
    actor: CurrentActor,
    ticket_service: TicketServiceDep,
) -> HistoryListResponse:
    entries = await ticket_service.list_history(actor, ticket_id)
    return HistoryListResponse(data=entries)
