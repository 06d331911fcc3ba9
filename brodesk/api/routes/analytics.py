from typing import Annotated

from fastapi import APIRouter, Depends

from brodesk.api.dependencies import CurrentActor
from brodesk.models.schemas.analytics import AnalyticsResponse
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.analytics_service import AnalyticsService

router = APIRouter()


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(
        ticket_repository=TicketRepository(),
        reference_repository=ReferenceRepository(),
    )


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    actor: CurrentActor,
    analytics_service: Annotated[AnalyticsService, Depends(get_analytics_service)],
) -> AnalyticsResponse:
    analytics = await analytics_service.get_analytics(actor)
    return AnalyticsResponse(data=analytics)
