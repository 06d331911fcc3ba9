from typing import Annotated

from fastapi import APIRouter, Depends

from brodesk.api.dependencies import CurrentActor
from brodesk.core.config import Settings, get_settings
from brodesk.models.schemas.analysis import AnalysisRequest, AnalysisResponse
from brodesk.repositories.reference_repository import ReferenceRepository
from brodesk.repositories.ticket_repository import TicketRepository
from brodesk.services.analysis_service import AnalysisService

router = APIRouter()


def get_analysis_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AnalysisService:
    return AnalysisService(
        settings=settings,
        ticket_repository=TicketRepository(),
        reference_repository=ReferenceRepository(),
    )


@router.post("/analysis", response_model=AnalysisResponse, response_model_exclude_none=True)
async def analyze_ticket(
    payload: AnalysisRequest,
    actor: CurrentActor,
    analysis_service: Annotated[AnalysisService, Depends(get_analysis_service)],
) -> AnalysisResponse:
    return await analysis_service.analyze(actor, payload)
