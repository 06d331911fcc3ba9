from typing import Annotated

from fastapi import APIRouter, Depends

from brodesk.api.dependencies import CurrentActor
from brodesk.models.schemas.reference import (
    CategoryListResponse,
    CategoryRead,
    TeamListResponse,
    TeamRead,
)
from brodesk.repositories.reference_repository import ReferenceRepository

router = APIRouter()


def get_reference_repository() -> ReferenceRepository:
    return ReferenceRepository()


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    actor: CurrentActor,
    repository: Annotated[ReferenceRepository, Depends(get_reference_repository)],
) -> CategoryListResponse:
    _ = actor
    categories = await repository.list_categories()
    return CategoryListResponse(
        data=[
            CategoryRead(
                id=category.id,
                name=category.name,
                description=category.description,
                icon=category.icon,
                team_id=category.team_id,
            )
            for category in categories
        ]
    )


@router.get("/teams", response_model=TeamListResponse)
async def list_teams(
    actor: CurrentActor,
    repository: Annotated[ReferenceRepository, Depends(get_reference_repository)],
) -> TeamListResponse:
    _ = actor
    teams = await repository.list_teams()
    return TeamListResponse(
        data=[
            TeamRead(
                id=team.id,
                name=team.name,
                description=team.description,
                team_lead_user_id=team.team_lead_user_id,
            )
            for team in teams
        ]
    )
