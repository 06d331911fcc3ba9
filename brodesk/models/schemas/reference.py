from pydantic import BaseModel


class CategoryRead(BaseModel):
    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    team_id: str | None = None


class CategoryListResponse(BaseModel):
    data: list[CategoryRead]


class TeamRead(BaseModel):
    id: str
    name: str
    description: str | None = None
    team_lead_user_id: str | None = None


class TeamListResponse(BaseModel):
    data: list[TeamRead]
