from datetime import datetime

from pydantic import BaseModel, Field

from brodesk.models.entities import TicketPriority, TicketStatus


class TicketSubmitRequest(BaseModel):
    title: str
    description: str
    category_id: str
    location: str | None = None
    priority: TicketPriority = "medium"
    is_anonymous: bool = False


class StatusUpdateRequest(BaseModel):
    status: TicketStatus
    message: str | None = None


class PriorityUpdateRequest(BaseModel):
    priority: TicketPriority


class AssignmentUpdateRequest(BaseModel):
    assigned_user_id: str | None = None
    team_id: str | None = None


class TicketRead(BaseModel):
    id: str
    ticket_number: str
    title: str
    description: str
    location: str | None = None
    category_id: str | None = None
    category_name: str | None = None
    priority: TicketPriority
    status: TicketStatus
    reporter_id: str | None = None
    reporter_name: str | None = None
    reporter_email: str | None = None
    is_anonymous: bool = False
    assigned_user_id: str | None = None
    assignee_name: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    closed_at: datetime | None = None
    sentiment_score: float | None = None
    allowed_actions: list[str] = Field(default_factory=list)
    quick_actions: list[str] = Field(default_factory=list)


class TicketDataResponse(BaseModel):
    data: TicketRead


class TicketListMeta(BaseModel):
    total: int
    scope: str


class TicketListResponse(BaseModel):
    data: list[TicketRead]
    meta: TicketListMeta
