from dataclasses import dataclass
from datetime import datetime
from typing import Literal

TicketStatus = Literal["open", "in_progress", "need_info", "resolved", "closed"]
TicketPriority = Literal["low", "medium", "high", "urgent"]
ActorRole = Literal["student", "team_member", "admin", "super_admin"]

TICKET_STATUSES: tuple[TicketStatus, ...] = (
    "open",
    "in_progress",
    "need_info",
    "resolved",
    "closed",
)
TICKET_PRIORITIES: tuple[TicketPriority, ...] = ("low", "medium", "high", "urgent")
ADMIN_ROLES: frozenset[str] = frozenset({"admin", "super_admin"})
STAFF_ROLES: frozenset[str] = frozenset({"team_member", "admin", "super_admin"})


@dataclass(slots=True, frozen=True)
class Actor:
    id: str
    role: ActorRole = "student"
    team_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(slots=True)
class TicketEntity:
    id: str
    ticket_number: str
    title: str
    description: str
    category_id: str | None
    priority: TicketPriority
    status: TicketStatus
    reporter_id: str
    created_at: datetime
    updated_at: datetime
    location: str | None = None
    is_anonymous: bool = False
    assigned_user_id: str | None = None
    team_id: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    closed_at: datetime | None = None
    sentiment_score: float | None = None
    reporter_name: str | None = None
    reporter_email: str | None = None
    category_name: str | None = None
    team_name: str | None = None
    assignee_name: str | None = None


@dataclass(slots=True)
class CommentEntity:
    id: str
    ticket_id: str
    author_id: str
    message: str
    is_internal: bool
    created_at: datetime
    author_name: str | None = None


@dataclass(slots=True)
class AttachmentEntity:
    id: str
    ticket_id: str
    file_name: str
    file_url: str
    file_type: str | None
    size_bytes: int | None
    uploaded_by: str
    created_at: datetime


@dataclass(slots=True)
class HistoryEntry:
    id: str
    ticket_id: str
    field_name: str
    old_value: str | None
    new_value: str | None
    changed_by: str
    created_at: datetime
    changed_by_name: str | None = None


@dataclass(slots=True)
class TeamEntity:
    id: str
    name: str
    description: str | None = None
    team_lead_user_id: str | None = None


@dataclass(slots=True)
class CategoryEntity:
    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    team_id: str | None = None


@dataclass(slots=True)
class ProfileEntity:
    id: str
    full_name: str
    email: str
