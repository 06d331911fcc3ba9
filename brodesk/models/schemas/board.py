from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from brodesk.models.entities import TicketPriority, TicketStatus

NoticeLevel = Literal["info", "warning", "error"]


class BoardCard(BaseModel):
    id: str
    ticket_number: str
    title: str
    status: TicketStatus
    priority: TicketPriority
    category_name: str | None = None
    reporter_name: str | None = None
    is_anonymous: bool = False
    assignee_name: str | None = None
    team_name: str | None = None
    created_at: datetime
    actions: list[str] = Field(default_factory=list)
    quick_actions: list[str] = Field(default_factory=list)


class BoardColumnRead(BaseModel):
    status: TicketStatus
    title: str
    count: int
    cards: list[BoardCard]


class BoardNotice(BaseModel):
    id: int
    level: NoticeLevel
    message: str


class BoardSnapshot(BaseModel):
    type: Literal["board"] = "board"
    actor_id: str
    actor_role: str
    columns: list[BoardColumnRead]
    notices: list[BoardNotice] = Field(default_factory=list)
    dragging: str | None = None


class BoardCommand(BaseModel):
    """Inbound board message; unused keys are ignored per ``type``."""

    type: Literal[
        "drag_start",
        "drag_move",
        "drag_end",
        "move",
        "quick_action",
        "set_priority",
        "reassign",
        "dismiss_notice",
        "resync",
        "ping",
    ]
    ticket_id: str | None = None
    x: float = 0.0
    y: float = 0.0
    over: str | None = None
    status: str | None = None
    action: str | None = None
    priority: str | None = None
    assigned_user_id: str | None = None
    team_id: str | None = None
    notice_id: int | None = None
