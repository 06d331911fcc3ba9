from datetime import datetime

from pydantic import BaseModel


class HistoryRead(BaseModel):
    id: str
    ticket_id: str
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    changed_by: str
    changed_by_name: str | None = None
    created_at: datetime


class HistoryListResponse(BaseModel):
    data: list[HistoryRead]
