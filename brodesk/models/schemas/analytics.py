from pydantic import BaseModel


class CountItem(BaseModel):
    name: str
    count: int


class AnalyticsRead(BaseModel):
    total_tickets: int
    open_tickets: int
    in_progress_tickets: int
    need_info_tickets: int
    resolved_tickets: int
    closed_tickets: int
    avg_resolution_hours: float
    by_category: list[CountItem]
    by_priority: list[CountItem]


class AnalyticsResponse(BaseModel):
    data: AnalyticsRead
